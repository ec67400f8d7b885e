"""Services for vpm-tool"""

from .download_service import DownloadService
from .config_service import ConfigService

__all__ = [
    "DownloadService",
    "ConfigService",
]
