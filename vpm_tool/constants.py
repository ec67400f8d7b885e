"""Global constants for vpm-tool"""

import re

APP_NAME = "vpm-tool"
LOG_FORMAT = "%(message)s"

# Project configuration
PROJECT_CONFIG_FILE = ".vpm-tool.yaml"

# Directory structure
DEFAULT_PACKAGES_DIR = "Packages"
DEFAULT_REPOSITORIES_DIR = ".vpm/repositories"
DEFAULT_HISTORY_FILE = ".vpm/history.json"
DEFAULT_TEMP_DIR_NAME = "vpm-tool"

# File names
MANIFEST_FILE = "vpm-manifest.json"
PACKAGE_DESCRIPTOR_FILE = "package.json"
META_SUFFIX = ".meta"
DEFAULT_REPOS_MARKER = ".default_repos_imported"
REPOSITORY_FILE_PATTERN = "*.json"

# Manifest cache
MANIFEST_CACHE_LIFETIME_SECONDS = 5.0

# Download defaults
DEFAULT_CHUNK_SIZE = 64 * 1024
DEFAULT_TIMEOUT = 60.0
DEFAULT_RETRY_COUNT = 3
DEFAULT_RETRY_DELAY = 1.0  # seconds
DEFAULT_BACKOFF_MULTIPLIER = 2.0
DEFAULT_MAX_RETRY_DELAY = 30.0

# Installation history
HISTORY_MAX_ENTRIES = 100

# Progress split when a base package is installed first
BASE_INSTALL_PROGRESS_SHARE = 0.5

# Default constraint rules
MANAGER_PACKAGE_ID = "dev.redline-team.rpm"
DEFAULT_PROTECTED_PACKAGES = [MANAGER_PACKAGE_ID]
DEFAULT_MUTUALLY_EXCLUSIVE = [
    ("com.vrchat.avatars", "com.vrchat.worlds"),
]
DEFAULT_BASE_PACKAGES = {
    "com.vrchat.avatars": "com.vrchat.base",
    "com.vrchat.worlds": "com.vrchat.base",
}

# External repository managers (VCC / ALCOM)
EXTERNAL_REPO_DIRS = [
    ("VRChatCreatorCompanion", "Repos"),
    ("ALCOM", "Repos"),
    ("ALCOM", "Repositories"),
]


# Error codes
class ErrorCode:
    REPOSITORY_PARSE_ERROR = "VT001"
    NETWORK_ERROR = "VT002"
    FILESYSTEM_ERROR = "VT003"
    CONSTRAINT_VIOLATION = "VT004"
    CORRUPTION = "VT005"
    CONFIG_FORMAT_ERROR = "VT006"
    PACKAGE_NOT_FOUND = "VT007"
    CHECKSUM_MISMATCH = "VT008"
    OPERATION_CANCELLED = "VT009"
    PACKAGE_NOT_INSTALLED = "VT010"
    INVALID_PACKAGE = "VT012"


# Environment variables
ENV_CONFIG_PATH = "VPM_TOOL_CONFIG"
ENV_PACKAGES_DIR = "VPM_TOOL_PACKAGES_DIR"
ENV_REPOS_DIR = "VPM_TOOL_REPOS_DIR"
ENV_LOG_LEVEL = "VPM_TOOL_LOG_LEVEL"
ENV_XDG_DATA_HOME = "XDG_DATA_HOME"

# Version classification
UNSTABLE_MARKERS = re.compile(
    r"alpha|beta|rc|preview|pre|dev|nightly|snapshot",
    re.IGNORECASE
)

# Characters that cannot appear in a repository file name (spaces are kept)
INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')

# Display constants
EMOJI_SUCCESS = "✓"
EMOJI_ERROR = "✗"
EMOJI_WARNING = "⚠"
EMOJI_ARROW = "→"
EMOJI_PACKAGE = "📦"

# Messages templates
MSG_INSTALL_SUCCESS = f"{EMOJI_SUCCESS} Installed {{package}} {{version}}"
MSG_REMOVE_SUCCESS = f"{EMOJI_SUCCESS} Removed {{package}}"
MSG_REFRESH_SUCCESS = f"{EMOJI_SUCCESS} Refreshed {{count}} of {{total}} repositories"
MSG_RECONCILE_SUCCESS = f"{EMOJI_SUCCESS} Updated {{count}} manifest entries"
MSG_UPDATE_AVAILABLE = f"{{package}} {{installed}} {EMOJI_ARROW} {{latest}}"
