"""HTTP download service with retry and cancellation"""

import logging
import os
from pathlib import Path
from typing import Callable, Optional

import aiofiles
import httpx

from ..api.exceptions import NetworkError
from ..models.config import DownloadConfig
from ..utils.async_utils import CancellationToken, retry_async

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


class DownloadService:
    """Fetches repository descriptors and package archives over HTTP(S)"""

    def __init__(self,
                 config: Optional[DownloadConfig] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        """Initialize download service

        Args:
            config: Timeout, retry and chunking settings
            transport: Custom httpx transport (tests pass a MockTransport)
        """
        self.config = config or DownloadConfig()
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=self.transport,
            follow_redirects=True,
            timeout=self.config.timeout
        )

    async def _with_retry(self, func, url: str, *args, cancel_token: Optional[CancellationToken] = None):
        try:
            return await retry_async(
                func, url, *args,
                max_attempts=self.config.retry_count + 1,
                delay_for=self.config.get_retry_delay,
                exceptions=(httpx.TransportError, _ServerError),
                cancel_token=cancel_token,
            )
        except (httpx.HTTPError, _ServerError) as e:
            raise NetworkError(f"Failed to download {url}: {e}", url=url) from e

    async def fetch_bytes(self, url: str,
                          cancel_token: Optional[CancellationToken] = None) -> bytes:
        """Fetch a small resource (repository descriptor) into memory

        Args:
            url: Resource URL
            cancel_token: Optional cancellation token

        Returns:
            Response body

        Raises:
            NetworkError: Request failed after all retries
        """
        logger.info(f"Fetching {url}")
        return await self._with_retry(self._fetch_once, url, cancel_token=cancel_token)

    async def _fetch_once(self, url: str) -> bytes:
        async with self._client() as client:
            response = await client.get(url)
            _check_status(response, url)
            return response.content

    async def download_file(self,
                            url: str,
                            destination: Path,
                            on_progress: Optional[ProgressCallback] = None,
                            cancel_token: Optional[CancellationToken] = None) -> Path:
        """Stream a resource to a file

        Data is written to ``<destination>.part`` and renamed once complete.

        Args:
            url: Resource URL
            destination: Target file
            on_progress: Called with the downloaded fraction in [0, 1]
            cancel_token: Checked between chunks

        Returns:
            Path to the downloaded file

        Raises:
            NetworkError: Request failed after all retries
            OperationCancelledError: Cancelled through ``cancel_token``
        """
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)

        logger.info(f"Downloading {url}")
        await self._with_retry(self._download_once, url, destination, on_progress, cancel_token,
                               cancel_token=cancel_token)
        if on_progress:
            on_progress(1.0)
        return destination

    async def _download_once(self,
                             url: str,
                             destination: Path,
                             on_progress: Optional[ProgressCallback],
                             cancel_token: Optional[CancellationToken]) -> None:
        partial = destination.with_name(destination.name + ".part")
        try:
            async with self._client() as client:
                async with client.stream("GET", url) as response:
                    _check_status(response, url)

                    total_size = int(response.headers.get("content-length", 0) or 0)
                    downloaded = 0

                    async with aiofiles.open(partial, "wb") as f:
                        async for chunk in response.aiter_bytes(self.config.chunk_size):
                            if cancel_token:
                                cancel_token.raise_if_cancelled()
                            await f.write(chunk)
                            downloaded += len(chunk)
                            if on_progress and total_size > 0:
                                on_progress(min(downloaded / total_size, 1.0))

            os.replace(partial, destination)
        finally:
            if partial.exists():
                partial.unlink()


class _ServerError(Exception):
    """Retryable HTTP status (5xx or 429)"""


def _check_status(response: httpx.Response, url: str) -> None:
    if response.status_code >= 500 or response.status_code == 429:
        raise _ServerError(f"HTTP {response.status_code}")
    if response.status_code >= 400:
        raise NetworkError(f"Failed to download {url}: HTTP {response.status_code}", url=url)
