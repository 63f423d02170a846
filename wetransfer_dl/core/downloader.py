"""Main downloader orchestration for WeTransfer share links."""

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import aiofiles
import httpx
import structlog

from ..config import Settings, get_settings
from ..logging_config import get_logger
from .client import ProgressCallback, WeTransferClient
from .exceptions import DownloadError, WeTransferError
from .parser import TokenExtractor, TransferURLParser
from .retry import SleepFunc, run_with_backoff

logger = get_logger(__name__)


class WeTransferDownloader:
    """Resolves WeTransfer links to direct URLs and downloads the files.

    Usage:
        downloader = WeTransferDownloader(max_retries=5)
        data = await downloader.download("https://we.tl/t-XXXX")

    Used as ``async with`` the downloader keeps one HTTP client open for
    every call; otherwise each call opens and closes its own.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        max_retries: int | None = None,
        retry_delay: int | None = None,
        timeout: int | None = None,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        token_extractor: TokenExtractor | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        """
        Initialize the downloader.

        Args:
            settings: Base settings (environment defaults if not provided)
            max_retries: Exchange retries after the first attempt
            retry_delay: Base backoff delay in milliseconds
            timeout: Per-request timeout in milliseconds
            user_agent: User-Agent header for every request
            transport: Optional httpx transport override
            token_extractor: Optional CSRF token extraction strategy
            sleep: Awaitable used for backoff sleeps
        """
        base = settings or get_settings()
        self.settings = base.with_overrides(
            max_retries=max_retries,
            retry_delay=retry_delay,
            timeout=timeout,
            user_agent=user_agent,
        )
        self._transport = transport
        self._token_extractor = token_extractor
        self._sleep = sleep
        self._shared: WeTransferClient | None = None

    async def __aenter__(self) -> "WeTransferDownloader":
        self._shared = await self._new_client().__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._shared:
            await self._shared.__aexit__(exc_type, exc_val, exc_tb)
            self._shared = None

    def _new_client(self) -> WeTransferClient:
        return WeTransferClient(
            self.settings,
            transport=self._transport,
            token_extractor=self._token_extractor,
        )

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[WeTransferClient]:
        if self._shared is not None:
            yield self._shared
            return
        async with self._new_client() as client:
            yield client

    async def get_download_url(self, url: str) -> str:
        """
        Get the direct, time-limited download URL for a share link.

        Args:
            url: Short (we.tl) or long-form WeTransfer URL

        Returns:
            Direct download URL

        Raises:
            InvalidLinkError: If the link has an unsupported shape
            NetworkError: If the short link or CSRF token cannot be fetched
            ProtocolError: If the landing page carries no CSRF token
            DownloadError: If every exchange attempt failed
            WeTransferError: For any other unexpected failure
        """
        try:
            async with self._session() as client:
                return await self._resolve(client, url)
        except WeTransferError:
            raise
        except Exception as e:
            raise WeTransferError(f"Unexpected error: {e}", cause=e) from e

    async def _resolve(self, client: WeTransferClient, url: str) -> str:
        full_url = url
        if TransferURLParser.is_short_link(url):
            full_url = await client.resolve_short_link(url)

        reference = TransferURLParser.parse(full_url)

        with structlog.contextvars.bound_contextvars(transfer_id=reference.transfer_id):
            logger.debug("Resolving direct link", email_transfer=reference.is_email_transfer)

            # Fetched once per call, outside the retry loop
            csrf_token = await client.get_csrf_token()

            direct_link = await run_with_backoff(
                lambda: client.request_direct_link(reference, csrf_token),
                max_retries=self.settings.max_retries,
                retry_delay=self.settings.retry_delay_seconds,
                sleep=self._sleep,
                description="get download URL",
            )
            logger.debug("Direct link obtained", direct_link=direct_link)
            return direct_link

    async def download(
        self,
        url: str,
        on_progress: ProgressCallback | None = None,
        output_path: str | Path | None = None,
    ) -> bytes:
        """
        Download the file behind a share link.

        Args:
            url: Short (we.tl) or long-form WeTransfer URL
            on_progress: Called with a DownloadProgress when the size is known
            output_path: Optional file to also write the bytes to

        Returns:
            The complete file contents

        Raises:
            DownloadError: If the transfer (or writing ``output_path``) fails
            WeTransferError: Any error from resolving the direct URL
        """
        direct_url = await self.get_download_url(url)

        async with self._session() as client:
            data = await client.fetch_bytes(direct_url, on_progress=on_progress)

        if output_path is not None:
            await _write_file(Path(output_path), data)

        logger.debug("Download complete", size_bytes=len(data))
        return data


async def _write_file(path: Path, data: bytes) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(path, "wb") as f:
            await f.write(data)
    except OSError as e:
        raise DownloadError(f"Failed to write {path}: {e}", cause=e) from e


# Convenience functions for simple usage
async def get_download_url(url: str, **kwargs) -> str:
    """
    Resolve a share link with a one-off downloader.

    Args:
        url: Short or long-form WeTransfer URL
        **kwargs: WeTransferDownloader options

    Returns:
        Direct download URL
    """
    return await WeTransferDownloader(**kwargs).get_download_url(url)


async def download_transfer(
    url: str,
    output_path: str | Path | None = None,
    on_progress: ProgressCallback | None = None,
    **kwargs,
) -> bytes:
    """
    Download a transfer with a one-off downloader.

    Args:
        url: Short or long-form WeTransfer URL
        output_path: Optional file to write
        on_progress: Optional progress callback
        **kwargs: WeTransferDownloader options

    Returns:
        The file contents
    """
    downloader = WeTransferDownloader(**kwargs)
    return await downloader.download(url, on_progress=on_progress, output_path=output_path)
