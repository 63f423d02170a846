"""Async HTTP client for the WeTransfer web API."""

import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

import httpx

from ..config import Settings
from ..logging_config import get_logger
from .exceptions import DownloadError, NetworkError, ProtocolError, WeTransferError
from .parser import CsrfTokenExtractor, TokenExtractor, TransferReference, TransferURLParser

logger = get_logger(__name__)


@dataclass(frozen=True)
class DownloadProgress:
    """Bytes received so far out of a known total."""

    loaded: int
    total: int

    @property
    def percent(self) -> float:
        if self.total <= 0:
            return 0.0
        return min(self.loaded / self.total * 100, 100.0)


ProgressCallback = Callable[[DownloadProgress], Awaitable[None] | None]


class WeTransferClient:
    """Async WeTransfer client for link resolution and file transfer."""

    BASE_URL = "https://wetransfer.com"
    API_URL = f"{BASE_URL}/api/v4/transfers"
    MAX_REDIRECTS = 5
    CHUNK_SIZE = 8192

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
        token_extractor: TokenExtractor | None = None,
    ):
        """
        Initialize the WeTransfer client.

        Args:
            settings: Timeout and user agent source
            transport: Optional transport override (e.g. ``httpx.MockTransport``)
            token_extractor: Strategy for locating the CSRF token in page markup
        """
        self.settings = settings
        self.token_extractor = token_extractor or CsrfTokenExtractor()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "WeTransferClient":
        """Async context manager entry."""
        self._client = httpx.AsyncClient(
            headers={
                "User-Agent": self.settings.user_agent,
                "x-requested-with": "XMLHttpRequest",
            },
            timeout=self.settings.timeout_seconds,
            max_redirects=self.MAX_REDIRECTS,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get the HTTP client, ensuring it's initialized."""
        if self._client is None:
            raise RuntimeError(
                "WeTransferClient must be used as async context manager"
            )
        return self._client

    def exchange_url(self, transfer_id: str) -> str:
        """Per-transfer endpoint that trades a reference for a direct link."""
        return f"{self.API_URL}/{transfer_id}/download"

    async def resolve_short_link(self, url: str) -> str:
        """
        Expand a we.tl short link to its long-form URL.

        Redirects are followed (at most ``MAX_REDIRECTS``); only a final 2xx
        response counts as resolved.

        Raises:
            NetworkError: On transport failure, too many redirects or a
                non-2xx final status
        """
        try:
            response = await self.client.head(url, follow_redirects=True)
        except httpx.HTTPError as e:
            raise NetworkError(f"Failed to resolve short link: {e}", cause=e) from e

        if not response.is_success:
            raise NetworkError(
                f"Failed to resolve short link: HTTP {response.status_code}"
            )

        resolved = str(response.url)
        logger.debug("Resolved short link", short_url=url, url=resolved)
        return resolved

    async def get_csrf_token(self) -> str:
        """
        Fetch a fresh CSRF token from the landing page.

        Raises:
            NetworkError: On transport failure or a non-2xx status
            ProtocolError: If the page no longer carries the token
        """
        try:
            response = await self.client.get(f"{self.BASE_URL}/")
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise NetworkError(f"Failed to get CSRF token: {e}", cause=e) from e

        return self.token_extractor.extract(response.text)

    async def request_direct_link(
        self, reference: TransferReference, csrf_token: str
    ) -> str:
        """
        Perform a single exchange attempt.

        Raises:
            httpx.HTTPError: On transport failure or a non-2xx status
            ProtocolError: If the response has no direct link
        """
        response = await self.client.post(
            self.exchange_url(reference.transfer_id),
            json=reference.to_payload(),
            headers={"x-csrf-token": csrf_token},
        )
        response.raise_for_status()

        try:
            data: Any = response.json()
        except ValueError as e:
            raise ProtocolError(f"Exchange response is not JSON: {e}", cause=e) from e

        return TransferURLParser.parse_exchange_response(data)

    async def fetch_bytes(
        self,
        url: str,
        on_progress: ProgressCallback | None = None,
    ) -> bytes:
        """
        Download the body of ``url`` into memory.

        ``on_progress`` is called after each chunk, but only when the
        server announced a ``Content-Length``. ``loaded`` counts bytes as
        received on the wire, so it stays comparable to that header even
        when the body is content-encoded.

        Raises:
            DownloadError: On any transfer failure
        """
        chunks: list[bytes] = []
        try:
            async with self.client.stream("GET", url, follow_redirects=True) as resp:
                resp.raise_for_status()
                total = _content_length(resp)

                async for chunk in resp.aiter_bytes(chunk_size=self.CHUNK_SIZE):
                    chunks.append(chunk)
                    if on_progress and total:
                        result = on_progress(
                            DownloadProgress(loaded=resp.num_bytes_downloaded, total=total)
                        )
                        if inspect.isawaitable(result):
                            await result
        except WeTransferError:
            raise
        except Exception as e:
            raise DownloadError(f"Failed to download file: {e}", cause=e) from e

        return b"".join(chunks)


def _content_length(response: httpx.Response) -> int | None:
    value = response.headers.get("Content-Length")
    if value is None:
        return None
    try:
        total = int(value)
    except ValueError:
        return None
    return total if total > 0 else None
