"""URL parsing and page scraping for WeTransfer share links."""

import re
from dataclasses import dataclass
from typing import Any, Protocol
from urllib.parse import urlparse

from .exceptions import InvalidLinkError, ProtocolError

SHORT_LINK_PREFIX = "https://we.tl/"

# Intent sent with every exchange request; the service zips multi-file transfers.
EXCHANGE_INTENT = "entire_transfer"


@dataclass(frozen=True)
class TransferReference:
    """Identifiers of a single share, parsed from a long-form link."""

    transfer_id: str
    security_hash: str
    recipient_id: str | None = None

    def __post_init__(self):
        if not self.transfer_id or not self.security_hash:
            raise InvalidLinkError(
                "Transfer reference requires a transfer id and a security hash"
            )

    @property
    def is_email_transfer(self) -> bool:
        """True for links shared by email (they carry a recipient id)."""
        return self.recipient_id is not None

    def to_payload(self) -> dict[str, Any]:
        """Build the JSON body for the direct-link exchange."""
        payload: dict[str, Any] = {
            "intent": EXCHANGE_INTENT,
            "security_hash": self.security_hash,
        }
        if self.recipient_id:
            payload["recipient_id"] = self.recipient_id
        return payload


class TransferURLParser:
    """Parser for WeTransfer share URLs."""

    @classmethod
    def is_short_link(cls, url: str) -> bool:
        """Check if the URL is a we.tl short link that needs expanding."""
        return url.startswith(SHORT_LINK_PREFIX)

    @classmethod
    def parse(cls, url: str) -> TransferReference:
        """
        Extract the transfer reference from a long-form WeTransfer URL.

        Supported paths (after the leading ``downloads`` marker):
            /downloads/{transfer_id}/{security_hash}
            /downloads/{transfer_id}/{recipient_id}/{security_hash}

        Args:
            url: Long-form share URL (short links must be resolved first)

        Returns:
            TransferReference for the share

        Raises:
            InvalidLinkError: If the path has any other shape
        """
        try:
            path = urlparse(url).path
        except ValueError as e:
            raise InvalidLinkError(f"Unsupported URL format: {url}", cause=e) from e

        parts = [part for part in path.split("/") if part]
        # Drop the leading marker segment
        segments = parts[1:]

        if len(segments) == 2:
            transfer_id, security_hash = segments
            return TransferReference(transfer_id=transfer_id, security_hash=security_hash)
        if len(segments) == 3:
            transfer_id, recipient_id, security_hash = segments
            return TransferReference(
                transfer_id=transfer_id,
                security_hash=security_hash,
                recipient_id=recipient_id,
            )

        raise InvalidLinkError(f"Unsupported URL format: {url}")

    @classmethod
    def is_valid_transfer_url(cls, url: str) -> bool:
        """Check if a URL is a short link or a parseable long-form link."""
        if cls.is_short_link(url):
            return True
        try:
            cls.parse(url)
            return True
        except InvalidLinkError:
            return False

    @classmethod
    def parse_exchange_response(cls, data: Any) -> str:
        """
        Pull the direct link out of an exchange response body.

        Raises:
            ProtocolError: If the body has no ``direct_link``
        """
        try:
            direct_link = data["direct_link"]
        except (KeyError, TypeError):
            raise ProtocolError("No direct link in response")
        if not direct_link:
            raise ProtocolError("No direct link in response")
        return direct_link


class TokenExtractor(Protocol):
    """Strategy that finds the session token inside the landing page markup."""

    def extract(self, html: str) -> str: ...


class CsrfTokenExtractor:
    """Finds the ``csrf-token`` meta tag with a regular expression."""

    PATTERNS = [
        re.compile(r'name="csrf-token"\s+content="([^"]+)"'),
        re.compile(r'content="([^"]+)"\s+name="csrf-token"'),
    ]

    def extract(self, html: str) -> str:
        """
        Return the token value.

        Raises:
            ProtocolError: If no token is present in the markup
        """
        for pattern in self.PATTERNS:
            match = pattern.search(html)
            if match:
                return match.group(1)

        raise ProtocolError("Could not extract CSRF token")
