"""Custom exceptions for wetransfer-dl."""

from enum import Enum


class ErrorKind(str, Enum):
    """Failure categories carried by every library error."""

    BASE = "base"
    INVALID_LINK = "invalid_link"
    NETWORK = "network"
    PROTOCOL = "protocol"
    DOWNLOAD = "download"


class WeTransferError(Exception):
    """Base exception for all wetransfer-dl errors.

    Callers can dispatch on ``kind`` instead of the concrete class.
    """

    kind: ErrorKind = ErrorKind.BASE

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r})"


class InvalidLinkError(WeTransferError):
    """URL does not match any recognized transfer link shape."""

    kind = ErrorKind.INVALID_LINK

    def __init__(self, message: str = "Invalid WeTransfer link", cause: BaseException | None = None):
        super().__init__(message, cause)


class NetworkError(WeTransferError):
    """Transport failure while resolving a short link or fetching the session token."""

    kind = ErrorKind.NETWORK


class ProtocolError(WeTransferError):
    """A successful response is missing an expected marker or field."""

    kind = ErrorKind.PROTOCOL


class DownloadError(WeTransferError):
    """Exchange retries exhausted, or the file transfer itself failed."""

    kind = ErrorKind.DOWNLOAD

    def __init__(
        self,
        message: str,
        cause: BaseException | None = None,
        retries: int | None = None,
    ):
        super().__init__(message, cause)
        self.retries = retries

    @property
    def last_error(self) -> BaseException | None:
        """Last recorded attempt failure (alias of ``cause``)."""
        return self.cause
