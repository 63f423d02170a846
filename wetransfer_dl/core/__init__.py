"""Core WeTransfer link resolution and download functionality."""

from .exceptions import (
    ErrorKind,
    WeTransferError,
    InvalidLinkError,
    NetworkError,
    ProtocolError,
    DownloadError,
)
from .parser import TransferReference, TransferURLParser, CsrfTokenExtractor, TokenExtractor
from .client import DownloadProgress, WeTransferClient
from .downloader import WeTransferDownloader, download_transfer, get_download_url

__all__ = [
    # Exceptions
    "ErrorKind",
    "WeTransferError",
    "InvalidLinkError",
    "NetworkError",
    "ProtocolError",
    "DownloadError",
    # Parsing
    "TransferReference",
    "TransferURLParser",
    "CsrfTokenExtractor",
    "TokenExtractor",
    # Client
    "DownloadProgress",
    "WeTransferClient",
    # Downloader and functions
    "WeTransferDownloader",
    "download_transfer",
    "get_download_url",
]
