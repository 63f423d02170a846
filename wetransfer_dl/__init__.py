"""Resolve WeTransfer share links and download the files behind them."""

from .config import Settings, get_settings
from .core import (
    ErrorKind,
    WeTransferError,
    InvalidLinkError,
    NetworkError,
    ProtocolError,
    DownloadError,
    TransferReference,
    TransferURLParser,
    DownloadProgress,
    WeTransferDownloader,
    download_transfer,
    get_download_url,
)

__version__ = "1.0.0"

__all__ = [
    "Settings",
    "get_settings",
    "ErrorKind",
    "WeTransferError",
    "InvalidLinkError",
    "NetworkError",
    "ProtocolError",
    "DownloadError",
    "TransferReference",
    "TransferURLParser",
    "DownloadProgress",
    "WeTransferDownloader",
    "download_transfer",
    "get_download_url",
]
