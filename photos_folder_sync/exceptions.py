"""
Custom exceptions for the Google Photos folder sync tool.
"""
from typing import Optional


class SyncError(Exception):
    """Base exception for sync errors."""
    pass


class ConfigurationError(SyncError):
    """Error related to configuration."""
    pass


class AuthenticationError(SyncError):
    """Error during authentication."""
    pass


class TransportError(SyncError):
    """Network or HTTP-layer failure on a Photos Library API call."""
    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class DecodeError(SyncError):
    """Response body does not parse into the expected shape."""
    pass


class UploadError(SyncError):
    """Error during raw byte upload."""
    pass


class BatchCreateError(SyncError):
    """A mediaItems:batchCreate chunk returned no result."""
    pass


class AttachError(SyncError):
    """Adding created media items to an album failed."""
    pass


class AlbumError(SyncError):
    """Error related to album operations."""
    pass


class CancelledError(SyncError):
    """Raised when a network call is attempted after the run was cancelled."""
    pass
