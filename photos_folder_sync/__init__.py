"""
Google Photos Folder Sync

Uploads a local folder tree into Google Photos, one album per top-level
folder, skipping files the album already holds.
"""
__version__ = "1.0.0"

from photos_folder_sync.config import AppConfig
from photos_folder_sync.exceptions import (
    SyncError,
    ConfigurationError,
    AuthenticationError,
    TransportError,
    DecodeError,
    UploadError,
    BatchCreateError,
    AttachError,
    AlbumError,
    CancelledError,
)
from photos_folder_sync.engine import SyncEngine, SyncSummary

__all__ = [
    '__version__',
    'AppConfig',
    'SyncEngine',
    'SyncSummary',
    'SyncError',
    'ConfigurationError',
    'AuthenticationError',
    'TransportError',
    'DecodeError',
    'UploadError',
    'BatchCreateError',
    'AttachError',
    'AlbumError',
    'CancelledError',
]
