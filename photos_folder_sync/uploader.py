"""
Raw byte uploads to the Photos Library upload endpoint.
"""
import logging
import mimetypes
from typing import Iterable, Optional

from photos_folder_sync.client.transport import PhotosTransport
from photos_folder_sync.config import DEFAULT_MEDIA_EXTENSIONS
from photos_folder_sync.exceptions import CancelledError, TransportError, UploadError
from photos_folder_sync.local_fs import LocalFile

logger = logging.getLogger(__name__)

# Types missing from some platforms' mimetypes tables
_EXTRA_MIME_TYPES = {
    '.divx': 'video/divx',
    '.rma': 'audio/x-pn-realaudio',
    '.wma': 'audio/x-ms-wma',
    '.wmv': 'video/x-ms-wmv',
    '.mid': 'audio/midi',
    '.midi': 'audio/midi',
}


def guess_mime_type(extension: str) -> str:
    """MIME type for a file extension, falling back to application/octet-stream."""
    ext = extension.lower()
    if ext in _EXTRA_MIME_TYPES:
        return _EXTRA_MIME_TYPES[ext]
    mime_type, _ = mimetypes.guess_type(f"file{ext}", strict=False)
    return mime_type or 'application/octet-stream'


class MediaUploader:
    """Uploads accepted media files and returns their upload tokens."""

    def __init__(self, transport: PhotosTransport,
                 media_extensions: Optional[Iterable[str]] = None):
        """
        Args:
            transport: Shared API transport
            media_extensions: Accepted extensions (with leading dot); compared
                            case-insensitively
        """
        self.transport = transport
        extensions = DEFAULT_MEDIA_EXTENSIONS if media_extensions is None else media_extensions
        self.media_extensions = frozenset(ext.lower() for ext in extensions)

    def is_media_file(self, local_file: LocalFile) -> bool:
        return local_file.extension.lower() in self.media_extensions

    def upload(self, local_file: LocalFile) -> str:
        """
        Upload the bytes of ``local_file``.

        Returns:
            The upload token, or an empty string if the extension is not
            accepted (no request is made in that case)

        Raises:
            UploadError: If the request fails or the token comes back empty
        """
        if not self.is_media_file(local_file):
            logger.debug(f"Skipping non-media file: {local_file.name}")
            return ""

        logger.info(f"Uploading: {local_file.name}")
        try:
            data = local_file.read_bytes()
        except OSError as e:
            raise UploadError(f"Could not read {local_file.path}: {e}") from e

        headers = {
            'Content-Type': 'application/octet-stream',
            'X-Goog-Upload-Content-Type': guess_mime_type(local_file.extension),
            'X-Goog-Upload-Protocol': 'raw',
        }
        try:
            token = self.transport.post_bytes('v1/uploads', data, headers)
        except CancelledError:
            raise
        except TransportError as e:
            raise UploadError(f"Upload of {local_file.name} failed: {e}") from e

        if not token or not token.strip():
            raise UploadError(f"Upload of {local_file.name} returned an empty token")
        return token.strip()
