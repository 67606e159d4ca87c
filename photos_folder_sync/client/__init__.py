"""Photos Library API client plumbing."""
from photos_folder_sync.client.transport import PhotosTransport

__all__ = ['PhotosTransport']
