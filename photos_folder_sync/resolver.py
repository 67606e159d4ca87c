"""
Map local directory names to remote albums, creating albums as needed.
"""
import logging
import uuid
from typing import Callable, Iterable, Optional, Tuple

from photos_folder_sync.client.transport import PhotosTransport
from photos_folder_sync.exceptions import AlbumError, CancelledError, DecodeError, TransportError
from photos_folder_sync.matching import title_contains
from photos_folder_sync.models import Album

logger = logging.getLogger(__name__)


class AlbumResolver:
    """
    Resolves a directory name to an album from a pre-fetched snapshot.

    Matching is substring based: the first album whose title contains the
    directory name wins, so albums renamed on the server (e.g. ``Vacation2022``
    to ``Family Vacation2022``) keep being reused.
    """

    def __init__(self, transport: PhotosTransport,
                 title_matcher: Callable[[str, str], bool] = title_contains,
                 id_factory: Callable[[], str] = lambda: str(uuid.uuid4())):
        self.transport = transport
        self.title_matcher = title_matcher
        self.id_factory = id_factory

    def find_existing(self, directory_name: str, existing_albums: Iterable[Album]) -> Optional[Album]:
        for album in existing_albums:
            if self.title_matcher(album.title, directory_name):
                return album
        return None

    def create_album(self, title: str) -> Optional[Album]:
        """
        Create an album titled ``title``.

        Returns:
            The created album, or None if the service returned no album

        Raises:
            AlbumError: If the create call fails or returns an unreadable body
        """
        body = {'album': {'title': title, 'id': self.id_factory()}}
        try:
            data = self.transport.post_json('v1/albums', body)
        except CancelledError:
            raise
        except (TransportError, DecodeError) as e:
            raise AlbumError(f"Failed to create album '{title}': {e}") from e

        if not data:
            logger.warning(f"Album creation for '{title}' returned no result")
            return None
        try:
            return Album.from_dict(data)
        except DecodeError as e:
            raise AlbumError(f"Unexpected album create response for '{title}': {e}") from e

    def resolve_with_status(self, directory_name: str,
                            existing_albums: Iterable[Album]) -> Tuple[Optional[Album], bool]:
        """Like ``resolve`` but also reports whether the album was created."""
        match = self.find_existing(directory_name, existing_albums)
        if match is not None:
            logger.info(f"Using existing album: {match.title}")
            return match, False

        album = self.create_album(directory_name)
        if album is not None:
            logger.info(f"Created new album: {album.title}")
        return album, album is not None

    def resolve(self, directory_name: str, existing_albums: Iterable[Album]) -> Optional[Album]:
        """
        Return the album for ``directory_name``, reusing a match if one exists.

        Args:
            directory_name: Local directory name, used as the new album title
            existing_albums: Snapshot of remote albums fetched once per run

        Returns:
            Matched or newly created album; None if creation returned nothing,
            in which case the caller skips the directory.
        """
        album, _ = self.resolve_with_status(directory_name, existing_albums)
        return album
