"""
Paginated read access to the remote album and media catalog.
"""
import logging
from typing import Any, Callable, Dict, Iterator, List, Optional

from photos_folder_sync.client.transport import PhotosTransport
from photos_folder_sync.config import MAX_PAGE_SIZE, RetryConfig
from photos_folder_sync.models import Album, AlbumPage, MediaItem, MediaPage
from photos_folder_sync.utils.retry import retry_with_backoff

logger = logging.getLogger(__name__)


class RemoteCatalog:
    """
    Lists existing albums and the media items inside an album.

    Every page request is an idempotent read and is retried with exponential
    backoff on ``TransportError``. Once retries are exhausted the error
    propagates; partially fetched listings are never returned.
    """

    def __init__(self, transport: PhotosTransport, page_size: int = MAX_PAGE_SIZE,
                 exclude_non_app_created: bool = True,
                 retry: Optional[RetryConfig] = None,
                 sleep: Optional[Callable[[float], None]] = None):
        """
        Args:
            transport: Shared API transport
            page_size: Entries requested per page (API maximum is 50)
            exclude_non_app_created: Only list albums created by this app
            retry: Backoff settings for page requests
            sleep: Override for the wait between retries (tests)
        """
        self.transport = transport
        self.page_size = min(page_size, MAX_PAGE_SIZE)
        self.exclude_non_app_created = exclude_non_app_created
        retry = retry or RetryConfig()
        retry_kwargs = dict(
            max_retries=retry.max_retries,
            initial_delay=retry.initial_delay,
            max_delay=retry.max_delay,
            exponential_base=retry.exponential_base,
        )
        if sleep is not None:
            retry_kwargs['sleep'] = sleep
        self._get_album_page = retry_with_backoff(**retry_kwargs)(self._get_album_page)
        self._search_media_page = retry_with_backoff(**retry_kwargs)(self._search_media_page)

    def _get_album_page(self, page_token: Optional[str]) -> AlbumPage:
        params: Dict[str, Any] = {'pageSize': self.page_size}
        if page_token:
            params['pageToken'] = page_token
        if self.exclude_non_app_created:
            params['excludeNonAppCreatedData'] = 'true'
        return AlbumPage.from_dict(self.transport.get_json('v1/albums', params=params) or {})

    def _search_media_page(self, album_id: str, page_token: Optional[str]) -> MediaPage:
        body: Dict[str, Any] = {'albumId': album_id, 'pageSize': self.page_size}
        if page_token:
            body['pageToken'] = page_token
        return MediaPage.from_dict(self.transport.post_json('v1/mediaItems:search', body) or {})

    def iter_albums(self) -> Iterator[Album]:
        """
        Lazily yield every album, page by page, in server order.

        Each call starts a fresh listing from the first page.
        """
        page_token = None
        page_number = 0
        while True:
            page = self._get_album_page(page_token)
            page_number += 1
            logger.debug(f"Album page {page_number}: {len(page.albums)} albums")
            yield from page.albums

            page_token = page.next_page_token
            if not page_token:
                break

    def list_albums(self) -> List[Album]:
        """All albums as one ordered list."""
        albums = list(self.iter_albums())
        logger.info(f"Found {len(albums)} existing albums")
        return albums

    def iter_media_in_album(self, album_id: str) -> Iterator[MediaItem]:
        page_token = None
        while True:
            page = self._search_media_page(album_id, page_token)
            yield from page.media_items

            page_token = page.next_page_token
            if not page_token:
                break

    def list_media_in_album(self, album_id: str) -> List[MediaItem]:
        """All media items currently in ``album_id``."""
        items = list(self.iter_media_in_album(album_id))
        logger.debug(f"Album {album_id} holds {len(items)} media items")
        return items
