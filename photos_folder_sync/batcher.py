"""
Turn upload tokens into media items and attach them to albums, in chunks the
API accepts.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from photos_folder_sync.client.transport import PhotosTransport
from photos_folder_sync.config import MAX_BATCH_SIZE
from photos_folder_sync.exceptions import (
    AttachError, BatchCreateError, CancelledError, DecodeError, TransportError,
)
from photos_folder_sync.models import (
    NewMediaItem, NewMediaItemResult, build_batch_create_body, parse_batch_create_response,
)

logger = logging.getLogger(__name__)


class PendingBatch:
    """Accumulates pending (upload token, filename) entries up to ``max_size``."""

    def __init__(self, max_size: int = MAX_BATCH_SIZE, description: str = ""):
        if not 1 <= max_size <= MAX_BATCH_SIZE:
            raise ValueError(f"max_size must be between 1 and {MAX_BATCH_SIZE}")
        self.max_size = max_size
        self.description = description
        self._items: List[NewMediaItem] = []

    def __len__(self) -> int:
        return len(self._items)

    @property
    def full(self) -> bool:
        return len(self._items) >= self.max_size

    def add(self, upload_token: str, file_name: str) -> None:
        if self.full:
            raise ValueError("PendingBatch is full; drain it before adding more")
        self._items.append(NewMediaItem(upload_token, file_name, self.description))

    def drain(self) -> List[NewMediaItem]:
        """Return the pending entries and clear the batch."""
        items, self._items = self._items, []
        return items


@dataclass
class ChunkResult:
    """Outcome of one batchCreate (+ batchAddMediaItems) round trip."""
    items: List[NewMediaItem]
    results: List[NewMediaItemResult] = field(default_factory=list)
    create_error: Optional[str] = None
    attach_error: Optional[str] = None
    attached: bool = False

    @property
    def created(self) -> List[Tuple[str, str]]:
        """(file name, media item id) for each item the service created."""
        created = []
        for item, result in zip(self.items, self._aligned_results()):
            if result is not None and result.created:
                created.append((item.file_name, result.media_item.id))
        return created

    @property
    def created_ids(self) -> List[str]:
        return [media_id for _, media_id in self.created]

    def failures(self) -> List[Tuple[str, str]]:
        """(file name, reason) for each item that was not created."""
        if self.create_error:
            return [(item.file_name, self.create_error) for item in self.items]
        failures = []
        for item, result in zip(self.items, self._aligned_results()):
            if result is None:
                failures.append((item.file_name, "no result returned"))
            elif not result.created:
                failures.append((item.file_name, result.status.message or f"status {result.status.code}"))
        return failures

    def _aligned_results(self) -> List[Optional[NewMediaItemResult]]:
        """Results lined up with ``items``, by upload token where possible."""
        by_token = {r.upload_token: r for r in self.results if r.upload_token}
        if by_token:
            return [by_token.get(item.upload_token) for item in self.items]
        padded: List[Optional[NewMediaItemResult]] = list(self.results[:len(self.items)])
        return padded + [None] * (len(self.items) - len(padded))


class BatchAttacher:
    """
    Creates media items from upload tokens and adds them to an album.

    Items are split into chunks of at most ``max_batch_size``; every chunk gets
    its own batchCreate request carrying only that chunk. A chunk that fails to
    create is skipped (no attach) and the remaining chunks still run.
    """

    def __init__(self, transport: PhotosTransport, max_batch_size: int = MAX_BATCH_SIZE):
        if not 1 <= max_batch_size <= MAX_BATCH_SIZE:
            raise ValueError(f"max_batch_size must be between 1 and {MAX_BATCH_SIZE}")
        self.transport = transport
        self.max_batch_size = max_batch_size

    def chunks(self, items: Sequence[NewMediaItem]) -> List[List[NewMediaItem]]:
        return [
            list(items[i:i + self.max_batch_size])
            for i in range(0, len(items), self.max_batch_size)
        ]

    def create_media_items(self, album_id: Optional[str],
                           chunk: List[NewMediaItem]) -> List[NewMediaItemResult]:
        """
        Issue one batchCreate call for ``chunk``.

        Raises:
            BatchCreateError: If the call fails or returns no results
        """
        body = build_batch_create_body(album_id, chunk)
        try:
            data = self.transport.post_json('v1/mediaItems:batchCreate', body)
        except CancelledError:
            raise
        except (TransportError, DecodeError) as e:
            raise BatchCreateError(f"batchCreate failed: {e}") from e

        if not data:
            raise BatchCreateError("batchCreate returned no result")
        try:
            results = parse_batch_create_response(data)
        except DecodeError as e:
            raise BatchCreateError(f"Unreadable batchCreate response: {e}") from e
        if not results:
            raise BatchCreateError("batchCreate returned no media item results")
        return results

    def add_to_album(self, album_id: str, media_item_ids: List[str]) -> None:
        """
        Issue one batchAddMediaItems call.

        Raises:
            AttachError: If the call fails
        """
        try:
            self.transport.post_json(
                f'v1/albums/{album_id}:batchAddMediaItems',
                {'mediaItemIds': media_item_ids}
            )
        except CancelledError:
            raise
        except (TransportError, DecodeError) as e:
            raise AttachError(f"Adding {len(media_item_ids)} items to album {album_id} failed: {e}") from e

    def process(self, album_id: Optional[str], items: Sequence[NewMediaItem],
                completed: Optional[List[ChunkResult]] = None) -> List[ChunkResult]:
        """
        Run every chunk and report each chunk's outcome.

        Args:
            album_id: Target album; falsy means create without attaching
            items: Entries to create
            completed: Optional list each chunk's outcome is appended to as
                      soon as that chunk finishes

        Returns:
            One ChunkResult per chunk, in order
        """
        outcomes = [] if completed is None else completed
        chunks = self.chunks(items)
        for index, chunk in enumerate(chunks, start=1):
            outcomes.append(self._process_chunk(album_id, chunk, index, len(chunks)))
        return outcomes

    def _process_chunk(self, album_id: Optional[str], chunk: List[NewMediaItem],
                       index: int, total: int) -> ChunkResult:
        outcome = ChunkResult(items=chunk)
        try:
            outcome.results = self.create_media_items(album_id, chunk)
        except BatchCreateError as e:
            logger.error(f"Chunk {index}/{total} ({len(chunk)} items) not created: {e}")
            outcome.create_error = str(e)
            return outcome

        for file_name, reason in outcome.failures():
            logger.warning(f"Media item not created for {file_name}: {reason}")

        created_ids = outcome.created_ids
        if not album_id or not created_ids:
            return outcome

        try:
            self.add_to_album(album_id, created_ids)
            outcome.attached = True
        except AttachError as e:
            logger.error(str(e))
            outcome.attach_error = str(e)
        return outcome

    def create_and_attach(self, album_id: Optional[str], items: Sequence) -> List[str]:
        """
        Create media items for ``items`` and attach them to ``album_id``.

        Args:
            album_id: Target album; falsy means create without attaching
            items: NewMediaItem entries or (upload token, file name) pairs

        Returns:
            Ids of every media item created, across all chunks
        """
        normalized = [
            item if isinstance(item, NewMediaItem) else NewMediaItem(item[0], item[1])
            for item in items
        ]
        created_ids: List[str] = []
        for outcome in self.process(album_id, normalized):
            created_ids.extend(outcome.created_ids)
        return created_ids
