"""
Sync orchestration: local directory tree -> Google Photos albums.

For every immediate subdirectory of the sync root the engine resolves an
album, lists what the album already holds, uploads the files that are missing
and creates/attaches them in bounded batches. Failures are confined to the
file, chunk or directory they happen in; only the initial root listing and
album snapshot are fatal.
"""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from tqdm import tqdm

from photos_folder_sync.batcher import BatchAttacher, ChunkResult, PendingBatch
from photos_folder_sync.catalog import RemoteCatalog
from photos_folder_sync.client.transport import PhotosTransport
from photos_folder_sync.config import AppConfig, MAX_BATCH_SIZE
from photos_folder_sync.exceptions import CancelledError, SyncError, UploadError
from photos_folder_sync.local_fs import LocalDirectory, LocalFile, list_files, scan_root
from photos_folder_sync.matching import FilenameContainmentMatcher, MediaMatcher, get_matcher
from photos_folder_sync.models import Album, MediaItem
from photos_folder_sync.resolver import AlbumResolver
from photos_folder_sync.uploader import MediaUploader
from photos_folder_sync.utils.parallel import parallel_map

logger = logging.getLogger(__name__)

# File outcomes
UPLOADED = "uploaded"
ALREADY_PRESENT = "already_present"
NOT_MEDIA = "not_media"
FAILED = "failed"
CANCELLED = "cancelled"

# Directory outcomes
SYNCED = "synced"
DIRECTORY_FAILED = "failed"
DIRECTORY_CANCELLED = "cancelled"

ROOT_FILES_NAME = "(root)"


@dataclass
class FileOutcome:
    file_name: str
    status: str
    media_item_id: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'file_name': self.file_name,
            'status': self.status,
            'media_item_id': self.media_item_id,
            'error': self.error,
        }


@dataclass
class DirectoryResult:
    """Per-directory outcome: which album was used and what happened to each file."""
    name: str
    status: str = SYNCED
    album_id: Optional[str] = None
    album_title: Optional[str] = None
    album_created: bool = False
    error: Optional[str] = None
    files: List[FileOutcome] = field(default_factory=list)

    def count(self, status: str) -> int:
        return sum(1 for f in self.files if f.status == status)

    @property
    def uploaded(self) -> int:
        return self.count(UPLOADED)

    @property
    def skipped(self) -> int:
        return self.count(ALREADY_PRESENT) + self.count(NOT_MEDIA)

    @property
    def failed(self) -> int:
        return self.count(FAILED)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'status': self.status,
            'album_id': self.album_id,
            'album_title': self.album_title,
            'album_created': self.album_created,
            'error': self.error,
            'uploaded': self.uploaded,
            'skipped': self.skipped,
            'failed': self.failed,
            'files': [f.to_dict() for f in self.files],
        }


@dataclass
class SyncSummary:
    root: Path
    directories: List[DirectoryResult] = field(default_factory=list)
    root_files: Optional[DirectoryResult] = None
    cancelled: bool = False
    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None

    @property
    def all_results(self) -> List[DirectoryResult]:
        results = [self.root_files] if self.root_files is not None else []
        return results + self.directories

    @property
    def albums_created(self) -> int:
        return sum(1 for d in self.directories if d.album_created)

    @property
    def albums_reused(self) -> int:
        return sum(1 for d in self.directories if d.album_id and not d.album_created)

    @property
    def directories_failed(self) -> int:
        return sum(1 for d in self.directories if d.status == DIRECTORY_FAILED)

    @property
    def files_uploaded(self) -> int:
        return sum(d.uploaded for d in self.all_results)

    @property
    def files_skipped(self) -> int:
        return sum(d.skipped for d in self.all_results)

    @property
    def files_failed(self) -> int:
        return sum(d.failed for d in self.all_results)

    def get_duration(self) -> Optional[float]:
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'root': str(self.root),
            'cancelled': self.cancelled,
            'start_time': self.start_time.isoformat(),
            'end_time': self.end_time.isoformat() if self.end_time else None,
            'albums_created': self.albums_created,
            'albums_reused': self.albums_reused,
            'files_uploaded': self.files_uploaded,
            'files_skipped': self.files_skipped,
            'files_failed': self.files_failed,
            'root_files': self.root_files.to_dict() if self.root_files else None,
            'directories': [d.to_dict() for d in self.directories],
        }


class SyncEngine:
    """Reconciles a local directory tree against the remote album catalog."""

    def __init__(self, transport: PhotosTransport, catalog: RemoteCatalog,
                 resolver: AlbumResolver, uploader: MediaUploader, attacher: BatchAttacher,
                 matcher: Optional[MediaMatcher] = None,
                 directory_workers: int = 1, upload_workers: int = 1,
                 batch_size: int = MAX_BATCH_SIZE, description: str = "",
                 include_root_files: bool = True, show_progress: bool = False):
        """
        Args:
            transport: Shared API transport; its cancel event stops new calls
            catalog: Album/media listing
            resolver: Directory name -> album
            uploader: Raw byte uploads
            attacher: batchCreate + batchAddMediaItems
            matcher: "Already present" policy (filename containment by default)
            directory_workers: Directories synced concurrently
            upload_workers: Concurrent uploads within one directory
            batch_size: Entries per batchCreate call
            description: Description given to every created media item
            include_root_files: Also upload files directly in the root, without an album
            show_progress: Show a tqdm progress bar per directory
        """
        self.transport = transport
        self.catalog = catalog
        self.resolver = resolver
        self.uploader = uploader
        self.attacher = attacher
        self.matcher = matcher or FilenameContainmentMatcher()
        self.directory_workers = directory_workers
        self.upload_workers = upload_workers
        self.batch_size = batch_size
        self.description = description
        self.include_root_files = include_root_files
        self.show_progress = show_progress
        self._progress_lock = threading.Lock()

    @classmethod
    def from_config(cls, config: AppConfig, session, show_progress: bool = False) -> 'SyncEngine':
        """Wire every component onto one transport built around ``session``."""
        transport = PhotosTransport(
            session,
            base_url=config.google_photos.base_url,
            timeout=config.google_photos.timeout_seconds,
        )
        return cls(
            transport=transport,
            catalog=RemoteCatalog(
                transport,
                page_size=config.sync.page_size,
                exclude_non_app_created=config.google_photos.exclude_non_app_created,
                retry=config.retry,
            ),
            resolver=AlbumResolver(transport),
            uploader=MediaUploader(transport, config.sync.media_extensions),
            attacher=BatchAttacher(transport, config.sync.batch_size),
            matcher=get_matcher(config.sync.matcher),
            directory_workers=config.sync.directory_workers,
            upload_workers=config.sync.upload_workers,
            batch_size=config.sync.batch_size,
            description=config.sync.description,
            include_root_files=config.sync.include_root_files,
            show_progress=show_progress,
        )

    @property
    def cancelled(self) -> bool:
        return self.transport.cancelled

    def cancel(self) -> None:
        """Stop issuing new API calls; in-flight calls finish or time out."""
        if not self.cancelled:
            logger.warning("Cancellation requested; no new requests will be sent")
        self.transport.cancel_event.set()

    def run(self, local_root) -> SyncSummary:
        """
        Sync every subdirectory of ``local_root``.

        Raises:
            SyncError: If the root cannot be listed
            TransportError, DecodeError: If the album snapshot cannot be fetched
        """
        root = Path(local_root)
        summary = SyncSummary(root=root)

        try:
            directories = scan_root(root)
            root_files = list_files(root) if self.include_root_files else []
        except OSError as e:
            raise SyncError(f"Cannot list sync root {root}: {e}") from e

        logger.info(f"Found {len(directories)} directories under {root}")
        albums = self.catalog.list_albums()

        if root_files:
            summary.root_files = DirectoryResult(ROOT_FILES_NAME)
            try:
                self.sync_root_files(root_files, summary.root_files)
            except KeyboardInterrupt:
                self.cancel()
                summary.root_files.status = DIRECTORY_CANCELLED
                summary.root_files.error = "interrupted"
        # Every directory gets an entry, cancelled ones included
        summary.directories = self._sync_directories(directories, albums)
        summary.cancelled = self.cancelled
        summary.end_time = datetime.now()

        logger.info(
            f"Sync finished: {summary.files_uploaded} uploaded, "
            f"{summary.files_skipped} skipped, {summary.files_failed} failed"
        )
        return summary

    def _sync_directories(self, directories: List[LocalDirectory],
                          albums: List[Album]) -> List[DirectoryResult]:
        results: List[Optional[DirectoryResult]] = [None] * len(directories)

        if self.directory_workers <= 1:
            for i, directory in enumerate(directories):
                results[i] = DirectoryResult(directory.name)
                try:
                    self.sync_directory(directory, albums, results[i])
                except KeyboardInterrupt:
                    self.cancel()
                    results[i].status = DIRECTORY_CANCELLED
                    results[i].error = "interrupted"
            return results

        with ThreadPoolExecutor(max_workers=self.directory_workers,
                                thread_name_prefix="sync-dir") as executor:
            futures = {
                executor.submit(self.sync_directory, directory, albums): i
                for i, directory in enumerate(directories)
            }
            pending = set(futures)
            while pending:
                try:
                    done, pending = wait(pending, timeout=0.5)
                except KeyboardInterrupt:
                    self.cancel()
                    continue
                for future in done:
                    results[futures[future]] = future.result()
        return results

    def sync_directory(self, directory: LocalDirectory, albums: List[Album],
                       result: Optional[DirectoryResult] = None) -> DirectoryResult:
        """
        Resolve the directory's album and sync its files. Never raises SyncError.

        ``result`` is filled in as work completes, so a caller holding it still
        sees the album and per-file outcomes if a ``KeyboardInterrupt`` escapes.
        """
        result = result if result is not None else DirectoryResult(directory.name)
        if self.cancelled:
            result.status = DIRECTORY_CANCELLED
            return result

        logger.info(f"Syncing directory '{directory.name}' ({len(directory.files)} files)")
        try:
            album, created = self.resolver.resolve_with_status(directory.name, albums)
            if album is None:
                result.status = DIRECTORY_FAILED
                result.error = "album creation returned no result"
                logger.error(f"Skipping '{directory.name}': {result.error}")
                return result

            result.album_id = album.id
            result.album_title = album.title
            result.album_created = created

            existing: List[MediaItem] = [] if created else self.catalog.list_media_in_album(album.id)
            self._sync_files(directory.files, album.id, existing, result)
        except CancelledError:
            result.status = DIRECTORY_CANCELLED
        except SyncError as e:
            result.status = DIRECTORY_FAILED
            result.error = str(e)
            logger.error(f"Directory '{directory.name}' failed: {e}")
        except Exception as e:
            result.status = DIRECTORY_FAILED
            result.error = f"unexpected error: {e}"
            logger.error(f"Unexpected error syncing '{directory.name}': {e}", exc_info=True)
        return result

    def sync_root_files(self, files: List[LocalFile],
                        result: Optional[DirectoryResult] = None) -> DirectoryResult:
        """Upload loose files in the root into the library, without an album."""
        result = result if result is not None else DirectoryResult(ROOT_FILES_NAME)
        logger.info(f"Uploading {len(files)} files from the sync root without an album")
        try:
            self._sync_files(files, None, [], result)
        except CancelledError:
            result.status = DIRECTORY_CANCELLED
        return result

    def _sync_files(self, files: List[LocalFile], album_id: Optional[str],
                    existing: List[MediaItem], result: DirectoryResult) -> None:
        outcomes: Dict[str, FileOutcome] = {}
        try:
            self._upload_and_flush(files, album_id, existing, result.name, outcomes)
        except KeyboardInterrupt:
            for local_file in files:
                if local_file.name not in outcomes:
                    outcomes[local_file.name] = FileOutcome(local_file.name, CANCELLED)
            raise
        finally:
            result.files = [outcomes[f.name] for f in files if f.name in outcomes]

        if any(o.status == CANCELLED for o in result.files):
            result.status = DIRECTORY_CANCELLED
        logger.info(
            f"'{result.name}': {result.uploaded} uploaded, "
            f"{result.skipped} skipped, {result.failed} failed"
        )

    def _upload_and_flush(self, files: List[LocalFile], album_id: Optional[str],
                          existing: List[MediaItem], label: str,
                          outcomes: Dict[str, FileOutcome]) -> None:
        to_upload: List[LocalFile] = []
        for local_file in files:
            if self.matcher.is_present(local_file, existing):
                outcomes[local_file.name] = FileOutcome(local_file.name, ALREADY_PRESENT)
            else:
                to_upload.append(local_file)

        progress = tqdm(
            total=len(to_upload), desc=label, unit="file",
            disable=not self.show_progress or not to_upload, leave=False
        )
        try:
            uploads = parallel_map(
                lambda f: self._upload_one(f, progress),
                to_upload,
                max_workers=self.upload_workers,
                thread_name_prefix="sync-upload",
            )
        finally:
            progress.close()

        pending = PendingBatch(self.batch_size, self.description)
        for local_file, token, outcome in uploads:
            if outcome is not None:
                outcomes[local_file.name] = outcome
                continue
            pending.add(token, local_file.name)
            if pending.full:
                self._flush(album_id, pending, outcomes)
        self._flush(album_id, pending, outcomes)

    def _upload_one(self, local_file: LocalFile, progress: tqdm):
        """Returns (file, token, outcome); outcome is None when a token was obtained."""
        try:
            token = self.uploader.upload(local_file)
        except UploadError as e:
            logger.error(str(e))
            return local_file, None, FileOutcome(local_file.name, FAILED, error=str(e))
        except CancelledError:
            return local_file, None, FileOutcome(local_file.name, CANCELLED)
        finally:
            with self._progress_lock:
                progress.update(1)

        if not token:
            return local_file, None, FileOutcome(local_file.name, NOT_MEDIA)
        return local_file, token, None

    def _flush(self, album_id: Optional[str], pending: PendingBatch,
               outcomes: Dict[str, FileOutcome]) -> None:
        items = pending.drain()
        if not items:
            return
        completed: List[ChunkResult] = []
        try:
            self.attacher.process(album_id, items, completed)
        except CancelledError:
            self._record_chunks(completed, outcomes)
            for item in items:
                if item.file_name not in outcomes:
                    outcomes[item.file_name] = FileOutcome(item.file_name, CANCELLED)
            return
        except KeyboardInterrupt:
            self._record_chunks(completed, outcomes)
            raise
        self._record_chunks(completed, outcomes)

    @staticmethod
    def _record_chunks(chunks: List[ChunkResult], outcomes: Dict[str, FileOutcome]) -> None:
        for chunk in chunks:
            for file_name, media_id in chunk.created:
                if chunk.attach_error:
                    outcomes[file_name] = FileOutcome(
                        file_name, FAILED, media_item_id=media_id,
                        error=f"created but not added to album: {chunk.attach_error}"
                    )
                else:
                    outcomes[file_name] = FileOutcome(file_name, UPLOADED, media_item_id=media_id)
            for file_name, reason in chunk.failures():
                outcomes[file_name] = FileOutcome(file_name, FAILED, error=reason)
