"""
Policies deciding whether a local file is already present in an album, and
whether an existing album title stands for a local directory.
"""
from typing import Iterable, Optional

from photos_folder_sync.local_fs import LocalFile
from photos_folder_sync.models import MediaItem


class MediaMatcher:
    """Decides whether ``local_file`` already exists among ``remote_items``."""

    name = "base"

    def find(self, local_file: LocalFile, remote_items: Iterable[MediaItem]) -> Optional[MediaItem]:
        raise NotImplementedError

    def is_present(self, local_file: LocalFile, remote_items: Iterable[MediaItem]) -> bool:
        return self.find(local_file, remote_items) is not None


class FilenameContainmentMatcher(MediaMatcher):
    """Remote filename contains the local filename (the default)."""

    name = "filename_contains"

    def find(self, local_file, remote_items):
        for item in remote_items:
            if local_file.name in (item.filename or ""):
                return item
        return None


class ExactFilenameMatcher(MediaMatcher):
    """Remote filename equals the local filename, ignoring case."""

    name = "filename_exact"

    def find(self, local_file, remote_items):
        wanted = local_file.name.lower()
        for item in remote_items:
            if (item.filename or "").lower() == wanted:
                return item
        return None


_MATCHERS = {m.name: m for m in (FilenameContainmentMatcher, ExactFilenameMatcher)}


def get_matcher(name: str) -> MediaMatcher:
    try:
        return _MATCHERS[name]()
    except KeyError:
        raise ValueError(f"Unknown matcher: {name}") from None


def title_contains(album_title: str, directory_name: str) -> bool:
    """Album title matching used by album resolution."""
    return directory_name in (album_title or "")
