"""
Read-only view of the local sync root.

The root's immediate subdirectories map to albums; the regular files inside
each one are the candidates for upload. Listings are sorted by name so runs
are reproducible.
"""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

logger = logging.getLogger(__name__)

IGNORED_NAMES = {'__MACOSX', 'Thumbs.db', 'desktop.ini'}


def _is_hidden(path: Path) -> bool:
    return path.name.startswith('.') or path.name in IGNORED_NAMES


@dataclass(frozen=True)
class LocalFile:
    """A file on disk; content is only read on demand."""
    path: Path

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def extension(self) -> str:
        return self.path.suffix

    @property
    def size(self) -> int:
        return self.path.stat().st_size

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()


@dataclass
class LocalDirectory:
    """A directory whose name is used as the album title."""
    path: Path
    files: List[LocalFile] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.path.name


def list_files(directory: Path, include_hidden: bool = False) -> List[LocalFile]:
    """Regular files directly inside ``directory``, sorted by name."""
    return [
        LocalFile(p)
        for p in sorted(directory.iterdir(), key=lambda p: p.name)
        if p.is_file() and (include_hidden or not _is_hidden(p))
    ]


def scan_root(root: Path, include_hidden: bool = False) -> List[LocalDirectory]:
    """
    List the immediate subdirectories of the sync root with their files.

    Args:
        root: Sync root directory
        include_hidden: Also include dot-prefixed and OS metadata entries

    Returns:
        LocalDirectory entries sorted by name

    Raises:
        OSError: If the root cannot be listed
    """
    root = Path(root)
    if not root.is_dir():
        raise NotADirectoryError(f"Sync root is not a directory: {root}")

    directories = []
    for entry in sorted(root.iterdir(), key=lambda p: p.name):
        if not entry.is_dir() or (not include_hidden and _is_hidden(entry)):
            continue
        directories.append(LocalDirectory(entry, list_files(entry, include_hidden)))

    logger.debug(f"Found {len(directories)} directories under {root}")
    return directories
