"""Local and remote tree walks for push and pull."""

import logging
import os
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from ..store import RemoteItem, RemoteStore

logger = logging.getLogger(__name__)


@dataclass
class LocalFile:
    """A regular file discovered for a push."""

    path: Path
    """Absolute path to the file"""

    size: int
    """File size in bytes at scan time"""

    @classmethod
    def from_path(cls, file_path: Path) -> "LocalFile":
        return cls(path=file_path, size=file_path.stat().st_size)


class DirectoryScanner:
    """Expands local paths into the regular files below them.

    Symbolic links to directories are not descended into.

    Examples:
        >>> scanner = DirectoryScanner()
        >>> files = scanner.scan_local(Path("/etc/nginx"))
    """

    def scan_local(self, path: Path) -> list[LocalFile]:
        """Return path itself if it is a file, otherwise every file below it.

        Files are returned in sorted order. Unreadable directories are
        logged and skipped.
        """
        if not path.is_dir():
            return [LocalFile.from_path(path)] if path.is_file() else []

        files: list[LocalFile] = []

        def on_error(error: OSError) -> None:
            logger.warning(f"Cannot read directory: {error}")

        for root, dirs, names in os.walk(path, onerror=on_error):
            dirs.sort()
            for name in sorted(names):
                file_path = Path(root) / name
                if not file_path.is_file():
                    continue
                try:
                    files.append(LocalFile.from_path(file_path))
                except OSError as e:
                    logger.warning(f"Skipping {file_path}: {e}")
        return files

    def walk_remote(self, store: RemoteStore, path: str) -> Iterator[RemoteItem]:
        """Yield every file below a remote directory, depth first.

        Errors from the store propagate to the caller.
        """
        for item in sorted(store.list(path), key=lambda i: i.path):
            if item.is_dir:
                yield from self.walk_remote(store, item.path)
            else:
                yield item
