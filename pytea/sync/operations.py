"""Single-file transfers between the local filesystem and the remote store."""

import os
from pathlib import Path
from typing import Optional

from ..store import RemoteStore


class SyncOperations:
    """Unified upload/download/delete operations for one file."""

    def __init__(self, store: RemoteStore):
        """Initialize sync operations.

        Args:
            store: Remote store the files are transferred to and from
        """
        self.store = store

    def upload_file(
        self,
        local_path: Path,
        remote_path: str,
        message: Optional[str] = None,
    ) -> int:
        """Upload a local file, replacing any remote content.

        Args:
            local_path: Local file to upload
            remote_path: Destination path in the repository
            message: Optional commit message

        Returns:
            Number of bytes uploaded

        Raises:
            OSError: If the local file cannot be read
            PyteaAPIError: If the store rejects the write
        """
        content = local_path.read_bytes()
        self.store.write(remote_path, content, message=message)
        return len(content)

    def download_file(
        self,
        remote_path: str,
        local_path: Path,
        mode: Optional[int] = None,
    ) -> int:
        """Download a remote file, overwriting the local file.

        Args:
            remote_path: Source path in the repository
            local_path: Destination on the local filesystem
            mode: Permission bits to apply after writing (scripts)

        Returns:
            Number of bytes written

        Raises:
            PyteaAPIError: If the store cannot deliver the file
            OSError: If the parent directory or the file cannot be written
        """
        content = self.store.read(remote_path)

        # Ensure parent directory exists
        local_path.parent.mkdir(parents=True, exist_ok=True)
        local_path.write_bytes(content)
        if mode is not None:
            os.chmod(local_path, mode)
        return len(content)

    def delete_remote(self, remote_path: str, message: Optional[str] = None) -> None:
        """Delete a single remote file."""
        self.store.delete(remote_path, recursive=False, message=message)

    def move_remote(
        self, src: str, dst: str, message: Optional[str] = None
    ) -> None:
        """Move a single remote file."""
        self.store.move(src, dst, message=message)
