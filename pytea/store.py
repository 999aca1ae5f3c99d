"""Remote store abstraction and its Gitea implementation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from .exceptions import PyteaAPIError, PyteaNotFoundError, RecursionRequiredError

if TYPE_CHECKING:
    from .api import GiteaClient
    from .models import ContentEntry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemoteItem:
    """One member of a remote listing."""

    path: str
    is_dir: bool = False


class RemoteStore(Protocol):
    """Capabilities the reconciliation engine needs from the remote side.

    Paths are relative to the repository root and use ``/``. Every method
    raises ``PyteaNotFoundError`` for missing paths and another
    ``PyteaAPIError`` for any other failure.
    """

    def list(self, path: str = "") -> list[RemoteItem]:
        """List one directory level; a file path lists itself."""
        ...

    def read(self, path: str) -> bytes: ...

    def write(self, path: str, content: bytes, message: str | None = None) -> None:
        """Create the file or replace its content."""
        ...

    def delete(
        self, path: str, recursive: bool = False, message: str | None = None
    ) -> None: ...

    def move(self, src: str, dst: str, message: str | None = None) -> None: ...


class GiteaStore:
    """RemoteStore backed by the contents API of a Gitea repository."""

    def __init__(
        self,
        client: GiteaClient,
        author: str | None = None,
        email: str | None = None,
    ):
        """Initialize the store.

        Args:
            client: Gitea API client bound to the repository
            author: Name recorded as commit author
            email: E-mail recorded as commit author
        """
        self.client = client
        self.author = author
        self.email = email

    def _stat(self, path: str) -> ContentEntry | None:
        """Return the entry for a file, or None for directories."""
        entries = self.client.get_contents(path)
        if len(entries) == 1 and entries[0].path == path.strip("/"):
            if not entries[0].is_dir:
                return entries[0]
        return None

    def list(self, path: str = "") -> list[RemoteItem]:
        return [
            RemoteItem(path=entry.path, is_dir=entry.is_dir)
            for entry in self.client.get_contents(path)
        ]

    def read(self, path: str) -> bytes:
        return self.client.get_raw(path)

    def write(self, path: str, content: bytes, message: str | None = None) -> None:
        try:
            existing = self._stat(path)
        except PyteaNotFoundError:
            existing = None

        if existing is None:
            logger.debug("Creating %s", path)
            self.client.create_file(
                path, content, author=self.author, email=self.email, message=message
            )
        else:
            if not existing.sha:
                raise PyteaAPIError(f"No sha returned for {path}")
            logger.debug("Updating %s", path)
            self.client.update_file(
                path,
                content,
                existing.sha,
                author=self.author,
                email=self.email,
                message=message,
            )

    def delete(
        self, path: str, recursive: bool = False, message: str | None = None
    ) -> None:
        entries = self.client.get_contents(path)
        target = path.strip("/")

        if len(entries) == 1 and entries[0].path == target and not entries[0].is_dir:
            self._delete_entry(entries[0], message)
            return

        if not recursive:
            raise RecursionRequiredError(f"{path} is a directory")

        for entry in entries:
            if entry.is_dir:
                self.delete(entry.path, recursive=True, message=message)
            else:
                self._delete_entry(entry, message)

    def _delete_entry(self, entry: ContentEntry, message: str | None) -> None:
        if not entry.sha:
            raise PyteaAPIError(f"No sha returned for {entry.path}")
        logger.debug("Deleting %s", entry.path)
        self.client.delete_file(
            entry.path,
            entry.sha,
            author=self.author,
            email=self.email,
            message=message,
        )

    def move(self, src: str, dst: str, message: str | None = None) -> None:
        existing = self._stat(src)
        if existing is None or not existing.sha:
            raise PyteaAPIError(f"{src} is not a file and cannot be moved")
        content = self.client.get_raw(src)
        logger.debug("Moving %s to %s", src, dst)
        self.client.update_file(
            dst,
            content,
            existing.sha,
            author=self.author,
            email=self.email,
            message=message,
            from_path=src,
        )
