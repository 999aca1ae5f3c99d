"""Shared fixtures for pytea tests."""

from pathlib import Path
from unittest.mock import Mock

import pytest

from pytea.exceptions import PyteaAPIError, PyteaNotFoundError, RecursionRequiredError
from pytea.output import OutputFormatter
from pytea.store import RemoteItem
from pytea.sync import ReconciliationEngine, SyncSettings


class InMemoryStore:
    """RemoteStore keeping files in a dict, with failure injection.

    Directories exist implicitly as prefixes of file paths, like in git.
    """

    def __init__(self, files=None):
        self.files: dict[str, bytes] = dict(files or {})
        self.fail_reads: set[str] = set()
        self.fail_writes: set[str] = set()
        self.fail_deletes: set[str] = set()
        self.fail_moves: set[str] = set()
        self.writes: list[str] = []

    def _children(self, target: str) -> list[RemoteItem]:
        prefix = f"{target}/" if target else ""
        children: dict[str, bool] = {}
        for name in self.files:
            if not name.startswith(prefix):
                continue
            head, sep, _ = name[len(prefix) :].partition("/")
            children[prefix + head] = bool(sep)
        return [RemoteItem(path=p, is_dir=d) for p, d in sorted(children.items())]

    def list(self, path=""):
        target = path.strip("/")
        if target in self.files:
            return [RemoteItem(path=target)]
        children = self._children(target)
        if target and not children:
            raise PyteaNotFoundError(f"{path} not found")
        return children

    def read(self, path):
        if path in self.fail_reads:
            raise PyteaAPIError(f"read of {path} rejected")
        if path not in self.files:
            raise PyteaNotFoundError(f"{path} not found")
        return self.files[path]

    def write(self, path, content, message=None):
        if path in self.fail_writes:
            raise PyteaAPIError(f"write of {path} rejected")
        self.files[path] = content
        self.writes.append(path)

    def delete(self, path, recursive=False, message=None):
        target = path.strip("/")
        if target in self.fail_deletes:
            raise PyteaAPIError(f"delete of {path} rejected")
        if target in self.files:
            del self.files[target]
            return
        below = [name for name in self.files if name.startswith(f"{target}/")]
        if not below:
            raise PyteaNotFoundError(f"{path} not found")
        if not recursive:
            raise RecursionRequiredError(f"{path} is a directory")
        for name in below:
            del self.files[name]

    def move(self, src, dst, message=None):
        if src in self.fail_moves:
            raise PyteaAPIError(f"move of {src} rejected")
        if src not in self.files:
            raise PyteaNotFoundError(f"{src} not found")
        self.files[dst] = self.files.pop(src)


def remote_config_path(feature_set: str, local_path: Path) -> str:
    """Remote path a local config file is stored under."""
    return f"{feature_set}/{local_path.resolve().as_posix().lstrip('/')}"


@pytest.fixture
def store():
    """Create an in-memory store holding an empty feature set fs1."""
    return InMemoryStore({"fs1/.gitkeep": b"", "fs1/scripts/.gitkeep": b""})


@pytest.fixture
def mock_output():
    """Create a mock output formatter."""
    output = Mock(spec=OutputFormatter)
    output.quiet = True
    return output


@pytest.fixture
def script_dir(tmp_path):
    directory = tmp_path / "bin"
    directory.mkdir()
    return directory


@pytest.fixture
def settings(script_dir):
    return SyncSettings(script_directory=script_dir)


@pytest.fixture
def engine(store, settings, mock_output):
    """Create a reconciliation engine on the in-memory store."""
    return ReconciliationEngine(store, settings, mock_output)


@pytest.fixture
def remote_of():
    """Map a local config file to its remote path in a feature set."""
    return remote_config_path
