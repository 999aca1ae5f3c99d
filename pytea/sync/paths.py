"""Translation between local paths and remote feature set paths.

A feature set stores two kinds of files:

* configuration files, whose remote path encodes the full local path
  (``fs1/etc/php/php.ini`` <-> ``/etc/php/php.ini``)
* scripts, flattened into ``fs1/scripts/<name>`` and deployed into one
  shared script directory

Everything here is pure string/path manipulation. The only filesystem
access is the canonicalization of an existing local path in
``to_remote_config``.
"""

import posixpath
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Union

from ..exceptions import (
    InvalidPathError,
    MalformedRemotePathError,
    NestedScriptPathError,
    PathMismatchError,
)

SEP = "/"
SCRIPTS_DIR = "scripts"
MARKER_NAME = ".gitkeep"

PathLike = Union[str, Path]


class Role(str, Enum):
    """Role of a remote entry, derived from the shape of its path."""

    CONFIG = "config"
    """Restored to the absolute local path encoded in the remote path"""

    SCRIPT = "script"
    """Restored into the script directory by bare name"""

    IGNORED = "ignored"
    """Markers and files directly below the feature set root"""


def canonicalize(local_path: PathLike) -> Path:
    """Resolve an existing local path to its absolute form.

    Raises:
        InvalidPathError: If the path does not exist
    """
    try:
        return Path(local_path).expanduser().resolve(strict=True)
    except (OSError, RuntimeError) as e:
        raise InvalidPathError(f"Cannot resolve local path {local_path}: {e}") from e


def normalize_local(local_path: PathLike) -> PurePosixPath:
    """Make a local path absolute without touching the filesystem.

    Used for paths that may not exist yet, e.g. pull targets.
    """
    expanded = posixpath.expanduser(str(local_path))
    return PurePosixPath(posixpath.normpath(posixpath.abspath(expanded)))


def _remainder(feature_set: str, remote_path: str) -> str:
    prefix = feature_set + SEP
    if not remote_path.startswith(prefix):
        raise PathMismatchError(
            f"Remote path {remote_path} is not part of feature set {feature_set}"
        )
    return remote_path[len(prefix) :]


def strip_feature_set(remote_path: str) -> tuple[str, str]:
    """Split a remote path into feature set name and remainder.

    Raises:
        MalformedRemotePathError: If the path has no separator
    """
    feature_set, sep, remainder = remote_path.strip(SEP).partition(SEP)
    if not sep or not feature_set:
        raise MalformedRemotePathError(
            f"Remote path {remote_path} does not belong to a feature set"
        )
    return feature_set, remainder


def to_remote_config(feature_set: str, local_path: PathLike) -> str:
    """Map a local configuration file to its remote path."""
    resolved = canonicalize(local_path)
    stripped = resolved.as_posix().lstrip(SEP)
    if not stripped:
        raise InvalidPathError(f"{local_path} is not a valid path to a file")
    return f"{feature_set}{SEP}{stripped}"


def to_local_config(feature_set: str, remote_path: str) -> Path:
    """Map a remote configuration path back to the absolute local path."""
    remainder = _remainder(feature_set, remote_path).lstrip(SEP)
    if not remainder:
        raise PathMismatchError(f"Remote path {remote_path} names no file")
    return Path(SEP + remainder)


def to_remote_script(feature_set: str, local_path: PathLike) -> str:
    """Map a local script to ``<feature_set>/scripts/<name>``.

    Only the file name is used; the directory part is dropped.
    """
    name = PurePosixPath(str(local_path)).name
    if not name:
        raise InvalidPathError(f"{local_path} is not a valid path to a file")
    return f"{feature_set}{SEP}{SCRIPTS_DIR}{SEP}{name}"


def to_local_script(
    feature_set: str, remote_path: str, script_dir: PathLike
) -> Path:
    """Map a remote script path into the script directory."""
    prefix = f"{feature_set}{SEP}{SCRIPTS_DIR}{SEP}"
    if not remote_path.startswith(prefix):
        raise PathMismatchError(
            f"Remote path {remote_path} is not a script of feature set {feature_set}"
        )
    name = remote_path[len(prefix) :]
    if not name:
        raise PathMismatchError(f"Remote path {remote_path} names no script")
    if SEP in name:
        raise NestedScriptPathError(
            f"Script {remote_path} is nested below {SCRIPTS_DIR}/"
        )
    return Path(script_dir) / name


def classify(feature_set: str, remote_path: str) -> Role:
    """Derive the role of a remote entry from its position."""
    parts = _remainder(feature_set, remote_path).strip(SEP).split(SEP)
    if parts[0] == SCRIPTS_DIR and len(parts) > 1:
        if len(parts) == 2 and parts[1] == MARKER_NAME:
            return Role.IGNORED
        return Role.SCRIPT
    if len(parts) <= 1:
        return Role.IGNORED
    return Role.CONFIG


def to_local(
    feature_set: str, remote_path: str, role: Role, script_dir: PathLike
) -> Path:
    """Map a remote path to its local counterpart according to its role."""
    if role == Role.SCRIPT:
        return to_local_script(feature_set, remote_path, script_dir)
    if role == Role.CONFIG:
        return to_local_config(feature_set, remote_path)
    raise PathMismatchError(f"Remote path {remote_path} has no local counterpart")


def to_remote(feature_set: str, local_path: PathLike, role: Role) -> str:
    """Map a local path to the remote path for the given role."""
    if role == Role.SCRIPT:
        return to_remote_script(feature_set, local_path)
    return to_remote_config(feature_set, local_path)


def is_within(candidate: PathLike, base: PathLike) -> bool:
    """Check whether candidate equals base or lies below it.

    The comparison works on whole path segments, so ``/test`` does not
    contain ``/testtest/file``.
    """
    candidate_parts = PurePosixPath(str(candidate)).parts
    base_parts = PurePosixPath(str(base)).parts
    return candidate_parts[: len(base_parts)] == base_parts


def marker_paths(feature_set: str) -> tuple[str, str]:
    """Marker files that make an empty feature set representable."""
    return (
        f"{feature_set}{SEP}{MARKER_NAME}",
        f"{feature_set}{SEP}{SCRIPTS_DIR}{SEP}{MARKER_NAME}",
    )


def validate_feature_set_name(name: str) -> str:
    """Reject empty names and names containing a separator."""
    if not name or not name.strip() or SEP in name or name in (".", ".."):
        raise InvalidPathError(f"'{name}' is not a valid feature set name")
    return name
