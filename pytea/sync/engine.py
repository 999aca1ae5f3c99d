"""Reconciliation engine for feature set push/pull/delete/rename/new/list."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Optional, Union

from ..exceptions import (
    FeatureSetExistsError,
    FeatureSetNotFoundError,
    InvalidPathError,
    PyteaAPIError,
    PyteaError,
    PyteaNotFoundError,
    PyteaPathError,
    RecursionRequiredError,
)
from ..output import OutputFormatter
from ..store import RemoteItem, RemoteStore
from .exclude import ExcludeFilter
from .operations import SyncOperations
from .paths import (
    SEP,
    Role,
    canonicalize,
    classify,
    is_within,
    marker_paths,
    normalize_local,
    strip_feature_set,
    to_local,
    to_remote,
    to_remote_script,
    validate_feature_set_name,
)
from .result import (
    ALREADY_EXISTS,
    IO_ERROR,
    NOT_FOUND,
    REMOTE_ERROR,
    ListResult,
    OperationResult,
    OutcomeKind,
    RemoteEntry,
)
from .scanner import DirectoryScanner
from .settings import SyncSettings

logger = logging.getLogger(__name__)

PathArg = Union[str, Path]

# (local path, role, remote path if already known)
Candidate = tuple[Path, Role, Optional[str]]


class ReconciliationEngine:
    """Runs one operation at a time against a remote store.

    Every operation returns an ``OperationResult``. Failures of single
    files are recorded and the operation continues with the next file.
    Structural failures (unknown feature set, unreadable listing, the
    recursive delete gate) abort the operation before anything is changed.
    """

    def __init__(
        self,
        store: RemoteStore,
        settings: Optional[SyncSettings] = None,
        output: Optional[OutputFormatter] = None,
    ):
        """Initialize the engine.

        Args:
            store: Remote store holding the feature sets
            settings: Script directory and exclude patterns
            output: Output formatter for progress messages

        Raises:
            PyteaConfigError: If an exclude pattern is invalid
        """
        self.store = store
        self.settings = settings or SyncSettings()
        self.output = output or OutputFormatter()
        self.operations = SyncOperations(store)
        self.scanner = DirectoryScanner()
        self.exclude = ExcludeFilter(self.settings.exclude_patterns)
        self.script_dir = Path(normalize_local(self.settings.script_directory))

    # -------------------------------------------------------------------------
    # Remote lookups
    # -------------------------------------------------------------------------

    def _feature_sets(self) -> list[str]:
        return sorted(item.path for item in self.store.list("") if item.is_dir)

    def _require_feature_set(self, feature_set: str) -> None:
        validate_feature_set_name(feature_set)
        if feature_set not in self._feature_sets():
            raise FeatureSetNotFoundError(f"No feature set named {feature_set}")

    def _remote_files(self, feature_set: str) -> list[RemoteItem]:
        return list(self.scanner.walk_remote(self.store, feature_set))

    def _abort(self, result: OperationResult, error: Exception) -> OperationResult:
        logger.warning("%s of %s aborted: %s", result.operation, result.feature_set, error)
        return result.abort(error)

    # -------------------------------------------------------------------------
    # Push
    # -------------------------------------------------------------------------

    def push(
        self,
        feature_set: str,
        path: Optional[PathArg] = None,
        role: Optional[Role] = None,
        message: Optional[str] = None,
    ) -> OperationResult:
        """Upload local files into a feature set.

        Args:
            feature_set: Name of the feature set
            path: Local file or directory to push; without it the candidates
                are the script directory (role SCRIPT) or the local
                counterparts of what the feature set already holds
            role: Push as CONFIG or SCRIPT; None pushes a given path as
                config and, without a path, pushes everything
            message: Optional commit message

        Returns:
            Aggregated result with one outcome per candidate
        """
        result = OperationResult("push", feature_set)
        try:
            self._require_feature_set(feature_set)
            candidates = self._push_candidates(feature_set, path, role, result)
        except PyteaError as e:
            return self._abort(result, e)

        logger.debug("Pushing %d candidate(s) to %s", len(candidates), feature_set)
        for local_path, entry_role, remote_path in candidates:
            self._push_file(
                feature_set, local_path, entry_role, remote_path, message, result
            )
        return result

    def _push_candidates(
        self,
        feature_set: str,
        path: Optional[PathArg],
        role: Optional[Role],
        result: OperationResult,
    ) -> list[Candidate]:
        if path is not None:
            resolved = canonicalize(path)
            entry_role = role or Role.CONFIG
            if entry_role == Role.SCRIPT:
                # Scripts are named after the given path, not a symlink target
                resolved = Path(path).expanduser().absolute()
            return [
                (f.path, entry_role, None) for f in self.scanner.scan_local(resolved)
            ]

        if role == Role.SCRIPT:
            if not self.script_dir.is_dir():
                raise InvalidPathError(
                    f"Script directory {self.script_dir} does not exist"
                )
            return [
                (f.path, Role.SCRIPT, None)
                for f in self.scanner.scan_local(self.script_dir)
            ]

        # Local config files share no common root, so the candidates are
        # re-derived from what the feature set already holds.
        candidates: list[Candidate] = []
        for item in self._remote_files(feature_set):
            entry_role = classify(feature_set, item.path)
            if entry_role == Role.IGNORED:
                continue
            if role is not None and entry_role != role:
                continue
            try:
                local_path = to_local(
                    feature_set, item.path, entry_role, self.script_dir
                )
            except PyteaPathError as e:
                result.fail(item.path, type(e).__name__, str(e))
                continue
            if not local_path.is_file():
                result.skip(item.path, "missing locally", local_path)
                continue
            candidates.append((local_path, entry_role, item.path))
        return candidates

    def _push_file(
        self,
        feature_set: str,
        local_path: Path,
        role: Role,
        remote_path: Optional[str],
        message: Optional[str],
        result: OperationResult,
    ) -> None:
        if remote_path is None:
            try:
                remote_path = to_remote(feature_set, local_path, role)
            except PyteaPathError as e:
                result.fail(str(local_path), type(e).__name__, str(e), local_path)
                return

        if role == Role.CONFIG and self.exclude.matches(remote_path):
            result.skip(remote_path, "excluded", local_path)
            return

        try:
            size = self.operations.upload_file(local_path, remote_path, message)
        except OSError as e:
            logger.warning(f"Cannot read {local_path}: {e}")
            result.fail(remote_path, IO_ERROR, str(e), local_path)
            return
        except PyteaAPIError as e:
            logger.warning(f"Upload of {remote_path} failed: {e}")
            result.fail(remote_path, REMOTE_ERROR, str(e), local_path)
            return

        logger.debug("Uploaded %s (%d bytes)", remote_path, size)
        result.add(OutcomeKind.UPLOADED, remote_path, local_path)
        self.output.info(f"Pushed file {remote_path} into feature set {feature_set}")

    # -------------------------------------------------------------------------
    # Pull
    # -------------------------------------------------------------------------

    def pull(
        self,
        feature_set: str,
        path: Optional[PathArg] = None,
        role: Optional[Role] = None,
    ) -> OperationResult:
        """Download a feature set onto the local machine.

        Existing local files are overwritten. Scripts receive the
        configured permission bits.

        Args:
            feature_set: Name of the feature set
            path: Only pull entries whose local path is this path or lies
                below it; a bare name with role SCRIPT names a script
            role: Restrict to CONFIG or SCRIPT entries

        Returns:
            Aggregated result with one outcome per pulled entry
        """
        result = OperationResult("pull", feature_set)
        try:
            self._require_feature_set(feature_set)
            items = self._remote_files(feature_set)
        except PyteaError as e:
            return self._abort(result, e)

        target = self._pull_target(path, role) if path is not None else None
        matched = 0

        for item in items:
            entry_role = classify(feature_set, item.path)
            if entry_role == Role.IGNORED:
                continue
            if role is not None and entry_role != role:
                continue

            try:
                local_path = to_local(
                    feature_set, item.path, entry_role, self.script_dir
                )
            except PyteaPathError as e:
                result.fail(item.path, type(e).__name__, str(e))
                continue

            if target is not None and not is_within(local_path, target):
                continue

            matched += 1
            self._pull_file(item.path, local_path, entry_role, result)

        if target is not None and matched == 0:
            result.skip(str(target), "no remote entry matches this path", target)
        return result

    def _pull_target(self, path: PathArg, role: Optional[Role]) -> Path:
        if role == Role.SCRIPT and SEP not in str(path):
            return self.script_dir / str(path)
        return Path(normalize_local(path))

    def _pull_file(
        self,
        remote_path: str,
        local_path: Path,
        role: Role,
        result: OperationResult,
    ) -> None:
        mode = self.settings.script_mode if role == Role.SCRIPT else None
        try:
            self.operations.download_file(remote_path, local_path, mode=mode)
        except PyteaNotFoundError as e:
            result.fail(remote_path, NOT_FOUND, str(e), local_path)
            return
        except PyteaAPIError as e:
            logger.warning(f"Download of {remote_path} failed: {e}")
            result.fail(remote_path, REMOTE_ERROR, str(e), local_path)
            return
        except OSError as e:
            logger.warning(f"Cannot write {local_path}: {e}")
            result.fail(remote_path, IO_ERROR, str(e), local_path)
            return

        result.add(OutcomeKind.DOWNLOADED, remote_path, local_path)
        self.output.info(f"Pulled file {local_path}")

    # -------------------------------------------------------------------------
    # Delete
    # -------------------------------------------------------------------------

    def delete(
        self,
        feature_set: str,
        paths: Sequence[str] = (),
        role: Optional[Role] = None,
        recursive: bool = False,
        message: Optional[str] = None,
    ) -> OperationResult:
        """Delete a whole feature set or parts of it.

        Args:
            feature_set: Name of the feature set
            paths: Paths below the feature set to delete; script names when
                role is SCRIPT. Empty deletes the whole feature set.
            role: SCRIPT to delete scripts by bare name
            recursive: Required to delete directories
            message: Optional commit message

        Returns:
            Aggregated result with one outcome per deleted file; aborted
            without side effects if a directory is targeted without
            the recursive flag
        """
        result = OperationResult("delete", feature_set)
        try:
            self._require_feature_set(feature_set)
            if paths:
                targets = self._delete_targets(
                    feature_set, paths, role, recursive, result
                )
            else:
                targets = [item.path for item in self._remote_files(feature_set)]
        except PyteaError as e:
            return self._abort(result, e)

        for remote_path in targets:
            try:
                self.operations.delete_remote(remote_path, message)
            except PyteaNotFoundError as e:
                result.fail(remote_path, NOT_FOUND, str(e))
                continue
            except PyteaAPIError as e:
                logger.warning(f"Deleting {remote_path} failed: {e}")
                result.fail(remote_path, REMOTE_ERROR, str(e))
                continue
            result.add(OutcomeKind.DELETED, remote_path)
            self.output.info(f"Deleted {remote_path}")
        return result

    def _delete_targets(
        self,
        feature_set: str,
        paths: Sequence[str],
        role: Optional[Role],
        recursive: bool,
        result: OperationResult,
    ) -> list[str]:
        """Resolve every requested path to the files to delete.

        All lookups happen before the first deletion so the recursion gate
        can abort without side effects.
        """
        targets: list[str] = []
        for path in paths:
            if role == Role.SCRIPT:
                if SEP in str(path).strip(SEP):
                    raise InvalidPathError(f"'{path}' is not a bare script name")
                remote_path = to_remote_script(feature_set, path)
            else:
                remainder = str(path).strip(SEP)
                if not remainder:
                    raise InvalidPathError(f"'{path}' does not name a remote path")
                remote_path = f"{feature_set}{SEP}{remainder}"

            try:
                items = self.store.list(remote_path)
            except PyteaNotFoundError as e:
                result.fail(remote_path, NOT_FOUND, str(e))
                continue

            if len(items) == 1 and items[0].path == remote_path and not items[0].is_dir:
                targets.append(remote_path)
                continue

            if not recursive:
                raise RecursionRequiredError(
                    f"{remote_path} is a directory, use the recursive flag to delete it"
                )
            targets.extend(
                item.path for item in self.scanner.walk_remote(self.store, remote_path)
            )
        return targets

    # -------------------------------------------------------------------------
    # New / rename
    # -------------------------------------------------------------------------

    def new(self, feature_set: str, message: Optional[str] = None) -> OperationResult:
        """Create an empty feature set.

        Git does not track empty folders, so ``.gitkeep`` markers are written
        to the feature set root and to its ``scripts/`` folder. Nothing is
        written if the feature set already exists.
        """
        result = OperationResult("new", feature_set)
        try:
            validate_feature_set_name(feature_set)
            exists = feature_set in self._feature_sets()
        except PyteaError as e:
            return self._abort(result, e)

        for marker in marker_paths(feature_set):
            if exists:
                result.skip(marker, "feature set already exists")
                continue
            try:
                self.store.write(marker, b"", message=message)
            except PyteaAPIError as e:
                result.fail(marker, REMOTE_ERROR, str(e))
                continue
            result.add(OutcomeKind.UPLOADED, marker)
        return result

    def rename(
        self,
        feature_set: str,
        new_name: str,
        message: Optional[str] = None,
    ) -> OperationResult:
        """Move every entry of a feature set below a new name.

        The moves are not atomic. Entries whose move failed stay below the
        old name and are reported as failed, so the rename can be retried
        for the remainder. Entries whose destination is already taken are
        left in place and reported as failed.
        """
        result = OperationResult("rename", feature_set)
        try:
            validate_feature_set_name(new_name)
            validate_feature_set_name(feature_set)
            existing = self._feature_sets()
            if feature_set not in existing:
                raise FeatureSetNotFoundError(f"No feature set named {feature_set}")
            if new_name == feature_set:
                raise FeatureSetExistsError(f"Feature set {new_name} already exists")
            # A previous partial rename leaves the destination behind
            taken = set()
            if new_name in existing:
                taken = {item.path for item in self._remote_files(new_name)}
            items = self._remote_files(feature_set)
        except PyteaError as e:
            return self._abort(result, e)

        for item in items:
            try:
                _, remainder = strip_feature_set(item.path)
            except PyteaPathError as e:
                result.fail(item.path, type(e).__name__, str(e))
                continue
            destination = f"{new_name}{SEP}{remainder}"
            if destination in taken:
                result.fail(
                    item.path, ALREADY_EXISTS, f"{destination} already exists"
                )
                continue
            try:
                self.operations.move_remote(item.path, destination, message)
            except PyteaNotFoundError as e:
                result.fail(item.path, NOT_FOUND, str(e))
                continue
            except PyteaAPIError as e:
                logger.warning(f"Moving {item.path} failed: {e}")
                result.fail(item.path, REMOTE_ERROR, str(e))
                continue
            result.add(OutcomeKind.MOVED, item.path, reason=f"moved to {destination}")
        return result

    # -------------------------------------------------------------------------
    # List
    # -------------------------------------------------------------------------

    def list(self, feature_set: Optional[str] = None) -> ListResult:
        """List feature sets, or the entries of one feature set by role."""
        result = ListResult("list", feature_set)
        try:
            if feature_set is None:
                result.entries = [
                    RemoteEntry(path=name, is_dir=True) for name in self._feature_sets()
                ]
                return result
            self._require_feature_set(feature_set)
            items = self._remote_files(feature_set)
        except PyteaError as e:
            self._abort(result, e)
            return result

        for item in items:
            entry_role = classify(feature_set, item.path)
            local_path = None
            if entry_role != Role.IGNORED:
                try:
                    local_path = str(
                        to_local(feature_set, item.path, entry_role, self.script_dir)
                    )
                except PyteaPathError:
                    local_path = None
            result.entries.append(
                RemoteEntry(path=item.path, role=entry_role, local_path=local_path)
            )
        return result
