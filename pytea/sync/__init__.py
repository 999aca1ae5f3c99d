"""Reconciliation engine for pytea - push/pull/delete/rename of feature sets."""

from .engine import ReconciliationEngine
from .exclude import ExcludeFilter
from .operations import SyncOperations
from .paths import (
    Role,
    classify,
    is_within,
    marker_paths,
    strip_feature_set,
    to_local,
    to_local_config,
    to_local_script,
    to_remote,
    to_remote_config,
    to_remote_script,
)
from .result import (
    EntryOutcome,
    ListResult,
    OperationResult,
    OperationStatus,
    OutcomeKind,
    RemoteEntry,
)
from .scanner import DirectoryScanner, LocalFile
from .settings import SyncSettings

__all__ = [
    "ReconciliationEngine",
    "SyncSettings",
    "SyncOperations",
    "DirectoryScanner",
    "LocalFile",
    "ExcludeFilter",
    "Role",
    "classify",
    "is_within",
    "marker_paths",
    "strip_feature_set",
    "to_local",
    "to_local_config",
    "to_local_script",
    "to_remote",
    "to_remote_config",
    "to_remote_script",
    "EntryOutcome",
    "ListResult",
    "OperationResult",
    "OperationStatus",
    "OutcomeKind",
    "RemoteEntry",
]
