"""Per-entry outcomes and aggregated operation results."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .paths import Role


class OutcomeKind(str, Enum):
    """What happened to a single entry."""

    UPLOADED = "uploaded"
    DOWNLOADED = "downloaded"
    DELETED = "deleted"
    MOVED = "moved"
    SKIPPED = "skipped"
    FAILED = "failed"


class OperationStatus(str, Enum):
    """Terminal state of an operation."""

    COMPLETED = "completed"
    COMPLETED_WITH_FAILURES = "completed_with_failures"
    ABORTED = "aborted"


# Cause kinds recorded on failed outcomes
IO_ERROR = "IoError"
REMOTE_ERROR = "RemoteError"
NOT_FOUND = "NotFound"
ALREADY_EXISTS = "AlreadyExists"


@dataclass
class EntryOutcome:
    """Outcome for one file of an operation."""

    kind: OutcomeKind
    """What happened"""

    remote_path: str
    """Remote path of the entry"""

    local_path: Optional[str] = None
    """Local counterpart, if the entry has one"""

    reason: Optional[str] = None
    """Why the entry was skipped, or the error message for failures"""

    cause: Optional[str] = None
    """Error kind for failures (IoError, RemoteError, NotFound, ...)"""

    @property
    def failed(self) -> bool:
        return self.kind == OutcomeKind.FAILED

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "remote_path": self.remote_path,
            "local_path": self.local_path,
            "reason": self.reason,
            "cause": self.cause,
        }


@dataclass
class OperationResult:
    """Aggregated outcome of one engine operation.

    ``success`` is true only if the operation ran to completion and no
    entry failed.
    """

    operation: str
    feature_set: Optional[str] = None
    outcomes: list[EntryOutcome] = field(default_factory=list)
    aborted: bool = False
    error: Optional[str] = None
    """Message of the structural error that aborted the operation"""

    def add(
        self,
        kind: OutcomeKind,
        remote_path: str,
        local_path: Optional[object] = None,
        reason: Optional[str] = None,
        cause: Optional[str] = None,
    ) -> EntryOutcome:
        outcome = EntryOutcome(
            kind=kind,
            remote_path=remote_path,
            local_path=str(local_path) if local_path is not None else None,
            reason=reason,
            cause=cause,
        )
        self.outcomes.append(outcome)
        return outcome

    def skip(self, remote_path: str, reason: str, local_path=None) -> EntryOutcome:
        return self.add(OutcomeKind.SKIPPED, remote_path, local_path, reason=reason)

    def fail(
        self, remote_path: str, cause: str, reason: str, local_path=None
    ) -> EntryOutcome:
        return self.add(
            OutcomeKind.FAILED, remote_path, local_path, reason=reason, cause=cause
        )

    def abort(self, error: Exception) -> "OperationResult":
        """Mark the operation aborted; an aborted result carries no outcomes."""
        self.outcomes.clear()
        self.aborted = True
        self.error = str(error)
        return self

    @property
    def status(self) -> OperationStatus:
        if self.aborted:
            return OperationStatus.ABORTED
        if self.failures:
            return OperationStatus.COMPLETED_WITH_FAILURES
        return OperationStatus.COMPLETED

    @property
    def success(self) -> bool:
        return self.status == OperationStatus.COMPLETED

    @property
    def failures(self) -> list[EntryOutcome]:
        return [o for o in self.outcomes if o.failed]

    def by_kind(self, kind: OutcomeKind) -> list[EntryOutcome]:
        return [o for o in self.outcomes if o.kind == kind]

    def counts(self) -> dict[str, int]:
        """Number of outcomes per kind, including zero counts."""
        stats = {kind.value: 0 for kind in OutcomeKind}
        for outcome in self.outcomes:
            stats[outcome.kind.value] += 1
        return stats

    def to_dict(self) -> dict:
        return {
            "operation": self.operation,
            "feature_set": self.feature_set,
            "status": self.status.value,
            "success": self.success,
            "error": self.error,
            "counts": self.counts(),
            "outcomes": [o.to_dict() for o in self.outcomes],
        }


@dataclass
class RemoteEntry:
    """A listed remote path with its role."""

    path: str
    role: Optional[Role] = None
    is_dir: bool = False
    local_path: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "role": self.role.value if self.role else None,
            "is_dir": self.is_dir,
            "local_path": self.local_path,
        }


@dataclass
class ListResult(OperationResult):
    """Result of a list operation, carrying the listed entries."""

    entries: list[RemoteEntry] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["entries"] = [e.to_dict() for e in self.entries]
        return data
