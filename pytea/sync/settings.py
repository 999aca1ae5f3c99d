"""Settings passed into the reconciliation engine."""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class SyncSettings:
    """Configuration value for the engine.

    The engine never reads configuration files or the environment itself;
    callers build this value (usually via ``config.sync_settings()``).
    """

    script_directory: Path = Path("/usr/local/bin")
    """Directory every script file is pulled into and pushed from"""

    exclude_patterns: tuple[str, ...] = field(default_factory=tuple)
    """Regular expressions searched in remote paths before pushing configs"""

    script_mode: int = 0o750
    """Permission bits applied to pulled scripts"""
