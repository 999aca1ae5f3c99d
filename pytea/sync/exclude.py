"""Exclude filter applied to configuration files before they are pushed."""

import logging
import re
from collections.abc import Iterable
from typing import Optional

from ..exceptions import PyteaConfigError

logger = logging.getLogger(__name__)


class ExcludeFilter:
    """Decides whether a remote path is excluded from a push.

    Each pattern is a regular expression searched anywhere in the path
    (``re.search``), not a glob and not a full match. A path is excluded
    if any pattern is found in it. Without patterns nothing is excluded.

    Examples:
        >>> f = ExcludeFilter([r"\\.git/", r"__pycache__"])
        >>> f.matches("fs1/etc/app/.git/config")
        True
        >>> f.matches("fs1/etc/app/app.conf")
        False
    """

    def __init__(self, patterns: Optional[Iterable[str]] = None):
        """Compile the configured patterns.

        Args:
            patterns: Regular expressions from the configuration

        Raises:
            PyteaConfigError: If a pattern is not a valid expression
        """
        self.patterns = tuple(p for p in (patterns or ()) if p)
        compiled = []
        for pattern in self.patterns:
            try:
                compiled.append(re.compile(pattern))
            except re.error as e:
                raise PyteaConfigError(
                    f"Invalid exclude pattern '{pattern}': {e}"
                ) from e
        self._compiled = tuple(compiled)

    @property
    def active(self) -> bool:
        """True if any pattern is configured."""
        return bool(self._compiled)

    def matches(self, remote_path: str) -> bool:
        for regex in self._compiled:
            if regex.search(remote_path):
                logger.debug("Excluding %s (matched %s)", remote_path, regex.pattern)
                return True
        return False


def matches(patterns: Iterable[str], remote_path: str) -> bool:
    """One-shot form of ``ExcludeFilter(patterns).matches(remote_path)``."""
    return ExcludeFilter(patterns).matches(remote_path)
