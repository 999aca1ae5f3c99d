"""Exception hierarchy for pytea."""


class PyteaError(Exception):
    """Base exception for all pytea errors."""


class PyteaConfigError(PyteaError):
    """Configuration is missing or invalid."""


# =============================================================================
# Path mapping errors
# =============================================================================


class PyteaPathError(PyteaError):
    """A path could not be translated between local and remote form.

    These are always input errors and are never retried.
    """


class InvalidPathError(PyteaPathError):
    """A local path cannot be canonicalized or has no file component."""


class PathMismatchError(PyteaPathError):
    """A remote path does not belong to the expected feature set or role."""


class NestedScriptPathError(PyteaPathError):
    """A remote script path contains sub-directories below ``scripts/``."""


class MalformedRemotePathError(PyteaPathError):
    """A remote path has no feature set component."""


# =============================================================================
# Operation level errors
# =============================================================================


class RecursionRequiredError(PyteaError):
    """A directory was targeted for deletion without the recursive flag."""


class FeatureSetNotFoundError(PyteaError):
    """The requested feature set does not exist in the repository."""


class FeatureSetExistsError(PyteaError):
    """A feature set with the requested name already exists."""


# =============================================================================
# Remote store errors
# =============================================================================


class PyteaAPIError(PyteaError):
    """Request to the Gitea API or the remote store failed."""


class PyteaAuthenticationError(PyteaAPIError):
    """The API token was rejected."""


class PyteaPermissionError(PyteaAPIError):
    """The token lacks permission for the requested resource."""


class PyteaNotFoundError(PyteaAPIError):
    """The requested remote resource does not exist."""


class PyteaRateLimitError(PyteaAPIError):
    """The server asked us to slow down."""


class PyteaNetworkError(PyteaAPIError):
    """The server could not be reached."""


class PyteaInvalidResponseError(PyteaAPIError):
    """The server answered with something we cannot interpret."""
