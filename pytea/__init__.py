"""pytea - keep local configuration files and scripts in a Gitea devops repository."""

from .api import GiteaClient
from .exceptions import (
    FeatureSetExistsError,
    FeatureSetNotFoundError,
    InvalidPathError,
    MalformedRemotePathError,
    NestedScriptPathError,
    PathMismatchError,
    PyteaAPIError,
    PyteaAuthenticationError,
    PyteaConfigError,
    PyteaError,
    PyteaInvalidResponseError,
    PyteaNetworkError,
    PyteaNotFoundError,
    PyteaPathError,
    PyteaPermissionError,
    PyteaRateLimitError,
    RecursionRequiredError,
)
from .store import GiteaStore, RemoteItem, RemoteStore
from .sync import ReconciliationEngine, Role, SyncSettings

__version__ = "0.1.0"

__all__ = [
    "GiteaClient",
    "GiteaStore",
    "RemoteItem",
    "RemoteStore",
    "ReconciliationEngine",
    "Role",
    "SyncSettings",
    "PyteaError",
    "PyteaConfigError",
    "PyteaPathError",
    "InvalidPathError",
    "PathMismatchError",
    "NestedScriptPathError",
    "MalformedRemotePathError",
    "RecursionRequiredError",
    "FeatureSetNotFoundError",
    "FeatureSetExistsError",
    "PyteaAPIError",
    "PyteaAuthenticationError",
    "PyteaPermissionError",
    "PyteaNotFoundError",
    "PyteaRateLimitError",
    "PyteaNetworkError",
    "PyteaInvalidResponseError",
]
