"""Data models for Gitea API responses."""

from dataclasses import dataclass, field
from typing import Any, Optional

from .exceptions import PyteaInvalidResponseError

CONTENT_TYPES = ("file", "dir", "symlink", "submodule")


def _require(data: dict[str, Any], key: str) -> Any:
    value = data.get(key)
    if value is None:
        raise PyteaInvalidResponseError(f"Field '{key}' missing in API response")
    return value


@dataclass
class ContentEntry:
    """A file or directory returned by the repository contents endpoint."""

    name: str
    path: str
    type: str = "file"
    sha: Optional[str] = None
    size: int = 0
    download_url: Optional[str] = None

    @property
    def is_dir(self) -> bool:
        return self.type == "dir"

    @classmethod
    def from_api_response(cls, data: Any) -> "ContentEntry":
        """Create a ContentEntry from a single contents object.

        Unknown content types are treated as files.

        Raises:
            PyteaInvalidResponseError: If data is not an object or lacks
                the name or path field
        """
        if not isinstance(data, dict):
            raise PyteaInvalidResponseError("A content object is required")
        content_type = data.get("type") or "file"
        if content_type not in CONTENT_TYPES:
            content_type = "file"
        return cls(
            name=_require(data, "name"),
            path=_require(data, "path"),
            type=content_type,
            sha=data.get("sha"),
            size=data.get("size") or 0,
            download_url=data.get("download_url"),
        )


def parse_contents(data: Any) -> list[ContentEntry]:
    """Parse a contents response into a list of entries.

    The endpoint answers with a list for directories and a single object
    for files; both are returned as a list.
    """
    if isinstance(data, list):
        return [ContentEntry.from_api_response(item) for item in data]
    if isinstance(data, dict):
        return [ContentEntry.from_api_response(data)]
    raise PyteaInvalidResponseError(
        "Only JSON arrays or objects are valid content responses"
    )


@dataclass
class Version:
    """The Gitea server version."""

    version: str

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "Version":
        return cls(version=_require(data, "version"))


@dataclass
class User:
    id: int
    login: str
    full_name: str = ""
    email: str = ""
    is_admin: bool = False

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "User":
        return cls(
            id=data.get("id", 0),
            login=data.get("login", ""),
            full_name=data.get("full_name", ""),
            email=data.get("email", ""),
            is_admin=data.get("is_admin", False),
        )


@dataclass
class Permission:
    admin: bool = False
    push: bool = False
    pull: bool = False


@dataclass
class Repository:
    """Repository metadata as shown by the ``info`` command."""

    id: int
    name: str
    full_name: str
    description: str = ""
    default_branch: str = "main"
    empty: bool = False
    updated_at: str = ""
    owner: Optional[User] = None
    permissions: Permission = field(default_factory=Permission)

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "Repository":
        perms = data.get("permissions") or {}
        owner = data.get("owner")
        return cls(
            id=data.get("id", 0),
            name=_require(data, "name"),
            full_name=data.get("full_name", ""),
            description=data.get("description", ""),
            default_branch=data.get("default_branch", "main"),
            empty=data.get("empty", False),
            updated_at=data.get("updated_at", ""),
            owner=User.from_api_response(owner) if owner else None,
            permissions=Permission(
                admin=perms.get("admin", False),
                push=perms.get("push", False),
                pull=perms.get("pull", False),
            ),
        )


@dataclass
class ApiToken:
    """An access token created through basic authentication."""

    id: int
    name: str
    sha1: str
    token_last_eight: str = ""

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "ApiToken":
        return cls(
            id=data.get("id", 0),
            name=_require(data, "name"),
            sha1=_require(data, "sha1"),
            token_last_eight=data.get("token_last_eight", ""),
        )

    def __str__(self) -> str:
        return f"Api token number {self.id}, name {self.name}: {self.token_last_eight}"
