"""Configuration handling for pytea.

Configuration is stored in ~/.config/pytea/config.toml. The location can
be changed with the PYTEA_CONFIG environment variable or the --config
option of the CLI.
"""

import logging
import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any, Optional

import tomli_w

from .exceptions import PyteaConfigError
from .sync.settings import SyncSettings

logger = logging.getLogger(__name__)

DEFAULT_SCRIPT_FOLDER = "/usr/local/bin"
DEFAULT_EXCLUDE = ["\\.git/"]

REPO_KEYS = ("url", "api_token", "repository", "owner", "author", "email")


def get_default_config_path() -> Path:
    env_path = os.environ.get("PYTEA_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    return Path.home() / ".config" / "pytea" / "config.toml"


class Config:
    """Lazily loaded configuration with environment overrides."""

    def __init__(self, path: Optional[Path] = None):
        self._path = path
        self._data: Optional[dict[str, Any]] = None

    # -------------------------------------------------------------------------
    # Loading and saving
    # -------------------------------------------------------------------------

    def get_config_path(self) -> Path:
        return self._path or get_default_config_path()

    def set_config_path(self, path: Path) -> None:
        """Use another configuration file and drop the loaded values."""
        self._path = Path(path).expanduser()
        self._data = None

    def _load(self) -> dict[str, Any]:
        if self._data is not None:
            return self._data

        path = self.get_config_path()
        if not path.exists():
            logger.debug("No configuration file at %s", path)
            self._data = {}
            return self._data

        try:
            with open(path, "rb") as f:
                self._data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise PyteaConfigError(f"Invalid TOML syntax in {path}: {e}") from e
        except OSError as e:
            raise PyteaConfigError(f"Failed to read configuration {path}: {e}") from e

        if not isinstance(self._data.get("repo", {}), dict):
            raise PyteaConfigError(f"Section [repo] in {path} must be a table")
        return self._data

    def save(self, data: Optional[dict[str, Any]] = None) -> Path:
        """Write the configuration atomically.

        Args:
            data: Values to store; defaults to the currently loaded values

        Returns:
            Path of the written file
        """
        if data is not None:
            self._data = data
        values = self._load()
        path = self.get_config_path()
        path.parent.mkdir(parents=True, exist_ok=True)

        tmp_path: Optional[Path] = None
        try:
            with NamedTemporaryFile(
                mode="wb", dir=path.parent, delete=False, suffix=".tmp"
            ) as f:
                tmp_path = Path(f.name)
                tomli_w.dump(values, f)
            os.chmod(tmp_path, 0o600)
            os.replace(tmp_path, path)
        except OSError as e:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()
            raise PyteaConfigError(f"Failed to write configuration: {e}") from e

        logger.debug("Saved configuration to %s", path)
        return path

    def create(
        self,
        url: str,
        api_token: str,
        repository: str,
        owner: str,
        author: Optional[str] = None,
        email: str = "",
        script_folder: str = DEFAULT_SCRIPT_FOLDER,
    ) -> Path:
        """Write a fresh configuration file for a repository."""
        data = {
            "script_folder": script_folder,
            "exclude": list(DEFAULT_EXCLUDE),
            "max_retries": 0,
            "repo": {
                "url": url.rstrip("/"),
                "api_token": api_token,
                "repository": repository,
                "owner": owner,
                "author": author or owner,
                "email": email,
            },
        }
        return self.save(data)

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    def _repo(self, key: str) -> Optional[str]:
        value = self._load().get("repo", {}).get(key)
        return str(value) if value is not None else None

    @property
    def api_token(self) -> Optional[str]:
        return os.environ.get("PYTEA_API_TOKEN") or self._repo("api_token")

    @property
    def url(self) -> Optional[str]:
        return os.environ.get("PYTEA_URL") or self._repo("url")

    @property
    def repository(self) -> Optional[str]:
        return self._repo("repository")

    @property
    def owner(self) -> Optional[str]:
        return self._repo("owner")

    @property
    def author(self) -> Optional[str]:
        return self._repo("author") or self.owner

    @property
    def email(self) -> Optional[str]:
        return self._repo("email")

    @property
    def script_folder(self) -> str:
        return str(self._load().get("script_folder", DEFAULT_SCRIPT_FOLDER))

    @property
    def exclude(self) -> list[str]:
        value = self._load().get("exclude", [])
        if isinstance(value, str):
            return [value]
        if not isinstance(value, list):
            raise PyteaConfigError("'exclude' must be a string or a list of strings")
        return [str(v) for v in value]

    @property
    def max_retries(self) -> int:
        try:
            return int(self._load().get("max_retries", 0))
        except (TypeError, ValueError) as e:
            raise PyteaConfigError("'max_retries' must be an integer") from e

    def is_configured(self) -> bool:
        """Check whether everything needed to reach the repository is set."""
        return all((self.api_token, self.url, self.repository, self.owner))

    def sync_settings(self) -> SyncSettings:
        """Build the settings value consumed by the reconciliation engine."""
        return SyncSettings(
            script_directory=Path(self.script_folder).expanduser(),
            exclude_patterns=tuple(self.exclude),
        )

    def as_display_items(self) -> list[tuple[str, str]]:
        """Key/value pairs for printing, with the token masked."""
        token = self.api_token or ""
        masked = f"{'*' * 8}{token[-4:]}" if token else "(not set)"
        return [
            ("Config file", str(self.get_config_path())),
            ("script_folder", self.script_folder),
            ("exclude", ", ".join(self.exclude) or "(none)"),
            ("url", self.url or "(not set)"),
            ("api_token", masked),
            ("repository", self.repository or "(not set)"),
            ("owner", self.owner or "(not set)"),
            ("author", self.author or "(not set)"),
            ("email", self.email or "(not set)"),
        ]


config = Config()
