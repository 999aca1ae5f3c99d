"""API client for the Gitea repository contents endpoints."""

from __future__ import annotations

import base64
import logging
import random
import time
from typing import Any
from urllib.parse import quote

import httpx

from .config import config
from .exceptions import (
    PyteaAPIError,
    PyteaAuthenticationError,
    PyteaConfigError,
    PyteaInvalidResponseError,
    PyteaNetworkError,
    PyteaNotFoundError,
    PyteaPermissionError,
    PyteaRateLimitError,
)
from .models import ApiToken, ContentEntry, Repository, Version, parse_contents

logger = logging.getLogger(__name__)

API_PART = "/api/v1"
USER_AGENT = "pytea"
DEFAULT_TOKEN_NAME = "pytea-devops"


def _encode_path(path: str) -> str:
    return quote(path.strip("/"), safe="/")


class GiteaClient:
    """Client for the contents API of a single Gitea repository."""

    def __init__(
        self,
        api_token: str | None = None,
        url: str | None = None,
        owner: str | None = None,
        repository: str | None = None,
        max_retries: int | None = None,
        retry_delay: float = 1.0,
        timeout: float = 30.0,
    ):
        """Initialize the Gitea client.

        Args:
            api_token: Optional API token (uses config if not provided)
            url: Optional base URL of the Gitea instance (uses config if not provided)
            owner: Repository owner (uses config if not provided)
            repository: Repository name (uses config if not provided)
            max_retries: Maximum number of retry attempts (uses config if not provided)
            retry_delay: Initial delay between retries in seconds (default: 1.0)
            timeout: Request timeout in seconds (default: 30.0)
        """
        self.api_token = api_token or config.api_token
        self.url = (url or config.url or "").rstrip("/")
        self.owner = owner or config.owner
        self.repository = repository or config.repository
        self.max_retries = config.max_retries if max_retries is None else max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout

        if not self.api_token:
            raise PyteaConfigError(
                "API token not configured. Run 'pytea init' or set PYTEA_API_TOKEN."
            )
        if not self.url:
            raise PyteaConfigError("Gitea URL not configured.")

        self._client: httpx.Client | None = None

    @property
    def api_url(self) -> str:
        return f"{self.url}{API_PART}"

    @property
    def repo_endpoint(self) -> str:
        return f"/repos/{self.owner}/{self.repository}"

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                headers={
                    "Authorization": f"token {self.api_token}",
                    "User-Agent": USER_AGENT,
                },
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
            )
        return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def __enter__(self) -> GiteaClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _should_retry(self, exception: Exception, attempt: int) -> bool:
        """Determine if a request should be retried.

        Args:
            exception: The exception that occurred
            attempt: Current attempt number (0-based)

        Returns:
            True if the request should be retried, False otherwise
        """
        if attempt >= self.max_retries:
            return False

        # Transient failures only
        if isinstance(exception, (PyteaNetworkError, PyteaRateLimitError)):
            return True

        if isinstance(exception, httpx.HTTPStatusError):
            return 500 <= exception.response.status_code < 600

        return False

    def _calculate_retry_delay(self, attempt: int) -> float:
        """Calculate delay before next retry using exponential backoff.

        Args:
            attempt: Current attempt number (0-based)

        Returns:
            Delay in seconds
        """
        base_delay = self.retry_delay * (2**attempt)
        # +/- 25% jitter
        jitter = base_delay * 0.25 * (2 * random.random() - 1)
        return base_delay + jitter

    def _handle_http_error(
        self, e: httpx.HTTPStatusError, attempt: int
    ) -> tuple[Exception, bool]:
        """Handle HTTP errors and determine if retry should occur.

        Args:
            e: The HTTP error exception
            attempt: Current attempt number

        Returns:
            Tuple of (exception to raise, should_retry)
        """
        status_code = e.response.status_code

        if status_code == 401:
            raise PyteaAuthenticationError(
                "Invalid API token or unauthorized access"
            ) from e
        elif status_code == 403:
            raise PyteaPermissionError(
                "Access forbidden - check your permissions"
            ) from e
        elif status_code == 404:
            raise PyteaNotFoundError("Resource not found") from e
        elif status_code == 429:
            error = PyteaRateLimitError("Rate limit exceeded - please try again later")
            return (error, attempt < self.max_retries)

        error_msg = f"API request failed with status {status_code}"
        try:
            if e.response.content:
                error_data = e.response.json()
                if isinstance(error_data, dict):
                    msg = error_data.get("message") or error_data.get("error")
                    if msg:
                        error_msg = f"{error_msg}: {msg}"
        except ValueError:
            pass

        error = PyteaAPIError(error_msg)
        should_retry = 500 <= status_code < 600 and attempt < self.max_retries
        return (error, should_retry)

    def _send(self, method: str, endpoint: str, **kwargs: Any) -> httpx.Response:
        """Send a request with retry logic and return the raw response.

        Args:
            method: HTTP method
            endpoint: API endpoint path below /api/v1
            **kwargs: Additional arguments passed to httpx

        Returns:
            The successful response

        Raises:
            PyteaAPIError: If the request fails after all retries
        """
        url = f"{self.api_url}/{endpoint.lstrip('/')}"
        last_exception: Exception | None = None
        client = self._get_client()

        for attempt in range(self.max_retries + 1):
            try:
                response = client.request(method, url, **kwargs)
                response.raise_for_status()
                return response

            except httpx.HTTPStatusError as e:
                error, should_retry = self._handle_http_error(e, attempt)
                last_exception = error

                if should_retry:
                    if isinstance(error, PyteaRateLimitError):
                        retry_after = e.response.headers.get("Retry-After")
                        if retry_after and retry_after.isdigit():
                            delay = float(retry_after)
                        else:
                            delay = self._calculate_retry_delay(attempt)
                    else:
                        delay = self._calculate_retry_delay(attempt)
                    logger.debug(
                        "%s %s failed (%s), retrying in %.2fs",
                        method,
                        endpoint,
                        error,
                        delay,
                    )
                    time.sleep(delay)
                    continue
                raise error from e
            except httpx.RequestError as e:
                error = PyteaNetworkError(f"Network error: {e}")
                last_exception = error
                if self._should_retry(error, attempt):
                    time.sleep(self._calculate_retry_delay(attempt))
                    continue
                raise error from e

        if last_exception:
            raise last_exception
        raise PyteaAPIError("Request failed after all retry attempts")

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        """Make an API request and decode the JSON answer.

        Returns:
            Response JSON data, or an empty dict for empty bodies

        Raises:
            PyteaAPIError: If the request fails
            PyteaInvalidResponseError: If the body is not JSON
        """
        response = self._send(method, endpoint, **kwargs)

        content_type = response.headers.get("Content-Type", "")
        if response.content and "application/json" not in content_type:
            if "text/html" in content_type:
                raise PyteaAuthenticationError(
                    "Invalid API token - server returned HTML instead of JSON"
                )
            raise PyteaInvalidResponseError(f"Unexpected response type: {content_type}")

        if response.content:
            try:
                return response.json()
            except ValueError as e:
                raise PyteaInvalidResponseError(
                    "Invalid JSON response from server"
                ) from e
        return {}

    def _commit_body(
        self,
        author: str | None,
        email: str | None,
        message: str | None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {}
        if author or email:
            identity = {"name": author or "", "email": email or ""}
            body["author"] = identity
            body["committer"] = identity
        if message:
            body["message"] = message
        return body

    # =========================
    # Instance information
    # =========================

    def get_version(self) -> Version:
        """Return the version of the Gitea instance."""
        return Version.from_api_response(self._request("GET", "/version"))

    def get_repository(self) -> Repository:
        """Return metadata of the configured repository."""
        return Repository.from_api_response(self._request("GET", self.repo_endpoint))

    # =========================
    # Contents
    # =========================

    def get_contents(self, path: str = "") -> list[ContentEntry]:
        """List a directory or describe a single file.

        Args:
            path: Repository relative path ("" for the repository root)

        Returns:
            One entry per directory member, or a single entry for a file

        Raises:
            PyteaNotFoundError: If nothing exists at path
        """
        endpoint = f"{self.repo_endpoint}/contents"
        if path.strip("/"):
            endpoint = f"{endpoint}/{_encode_path(path)}"
        return parse_contents(self._request("GET", endpoint))

    def get_raw(self, path: str) -> bytes:
        """Download the raw content of a file."""
        endpoint = f"{self.repo_endpoint}/raw/{_encode_path(path)}"
        return self._send("GET", endpoint).content

    def create_file(
        self,
        path: str,
        content: bytes,
        author: str | None = None,
        email: str | None = None,
        message: str | None = None,
    ) -> Any:
        """Create a new file in the repository."""
        endpoint = f"{self.repo_endpoint}/contents/{_encode_path(path)}"
        data = self._commit_body(author, email, message)
        data["content"] = base64.b64encode(content).decode("ascii")
        return self._request("POST", endpoint, json=data)

    def update_file(
        self,
        path: str,
        content: bytes,
        sha: str,
        author: str | None = None,
        email: str | None = None,
        message: str | None = None,
        from_path: str | None = None,
    ) -> Any:
        """Replace the content of an existing file.

        Args:
            path: Path of the file after the update
            content: New content
            sha: Blob sha of the file being replaced
            from_path: If given, the file at from_path is moved to path

        Returns:
            Commit response from the API
        """
        endpoint = f"{self.repo_endpoint}/contents/{_encode_path(path)}"
        data = self._commit_body(author, email, message)
        data["content"] = base64.b64encode(content).decode("ascii")
        data["sha"] = sha
        if from_path:
            data["from_path"] = from_path.strip("/")
        return self._request("PUT", endpoint, json=data)

    def delete_file(
        self,
        path: str,
        sha: str,
        author: str | None = None,
        email: str | None = None,
        message: str | None = None,
    ) -> Any:
        """Delete a single file from the repository."""
        endpoint = f"{self.repo_endpoint}/contents/{_encode_path(path)}"
        data = self._commit_body(author, email, message)
        data["sha"] = sha
        return self._request("DELETE", endpoint, json=data)

    # =========================
    # Authentication
    # =========================

    @staticmethod
    def create_access_token(
        url: str,
        username: str,
        password: str,
        token_name: str | None = None,
        timeout: float = 30.0,
    ) -> ApiToken:
        """Create a new access token using basic authentication.

        Args:
            url: Base URL of the Gitea instance
            username: Gitea user name
            password: Password of the user
            token_name: Name for the new token (default: pytea-devops)
            timeout: Request timeout in seconds

        Returns:
            The created token; sha1 holds the secret

        Raises:
            PyteaAuthenticationError: If the credentials are rejected
            PyteaAPIError: If the token cannot be created
        """
        endpoint = f"{url.rstrip('/')}{API_PART}/users/{username}/tokens"
        data = {
            "name": token_name or DEFAULT_TOKEN_NAME,
            "scopes": ["write:repository", "read:user"],
        }
        try:
            response = httpx.post(
                endpoint,
                json=data,
                auth=(username, password),
                headers={"User-Agent": USER_AGENT},
                timeout=timeout,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 401:
                raise PyteaAuthenticationError("Invalid username or password") from e
            raise PyteaAPIError(
                f"Token creation failed with status {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            raise PyteaNetworkError(f"Network error: {e}") from e

        try:
            return ApiToken.from_api_response(response.json())
        except ValueError as e:
            raise PyteaInvalidResponseError("Invalid JSON response from server") from e
