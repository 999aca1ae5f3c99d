"""Unit tests for the Gitea API client."""

import base64
from unittest.mock import Mock, patch

import httpx
import pytest

from pytea.api import GiteaClient
from pytea.exceptions import (
    PyteaAPIError,
    PyteaAuthenticationError,
    PyteaConfigError,
    PyteaInvalidResponseError,
    PyteaNetworkError,
    PyteaNotFoundError,
    PyteaPermissionError,
    PyteaRateLimitError,
)


def make_client(**kwargs):
    params = {
        "api_token": "test_token",
        "url": "https://gitea.example.com/",
        "owner": "ops",
        "repository": "devops",
        "max_retries": 0,
    }
    params.update(kwargs)
    return GiteaClient(**params)


def json_response(data, status_code=200):
    response = Mock()
    response.status_code = status_code
    response.content = b"x" if data is not None else b""
    response.headers = {"Content-Type": "application/json"}
    response.json.return_value = data
    return response


def error_response(status_code, content=b"", headers=None):
    response = Mock()
    response.status_code = status_code
    response.content = content
    response.headers = headers or {}
    response.raise_for_status.side_effect = httpx.HTTPStatusError(
        "error", request=Mock(), response=response
    )
    return response


class TestGiteaClient:
    """Tests for GiteaClient initialization and basic functionality."""

    def test_init(self):
        """Test client initialization with explicit values."""
        client = make_client()
        assert client.api_token == "test_token"
        assert client.api_url == "https://gitea.example.com/api/v1"
        assert client.repo_endpoint == "/repos/ops/devops"

    def test_init_without_token_raises_error(self):
        """Test that initializing without a token raises error."""
        with patch("pytea.api.config") as mock_config:
            mock_config.api_token = None
            with pytest.raises(PyteaConfigError, match="API token not configured"):
                make_client(api_token=None)

    def test_init_without_url_raises_error(self):
        with patch("pytea.api.config") as mock_config:
            mock_config.url = None
            with pytest.raises(PyteaConfigError, match="URL not configured"):
                make_client(url=None)

    def test_max_retries_from_config(self):
        """Test that the retry count falls back to the configuration."""
        with patch("pytea.api.config") as mock_config:
            mock_config.max_retries = 3
            client = make_client(max_retries=None)
        assert client.max_retries == 3

    def test_client_headers_use_token_scheme(self):
        """Test that the Authorization header uses the token scheme."""
        client = make_client()
        http_client = client._get_client()
        assert http_client.headers["Authorization"] == "token test_token"
        assert http_client.headers["User-Agent"] == "pytea"
        client.close()

    def test_context_manager_closes_client(self):
        with make_client() as client:
            http_client = client._get_client()
        assert http_client.is_closed


class TestAPIRequest:
    """Tests for the _request method."""

    @patch("pytea.api.httpx.Client.request")
    def test_successful_json_response(self, mock_request):
        """Test successful API request with JSON response."""
        mock_request.return_value = json_response({"data": "test"})

        client = make_client()
        result = client._request("GET", "/test")

        assert result == {"data": "test"}
        method, url = mock_request.call_args.args
        assert method == "GET"
        assert url == "https://gitea.example.com/api/v1/test"

    @patch("pytea.api.httpx.Client.request")
    def test_empty_response(self, mock_request):
        """Test handling of empty response."""
        mock_request.return_value = json_response(None)

        assert make_client()._request("DELETE", "/test") == {}

    @patch("pytea.api.httpx.Client.request")
    def test_html_response_raises_error(self, mock_request):
        """Test that HTML instead of JSON is treated as an auth problem."""
        response = json_response({})
        response.headers = {"Content-Type": "text/html"}
        mock_request.return_value = response

        with pytest.raises(PyteaAuthenticationError, match="returned HTML"):
            make_client()._request("GET", "/test")

    @patch("pytea.api.httpx.Client.request")
    def test_unexpected_content_type(self, mock_request):
        response = json_response({})
        response.headers = {"Content-Type": "text/plain"}
        mock_request.return_value = response

        with pytest.raises(PyteaInvalidResponseError, match="text/plain"):
            make_client()._request("GET", "/test")

    @patch("pytea.api.httpx.Client.request")
    def test_invalid_json_response(self, mock_request):
        response = json_response({})
        response.json.side_effect = ValueError("Invalid JSON")
        mock_request.return_value = response

        with pytest.raises(PyteaInvalidResponseError, match="Invalid JSON"):
            make_client()._request("GET", "/test")

    @pytest.mark.parametrize(
        "status_code,error_class,message",
        [
            (401, PyteaAuthenticationError, "Invalid API token"),
            (403, PyteaPermissionError, "Access forbidden"),
            (404, PyteaNotFoundError, "Resource not found"),
            (429, PyteaRateLimitError, "Rate limit exceeded"),
        ],
    )
    @patch("pytea.api.httpx.Client.request")
    def test_http_error_mapping(self, mock_request, status_code, error_class, message):
        """Test that HTTP status codes map to the exception family."""
        mock_request.return_value = error_response(status_code)

        with pytest.raises(error_class, match=message):
            make_client()._request("GET", "/test")

    @patch("pytea.api.httpx.Client.request")
    def test_http_error_with_json_message(self, mock_request):
        """Test that the server message is included in the error."""
        response = error_response(422, content=b'{"message": "sha mismatch"}')
        response.json.return_value = {"message": "sha mismatch"}
        mock_request.return_value = response

        with pytest.raises(PyteaAPIError, match="422: sha mismatch"):
            make_client()._request("PUT", "/test")

    @patch("pytea.api.httpx.Client.request")
    def test_network_error(self, mock_request):
        mock_request.side_effect = httpx.ConnectError("Connection failed")

        with pytest.raises(PyteaNetworkError, match="Network error"):
            make_client()._request("GET", "/test")

    @patch("pytea.api.time.sleep")
    @patch("pytea.api.httpx.Client.request")
    def test_no_retry_by_default(self, mock_request, mock_sleep):
        """Test that a server error is not retried with max_retries=0."""
        mock_request.return_value = error_response(502)

        with pytest.raises(PyteaAPIError):
            make_client()._request("GET", "/test")

        assert mock_request.call_count == 1
        mock_sleep.assert_not_called()

    @patch("pytea.api.time.sleep")
    @patch("pytea.api.httpx.Client.request")
    def test_retry_on_server_error(self, mock_request, mock_sleep):
        """Test that configured retries recover from transient errors."""
        mock_request.side_effect = [error_response(503), json_response({"ok": 1})]

        result = make_client(max_retries=2)._request("GET", "/test")

        assert result == {"ok": 1}
        assert mock_request.call_count == 2
        mock_sleep.assert_called_once()

    @patch("pytea.api.time.sleep")
    @patch("pytea.api.httpx.Client.request")
    def test_rate_limit_honours_retry_after(self, mock_request, mock_sleep):
        mock_request.side_effect = [
            error_response(429, headers={"Retry-After": "7"}),
            json_response({"ok": 1}),
        ]

        make_client(max_retries=1)._request("GET", "/test")

        mock_sleep.assert_called_once_with(7.0)

    @patch("pytea.api.httpx.Client.request")
    def test_client_errors_are_not_retried(self, mock_request):
        mock_request.return_value = error_response(404)

        with pytest.raises(PyteaNotFoundError):
            make_client(max_retries=3)._request("GET", "/test")

        assert mock_request.call_count == 1


class TestRetryDelay:
    """Tests for the backoff calculation."""

    def test_exponential_backoff_with_jitter(self):
        client = make_client(retry_delay=1.0)
        for attempt, base in enumerate((1.0, 2.0, 4.0)):
            delay = client._calculate_retry_delay(attempt)
            assert base * 0.75 <= delay <= base * 1.25


class TestContentsEndpoints:
    """Tests for the repository contents methods."""

    @patch("pytea.api.httpx.Client.request")
    def test_get_contents_of_root(self, mock_request):
        """Test listing the repository root."""
        mock_request.return_value = json_response(
            [
                {"name": "fs1", "path": "fs1", "type": "dir"},
                {"name": "README", "path": "README", "type": "file", "sha": "a1"},
            ]
        )

        entries = make_client().get_contents()

        url = mock_request.call_args.args[1]
        assert url.endswith("/repos/ops/devops/contents")
        assert [e.path for e in entries] == ["fs1", "README"]
        assert entries[0].is_dir
        assert entries[1].sha == "a1"

    @patch("pytea.api.httpx.Client.request")
    def test_get_contents_of_file(self, mock_request):
        """Test that a single file answer is returned as one entry."""
        mock_request.return_value = json_response(
            {"name": "x.sh", "path": "fs1/scripts/x.sh", "type": "file", "sha": "b2"}
        )

        entries = make_client().get_contents("fs1/scripts/x.sh")

        url = mock_request.call_args.args[1]
        assert url.endswith("/contents/fs1/scripts/x.sh")
        assert len(entries) == 1
        assert not entries[0].is_dir

    @patch("pytea.api.httpx.Client.request")
    def test_get_raw(self, mock_request):
        response = Mock()
        response.content = b"#!/bin/sh\n"
        mock_request.return_value = response

        content = make_client().get_raw("fs1/scripts/x.sh")

        assert content == b"#!/bin/sh\n"
        assert mock_request.call_args.args[1].endswith(
            "/repos/ops/devops/raw/fs1/scripts/x.sh"
        )

    @patch("pytea.api.httpx.Client.request")
    def test_create_file(self, mock_request):
        """Test that new files are created with POST and base64 content."""
        mock_request.return_value = json_response({"content": {}})

        make_client().create_file(
            "fs1/etc/app.conf", b"key=1", author="ops", email="ops@x", message="add"
        )

        method, url = mock_request.call_args.args
        body = mock_request.call_args.kwargs["json"]
        assert method == "POST"
        assert url.endswith("/contents/fs1/etc/app.conf")
        assert base64.b64decode(body["content"]) == b"key=1"
        assert body["message"] == "add"
        assert body["author"] == {"name": "ops", "email": "ops@x"}

    @patch("pytea.api.httpx.Client.request")
    def test_update_file_with_move(self, mock_request):
        """Test that updates carry the sha and the optional source path."""
        mock_request.return_value = json_response({"content": {}})

        make_client().update_file("web/x", b"x", "abc", from_path="fs1/x")

        method, url = mock_request.call_args.args
        body = mock_request.call_args.kwargs["json"]
        assert method == "PUT"
        assert url.endswith("/contents/web/x")
        assert body["sha"] == "abc"
        assert body["from_path"] == "fs1/x"
        assert "message" not in body

    @patch("pytea.api.httpx.Client.request")
    def test_delete_file(self, mock_request):
        mock_request.return_value = json_response({"commit": {}})

        make_client().delete_file("fs1/x", "abc")

        method, _ = mock_request.call_args.args
        assert method == "DELETE"
        assert mock_request.call_args.kwargs["json"] == {"sha": "abc"}

    @patch("pytea.api.httpx.Client.request")
    def test_path_is_url_encoded(self, mock_request):
        mock_request.return_value = json_response([])

        make_client().get_contents("fs1/etc/my file.conf")

        assert mock_request.call_args.args[1].endswith("/fs1/etc/my%20file.conf")

    @patch("pytea.api.httpx.Client.request")
    def test_get_version(self, mock_request):
        mock_request.return_value = json_response({"version": "1.21.0"})

        assert make_client().get_version().version == "1.21.0"

    @patch("pytea.api.httpx.Client.request")
    def test_get_repository(self, mock_request):
        mock_request.return_value = json_response(
            {
                "id": 1,
                "name": "devops",
                "full_name": "ops/devops",
                "owner": {"id": 2, "login": "ops"},
                "permissions": {"push": True},
            }
        )

        repo = make_client().get_repository()

        assert repo.full_name == "ops/devops"
        assert repo.owner.login == "ops"
        assert repo.permissions.push


class TestCreateAccessToken:
    """Tests for token creation with basic authentication."""

    @patch("pytea.api.httpx.post")
    def test_create_access_token(self, mock_post):
        response = Mock()
        response.json.return_value = {
            "id": 5,
            "name": "pytea-devops",
            "sha1": "secret",
            "token_last_eight": "12345678",
        }
        mock_post.return_value = response

        token = GiteaClient.create_access_token(
            "https://gitea.example.com/", "alice", "pw"
        )

        assert token.sha1 == "secret"
        assert "12345678" in str(token)
        url = mock_post.call_args.args[0]
        assert url == "https://gitea.example.com/api/v1/users/alice/tokens"
        assert mock_post.call_args.kwargs["auth"] == ("alice", "pw")
        assert mock_post.call_args.kwargs["json"]["name"] == "pytea-devops"

    @patch("pytea.api.httpx.post")
    def test_create_access_token_bad_credentials(self, mock_post):
        mock_post.return_value = error_response(401)

        with pytest.raises(PyteaAuthenticationError, match="username or password"):
            GiteaClient.create_access_token("https://g", "alice", "wrong")
