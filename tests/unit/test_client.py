"""Unit tests for the authorized Google API client."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from google.oauth2.credentials import Credentials

from workspace_mcp.auth.client import AuthorizedClient


@pytest.fixture
def authorized_client(mock_http_client: AsyncMock) -> AuthorizedClient:
    """Create a client bound to a fixed bearer token."""
    return AuthorizedClient("sess-42", Credentials(token="bearer-abc"), mock_http_client)


@pytest.mark.unit
class TestAuthorizedClient:
    """Tests for AuthorizedClient."""

    @pytest.mark.asyncio
    async def test_should_send_bearer_token(
        self,
        authorized_client: AuthorizedClient,
        mock_http_client: AsyncMock,
        mock_response,
    ) -> None:
        """Verify the session's access token is sent on every request."""
        mock_http_client.request.return_value = mock_response({"labels": []})

        result = await authorized_client.request(
            "GET", "https://gmail.googleapis.com/gmail/v1/users/me/labels", params={"a": 1}
        )

        assert result == {"labels": []}
        kwargs = mock_http_client.request.call_args.kwargs
        assert kwargs["headers"]["Authorization"] == "Bearer bearer-abc"
        assert kwargs["params"] == {"a": 1}
        assert kwargs["method"] == "GET"

    @pytest.mark.asyncio
    async def test_should_return_empty_dict_for_no_content(
        self,
        authorized_client: AuthorizedClient,
        mock_http_client: AsyncMock,
        mock_response,
    ) -> None:
        """Verify bodiless responses decode to an empty dict."""
        mock_http_client.request.return_value = mock_response(None, status_code=204)

        assert await authorized_client.request("POST", "https://example.test") == {}

    @pytest.mark.asyncio
    async def test_should_raise_on_error_status(
        self,
        authorized_client: AuthorizedClient,
        mock_http_client: AsyncMock,
        mock_response,
    ) -> None:
        """Verify HTTP errors propagate to the caller."""
        response = mock_response({"error": "nope"}, status_code=403)
        response.raise_for_status = MagicMock(
            side_effect=httpx.HTTPStatusError("403", request=MagicMock(), response=response)
        )
        mock_http_client.request.return_value = response

        with pytest.raises(httpx.HTTPStatusError):
            await authorized_client.request("GET", "https://example.test")

    @pytest.mark.asyncio
    async def test_should_delete_with_bearer_token(
        self, authorized_client: AuthorizedClient, mock_http_client: AsyncMock
    ) -> None:
        """Verify DELETE carries the token and checks the status."""
        await authorized_client.delete("https://www.googleapis.com/drive/v3/files/f1")

        call = mock_http_client.delete.call_args
        assert call.args[0] == "https://www.googleapis.com/drive/v3/files/f1"
        assert call.kwargs["headers"]["Authorization"] == "Bearer bearer-abc"
        mock_http_client.delete.return_value.raise_for_status.assert_called_once()

    @pytest.mark.asyncio
    async def test_should_send_raw_body_with_extra_headers(
        self,
        authorized_client: AuthorizedClient,
        mock_http_client: AsyncMock,
        mock_response,
    ) -> None:
        """Verify raw requests keep the bearer token and return the response."""
        response = mock_response(None)
        response.content = b"\x00binary"
        mock_http_client.request.return_value = response

        result = await authorized_client.raw_request(
            "POST",
            "https://www.googleapis.com/upload/drive/v3/files",
            params={"uploadType": "multipart"},
            content=b"body",
            headers={"Content-Type": "multipart/related; boundary=b"},
        )

        assert result.content == b"\x00binary"
        kwargs = mock_http_client.request.call_args.kwargs
        assert kwargs["content"] == b"body"
        assert kwargs["params"] == {"uploadType": "multipart"}
        assert kwargs["headers"]["Authorization"] == "Bearer bearer-abc"
        assert kwargs["headers"]["Content-Type"] == "multipart/related; boundary=b"
        response.raise_for_status.assert_called_once()
