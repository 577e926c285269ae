"""Authorized Google API client bound to one session's credentials."""

from typing import Any

import httpx
from google.oauth2.credentials import Credentials


class AuthorizedClient:
    """HTTP client for Google APIs carrying a session's bearer token.

    Instances are built fresh for every API operation by
    ``OAuthManager.authenticate``; only the underlying connection pool is shared.

    Attributes:
        session_id: Session the credentials were loaded from.
        credentials: Google OAuth2 credentials for the session.
    """

    def __init__(
        self,
        session_id: str,
        credentials: Credentials,
        http_client: httpx.AsyncClient,
    ) -> None:
        self.session_id = session_id
        self.credentials = credentials
        self._http_client = http_client

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.credentials.token}",
            "Accept": "application/json",
        }
        if extra:
            headers.update(extra)
        return headers

    async def request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        json_data: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Make an authenticated request and decode the JSON body.

        Args:
            method: HTTP method (GET, POST, etc.).
            url: Full URL to request.
            params: Optional query parameters.
            json_data: Optional JSON body data.

        Returns:
            JSON response as a dictionary; empty for bodiless responses.

        Raises:
            httpx.HTTPStatusError: If the request fails.
        """
        response = await self._http_client.request(
            method=method,
            url=url,
            params=params,
            json=json_data,
            headers=self._headers(),
        )
        response.raise_for_status()
        if response.status_code == 204 or not response.content:
            return {}
        result: dict[str, Any] = response.json()
        return result

    async def raw_request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Make an authenticated request with a raw body and return the response.

        Used for media uploads and downloads, where neither side is JSON.

        Raises:
            httpx.HTTPStatusError: If the request fails.
        """
        response = await self._http_client.request(
            method=method,
            url=url,
            params=params,
            content=content,
            headers=self._headers(headers),
        )
        response.raise_for_status()
        return response

    async def delete(self, url: str) -> None:
        """Make an authenticated DELETE request.

        Raises:
            httpx.HTTPStatusError: If the request fails.
        """
        response = await self._http_client.delete(url, headers=self._headers())
        response.raise_for_status()
