"""Redis-backed OAuth token storage keyed by session.

Storage Layout:
    oauth_tokens:{session_id} -> JSON-serialized TokenRecord, TTL 30 days

Each write replaces the previous record for the session and resets the TTL.
Records expire from Redis after 30 days regardless of the access token's own
expiry. There is no delete or listing; sessions are opaque and
self-expiring.

The Redis connection is established lazily on first use and reused for the
life of the process. A failed connection attempt is not remembered; the next
call tries again.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Any

import redis.asyncio as redis
from pydantic import ValidationError
from redis.exceptions import RedisError

from workspace_mcp.auth.models import TokenRecord
from workspace_mcp.errors import StoreUnavailable, TokenDecodeError

logger = logging.getLogger(__name__)

KEY_PREFIX = "oauth_tokens:"
TOKEN_TTL_SECONDS = 60 * 60 * 24 * 30


class TokenStorage:
    """Session-keyed token store on Redis.

    Attributes:
        redis_url: Connection URL for the Redis server.

    Example:
        ```python
        storage = TokenStorage("redis://localhost:6379/0")

        await storage.put("sess-42", record)

        stored = await storage.get("sess-42")
        if stored is None:
            print("Not authenticated")
        ```
    """

    def __init__(
        self,
        redis_url: str,
        client_factory: Callable[..., Any] | None = None,
    ) -> None:
        """Initialize token storage.

        Args:
            redis_url: Redis connection URL.
            client_factory: Callable building a client from a URL. Defaults to
                ``redis.asyncio.from_url``.
        """
        self.redis_url = redis_url
        self._client_factory = client_factory or redis.from_url
        self._client: Any = None
        self._connect_lock = asyncio.Lock()

    @staticmethod
    def key_for(session_id: str) -> str:
        """Derive the Redis key for a session.

        Raises:
            ValueError: If session_id is empty.
        """
        if not session_id:
            raise ValueError("session_id must be a non-empty string")
        return f"{KEY_PREFIX}{session_id}"

    async def _get_client(self) -> Any:
        """Get or create the shared Redis client.

        Raises:
            StoreUnavailable: If the server cannot be reached.
        """
        if self._client is not None:
            return self._client

        async with self._connect_lock:
            if self._client is not None:
                return self._client

            client = self._client_factory(self.redis_url, decode_responses=True)
            try:
                await client.ping()
            except (RedisError, OSError) as e:
                logger.error("Failed to connect to Redis: %s", e)
                await client.aclose()
                raise StoreUnavailable("Token store is unavailable") from e

            logger.info("Connected to Redis token store")
            self._client = client
            return client

    async def put(self, session_id: str, record: TokenRecord) -> str:
        """Store a token record, replacing any previous one.

        Args:
            session_id: Session identifier.
            record: Token record to persist.

        Returns:
            The Redis key written.

        Raises:
            StoreUnavailable: If the write fails.
        """
        key = self.key_for(session_id)
        client = await self._get_client()

        logger.info("Storing OAuth tokens for session %s", session_id)
        try:
            await client.set(key, record.model_dump_json(), ex=TOKEN_TTL_SECONDS)
        except RedisError as e:
            logger.error("Failed to store tokens for session %s: %s", session_id, e)
            raise StoreUnavailable("Failed to store tokens") from e

        return key

    async def get(self, session_id: str) -> TokenRecord | None:
        """Retrieve the token record for a session.

        Args:
            session_id: Session identifier.

        Returns:
            TokenRecord if present, None if absent or expired.

        Raises:
            StoreUnavailable: If the read fails.
            TokenDecodeError: If the stored payload is malformed.
        """
        key = self.key_for(session_id)
        client = await self._get_client()

        try:
            payload = await client.get(key)
        except RedisError as e:
            logger.error("Failed to retrieve tokens for session %s: %s", session_id, e)
            raise StoreUnavailable("Failed to retrieve tokens") from e

        if payload is None:
            logger.warning("No OAuth tokens found for session %s", session_id)
            return None

        try:
            return TokenRecord.model_validate_json(payload)
        except ValidationError as e:
            logger.error("Stored tokens for session %s are corrupted", session_id)
            raise TokenDecodeError(f"Stored token record for '{session_id}' is malformed") from e

    async def ping(self) -> bool:
        """Check that the token store is reachable.

        Raises:
            StoreUnavailable: If the server cannot be reached.
        """
        client = await self._get_client()
        try:
            return bool(await client.ping())
        except RedisError as e:
            raise StoreUnavailable("Token store is unavailable") from e

    async def close(self) -> None:
        """Close the Redis connection if one is open."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
