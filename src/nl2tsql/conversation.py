"""Per-user conversation memory.

Each user has an ordered list of ``{"role", "content"}`` messages.

Design:
- Redis list per user (``conversation:<user_id>``) when REDIS_URL is set
- In-memory fallback guarded by a lock when Redis is unavailable
- Bounded: only the newest ``max_messages`` are kept
- Redis keys expire ``ttl_seconds`` after the last append

Example:
    >>> store = ConversationStore(max_messages=4)
    >>> store.append("u1", "user", "How many orders last week?")
    >>> store.history("u1")
    [{'role': 'user', 'content': 'How many orders last week?'}]
"""
import json
import logging
from collections import defaultdict, deque
from threading import Lock
from typing import Any, Dict, Optional

import redis

from .config import settings
from .errors import StorageError

logger = logging.getLogger("nl2tsql")

VALID_ROLES = ("user", "assistant")


class ConversationStore:
    """Bounded per-user message history."""

    def __init__(
        self,
        max_messages: int = settings.history_max_messages,
        ttl_seconds: int = settings.history_ttl_seconds,
        redis_url: Optional[str] = settings.redis_url
    ):
        """Initialize conversation store.

        Args:
            max_messages: Messages kept per user; oldest dropped first
            ttl_seconds: Redis expiry after the last append
            redis_url: Redis connection URL (default: in-memory only)
        """
        if max_messages < 1:
            raise ValueError("max_messages must be at least 1")
        self._max_messages = max_messages
        self._ttl_seconds = ttl_seconds

        self._messages: Dict[str, deque] = defaultdict(lambda: deque(maxlen=self._max_messages))
        self._lock = Lock()

        self._redis: Optional[Any] = None
        if redis_url:
            try:
                self._redis = redis.from_url(
                    redis_url,
                    decode_responses=True,
                    socket_connect_timeout=1,
                    socket_timeout=1
                )
                self._redis.ping()
            except redis.RedisError as e:
                logger.warning("Redis unavailable for conversation memory, using in-memory store: %s", e)
                self._redis = None

    @property
    def uses_redis(self) -> bool:
        return self._redis is not None

    def append(self, user_id: str, role: str, content: str) -> None:
        """Append one message to the user's history.

        Raises:
            ValueError: If role is not "user" or "assistant"
        """
        if role not in VALID_ROLES:
            raise ValueError(f"role must be one of {VALID_ROLES}, got {role!r}")
        message = {"role": role, "content": content}

        if self._redis is not None:
            try:
                self._append_redis(user_id, message)
                return
            except redis.RedisError as e:
                logger.warning("Redis append failed, falling back to memory: %s", e)

        with self._lock:
            self._messages[user_id].append(message)

    def history(self, user_id: str, limit: Optional[int] = None) -> list[dict]:
        """Return the user's messages, oldest first.

        Args:
            user_id: User identifier
            limit: Return only the newest ``limit`` messages
        """
        messages = None
        if self._redis is not None:
            try:
                raw = self._redis.lrange(self._key(user_id), 0, -1)
                messages = [json.loads(item) for item in raw]
            except redis.RedisError as e:
                logger.warning("Redis read failed, falling back to memory: %s", e)

        if messages is None:
            with self._lock:
                messages = list(self._messages.get(user_id, ()))

        if limit is not None:
            messages = messages[-limit:] if limit > 0 else []
        return messages

    def clear(self, user_id: str) -> None:
        """Forget everything stored for the user."""
        with self._lock:
            self._messages.pop(user_id, None)
        if self._redis is not None:
            try:
                self._redis.delete(self._key(user_id))
            except redis.RedisError as e:
                raise StorageError(
                    f"Failed to clear conversation for {user_id}: {e}",
                    details={"user_id": user_id, "operation": "delete"}
                )

    def _append_redis(self, user_id: str, message: dict) -> None:
        key = self._key(user_id)
        pipe = self._redis.pipeline()
        pipe.rpush(key, json.dumps(message))
        pipe.ltrim(key, -self._max_messages, -1)
        pipe.expire(key, self._ttl_seconds)
        pipe.execute()

    @staticmethod
    def _key(user_id: str) -> str:
        return f"conversation:{user_id}"
