"""
ReadNote Server — Key-Value Store Client
==========================================

What:  Async Redis wrapper, explicit connection state, and FastAPI dependencies.
Why:   Centralizes all store access in one place, so handlers only ever see
       get/set/delete/list_keys/ping and a single "unavailable" condition.
How:   A StoreClient is built without I/O at app creation, connected in the
       background by the lifespan handler, and read from `app.state` by the
       `require_store` dependency on every API request.

Connection State:
    UNCONFIGURED ── no REDIS_URL; never leaves this state
    CONNECTING   ── URL given, connect() not finished yet
    READY        ── ping succeeded, commands allowed
    FAILED       ── connect() failed; failure_reason holds the cause

    Any command issued outside READY raises StorageUnavailableError at once
    (no waiting on sockets), which the API reports as 503.

Retry Strategy:
    Transport failures (connection reset, timeout) are retried with tenacity:
    store_max_attempts attempts, store_retry_wait seconds apart. When the
    budget is spent the command surfaces as StorageUnavailableError. Errors
    the server itself returns (wrong type, OOM, ...) are not retried and
    surface as StorageError.
"""

import logging
from enum import Enum
from typing import Any, List, Optional

from fastapi import Depends, Request
from redis.asyncio import Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from readnote.config import settings
from readnote.exceptions import StorageError, StorageUnavailableError

logger = logging.getLogger(__name__)

_TRANSPORT_ERRORS = (RedisConnectionError, RedisTimeoutError, ConnectionError, TimeoutError)


class StoreState(str, Enum):
    UNCONFIGURED = "unconfigured"
    CONNECTING = "connecting"
    READY = "ready"
    FAILED = "failed"


@retry(
    retry=retry_if_exception_type(_TRANSPORT_ERRORS),
    stop=stop_after_attempt(settings.store_max_attempts),
    wait=wait_fixed(settings.store_retry_wait),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
async def _call_with_retry(command, *args: Any) -> Any:
    return await command(*args)


class StoreClient:
    """
    Thin wrapper around a redis.asyncio connection.

    Values are plain strings (decode_responses=True); serialization is the
    caller's job. Pass `client` to wrap an already-connected Redis-compatible
    object (the instance starts READY); pass `url` to connect later.
    """

    def __init__(self, url: Optional[str] = None, client: Optional[Redis] = None):
        self.url = url
        self._client = client
        self.failure_reason: Optional[str] = None
        if client is not None:
            self.state = StoreState.READY
        elif url:
            self.state = StoreState.CONNECTING
        else:
            self.state = StoreState.UNCONFIGURED

    @classmethod
    def from_settings(cls) -> "StoreClient":
        return cls(url=settings.redis_url)

    @property
    def is_available(self) -> bool:
        return self.state is StoreState.READY and self._client is not None

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def connect(self) -> StoreState:
        """
        Open the connection and verify it with PING.

        Never raises: a bad URL or an unreachable server moves the client to
        FAILED and is logged. Calling connect() outside CONNECTING is a no-op.
        If the task is cancelled mid-connect, the half-open client is closed
        before the cancellation propagates.
        """
        if self.state is not StoreState.CONNECTING:
            return self.state

        client: Optional[Redis] = None
        connected = False
        try:
            client = Redis.from_url(
                self.url,
                decode_responses=True,
                socket_connect_timeout=settings.store_connect_timeout,
                socket_timeout=settings.store_connect_timeout,
            )
            await client.ping()
            connected = True
        except (RedisError, OSError, ValueError) as e:
            self.state = StoreState.FAILED
            self.failure_reason = str(e) or type(e).__name__
            logger.error("Redis connection failed: %s", self.failure_reason)
            return self.state
        finally:
            if not connected and client is not None:
                await client.aclose()

        self._client = client
        self.state = StoreState.READY
        logger.info("Redis connected")
        return self.state

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        if self.state is StoreState.READY:
            self.state = StoreState.CONNECTING if self.url else StoreState.UNCONFIGURED

    # ── Commands ──────────────────────────────────────────────────────────

    async def get(self, key: str) -> Optional[str]:
        return await self._run("get", key)

    async def set(self, key: str, value: str) -> None:
        await self._run("set", key, value)

    async def delete(self, *keys: str) -> int:
        """Delete keys in a single DEL; missing keys are not an error."""
        return await self._run("delete", *keys)

    async def list_keys(self, pattern: str) -> List[str]:
        return list(await self._run("keys", pattern))

    async def ping(self) -> bool:
        """
        Liveness probe. Returns False when the server does not answer;
        raises only if the client is not usable at all.
        """
        client = self._require_client()
        try:
            return bool(await _call_with_retry(client.ping))
        except (RedisError,) + _TRANSPORT_ERRORS as e:
            logger.warning("Redis ping failed: %s", e)
            return False

    # ── Internals ─────────────────────────────────────────────────────────

    def ensure_available(self) -> None:
        """Raise StorageUnavailableError unless the client is READY."""
        if not self.is_available:
            context = {"state": self.state.value}
            if self.failure_reason:
                context["reason"] = self.failure_reason
            raise StorageUnavailableError(context=context)

    def _require_client(self) -> Redis:
        self.ensure_available()
        return self._client

    async def _run(self, command: str, *args: Any) -> Any:
        client = self._require_client()
        try:
            return await _call_with_retry(getattr(client, command), *args)
        except _TRANSPORT_ERRORS as e:
            logger.error(
                "Redis %s failed after %d attempts: %s",
                command.upper(),
                settings.store_max_attempts,
                e,
            )
            raise StorageUnavailableError(
                context={"command": command, "error": str(e)},
            )
        except RedisError as e:
            logger.error("Redis %s error: %s", command.upper(), e)
            raise StorageError(message=str(e), context={"command": command})


# ── FastAPI Dependencies ──────────────────────────────────────────────────

def get_store(request: Request) -> StoreClient:
    """The process-wide store client, set on app.state by create_app()."""
    return request.app.state.store


async def require_store(store: StoreClient = Depends(get_store)) -> StoreClient:
    """
    Dependency guarding every /api route.

    Runs before body parsing and routing to a handler, so an unconfigured or
    disconnected store answers 503 for any method on any /api path.
    """
    store.ensure_available()
    return store
