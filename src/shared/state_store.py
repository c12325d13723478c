"""Ephemeral TTL-keyed state shared by the risk checks.

The store is shared with other subsystems (rate limiting, password history),
so isolation is by key prefix only. Values are plain strings; structured
values are JSON encoded through ``load_json`` / ``dump_json``.
"""

import json
from typing import Any, Protocol

import redis.asyncio as aioredis
import structlog
from redis.exceptions import RedisError

from .errors import StateStoreError

logger = structlog.get_logger()


class StateStore(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def keys(self, pattern: str) -> list[str]: ...

    async def increment(
        self, key: str, amount: float = 1, ttl_seconds: int | None = None
    ) -> float: ...


async def load_json(store: StateStore, key: str, default: Any = None) -> Any:
    """Read and decode a JSON value, returning ``default`` when absent or corrupt."""
    raw = await store.get(key)
    if raw is None:
        return default
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        logger.warning("state_store_corrupt_value", key=key)
        return default


async def dump_json(
    store: StateStore, key: str, value: Any, ttl_seconds: int | None = None
) -> None:
    await store.set(key, json.dumps(value, separators=(",", ":")), ttl_seconds)


def escape_pattern(value: str) -> str:
    """Escape glob metacharacters so ``value`` only matches itself in ``keys()``."""
    return "".join(f"\\{ch}" if ch in "\\*?[]" else ch for ch in value)


class RedisStateStore:
    """StateStore backed by ``redis.asyncio``.

    Redis failures are re-raised as StateStoreError so the orchestrator can
    apply its failure policy without knowing about the driver.
    """

    def __init__(self, client: aioredis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisStateStore":
        return cls(aioredis.from_url(url, decode_responses=True))

    async def get(self, key: str) -> str | None:
        try:
            value = await self._client.get(key)
        except RedisError as exc:
            raise StateStoreError(f"get {key} failed: {exc}") from exc
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        try:
            if ttl_seconds:
                await self._client.set(key, value, ex=int(ttl_seconds))
            else:
                await self._client.set(key, value)
        except RedisError as exc:
            raise StateStoreError(f"set {key} failed: {exc}") from exc

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(key)
        except RedisError as exc:
            raise StateStoreError(f"delete {key} failed: {exc}") from exc

    async def keys(self, pattern: str) -> list[str]:
        try:
            found = [key async for key in self._client.scan_iter(match=pattern)]
        except RedisError as exc:
            raise StateStoreError(f"scan {pattern} failed: {exc}") from exc
        return sorted(k.decode("utf-8") if isinstance(k, bytes) else k for k in found)

    async def increment(
        self, key: str, amount: float = 1, ttl_seconds: int | None = None
    ) -> float:
        try:
            if isinstance(amount, int):
                value = await self._client.incrby(key, amount)
            else:
                value = await self._client.incrbyfloat(key, amount)
            if ttl_seconds:
                # Only the first increment of a window sets the expiry
                await self._client.expire(key, int(ttl_seconds), nx=True)
        except RedisError as exc:
            raise StateStoreError(f"increment {key} failed: {exc}") from exc
        return float(value)

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except RedisError:
            logger.warning("redis_ping_failed", exc_info=True)
            return False

    async def close(self) -> None:
        await self._client.aclose()
