"""
Key-value state stores that receive published telemetry.

A store offers two operations, mirroring the host convention of separate
object metadata and state values:

- declare_if_absent(key, obj): Create the key's metadata unless it exists.
  Existing metadata is never touched.
- set_state(key, value, ack): Overwrite the key's current value.

Two implementations are provided:

- MemoryStateStore: In-process dicts, used for dry runs and tests.
- RedisStateStore: Shared Redis instance. Metadata lives as JSON in the
  ``<prefix>:objects`` hash (written with HSETNX) under field ``<key>``, and
  each value in its own ``<prefix>:state:<key>`` hash with ``val``, ``ack``
  and ``ts`` fields. Both use the same unprefixed key, so an objects field
  names its state hash directly.

CHANGELOG:
- 2026-10-19: Initial creation
- 2026-10-19: Objects-hash field uses the same unprefixed key as the state hash

TODO:
- None
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any, Literal, Protocol

import redis.asyncio as redis
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class StateObject(BaseModel):
    """Metadata declared once per published key.

    Attributes:
        name: Human readable display name.
        type: ``number`` or ``string``.
        role: Host role, e.g. ``value.power``.
        unit: Unit of measurement, or None for unitless values.
        read: Whether the host may read the value.
        write: Whether users may write the value. Always False here.
    """

    name: str
    type: Literal["number", "string"]
    role: str = "value"
    unit: str | None = None
    read: bool = True
    write: bool = False


class StateValue(BaseModel):
    """A stored value with its acknowledgement flag and write timestamp."""

    val: Any
    ack: bool
    ts: datetime


class StateStore(Protocol):
    """Interface the publisher writes through."""

    async def declare_if_absent(self, key: str, obj: StateObject) -> bool: ...

    async def set_state(self, key: str, value: Any, *, ack: bool) -> None: ...

    async def close(self) -> None: ...


def _join(prefix: str, key: str) -> str:
    return f"{prefix}.{key}" if prefix else key


class MemoryStateStore:
    """In-process store keeping objects and states in plain dicts.

    Args:
        prefix: Optional namespace prepended to every key.
    """

    def __init__(self, prefix: str = "") -> None:
        self._prefix = prefix
        self.objects: dict[str, StateObject] = {}
        self.states: dict[str, StateValue] = {}

    async def declare_if_absent(self, key: str, obj: StateObject) -> bool:
        full_key = _join(self._prefix, key)
        if full_key in self.objects:
            return False
        self.objects[full_key] = obj
        return True

    async def set_state(self, key: str, value: Any, *, ack: bool) -> None:
        self.states[_join(self._prefix, key)] = StateValue(
            val=value,
            ack=ack,
            ts=datetime.now(tz=UTC),
        )

    def value(self, key: str) -> Any:
        """Return the current value of *key*, or None if never set."""
        state = self.states.get(_join(self._prefix, key))
        return state.val if state is not None else None

    async def close(self) -> None:
        return None


class RedisStateStore:
    """Store backed by a Redis server.

    Args:
        client: An ``redis.asyncio.Redis`` instance. The store owns it and
            closes it in :meth:`close`.
        prefix: Namespace for all hashes and keys, e.g. ``absaar.0``.
    """

    def __init__(self, client: redis.Redis, prefix: str) -> None:
        self._client = client
        self._prefix = prefix

    @classmethod
    def from_url(cls, url: str, prefix: str) -> RedisStateStore:
        """Build a store from a Redis connection URL."""
        return cls(redis.from_url(url), prefix)

    @property
    def objects_key(self) -> str:
        return f"{self._prefix}:objects"

    def state_key(self, key: str) -> str:
        return f"{self._prefix}:state:{key}"

    async def declare_if_absent(self, key: str, obj: StateObject) -> bool:
        created = await self._client.hsetnx(
            self.objects_key,
            key,
            obj.model_dump_json(),
        )
        if created:
            logger.debug("Declared state object %s", key)
        return bool(created)

    async def set_state(self, key: str, value: Any, *, ack: bool) -> None:
        await self._client.hset(
            self.state_key(key),
            mapping={
                "val": json.dumps(value),
                "ack": "true" if ack else "false",
                "ts": datetime.now(tz=UTC).isoformat(),
            },
        )

    async def close(self) -> None:
        await self._client.aclose()


def build_store(backend: str, *, redis_url: str, prefix: str) -> StateStore:
    """Create the store selected by configuration.

    Raises:
        ValueError: If *backend* is not ``redis`` or ``memory``.
    """
    if backend == "redis":
        return RedisStateStore.from_url(redis_url, prefix)
    if backend == "memory":
        return MemoryStateStore(prefix)
    raise ValueError(f"Unknown state backend: {backend!r}")
