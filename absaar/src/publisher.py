"""
Publishes flat (key, value, unit) tuples into a state store.

The first publish of a key declares its metadata (display name, type, role,
unit, read-only) through ``declare_if_absent``; later publishes only write
the value. Values are always written with ``ack=True`` because they come
from the inverter cloud, not from a user command.

A failure on one key is logged and reported through the return value; it
never prevents other keys from publishing.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from absaar.src.store import StateObject

if TYPE_CHECKING:
    from absaar.src.store import StateStore

logger = logging.getLogger(__name__)

_UNIT_ROLES = {
    "W": "value.power",
    "V": "value.voltage",
    "A": "value.current",
    "Hz": "value.frequency",
    "°C": "value.temperature",
    "kWh": "value.energy",
}


def infer_object(key: str, value: Any, unit: str | None, name: str | None) -> StateObject:
    """Build the metadata for a key from the first value published to it."""
    if isinstance(value, (bool, int, float)):
        value_type = "number"
        role = _UNIT_ROLES.get(unit or "", "value")
    else:
        value_type = "string"
        role = "text"
    return StateObject(
        name=name or key.rsplit(".", 1)[-1],
        type=value_type,
        role=role,
        unit=unit,
        read=True,
        write=False,
    )


class StatePublisher:
    """Idempotent upsert of telemetry values into a :class:`StateStore`.

    Args:
        store: Destination store.
    """

    def __init__(self, store: StateStore) -> None:
        self._store = store
        self._declared: set[str] = set()

    async def publish(
        self,
        key: str,
        value: Any,
        unit: str | None = None,
        name: str | None = None,
    ) -> bool:
        """Declare *key* if needed and write *value* acknowledged.

        Returns:
            True if the value was written, False if the store failed.
        """
        try:
            if key not in self._declared:
                await self._store.declare_if_absent(key, infer_object(key, value, unit, name))
                self._declared.add(key)
            await self._store.set_state(key, value, ack=True)
        except Exception:
            logger.warning("Failed to publish %s", key, exc_info=True)
            return False
        return True
