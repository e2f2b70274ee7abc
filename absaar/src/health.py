"""
Health file writer for the polling daemon.

Writes a JSON health file at a configurable path with three fields:
- last_cycle_ts: ISO timestamp of the most recent finished cycle.
- last_success_ts: ISO timestamp of the most recent cycle that published
  station data.
- keys_published: Number of keys written by the most recent cycle.

The file is rewritten after every cycle, giving Docker HEALTHCHECK or other
monitoring a simple liveness signal. Stale timestamps are the only offline
indicator; there is no separate status flag.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from absaar.src.cycle import CycleResult


class HealthWriter:
    """Writes polling health status to a JSON file.

    Args:
        path: Filesystem path for the health JSON file. Accepts str or Path.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._last_cycle_ts: str | None = None
        self._last_success_ts: str | None = None
        self._keys_published: int = 0

    def record_cycle(self, result: CycleResult) -> None:
        """Record a finished cycle and write the health file."""
        now = datetime.now(tz=UTC).isoformat()
        self._last_cycle_ts = now
        if result.station_published:
            self._last_success_ts = now
        self._keys_published = result.keys_published
        self._write()

    def _write(self) -> None:
        """Write the health JSON file with current state."""
        data = {
            "last_cycle_ts": self._last_cycle_ts,
            "last_success_ts": self._last_success_ts,
            "keys_published": self._keys_published,
        }
        self.path.write_text(json.dumps(data))
