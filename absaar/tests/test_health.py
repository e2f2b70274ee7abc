"""
Unit tests for the health writer module.

Tests verify:
- record_cycle() writes health.json with last_cycle_ts and keys_published.
- last_success_ts only moves when station data was published.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import json
from pathlib import Path

from absaar.src.cycle import CycleResult
from absaar.src.health import HealthWriter


class TestRecordCycle:
    def test_successful_cycle_writes_all_fields(self, tmp_path: Path) -> None:
        health_path = tmp_path / "health.json"
        writer = HealthWriter(health_path)

        writer.record_cycle(CycleResult(station_published=True, keys_published=15))

        data = json.loads(health_path.read_text())
        assert "T" in data["last_cycle_ts"]
        assert data["last_success_ts"] == data["last_cycle_ts"]
        assert data["keys_published"] == 15

    def test_failed_cycle_keeps_last_success(self, tmp_path: Path) -> None:
        health_path = tmp_path / "health.json"
        writer = HealthWriter(str(health_path))

        writer.record_cycle(CycleResult(station_published=True, keys_published=3))
        first_success = json.loads(health_path.read_text())["last_success_ts"]
        writer.record_cycle(CycleResult())

        data = json.loads(health_path.read_text())
        assert data["last_success_ts"] == first_success
        assert data["keys_published"] == 0

    def test_never_successful(self, tmp_path: Path) -> None:
        health_path = tmp_path / "health.json"

        HealthWriter(health_path).record_cycle(CycleResult())

        data = json.loads(health_path.read_text())
        assert data["last_success_ts"] is None
        assert data["last_cycle_ts"] is not None
