"""
One polling cycle: login, station, collectors, inverter fan-out, publish.

Sequence:
1. Log in. A failed login ends the cycle; the next scheduled cycle retries.
2. Fetch stations and pick the one at ``station_index``. A failed fetch, an
   empty list or an out-of-range index ends the cycle with nothing published.
3. Publish the station's daily and total energy and its name right away, so
   they survive any failure further down.
4. Fetch the station's collectors. Failure or none ends the cycle here.
5. Fetch inverter readings for all collectors concurrently and wait for all
   of them. A failing collector is logged and skipped; its siblings still
   publish.
6. Publish the twelve known metrics of every collector that returned data.

No exception escapes :func:`run_cycle`.

CHANGELOG:
- 2026-10-19: Initial creation
- 2026-10-19: Station counts as published only when both energy totals are written

TODO:
- None
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from absaar.src.models import ENERGY_UNIT, METRIC_UNITS

if TYPE_CHECKING:
    from absaar.src.client import AbsaarClient
    from absaar.src.models import Collector, InverterReading, Session, Station
    from absaar.src.publisher import StatePublisher

logger = logging.getLogger(__name__)


@dataclass
class CycleResult:
    """Outcome counters of one cycle, for logging and the health file."""

    station_published: bool = False
    collectors_total: int = 0
    collectors_published: int = 0
    keys_published: int = 0


async def run_cycle(
    *,
    client: AbsaarClient,
    publisher: StatePublisher,
    username: str,
    password: str,
    station_index: int = 0,
) -> CycleResult:
    """Run one complete fetch-and-publish cycle.

    Args:
        client: API client holding the shared HTTP transport.
        publisher: Destination for published values.
        username: Absaar account name.
        password: Absaar account password.
        station_index: Zero-based index of the station to publish.

    Returns:
        Counters describing how far the cycle got.
    """
    result = CycleResult()
    try:
        await _run_cycle(
            client=client,
            publisher=publisher,
            username=username,
            password=password,
            station_index=station_index,
            result=result,
        )
    except Exception:
        logger.error("Polling cycle error", exc_info=True)
    return result


async def _run_cycle(
    *,
    client: AbsaarClient,
    publisher: StatePublisher,
    username: str,
    password: str,
    station_index: int,
    result: CycleResult,
) -> None:
    session = await client.login(username, password)
    if session is None:
        logger.error("Authentication failed, skipping cycle")
        return

    stations = await client.fetch_stations(session)
    if stations is None:
        logger.error("Station fetch failed, skipping cycle")
        return
    if not stations:
        logger.warning("No stations found for account %s", session.account_id)
        return
    if station_index >= len(stations):
        logger.error(
            "Station index %d out of range (%d stations found)",
            station_index,
            len(stations),
        )
        return

    station = stations[station_index]
    await _publish_station(publisher, station, result)

    collectors = await client.fetch_collectors(session, station.power_id)
    if not collectors:
        logger.warning("No collectors found for station %s", station.name or station.power_id)
        return
    result.collectors_total = len(collectors)

    readings = await asyncio.gather(
        *(_fetch_reading(client, session, station.power_id, c) for c in collectors),
        return_exceptions=True,
    )

    for collector, reading in zip(collectors, readings, strict=True):
        if isinstance(reading, BaseException):
            logger.warning(
                "Inverter fetch for collector %s raised: %s",
                collector.name or collector.inverter_id,
                reading,
            )
            continue
        if reading is None:
            continue
        await _publish_reading(publisher, collector, reading, result)
        result.collectors_published += 1

    logger.info(
        "Cycle complete: station=%s collectors=%d/%d keys=%d",
        station.power_id,
        result.collectors_published,
        result.collectors_total,
        result.keys_published,
    )


async def _fetch_reading(
    client: AbsaarClient,
    session: Session,
    power_id: str,
    collector: Collector,
) -> InverterReading | None:
    """Return the current reading of one collector's inverter, or None."""
    readings = await client.fetch_inverter_readings(session, power_id, collector.inverter_id)
    if not readings:
        logger.warning("No inverter data found for %s", collector.name or collector.inverter_id)
        return None
    return readings[0]


async def _publish_station(
    publisher: StatePublisher,
    station: Station,
    result: CycleResult,
) -> None:
    base = f"station.{station.power_id}"
    label = station.name or station.power_id
    outcomes = [
        await publisher.publish(
            f"{base}.dailyPower",
            station.daily_energy,
            ENERGY_UNIT,
            f"{label} dailyPowerGeneration",
        ),
        await publisher.publish(
            f"{base}.totalPower",
            station.total_energy,
            ENERGY_UNIT,
            f"{label} totalPowerGeneration",
        ),
        await publisher.publish(f"{base}.name", station.name, None, f"{label} name"),
    ]
    result.keys_published += sum(outcomes)
    # The name is metadata; only the two energy totals count as station data.
    result.station_published = all(outcomes[:2])


async def _publish_reading(
    publisher: StatePublisher,
    collector: Collector,
    reading: InverterReading,
    result: CycleResult,
) -> None:
    base = f"inv.{reading.power_id}.{reading.inverter_id}"
    label = collector.name or reading.inverter_id
    for metric, unit in METRIC_UNITS.items():
        if await publisher.publish(
            f"{base}.{metric}",
            reading.metrics.get(metric, 0.0),
            unit,
            f"{label} {metric}",
        ):
            result.keys_published += 1
