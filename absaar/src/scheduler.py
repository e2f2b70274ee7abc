"""
Fixed-interval scheduler that drives polling cycles.

On start the credentials are validated. Missing credentials leave the
scheduler idle for the rest of the run and record a ConfigError; nothing is
retried. Otherwise one cycle is launched immediately and a new one every
``POLL_INTERVAL_S`` seconds after that.

Each cycle runs as its own asyncio task. A cycle is expected to finish well
inside the interval, but nothing stops two cycles from overlapping if one
runs long; the scheduler only logs a warning when that happens.

Stopping cancels the interval timer and then waits for any in-flight cycle
to finish. Cycles themselves are never cancelled.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from absaar.src.config import ConfigError
from absaar.src.cycle import CycleResult, run_cycle

if TYPE_CHECKING:
    from absaar.src.client import AbsaarClient
    from absaar.src.config import AbsaarSettings
    from absaar.src.publisher import StatePublisher

logger = logging.getLogger(__name__)

POLL_INTERVAL_S: float = 120.0
"""Seconds between the starts of two consecutive cycles."""


class PollScheduler:
    """Runs :func:`~absaar.src.cycle.run_cycle` on a fixed interval.

    Args:
        settings: Daemon settings supplying credentials and station index.
        client: Shared API client.
        publisher: Shared state publisher.
        interval_s: Seconds between cycle starts.
        on_cycle: Optional callback invoked with every finished cycle's result.
    """

    def __init__(
        self,
        *,
        settings: AbsaarSettings,
        client: AbsaarClient,
        publisher: StatePublisher,
        interval_s: float = POLL_INTERVAL_S,
        on_cycle: Callable[[CycleResult], None] | None = None,
    ) -> None:
        self._settings = settings
        self._client = client
        self._publisher = publisher
        self._interval_s = interval_s
        self._on_cycle = on_cycle
        self._timer: asyncio.Task[None] | None = None
        self._cycles: set[asyncio.Task[CycleResult]] = set()
        self.config_error: ConfigError | None = None

    @property
    def is_running(self) -> bool:
        """True while the interval timer is active."""
        return self._timer is not None and not self._timer.done()

    @property
    def in_flight(self) -> int:
        """Number of cycles currently running."""
        return len(self._cycles)

    def start(self) -> bool:
        """Validate credentials and start the interval timer.

        Must be called from a running event loop.

        Returns:
            True if polling started, False if the configuration is unusable.
        """
        try:
            self._settings.validate_credentials()
        except ConfigError as exc:
            self.config_error = exc
            logger.error("Configuration error, polling disabled: %s", exc)
            return False

        if self.is_running:
            return True
        self._timer = asyncio.create_task(self._tick_loop())
        return True

    async def stop(self) -> None:
        """Cancel the timer and wait for in-flight cycles to finish."""
        if self._timer is not None:
            self._timer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._timer
            self._timer = None

        if self._cycles:
            logger.info("Waiting for %d in-flight cycle(s) to finish", len(self._cycles))
            await asyncio.gather(*self._cycles, return_exceptions=True)
        logger.info("Poll scheduler stopped")

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _tick_loop(self) -> None:
        logger.info("Poll scheduler started (interval=%ss)", self._interval_s)
        while True:
            self._launch_cycle()
            await asyncio.sleep(self._interval_s)

    def _launch_cycle(self) -> None:
        if self._cycles:
            logger.warning(
                "Previous cycle still running, starting a new one anyway (%d in flight)",
                len(self._cycles),
            )
        task = asyncio.create_task(self._run_one())
        self._cycles.add(task)
        task.add_done_callback(self._cycles.discard)

    async def _run_one(self) -> CycleResult:
        result = await run_cycle(
            client=self._client,
            publisher=self._publisher,
            username=self._settings.username,
            password=self._settings.password,
            station_index=self._settings.station_index,
        )
        if self._on_cycle is not None:
            try:
                self._on_cycle(result)
            except Exception:
                logger.warning("Cycle callback failed", exc_info=True)
        return result
