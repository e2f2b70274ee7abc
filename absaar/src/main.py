"""
Polling daemon entrypoint for the Absaar cloud bridge.

Builds the long-lived components (state store, API client with its shared
HTTP transport, publisher, scheduler), starts the scheduler and then waits
for SIGTERM/SIGINT. On shutdown the interval timer is cancelled, any
in-flight cycle is allowed to finish, and the client and store are closed.

Missing credentials do not terminate the process: the scheduler stays idle,
the configuration error is logged, and the daemon waits for a shutdown
signal like in normal operation.

Structured JSON logging is used for all events. A HealthWriter instance
records the outcome of every cycle.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import signal
import sys
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from pydantic import ValidationError

if TYPE_CHECKING:
    from absaar.src.config import AbsaarSettings
    from absaar.src.scheduler import PollScheduler

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Structured JSON logging setup
# ---------------------------------------------------------------------------


class JsonFormatter(logging.Formatter):
    """Minimal JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


def configure_logging(level: int = logging.INFO) -> None:
    """Configure structured JSON logging for the daemon.

    Sets up the root logger with a JSON-formatted handler writing to stderr.
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)
    # httpx logs every request at INFO, including the login call.
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _masked_secret(value: str | None) -> str:
    """Return a short non-reversible fingerprint for diagnostics."""
    if not value:
        return "empty"
    digest = hashlib.sha256(value.encode("utf-8")).hexdigest()[:10]
    return f"len={len(value)} sha256={digest}"


def log_config_summary(settings: AbsaarSettings) -> None:
    """Log a config summary at startup, excluding secrets."""
    logger.info(
        "Absaar daemon starting with config: "
        "username=%s, station_index=%s, state_backend=%s, "
        "state_prefix=%s, health_path=%s, password_masked=%s",
        settings.username or "<unset>",
        settings.station_index,
        settings.state_backend,
        settings.state_prefix,
        settings.health_path or "<disabled>",
        _masked_secret(settings.password),
    )


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------


async def run_until_shutdown(
    scheduler: PollScheduler,
    shutdown_event: asyncio.Event,
) -> None:
    """Start *scheduler*, wait for *shutdown_event*, then stop it."""
    if not scheduler.start():
        logger.error("Polling is idle until restart with valid credentials")
    await shutdown_event.wait()
    logger.info("Shutting down")
    await scheduler.stop()


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


async def async_main() -> int:
    """Async entrypoint: load config, build components, run until signalled.

    Returns:
        Process exit status.
    """
    configure_logging()

    from absaar.src.client import AbsaarClient
    from absaar.src.config import AbsaarSettings
    from absaar.src.health import HealthWriter
    from absaar.src.publisher import StatePublisher
    from absaar.src.scheduler import PollScheduler
    from absaar.src.store import build_store

    try:
        settings = AbsaarSettings()
    except ValidationError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 1
    log_config_summary(settings)

    shutdown_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(
            sig,
            lambda: _handle_signal(shutdown_event),
        )

    store = build_store(
        settings.state_backend,
        redis_url=settings.redis_url,
        prefix=settings.state_prefix,
    )
    health = HealthWriter(settings.health_path) if settings.health_path else None

    try:
        async with AbsaarClient() as client:
            scheduler = PollScheduler(
                settings=settings,
                client=client,
                publisher=StatePublisher(store),
                on_cycle=health.record_cycle if health is not None else None,
            )
            await run_until_shutdown(scheduler, shutdown_event)
    finally:
        await store.close()

    logger.info("Shutdown complete")
    return 0


def _handle_signal(shutdown_event: asyncio.Event) -> None:
    """Handle SIGTERM/SIGINT by setting the shutdown event."""
    logger.info("Received shutdown signal, initiating graceful shutdown")
    shutdown_event.set()


def main() -> None:
    """Synchronous entrypoint for the polling daemon."""
    sys.exit(asyncio.run(async_main()))


if __name__ == "__main__":
    main()
