"""
Async HTTP client for the Absaar / mini-ems inverter cloud API.

Wraps one shared ``httpx.AsyncClient`` and exposes the login call plus the
three telemetry queries used by a polling cycle. Every call is a JSON POST;
after login the raw session token is sent as the ``Authorization`` header.

Errors never propagate to the caller. Each operation logs the problem and
returns ``None`` (login or fetch failed) so the cycle can decide how far to
continue. A fetch whose body carries no ``rows`` returns an empty list,
which callers treat as "no data" rather than a failure.

Operations:
- login(username, password): Exchange credentials for a Session.
- fetch_stations(session): List the account's power stations.
- fetch_collectors(session, power_id): List collectors of one station.
- fetch_inverter_readings(session, power_id, inverter_id): Latest readings.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from absaar.src.models import Collector, InverterReading, Session, Station

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

BASE_URL = "https://mini-ems.com:8081"

LOGIN_PATH = "/dn/userLogin"
STATIONS_PATH = "/dn/power/station/listApp"
COLLECTORS_PATH = "/dn/power/collector/listByApp"
INVERTER_DATA_PATH = "/dn/power/inverterData/inverterDatalist"

HTTP_TIMEOUT_S: float = 30.0
"""Per-request timeout in seconds."""

DEFAULT_HEADERS = {
    "User-Agent": "okhttp-okgo/jeasonlzy",
    "Content-Type": "application/json;charset=utf-8",
}


def create_http_client(base_url: str = BASE_URL) -> httpx.AsyncClient:
    """Create the shared transport for all Absaar API calls.

    The mini-ems endpoint serves a certificate that does not chain to a
    public root, so certificate verification is disabled for this client
    only. No other client in the daemon is built with ``verify=False``.
    """
    return httpx.AsyncClient(
        base_url=base_url,
        headers=DEFAULT_HEADERS,
        timeout=HTTP_TIMEOUT_S,
        verify=False,
    )


class AbsaarClient:
    """Absaar cloud API client over a single reusable HTTP transport.

    The transport is read-only after construction and may be shared by
    concurrent requests. Sessions are never stored on the client; every
    fetch takes the :class:`Session` it should authenticate with.

    Args:
        http_client: Transport to use. Defaults to :func:`create_http_client`.

    Usage::

        async with AbsaarClient() as client:
            session = await client.login("user", "secret")
            if session is not None:
                stations = await client.fetch_stations(session)
    """

    def __init__(self, http_client: httpx.AsyncClient | None = None) -> None:
        self._http = http_client if http_client is not None else create_http_client()

    async def __aenter__(self) -> AbsaarClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP transport."""
        await self._http.aclose()

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def login(self, username: str, password: str) -> Session | None:
        """Exchange credentials for a session token and account id.

        Succeeds only on HTTP 200 with a non-empty ``token`` and ``userId``
        in the body. No retry is attempted here.

        Returns:
            The new :class:`Session`, or ``None`` if login failed.
        """
        try:
            response = await self._http.post(
                LOGIN_PATH,
                json={"username": username, "password": password},
            )
        except httpx.HTTPError as exc:
            logger.error("Error during login: %s", exc)
            return None

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.status_code != 200 or not isinstance(body, dict) or not body.get("token"):
            logger.error(
                "Login failed (HTTP %d): %s",
                response.status_code,
                body if body is not None else response.text[:200],
            )
            return None

        try:
            session = Session.model_validate(body)
        except ValidationError as exc:
            logger.error("Login response malformed: %s", exc)
            return None

        if not session.account_id:
            logger.error("Login response has no userId: %s", body)
            return None

        logger.info("Logged in to Absaar cloud as account %s", session.account_id)
        return session

    # ------------------------------------------------------------------
    # Telemetry queries
    # ------------------------------------------------------------------

    async def fetch_stations(self, session: Session) -> list[Station] | None:
        """List the power stations of the session's account."""
        rows = await self._post_rows(
            STATIONS_PATH,
            {"userId": session.account_id},
            session,
            what="stations",
        )
        if rows is None:
            return None
        try:
            return [Station.model_validate(row) for row in rows]
        except ValidationError as exc:
            logger.warning("Malformed station row: %s", exc)
            return None

    async def fetch_collectors(
        self,
        session: Session,
        power_id: str,
    ) -> list[Collector] | None:
        """List the collectors attached to station *power_id*."""
        rows = await self._post_rows(
            COLLECTORS_PATH,
            {"powerId": power_id},
            session,
            what=f"collectors of station {power_id}",
        )
        if rows is None:
            return None
        try:
            return [Collector.model_validate(row) for row in rows]
        except ValidationError as exc:
            logger.warning("Malformed collector row for station %s: %s", power_id, exc)
            return None

    async def fetch_inverter_readings(
        self,
        session: Session,
        power_id: str,
        inverter_id: str,
    ) -> list[InverterReading] | None:
        """Fetch the latest readings of inverter *inverter_id*.

        The first row is the current snapshot.
        """
        rows = await self._post_rows(
            INVERTER_DATA_PATH,
            {"powerId": power_id, "inverterId": inverter_id},
            session,
            what=f"inverter data for {inverter_id}",
        )
        if rows is None:
            return None
        try:
            return [
                InverterReading.from_row(row, power_id=power_id, inverter_id=inverter_id)
                for row in rows
                if isinstance(row, dict)
            ]
        except ValidationError as exc:
            logger.warning("Malformed inverter data for %s: %s", inverter_id, exc)
            return None

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _post_rows(
        self,
        path: str,
        payload: dict[str, Any],
        session: Session,
        *,
        what: str,
    ) -> list[Any] | None:
        """POST *payload* and return the ``rows`` list of the response body.

        Returns:
            The rows (possibly empty), or ``None`` on transport error,
            non-200 status or a body that is not a JSON object.
        """
        try:
            response = await self._http.post(
                path,
                json=payload,
                headers={"Authorization": session.token},
            )
        except httpx.HTTPError as exc:
            logger.warning("Error fetching %s: %s", what, exc)
            return None

        if response.status_code != 200:
            logger.warning("Error fetching %s (HTTP %d)", what, response.status_code)
            return None

        try:
            body = response.json()
        except ValueError:
            logger.warning("Error fetching %s: response is not JSON", what)
            return None

        if not isinstance(body, dict):
            logger.warning("Error fetching %s: unexpected body %r", what, body)
            return None

        rows = body.get("rows")
        if rows is None:
            return []
        if not isinstance(rows, list):
            logger.warning("Error fetching %s: rows is %s, not a list", what, type(rows).__name__)
            return None
        return rows
