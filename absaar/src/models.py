"""
Pydantic models for Absaar cloud API responses.

Field aliases match the camelCase names the API returns, so rows can be
passed straight to ``model_validate``. Identifiers come back as numbers or
strings depending on the endpoint and are normalised to ``str``; missing or
null numeric values default to 0.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

# Known inverter metrics and their units, in publish order.
METRIC_UNITS: dict[str, str] = {
    "acPower": "W",
    "acVoltage": "V",
    "acFrequency": "Hz",
    "pv1Power": "W",
    "pv2Power": "W",
    "temperature": "°C",
    "pv1Voltage": "V",
    "pv1Electric": "A",
    "pv2Voltage": "V",
    "pv2Electric": "A",
    "acElectric": "A",
    "inPower": "W",
}

ENERGY_UNIT = "kWh"


def _id_to_str(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


def _none_to_zero(value: Any) -> Any:
    if value is None or value == "":
        return 0
    return value


def _none_to_empty(value: Any) -> Any:
    return "" if value is None else value


ApiId = Annotated[str, BeforeValidator(_id_to_str)]
Measurement = Annotated[float, BeforeValidator(_none_to_zero)]
Label = Annotated[str, BeforeValidator(_none_to_empty)]


class _ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class Session(_ApiModel):
    """Login result: bearer token plus the account identifier.

    Attributes:
        token: Raw token sent as the ``Authorization`` header.
        account_id: Account identifier (``userId``) used to list stations.
    """

    token: ApiId
    account_id: ApiId = Field(alias="userId")


class Station(_ApiModel):
    """A power station with its aggregate energy totals in kWh."""

    power_id: ApiId = Field(alias="powerId")
    name: Label = Field(default="", alias="powerName")
    daily_energy: Measurement = Field(default=0.0, alias="dailyPowerGeneration")
    total_energy: Measurement = Field(default=0.0, alias="totalPowerGeneration")


class Collector(_ApiModel):
    """A data collector attached to one inverter of a station."""

    inverter_id: ApiId = Field(alias="inverterId")
    name: Label = Field(default="", alias="collectorName")


class InverterReading(_ApiModel):
    """Latest snapshot of one inverter.

    ``metrics`` always holds every key of :data:`METRIC_UNITS`.
    """

    power_id: str
    inverter_id: str
    metrics: dict[str, Measurement]

    @classmethod
    def from_row(
        cls,
        row: dict[str, Any],
        *,
        power_id: str,
        inverter_id: str,
    ) -> InverterReading:
        """Build a reading from one ``inverterDatalist`` row.

        Unknown keys are dropped; absent or null metrics become 0.

        Raises:
            pydantic.ValidationError: If a metric is not numeric.
        """
        return cls(
            power_id=power_id,
            inverter_id=inverter_id,
            metrics={metric: row.get(metric) for metric in METRIC_UNITS},
        )
