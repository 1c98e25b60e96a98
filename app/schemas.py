"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field

from models.records import Measurement

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


class MeasurementPayload(BaseModel):
    """JSON body posted by the sensor client.

    Field names are the wire contract and stay capitalised.
    """

    model_config = ConfigDict(strict=True, frozen=True, allow_inf_nan=False)

    temperature: float = Field(..., alias="Temperature", description="Degrees Celsius.")
    humidity: float = Field(..., alias="Humidity", description="Relative humidity in percent.")
    date: int = Field(
        ...,
        alias="Date",
        ge=_INT64_MIN,
        le=_INT64_MAX,
        description="Milliseconds since the Unix epoch.",
    )

    def to_measurement(self) -> Measurement:
        return Measurement(temperature=self.temperature, humidity=self.humidity, date=self.date)


class ChartPoint(BaseModel):
    """One plotted point; ``x`` is the epoch-millisecond timestamp."""

    model_config = ConfigDict(frozen=True)

    x: int
    y: float


class ChartSeries(BaseModel):
    """A named line of the measurement chart."""

    model_config = ConfigDict(frozen=True)

    key: str
    color: str
    axis: Literal[1, 2]
    points: List[ChartPoint] = Field(default_factory=list)


class ChartData(BaseModel):
    """Series handed to the chart template."""

    model_config = ConfigDict(frozen=True)

    series: List[ChartSeries] = Field(default_factory=list)
