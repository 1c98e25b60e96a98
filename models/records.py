"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass

# Every measurement lives in this single consistency group.
MEASUREMENT_GROUP = "default_measurement"


@dataclass(frozen=True, slots=True)
class Measurement:
    """A single environmental reading reported by the sensor client."""

    temperature: float
    humidity: float
    date: int

    def to_wire(self) -> dict[str, float | int]:
        return {
            "Temperature": self.temperature,
            "Humidity": self.humidity,
            "Date": self.date,
        }
