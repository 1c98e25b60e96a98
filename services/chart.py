"""Shaping of measurements into chart series."""

from __future__ import annotations

from functools import lru_cache
from typing import Callable, Iterable

from app.schemas import ChartData, ChartPoint, ChartSeries
from models.records import Measurement
from settings import get_settings

TEMPERATURE_KEY = "Temperature"
TEMPERATURE_COLOR = "#ff7f0e"
HUMIDITY_KEY = "Humidity"
HUMIDITY_COLOR = "#2ca02c"

PLAUSIBLE_TEMPERATURE_RANGE = (-60.0, 60.0)
PLAUSIBLE_HUMIDITY_RANGE = (0.0, 100.0)

PlausibilityPredicate = Callable[[Measurement], bool]


def accept_all(_measurement: Measurement) -> bool:
    return True


def physically_plausible(measurement: Measurement) -> bool:
    """Reject readings a sensor could not have produced."""
    low_t, high_t = PLAUSIBLE_TEMPERATURE_RANGE
    low_h, high_h = PLAUSIBLE_HUMIDITY_RANGE
    return low_t <= measurement.temperature <= high_t and low_h <= measurement.humidity <= high_h


def _chronological(measurement: Measurement) -> tuple[int, float, float]:
    # Values break date ties so any input permutation yields the same series.
    return (measurement.date, measurement.temperature, measurement.humidity)


class ChartTransformer:
    """Pure transform that can be unit tested in isolation."""

    def __init__(self, is_plausible: PlausibilityPredicate = accept_all) -> None:
        self.is_plausible = is_plausible

    def transform(self, measurements: Iterable[Measurement]) -> ChartData:
        # Plotting is chronological whatever order the caller supplies.
        retained = [
            measurement
            for measurement in sorted(measurements, key=_chronological)
            if self.is_plausible(measurement)
        ]

        temperature = ChartSeries(
            key=TEMPERATURE_KEY,
            color=TEMPERATURE_COLOR,
            axis=1,
            points=[ChartPoint(x=m.date, y=m.temperature) for m in retained],
        )
        humidity = ChartSeries(
            key=HUMIDITY_KEY,
            color=HUMIDITY_COLOR,
            axis=2,
            points=[ChartPoint(x=m.date, y=m.humidity) for m in retained],
        )
        return ChartData(series=[temperature, humidity])


@lru_cache
def build_default_transformer() -> ChartTransformer:
    settings = get_settings()
    predicate = physically_plausible if settings.chart_plausibility_filter else accept_all
    return ChartTransformer(is_plausible=predicate)
