"""Unit tests for the chart data transform."""

from __future__ import annotations

import random

from models.records import Measurement
from services.chart import (
    HUMIDITY_COLOR,
    TEMPERATURE_COLOR,
    ChartTransformer,
    build_default_transformer,
    physically_plausible,
)
from settings import get_settings


def _m(date: int, temperature: float, humidity: float) -> Measurement:
    return Measurement(temperature=temperature, humidity=humidity, date=date)


SAMPLE = [
    _m(3_000, 23.0, 43.0),
    _m(1_000, 21.0, 41.0),
    _m(2_000, 22.0, 42.0),
    _m(2_000, 22.5, 42.5),
]


def test_transform_emits_temperature_and_humidity_series() -> None:
    chart = ChartTransformer().transform(SAMPLE)

    temperature, humidity = chart.series
    assert (temperature.key, temperature.color, temperature.axis) == ("Temperature", TEMPERATURE_COLOR, 1)
    assert (humidity.key, humidity.color, humidity.axis) == ("Humidity", HUMIDITY_COLOR, 2)
    assert len(temperature.points) == len(humidity.points) == len(SAMPLE)


def test_transform_plots_chronologically() -> None:
    newest_first = sorted(SAMPLE, key=lambda m: m.date, reverse=True)

    chart = ChartTransformer().transform(newest_first)

    temperature, humidity = chart.series
    assert [point.x for point in temperature.points] == [1_000, 2_000, 2_000, 3_000]
    assert [point.y for point in temperature.points] == [21.0, 22.0, 22.5, 23.0]
    assert [point.y for point in humidity.points] == [41.0, 42.0, 42.5, 43.0]


def test_transform_ignores_input_order() -> None:
    transformer = ChartTransformer()
    expected = transformer.transform(SAMPLE)
    rng = random.Random(7)

    for _ in range(10):
        shuffled = list(SAMPLE)
        rng.shuffle(shuffled)
        assert transformer.transform(shuffled) == expected


def test_transform_of_nothing_still_has_both_series() -> None:
    chart = ChartTransformer().transform([])

    assert [series.key for series in chart.series] == ["Temperature", "Humidity"]
    assert all(series.points == [] for series in chart.series)


def test_default_transform_keeps_implausible_readings() -> None:
    chart = ChartTransformer().transform([_m(1, 500.0, -10.0)])

    assert [point.y for point in chart.series[0].points] == [500.0]


def test_plausibility_filter_drops_non_physical_readings() -> None:
    readings = [_m(1, 20.0, 50.0), _m(2, 500.0, 50.0), _m(3, 20.0, 140.0)]

    chart = ChartTransformer(is_plausible=physically_plausible).transform(readings)

    assert [point.x for point in chart.series[0].points] == [1]
    assert [point.x for point in chart.series[1].points] == [1]


def test_default_transformer_honours_settings(monkeypatch) -> None:
    monkeypatch.setenv("CHART_PLAUSIBILITY_FILTER", "true")
    get_settings.cache_clear()
    build_default_transformer.cache_clear()
    try:
        transformer = build_default_transformer()
        assert transformer.is_plausible is physically_plausible
    finally:
        build_default_transformer.cache_clear()
        get_settings.cache_clear()
