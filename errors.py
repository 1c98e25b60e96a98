"""Failure taxonomy shared by the store, the services and the HTTP layer."""

from __future__ import annotations


class MeasurementError(Exception):
    """Base class for every failure surfaced by the measurement core."""


class ValidationFailure(MeasurementError):
    """The ingested payload could not be decoded into a measurement."""


class StorageFailure(MeasurementError):
    """The store could not complete a read or a write."""


class WriteRateExceeded(StorageFailure):
    """The consistency group rejected a write above its sustained rate."""
