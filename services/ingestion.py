"""Decoding and persistence of measurements posted by the sensor client."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from app.schemas import MeasurementPayload
from datastore.measurement_store import MeasurementStore
from errors import ValidationFailure

logger = logging.getLogger(__name__)


class IngestionService:
    """Turns a raw JSON body into exactly one stored measurement.

    Values are accepted verbatim; no range checks are applied. A payload that
    fails to decode never reaches the store.
    """

    def __init__(self, store: MeasurementStore) -> None:
        self.store = store

    def ingest(self, raw_payload: bytes | str) -> int:
        try:
            payload = MeasurementPayload.model_validate_json(raw_payload)
        except ValidationError as exc:
            reason = "; ".join(self._describe(error) for error in exc.errors())
            logger.warning("Rejected measurement payload", extra={"reason": reason})
            raise ValidationFailure(f"Invalid measurement payload: {reason}") from exc

        measurement = payload.to_measurement()
        measurement_id = self.store.append(measurement)
        logger.info(
            "Stored measurement",
            extra={
                "measurement_id": measurement_id,
                "group": self.store.group,
                "date": measurement.date,
            },
        )
        return measurement_id

    @staticmethod
    def _describe(error: dict) -> str:
        location = ".".join(str(part) for part in error.get("loc", ())) or "body"
        return f"{location}: {error.get('msg', 'invalid value')}"
