"""Standing read queries over the measurement store."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from datastore.measurement_store import MeasurementStore
from models.records import MEASUREMENT_GROUP, Measurement

logger = logging.getLogger(__name__)

WINDOW_LIMIT = 500
ROLLING_WINDOW_MS = 7 * 24 * 60 * 60 * 1000


def current_time_ms() -> int:
    return int(time.time() * 1000)


class QueryEngine:
    """Builds the bounded, newest-first views served by the API.

    Store failures propagate unchanged; there is no retry or fallback cache.
    """

    def __init__(
        self,
        store: MeasurementStore,
        clock: Callable[[], int] = current_time_ms,
    ) -> None:
        self.store = store
        self._clock = clock

    def full_window(self) -> list[Measurement]:
        """Most recent ``WINDOW_LIMIT`` measurements."""
        return self._run(limit=WINDOW_LIMIT)

    def rolling_window(self) -> list[Measurement]:
        """Measurements from the last seven days, capped at ``WINDOW_LIMIT``."""
        since = self._clock() - ROLLING_WINDOW_MS
        return self._run(limit=WINDOW_LIMIT, since=since)

    def latest(self) -> list[Measurement]:
        """The single newest measurement, or an empty list."""
        return self._run(limit=1)

    def _run(self, limit: int, since: Optional[int] = None) -> list[Measurement]:
        records = self.store.query(MEASUREMENT_GROUP, limit=limit, since=since)
        logger.debug(
            "Queried measurements",
            extra={"limit": limit, "since": since, "record_count": len(records)},
        )
        return records
