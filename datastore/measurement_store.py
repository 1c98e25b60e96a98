from __future__ import annotations
import json
import logging
import os
import time
from collections import deque
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Callable, Deque, List, Optional

from errors import StorageFailure, WriteRateExceeded
from models.records import MEASUREMENT_GROUP, Measurement
from settings import get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class _StoredMeasurement:
    id: int
    group: str
    measurement: Measurement


class MeasurementStore:
    """Append-only measurement log scoped to a single consistency group.

    Appends are serialised by one lock and acknowledged only after the line
    has been fsynced, so a query issued after ``append`` returns always sees
    the new record. The group sustains roughly one write per second; when
    ``max_writes_per_second`` is set, appends beyond that rate within a
    one-second window are rejected with ``WriteRateExceeded`` instead of
    queueing.
    """

    def __init__(
        self,
        persistence_path: Optional[Path] = None,
        max_writes_per_second: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.group = MEASUREMENT_GROUP
        self.persistence_path = persistence_path
        self.max_writes_per_second = max_writes_per_second
        self._clock = clock
        self._records: List[_StoredMeasurement] = []
        self._recent_writes: Deque[float] = deque()
        self._next_id = 1
        self._lock = Lock()
        self._terminate_torn_line = False
        if persistence_path:
            try:
                persistence_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise StorageFailure(f"Cannot prepare measurement log at {persistence_path}: {exc}") from exc
            self._load_from_disk()

    def append(self, measurement: Measurement) -> int:
        """Persist ``measurement`` in the group and return its new id."""

        with self._lock:
            self._check_write_rate()
            stored = _StoredMeasurement(id=self._next_id, group=self.group, measurement=measurement)
            # Ids are never reused, even when the write below fails.
            self._next_id += 1
            self._persist(stored)
            self._records.append(stored)
            if self.max_writes_per_second > 0:
                self._recent_writes.append(self._clock())
        return stored.id

    def query(self, group: str, limit: int, since: Optional[int] = None) -> list[Measurement]:
        """Return up to ``limit`` group records, newest ``date`` first.

        Records with ``date < since`` are excluded when ``since`` is given.
        Equal dates come back most recently inserted first.
        """

        if limit < 0:
            raise ValueError("limit must not be negative.")
        with self._lock:
            matches = [
                stored
                for stored in self._records
                if stored.group == group and (since is None or stored.measurement.date >= since)
            ]
        matches.sort(key=lambda stored: (stored.measurement.date, stored.id), reverse=True)
        return [stored.measurement for stored in matches[:limit]]

    def _check_write_rate(self) -> None:
        if self.max_writes_per_second <= 0:
            return
        now = self._clock()
        while self._recent_writes and now - self._recent_writes[0] >= 1.0:
            self._recent_writes.popleft()
        if len(self._recent_writes) >= self.max_writes_per_second:
            logger.warning(
                "Rejecting append above the group write ceiling",
                extra={"group": self.group, "reason": "write rate exceeded"},
            )
            raise WriteRateExceeded(
                f"Consistency group {self.group!r} accepts at most "
                f"{self.max_writes_per_second:g} writes per second."
            )

    def _persist(self, stored: _StoredMeasurement) -> None:
        if not self.persistence_path:
            return
        try:
            line = json.dumps(
                {"id": stored.id, "group": stored.group, **stored.measurement.to_wire()},
                allow_nan=False,
            )
        except (TypeError, ValueError) as exc:
            raise StorageFailure(f"Cannot serialise measurement: {exc}") from exc

        offset = self._log_size()
        try:
            with self.persistence_path.open("a", encoding="utf-8") as handle:
                if self._terminate_torn_line:
                    handle.write("\n")
                handle.write(line + "\n")
                handle.flush()
                os.fsync(handle.fileno())
            self._terminate_torn_line = False
        except OSError as exc:
            logger.error(
                "Measurement append failed",
                extra={"measurement_id": stored.id, "path": str(self.persistence_path)},
            )
            self._rollback(offset)
            raise StorageFailure(f"Cannot write measurement log {self.persistence_path}: {exc}") from exc

    def _log_size(self) -> int:
        assert self.persistence_path is not None
        try:
            return self.persistence_path.stat().st_size
        except OSError:
            return 0

    def _rollback(self, offset: int) -> None:
        """Cut the log back to ``offset`` so a failed append leaves no line behind."""
        assert self.persistence_path is not None
        try:
            os.truncate(self.persistence_path, offset)
        except OSError:
            # Whatever reached the file stays; the next append starts a fresh line.
            self._terminate_torn_line = True
            logger.error(
                "Could not roll back measurement log",
                extra={"path": str(self.persistence_path), "reason": "truncate failed"},
            )

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageFailure(f"Cannot read measurement log {self.persistence_path}: {exc}") from exc

        # A crash mid-append leaves the last line without its newline.
        self._terminate_torn_line = bool(raw) and not raw.endswith("\n")
        lines = raw.splitlines()

        for line_number, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                payload = json.loads(line)
                stored = _StoredMeasurement(
                    id=int(payload["id"]),
                    group=str(payload["group"]),
                    measurement=Measurement(
                        temperature=float(payload["Temperature"]),
                        humidity=float(payload["Humidity"]),
                        date=int(payload["Date"]),
                    ),
                )
            except (json.JSONDecodeError, KeyError, TypeError, ValueError):
                logger.warning(
                    "Skipping unreadable measurement log line",
                    extra={"path": str(self.persistence_path), "line_number": line_number},
                )
                continue
            self._records.append(stored)
            self._next_id = max(self._next_id, stored.id + 1)

        logger.info(
            "Loaded measurement log",
            extra={"path": str(self.persistence_path), "record_count": len(self._records)},
        )


@lru_cache
def build_default_store(path: Optional[str] = None) -> MeasurementStore:
    settings = get_settings()
    store_path = settings.store_path if path is None else path
    persistence = Path(store_path) if store_path else None
    return MeasurementStore(
        persistence_path=persistence,
        max_writes_per_second=settings.max_writes_per_second,
    )
