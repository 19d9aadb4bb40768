from __future__ import annotations

from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.logging import get_logger
from app.models.event_metric_snapshot import EventMetricSnapshot
from app.schemas.metrics import EventMetrics
from app.schemas.snapshots import SnapshotRow, SnapshotWriteResult

logger = get_logger(__name__)


class SnapshotStorageError(RuntimeError):
    pass


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SnapshotBackend(ABC):
    @abstractmethod
    def load(self) -> list[SnapshotRow]:
        ...

    @abstractmethod
    def save(self, rows: list[SnapshotRow]) -> None:
        ...


class InMemorySnapshotBackend(SnapshotBackend):
    def __init__(self, rows: list[SnapshotRow] | None = None) -> None:
        self.rows: list[SnapshotRow] = list(rows or [])

    def load(self) -> list[SnapshotRow]:
        return list(self.rows)

    def save(self, rows: list[SnapshotRow]) -> None:
        self.rows = list(rows)


class SqlSnapshotBackend(SnapshotBackend):
    def __init__(self, db: Session) -> None:
        self.db = db

    def load(self) -> list[SnapshotRow]:
        try:
            records = self.db.scalars(
                select(EventMetricSnapshot).order_by(
                    EventMetricSnapshot.captured_at.desc(), EventMetricSnapshot.id
                )
            ).all()
        except SQLAlchemyError as exc:
            raise SnapshotStorageError(str(exc)) from exc
        rows = []
        for record in records:
            row = SnapshotRow.model_validate(record)
            rows.append(row.model_copy(update={"captured_at": _as_utc(row.captured_at)}))
        return rows

    def save(self, rows: list[SnapshotRow]) -> None:
        try:
            self.db.execute(delete(EventMetricSnapshot))
            self.db.add_all(EventMetricSnapshot(**row.model_dump()) for row in rows)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise SnapshotStorageError(str(exc)) from exc


def snapshot_from_metrics(metrics: EventMetrics, captured_at: datetime) -> SnapshotRow:
    return SnapshotRow(
        event_id=metrics.id,
        captured_at=_as_utc(captured_at),
        target_stores=metrics.target_stores,
        stores_with_promo=metrics.stores_to_date,
        fill_rate=metrics.fill_rate,
        target_promos=metrics.target_promos,
        promos_to_date=metrics.promos_to_date,
        gmv_target=metrics.gmv_target,
        gmv_covered=metrics.gmv_covered,
        gmv_coverage=metrics.gmv_coverage,
    )


def closest_snapshot(
    rows: list[SnapshotRow],
    target_time: datetime,
    tolerance: timedelta | None = None,
) -> SnapshotRow | None:
    target_time = _as_utc(target_time)
    best: SnapshotRow | None = None
    best_distance: timedelta | None = None
    for row in rows:
        distance = abs(row.captured_at - target_time)
        if tolerance is not None and distance > tolerance:
            continue
        if best_distance is None or distance < best_distance:
            best = row
            best_distance = distance
    return best


class SnapshotStore:
    def __init__(
        self,
        backend: SnapshotBackend,
        retention: timedelta | None = None,
        max_rows: int | None = None,
        dedup_window: timedelta | None = None,
    ) -> None:
        settings = get_settings()
        self.backend = backend
        self.retention = (
            retention if retention is not None else timedelta(days=settings.snapshot_retention_days)
        )
        self.max_rows = max_rows if max_rows is not None else settings.snapshot_max_rows
        self.dedup_window = (
            dedup_window
            if dedup_window is not None
            else timedelta(minutes=settings.snapshot_dedup_minutes)
        )

    def _history(self) -> list[SnapshotRow]:
        try:
            return self.backend.load()
        except SnapshotStorageError as exc:
            logger.warning("snapshot_history_unreadable", error=str(exc))
            return []

    def _write_lost(
        self, batch: list[SnapshotRow], captured_at: datetime, exc: Exception
    ) -> SnapshotWriteResult:
        logger.warning(
            "snapshot_write_lost",
            events=len(batch),
            captured_at=captured_at.isoformat(),
            error=str(exc),
        )
        return SnapshotWriteResult(persisted=False, written=0, retained=0, error=str(exc))

    def record_snapshot(
        self, metrics: list[EventMetrics], captured_at: datetime
    ) -> SnapshotWriteResult:
        captured_at = _as_utc(captured_at)
        batch = [snapshot_from_metrics(item, captured_at) for item in metrics]
        batch_events = {row.event_id for row in batch}

        # An unreadable history is never overwritten.
        try:
            history = self.backend.load()
        except SnapshotStorageError as exc:
            return self._write_lost(batch, captured_at, exc)

        # A reading taken within the dedup window replaces the previous one.
        kept = [
            row
            for row in history
            if not (
                row.event_id in batch_events
                and abs(row.captured_at - captured_at) <= self.dedup_window
            )
        ]
        cutoff = captured_at - self.retention
        merged = [row for row in kept + batch if row.captured_at >= cutoff]
        merged.sort(key=lambda row: row.captured_at, reverse=True)
        merged = merged[: self.max_rows]

        try:
            self.backend.save(merged)
        except SnapshotStorageError as exc:
            return self._write_lost(batch, captured_at, exc)

        logger.info("snapshot_recorded", events=len(batch), retained=len(merged))
        return SnapshotWriteResult(persisted=True, written=len(batch), retained=len(merged))

    def history(self, event_id: str) -> list[SnapshotRow]:
        return [row for row in self._history() if row.event_id == event_id]

    def history_by_event(self) -> dict[str, list[SnapshotRow]]:
        grouped: dict[str, list[SnapshotRow]] = defaultdict(list)
        for row in self._history():
            grouped[row.event_id].append(row)
        return grouped

    def find_closest(
        self,
        event_id: str,
        target_time: datetime,
        tolerance: timedelta | None = None,
    ) -> SnapshotRow | None:
        return closest_snapshot(self.history(event_id), target_time, tolerance)
