from __future__ import annotations

from datetime import datetime, timedelta

from app.schemas.metrics import EventDelta, EventMetrics
from app.schemas.snapshots import SnapshotRow
from app.services.snapshots import SnapshotStore, closest_snapshot

LOOKBACK_48H = timedelta(hours=48)
TOLERANCE_48H = timedelta(hours=24)
LOOKBACK_7D = timedelta(days=7)
TOLERANCE_7D = timedelta(days=2)


def _difference(current: float | None, previous: float | None) -> float | None:
    if current is None or previous is None:
        return None
    return current - previous


def delta_from_history(
    metrics: EventMetrics, history: list[SnapshotRow], now: datetime
) -> EventDelta:
    recent = closest_snapshot(history, now - LOOKBACK_48H, TOLERANCE_48H)
    weekly = closest_snapshot(history, now - LOOKBACK_7D, TOLERANCE_7D)

    has_gmv = metrics.gmv_target is not None and metrics.gmv_target > 0
    current_gmv = metrics.gmv_coverage if has_gmv else None
    return EventDelta(
        fill_rate_48h=_difference(metrics.fill_rate, recent.fill_rate) if recent else None,
        fill_rate_7d=_difference(metrics.fill_rate, weekly.fill_rate) if weekly else None,
        gmv_coverage_48h=_difference(current_gmv, recent.gmv_coverage) if recent else None,
        gmv_coverage_7d=_difference(current_gmv, weekly.gmv_coverage) if weekly else None,
    )


def compute_event_delta(
    metrics: EventMetrics, store: SnapshotStore, now: datetime
) -> EventDelta:
    return delta_from_history(metrics, store.history(metrics.id), now)


def compute_deltas(
    metrics: list[EventMetrics], store: SnapshotStore, now: datetime
) -> dict[str, EventDelta]:
    history = store.history_by_event()
    return {item.id: delta_from_history(item, history.get(item.id, []), now) for item in metrics}
