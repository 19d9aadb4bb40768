from __future__ import annotations

from datetime import date
from typing import Any

from app.schemas.metrics import EventDelta, EventListItem, EventMetrics, Timeline
from app.services.coverage import classify_risk, event_timeline

SORT_KEYS = {
    "name": lambda item: item.name.lower(),
    "start": lambda item: item.start_date or date.min,
    "end": lambda item: item.end_date or date.min,
    "status": lambda item: item.status.lower(),
    "promos": lambda item: item.promos_to_date,
    "promos_pct": lambda item: item.promos_pct,
    "gap_promos": lambda item: item.gap_promos,
    "stores": lambda item: item.stores_to_date,
    "stores_pct": lambda item: item.stores_pct,
    "gap_stores": lambda item: item.gap_stores,
    "days_to_start": lambda item: item.days_to_start if item.days_to_start is not None else 0,
    "fill_rate": lambda item: item.fill_rate,
    "gmv_coverage": lambda item: item.gmv_coverage or 0.0,
}

_TIMELINE_RANK = {
    Timeline.ONGOING: 0,
    Timeline.FUTURE: 1,
    Timeline.FINISHED: 2,
    None: 3,
}


def days_to_start_label(timeline: Timeline | None, days_to_start: int | None) -> str:
    if timeline == Timeline.FINISHED:
        return "Finished"
    if timeline == Timeline.ONGOING:
        return "Ongoing"
    if days_to_start is None:
        return "-"
    if days_to_start == 1:
        return "Tomorrow"
    if days_to_start > 1:
        return f"In {days_to_start} days"
    return "Today"


def build_list_items(
    metrics: list[EventMetrics],
    as_of: date,
    deltas: dict[str, EventDelta] | None = None,
) -> list[EventListItem]:
    items: list[EventListItem] = []
    for row in metrics:
        timeline = event_timeline(row.start_date, row.end_date, as_of)
        items.append(
            EventListItem(
                **row.model_dump(),
                timeline=timeline,
                days_to_start_label=days_to_start_label(timeline, row.days_to_start),
                risk=classify_risk(row, row.promos_pct / 100, as_of),
                delta=(deltas or {}).get(row.id) or EventDelta(),
            )
        )
    return items


def search_events(items: list[EventListItem], search: str | None) -> list[EventListItem]:
    needle = (search or "").strip().lower()
    if not needle:
        return list(items)
    return [item for item in items if needle in item.name.lower()]


def _default_order(item: EventListItem) -> tuple[Any, ...]:
    # Ongoing first (worst promos % first), then upcoming by start, then finished.
    start_rank = 0
    pct_rank = 0.0
    if item.timeline == Timeline.FUTURE:
        start_rank = item.days_to_start or 0
        pct_rank = item.promos_pct
    elif item.timeline == Timeline.ONGOING:
        pct_rank = item.promos_pct
    end_ordinal = item.end_date.toordinal() if item.end_date else 0
    return (_TIMELINE_RANK[item.timeline], start_rank, pct_rank, -end_ordinal, item.name.lower())


def sort_events(
    items: list[EventListItem],
    sort: str = "default",
    direction: str = "asc",
) -> list[EventListItem]:
    if sort == "default":
        return sorted(items, key=_default_order)
    key = SORT_KEYS.get(sort)
    if key is None:
        raise ValueError(f"Unsupported sort key: {sort}")
    return sorted(items, key=key, reverse=direction == "desc")
