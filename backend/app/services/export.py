from __future__ import annotations

import csv
import io
from typing import Any, Iterable

from app.schemas.drilldown import StoreCoverage
from app.schemas.metrics import EventListItem, EventMetrics

EVENT_METRICS_HEADER = [
    "Event ID",
    "Event Name",
    "Description",
    "Start",
    "End",
    "Status",
    "Mode",
    "Promos",
    "Target Promos",
    "Promos %",
    "Gap Promos",
    "Stores",
    "Target Stores",
    "Stores %",
    "Gap Stores",
    "Fill Rate",
    "GMV Target",
    "GMV Covered",
    "GMV Coverage",
    "Days to Start",
]

MISSING_STORES_HEADER = [
    "Event ID",
    "Event Name",
    "Store ID",
    "Brand",
    "Region",
    "City",
    "Commercial",
    "Segment",
    "Ops Zone",
    "GMV Last 30d",
]


def _cell(value: Any) -> Any:
    if value is None:
        return ""
    if hasattr(value, "isoformat"):
        return value.isoformat()
    if isinstance(value, float):
        return round(value, 2)
    return value


def to_csv(rows: Iterable[list[Any]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    for row in rows:
        writer.writerow([_cell(value) for value in row])
    return buffer.getvalue()


def event_metrics_csv(items: list[EventListItem] | list[EventMetrics]) -> str:
    rows: list[list[Any]] = [EVENT_METRICS_HEADER]
    for item in items:
        rows.append(
            [
                item.id,
                item.name,
                item.description,
                item.start_date,
                item.end_date,
                item.status,
                item.mode.value,
                item.promos_to_date,
                item.target_promos,
                item.promos_pct,
                item.gap_promos,
                item.stores_to_date,
                item.target_stores,
                item.stores_pct,
                item.gap_stores,
                item.fill_rate,
                item.gmv_target,
                item.gmv_covered,
                item.gmv_coverage,
                item.days_to_start,
            ]
        )
    return to_csv(rows)


def missing_promo_stores_csv(event: EventMetrics, stores: list[StoreCoverage]) -> str:
    rows: list[list[Any]] = [MISSING_STORES_HEADER]
    for store in stores:
        if store.has_promo:
            continue
        rows.append(
            [
                event.id,
                event.name,
                store.store_id,
                store.brand,
                store.region,
                store.city,
                store.commercial,
                store.segment,
                store.ops_zone,
                store.gmv_last_30d,
            ]
        )
    return to_csv(rows)
