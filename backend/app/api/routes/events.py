from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Literal

from fastapi import APIRouter, HTTPException, Query, Response, status

from app.api.deps import CurrentDataset, SnapshotStoreDep
from app.schemas.drilldown import (
    BrandCoverage,
    BrandView,
    CampaignActivity,
    CityCoverage,
    CityView,
    CommercialCoverage,
    CommercialView,
    DrilldownView,
    EventSummary,
    EventView,
    StoreCoverage,
    StoreView,
)
from app.schemas.metrics import EventListItem
from app.services.coverage import resolve_allowed_store_ids
from app.services.datasets import compute_stored_metrics
from app.services.deltas import compute_deltas, compute_event_delta
from app.services.documents import StoredDataset
from app.services.drilldown import (
    EventDrilldown,
    EventNotFoundError,
    StoreNotFoundError,
    resolve_view,
)
from app.services.event_list import build_list_items, search_events, sort_events
from app.services.export import event_metrics_csv, missing_promo_stores_csv
from app.services.snapshots import SnapshotStore

router = APIRouter(prefix="/events", tags=["events"])


def _as_of(value: date | None) -> date:
    return value or date.today()


def _allowed(stored: StoredDataset) -> set[str] | None:
    return resolve_allowed_store_ids(stored.dataset.stores, stored.scope_filter)


def _drilldown(stored: StoredDataset, event_id: str, as_of: date) -> EventDrilldown:
    try:
        return EventDrilldown(stored.dataset, event_id, as_of, _allowed(stored))
    except EventNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


def _view_rows(stored: StoredDataset, view: DrilldownView, as_of: date):
    try:
        return resolve_view(view, stored.dataset, as_of, _allowed(stored))
    except (EventNotFoundError, StoreNotFoundError) as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def _event_list(
    stored: StoredDataset,
    snapshots: SnapshotStore,
    as_of: date,
    search: str | None,
    sort: str,
    direction: str,
) -> list[EventListItem]:
    metrics = compute_stored_metrics(stored, as_of)
    deltas = compute_deltas(metrics, snapshots, datetime.now(timezone.utc))
    items = search_events(build_list_items(metrics, as_of, deltas), search)
    try:
        return sort_events(items, sort, direction)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.get("", response_model=list[EventListItem])
def list_events(
    stored: CurrentDataset,
    snapshots: SnapshotStoreDep,
    as_of: date | None = Query(default=None),
    search: str | None = Query(default=None),
    sort: str = Query(default="default"),
    direction: Literal["asc", "desc"] = Query(default="asc"),
) -> list[EventListItem]:
    return _event_list(stored, snapshots, _as_of(as_of), search, sort, direction)


@router.get("/export")
def export_events(
    stored: CurrentDataset,
    snapshots: SnapshotStoreDep,
    as_of: date | None = Query(default=None),
    search: str | None = Query(default=None),
    sort: str = Query(default="default"),
    direction: Literal["asc", "desc"] = Query(default="asc"),
) -> Response:
    items = _event_list(stored, snapshots, _as_of(as_of), search, sort, direction)
    return _csv_response(event_metrics_csv(items), "events_metrics.csv")


@router.get("/{event_id}/summary", response_model=EventSummary)
def get_event_summary(
    event_id: str,
    stored: CurrentDataset,
    snapshots: SnapshotStoreDep,
    as_of: date | None = Query(default=None),
) -> EventSummary:
    drilldown = _drilldown(stored, event_id, _as_of(as_of))
    delta = compute_event_delta(drilldown.metrics, snapshots, datetime.now(timezone.utc))
    return drilldown.summary(delta)


@router.get("/{event_id}/cities", response_model=list[CityCoverage])
def list_event_cities(
    event_id: str,
    stored: CurrentDataset,
    as_of: date | None = Query(default=None),
) -> list[CityCoverage]:
    return _view_rows(stored, EventView(event_id=event_id), _as_of(as_of))


@router.get("/{event_id}/brands", response_model=list[BrandCoverage])
def list_event_brands(
    event_id: str,
    stored: CurrentDataset,
    as_of: date | None = Query(default=None),
) -> list[BrandCoverage]:
    return _drilldown(stored, event_id, _as_of(as_of)).brands()


@router.get("/{event_id}/cities/{city}/commercials", response_model=list[CommercialCoverage])
def list_city_commercials(
    event_id: str,
    city: str,
    stored: CurrentDataset,
    as_of: date | None = Query(default=None),
) -> list[CommercialCoverage]:
    return _view_rows(stored, CityView(event_id=event_id, city=city), _as_of(as_of))


@router.get(
    "/{event_id}/cities/{city}/commercials/{commercial}/brands",
    response_model=list[BrandCoverage],
)
def list_commercial_brands(
    event_id: str,
    city: str,
    commercial: str,
    stored: CurrentDataset,
    as_of: date | None = Query(default=None),
) -> list[BrandCoverage]:
    view = CommercialView(event_id=event_id, city=city, commercial=commercial)
    return _view_rows(stored, view, _as_of(as_of))


@router.get(
    "/{event_id}/cities/{city}/commercials/{commercial}/brands/{brand}/stores",
    response_model=list[StoreCoverage],
)
def list_brand_stores(
    event_id: str,
    city: str,
    commercial: str,
    brand: str,
    stored: CurrentDataset,
    as_of: date | None = Query(default=None),
    only_missing: bool = Query(default=False),
) -> list[StoreCoverage]:
    view = BrandView(
        event_id=event_id,
        city=city,
        commercial=commercial,
        brand=brand,
        only_missing=only_missing,
    )
    return _view_rows(stored, view, _as_of(as_of))


@router.get("/{event_id}/stores/{store_id}/campaigns", response_model=list[CampaignActivity])
def list_store_campaigns(
    event_id: str,
    store_id: str,
    stored: CurrentDataset,
    as_of: date | None = Query(default=None),
) -> list[CampaignActivity]:
    store = stored.dataset.stores_by_id().get(store_id)
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Store '{store_id}' not found",
        )
    view = StoreView(
        event_id=event_id,
        city=store.city,
        commercial=store.commercial,
        brand=store.brand,
        store_id=store_id,
    )
    return _view_rows(stored, view, _as_of(as_of))


@router.get("/{event_id}/missing-stores/export")
def export_missing_stores(
    event_id: str,
    stored: CurrentDataset,
    as_of: date | None = Query(default=None),
) -> Response:
    drilldown = _drilldown(stored, event_id, _as_of(as_of))
    content = missing_promo_stores_csv(drilldown.metrics, drilldown.stores(only_missing=True))
    return _csv_response(content, f"missing_promo_stores_{event_id}.csv")
