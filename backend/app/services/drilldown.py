from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime
from typing import Callable, Iterable

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
    GroupCoverage,
    HeadlineCard,
    StoreCoverage,
    StoreView,
)
from app.schemas.entities import Dataset, StoreRow
from app.schemas.metrics import EventDelta
from app.services.coverage import (
    DatedCampaign,
    build_event_metrics,
    classify_risk,
    group_campaigns,
    group_targets,
    percent,
    resolve_event_coverage,
    store_in_scope,
)
from app.services.parsing import as_date

SUMMARY_TOP_N = 3


class EventNotFoundError(LookupError):
    def __init__(self, event_id: str) -> None:
        super().__init__(f"Event '{event_id}' not found")
        self.event_id = event_id


class StoreNotFoundError(LookupError):
    def __init__(self, store_id: str) -> None:
        super().__init__(f"Store '{store_id}' not found")
        self.store_id = store_id


def _partition(stores: Iterable[StoreRow], key: Callable[[StoreRow], str]) -> dict[str, list[StoreRow]]:
    groups: dict[str, list[StoreRow]] = defaultdict(list)
    for store in stores:
        groups[key(store)].append(store)
    return groups


class EventDrilldown:
    def __init__(
        self,
        dataset: Dataset,
        event_id: str,
        as_of: date | datetime,
        allowed_store_ids: set[str] | None = None,
    ) -> None:
        event = dataset.find_event(event_id)
        if event is None:
            raise EventNotFoundError(event_id)
        self.as_of = as_date(as_of)
        self.dataset = dataset
        self.stores_by_id = dataset.stores_by_id()
        self.allowed_store_ids = allowed_store_ids

        event_campaigns = group_campaigns(
            campaign for campaign in dataset.campaigns if campaign.event_id == event_id
        )
        self.coverage = resolve_event_coverage(
            event,
            event_campaigns.get(event_id, []),
            self.as_of,
            targeted_store_ids=group_targets(dataset.event_targets).get(event_id, []),
            stores_by_id=self.stores_by_id,
            allowed_store_ids=allowed_store_ids,
        )
        self.metrics = build_event_metrics(self.coverage, self.as_of, self.stores_by_id)

        self._campaigns_by_store: dict[str, list[DatedCampaign]] = defaultdict(list)
        for campaign in self.coverage.campaigns:
            self._campaigns_by_store[campaign.store_id].append(campaign)

    def in_scope_stores(self) -> list[StoreRow]:
        target_set = self.coverage.target_set
        if target_set is not None:
            return [store for store in self.stores_by_id.values() if store.store_id in target_set]
        return [
            store
            for store in self.stores_by_id.values()
            if store_in_scope(store.store_id, None, self.allowed_store_ids)
        ]

    def _filtered_stores(
        self,
        city: str | None = None,
        commercial: str | None = None,
        brand: str | None = None,
    ) -> list[StoreRow]:
        return [
            store
            for store in self.in_scope_stores()
            if (city is None or store.city == city)
            and (commercial is None or store.commercial == commercial)
            and (brand is None or store.brand == brand)
        ]

    def _group_numbers(self, key: str, stores: list[StoreRow]) -> dict:
        with_promo = [store for store in stores if store.store_id in self._campaigns_by_store]
        gmv_target = sum(store.gmv_30d for store in stores)
        gmv_covered = sum(store.gmv_30d for store in with_promo)
        return {
            "key": key,
            "target_stores": len(stores),
            "stores_with_promo": len(with_promo),
            "fill_rate": percent(len(with_promo), len(stores)),
            "gmv_target": gmv_target,
            "gmv_covered": gmv_covered,
            "gmv_coverage": percent(gmv_covered, gmv_target),
            "gmv_gap": max(gmv_target - gmv_covered, 0.0),
        }

    def cities(self) -> list[CityCoverage]:
        rows: list[CityCoverage] = []
        for city, stores in _partition(self.in_scope_stores(), lambda store: store.city).items():
            numbers = self._group_numbers(city, stores)
            rows.append(
                CityCoverage(
                    **numbers,
                    promos_created=sum(
                        len(self._campaigns_by_store.get(store.store_id, [])) for store in stores
                    ),
                    risk=classify_risk(self.metrics, numbers["fill_rate"] / 100, self.as_of),
                )
            )
        return sorted(rows, key=lambda row: (row.fill_rate, row.key))

    def commercials(self, city: str) -> list[CommercialCoverage]:
        groups = _partition(self._filtered_stores(city=city), lambda store: store.commercial)
        rows = [
            CommercialCoverage(**self._group_numbers(commercial, stores))
            for commercial, stores in groups.items()
        ]
        return sorted(rows, key=lambda row: (row.fill_rate, row.key))

    def brands(self, city: str | None = None, commercial: str | None = None) -> list[BrandCoverage]:
        groups = _partition(
            self._filtered_stores(city=city, commercial=commercial), lambda store: store.brand
        )
        rows = [
            BrandCoverage(
                **self._group_numbers(brand, stores),
                city_count=len({store.city for store in stores}),
            )
            for brand, stores in groups.items()
        ]
        return sorted(rows, key=lambda row: (-row.gmv_gap, row.key))

    def stores(
        self,
        city: str | None = None,
        commercial: str | None = None,
        brand: str | None = None,
        only_missing: bool = False,
    ) -> list[StoreCoverage]:
        rows: list[StoreCoverage] = []
        for store in self._filtered_stores(city=city, commercial=commercial, brand=brand):
            campaigns = self._campaigns_by_store.get(store.store_id, [])
            if only_missing and campaigns:
                continue
            rows.append(
                StoreCoverage(
                    store_id=store.store_id,
                    brand=store.brand,
                    region=store.region,
                    city=store.city,
                    commercial=store.commercial,
                    segment=store.segment,
                    ops_zone=store.ops_zone,
                    gmv_last_30d=store.gmv_30d,
                    has_promo=bool(campaigns),
                    promo_count=len(campaigns),
                    last_promo_date=max((c.created_at for c in campaigns), default=None),
                )
            )
        return sorted(
            rows,
            key=lambda row: (row.has_promo, row.last_promo_date or date.min, row.store_id),
        )

    def campaigns(self, store_id: str) -> list[CampaignActivity]:
        if store_id not in self.stores_by_id:
            raise StoreNotFoundError(store_id)
        campaigns = sorted(
            self._campaigns_by_store.get(store_id, []),
            key=lambda campaign: (campaign.created_at, campaign.campaign_id),
        )
        return [
            CampaignActivity(
                campaign_id=campaign.campaign_id,
                store_id=campaign.store_id,
                created_at=campaign.created_at,
            )
            for campaign in campaigns
        ]

    def summary(self, delta: EventDelta | None = None) -> EventSummary:
        metrics = self.metrics
        cards = [
            HeadlineCard(
                key="store_coverage",
                title="Store coverage",
                value=metrics.fill_rate,
                numerator=metrics.stores_to_date,
                denominator=metrics.target_stores,
                delta_48h=delta.fill_rate_48h if delta else None,
                delta_7d=delta.fill_rate_7d if delta else None,
            ),
            HeadlineCard(
                key="promos_vs_target",
                title="Promos vs target",
                value=metrics.promos_pct,
                numerator=metrics.promos_to_date,
                denominator=metrics.target_promos,
            ),
        ]
        if metrics.gmv_target is not None:
            cards.append(
                HeadlineCard(
                    key="gmv_coverage",
                    title="GMV coverage",
                    value=metrics.gmv_coverage,
                    numerator=metrics.gmv_covered,
                    denominator=metrics.gmv_target,
                    delta_48h=delta.gmv_coverage_48h if delta else None,
                    delta_7d=delta.gmv_coverage_7d if delta else None,
                )
            )
        return EventSummary(
            event=metrics,
            cards=cards,
            worst_cities=self.cities()[:SUMMARY_TOP_N],
            top_brand_gaps=self.brands()[:SUMMARY_TOP_N],
            delta=delta,
        )


def resolve_view(
    view: DrilldownView,
    dataset: Dataset,
    as_of: date | datetime,
    allowed_store_ids: set[str] | None = None,
) -> list[GroupCoverage] | list[StoreCoverage] | list[CampaignActivity]:
    drilldown = EventDrilldown(dataset, view.event_id, as_of, allowed_store_ids)
    if isinstance(view, EventView):
        return drilldown.cities()
    if isinstance(view, CityView):
        return drilldown.commercials(view.city)
    if isinstance(view, CommercialView):
        return drilldown.brands(view.city, view.commercial)
    if isinstance(view, BrandView):
        return drilldown.stores(view.city, view.commercial, view.brand, view.only_missing)
    if isinstance(view, StoreView):
        return drilldown.campaigns(view.store_id)
    raise TypeError(f"Unsupported drilldown view: {type(view).__name__}")
