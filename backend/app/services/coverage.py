from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable

from app.core.logging import get_logger
from app.schemas.entities import CampaignRow, EventRow, EventTargetRow, ScopeFilter, StoreRow
from app.schemas.metrics import CoverageMode, EventMetrics, RiskLevel, Timeline
from app.services.parsing import as_date, parse_date

logger = get_logger(__name__)

CRITICAL_FILL_RATIO = 0.10
RISK_FILL_RATIO = 0.30
RISK_HORIZON_DAYS = 7


@dataclass(frozen=True)
class DatedCampaign:
    campaign_id: str
    event_id: str
    store_id: str
    created_at: date


@dataclass
class EventCoverage:
    event: EventRow
    target_set: frozenset[str] | None
    campaigns: list[DatedCampaign]

    @property
    def is_scoped(self) -> bool:
        return self.target_set is not None

    @property
    def stores_with_promo(self) -> set[str]:
        return {campaign.store_id for campaign in self.campaigns}


def percent(numerator: float, denominator: float) -> float:
    return numerator / denominator * 100 if denominator else 0.0


def resolve_allowed_store_ids(
    stores: Iterable[StoreRow], scope: ScopeFilter | None
) -> set[str] | None:
    if scope is None or not scope.is_active:
        return None
    dimensions = (
        ("region", set(scope.regions)),
        ("city", set(scope.cities)),
        ("commercial", set(scope.commercials)),
        ("brand", set(scope.brands)),
        ("segment", set(scope.segments)),
        ("ops_zone", set(scope.ops_zones)),
    )
    allowed: set[str] = set()
    for store in stores:
        if all(not values or getattr(store, field) in values for field, values in dimensions):
            allowed.add(store.store_id)
    return allowed


def store_in_scope(
    store_id: str,
    stores_by_id: dict[str, StoreRow] | None,
    allowed_store_ids: set[str] | None,
) -> bool:
    if stores_by_id is not None and store_id not in stores_by_id:
        return False
    if allowed_store_ids is not None and store_id not in allowed_store_ids:
        return False
    return True


def group_campaigns(campaigns: Iterable[CampaignRow]) -> dict[str, list[DatedCampaign]]:
    grouped: dict[str, list[DatedCampaign]] = defaultdict(list)
    for campaign in campaigns:
        created_at = parse_date(campaign.created_at)
        if created_at is None:
            logger.debug(
                "campaign_skipped_invalid_date",
                campaign_id=campaign.campaign_id,
                created_at=campaign.created_at,
            )
            continue
        grouped[campaign.event_id].append(
            DatedCampaign(
                campaign_id=campaign.campaign_id,
                event_id=campaign.event_id,
                store_id=campaign.store_id,
                created_at=created_at,
            )
        )
    return grouped


def group_targets(event_targets: Iterable[EventTargetRow] | None) -> dict[str, list[str]]:
    grouped: dict[str, list[str]] = defaultdict(list)
    for target in event_targets or []:
        if target.store_id not in grouped[target.event_id]:
            grouped[target.event_id].append(target.store_id)
    return grouped


def resolve_event_coverage(
    event: EventRow,
    event_campaigns: Iterable[DatedCampaign],
    as_of: date,
    *,
    targeted_store_ids: Iterable[str] = (),
    stores_by_id: dict[str, StoreRow] | None = None,
    allowed_store_ids: set[str] | None = None,
) -> EventCoverage:
    target_set = frozenset(
        store_id
        for store_id in targeted_store_ids
        if store_in_scope(store_id, stores_by_id, allowed_store_ids)
    )
    scoped_targets = target_set or None

    kept: list[DatedCampaign] = []
    for campaign in event_campaigns:
        if not store_in_scope(campaign.store_id, stores_by_id, allowed_store_ids):
            continue
        if campaign.created_at > as_of:
            continue
        if scoped_targets is not None and campaign.store_id not in scoped_targets:
            continue
        kept.append(campaign)
    return EventCoverage(event=event, target_set=scoped_targets, campaigns=kept)


def build_event_metrics(
    coverage: EventCoverage,
    as_of: date,
    stores_by_id: dict[str, StoreRow] | None = None,
) -> EventMetrics:
    event = coverage.event
    start_date = parse_date(event.start_date)
    end_date = parse_date(event.end_date)

    target_promos = event.target_promos
    if coverage.target_set is not None:
        target_stores = len(coverage.target_set)
    else:
        target_stores = event.target_stores

    stores_with_promo = coverage.stores_with_promo
    promos_to_date = len(coverage.campaigns)
    stores_to_date = len(stores_with_promo)
    fill_rate = percent(stores_to_date, target_stores)

    gmv_target = gmv_covered = gmv_coverage = gmv_gap = None
    if coverage.target_set is not None and stores_by_id is not None:
        gmv_target = sum(stores_by_id[store_id].gmv_30d for store_id in coverage.target_set)
        gmv_covered = sum(
            stores_by_id[store_id].gmv_30d
            for store_id in coverage.target_set
            if store_id in stores_with_promo
        )
        gmv_coverage = percent(gmv_covered, gmv_target)
        gmv_gap = max(gmv_target - gmv_covered, 0.0)

    return EventMetrics(
        id=event.event_id,
        name=event.event_name,
        description=event.description,
        status=event.status,
        start_date=start_date,
        end_date=end_date,
        mode=CoverageMode.SCOPED if coverage.is_scoped else CoverageMode.OPEN,
        target_promos=target_promos,
        target_stores=target_stores,
        promos_to_date=promos_to_date,
        stores_to_date=stores_to_date,
        promos_pct=percent(promos_to_date, target_promos),
        stores_pct=fill_rate,
        fill_rate=fill_rate,
        gap_promos=max(target_promos - promos_to_date, 0),
        gap_stores=max(target_stores - stores_to_date, 0),
        days_to_start=(start_date - as_of).days if start_date else None,
        gmv_target=gmv_target,
        gmv_covered=gmv_covered,
        gmv_coverage=gmv_coverage,
        gmv_gap=gmv_gap,
    )


def compute_event_metrics(
    events: list[EventRow],
    campaigns: list[CampaignRow],
    as_of: date | datetime,
    *,
    stores_by_id: dict[str, StoreRow] | None = None,
    allowed_store_ids: set[str] | None = None,
    event_targets: list[EventTargetRow] | None = None,
) -> list[EventMetrics]:
    as_of_date = as_date(as_of)
    campaigns_by_event = group_campaigns(campaigns)
    targets_by_event = group_targets(event_targets)

    results: list[EventMetrics] = []
    for event in events:
        coverage = resolve_event_coverage(
            event,
            campaigns_by_event.get(event.event_id, []),
            as_of_date,
            targeted_store_ids=targets_by_event.get(event.event_id, []),
            stores_by_id=stores_by_id,
            allowed_store_ids=allowed_store_ids,
        )
        results.append(build_event_metrics(coverage, as_of_date, stores_by_id))
    return results


def event_timeline(
    start_date: date | None, end_date: date | None, as_of: date
) -> Timeline | None:
    if start_date is None or end_date is None:
        return None
    if as_of > end_date:
        return Timeline.FINISHED
    if as_of >= start_date:
        return Timeline.ONGOING
    return Timeline.FUTURE


def classify_risk(metrics: EventMetrics, ratio: float, as_of: date) -> RiskLevel:
    timeline = event_timeline(metrics.start_date, metrics.end_date, as_of)
    if timeline is None or timeline == Timeline.FINISHED:
        return RiskLevel.NONE
    if timeline != Timeline.ONGOING and (
        metrics.days_to_start is None or metrics.days_to_start > RISK_HORIZON_DAYS
    ):
        return RiskLevel.NONE
    if ratio < CRITICAL_FILL_RATIO:
        return RiskLevel.CRITICAL
    if ratio < RISK_FILL_RATIO:
        return RiskLevel.RISK
    return RiskLevel.NONE
