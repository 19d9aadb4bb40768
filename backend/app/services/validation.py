from __future__ import annotations

from collections import defaultdict
from datetime import date

from app.schemas.datasets import ValidationResult
from app.schemas.entities import CampaignRow, EventRow, EventTargetRow, StoreRow
from app.services.parsing import parse_date, parse_decimal


def _validate_events(
    events: list[EventRow], errors: list[str]
) -> dict[str, tuple[date, date]]:
    seen: set[str] = set()
    ranges: dict[str, tuple[date, date]] = {}
    for event in events:
        if event.event_id in seen:
            errors.append(f"Duplicate event_id '{event.event_id}'.")
            continue
        seen.add(event.event_id)
        start = parse_date(event.start_date)
        end = parse_date(event.end_date)
        if start is None or end is None:
            errors.append(
                f"Event '{event.event_id}' has an invalid date range "
                f"(start_date='{event.start_date}', end_date='{event.end_date}')."
            )
            continue
        if start > end:
            errors.append(
                f"Event '{event.event_id}' starts after it ends "
                f"({start.isoformat()} > {end.isoformat()})."
            )
            continue
        ranges[event.event_id] = (start, end)
    return ranges


def _validate_stores(stores: list[StoreRow], errors: list[str]) -> dict[str, StoreRow]:
    seen: dict[str, StoreRow] = {}
    for store in stores:
        if store.store_id in seen:
            errors.append(f"Duplicate store_id '{store.store_id}'.")
            continue
        seen[store.store_id] = store
        if not store.brand.strip():
            errors.append(f"Store '{store.store_id}' has no brand.")
        gmv_30d = parse_decimal(store.gmv_last_30d)
        if not store.gmv_last_30d.strip():
            errors.append(f"Store '{store.store_id}' is missing gmv_last_30d.")
        elif gmv_30d is None:
            errors.append(
                f"Store '{store.store_id}' has a non-numeric gmv_last_30d "
                f"('{store.gmv_last_30d}')."
            )
        elif gmv_30d < 0:
            errors.append(
                f"Store '{store.store_id}' has a negative gmv_last_30d ({store.gmv_last_30d})."
            )
        if store.gmv_last_7d is not None and store.gmv_last_7d.strip():
            gmv_7d = parse_decimal(store.gmv_last_7d)
            if gmv_7d is None:
                errors.append(
                    f"Store '{store.store_id}' has a non-numeric gmv_last_7d "
                    f"('{store.gmv_last_7d}')."
                )
            elif gmv_7d < 0:
                errors.append(
                    f"Store '{store.store_id}' has a negative gmv_last_7d ({store.gmv_last_7d})."
                )
    return seen


def validate_tables(
    events: list[EventRow],
    campaigns: list[CampaignRow],
    stores: list[StoreRow],
    event_targets: list[EventTargetRow] | None = None,
) -> ValidationResult:
    errors: list[str] = []
    warnings: list[str] = []

    event_ids = {event.event_id for event in events}
    event_ranges = _validate_events(events, errors)
    stores_by_id = _validate_stores(stores, errors)

    seen_campaigns: set[str] = set()
    campaigns_by_event: dict[str, list[CampaignRow]] = defaultdict(list)
    for campaign in campaigns:
        if campaign.campaign_id in seen_campaigns:
            errors.append(f"Duplicate campaign_id '{campaign.campaign_id}'.")
            continue
        seen_campaigns.add(campaign.campaign_id)
        valid = True
        if campaign.event_id not in event_ids:
            errors.append(
                f"Campaign '{campaign.campaign_id}' references unknown event "
                f"'{campaign.event_id}'."
            )
            valid = False
        if campaign.store_id not in stores_by_id:
            errors.append(
                f"Campaign '{campaign.campaign_id}' references unknown store "
                f"'{campaign.store_id}'."
            )
            valid = False
        if not valid:
            continue
        campaigns_by_event[campaign.event_id].append(campaign)
        event_range = event_ranges.get(campaign.event_id)
        created_at = parse_date(campaign.created_at)
        if event_range and created_at and not event_range[0] <= created_at <= event_range[1]:
            warnings.append(
                f"Campaign '{campaign.campaign_id}' was created on {created_at.isoformat()}, "
                f"outside event '{campaign.event_id}' "
                f"({event_range[0].isoformat()} - {event_range[1].isoformat()})."
            )

    seen_pairs: set[tuple[str, str]] = set()
    targets_by_event: dict[str, list[str]] = defaultdict(list)
    for target in event_targets or []:
        pair = (target.event_id, target.store_id)
        if pair in seen_pairs:
            errors.append(
                f"Duplicate target for event '{target.event_id}' and store '{target.store_id}'."
            )
            continue
        seen_pairs.add(pair)
        valid = True
        if target.event_id not in event_ids:
            errors.append(f"Target references unknown event '{target.event_id}'.")
            valid = False
        if target.store_id not in stores_by_id:
            errors.append(
                f"Target for event '{target.event_id}' references unknown store "
                f"'{target.store_id}'."
            )
            valid = False
        if valid:
            targets_by_event[target.event_id].append(target.store_id)

    reported: set[str] = set()
    for event in events:
        if event.event_id in reported:
            continue
        reported.add(event.event_id)
        targeted = targets_by_event.get(event.event_id, [])
        if not targeted:
            warnings.append(
                f"Event '{event.event_id}' has no valid targets and will be treated as open "
                f"(target_stores={event.target_stores})."
            )
            continue
        if event.target_stores != len(targeted):
            warnings.append(
                f"Event '{event.event_id}' declares target_stores={event.target_stores} "
                f"but has {len(targeted)} valid targets."
            )

        targeted_by_brand: dict[str, int] = defaultdict(int)
        for store_id in targeted:
            targeted_by_brand[stores_by_id[store_id].brand] += 1
        brands_with_campaigns = {
            stores_by_id[campaign.store_id].brand
            for campaign in campaigns_by_event.get(event.event_id, [])
        }
        for brand in sorted(targeted_by_brand):
            if brand not in brands_with_campaigns:
                warnings.append(
                    f"Event '{event.event_id}': brand '{brand}' has "
                    f"{targeted_by_brand[brand]} targeted stores but no campaigns."
                )

    return ValidationResult(hard_errors=errors, warnings=warnings)
