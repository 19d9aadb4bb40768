from datetime import date

import pytest

from app.schemas.entities import CampaignRow, EventRow
from app.schemas.metrics import EventDelta, RiskLevel, Timeline
from app.services.coverage import compute_event_metrics
from app.services.event_list import (
    build_list_items,
    days_to_start_label,
    search_events,
    sort_events,
)

AS_OF = date(2026, 3, 12)

EVENTS = [
    EventRow(event_id="E1", event_name="Spring Sale", start_date="2026-03-01", end_date="2026-03-31", target_promos=10),
    EventRow(event_id="E2", event_name="Hot Week", start_date="2026-03-05", end_date="2026-03-15", target_promos=20),
    EventRow(event_id="E3", event_name="Easter", start_date="2026-03-15", end_date="2026-03-20", target_promos=4),
    EventRow(event_id="E4", event_name="Fiesta", start_date="2026-03-14", end_date="2026-03-16", target_promos=4),
    EventRow(event_id="E5", event_name="Winter", start_date="2026-01-01", end_date="2026-01-31", target_promos=2),
    EventRow(event_id="E6", event_name="Undated", start_date="", end_date="", target_promos=2),
]

CAMPAIGNS = [
    CampaignRow(campaign_id=f"C{n}", event_id="E1", store_id=f"S{n}", created_at="2026-03-02")
    for n in range(5)
] + [
    CampaignRow(campaign_id="C10", event_id="E2", store_id="S1", created_at="2026-03-06"),
    CampaignRow(campaign_id="C11", event_id="E4", store_id="S1", created_at="2026-03-06"),
]


def build_items():
    metrics = compute_event_metrics(EVENTS, CAMPAIGNS, AS_OF)
    return build_list_items(metrics, AS_OF, {"E1": EventDelta(fill_rate_48h=3.0)})


@pytest.mark.parametrize(
    ("timeline", "days", "label"),
    [
        (Timeline.FINISHED, -40, "Finished"),
        (Timeline.ONGOING, -2, "Ongoing"),
        (Timeline.FUTURE, 1, "Tomorrow"),
        (Timeline.FUTURE, 4, "In 4 days"),
        (None, None, "-"),
    ],
)
def test_days_to_start_label(timeline, days, label) -> None:
    assert days_to_start_label(timeline, days) == label


def test_list_items_carry_timeline_risk_and_delta() -> None:
    items = {item.id: item for item in build_items()}

    assert items["E1"].timeline == Timeline.ONGOING
    assert items["E1"].delta.fill_rate_48h == 3.0
    assert items["E2"].delta.fill_rate_48h is None
    assert items["E2"].risk == RiskLevel.CRITICAL
    assert items["E3"].risk == RiskLevel.CRITICAL
    assert items["E4"].risk == RiskLevel.RISK
    assert items["E1"].risk == RiskLevel.NONE
    assert items["E5"].risk == RiskLevel.NONE
    assert items["E6"].timeline is None
    assert items["E6"].days_to_start_label == "-"


def test_default_order() -> None:
    order = [item.id for item in sort_events(build_items())]

    assert order == ["E2", "E1", "E4", "E3", "E5", "E6"]


def test_sort_by_column_and_direction() -> None:
    items = build_items()

    assert [item.id for item in sort_events(items, "name")] == [
        "E3",
        "E4",
        "E2",
        "E1",
        "E6",
        "E5",
    ]
    by_promos = sort_events(items, "promos", "desc")
    assert by_promos[0].id == "E1"


def test_unknown_sort_key_raises() -> None:
    with pytest.raises(ValueError):
        sort_events(build_items(), "bogus")


def test_search_matches_name_case_insensitively() -> None:
    items = build_items()

    assert [item.id for item in search_events(items, "  sALe ")] == ["E1"]
    assert len(search_events(items, "")) == len(items)
    assert len(search_events(items, None)) == len(items)
