from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from app.schemas.metrics import CoverageMode, EventMetrics
from app.schemas.snapshots import SnapshotRow
from app.services.snapshots import (
    InMemorySnapshotBackend,
    SnapshotBackend,
    SnapshotStorageError,
    SnapshotStore,
    SqlSnapshotBackend,
)

NOW = datetime(2026, 3, 12, 9, 0, tzinfo=timezone.utc)


def make_metrics(event_id: str = "E1", fill_rate: float = 40.0, **overrides) -> EventMetrics:
    values = {
        "id": event_id,
        "name": f"Event {event_id}",
        "description": "",
        "status": "",
        "mode": CoverageMode.SCOPED,
        "target_promos": 10,
        "target_stores": 10,
        "promos_to_date": 4,
        "stores_to_date": int(fill_rate / 10),
        "promos_pct": 40.0,
        "stores_pct": fill_rate,
        "fill_rate": fill_rate,
        "gap_promos": 6,
        "gap_stores": 10 - int(fill_rate / 10),
    }
    values.update(overrides)
    return EventMetrics(**values)


def make_row(event_id: str, captured_at: datetime, fill_rate: float = 10.0) -> SnapshotRow:
    return SnapshotRow(
        event_id=event_id,
        captured_at=captured_at,
        target_stores=10,
        stores_with_promo=1,
        fill_rate=fill_rate,
        target_promos=10,
        promos_to_date=1,
    )


class FailingBackend(SnapshotBackend):
    def load(self) -> list[SnapshotRow]:
        raise SnapshotStorageError("disk on fire")

    def save(self, rows: list[SnapshotRow]) -> None:
        raise SnapshotStorageError("disk on fire")


def test_record_snapshot_appends_one_row_per_event() -> None:
    backend = InMemorySnapshotBackend()
    store = SnapshotStore(backend)

    result = store.record_snapshot([make_metrics("E1"), make_metrics("E2", 70.0)], NOW)

    assert result.persisted
    assert result.written == 2
    assert result.retained == 2
    assert {row.event_id for row in backend.rows} == {"E1", "E2"}
    assert store.history("E2")[0].fill_rate == 70.0


def test_writes_within_dedup_window_replace_previous_reading() -> None:
    backend = InMemorySnapshotBackend()
    store = SnapshotStore(backend)

    store.record_snapshot([make_metrics(fill_rate=40.0)], NOW)
    store.record_snapshot([make_metrics(fill_rate=50.0)], NOW + timedelta(minutes=20))

    history = store.history("E1")
    assert len(history) == 1
    assert history[0].fill_rate == 50.0
    assert history[0].captured_at == NOW + timedelta(minutes=20)


def test_writes_outside_dedup_window_are_kept() -> None:
    store = SnapshotStore(InMemorySnapshotBackend())

    store.record_snapshot([make_metrics(fill_rate=40.0)], NOW)
    store.record_snapshot([make_metrics(fill_rate=50.0)], NOW + timedelta(minutes=45))

    assert [row.fill_rate for row in store.history("E1")] == [50.0, 40.0]


def test_dedup_only_touches_events_in_the_batch() -> None:
    store = SnapshotStore(InMemorySnapshotBackend())

    store.record_snapshot([make_metrics("E1"), make_metrics("E2")], NOW)
    store.record_snapshot([make_metrics("E1")], NOW + timedelta(minutes=5))

    assert len(store.history("E1")) == 1
    assert len(store.history("E2")) == 1


def test_retention_drops_old_rows() -> None:
    backend = InMemorySnapshotBackend(
        [
            make_row("E1", NOW - timedelta(days=31)),
            make_row("E1", NOW - timedelta(days=29)),
        ]
    )
    store = SnapshotStore(backend)

    result = store.record_snapshot([make_metrics()], NOW)

    assert result.retained == 2
    assert min(row.captured_at for row in backend.rows) == NOW - timedelta(days=29)


def test_max_rows_keeps_newest() -> None:
    backend = InMemorySnapshotBackend(
        [make_row("E2", NOW - timedelta(hours=hours)) for hours in range(1, 6)]
    )
    store = SnapshotStore(backend, max_rows=3)

    result = store.record_snapshot([make_metrics()], NOW)

    assert result.retained == 3
    assert [row.captured_at for row in backend.rows] == [
        NOW,
        NOW - timedelta(hours=1),
        NOW - timedelta(hours=2),
    ]


def test_failing_backend_reports_lost_write() -> None:
    store = SnapshotStore(FailingBackend())

    result = store.record_snapshot([make_metrics()], NOW)

    assert not result.persisted
    assert result.written == 0
    assert result.error == "disk on fire"
    assert store.history("E1") == []
    assert store.find_closest("E1", NOW) is None


def test_find_closest_respects_tolerance() -> None:
    store = SnapshotStore(
        InMemorySnapshotBackend(
            [
                make_row("E1", NOW - timedelta(hours=50), fill_rate=20.0),
                make_row("E1", NOW - timedelta(hours=30), fill_rate=30.0),
                make_row("E2", NOW - timedelta(hours=48), fill_rate=99.0),
            ]
        )
    )
    target = NOW - timedelta(hours=48)

    assert store.find_closest("E1", target).fill_rate == 20.0
    assert store.find_closest("E1", target, timedelta(hours=1)) is None
    assert store.find_closest("E3", target) is None


def test_find_closest_tie_keeps_first_seen() -> None:
    target = NOW - timedelta(hours=48)
    store = SnapshotStore(
        InMemorySnapshotBackend(
            [
                make_row("E1", target + timedelta(hours=2), fill_rate=60.0),
                make_row("E1", target - timedelta(hours=2), fill_rate=30.0),
            ]
        )
    )

    assert store.find_closest("E1", target, timedelta(hours=24)).fill_rate == 60.0


def test_naive_timestamps_are_treated_as_utc() -> None:
    store = SnapshotStore(InMemorySnapshotBackend())

    store.record_snapshot([make_metrics()], NOW.replace(tzinfo=None))

    assert store.history("E1")[0].captured_at == NOW


def test_sql_backend_round_trip(db: Session) -> None:
    store = SnapshotStore(SqlSnapshotBackend(db))

    store.record_snapshot([make_metrics(gmv_target=500.0, gmv_covered=250.0, gmv_coverage=50.0)], NOW)
    store.record_snapshot([make_metrics(fill_rate=60.0)], NOW + timedelta(hours=2))

    history = store.history("E1")
    assert [row.fill_rate for row in history] == [60.0, 40.0]
    assert history[1].gmv_coverage == 50.0
    assert history[0].gmv_coverage is None
    assert history[1].captured_at == NOW


class UnreadableBackend(InMemorySnapshotBackend):
    def load(self) -> list[SnapshotRow]:
        raise SnapshotStorageError("history unreadable")


def test_unreadable_history_is_not_overwritten() -> None:
    seeded = [
        make_row(event_id, NOW - timedelta(days=days))
        for event_id in ("E1", "E2")
        for days in range(1, 6)
    ]
    backend = UnreadableBackend(seeded)
    store = SnapshotStore(backend)

    result = store.record_snapshot([make_metrics("E1")], NOW)

    assert not result.persisted
    assert result.error == "history unreadable"
    assert backend.rows == seeded


def test_history_by_event_groups_rows() -> None:
    store = SnapshotStore(
        InMemorySnapshotBackend(
            [
                make_row("E1", NOW),
                make_row("E2", NOW),
                make_row("E1", NOW - timedelta(hours=1)),
            ]
        )
    )

    grouped = store.history_by_event()

    assert sorted(grouped) == ["E1", "E2"]
    assert len(grouped["E1"]) == 2
    assert len(grouped["E2"]) == 1
