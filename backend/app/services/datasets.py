from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone

from app.core.logging import get_logger
from app.schemas.datasets import DatasetCounts, ValidationResult
from app.schemas.entities import Dataset
from app.schemas.metrics import EventMetrics
from app.schemas.snapshots import SnapshotWriteResult
from app.services.coverage import compute_event_metrics, resolve_allowed_store_ids
from app.services.documents import SqlDocumentStore, StoredDataset
from app.services.snapshots import SnapshotStore
from app.services.validation import validate_tables

logger = get_logger(__name__)


@dataclass
class IngestionResult:
    adopted: bool
    validation: ValidationResult
    stored: StoredDataset | None = None
    snapshot: SnapshotWriteResult | None = None


def dataset_counts(dataset: Dataset) -> DatasetCounts:
    return DatasetCounts(
        events=len(dataset.events),
        campaigns=len(dataset.campaigns),
        stores=len(dataset.stores),
        event_targets=len(dataset.event_targets) if dataset.event_targets is not None else None,
    )


def compute_stored_metrics(stored: StoredDataset, as_of: date) -> list[EventMetrics]:
    dataset = stored.dataset
    return compute_event_metrics(
        dataset.events,
        dataset.campaigns,
        as_of,
        stores_by_id=dataset.stores_by_id(),
        allowed_store_ids=resolve_allowed_store_ids(dataset.stores, stored.scope_filter),
        event_targets=dataset.event_targets,
    )


def ingest_dataset(
    dataset: Dataset,
    documents: SqlDocumentStore,
    snapshots: SnapshotStore,
    now: datetime | None = None,
) -> IngestionResult:
    now = now or datetime.now(timezone.utc)
    validation = validate_tables(
        dataset.events, dataset.campaigns, dataset.stores, dataset.event_targets
    )
    if not validation.is_valid:
        logger.warning(
            "dataset_rejected",
            hard_errors=len(validation.hard_errors),
            warnings=len(validation.warnings),
        )
        return IngestionResult(adopted=False, validation=validation)

    previous = documents.load()
    scope_filter = previous.scope_filter if previous else None
    stored = documents.save(dataset, scope_filter, now)
    logger.info(
        "dataset_adopted",
        events=len(dataset.events),
        campaigns=len(dataset.campaigns),
        stores=len(dataset.stores),
        warnings=len(validation.warnings),
    )

    metrics = compute_stored_metrics(stored, now.date())
    snapshot = snapshots.record_snapshot(metrics, now)
    return IngestionResult(adopted=True, validation=validation, stored=stored, snapshot=snapshot)
