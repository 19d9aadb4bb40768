from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.logging import get_logger
from app.models.dataset_document import DatasetDocument
from app.schemas.entities import Dataset, ScopeFilter

logger = get_logger(__name__)

STORAGE_KEY = "promo_coverage"
DOCUMENT_VERSION = 2


@dataclass
class StoredDataset:
    dataset: Dataset
    scope_filter: ScopeFilter
    updated_at: datetime
    version: int = DOCUMENT_VERSION


class SqlDocumentStore:
    def __init__(self, db: Session, storage_key: str = STORAGE_KEY) -> None:
        self.db = db
        self.storage_key = storage_key

    def _record(self) -> DatasetDocument | None:
        return self.db.scalar(
            select(DatasetDocument).where(DatasetDocument.storage_key == self.storage_key)
        )

    def load(self) -> StoredDataset | None:
        record = self._record()
        if record is None:
            return None
        if record.version != DOCUMENT_VERSION:
            logger.warning(
                "dataset_document_version_mismatch",
                stored=record.version,
                expected=DOCUMENT_VERSION,
            )
            return None
        try:
            dataset = Dataset.model_validate(record.tables_json)
            scope_filter = ScopeFilter.model_validate(record.scope_filter_json or {})
        except ValidationError as exc:
            logger.warning("dataset_document_unreadable", error=str(exc))
            return None
        updated_at = record.updated_at
        if updated_at.tzinfo is None:
            updated_at = updated_at.replace(tzinfo=timezone.utc)
        return StoredDataset(
            dataset=dataset,
            scope_filter=scope_filter,
            updated_at=updated_at,
            version=record.version,
        )

    def save(
        self,
        dataset: Dataset,
        scope_filter: ScopeFilter | None = None,
        updated_at: datetime | None = None,
    ) -> StoredDataset:
        stored = StoredDataset(
            dataset=dataset,
            scope_filter=scope_filter or ScopeFilter(),
            updated_at=updated_at or datetime.now(timezone.utc),
        )
        record = self._record()
        if record is None:
            record = DatasetDocument(storage_key=self.storage_key)
            self.db.add(record)
        record.version = DOCUMENT_VERSION
        record.tables_json = dataset.model_dump(mode="json")
        record.scope_filter_json = stored.scope_filter.model_dump(mode="json")
        record.updated_at = stored.updated_at
        self.db.commit()
        return stored

    def clear(self) -> bool:
        record = self._record()
        if record is None:
            return False
        self.db.delete(record)
        self.db.commit()
        logger.info("dataset_document_cleared", storage_key=self.storage_key)
        return True
