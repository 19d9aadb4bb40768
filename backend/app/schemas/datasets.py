from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from app.schemas.entities import ScopeFilter
from app.schemas.snapshots import SnapshotWriteResult


class ValidationResult(BaseModel):
    hard_errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.hard_errors


class DatasetCounts(BaseModel):
    events: int
    campaigns: int
    stores: int
    event_targets: int | None = None


class IngestionResponse(BaseModel):
    adopted: bool
    validation: ValidationResult
    counts: DatasetCounts
    updated_at: datetime | None = None
    snapshot: SnapshotWriteResult | None = None


class DatasetPublic(BaseModel):
    version: int
    updated_at: datetime
    counts: DatasetCounts
    scope_filter: ScopeFilter
    allowed_store_count: int | None = None
