from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class SnapshotRow(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    event_id: str
    captured_at: datetime
    target_stores: int
    stores_with_promo: int
    fill_rate: float
    target_promos: int
    promos_to_date: int
    gmv_target: float | None = None
    gmv_covered: float | None = None
    gmv_coverage: float | None = None


class SnapshotWriteResult(BaseModel):
    persisted: bool
    written: int = 0
    retained: int = 0
    error: str | None = None
