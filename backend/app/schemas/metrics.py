from __future__ import annotations

from datetime import date
from enum import Enum

from pydantic import BaseModel, Field


class CoverageMode(str, Enum):
    OPEN = "open"
    SCOPED = "scoped"


class Timeline(str, Enum):
    ONGOING = "ongoing"
    FUTURE = "future"
    FINISHED = "finished"


class RiskLevel(str, Enum):
    NONE = "none"
    RISK = "risk"
    CRITICAL = "critical"


class EventMetrics(BaseModel):
    id: str
    name: str
    description: str
    status: str
    start_date: date | None = None
    end_date: date | None = None
    mode: CoverageMode
    target_promos: int
    target_stores: int
    promos_to_date: int
    stores_to_date: int
    promos_pct: float
    stores_pct: float
    fill_rate: float
    gap_promos: int
    gap_stores: int
    days_to_start: int | None = None
    gmv_target: float | None = None
    gmv_covered: float | None = None
    gmv_coverage: float | None = None
    gmv_gap: float | None = None

    @property
    def is_scoped(self) -> bool:
        return self.mode == CoverageMode.SCOPED


class EventDelta(BaseModel):
    fill_rate_48h: float | None = None
    fill_rate_7d: float | None = None
    gmv_coverage_48h: float | None = None
    gmv_coverage_7d: float | None = None


class EventListItem(EventMetrics):
    timeline: Timeline | None = None
    days_to_start_label: str
    risk: RiskLevel = RiskLevel.NONE
    delta: EventDelta = Field(default_factory=EventDelta)
