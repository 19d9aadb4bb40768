from __future__ import annotations

from datetime import date
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from app.schemas.metrics import EventDelta, EventMetrics, RiskLevel


class GroupCoverage(BaseModel):
    key: str
    target_stores: int
    stores_with_promo: int
    fill_rate: float
    gmv_target: float
    gmv_covered: float
    gmv_coverage: float
    gmv_gap: float


class CityCoverage(GroupCoverage):
    promos_created: int
    risk: RiskLevel = RiskLevel.NONE


class CommercialCoverage(GroupCoverage):
    pass


class BrandCoverage(GroupCoverage):
    city_count: int


class StoreCoverage(BaseModel):
    store_id: str
    brand: str
    region: str
    city: str
    commercial: str
    segment: str
    ops_zone: str
    gmv_last_30d: float
    has_promo: bool
    promo_count: int
    last_promo_date: date | None = None


class CampaignActivity(BaseModel):
    campaign_id: str
    store_id: str
    created_at: date


class HeadlineCard(BaseModel):
    key: str
    title: str
    value: float | None = None
    numerator: float | None = None
    denominator: float | None = None
    delta_48h: float | None = None
    delta_7d: float | None = None


class EventSummary(BaseModel):
    event: EventMetrics
    cards: list[HeadlineCard]
    worst_cities: list[CityCoverage]
    top_brand_gaps: list[BrandCoverage]
    delta: EventDelta | None = None


class EventView(BaseModel):
    level: Literal["event"] = "event"
    event_id: str


class CityView(BaseModel):
    level: Literal["city"] = "city"
    event_id: str
    city: str


class CommercialView(BaseModel):
    level: Literal["commercial"] = "commercial"
    event_id: str
    city: str
    commercial: str


class BrandView(BaseModel):
    level: Literal["brand"] = "brand"
    event_id: str
    city: str
    commercial: str
    brand: str
    only_missing: bool = False


class StoreView(BaseModel):
    level: Literal["store"] = "store"
    event_id: str
    city: str
    commercial: str
    brand: str
    store_id: str


DrilldownView = Annotated[
    Union[EventView, CityView, CommercialView, BrandView, StoreView],
    Field(discriminator="level"),
]
