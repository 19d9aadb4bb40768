from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from app.services.parsing import parse_decimal


class EventRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    event_id: str
    event_name: str = ""
    description: str = ""
    start_date: str = ""
    end_date: str = ""
    status: str = ""
    target_promos: int = 0
    target_stores: int = 0


class CampaignRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    campaign_id: str
    event_id: str
    store_id: str
    created_at: str = ""


class StoreRow(BaseModel):
    """Store catalog row.

    GMV columns keep the raw cell text so the validator can tell a missing
    value from a malformed one; ``gmv_30d`` / ``gmv_7d`` give the parsed
    figures.
    """

    model_config = ConfigDict(frozen=True)

    store_id: str
    brand: str = ""
    region: str = ""
    city: str = ""
    commercial: str = ""
    segment: str = ""
    ops_zone: str = ""
    gmv_last_30d: str = ""
    gmv_last_7d: str | None = None

    @property
    def gmv_30d(self) -> float:
        value = parse_decimal(self.gmv_last_30d)
        return value if value is not None and value > 0 else 0.0

    @property
    def gmv_7d(self) -> float | None:
        if self.gmv_last_7d is None:
            return None
        return parse_decimal(self.gmv_last_7d)


class EventTargetRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    event_id: str
    store_id: str


class Dataset(BaseModel):
    events: list[EventRow] = Field(default_factory=list)
    campaigns: list[CampaignRow] = Field(default_factory=list)
    stores: list[StoreRow] = Field(default_factory=list)
    event_targets: list[EventTargetRow] | None = None

    def stores_by_id(self) -> dict[str, StoreRow]:
        return {store.store_id: store for store in self.stores}

    def find_event(self, event_id: str) -> EventRow | None:
        for event in self.events:
            if event.event_id == event_id:
                return event
        return None


class ScopeFilter(BaseModel):
    regions: list[str] = Field(default_factory=list)
    cities: list[str] = Field(default_factory=list)
    commercials: list[str] = Field(default_factory=list)
    brands: list[str] = Field(default_factory=list)
    segments: list[str] = Field(default_factory=list)
    ops_zones: list[str] = Field(default_factory=list)

    @property
    def is_active(self) -> bool:
        return any(
            (
                self.regions,
                self.cities,
                self.commercials,
                self.brands,
                self.segments,
                self.ops_zones,
            )
        )
