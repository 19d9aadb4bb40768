from datetime import datetime

from sqlalchemy import DateTime, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class EventMetricSnapshot(Base):
    __tablename__ = "event_metric_snapshots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    event_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    captured_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    target_stores: Mapped[int] = mapped_column(Integer, nullable=False)
    stores_with_promo: Mapped[int] = mapped_column(Integer, nullable=False)
    fill_rate: Mapped[float] = mapped_column(Float, nullable=False)
    target_promos: Mapped[int] = mapped_column(Integer, nullable=False)
    promos_to_date: Mapped[int] = mapped_column(Integer, nullable=False)
    gmv_target: Mapped[float | None] = mapped_column(Float, nullable=True)
    gmv_covered: Mapped[float | None] = mapped_column(Float, nullable=True)
    gmv_coverage: Mapped[float | None] = mapped_column(Float, nullable=True)
