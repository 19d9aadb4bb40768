from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class DatasetDocument(Base):
    __tablename__ = "dataset_documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    storage_key: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True, index=True
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    tables_json: Mapped[dict] = mapped_column(JSON, nullable=False)
    scope_filter_json: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
