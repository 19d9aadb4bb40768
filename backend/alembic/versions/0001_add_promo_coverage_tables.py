"""add dataset document and event snapshot tables

Revision ID: 0001_add_promo_coverage_tables
Revises:
Create Date: 2026-03-01 00:00:00.000000

"""

from alembic import op
import sqlalchemy as sa

revision = "0001_add_promo_coverage_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "dataset_documents",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("storage_key", sa.String(length=64), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("tables_json", sa.JSON(), nullable=False),
        sa.Column("scope_filter_json", sa.JSON(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_dataset_documents_id", "dataset_documents", ["id"], unique=False)
    op.create_index(
        "ix_dataset_documents_storage_key",
        "dataset_documents",
        ["storage_key"],
        unique=True,
    )

    op.create_table(
        "event_metric_snapshots",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("event_id", sa.String(length=128), nullable=False),
        sa.Column("captured_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("target_stores", sa.Integer(), nullable=False),
        sa.Column("stores_with_promo", sa.Integer(), nullable=False),
        sa.Column("fill_rate", sa.Float(), nullable=False),
        sa.Column("target_promos", sa.Integer(), nullable=False),
        sa.Column("promos_to_date", sa.Integer(), nullable=False),
        sa.Column("gmv_target", sa.Float(), nullable=True),
        sa.Column("gmv_covered", sa.Float(), nullable=True),
        sa.Column("gmv_coverage", sa.Float(), nullable=True),
    )
    op.create_index(
        "ix_event_metric_snapshots_id", "event_metric_snapshots", ["id"], unique=False
    )
    op.create_index(
        "ix_event_metric_snapshots_event_id",
        "event_metric_snapshots",
        ["event_id"],
        unique=False,
    )
    op.create_index(
        "ix_event_metric_snapshots_captured_at",
        "event_metric_snapshots",
        ["captured_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_event_metric_snapshots_captured_at", table_name="event_metric_snapshots")
    op.drop_index("ix_event_metric_snapshots_event_id", table_name="event_metric_snapshots")
    op.drop_index("ix_event_metric_snapshots_id", table_name="event_metric_snapshots")
    op.drop_table("event_metric_snapshots")
    op.drop_index("ix_dataset_documents_storage_key", table_name="dataset_documents")
    op.drop_index("ix_dataset_documents_id", table_name="dataset_documents")
    op.drop_table("dataset_documents")
