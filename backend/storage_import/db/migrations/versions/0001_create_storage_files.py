"""create storage_files

Revision ID: 0001
Revises:
Create Date: 2026-10-18 09:00:00
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

JSON_TYPE = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    op.create_table(
        "storage_files",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.String(length=100), nullable=False),
        sa.Column("deal_id", sa.String(length=100), nullable=True),
        sa.Column("contact_id", sa.String(length=100), nullable=True),
        sa.Column("provider", sa.String(length=50), nullable=False),
        sa.Column("provider_file_id", sa.String(length=500), nullable=False),
        sa.Column("file_name", sa.String(length=500), nullable=False),
        sa.Column("file_size", sa.Integer(), nullable=True),
        sa.Column("mime_type", sa.String(length=255), nullable=True),
        sa.Column("category", sa.String(length=50), nullable=True),
        sa.Column("web_url", sa.Text(), nullable=True),
        sa.Column("last_modified_at", sa.String(length=64), nullable=True),
        sa.Column("source_label", sa.String(length=600), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("insights", JSON_TYPE, nullable=True),
        sa.Column("pipelines_run", JSON_TYPE, nullable=True),
        sa.Column("ai_summary", sa.Text(), nullable=True),
        sa.Column("ai_sentiment", sa.String(length=50), nullable=True),
        sa.Column("ai_analysis_type", sa.String(length=50), nullable=True),
        sa.Column("health_score_after", sa.Integer(), nullable=True),
        sa.Column("health_status_after", sa.String(length=50), nullable=True),
        sa.Column("imported_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "user_id", "provider", "provider_file_id", "deal_id",
            name="uq_storage_files_user_provider_file_deal",
        ),
    )
    op.create_index("ix_storage_files_user_id", "storage_files", ["user_id"])
    op.create_index("ix_storage_files_deal_id", "storage_files", ["deal_id"])
    op.create_index("ix_storage_files_contact_id", "storage_files", ["contact_id"])
    op.create_index("ix_storage_files_status", "storage_files", ["status"])


def downgrade() -> None:
    op.drop_index("ix_storage_files_status", table_name="storage_files")
    op.drop_index("ix_storage_files_contact_id", table_name="storage_files")
    op.drop_index("ix_storage_files_deal_id", table_name="storage_files")
    op.drop_index("ix_storage_files_user_id", table_name="storage_files")
    op.drop_table("storage_files")
