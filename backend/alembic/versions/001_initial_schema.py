"""Initial schema: content documents, bookings, asset bucket

Revision ID: 001
Revises: None
Create Date: 2026-10-17 00:00:00.000000+00:00

What:  Creates the asset bucket tables (asset_files, asset_chunks), the five
       image-bearing content tables, and bookings.

Rollback: downgrade() drops every table (destructive, including stored images).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

CONTENT_TABLES = {
    "contact_info": [
        sa.Column("mobile", sa.String(32), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("whatsapp", sa.String(32), nullable=False),
    ],
    "gallery_items": [
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
    ],
    "destinations": [
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("country", sa.String(100), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
    ],
    "packages": [
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("price", sa.String(50), nullable=False),
        sa.Column("duration", sa.String(100), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
    ],
    "carousel_slides": [
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("subtitle", sa.String(300), nullable=True),
        sa.Column("link", sa.String(500), nullable=True),
    ],
}


def document_columns():
    """Columns shared by every image-bearing table (ImageDocumentMixin)."""
    return [
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(
            "image",
            sa.String(255),
            nullable=True,
            comment="Reference (filename) of the current image blob",
        ),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    # ── Asset bucket ──────────────────────────────────────────────────────
    op.create_table(
        "asset_files",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("bucket", sa.String(64), nullable=False),
        sa.Column("filename", sa.String(255), nullable=False),
        sa.Column("content_type", sa.String(100), nullable=False),
        sa.Column("length", sa.Integer(), nullable=False),
        sa.Column("chunk_size", sa.Integer(), nullable=False),
        sa.Column("original_name", sa.String(255), nullable=True),
        sa.Column("upload_date", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("bucket", "filename", name="uq_asset_files_bucket_filename"),
    )
    op.create_table(
        "asset_chunks",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("file_id", sa.Uuid(), nullable=False),
        sa.Column("n", sa.Integer(), nullable=False),
        sa.Column("data", sa.LargeBinary(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["file_id"], ["asset_files.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("file_id", "n", name="uq_asset_chunks_file_n"),
    )

    # ── Content documents ─────────────────────────────────────────────────
    for table, columns in CONTENT_TABLES.items():
        op.create_table(
            table,
            *document_columns(),
            *columns,
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(f"ix_{table}_created_at", table, ["created_at"])

    # ── Bookings ──────────────────────────────────────────────────────────
    op.create_table(
        "bookings",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("country_code", sa.String(8), nullable=False),
        sa.Column("phone", sa.String(32), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("checkin", sa.Date(), nullable=False),
        sa.Column("checkout", sa.Date(), nullable=False),
        sa.Column("destination", sa.String(200), nullable=False),
        sa.Column("adults", sa.Integer(), nullable=False),
        sa.Column("children", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("request", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'cancelled')",
            name="ck_bookings_status",
        ),
    )
    op.create_index(
        "idx_bookings_status_created_at",
        "bookings",
        ["status", sa.text("created_at DESC")],
    )


def downgrade() -> None:
    op.drop_index("idx_bookings_status_created_at", table_name="bookings")
    op.drop_table("bookings")
    for table in reversed(list(CONTENT_TABLES)):
        op.drop_index(f"ix_{table}_created_at", table_name=table)
        op.drop_table(table)
    op.drop_table("asset_chunks")
    op.drop_table("asset_files")
