"""Create snippets, tags and snippet_tags tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Initial TextCollector schema.
How:   Portable column types (Uuid, Text, DateTime with time zone) so the same
       revision runs against the default SQLite file and against PostgreSQL.

Rollback: downgrade() drops all three tables (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "snippets",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False, comment="The collected text"),
        sa.Column("source", sa.Text(), nullable=True, comment="Where the text came from"),
        sa.Column("category", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "is_favorite",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_modified", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    # Newest-first listing orders by created_at, then id
    op.create_index(
        "idx_snippets_created_at",
        "snippets",
        ["created_at", "id"],
    )

    op.create_table(
        "tags",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False, comment="Display form of the tag name"),
        sa.Column(
            "name_key",
            sa.String(255),
            nullable=False,
            comment="Case-folded, trimmed name used for lookup",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name_key"),
    )

    op.create_table(
        "snippet_tags",
        sa.Column("snippet_id", sa.Uuid(), nullable=False),
        sa.Column("tag_id", sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(["snippet_id"], ["snippets.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["tag_id"], ["tags.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("snippet_id", "tag_id"),
    )


def downgrade() -> None:
    op.drop_table("snippet_tags")
    op.drop_table("tags")
    op.drop_index("idx_snippets_created_at", table_name="snippets")
    op.drop_table("snippets")
