"""
TextCollector — Tag SQLAlchemy Model
=====================================

What:  ORM model for the `tags` table: one row per distinct tag name.
Who:   Created only through TagService.find_or_create; read for display.

Naming rules (stated once, here):
    name       display form, trimmed, first-written casing kept
    name_key   lookup key = casefold(trimmed name); UNIQUE
    Matching is case-insensitive everywhere, so "Work" and " work " are the
    same tag.
"""

import uuid
from datetime import datetime
from typing import Tuple

from sqlalchemy import String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from textcollector.database import Base, UTCDateTime, utcnow


def normalize_tag_name(name: str) -> Tuple[str, str]:
    """Return (display name, lookup key) for a raw tag name."""
    display = name.strip()
    return display, display.casefold()


class Tag(Base):
    """
    A label shared by any number of snippets.

    Lifecycle:
        1. Created lazily the first time a name is referenced
        2. Never removed when its last snippet is deleted (orphans persist)
        3. Removed only by TagService.prune_orphans or clear_all
    """

    __tablename__ = "tags"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Display form of the tag name",
    )

    # Uniqueness lives on the key so find-or-create can upsert against it
    name_key: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        comment="Case-folded, trimmed name used for lookup",
    )

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
        default=utcnow,
    )

    def __repr__(self) -> str:
        return f"<Tag(id={self.id}, name='{self.name}')>"
