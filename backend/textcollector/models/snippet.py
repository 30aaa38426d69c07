"""
TextCollector — Snippet SQLAlchemy Model
=========================================

What:  ORM model for the `snippets` table and the `snippet_tags` association.
How:   Many-to-many with Tag through `snippet_tags`; tags are eagerly loaded
       (selectin) because async sessions cannot lazy-load on attribute access.
Who:   Mutated only by SnippetService; read by routes, export and the CLI.

Field rules (stated once, here):
    - id and created_at are assigned at creation and never change; assigning
      a different value afterwards raises AttributeError.
    - source, category and notes are None when absent. Readers never get an
      empty string substituted for a missing value.
    - last_modified only moves forward (see touch()).

Index on (created_at, id):
    Serves the ordering of every list query (newest first, id as tiebreak).
"""

import uuid
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import Boolean, Column, ForeignKey, Index, Table, Text, Uuid, false
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from textcollector.database import Base, UTCDateTime, utcnow
from textcollector.models.tag import Tag

# Composite primary key: a snippet can reference a tag at most once
snippet_tags = Table(
    "snippet_tags",
    Base.metadata,
    Column(
        "snippet_id",
        Uuid,
        ForeignKey("snippets.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "tag_id",
        Uuid,
        ForeignKey("tags.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)

_IMMUTABLE_FIELDS = ("id", "created_at")

# Smallest step last_modified advances when the clock has not moved
_TICK = timedelta(microseconds=1)


class Snippet(Base):
    """
    A collected piece of text with optional metadata and tags.

    Lifecycle:
        1. Created by SnippetService.create or the Add Snippet command
        2. Updated by content/category/notes/source edits, favorite toggles
           and tag changes; each refreshes last_modified
        3. Deleted explicitly; its association rows go with it, its tags stay
    """

    __tablename__ = "snippets"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="The collected text",
    )

    source: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        default=None,
        comment="Where the text came from",
    )

    category: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        default=None,
    )

    notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        default=None,
    )

    is_favorite: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
        default=utcnow,
    )

    last_modified: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
        default=utcnow,
    )

    tags: Mapped[List[Tag]] = relationship(
        Tag,
        secondary=snippet_tags,
        lazy="selectin",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_snippets_created_at", "created_at", "id"),
    )

    @validates(*_IMMUTABLE_FIELDS)
    def _validate_immutable(self, key: str, value):
        current = self.__dict__.get(key)
        if current is not None and current != value:
            raise AttributeError(f"Snippet.{key} cannot be changed once set")
        return value

    @property
    def tag_names(self) -> List[str]:
        """Associated tag names, deduplicated and sorted by codepoint."""
        return sorted({tag.name for tag in self.tags})

    def has_tag(self, name_key: str) -> bool:
        return any(tag.name_key == name_key for tag in self.tags)

    def find_tag(self, name_key: str) -> Optional[Tag]:
        for tag in self.tags:
            if tag.name_key == name_key:
                return tag
        return None

    def touch(self, now: Optional[datetime] = None) -> datetime:
        """
        Set last_modified to now, or one tick past its current value if the
        clock has not advanced since the previous mutation.
        """
        now = now or utcnow()
        if self.last_modified is not None and now <= self.last_modified:
            now = self.last_modified + _TICK
        self.last_modified = now
        return now

    def __repr__(self) -> str:
        return (
            f"<Snippet(id={self.id}, favorite={self.is_favorite}, "
            f"created_at='{self.created_at}')>"
        )
