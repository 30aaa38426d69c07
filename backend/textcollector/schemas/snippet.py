"""
TextCollector — Pydantic Request/Response Schemas
==================================================

What:  The API contract between the UI (or any automation caller) and the service.
How:   FastAPI validates request bodies against these models and serializes
       responses from them; the CLI and export reuse the same models.

Optional text fields:
    source, category and notes are `None` when absent. At this boundary a
    blank or whitespace-only value sent by a client is read as "absent" and
    becomes None; the model layer never invents an empty string.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from textcollector.models.snippet import Snippet
    from textcollector.models.tag import Tag

EXPORT_FORMAT_VERSION = 1


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value if value.strip() else None


class ListFilter(str, Enum):
    """Filters offered by the snippet list view."""

    ALL = "all"
    FAVORITES = "favorites"
    RECENT = "recent"


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class SnippetCreate(BaseModel):
    """
    Body of POST /api/snippets (the "Add Snippet" form).

    Empty content is rejected here, matching the form's disabled Save button.
    """

    content: str = Field(min_length=1, description="The text to collect")
    source: Optional[str] = Field(default=None, description="Where the text came from")
    category: Optional[str] = Field(default=None, description="Category for organizing")
    notes: Optional[str] = Field(default=None, description="Free-form notes")
    tags: List[str] = Field(default_factory=list, description="Tag names")
    is_favorite: bool = Field(
        default=False,
        validation_alias=AliasChoices("is_favorite", "isFavorite"),
    )

    @field_validator("source", "category", "notes")
    @classmethod
    def blank_is_absent(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)

    @field_validator("tags")
    @classmethod
    def drop_blank_tags(cls, v: List[str]) -> List[str]:
        return [name.strip() for name in v if name.strip()]


class SnippetUpdate(BaseModel):
    """
    Body of PATCH /api/snippets/{id}.

    Only fields present in the body are applied; sending `"category": null`
    clears the category, leaving it out keeps it.
    Content can be left out but not cleared: `"content": null` is rejected.
    """

    content: Optional[str] = Field(default=None, min_length=1)
    source: Optional[str] = None
    category: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("content")
    @classmethod
    def content_not_null(cls, v: Optional[str]) -> str:
        if v is None:
            raise ValueError("content cannot be null")
        return v

    @field_validator("source", "category", "notes")
    @classmethod
    def blank_is_absent(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)


class TagAddRequest(BaseModel):
    """Body of POST /api/snippets/{id}/tags."""

    name: str = Field(min_length=1, description="Tag name; trimmed, matched case-insensitively")


class BulkDeleteRequest(BaseModel):
    """Body of POST /api/snippets/bulk-delete."""

    ids: List[uuid.UUID] = Field(min_length=1, description="Snippets to delete together")


class ShortcutRequest(BaseModel):
    """
    Parameters of the "Add Snippet" automation command.

    `tags` is one comma-separated string, exactly as a Shortcuts user types it.
    """

    text: str = Field(min_length=1, description="The text content to save")
    source: Optional[str] = Field(default=None, description="Where the text came from")
    category: Optional[str] = Field(default=None, description="Category to organize the snippet")
    tags: Optional[str] = Field(default=None, description="Tags to add (comma-separated)")
    is_favorite: bool = Field(
        default=False,
        validation_alias=AliasChoices("is_favorite", "isFavorite"),
        description="Mark as Favorite",
    )

    @field_validator("source", "category")
    @classmethod
    def blank_is_absent(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class SnippetResponse(BaseModel):
    """Full representation of a snippet, as the list and detail views render it."""

    id: uuid.UUID
    content: str
    source: Optional[str] = None
    category: Optional[str] = None
    notes: Optional[str] = None
    is_favorite: bool
    created_at: datetime
    last_modified: datetime
    tags: List[str] = Field(description="Tag names, sorted and deduplicated")

    @classmethod
    def from_snippet(cls, snippet: "Snippet") -> "SnippetResponse":
        return cls(
            id=snippet.id,
            content=snippet.content,
            source=snippet.source,
            category=snippet.category,
            notes=snippet.notes,
            is_favorite=snippet.is_favorite,
            created_at=snippet.created_at,
            last_modified=snippet.last_modified,
            tags=snippet.tag_names,
        )


class SnippetListResponse(BaseModel):
    """GET /api/snippets: snippets newest first, after filter and search."""

    snippets: List[SnippetResponse]
    count: int = Field(description="Number of snippets in this response")
    filter: ListFilter
    query: str = ""


class TagResponse(BaseModel):
    id: uuid.UUID
    name: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_tag(cls, tag: "Tag") -> "TagResponse":
        return cls.model_validate(tag)


class TagListResponse(BaseModel):
    tags: List[TagResponse]


class PruneTagsResponse(BaseModel):
    tags_deleted: int


class BulkDeleteResponse(BaseModel):
    deleted: int


class ClearDataResponse(BaseModel):
    """Result of the settings screen's "Clear All Data" action."""

    snippets_deleted: int
    tags_deleted: int


class StatsResponse(BaseModel):
    """Figures for the settings "Data" tab; computed fresh on every request."""

    total_snippets: int
    favorite_snippets: int
    total_tags: int
    storage: str = "Local"


class ShortcutResponse(BaseModel):
    """
    Result of the "Add Snippet" command.

    A persistence failure is reported here (success=False) rather than as
    an HTTP error, so automation callers always get a dialog message.
    """

    success: bool
    message: str
    snippet_id: Optional[uuid.UUID] = None


# ══════════════════════════════════════════════════════════════════════════
# Export / Import
# ══════════════════════════════════════════════════════════════════════════


class ExportedSnippet(BaseModel):
    content: str
    source: Optional[str] = None
    category: Optional[str] = None
    notes: Optional[str] = None
    is_favorite: bool = False
    created_at: Optional[datetime] = None
    last_modified: Optional[datetime] = None
    tags: List[str] = Field(default_factory=list)

    @field_validator("tags")
    @classmethod
    def drop_blank_tags(cls, v: List[str]) -> List[str]:
        return [name.strip() for name in v if name.strip()]

    @field_validator("created_at", "last_modified")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Timestamps without an offset are read as UTC."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class ExportDocument(BaseModel):
    """The JSON document written by export and accepted by import."""

    version: int = EXPORT_FORMAT_VERSION
    exported_at: Optional[datetime] = None
    snippets: List[ExportedSnippet] = Field(default_factory=list)


class ImportResponse(BaseModel):
    imported: int


# ══════════════════════════════════════════════════════════════════════════
# Error / Health
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standardized error body for all API errors.

    Example:
        {
            "error": "not_found",
            "message": "snippet with ID '...' was not found",
            "request_id": "a1b2c3d4"
        }
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="healthy or unhealthy")
    version: str
    database: str = Field(description="connected or disconnected")
    uptime_seconds: float
