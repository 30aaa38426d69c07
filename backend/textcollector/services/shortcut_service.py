"""
TextCollector — "Add Snippet" Automation Command
=================================================

What:  The voice/automation entry point: create a snippet from plain
       parameters without opening the UI.
How:   Parses the comma-separated tag string, then goes through the same
       SnippetService.create path as the UI. Persistence failures become a
       failure message instead of an exception.
Who:   POST /api/shortcuts/add-snippet and `textcollector add`.
"""

import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from textcollector.exceptions import PersistenceError
from textcollector.schemas.snippet import ShortcutRequest, ShortcutResponse
from textcollector.services.snippet_service import SnippetService

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Snippet saved successfully!"
FAILURE_PREFIX = "Failed to save snippet"


def parse_tags(tags: Optional[str]) -> List[str]:
    """
    Split a comma-separated tag string.

    Each piece is trimmed; empty pieces are dropped.
        "work, ideas,,  " -> ["work", "ideas"]
    """
    if not tags:
        return []
    return [piece.strip() for piece in tags.split(",") if piece.strip()]


async def add_snippet(
    db: AsyncSession,
    snippet_service: SnippetService,
    request: ShortcutRequest,
    default_category: Optional[str] = None,
) -> ShortcutResponse:
    """
    Run the Add Snippet command once.

    Returns:
        ShortcutResponse with the confirmation message, or with
        "Failed to save snippet: <reason>" when the store rejected the commit.
    """
    try:
        snippet = await snippet_service.create(
            db,
            content=request.text,
            source=request.source,
            category=request.category or default_category,
            tags=parse_tags(request.tags),
            is_favorite=request.is_favorite,
        )
    except PersistenceError as e:
        logger.error("Add Snippet command failed: %s", e.reason)
        return ShortcutResponse(success=False, message=f"{FAILURE_PREFIX}: {e.reason}")

    return ShortcutResponse(success=True, message=SUCCESS_MESSAGE, snippet_id=snippet.id)
