"""
TextCollector — Automation Entry Point (Shortcuts)
===================================================

What:  POST /api/shortcuts/add-snippet, the "Add Text Snippet" action that
       voice assistants and automation tools call.
How:   Delegates to shortcut_service.add_snippet. Always answers 200 with a
       ShortcutResponse; a rejected commit is reported as success=false with
       the reason in the message.

Example:
    curl -X POST localhost:8765/api/shortcuts/add-snippet \\
         -H 'Content-Type: application/json' \\
         -d '{"text": "Buy milk", "tags": "errand, home", "isFavorite": true}'
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from textcollector.config import Settings
from textcollector.dependencies import get_db_session, get_settings, get_snippet_service
from textcollector.schemas.snippet import ShortcutRequest, ShortcutResponse
from textcollector.services import shortcut_service
from textcollector.services.snippet_service import SnippetService

router = APIRouter(prefix="/api/shortcuts", tags=["Shortcuts"])


@router.post(
    "/add-snippet",
    response_model=ShortcutResponse,
    summary="Add Text Snippet",
    description="Save text to TextCollector without opening the app.",
)
async def add_snippet(
    payload: ShortcutRequest,
    db: AsyncSession = Depends(get_db_session),
    service: SnippetService = Depends(get_snippet_service),
    settings: Settings = Depends(get_settings),
) -> ShortcutResponse:
    return await shortcut_service.add_snippet(
        db,
        service,
        payload,
        default_category=settings.category_default,
    )
