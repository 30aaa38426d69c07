"""
TextCollector — Snippet Route Handlers
=======================================

What:  The list/detail/add/edit contract the snippet UI consumes.
How:   Thin handlers: parse the request, call SnippetService, serialize with
       SnippetResponse. Errors propagate to the global exception handlers.

Route Inventory:
    GET    /api/snippets                      list (filter + search)
    POST   /api/snippets                      create
    POST   /api/snippets/bulk-delete          delete several at once
    GET    /api/snippets/{id}                 detail
    PATCH  /api/snippets/{id}                 edit content/category/notes/source
    DELETE /api/snippets/{id}                 delete
    POST   /api/snippets/{id}/favorite        toggle favorite
    POST   /api/snippets/{id}/tags            add tag
    DELETE /api/snippets/{id}/tags/{name}     remove tag
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from textcollector.config import Settings
from textcollector.dependencies import get_db_session, get_settings, get_snippet_service
from textcollector.schemas.snippet import (
    BulkDeleteRequest,
    BulkDeleteResponse,
    ErrorResponse,
    ListFilter,
    SnippetCreate,
    SnippetListResponse,
    SnippetResponse,
    SnippetUpdate,
    TagAddRequest,
)
from textcollector.services.snippet_service import SnippetService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/snippets", tags=["Snippets"])

_NOT_FOUND = {404: {"description": "Snippet not found", "model": ErrorResponse}}


@router.get(
    "",
    response_model=SnippetListResponse,
    summary="List snippets, newest first",
)
async def list_snippets(
    response: Response,
    filter: ListFilter = Query(default=ListFilter.ALL, description="all, favorites or recent"),
    q: str = Query(default="", description="Case-insensitive text to find in snippet content"),
    db: AsyncSession = Depends(get_db_session),
    service: SnippetService = Depends(get_snippet_service),
    settings: Settings = Depends(get_settings),
) -> SnippetListResponse:
    snippets = await service.list_snippets(
        db, list_filter=filter, query=q, recent_days=settings.recent_days
    )
    response.headers["X-Total-Count"] = str(len(snippets))
    return SnippetListResponse(
        snippets=[SnippetResponse.from_snippet(s) for s in snippets],
        count=len(snippets),
        filter=filter,
        query=q,
    )


@router.post(
    "",
    response_model=SnippetResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a snippet",
)
async def create_snippet(
    payload: SnippetCreate,
    db: AsyncSession = Depends(get_db_session),
    service: SnippetService = Depends(get_snippet_service),
    settings: Settings = Depends(get_settings),
) -> SnippetResponse:
    snippet = await service.create(
        db,
        content=payload.content,
        source=payload.source,
        category=payload.category or settings.category_default,
        tags=payload.tags,
        is_favorite=payload.is_favorite,
        notes=payload.notes,
    )
    return SnippetResponse.from_snippet(snippet)


@router.post(
    "/bulk-delete",
    response_model=BulkDeleteResponse,
    responses=_NOT_FOUND,
    summary="Delete several snippets in one transaction",
)
async def bulk_delete(
    payload: BulkDeleteRequest,
    db: AsyncSession = Depends(get_db_session),
    service: SnippetService = Depends(get_snippet_service),
) -> BulkDeleteResponse:
    """All ids must exist; otherwise nothing is deleted and 404 is returned."""
    snippets = await service.get_many(db, payload.ids)
    deleted = await service.delete_many(db, snippets)
    return BulkDeleteResponse(deleted=deleted)


@router.get(
    "/{snippet_id}",
    response_model=SnippetResponse,
    responses=_NOT_FOUND,
    summary="Get a single snippet",
)
async def get_snippet(
    snippet_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    service: SnippetService = Depends(get_snippet_service),
) -> SnippetResponse:
    snippet = await service.get(db, snippet_id)
    return SnippetResponse.from_snippet(snippet)


@router.patch(
    "/{snippet_id}",
    response_model=SnippetResponse,
    responses=_NOT_FOUND,
    summary="Edit a snippet",
)
async def update_snippet(
    snippet_id: UUID,
    payload: SnippetUpdate,
    db: AsyncSession = Depends(get_db_session),
    service: SnippetService = Depends(get_snippet_service),
) -> SnippetResponse:
    """Applies only the fields present in the body, each as its own operation."""
    snippet = await service.get(db, snippet_id)
    sent = payload.model_fields_set

    if "content" in sent:
        await service.update_content(db, snippet, payload.content)
    if "source" in sent:
        await service.update_source(db, snippet, payload.source)
    if "category" in sent:
        await service.update_category(db, snippet, payload.category)
    if "notes" in sent:
        await service.update_notes(db, snippet, payload.notes)

    return SnippetResponse.from_snippet(snippet)


@router.delete(
    "/{snippet_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=_NOT_FOUND,
    summary="Delete a snippet (its tags are kept)",
)
async def delete_snippet(
    snippet_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    service: SnippetService = Depends(get_snippet_service),
) -> Response:
    snippet = await service.get(db, snippet_id)
    await service.delete(db, snippet)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{snippet_id}/favorite",
    response_model=SnippetResponse,
    responses=_NOT_FOUND,
    summary="Toggle the favorite flag",
)
async def toggle_favorite(
    snippet_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    service: SnippetService = Depends(get_snippet_service),
) -> SnippetResponse:
    snippet = await service.get(db, snippet_id)
    await service.toggle_favorite(db, snippet)
    return SnippetResponse.from_snippet(snippet)


@router.post(
    "/{snippet_id}/tags",
    response_model=SnippetResponse,
    responses=_NOT_FOUND,
    summary="Add a tag (no-op if already present)",
)
async def add_tag(
    snippet_id: UUID,
    payload: TagAddRequest,
    db: AsyncSession = Depends(get_db_session),
    service: SnippetService = Depends(get_snippet_service),
) -> SnippetResponse:
    snippet = await service.get(db, snippet_id)
    await service.add_tag(db, snippet, payload.name)
    return SnippetResponse.from_snippet(snippet)


@router.delete(
    "/{snippet_id}/tags/{tag_name}",
    response_model=SnippetResponse,
    responses=_NOT_FOUND,
    summary="Remove a tag (no-op if absent)",
)
async def remove_tag(
    snippet_id: UUID,
    tag_name: str,
    db: AsyncSession = Depends(get_db_session),
    service: SnippetService = Depends(get_snippet_service),
) -> SnippetResponse:
    snippet = await service.get(db, snippet_id)
    await service.remove_tag(db, snippet, tag_name)
    return SnippetResponse.from_snippet(snippet)
