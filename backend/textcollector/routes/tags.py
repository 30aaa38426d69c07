"""
TextCollector — Tag Route Handlers
===================================

    GET    /api/tags            every tag, sorted by name
    DELETE /api/tags/orphans    remove tags no snippet uses anymore
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from textcollector.dependencies import get_db_session, get_snippet_service
from textcollector.schemas.snippet import PruneTagsResponse, TagListResponse, TagResponse
from textcollector.services.snippet_service import SnippetService

router = APIRouter(prefix="/api/tags", tags=["Tags"])


@router.get("", response_model=TagListResponse, summary="List all tags")
async def list_tags(
    db: AsyncSession = Depends(get_db_session),
    service: SnippetService = Depends(get_snippet_service),
) -> TagListResponse:
    tags = await service.tags.list_all(db)
    return TagListResponse(tags=[TagResponse.from_tag(tag) for tag in tags])


@router.delete(
    "/orphans",
    response_model=PruneTagsResponse,
    summary="Delete tags that no snippet references",
    description=(
        "Deleting a snippet never deletes its tags. This endpoint removes the "
        "ones left without any snippet."
    ),
)
async def prune_orphan_tags(
    db: AsyncSession = Depends(get_db_session),
    service: SnippetService = Depends(get_snippet_service),
) -> PruneTagsResponse:
    removed = await service.tags.prune_orphans(db)
    return PruneTagsResponse(tags_deleted=removed)
