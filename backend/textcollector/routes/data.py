"""
TextCollector — Data Route Handlers (Settings → Data)
======================================================

What:  Statistics, export/import and "Clear All Data".

    GET    /api/stats     total/favorite/tag counts (never cached)
    GET    /api/export    JSON export of every snippet
    POST   /api/import    import a JSON export
    DELETE /api/data      remove every snippet and tag, atomically
"""

import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from textcollector.dependencies import get_db_session, get_snippet_service
from textcollector.schemas.snippet import (
    ClearDataResponse,
    ErrorResponse,
    ExportDocument,
    ImportResponse,
    StatsResponse,
)
from textcollector.services import transfer_service
from textcollector.services.snippet_service import SnippetService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Data"])


@router.get("/stats", response_model=StatsResponse, summary="Snippet statistics")
async def get_stats(
    response: Response,
    db: AsyncSession = Depends(get_db_session),
    service: SnippetService = Depends(get_snippet_service),
) -> StatsResponse:
    response.headers["Cache-Control"] = "no-store"
    return await service.statistics(db)


@router.get(
    "/export",
    response_model=ExportDocument,
    summary="Export all snippets as JSON",
)
async def export_snippets(
    response: Response,
    db: AsyncSession = Depends(get_db_session),
    service: SnippetService = Depends(get_snippet_service),
) -> ExportDocument:
    document = await transfer_service.export_snippets(db, service)
    response.headers["Content-Disposition"] = 'attachment; filename="textcollector-export.json"'
    return document


@router.post(
    "/import",
    response_model=ImportResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Invalid export document", "model": ErrorResponse}},
    summary="Import snippets from a JSON export",
)
async def import_snippets(
    document: ExportDocument,
    db: AsyncSession = Depends(get_db_session),
    service: SnippetService = Depends(get_snippet_service),
) -> ImportResponse:
    transfer_service.check_version(document)
    imported = await transfer_service.import_snippets(db, service, document)
    return ImportResponse(imported=imported)


@router.delete(
    "/data",
    response_model=ClearDataResponse,
    responses={500: {"description": "Nothing was deleted", "model": ErrorResponse}},
    summary="Clear all data",
)
async def clear_all_data(
    db: AsyncSession = Depends(get_db_session),
    service: SnippetService = Depends(get_snippet_service),
) -> ClearDataResponse:
    return await service.clear_all(db)
