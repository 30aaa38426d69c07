"""
TextCollector — Import / Export Service
========================================

What:  "Export All Snippets…" and "Import Snippets…" from the settings screen.
How:   Export serializes every snippet (newest first) into an ExportDocument.
       Import validates a document, builds every snippet through
       SnippetService.build (fresh ids, tags resolved by find-or-create) and
       commits once: a failed import leaves the store untouched.
"""

import json
import logging
from typing import Any, Dict, Union

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from textcollector.database import utcnow
from textcollector.exceptions import ValidationError
from textcollector.schemas.snippet import (
    EXPORT_FORMAT_VERSION,
    ExportDocument,
    ExportedSnippet,
)
from textcollector.services.persistence import save
from textcollector.services.snippet_service import SnippetService

logger = logging.getLogger(__name__)


async def export_snippets(db: AsyncSession, snippet_service: SnippetService) -> ExportDocument:
    snippets = await snippet_service.fetch_all(db)
    return ExportDocument(
        version=EXPORT_FORMAT_VERSION,
        exported_at=utcnow(),
        snippets=[
            ExportedSnippet(
                content=snippet.content,
                source=snippet.source,
                category=snippet.category,
                notes=snippet.notes,
                is_favorite=snippet.is_favorite,
                created_at=snippet.created_at,
                last_modified=snippet.last_modified,
                tags=snippet.tag_names,
            )
            for snippet in snippets
        ],
    )


def parse_document(raw: Union[str, bytes, Dict[str, Any]]) -> ExportDocument:
    """
    Validate an export document given as JSON text or an already-parsed dict.

    Raises:
        ValidationError: not JSON, wrong shape, or an unsupported version
    """
    try:
        if isinstance(raw, (str, bytes)):
            document = ExportDocument.model_validate_json(raw)
        else:
            document = ExportDocument.model_validate(raw)
    except PydanticValidationError as e:
        raise ValidationError(
            message="The import file is not a valid TextCollector export",
            field="document",
            context={"errors": json.loads(e.json(include_url=False))},
        ) from e

    return check_version(document)


def check_version(document: ExportDocument) -> ExportDocument:
    """
    Raises:
        ValidationError: the document was written by an unknown format version
    """
    if document.version != EXPORT_FORMAT_VERSION:
        raise ValidationError(
            message=f"Unsupported export version {document.version}",
            field="version",
        )
    return document


async def import_snippets(
    db: AsyncSession,
    snippet_service: SnippetService,
    document: ExportDocument,
) -> int:
    """
    Create every snippet of `document` and commit once.

    created_at, favorite flag and notes are preserved; ids are new.

    Returns:
        Number of snippets imported.
    """
    for item in document.snippets:
        await snippet_service.build(
            db,
            content=item.content,
            source=item.source,
            category=item.category,
            notes=item.notes,
            tags=item.tags,
            is_favorite=item.is_favorite,
            created_at=item.created_at,
        )
    await save(db, operation="import")
    logger.info("Imported %d snippet(s)", len(document.snippets))
    return len(document.snippets)
