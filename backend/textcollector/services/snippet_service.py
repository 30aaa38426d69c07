"""
TextCollector — Snippet Service (Snippet Manager)
==================================================

What:  The facade over the snippet and tag stores: create, update, tag,
       delete, fetch, search and statistics.
How:   Every mutating method changes the ORM objects in place, refreshes
       last_modified, then ends with the shared save() step (commit only
       when something is pending; PersistenceError on rejection).
Who:   Route handlers, the Add Snippet command, import and sample data.

Read semantics:
    - Ordering everywhere: created_at DESC, then id DESC as the tiebreak.
    - Counts are COUNT(*) queries on every call; nothing is cached.
    - Search matches content only, ignoring case and diacritics, and keeps
      the chronological order (no ranking).

In-memory state:
    Sessions are created with expire_on_commit=False, so once a method
    returns, the Snippet the caller holds already shows the new values.
"""

import logging
import unicodedata
import uuid
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from textcollector.database import utcnow
from textcollector.exceptions import NotFoundError
from textcollector.models.snippet import Snippet, snippet_tags
from textcollector.models.tag import Tag, normalize_tag_name
from textcollector.schemas.snippet import ClearDataResponse, ListFilter, StatsResponse
from textcollector.services.persistence import mark_pending, read_guard, save, write_guard
from textcollector.services.tag_service import TagService

logger = logging.getLogger(__name__)

STORAGE_KIND = "Local"


def fold_text(value: str) -> str:
    """Case- and diacritic-insensitive form of `value` for substring matching."""
    decomposed = unicodedata.normalize("NFKD", value)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


def _ordered(query):
    return query.order_by(Snippet.created_at.desc(), Snippet.id.desc())


class SnippetService:
    """
    Business logic layer for snippets.

    One instance per store. Every creation path resolves tags through the
    same TagService, so imports, the API and Add Snippet agree on names.
    """

    def __init__(self, tag_service: Optional[TagService] = None):
        self.tags = tag_service or TagService()

    # ── Create ────────────────────────────────────────────────────────────

    async def create(
        self,
        db: AsyncSession,
        content: str,
        source: Optional[str] = None,
        category: Optional[str] = None,
        tags: Iterable[str] = (),
        is_favorite: bool = False,
        notes: Optional[str] = None,
    ) -> Snippet:
        """
        Create a snippet, resolve its tags and commit.

        Empty content is accepted here; the API schema and the CLI reject it
        before it gets this far.

        Raises:
            ValidationError: a tag name is blank after trimming
            PersistenceError: the store rejected a write or the commit
        """
        snippet = await self.build(
            db,
            content=content,
            source=source,
            category=category,
            tags=tags,
            is_favorite=is_favorite,
            notes=notes,
        )
        await save(db, operation="create")
        logger.info("Snippet %s created (%d tag(s))", snippet.id, len(snippet.tags))
        return snippet

    async def build(
        self,
        db: AsyncSession,
        content: str,
        source: Optional[str] = None,
        category: Optional[str] = None,
        tags: Iterable[str] = (),
        is_favorite: bool = False,
        notes: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> Snippet:
        """
        Create a snippet in the session without committing.

        Used by create() and by import, which commits once for a whole batch.

        Raises:
            ValidationError: a tag name is blank after trimming
            PersistenceError: the store rejected a tag lookup or insert
        """
        tag_names = list(tags)
        for name in tag_names:
            self.tags.normalize(name)

        now = utcnow()
        created = created_at or now
        snippet = Snippet(
            id=uuid.uuid4(),
            content=content,
            source=source,
            category=category,
            notes=notes,
            is_favorite=is_favorite,
            created_at=created,
            last_modified=max(created, now),
        )
        async with write_guard(db, "build"):
            for name in tag_names:
                tag = await self.tags.find_or_create(db, name)
                if not snippet.has_tag(tag.name_key):
                    snippet.tags.append(tag)
            db.add(snippet)
        return snippet

    # ── Update ────────────────────────────────────────────────────────────

    async def update_content(self, db: AsyncSession, snippet: Snippet, content: str) -> Snippet:
        snippet.content = content
        snippet.touch()
        await save(db, operation="update_content")
        return snippet

    async def toggle_favorite(self, db: AsyncSession, snippet: Snippet) -> Snippet:
        snippet.is_favorite = not snippet.is_favorite
        snippet.touch()
        await save(db, operation="toggle_favorite")
        logger.debug("Snippet %s favorite=%s", snippet.id, snippet.is_favorite)
        return snippet

    async def update_category(
        self, db: AsyncSession, snippet: Snippet, category: Optional[str]
    ) -> Snippet:
        snippet.category = category
        snippet.touch()
        await save(db, operation="update_category")
        return snippet

    async def update_notes(
        self, db: AsyncSession, snippet: Snippet, notes: Optional[str]
    ) -> Snippet:
        snippet.notes = notes
        snippet.touch()
        await save(db, operation="update_notes")
        return snippet

    async def update_source(
        self, db: AsyncSession, snippet: Snippet, source: Optional[str]
    ) -> Snippet:
        snippet.source = source
        snippet.touch()
        await save(db, operation="update_source")
        return snippet

    async def add_tag(self, db: AsyncSession, snippet: Snippet, tag_name: str) -> Snippet:
        """
        Associate a tag, creating it if needed.

        Adding a tag the snippet already has leaves its tags unchanged.
        """
        tag = await self.tags.find_or_create(db, tag_name)
        if not snippet.has_tag(tag.name_key):
            snippet.tags.append(tag)
        snippet.touch()
        await save(db, operation="add_tag")
        return snippet

    async def remove_tag(self, db: AsyncSession, snippet: Snippet, tag_name: str) -> Snippet:
        """
        Disassociate a tag by name. A name the snippet does not carry is a no-op.

        The Tag row itself is kept even if no snippet references it anymore.
        """
        _, key = normalize_tag_name(tag_name)
        tag = snippet.find_tag(key) if key else None
        if tag is None:
            return snippet
        snippet.tags.remove(tag)
        snippet.touch()
        await save(db, operation="remove_tag")
        return snippet

    # ── Delete ────────────────────────────────────────────────────────────

    async def delete(self, db: AsyncSession, snippet: Snippet) -> None:
        async with write_guard(db, "delete"):
            await db.delete(snippet)
        await save(db, operation="delete")
        logger.info("Snippet %s deleted", snippet.id)

    async def delete_many(self, db: AsyncSession, snippets: Sequence[Snippet]) -> int:
        """
        Delete several snippets in one transaction.

        Either every snippet is removed and committed, or the transaction is
        rolled back and PersistenceError is raised.

        Returns:
            Number of snippets deleted.
        """
        async with write_guard(db, "delete_many"):
            for snippet in snippets:
                await db.delete(snippet)
        await save(db, operation="delete_many")
        logger.info("Deleted %d snippet(s)", len(snippets))
        return len(snippets)

    async def clear_all(self, db: AsyncSession) -> ClearDataResponse:
        """
        Remove every snippet and every tag in a single transaction.

        Raises:
            PersistenceError: nothing was removed
        """
        async with write_guard(db, "clear_all"):
            await db.execute(delete(snippet_tags))
            snippets = await db.execute(
                delete(Snippet).execution_options(synchronize_session=False)
            )
            tags = await db.execute(
                delete(Tag).execution_options(synchronize_session=False)
            )
        mark_pending(db)
        await save(db, operation="clear_all")
        db.expunge_all()

        result = ClearDataResponse(
            snippets_deleted=snippets.rowcount or 0,
            tags_deleted=tags.rowcount or 0,
        )
        logger.warning(
            "All data cleared: %d snippet(s), %d tag(s)",
            result.snippets_deleted,
            result.tags_deleted,
        )
        return result

    # ── Fetch ─────────────────────────────────────────────────────────────

    async def _scalars(self, db: AsyncSession, stmt, operation: str) -> List[Snippet]:
        with read_guard(operation):
            result = await db.execute(stmt)
            return list(result.scalars().all())

    async def _count(self, db: AsyncSession, stmt, operation: str) -> int:
        with read_guard(operation):
            result = await db.execute(stmt)
        return result.scalar() or 0

    async def get(self, db: AsyncSession, snippet_id: UUID) -> Snippet:
        """
        Raises:
            NotFoundError: no snippet with this id
            DatabaseError: the lookup itself failed
        """
        with read_guard("get"):
            snippet = await db.get(Snippet, snippet_id)
        if snippet is None:
            raise NotFoundError(resource="snippet", resource_id=str(snippet_id))
        return snippet

    async def get_many(self, db: AsyncSession, snippet_ids: Sequence[UUID]) -> List[Snippet]:
        """
        Load snippets by id, all or nothing.

        Raises:
            NotFoundError: at least one id does not exist (names the first)
        """
        wanted = list(dict.fromkeys(snippet_ids))
        if not wanted:
            return []
        loaded = await self._scalars(
            db, select(Snippet).where(Snippet.id.in_(wanted)), "get_many"
        )
        found = {snippet.id: snippet for snippet in loaded}
        for snippet_id in wanted:
            if snippet_id not in found:
                raise NotFoundError(resource="snippet", resource_id=str(snippet_id))
        return [found[snippet_id] for snippet_id in wanted]

    async def fetch_all(self, db: AsyncSession) -> List[Snippet]:
        """Every snippet, newest first."""
        return await self._scalars(db, _ordered(select(Snippet)), "fetch_all")

    async def fetch_favorites(self, db: AsyncSession) -> List[Snippet]:
        return await self._scalars(
            db,
            _ordered(select(Snippet).where(Snippet.is_favorite.is_(True))),
            "fetch_favorites",
        )

    async def fetch_recent(self, db: AsyncSession, days: int = 7) -> List[Snippet]:
        """Snippets created within the last `days` days, newest first."""
        since = utcnow() - timedelta(days=days)
        return await self._scalars(
            db,
            _ordered(select(Snippet).where(Snippet.created_at >= since)),
            "fetch_recent",
        )

    async def search(self, db: AsyncSession, query: str) -> List[Snippet]:
        """
        Snippets whose content contains `query`, ignoring case and diacritics.

        An empty query returns exactly fetch_all().
        """
        return self._matching(await self.fetch_all(db), query)

    async def list_snippets(
        self,
        db: AsyncSession,
        list_filter: ListFilter = ListFilter.ALL,
        query: str = "",
        recent_days: int = 7,
    ) -> List[Snippet]:
        """The list view: a filter, then the search text applied on top."""
        if list_filter == ListFilter.FAVORITES:
            snippets = await self.fetch_favorites(db)
        elif list_filter == ListFilter.RECENT:
            snippets = await self.fetch_recent(db, days=recent_days)
        else:
            snippets = await self.fetch_all(db)
        return self._matching(snippets, query)

    @staticmethod
    def _matching(snippets: List[Snippet], query: str) -> List[Snippet]:
        if not query:
            return snippets
        needle = fold_text(query)
        return [snippet for snippet in snippets if needle in fold_text(snippet.content)]

    # ── Statistics ────────────────────────────────────────────────────────

    async def count_total(self, db: AsyncSession) -> int:
        return await self._count(db, select(func.count()).select_from(Snippet), "count_total")

    async def count_favorites(self, db: AsyncSession) -> int:
        return await self._count(
            db,
            select(func.count()).select_from(Snippet).where(Snippet.is_favorite.is_(True)),
            "count_favorites",
        )

    async def count_tags(self, db: AsyncSession) -> int:
        return await self._count(db, select(func.count()).select_from(Tag), "count_tags")

    async def statistics(self, db: AsyncSession) -> StatsResponse:
        """Figures shown on the settings "Data" tab."""
        return StatsResponse(
            total_snippets=await self.count_total(db),
            favorite_snippets=await self.count_favorites(db),
            total_tags=await self.count_tags(db),
            storage=STORAGE_KIND,
        )
