"""
TextCollector — Tag Service (Tag Store)
========================================

What:  Find-or-create, listing and orphan pruning for tags.
How:   find_or_create is an atomic upsert against the UNIQUE name_key
       column followed by a SELECT, inside the caller's transaction.
Who:   SnippetService (create/add_tag), the import path, the /api/tags routes.

Race-free find-or-create:
    A plain "SELECT, then INSERT if missing" lets two callers both see
    "not found" and insert the same name twice. Here the INSERT carries
    ON CONFLICT (name_key) DO NOTHING, so whichever statement reaches the
    table second is a no-op and the following SELECT returns the winner's
    row. No in-process lock is taken: a second writer simply waits on the
    store's own write lock (SQLite busy timeout) until the first commits.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import delete, exists, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from textcollector.database import utcnow
from textcollector.exceptions import ValidationError
from textcollector.models.snippet import snippet_tags
from textcollector.models.tag import Tag, normalize_tag_name
from textcollector.services.persistence import mark_pending, read_guard, save, write_guard

logger = logging.getLogger(__name__)

_UPSERT_DIALECTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


class TagService:
    """
    Tag store operations. Stateless; one instance is shared per store.

    Responsibilities:
        - find_or_create(): resolve a name to its single Tag row
        - list_all(): every tag, sorted by name
        - prune_orphans(): delete tags no snippet references
    """

    @staticmethod
    def normalize(name: str):
        """
        Trim a raw name and derive its lookup key.

        Raises:
            ValidationError: the name is empty after trimming.
        """
        display, key = normalize_tag_name(name)
        if not display:
            raise ValidationError(message="Tag name cannot be empty", field="tag")
        return display, key

    async def find_or_create(self, db: AsyncSession, name: str) -> Tag:
        """
        Return the tag for `name`, creating it when missing.

        The new row is written inside the caller's transaction and becomes
        permanent with the caller's save(). Repeated calls with the same
        name (any casing, any surrounding whitespace) return the same Tag.

        Raises:
            ValidationError: blank name
            PersistenceError: the store rejected the lookup or the insert
                              (the caller's transaction is rolled back)
        """
        display, key = self.normalize(name)
        async with write_guard(db, "find_or_create_tag"):
            tag = await self._get_by_key(db, key)
            if tag is not None:
                return tag

            insert = _UPSERT_DIALECTS.get(db.get_bind().dialect.name)
            if insert is None:
                return await self._create_in_savepoint(db, display, key)

            stmt = (
                insert(Tag)
                .values(id=uuid.uuid4(), name=display, name_key=key, created_at=utcnow())
                .on_conflict_do_nothing(index_elements=[Tag.name_key])
            )
            result = await db.execute(stmt)
            if result.rowcount:
                mark_pending(db)
                logger.debug("Created tag %r", display)

            tag = await self._get_by_key(db, key)
        if tag is None:
            # The conflicting row vanished between the two statements
            raise ValidationError(
                message=f"Tag '{display}' could not be resolved",
                field="tag",
            )
        return tag

    async def _create_in_savepoint(self, db: AsyncSession, display: str, key: str) -> Tag:
        """Insert without upsert support; a lost race falls back to the winner's row."""
        tag = Tag(id=uuid.uuid4(), name=display, name_key=key, created_at=utcnow())
        try:
            async with db.begin_nested():
                db.add(tag)
        except IntegrityError:
            existing = await self._get_by_key(db, key)
            if existing is None:
                raise
            return existing
        logger.debug("Created tag %r", display)
        return tag

    async def get_by_name(self, db: AsyncSession, name: str) -> Optional[Tag]:
        """Look a tag up by name without creating it."""
        _, key = self.normalize(name)
        with read_guard("get_tag"):
            return await self._get_by_key(db, key)

    async def list_all(self, db: AsyncSession) -> List[Tag]:
        """Every tag sorted by name ascending (codepoint order)."""
        with read_guard("list_tags"):
            result = await db.execute(select(Tag))
        return sorted(result.scalars().all(), key=lambda tag: tag.name)

    async def prune_orphans(self, db: AsyncSession) -> int:
        """
        Delete tags with no snippet association and commit.

        Returns:
            Number of tags removed.
        """
        referenced = exists().where(snippet_tags.c.tag_id == Tag.id)
        async with write_guard(db, "prune_orphans"):
            result = await db.execute(
                delete(Tag)
                .where(~referenced)
                .execution_options(synchronize_session=False)
            )
        removed = result.rowcount or 0
        if removed:
            mark_pending(db)
        await save(db, operation="prune_orphans")
        if removed:
            logger.info("Pruned %d orphaned tag(s)", removed)
        return removed

    async def _get_by_key(self, db: AsyncSession, key: str) -> Optional[Tag]:
        result = await db.execute(select(Tag).where(Tag.name_key == key))
        return result.scalar_one_or_none()
