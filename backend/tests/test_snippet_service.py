"""
TextCollector — Snippet Service Tests
======================================

What:  SnippetService against a real temporary SQLite store.

What we test:
    ✅ Create with tags; tag names come back sorted and deduplicated
    ✅ Favorite toggling and strictly increasing last_modified
    ✅ Tag add/remove semantics (no duplicate edges, no-op removal)
    ✅ Delete, bulk delete and clear-all
    ✅ Ordering, filters, search ignoring case and diacritics
    ✅ Counts and statistics
    ✅ A rejected commit surfaces as PersistenceError and is rolled back
    ✅ A rejected tag INSERT, bulk delete or clear-all leaves the store unchanged
    ✅ A failed read surfaces as DatabaseError
    ✅ Concurrent multi-tag creates from separate sessions all complete
"""

import asyncio
import uuid
from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from textcollector.database import utcnow
from textcollector.exceptions import (
    DatabaseError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from textcollector.schemas.snippet import ListFilter
from textcollector.services.persistence import save
from textcollector.services.snippet_service import fold_text


class TestCreate:

    @pytest.mark.asyncio
    async def test_buy_milk_lifecycle(self, db_session, snippet_service):
        snippet = await snippet_service.create(db_session, "Buy milk", tags=["home", "errand"])

        snippets = await snippet_service.fetch_all(db_session)
        assert [s.id for s in snippets] == [snippet.id]
        assert snippets[0].tag_names == ["errand", "home"]

        await snippet_service.remove_tag(db_session, snippet, "home")
        assert snippet.tag_names == ["errand"]

        await snippet_service.delete(db_session, snippet)
        assert await snippet_service.fetch_all(db_session) == []
        assert await snippet_service.count_total(db_session) == 0

    @pytest.mark.asyncio
    async def test_optional_fields_stay_none(self, db_session, snippet_service):
        snippet = await snippet_service.create(db_session, "Plain")
        assert snippet.source is None
        assert snippet.category is None
        assert snippet.notes is None
        assert snippet.is_favorite is False
        assert snippet.tag_names == []

    @pytest.mark.asyncio
    async def test_timestamps_set_on_create(self, db_session, snippet_service):
        before = utcnow()
        snippet = await snippet_service.create(db_session, "Timed")
        assert snippet.created_at >= before
        assert snippet.last_modified >= snippet.created_at
        assert snippet.created_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_duplicate_tags_in_one_create(self, db_session, snippet_service):
        snippet = await snippet_service.create(db_session, "Dupes", tags=["Work", "work ", "WORK"])
        assert snippet.tag_names == ["Work"]
        assert len(await snippet_service.tags.list_all(db_session)) == 1

    @pytest.mark.asyncio
    async def test_blank_tag_rejects_whole_create(self, db_session, snippet_service):
        with pytest.raises(ValidationError):
            await snippet_service.create(db_session, "Bad tags", tags=["ok", "  "])
        assert await snippet_service.count_total(db_session) == 0
        assert await snippet_service.count_tags(db_session) == 0

    @pytest.mark.asyncio
    async def test_id_and_created_at_are_immutable(self, db_session, snippet_service):
        snippet = await snippet_service.create(db_session, "Fixed")
        with pytest.raises(AttributeError):
            snippet.id = uuid.uuid4()
        with pytest.raises(AttributeError):
            snippet.created_at = utcnow() - timedelta(days=1)


class TestUpdate:

    @pytest.mark.asyncio
    async def test_toggle_favorite_twice(self, db_session, snippet_service):
        snippet = await snippet_service.create(db_session, "Star me")
        original = snippet.is_favorite
        stamps = [snippet.last_modified]

        await snippet_service.toggle_favorite(db_session, snippet)
        assert snippet.is_favorite is not original
        stamps.append(snippet.last_modified)

        await snippet_service.toggle_favorite(db_session, snippet)
        assert snippet.is_favorite is original
        stamps.append(snippet.last_modified)

        assert stamps[0] < stamps[1] < stamps[2]

    @pytest.mark.asyncio
    async def test_update_fields_refresh_last_modified(self, db_session, snippet_service):
        snippet = await snippet_service.create(db_session, "Draft", category="Work")
        created_at = snippet.created_at
        previous = snippet.last_modified

        await snippet_service.update_content(db_session, snippet, "Final")
        await snippet_service.update_category(db_session, snippet, None)
        await snippet_service.update_notes(db_session, snippet, "Reviewed")
        await snippet_service.update_source(db_session, snippet, "Meeting")

        reloaded = await snippet_service.get(db_session, snippet.id)
        assert reloaded.content == "Final"
        assert reloaded.category is None
        assert reloaded.notes == "Reviewed"
        assert reloaded.source == "Meeting"
        assert reloaded.created_at == created_at
        assert reloaded.last_modified > previous

    @pytest.mark.asyncio
    async def test_add_tag_twice_keeps_one_edge(self, db_session, snippet_service):
        snippet = await snippet_service.create(db_session, "Tag me")
        await snippet_service.add_tag(db_session, snippet, "ideas")
        first = snippet.last_modified
        await snippet_service.add_tag(db_session, snippet, "Ideas")

        assert snippet.tag_names == ["ideas"]
        assert len(snippet.tags) == 1
        assert snippet.last_modified > first

    @pytest.mark.asyncio
    async def test_add_tag_reuses_existing_tag(self, db_session, snippet_service):
        first = await snippet_service.create(db_session, "One", tags=["shared"])
        second = await snippet_service.create(db_session, "Two")
        await snippet_service.add_tag(db_session, second, "SHARED")

        assert second.tags[0].id == first.tags[0].id
        assert await snippet_service.count_tags(db_session) == 1

    @pytest.mark.asyncio
    async def test_remove_absent_tag_is_noop(self, db_session, snippet_service):
        snippet = await snippet_service.create(db_session, "Keep", tags=["a"])
        stamp = snippet.last_modified

        await snippet_service.remove_tag(db_session, snippet, "missing")

        assert snippet.tag_names == ["a"]
        assert snippet.last_modified == stamp

    @pytest.mark.asyncio
    async def test_removed_tag_is_kept_as_orphan(self, db_session, snippet_service):
        snippet = await snippet_service.create(db_session, "Orphan maker", tags=["lonely"])
        await snippet_service.remove_tag(db_session, snippet, "Lonely")

        assert snippet.tag_names == []
        assert await snippet_service.count_tags(db_session) == 1


class TestDelete:

    @pytest.mark.asyncio
    async def test_delete_keeps_tags(self, db_session, snippet_service):
        snippet = await snippet_service.create(db_session, "Gone soon", tags=["kept"])
        await snippet_service.delete(db_session, snippet)

        assert await snippet_service.count_total(db_session) == 0
        assert await snippet_service.count_tags(db_session) == 1

    @pytest.mark.asyncio
    async def test_delete_many_removes_exactly_those(self, db_session, snippet_service):
        created = [
            await snippet_service.create(db_session, f"Snippet {i}", tags=["bulk"])
            for i in range(5)
        ]
        doomed = created[1:4]
        before = await snippet_service.count_total(db_session)

        deleted = await snippet_service.delete_many(db_session, doomed)

        assert deleted == 3
        assert await snippet_service.count_total(db_session) == before - deleted
        remaining = {s.id for s in await snippet_service.fetch_all(db_session)}
        assert remaining == {created[0].id, created[4].id}

    @pytest.mark.asyncio
    async def test_get_many_is_all_or_nothing(self, db_session, snippet_service):
        snippet = await snippet_service.create(db_session, "Exists")
        missing = uuid.uuid4()

        with pytest.raises(NotFoundError) as exc_info:
            await snippet_service.get_many(db_session, [snippet.id, missing])
        assert str(missing) in exc_info.value.message

    @pytest.mark.asyncio
    async def test_clear_all(self, db_session, snippet_service):
        await snippet_service.create(db_session, "One", tags=["a", "b"])
        await snippet_service.create(db_session, "Two", tags=["b"])

        result = await snippet_service.clear_all(db_session)

        assert result.snippets_deleted == 2
        assert result.tags_deleted == 2
        assert await snippet_service.count_total(db_session) == 0
        assert await snippet_service.count_tags(db_session) == 0

    @pytest.mark.asyncio
    async def test_get_unknown_id(self, db_session, snippet_service):
        with pytest.raises(NotFoundError):
            await snippet_service.get(db_session, uuid.uuid4())


class TestFetchAndSearch:

    async def _create_at(self, db, service, content, days_ago, **kwargs):
        snippet = await service.build(
            db, content=content, created_at=utcnow() - timedelta(days=days_ago), **kwargs
        )
        await save(db)
        return snippet

    @pytest.mark.asyncio
    async def test_newest_first(self, db_session, snippet_service):
        old = await self._create_at(db_session, snippet_service, "old", 3)
        new = await self._create_at(db_session, snippet_service, "new", 1)
        middle = await self._create_at(db_session, snippet_service, "middle", 2)

        snippets = await snippet_service.fetch_all(db_session)
        assert [s.id for s in snippets] == [new.id, middle.id, old.id]

    @pytest.mark.asyncio
    async def test_empty_search_equals_fetch_all(self, db_session, snippet_service):
        for i in range(3):
            await snippet_service.create(db_session, f"Item {i}")

        all_ids = [s.id for s in await snippet_service.fetch_all(db_session)]
        searched = [s.id for s in await snippet_service.search(db_session, "")]
        assert searched == all_ids

    @pytest.mark.asyncio
    async def test_search_ignores_case(self, db_session, snippet_service):
        hello = await snippet_service.create(db_session, "Hello World")
        await snippet_service.create(db_session, "Something else")

        for query in ("hello", "WORLD"):
            result = await snippet_service.search(db_session, query)
            assert [s.id for s in result] == [hello.id]

    @pytest.mark.asyncio
    async def test_search_ignores_diacritics(self, db_session, snippet_service):
        cafe = await snippet_service.create(db_session, "Meet at the Café")
        assert [s.id for s in await snippet_service.search(db_session, "cafe")] == [cafe.id]
        assert [s.id for s in await snippet_service.search(db_session, "CAFÉ")] == [cafe.id]

    @pytest.mark.asyncio
    async def test_search_matches_content_only(self, db_session, snippet_service):
        await snippet_service.create(db_session, "Body text", source="needle", notes="needle")
        assert await snippet_service.search(db_session, "needle") == []

    @pytest.mark.asyncio
    async def test_favorites_and_recent_filters(self, db_session, snippet_service):
        fav = await snippet_service.create(db_session, "Fav", is_favorite=True)
        plain = await snippet_service.create(db_session, "Plain")
        old = await self._create_at(db_session, snippet_service, "Old fav", 30, is_favorite=True)

        favorites = await snippet_service.list_snippets(db_session, ListFilter.FAVORITES)
        assert [s.id for s in favorites] == [fav.id, old.id]

        recent = await snippet_service.list_snippets(db_session, ListFilter.RECENT, recent_days=7)
        assert {s.id for s in recent} == {fav.id, plain.id}

        searched = await snippet_service.list_snippets(db_session, ListFilter.FAVORITES, query="old")
        assert [s.id for s in searched] == [old.id]

    def test_fold_text(self):
        assert fold_text("Ünïcödé") == "unicode"
        assert fold_text("STRASSE") == fold_text("straße")


class TestStatistics:

    @pytest.mark.asyncio
    async def test_counts(self, db_session, snippet_service):
        await snippet_service.create(db_session, "A", tags=["x"], is_favorite=True)
        await snippet_service.create(db_session, "B", tags=["x", "y"])

        stats = await snippet_service.statistics(db_session)
        assert stats.total_snippets == 2
        assert stats.favorite_snippets == 1
        assert stats.total_tags == 2
        assert stats.storage == "Local"

    @pytest.mark.asyncio
    async def test_counts_are_not_cached(self, db_session, snippet_service):
        assert await snippet_service.count_total(db_session) == 0
        await snippet_service.create(db_session, "New")
        assert await snippet_service.count_total(db_session) == 1


class TestPersistenceFailure:

    @pytest.mark.asyncio
    async def test_rejected_commit_raises_and_rolls_back(self, db_session, snippet_service):
        failure = OperationalError("COMMIT", {}, Exception("disk I/O error"))
        with patch.object(db_session, "commit", AsyncMock(side_effect=failure)):
            with pytest.raises(PersistenceError) as exc_info:
                await snippet_service.create(db_session, "Never saved", tags=["t"])

        assert "disk I/O error" in exc_info.value.reason
        assert exc_info.value.operation == "create"
        assert exc_info.value.message.startswith("Could not save changes")
        assert await snippet_service.count_total(db_session) == 0

    @pytest.mark.asyncio
    async def test_save_without_changes_does_not_commit(self, db_session):
        commit = AsyncMock()
        with patch.object(db_session, "commit", commit):
            assert await save(db_session) is False
        commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rejected_tag_insert_raises_and_rolls_back(self, db_session, snippet_service):
        real_execute = db_session.execute

        async def execute(statement, *args, **kwargs):
            if getattr(statement, "is_insert", False):
                raise OperationalError("INSERT INTO tags", {}, Exception("database is locked"))
            return await real_execute(statement, *args, **kwargs)

        with patch.object(db_session, "execute", execute):
            with pytest.raises(PersistenceError) as exc_info:
                await snippet_service.create(db_session, "Never saved", tags=["fresh"])

        assert "database is locked" in exc_info.value.reason
        assert exc_info.value.operation == "find_or_create_tag"
        assert await snippet_service.count_total(db_session) == 0
        assert await snippet_service.count_tags(db_session) == 0

    @pytest.mark.asyncio
    async def test_rejected_delete_many_keeps_every_snippet(self, db_session, snippet_service):
        created = [
            await snippet_service.create(db_session, f"Kept {i}", tags=["bulk"])
            for i in range(3)
        ]

        failure = OperationalError("COMMIT", {}, Exception("disk I/O error"))
        with patch.object(db_session, "commit", AsyncMock(side_effect=failure)):
            with pytest.raises(PersistenceError) as exc_info:
                await snippet_service.delete_many(db_session, created[:2])

        assert exc_info.value.operation == "delete_many"
        assert await snippet_service.count_total(db_session) == 3
        assert await snippet_service.count_tags(db_session) == 1
        remaining = {s.id for s in await snippet_service.fetch_all(db_session)}
        assert remaining == {s.id for s in created}

    @pytest.mark.asyncio
    async def test_rejected_clear_all_removes_nothing(self, db_session, snippet_service):
        await snippet_service.create(db_session, "One", tags=["a", "b"])
        await snippet_service.create(db_session, "Two", tags=["b"])

        failure = OperationalError("COMMIT", {}, Exception("disk I/O error"))
        with patch.object(db_session, "commit", AsyncMock(side_effect=failure)):
            with pytest.raises(PersistenceError) as exc_info:
                await snippet_service.clear_all(db_session)

        assert exc_info.value.operation == "clear_all"
        assert await snippet_service.count_total(db_session) == 2
        assert await snippet_service.count_tags(db_session) == 2

    @pytest.mark.asyncio
    async def test_failed_read_raises_database_error(self, db_session, snippet_service):
        await snippet_service.create(db_session, "Stored")

        failure = OperationalError("SELECT", {}, Exception("disk I/O error"))
        with patch.object(db_session, "execute", AsyncMock(side_effect=failure)):
            with pytest.raises(DatabaseError) as fetch_info:
                await snippet_service.fetch_all(db_session)
            with pytest.raises(DatabaseError) as count_info:
                await snippet_service.count_total(db_session)

        for exc_info in (fetch_info, count_info):
            assert not isinstance(exc_info.value, PersistenceError)
            assert "disk I/O error" in exc_info.value.context["reason"]
        assert count_info.value.context["operation"] == "count_total"
        assert await snippet_service.count_total(db_session) == 1


class TestConcurrentWriters:

    @pytest.mark.asyncio
    async def test_interleaved_creates_with_several_tags(self, database, snippet_service):
        async def create(content, tags):
            async with database.session() as session:
                snippet = await snippet_service.create(session, content, tags=tags)
                return snippet.id

        first, second = await asyncio.wait_for(
            asyncio.gather(
                create("From A", ["a1", "a2", "a3"]),
                create("From B", ["b1", "b2", "b3"]),
            ),
            timeout=30,
        )

        assert first != second
        async with database.session() as session:
            assert await snippet_service.count_total(session) == 2
            assert await snippet_service.count_tags(session) == 6

    @pytest.mark.asyncio
    async def test_interleaved_creates_share_one_tag_row(self, database, snippet_service):
        async def create(content, tags):
            async with database.session() as session:
                await snippet_service.create(session, content, tags=tags)

        await asyncio.wait_for(
            asyncio.gather(*(
                create(f"Writer {i}", ["shared", f"own-{i}", "Common"])
                for i in range(4)
            )),
            timeout=30,
        )

        async with database.session() as session:
            assert await snippet_service.count_total(session) == 4
            # "shared", "Common" and one "own-N" per writer
            assert await snippet_service.count_tags(session) == 6
            snippets = await snippet_service.fetch_all(session)
            for snippet in snippets:
                own = "own-" + snippet.content[-1]
                assert snippet.tag_names == ["Common", own, "shared"]
