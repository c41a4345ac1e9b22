"""
Listings Backend — Item Store Tests
=====================================

What:  Both store backends against real storage.
How:   SqlItemStore runs on the temporary SQLite database (db_session
       fixture); JsonItemStore writes to a per-test items.json.

What we test:
    ✅ insert → get_by_id round trip
    ✅ list_all ordered by id
    ✅ search substring semantics, search("") == list_all()
    ✅ category get-or-create (relational)
    ✅ unique ids under concurrent inserts (flat file)
    ✅ storage failures surface as DatabaseError
"""

import asyncio
import json
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from listings.database import async_session_factory
from listings.exceptions import DatabaseError
from listings.models.item import Category
from listings.services.item_store import JsonItemStore, SqlItemStore

SAMPLE_ITEMS = [
    ("shoes", "fashion", "a.jpg"),
    ("running shoes", "sports", "b.jpg"),
    ("jacket", "fashion", "c.jpg"),
    ("100% cotton shirt", "fashion", "d.jpg"),
]


async def _fill(store):
    return [
        await store.insert(name=name, category=category, image_filename=image)
        for name, category, image in SAMPLE_ITEMS
    ]


class TestSqlItemStore:
    """Tests for the relational store."""

    @pytest.mark.asyncio
    async def test_insert_then_get_round_trip(self, db_session):
        store = SqlItemStore(db_session)
        created = await store.insert(name="shoes", category="fashion", image_filename="a.jpg")

        fetched = await store.get_by_id(created.id)

        assert fetched == created
        assert fetched.name == "shoes"
        assert fetched.category == "fashion"
        assert fetched.image_filename == "a.jpg"

    @pytest.mark.asyncio
    async def test_get_unknown_id_returns_none(self, db_session):
        store = SqlItemStore(db_session)
        await _fill(store)
        assert await store.get_by_id(999) is None

    @pytest.mark.asyncio
    async def test_list_all_in_insertion_order(self, db_session):
        store = SqlItemStore(db_session)
        created = await _fill(store)

        items = await store.list_all()

        assert [item.id for item in items] == sorted(item.id for item in created)
        assert [item.name for item in items] == [name for name, _, _ in SAMPLE_ITEMS]

    @pytest.mark.asyncio
    async def test_category_is_reused(self, db_session):
        store = SqlItemStore(db_session)
        await _fill(store)

        count = await db_session.execute(select(func.count(Category.id)))
        assert count.scalar() == 2  # fashion, sports

    @pytest.mark.asyncio
    async def test_search_substring(self, db_session):
        store = SqlItemStore(db_session)
        await _fill(store)

        names = [item.name for item in await store.search("shoes")]
        assert names == ["shoes", "running shoes"]

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive(self, db_session):
        store = SqlItemStore(db_session)
        await _fill(store)

        names = [item.name for item in await store.search("JACK")]
        assert names == ["jacket"]

    @pytest.mark.asyncio
    async def test_search_treats_wildcards_literally(self, db_session):
        store = SqlItemStore(db_session)
        await _fill(store)

        assert [item.name for item in await store.search("100%")] == ["100% cotton shirt"]
        assert await store.search("_") == []

    @pytest.mark.asyncio
    async def test_empty_keyword_equals_list_all(self, db_session):
        store = SqlItemStore(db_session)
        await _fill(store)

        assert await store.search("") == await store.list_all()

    @pytest.mark.asyncio
    async def test_query_failure_raises_database_error(self):
        session = AsyncMock()
        session.execute = AsyncMock(side_effect=SQLAlchemyError("database is locked"))
        store = SqlItemStore(session)

        with pytest.raises(DatabaseError):
            await store.list_all()
        with pytest.raises(DatabaseError):
            await store.insert(name="shoes", category="fashion", image_filename="a.jpg")

    @pytest.mark.asyncio
    async def test_commit_failure_raises_and_keeps_nothing(self, db_session):
        store = SqlItemStore(db_session)
        disk_error = OperationalError("COMMIT", {}, Exception("disk I/O error"))

        with patch.object(AsyncSession, "commit", side_effect=disk_error):
            with pytest.raises(DatabaseError):
                await store.insert(name="shoes", category="fashion", image_filename="a.jpg")

        assert await store.list_all() == []

    @pytest.mark.asyncio
    async def test_insert_is_committed_before_returning(self, db_session):
        await SqlItemStore(db_session).insert(name="shoes", category="fashion", image_filename="a.jpg")

        # A second session only sees committed rows
        async with async_session_factory() as other:
            assert [item.name for item in await SqlItemStore(other).list_all()] == ["shoes"]

    def test_search_is_case_insensitive_on_postgres(self):
        sql = str(SqlItemStore._search_query("Shoes").compile(dialect=postgresql.dialect()))
        assert "ILIKE" in sql


class TestJsonItemStore:
    """Tests for the flat-file store."""

    @pytest.mark.asyncio
    async def test_insert_then_get_round_trip(self, tmp_path):
        store = JsonItemStore(tmp_path / "items.json")
        created = await store.insert(name="shoes", category="fashion", image_filename="a.jpg")

        assert created.id == 1
        assert await store.get_by_id(1) == created

    @pytest.mark.asyncio
    async def test_file_format(self, tmp_path):
        path = tmp_path / "items.json"
        store = JsonItemStore(path)
        await store.insert(name="shoes", category="fashion", image_filename="a.jpg")

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data == {
            "items": [
                {"id": 1, "name": "shoes", "category": "fashion", "image_filename": "a.jpg"}
            ]
        }

    @pytest.mark.asyncio
    async def test_missing_file_is_empty(self, tmp_path):
        store = JsonItemStore(tmp_path / "items.json")
        assert await store.list_all() == []
        assert await store.get_by_id(1) is None

    @pytest.mark.asyncio
    async def test_concurrent_inserts_get_unique_ids(self, tmp_path):
        store = JsonItemStore(tmp_path / "items.json")

        created = await asyncio.gather(
            *(store.insert(name=f"item {i}", category="misc", image_filename="") for i in range(20))
        )

        assert sorted(item.id for item in created) == list(range(1, 21))
        assert len(await store.list_all()) == 20

    @pytest.mark.asyncio
    async def test_search(self, tmp_path):
        store = JsonItemStore(tmp_path / "items.json")
        await _fill(store)

        assert [item.name for item in await store.search("Shoes")] == ["shoes", "running shoes"]
        assert await store.search("") == await store.list_all()
        assert await store.search("hat") == []

    @pytest.mark.asyncio
    async def test_corrupt_file_raises_database_error(self, tmp_path):
        path = tmp_path / "items.json"
        path.write_text("{not json", encoding="utf-8")
        store = JsonItemStore(path)

        with pytest.raises(DatabaseError):
            await store.list_all()
