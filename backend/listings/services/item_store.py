"""
Listings Backend — Item Stores
================================

What:  Persistence of items behind one async interface, with two backends.
How:   SqlItemStore works inside a request-scoped AsyncSession over the
       `items` + `categories` tables. JsonItemStore keeps every item in a
       single items.json file guarded by an asyncio.Lock.
Who:   Created per request by `get_item_store()` and passed to ItemService.

Contract (both backends):
    insert(name, category, image_filename) -> ItemResponse   id assigned by the store
    list_all()                             -> List[ItemResponse]   ordered by id
    get_by_id(item_id)                     -> ItemResponse | None
    search(keyword)                        -> List[ItemResponse]   name LIKE %keyword%

    An empty keyword searches like list_all(). Failures surface as
    DatabaseError; neither backend exits the process or swallows errors.
"""

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import AsyncGenerator, List, Optional, Union

import aiofiles
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy import Select, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from listings.config import settings
from listings.database import async_session_factory
from listings.exceptions import DatabaseError
from listings.models.item import Category, Item
from listings.schemas.item import ItemListResponse, ItemResponse

logger = logging.getLogger(__name__)


class ItemStore(ABC):
    """Abstract interface shared by the relational and flat-file stores."""

    @abstractmethod
    async def insert(self, name: str, category: str, image_filename: str) -> ItemResponse:
        """Persist a new item and return it with its assigned id."""

    @abstractmethod
    async def list_all(self) -> List[ItemResponse]:
        """Every item, ordered by id."""

    @abstractmethod
    async def get_by_id(self, item_id: int) -> Optional[ItemResponse]:
        """The item with `item_id`, or None."""

    @abstractmethod
    async def search(self, keyword: str) -> List[ItemResponse]:
        """Items whose name contains `keyword`."""


# ══════════════════════════════════════════════════════════════════════════
# Relational store
# ══════════════════════════════════════════════════════════════════════════


class SqlItemStore(ItemStore):
    """
    Item store over the normalized `items` / `categories` tables.

    The session is owned by the caller (see `get_item_store()`). insert()
    commits its item and category together before returning, so a
    response only reports an item once the row is durable.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _item_query() -> Select:
        # Outer join: rows with a NULL category_id are still listed
        return (
            select(Item.id, Item.name, Category.name, Item.image_name)
            .outerjoin(Category, Item.category_id == Category.id)
            .order_by(Item.id)
        )

    @staticmethod
    def _to_response(row) -> ItemResponse:
        item_id, name, category, image_name = row
        return ItemResponse(
            id=item_id,
            name=name,
            category=category or "",
            image_filename=image_name or "",
        )

    async def _get_or_create_category(self, name: str) -> Category:
        """
        Resolve a category by exact name, creating it when missing.

        Creation happens in the same transaction as the item insert.
        """
        result = await self.session.execute(select(Category).where(Category.name == name))
        category = result.scalar_one_or_none()
        if category is None:
            category = Category(name=name)
            self.session.add(category)
            await self.session.flush()
            logger.info("Category created: %s (id=%s)", name, category.id)
        return category

    async def insert(self, name: str, category: str, image_filename: str) -> ItemResponse:
        try:
            category_row = await self._get_or_create_category(category)
            item = Item(name=name, category_id=category_row.id, image_name=image_filename)
            self.session.add(item)
            await self.session.flush()  # Assigns the autoincrement id
            await self.session.commit()
        except SQLAlchemyError as e:
            logger.error("Database error inserting item %r: %s", name, str(e))
            await self.session.rollback()
            raise DatabaseError(
                message="Could not save the item. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.debug("Inserted item id=%d", item.id)
        return ItemResponse(
            id=item.id,
            name=item.name,
            category=category_row.name,
            image_filename=item.image_name,
        )

    async def list_all(self) -> List[ItemResponse]:
        try:
            result = await self.session.execute(self._item_query())
        except SQLAlchemyError as e:
            logger.error("Database error listing items: %s", str(e))
            raise DatabaseError(
                message="Could not retrieve items. Please try again.",
                context={"error_type": type(e).__name__},
            )
        return [self._to_response(row) for row in result.all()]

    async def get_by_id(self, item_id: int) -> Optional[ItemResponse]:
        try:
            result = await self.session.execute(self._item_query().where(Item.id == item_id))
        except SQLAlchemyError as e:
            logger.error("Database error fetching item %s: %s", item_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the item. Please try again.",
                context={"item_id": item_id, "error_type": type(e).__name__},
            )
        row = result.one_or_none()
        return self._to_response(row) if row is not None else None

    @classmethod
    def _search_query(cls, keyword: str) -> Select:
        # ILIKE on PostgreSQL, lower() LIKE elsewhere; % and _ match literally
        return cls._item_query().where(Item.name.icontains(keyword, autoescape=True))

    async def search(self, keyword: str) -> List[ItemResponse]:
        if not keyword:
            return await self.list_all()

        try:
            result = await self.session.execute(self._search_query(keyword))
        except SQLAlchemyError as e:
            logger.error("Database error searching items for %r: %s", keyword, str(e))
            raise DatabaseError(
                message="Could not search items. Please try again.",
                context={"keyword": keyword, "error_type": type(e).__name__},
            )
        return [self._to_response(row) for row in result.all()]


# ══════════════════════════════════════════════════════════════════════════
# Flat-file store
# ══════════════════════════════════════════════════════════════════════════


class JsonItemStore(ItemStore):
    """
    Item store backed by a single items.json file.

    File format (same shape as GET /items):
        {"items": [{"id": 1, "name": "...", "category": "...", "image_filename": "..."}]}

    Writes take the lock, assign id = max(existing ids) + 1 and replace the
    file atomically, so concurrent submissions neither share an id nor lose
    each other's rows. Items are never deleted, which keeps ids monotonic.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = asyncio.Lock()

    async def _load(self) -> ItemListResponse:
        if not self.path.exists():
            return ItemListResponse()
        try:
            async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
                raw = await f.read()
            return ItemListResponse.model_validate_json(raw) if raw.strip() else ItemListResponse()
        except (OSError, SchemaValidationError) as e:
            logger.error("Could not read item file %s: %s", self.path, str(e))
            raise DatabaseError(
                message="Could not retrieve items. Please try again.",
                context={"path": str(self.path), "error_type": type(e).__name__},
            )

    async def _save(self, data: ItemListResponse) -> None:
        temp_path = self.path.with_name(f".{self.path.name}.tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(temp_path, "w", encoding="utf-8") as f:
                await f.write(data.model_dump_json(indent=2))
            os.replace(temp_path, self.path)
        except OSError as e:
            logger.error("Could not write item file %s: %s", self.path, str(e))
            raise DatabaseError(
                message="Could not save the item. Please try again.",
                context={"path": str(self.path), "error_type": type(e).__name__},
            )

    async def insert(self, name: str, category: str, image_filename: str) -> ItemResponse:
        async with self._lock:
            data = await self._load()
            next_id = max((item.id for item in data.items), default=0) + 1
            item = ItemResponse(
                id=next_id,
                name=name,
                category=category,
                image_filename=image_filename,
            )
            data.items.append(item)
            await self._save(data)
        logger.debug("Inserted item id=%d into %s", item.id, self.path)
        return item

    async def list_all(self) -> List[ItemResponse]:
        data = await self._load()
        return sorted(data.items, key=lambda item: item.id)

    async def get_by_id(self, item_id: int) -> Optional[ItemResponse]:
        for item in await self.list_all():
            if item.id == item_id:
                return item
        return None

    async def search(self, keyword: str) -> List[ItemResponse]:
        items = await self.list_all()
        if not keyword:
            return items
        # Case-insensitive, like SQLite's LIKE
        needle = keyword.casefold()
        return [item for item in items if needle in item.name.casefold()]


# ══════════════════════════════════════════════════════════════════════════
# FastAPI dependency
# ══════════════════════════════════════════════════════════════════════════

_json_store: Optional[JsonItemStore] = None


def get_json_store() -> JsonItemStore:
    """Process-wide flat-file store; one lock must guard every writer."""
    global _json_store
    if _json_store is None or _json_store.path != Path(settings.items_json_path):
        _json_store = JsonItemStore(settings.items_json_path)
    return _json_store


async def get_item_store() -> AsyncGenerator[ItemStore, None]:
    """
    FastAPI dependency yielding the configured item store.

    For the relational backend each request gets its own session. Writes
    commit inside the store; the scope only releases the session and rolls
    back whatever a failing handler left open.
    """
    if settings.store_backend == "json":
        yield get_json_store()
        return

    # Closing the session rolls back anything left uncommitted
    async with async_session_factory() as session:
        yield SqlItemStore(session)
