"""
Listings Backend — Item Service (Business Logic Orchestrator)
===============================================================

What:  The item use-cases behind the HTTP handlers.
How:   Composes ImageService (hashing + image directory) with whichever
       ItemStore the request was given.
Who:   Called by route handlers.

Submission Flow (POST /items):
    ┌──────────┐    ┌─────────────┐    ┌──────────────┐    ┌──────────┐
    │  Form    │───▶│  Hash image │───▶│  Write bytes │───▶│  Insert  │
    │  (Route) │    │             │    │  (if new)    │    │  (Store) │
    └──────────┘    └─────────────┘    └──────────────┘    └──────────┘

    The image write and the row insert are not one transaction. A failed
    insert leaves the written image in place: it is content-addressed and
    may already back other items.
"""

import logging
from typing import Optional

from listings.exceptions import NotFoundError
from listings.schemas.item import ItemListResponse, ItemResponse, MessageResponse
from listings.services.image_service import image_service
from listings.services.item_store import ItemStore

logger = logging.getLogger(__name__)


class ItemService:
    """
    Business logic layer for item operations.

    Responsibilities:
        - add_item(): hash + store image, insert item
        - list_items() / search_items(): collection reads
        - get_item(): single item with not-found handling

    Stateless: the store is passed in on every call.
    """

    async def add_item(
        self,
        store: ItemStore,
        name: str,
        category: str,
        image_content: Optional[bytes] = None,
        image_path: Optional[str] = None,
    ) -> MessageResponse:
        """
        Persist a new item and its image.

        Args:
            store: Item store for this request
            name: Item name from the form
            category: Category name from the form
            image_content: Uploaded image bytes (stored under their hash)
            image_path: Server-side image path; only hashed, never copied

        Returns:
            MessageResponse "item received: <name>"

        Raises:
            FileStorageError: image directory not writable
            DatabaseError: insert failed
        """
        if image_content is not None:
            image_filename = await image_service.store_image(image_content)
        elif image_path:
            image_filename = image_service.hash_path(image_path)
        else:
            image_filename = ""

        item = await store.insert(name=name, category=category, image_filename=image_filename)

        logger.info("Receive item: %s (id=%d, image=%s)", item.name, item.id, image_filename or "-")
        return MessageResponse(message=f"item received: {item.name}")

    async def list_items(self, store: ItemStore) -> ItemListResponse:
        items = await store.list_all()
        logger.info("Get items: %d", len(items))
        return ItemListResponse(items=items)

    async def get_item(self, store: ItemStore, item_id: int) -> ItemResponse:
        """
        Raises:
            NotFoundError: no item with `item_id` (→ 404)
        """
        item = await store.get_by_id(item_id)
        if item is None:
            raise NotFoundError(resource="item", resource_id=str(item_id))
        return item

    async def search_items(self, store: ItemStore, keyword: str) -> ItemListResponse:
        """Substring search on item names; an empty keyword lists everything."""
        items = await store.search(keyword)
        logger.info("Search items for %r: %d match(es)", keyword, len(items))
        return ItemListResponse(items=items)


# ── Singleton Instance ────────────────────────────────────────────────────
item_service = ItemService()
