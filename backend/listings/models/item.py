"""
Listings Backend — Item & Category SQLAlchemy Models
======================================================

What:  ORM models for the `categories` and `items` tables.
How:   Inherit from the shared DeclarativeBase; Alembic reads these for migrations.
Who:   Used by SqlItemStore for inserts and queries.

Table Design:
    - categories.name is unique: a category is resolved by exact name at insert time
    - items.category_id references categories.id (normalized category)
    - items.image_name holds the content-hash file name (e.g. "<sha256>.jpg")
    - integer autoincrement ids: the engine assigns them, so concurrent
      inserts cannot collide on an id
"""

from typing import List, Optional

from sqlalchemy import ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from listings.database import Base


class Category(Base):
    """A named item category. Created on first use by the item store."""

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    items: Mapped[List["Item"]] = relationship(back_populates="category")

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name='{self.name}')>"


class Item(Base):
    """
    A listed marketplace entry.

    Lifecycle:
        Created by POST /items, never updated or deleted.

    Query Patterns:
        - List all:   SELECT ... ORDER BY id
        - By id:      primary key lookup
        - Search:     WHERE name LIKE '%keyword%' (idx_items_name helps prefix scans only)
    """

    __tablename__ = "items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    category_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("categories.id"),
        nullable=True,
    )
    # Empty only when no image was submitted with the item
    image_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    category: Mapped[Optional[Category]] = relationship(back_populates="items")

    __table_args__ = (
        Index("idx_items_name", "name"),
    )

    def __repr__(self) -> str:
        return f"<Item(id={self.id}, name='{self.name}', image_name='{self.image_name}')>"
