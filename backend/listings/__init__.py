"""
Listings Backend — Application Package Initializer
===================================================

What: Marks the `listings` directory as a Python package.
Who:  Imported by uvicorn (`listings.main:app`), Alembic, and pytest.

Architecture Note:
    The backend keeps the same layered split for every endpoint:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← hashing, item workflow
    ├─────────────────────────────────────┤
    │       Stores, Models & Schemas      │  ← SQL / JSON persistence
    ├─────────────────────────────────────┤
    │   Database & Image Directory        │  ← engine, sessions, files
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
