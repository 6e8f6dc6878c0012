"""
Conduit Backend: Application Package
=====================================

What: The Conduit (RealWorld) blogging API: users, profiles, articles,
      comments, favorites, follows and tags.
Who:  Imported by uvicorn (`conduit.main:app`), Alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← validation, ownership checks
    ├─────────────────────────────────────┤
    │   Queries (article list assembly)   │  ← filters, pagination, joins
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
