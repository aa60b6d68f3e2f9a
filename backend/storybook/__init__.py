"""
Storybook Backend - Application Package
=========================================

What: Server-rendered story sharing application (stories, comments, likes).
Who:  Imported by uvicorn (storybook.main:app), Alembic, and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │     Routes (HTTP + HTML views)      │  ← redirects, template renders
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← ownership, validation, queries
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic forms
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Identity is asserted by an upstream gateway through request headers and
    turned into an explicit CurrentUser by the auth dependency; nothing in the
    request path reads global user state.
"""

__version__ = "1.0.0"
