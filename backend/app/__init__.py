"""
Inkwell Backend - Application Package
=====================================

What:  The `app` package of the Inkwell blog API.
Who:   Imported by uvicorn (`app.main:app`), Alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, auth dependency
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← validation, ownership, uploads
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Services raise tagged errors (app.exceptions) and never touch HTTP status
    codes; the exception handlers in app.main translate them.
"""

__version__ = "1.0.0"
