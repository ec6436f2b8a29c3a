"""
Photobook Backend — Application Package Initializer
====================================================

What: Marks the `photobook` directory as a Python package.
Why:  Enables module imports like `from photobook.config import settings`.
Who:  Used by uvicorn (`photobook.main:app`), Alembic, and pytest.

Architecture Note:
    The moderation backend follows the same layered layout as the rest of
    the marketplace services:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← envelopes, status codes, auth context
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← submissions, notifications, workflow
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← lazy async engine, retried connect
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
