"""
TextCollector — Application Package Initializer
================================================

What: Personal text-snippet collector backed by a local SQLite file.
Who:  Imported by the API (uvicorn textcollector.main:app), the CLI
      (`textcollector ...`), Alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │   Routes (API)  │  CLI (argparse)   │  ← entry points, no business rules
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← snippet/tag manager, commit policy
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← explicit store object, async sessions
    └─────────────────────────────────────┘

    The HTTP API and the "Add Snippet" automation command both go through
    the same service layer, so a snippet created from either looks the same.
"""

__version__ = "1.0.0"
