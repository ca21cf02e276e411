"""
Scan Barang Backend — Application Package Initializer
=======================================================

What: Inventory tracking and event-based QR check-in REST backend.
Who:  Imported by uvicorn (scanbarang.main:app), Alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │    Routes (API Layer) + auth dep    │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Orchestration, ownership checks
    ├─────────────────────────────────────┤
    │  Adapters: identity, mail, files,   │  ← External collaborators
    │  label composer                     │
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
