"""Infrastructure layer - External dependencies and implementations.

This layer contains all external dependencies including:
- Database adapters and DDL execution (SQLAlchemy, alembic)
- API routes (FastAPI)
- Authentication (JWT)
- Model and migration scaffolding (jinja2)
"""

from breadbase.infrastructure.persistence.database import (
    Base,
    DatabaseManager,
    close_database,
    get_db_manager,
    get_db_session,
    init_database,
)

__all__ = [
    "Base",
    "DatabaseManager",
    "get_db_manager",
    "get_db_session",
    "init_database",
    "close_database",
]
