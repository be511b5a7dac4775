"""
Database Package Initialization.

============================================================
DATABASE PERSISTENCE LAYER
============================================================

SQLAlchemy engine, session factory, ORM models and the atomic
upsert used by day-scoped writes.

REQUIRED:
- Every failure raises hard exceptions
- All transactions are explicit with commit/rollback

============================================================
"""

from .engine import (
    Base,
    DEFAULT_DATABASE_URL,
    get_database_url,
    create_database_engine,
    get_engine,
    get_session_factory,
    build_session_factory,
    transaction_scope,
    verify_database_connection,
    create_all_tables,
    DatabasePersistenceError,
    DatabaseConnectionError,
    DatabaseInitializationError,
)

from .models import (
    Tutor,
    Student,
    Session,
    SessionTranscript,
    Score,
    TutorDailyAggregate,
    Alert,
)

from .upsert import upsert

__all__ = [
    "Base",
    "DEFAULT_DATABASE_URL",
    "get_database_url",
    "create_database_engine",
    "get_engine",
    "get_session_factory",
    "build_session_factory",
    "transaction_scope",
    "verify_database_connection",
    "create_all_tables",
    "DatabasePersistenceError",
    "DatabaseConnectionError",
    "DatabaseInitializationError",
    "Tutor",
    "Student",
    "Session",
    "SessionTranscript",
    "Score",
    "TutorDailyAggregate",
    "Alert",
    "upsert",
]
