"""
Local Authority Database Layer

Usage:
    from src.database import init_db, get_db_context, ScanRun
    from src.database import repository

    init_db()

    with get_db_context() as db:
        run = repository.get_run(db, run_id)
"""

# Models
from .models import (
    Base,
    BusinessProfile,
    PromptTemplate,
    ScanRun,
    ScanResult,
    ScoreRecord,
    LocalScan,
    # Enums
    PromptLayer,
    IntentTag,
    RunStatus,
    CitationValidationStatus,
    ServiceAreaPriority,
    ConfidenceLevel,
)

# Session management
from .session import (
    get_db,
    get_db_context,
    init_db,
    check_db_connection,
    get_engine,
    get_session_factory,
)

__all__ = [
    # Models
    "Base",
    "BusinessProfile",
    "PromptTemplate",
    "ScanRun",
    "ScanResult",
    "ScoreRecord",
    "LocalScan",
    # Enums
    "PromptLayer",
    "IntentTag",
    "RunStatus",
    "CitationValidationStatus",
    "ServiceAreaPriority",
    "ConfidenceLevel",
    # Session
    "get_db",
    "get_db_context",
    "init_db",
    "check_db_connection",
    "get_engine",
    "get_session_factory",
]
