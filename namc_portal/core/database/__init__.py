"""
Centralized database layer for the NAMC portal.

Structure:
- entities/: Database entity models organized by table/business domain
- repositories/: Data access layer organized by table/business domain
- session.py: Global engine and session factory management
- utils.py: Database utility functions (engine, session factory, create_all)
"""

from .base import Base, new_id, utc_now
from .session import async_session_maker, engine, get_session, ping
from .utils import create_all, create_engine, create_sessionmaker

__all__ = [
    "Base",
    "async_session_maker",
    "create_all",
    "create_engine",
    "create_sessionmaker",
    "engine",
    "get_session",
    "new_id",
    "ping",
    "utc_now",
]
