"""Persistence layer for research projects (SQLAlchemy, SQLite by default).

Example usage:
    >>> from targeting.persistence import init_database, get_session, ProjectRepository
    >>> init_database("sqlite:///./data/targeting.db")
    >>> with get_session() as session:
    ...     projects = ProjectRepository(session).list_for_owner("alice")
"""

from .database import close_database, get_engine, get_session, init_database
from .exceptions import DatabaseConnectionError, PersistenceError, RecordNotFoundError
from .repositories import ProjectRepository, StoredZeroAudienceMatch

__all__ = [
    "init_database",
    "get_session",
    "close_database",
    "get_engine",
    "ProjectRepository",
    "StoredZeroAudienceMatch",
    "PersistenceError",
    "DatabaseConnectionError",
    "RecordNotFoundError",
]
