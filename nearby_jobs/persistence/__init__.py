"""Local SQL store for job postings.

Public API:
    - init_database(database_url: str) -> None
    - get_session() -> ContextManager[Session]
    - close_database() -> None
    - get_engine() -> Engine
    - JobPostingRepository: CRUD operations and recency queries
    - PersistenceError and subclasses

Example usage:
    >>> from nearby_jobs.persistence import init_database, get_session, JobPostingRepository
    >>> init_database("sqlite:///./data/nearby_jobs.db")
    >>> with get_session() as session:
    ...     recent = JobPostingRepository(session).get_recent(100)
"""

from .database import close_database, get_engine, get_session, init_database, is_initialized
from .exceptions import (
    DatabaseConnectionError,
    DataIntegrityError,
    PersistenceError,
    RecordNotFoundError,
)
from .repositories import JobPostingRepository

__all__ = [
    # Database functions
    "init_database",
    "get_session",
    "close_database",
    "get_engine",
    "is_initialized",
    # Repositories
    "JobPostingRepository",
    # Exceptions
    "PersistenceError",
    "DatabaseConnectionError",
    "RecordNotFoundError",
    "DataIntegrityError",
]
