"""Posting source backed by the local SQL store."""

from typing import List

from nearby_jobs.domain.models import JobPosting
from nearby_jobs.persistence.database import get_session
from nearby_jobs.persistence.exceptions import PersistenceError
from nearby_jobs.persistence.repositories import JobPostingRepository

from .base import PostingSource
from .exceptions import FetchFailure


class SqlPostingSource(PostingSource):
    """Reads recent postings through JobPostingRepository.

    The database must already be initialized with init_database().
    """

    SOURCE_NAME = "sqlite"

    def _fetch(self, limit: int) -> List[JobPosting]:
        try:
            with get_session() as session:
                return JobPostingRepository(session).get_recent(limit)
        except PersistenceError as e:
            raise FetchFailure(
                f"Failed to read recent postings from local store: {e}",
                source=self.SOURCE_NAME,
            ) from e
