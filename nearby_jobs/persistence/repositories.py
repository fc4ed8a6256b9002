"""Data access layer for job postings.

Repositories wrap SQLAlchemy queries and return domain models rather than
ORM rows.
"""

import logging
from typing import Iterable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from nearby_jobs.domain.models import JobPosting

from .exceptions import DataIntegrityError, PersistenceError, RecordNotFoundError
from .schema import JobPostingModel

logger = logging.getLogger(__name__)


class JobPostingRepository:
    """Reads and writes postings through a caller-owned session.

    Nothing is committed here; get_session() commits when the block exits.
    """

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, posting_id: str) -> Optional[JobPosting]:
        """Retrieve a posting by primary key.

        Returns:
            JobPosting if found, None otherwise

        Raises:
            PersistenceError: If the query fails
        """
        try:
            model = self.session.get(JobPostingModel, posting_id)
            return model.to_domain() if model is not None else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving posting {posting_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve posting: {e}") from e

    def require(self, posting_id: str) -> JobPosting:
        """Like get_by_id, but a missing posting is an error.

        Raises:
            RecordNotFoundError: If no posting has this id
        """
        posting = self.get_by_id(posting_id)
        if posting is None:
            raise RecordNotFoundError(f"Job posting with id {posting_id} not found")
        return posting

    def get_recent(self, limit: int) -> List[JobPosting]:
        """Return up to ``limit`` postings, most recently posted first.

        Postings without a posted_at timestamp sort after all dated ones.

        Args:
            limit: Maximum number of postings to return (must be positive)

        Raises:
            ValueError: If limit is not positive
            PersistenceError: If the query fails
        """
        if limit < 1:
            raise ValueError(f"limit must be positive, got: {limit}")

        try:
            stmt = (
                select(JobPostingModel)
                .order_by(
                    JobPostingModel.posted_at.is_(None),
                    JobPostingModel.posted_at.desc(),
                    JobPostingModel.id,
                )
                .limit(limit)
            )
            models = self.session.execute(stmt).scalars().all()
            return [model.to_domain() for model in models]
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving recent postings: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve recent postings: {e}") from e

    def count(self) -> int:
        """Count stored postings.

        Raises:
            PersistenceError: If the query fails
        """
        try:
            return self.session.execute(select(func.count()).select_from(JobPostingModel)).scalar_one()
        except SQLAlchemyError as e:
            logger.error(f"Error counting postings: {e}", exc_info=True)
            raise PersistenceError(f"Failed to count postings: {e}") from e

    def upsert(self, posting: JobPosting) -> JobPosting:
        """Insert a new posting or overwrite the stored one with the same id.

        Raises:
            DataIntegrityError: On constraint violation
            PersistenceError: If the query fails
        """
        try:
            existing = self.session.get(JobPostingModel, posting.id)

            if existing:
                existing.apply_domain(posting)
                self.session.flush()
                return existing.to_domain()

            model = JobPostingModel.from_domain(posting)
            self.session.add(model)
            self.session.flush()
            return model.to_domain()

        except IntegrityError as e:
            logger.error(f"Integrity error upserting posting {posting.id}: {e}", exc_info=True)
            raise DataIntegrityError(
                f"Failed to upsert posting due to constraint violation: {e}"
            ) from e
        except SQLAlchemyError as e:
            logger.error(f"Error upserting posting {posting.id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to upsert posting: {e}") from e

    def bulk_upsert(self, postings: Iterable[JobPosting]) -> List[JobPosting]:
        """Upsert several postings in the current transaction."""
        return [self.upsert(posting) for posting in postings]
