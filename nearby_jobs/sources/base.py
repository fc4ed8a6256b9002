"""Base class for candidate posting sources.

A posting source is the boundary to the document store: it returns the most
recently posted jobs, newest first, bounded by a limit. Sources never retry;
any failure to produce the pool surfaces as FetchFailure.
"""

from abc import ABC, abstractmethod
from typing import Iterable, List

from nearby_jobs.domain.models import JobPosting
from nearby_jobs.logging import get_logger

logger = get_logger(__name__, component="source")

DEFAULT_CANDIDATE_POOL_SIZE = 100


class PostingSource(ABC):
    """Base class for all candidate posting sources.

    Subclasses implement ``_fetch(limit)`` against their store;
    ``fetch_recent_postings`` validates the limit and enforces the ordering
    and size contract on whatever the store returned.
    """

    SOURCE_NAME = "base"

    def fetch_recent_postings(self, limit: int = DEFAULT_CANDIDATE_POOL_SIZE) -> List[JobPosting]:
        """Fetch the most recently posted jobs.

        Args:
            limit: Maximum number of postings to return

        Returns:
            Up to ``limit`` postings ordered by posted_at descending. Postings
            without a timestamp come last.

        Raises:
            ValueError: If limit is not positive
            FetchFailure: If the store could not produce a candidate pool
        """
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise ValueError(f"limit must be a positive integer, got: {limit!r}")

        logger.debug(
            "Fetching recent postings",
            extra={"event": "source.fetch.started", "source": self.SOURCE_NAME, "limit": limit},
        )

        postings = self._finalize(self._fetch(limit), limit)

        logger.info(
            f"Fetched {len(postings)} recent postings",
            extra={
                "event": "source.fetch.succeeded",
                "source": self.SOURCE_NAME,
                "limit": limit,
                "count": len(postings),
            },
        )
        return postings

    @abstractmethod
    def _fetch(self, limit: int) -> Iterable[JobPosting]:
        """Query the store for up to ``limit`` recent postings.

        Raises:
            FetchFailure: On any store, network or response error
        """

    def close(self) -> None:
        """Release resources held by the source."""

    @staticmethod
    def _finalize(postings: Iterable[JobPosting], limit: int) -> List[JobPosting]:
        postings = list(postings)
        # sorted() is stable with reverse=True, so equal timestamps keep store order
        dated = sorted(
            (posting for posting in postings if posting.posted_at is not None),
            key=lambda posting: posting.posted_at,
            reverse=True,
        )
        undated = [posting for posting in postings if posting.posted_at is None]
        return (dated + undated)[:limit]
