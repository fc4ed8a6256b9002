"""Job suggestions around a seeker: fetch the candidate pool, then rank it."""

import time
from typing import List, Optional
from uuid import uuid4

from nearby_jobs.config.models import MatchingConfig
from nearby_jobs.domain.models import Coordinate, RankedJobPosting
from nearby_jobs.logging import get_logger
from nearby_jobs.logging.context import log_context
from nearby_jobs.matching.engine import ProximityMatcher, validate_radius
from nearby_jobs.sources.base import PostingSource
from nearby_jobs.sources.exceptions import FetchFailure

logger = get_logger(__name__, component="suggestions")


class JobSuggestionService:
    """Suggests nearby jobs for a seeker.

    The posting source and matching configuration are injected; the service
    holds no per-request state, so one instance can serve concurrent callers.
    It does not retry or cancel fetches. Callers racing location updates
    should drop results for superseded requests themselves.
    """

    def __init__(
        self,
        posting_source: PostingSource,
        matching_config: Optional[MatchingConfig] = None,
        matcher: Optional[ProximityMatcher] = None,
    ):
        """
        Initialize the suggestion service.

        Args:
            posting_source: Collaborator that fetches recent postings
            matching_config: Radius and candidate pool size (defaults: 50 km, 100)
            matcher: Optional matcher; built from matching_config when omitted
        """
        self.posting_source = posting_source
        self.matching_config = matching_config or MatchingConfig()
        self.matcher = matcher or ProximityMatcher(radius_km=self.matching_config.radius_km)

    def suggest_jobs(
        self,
        seeker: Coordinate,
        radius_km: Optional[float] = None,
    ) -> List[RankedJobPosting]:
        """
        Fetch recent postings and return those within the radius, nearest first.

        Args:
            seeker: The seeker's position
            radius_km: Per-call radius; None uses the configured radius

        Returns:
            Ranked postings, possibly empty

        Raises:
            FetchFailure: If the candidate pool could not be fetched
            ValueError: If radius_km is negative, infinite or NaN
        """
        effective_radius = validate_radius(
            self.matching_config.radius_km if radius_km is None else radius_km
        )

        pool_size = self.matching_config.candidate_pool_size
        started = time.monotonic()

        with log_context(request_id=uuid4().hex):
            logger.info(
                "Suggestion request started",
                extra={
                    "event": "suggestions.request.started",
                    "seeker_latitude": seeker.latitude,
                    "seeker_longitude": seeker.longitude,
                    "radius_km": effective_radius,
                    "candidate_pool_size": pool_size,
                },
            )

            try:
                candidates = self.posting_source.fetch_recent_postings(pool_size)
            except FetchFailure as e:
                logger.error(
                    f"Candidate fetch failed: {e}",
                    extra={
                        "event": "suggestions.request.failed",
                        "error_type": type(e).__name__,
                        "source": e.source,
                    },
                )
                raise

            ranked = self.matcher.rank(seeker, candidates, radius_km=effective_radius)

            logger.info(
                f"Suggested {len(ranked)} jobs",
                extra={
                    "event": "suggestions.request.completed",
                    "candidate_count": len(candidates),
                    "suggestion_count": len(ranked),
                    "duration_seconds": round(time.monotonic() - started, 3),
                },
            )

        return ranked
