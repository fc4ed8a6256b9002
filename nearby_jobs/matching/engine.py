"""Proximity filtering and ranking of candidate postings.

This module implements the matching logic that:
1. Drops candidates without a geotag
2. Computes each remaining candidate's distance from the seeker once
3. Drops candidates farther than the radius
4. Orders the survivors nearest-first
"""

import logging
import math
from typing import Iterable, List, Optional

from nearby_jobs.domain.models import Coordinate, JobPosting, RankedJobPosting
from nearby_jobs.geo.distance import haversine_km

logger = logging.getLogger(__name__)

DEFAULT_RADIUS_KM = 50.0


def validate_radius(radius_km: float) -> float:
    """Return ``radius_km`` unchanged, or raise ValueError if it is NaN, infinite or negative."""
    if not math.isfinite(radius_km) or radius_km < 0:
        raise ValueError(f"radius_km must be a finite non-negative number, got: {radius_km}")
    return radius_km


def rank_postings(
    seeker: Coordinate,
    candidates: Iterable[JobPosting],
    radius_km: float = DEFAULT_RADIUS_KM,
) -> List[RankedJobPosting]:
    """Rank candidate postings by distance from the seeker.

    Postings without a coordinate are skipped, as are postings whose distance
    exceeds ``radius_km`` (a posting exactly on the radius is kept). The sort
    is stable, so postings at identical distances keep their candidate order.
    The input is never mutated.

    Args:
        seeker: The seeker's position
        candidates: Candidate postings, usually most-recent-first
        radius_km: Maximum distance in kilometres

    Returns:
        Ranked postings, nearest first. Empty when nothing qualifies.

    Raises:
        ValueError: If radius_km is negative, infinite or NaN
    """
    validate_radius(radius_km)

    ranked: List[RankedJobPosting] = []
    for posting in candidates:
        if posting.coordinate is None:
            continue

        distance_km = haversine_km(seeker, posting.coordinate)
        if distance_km > radius_km:
            continue

        ranked.append(RankedJobPosting(posting=posting, distance_km=distance_km))

    ranked.sort(key=lambda item: item.distance_km)
    return ranked


class ProximityMatcher:
    """Ranks candidate postings around a seeker within a configured radius."""

    def __init__(self, radius_km: float = DEFAULT_RADIUS_KM, logger_instance: Optional[logging.Logger] = None):
        """Initialize ProximityMatcher.

        Args:
            radius_km: Default search radius in kilometres
            logger_instance: Optional logger instance (defaults to module logger)

        Raises:
            ValueError: If radius_km is negative, infinite or NaN
        """
        self.radius_km = validate_radius(radius_km)
        self.logger = logger_instance or logger

    def rank(
        self,
        seeker: Coordinate,
        candidates: Iterable[JobPosting],
        radius_km: Optional[float] = None,
    ) -> List[RankedJobPosting]:
        """Rank candidates, falling back to the configured radius.

        Args:
            seeker: The seeker's position
            candidates: Candidate postings
            radius_km: Per-call radius override

        Returns:
            Ranked postings, nearest first
        """
        effective_radius = self.radius_km if radius_km is None else radius_km
        candidate_list = list(candidates)

        ranked = rank_postings(seeker, candidate_list, effective_radius)

        untagged = sum(1 for posting in candidate_list if posting.coordinate is None)
        self.logger.debug(
            f"Ranked {len(ranked)} of {len(candidate_list)} candidates",
            extra={
                "event": "matching.completed",
                "radius_km": effective_radius,
                "candidate_count": len(candidate_list),
                "untagged_count": untagged,
                "out_of_radius_count": len(candidate_list) - untagged - len(ranked),
                "match_count": len(ranked),
                "nearest_km": round(ranked[0].distance_km, 3) if ranked else None,
            },
        )

        return ranked
