"""Proximity matching of job postings around a seeker."""

from .engine import DEFAULT_RADIUS_KM, ProximityMatcher, rank_postings, validate_radius

__all__ = ["DEFAULT_RADIUS_KM", "ProximityMatcher", "rank_postings", "validate_radius"]
