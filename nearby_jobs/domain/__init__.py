"""Domain models for Nearby Jobs."""

from .models import Coordinate, JobPosting, JobType, RankedJobPosting

__all__ = ["Coordinate", "JobPosting", "JobType", "RankedJobPosting"]
