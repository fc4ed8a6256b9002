"""Core domain models for coordinates, job postings and ranked suggestions.

This module defines the data structures used throughout the application:
- Coordinate: immutable latitude/longitude pair in decimal degrees
- JobPosting: a job listing as read from the document store
- RankedJobPosting: a JobPosting paired with its distance from the seeker
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

# Document keys that hold a posting's timestamp; the first one present wins
POSTED_AT_FIELDS = ("createdAt", "postedAt", "posted_at", "created_at")


class JobType(str, Enum):
    """Employment types an employer can pick when posting a job."""

    FULL_TIME = "Full-time"
    PART_TIME = "Part-time"
    CONTRACT = "Contract"
    INTERNSHIP = "Internship"


class Coordinate(BaseModel):
    """A latitude/longitude pair in decimal degrees.

    Values outside the nominal range are accepted as-is. Callers that care
    (document parsing, the CLI) check ``is_in_range`` themselves.
    """

    latitude: float = Field(..., description="Latitude in decimal degrees")
    longitude: float = Field(..., description="Longitude in decimal degrees")

    model_config = {"frozen": True}

    @property
    def is_in_range(self) -> bool:
        """True when latitude is in [-90, 90] and longitude in [-180, 180]."""
        return -90.0 <= self.latitude <= 90.0 and -180.0 <= self.longitude <= 180.0

    def as_tuple(self) -> tuple[float, float]:
        return (self.latitude, self.longitude)


class JobPosting(BaseModel):
    """A job posting read from the document store.

    Only ``id`` is required. ``posted_at`` drives recency ordering in the
    candidate fetch, and ``coordinate`` is absent for postings that were never
    geotagged (fully remote roles, for example). The remaining fields are
    carried through for display and are never inspected by the matcher.
    """

    id: str = Field(..., description="Opaque unique document identifier")
    posted_at: Optional[datetime] = Field(None, description="When the job was posted (UTC)")
    coordinate: Optional[Coordinate] = Field(None, description="Geotag, if any")
    title: Optional[str] = Field(None, description="Job title")
    company: Optional[str] = Field(None, description="Company name")
    location: Optional[str] = Field(None, description="Free-text location entered by the employer")
    job_type: Optional[JobType] = Field(None, description="Employment type")
    salary_min: Optional[int] = Field(None, ge=0, description="Lower salary bound")
    salary_max: Optional[int] = Field(None, ge=0, description="Upper salary bound")
    remote: bool = Field(False, description="Whether the role is remote")
    employer_id: Optional[str] = Field(None, description="User id of the posting employer")
    tags: List[str] = Field(default_factory=list, description="Free-form tags")
    apply_url: Optional[str] = Field(None, description="External application link")
    description: Optional[str] = Field(None, description="Full job description")

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "example": {
                "id": "h2Xb9QkzPq",
                "posted_at": "2025-11-01T12:00:00Z",
                "coordinate": {"latitude": 37.8044, "longitude": -122.2712},
                "title": "Barista",
                "company": "Lake Merritt Coffee",
                "location": "Oakland",
                "job_type": "Part-time",
                "remote": False,
            }
        },
    }

    @field_validator("id")
    @classmethod
    def strip_id(cls, v: str) -> str:
        """Strip whitespace from the identifier and reject empty values."""
        if not v or not v.strip():
            raise ValueError("Posting id cannot be empty or whitespace-only")
        return v.strip()

    @field_validator("title", "company", "location", "employer_id", "apply_url", "description")
    @classmethod
    def strip_optional_text(cls, v: Optional[str]) -> Optional[str]:
        """Collapse blank optional strings to None."""
        if v is None:
            return None
        stripped = v.strip()
        return stripped if stripped else None

    @field_validator("posted_at")
    @classmethod
    def ensure_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Ensure datetime is timezone-aware and in UTC."""
        if v is None:
            return None
        # If timezone-naive, treat as UTC
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @property
    def is_geotagged(self) -> bool:
        return self.coordinate is not None


@dataclass(frozen=True)
class RankedJobPosting:
    """A posting paired with its great-circle distance from the seeker.

    Built transiently while ranking and never persisted.

    Attributes:
        posting: The candidate posting, unchanged
        distance_km: Distance from the seeker in kilometres (non-negative)
    """

    posting: JobPosting
    distance_km: float

    @property
    def id(self) -> str:
        """Convenience accessor for the posting id."""
        return self.posting.id

    def to_dict(self) -> dict:
        """Serialize for JSON output."""
        data = self.posting.model_dump(mode="json")
        data["distance_km"] = round(self.distance_km, 3)
        return data
