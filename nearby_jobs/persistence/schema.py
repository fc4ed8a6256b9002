"""Database schema definition and ORM models.

Defines the ``job_postings`` table and conversions between the ORM row and
the JobPosting domain model.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Boolean, Column, Float, Index, Integer, String, Text, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from nearby_jobs.domain.models import Coordinate, JobPosting
from nearby_jobs.utils.timestamps import format_timestamp, parse_iso_datetime

logger = logging.getLogger(__name__)

Base = declarative_base()


class JobPostingModel(Base):
    """ORM model for the job_postings table."""

    __tablename__ = "job_postings"

    id = Column(String(255), primary_key=True, nullable=False)

    title = Column(Text, nullable=True)
    company = Column(String(255), nullable=True)
    location = Column(String(255), nullable=True)
    job_type = Column(String(32), nullable=True)
    salary_min = Column(Integer, nullable=True)
    salary_max = Column(Integer, nullable=True)
    remote = Column(Boolean, nullable=False, default=False)
    employer_id = Column(String(255), nullable=True)
    tags = Column(JSON, nullable=False)
    apply_url = Column(Text, nullable=True)
    description = Column(Text, nullable=True)

    # Geotag; both set or both null
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    # ISO 8601 UTC string with fixed width, so lexical order is time order
    posted_at = Column(String(50), nullable=True)

    __table_args__ = (
        Index("idx_job_postings_posted_at", "posted_at"),
        Index("idx_job_postings_employer", "employer_id"),
    )

    def to_domain(self) -> JobPosting:
        """Convert ORM model to domain model."""
        coordinate = None
        if self.latitude is not None and self.longitude is not None:
            coordinate = Coordinate(latitude=self.latitude, longitude=self.longitude)

        return JobPosting(
            id=self.id,
            posted_at=parse_iso_datetime(self.posted_at),
            coordinate=coordinate,
            title=self.title,
            company=self.company,
            location=self.location,
            job_type=self.job_type,
            salary_min=self.salary_min,
            salary_max=self.salary_max,
            remote=bool(self.remote),
            employer_id=self.employer_id,
            tags=list(self.tags or []),
            apply_url=self.apply_url,
            description=self.description,
        )

    @classmethod
    def from_domain(cls, posting: JobPosting) -> "JobPostingModel":
        """Create ORM model from domain model."""
        model = cls(id=posting.id)
        model.apply_domain(posting)
        return model

    def apply_domain(self, posting: JobPosting) -> None:
        """Copy every non-key field from a domain model onto this row."""
        self.title = posting.title
        self.company = posting.company
        self.location = posting.location
        self.job_type = posting.job_type.value if posting.job_type else None
        self.salary_min = posting.salary_min
        self.salary_max = posting.salary_max
        self.remote = posting.remote
        self.employer_id = posting.employer_id
        self.tags = list(posting.tags)
        self.apply_url = posting.apply_url
        self.description = posting.description
        self.latitude = posting.coordinate.latitude if posting.coordinate else None
        self.longitude = posting.coordinate.longitude if posting.coordinate else None
        self.posted_at = _format_datetime(posting.posted_at)


def _format_datetime(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return format_timestamp(dt)


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes if they don't exist (idempotent)."""
    logger.info("Creating database schema if not exists")

    try:
        Base.metadata.create_all(engine, checkfirst=True)
        tables = inspect(engine).get_table_names()
        logger.info(f"Database schema ready. Tables: {', '.join(tables)}")
    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise
