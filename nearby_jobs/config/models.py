"""Pydantic models for config.yaml.

Each top-level section of the file maps onto one model here; AppConfig is
the root. Enum-typed fields are stored as their plain string values.
"""

import math
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, ValidationInfo, field_validator, model_validator

from nearby_jobs.domain.models import POSTED_AT_FIELDS
from nearby_jobs.geo.distance import EARTH_RADIUS_KM

# No two points on the globe are farther apart than half the circumference
MAX_RADIUS_KM = math.pi * EARTH_RADIUS_KM

MAX_CANDIDATE_POOL_SIZE = 1000


def _require_text(value: str, field_name: str) -> str:
    cleaned = value.strip()
    if not cleaned:
        raise ValueError(f"{field_name} must not be blank")
    return cleaned


class SourceType(str, Enum):
    """Supported candidate posting stores."""

    FIRESTORE = "firestore"
    SQLITE = "sqlite"


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    JSON = "json"
    KEY_VALUE = "key-value"


class MatchingConfig(BaseModel):
    """Proximity matching parameters."""

    radius_km: float = Field(
        50.0,
        gt=0,
        le=MAX_RADIUS_KM,
        allow_inf_nan=False,
        description="Maximum distance between seeker and posting (km)",
    )
    candidate_pool_size: int = Field(
        100,
        ge=1,
        le=MAX_CANDIDATE_POOL_SIZE,
        description="How many of the most recent postings to consider",
    )


class SourceConfig(BaseModel):
    """Where candidate postings are fetched from."""

    model_config = {"use_enum_values": True}

    type: SourceType = Field(..., description="Posting store type (firestore, sqlite)")
    project_id: Optional[str] = Field(None, description="Firebase/GCP project id")
    database_id: str = Field("(default)", min_length=1, description="Firestore database id")
    collection: str = Field("jobs", min_length=1, description="Collection holding job documents")
    order_by_field: str = Field(
        "createdAt",
        min_length=1,
        description="Timestamp field the store orders by; must be one the posting parser reads",
    )

    @field_validator("project_id")
    @classmethod
    def blank_project_is_unset(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None

    @field_validator("collection", "database_id")
    @classmethod
    def require_name(cls, v: str, info: ValidationInfo) -> str:
        return _require_text(v, info.field_name)

    @field_validator("order_by_field")
    @classmethod
    def require_posted_at_field(cls, v: str) -> str:
        """Fetched postings are re-ordered by their parsed timestamp, so the
        store must order by that same field.
        """
        candidate = v.strip()
        if candidate not in POSTED_AT_FIELDS:
            raise ValueError(
                f"order_by_field must be one of {', '.join(POSTED_AT_FIELDS)}, got: {v!r}"
            )
        return candidate

    @model_validator(mode="after")
    def require_project_for_firestore(self):
        """A Firestore source cannot be addressed without a project id."""
        if self.type == SourceType.FIRESTORE.value and not self.project_id:
            raise ValueError("project_id is required when source type is 'firestore'")
        return self


class LoggingConfig(BaseModel):
    """Log verbosity and output format."""

    model_config = {"use_enum_values": True}

    level: LogLevel = Field(LogLevel.INFO, description="Minimum level that is emitted")
    format: LogFormat = Field(LogFormat.KEY_VALUE, description="json or key-value")


class AdvancedConfig(BaseModel):
    """HTTP settings for remote posting stores."""

    http_request_timeout: int = Field(
        30, ge=5, le=300, description="Request timeout for document store calls (seconds)"
    )
    user_agent: str = Field("NearbyJobs/1.0", min_length=1, description="Sent as the User-Agent header")

    @field_validator("user_agent")
    @classmethod
    def require_user_agent(cls, v: str) -> str:
        return _require_text(v, "user_agent")


class AppConfig(BaseModel):
    """Root configuration object for Nearby Jobs."""

    source: SourceConfig = Field(..., description="Candidate posting store")
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    advanced: AdvancedConfig = Field(default_factory=AdvancedConfig)
