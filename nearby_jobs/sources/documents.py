"""Parsing loosely-typed job documents into JobPosting models.

Documents arrive as untyped key-value mappings, either decoded from the
Firestore REST representation or loaded from YAML/JSON import files. Parsing
is lenient: a field that is missing or has the wrong type is treated as
absent. In particular a document whose latitude/longitude cannot be read
yields a posting without a coordinate rather than an error.
"""

import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import ValidationError

from nearby_jobs.domain.models import POSTED_AT_FIELDS, Coordinate, JobPosting, JobType
from nearby_jobs.logging import get_logger
from nearby_jobs.utils.timestamps import ensure_utc, parse_iso_datetime

logger = get_logger(__name__, component="source")

# Keys tried for each field, in order. camelCase names are what the mobile
# app writes; snake_case names are accepted for import files.
FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "posted_at": POSTED_AT_FIELDS,
    "title": ("title",),
    "company": ("company",),
    "location": ("location",),
    "job_type": ("type", "jobType", "job_type"),
    "salary_min": ("salaryMin", "salary_min"),
    "salary_max": ("salaryMax", "salary_max"),
    "remote": ("remote",),
    "employer_id": ("employerId", "employer_id"),
    "tags": ("tags",),
    "apply_url": ("applyUrl", "apply_url"),
    "description": ("description",),
}

GEOPOINT_KEYS = ("coordinate", "coordinates", "geo", "geopoint")

# Epoch values above this are taken to be milliseconds (JavaScript Date.now())
_EPOCH_MILLIS_THRESHOLD = 1e11

_JOB_TYPES_BY_NAME = {job_type.value.lower(): job_type for job_type in JobType}


# ============================================================================
# Firestore REST value decoding
# ============================================================================


def decode_firestore_value(value: Mapping[str, Any]) -> Any:
    """Decode one Firestore REST ``Value`` object into a plain Python value.

    Unknown value kinds decode to None.

    Example:
        >>> decode_firestore_value({"integerValue": "42"})
        42
        >>> decode_firestore_value({"geoPointValue": {"latitude": 37.8}})
        {'latitude': 37.8, 'longitude': 0.0}
    """
    if not isinstance(value, Mapping):
        return None

    if "nullValue" in value:
        return None
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "timestampValue" in value:
        return parse_iso_datetime(value["timestampValue"])
    if "stringValue" in value:
        return value["stringValue"]
    if "referenceValue" in value:
        return value["referenceValue"]
    if "bytesValue" in value:
        return value["bytesValue"]
    if "geoPointValue" in value:
        # proto3 JSON omits zero-valued fields
        point = value["geoPointValue"] or {}
        return {
            "latitude": float(point.get("latitude", 0.0)),
            "longitude": float(point.get("longitude", 0.0)),
        }
    if "arrayValue" in value:
        items = (value["arrayValue"] or {}).get("values", [])
        return [decode_firestore_value(item) for item in items]
    if "mapValue" in value:
        return decode_firestore_fields((value["mapValue"] or {}).get("fields", {}))

    return None


def decode_firestore_fields(fields: Mapping[str, Any]) -> Dict[str, Any]:
    """Decode a Firestore ``fields`` map into a plain dict."""
    return {name: decode_firestore_value(raw) for name, raw in (fields or {}).items()}


def decode_firestore_document(document: Mapping[str, Any]) -> Tuple[str, Dict[str, Any], Optional[datetime]]:
    """Split a Firestore REST ``Document`` into (id, data, create_time).

    The id is the last segment of the document resource name.

    Raises:
        ValueError: If the document has no usable name
    """
    name = document.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValueError("Firestore document has no name")

    doc_id = name.rstrip("/").rsplit("/", 1)[-1]
    data = decode_firestore_fields(document.get("fields", {}))
    create_time = parse_iso_datetime(document.get("createTime"))
    return doc_id, data, create_time


# ============================================================================
# Document -> JobPosting
# ============================================================================


def parse_posting_document(
    doc_id: Any,
    data: Mapping[str, Any],
    default_posted_at: Optional[datetime] = None,
) -> Optional[JobPosting]:
    """Build a JobPosting from an untyped document.

    Args:
        doc_id: Document identifier
        data: Document fields
        default_posted_at: Used when the document carries no timestamp field
            (for example the store's own creation time)

    Returns:
        JobPosting, or None when the document has no usable id
    """
    posting_id = str(doc_id).strip() if isinstance(doc_id, (str, int)) and not isinstance(doc_id, bool) else ""
    if not posting_id:
        logger.warning(
            "Skipping job document without an id",
            extra={"event": "source.document.skipped", "reason": "missing_id"},
        )
        return None

    if not isinstance(data, Mapping):
        data = {}

    coordinate = extract_coordinate(data)
    if coordinate is not None and not coordinate.is_in_range:
        logger.warning(
            "Job document has out-of-range coordinates",
            extra={
                "event": "source.document.coordinate_out_of_range",
                "posting_id": posting_id,
                "latitude": coordinate.latitude,
                "longitude": coordinate.longitude,
            },
        )

    posted_at = _as_datetime(_first(data, "posted_at"))
    if posted_at is None:
        posted_at = ensure_utc(default_posted_at)

    salary_min = _as_non_negative_int(_first(data, "salary_min"))
    salary_max = _as_non_negative_int(_first(data, "salary_max"))

    try:
        return JobPosting(
            id=posting_id,
            posted_at=posted_at,
            coordinate=coordinate,
            title=_as_text(_first(data, "title")),
            company=_as_text(_first(data, "company")),
            location=_as_text(_first(data, "location")),
            job_type=_as_job_type(_first(data, "job_type")),
            salary_min=salary_min,
            salary_max=salary_max,
            remote=_first(data, "remote") is True,
            employer_id=_as_text(_first(data, "employer_id")),
            tags=_as_tags(_first(data, "tags")),
            apply_url=_as_text(_first(data, "apply_url")),
            description=_as_text(_first(data, "description")),
        )
    except ValidationError as e:
        logger.warning(
            "Skipping job document that failed validation",
            extra={
                "event": "source.document.skipped",
                "reason": "validation_error",
                "posting_id": posting_id,
                "error": str(e),
            },
        )
        return None


def extract_coordinate(data: Mapping[str, Any]) -> Optional[Coordinate]:
    """Read a coordinate from top-level latitude/longitude or a geopoint field.

    Returns None when either component is missing, null, boolean, non-numeric
    or not finite.
    """
    coordinate = _coordinate_from(data.get("latitude"), data.get("longitude"))
    if coordinate is not None:
        return coordinate

    for key in GEOPOINT_KEYS:
        point = data.get(key)
        if isinstance(point, Mapping):
            coordinate = _coordinate_from(point.get("latitude"), point.get("longitude"))
            if coordinate is not None:
                return coordinate

    return None


def _coordinate_from(latitude: Any, longitude: Any) -> Optional[Coordinate]:
    lat = _as_finite_float(latitude)
    lon = _as_finite_float(longitude)
    if lat is None or lon is None:
        return None
    return Coordinate(latitude=lat, longitude=lon)


def _first(data: Mapping[str, Any], field: str) -> Any:
    for key in FIELD_ALIASES[field]:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _as_finite_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    result = float(value)
    return result if math.isfinite(result) else None


def _as_text(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value
    return None


def _as_non_negative_int(value: Any) -> Optional[int]:
    number = _as_finite_float(value)
    if number is None or number < 0:
        return None
    return int(number)


def _as_job_type(value: Any) -> Optional[JobType]:
    if not isinstance(value, str):
        return None
    return _JOB_TYPES_BY_NAME.get(value.strip().lower())


def _as_tags(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [tag.strip() for tag in value if isinstance(tag, str) and tag.strip()]


def _as_datetime(value: Any) -> Optional[datetime]:
    """Accept datetimes, ISO strings, epoch numbers and {seconds, nanoseconds} maps."""
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, str):
        return parse_iso_datetime(value)
    if isinstance(value, Mapping):
        seconds = value.get("seconds", value.get("_seconds"))
        nanos = value.get("nanoseconds", value.get("_nanoseconds", 0))
        seconds = _as_finite_float(seconds)
        if seconds is None:
            return None
        return _from_epoch(seconds + (_as_finite_float(nanos) or 0.0) / 1e9)

    number = _as_finite_float(value)
    if number is None:
        return None
    if abs(number) >= _EPOCH_MILLIS_THRESHOLD:
        number /= 1000.0
    return _from_epoch(number)


def _from_epoch(seconds: float) -> Optional[datetime]:
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None
