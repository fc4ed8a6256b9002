"""Candidate posting sources.

Use the factory to build the configured source:
    from nearby_jobs.sources import get_posting_source
    source = get_posting_source(app_config.source, app_config.advanced, env_config)
    postings = source.fetch_recent_postings(100)

Exception handling:
    from nearby_jobs.sources import FetchFailure
"""

from .base import DEFAULT_CANDIDATE_POOL_SIZE, PostingSource
from .documents import (
    decode_firestore_document,
    decode_firestore_value,
    extract_coordinate,
    parse_posting_document,
)
from .exceptions import (
    FetchFailure,
    SourceConfigurationError,
    SourceError,
    SourceHTTPError,
    SourceResponseError,
    SourceTimeoutError,
)
from .factory import get_posting_source
from .firestore import FirestorePostingSource
from .sql import SqlPostingSource

__all__ = [
    # Base and factory
    "PostingSource",
    "DEFAULT_CANDIDATE_POOL_SIZE",
    "get_posting_source",
    # Sources
    "FirestorePostingSource",
    "SqlPostingSource",
    # Document parsing
    "parse_posting_document",
    "extract_coordinate",
    "decode_firestore_value",
    "decode_firestore_document",
    # Exceptions
    "SourceError",
    "FetchFailure",
    "SourceHTTPError",
    "SourceTimeoutError",
    "SourceResponseError",
    "SourceConfigurationError",
]
