"""Firestore posting source over the Firestore REST API."""

import logging
from typing import Any, Dict, List, Optional

import requests

from nearby_jobs.domain.models import POSTED_AT_FIELDS, JobPosting
from nearby_jobs.logging import get_logger

from .base import PostingSource
from .documents import decode_firestore_document, parse_posting_document
from .exceptions import (
    SourceConfigurationError,
    SourceHTTPError,
    SourceResponseError,
    SourceTimeoutError,
)

logger = get_logger(__name__, component="source")


class FirestorePostingSource(PostingSource):
    """Fetches recent job documents from a Firestore collection.

    Issues a single ``runQuery`` request ordered by the posting timestamp
    field, newest first, limited to the candidate pool size. Documents are
    decoded from Firestore's typed JSON and parsed leniently into JobPosting.

    API Details:
        Endpoint: https://firestore.googleapis.com/v1/projects/{project}/databases/{db}/documents:runQuery
        Method: POST
        Authentication: optional API key (``key`` parameter) and/or a
            Firebase ID token (bearer), as governed by security rules
        Response: JSON array of ``{"document": {...}, "readTime": ...}``
    """

    SOURCE_NAME = "firestore"
    API_BASE_URL = "https://firestore.googleapis.com/v1"

    def __init__(
        self,
        project_id: str,
        collection: str = "jobs",
        order_by_field: str = "createdAt",
        database_id: str = "(default)",
        api_key: Optional[str] = None,
        id_token: Optional[str] = None,
        timeout: int = 30,
        user_agent: str = "NearbyJobs/1.0",
        session: Optional[requests.Session] = None,
    ) -> None:
        """Initialize the Firestore source.

        Args:
            project_id: Firebase/GCP project id
            collection: Collection holding job documents
            order_by_field: Timestamp field used for recency ordering
            database_id: Firestore database id
            api_key: Optional Web API key
            id_token: Optional Firebase Auth ID token
            timeout: HTTP request timeout in seconds (5-300)
            user_agent: User-Agent header for requests
            session: Optional requests session (for connection reuse or tests)

        Raises:
            SourceConfigurationError: If required settings are missing or invalid
        """
        if not project_id or not project_id.strip():
            raise SourceConfigurationError("project_id is required for the Firestore source")
        if not collection or not collection.strip():
            raise SourceConfigurationError("collection cannot be empty")
        if not 5 <= timeout <= 300:
            raise SourceConfigurationError(
                f"Timeout must be between 5 and 300 seconds, got: {timeout}"
            )
        if not user_agent or not user_agent.strip():
            raise SourceConfigurationError("user_agent cannot be empty")
        if order_by_field not in POSTED_AT_FIELDS:
            raise SourceConfigurationError(
                f"order_by_field must be one of {', '.join(POSTED_AT_FIELDS)}, got: {order_by_field!r}"
            )

        self.project_id = project_id.strip()
        self.collection = collection.strip()
        self.order_by_field = order_by_field
        self.database_id = database_id
        self.api_key = api_key
        self.id_token = id_token
        self.timeout = timeout

        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": user_agent.strip()})

    @property
    def query_url(self) -> str:
        return (
            f"{self.API_BASE_URL}/projects/{self.project_id}"
            f"/databases/{self.database_id}/documents:runQuery"
        )

    def build_query(self, limit: int) -> Dict[str, Any]:
        """Build the structured query body for ``limit`` most recent documents."""
        return {
            "structuredQuery": {
                "from": [{"collectionId": self.collection}],
                "orderBy": [
                    {
                        "field": {"fieldPath": self.order_by_field},
                        "direction": "DESCENDING",
                    }
                ],
                "limit": limit,
            }
        }

    def _fetch(self, limit: int) -> List[JobPosting]:
        logger.info(
            "Querying Firestore for recent postings",
            extra={
                "source": self.SOURCE_NAME,
                "project_id": self.project_id,
                "collection": self.collection,
                "limit": limit,
            },
        )

        response = self._make_request(self.query_url, json_data=self.build_query(limit))

        if not isinstance(response, list):
            raise SourceResponseError(
                f"Expected JSON array from runQuery, got {type(response).__name__}",
                source=self.SOURCE_NAME,
            )

        postings = []
        for item in response:
            if not isinstance(item, dict):
                raise SourceResponseError(
                    f"Expected JSON object in runQuery results, got {type(item).__name__}",
                    source=self.SOURCE_NAME,
                )
            document = item.get("document")
            if document is None:
                # Result entries carrying only readTime mean "no more documents"
                continue

            posting = self._parse_document(document)
            if posting is not None:
                postings.append(posting)

        return postings

    def _parse_document(self, document: Any) -> Optional[JobPosting]:
        try:
            doc_id, data, create_time = decode_firestore_document(document)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(
                "Failed to decode Firestore document",
                extra={
                    "event": "source.document.skipped",
                    "source": self.SOURCE_NAME,
                    "reason": "decode_error",
                    "document_name": document.get("name") if isinstance(document, dict) else None,
                    "error": str(e),
                },
            )
            return None

        return parse_posting_document(doc_id, data, default_posted_at=create_time)

    def _make_request(self, url: str, json_data: Dict[str, Any]) -> Any:
        """POST to Firestore and return the parsed JSON body.

        Raises:
            SourceHTTPError: On 4xx/5xx status or connection failure
            SourceTimeoutError: On request timeout
            SourceResponseError: On invalid JSON
        """
        headers = {}
        if self.id_token:
            headers["Authorization"] = f"Bearer {self.id_token}"
        params = {"key": self.api_key} if self.api_key else None

        try:
            logger.debug(
                f"HTTP POST request to {url}",
                extra={
                    "event": "source.fetch.request",
                    "method": "POST",
                    "url": url,
                    "timeout": self.timeout,
                },
            )

            response = self._session.post(
                url,
                headers=headers,
                params=params,
                json=json_data,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            logger.warning(
                f"Request to {url} timed out after {self.timeout} seconds",
                extra={
                    "event": "source.fetch.retryable_error",
                    "error_type": "Timeout",
                    "url": url,
                    "timeout": self.timeout,
                },
            )
            raise SourceTimeoutError(
                f"Request to {url} timed out after {self.timeout} seconds",
                url=url,
                source=self.SOURCE_NAME,
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error(
                f"Request to {url} failed: {e}",
                extra={
                    "event": "source.fetch.error",
                    "error_type": type(e).__name__,
                    "url": url,
                },
            )
            raise SourceHTTPError(
                f"Request to {url} failed: {e}",
                status_code=0,
                url=url,
                source=self.SOURCE_NAME,
            ) from e

        if response.status_code >= 400:
            is_retryable = response.status_code >= 500 or response.status_code == 429
            logger.log(
                logging.WARNING if is_retryable else logging.ERROR,
                f"HTTP {response.status_code} error from {url}",
                extra={
                    "event": "source.fetch.retryable_error" if is_retryable else "source.fetch.error",
                    "status_code": response.status_code,
                    "url": url,
                },
            )
            raise SourceHTTPError(
                f"HTTP {response.status_code}: {_error_detail(response)}",
                status_code=response.status_code,
                url=url,
                source=self.SOURCE_NAME,
            )

        try:
            return response.json()
        except ValueError as e:
            logger.error(
                f"Failed to parse JSON response from {url}",
                extra={
                    "event": "source.fetch.error",
                    "error_type": "JSONDecodeError",
                    "url": url,
                },
            )
            raise SourceResponseError(
                f"Failed to parse JSON response from {url}: {e}",
                source=self.SOURCE_NAME,
            ) from e

    def close(self) -> None:
        self._session.close()


def _error_detail(response: requests.Response) -> str:
    """Prefer the message from a Google API error body over the HTTP reason."""
    try:
        body = response.json()
    except ValueError:
        return response.reason or "error"

    if isinstance(body, list) and body:
        body = body[0]
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        message = body["error"].get("message")
        if message:
            return message
    return response.reason or "error"
