"""Factory function for instantiating posting sources."""

import logging

from nearby_jobs.config.environment import EnvironmentConfig
from nearby_jobs.config.models import AdvancedConfig, SourceConfig, SourceType

from .base import PostingSource
from .exceptions import SourceConfigurationError
from .firestore import FirestorePostingSource
from .sql import SqlPostingSource

logger = logging.getLogger(__name__)


def get_posting_source(
    source_config: SourceConfig,
    advanced_config: AdvancedConfig,
    env_config: EnvironmentConfig,
) -> PostingSource:
    """Instantiate the posting source named by the configuration.

    Args:
        source_config: Which store to read and how
        advanced_config: HTTP timeout and user agent
        env_config: Credentials from the environment

    Returns:
        A ready PostingSource

    Raises:
        SourceConfigurationError: If the source type is unknown or the config is unusable

    Example:
        >>> source = get_posting_source(app_config.source, app_config.advanced, env_config)
        >>> postings = source.fetch_recent_postings(100)
    """
    source_type = str(getattr(source_config.type, "value", source_config.type)).lower()

    logger.debug(
        "Creating posting source",
        extra={"source_type": source_type},
    )

    if source_type == SourceType.FIRESTORE.value:
        try:
            return FirestorePostingSource(
                project_id=source_config.project_id or "",
                collection=source_config.collection,
                order_by_field=source_config.order_by_field,
                database_id=source_config.database_id,
                api_key=env_config.firestore_api_key,
                id_token=env_config.firebase_id_token,
                timeout=advanced_config.http_request_timeout,
                user_agent=advanced_config.user_agent,
            )
        except SourceConfigurationError:
            raise
        except Exception as e:
            raise SourceConfigurationError(f"Failed to create firestore source: {e}") from e

    if source_type == SourceType.SQLITE.value:
        return SqlPostingSource()

    supported_types = ", ".join(sorted(t.value for t in SourceType))
    raise SourceConfigurationError(
        f"Unknown source type: {source_config.type}. Supported types: {supported_types}"
    )
