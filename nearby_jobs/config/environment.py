"""Settings read from environment variables (and .env, via python-dotenv).

Secrets and deployment details live here rather than in config.yaml. Every
variable is optional.
"""

import os
from typing import Dict, Optional

from .exceptions import ConfigurationError

DEFAULT_DATABASE_URL = "sqlite:///./data/nearby_jobs.db"

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# Attribute name -> environment variable
ENV_VARS: Dict[str, str] = {
    "firestore_api_key": "FIRESTORE_API_KEY",
    "firebase_id_token": "FIREBASE_ID_TOKEN",
    "database_url": "DATABASE_URL",
    "log_level": "LOG_LEVEL",
    "environment": "ENVIRONMENT",
}


class EnvironmentConfig:
    """Process settings taken from the environment.

    Attributes:
        firestore_api_key: Web API key sent as the ``key`` query parameter
        firebase_id_token: Firebase Auth ID token sent as a bearer token
        database_url: Local posting store URL
        log_level: Overrides ``logging.level`` from config.yaml when set
        environment: Label stamped on every log record
    """

    def __init__(
        self,
        firestore_api_key: Optional[str] = None,
        firebase_id_token: Optional[str] = None,
        database_url: Optional[str] = None,
        log_level: Optional[str] = None,
        environment: Optional[str] = None,
    ):
        self.firestore_api_key = firestore_api_key
        self.firebase_id_token = firebase_id_token
        self.database_url = database_url or DEFAULT_DATABASE_URL
        self.log_level = log_level
        self.environment = environment or "local"

    def __repr__(self) -> str:
        # Credentials are reported as present/absent only
        return (
            f"EnvironmentConfig(database_url={self.database_url!r}, log_level={self.log_level!r}, "
            f"environment={self.environment!r}, "
            f"firestore_api_key={'set' if self.firestore_api_key else 'unset'}, "
            f"firebase_id_token={'set' if self.firebase_id_token else 'unset'})"
        )


def load_environment_config() -> EnvironmentConfig:
    """Read the variables in ENV_VARS; blank values count as unset.

    Raises:
        ConfigurationError: If LOG_LEVEL or DATABASE_URL holds an unusable value
    """
    values = {attr: _read(var) for attr, var in ENV_VARS.items()}
    problems = []

    level = values["log_level"]
    if level is not None:
        values["log_level"] = level.upper()
        if values["log_level"] not in VALID_LOG_LEVELS:
            problems.append(
                f"Invalid LOG_LEVEL: '{level}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
            )

    url = values["database_url"]
    if url is not None and "://" not in url:
        problems.append(
            f"Invalid DATABASE_URL: '{url}'. Expected a URL such as {DEFAULT_DATABASE_URL}"
        )

    if problems:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=problems,
            suggestions=[
                "Copy .env.example to .env and adjust the values",
                "Unset variables you do not need; all of them are optional",
            ],
        )

    return EnvironmentConfig(**values)


def _read(name: str) -> Optional[str]:
    value = os.environ.get(name, "").strip()
    return value or None
