"""Non-fatal configuration checks."""

import warnings
from typing import Any, Dict, List

LARGE_RADIUS_KM = 500
LARGE_POOL_SIZE = 500


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Check configuration for settings that are valid but probably unintended.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        List of warning messages
    """
    warning_messages = []

    matching = config_dict.get("matching", {})
    if isinstance(matching, dict):
        radius_km = matching.get("radius_km")
        if isinstance(radius_km, (int, float)) and not isinstance(radius_km, bool):
            if radius_km > LARGE_RADIUS_KM:
                warning_messages.append(
                    f"Large radius_km ({radius_km}) will suggest jobs far outside commuting distance"
                )

        pool_size = matching.get("candidate_pool_size")
        if isinstance(pool_size, int) and not isinstance(pool_size, bool):
            if pool_size > LARGE_POOL_SIZE:
                warning_messages.append(
                    f"Large candidate_pool_size ({pool_size}) increases document reads per request"
                )

    source = config_dict.get("source", {})
    if isinstance(source, dict) and source.get("type") == "sqlite" and source.get("project_id"):
        warning_messages.append("source.project_id is ignored for sqlite sources")

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit warning messages using Python's warnings module."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
