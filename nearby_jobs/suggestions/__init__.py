"""Nearby job suggestions for a seeker."""

from .service import JobSuggestionService

__all__ = ["JobSuggestionService"]
