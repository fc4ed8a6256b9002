"""Nearby Jobs: suggest recently posted jobs close to a job seeker."""

__version__ = "1.0.0"
