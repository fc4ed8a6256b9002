"""Test helper utilities for Nearby Jobs tests."""

from .fixture_source import FailingPostingSource, FixturePostingSource, load_fixture_postings

__all__ = ["FixturePostingSource", "FailingPostingSource", "load_fixture_postings"]
