"""Unit tests for the main entry point.

Tests the main() function including:
- CLI argument parsing and validation
- Configuration loading with priority (CLI > env > config)
- Output formatting
- Posting file loading
- Exit code handling
"""

import json
import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from nearby_jobs.config.environment import EnvironmentConfig
from nearby_jobs.config.exceptions import ConfigurationError
from nearby_jobs.config.models import AppConfig, LoggingConfig, SourceConfig
from nearby_jobs.domain.models import Coordinate, JobPosting, RankedJobPosting
from nearby_jobs.logging.context import clear_log_context
from nearby_jobs.main import build_parser, format_table, load_posting_file, load_runtime_config, main
from nearby_jobs.sources.exceptions import FetchFailure, SourceHTTPError
from tests.helpers import FailingPostingSource, FixturePostingSource

FIXTURES_DIR = Path(__file__).parent / "fixtures"

ENV_VARS = ["FIRESTORE_API_KEY", "FIREBASE_ID_TOKEN", "DATABASE_URL", "LOG_LEVEL", "ENVIRONMENT"]


@pytest.fixture(autouse=True)
def isolated_runtime(monkeypatch):
    """Clean environment variables, log context and root logger around each test."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    clear_log_context()

    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    clear_log_context()


@pytest.fixture
def firestore_config(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        """
source:
  type: firestore
  project_id: demo-project
matching:
  radius_km: 50
  candidate_pool_size: 100
logging:
  level: WARNING
"""
    )
    return config_file


class TestLoadRuntimeConfig:
    """Test suite for load_runtime_config helper."""

    def _configs(self, env_level=None, config_level="ERROR"):
        app_config = AppConfig(
            source=SourceConfig(type="sqlite"),
            logging=LoggingConfig(level=config_level),
        )
        return app_config, EnvironmentConfig(log_level=env_level)

    def test_cli_level_wins(self, tmp_path):
        with patch("nearby_jobs.main.load_config") as mock_load:
            mock_load.return_value = self._configs(env_level="WARNING")

            _, env_config = load_runtime_config(tmp_path / "config.yaml", "DEBUG")

        assert env_config.log_level == "DEBUG"

    def test_env_level_beats_config(self, tmp_path):
        with patch("nearby_jobs.main.load_config") as mock_load:
            mock_load.return_value = self._configs(env_level="WARNING")

            _, env_config = load_runtime_config(tmp_path / "config.yaml", None)

        assert env_config.log_level == "WARNING"

    def test_config_level_used_last(self, tmp_path):
        with patch("nearby_jobs.main.load_config") as mock_load:
            mock_load.return_value = self._configs()

            _, env_config = load_runtime_config(tmp_path / "config.yaml", None)

        assert env_config.log_level == "ERROR"

    def test_configuration_error_propagates(self, tmp_path):
        with patch("nearby_jobs.main.load_config", side_effect=ConfigurationError("bad")):
            with pytest.raises(ConfigurationError):
                load_runtime_config(tmp_path / "config.yaml", None)


class TestArgumentParsing:
    """Tests for the CLI parser."""

    def test_suggest_arguments(self):
        args = build_parser().parse_args(
            ["suggest", "--lat", "37.7749", "--lon", "-122.4194", "--radius-km", "10", "--limit", "20"]
        )

        assert args.command == "suggest"
        assert args.lat == 37.7749
        assert args.lon == -122.4194
        assert args.radius_km == 10.0
        assert args.limit == 20
        assert args.output == "table"

    def test_suggest_defaults(self):
        args = build_parser().parse_args(["suggest", "--lat", "0", "--lon", "0"])

        assert args.radius_km is None
        assert args.limit is None

    @pytest.mark.parametrize(
        "argv",
        [
            ["suggest", "--lat", "95", "--lon", "0"],
            ["suggest", "--lat", "0", "--lon", "-181"],
            ["suggest", "--lat", "north", "--lon", "0"],
            ["suggest", "--lat", "0", "--lon", "0", "--radius-km", "0"],
            ["suggest", "--lat", "0", "--lon", "0", "--radius-km", "-5"],
            ["suggest", "--lat", "0", "--lon", "0", "--radius-km", "inf"],
            ["suggest", "--lat", "0", "--lon", "0", "--radius-km", "nan"],
            ["suggest", "--lat", "0", "--lon", "0", "--radius-km", "20100"],
            ["suggest", "--lat", "0", "--lon", "0", "--limit", "0"],
            ["suggest", "--lat", "0", "--lon", "0", "--limit", "5000"],
            ["suggest", "--lat", "0", "--lon", "0", "--output", "xml"],
            ["suggest", "--lon", "0"],
            [],
        ],
    )
    def test_invalid_arguments_exit_2(self, argv):
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(argv)

        assert exc_info.value.code == 2

    def test_import_arguments(self):
        args = build_parser().parse_args(["--config", "my.yaml", "import-postings", "postings.yaml"])

        assert args.command == "import-postings"
        assert args.file == Path("postings.yaml")
        assert args.config == Path("my.yaml")


class TestFormatTable:
    """Tests for table output."""

    def test_empty(self):
        assert format_table([]) == "No jobs found within the search radius."

    def test_rows(self):
        posting = JobPosting(
            id="job-oakland",
            coordinate=Coordinate(latitude=37.8044, longitude=-122.2712),
            title="Barista",
            company="Lake Merritt Coffee",
            location="Oakland, CA",
        )

        lines = format_table([RankedJobPosting(posting=posting, distance_km=13.43)]).splitlines()

        assert lines[0].split() == ["DISTANCE", "ID", "TITLE", "COMPANY", "LOCATION"]
        assert lines[1].startswith("   13.4 km  job-oakland")
        assert lines[1].endswith("Oakland, CA")

    def test_long_values_are_truncated(self):
        posting = JobPosting(id="job-1", title="T" * 50)

        row = format_table([RankedJobPosting(posting=posting, distance_km=1.0)]).splitlines()[1]

        assert "T" * 29 + "…" in row
        assert "T" * 30 not in row

    def test_missing_values_render_as_dash(self):
        row = format_table([RankedJobPosting(posting=JobPosting(id="job-1"), distance_km=0.0)]).splitlines()[1]

        assert row.rstrip().endswith("-")


class TestLoadPostingFile:
    """Tests for load_posting_file."""

    def test_yaml_with_postings_key(self):
        postings = load_posting_file(FIXTURES_DIR / "postings.yaml")

        assert [p.id for p in postings] == ["job-oakland", "job-los-angeles", "job-remote", "job-berkeley"]
        assert postings[2].coordinate is None

    def test_json_list(self, tmp_path):
        postings_file = tmp_path / "postings.json"
        postings_file.write_text(json.dumps([{"id": "a", "latitude": 1.0, "longitude": 2.0}, {"id": "b"}]))

        postings = load_posting_file(postings_file)

        assert [p.id for p in postings] == ["a", "b"]

    def test_entries_without_id_and_non_mappings_are_skipped(self, tmp_path):
        postings_file = tmp_path / "postings.yaml"
        postings_file.write_text("postings:\n  - id: a\n  - title: no id\n  - just a string\n")

        assert [p.id for p in load_posting_file(postings_file)] == ["a"]

    def test_wrong_shape_raises(self, tmp_path):
        postings_file = tmp_path / "postings.yaml"
        postings_file.write_text("jobs:\n  - id: a\n")

        with pytest.raises(ConfigurationError, match="must contain a list"):
            load_posting_file(postings_file)

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Failed to read"):
            load_posting_file(tmp_path / "missing.yaml")

    def test_malformed_yaml_raises(self, tmp_path):
        postings_file = tmp_path / "postings.yaml"
        postings_file.write_text("postings: [unclosed\n")

        with pytest.raises(ConfigurationError, match="Failed to parse"):
            load_posting_file(postings_file)


class TestMainExitCodes:
    """Tests for main() exit codes."""

    def test_validate_config_valid(self, capsys):
        assert main(["--config", str(FIXTURES_DIR / "valid_config.yaml"), "validate-config"]) == 0
        assert "is valid" in capsys.readouterr().out

    def test_validate_config_invalid(self):
        assert main(["--config", str(FIXTURES_DIR / "invalid_config.yaml"), "validate-config"]) == 1

    def test_validate_config_uses_fallback_location(self, tmp_path, monkeypatch, capsys):
        config_dir = tmp_path / "config"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text((FIXTURES_DIR / "minimal_config.yaml").read_text())
        monkeypatch.chdir(tmp_path)

        assert main(["validate-config"]) == 0
        assert "config/config.yaml is valid" in capsys.readouterr().out

    def test_validate_config_without_any_file(self, tmp_path, monkeypatch, capsys):
        monkeypatch.chdir(tmp_path)

        assert main(["validate-config"]) == 1
        assert "Configuration file not found" in capsys.readouterr().out

    def test_missing_config_returns_1(self, tmp_path, capsys):
        exit_code = main(["--config", str(tmp_path / "missing.yaml"), "suggest", "--lat", "0", "--lon", "0"])

        assert exit_code == 1
        assert "Configuration Error" in capsys.readouterr().err

    def test_invalid_environment_returns_1(self, firestore_config, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "LOUD")

        assert main(["--config", str(firestore_config), "suggest", "--lat", "0", "--lon", "0"]) == 1

    def test_fetch_failure_returns_1(self, firestore_config, capsys):
        source = FailingPostingSource(
            SourceHTTPError("HTTP 503: unavailable", status_code=503, url="https://x", source="firestore")
        )

        with patch("nearby_jobs.main.get_posting_source", return_value=source):
            exit_code = main(["--config", str(firestore_config), "suggest", "--lat", "0", "--lon", "0"])

        captured = capsys.readouterr()
        assert exit_code == 1
        assert captured.out == ""
        assert "Could not fetch job postings" in captured.err

    def test_suggest_json_output(self, firestore_config, capsys):
        source = FixturePostingSource(fixture_path=FIXTURES_DIR / "postings.yaml")

        with patch("nearby_jobs.main.get_posting_source", return_value=source):
            exit_code = main(
                [
                    "--config", str(firestore_config),
                    "suggest", "--lat", "37.7749", "--lon", "-122.4194", "--output", "json",
                ]
            )

        assert exit_code == 0
        results = json.loads(capsys.readouterr().out)
        assert [item["id"] for item in results] == ["job-oakland", "job-berkeley"]
        assert results[0]["distance_km"] == pytest.approx(13.4, abs=0.3)
        assert source.closed is True

    def test_suggest_limit_and_radius_override(self, firestore_config, capsys):
        source = FixturePostingSource(fixture_path=FIXTURES_DIR / "postings.yaml")

        with patch("nearby_jobs.main.get_posting_source", return_value=source):
            exit_code = main(
                [
                    "--config", str(firestore_config),
                    "suggest", "--lat", "37.7749", "--lon", "-122.4194",
                    "--limit", "3", "--radius-km", "600",
                ]
            )

        assert exit_code == 0
        assert source.requested_limits == [3]
        out = capsys.readouterr().out
        assert "job-oakland" in out
        assert "job-los-angeles" in out
        assert "job-berkeley" not in out

    def test_source_closed_on_failure(self, firestore_config):
        source = FailingPostingSource(FetchFailure("down"))

        with patch("nearby_jobs.main.get_posting_source", return_value=source):
            assert main(["--config", str(firestore_config), "suggest", "--lat", "0", "--lon", "0"]) == 1

        assert source.closed is True

    def test_keyboard_interrupt_returns_130(self, firestore_config):
        with patch("nearby_jobs.main.get_posting_source", side_effect=KeyboardInterrupt):
            assert main(["--config", str(firestore_config), "suggest", "--lat", "0", "--lon", "0"]) == 130
