"""End-to-end tests: import postings into the local store, then suggest.

Runs the CLI entry point against a temporary SQLite database, exercising
configuration loading, persistence, the SQL posting source, matching and
output formatting together.
"""

import json
import logging
from pathlib import Path

import pytest

from nearby_jobs.logging.context import clear_log_context
from nearby_jobs.main import main
from nearby_jobs.persistence import is_initialized

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"

ENV_VARS = ["FIRESTORE_API_KEY", "FIREBASE_ID_TOKEN", "DATABASE_URL", "LOG_LEVEL", "ENVIRONMENT"]


@pytest.fixture(autouse=True)
def isolated_runtime(monkeypatch, tmp_path):
    """Point DATABASE_URL at a temporary file and restore logging afterwards."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'data' / 'nearby_jobs.db'}")
    clear_log_context()

    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    clear_log_context()


@pytest.fixture
def sqlite_config(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        """
source:
  type: sqlite
matching:
  radius_km: 50
  candidate_pool_size: 100
logging:
  level: INFO
  format: json
"""
    )
    return config_file


def run(config, *argv):
    return main(["--config", str(config), *argv])


def test_import_then_suggest_json(sqlite_config, tmp_path, capsys):
    assert run(sqlite_config, "import-postings", str(FIXTURES_DIR / "postings.yaml")) == 0
    assert "Imported 4 postings (3 geotagged); 4 stored in total." in capsys.readouterr().out
    assert (tmp_path / "data" / "nearby_jobs.db").exists()

    assert run(sqlite_config, "suggest", "--lat", "37.7749", "--lon", "-122.4194", "--output", "json") == 0

    results = json.loads(capsys.readouterr().out)
    assert [item["id"] for item in results] == ["job-oakland", "job-berkeley"]
    oakland = results[0]
    assert oakland["title"] == "Barista"
    assert oakland["job_type"] == "Part-time"
    assert oakland["tags"] == ["coffee", "hospitality"]
    assert oakland["distance_km"] == pytest.approx(13.4, abs=0.3)
    assert results[0]["distance_km"] <= results[1]["distance_km"]


def test_import_is_idempotent(sqlite_config, capsys):
    run(sqlite_config, "import-postings", str(FIXTURES_DIR / "postings.yaml"))
    run(sqlite_config, "import-postings", str(FIXTURES_DIR / "postings.yaml"))

    assert "4 stored in total." in capsys.readouterr().out.splitlines()[-1]


def test_suggest_on_empty_store(sqlite_config, capsys):
    assert run(sqlite_config, "suggest", "--lat", "37.7749", "--lon", "-122.4194") == 0
    assert capsys.readouterr().out.strip() == "No jobs found within the search radius."


def test_candidate_pool_limits_what_is_considered(sqlite_config, capsys):
    run(sqlite_config, "import-postings", str(FIXTURES_DIR / "postings.yaml"))
    capsys.readouterr()

    # The three newest postings are remote, Oakland and Los Angeles
    assert run(
        sqlite_config, "suggest", "--lat", "37.7749", "--lon", "-122.4194", "--limit", "3", "--output", "json"
    ) == 0

    results = json.loads(capsys.readouterr().out)
    assert [item["id"] for item in results] == ["job-oakland"]


def test_logs_go_to_stderr_as_json(sqlite_config, capsys):
    run(sqlite_config, "import-postings", str(FIXTURES_DIR / "postings.yaml"))
    capsys.readouterr()

    run(sqlite_config, "suggest", "--lat", "37.7749", "--lon", "-122.4194", "--output", "json")

    err_lines = [line for line in capsys.readouterr().err.splitlines() if line.strip()]
    events = [json.loads(line).get("event") for line in err_lines]
    assert "suggestions.request.completed" in events
    completed = next(json.loads(line) for line in err_lines if '"suggestions.request.completed"' in line)
    assert len(completed["request_id"]) == 32
    assert completed["service"] == "nearby-jobs"


def test_database_closed_after_run(sqlite_config):
    run(sqlite_config, "suggest", "--lat", "0", "--lon", "0")

    assert not is_initialized()


def test_bad_postings_file_returns_1(sqlite_config, tmp_path, capsys):
    bad_file = tmp_path / "bad.yaml"
    bad_file.write_text("jobs: []\n")

    assert run(sqlite_config, "import-postings", str(bad_file)) == 1
    assert "Configuration Error" in capsys.readouterr().err
