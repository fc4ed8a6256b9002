"""Command-line entry point for Nearby Jobs."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import json
import sys
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple

import yaml

from nearby_jobs.config.environment import EnvironmentConfig
from nearby_jobs.config.exceptions import ConfigurationError
from nearby_jobs.config.loader import load_config, validate_config_file
from nearby_jobs.config.models import MAX_CANDIDATE_POOL_SIZE, MAX_RADIUS_KM, AppConfig, SourceType
from nearby_jobs.domain.models import Coordinate, JobPosting, RankedJobPosting
from nearby_jobs.logging import get_logger
from nearby_jobs.logging.config import configure_logging
from nearby_jobs.persistence import (
    JobPostingRepository,
    PersistenceError,
    close_database,
    get_session,
    init_database,
)
from nearby_jobs.sources import FetchFailure, SourceConfigurationError, get_posting_source, parse_posting_document
from nearby_jobs.suggestions import JobSuggestionService

logger = get_logger(__name__, component="cli")


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and resolve the effective log level.

    Priority: CLI > LOG_LEVEL environment variable > config file > INFO.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif env_config.log_level:
        pass
    elif app_config.logging and app_config.logging.level:
        env_config.log_level = app_config.logging.level
    else:
        env_config.log_level = "INFO"

    return app_config, env_config


def _latitude(value: str) -> float:
    return _bounded_float(value, -90.0, 90.0, "latitude")


def _longitude(value: str) -> float:
    return _bounded_float(value, -180.0, 180.0, "longitude")


def _bounded_float(value: str, low: float, high: float, name: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{name} must be a number, got: {value!r}")
    if not low <= number <= high:
        raise argparse.ArgumentTypeError(f"{name} must be between {low:g} and {high:g}, got: {value}")
    return number


def _radius(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"must be a number, got: {value!r}")
    # Also rejects nan and inf
    if not 0 < number <= MAX_RADIUS_KM:
        raise argparse.ArgumentTypeError(
            f"must be greater than 0 and at most {MAX_RADIUS_KM:.0f}, got: {value}"
        )
    return number


def _pool_size(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"must be an integer, got: {value!r}")
    if not 1 <= number <= MAX_CANDIDATE_POOL_SIZE:
        raise argparse.ArgumentTypeError(
            f"must be between 1 and {MAX_CANDIDATE_POOL_SIZE}, got: {value}"
        )
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nearby-jobs",
        description="Nearby Jobs - suggest recently posted jobs close to a job seeker",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml or config/config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    suggest = subparsers.add_parser("suggest", help="Suggest jobs near a location")
    suggest.add_argument("--lat", type=_latitude, required=True, help="Seeker latitude")
    suggest.add_argument("--lon", type=_longitude, required=True, help="Seeker longitude")
    suggest.add_argument(
        "--radius-km",
        type=_radius,
        default=None,
        help="Search radius in km (default: matching.radius_km from config)",
    )
    suggest.add_argument(
        "--limit",
        type=_pool_size,
        default=None,
        help="Candidate pool size (default: matching.candidate_pool_size from config)",
    )
    suggest.add_argument(
        "--output",
        choices=["table", "json"],
        default="table",
        help="Output format (default: table)",
    )

    import_postings = subparsers.add_parser(
        "import-postings", help="Load postings from a YAML or JSON file into the local store"
    )
    import_postings.add_argument("file", type=Path, help="File with a 'postings' list")

    subparsers.add_parser("validate-config", help="Validate the configuration file and exit")

    return parser


def format_table(results: Sequence[RankedJobPosting]) -> str:
    """Render ranked postings as a plain-text table."""
    if not results:
        return "No jobs found within the search radius."

    header = f"{'DISTANCE':>10}  {'ID':<20}  {'TITLE':<30}  {'COMPANY':<20}  LOCATION"
    lines = [header]
    for item in results:
        posting = item.posting
        lines.append(
            f"{item.distance_km:>7.1f} km  "
            f"{_cell(posting.id, 20)}  "
            f"{_cell(posting.title, 30)}  "
            f"{_cell(posting.company, 20)}  "
            f"{posting.location or '-'}"
        )
    return "\n".join(lines)


def _cell(value: Optional[str], width: int) -> str:
    text = value or "-"
    if len(text) > width:
        text = text[: width - 1] + "…"
    return f"{text:<{width}}"


def run_suggest(args: argparse.Namespace, app_config: AppConfig, env_config: EnvironmentConfig) -> int:
    matching_config = app_config.matching
    if args.limit is not None:
        matching_config = matching_config.model_copy(update={"candidate_pool_size": args.limit})

    source = get_posting_source(app_config.source, app_config.advanced, env_config)
    try:
        service = JobSuggestionService(source, matching_config)
        seeker = Coordinate(latitude=args.lat, longitude=args.lon)
        results = service.suggest_jobs(seeker, radius_km=args.radius_km)
    finally:
        source.close()

    if args.output == "json":
        print(json.dumps([item.to_dict() for item in results], indent=2, ensure_ascii=False))
    else:
        print(format_table(results))
    return 0


def load_posting_file(path: Path) -> List[JobPosting]:
    """
    Read postings from a YAML or JSON file.

    The file holds either a list of documents or a mapping with a
    ``postings`` list. Each document needs an ``id``; other fields follow the
    job document layout (camelCase or snake_case).

    Raises:
        ConfigurationError: If the file cannot be read or has the wrong shape
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"Failed to read postings file: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse postings file: {e}") from e

    if isinstance(data, dict):
        data = data.get("postings")
    if not isinstance(data, list):
        raise ConfigurationError(
            f"Postings file {path} must contain a list of postings",
            suggestions=["Put documents under a top-level 'postings:' key"],
        )

    postings = []
    for document in data:
        if not isinstance(document, dict):
            logger.warning(
                "Skipping non-mapping entry in postings file",
                extra={"event": "import.entry.skipped", "entry_type": type(document).__name__},
            )
            continue
        posting = parse_posting_document(document.get("id"), document)
        if posting is not None:
            postings.append(posting)
    return postings


def run_import(args: argparse.Namespace) -> int:
    postings = load_posting_file(args.file)

    with get_session() as session:
        repository = JobPostingRepository(session)
        repository.bulk_upsert(postings)
        total = repository.count()

    geotagged = sum(1 for posting in postings if posting.is_geotagged)
    logger.info(
        f"Imported {len(postings)} postings",
        extra={
            "event": "import.completed",
            "file": str(args.file),
            "imported": len(postings),
            "geotagged": geotagged,
            "stored_total": total,
        },
    )
    print(f"Imported {len(postings)} postings ({geotagged} geotagged); {total} stored in total.")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "validate-config":
        return 0 if validate_config_file(args.config) else 1

    database_opened = False
    try:
        app_config, env_config = load_runtime_config(args.config, args.log_level)

        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=env_config.environment,
        )

        logger.debug(
            "Configuration loaded",
            extra={
                "event": "config.loaded",
                "command": args.command,
                "source_type": app_config.source.type,
                "radius_km": app_config.matching.radius_km,
                "candidate_pool_size": app_config.matching.candidate_pool_size,
            },
        )

        if args.command == "import-postings" or app_config.source.type == SourceType.SQLITE.value:
            init_database(env_config.database_url)
            database_opened = True

        if args.command == "import-postings":
            return run_import(args)
        return run_suggest(args, app_config, env_config)

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        return 1
    except SourceConfigurationError as e:
        print(f"Source Configuration Error: {e}", file=sys.stderr)
        return 1
    except FetchFailure as e:
        print(f"Could not fetch job postings: {e}", file=sys.stderr)
        return 1
    except PersistenceError as e:
        print(f"Database Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130
    finally:
        if database_opened:
            close_database()


if __name__ == "__main__":
    sys.exit(main())
