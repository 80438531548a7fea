"""Command-line entry point for the Meta targeting assistant."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import json
import os
import signal
import sys
import threading
import time
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from targeting.adapters.meta import MetaInterestAdapter
from targeting.config.environment import EnvironmentConfig
from targeting.config.exceptions import ConfigurationError
from targeting.config.loader import load_config, validate_config_file
from targeting.config.models import AppConfig
from targeting.criteria import CATEGORIES, COUNTRIES, CriteriaGenerationError, CriteriaGenerator, get_country_code
from targeting.domain.models import Candidate
from targeting.logging import get_logger
from targeting.logging.config import configure_logging
from targeting.matching.engine import InterestMatcher
from targeting.persistence import (
    PersistenceError,
    ProjectRepository,
    close_database,
    get_session,
    init_database,
)
from targeting.pipeline import (
    BatchCancelledError,
    BatchItem,
    BatchProcessor,
    GlobalBatchFailure,
    JsonLinesProgressWriter,
    ProgressBroadcaster,
    logging_listener,
)
from targeting.scheduler import RetryRequest, SchedulerService, ZeroAudienceRetryQueue

logger = get_logger(__name__, component="cli")

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_ITEM_ERRORS = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="targeting",
        description="Meta targeting assistant - match criteria to ads-platform interests",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: ./config.yaml or ./config/config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )
    parser.add_argument(
        "--check-config",
        action="store_true",
        help="Validate the configuration file and exit",
    )

    source = parser.add_mutually_exclusive_group()
    source.add_argument("--criteria", nargs="+", metavar="CRITERION", help="Criteria to look up")
    source.add_argument("--criteria-file", type=Path, help="File with one criterion per line")
    source.add_argument(
        "--category",
        choices=sorted(CATEGORIES),
        help="Generate criteria for this category with the language model",
    )
    source.add_argument(
        "--retry-daemon",
        action="store_true",
        help="Periodically re-check stored suggestions reported with a zero audience",
    )

    parser.add_argument("--country", default="US", help="Country code or name (default: US)")
    parser.add_argument("--threshold", type=float, default=None, help="Minimum similarity score (0-1)")
    parser.add_argument("--output", type=Path, default=None, help="Write results as JSON to this file")
    parser.add_argument("--project-id", type=int, default=None, help="Save results on this project")
    parser.add_argument("--owner", default=None, help="Owner of --project-id")
    return parser


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and settle the effective log level.

    Log level priority: CLI > LOG_LEVEL environment variable > config file.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level or "INFO"

    return app_config, env_config


def read_criteria_file(path: Path) -> List[str]:
    """One criterion per line; blank lines and ``#`` comments are skipped."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(
            f"Cannot read criteria file {path}: {e}",
            suggestions=["Check the path passed to --criteria-file"],
        )
    return [
        line.strip()
        for line in text.splitlines()
        if line.strip() and not line.strip().startswith("#")
    ]


def resolve_criteria(
    args: argparse.Namespace,
    app_config: AppConfig,
    env_config: EnvironmentConfig,
    country_code: str,
) -> Tuple[List[str], List[str]]:
    """Criteria to run and the categories they came from."""
    if args.criteria:
        return list(args.criteria), []
    if args.criteria_file:
        return read_criteria_file(args.criteria_file), []

    generator = CriteriaGenerator.from_config(env_config.openai_api_key, app_config.criteria)
    criteria = generator.generate(
        args.category,
        COUNTRIES.get(country_code, country_code),
        app_config.criteria.max_results,
    )
    return criteria, [args.category]


def write_results(
    items: Sequence[BatchItem], country_code: str, threshold: float, output: Optional[Path]
) -> None:
    document = {
        "country_code": country_code,
        "threshold": threshold,
        "results": [item.to_dict() for item in items],
    }
    text = json.dumps(document, ensure_ascii=False, indent=2)
    if output is None:
        print(text)
    else:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text + "\n", encoding="utf-8")


def run_one_shot(args: argparse.Namespace, app_config: AppConfig, env_config: EnvironmentConfig) -> int:
    """Run one batch, print or save the results and return the exit code."""
    country_code = get_country_code(args.country)
    threshold = args.threshold if args.threshold is not None else app_config.matching.similarity_threshold

    criteria, categories = resolve_criteria(args, app_config, env_config, country_code)

    adapter = MetaInterestAdapter.from_config(env_config.meta_access_token, app_config.meta, app_config.advanced)
    processor = BatchProcessor(InterestMatcher.from_config(app_config.matching))

    broadcaster = ProgressBroadcaster()
    broadcaster.subscribe(JsonLinesProgressWriter(sys.stderr))
    broadcaster.subscribe(logging_listener)

    cancel_event = threading.Event()

    def cancel_handler(signum, frame):
        logger.info(
            f"Received signal {signum}, cancelling batch",
            extra={"event": "service.signal_received", "signal": signum},
        )
        cancel_event.set()

    previous = {sig: signal.signal(sig, cancel_handler) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        items = processor.run_batch(
            criteria, country_code, threshold, adapter.fetch_candidates, broadcaster, cancel_event
        )
    except BatchCancelledError as e:
        print("\nShutdown requested by user", file=sys.stderr)
        logger.info(
            f"Batch cancelled: {e}",
            extra={"event": "service.batch.cancelled", "processed": e.processed},
        )
        return EXIT_OK
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)
        adapter.close()

    write_results(items, country_code, threshold, args.output)

    if args.project_id is not None:
        init_database(env_config.database_url)
        try:
            with get_session() as session:
                ProjectRepository(session).save_results(
                    args.project_id, args.owner, items, country=country_code, categories=categories
                )
        finally:
            close_database()

    failed = sum(1 for item in items if item.error is not None)
    logger.info(
        f"Batch finished: {len(items)} criteria, {failed} failed",
        extra={
            "event": "service.batch.completed",
            "total": len(items),
            "failed": failed,
            "total_matches": sum(item.count for item in items),
        },
    )
    return EXIT_ITEM_ERRORS if failed else EXIT_OK


def _store_refreshed_audience(request: RetryRequest, candidate: Candidate) -> None:
    if request.project_id is None:
        return
    with get_session() as session:
        ProjectRepository(session).update_match_audience(
            request.project_id, request.query, candidate.id, candidate.audience_size
        )


def seed_retry_queue(retry_queue: ZeroAudienceRetryQueue) -> int:
    """Submit every stored zero-audience match; returns how many were submitted."""
    count = 0
    with get_session() as session:
        for match in ProjectRepository(session).iter_zero_audience_matches():
            retry_queue.submit(RetryRequest(
                query=match.criterion,
                country_code=get_country_code(match.country),
                candidate_id=match.candidate_id,
                project_id=match.project_id,
            ))
            count += 1
    return count


def run_retry_daemon(app_config: AppConfig, env_config: EnvironmentConfig) -> int:
    """Re-check zero-audience suggestions on the configured interval until stopped."""
    if not app_config.retry.enabled:
        logger.warning(
            "Zero-audience retry is disabled in configuration",
            extra={"event": "service.retry.disabled"},
        )
        return EXIT_OK

    init_database(env_config.database_url)
    adapter = MetaInterestAdapter.from_config(env_config.meta_access_token, app_config.meta, app_config.advanced)
    retry_queue = ZeroAudienceRetryQueue(
        adapter.fetch_candidates,
        on_resolved=_store_refreshed_audience,
        max_attempts=app_config.retry.max_attempts,
        max_size=app_config.retry.max_queue_size,
    )

    seeded = seed_retry_queue(retry_queue)
    logger.info(
        f"Seeded retry queue with {seeded} stored suggestions",
        extra={"event": "service.retry.seeded", "count": seeded},
    )

    shutdown_event = threading.Event()
    scheduler_service = SchedulerService(
        job_callable=retry_queue.process_pending,
        interval_seconds=app_config.retry.interval_seconds,
        job_id="zero-audience-retry",
        job_name="Zero-audience retry",
        shutdown_event=shutdown_event,
    )

    def signal_handler(signum, frame):
        logger.info(
            f"Received signal {signum}, shutting down",
            extra={"event": "service.signal_received", "signal": signum},
        )
        scheduler_service.shutdown(wait=False)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    scheduler_service.start()
    logger.info("Retry scheduler started. Press Ctrl+C to stop", extra={"event": "service.daemon_mode.started"})

    try:
        shutdown_event.wait()
    except KeyboardInterrupt:
        scheduler_service.shutdown(wait=False)
    finally:
        adapter.close()
        close_database()
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        0 on success, 1 on configuration or fatal errors, 2 when the batch
        finished but some criteria could not be looked up
    """
    start_time = time.time()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.check_config:
        if args.config is None:
            parser.error("--check-config requires --config")
        return EXIT_OK if validate_config_file(args.config) else EXIT_FATAL

    if not (args.criteria or args.criteria_file or args.category or args.retry_daemon):
        parser.error("one of --criteria, --criteria-file, --category or --retry-daemon is required")
    if (args.project_id is None) != (args.owner is None):
        parser.error("--project-id and --owner must be given together")

    try:
        app_config, env_config = load_runtime_config(args.config, args.log_level)
        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=os.environ.get("ENVIRONMENT", "local"),
        )

        logger.info(
            "Meta targeting assistant starting",
            extra={
                "event": "service.starting",
                "config_path": str(args.config) if args.config else None,
                "log_level": env_config.log_level,
                "mode": "retry-daemon" if args.retry_daemon else "batch",
            },
        )

        if args.retry_daemon:
            exit_code = run_retry_daemon(app_config, env_config)
        else:
            exit_code = run_one_shot(args, app_config, env_config)

        logger.info(
            "Meta targeting assistant stopped",
            extra={"event": "service.stopping", "uptime_seconds": round(time.time() - start_time, 2)},
        )
        return exit_code

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        logger.error(
            f"Configuration error: {e}",
            extra={"event": "config.error", "error_type": "ConfigurationError"},
        )
        return EXIT_FATAL
    except (GlobalBatchFailure, CriteriaGenerationError, PersistenceError) as e:
        print(f"Error: {e}", file=sys.stderr)
        logger.error(
            f"Batch aborted: {e}",
            extra={"event": "service.batch.aborted", "error_type": type(e).__name__},
        )
        return EXIT_FATAL
    except KeyboardInterrupt:
        print("\nShutdown requested by user", file=sys.stderr)
        return EXIT_OK
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        logger.critical(
            "Fatal error",
            extra={"event": "service.failed", "error_type": type(e).__name__, "error": str(e)},
            exc_info=True,
        )
        return EXIT_FATAL


if __name__ == "__main__":
    sys.exit(main())
