"""
Orchestrator - CLI.

============================================================
RESPONSIBILITY
============================================================
Command-line interface for the tutor scoring jobs.

- Provides argparse-based CLI
- Runs one job or the full cycle
- Loads configuration from CLI and environment
- Entry point for the scheduler (cron, systemd timer, ...)

============================================================
USAGE
============================================================
tutor-scoring --job all
tutor-scoring --job score-sessions --log-level DEBUG
tutor-scoring --job aggregate --database-url sqlite:///dev.db --create-tables
tutor-scoring --check-connection

============================================================
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

from database.engine import (
    build_session_factory,
    create_all_tables,
    create_database_engine,
    verify_database_connection,
    DatabaseConnectionError,
)

from .models import JobConfig, JobName
from .pipeline import ScoringCycle

logger = logging.getLogger(__name__)

ALL_JOBS = "all"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


# ============================================================
# CLI ARGUMENT PARSER
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="tutor-scoring",
        description="Tutor quality scoring and alerting jobs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Jobs (in cycle order):
  score-sessions - SQS / FSQS for completed sessions lacking them
  aggregate      - Rebuild trailing daily aggregates
  health         - Tutor Health Score (THS)
  churn          - Tutor Churn Risk Score (TCRS)
  alerts         - Open, update and auto-resolve alerts
  all            - Run every job above in order

Examples:
  %(prog)s --job all
  %(prog)s --job alerts --log-level DEBUG
        """
    )

    parser.add_argument(
        "--job", "-j",
        type=str,
        choices=[name.value for name in JobName.ordered()] + [ALL_JOBS],
        default=ALL_JOBS,
        help="Job to run (default: all)",
    )

    # --------------------------------------------------------
    # Database Options
    # --------------------------------------------------------
    database_group = parser.add_argument_group("Database Options")

    database_group.add_argument(
        "--database-url",
        type=str,
        metavar="URL",
        help="SQLAlchemy database URL (default: DATABASE_URL from environment)",
    )

    database_group.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables before running",
    )

    database_group.add_argument(
        "--check-connection",
        action="store_true",
        help="Verify the database is reachable, then exit without running jobs",
    )

    # --------------------------------------------------------
    # Logging Options
    # --------------------------------------------------------
    logging_group = parser.add_argument_group("Logging Options")

    logging_group.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Logging level (default: LOG_LEVEL from environment, else INFO)",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version="%(prog)s 1.0.0",
    )

    return parser


# ============================================================
# CLI CONFIGURATION BUILDER
# ============================================================

def build_config(args: argparse.Namespace) -> JobConfig:
    """
    Build job configuration from environment, then CLI overrides.

    Args:
        args: Parsed arguments

    Returns:
        JobConfig instance
    """
    config = JobConfig.from_env()
    if args.database_url:
        config.database_url = args.database_url
    if args.log_level:
        config.log_level = args.log_level
    return config


def configure_logging(level: str) -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


# ============================================================
# MAIN ENTRY POINT
# ============================================================

def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Command line arguments (default: sys.argv[1:])

    Returns:
        Exit code (0 when every unit succeeded)
    """
    load_dotenv()

    parser = create_parser()
    args = parser.parse_args(argv)

    config = build_config(args)
    configure_logging(config.log_level)

    errors = config.validate()
    if errors:
        for error in errors:
            print(f"Error: {error}", file=sys.stderr)
        return 1

    try:
        engine = create_database_engine(config.database_url)

        if args.check_connection:
            verify_database_connection(engine)
            print("Database connection OK")
            return 0

        if args.create_tables:
            create_all_tables(engine)

        cycle = ScoringCycle(build_session_factory(engine), config)

        if args.job == ALL_JOBS:
            report = cycle.run()
            print(json.dumps(report.to_dict(), indent=2))
            return 0 if report.success else 1

        batch = cycle.run_job(JobName(args.job))
        print(json.dumps(batch.to_dict(), indent=2))
        return 0 if batch.success else 1

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except DatabaseConnectionError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1


# ============================================================
# MODULE EXECUTION
# ============================================================

if __name__ == "__main__":
    sys.exit(main())
