"""
Execute Now - CLI.

============================================================
RESPONSIBILITY
============================================================
Command-line front end for eligibility checks.

- Loads a catalog file (YAML or JSON)
- Selects objects by id, name or list label
- Prints the resulting message, or the control state
- Optionally logs requests to a database

============================================================
USAGE
============================================================
execute-now --catalog objects.yaml --select I5-agent-txt I4-trap-log
execute-now --catalog objects.yaml --select I3-web-dep --check-only
python -m execute_now --catalog objects.json --select 1001 --json

============================================================
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from . import __version__
from .catalog import ObjectCatalog
from .config import (
    ExecuteNowConfig,
    LOG_LEVELS,
    load_config_from_env,
    load_config_from_yaml,
)
from .database import (
    create_engine_from_config,
    create_session_factory,
    init_database,
    session_scope,
)
from .evaluator import EligibilityEvaluator
from .notifications import NotificationFormatter
from .repository import ExecuteNowRepository
from .selection import SelectionState
from .service import ExecuteNowService, LoggingDispatcher, RequestDispatcher
from .types import ExecuteNowError


EXIT_OK = 0
EXIT_REJECTED = 1
EXIT_ERROR = 2


# ============================================================
# CLI ARGUMENT PARSER
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="execute-now",
        description="Check which monitored objects an \"Execute now\" request would poll",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Exit codes:
  0  request sent (or control enabled with --check-only)
  1  request rejected (or control disabled)
  2  invalid input, catalog, configuration or database error

Examples:
  %(prog)s --catalog objects.yaml --select I5-agent-txt I4-trap-log
  %(prog)s --catalog objects.yaml --select "I1-lvl1-agent-num: I1-lvl2-dep-log"
  %(prog)s --catalog objects.yaml --select DR2-trap --check-only
        """
    )

    parser.add_argument(
        "--catalog", "-c",
        type=str,
        required=True,
        metavar="PATH",
        help="Catalog file with item and discovery rule records (YAML or JSON)",
    )

    parser.add_argument(
        "--select", "-s",
        type=str,
        nargs="+",
        required=True,
        metavar="REF",
        help="Objects to select: id, name or list label",
    )

    parser.add_argument(
        "--check-only",
        action="store_true",
        help="Only report whether the Execute now control is enabled",
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the outcome as JSON",
    )

    # --------------------------------------------------------
    # Configuration
    # --------------------------------------------------------
    config_group = parser.add_argument_group("Configuration")

    config_group.add_argument(
        "--config",
        type=str,
        metavar="PATH",
        help="YAML configuration file (default: environment / .env)",
    )

    config_group.add_argument(
        "--database-url",
        type=str,
        metavar="URL",
        help="Log requests to this database",
    )

    config_group.add_argument(
        "--log-level",
        type=str,
        choices=list(LOG_LEVELS),
        default=None,
        help="Logging level (default: from configuration)",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser


# ============================================================
# CONFIGURATION
# ============================================================

def build_config(args: argparse.Namespace) -> ExecuteNowConfig:
    """Build configuration from file or environment, then CLI overrides."""
    if args.config:
        config = load_config_from_yaml(args.config)
    else:
        config = load_config_from_env()

    if args.database_url:
        config.persistence.enabled = True
        config.persistence.database_url = args.database_url
    if args.log_level:
        config.log_level = args.log_level

    config.validate()
    return config


def setup_logging(level: str = "INFO") -> None:
    """Configure logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


# ============================================================
# COMMANDS
# ============================================================

def run(
    args: argparse.Namespace,
    config: ExecuteNowConfig,
    dispatcher: Optional[RequestDispatcher] = None,
) -> int:
    """
    Evaluate the selection and print the result.

    Returns:
        Exit code
    """
    catalog = ObjectCatalog.from_file(
        args.catalog,
        max_dependency_depth=config.eligibility.max_dependency_depth,
    )
    evaluator = EligibilityEvaluator(catalog, config.eligibility)
    selection = SelectionState(catalog.resolve_all(args.select))

    if args.check_only:
        enabled = evaluator.is_request_enabled(selection.objects)
        print(f"{selection.label}: Execute now {'enabled' if enabled else 'disabled'}")
        return EXIT_OK if enabled else EXIT_REJECTED

    dispatcher = dispatcher or LoggingDispatcher()

    if config.persistence.enabled:
        engine = create_engine_from_config(config.persistence)
        try:
            init_database(engine)
            with session_scope(create_session_factory(engine)) as session:
                service = ExecuteNowService(
                    evaluator,
                    dispatcher=dispatcher,
                    repository=ExecuteNowRepository(session),
                )
                outcome = service.execute(selection)
        finally:
            engine.dispose()
    else:
        service = ExecuteNowService(evaluator, dispatcher=dispatcher)
        outcome = service.execute(selection)

    if args.json:
        print(json.dumps(outcome.to_dict(), indent=2))
    else:
        print(NotificationFormatter().format(outcome).format_text())

    return EXIT_OK if outcome.is_success else EXIT_REJECTED


# ============================================================
# MAIN ENTRY POINT
# ============================================================

def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Command line arguments (default: sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        config = build_config(args)
        setup_logging(config.log_level)
        return run(args, config)
    except ExecuteNowError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR
    except SQLAlchemyError as e:
        print(f"Database error: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
