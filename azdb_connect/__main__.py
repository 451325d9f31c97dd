"""CLI entry-point:  python -m azdb_connect {sql,cosmos} [OPTIONS]

Examples:
    python -m azdb_connect sql
    python -m azdb_connect cosmos --config appsettings.yaml --method TestAll -v
    python -m azdb_connect sql --method SqlAuthentication --crud --json
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from ._constants import DEFAULT_CONFIG_PATH, TEST_ALL
from .client import ConnectionTester, all_methods_exit_code, single_exit_code
from .config import load_settings
from .report import banner_lines, outcome_line, summary_lines

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="azdb_connect",
        description=(
            "Connect to Azure SQL Database or Azure Cosmos DB with one or all "
            "authentication methods, then create a table/container and a demo record."
        ),
    )
    parser.add_argument(
        "target",
        choices=["sql", "cosmos"],
        help="Database service to test",
    )
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to JSON or YAML settings file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--method",
        default=None,
        help=f"Connection method to use, or {TEST_ALL} (overrides ConnectionMethod)",
    )
    parser.add_argument(
        "--crud",
        action="store_true",
        help="Also run the create/read/update/delete walkthrough",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print outcomes as JSON after the summary",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug-level logging",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    args = _build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = load_settings(args.config, args.target)
    except Exception as exc:
        logger.error("Failed to load config: %s", exc)
        sys.exit(1)

    method = args.method or settings.connection_method
    tester = ConnectionTester.for_settings(settings, crud=args.crud)

    for line in banner_lines(tester.target.title, tester.target.describe()):
        print(line)
    if args.method:
        print(f"Method override: {method}")
    logger.debug("Tester: %r", tester)

    if method == TEST_ALL:
        outcomes = tester.run_all()
        for o in outcomes:
            print(outcome_line(o))
        for line in summary_lines(outcomes):
            print(line)
        code = all_methods_exit_code(outcomes)
    else:
        outcome = tester.run_method(method)
        outcomes = [outcome]
        print(outcome_line(outcome))
        code = single_exit_code(outcome)

    if args.json:
        print(json.dumps([o.as_dict() for o in outcomes], indent=2, default=str))

    sys.exit(code)


if __name__ == "__main__":
    main()
