#!/usr/bin/env python3
"""
Command line SQL syntax checker.

Usage:
    sqlmimic "SELECT * FROM Users"                  # Default dialect
    sqlmimic --dialect sqlite "TRUNCATE TABLE Users"
    sqlmimic --dialect mysql -f query.sql --json
    echo "SELECT 1" | sqlmimic --dialect postgres
    sqlmimic --list-dialects

Exit codes:
    0 - statement is valid
    1 - statement is invalid
    2 - usage or configuration error

Environment variables: see config.load_config()
"""
import sys
import json
import logging
import argparse
from typing import List, Optional

from dotenv import load_dotenv
load_dotenv()

from config import ConfigurationError, get_default_dialect, load_config, settings_for
from validation import UnsupportedDialectError, create_validator, supported_dialects

logger = logging.getLogger(__name__)


def _read_sql(args: argparse.Namespace) -> str:
    if args.file:
        with open(args.file, "r", encoding="utf-8") as f:
            return f.read()
    if args.sql is not None:
        return args.sql
    return sys.stdin.read()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sqlmimic",
        description="Check SQL syntax against a database dialect"
    )
    parser.add_argument(
        "sql",
        nargs="?",
        help="SQL statement (read from stdin when omitted)"
    )
    parser.add_argument(
        "-d", "--dialect",
        help="Target dialect: sqlserver, postgresql, mysql, sqlite (default: SQLMIMIC_DEFAULT_DIALECT)"
    )
    parser.add_argument(
        "-f", "--file",
        help="Read SQL from a file"
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Treat warnings as errors"
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the report as JSON"
    )
    parser.add_argument(
        "--list-dialects",
        action="store_true",
        help="List supported dialects and exit"
    )
    return parser


def check(sql: str, dialect: str, strict: Optional[bool] = None) -> dict:
    """
    Validate, classify and extract tables for one statement.

    Returns:
        Report dict with dialect, validity, kind, tables, errors and warnings
    """
    validator = create_validator(dialect, settings_for(dialect, strict=strict))
    result = validator.validate_syntax(sql)
    return {
        "dialect": validator.dialect.value,
        **result.to_dict(),
        "statement_type": validator.get_statement_type(sql).name,
        "tables": validator.extract_table_names(sql),
    }


def _print_report(report: dict) -> None:
    status = "VALID" if report["is_valid"] else "INVALID"
    print(f"[{report['dialect']}] {status}")
    print(f"  Statement type: {report['statement_type']}")
    if report["tables"]:
        print(f"  Tables: {', '.join(report['tables'])}")
    for error in report["errors"]:
        print(f"  ✗ {error}")
    for warning in report["warnings"]:
        print(f"  ! {warning}")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config()
    except ConfigurationError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    if args.list_dialects:
        for dialect in supported_dialects():
            print(dialect.value)
        return 0

    dialect = args.dialect or get_default_dialect()
    logger.debug(f"Checking statement against {dialect}")
    try:
        sql = _read_sql(args)
        report = check(sql, dialect, strict=args.strict)
    except (UnsupportedDialectError, ConfigurationError, OSError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    if args.json:
        print(json.dumps(report, indent=2))
    else:
        _print_report(report)

    return 0 if report["is_valid"] else 1


if __name__ == "__main__":
    sys.exit(main())
