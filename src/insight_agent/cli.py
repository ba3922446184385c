#!/usr/bin/env python3
"""
CLI entrypoint for the Web3Insight DB sub-agent.
"""
import argparse
import asyncio
import sys
from typing import List, Optional

from insight_agent.common.errors import InsightAgentError
from insight_agent.common.logger import configure_logging
from insight_agent.common.settings import settings
from insight_agent.console import (
    print_answer,
    print_error,
    print_json,
    print_rows,
    print_sql,
    print_success,
)
from insight_agent.sql.limits import wrap_with_limit


def positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="insight-agent",
        description="Read-only SQL gate and DB sub-agent for the Web3Insight analytics database.",
    )
    parser.add_argument("--verbose", action="store_true", help="Show INFO logs")
    parser.add_argument("--debug", action="store_true", help="Show DEBUG logs")
    parser.add_argument("--json", action="store_true", help="Print machine-readable JSON")
    sub = parser.add_subparsers(dest="command", required=True)

    validate = sub.add_parser("validate", help="Check a SQL query against the read-only rules (no database access)")
    validate.add_argument("sql", type=str, help="The SQL text to validate")
    validate.add_argument("--max-rows", type=positive_int, default=settings.sql_max_rows, help="Row cap for the wrapped query")

    ask = sub.add_parser("ask", help="Answer a data question with the DB sub-agent")
    ask.add_argument("question", type=str, help="The data question")
    ask.add_argument("--context", type=str, default="", help="Optional conversation context")

    return parser.parse_args(argv)


def run_validate(args: argparse.Namespace) -> int:
    from insight_agent.agent.factory import build_validator

    result = build_validator(settings).validate(args.sql)

    if args.json:
        output = {"valid": result.valid}
        if result.valid:
            output["wrapped_query"] = wrap_with_limit(args.sql, args.max_rows)
        else:
            output["error"] = result.error
        print_json(output)
    elif result.valid:
        print_success("Query is read-only.")
        print_sql(wrap_with_limit(args.sql, args.max_rows))
    else:
        print_error(result.error)

    return 0 if result.valid else 1


async def run_ask(args: argparse.Namespace) -> int:
    from insight_agent.agent.factory import build_sub_agent
    from insight_agent.execution.database import ReadDatabase

    async with ReadDatabase.from_settings(settings) as database:
        sub_agent = build_sub_agent(settings, database.engine)
        result = await sub_agent.answer(question=args.question, context=args.context)

    if args.json:
        print_json(result.to_payload())
    elif result.error is not None:
        print_error(result.error)
    else:
        print_answer(result.answer)
        if result.data is not None:
            print_rows(result.data, result.columns or [], title=f"{result.row_count} row(s)")

    return 0 if result.error is None else 1


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)

    level = settings.log_level
    if args.debug:
        level = "DEBUG"
    elif args.verbose:
        level = "INFO"
    configure_logging(level=level, json_format=settings.log_json)

    try:
        if args.command == "validate":
            code = run_validate(args)
        else:
            code = asyncio.run(run_ask(args))
    except InsightAgentError as exc:
        print_error(f"Error: {exc}")
        code = 2

    sys.exit(code)


if __name__ == "__main__":
    main()
