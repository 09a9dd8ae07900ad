"""
Command-line entrypoint.

    autotestx repair ./my-project --max-iterations 5
    autotestx generate ./my-project --provider google
    autotestx serve

The action trail is printed to stdout, errors to stderr. Exit code is 0 when
the tests pass, 1 when the session ran but did not converge, 2 when the
session could not start.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from .config import RepairConfig
from .logging_config import configure_logging
from .services import RepairService, ServiceResult

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_FAILED = 1
EXIT_SETUP_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="autotestx",
        description="AutoTestX - drive a project's test suite to green with an AI oracle",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s repair ./my-project
  %(prog)s repair ./my-project --test-command "npx jest" --max-iterations 5
  %(prog)s generate ./my-project --provider google
  %(prog)s serve
        """
    )
    parser.add_argument(
        "--log-level", default=None,
        help="Logging level (default: AUTOTESTX_LOG_LEVEL or INFO)"
    )
    parser.add_argument(
        "--log-file", default=None,
        help="Also write logs to this file"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    session_options = argparse.ArgumentParser(add_help=False)
    session_options.add_argument("project_dir", help="Project directory")
    session_options.add_argument(
        "--max-iterations", type=int, default=None,
        help="Maximum number of test runs (default: from config)"
    )
    session_options.add_argument(
        "--provider", default=None,
        help="Oracle provider: openai or google (default: from config)"
    )
    session_options.add_argument(
        "--model", default=None,
        help="Model name (default: provider default)"
    )

    repair = subparsers.add_parser(
        "repair", parents=[session_options],
        help="Repair the project's existing test suite"
    )
    repair.add_argument(
        "--test-command", default=None,
        help="Test command to use instead of auto-detection"
    )

    subparsers.add_parser(
        "generate", parents=[session_options],
        help="Generate tests for the project, then repair until they pass"
    )

    subparsers.add_parser("serve", help="Run the MCP server over stdio")

    return parser


async def run_session(args: argparse.Namespace) -> int:
    try:
        config = RepairConfig.from_env(provider=args.provider, model=args.model)
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return EXIT_SETUP_ERROR

    service = RepairService(config)
    try:
        if args.command == "repair":
            result = await service.repair(
                args.project_dir,
                max_iterations=args.max_iterations,
                test_command=args.test_command
            )
        else:
            result = await service.generate_and_repair(
                args.project_dir,
                max_iterations=args.max_iterations
            )
    finally:
        await service.aclose()

    return report(result)


def report(result: ServiceResult) -> int:
    """Print the session trail and return the process exit code."""

    if not result.success:
        print(f"Error [{result.error.code.value}]: {result.error.message}", file=sys.stderr)
        return EXIT_SETUP_ERROR

    repair_result = result.data
    for action in repair_result.actions:
        print(action)
    for error in repair_result.errors:
        print(error, file=sys.stderr)

    return EXIT_SUCCESS if repair_result.success else EXIT_FAILED


def main(argv: list[str] | None = None) -> int:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(level=args.log_level, log_file=args.log_file)

    if args.command == "serve":
        from .server import run_server
        asyncio.run(run_server())
        return EXIT_SUCCESS

    if args.max_iterations is not None and args.max_iterations < 1:
        parser.error("--max-iterations must be at least 1")

    try:
        return asyncio.run(run_session(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
