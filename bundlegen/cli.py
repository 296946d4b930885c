"""CLI entrypoints for bundlegen commands."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from .config import CONFIG_FILENAME, ConfigError, load_config
from .errors import BundlegenError
from .logging import configure_logging, get_logger
from .orchestrator import BuildOrchestrator

EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bundlegen",
        description="Build, watch and document the static assets of a web project.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "-c",
        "--config",
        default=".",
        help=f"Path to {CONFIG_FILENAME} or the project directory containing it.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write timestamped log records to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser(
        "run",
        help="Run one or more tasks (and their prerequisites).",
    )
    _add_verbose_option(run_parser, suppress_default=True)
    run_parser.add_argument(
        "tasks",
        nargs="+",
        metavar="TASK",
        help="Task names; see `bundlegen tasks`.",
    )

    tasks_parser = subparsers.add_parser(
        "tasks",
        help="List the available tasks.",
    )
    _add_verbose_option(tasks_parser, suppress_default=True)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for bundlegen commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)
    logger = get_logger("cli")

    try:
        config = load_config(Path(args.config))
    except ConfigError as exc:
        parser.exit(EXIT_FAILURE, f"Invalid configuration: {exc}\n")

    orchestrator = BuildOrchestrator(config)

    if args.command == "tasks":
        for name, description, prerequisites in orchestrator.describe_tasks():
            line = f"{name:<26} {description}"
            if prerequisites:
                line += f" (after: {', '.join(prerequisites)})"
            print(line.rstrip())
        return

    unknown = [name for name in args.tasks if name not in orchestrator.graph]
    if unknown:
        parser.exit(EXIT_FAILURE, f"Unknown task(s): {', '.join(unknown)}\n")

    try:
        asyncio.run(orchestrator.run(*args.tasks))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        sys.exit(EXIT_INTERRUPTED)
    except BundlegenError as exc:
        logger.error("%s", exc, exc_info=bool(args.verbose))
        parser.exit(EXIT_FAILURE, "bundlegen run failed. Run with --verbose for more details.\n")


if __name__ == "__main__":
    main(sys.argv[1:])
