"""CLI entrypoints for repobrief commands."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from .config import ConfigError, load_config
from .errors import InvalidReference
from .jobs.controller import JobController, build_controller
from .logging import configure_logging
from .models import JobReport, JobStatus


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


def _add_config_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to .repobrief.yml or its directory (defaults to the current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="repobrief",
        description="Summarize hosted repositories with retrieval-augmented generation.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser(
        "run",
        help="Summarize one repository and print the result.",
    )
    _add_verbose_option(run_parser, suppress_default=True)
    _add_config_option(run_parser)
    run_parser.add_argument("repo_url", help="Repository URL, e.g. https://github.com/owner/repo.")

    serve_parser = subparsers.add_parser(
        "serve",
        help="Start the HTTP job service.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    _add_config_option(serve_parser)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


async def run_once(controller: JobController, repo_url: str) -> JobReport:
    """Submit a job, wait for it to finish and return its final report."""
    job_id = await controller.submit(repo_url, caller="cli")
    try:
        await controller.wait(job_id)
    finally:
        await controller.shutdown()
    return await controller.status(job_id)


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for repobrief commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    if args.command == "run":
        controller = build_controller(config)
        try:
            report = asyncio.run(run_once(controller, args.repo_url))
        except InvalidReference as exc:
            parser.exit(1, f"{exc}\n")
        if report.status is not JobStatus.COMPLETED:
            parser.exit(
                1,
                f"repobrief run failed: {report.error}\nRun with --verbose for more details.\n",
            )
        print(report.content or "")
    elif args.command == "serve":
        from .service.app import run_service

        run_service(args.host, args.port, config_path=args.config)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


if __name__ == "__main__":
    main(sys.argv[1:])
