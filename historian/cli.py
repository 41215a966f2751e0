#!/usr/bin/env python3
"""Command-line entrypoint for the terminal historian."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import ConfigError, NoSourcesError, Settings, get_settings, load_settings
from .logging_config import configure_logging, logger
from .services import (
    HistorianMonitor,
    IncrementalSummarizer,
    OverviewGenerator,
    RotationManager,
    SourceRegistry,
    collect_status,
    prune_session_logs,
)
from .services.overview import human_size
from .utils.files import file_size


EXIT_OK = 0
EXIT_NO_SOURCES = 1
EXIT_CONFIG = 2


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="historian",
        description="Capture terminal and agent activity into a local archive and summarize it.",
    )
    parser.add_argument("--config", type=Path, default=None, help="Config file (default: $HISTORIAN_CONFIG or XDG path)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    monitor = commands.add_parser("monitor", help="Watch sources and append new activity to the archive")
    monitor.add_argument("-1", "--once", action="store_true", help="Run a single capture pass and exit")
    monitor.add_argument("-f", "--foreground", action="store_true", help="Run in foreground with debug output")

    summarize = commands.add_parser("summarize", help="Summarize new activity and regenerate the overview")
    summarize.add_argument("-o", "--output", type=Path, default=None, help="Overview output file")
    summarize.add_argument("--stdout", action="store_true", help="Print the overview instead of writing it")
    summarize.add_argument("--no-llm", action="store_true", help="Skip the incremental LLM summary")
    summarize.add_argument("-v", "--verbose", action="store_true", default=argparse.SUPPRESS, help="Enable debug logging")

    commands.add_parser("rotate", help="Rotate the raw archive now if it exceeds the size limit")
    commands.add_parser("status", help="Print archive and summarization status as JSON")
    commands.add_parser("sources", help="List the sources the monitor would poll")

    serve = commands.add_parser("serve", help="Serve the read-only status API")
    serve.add_argument("--host", default=None, help="Host to bind")
    serve.add_argument("--port", type=int, default=None, help="Port to bind")
    return parser.parse_args(argv)


def _overrides(args: argparse.Namespace) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if args.verbose or getattr(args, "foreground", False):
        overrides["log_level"] = "DEBUG"
    if getattr(args, "stdout", False):
        # Keep log lines out of the rendered document.
        overrides["log_level"] = "ERROR"
    if getattr(args, "output", None) is not None:
        overrides["summary_path"] = args.output
    if getattr(args, "host", None):
        overrides["server_host"] = args.host
    if getattr(args, "port", None):
        overrides["server_port"] = args.port
    return overrides


def ensure_directories(settings: Settings) -> None:
    directories = {
        settings.raw_history_path.parent,
        settings.summary_path.parent,
        settings.resolved_rolling_summary_path.parent,
        settings.state_dir,
    }
    if settings.session_logging_enabled:
        directories.add(settings.session_log_dir)
    for directory in directories:
        directory.mkdir(parents=True, exist_ok=True)


def run_monitor(args: argparse.Namespace, settings: Settings) -> int:
    monitor = HistorianMonitor.from_settings(settings)
    if args.once:
        monitor.resolve_sources()
        written = monitor.capture_once()
        logger.info("single capture pass complete", extra={"records": written})
        return EXIT_OK
    asyncio.run(monitor.run())
    return EXIT_OK


def run_summarize(args: argparse.Namespace, settings: Settings) -> int:
    if not args.no_llm:
        summarizer = IncrementalSummarizer.from_settings(settings)
        asyncio.run(summarizer.run_cycle())

    generator = OverviewGenerator.from_settings(settings)
    if args.stdout:
        sys.stdout.write(generator.render())
        return EXIT_OK
    generator.write()
    return EXIT_OK


def run_rotate(settings: Settings) -> int:
    path = settings.raw_history_path
    print(f"Current {path.name} size: {human_size(file_size(path))}")
    if not settings.rotation_enabled:
        print("Rotation disabled (MAX_RAW_HISTORY_BYTES=0).")
        return EXIT_OK
    print(f"Configured max size: {human_size(settings.max_raw_history_bytes)}")

    result = RotationManager(path, settings.max_raw_history_bytes).rotate_if_needed()
    prune_session_logs(settings.session_log_dir, settings.max_session_age_days)
    if result.rotated:
        print(f"Final size: {human_size(result.size_after)}")
    else:
        print("File is already within limits, no rotation needed.")
    return EXIT_OK


def run_sources(settings: Settings) -> int:
    sources = SourceRegistry.from_settings(settings).resolve()
    if not sources:
        raise NoSourcesError("No log sources found. Configure SHELL_ACTIVITY_SOURCE in your config.")
    for source in sources:
        print(f"{source.kind.value}\t{source.path}")
    return EXIT_OK


def run_serve(settings: Settings) -> int:
    import uvicorn

    from .app import app

    app.dependency_overrides[get_settings] = lambda: settings
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    uvicorn.run(
        app,
        host=settings.server_host,
        port=settings.server_port,
        log_level="info",
        access_log=False,
    )
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    try:
        settings = load_settings(args.config, **_overrides(args))
    except ConfigError as exc:
        print(f"historian: {exc}", file=sys.stderr)
        return EXIT_CONFIG

    configure_logging(settings.log_level, settings.log_file)
    try:
        ensure_directories(settings)
        if args.command == "monitor":
            return run_monitor(args, settings)
        if args.command == "summarize":
            return run_summarize(args, settings)
        if args.command == "rotate":
            return run_rotate(settings)
        if args.command == "status":
            print(collect_status(settings).model_dump_json(indent=2))
            return EXIT_OK
        if args.command == "sources":
            return run_sources(settings)
        return run_serve(settings)
    except NoSourcesError as exc:
        logger.error(str(exc))
        return EXIT_NO_SOURCES
    except ConfigError as exc:
        logger.error(str(exc))
        return EXIT_CONFIG


if __name__ == "__main__":  # pragma: no cover - CLI invocation guard
    sys.exit(main())
