"""Entry point for the follow-mode CLI dashboard."""
from __future__ import annotations

import argparse
import logging
import shlex
import sys
from pathlib import Path
from typing import Iterable, List

from rich.console import Console
from rich.live import Live

from .config import TailboardConfig, load_config
from .errors import ConfigError, SourceSetupError
from .logging_utils import configure_logging
from .source import Source
from .state import AppState
from .streams import (
    CommandStream,
    command_stream,
    discover_files,
    file_stream,
    list_adb_devices,
    logcat_command,
)
from .ui import TailboardUI, source_summary

logger = logging.getLogger(__name__)


def main(argv: Iterable[str] | None = None) -> int:
    """Attach the configured sources and follow them until Ctrl+C."""

    args = parse_args(argv)
    try:
        config = load_config(Path(args.config) if args.config else None, config_overrides(args))
    except ConfigError as exc:
        print(f"tailboard: {exc}", file=sys.stderr)
        return 1
    log_path = configure_logging(config.log_file, config.log_level)

    console = Console()
    state = AppState(scroll_margin=config.scroll_margin)
    try:
        attach_sources(state, config)
        if args.source:
            state.select_source(args.source)
    except (SourceSetupError, IndexError) as exc:
        logger.error("Setup failed: %s", exc)
        stop_sources(state)
        console.print(f"[red]tailboard: {exc}[/red] (log: {log_path})")
        return 1
    if config.filters:
        state.select_view(1)

    ui = TailboardUI()
    width, height = console.size
    try:
        with Live(ui.render(state, width, height), console=console, screen=True, auto_refresh=False) as live:
            while True:
                state.signal.wait(timeout=config.refresh_interval)
                refresh_filters(state)
                width, height = console.size
                live.update(ui.render(state, width, height), refresh=True)
    except KeyboardInterrupt:
        pass
    finally:
        stop_sources(state)
    for source in state.sources:
        console.print(source_summary(source))
    return 0


def attach_sources(state: AppState, config: TailboardConfig) -> List[Source]:
    """Create a source for every configured stream and start ingesting.

    Commands already launched are terminated again when a later source
    cannot be attached.

    Raises:
        SourceSetupError: no source is configured or one cannot be attached.
    """

    streams = []
    try:
        for index, argv in enumerate(config.commands):
            streams.append((f"cmd{index}", Path(argv[0]).name, command_stream(argv)))
        if config.files:
            paths = discover_files(config.files)
            if not paths:
                raise SourceSetupError(f"no files match {', '.join(config.files)}")
            for path in paths:
                streams.append((str(path), path.name, file_stream(path, from_start=config.from_start)))
        if config.adb:
            devices = list_adb_devices()
            if not devices:
                raise SourceSetupError("no adb devices attached")
            for device in devices:
                streams.append((device.identity, device.name, command_stream(logcat_command(device.identity))))
        if not streams:
            raise SourceSetupError("no sources configured (use --command, --file or --adb)")
    except SourceSetupError:
        for _, _, stream in streams:
            if isinstance(stream, CommandStream):
                stream.terminate()
        raise

    sources: List[Source] = []
    for identity, display_name, stream in streams:
        source = state.new_source(
            identity,
            display_name=display_name,
            capacity=config.capacity,
            quiet_gap=config.quiet_gap,
            filters=config.filters,
        )
        source.start(stream)
        sources.append(source)
    return sources


def stop_sources(state: AppState) -> None:
    """Terminate the processes behind every source."""

    for source in state.sources:
        source.close()


def refresh_filters(state: AppState) -> None:
    """Recompute every view of every source from its committed expression."""

    for source in state.sources:
        for position, view in enumerate(list(source.views)):
            source.commit_filter(position, view.expression)


def config_overrides(args: argparse.Namespace) -> dict:
    overrides = {
        "commands": [shlex.split(c) for c in args.command] if args.command else None,
        "files": args.file or None,
        "adb": True if args.adb else None,
        "filters": args.filter or None,
        "capacity": args.capacity,
        "quiet_gap": args.quiet_gap,
        "refresh_interval": args.refresh,
        "from_start": True if args.from_start else None,
        "log_file": args.log_file,
        "log_level": args.log_level,
    }
    return {k: v for k, v in overrides.items() if v is not None}


def parse_args(argv: Iterable[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Follow live log sources in the terminal")
    parser.add_argument("--config", help="Optional path to a YAML config file")
    parser.add_argument(
        "--command",
        action="append",
        help="Command whose stdout is a source (can be provided multiple times)",
    )
    parser.add_argument(
        "--file",
        action="append",
        help="Glob pattern of files to follow (can be provided multiple times)",
    )
    parser.add_argument("--adb", action="store_true", help="Attach to logcat of every adb device")
    parser.add_argument(
        "--filter",
        action="append",
        help="Regular expression view to open on every source",
    )
    parser.add_argument("--source", type=int, default=0, help="Index of the source to show")
    parser.add_argument("--capacity", type=int, help="Lines kept per source")
    parser.add_argument("--quiet-gap", type=float, help="Seconds of silence before live updates")
    parser.add_argument("--refresh", type=float, help="UI refresh interval in seconds")
    parser.add_argument("--from-start", action="store_true", help="Read followed files from the beginning")
    parser.add_argument("--log-file", help="Where to write tailboard's own log")
    parser.add_argument("--log-level", help="Log level (DEBUG, INFO, ...)")
    return parser.parse_args(argv)


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
