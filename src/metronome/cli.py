"""
Command line driver for the metronome.

Emits a GameTick on the event bus at a fixed rate (a game tick is 0.6s)
and plays cues through the local host.
"""

import argparse
import sys
import time
from pathlib import Path

from core import GameTick, create_app_context
from core.log import get_logger
from metronome.plugin import MetronomePlugin

logger = get_logger(__name__)

DEFAULT_TICK_LENGTH = 0.6


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="metronome",
        description="Play sounds in a customisable pattern on a fixed tick",
    )
    parser.add_argument(
        "--settings",
        default="settings.toml",
        help="Path to settings.toml (default: %(default)s)",
    )
    parser.add_argument(
        "--tick-length",
        type=float,
        default=DEFAULT_TICK_LENGTH,
        help="Seconds per tick (default: %(default)s)",
    )
    parser.add_argument(
        "--ticks",
        type=int,
        default=None,
        help="Stop after this many ticks (default: run until Ctrl+C)",
    )
    parser.add_argument(
        "--watch",
        action="store_true",
        help="Re-read the settings file when it changes",
    )
    return parser


def _mtime(path: Path) -> int | None:
    try:
        return path.stat().st_mtime_ns
    except FileNotFoundError:
        return None


def main(argv: list[str] | None = None) -> int:
    """Run the tick loop. Returns a process exit code."""
    args = build_parser().parse_args(argv)
    if args.tick_length < 0:
        logger.error("--tick-length must not be negative")
        return 2

    settings_path = Path(args.settings)
    try:
        ctx = create_app_context(settings_path=settings_path)
    except ValueError as e:
        # SettingsError and tomllib.TOMLDecodeError are both ValueErrors
        logger.error(f"Invalid settings in {settings_path}: {e}")
        return 1

    plugin = MetronomePlugin.from_context(ctx)
    plugin.start_up()
    last_mtime = _mtime(settings_path)

    try:
        ticks = 0
        next_tick = time.monotonic()
        while args.ticks is None or ticks < args.ticks:
            ctx.event_bus.emit(GameTick())
            ticks += 1

            if args.watch:
                mtime = _mtime(settings_path)
                if mtime is not None and mtime != last_mtime:
                    last_mtime = mtime
                    try:
                        ctx.config.reload(settings_path)
                    except (OSError, ValueError) as e:
                        # Keep running on the previous settings until the file is fixed
                        logger.error(f"Ignoring invalid settings in {settings_path}: {e}")

            next_tick += args.tick_length
            time.sleep(max(0.0, next_tick - time.monotonic()))
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        plugin.shut_down()

    return 0


if __name__ == "__main__":
    sys.exit(main())
