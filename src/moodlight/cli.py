"""Command-line interface for the moodlight relay.

Provides the main entry point for running the relay server, or sending
a single command straight to the device for bench testing.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

from moodlight.commands import EVENT_NAMES

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="moodlight",
        description="Browser to serial relay for an LED mood lamp",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/moodlight.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("serve", help="Start the web relay server")

    send_parser = subparsers.add_parser(
        "send", help="Send one command to the device without the web server",
    )
    send_parser.add_argument(
        "event", choices=EVENT_NAMES,
        help="Event name whose command code is sent",
    )

    return parser.parse_args(argv)


async def _send(settings, event: str) -> int:
    """Open the serial port, write one command, report the outcome."""
    from moodlight.commands import command_for, not_open_label, write_error_label
    from moodlight.device.channel import SerialChannelError, SerialWriteError
    from moodlight.web.server import build_channel

    command = command_for(event)
    channel = build_channel(settings.serial)
    try:
        await channel.open()
    except SerialChannelError as e:
        logger.error("Serial error: %s", e)
        print(not_open_label(command))
        return 1

    try:
        await channel.write(command.code)
    except SerialWriteError as e:
        logger.error("Write error: %s", e)
        print(write_error_label(command))
        return 1
    finally:
        await channel.close()

    print(f"Sent {command.code!r} to {channel.port}: {command.label}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the moodlight CLI."""
    args = parse_args(argv)

    if args.command is None:
        parse_args(["--help"])
        return 0

    from moodlight.config.settings import load_settings
    from moodlight.utils.logging import setup_logging

    settings = load_settings(args.config)

    if args.verbose:
        settings.logging.level = "DEBUG"

    setup_logging(settings.logging)

    if args.command == "serve":
        logger.info("Starting relay server on port %d", settings.web.port)
        from moodlight.web.server import main as serve
        serve(settings)

    elif args.command == "send":
        return asyncio.run(_send(settings, args.event))

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
