"""Command line entrypoint: drive one Midea air conditioner from the shell."""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import dotenv
import uvloop

from midea_ac_lan.config import ConfigurationError, config_from_env, load_config_data, parse_config
from midea_ac_lan.const import (
    CONFIG_DEVICEID,
    CONFIG_IP,
    CONFIG_PORT,
    MIDEA_DEBUG,
    MIDEA_LOG_NAME,
    MIDEA_METRICS_PORT,
    MIDEA_VERSION,
)
from midea_ac_lan.correlation import correlation_context
from midea_ac_lan.handler.channels import ChannelValue
from midea_ac_lan.handler.handler import MideaACHandler
from midea_ac_lan.handler.status import StatusInfo, ThingStatus
from midea_ac_lan.logging_abstraction import get_logger
from midea_ac_lan.metrics import start_metrics_server

logger = get_logger(__name__)


def parse_cli(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        prog="midea-ac-lan",
        description="Control a Midea air conditioner over its LAN socket",
    )
    _ = parser.add_argument("--host", help="Device IP address or hostname")
    _ = parser.add_argument("--port", type=int, default=None, help="Device TCP port (default 6444)")
    _ = parser.add_argument("--device-id", dest="device_id", help="Device id (decimal)")
    _ = parser.add_argument("--config", type=Path, default=None, help="YAML device file")
    _ = parser.add_argument("--env", help="Path to the environment file", default=None, type=Path)
    _ = parser.add_argument(
        "--set",
        dest="settings",
        action="append",
        default=[],
        metavar="CHANNEL=VALUE",
        help="Send a setting, e.g. --set target-temperature=22.5 (repeatable)",
    )
    _ = parser.add_argument(
        "--watch",
        action="store_true",
        help="Keep the connection open and print channel updates until interrupted",
    )
    _ = parser.add_argument("--metrics-port", dest="metrics_port", type=int, default=None)
    _ = parser.add_argument(
        "-D",
        "--debug",
        action="store_true",
        help="Enable debug mode",
    )
    _ = parser.add_argument("--version", action="version", version=f"%(prog)s {MIDEA_VERSION}")
    return parser.parse_args(argv)


def load_env_file(env_file: Path) -> None:
    env_path = env_file.expanduser().resolve()
    if not env_path.exists():
        logger.error("Environment file not found", extra={"path": str(env_path)})
        return
    if dotenv.load_dotenv(env_path, override=True):
        logger.info("Environment variables loaded", extra={"source": str(env_path)})
    else:
        logger.warning("No environment variables loaded from file", extra={"path": str(env_path)})


def build_config(args: argparse.Namespace) -> dict[str, Any]:
    """Merge the YAML file, MIDEA_* variables and CLI flags (later wins).

    Nothing is validated here, so a partial file can be completed by the
    environment or the command line.

    Raises:
        ConfigurationError: The YAML file cannot be read
    """
    data: dict[str, Any] = {}
    if args.config is not None:
        data.update(load_config_data(args.config))
    data.update(config_from_env())
    if args.host:
        data[CONFIG_IP] = args.host
    if args.port is not None:
        data[CONFIG_PORT] = args.port
    if args.device_id:
        data[CONFIG_DEVICEID] = args.device_id
    return data


def parse_settings(settings: Sequence[str]) -> list[tuple[str, str]]:
    """Split ``CHANNEL=VALUE`` pairs; raises ValueError on a malformed pair."""
    pairs: list[tuple[str, str]] = []
    for setting in settings:
        channel, sep, value = setting.partition("=")
        if not sep or not channel.strip():
            msg = f"expected CHANNEL=VALUE, got {setting!r}"
            raise ValueError(msg)
        pairs.append((channel.strip(), value.strip()))
    return pairs


def _print_channel(channel_id: str, value: ChannelValue) -> None:
    print(f"{channel_id}: {'' if value is None else value}")


def _log_status(info: StatusInfo) -> None:
    logger.info("Device status: %s", info)


async def run(args: argparse.Namespace) -> int:
    """Connect, apply settings, optionally watch. Returns the exit code."""
    try:
        settings = parse_settings(args.settings)
        config = parse_config(build_config(args))
    except (ValueError, ConfigurationError) as e:
        logger.error("%s", e)
        return 1

    metrics_port = args.metrics_port or MIDEA_METRICS_PORT
    if metrics_port:
        start_metrics_server(metrics_port)
        logger.info("Metrics server listening", extra={"port": metrics_port})

    handler = MideaACHandler(config, status_listener=_log_status)
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    exit_code = 0
    try:
        _ = await handler.initialize()
        if handler.status.status is not ThingStatus.ONLINE and not args.watch:
            logger.error("Device %s is not reachable", config.endpoint)
            return 1

        for channel_id, value in settings:
            result = await handler.handle_command(channel_id, value)
            if result is None:
                logger.warning("Nothing sent for %s=%s", channel_id, value)
                exit_code = 1
            elif not result.success:
                logger.error("Setting %s=%s failed: %s", channel_id, value, result.reason)
                exit_code = 1

        if args.watch:
            handler.add_channel_listener(_print_channel)
            for channel_id, value in handler.channel_states.items():
                _print_channel(channel_id, value)
            _ = await stop.wait()
        else:
            for channel_id, value in handler.channel_states.items():
                _print_channel(channel_id, value)
    finally:
        await handler.dispose()
        for sig in (signal.SIGINT, signal.SIGTERM):
            _ = loop.remove_signal_handler(sig)
    return exit_code


def main(argv: Sequence[str] | None = None) -> int:
    """Run the midea-ac-lan entry point."""
    args = parse_cli(argv)
    if args.env:
        load_env_file(args.env)
    if args.debug or MIDEA_DEBUG:
        get_logger(MIDEA_LOG_NAME).set_level(logging.DEBUG)
        logger.info("Debug logging enabled")

    with correlation_context():
        logger.debug("Starting midea-ac-lan", extra={"version": MIDEA_VERSION})
        try:
            return uvloop.run(run(args))
        except KeyboardInterrupt:
            logger.info("Keyboard interrupt received, shutting down...")
            return 130


if __name__ == "__main__":
    sys.exit(main())
