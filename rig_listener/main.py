#!/usr/bin/env python3

"""
Main entry point for Rig-Listener
Parses command line arguments, runs the setup wizard when needed
and runs the bridge until interrupted.

Part of the Rig-Listener project.
"""

import sys
import argparse
import logging
import asyncio
import signal
from typing import List, Optional

from rig_listener import __version__, constants
from rig_listener.core.bridge import Bridge
from rig_listener.core.log_config import configure_logging
from rig_listener.core.settings import Settings
from rig_listener.protocols import PROTOCOLS, ConfigurationError
from rig_listener.wizard import run_wizard

logger = logging.getLogger('main')


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="rig-listener",
        description=f"{constants.APP_NAME} v{__version__} - connects a radio to the "
                    f"dashboard via USB serial, no flrig or rigctld needed"
    )

    # Settings file
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        help=f"Path to configuration file (default: {constants.CONFIG_FILE_NAME} next to the program)"
    )

    # Radio overrides
    parser.add_argument(
        "--port",
        "-p",
        type=str,
        help="Serial port (e.g. COM3, /dev/ttyUSB0)"
    )

    parser.add_argument(
        "--baud",
        "-b",
        type=int,
        help=f"Baud rate (default: {constants.DEFAULT_BAUDRATE})"
    )

    parser.add_argument(
        "--brand",
        choices=sorted(name for name in PROTOCOLS if name != "mock"),
        help="Radio brand"
    )

    parser.add_argument(
        "--http-port",
        type=int,
        help=f"HTTP server port (default: {constants.DEFAULT_HTTP_PORT})"
    )

    parser.add_argument(
        "--ptt",
        action="store_true",
        help="Allow the dashboard to key the transmitter"
    )

    # Modes
    parser.add_argument(
        "--mock",
        action="store_true",
        help="Simulation mode (no radio needed)"
    )

    parser.add_argument(
        "--wizard",
        action="store_true",
        help="Force re-run of the setup wizard"
    )

    # Logging
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Set logging level"
    )

    parser.add_argument(
        "--log-file",
        type=str,
        help="Log to specified file"
    )

    return parser.parse_args(argv)


def apply_overrides(settings: Settings, args: argparse.Namespace) -> None:
    """
    Apply command-line overrides on top of the loaded settings.

    Args:
        settings: Settings manager
        args: Parsed command line arguments
    """
    if args.port:
        settings.set('serial', 'port', args.port)
    if args.baud:
        settings.set('serial', 'baudrate', args.baud)
    if args.brand:
        settings.set('radio', 'brand', args.brand)
    if args.http_port:
        settings.set('server', 'port', args.http_port)
    if args.ptt:
        settings.set('radio', 'ptt_enabled', True)
    if args.mock:
        settings.set('radio', 'brand', 'mock')

    if args.log_level:
        settings.set('logging', 'level', args.log_level)
    if args.log_file:
        settings.set('logging', 'log_to_file', True)
        settings.set('logging', 'log_file_path', args.log_file)


async def run_cli(bridge: Bridge) -> int:
    """
    Run the bridge until SIGINT or SIGTERM.

    Args:
        bridge: Bridge instance

    Returns:
        int: Process exit status
    """
    loop = asyncio.get_running_loop()
    stop_requested = asyncio.Event()

    def signal_handler(*_):
        logger.info("Shutdown signal received")
        loop.call_soon_threadsafe(stop_requested.set)

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, signal_handler)
        except NotImplementedError:
            # Windows event loops have no add_signal_handler
            signal.signal(sig, signal_handler)

    try:
        await bridge.start()
    except OSError as e:
        logger.error(f"Cannot start HTTP server on port {bridge.config.server.port}: {e}")
        logger.error("Is another rig daemon running?")
        return 1

    port = bridge.config.server.port
    logger.info("In the dashboard settings, Rig Control:")
    logger.info(f"  Host: http://localhost  Port: {port}")
    logger.info("Ctrl+C to stop. 73!")

    try:
        await stop_requested.wait()
    finally:
        await bridge.stop()

    logger.info("Serial port closed. 73!")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)

    # Console logging until the settings say otherwise
    configure_logging(level=getattr(logging, args.log_level or "INFO"))

    settings = Settings(args.config)

    # first_run stays set unless a config file was loaded successfully
    if not args.mock and (args.wizard or settings.settings.first_run):
        if settings.exists() and not args.wizard:
            logger.warning(f"Could not read {settings.config_file}, running setup wizard")
        try:
            if not run_wizard(settings):
                logger.error("No configuration saved")
                return 1
        except (EOFError, KeyboardInterrupt):
            logger.error("Setup wizard cancelled")
            return 1

    apply_overrides(settings, args)
    settings.apply_logging_settings()

    try:
        bridge = Bridge(settings)
    except ConfigurationError as e:
        logger.error(str(e))
        if not settings.get('serial', 'port'):
            logger.error("No serial port configured. Run with --wizard to set up.")
        return 1

    return asyncio.run(run_cli(bridge))


if __name__ == "__main__":
    sys.exit(main())
