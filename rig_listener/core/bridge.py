#!/usr/bin/env python3

"""
Bridge for Rig-Listener
Main orchestrator that wires the codec, the radio state, the serial
transport and the HTTP server together for one run.

Part of the Rig-Listener project.
"""

import asyncio
import copy
import logging
import time
from typing import Any, Dict, Optional, Union

from rig_listener import constants
from rig_listener.core.radio_state import RadioState
from rig_listener.core.settings import ApplicationSettings, Settings
from rig_listener.io.http_server import BridgeServer
from rig_listener.io.serial_transport import SerialTransport, SimulationTransport
from rig_listener.protocols import ConfigurationError, create_protocol

# Configure logging
logger = logging.getLogger('bridge')


class Bridge:
    """
    Main orchestrator for Rig-Listener.

    Coordinates the flow of data between different components:
    - RadioProtocol: Encodes commands and decodes radio replies
    - SerialTransport: Polls the radio and feeds replies to the codec
    - RadioState: Holds the last known frequency, mode and PTT
    - BridgeServer: Serves the state over HTTP and pushes changes via SSE

    The configuration is copied when the bridge is built; editing the
    Settings object afterwards does not affect a running bridge.
    """
    def __init__(self, settings: Settings):
        """
        Initialize the bridge.

        Args:
            settings: Loaded settings manager

        Raises:
            ConfigurationError: If the settings do not validate
        """
        errors = settings.validate()
        if errors:
            problems = [f"{section}: {message}"
                        for section, messages in errors.items()
                        for message in messages]
            raise ConfigurationError("Invalid configuration:\n  " + "\n  ".join(problems))

        self.config: ApplicationSettings = copy.deepcopy(settings.settings)
        radio = self.config.radio
        self.brand = radio.brand.strip().lower()

        # Codec and central state
        self.protocol = create_protocol(self.brand, civ_address=radio.civ_address)
        self.state = RadioState()

        # IO components (not started yet)
        self.transport = self._create_transport()
        self.server = BridgeServer(
            state=self.state,
            protocol=self.protocol,
            transport=self.transport,
            host=self.config.server.host,
            port=self.config.server.port,
            ptt_enabled=radio.ptt_enabled,
            radio_name=f"{radio.brand} {radio.model}".strip()
        )

        # Flags and state
        self.running = False
        self.startup_time = 0
        self.main_task: Optional[asyncio.Task] = None

    @property
    def simulation(self) -> bool:
        return self.brand == "mock"

    def _create_transport(self) -> Union[SerialTransport, SimulationTransport]:
        if self.simulation:
            return SimulationTransport(self.protocol, self.state)

        serial_settings = self.config.serial
        return SerialTransport(
            protocol=self.protocol,
            state=self.state,
            port=serial_settings.port,
            baudrate=serial_settings.baudrate,
            bytesize=serial_settings.bytesize,
            stopbits=serial_settings.stopbits,
            parity=serial_settings.parity,
            timeout=serial_settings.timeout,
            poll_interval=self.config.radio.poll_interval,
            reconnect_delay=self.config.radio.reconnect_delay
        )

    async def start(self) -> None:
        """
        Start the HTTP server, then the transport.

        Raises:
            OSError: If the HTTP port cannot be bound
        """
        if self.running:
            logger.warning("Bridge is already running")
            return

        radio = self.config.radio
        logger.info(f"Starting {constants.APP_NAME}...")
        logger.info(f"Radio: {radio.brand} {radio.model}".rstrip())
        if not self.simulation:
            logger.info(f"Port: {self.config.serial.port} @ {self.config.serial.baudrate} baud")
        logger.info(f"PTT: {'enabled' if radio.ptt_enabled else 'disabled'}")

        await self.server.start()
        self.transport.start()

        self.startup_time = time.time()
        self.running = True
        self.main_task = asyncio.create_task(self._main_loop())

        logger.info("Bridge started successfully")

    async def stop(self) -> None:
        """Stop the transport (closing the port), then the server, then reset the state."""
        if not self.running:
            logger.warning("Bridge is not running")
            return

        logger.info(f"Stopping {constants.APP_NAME}...")
        self.running = False

        if self.main_task:
            self.main_task.cancel()
            await asyncio.gather(self.main_task, return_exceptions=True)
            self.main_task = None

        # Joining the serial threads blocks; keep the loop serving meanwhile
        await asyncio.get_running_loop().run_in_executor(None, self.transport.stop)
        await self.server.stop()
        self.state.reset()

        logger.info("Bridge stopped successfully")

    async def _main_loop(self) -> None:
        """Periodic status logging."""
        try:
            while self.running:
                await asyncio.sleep(constants.STATUS_LOG_INTERVAL)
                self._log_status()

        except asyncio.CancelledError:
            logger.debug("Main loop cancelled")
            raise

    def _log_status(self) -> None:
        snapshot = self.state.snapshot()
        if snapshot["connected"] and snapshot["freq"]:
            logger.info(f"Status: {snapshot['freq'] / 1e6:.6f} MHz {snapshot['mode']} "
                        f"{'TX' if snapshot['ptt'] else 'RX'} - "
                        f"{len(self.server.subscribers)} client(s)")
        elif snapshot["connected"]:
            logger.info("Status: connected, waiting for radio data")
        else:
            logger.info("Status: radio not connected")

        transport_status = self.transport.get_status()
        if snapshot["connected"] and transport_status.get("receiving") is False:
            logger.warning(f"No reply from the radio on {self.config.serial.port}; "
                           f"check that its CAT/CI-V rate is {self.config.serial.baudrate} baud")
        logger.debug(f"Transport: {transport_status}")
        logger.debug(f"Protocol: {self.protocol.get_status()}")
        logger.debug(f"Server: {self.server.get_status()}")

    def get_status(self) -> Dict[str, Any]:
        """
        Get the status of the bridge and all components.

        Returns:
            dict: Status information
        """
        return {
            "running": self.running,
            "uptime": time.time() - self.startup_time if self.startup_time > 0 else 0,
            "brand": self.brand,
            "simulation": self.simulation,
            "radio": self.state.snapshot(),
            "transport": self.transport.get_status(),
            "protocol": self.protocol.get_status(),
            "server": self.server.get_status(),
        }
