#!/usr/bin/env python3

"""
Serial Transport for Rig-Listener
Owns the serial connection to the radio: opens it, polls the radio
at a fixed interval, feeds received bytes to the protocol codec and
reopens the port after any failure.

Part of the Rig-Listener project.
"""

import enum
import time
import threading
import logging
from typing import Any, Dict, Optional

import serial

from rig_listener import constants
from rig_listener.core.radio_state import RadioState
from rig_listener.protocols.base import RadioProtocol

# Configure logging
logger = logging.getLogger('serial_transport')

PARITY_MAP = {
    "none": serial.PARITY_NONE,
    "even": serial.PARITY_EVEN,
    "odd": serial.PARITY_ODD,
    "mark": serial.PARITY_MARK,
    "space": serial.PARITY_SPACE,
}

STOPBITS_MAP = {
    1: serial.STOPBITS_ONE,
    1.5: serial.STOPBITS_ONE_POINT_FIVE,
    2: serial.STOPBITS_TWO,
}


class TransportState(enum.Enum):
    CLOSED = "closed"
    OPENING = "opening"
    OPEN = "open"


class SerialTransport:
    """
    Serial connection manager for one radio.

    State machine: CLOSED -> OPENING -> OPEN -> CLOSED. Any open failure,
    read error or device loss returns to CLOSED, and the supervisor thread
    re-enters OPENING after a fixed delay, forever, until stop() is called.
    While OPEN a poll thread writes the codec's read requests once per
    poll interval.
    """
    def __init__(self,
                 protocol: RadioProtocol,
                 state: RadioState,
                 port: str,
                 baudrate: int = constants.DEFAULT_BAUDRATE,
                 bytesize: int = constants.DEFAULT_BYTESIZE,
                 stopbits: float = constants.DEFAULT_STOPBITS,
                 parity: str = constants.DEFAULT_PARITY,
                 timeout: float = constants.DEFAULT_SERIAL_TIMEOUT,
                 poll_interval: float = constants.DEFAULT_POLL_INTERVAL,
                 reconnect_delay: float = constants.DEFAULT_RECONNECT_DELAY):
        """
        Initialize the serial transport.

        Args:
            protocol: Codec for the connected radio
            state: Store updated with decoded frames
            port: The serial port to connect to (e.g., 'COM3', '/dev/ttyUSB0')
            baudrate: The baudrate to use
            bytesize: Data bits
            stopbits: Stop bits (1, 1.5 or 2)
            parity: none, even, odd, mark or space
            timeout: Read timeout in seconds
            poll_interval: Seconds between poll ticks
            reconnect_delay: Fixed delay in seconds before reopening the port
        """
        self.protocol = protocol
        self.state = state
        self.port = port
        self.baudrate = baudrate
        self.bytesize = bytesize
        self.stopbits = stopbits
        self.parity = parity
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.reconnect_delay = reconnect_delay

        # Serial connection
        self.serial_conn: Optional[serial.Serial] = None
        self.transport_state = TransportState.CLOSED

        # Threads
        self.supervisor_thread: Optional[threading.Thread] = None
        self.poll_thread: Optional[threading.Thread] = None
        self.running = False
        self._stop_event = threading.Event()
        self._poll_stop = threading.Event()
        self._write_lock = threading.Lock()

        # Statistics
        self.bytes_received = 0
        self.bytes_sent = 0
        self.error_count = 0
        self.write_errors = 0
        self.connect_count = 0
        self.reconnect_attempts = 0
        self.start_time = 0
        self.last_received_time = 0

    @property
    def is_open(self) -> bool:
        return self.transport_state is TransportState.OPEN

    def start(self) -> None:
        """Start the supervisor thread (opens the port in the background)."""
        if self.running:
            logger.warning("Serial transport is already running")
            return

        self.running = True
        self._stop_event.clear()
        self.start_time = time.time()
        self.supervisor_thread = threading.Thread(
            target=self._run, name=f"serial-{self.port}", daemon=True
        )
        self.supervisor_thread.start()
        logger.info(f"Serial transport started for {self.port} at {self.baudrate} baud")

    def stop(self) -> None:
        """Cancel polling, close the port and stop reconnecting."""
        if not self.running:
            return

        logger.info(f"Stopping serial transport on {self.port}")
        self.running = False
        self._stop_event.set()

        # The read loop wakes up within one read timeout and closes the port
        if self.supervisor_thread and self.supervisor_thread is not threading.current_thread():
            self.supervisor_thread.join(timeout=constants.THREAD_JOIN_TIMEOUT + self.timeout)
            if self.supervisor_thread.is_alive():
                logger.warning("Serial supervisor did not stop in time, forcing port closed")
                was_open = self.is_open
                self._stop_polling()
                self._close_port()
                self.transport_state = TransportState.CLOSED
                if was_open:
                    self.state.set_connected(False)

    def send(self, data: bytes) -> bool:
        """
        Write a command frame to the radio.

        Args:
            data: Raw frame from the protocol codec

        Returns:
            bool: False when the port is not open or the write failed
        """
        if not data:
            return False
        return self._write(data)

    def _run(self) -> None:
        """
        Supervisor loop. Runs in a separate thread.
        """
        while not self._stop_event.is_set():
            self.transport_state = TransportState.OPENING

            if self._open():
                self._on_open()
                self._read_loop()
                self._on_close()
            else:
                self.transport_state = TransportState.CLOSED

            if self._stop_event.is_set():
                break

            self.reconnect_attempts += 1
            logger.info(f"Serial port {self.port} closed - reconnecting in {self.reconnect_delay:.0f}s...")
            self._stop_event.wait(self.reconnect_delay)

        self.transport_state = TransportState.CLOSED

    def _open(self) -> bool:
        """
        Open the serial connection.

        Returns:
            bool: True if connection opened successfully, False otherwise
        """
        logger.info(f"Opening {self.port} at {self.baudrate} baud...")
        try:
            conn = serial.Serial(
                port=self.port,
                baudrate=self.baudrate,
                bytesize=self.bytesize,
                parity=PARITY_MAP.get(str(self.parity).lower(), serial.PARITY_NONE),
                stopbits=STOPBITS_MAP.get(self.stopbits, serial.STOPBITS_ONE),
                timeout=self.timeout
            )
        except (serial.SerialException, OSError, ValueError) as e:
            logger.error(f"Cannot open {self.port}: {e}")
            if self.error_count == 0:
                logger.warning("Troubleshooting: is the USB cable connected? Is another program "
                               "(flrig, WSJT-X, ...) using the port? On Linux the user may need "
                               "to be in the 'dialout' group.")
            self.error_count += 1
            return False

        with self._write_lock:
            self.serial_conn = conn
        return True

    def _on_open(self) -> None:
        logger.info(f"Connected to {self.port}")
        self.transport_state = TransportState.OPEN
        self.connect_count += 1
        self.last_received_time = 0
        self.protocol.reset()
        self.state.set_connected(True)
        self._start_polling()

    def _on_close(self) -> None:
        self._stop_polling()
        self._close_port()
        self.transport_state = TransportState.CLOSED
        self.state.set_connected(False)

    def _close_port(self) -> None:
        with self._write_lock:
            conn = self.serial_conn
            self.serial_conn = None

        if conn is None:
            return

        try:
            conn.close()
            logger.info(f"Serial port {self.port} closed")
        except (serial.SerialException, OSError) as e:
            logger.error(f"Error closing serial port {self.port}: {e}")

    def _read_loop(self) -> None:
        """
        Read from the open port until an error occurs or stop is requested.
        """
        conn = self.serial_conn
        if conn is None:
            return

        while not self._stop_event.is_set():
            try:
                data = conn.read(conn.in_waiting or 1)
            except (serial.SerialException, OSError) as e:
                logger.error(f"Serial read error on {self.port}: {e}")
                self.error_count += 1
                return

            if not data:
                continue

            self.bytes_received += len(data)
            self.last_received_time = time.time()

            try:
                frames = self.protocol.decode(data)
                self.state.apply_frames(frames)
            except Exception as e:
                logger.error(f"Error processing radio data: {e}")
                self.error_count += 1

    def _start_polling(self) -> None:
        self._poll_stop = threading.Event()
        self.poll_thread = threading.Thread(
            target=self._poll_loop, args=(self._poll_stop,), name=f"poll-{self.port}", daemon=True
        )
        self.poll_thread.start()

    def _stop_polling(self) -> None:
        self._poll_stop.set()
        if self.poll_thread and self.poll_thread is not threading.current_thread():
            self.poll_thread.join(timeout=constants.THREAD_JOIN_TIMEOUT)
        self.poll_thread = None

    def _poll_loop(self, stop_event: threading.Event) -> None:
        """
        Write the codec's poll commands once per interval.
        Write failures are only logged; the read side detects device loss.
        """
        while not stop_event.wait(self.poll_interval):
            for command in self.protocol.build_poll_commands():
                self._write(command)

    def _write(self, data: bytes) -> bool:
        with self._write_lock:
            conn = self.serial_conn
            if conn is None or not self.is_open:
                return False
            try:
                conn.write(data)
            except (serial.SerialException, OSError) as e:
                logger.error(f"Serial write error on {self.port}: {e}")
                self.write_errors += 1
                return False

        self.bytes_sent += len(data)
        return True

    def is_receiving_data(self) -> bool:
        """
        Check if the radio answered recently.

        Returns:
            bool: True if data arrived within the receiving threshold
        """
        if not self.last_received_time:
            return False

        return (time.time() - self.last_received_time) < constants.DATA_RECEIVING_THRESHOLD

    def get_status(self) -> Dict[str, Any]:
        """
        Get the current status of the serial transport.

        Returns:
            dict: Status information
        """
        now = time.time()
        uptime = now - self.start_time if self.start_time > 0 else 0

        return {
            "port": self.port,
            "baudrate": self.baudrate,
            "state": self.transport_state.value,
            "connected": self.is_open,
            "running": self.running,
            "bytes_received": self.bytes_received,
            "bytes_sent": self.bytes_sent,
            "error_count": self.error_count,
            "write_errors": self.write_errors,
            "connect_count": self.connect_count,
            "reconnect_attempts": self.reconnect_attempts,
            "uptime_seconds": uptime,
            "last_received_ago": now - self.last_received_time if self.last_received_time > 0 else None,
            "receiving": self.is_receiving_data(),
        }


class SimulationTransport:
    """
    Transport used when no radio is attached.

    Seeds the store with a representative frequency and mode, reports
    itself connected and loops every command back through the codec so
    the dashboard sees its commands take effect.
    """
    def __init__(self,
                 protocol: RadioProtocol,
                 state: RadioState,
                 frequency: int = constants.SIMULATION_FREQUENCY,
                 mode: str = constants.SIMULATION_MODE):
        self.protocol = protocol
        self.state = state
        self.frequency = frequency
        self.mode = mode
        self.running = False
        self.bytes_sent = 0
        self.start_time = 0

    @property
    def is_open(self) -> bool:
        return self.running

    def start(self) -> None:
        self.running = True
        self.start_time = time.time()
        self.state.update("freq", self.frequency)
        self.state.update("mode", self.mode)
        self.state.set_connected(True)
        logger.info("Simulation mode active - no radio needed")

    def stop(self) -> None:
        if not self.running:
            return
        self.running = False
        self.state.set_connected(False)

    def send(self, data: bytes) -> bool:
        if not self.running or not data:
            return False
        self.bytes_sent += len(data)
        self.state.apply_frames(self.protocol.decode(data))
        return True

    def get_status(self) -> Dict[str, Any]:
        return {
            "port": "simulation",
            "state": TransportState.OPEN.value if self.running else TransportState.CLOSED.value,
            "connected": self.running,
            "running": self.running,
            "bytes_sent": self.bytes_sent,
            "uptime_seconds": time.time() - self.start_time if self.start_time > 0 else 0,
        }
