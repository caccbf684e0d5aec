#!/usr/bin/env python3

"""
RadioState for Rig-Listener
Single source of truth for the last known frequency, mode, PTT and
connection status of the radio, with change notification.

Part of the Rig-Listener project.
"""

import time
import threading
import logging
from typing import Any, Callable, Dict, Iterable, List

from rig_listener.protocols.base import Frame, FrequencyReport, ModeReport, PTTReport

# Configure logging
logger = logging.getLogger('radio_state')

# Listener signature: listener(prop, value)
StateListener = Callable[[str, Any], None]

FIELDS = ("freq", "mode", "width", "ptt")


def _now_ms() -> int:
    return int(time.time() * 1000)


class RadioState:
    """
    Thread-safe store for the radio's last known state.

    Fields only change when a new value differs from the stored one, so
    steady polling does not produce a stream of notifications. The
    connection flag is the exception: every set_connected() call notifies.
    Each change is a single field assignment followed by a notification;
    there are no multi-field transactions.
    """

    def __init__(self):
        """Initialize an empty (unknown, disconnected) radio state."""
        # Lock for thread safety
        self._lock = threading.RLock()

        self._data: Dict[str, Any] = {}
        self._connected = False
        self._last_update = 0
        self._listeners: List[StateListener] = []

        # Statistics
        self.update_count = 0

        self._clear()

    def _clear(self) -> None:
        self._data = {"freq": 0, "mode": "", "width": 0, "ptt": False}
        self._connected = False
        self._last_update = 0

    @property
    def connected(self) -> bool:
        with self._lock:
            return self._connected

    def get(self, prop: str) -> Any:
        """
        Get one field.

        Args:
            prop: One of freq, mode, width, ptt, connected

        Returns:
            The stored value
        """
        with self._lock:
            if prop == "connected":
                return self._connected
            return self._data[prop]

    def update(self, prop: str, value: Any) -> bool:
        """
        Store a field value if it differs from the current one.

        Args:
            prop: Field name (freq, mode, width, ptt)
            value: New value

        Returns:
            bool: True if the field changed (and listeners were notified)
        """
        with self._lock:
            if prop not in self._data:
                raise KeyError(f"Unknown radio state field: {prop}")

            if self._data[prop] == value:
                return False

            self._data[prop] = value
            self._last_update = _now_ms()
            self.update_count += 1
            logger.debug(f"{prop} -> {value!r}")
            self._notify(prop, value)
            return True

    def set_connected(self, connected: bool) -> None:
        """
        Record the transport connection status. Always notifies.

        Args:
            connected: True while the serial transport is open
        """
        with self._lock:
            self._connected = bool(connected)
            self._notify("connected", self._connected)

    def apply_frame(self, frame: Frame) -> bool:
        """
        Apply one decoded frame to the store.

        A frequency of zero means "no data yet" on every supported radio
        and is never stored. Unrecognized frames are ignored.

        Args:
            frame: Frame produced by a protocol codec

        Returns:
            bool: True if a field changed
        """
        if isinstance(frame, FrequencyReport):
            if frame.hz <= 0:
                return False
            return self.update("freq", frame.hz)
        if isinstance(frame, ModeReport):
            if not frame.mode:
                return False
            return self.update("mode", frame.mode)
        if isinstance(frame, PTTReport):
            return self.update("ptt", frame.active)
        return False

    def apply_frames(self, frames: Iterable[Frame]) -> int:
        """
        Apply frames in order; the last report of a batch wins.

        Returns:
            int: Number of field changes
        """
        changes = 0
        for frame in frames:
            if self.apply_frame(frame):
                changes += 1
        return changes

    def snapshot(self) -> Dict[str, Any]:
        """
        Get a consistent copy of the whole state.

        Returns:
            dict: connected, freq, mode, width, ptt, timestamp
        """
        with self._lock:
            return {
                "connected": self._connected,
                "freq": self._data["freq"],
                "mode": self._data["mode"],
                "width": self._data["width"],
                "ptt": self._data["ptt"],
                "timestamp": self._last_update,
            }

    def get_last_update_time(self) -> int:
        """Milliseconds since the epoch of the last field change (0 if never)."""
        with self._lock:
            return self._last_update

    def add_listener(self, listener: StateListener) -> None:
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def remove_listener(self, listener: StateListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _notify(self, prop: str, value: Any) -> None:
        # Called with the lock held so listeners see changes in mutation order
        for listener in list(self._listeners):
            try:
                listener(prop, value)
            except Exception as e:
                logger.error(f"Error in state listener: {e}")

    def reset(self) -> None:
        """Forget everything known about the radio."""
        with self._lock:
            self._clear()
