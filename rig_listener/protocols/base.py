#!/usr/bin/env python3

"""
Protocol base for Rig-Listener
Frame types shared by all radio codecs and the interface each
vendor codec implements.

Part of the Rig-Listener project.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Union


class ConfigurationError(Exception):
    """Raised when the configuration cannot produce a working bridge."""
    pass


@dataclass(frozen=True)
class FrequencyReport:
    """Frequency read back from the radio"""
    hz: int


@dataclass(frozen=True)
class ModeReport:
    """Operating mode read back from the radio"""
    mode: str


@dataclass(frozen=True)
class PTTReport:
    """Transmit status read back from the radio"""
    active: bool


@dataclass(frozen=True)
class Unrecognized:
    """A complete message the codec could not classify"""
    raw: bytes


Frame = Union[FrequencyReport, ModeReport, PTTReport, Unrecognized]


class RadioProtocol(ABC):
    """
    Command/response codec for one vendor protocol family.

    Codecs are stateful only in their receive buffer: decode() accumulates
    incoming bytes and returns the frames that are complete so far, keeping
    any partial trailing data for the next call.
    """

    name = "radio"

    def __init__(self):
        # Statistics
        self.bytes_received = 0
        self.frames_decoded = 0
        self.frames_discarded = 0

    @abstractmethod
    def build_poll_commands(self) -> List[bytes]:
        """Return the read requests issued once per poll tick."""

    @abstractmethod
    def decode(self, data: bytes) -> List[Frame]:
        """
        Feed raw bytes from the radio and extract complete frames.

        Args:
            data: Bytes exactly as read from the serial port

        Returns:
            list: Decoded frames in arrival order (possibly empty)
        """

    @abstractmethod
    def encode_set_frequency(self, hz: Union[int, float]) -> Optional[bytes]:
        """Build a set-frequency command, or None if hz is not representable."""

    @abstractmethod
    def encode_set_mode(self, mode: str) -> Optional[bytes]:
        """Build a set-mode command, or None if the mode label is unknown."""

    @abstractmethod
    def encode_set_ptt(self, on: bool) -> bytes:
        """Build a transmit on/off command."""

    @abstractmethod
    def reset(self) -> None:
        """Drop any partially received data."""

    def get_status(self):
        return {
            "protocol": self.name,
            "bytes_received": self.bytes_received,
            "frames_decoded": self.frames_decoded,
            "frames_discarded": self.frames_discarded,
        }
