#!/usr/bin/env python3

"""
Text CAT protocols for Rig-Listener
Semicolon-terminated ASCII command sets used by:
- Yaesu (FT-991A, FT-891, FT-710, FT-DX10, FT-DX101, FT-450D, ...)
- Kenwood / Elecraft (TS-590, TS-890, K3, K4, KX3, KX2, ...)

Both dialects share the framing and differ in field widths,
mode tables and a few command spellings.

Part of the Rig-Listener project.
"""

import logging
from typing import Dict, List, Optional, Tuple, Union

from rig_listener import constants
from rig_listener.protocols.base import (
    Frame, FrequencyReport, ModeReport, PTTReport, RadioProtocol, Unrecognized
)

logger = logging.getLogger('cat_protocol')


YAESU_MODES: Dict[str, str] = {
    '1': 'LSB', '2': 'USB', '3': 'CW', '4': 'FM', '5': 'AM',
    '6': 'RTTY-LSB', '7': 'CW-R', '8': 'DATA-LSB', '9': 'RTTY-USB',
    'A': 'DATA-FM', 'B': 'FM-N', 'C': 'DATA-USB', 'D': 'AM-N',
}

KENWOOD_MODES: Dict[str, str] = {
    '1': 'LSB', '2': 'USB', '3': 'CW', '4': 'FM', '5': 'AM',
    '6': 'FSK', '7': 'CW-R', '9': 'FSK-R',
}


class TextCATProtocol(RadioProtocol):
    """
    Shared decoder/encoder for the semicolon-terminated CAT dialects.

    Subclasses only describe their dialect through class attributes.
    """

    name = "cat"

    # Dialect description
    POLL_COMMANDS: Tuple[str, ...] = ()
    MODES: Dict[str, str] = {}
    MODE_PREFIX = "MD"
    FREQ_DIGITS = 9
    FA_MIN_LENGTH = 11                  # "FA" + digits + ";"
    IF_MIN_LENGTH = 27
    IF_FREQ_SLICE = slice(5, 14)
    IF_MODE_INDEX = 21
    PTT_ON = "TX1;"
    PTT_OFF = "TX0;"

    def __init__(self):
        super().__init__()
        self._buffer = ""
        self._modes_rev = {label: code for code, label in self.MODES.items()}

    @property
    def max_frequency(self) -> int:
        return 10 ** self.FREQ_DIGITS - 1

    def build_poll_commands(self) -> List[bytes]:
        return [cmd.encode('ascii') for cmd in self.POLL_COMMANDS]

    def decode(self, data: bytes) -> List[Frame]:
        frames: List[Frame] = []
        if not data:
            return frames

        self.bytes_received += len(data)
        # latin-1 maps every byte to one character, so a read split at any
        # byte boundary reassembles to the same text
        self._buffer += data.decode('latin-1')

        while True:
            idx = self._buffer.find(constants.CAT_TERMINATOR)
            if idx == -1:
                break
            command = self._buffer[:idx + 1]
            self._buffer = self._buffer[idx + 1:]
            frames.extend(self._parse_command(command))

        if len(self._buffer) > constants.MAX_RECEIVE_BUFFER:
            logger.warning(f"{self.name}: discarding {len(self._buffer)} unterminated characters")
            self._buffer = ""
            self.frames_discarded += 1

        return frames

    def _parse_command(self, cmd: str) -> List[Frame]:
        """
        Classify one complete command (terminator included) by its prefix.

        Args:
            cmd: Command text such as "FA014074000;"

        Returns:
            list: Frames carried by the command
        """
        frames: List[Frame] = []

        if cmd.startswith("FA") and len(cmd) >= self.FA_MIN_LENGTH:
            freq = self._parse_frequency(cmd[2:-1])
            if freq is not None:
                frames.append(FrequencyReport(freq))

        elif cmd.startswith(self.MODE_PREFIX) and len(cmd) >= len(self.MODE_PREFIX) + 2:
            frames.append(ModeReport(self._mode_label(cmd[len(self.MODE_PREFIX)])))

        elif cmd.startswith("TX") and len(cmd) >= 4:
            frames.append(PTTReport(cmd[2] != "0"))

        elif cmd.startswith("IF") and len(cmd) >= self.IF_MIN_LENGTH:
            # Status report: frequency and mode at fixed offsets
            freq = self._parse_frequency(cmd[self.IF_FREQ_SLICE])
            if freq is not None:
                frames.append(FrequencyReport(freq))
            frames.append(ModeReport(self._mode_label(cmd[self.IF_MODE_INDEX])))

        if not frames:
            logger.debug(f"{self.name}: unrecognized command {cmd!r}")
            self.frames_discarded += 1
            return [Unrecognized(cmd.encode('latin-1'))]

        self.frames_decoded += len(frames)
        return frames

    @staticmethod
    def _parse_frequency(digits: str) -> Optional[int]:
        digits = digits.strip()
        # isdigit() alone also accepts latin-1 superscripts that int() rejects
        if not (digits.isascii() and digits.isdigit()):
            return None
        return int(digits)

    def _mode_label(self, code: str) -> str:
        # Unmapped codes pass through so equipment extensions stay visible
        return self.MODES.get(code, code)

    def encode_set_frequency(self, hz: Union[int, float]) -> Optional[bytes]:
        try:
            hz = int(round(hz))
        except (TypeError, ValueError, OverflowError):
            return None

        if hz < 0 or hz > self.max_frequency:
            return None

        return f"FA{hz:0{self.FREQ_DIGITS}d};".encode('ascii')

    def encode_set_mode(self, mode: str) -> Optional[bytes]:
        if not isinstance(mode, str):
            return None

        code = self._modes_rev.get(mode.strip().upper())
        if code is None:
            return None

        return f"{self.MODE_PREFIX}{code};".encode('ascii')

    def encode_set_ptt(self, on: bool) -> bytes:
        return (self.PTT_ON if on else self.PTT_OFF).encode('ascii')

    def reset(self) -> None:
        self._buffer = ""


class YaesuProtocol(TextCATProtocol):
    """Yaesu CAT: 9-digit frequency, MD0 mode command."""

    name = "yaesu"

    POLL_COMMANDS = ("FA;", "MD0;", "TX;")
    MODES = YAESU_MODES
    MODE_PREFIX = "MD0"
    FREQ_DIGITS = 9
    FA_MIN_LENGTH = 11
    IF_MIN_LENGTH = 27
    IF_FREQ_SLICE = slice(5, 14)
    IF_MODE_INDEX = 21
    PTT_ON = "TX1;"
    PTT_OFF = "TX0;"


class KenwoodProtocol(TextCATProtocol):
    """Kenwood / Elecraft CAT: 11-digit frequency, MD mode command."""

    name = "kenwood"

    POLL_COMMANDS = ("FA;", "MD;", "TX;")
    MODES = KENWOOD_MODES
    MODE_PREFIX = "MD"
    FREQ_DIGITS = 11
    FA_MIN_LENGTH = 13
    IF_MIN_LENGTH = 37
    IF_FREQ_SLICE = slice(2, 13)
    IF_MODE_INDEX = 29
    PTT_ON = "TX1;"
    PTT_OFF = "RX;"
