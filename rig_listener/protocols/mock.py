#!/usr/bin/env python3

"""
Simulation protocol for Rig-Listener
A stand-in codec used when no radio is attached. It never polls;
commands are encoded in a plain text form that the same codec
decodes again, so a simulated radio can "obey" them.

Part of the Rig-Listener project.
"""

from typing import List, Optional, Union

from rig_listener.protocols.base import (
    Frame, FrequencyReport, ModeReport, PTTReport, RadioProtocol, Unrecognized
)

SIMULATION_MODES = (
    'LSB', 'USB', 'CW', 'CW-R', 'AM', 'FM', 'WFM', 'DV',
    'RTTY', 'RTTY-R', 'DATA-USB', 'DATA-LSB', 'DATA-FM',
)

MAX_FREQUENCY = 99_999_999_999


class MockProtocol(RadioProtocol):
    """Loopback codec for simulation mode."""

    name = "mock"

    def __init__(self):
        super().__init__()
        self._buffer = ""

    def build_poll_commands(self) -> List[bytes]:
        return []

    def decode(self, data: bytes) -> List[Frame]:
        frames: List[Frame] = []
        if not data:
            return frames

        self.bytes_received += len(data)
        self._buffer += data.decode('latin-1')
        *commands, self._buffer = self._buffer.split(";")

        for cmd in commands:
            if cmd.startswith("FA") and cmd[2:].isdigit():
                frames.append(FrequencyReport(int(cmd[2:])))
            elif cmd.startswith("MD") and len(cmd) > 2:
                frames.append(ModeReport(cmd[2:]))
            elif cmd in ("TX0", "TX1"):
                frames.append(PTTReport(cmd == "TX1"))
            else:
                self.frames_discarded += 1
                frames.append(Unrecognized(cmd.encode('latin-1')))
                continue
            self.frames_decoded += 1

        return frames

    def encode_set_frequency(self, hz: Union[int, float]) -> Optional[bytes]:
        try:
            hz = int(round(hz))
        except (TypeError, ValueError, OverflowError):
            return None
        if hz < 0 or hz > MAX_FREQUENCY:
            return None
        return f"FA{hz};".encode('ascii')

    def encode_set_mode(self, mode: str) -> Optional[bytes]:
        if not isinstance(mode, str):
            return None
        label = mode.strip().upper()
        if label not in SIMULATION_MODES:
            return None
        return f"MD{label};".encode('ascii')

    def encode_set_ptt(self, on: bool) -> bytes:
        return b"TX1;" if on else b"TX0;"

    def reset(self) -> None:
        self._buffer = ""
