#!/usr/bin/env python3

"""
Icom CI-V protocol for Rig-Listener
Binary framed protocol used by the IC-7300, IC-7610, IC-705,
IC-9700 and most other current Icom transceivers.

Frame layout:
    FE FE <to> <from> <cmd> [data ...] FD

Frequencies travel as 5 bytes of little-endian packed BCD:
    byte0 = 1 Hz / 10 Hz, byte1 = 100 Hz / 1 kHz, ... byte4 = 100 MHz / 1 GHz

Part of the Rig-Listener project.
"""

import logging
from typing import Dict, Iterable, List, Optional, Union

from rig_listener import constants
from rig_listener.protocols.base import (
    Frame, FrequencyReport, ModeReport, PTTReport, RadioProtocol, Unrecognized
)

logger = logging.getLogger('civ_protocol')

# Command bytes
CMD_TRANSCEIVE_FREQ = 0x00
CMD_TRANSCEIVE_MODE = 0x01
CMD_READ_FREQ = 0x03
CMD_READ_MODE = 0x04
CMD_SET_FREQ = 0x05
CMD_SET_MODE = 0x06
CMD_TX_STATUS = 0x1C
SUBCMD_TX_STATUS = 0x00

DEFAULT_FILTER = 0x01

MAX_FREQUENCY = 10 ** (constants.CIV_FREQ_BYTES * 2) - 1

ICOM_MODES: Dict[int, str] = {
    0x00: 'LSB', 0x01: 'USB', 0x02: 'AM', 0x03: 'CW', 0x04: 'RTTY',
    0x05: 'FM', 0x06: 'WFM', 0x07: 'CW-R', 0x08: 'RTTY-R',
    0x17: 'DV',
}

# Factory default CI-V addresses
ICOM_ADDRESSES: Dict[str, int] = {
    'IC-7300': 0x94, 'IC-7610': 0x98, 'IC-705': 0xA4,
    'IC-9700': 0xA2, 'IC-7100': 0x88, 'IC-7851': 0x8E,
    'IC-7600': 0x7A, 'IC-746': 0x56, 'IC-718': 0x5E,
}


def default_civ_address(model: str) -> int:
    """
    Look up the factory CI-V address for a model name.

    Args:
        model: Model name such as "IC-705" (case-insensitive)

    Returns:
        int: The model's address, or the IC-7300 default if unknown
    """
    return ICOM_ADDRESSES.get(model.strip().upper(), constants.CIV_DEFAULT_ADDRESS)


def _bcd_to_freq(data: Iterable[int]) -> int:
    freq = 0
    mult = 1
    for i, byte in enumerate(data):
        if i >= constants.CIV_FREQ_BYTES:
            break
        freq += (byte & 0x0F) * mult
        mult *= 10
        freq += ((byte >> 4) & 0x0F) * mult
        mult *= 10
    return freq


def _freq_to_bcd(hz: int) -> bytes:
    out = bytearray(constants.CIV_FREQ_BYTES)
    f = hz
    for i in range(constants.CIV_FREQ_BYTES):
        lo = f % 10
        f //= 10
        hi = f % 10
        f //= 10
        out[i] = (hi << 4) | lo
    return bytes(out)


class IcomProtocol(RadioProtocol):
    """
    CI-V codec talking to one radio address from the controller address.

    Frames addressed to anything other than the controller (including the
    echo of our own commands on the shared CI-V bus) are dropped.
    """

    name = "icom"

    def __init__(self,
                 civ_address: int = constants.CIV_DEFAULT_ADDRESS,
                 controller_address: int = constants.CIV_CONTROLLER_ADDRESS):
        """
        Initialize the CI-V codec.

        Args:
            civ_address: Radio address (e.g. 0x94 for the IC-7300)
            controller_address: Our own address on the bus
        """
        super().__init__()
        self.civ_address = civ_address
        self.controller_address = controller_address
        self._buffer = bytearray()
        self._modes_rev = {label: code for code, label in ICOM_MODES.items()}

    def _frame(self, payload: Iterable[int]) -> bytes:
        return bytes([0xFE, 0xFE, self.civ_address, self.controller_address,
                      *payload, constants.CIV_TERMINATOR])

    def build_poll_commands(self) -> List[bytes]:
        return [
            self._frame([CMD_READ_FREQ]),
            self._frame([CMD_READ_MODE]),
            self._frame([CMD_TX_STATUS, SUBCMD_TX_STATUS]),
        ]

    def decode(self, data: bytes) -> List[Frame]:
        frames: List[Frame] = []
        if data:
            self.bytes_received += len(data)
            self._buffer.extend(data)

        while self._buffer:
            start = self._buffer.find(constants.CIV_PREAMBLE)
            if start == -1:
                # No preamble anywhere: nothing here can be salvaged, except a
                # lone FE that may be the first half of the next preamble
                keep_tail = self._buffer[-1] == 0xFE
                if len(self._buffer) > 1 or not keep_tail:
                    self.frames_discarded += 1
                self._buffer = bytearray(b"\xfe") if keep_tail else bytearray()
                break

            end = self._buffer.find(constants.CIV_TERMINATOR, start + 2)
            if end == -1:
                # Incomplete frame, wait for more data
                del self._buffer[:start]
                if len(self._buffer) > constants.MAX_RECEIVE_BUFFER:
                    logger.warning(f"Discarding {len(self._buffer)} bytes of unterminated CI-V data")
                    self._buffer.clear()
                    self.frames_discarded += 1
                break

            frame = bytes(self._buffer[start:end + 1])
            del self._buffer[:end + 1]

            parsed = self._parse_frame(frame)
            if parsed is not None:
                frames.append(parsed)

        return frames

    def _parse_frame(self, frame: bytes) -> Optional[Frame]:
        """
        Interpret one complete frame (preamble through terminator).

        Returns:
            Frame or None if the frame is not meant for the controller
        """
        if len(frame) < constants.CIV_MIN_FRAME_LENGTH:
            self.frames_discarded += 1
            return None

        to_addr = frame[2]
        if to_addr != self.controller_address:
            self.frames_discarded += 1
            return None

        cmd = frame[4]
        payload = frame[5:-1]

        result: Optional[Frame] = None
        if cmd in (CMD_READ_FREQ, CMD_TRANSCEIVE_FREQ):
            if len(payload) >= constants.CIV_FREQ_BYTES:
                result = FrequencyReport(_bcd_to_freq(payload))
        elif cmd in (CMD_READ_MODE, CMD_TRANSCEIVE_MODE):
            if len(payload) >= 1:
                result = ModeReport(ICOM_MODES.get(payload[0], f"MODE_{payload[0]:x}"))
        elif cmd == CMD_TX_STATUS:
            if len(payload) >= 2 and payload[0] == SUBCMD_TX_STATUS:
                result = PTTReport(payload[1] == 0x01)

        if result is None:
            logger.debug(f"Unhandled CI-V frame: {frame.hex(' ')}")
            self.frames_discarded += 1
            return Unrecognized(frame)

        self.frames_decoded += 1
        return result

    def encode_set_frequency(self, hz: Union[int, float]) -> Optional[bytes]:
        try:
            hz = int(round(hz))
        except (TypeError, ValueError, OverflowError):
            return None

        if hz < 0 or hz > MAX_FREQUENCY:
            return None

        return self._frame([CMD_SET_FREQ, *_freq_to_bcd(hz)])

    def encode_set_mode(self, mode: str) -> Optional[bytes]:
        if not isinstance(mode, str):
            return None

        code = self._modes_rev.get(mode.strip().upper())
        if code is None:
            return None

        return self._frame([CMD_SET_MODE, code, DEFAULT_FILTER])

    def encode_set_ptt(self, on: bool) -> bytes:
        return self._frame([CMD_TX_STATUS, SUBCMD_TX_STATUS, 0x01 if on else 0x00])

    def reset(self) -> None:
        self._buffer.clear()
