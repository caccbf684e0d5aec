#!/usr/bin/env python3

"""
Package initialization for rig_listener.protocols
Radio command/response codecs and the brand registry.

Part of the Rig-Listener project.
"""

from typing import Dict, Type

from rig_listener import constants
from rig_listener.protocols.base import (
    ConfigurationError, Frame, FrequencyReport, ModeReport, PTTReport,
    RadioProtocol, Unrecognized
)
from rig_listener.protocols.cat import KenwoodProtocol, TextCATProtocol, YaesuProtocol
from rig_listener.protocols.civ import IcomProtocol
from rig_listener.protocols.mock import MockProtocol

# Brand name -> codec class. A new vendor is one more entry here.
PROTOCOLS: Dict[str, Type[RadioProtocol]] = {
    "yaesu": YaesuProtocol,
    "kenwood": KenwoodProtocol,
    "elecraft": KenwoodProtocol,
    "icom": IcomProtocol,
    "mock": MockProtocol,
}


def create_protocol(brand: str, civ_address: int = constants.CIV_DEFAULT_ADDRESS) -> RadioProtocol:
    """
    Build the codec for a radio brand.

    Args:
        brand: Brand name from the configuration (case-insensitive)
        civ_address: Radio CI-V address, only used for Icom

    Returns:
        RadioProtocol: A fresh codec instance

    Raises:
        ConfigurationError: If the brand is not supported
    """
    key = (brand or "").strip().lower()
    protocol_class = PROTOCOLS.get(key)
    if protocol_class is None:
        raise ConfigurationError(
            f"Unknown radio brand: {brand!r} (expected one of: {', '.join(sorted(PROTOCOLS))})"
        )

    if protocol_class is IcomProtocol:
        return IcomProtocol(civ_address=civ_address)
    return protocol_class()


__all__ = [
    'ConfigurationError', 'Frame', 'FrequencyReport', 'ModeReport', 'PTTReport',
    'Unrecognized', 'RadioProtocol', 'TextCATProtocol', 'YaesuProtocol',
    'KenwoodProtocol', 'IcomProtocol', 'MockProtocol', 'PROTOCOLS',
    'create_protocol',
]
