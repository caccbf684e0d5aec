#!/usr/bin/env python3

"""
Package initialization for rig_listener.io
Module for input/output operations with the radio and the dashboard.

Part of the Rig-Listener project.
"""

from rig_listener.io.serial_transport import SerialTransport, SimulationTransport, TransportState
from rig_listener.io.http_server import BridgeServer

__all__ = ['SerialTransport', 'SimulationTransport', 'TransportState', 'BridgeServer']
