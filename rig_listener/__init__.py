#!/usr/bin/env python3

"""
Rig-Listener
A bridge between an amateur-radio transceiver and a browser dashboard.

This package talks to the radio over its vendor serial control
protocol (Yaesu, Kenwood and Elecraft text CAT, Icom CI-V), keeps the
last known frequency, mode and transmit status, and serves them over a
local HTTP interface with a Server-Sent Events push stream.

Main components:
- Protocols: Encode commands and decode replies for each radio family
- IO: Serial transport to the radio and HTTP server for the dashboard
- Core: Radio state, settings and bridge orchestration
"""

__version__ = "1.0.0"
__license__ = "MIT"
