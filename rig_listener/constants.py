#!/usr/bin/env python3

"""
Constants for Rig-Listener
Centralized configuration values and magic numbers.

Part of the Rig-Listener project.
"""

# =============================================================================
# APPLICATION
# =============================================================================

APP_NAME = "OpenHamClock Rig Listener"
CONFIG_FILE_NAME = "rig-listener-config.json"


# =============================================================================
# TIMING CONSTANTS (seconds)
# =============================================================================

DEFAULT_POLL_INTERVAL = 0.5         # Radio poll interval (2 Hz)
DEFAULT_RECONNECT_DELAY = 5.0       # Fixed delay before reopening the serial port
DEFAULT_SERIAL_TIMEOUT = 0.1        # Serial read timeout
THREAD_JOIN_TIMEOUT = 2.0           # How long to wait for worker threads on stop
SSE_KEEPALIVE_INTERVAL = 15.0       # Comment line sent to idle stream clients
STATUS_LOG_INTERVAL = 30.0          # How often the CLI logs bridge status
DATA_RECEIVING_THRESHOLD = 5.0      # Serial data older than this is "not receiving"


# =============================================================================
# SERIAL DEFAULTS
# =============================================================================

DEFAULT_BAUDRATE = 38400
DEFAULT_ICOM_BAUDRATE = 19200
DEFAULT_BYTESIZE = 8
DEFAULT_STOPBITS = 2                # Yaesu default; Kenwood/Icom usually 1
DEFAULT_PARITY = "none"

VALID_BYTESIZES = (5, 6, 7, 8)
VALID_STOPBITS = (1, 1.5, 2)
VALID_PARITIES = ("none", "even", "odd", "mark", "space")
COMMON_BAUDRATES = (4800, 9600, 19200, 38400, 115200)


# =============================================================================
# NETWORK CONSTANTS
# =============================================================================

DEFAULT_HTTP_HOST = "0.0.0.0"
DEFAULT_HTTP_PORT = 5555
MAX_REQUEST_BODY = 8192


# =============================================================================
# PROTOCOL CONSTANTS
# =============================================================================

MAX_RECEIVE_BUFFER = 4096           # Bytes buffered without a terminator before discarding

CAT_TERMINATOR = ";"

CIV_PREAMBLE = b"\xfe\xfe"
CIV_TERMINATOR = 0xFD
CIV_CONTROLLER_ADDRESS = 0xE0
CIV_DEFAULT_ADDRESS = 0x94          # IC-7300
CIV_FREQ_BYTES = 5
CIV_MIN_FRAME_LENGTH = 6            # FE FE TO FROM CMD FD


# =============================================================================
# SIMULATION
# =============================================================================

SIMULATION_FREQUENCY = 14074000
SIMULATION_MODE = "USB"
