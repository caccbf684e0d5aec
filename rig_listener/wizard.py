#!/usr/bin/env python3

"""
Setup wizard for Rig-Listener
Asks for the serial port, radio brand and line settings on the
console and writes the configuration file.

Part of the Rig-Listener project.
"""

import logging
from typing import Callable, Dict, List, Optional

from rig_listener import constants
from rig_listener.core.settings import Settings
from rig_listener.protocols.civ import ICOM_ADDRESSES, default_civ_address

logger = logging.getLogger('wizard')

BRANDS = {
    "1": ("yaesu", "FT-991A, FT-891, FT-710, FT-DX10, FT-817/818, etc."),
    "2": ("kenwood", "TS-590, TS-890, etc."),
    "3": ("elecraft", "K3, K4, KX3, KX2, etc."),
    "4": ("icom", "IC-7300, IC-7610, IC-705, IC-9700, etc."),
}

Ask = Callable[[str], str]


def default_baudrate(brand: str) -> int:
    return constants.DEFAULT_ICOM_BAUDRATE if brand == "icom" else constants.DEFAULT_BAUDRATE


def default_stopbits(brand: str) -> int:
    # Yaesu CAT ports default to two stop bits, everyone else to one
    return 2 if brand == "yaesu" else 1


def _ask_int(ask: Ask, prompt: str, default: int, base: int = 10) -> int:
    answer = ask(prompt).strip()
    if not answer:
        return default
    try:
        return int(answer, base)
    except ValueError:
        print(f"  Not a number: {answer!r}, using {default}")
        return default


def _choose_port(ask: Ask, ports: List[Dict[str, str]]) -> str:
    if not ports:
        print("  No serial ports detected.")
        print("  Make sure your radio is connected via USB.\n")
        return ask("  Enter serial port (e.g. COM3 or /dev/ttyUSB0): ").strip()

    print("  Available serial ports:\n")
    for index, port in enumerate(ports, start=1):
        description = port["device"]
        if port.get("manufacturer"):
            description += f"  -  {port['manufacturer']}"
            if port.get("serial_number"):
                description += f" ({port['serial_number']})"
        print(f"     {index}) {description}")
    print("")

    choice = ask(f"  Select port (1-{len(ports)}, or type path manually): ").strip()
    if choice.isdigit() and 1 <= int(choice) <= len(ports):
        return ports[int(choice) - 1]["device"]
    return choice


def run_wizard(settings: Settings,
               ask: Ask = input,
               ports: Optional[List[Dict[str, str]]] = None) -> bool:
    """
    Interactive first-run setup.

    Args:
        settings: Settings manager to fill in and save
        ask: Prompt function (input() by default)
        ports: Serial ports to offer; listed with pyserial when None

    Returns:
        bool: True if a configuration was saved, False if no port was chosen
    """
    print("")
    print(f"  {constants.APP_NAME} - Setup Wizard")
    print("")

    if ports is None:
        ports = settings.get_available_serial_ports()

    port = _choose_port(ask, ports)
    if not port:
        print("\n  No port selected.\n")
        return False
    print(f"\n  Port: {port}\n")

    print("  Radio brand:\n")
    for key, (name, models) in BRANDS.items():
        print(f"     {key}) {name.capitalize():<9} ({models})")
    print("")
    brand = BRANDS.get(ask("  Select brand (1-4): ").strip(), BRANDS["1"])[0]
    print(f"\n  Brand: {brand}\n")

    model = ask("  Radio model (optional, e.g. FT-991A): ").strip()

    print("\n  Baud rate (must match the radio's CAT/CI-V rate setting)")
    print(f"  Common: {', '.join(str(rate) for rate in constants.COMMON_BAUDRATES)}")
    baudrate = _ask_int(ask, f"  Baud rate [{default_baudrate(brand)}]: ", default_baudrate(brand))

    stopbits = _ask_int(ask, f"  Stop bits (1 or 2) [{default_stopbits(brand)}]: ", default_stopbits(brand))
    if stopbits not in (1, 2):
        stopbits = default_stopbits(brand)

    civ_address = settings.get("radio", "civ_address")
    if brand == "icom":
        civ_address = default_civ_address(model)
        print("\n  Icom CI-V addresses (factory defaults):")
        for name, address in ICOM_ADDRESSES.items():
            print(f"     {name}: 0x{address:02X}")
        civ_address = _ask_int(ask, f"\n  CI-V address [0x{civ_address:02X}]: ", civ_address, base=16)
        if not 0x00 <= civ_address <= 0xFF:
            civ_address = default_civ_address(model)

    http_port = _ask_int(ask, f"\n  HTTP port for the dashboard [{constants.DEFAULT_HTTP_PORT}]: ",
                         constants.DEFAULT_HTTP_PORT)

    settings.set("serial", "port", port)
    settings.set("serial", "baudrate", baudrate)
    settings.set("serial", "stopbits", stopbits)
    settings.set("radio", "brand", brand)
    settings.set("radio", "model", model)
    settings.set("radio", "civ_address", civ_address)
    settings.set("server", "port", http_port)
    settings.settings.first_run = False

    if not settings.save():
        return False

    print(f"\n  Config saved to {settings.config_file}")
    print("  Edit this file to change settings or delete it to re-run the wizard.\n")
    logger.info(f"Wizard configured {brand} on {port} @ {baudrate} baud")
    return True
