#!/usr/bin/env python3

"""
Settings for Rig-Listener
Configuration management for the application.
Handles loading, saving, validating and accessing settings.

Part of the Rig-Listener project.
"""

import json
import os
import sys
import logging
from typing import Dict, Any, Optional, List
import dataclasses
from dataclasses import dataclass, field

from rig_listener import constants

# Configure logging
logger = logging.getLogger('settings')


@dataclass
class SerialSettings:
    """Serial port settings for the radio's CAT/CI-V interface"""
    port: str = ""
    baudrate: int = constants.DEFAULT_BAUDRATE
    bytesize: int = constants.DEFAULT_BYTESIZE
    stopbits: float = float(constants.DEFAULT_STOPBITS)
    parity: str = constants.DEFAULT_PARITY
    timeout: float = constants.DEFAULT_SERIAL_TIMEOUT


@dataclass
class RadioSettings:
    """Radio selection and control behaviour"""
    brand: str = "yaesu"  # yaesu | kenwood | elecraft | icom | mock
    model: str = ""
    civ_address: int = constants.CIV_DEFAULT_ADDRESS  # Icom only
    poll_interval: float = constants.DEFAULT_POLL_INTERVAL  # seconds
    ptt_enabled: bool = False
    reconnect_delay: float = constants.DEFAULT_RECONNECT_DELAY  # seconds


@dataclass
class ServerSettings:
    """HTTP server settings for the dashboard"""
    host: str = constants.DEFAULT_HTTP_HOST
    port: int = constants.DEFAULT_HTTP_PORT


@dataclass
class LogSettings:
    """Logging settings"""
    level: str = "INFO"
    log_to_file: bool = False
    log_file_path: str = ""
    max_log_files: int = 5
    max_log_size_mb: int = 10


@dataclass
class ApplicationSettings:
    """Main application settings container"""
    serial: SerialSettings = field(default_factory=SerialSettings)
    radio: RadioSettings = field(default_factory=RadioSettings)
    server: ServerSettings = field(default_factory=ServerSettings)
    logging: LogSettings = field(default_factory=LogSettings)
    version: str = "1.0.0"
    first_run: bool = True


class SettingsEncoder(json.JSONEncoder):
    """Custom JSON encoder for dataclasses"""
    def default(self, obj):
        if dataclasses.is_dataclass(obj):
            return dataclasses.asdict(obj)
        return super().default(obj)


def default_config_path() -> str:
    """Configuration file next to the running program."""
    if getattr(sys, 'frozen', False):
        base_dir = os.path.dirname(sys.executable)
    else:
        base_dir = os.path.dirname(os.path.abspath(sys.argv[0] or '.'))
    return os.path.join(base_dir, constants.CONFIG_FILE_NAME)


def _convert(value: Any, current_value: Any) -> Any:
    """
    Convert a raw value to the type of the field it replaces.

    Raises:
        ValueError, TypeError: If the value cannot be converted
    """
    target_type = type(current_value)

    if target_type is bool:
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in ("1", "true", "yes", "on"):
                return True
            if lowered in ("0", "false", "no", "off"):
                return False
            raise ValueError(f"not a boolean: {value!r}")
        return bool(value)

    if target_type is int:
        if isinstance(value, bool):
            raise TypeError("boolean given for an integer setting")
        if isinstance(value, str):
            # Accepts "0x94" style CI-V addresses
            return int(value.strip(), 0)
        if isinstance(value, float) and not value.is_integer():
            raise ValueError(f"not an integer: {value!r}")
        return int(value)

    if target_type is float:
        if isinstance(value, bool):
            raise TypeError("boolean given for a numeric setting")
        return float(value)

    if isinstance(value, target_type):
        return value

    return target_type(value)


class Settings:
    """
    Settings manager for Rig-Listener.
    Handles loading, saving, and accessing application settings.
    """
    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize settings manager.

        Args:
            config_file: Path to configuration file (optional)
        """
        # Default settings
        self.settings = ApplicationSettings()

        # Configuration file path
        self.config_file = config_file or default_config_path()

        # Load settings if a file is already there
        if self.exists():
            self.load()

    def exists(self) -> bool:
        """Check whether the configuration file exists."""
        return os.path.isfile(self.config_file)

    def load(self, config_file: Optional[str] = None) -> bool:
        """
        Load settings from file.

        Args:
            config_file: Override configuration file path

        Returns:
            bool: True if settings were loaded successfully
        """
        if config_file:
            self.config_file = config_file

        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                data = json.load(f)

            if not isinstance(data, dict):
                logger.error(f"Config file {self.config_file} does not contain a JSON object")
                return False

            # Update settings with loaded data
            self._update_from_dict(data)

            logger.info(f"Settings loaded from {self.config_file}")
            return True

        except json.JSONDecodeError as e:
            logger.error(f"Error parsing config file: {e}")
            return False

        except IOError as e:
            logger.error(f"Error reading config file: {e}")
            return False

    def save(self, config_file: Optional[str] = None) -> bool:
        """
        Save settings to file.

        Args:
            config_file: Override configuration file path

        Returns:
            bool: True if settings were saved successfully
        """
        if config_file:
            self.config_file = config_file

        try:
            directory = os.path.dirname(self.config_file)
            if directory:
                os.makedirs(directory, exist_ok=True)

            with open(self.config_file, 'w', encoding='utf-8') as f:
                json.dump(self.settings, f, indent=2, cls=SettingsEncoder)

            logger.info(f"Settings saved to {self.config_file}")
            return True

        except IOError as e:
            logger.error(f"Error writing config file: {e}")
            return False

    def _update_from_dict(self, data: Dict[str, Any]) -> None:
        """
        Update settings from dictionary.

        Args:
            data: Dictionary with settings data
        """
        # Helper function to recursively update dataclasses
        def update_dataclass(obj, data_dict, prefix=""):
            for key, value in data_dict.items():
                if not hasattr(obj, key):
                    logger.debug(f"Ignoring unknown setting {prefix}{key}")
                    continue

                current_value = getattr(obj, key)
                # If it's a dataclass and value is a dict, update recursively
                if dataclasses.is_dataclass(current_value) and isinstance(value, dict):
                    update_dataclass(current_value, value, f"{prefix}{key}.")
                    continue

                try:
                    setattr(obj, key, _convert(value, current_value))
                except (ValueError, TypeError):
                    logger.warning(f"Could not convert {prefix}{key}={value!r} "
                                   f"to {type(current_value).__name__}")

        # Update main settings object
        update_dataclass(self.settings, data)

        # No longer first run after loading settings
        self.settings.first_run = False

    def get(self, section: str, key: Optional[str] = None) -> Any:
        """
        Get a setting value.

        Args:
            section: Section name (serial, radio, server, logging)
            key: Setting key (if None, returns entire section)

        Returns:
            Setting value or None if not found
        """
        if hasattr(self.settings, section):
            section_obj = getattr(self.settings, section)
            if key is None:
                return section_obj
            elif hasattr(section_obj, key):
                return getattr(section_obj, key)

        return None

    def set(self, section: str, key: str, value: Any) -> bool:
        """
        Set a setting value.

        Args:
            section: Section name (serial, radio, server, logging)
            key: Setting key
            value: New value

        Returns:
            bool: True if setting was changed
        """
        section_obj = getattr(self.settings, section, None)
        if section_obj is None or not dataclasses.is_dataclass(section_obj):
            logger.error(f"Unknown settings section: {section}")
            return False

        if not hasattr(section_obj, key):
            logger.error(f"Unknown setting: {section}.{key}")
            return False

        try:
            typed_value = _convert(value, getattr(section_obj, key))
        except (ValueError, TypeError) as e:
            logger.error(f"Error setting {section}.{key}={value!r}: {e}")
            return False

        setattr(section_obj, key, typed_value)
        return True

    def reset_to_defaults(self) -> None:
        """Reset all settings to default values."""
        self.settings = ApplicationSettings()
        logger.info("Settings reset to defaults")

    def get_available_serial_ports(self) -> List[Dict[str, str]]:
        """
        Get a list of available serial ports.

        Returns:
            list: One dict per port with device, manufacturer and serial number
        """
        try:
            import serial.tools.list_ports
            return [
                {
                    "device": port.device,
                    "manufacturer": port.manufacturer or "",
                    "serial_number": port.serial_number or "",
                }
                for port in serial.tools.list_ports.comports()
            ]
        except Exception as e:
            logger.error(f"Error listing serial ports: {e}")
            return []

    def apply_logging_settings(self) -> None:
        """Apply logging settings to the Python logging system."""
        log_settings = self.settings.logging

        # Convert level string to logging level
        level_map = {
            "DEBUG": logging.DEBUG,
            "INFO": logging.INFO,
            "WARNING": logging.WARNING,
            "ERROR": logging.ERROR,
            "CRITICAL": logging.CRITICAL
        }
        level = level_map.get(log_settings.level.upper(), logging.INFO)

        from rig_listener.core.log_config import configure_logging

        configure_logging(
            level=level,
            log_to_file=log_settings.log_to_file,
            log_file_path=log_settings.log_file_path or None,
            max_log_files=log_settings.max_log_files,
            max_log_size_mb=log_settings.max_log_size_mb
        )

        logger.debug(f"Logging level set to {log_settings.level}")

    def validate(self) -> Dict[str, List[str]]:
        """
        Validate settings for consistency and correctness.

        Returns:
            dict: Dictionary of validation errors by section
        """
        # Imported here to keep settings importable without the codecs
        from rig_listener.protocols import PROTOCOLS

        errors = {}
        brand = self.settings.radio.brand.strip().lower()

        # Validate radio settings
        radio_errors = []
        if brand not in PROTOCOLS:
            radio_errors.append(
                f"Unknown radio brand '{self.settings.radio.brand}' "
                f"(expected one of: {', '.join(sorted(PROTOCOLS))})"
            )
        if not 0x00 <= self.settings.radio.civ_address <= 0xFF:
            radio_errors.append("CI-V address must be between 0x00 and 0xFF")
        if self.settings.radio.poll_interval <= 0:
            radio_errors.append("Poll interval must be positive")
        if self.settings.radio.reconnect_delay <= 0:
            radio_errors.append("Reconnect delay must be positive")
        if radio_errors:
            errors["radio"] = radio_errors

        # Validate serial settings (not used in simulation mode)
        serial_errors = []
        if brand != "mock":
            if not self.settings.serial.port:
                serial_errors.append("Serial port cannot be empty")
            if self.settings.serial.baudrate <= 0:
                serial_errors.append("Baudrate must be positive")
            if self.settings.serial.bytesize not in constants.VALID_BYTESIZES:
                serial_errors.append("Data bits must be 5, 6, 7 or 8")
            if self.settings.serial.stopbits not in constants.VALID_STOPBITS:
                serial_errors.append("Stop bits must be 1, 1.5 or 2")
            if self.settings.serial.parity.lower() not in constants.VALID_PARITIES:
                serial_errors.append(f"Parity must be one of: {', '.join(constants.VALID_PARITIES)}")
            if self.settings.serial.timeout <= 0:
                serial_errors.append("Timeout must be positive")
        if serial_errors:
            errors["serial"] = serial_errors

        # Validate server settings
        server_errors = []
        if self.settings.server.port <= 0 or self.settings.server.port > 65535:
            server_errors.append("HTTP port must be between 1 and 65535")
        if server_errors:
            errors["server"] = server_errors

        # Validate logging settings
        logging_errors = []
        if self.settings.logging.log_to_file and not self.settings.logging.log_file_path:
            logging_errors.append("Log file path must be specified when logging to file")
        if self.settings.logging.max_log_files <= 0:
            logging_errors.append("Maximum log files must be positive")
        if self.settings.logging.max_log_size_mb <= 0:
            logging_errors.append("Maximum log size must be positive")
        if logging_errors:
            errors["logging"] = logging_errors

        return errors
