"""
Unit tests for Settings
"""
import pytest
import os
import json
from rig_listener import constants
from rig_listener.core.settings import Settings, default_config_path


class TestSettings:
    """Tests for Settings class"""

    def test_settings_initialization(self, missing_config_file):
        """Test settings initializes with defaults"""
        settings = Settings(missing_config_file)
        assert settings.settings.serial.port == ""
        assert settings.settings.serial.baudrate == 38400
        assert settings.settings.serial.stopbits == 2
        assert settings.settings.radio.brand == "yaesu"
        assert settings.settings.radio.civ_address == 0x94
        assert settings.settings.radio.ptt_enabled is False
        assert settings.settings.server.port == 5555
        assert settings.settings.first_run is True

    def test_missing_file_not_created(self, missing_config_file):
        """Test a missing config file is left for the wizard to create"""
        settings = Settings(missing_config_file)

        assert settings.exists() is False
        assert not os.path.exists(missing_config_file)

    def test_default_path(self):
        """Test the default file name"""
        assert default_config_path().endswith(constants.CONFIG_FILE_NAME)

    def test_save_and_load(self, missing_config_file):
        """Test saving and loading settings"""
        settings = Settings(missing_config_file)

        settings.set('serial', 'port', '/dev/ttyUSB0')
        settings.set('radio', 'brand', 'icom')
        assert settings.save() is True

        settings2 = Settings(missing_config_file)
        assert settings2.get('serial', 'port') == '/dev/ttyUSB0'
        assert settings2.get('radio', 'brand') == 'icom'
        assert settings2.settings.first_run is False

    def test_saved_file_is_json(self, missing_config_file):
        """Test the file layout"""
        Settings(missing_config_file).save()

        with open(missing_config_file, encoding='utf-8') as f:
            data = json.load(f)

        assert set(data) >= {"serial", "radio", "server", "logging"}
        assert data["server"]["port"] == 5555

    def test_load_partial_file(self, temp_config_file):
        """Test missing keys keep their defaults and values are coerced"""
        with open(temp_config_file, 'w') as f:
            json.dump({"radio": {"brand": "icom", "civ_address": "0xA4", "poll_interval": 1},
                       "serial": {"stopbits": 1.5}}, f)

        settings = Settings(temp_config_file)

        assert settings.get('radio', 'civ_address') == 0xA4
        assert settings.get('radio', 'poll_interval') == 1.0
        assert settings.get('serial', 'stopbits') == 1.5
        assert settings.get('serial', 'baudrate') == 38400

    def test_load_ignores_bad_values(self, temp_config_file):
        """Test unconvertible values and unknown keys are skipped"""
        with open(temp_config_file, 'w') as f:
            json.dump({"server": {"port": "http"}, "radio": {"colour": "red"}}, f)

        settings = Settings(temp_config_file)

        assert settings.get('server', 'port') == 5555
        assert settings.get('radio', 'colour') is None

    def test_load_corrupt_file(self, temp_config_file):
        """Test an unreadable file leaves defaults and first_run set"""
        with open(temp_config_file, 'w') as f:
            f.write('{"serial": ')

        settings = Settings(temp_config_file)

        assert settings.exists() is True
        assert settings.load() is False
        assert settings.settings.first_run is True

    def test_get_setting(self, missing_config_file):
        """Test getting settings"""
        settings = Settings(missing_config_file)

        assert settings.get('server', 'port') == 5555
        assert settings.get('serial').baudrate == 38400
        assert settings.get('nope') is None
        assert settings.get('serial', 'nope') is None

    def test_set_setting(self, missing_config_file):
        """Test setting values with type coercion"""
        settings = Settings(missing_config_file)

        assert settings.set('serial', 'baudrate', 9600) is True
        assert settings.set('server', 'port', "8080") is True
        assert settings.set('radio', 'ptt_enabled', "yes") is True
        assert settings.set('radio', 'civ_address', "0x98") is True

        assert settings.get('serial', 'baudrate') == 9600
        assert settings.get('server', 'port') == 8080
        assert settings.get('radio', 'ptt_enabled') is True
        assert settings.get('radio', 'civ_address') == 0x98

    def test_set_rejects_bad_value(self, missing_config_file):
        """Test unconvertible values are refused"""
        settings = Settings(missing_config_file)

        assert settings.set('serial', 'baudrate', "fast") is False
        assert settings.set('serial', 'baudrate', True) is False
        assert settings.set('radio', 'ptt_enabled', "maybe") is False
        assert settings.get('serial', 'baudrate') == 38400

    def test_set_invalid_section(self, missing_config_file):
        """Test setting invalid section returns False"""
        settings = Settings(missing_config_file)
        assert settings.set('invalid_section', 'key', 'value') is False
        assert settings.set('version', 'key', 'value') is False

    def test_set_invalid_key(self, missing_config_file):
        """Test setting invalid key returns False"""
        settings = Settings(missing_config_file)
        assert settings.set('serial', 'invalid_key', 'value') is False

    def test_validate_valid_settings(self, missing_config_file):
        """Test validating valid settings"""
        settings = Settings(missing_config_file)
        settings.set('serial', 'port', '/dev/ttyUSB0')

        assert settings.validate() == {}

    def test_validate_missing_port(self, missing_config_file):
        """Test validation requires a serial port"""
        settings = Settings(missing_config_file)

        errors = settings.validate()
        assert 'serial' in errors

    def test_validate_mock_needs_no_port(self, missing_config_file):
        """Test simulation mode skips serial checks"""
        settings = Settings(missing_config_file)
        settings.set('radio', 'brand', 'mock')

        assert settings.validate() == {}

    @pytest.mark.parametrize("section,key,value", [
        ('serial', 'baudrate', -1),
        ('serial', 'bytesize', 9),
        ('serial', 'stopbits', 3),
        ('serial', 'parity', 'sometimes'),
        ('radio', 'brand', 'collins'),
        ('radio', 'civ_address', 0x100),
        ('radio', 'poll_interval', 0),
        ('radio', 'reconnect_delay', -1),
        ('server', 'port', 70000),
        ('logging', 'max_log_files', 0),
    ])
    def test_validate_invalid_values(self, missing_config_file, section, key, value):
        """Test validation catches each invalid value in its section"""
        settings = Settings(missing_config_file)
        settings.set('serial', 'port', '/dev/ttyUSB0')
        settings.set(section, key, value)

        errors = settings.validate()
        assert list(errors) == [section]

    def test_validate_log_file_path(self, missing_config_file):
        """Test file logging needs a path"""
        settings = Settings(missing_config_file)
        settings.set('serial', 'port', 'COM3')
        settings.set('logging', 'log_to_file', True)

        assert 'logging' in settings.validate()

    def test_reset_to_defaults(self, missing_config_file):
        """Test resetting to defaults"""
        settings = Settings(missing_config_file)
        settings.set('serial', 'port', 'COM10')

        settings.reset_to_defaults()
        assert settings.get('serial', 'port') == ''

    def test_get_available_serial_ports(self, missing_config_file, monkeypatch):
        """Test port listing through pyserial"""
        import serial.tools.list_ports

        class FakePortInfo:
            device = "/dev/ttyUSB0"
            manufacturer = "Silicon Labs"
            serial_number = None

        monkeypatch.setattr(serial.tools.list_ports, "comports", lambda: [FakePortInfo()])

        ports = Settings(missing_config_file).get_available_serial_ports()
        assert ports == [{"device": "/dev/ttyUSB0", "manufacturer": "Silicon Labs", "serial_number": ""}]
