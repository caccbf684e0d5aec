"""
Unit tests for the protocol registry and the simulation codec
"""
import pytest
from rig_listener.protocols import (
    PROTOCOLS, ConfigurationError, FrequencyReport, ModeReport, PTTReport, Unrecognized,
    IcomProtocol, KenwoodProtocol, MockProtocol, YaesuProtocol, create_protocol
)


class TestCreateProtocol:
    """Tests for create_protocol"""

    @pytest.mark.parametrize("brand,expected", [
        ("yaesu", YaesuProtocol),
        ("kenwood", KenwoodProtocol),
        ("elecraft", KenwoodProtocol),
        ("icom", IcomProtocol),
        ("mock", MockProtocol),
    ])
    def test_registered_brands(self, brand, expected):
        """Test every registered brand builds its codec"""
        assert isinstance(create_protocol(brand), expected)

    def test_brand_is_case_insensitive(self):
        """Test brand names from hand-edited config files"""
        assert isinstance(create_protocol(" Elecraft "), KenwoodProtocol)

    def test_icom_address(self):
        """Test the CI-V address reaches the Icom codec"""
        protocol = create_protocol("icom", civ_address=0x98)

        assert protocol.civ_address == 0x98

    def test_unknown_brand(self):
        """Test unknown brands are a configuration error"""
        with pytest.raises(ConfigurationError):
            create_protocol("collins")

        with pytest.raises(ConfigurationError):
            create_protocol("")

    def test_fresh_instances(self):
        """Test codecs do not share receive buffers"""
        first = create_protocol("yaesu")
        second = create_protocol("yaesu")
        first.decode(b"FA0140")

        assert second.decode(b"74000;") != [FrequencyReport(14074000)]
        assert set(PROTOCOLS) == {"yaesu", "kenwood", "elecraft", "icom", "mock"}


class TestMockProtocol:
    """Tests for MockProtocol"""

    def test_no_poll_commands(self, mock_protocol):
        """Test the simulated radio is never polled"""
        assert mock_protocol.build_poll_commands() == []

    def test_commands_loop_back(self, mock_protocol):
        """Test encoded commands decode to the matching reports"""
        data = (mock_protocol.encode_set_frequency(7074000)
                + mock_protocol.encode_set_mode("lsb")
                + mock_protocol.encode_set_ptt(True))

        assert mock_protocol.decode(data) == [
            FrequencyReport(7074000), ModeReport("LSB"), PTTReport(True)
        ]

    def test_unknown_mode_refused(self, mock_protocol):
        """Test labels outside the simulated mode list"""
        assert mock_protocol.encode_set_mode("OLIVIA") is None

    def test_unrecognized(self, mock_protocol):
        """Test other text is reported as unrecognized"""
        assert mock_protocol.decode(b"HELLO;") == [Unrecognized(b"HELLO")]
        assert mock_protocol.frames_discarded == 1
