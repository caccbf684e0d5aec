"""
Unit tests for the Icom CI-V protocol
"""
import random

import pytest
from rig_listener.protocols import FrequencyReport, ModeReport, PTTReport, Unrecognized, IcomProtocol
from rig_listener.protocols.civ import _bcd_to_freq, _freq_to_bcd, default_civ_address


def reply(*payload, radio=0x94):
    """Frame sent by the radio to the controller"""
    return bytes([0xFE, 0xFE, 0xE0, radio, *payload, 0xFD])


class TestBCD:
    """Tests for the packed BCD frequency helpers"""

    def test_freq_to_bcd(self):
        """Test 14.074 MHz packs low digits first"""
        assert _freq_to_bcd(14074000) == bytes([0x00, 0x40, 0x07, 0x14, 0x00])

    def test_bcd_to_freq(self):
        """Test unpacking the same bytes"""
        assert _bcd_to_freq(bytes([0x00, 0x40, 0x07, 0x14, 0x00])) == 14074000

    @pytest.mark.parametrize("hz", [0, 1, 10, 135_700, 7_074_000, 1_296_200_000, 9_999_999_999])
    def test_inverse(self, hz):
        """Test decode(encode(hz)) == hz across the representable range"""
        assert _bcd_to_freq(_freq_to_bcd(hz)) == hz

    @pytest.mark.parametrize("position", range(10))
    def test_inverse_every_digit_position(self, position):
        """Test every digit value round trips in every nibble"""
        for digit in range(10):
            hz = digit * 10 ** position
            assert _bcd_to_freq(_freq_to_bcd(hz)) == hz

    def test_inverse_random_samples(self):
        """Test round trips over a seeded spread of the whole range"""
        rng = random.Random(7074)
        for _ in range(2000):
            hz = rng.randint(0, 9_999_999_999)
            assert _bcd_to_freq(_freq_to_bcd(hz)) == hz

    def test_extra_bytes_ignored(self):
        """Test only the first five bytes carry the frequency"""
        assert _bcd_to_freq(bytes([0x00, 0x40, 0x07, 0x14, 0x00, 0x99])) == 14074000


class TestIcomProtocol:
    """Tests for IcomProtocol"""

    def test_poll_commands(self, icom):
        """Test read frequency, read mode and read TX status requests"""
        assert icom.build_poll_commands() == [
            bytes([0xFE, 0xFE, 0x94, 0xE0, 0x03, 0xFD]),
            bytes([0xFE, 0xFE, 0x94, 0xE0, 0x04, 0xFD]),
            bytes([0xFE, 0xFE, 0x94, 0xE0, 0x1C, 0x00, 0xFD]),
        ]

    def test_decode_frequency(self, icom):
        """Test a read-frequency reply"""
        frames = icom.decode(reply(0x03, 0x00, 0x40, 0x07, 0x14, 0x00))

        assert frames == [FrequencyReport(14074000)]

    def test_decode_transceive_frequency(self, icom):
        """Test unsolicited frequency broadcasts are handled like replies"""
        frames = icom.decode(reply(0x00, 0x00, 0x50, 0x07, 0x07, 0x00))

        assert frames == [FrequencyReport(7075000)]

    def test_decode_mode(self, icom):
        """Test a read-mode reply with filter byte"""
        assert icom.decode(reply(0x04, 0x01, 0x01)) == [ModeReport("USB")]
        assert icom.decode(reply(0x01, 0x17)) == [ModeReport("DV")]

    def test_decode_unknown_mode(self, icom):
        """Test unmapped mode codes are reported literally"""
        assert icom.decode(reply(0x04, 0x22, 0x01)) == [ModeReport("MODE_22")]

    def test_decode_ptt(self, icom):
        """Test TX status replies"""
        assert icom.decode(reply(0x1C, 0x00, 0x01)) == [PTTReport(True)]
        assert icom.decode(reply(0x1C, 0x00, 0x00)) == [PTTReport(False)]

    def test_decode_batch_in_order(self, icom):
        """Test several frames in one read come out in order"""
        data = reply(0x03, 0x00, 0x40, 0x07, 0x14, 0x00) + reply(0x04, 0x03, 0x01) + reply(0x1C, 0x00, 0x00)

        assert icom.decode(data) == [FrequencyReport(14074000), ModeReport("CW"), PTTReport(False)]

    def test_foreign_address_discarded(self, icom):
        """Test the echo of our own command on the bus is dropped"""
        echo = icom.encode_set_frequency(14074000)

        assert icom.decode(echo) == []
        assert icom.frames_discarded == 1

    def test_frame_for_other_controller_discarded(self, icom):
        """Test frames to another controller are dropped"""
        frame = bytes([0xFE, 0xFE, 0xE1, 0x94, 0x03, 0x00, 0x40, 0x07, 0x14, 0x00, 0xFD])

        assert icom.decode(frame) == []

    def test_short_frame_discarded(self, icom):
        """Test frames below the minimum length are dropped"""
        assert icom.decode(bytes([0xFE, 0xFE, 0xE0, 0xFD])) == []
        assert icom.frames_discarded == 1

    def test_ack_is_unrecognized(self, icom):
        """Test the OK acknowledgement is reported as unrecognized"""
        frames = icom.decode(reply(0xFB))

        assert frames == [Unrecognized(reply(0xFB))]

    def test_leading_garbage_skipped(self, icom):
        """Test bytes before the preamble are ignored"""
        frames = icom.decode(b"\x00\x11\x22" + reply(0x04, 0x00, 0x01))

        assert frames == [ModeReport("LSB")]

    def test_partial_frame_is_buffered(self, icom):
        """Test a frame split across reads is reassembled"""
        frame = reply(0x03, 0x00, 0x40, 0x07, 0x14, 0x00)

        assert icom.decode(frame[:4]) == []
        assert icom.decode(frame[4:]) == [FrequencyReport(14074000)]

    def test_preamble_split_across_reads(self, icom):
        """Test a read ending in the first preamble byte loses nothing"""
        frame = reply(0x04, 0x05, 0x01)

        assert icom.decode(b"\x12" + frame[:1]) == []
        assert icom.decode(frame[1:]) == [ModeReport("FM")]

    def test_split_delivery_is_equivalent(self):
        """Test byte-at-a-time delivery yields the same frames as one read"""
        data = (b"\x00" + reply(0x03, 0x00, 0x40, 0x07, 0x14, 0x00) + reply(0x04, 0x01, 0x01)
                + bytes([0xFE, 0xFE, 0x94, 0xE0, 0x03, 0xFD]) + reply(0x1C, 0x00, 0x01))

        whole = IcomProtocol().decode(data)

        protocol = IcomProtocol()
        pieces = []
        for i in range(len(data)):
            pieces.extend(protocol.decode(data[i:i + 1]))

        assert pieces == whole
        assert whole == [FrequencyReport(14074000), ModeReport("USB"), PTTReport(True)]

    def test_garbage_does_not_raise(self, icom):
        """Test arbitrary bytes are absorbed"""
        icom.decode(bytes(range(256)) * 3)
        icom.decode(b"\xfe\xfe" + b"\x00" * 5000)

        assert icom.decode(reply(0x04, 0x02, 0x01)) == [ModeReport("AM")]

    def test_encode_set_frequency(self, icom):
        """Test set frequency is addressed to the radio"""
        assert icom.encode_set_frequency(14074000) == bytes(
            [0xFE, 0xFE, 0x94, 0xE0, 0x05, 0x00, 0x40, 0x07, 0x14, 0x00, 0xFD]
        )

    def test_encode_set_frequency_out_of_range(self, icom):
        """Test frequencies beyond ten BCD digits are refused"""
        assert icom.encode_set_frequency(10_000_000_000) is None
        assert icom.encode_set_frequency(-5) is None

    def test_set_frequency_round_trip(self, icom):
        """Test the BCD payload of a set command decodes to the same frequency"""
        for hz in (475_000, 14_074_000, 50_313_000, 1_296_200_000):
            command = icom.encode_set_frequency(hz)
            bcd = command[5:-1]
            assert icom.decode(reply(0x03, *bcd)) == [FrequencyReport(hz)]

    def test_encode_set_mode(self, icom):
        """Test set mode uses the default filter"""
        assert icom.encode_set_mode("cw") == bytes([0xFE, 0xFE, 0x94, 0xE0, 0x06, 0x03, 0x01, 0xFD])
        assert icom.encode_set_mode("DATA-USB") is None

    def test_encode_set_ptt(self, icom):
        """Test TX on and off"""
        assert icom.encode_set_ptt(True) == bytes([0xFE, 0xFE, 0x94, 0xE0, 0x1C, 0x00, 0x01, 0xFD])
        assert icom.encode_set_ptt(False) == bytes([0xFE, 0xFE, 0x94, 0xE0, 0x1C, 0x00, 0x00, 0xFD])

    def test_custom_address(self):
        """Test a non-default radio address is used in commands and replies"""
        protocol = IcomProtocol(civ_address=0xA4)

        assert protocol.build_poll_commands()[0][2] == 0xA4
        assert protocol.decode(reply(0x04, 0x01, 0x01, radio=0xA4)) == [ModeReport("USB")]

    def test_reset_drops_partial_data(self, icom):
        """Test reset clears buffered bytes"""
        icom.decode(bytes([0xFE, 0xFE, 0xE0, 0x94, 0x03, 0x00]))
        icom.reset()

        assert icom.decode(reply(0x04, 0x00, 0x01)) == [ModeReport("LSB")]


class TestCIVAddresses:
    """Tests for model default addresses"""

    def test_known_models(self):
        """Test factory defaults"""
        assert default_civ_address("IC-7300") == 0x94
        assert default_civ_address("ic-705") == 0xA4
        assert default_civ_address("IC-9700") == 0xA2

    def test_unknown_model(self):
        """Test unknown models fall back to the IC-7300 address"""
        assert default_civ_address("") == 0x94
        assert default_civ_address("IC-1") == 0x94
