"""
Shared pytest fixtures for Rig-Listener tests
"""
import pytest
import queue
import serial
import tempfile
import threading
import time
import os

from rig_listener.core.radio_state import RadioState
from rig_listener.protocols import IcomProtocol, KenwoodProtocol, MockProtocol, YaesuProtocol


@pytest.fixture
def temp_config_file():
    """Create a temporary config file for testing"""
    with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
        f.write('{}')
        temp_path = f.name

    yield temp_path

    # Cleanup
    if os.path.exists(temp_path):
        os.remove(temp_path)


@pytest.fixture
def missing_config_file(tmp_path):
    """Path of a config file that does not exist yet"""
    return str(tmp_path / "rig-listener-config.json")


@pytest.fixture
def radio_state():
    """Fresh radio state store"""
    return RadioState()


@pytest.fixture
def state_events(radio_state):
    """List receiving every (prop, value) notification of radio_state"""
    events = []
    radio_state.add_listener(lambda prop, value: events.append((prop, value)))
    return events


@pytest.fixture
def yaesu():
    return YaesuProtocol()


@pytest.fixture
def kenwood():
    return KenwoodProtocol()


@pytest.fixture
def icom():
    return IcomProtocol(civ_address=0x94)


@pytest.fixture
def mock_protocol():
    return MockProtocol()


@pytest.fixture
def wait_until():
    """Poll a condition from a test thread until it holds or times out"""
    def _wait_until(condition, timeout=3.0, interval=0.01):
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if condition():
                return True
            time.sleep(interval)
        return condition()

    return _wait_until


@pytest.fixture
def yaesu_if_response():
    """Yaesu IF status: 14.074 MHz, mode USB"""
    # IF + channel(3) + freq(9) + clarifier(7) + mode(1) + misc(4) + ;
    return "IF001014074000+0000002" + "0000;"


@pytest.fixture
def kenwood_if_response():
    """Kenwood IF status: 7.074 MHz, mode LSB"""
    # IF + freq(11) + 16 filler chars + mode at index 29 + 6 filler + ;
    return "IF00007074000" + "0" * 16 + "1" + "0" * 6 + ";"


class FakeSerial:
    """In-memory stand-in for serial.Serial"""

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.written = []
        self.is_open = True
        self.broken = False
        self.fail_writes = False
        self._incoming = queue.Queue()

    @property
    def in_waiting(self):
        if self.broken:
            raise serial.SerialException("device reports readiness to read but returned no data")
        return self._incoming.qsize()

    def read(self, size=1):
        if self.broken:
            raise serial.SerialException("device disconnected")
        try:
            return self._incoming.get(timeout=0.01)
        except queue.Empty:
            return b""

    def write(self, data):
        if self.broken or self.fail_writes:
            raise serial.SerialTimeoutException("Write timeout")
        self.written.append(bytes(data))
        return len(data)

    def close(self):
        self.is_open = False

    # Test helpers
    def feed(self, data):
        self._incoming.put(data)

    def unplug(self):
        self.broken = True


class FakeSerialFactory:
    """Replaces serial.Serial; records every port it opens"""

    def __init__(self):
        self.ports = []
        self.open_attempts = 0
        self.fail_opens = 0
        self._lock = threading.Lock()

    def __call__(self, **kwargs):
        with self._lock:
            self.open_attempts += 1
            if self.fail_opens > 0:
                self.fail_opens -= 1
                raise serial.SerialException(f"could not open port {kwargs.get('port')}")
            port = FakeSerial(**kwargs)
            self.ports.append(port)
            return port

    @property
    def current(self):
        return self.ports[-1]


@pytest.fixture
def fake_serial(monkeypatch):
    """Patch serial.Serial with a factory of in-memory ports"""
    factory = FakeSerialFactory()
    monkeypatch.setattr(serial, "Serial", factory)
    return factory

