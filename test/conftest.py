import numpy as np
import pytest
from loguru import logger

from sigscope.device import VIRTUAL_DRIVER, Device, get_drivers
from sigscope.types.packets import end_packet, header_packet, logic_packet


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "slow: marks test as slow running test")


@pytest.fixture(autouse=True)
def isolated_user_config(tmp_path, monkeypatch):
    """Keep the user's own ~/.sigscope/sigscope.ini out of the tests."""
    path = tmp_path / "no-such-config.ini"
    monkeypatch.setenv("SIGSCOPE_CONFIG", str(path))
    return path


@pytest.fixture(autouse=True)
def quiet_logs():
    # library code logs to loguru's default stderr sink unless the CLI resets it
    logger.remove()
    yield
    logger.remove()


@pytest.fixture
def demo_driver():
    return get_drivers()["demo"]


@pytest.fixture
def demo_device(demo_driver):
    device = demo_driver.scan()[0]
    device.open()
    yield device
    if device.is_connected():
        device.close()


class ScriptedDevice(Device):
    """Device whose acquisition yields a fixed list of packets."""

    def __init__(self, packets, model="scripted"):
        super().__init__(VIRTUAL_DRIVER, model=model)
        self.packets = list(packets)
        self.stopped = False

    def __str__(self):
        return f"{self.model} device"

    def acquisition(self):
        yield from self.packets

    def stop_acquisition(self):
        self.stopped = True


def scripted_packets(chunks=3, samples=4):
    packets = [header_packet()]
    for i in range(chunks):
        data = np.arange(i * samples, (i + 1) * samples, dtype=np.uint8)
        packets.append(logic_packet(data, 1))
    packets.append(end_packet())
    return packets


@pytest.fixture
def scripted_device():
    return ScriptedDevice(scripted_packets())


@pytest.fixture
def make_scripted_device():
    """Factory for devices replaying a given packet list."""
    return ScriptedDevice


@pytest.fixture
def make_scripted_packets():
    return scripted_packets
