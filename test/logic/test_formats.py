import zipfile

import numpy as np
import pytest

from sigscope.context import Context
from sigscope.device import SessionFileDevice, VirtualDevice
from sigscope.formats import get_input_formats, get_output_formats, load_srzip
from sigscope.formats.input_csv import CsvInput
from sigscope.types.errors import FormatMismatch, UnknownKey, UnsupportedOption
from sigscope.types.keys import CAPTUREFILE, SAMPLERATE
from sigscope.types.packets import (
    PacketType,
    analog_packet,
    end_packet,
    header_packet,
    logic_packet,
    meta_packet,
)


def two_bit_counter(samples):
    """D0 toggles every sample, D1 every second sample."""
    return logic_packet(np.arange(samples, dtype=np.uint8) % 4, 1)


@pytest.fixture
def device():
    return VirtualDevice(["D0", "D1"], samplerate=1_000_000)


def encode(name, device, packets, filename=None):
    output = get_output_formats()[name].create_output(device, filename)
    out = b"".join(output.receive(p) for p in packets)
    return out + output.end()


class TestTextOutputs:
    def test_bits_flushes_at_end(self, device):
        packets = [header_packet(), two_bit_counter(16), end_packet()]
        out = encode("bits", device, packets)
        assert out == b"D0:01010101 01010101\nD1:00110011 00110011\n"

    def test_bits_full_lines(self, device):
        output = get_output_formats()["bits"].create_output(device)
        out = output.receive(two_bit_counter(64 + 8))
        lines = out.decode().splitlines()
        assert lines[0] == "D0:" + " ".join(["01010101"] * 8)
        assert len(lines) == 2
        assert output.end() == b"D0:01010101\nD1:00110011\n"
        assert output.end() == b""

    def test_bits_skips_disabled(self, device):
        device.channels[0].enabled = False
        out = encode("bits", device, [two_bit_counter(8), end_packet()])
        assert out == b"D1:00110011\n"

    def test_hex(self, device):
        out = encode("hex", device, [two_bit_counter(16), end_packet()])
        assert out == b"D0:55 55\nD1:33 33\n"

    def test_csv(self, device):
        device.channels[1].name = "clk"
        packets = [meta_packet({SAMPLERATE: 2_000_000}), two_bit_counter(3)]
        lines = encode("csv", device, packets).decode().splitlines()
        assert lines[0].startswith("; CSV generated by sigscope")
        assert lines[1] == "; Samplerate: 2 MHz"
        assert lines[2:] == ["D0,clk", "0,0", "1,0", "0,1"]

    def test_binary(self, device):
        out = encode("binary", device, [header_packet(), two_bit_counter(4)])
        assert out == bytes([0, 1, 2, 3])

    def test_analog(self):
        device = VirtualDevice(analog_names=["A0"])
        packet = analog_packet(device.analog_channels, [1.5, -0.25])
        assert encode("analog", device, [packet]) == b"A0: 1.5 V\nA0: -0.25 V\n"


class TestSrzip:
    def write(self, device, path, chunks=2):
        packets = [header_packet(), meta_packet({SAMPLERATE: 1_000_000})]
        packets += [
            logic_packet(np.arange(i * 10, i * 10 + 10, dtype=np.uint8), 1)
            for i in range(chunks)
        ]
        packets.append(end_packet())
        assert encode("srzip", device, packets, str(path)) == b""

    def test_container(self, device, tmp_path):
        path = tmp_path / "capture.sr"
        self.write(device, path)
        with zipfile.ZipFile(path) as archive:
            assert archive.read("version") == b"2"
            metadata = archive.read("metadata").decode()
            assert "[device 1]" in metadata
            assert "samplerate=1 MHz" in metadata
            assert "probe2=D1" in metadata
            assert archive.read("logic-1-2") == bytes(range(10, 20))

    def test_needs_a_filename(self, device):
        with pytest.raises(Exception, match="needs an output file"):
            get_output_formats()["srzip"].create_output(device)

    def test_load_reproduces_samples(self, tmp_path):
        device = VirtualDevice(["D0", "D1", "D2", "D3"], samplerate=1_000_000)
        device.channels[2].enabled = False
        device.channels[1].name = "clk"
        path = tmp_path / "capture.sr"
        self.write(device, path, chunks=3)

        loaded = load_srzip(path)
        assert isinstance(loaded, SessionFileDevice)
        assert [c.name for c in loaded.channels] == ["D0", "clk", "D2", "D3"]
        assert [c.enabled for c in loaded.channels] == [True, True, False, True]
        assert loaded.config_get(SAMPLERATE) == 1_000_000
        assert loaded.config_get(CAPTUREFILE) == "logic-1"

        packets = list(loaded.acquisition())
        assert packets[0].type is PacketType.HEADER
        assert packets[1].payload.config[SAMPLERATE] == 1_000_000
        assert packets[-1].type is PacketType.END
        data = b"".join(
            p.payload.to_bytes() for p in packets if p.type is PacketType.LOGIC
        )
        assert data == bytes(range(30))

    def test_disabled_channels_keep_their_names(self, tmp_path):
        device = VirtualDevice(["D0", "D1", "D2"], samplerate=1_000_000)
        device.channels[1].name = "miso"
        device.channels[1].enabled = False
        path = tmp_path / "capture.sr"
        self.write(device, path, chunks=1)
        with zipfile.ZipFile(path) as archive:
            metadata = archive.read("metadata").decode()
        assert "disabled probe2=miso" in metadata
        assert "\nprobe2=" not in metadata

        loaded = load_srzip(path)
        assert [c.name for c in loaded.channels] == ["D0", "miso", "D2"]
        assert [c.enabled for c in loaded.channels] == [True, False, True]

    def test_unnamed_channels_get_default_names(self, tmp_path):
        path = tmp_path / "foreign.sr"
        with zipfile.ZipFile(path, "w") as archive:
            archive.writestr("version", "2")
            archive.writestr(
                "metadata",
                "[device 1]\ncapturefile=logic-1\ntotal probes=3\n"
                "probe1=clk\nprobe3=cs\nunitsize=1\n",
            )
            archive.writestr("logic-1-1", bytes(4))
        loaded = load_srzip(path)
        assert [c.name for c in loaded.channels] == ["clk", "D1", "cs"]
        assert [c.enabled for c in loaded.channels] == [True, False, True]

    def test_empty_capture_is_loadable(self, device, tmp_path):
        path = tmp_path / "empty.sr"
        encode("srzip", device, [header_packet(), end_packet()], str(path))
        assert load_srzip(path).channels[0].name == "D0"

    def test_not_a_session(self, tmp_path):
        path = tmp_path / "levels.csv"
        path.write_text("0,1\n")
        with pytest.raises(FormatMismatch):
            load_srzip(path)

    def test_zip_without_metadata(self, tmp_path):
        path = tmp_path / "other.zip"
        with zipfile.ZipFile(path, "w") as archive:
            archive.writestr("readme.txt", "hello")
        with pytest.raises(FormatMismatch):
            load_srzip(path)

    def test_context_load_session(self, device, tmp_path):
        path = tmp_path / "capture.sr"
        self.write(device, path)
        session = Context().load_session(path)
        assert len(session.devices) == 1
        assert session.devices[0].session is session


class TestInputFormats:
    def test_registry(self):
        formats = get_input_formats()
        assert set(formats) == {"csv", "binary"}
        assert not formats["binary"].autodetect

    def test_options(self):
        fmt = get_input_formats()["csv"]
        input = fmt.create_input({"samplerate": 5})
        assert input.options[SAMPLERATE] == 5
        with pytest.raises(UnsupportedOption):
            fmt.create_input({"pattern": "random"})
        with pytest.raises(UnknownKey):
            fmt.create_input({"bogus": 1})

    def test_csv_sniff(self):
        assert CsvInput.sniff(b"clk,data\n0,1\n")
        assert not CsvInput.sniff(b"\x00\x01\x02,")
        assert not CsvInput.sniff(b"just some text\n")

    def test_open_file_detects_csv(self, tmp_path):
        path = tmp_path / "levels.txt"
        path.write_text("clk,data\n0,1\n")
        input = Context().open_file(path)
        assert input.format.name == "csv"

    def test_open_file_unknown(self, tmp_path):
        path = tmp_path / "blob.dat"
        path.write_bytes(bytes(range(256)))
        with pytest.raises(FormatMismatch):
            Context().open_file(path)

    def test_binary_keeps_partial_samples(self):
        input = get_input_formats()["binary"].create_input({"logic_channels": 16})
        input.send(b"\x01\x02\x03")
        device = input.device
        assert device.unit_size == 2
        input.send(b"\x04")
        input.end()
        packets = device._backlog
        logic = [p.payload for p in packets if p.type is PacketType.LOGIC]
        assert b"".join(chunk.to_bytes() for chunk in logic) == b"\x01\x02\x03\x04"
        assert packets[-1].type is PacketType.END
