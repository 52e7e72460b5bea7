import zipfile

import pytest

from sigscope.device import VirtualDevice
from sigscope.formats import Output, OutputFormat, get_output_formats
from sigscope.session import DatafeedSink, SinkState
from sigscope.types.errors import UnknownFormat
from sigscope.types.packets import end_packet, header_packet, logic_packet
from sigscope.util import UserConfig


class CountingOutput(Output):
    created = 0

    def __init__(self, format, device, filename=None):
        super().__init__(format, device, filename)
        CountingOutput.created += 1
        self.received = 0

    def receive(self, packet):
        self.received += 1
        return b"x"

    def _finish(self):
        return b"!"


@pytest.fixture
def counting_formats():
    CountingOutput.created = 0
    return {"count": OutputFormat("count", "Counts packets", CountingOutput)}


@pytest.fixture
def device():
    return VirtualDevice(["D0", "D1"], samplerate=1_000)


class TestBinding:
    def test_one_encoder_for_many_packets(self, counting_formats, device, tmp_path):
        path = tmp_path / "out.bin"
        sink = DatafeedSink(counting_formats, str(path), "count")
        assert sink.state is SinkState.UNINITIALIZED
        for _ in range(500):
            sink(device, logic_packet(b"\x01\x02", 1))
        assert sink.state is SinkState.BOUND
        assert sink.device is device
        assert CountingOutput.created == 1
        assert sink.output.received == 500
        sink.close()
        assert path.read_bytes() == b"x" * 500 + b"!"

    def test_close_without_packets(self, counting_formats, tmp_path):
        path = tmp_path / "never.bin"
        sink = DatafeedSink(counting_formats, str(path), "count")
        sink.close()
        assert CountingOutput.created == 0
        assert not path.exists()

    def test_close_twice(self, counting_formats, device, tmp_path):
        path = tmp_path / "out.bin"
        sink = DatafeedSink(counting_formats, str(path), "count")
        sink(device, header_packet())
        sink.close()
        sink.close()
        assert path.read_bytes() == b"x!"

    def test_unknown_format(self, device):
        sink = DatafeedSink(get_output_formats(), output_format="morse")
        with pytest.raises(UnknownFormat, match="morse"):
            sink(device, header_packet())


class TestDefaultFormat:
    def test_file_default(self):
        sink = DatafeedSink(get_output_formats(), output_file="capture.sr")
        assert sink.resolve_format().name == "srzip"

    def test_stdout_default(self):
        sink = DatafeedSink(get_output_formats())
        assert sink.resolve_format().name == "bits"

    def test_explicit_format_wins(self):
        sink = DatafeedSink(get_output_formats(), "capture.txt", "hex")
        assert sink.resolve_format().name == "hex"

    def test_user_defaults(self):
        config = UserConfig(output_format="hex", file_output_format="csv")
        sink = DatafeedSink(get_output_formats(), user_config=config)
        assert sink.resolve_format().name == "hex"
        sink = DatafeedSink(get_output_formats(), "out.csv", user_config=config)
        assert sink.resolve_format().name == "csv"


class TestStreams:
    def test_stdout(self, device, capsysbinary):
        sink = DatafeedSink(get_output_formats(), output_format="bits")
        sink(device, header_packet())
        sink(device, logic_packet(bytes([0, 1, 2, 3] * 2), 1))
        sink(device, end_packet())
        sink.close()
        out = capsysbinary.readouterr().out
        assert out == b"D0:01010101\nD1:00110011\n"

    def test_own_file_format_gets_no_stream(self, device, tmp_path):
        path = tmp_path / "capture.sr"
        sink = DatafeedSink(get_output_formats(), str(path))
        sink(device, header_packet())
        assert sink._stream is None
        sink(device, logic_packet(bytes(range(16)), 1))
        sink(device, end_packet())
        sink.close()
        with zipfile.ZipFile(path) as archive:
            assert archive.read("version") == b"2"
            assert archive.read("logic-1-1") == bytes(range(16))
