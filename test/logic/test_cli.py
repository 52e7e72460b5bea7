import signal

import click.testing
import pytest

from sigscope.cli import cli, is_valid_invocation
from sigscope.cli.base import stop_on_interrupt
from sigscope.device import DemoDevice, DemoDriver
from sigscope.session import Session
from sigscope.types.keys import CONTINUOUS

QUIET = ["-l", "0"]
SMALL_DEMO = "demo:logic_channels=2:analog_channels=0"


@pytest.fixture
def cli_runner():
    return click.testing.CliRunner()


@pytest.fixture
def closed_devices(monkeypatch):
    """Record every DemoDevice.close() call."""
    closed = []
    original_close = DemoDevice.close

    def close(self):
        closed.append(self)
        original_close(self)

    monkeypatch.setattr(DemoDevice, "close", close)
    return closed


class TestInvocation:
    def test_no_arguments_prints_help(self, cli_runner):
        result = cli_runner.invoke(cli, [])
        assert result.exit_code == 1
        assert "Usage:" in result.output

    def test_driver_without_action(self, cli_runner):
        result = cli_runner.invoke(cli, ["-d", "demo"])
        assert result.exit_code == 1
        assert "Usage:" in result.output

    @pytest.mark.parametrize(
        "options, valid",
        [
            ({"version": True}, True),
            ({"scan": True}, True),
            ({"input_file": "x.sr"}, True),
            ({"driver": "demo", "samples": "10"}, True),
            ({"driver": "demo", "continuous": True}, True),
            ({"driver": "demo"}, False),
            ({"samples": "10"}, False),
        ],
    )
    def test_validity(self, options, valid):
        defaults = dict.fromkeys(
            [
                "version",
                "scan",
                "input_file",
                "driver",
                "show",
                "get",
                "set",
                "time",
                "samples",
                "frames",
                "continuous",
            ]
        )
        assert is_valid_invocation({**defaults, **options}) is valid

    def test_version(self, cli_runner):
        result = cli_runner.invoke(cli, ["-V"])
        assert result.exit_code == 0
        assert "sigscope 0.1.0" in result.output
        for name in ("demo", "csv", "binary", "bits", "srzip"):
            assert name in result.output


class TestScan:
    def test_scan_all(self, cli_runner):
        result = cli_runner.invoke(cli, ["--scan"])
        assert result.exit_code == 0
        assert (
            "demo - Demo device with 12 channels: D0 D1 D2 D3 D4 D5 D6 D7 A0 A1 A2 A3"
            in result.output
        )

    def test_scan_driver(self, cli_runner):
        result = cli_runner.invoke(cli, ["-d", SMALL_DEMO, "--scan"])
        assert result.exit_code == 0
        assert result.output == "demo - Demo device with 2 channels: D0 D1\n"

    def test_empty_scan_exits_1(self, cli_runner, monkeypatch):
        monkeypatch.setattr(DemoDriver, "_scan", lambda self, options: [])
        result = cli_runner.invoke(cli, ["-d", "demo", "--scan"])
        assert result.exit_code == 1
        result = cli_runner.invoke(cli, ["-d", "demo", "--samples", "10"])
        assert result.exit_code == 1
        assert "No devices found" in result.output

    def test_unknown_driver(self, cli_runner):
        result = cli_runner.invoke(cli, ["-d", "fx2lafw", "--scan"])
        assert result.exit_code == 1
        assert "Error: Driver fx2lafw not found" in result.output

    def test_unsupported_scan_option(self, cli_runner):
        result = cli_runner.invoke(cli, ["-d", "demo:samplerate=1M", "--scan"])
        assert result.exit_code == 1


class TestAcquisition:
    def test_samples_to_stdout(self, cli_runner, closed_devices):
        result = cli_runner.invoke(
            cli, ["-d", SMALL_DEMO, "--samples", "16", "-C", "D0,D1=clk"] + QUIET
        )
        assert result.exit_code == 0
        assert result.output == "D0:01010101 01010101\nclk:00110011 00110011\n"
        assert len(closed_devices) == 1

    def test_output_format(self, cli_runner):
        result = cli_runner.invoke(
            cli, ["-d", SMALL_DEMO, "--samples", "16", "-O", "hex"] + QUIET
        )
        assert result.output == "D0:55 55\nD1:33 33\n"

    def test_unknown_output_format(self, cli_runner, closed_devices):
        result = cli_runner.invoke(
            cli, ["-d", SMALL_DEMO, "--samples", "8", "-O", "morse"]
        )
        assert result.exit_code == 1
        assert "Unknown output format morse" in result.output
        assert len(closed_devices) == 1

    def test_user_default_format(self, cli_runner, isolated_user_config):
        isolated_user_config.write_text("[defaults]\noutput_format = hex\n")
        result = cli_runner.invoke(cli, ["-d", SMALL_DEMO, "--samples", "8"] + QUIET)
        assert result.output == "D0:55\nD1:33\n"

    def test_file_round_trip(self, cli_runner, tmp_path):
        path = tmp_path / "capture.sr"
        result = cli_runner.invoke(
            cli, ["-d", "demo:analog_channels=0", "--samples", "100", "-o", str(path)]
        )
        assert result.exit_code == 0
        assert path.exists()

        result = cli_runner.invoke(cli, ["-i", str(path), "-O", "csv"] + QUIET)
        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[1] == "; Samplerate: 200 kHz"
        assert lines[2] == "D0,D1,D2,D3,D4,D5,D6,D7"
        assert lines[3] == "0,0,0,0,0,0,0,0"
        assert lines[4] == "1,0,0,0,0,0,0,0"
        assert len(lines) == 3 + 100

    def test_session_file_channel_selection(self, cli_runner, tmp_path):
        path = tmp_path / "capture.sr"
        cli_runner.invoke(cli, ["-d", SMALL_DEMO, "--samples", "8", "-o", str(path)])
        result = cli_runner.invoke(cli, ["-i", str(path), "-C", "D1=clk"] + QUIET)
        assert result.output == "clk:00110011\n"

    def test_csv_input(self, cli_runner, tmp_path):
        path = tmp_path / "levels.csv"
        path.write_text("clk,data\n0,1\n1,1\n0,0\n1,0\n")
        result = cli_runner.invoke(cli, ["-i", str(path)] + QUIET)
        assert result.exit_code == 0
        assert result.output == "clk:0101\ndata:1100\n"

    def test_binary_input(self, cli_runner, tmp_path):
        path = tmp_path / "capture.bin"
        path.write_bytes(bytes([0, 1, 2, 3]))
        result = cli_runner.invoke(
            cli, ["-i", str(path), "-I", "binary:logic_channels=2"] + QUIET
        )
        assert result.exit_code == 0
        assert result.output == "D0:0101\nD1:0011\n"

    def test_unknown_input_file(self, cli_runner, tmp_path):
        path = tmp_path / "blob.dat"
        path.write_bytes(bytes(range(256)))
        result = cli_runner.invoke(cli, ["-i", str(path)])
        assert result.exit_code == 1
        assert "Unknown input file format" in result.output

    def test_missing_input_file(self, cli_runner, tmp_path):
        path = tmp_path / "nope.csv"
        result = cli_runner.invoke(cli, ["-i", str(path)])
        assert result.exit_code == 1
        assert not isinstance(result.exception, FileNotFoundError)
        assert "Error: No such file or directory" in result.output
        assert "nope.csv" in result.output

    def test_unwritable_output_file(self, cli_runner, tmp_path, closed_devices):
        path = tmp_path / "missing" / "out.txt"
        result = cli_runner.invoke(
            cli, ["-d", SMALL_DEMO, "--samples", "8", "-O", "bits", "-o", str(path)]
        )
        assert result.exit_code == 1
        assert "Error: No such file or directory" in result.output
        assert len(closed_devices) == 1

    def test_continuous_sets_device_option(self, cli_runner, monkeypatch):
        seen = []

        def record(session, sink, continuous=False):
            device = session.devices[0]
            seen.append((device.config_get(CONTINUOUS), continuous))

        monkeypatch.setattr("sigscope.cli.base.run_session", record)
        result = cli_runner.invoke(cli, ["-d", SMALL_DEMO, "--continuous"] + QUIET)
        assert result.exit_code == 0
        assert seen == [(True, True)]

    def test_unknown_channel(self, cli_runner, closed_devices):
        result = cli_runner.invoke(
            cli, ["-d", SMALL_DEMO, "--samples", "8", "-C", "D5"]
        )
        assert result.exit_code == 1
        assert "D5" in result.output
        assert len(closed_devices) == 1


class TestGetSetShow:
    def test_get(self, cli_runner, closed_devices):
        result = cli_runner.invoke(cli, ["-d", "demo", "--get", "samplerate"])
        assert result.exit_code == 0
        assert result.output == "200 kHz\n"
        assert len(closed_devices) == 1

    def test_get_after_config(self, cli_runner):
        result = cli_runner.invoke(
            cli, ["-d", "demo", "-c", "samplerate=1M", "--get", "samplerate"]
        )
        assert result.output == "1 MHz\n"

    def test_get_channel_group(self, cli_runner):
        result = cli_runner.invoke(cli, ["-d", "demo", "-g", "A0", "--get", "pattern"])
        assert result.output == "sine\n"

    def test_get_unknown(self, cli_runner):
        result = cli_runner.invoke(cli, ["-d", "demo", "--get", "bogus"])
        assert result.exit_code == 0
        assert result.output == "Unknown option bogus\n"

    def test_set(self, cli_runner, closed_devices):
        result = cli_runner.invoke(
            cli, ["-d", "demo", "-c", "samplerate=1M:limit_samples=10", "--set"]
        )
        assert result.exit_code == 0
        assert result.output == ""
        assert len(closed_devices) == 1

    def test_set_failure_still_closes(self, cli_runner, closed_devices):
        result = cli_runner.invoke(cli, ["-d", "demo", "-c", "bogus=1", "--set"])
        assert result.exit_code == 1
        assert "Error: Unknown option bogus" in result.output
        assert len(closed_devices) == 1

    def test_unknown_channel_group(self, cli_runner, closed_devices):
        result = cli_runner.invoke(cli, ["-d", "demo", "-g", "Z", "--get", "pattern"])
        assert result.exit_code == 1
        assert len(closed_devices) == 1

    def test_show(self, cli_runner, closed_devices):
        result = cli_runner.invoke(cli, ["-d", SMALL_DEMO, "--show"])
        assert result.exit_code == 0
        assert "Driver functions:" in result.output
        assert "demo - Demo device with 2 channels: D0 D1" in result.output
        assert "Supported configuration options across all channel groups:" in (
            result.output
        )
        assert "    samplerate: 200 kHz (" in result.output
        assert len(closed_devices) == 1

    def test_show_channel_group(self, cli_runner):
        result = cli_runner.invoke(
            cli, ["-d", SMALL_DEMO, "-g", "Logic", "--show"]
        )
        assert "Supported configuration options on channel group Logic:" in (
            result.output
        )
        assert "    pattern: incremental (" in result.output


def test_interrupt_stops_session():
    session = Session()
    previous = signal.getsignal(signal.SIGINT)
    with stop_on_interrupt(session, True):
        handler = signal.getsignal(signal.SIGINT)
        assert handler is not previous
        handler(signal.SIGINT, None)
    assert session.stop_requested
    assert signal.getsignal(signal.SIGINT) is previous
