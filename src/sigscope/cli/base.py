import signal
from contextlib import contextmanager
from typing import Optional

import click
from click_option_group import optgroup
from loguru import logger
from rich.console import Console
from rich.table import Table

from sigscope.context import Context
from sigscope.device.config import (
    apply_config,
    apply_limits,
    get_option,
    parse_option_string,
    select_channel_group,
    select_channels,
)
from sigscope.device.show import show_device, summarize_device
from sigscope.session.datafeed import DatafeedSink
from sigscope.session.replay import replay_file
from sigscope.types.errors import (
    DeviceError,
    DeviceNotFound,
    FormatMismatch,
    SigscopeError,
    UnknownChannel,
)
from sigscope.types.keys import CONTINUOUS, Capability
from sigscope.util import (
    DEFAULT_LOGLEVEL,
    format_error_response,
    level_from_verbosity,
    load_user_config,
    shutdown_log,
    start_log,
)

ACQUISITION_OPTIONS = ("show", "get", "set", "time", "samples", "frames", "continuous")


def is_valid_invocation(options: dict) -> bool:
    """Whether the options ask for something sigscope can do."""
    if options["version"] or options["scan"] or options["input_file"]:
        return True
    return bool(options["driver"]) and any(options[o] for o in ACQUISITION_OPTIONS)


def setup_logging(
    loglevel: Optional[int],
    log_to_file: bool = False,
    log_path: str = "",
    user_level: Optional[int] = None,
) -> None:
    """Start logging at the -l level, else the user config's, else the default."""
    verbosity = loglevel if loglevel is not None else user_level
    if verbosity is None:
        level = DEFAULT_LOGLEVEL
    else:
        level = level_from_verbosity(verbosity)
    start_log(
        log_to_file=log_to_file,
        log_to_stderr=True,
        log_path=log_path,
        log_level=level,
    )


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@optgroup.group("General")
@optgroup.option("--version", "-V", is_flag=True, help="Show version and plugins")
@optgroup.option(
    "--loglevel",
    "-l",
    type=click.IntRange(0, 5),
    default=None,
    help="Log verbosity, 0 (silent) to 5 (trace) (default: 2)",
)
@optgroup.option(
    "--log-to-file/--no-log-to-file",
    default=False,
    help="Enable/disable logging to file (default: disabled)",
)
@optgroup.option(
    "--log-path",
    default="",
    help="Custom path for log file (default: ~/.sigscope/sigscope.log)",
)
@optgroup.group("Device")
@optgroup.option(
    "--driver", "-d", default=None, help="Driver to use, e.g. demo:logic_channels=4"
)
@optgroup.option(
    "--config",
    "-c",
    default=None,
    help="Device options, e.g. samplerate=1M:pattern=random",
)
@optgroup.option(
    "--channels", "-C", default=None, help="Channels to use, e.g. D0,D1=clk"
)
@optgroup.option(
    "--channel-group", "-g", default=None, help="Channel group to configure"
)
@optgroup.option("--scan", is_flag=True, help="Scan for devices")
@optgroup.option("--show", is_flag=True, help="Show device detail")
@optgroup.option("--get", default=None, metavar="KEY", help="Get a device option only")
@optgroup.option("--set", is_flag=True, help="Set device options only")
@optgroup.group("Input/Output")
@optgroup.option(
    "--input-file",
    "-i",
    type=click.Path(dir_okay=False),
    default=None,
    help="Load input from file",
)
@optgroup.option(
    "--input-format", "-I", default=None, help="Input format, e.g. binary:samplerate=1M"
)
@optgroup.option(
    "--output-file",
    "-o",
    type=click.Path(dir_okay=False),
    default=None,
    help="Save output to file",
)
@optgroup.option("--output-format", "-O", default=None, help="Output format")
@optgroup.group("Acquisition")
@optgroup.option("--time", default=None, help="How long to sample, e.g. 100ms or 2s")
@optgroup.option("--samples", default=None, help="Number of samples to acquire")
@optgroup.option("--frames", default=None, help="Number of frames to acquire")
@optgroup.option(
    "--continuous", is_flag=True, help="Sample continuously (Ctrl-C stops)"
)
@click.pass_context
def cli(ctx, **options):
    """sigscope - acquire and convert logic analyzer and oscilloscope data.

    Examples:

    - `sigscope --scan`

    - `sigscope -d demo --samples 64 -C D0,D1=clk`

    - `sigscope -d demo --time 10ms -o capture.sr`

    - `sigscope -i capture.sr -O csv`
    """
    user_config = load_user_config()
    setup_logging(
        options["loglevel"],
        options["log_to_file"],
        options["log_path"],
        user_config.log_level,
    )
    try:
        if not is_valid_invocation(options):
            click.echo(ctx.get_help())
            ctx.exit(1)

        context = Context.create()
        if options["version"]:
            print_version(context)
        elif options["scan"] and not options["driver"]:
            scan_all(context)
        elif options["input_file"]:
            sink = make_sink(context, options, user_config)
            try:
                run_input_file(context, options, sink)
            finally:
                sink.close()
        else:
            run_driver(context, options, user_config)
    except SigscopeError as e:
        logger.debug(format_error_response())
        raise click.ClickException(str(e)) from e
    except OSError as e:
        logger.debug(format_error_response())
        message = f"{e.strerror}: {e.filename}" if e.filename else str(e)
        raise click.ClickException(message) from e
    finally:
        shutdown_log()


def print_version(context: Context):
    """Print the version and every registered driver and format."""
    console = Console(color_system="standard")
    console.print(f"sigscope {context.package_version}")

    for title, entries in (
        ("Supported hardware drivers", context.drivers.values()),
        ("Supported input formats", context.input_formats.values()),
        ("Supported output formats", context.output_formats.values()),
    ):
        table = Table(title=title, title_justify="left", show_header=False, box=None)
        table.add_column("Name", style="bold")
        table.add_column("Description")
        for entry in entries:
            description = getattr(entry, "long_name", None) or entry.description
            table.add_row(entry.name, description)
        console.print(table)


def scan_all(context: Context):
    """Scan every driver with its default probe and list what was found."""
    for driver in context.drivers.values():
        for device in driver.scan():
            click.echo(summarize_device(device).line())


def make_sink(context: Context, options: dict, user_config) -> DatafeedSink:
    return DatafeedSink(
        context.output_formats,
        output_file=options["output_file"],
        output_format=options["output_format"],
        user_config=user_config,
    )


@contextmanager
def stop_on_interrupt(session, enabled: bool):
    """Make Ctrl-C stop the session instead of killing the process."""
    if not enabled:
        yield
        return
    previous = signal.signal(signal.SIGINT, lambda signum, frame: session.stop())
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def run_session(session, sink: DatafeedSink, continuous: bool = False):
    session.add_datafeed_callback(sink)
    session.start()
    with stop_on_interrupt(session, continuous):
        session.run()


def run_input_file(context: Context, options: dict, sink: DatafeedSink):
    """Replay a session file, or decode a raw file, into the sink."""
    path = options["input_file"]
    if options["input_format"]:
        name, input_options = parse_option_string(options["input_format"])
        input = context.input_format(name).create_input(input_options)
    else:
        try:
            session = context.load_session(path)
        except FormatMismatch as e:
            logger.debug("{}, decoding as a raw file", e)
            input = context.open_file(path)
        else:
            device = session.devices[0]
            try:
                select_channels(device, options["channels"])
                run_session(session, sink, options["continuous"])
            finally:
                device.close()
            return
    replay_file(path, input, sink, options["channels"])


def run_driver(context: Context, options: dict, user_config):
    """Scan with the -d driver, then show, get/set or acquire."""
    name, scan_options = parse_option_string(options["driver"])
    devices = context.driver(name).scan(scan_options)
    if not devices:
        raise DeviceNotFound(f"No devices found for driver {name}")

    if options["scan"]:
        for device in devices:
            click.echo(summarize_device(device).line())
        return

    device = devices[0]
    ok, message = device.open()
    if not ok:
        raise DeviceError(message)
    try:
        select_channels(device, options["channels"])
        channel_group = select_channel_group(device, options["channel_group"])
        if options["channel_group"] and channel_group is None:
            raise UnknownChannel(f"Unknown channel group {options['channel_group']}")

        if options["show"]:
            for line in show_device(device, channel_group).lines():
                click.echo(line)
            return

        apply_limits(
            device,
            time=options["time"],
            samples=options["samples"],
            frames=options["frames"],
        )
        if options["config"]:
            apply_config(channel_group or device, options["config"])
        if options["get"]:
            click.echo(get_option(channel_group or device, options["get"]))
        if options["get"] or options["set"]:
            return

        if options["continuous"] and device.config_check(CONTINUOUS, Capability.SET):
            device.config_set(CONTINUOUS, True)
        session = context.create_session()
        session.add_device(device)
        sink = make_sink(context, options, user_config)
        try:
            run_session(session, sink, options["continuous"])
        finally:
            sink.close()
    finally:
        device.close()
