# -*- coding: utf-8 -*-
"""
Input and output format plugins.

Input formats decode files into a virtual device and its packets; output
formats encode the datafeed of one device into bytes (or, for `srzip`, into a
file they write themselves).

Examples
--------
Encoding a capture as text:
```python
from sigscope.formats import get_output_formats

output = get_output_formats()["bits"].create_output(device)
for packet in packets:
    sys.stdout.buffer.write(output.receive(packet))
sys.stdout.buffer.write(output.end())
```

See Also
--------
sigscope.session.datafeed : The sink that drives an output
sigscope.session.replay : Feeding a file through an input
"""

from loguru import logger

from sigscope.types.keys import NUM_LOGIC_CHANNELS, SAMPLERATE

from .base import Input, InputFormat, Output, OutputFlag, OutputFormat
from .input_binary import BinaryInput
from .input_csv import CsvInput
from .output_csv import CsvOutput
from .output_raw import AnalogOutput, BinaryOutput
from .output_text import BitsOutput, HexOutput
from .srzip import SrzipOutput, load_srzip

# Populated on first access via get_input_formats() / get_output_formats()
INPUT_FORMATS: dict[str, InputFormat] = {}
OUTPUT_FORMATS: dict[str, OutputFormat] = {}


def get_input_formats() -> dict[str, InputFormat]:
    """Get mapping of input format names to formats."""
    global INPUT_FORMATS

    if not INPUT_FORMATS:
        for fmt in (
            InputFormat(
                "csv",
                "Comma-separated logic levels",
                CsvInput,
                option_keys={SAMPLERATE: 0, NUM_LOGIC_CHANNELS: 0},
                extensions=(".csv",),
            ),
            InputFormat(
                "binary",
                "Raw binary logic data",
                BinaryInput,
                option_keys={SAMPLERATE: 0, NUM_LOGIC_CHANNELS: 8},
                autodetect=False,
            ),
        ):
            INPUT_FORMATS[fmt.name] = fmt
        logger.debug("Registered input formats: {}", ", ".join(INPUT_FORMATS))
    return INPUT_FORMATS


def get_output_formats() -> dict[str, OutputFormat]:
    """Get mapping of output format names to formats."""
    global OUTPUT_FORMATS

    if not OUTPUT_FORMATS:
        for fmt in (
            OutputFormat("bits", "Bits", BitsOutput),
            OutputFormat("hex", "Hexadecimal digits", HexOutput),
            OutputFormat("csv", "Comma-separated values", CsvOutput),
            OutputFormat("binary", "Raw binary logic data", BinaryOutput),
            OutputFormat("analog", "ASCII analog data values and units", AnalogOutput),
            OutputFormat(
                "srzip",
                "srzip session file",
                SrzipOutput,
                flags=OutputFlag.INTERNAL_IO_HANDLING,
            ),
        ):
            OUTPUT_FORMATS[fmt.name] = fmt
        logger.debug("Registered output formats: {}", ", ".join(OUTPUT_FORMATS))
    return OUTPUT_FORMATS


__all__ = [
    "Input",
    "InputFormat",
    "Output",
    "OutputFlag",
    "OutputFormat",
    "get_input_formats",
    "get_output_formats",
    "load_srzip",
]
