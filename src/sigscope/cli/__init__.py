"""
Command-line interface for sigscope.

A single command that scans for devices, inspects and configures them, runs
acquisitions and converts captured files. It is built with click; options are
grouped with click-option-group.

Examples
--------
Listing the demo device:
```bash
$ sigscope -d demo --scan
demo - Demo device with 12 channels: D0 D1 D2 D3 D4 D5 D6 D7 A0 A1 A2 A3
```

Capturing 16 samples of two channels:
```bash
$ sigscope -d demo --samples 16 -C D0,D1=clk
D0:01010101 01010101
clk:00110011 00110011
```

Reading an option of a channel group:
```bash
$ sigscope -d demo -g A0 --get pattern
sine
```

Invalid invocations print the help text and exit with status 1. Errors are
printed as a single `Error: ...` line, also with status 1.

See Also
--------
sigscope.context : The acquisition context the command drives
sigscope.session : Sessions and the datafeed sink
"""

from .base import cli, is_valid_invocation

__all__ = ["cli", "is_valid_invocation"]
