# -*- coding: utf-8 -*-
"""# sigscope

Command-line front end for signal-acquisition hardware (logic analyzers,
oscilloscopes and similar instruments) and for replaying captured data.

The package is organised leaf-first:

- [types](types/index.html): config keys, packets and the error taxonomy.
- [device](device/index.html): the device/channel model, drivers and the
  simulated `demo` instrument.
- [formats](formats/index.html): input and output format plugins.
- [session](session/index.html): the session loop, the datafeed sink and
  file replay.
- [cli](cli/index.html): the `sigscope` command.

Examples
--------
```bash
$ sigscope -d demo --samples 64 -C D0,D1
$ sigscope -d demo --time 10ms -o capture.sr
$ sigscope -i capture.sr -O csv
```
"""

from ._version import __version__
