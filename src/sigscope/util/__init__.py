# -*- coding: utf-8 -*-
"""
Utility functions and constants for sigscope.

- Defaults (block size, default output formats, log level)
- Logging configuration and management
- The user defaults file
- Unit string parsing and formatting

See Also
--------
sigscope.util.logging : Logging configuration
sigscope.util.units : Size and time strings
"""

from .defaults import (
    BLOCK_SIZE,
    DEFAULT_FILE_OUTPUT_FORMAT,
    DEFAULT_LOGLEVEL,
    DEFAULT_OUTPUT_FORMAT,
    SINGLE_LINE_ERR_LOG,
)
from .logging import (
    clear_log,
    format_error_response,
    level_from_verbosity,
    log_default_path,
    shutdown_log,
    start_log,
)
from .userconfig import UserConfig, load_user_config, user_config_path
from .units import (
    format_samplerate,
    parse_boolstring,
    parse_sizestring,
    parse_timestring,
)
