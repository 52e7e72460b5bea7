# -*- coding: utf-8 -*-

import pathlib

DEFAULT_LOGLEVEL = "WARNING"  # keep stderr quiet, data goes to stdout
SINGLE_LINE_ERR_LOG = False  # reformat tracebacks into a single line

BLOCK_SIZE = 4096  # bytes read per chunk when replaying a file
DEFAULT_OUTPUT_FORMAT = "bits"
DEFAULT_FILE_OUTPUT_FORMAT = "srzip"

CONFIG_DIR = pathlib.Path.home().joinpath(".sigscope")
CONFIG_ENV_VAR = "SIGSCOPE_CONFIG"
