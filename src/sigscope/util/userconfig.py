# -*- coding: utf-8 -*-
"""User defaults file.

An optional INI file, `~/.sigscope/sigscope.ini` (or the path in
`$SIGSCOPE_CONFIG`), overrides built-in defaults:

[defaults]
output_format = hex
file_output_format = srzip
log_level = 3

A missing file, or a missing key, means the built-in default.
"""

from __future__ import annotations

import os
from configparser import ConfigParser, Error as ConfigParserError
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from loguru import logger

from .defaults import (
    CONFIG_DIR,
    CONFIG_ENV_VAR,
    DEFAULT_FILE_OUTPUT_FORMAT,
    DEFAULT_OUTPUT_FORMAT,
)

SECTION = "defaults"


@dataclass(frozen=True)
class UserConfig:
    output_format: str = DEFAULT_OUTPUT_FORMAT
    file_output_format: str = DEFAULT_FILE_OUTPUT_FORMAT
    log_level: Optional[int] = None


def user_config_path() -> Path:
    env = os.environ.get(CONFIG_ENV_VAR)
    if env:
        return Path(env)
    return CONFIG_DIR.joinpath("sigscope.ini")


def load_user_config(path: Optional[str | Path] = None) -> UserConfig:
    """Read the user defaults file.

    Parameters
    ----------
    path : str | Path, optional
        File to read, defaults to `user_config_path()`

    Returns
    -------
    UserConfig
        Built-in defaults overridden by whatever the file sets. An unreadable
        file is logged and ignored.
    """
    path = Path(path) if path else user_config_path()
    if not path.exists():
        return UserConfig()

    parser = ConfigParser()
    try:
        parser.read(path)
        if not parser.has_section(SECTION):
            return UserConfig()
        section = parser[SECTION]
        config = UserConfig(
            output_format=section.get("output_format", DEFAULT_OUTPUT_FORMAT),
            file_output_format=section.get(
                "file_output_format", DEFAULT_FILE_OUTPUT_FORMAT
            ),
            log_level=section.getint("log_level", fallback=None),
        )
        if config.log_level is not None and not 0 <= config.log_level <= 5:
            raise ValueError(f"log_level must be 0-5, got {config.log_level}")
    except (ConfigParserError, ValueError) as e:
        logger.warning("Ignoring unreadable config file {}: {}", path, e)
        return UserConfig()
    logger.debug("Loaded user config from {}: {}", path, config)
    return config
