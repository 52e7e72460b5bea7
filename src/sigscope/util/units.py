# -*- coding: utf-8 -*-
"""Parsing and formatting of unit strings.

Sizes and rates accept an SI multiplier and an optional `Hz` unit
(`"1M"`, `"250 kHz"`, `"2G"`), times accept a unit suffix (`"100ms"`, `"2s"`,
`"1.5m"`). Formatting produces strings that parse back to the same value.
"""

import re
from decimal import Decimal

SI_MULTIPLIERS = {
    "": 1,
    "k": 1_000,
    "K": 1_000,
    "m": 1_000_000,
    "M": 1_000_000,
    "g": 1_000_000_000,
    "G": 1_000_000_000,
}

TIME_UNITS_MS = {
    "": 1,
    "ms": 1,
    "s": 1_000,
    "m": 60_000,
    "h": 3_600_000,
}

TRUE_STRINGS = ("true", "yes", "on", "1", "y", "")
FALSE_STRINGS = ("false", "no", "off", "0", "n")

_SIZE_RE = re.compile(r"^\s*(\d+(?:\.\d*)?)\s*([kKmMgG]?)\s*(?:[hH][zZ])?\s*$")
_TIME_RE = re.compile(r"^\s*(\d+(?:\.\d*)?)\s*(ms|s|m|h|)\s*$")


def parse_sizestring(text: str) -> int:
    """Parse a size or rate string such as `"1M"` or `"250 kHz"` into an int.

    Raises
    ------
    ValueError
        If the string is not a size, or does not resolve to a whole number.
    """
    match = _SIZE_RE.match(text)
    if not match:
        raise ValueError(f"not a size string: {text!r}")
    number, suffix = match.groups()
    value = Decimal(number) * SI_MULTIPLIERS[suffix]
    if value != int(value):
        raise ValueError(f"size string {text!r} is not a whole number")
    return int(value)


def parse_timestring(text: str) -> int:
    """Parse a time string into milliseconds. A bare number is milliseconds."""
    match = _TIME_RE.match(text)
    if not match:
        raise ValueError(f"not a time string: {text!r}")
    number, unit = match.groups()
    value = Decimal(number) * TIME_UNITS_MS[unit]
    if value != int(value):
        raise ValueError(f"time string {text!r} is not a whole number of ms")
    return int(value)


def parse_boolstring(text: str) -> bool:
    lowered = text.strip().lower()
    if lowered in TRUE_STRINGS:
        return True
    if lowered in FALSE_STRINGS:
        return False
    raise ValueError(f"not a boolean: {text!r}")


def format_bool(value: bool) -> str:
    return "true" if value else "false"


def format_samplerate(rate: int) -> str:
    """Human readable rate, e.g. `1 MHz` or `250 kHz`.

    Falls back to plain Hz when the rate is not a whole multiple.
    """
    for suffix, multiplier in (("G", 10**9), ("M", 10**6), ("k", 10**3)):
        if rate >= multiplier and rate % multiplier == 0:
            return f"{rate // multiplier} {suffix}Hz"
    return f"{rate} Hz"
