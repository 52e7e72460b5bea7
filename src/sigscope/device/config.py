"""Channel selection and option strings.

Option strings are colon separated `key=value` pairs, optionally led by a
name: `demo:logic_channels=4` names a driver, `binary:samplerate=1M` an input
format, and `samplerate=1M:limit_samples=100` is a plain config string.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from loguru import logger

from sigscope.device.device import ChannelGroup, Configurable, Device
from sigscope.types.errors import UnknownChannel
from sigscope.types.keys import (
    LIMIT_FRAMES,
    LIMIT_MSEC,
    LIMIT_SAMPLES,
    Capability,
    ConfigKey,
    lookup,
)

# acquisition limit keys and the command-line options feeding them
LIMIT_OPTIONS = {
    LIMIT_MSEC: "time",
    LIMIT_SAMPLES: "samples",
    LIMIT_FRAMES: "frames",
}


def _split_pair(pair: str) -> tuple[str, str]:
    name, _, value = pair.partition("=")
    return name.strip(), value


def parse_options(pairs: Sequence[str]) -> dict[str, Any]:
    """Resolve `key=value` pairs into typed values by identifier.

    Raises
    ------
    UnknownKey
        If an identifier is not registered.
    InvalidValue
        If a value does not parse.
    """
    options = {}
    for pair in pairs:
        if not pair:
            continue
        name, value = _split_pair(pair)
        options[name] = lookup(name).parse_string(value)
    return options


def parse_option_string(text: str) -> tuple[str, dict[str, Any]]:
    """Split `name:key=value:...` into the name and its typed options."""
    name, *pairs = text.split(":")
    return name, parse_options(pairs)


def select_channels(device: Device, channels: Optional[str | Sequence[str]]) -> None:
    """Enable exactly the named channels, renaming any given as `old=new`.

    Parameters
    ----------
    device : Device
        Device whose channels are selected
    channels : str | Sequence[str] | None
        Comma separated string or sequence of `name` / `name=newname`
        entries. `None` leaves every channel as it is.

    Raises
    ------
    UnknownChannel
        If an entry names a channel the device does not have.
    """
    if channels is None:
        return
    if isinstance(channels, str):
        channels = channels.split(",")

    wanted: dict[str, str] = {}
    for entry in channels:
        entry = entry.strip()
        if not entry:
            continue
        name, new_name = _split_pair(entry)
        wanted[name] = new_name.strip()

    known = {c.name for c in device.channels}
    missing = [name for name in wanted if name not in known]
    if missing:
        raise UnknownChannel(f"Unknown channel(s): {', '.join(missing)}")

    for channel in device.channels:
        channel.enabled = channel.name in wanted
        new_name = wanted.get(channel.name)
        if new_name:
            logger.debug("Renaming channel {} to {}", channel.name, new_name)
            channel.name = new_name


def select_channel_group(device: Device, name: Optional[str]) -> Optional[ChannelGroup]:
    if not name or not device.channel_groups:
        return None
    return device.channel_groups.get(name)


def apply_config(configurable: Configurable, config: str) -> None:
    """Apply a `key=value:key=value` string in order.

    The first failing pair raises and stops processing; pairs before it stay
    applied.

    Raises
    ------
    UnknownKey, InvalidValue, UnsupportedCapability
    """
    for pair in config.split(":"):
        if not pair:
            continue
        name, value = _split_pair(pair)
        key = lookup(name)
        configurable.config_set(key, key.parse_string(value))


def apply_limits(device: Device, **limits: Optional[str]) -> None:
    """Set acquisition limits from raw `time`, `samples` and `frames` strings."""
    for key, option in LIMIT_OPTIONS.items():
        value = limits.get(option)
        if value:
            device.config_set(key, key.parse_string(value))


def get_option(configurable: Configurable, identifier: str) -> str:
    """Return the text `--get` prints for one key.

    Unknown or ungettable keys produce a diagnostic line rather than an
    error, so a series of gets carries on past a bad one.
    """
    key = _find_key(configurable, identifier)
    if key is None:
        return f"Unknown option {identifier}"
    if not configurable.config_check(key, Capability.GET):
        return f"Failed to get {identifier}"
    return key.display_value(configurable.config_get(key))


def _find_key(configurable: Configurable, identifier: str) -> Optional[ConfigKey]:
    for key in configurable.config_keys():
        if key.identifier == identifier:
            return key
    return None
