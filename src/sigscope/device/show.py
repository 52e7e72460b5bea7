"""Device inspection report (`--show`).

`show_device()` builds a `DeviceReport` without touching device state. The
report serialises with `to_dict()` (mashumaro) and renders the familiar text
form with `lines()`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from mashumaro import DataClassDictMixin

from sigscope.device.device import ChannelGroup, Configurable, Device
from sigscope.types.keys import CONN, Capability


@dataclass
class OptionReport(DataClassDictMixin):
    """One configuration key of the inspected scope."""

    identifier: str
    description: str
    value: Optional[str] = None
    values: Optional[list[str]] = None

    def line(self) -> str:
        text = f"    {self.identifier}: {self.value or ''}"
        if self.values is not None:
            text += f" ({', '.join(self.values)})"
        return text


@dataclass
class DeviceSummary(DataClassDictMixin):
    driver: str
    vendor: str
    model: str
    version: str
    channels: list[str]
    conn: Optional[str] = None

    def line(self) -> str:
        conn = f":conn={self.conn}" if self.conn else ""
        ident = " ".join(s for s in (self.vendor, self.model, self.version) if s)
        return (
            f"{self.driver}{conn} - {ident} with {len(self.channels)} channels: "
            + " ".join(self.channels)
        )


@dataclass
class DeviceReport(DataClassDictMixin):
    """Everything `--show` reports about a device.

    Attributes
    ----------
    driver_functions : list[str]
        Descriptions of the driver-level functions
    scan_options : dict[str, str]
        Scan option identifiers and descriptions
    device : DeviceSummary
        Identity of the device
    channel_groups : dict[str, list[str]]
        Channel names per channel group
    scope : Optional[str]
        Channel group the options belong to, or None for the whole device
    options : list[OptionReport]
        Every key of the scope with its value and allowed values
    """

    driver_functions: list[str]
    scan_options: dict[str, str]
    device: DeviceSummary
    channel_groups: dict[str, list[str]] = field(default_factory=dict)
    scope: Optional[str] = None
    options: list[OptionReport] = field(default_factory=list)

    def option(self, identifier: str) -> Optional[OptionReport]:
        for option in self.options:
            if option.identifier == identifier:
                return option
        return None

    def lines(self) -> list[str]:
        out = []
        if self.driver_functions:
            out.append("Driver functions:")
            out.extend(f"    {d}" for d in self.driver_functions)
        if self.scan_options:
            out.append("Scan options:")
            out.extend(f"    {k}: {d}" for k, d in self.scan_options.items())
        out.append(self.device.line())
        if self.channel_groups:
            out.append("Channel groups:")
            for name, channels in self.channel_groups.items():
                noun = "channels" if len(channels) > 1 else "channel"
                out.append(f"    {name}: {noun} {' '.join(channels)}")
        if self.options:
            where = (
                f"on channel group {self.scope}"
                if self.scope
                else "across all channel groups"
            )
            out.append(f"Supported configuration options {where}:")
            out.extend(option.line() for option in self.options)
        return out


def summarize_device(device: Device) -> DeviceSummary:
    """Identity line data, as printed by `--scan`."""
    conn = None
    if CONN in device.config_keys() and device.config_check(CONN, Capability.GET):
        conn = str(device.config_get(CONN))
    return DeviceSummary(
        driver=device.driver.name,
        vendor=device.vendor,
        model=device.model,
        version=device.version,
        channels=[c.name for c in device.channels],
        conn=conn,
    )


def _option_report(configurable: Configurable, key) -> OptionReport:
    report = OptionReport(key.identifier, key.description)
    if configurable.config_check(key, Capability.GET):
        report.value = key.display_value(configurable.config_get(key))
    if configurable.config_check(key, Capability.LIST):
        report.values = [key.display_value(v) for v in configurable.config_list(key)]
    return report


def show_device(
    device: Device, channel_group: Optional[ChannelGroup] = None
) -> DeviceReport:
    """Inspect a device, or one of its channel groups, without changing it."""
    configurable: Configurable = channel_group if channel_group else device
    return DeviceReport(
        driver_functions=[k.description for k in device.driver.config_keys],
        scan_options={k.identifier: k.description for k in device.driver.scan_options},
        device=summarize_device(device),
        channel_groups={
            name: [c.name for c in group.channels]
            for name, group in device.channel_groups.items()
        },
        scope=channel_group.name if channel_group else None,
        options=[_option_report(configurable, k) for k in configurable.config_keys()],
    )
