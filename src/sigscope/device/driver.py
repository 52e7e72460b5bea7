"""Driver base class.

A driver knows one class of instrument: it advertises driver-level functions
and scan options, and `scan()` discovers matching devices. Devices come back
closed; callers open them before use.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping, Optional, Sequence

from loguru import logger

from sigscope.types.errors import UnsupportedOption
from sigscope.types.keys import ConfigKey, lookup

if TYPE_CHECKING:
    from sigscope.device.device import Device


class Driver:
    """Base class for hardware drivers.

    Subclasses set `name`, `long_name`, `config_keys` (driver functions, e.g.
    `LOGIC_ANALYZER`) and `scan_options`, and implement `_scan()`.
    """

    name: str = ""
    long_name: str = ""
    config_keys: Sequence[ConfigKey] = ()
    scan_options: Sequence[ConfigKey] = ()

    def __str__(self):
        return self.name

    def __repr__(self):
        return f"{self.__class__.__name__}({self.name!r})"

    def scan(
        self, options: Optional[Mapping[str | ConfigKey, Any]] = None
    ) -> list[Device]:
        """Discover devices.

        Parameters
        ----------
        options : Mapping[str | ConfigKey, Any], optional
            Scan options by identifier or key. No options means the driver's
            default probe.

        Returns
        -------
        list[Device]
            Closed devices, possibly empty.

        Raises
        ------
        UnsupportedOption
            If an option is not one of this driver's scan options.
        """
        resolved = {}
        for name, value in (options or {}).items():
            key = name if isinstance(name, ConfigKey) else lookup(name)
            if key not in self.scan_options:
                raise UnsupportedOption(
                    f"Driver {self.name} does not accept scan option {key}"
                )
            resolved[key] = value
        devices = self._scan(resolved)
        logger.info("Driver {} found {} device(s)", self.name, len(devices))
        return devices

    def _scan(self, options: dict[ConfigKey, Any]) -> list[Device]:
        raise NotImplementedError()
