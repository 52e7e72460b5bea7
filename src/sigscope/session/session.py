"""Acquisition sessions.

A `Session` owns the devices of one acquisition and the ordered list of
datafeed callbacks. Every packet a device produces is handed, by reference,
to each callback in registration order before the next packet is taken.

States move one way only::

    IDLE --start()--> RUNNING --(sources exhausted | stop())--> STOPPED

`stop()` only sets a cancellation token; the dispatch loop checks it between
packets, so a packet that is being delivered is always delivered to every
callback. It is safe to call from a signal handler or another thread.

Examples
--------
```python
session = context.create_session()
session.add_device(device)
session.add_datafeed_callback(sink)
session.start()
session.run()
```
"""

from __future__ import annotations

import enum
import threading
from typing import TYPE_CHECKING, Callable, Iterator

from loguru import logger

from sigscope.types.errors import SessionStateError

if TYPE_CHECKING:
    from sigscope.device.device import Device
    from sigscope.types.packets import Packet

DatafeedCallback = Callable[["Device", "Packet"], None]


class SessionState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class Session:
    def __init__(self):
        self._devices: list[Device] = []
        self._callbacks: list[DatafeedCallback] = []
        self._sources: list[tuple[Device, Iterator[Packet]]] = []
        self._state = SessionState.IDLE
        self._lock = threading.Lock()
        self._cancel = threading.Event()

    def __repr__(self):
        return f"Session({self._state.value}, {len(self._devices)} device(s))"

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def devices(self) -> list[Device]:
        return list(self._devices)

    def add_device(self, device: Device) -> None:
        """Add a device. Packets it holds back are delivered immediately.

        Raises
        ------
        SessionStateError
            If the session is not idle.
        """
        with self._lock:
            if self._state is not SessionState.IDLE:
                raise SessionStateError(
                    f"Cannot add a device to a {self._state.value} session"
                )
            self._devices.append(device)
        logger.debug("Added {} to session", device)
        device.attach(self)

    def add_datafeed_callback(self, callback: DatafeedCallback) -> None:
        with self._lock:
            if self._state is SessionState.STOPPED:
                raise SessionStateError("Cannot add a callback to a stopped session")
            self._callbacks.append(callback)

    def start(self) -> None:
        """Start every device's acquisition.

        Raises
        ------
        SessionStateError
            If the session was already started.
        """
        with self._lock:
            if self._state is not SessionState.IDLE:
                raise SessionStateError(f"Cannot start a {self._state.value} session")
            self._sources = [(d, iter(d.acquisition())) for d in self._devices]
            self._state = SessionState.RUNNING
        logger.info("Session started with {} device(s)", len(self._devices))

    def run(self) -> None:
        """Dispatch packets until every source ends or `stop()` is called.

        Devices take turns, one packet each. The session is STOPPED on return.

        Raises
        ------
        SessionStateError
            If the session is idle.
        """
        if self._state is SessionState.IDLE:
            raise SessionStateError("Cannot run a session that was not started")

        packets = 0
        active = list(self._sources)
        try:
            while active and not self._cancel.is_set():
                for source in list(active):
                    if self._cancel.is_set():
                        break
                    device, packets_iter = source
                    packet = next(packets_iter, None)
                    if packet is None:
                        active.remove(source)
                        continue
                    self._dispatch(device, packet)
                    packets += 1
        finally:
            # a failed callback or device ends the run as well
            if active:
                self.stop()
            with self._lock:
                self._state = SessionState.STOPPED
            logger.info("Session stopped after {} packet(s)", packets)

    def stop(self) -> None:
        """Request the session to stop. Idempotent."""
        if self._cancel.is_set():
            return
        self._cancel.set()
        logger.debug("Session stop requested")
        for device in self._devices:
            device.stop_acquisition()

    @property
    def stop_requested(self) -> bool:
        return self._cancel.is_set()

    def send(self, device: Device, packet: Packet) -> None:
        """Deliver a packet pushed by a device rather than pulled by `run()`.

        Dropped once the session is stopped.
        """
        if self._state is SessionState.STOPPED or self._cancel.is_set():
            logger.debug("Dropping {} from {}: session stopped", packet, device)
            return
        self._dispatch(device, packet)

    def _dispatch(self, device: Device, packet: Packet) -> None:
        logger.trace("Dispatching {} from {}", packet, device)
        for callback in list(self._callbacks):
            callback(device, packet)
