"""
Byte Stream Transport
=====================

The protocol engine only needs an open, bidirectional byte stream with a
read timeout and a "bytes available" signal. This module defines that
interface and its pyserial implementation, plus USB port discovery.

Implementing Custom Transports
------------------------------
>>> class MyTransport(Transport):
...     def open(self) -> bool: ...
...     def close(self) -> None: ...
...     def is_open(self) -> bool: ...
...     def write(self, data: bytes, timeout_ms: int) -> bool: ...
...     def wait_for_data(self, timeout_ms: int) -> bool: ...
...     def read_available(self) -> bytes: ...

Discovery
---------
>>> from pysiggen.transport import autodetect_port, SerialTransport
>>> settings = autodetect_port()
>>> transport = SerialTransport(settings)
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional

import serial
import serial.tools.list_ports

from .config import (
    PORT_POLL_INTERVAL_S,
    TARGET_PRODUCT_ID,
    TARGET_VENDOR_ID,
    SerialSettings,
)
from .exceptions import NoCandidateDeviceError

logger = logging.getLogger(__name__)


class Transport(ABC):
    """
    Abstract byte stream to the signal generator.

    open() and close() are idempotent: opening an open transport or
    closing a closed one does nothing.
    """

    @abstractmethod
    def open(self) -> bool:
        """
        Open the stream.

        Returns
        -------
        bool
            True if the stream is open afterwards
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Close the stream."""
        pass

    @abstractmethod
    def is_open(self) -> bool:
        pass

    @abstractmethod
    def write(self, data: bytes, timeout_ms: int) -> bool:
        """
        Write bytes.

        Returns
        -------
        bool
            True if the write was acknowledged within timeout_ms
        """
        pass

    @abstractmethod
    def wait_for_data(self, timeout_ms: int) -> bool:
        """
        Block until bytes are available or timeout_ms passes.

        Returns
        -------
        bool
            True if bytes are ready to read
        """
        pass

    @abstractmethod
    def read_available(self) -> bytes:
        """Return every byte received so far (may be empty)."""
        pass

    def __enter__(self) -> 'Transport':
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class SerialTransport(Transport):
    """
    Transport over a pyserial port.

    Serial errors during read or write close the port, so an exchange in
    progress sees the transport as closed and ends.
    """

    # Granularity of wait_for_data polling
    POLL_STEP_S = 0.002

    def __init__(self, settings: SerialSettings):
        self.settings = settings
        self._ser: Optional[serial.Serial] = None

    @property
    def port_name(self) -> str:
        return self.settings.port

    def open(self) -> bool:
        if self.is_open():
            return True

        try:
            self._ser = serial.Serial(
                port=self.settings.port,
                baudrate=self.settings.baudrate,
                bytesize=self.settings.bytesize,
                parity=self.settings.parity,
                stopbits=self.settings.stopbits,
                xonxoff=self.settings.xonxoff,
                rtscts=self.settings.rtscts,
                timeout=0,
            )
        except (serial.SerialException, OSError) as e:
            logger.error(f"Failed to open {self.settings.port}: {e}")
            self._ser = None
            return False

        logger.info(f"Port opened: {self.settings.port} @ {self.settings.baudrate} baud")
        return True

    def close(self) -> None:
        if self._ser is None:
            return
        try:
            self._ser.close()
        except (serial.SerialException, OSError) as e:
            logger.warning(f"Error closing {self.settings.port}: {e}")
        self._ser = None
        logger.info(f"Port closed: {self.settings.port}")

    def is_open(self) -> bool:
        return self._ser is not None and self._ser.is_open

    def write(self, data: bytes, timeout_ms: int) -> bool:
        if not self.is_open():
            return False

        try:
            self._ser.write_timeout = timeout_ms / 1000.0
            self._ser.write(data)
            self._ser.flush()
            return True
        except serial.SerialTimeoutException:
            return False
        except (serial.SerialException, OSError) as e:
            logger.error(f"Write error on {self.settings.port}: {e}")
            self.close()
            return False

    def wait_for_data(self, timeout_ms: int) -> bool:
        deadline = time.monotonic() + timeout_ms / 1000.0
        while self.is_open():
            try:
                if self._ser.in_waiting > 0:
                    return True
            except (serial.SerialException, OSError) as e:
                logger.error(f"Read error on {self.settings.port}: {e}")
                self.close()
                return False
            if time.monotonic() >= deadline:
                return False
            time.sleep(self.POLL_STEP_S)
        return False

    def read_available(self) -> bytes:
        if not self.is_open():
            return b''

        try:
            waiting = self._ser.in_waiting
            if waiting > 0:
                return self._ser.read(waiting)
            return b''
        except (serial.SerialException, OSError) as e:
            logger.error(f"Read error on {self.settings.port}: {e}")
            self.close()
            return b''

    def __del__(self):
        self.close()


# =============================================================================
# Port discovery
# =============================================================================

@dataclass(frozen=True)
class PortInfo:
    """A serial port seen on the system."""
    device: str
    description: str = ""
    vendor_id: Optional[int] = None
    product_id: Optional[int] = None

    def matches(self, vendor_id: int = TARGET_VENDOR_ID,
                product_id: int = TARGET_PRODUCT_ID) -> bool:
        """True if the USB identity belongs to a signal generator board."""
        return self.vendor_id == vendor_id and self.product_id == product_id


def enumerate_ports() -> List[PortInfo]:
    """
    Enumerate available serial ports, sorted by device name.

    Ports that are not USB devices have no vendor/product id.
    """
    ports = [
        PortInfo(
            device=info.device,
            description=info.description or "",
            vendor_id=info.vid,
            product_id=info.pid,
        )
        for info in serial.tools.list_ports.comports()
    ]
    ports.sort(key=lambda p: p.device)
    return ports


def find_candidate_ports(vendor_id: int = TARGET_VENDOR_ID,
                         product_id: int = TARGET_PRODUCT_ID) -> List[PortInfo]:
    """Ports whose USB identity matches the signal generator board."""
    return [p for p in enumerate_ports() if p.matches(vendor_id, product_id)]


def autodetect_port(vendor_id: int = TARGET_VENDOR_ID,
                    product_id: int = TARGET_PRODUCT_ID,
                    baudrate: Optional[int] = None) -> SerialSettings:
    """
    Pick the first port that looks like a signal generator board.

    Returns
    -------
    SerialSettings
        Settings for the chosen port

    Raises
    ------
    NoCandidateDeviceError
        If no port matches. Callers cannot continue without a board.
    """
    candidates = find_candidate_ports(vendor_id, product_id)
    if not candidates:
        raise NoCandidateDeviceError(vendor_id, product_id)

    if len(candidates) > 1:
        logger.warning(
            f"Multiple signal generator boards found: "
            f"{', '.join(p.device for p in candidates)}; using {candidates[0].device}"
        )

    settings = SerialSettings(port=candidates[0].device)
    if baudrate is not None:
        settings.baudrate = baudrate
    return settings


class PortWatcher:
    """
    Tracks the list of serial ports between polls.

    The host calls poll() periodically (every PORT_POLL_INTERVAL_S).
    Only port enumeration happens here; no transport is touched.

    Example:
        >>> watcher = PortWatcher(on_change=lambda names: print(names))
        >>> while running:
        ...     watcher.poll()
        ...     time.sleep(watcher.interval)
    """

    def __init__(self, on_change: Optional[Callable[[List[str]], None]] = None,
                 interval: float = PORT_POLL_INTERVAL_S,
                 enumerate_fn: Callable[[], List[PortInfo]] = enumerate_ports):
        self.on_change = on_change
        self.interval = interval
        self._enumerate = enumerate_fn
        self._names: Optional[List[str]] = None

    @property
    def port_names(self) -> List[str]:
        """Port names seen at the last poll."""
        return list(self._names or [])

    def poll(self) -> Optional[List[str]]:
        """
        Refresh the port list.

        Returns
        -------
        List[str] or None
            New list of port names if the count or any name changed
            since the last poll, otherwise None
        """
        names = [p.device for p in self._enumerate()]
        if names == self._names:
            return None

        self._names = names
        logger.debug(f"Port list changed: {names}")
        if self.on_change:
            self.on_change(list(names))
        return list(names)
