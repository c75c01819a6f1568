"""
Signal Generator Emulator
=========================

An in-process Transport that answers like a signal generator board, for
testing without hardware.

Replies are delivered a few bytes at a time so readers see partial
lines, the way a real serial port hands them over.

Usage
-----
>>> from pysiggen import SignalGenerator
>>> from pysiggen.emulator import EmulatedTransport
>>>
>>> with SignalGenerator(EmulatedTransport()) as sg:
...     sg.set_frequency(2450)
...     result = sg.run_sweep(2400, 2500, 10, 40)
"""

import math
from typing import Callable, Dict, List, Optional

from .commands import FIELD_SEPARATOR, LINE_TERMINATOR, OK_TERMINATOR, CommandName
from .transport import Transport


class EmulatedTransport(Transport):
    """
    Emulated signal generator board.

    Attributes
    ----------
    frequency : float
        Current frequency setpoint (MHz)
    power : float
        Current power setpoint (dBm)
    rf_enabled, dll_enabled : bool
        Output and DLL state
    dll_params : List[float]
        Last DLL configuration
    resonance_mhz : float
        Frequency of the simulated load's reflection dip
    """

    IDENTITY = "$IDN,0,EMULATED-SG,0000"
    VERSION = "$VER,0,1.0.0-emulator"

    def __init__(self, chunk_size: int = 7, resonance_mhz: float = 2450.0,
                 auto_open: bool = False):
        """
        Args:
            chunk_size: Bytes handed out per read_available() call
            resonance_mhz: Where the sweep shows minimum reflection
            auto_open: Start in the open state
        """
        self.chunk_size = chunk_size
        self.resonance_mhz = resonance_mhz

        self.frequency = 2450.0
        self.power = 40.0
        self.rf_enabled = False
        self.dll_enabled = False
        self.dll_params: List[float] = [2400.0, 2500.0, 2410.0, 1.0, 0.5, 50.0]
        self.errors: List[str] = []

        self.written: List[str] = []
        self.open_count = 0
        self.close_count = 0

        self._open = auto_open
        self._pending = bytearray()
        self._malform_next_sweep = False
        self._unplug_after_bytes: Optional[int] = None
        self._silent = False

        self._handlers: Dict[str, Callable[[List[str]], str]] = {
            CommandName.IDENTITY: lambda args: self.IDENTITY + LINE_TERMINATOR,
            CommandName.VERSION: lambda args: self.VERSION + LINE_TERMINATOR,
            CommandName.STATUS: self._status,
            CommandName.CLEAR_ERRORS: self._clear_errors,
            CommandName.FREQUENCY_GET: lambda args: self._line(CommandName.FREQUENCY_GET, f"{self.frequency:.6f}"),
            CommandName.FREQUENCY_SET: self._set_frequency,
            CommandName.PA_POWER_GET: self._pa_power,
            CommandName.POWER_GET: lambda args: self._line(CommandName.POWER_GET, f"{self.power:.6f}"),
            CommandName.POWER_SET: self._set_power,
            CommandName.DLL_CONFIG: self._configure_dll,
            CommandName.DLL_ENABLE: self._enable_dll,
            CommandName.RF_ENABLE: self._enable_rf,
            CommandName.SWEEP_DBM: self._sweep,
        }

    # =========================================================================
    # Test controls
    # =========================================================================

    def malform_next_sweep(self) -> None:
        """Next sweep reply comes back with a garbled marker on every line."""
        self._malform_next_sweep = True

    def unplug_after(self, nbytes: int) -> None:
        """Close the transport after handing out nbytes more bytes."""
        self._unplug_after_bytes = nbytes

    def go_silent(self, silent: bool = True) -> None:
        """Stop answering commands."""
        self._silent = silent

    # =========================================================================
    # Transport interface
    # =========================================================================

    def open(self) -> bool:
        if not self._open:
            self._open = True
            self.open_count += 1
        return True

    def close(self) -> None:
        if self._open:
            self._open = False
            self.close_count += 1
            self._pending.clear()

    def is_open(self) -> bool:
        return self._open

    def write(self, data: bytes, timeout_ms: int) -> bool:
        if not self._open:
            return False
        line = data.decode('utf-8').rstrip(LINE_TERMINATOR)
        self.written.append(line)
        if not self._silent:
            self._pending.extend(self._respond(line).encode('utf-8'))
        return True

    def wait_for_data(self, timeout_ms: int) -> bool:
        return self._open and len(self._pending) > 0

    def read_available(self) -> bytes:
        if not self._open:
            return b''

        size = self.chunk_size
        if self._unplug_after_bytes is not None:
            size = min(size, self._unplug_after_bytes)

        chunk = bytes(self._pending[:size])
        del self._pending[:size]

        if self._unplug_after_bytes is not None:
            self._unplug_after_bytes -= len(chunk)
            if self._unplug_after_bytes <= 0:
                self._unplug_after_bytes = None
                self.close()
        return chunk

    # =========================================================================
    # Device behaviour
    # =========================================================================

    @staticmethod
    def _line(name: str, *values: str) -> str:
        return FIELD_SEPARATOR.join((name, "0") + values) + LINE_TERMINATOR

    @staticmethod
    def _error(name: str, code: int) -> str:
        return f"{name},0,ERR{code}{LINE_TERMINATOR}"

    def _respond(self, line: str) -> str:
        parts = line.split(FIELD_SEPARATOR)
        handler = self._handlers.get(parts[0])
        if handler is None:
            return self._error(parts[0], 1)
        try:
            return handler(parts[1:])
        except (ValueError, IndexError):
            return self._error(parts[0], 2)

    def _status(self, args: List[str]) -> str:
        if len(args) > 1 and args[1] == "1":
            lines = [self._line(CommandName.STATUS, "0x%x" % len(self.errors))]
            lines += [f"{name}{LINE_TERMINATOR}" for name in self.errors]
            return "".join(lines) + OK_TERMINATOR
        return self._line(CommandName.STATUS, "0x%x" % len(self.errors), "0x0")

    def _clear_errors(self, args: List[str]) -> str:
        self.errors.clear()
        # Bare OK: an echoed $ERRC line would contain ERR
        return OK_TERMINATOR

    def _set_frequency(self, args: List[str]) -> str:
        self.frequency = float(args[1])
        return self._line(CommandName.FREQUENCY_SET, "OK")

    def _set_power(self, args: List[str]) -> str:
        self.power = float(args[1])
        return self._line(CommandName.POWER_SET, "OK")

    def _pa_power(self, args: List[str]) -> str:
        forward = self.power if self.rf_enabled else -99.0
        reflected = forward + self._return_loss(self.frequency)
        return self._line(CommandName.PA_POWER_GET, f"{forward:.2f}", f"{reflected:.2f}")

    def _configure_dll(self, args: List[str]) -> str:
        if len(args) != 7:
            raise ValueError("DLL configuration takes 6 parameters")
        self.dll_params = [float(a) for a in args[1:]]
        return self._line(CommandName.DLL_CONFIG, "OK")

    def _enable_dll(self, args: List[str]) -> str:
        self.dll_enabled = args[1] == "1"
        return self._line(CommandName.DLL_ENABLE, "OK")

    def _enable_rf(self, args: List[str]) -> str:
        self.rf_enabled = args[1] == "1"
        return self._line(CommandName.RF_ENABLE, "OK")

    def _return_loss(self, frequency: float) -> float:
        """S11 (dB) of the simulated load: a single resonance dip."""
        detune = (frequency - self.resonance_mhz) / 10.0
        return -1.0 - 24.0 / (1.0 + detune * detune)

    def _sweep(self, args: List[str]) -> str:
        start, stop, step, power = (float(a) for a in args[1:5])
        if step <= 0 or stop < start:
            raise ValueError("invalid sweep range")

        points = int(math.floor((stop - start) / step + 1e-9)) + 1
        lines = []
        for i in range(points):
            frequency = start + i * step
            reflected = power + self._return_loss(frequency)
            lines.append(self._line(
                CommandName.SWEEP_DBM, f"{frequency:.2f}", f"{power:.2f}", f"{reflected:.2f}"))

        if self._malform_next_sweep:
            self._malform_next_sweep = False
            lines = [line.replace(CommandName.SWEEP_DBM, "$SWP?", 1) for line in lines]
        return "".join(lines) + OK_TERMINATOR
