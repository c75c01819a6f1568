"""
PySigGen - RF Signal Generator Python Library
=============================================

A Python library for controlling serial-attached RF signal generator
boards using their line-based `$COMMAND,channel,...` protocol, and for
running S11 sweeps.

Example:
    >>> from pysiggen import SignalGenerator
    >>>
    >>> with SignalGenerator.autodetect() as sg:
    ...     sg.set_frequency(2450)
    ...     result = sg.run_sweep(2400, 2500, 1, 40)
    ...     freqs, s11 = result.series()
"""

from .session import SignalGenerator
from .commands import Command, CommandName, ReplyShape
from .framing import (
    Direction,
    ExchangeOutcome,
    LineFramer,
    LogEntry,
    MessageLog,
    OutcomeKind,
)
from .sweep import (
    S11Notation,
    SweepResult,
    SweepSample,
    SweepSampleError,
    parse_sweep,
)
from .transport import (
    PortInfo,
    PortWatcher,
    SerialTransport,
    Transport,
    autodetect_port,
    enumerate_ports,
    find_candidate_ports,
)
from .config import ExchangeSettings, SerialSettings
from .exceptions import (
    NoCandidateDeviceError,
    SigGenError,
    SweepError,
    SweepMalformed,
)
from .units import dbm_to_watt, watt_to_dbm

__version__ = "1.0.0"
__all__ = [
    "SignalGenerator",
    "Command",
    "CommandName",
    "ReplyShape",
    "Direction",
    "ExchangeOutcome",
    "LineFramer",
    "LogEntry",
    "MessageLog",
    "OutcomeKind",
    "S11Notation",
    "SweepResult",
    "SweepSample",
    "SweepSampleError",
    "parse_sweep",
    "PortInfo",
    "PortWatcher",
    "SerialTransport",
    "Transport",
    "autodetect_port",
    "enumerate_ports",
    "find_candidate_ports",
    "ExchangeSettings",
    "SerialSettings",
    "NoCandidateDeviceError",
    "SigGenError",
    "SweepError",
    "SweepMalformed",
    "dbm_to_watt",
    "watt_to_dbm",
]
