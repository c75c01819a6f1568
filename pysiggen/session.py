"""
RF Signal Generator Session
===========================

High-level control of a signal generator board. A session owns the
transport, the message log and the last sweep result; nothing is kept
in module globals.

Example:
    >>> from pysiggen import SignalGenerator
    >>>
    >>> # Using context manager (recommended)
    >>> with SignalGenerator.autodetect() as sg:
    ...     sg.set_frequency(2450)
    ...     sg.enable_rf()
    ...     result = sg.run_sweep(2400, 2500, 1, 40)
    ...     sg.disable_rf()
    >>>
    >>> # Manual connection
    >>> sg = SignalGenerator(SerialTransport(SerialSettings(port='/dev/ttyACM0')))
    >>> sg.connect()
    >>> print(sg.get_identity())
    >>> sg.disconnect()

Every command method returns the ExchangeOutcome of its exchange.
Nothing is retried; retry policy belongs to the caller.
"""

import logging
from typing import Callable, Iterable, Optional

from . import commands
from .commands import Argument, Command
from .config import (
    CHANNEL,
    TARGET_PRODUCT_ID,
    TARGET_VENDOR_ID,
    ExchangeSettings,
)
from .exceptions import SweepMalformed
from .framing import ExchangeOutcome, LineFramer, LogEntry, MessageLog, OutcomeKind
from .sweep import SweepResult, parse_sweep
from .tools import log_exceptions
from .transport import SerialTransport, Transport, autodetect_port
from .units import watt_to_dbm

logger = logging.getLogger(__name__)


class SignalGenerator:
    """
    Signal generator controller.

    Attributes:
        transport: Byte stream to the board
        settings: Exchange timing and policy
        message_log: Traffic record (">" outbound, "<" inbound)
        last_sweep: Result of the last successful sweep, or None
    """

    def __init__(
        self,
        transport: Transport,
        settings: Optional[ExchangeSettings] = None,
        on_message: Optional[Callable[[LogEntry], None]] = None,
        channel: Argument = CHANNEL,
    ):
        """
        Args:
            transport: Transport to the board (need not be open yet)
            settings: Exchange timing; defaults to ExchangeSettings()
            on_message: Called with each message log entry as it happens
            channel: Channel addressed by all commands
        """
        self.transport = transport
        self.settings = settings or ExchangeSettings()
        self.channel = channel
        self.message_log = MessageLog(listener=on_message)
        self.framer = LineFramer(transport, self.message_log)
        self.last_sweep: Optional[SweepResult] = None

    @classmethod
    @log_exceptions
    def autodetect(
        cls,
        settings: Optional[ExchangeSettings] = None,
        on_message: Optional[Callable[[LogEntry], None]] = None,
        vendor_id: int = TARGET_VENDOR_ID,
        product_id: int = TARGET_PRODUCT_ID,
    ) -> 'SignalGenerator':
        """
        Create a session on the first port that looks like a board.

        Raises:
            NoCandidateDeviceError: If no board is attached
        """
        serial_settings = autodetect_port(vendor_id, product_id)
        logger.info(f"Signal generator detected on {serial_settings.port}")
        return cls(SerialTransport(serial_settings), settings, on_message)

    def __enter__(self) -> 'SignalGenerator':
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.disconnect()

    # =========================================================================
    # Connection Management
    # =========================================================================

    def connect(self) -> bool:
        """Open the transport. Does nothing if already open."""
        if self.transport.is_open():
            return True
        return self.transport.open()

    def disconnect(self) -> None:
        """Close the transport. Does nothing if already closed."""
        if self.transport.is_open():
            self.transport.close()

    @property
    def is_connected(self) -> bool:
        return self.transport.is_open()

    # =========================================================================
    # Exchanges
    # =========================================================================

    def execute(self, command: Command) -> ExchangeOutcome:
        """Send a command and wait for its reply shape's terminator."""
        return self.framer.exchange(
            command,
            write_timeout_ms=self.settings.write_timeout_ms,
            read_timeout_ms=self.settings.read_timeout_ms,
            max_duration=self.settings.max_duration,
        )

    def get_identity(self) -> ExchangeOutcome:
        return self.execute(commands.get_identity(self.channel))

    def get_version(self) -> ExchangeOutcome:
        return self.execute(commands.get_version(self.channel))

    def get_status(self, verbose: bool = False) -> ExchangeOutcome:
        """Status code, or the full error list if verbose."""
        return self.execute(commands.get_status(self.channel, verbose))

    def clear_errors(self) -> ExchangeOutcome:
        return self.execute(commands.clear_errors(self.channel))

    def get_frequency(self) -> ExchangeOutcome:
        return self.execute(commands.get_frequency(self.channel))

    def set_frequency(self, frequency: Argument) -> ExchangeOutcome:
        return self.execute(commands.set_frequency(frequency, self.channel))

    def get_pa_power(self) -> ExchangeOutcome:
        return self.execute(commands.get_pa_power(self.channel))

    def get_power(self) -> ExchangeOutcome:
        return self.execute(commands.get_power(self.channel))

    def set_power(self, power: Argument) -> ExchangeOutcome:
        return self.execute(commands.set_power(power, self.channel))

    def configure_dll(self, params: Iterable[Argument]) -> ExchangeOutcome:
        return self.execute(commands.configure_dll(params, self.channel))

    def enable_dll(self) -> ExchangeOutcome:
        return self.execute(commands.enable_dll(self.channel))

    def disable_dll(self) -> ExchangeOutcome:
        return self.execute(commands.disable_dll(self.channel))

    def enable_rf(self) -> ExchangeOutcome:
        return self.execute(commands.enable_rf(self.channel))

    def disable_rf(self) -> ExchangeOutcome:
        return self.execute(commands.disable_rf(self.channel))

    # =========================================================================
    # Sweeps
    # =========================================================================

    def run_sweep(self, start: Argument, stop: Argument, step: Argument,
                  power_dbm: Argument) -> SweepResult:
        """
        Run an S11 sweep and parse the reply.

        Args:
            start, stop, step: Frequency range (MHz)
            power_dbm: Output power (dBm)

        Returns:
            The new SweepResult, also stored as last_sweep

        Raises:
            SweepMalformed: Board answered ERR, or the reply was incomplete
                or unrecognisable.
                last_sweep keeps the previous result unless
                settings.clear_stale_sweep is set.
        """
        outcome = self.execute(commands.sweep_dbm(start, stop, step, power_dbm, self.channel))
        try:
            if outcome.kind is OutcomeKind.ERROR_TOKEN:
                raise SweepMalformed(outcome.text)
            result = parse_sweep(outcome.text)
        except SweepMalformed as e:
            e.outcome = outcome
            logger.warning(f"Sweep failed ({outcome.kind.value}): {e}")
            if self.settings.clear_stale_sweep:
                self.last_sweep = None
            raise

        self.last_sweep = result
        return result

    def run_sweep_watt(self, start: Argument, stop: Argument, step: Argument,
                       power_watt: float) -> SweepResult:
        """run_sweep() with the output power given in watt."""
        return self.run_sweep(start, stop, step, watt_to_dbm(power_watt))
