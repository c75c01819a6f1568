"""
Line Framer
===========

Runs one write-then-collect exchange with the signal generator and
classifies how it ended.

An exchange writes a command line, then keeps appending whatever bytes
arrive to a text buffer until one of:

    ERR in buffer            -> ERROR_TOKEN  (checked first)
    terminator in buffer     -> COMPLETE
    transport closed         -> PORT_CLOSED
    max_duration exceeded    -> TIMEOUT      (only if a ceiling is set)

Without a max_duration the exchange waits as long as it takes; sweeps
over many points can run for a long time.

Every exchange also feeds the message log: the outbound command (only if
the write was acknowledged) and the final inbound text.
"""

import codecs
import logging
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Deque, Iterator, List, Optional

from .commands import ERROR_TOKEN, LINE_TERMINATOR, Command
from .config import READ_TIMEOUT_MS, WRITE_TIMEOUT_MS
from .transport import Transport

logger = logging.getLogger(__name__)


class OutcomeKind(Enum):
    COMPLETE = "complete"
    ERROR_TOKEN = "error_token"
    TIMEOUT = "timeout"
    PORT_CLOSED = "port_closed"


@dataclass(frozen=True)
class ExchangeOutcome:
    """
    Result of one exchange.

    Attributes
    ----------
    kind : OutcomeKind
        How the exchange ended
    text : str
        Everything received. Partial for TIMEOUT and PORT_CLOSED,
        includes the ERR token for ERROR_TOKEN.
    """
    kind: OutcomeKind
    text: str = ""

    @classmethod
    def complete(cls, text: str) -> 'ExchangeOutcome':
        return cls(OutcomeKind.COMPLETE, text)

    @classmethod
    def error_token(cls, text: str) -> 'ExchangeOutcome':
        return cls(OutcomeKind.ERROR_TOKEN, text)

    @classmethod
    def timeout(cls, partial_text: str) -> 'ExchangeOutcome':
        return cls(OutcomeKind.TIMEOUT, partial_text)

    @classmethod
    def port_closed(cls, partial_text: str = "") -> 'ExchangeOutcome':
        return cls(OutcomeKind.PORT_CLOSED, partial_text)

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.COMPLETE

    def __str__(self) -> str:
        return self.text


# =============================================================================
# Message log
# =============================================================================

class Direction(Enum):
    OUTBOUND = ">"
    INBOUND = "<"


def format_message(direction: Direction, text: str) -> str:
    """
    Render a log line for display.

    Outbound lines get a ">" tab prefix. Inbound text gets "<" tab, and a
    multi-line reply gets the "<" prefix again after every line break so
    each physical line is marked.
    """
    prefix = direction.value + "\t"
    if direction is Direction.INBOUND and text.count(LINE_TERMINATOR) > 1:
        text = text.replace(LINE_TERMINATOR, LINE_TERMINATOR + prefix)
        text = text[:-len(prefix)]
    return prefix + text


@dataclass(frozen=True)
class LogEntry:
    direction: Direction
    text: str

    def render(self) -> str:
        return format_message(self.direction, self.text)


class MessageLog:
    """
    Ordered record of traffic with the device.

    Args:
        listener: Called with each new entry (e.g. to print it)
        maxlen: Keep at most this many entries (None = unlimited)
    """

    def __init__(self, listener: Optional[Callable[[LogEntry], None]] = None,
                 maxlen: Optional[int] = None):
        self.listener = listener
        self._entries: Deque[LogEntry] = deque(maxlen=maxlen)

    def add(self, direction: Direction, text: str) -> LogEntry:
        entry = LogEntry(direction, text)
        self._entries.append(entry)
        if self.listener:
            self.listener(entry)
        return entry

    def outbound(self, text: str) -> LogEntry:
        return self.add(Direction.OUTBOUND, text)

    def inbound(self, text: str) -> LogEntry:
        return self.add(Direction.INBOUND, text)

    @property
    def entries(self) -> List[LogEntry]:
        return list(self._entries)

    def render(self) -> List[str]:
        return [e.render() for e in self._entries]

    def clear(self) -> None:
        self._entries.clear()

    def __iter__(self) -> Iterator[LogEntry]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)


# =============================================================================
# Exchange
# =============================================================================

class LineFramer:
    """
    Drives exchanges over one transport.

    Only one exchange runs at a time; the caller must not start another
    before exchange() returns.
    """

    def __init__(self, transport: Transport, message_log: Optional[MessageLog] = None):
        self.transport = transport
        self.message_log = message_log if message_log is not None else MessageLog()

    def exchange(
        self,
        command: Command,
        terminator: Optional[str] = None,
        write_timeout_ms: int = WRITE_TIMEOUT_MS,
        read_timeout_ms: int = READ_TIMEOUT_MS,
        max_duration: Optional[float] = None,
    ) -> ExchangeOutcome:
        """
        Write a command and collect the reply.

        Args:
            command: Command to send
            terminator: Reply terminator; defaults to the command's reply shape
            write_timeout_ms: Time allowed for the write to be acknowledged.
                An unacknowledged write still proceeds to reading.
            read_timeout_ms: Time each read attempt waits for new bytes
            max_duration: Optional ceiling (seconds) for the whole exchange

        Returns:
            ExchangeOutcome
        """
        if not self.transport.is_open():
            return ExchangeOutcome.port_closed()

        if terminator is None:
            terminator = command.terminator

        started = time.monotonic()
        if self.transport.write(command.encode(), write_timeout_ms):
            logger.debug(f"TX:\t{command.text}")
            self.message_log.outbound(command.text)
        else:
            logger.warning(f"Write of {command.text!r} not acknowledged within {write_timeout_ms} ms")

        decoder = codecs.getincrementaldecoder('utf-8')(errors='replace')
        rx = ""
        while True:
            self.transport.wait_for_data(read_timeout_ms)
            rx += decoder.decode(self.transport.read_available())

            if ERROR_TOKEN in rx:
                kind = OutcomeKind.ERROR_TOKEN
                break
            if terminator in rx:
                kind = OutcomeKind.COMPLETE
                break
            if not self.transport.is_open():
                kind = OutcomeKind.PORT_CLOSED
                break
            if max_duration is not None and time.monotonic() - started >= max_duration:
                kind = OutcomeKind.TIMEOUT
                break

        # Bytes of an unfinished multibyte sequence come out as U+FFFD
        rx += decoder.decode(b"", final=True)
        outcome = ExchangeOutcome(kind, rx)

        logger.debug(f"RX:\t{rx!r} ({outcome.kind.value})")
        self.message_log.inbound(rx)
        return outcome
