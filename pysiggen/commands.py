"""
Command Protocol for the RF Signal Generator
============================================

This module defines the line-based protocol used to talk to the signal
generator board over serial.

Protocol Overview
-----------------
Every command is one text line: a `$`-prefixed name followed by
comma-separated arguments, terminated by CR LF. The first argument is
always the channel.

    $FCS,0,2400\r\n       - set frequency of channel 0 to 2400 MHz

Replies come in two shapes:

    single line           - one line ending in \r\n
    OK-terminated block   - any number of lines, closed by OK\r\n

Any reply containing ERR reports a device error.

Input (Host → Device):
    $IDN,0                      - Identity                     (line)
    $VER,0                      - Firmware version             (line)
    $ST,0                       - Status / error code          (line)
    $ST,0,1                     - Verbose status (error list)  (OK block)
    $ERRC,0                     - Clear errors                 (line)
    $FCG,0                      - Get frequency                (line)
    $FCS,0,freq                 - Set frequency (MHz)          (line)
    $PPG,0                      - PA power measurement         (line)
    $PWRG,0                     - Get power setpoint           (line)
    $PWRS,0,power               - Set power setpoint           (line)
    $DLCS,0,p1,p2,p3,p4,p5,p6   - Configure DLL                (line)
    $DLES,0,1 / $DLES,0,0       - DLL enable / disable         (line)
    $ECS,0,1 / $ECS,0,0         - RF enable / disable          (line)
    $SWPD,0,start,stop,step,power,0 - Sweep in dBm             (OK block)

Output (Device → Host) for a sweep, one line per frequency point:
    $SWPD,channel,frequency,forward_dbm,reflected_dbm
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Tuple, Union

from .config import CHANNEL


LINE_TERMINATOR = "\r\n"
OK_TERMINATOR = "OK\r\n"
ERROR_TOKEN = "ERR"
FIELD_SEPARATOR = ","

Argument = Union[str, int, float]


class CommandName:
    """Name tokens for host to device commands."""
    IDENTITY = "$IDN"
    VERSION = "$VER"
    STATUS = "$ST"
    CLEAR_ERRORS = "$ERRC"
    FREQUENCY_GET = "$FCG"
    FREQUENCY_SET = "$FCS"
    PA_POWER_GET = "$PPG"
    POWER_GET = "$PWRG"
    POWER_SET = "$PWRS"
    DLL_CONFIG = "$DLCS"
    DLL_ENABLE = "$DLES"
    RF_ENABLE = "$ECS"
    SWEEP_DBM = "$SWPD"


class ReplyShape(Enum):
    """How the device ends its reply to a command."""
    LINE = LINE_TERMINATOR
    OK_BLOCK = OK_TERMINATOR

    @property
    def terminator(self) -> str:
        return self.value


def format_argument(value: Argument) -> str:
    """
    Render one argument for the wire.

    Strings are sent verbatim (the caller already formatted them),
    integers as-is and floats with two decimals.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int):
        return str(value)
    return f"{value:.2f}"


@dataclass(frozen=True)
class Command:
    """
    One outbound command.

    Attributes
    ----------
    name : str
        `$`-prefixed name token
    args : Tuple[str, ...]
        Ordered, already formatted arguments
    reply : ReplyShape
        Reply shape the device answers this command with
    """
    name: str
    args: Tuple[str, ...] = ()
    reply: ReplyShape = ReplyShape.LINE

    @classmethod
    def build(cls, name: str, args: Iterable[Argument] = (),
              reply: ReplyShape = ReplyShape.LINE) -> 'Command':
        """Create a command, formatting each argument."""
        return cls(name, tuple(format_argument(a) for a in args), reply)

    @property
    def text(self) -> str:
        """Command line without terminator, as shown in the message log."""
        return FIELD_SEPARATOR.join((self.name,) + self.args)

    @property
    def terminator(self) -> str:
        return self.reply.terminator

    def serialize(self) -> str:
        """Full wire line including CR LF."""
        return self.text + LINE_TERMINATOR

    def encode(self) -> bytes:
        return self.serialize().encode('utf-8')

    def __str__(self) -> str:
        return self.text


# =============================================================================
# Builders
# =============================================================================

def get_identity(channel: Argument = CHANNEL) -> Command:
    return Command.build(CommandName.IDENTITY, [channel])


def get_version(channel: Argument = CHANNEL) -> Command:
    return Command.build(CommandName.VERSION, [channel])


def get_status(channel: Argument = CHANNEL, verbose: bool = False) -> Command:
    """
    Status query.

    The verbose form makes the board list every active error by name,
    one per line, closed by OK.
    """
    if verbose:
        return Command.build(CommandName.STATUS, [channel, "1"], ReplyShape.OK_BLOCK)
    return Command.build(CommandName.STATUS, [channel])


def clear_errors(channel: Argument = CHANNEL) -> Command:
    return Command.build(CommandName.CLEAR_ERRORS, [channel])


def get_frequency(channel: Argument = CHANNEL) -> Command:
    return Command.build(CommandName.FREQUENCY_GET, [channel])


def set_frequency(frequency: Argument, channel: Argument = CHANNEL) -> Command:
    """Set the carrier frequency (MHz)."""
    return Command.build(CommandName.FREQUENCY_SET, [channel, frequency])


def get_pa_power(channel: Argument = CHANNEL) -> Command:
    """Measured forward/reflected power at the PA."""
    return Command.build(CommandName.PA_POWER_GET, [channel])


def get_power(channel: Argument = CHANNEL) -> Command:
    return Command.build(CommandName.POWER_GET, [channel])


def set_power(power: Argument, channel: Argument = CHANNEL) -> Command:
    return Command.build(CommandName.POWER_SET, [channel, power])


def configure_dll(params: Iterable[Argument], channel: Argument = CHANNEL) -> Command:
    """
    Configure the DLL (frequency tracking loop).

    Args:
        params: Exactly six values, in the order the board expects:
                lower frequency, upper frequency, start frequency,
                step frequency, threshold, main delay

    Raises:
        ValueError: If not given six values
    """
    params = list(params)
    if len(params) != 6:
        raise ValueError(f"DLL configuration takes 6 parameters, got {len(params)}")
    return Command.build(CommandName.DLL_CONFIG, [channel] + params)


def enable_dll(channel: Argument = CHANNEL) -> Command:
    return Command.build(CommandName.DLL_ENABLE, [channel, "1"])


def disable_dll(channel: Argument = CHANNEL) -> Command:
    return Command.build(CommandName.DLL_ENABLE, [channel, "0"])


def enable_rf(channel: Argument = CHANNEL) -> Command:
    return Command.build(CommandName.RF_ENABLE, [channel, "1"])


def disable_rf(channel: Argument = CHANNEL) -> Command:
    return Command.build(CommandName.RF_ENABLE, [channel, "0"])


def sweep_dbm(start: Argument, stop: Argument, step: Argument, power_dbm: Argument,
              channel: Argument = CHANNEL) -> Command:
    """
    Frequency sweep measuring forward and reflected power.

    Args:
        start: Start frequency (MHz)
        stop: Stop frequency (MHz)
        step: Frequency step (MHz)
        power_dbm: Output power during the sweep (dBm)

    The trailing 0 selects the plain (non-averaged) sweep mode.
    """
    return Command.build(
        CommandName.SWEEP_DBM,
        [channel, start, stop, step, power_dbm, "0"],
        ReplyShape.OK_BLOCK,
    )
