"""
Connection and Exchange Settings
================================

Fixed properties of the signal generator board and the tunable settings
used when talking to it.

The serial line is always 115200 baud, 8 data bits, no parity, one stop
bit, no flow control. Boards are recognised on the USB bus by their
vendor/product id pair.
"""

from dataclasses import dataclass
from typing import Optional

import serial


# USB identity of the signal generator board
TARGET_VENDOR_ID = 8137
TARGET_PRODUCT_ID = 131

# Serial line
BAUD_RATE = 115200

# Exchange timing
WRITE_TIMEOUT_MS = 250   # wait for the write to be acknowledged
READ_TIMEOUT_MS = 500    # wait for new bytes per read attempt

# Host-side port list refresh
PORT_POLL_INTERVAL_S = 1.0

# All commands address channel 0 unless told otherwise
CHANNEL = "0"


@dataclass
class SerialSettings:
    """
    Serial port configuration.

    Attributes
    ----------
    port : str
        Device path (e.g. "/dev/ttyACM0", "COM3")
    baudrate : int
        Line speed
    bytesize, parity, stopbits :
        Frame format, pyserial constants
    xonxoff, rtscts : bool
        Flow control (off for the board)
    """
    port: str = "/dev/ttyACM0"
    baudrate: int = BAUD_RATE
    bytesize: int = serial.EIGHTBITS
    parity: str = serial.PARITY_NONE
    stopbits: float = serial.STOPBITS_ONE
    xonxoff: bool = False
    rtscts: bool = False


@dataclass
class ExchangeSettings:
    """
    Timing and policy for command exchanges.

    Attributes
    ----------
    write_timeout_ms : int
        How long a write may take before it counts as unacknowledged
    read_timeout_ms : int
        How long each read attempt blocks waiting for bytes
    max_duration : float or None
        Ceiling in seconds for a whole exchange. None waits until a
        terminator, an ERR token or a closed port ends the exchange.
    clear_stale_sweep : bool
        Drop the previous sweep when a new sweep reply is malformed.
        Off by default: the last good sweep stays available.
    """
    write_timeout_ms: int = WRITE_TIMEOUT_MS
    read_timeout_ms: int = READ_TIMEOUT_MS
    max_duration: Optional[float] = None
    clear_stale_sweep: bool = False
