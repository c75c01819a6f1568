"""Exceptions raised by pysiggen."""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .framing import ExchangeOutcome


class SigGenError(Exception):
    """Base exception for signal generator errors."""
    pass


class NoCandidateDeviceError(SigGenError):
    """No serial port matches the signal generator's USB identity.

    Treat as fatal: nothing can be sent without a board.
    """

    def __init__(self, vendor_id: int, product_id: int):
        self.vendor_id = vendor_id
        self.product_id = product_id
        super().__init__(
            f"No signal generator board found (vid={vendor_id}, pid={product_id}). "
            "Ensure the board is connected, try again, or pick a port manually."
        )


class SweepError(SigGenError):
    """Sweep reply could not be turned into a result."""
    pass


class SweepMalformed(SweepError):
    """Sweep reply lacks the $SWPD marker or the OK terminator."""

    def __init__(self, raw: str, outcome: Optional['ExchangeOutcome'] = None):
        self.raw = raw
        self.outcome = outcome
        super().__init__("Sweep data invalid / incomplete")
