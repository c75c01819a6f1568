"""
Sweep Data
==========

Parses the reply to a $SWPD sweep command into samples.

The reply is one line per frequency point, closed by OK:

    $SWPD,channel,frequency,forward_dbm,reflected_dbm\r\n
    ...
    OK\r\n

Units:
    - frequency: MHz
    - forward_dbm, reflected_dbm: dBm

Each sample also carries S11 in dB (reflected - forward) and the
reflected power as a percentage of forward power.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Tuple

import numpy as np

from .commands import FIELD_SEPARATOR, LINE_TERMINATOR, OK_TERMINATOR, CommandName
from .exceptions import SweepMalformed
from .units import reflection_percent

logger = logging.getLogger(__name__)

SWEEP_MARKER = CommandName.SWEEP_DBM
SWEEP_FIELD_COUNT = 5


class S11Notation(Enum):
    """How S11 is expressed."""
    LOGARITHMIC = "log"   # S11 in dB
    LINEAR = "linear"     # reflection in %


@dataclass(frozen=True)
class SweepSampleError:
    """A numeric field that did not parse and was read as 0.0."""
    line_index: int
    field: str
    text: str

    def __str__(self) -> str:
        return f"line {self.line_index}: {self.field}={self.text!r} is not a number"


@dataclass(frozen=True)
class SweepSample:
    """
    One frequency point of a sweep.

    s11_db and reflection_percent are derived from the two power readings.
    """
    frequency_mhz: float
    forward_power_dbm: float
    reflected_power_dbm: float
    s11_db: float
    reflection_percent: float
    errors: Tuple[SweepSampleError, ...] = ()

    @classmethod
    def from_powers(cls, frequency_mhz: float, forward_power_dbm: float,
                    reflected_power_dbm: float,
                    errors: Tuple[SweepSampleError, ...] = ()) -> 'SweepSample':
        return cls(
            frequency_mhz=frequency_mhz,
            forward_power_dbm=forward_power_dbm,
            reflected_power_dbm=reflected_power_dbm,
            s11_db=reflected_power_dbm - forward_power_dbm,
            reflection_percent=reflection_percent(reflected_power_dbm, forward_power_dbm),
            errors=errors,
        )

    @property
    def is_clean(self) -> bool:
        """True if every field parsed as a number."""
        return not self.errors


@dataclass(frozen=True)
class SweepResult:
    """
    Samples of one sweep, in the order the device sent them.

    A new sweep produces a new result; results are never modified.
    """
    samples: Tuple[SweepSample, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.samples)

    def __iter__(self) -> Iterator[SweepSample]:
        return iter(self.samples)

    def __getitem__(self, index: int) -> SweepSample:
        return self.samples[index]

    @property
    def frequencies(self) -> np.ndarray:
        return np.array([s.frequency_mhz for s in self.samples], dtype=np.float64)

    @property
    def forward_power(self) -> np.ndarray:
        return np.array([s.forward_power_dbm for s in self.samples], dtype=np.float64)

    @property
    def reflected_power(self) -> np.ndarray:
        return np.array([s.reflected_power_dbm for s in self.samples], dtype=np.float64)

    @property
    def s11_db(self) -> np.ndarray:
        return np.array([s.s11_db for s in self.samples], dtype=np.float64)

    @property
    def reflection_percent(self) -> np.ndarray:
        return np.array([s.reflection_percent for s in self.samples], dtype=np.float64)

    @property
    def errors(self) -> List[SweepSampleError]:
        return [e for s in self.samples for e in s.errors]

    def series(self, notation: S11Notation = S11Notation.LOGARITHMIC) -> Tuple[np.ndarray, np.ndarray]:
        """
        Frequency axis and S11 values in the requested notation.

        Returns:
            (frequencies_mhz, values) where values are S11 in dB for
            LOGARITHMIC and reflection in % for LINEAR
        """
        if notation is S11Notation.LINEAR:
            return self.frequencies, self.reflection_percent
        return self.frequencies, self.s11_db


def _parse_float(text: str, line_index: int, name: str,
                 errors: List[SweepSampleError]) -> float:
    try:
        return float(text)
    except ValueError:
        errors.append(SweepSampleError(line_index, name, text))
        return 0.0


def parse_sweep_line(line: str, line_index: int = 0) -> Optional[SweepSample]:
    """
    Parse one sweep data line.

    Args:
        line: "$SWPD,channel,frequency,forward,reflected"
        line_index: Position of the line in the reply (for error reports)

    Returns:
        SweepSample, or None if the line is not a sweep data line
    """
    parts = line.split(FIELD_SEPARATOR)
    if SWEEP_MARKER not in parts or len(parts) != SWEEP_FIELD_COUNT:
        return None

    errors: List[SweepSampleError] = []
    frequency = _parse_float(parts[2], line_index, "frequency", errors)
    forward = _parse_float(parts[3], line_index, "forward_power", errors)
    reflected = _parse_float(parts[4], line_index, "reflected_power", errors)
    return SweepSample.from_powers(frequency, forward, reflected, tuple(errors))


def parse_sweep(raw: str) -> SweepResult:
    """
    Parse a complete sweep reply.

    Lines that are not sweep data lines are skipped. Numeric fields that
    do not parse are read as 0.0 and reported in the sample's errors.

    Raises:
        SweepMalformed: If the reply lacks the $SWPD marker or OK terminator
    """
    if SWEEP_MARKER + FIELD_SEPARATOR not in raw or OK_TERMINATOR not in raw:
        raise SweepMalformed(raw)

    # Last two entries are the OK line and the empty string after it
    lines = raw.split(LINE_TERMINATOR)[:-2]

    samples = []
    for index, line in enumerate(lines):
        sample = parse_sweep_line(line, index)
        if sample is None:
            logger.debug(f"Skipping sweep line {index}: {line!r}")
            continue
        if sample.errors:
            logger.debug(f"Sweep line {index} has unparsable fields: {line!r}")
        samples.append(sample)

    return SweepResult(tuple(samples))
