"""
Power unit conversion between watt and dBm.

    dBm = 10 * log10(W) + 30
    W   = 0.001 * 10 ** (0.1 * dBm)

Both functions follow IEEE float semantics instead of raising:
zero watt is -inf dBm, negative watt is NaN, huge dBm overflows to inf.
Callers decide how to display such values.
"""

import numpy as np


def dbm_to_watt(value_dbm: float) -> float:
    """Convert power in dBm to watt."""
    with np.errstate(over='ignore'):
        return float(0.001 * np.power(10.0, 0.1 * np.float64(value_dbm)))


def watt_to_dbm(value_watt: float) -> float:
    """Convert power in watt to dBm."""
    with np.errstate(divide='ignore', invalid='ignore'):
        return float(10.0 * np.log10(np.float64(value_watt)) + 30.0)


def reflection_percent(reflected_dbm: float, forward_dbm: float) -> float:
    """Reflected power as a percentage of forward power."""
    with np.errstate(divide='ignore', invalid='ignore'):
        ratio = np.float64(dbm_to_watt(reflected_dbm)) / np.float64(dbm_to_watt(forward_dbm))
        return float(ratio * 100.0)
