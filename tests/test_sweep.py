"""
Test Suite for Sweep Parsing
============================

Validates:
1. Sample extraction from $SWPD replies
2. Derived S11 (dB) and reflection (%)
3. Skipping of non-sample lines, permissive number parsing
4. Malformed reply detection

Run with:
    pytest tests/test_sweep.py -v
"""

import math

import numpy as np
import pytest

from pysiggen.exceptions import SweepMalformed
from pysiggen.sweep import (
    S11Notation,
    SweepResult,
    SweepSample,
    parse_sweep,
    parse_sweep_line,
)
from pysiggen.units import dbm_to_watt


TWO_POINT_REPLY = "$SWPD,0,2400,10,-5\r\n$SWPD,0,2401,10,-6\r\nOK\r\n"


# =============================================================================
# VALID REPLIES
# =============================================================================

class TestParseSweep:
    """Test parse_sweep() on well-formed replies."""

    def test_two_samples(self):
        result = parse_sweep(TWO_POINT_REPLY)

        assert len(result) == 2
        first = result[0]
        assert first.frequency_mhz == pytest.approx(2400)
        assert first.forward_power_dbm == pytest.approx(10)
        assert first.reflected_power_dbm == pytest.approx(-5)
        assert first.s11_db == pytest.approx(-15)
        assert result[1].s11_db == pytest.approx(-16)

    def test_reflection_percent(self):
        result = parse_sweep(TWO_POINT_REPLY)
        expected = dbm_to_watt(-5) / dbm_to_watt(10) * 100
        assert result[0].reflection_percent == pytest.approx(expected)
        # -15 dB is about 3.16 %
        assert result[0].reflection_percent == pytest.approx(3.1623, rel=1e-4)

    def test_zero_db_is_full_reflection(self):
        result = parse_sweep("$SWPD,0,100,20,20\r\nOK\r\n")
        assert result[0].s11_db == 0.0
        assert result[0].reflection_percent == pytest.approx(100.0)

    def test_order_preserved(self):
        reply = (
            "$SWPD,0,2500,10,-5\r\n"
            "$SWPD,0,2400,10,-6\r\n"
            "$SWPD,0,2450,10,-7\r\n"
            "OK\r\n"
        )
        result = parse_sweep(reply)
        assert list(result.frequencies) == [2500.0, 2400.0, 2450.0]

    def test_decimal_values(self):
        result = parse_sweep("$SWPD,0,2412.50,39.87,20.13\r\nOK\r\n")
        assert result[0].frequency_mhz == pytest.approx(2412.5)
        assert result[0].s11_db == pytest.approx(20.13 - 39.87)

    def test_text_before_marker_line(self):
        """Echo or status lines before the data are ignored."""
        reply = "some preamble\r\n$SWPD,0,2400,10,-5\r\nOK\r\n"
        result = parse_sweep(reply)
        assert len(result) == 1

    def test_zero_sample_reply(self):
        """Marker present only in a non-sample line -> empty, not an error."""
        result = parse_sweep("$SWPD,\r\nOK\r\n")
        assert len(result) == 0
        assert result.frequencies.shape == (0,)


class TestSkippedLines:
    """Lines that are not samples are skipped silently."""

    def test_four_field_line_skipped(self):
        reply = "$SWPD,0,2400,10\r\n$SWPD,0,2401,10,-6\r\nOK\r\n"
        result = parse_sweep(reply)
        assert len(result) == 1
        assert result[0].frequency_mhz == pytest.approx(2401)

    def test_six_field_line_skipped(self):
        reply = "$SWPD,0,2400,10,-5,1\r\n$SWPD,0,2401,10,-6\r\nOK\r\n"
        assert len(parse_sweep(reply)) == 1

    def test_missing_marker_skipped(self):
        reply = "$XXXX,0,2400,10,-5\r\n$SWPD,0,2401,10,-6\r\nOK\r\n"
        assert len(parse_sweep(reply)) == 1

    def test_n_valid_plus_one_malformed(self):
        good = "".join(f"$SWPD,0,{2400 + i},10,-{i}\r\n" for i in range(7))
        reply = good + "$SWPD,0,garbage\r\n" + "OK\r\n"
        assert len(parse_sweep(reply)) == 7

    def test_marker_in_any_field_position(self):
        """The marker only has to be one of the five fields."""
        sample = parse_sweep_line("0,$SWPD,2400,10,-5")
        assert sample is not None
        assert sample.frequency_mhz == pytest.approx(2400)

    def test_parse_sweep_line_rejects_non_sample(self):
        assert parse_sweep_line("OK") is None
        assert parse_sweep_line("") is None


class TestPermissiveNumbers:
    """Non-numeric fields are read as 0.0 and reported."""

    def test_bad_number_becomes_zero(self):
        result = parse_sweep("$SWPD,0,abc,10,-5\r\nOK\r\n")
        assert len(result) == 1
        assert result[0].frequency_mhz == 0.0
        assert result[0].forward_power_dbm == pytest.approx(10)

    def test_error_attached_to_sample(self):
        result = parse_sweep("$SWPD,0,2400,x,-5\r\nOK\r\n")
        sample = result[0]
        assert not sample.is_clean
        assert len(sample.errors) == 1
        assert sample.errors[0].field == "forward_power"
        assert sample.errors[0].text == "x"
        assert sample.errors[0].line_index == 0
        assert sample.s11_db == pytest.approx(-5)

    def test_result_collects_errors(self):
        reply = "$SWPD,0,2400,x,-5\r\n$SWPD,0,2401,10,y\r\nOK\r\n"
        result = parse_sweep(reply)
        assert [e.line_index for e in result.errors] == [0, 1]

    def test_clean_samples_have_no_errors(self):
        assert all(s.is_clean for s in parse_sweep(TWO_POINT_REPLY))


# =============================================================================
# MALFORMED REPLIES
# =============================================================================

class TestMalformed:
    """Replies without marker or terminator are rejected."""

    def test_missing_ok(self):
        with pytest.raises(SweepMalformed):
            parse_sweep("$SWPD,0,2400,10,-5\r\n$SWPD,0,2401,10,-6\r\n")

    def test_missing_marker(self):
        with pytest.raises(SweepMalformed):
            parse_sweep("OK\r\n")

    def test_ok_without_crlf(self):
        with pytest.raises(SweepMalformed):
            parse_sweep("$SWPD,0,2400,10,-5\r\nOK")

    def test_empty(self):
        with pytest.raises(SweepMalformed) as excinfo:
            parse_sweep("")
        assert excinfo.value.raw == ""

    def test_error_reply(self):
        with pytest.raises(SweepMalformed):
            parse_sweep("$SWPD,0,ERR4\r\n")


# =============================================================================
# RESULT VIEWS
# =============================================================================

class TestSweepResult:
    """Test series accessors."""

    def test_arrays(self):
        result = parse_sweep(TWO_POINT_REPLY)
        assert isinstance(result.frequencies, np.ndarray)
        np.testing.assert_allclose(result.frequencies, [2400, 2401])
        np.testing.assert_allclose(result.forward_power, [10, 10])
        np.testing.assert_allclose(result.reflected_power, [-5, -6])
        np.testing.assert_allclose(result.s11_db, [-15, -16])

    def test_series_log(self):
        freqs, values = parse_sweep(TWO_POINT_REPLY).series(S11Notation.LOGARITHMIC)
        np.testing.assert_allclose(freqs, [2400, 2401])
        np.testing.assert_allclose(values, [-15, -16])

    def test_series_linear(self):
        result = parse_sweep(TWO_POINT_REPLY)
        _, values = result.series(S11Notation.LINEAR)
        np.testing.assert_allclose(values, result.reflection_percent)
        assert values[0] > values[1]

    def test_iteration(self):
        result = parse_sweep(TWO_POINT_REPLY)
        assert [s.frequency_mhz for s in result] == [2400.0, 2401.0]

    def test_result_is_immutable(self):
        result = parse_sweep(TWO_POINT_REPLY)
        with pytest.raises(AttributeError):
            result.samples = ()

    def test_empty_result(self):
        result = SweepResult()
        assert len(result) == 0
        assert result.errors == []


class TestSweepSample:
    """Test derived values."""

    @pytest.mark.parametrize("forward,reflected", [
        (10.0, -5.0), (40.0, 30.0), (0.0, -30.0), (-10.0, -10.0),
    ])
    def test_invariants(self, forward, reflected):
        s = SweepSample.from_powers(2450.0, forward, reflected)
        assert s.s11_db == pytest.approx(reflected - forward)
        assert s.reflection_percent == pytest.approx(
            dbm_to_watt(reflected) / dbm_to_watt(forward) * 100)

    def test_reflection_matches_s11(self):
        """Reflection % is 10^(S11/10) * 100."""
        s = SweepSample.from_powers(2450.0, 43.0, 23.0)
        assert s.reflection_percent == pytest.approx(100 * math.pow(10, s.s11_db / 10))
