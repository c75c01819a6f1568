"""
Test Suite for the Command Codec
================================

Validates:
1. Wire serialization of Command
2. Every builder's name token, arguments and reply shape
3. Argument formatting

Run with:
    pytest tests/test_commands.py -v
"""

import pytest

from pysiggen import commands
from pysiggen.commands import (
    Command,
    CommandName,
    ReplyShape,
    format_argument,
)


# =============================================================================
# SERIALIZATION
# =============================================================================

class TestCommandSerialization:
    """Test Command wire format."""

    def test_serialize_joins_with_commas(self):
        cmd = Command("$FCS", ("0", "2400"))
        assert cmd.serialize() == "$FCS,0,2400\r\n"

    def test_serialize_no_args(self):
        assert Command("$X").serialize() == "$X\r\n"

    def test_text_has_no_terminator(self):
        cmd = Command("$FCS", ("0", "2400"))
        assert cmd.text == "$FCS,0,2400"
        assert str(cmd) == "$FCS,0,2400"

    def test_encode_utf8(self):
        assert Command("$IDN", ("0",)).encode() == b"$IDN,0\r\n"

    @pytest.mark.parametrize("name,args", [
        ("$IDN", ["0"]),
        ("$FCS", ["0", "2400"]),
        ("$DLCS", ["0", "2400", "2500", "2410", "1", "0.5", "50"]),
        ("$SWPD", ["0", "2400", "2500", "1", "40", "0"]),
    ])
    def test_wire_line(self, name, args):
        """name,arg1,...,argN\\r\\n for any argument list."""
        cmd = Command.build(name, args)
        assert cmd.serialize() == ",".join([name] + args) + "\r\n"

    def test_command_is_immutable(self):
        cmd = Command("$IDN", ("0",))
        with pytest.raises(AttributeError):
            cmd.name = "$VER"

    def test_commands_compare_by_value(self):
        assert commands.get_identity() == Command("$IDN", ("0",))

    def test_terminator_follows_reply_shape(self):
        assert Command("$IDN", ("0",)).terminator == "\r\n"
        assert Command("$SWPD", (), ReplyShape.OK_BLOCK).terminator == "OK\r\n"


class TestArgumentFormatting:
    """Test format_argument()."""

    def test_string_passes_through(self):
        assert format_argument("2400.123456") == "2400.123456"
        assert format_argument("abc") == "abc"

    def test_int(self):
        assert format_argument(2400) == "2400"

    def test_float_two_decimals(self):
        assert format_argument(2400.0) == "2400.00"
        assert format_argument(1.234) == "1.23"

    def test_negative_float(self):
        assert format_argument(-3.5) == "-3.50"

    def test_bool(self):
        assert format_argument(True) == "1"
        assert format_argument(False) == "0"


# =============================================================================
# BUILDERS
# =============================================================================

class TestSingleLineBuilders:
    """Builders whose reply is a single line."""

    @pytest.mark.parametrize("builder,expected", [
        (commands.get_identity, "$IDN,0"),
        (commands.get_version, "$VER,0"),
        (commands.get_status, "$ST,0"),
        (commands.clear_errors, "$ERRC,0"),
        (commands.get_frequency, "$FCG,0"),
        (commands.get_pa_power, "$PPG,0"),
        (commands.get_power, "$PWRG,0"),
        (commands.enable_dll, "$DLES,0,1"),
        (commands.disable_dll, "$DLES,0,0"),
        (commands.enable_rf, "$ECS,0,1"),
        (commands.disable_rf, "$ECS,0,0"),
    ])
    def test_fixed_commands(self, builder, expected):
        cmd = builder()
        assert cmd.text == expected
        assert cmd.reply is ReplyShape.LINE

    def test_identity_has_one_arg(self):
        assert commands.get_identity().args == ("0",)

    def test_set_frequency(self):
        cmd = commands.set_frequency("2400")
        assert cmd.name == CommandName.FREQUENCY_SET
        assert cmd.args == ("0", "2400")
        assert cmd.serialize() == "$FCS,0,2400\r\n"

    def test_set_frequency_float(self):
        assert commands.set_frequency(2450.5).text == "$FCS,0,2450.50"

    def test_set_power(self):
        cmd = commands.set_power("35.5")
        assert cmd.text == "$PWRS,0,35.5"
        assert cmd.reply is ReplyShape.LINE

    def test_configure_dll_seven_args(self):
        cmd = commands.configure_dll(["2400", "2500", "2410", "1", "0.5", "50"])
        assert cmd.name == "$DLCS"
        assert len(cmd.args) == 7
        assert cmd.text == "$DLCS,0,2400,2500,2410,1,0.5,50"

    def test_configure_dll_wrong_arity(self):
        with pytest.raises(ValueError):
            commands.configure_dll(["1", "2", "3"])

    def test_other_channel(self):
        assert commands.get_frequency(channel=1).text == "$FCG,1"
        assert commands.set_frequency("100", channel="2").text == "$FCS,2,100"

    def test_codec_does_not_validate_numbers(self):
        """Caller-supplied text goes out untouched."""
        assert commands.set_frequency("not-a-number").text == "$FCS,0,not-a-number"


class TestMultiLineBuilders:
    """Builders whose reply ends with OK."""

    def test_verbose_status(self):
        cmd = commands.get_status(verbose=True)
        assert cmd.text == "$ST,0,1"
        assert cmd.reply is ReplyShape.OK_BLOCK
        assert cmd.terminator == "OK\r\n"

    def test_sweep(self):
        cmd = commands.sweep_dbm("2400", "2500", "1", "40")
        assert cmd.text == "$SWPD,0,2400,2500,1,40,0"
        assert cmd.reply is ReplyShape.OK_BLOCK

    def test_sweep_numeric_args(self):
        cmd = commands.sweep_dbm(2400, 2500, 0.5, 40.0)
        assert cmd.text == "$SWPD,0,2400,2500,0.50,40.00,0"
