"""Tests for the scalar codec."""

from __future__ import annotations

import pytest

from sw_mc.codec.primitives import (
    ValueKind,
    decode,
    encode,
    escape_attribute,
    escape_text,
    format_float,
)
from sw_mc.models.errors import (
    EncodeError,
    InvalidBooleanLiteral,
    InvalidNumericLiteral,
    ValueOutOfRange,
)
from sw_mc.models.types import ScriptBlock


class TestDecodeNumbers:
    def test_plain_decimals(self):
        assert decode("0.25", ValueKind.FLOAT) == 0.25
        assert decode("-1.5", ValueKind.FLOAT) == -1.5
        assert decode("+3", ValueKind.FLOAT) == 3.0
        assert decode(".5", ValueKind.FLOAT) == 0.5
        assert decode("2.", ValueKind.FLOAT) == 2.0

    def test_rejects_exponent_and_junk(self):
        for text in ("1e5", "1.5E-3", "abc", "", " 1", "1,5", "inf", "nan", "0x10", "1\n", "1\t", "\u0661"):
            with pytest.raises(InvalidNumericLiteral):
                decode(text, ValueKind.FLOAT)

    def test_integer_ranges(self):
        assert decode("255", ValueKind.UINT8) == 255
        assert decode("65535", ValueKind.UINT16) == 65535
        assert decode("4294967295", ValueKind.UINT32) == 4294967295
        assert decode("-1", ValueKind.INT8) == -1
        assert decode("-128", ValueKind.INT8) == -128

    def test_integer_out_of_range(self):
        with pytest.raises(ValueOutOfRange):
            decode("256", ValueKind.UINT8)
        with pytest.raises(ValueOutOfRange):
            decode("-1", ValueKind.UINT32)
        with pytest.raises(ValueOutOfRange):
            decode("128", ValueKind.INT8)

    def test_integer_rejects_fraction(self):
        with pytest.raises(InvalidNumericLiteral):
            decode("1.0", ValueKind.UINT8)

    def test_integer_rejects_trailing_newline_and_non_ascii_digits(self):
        for text in ("1\n", "2\r", "\u0661", "1\u0662"):
            with pytest.raises(InvalidNumericLiteral):
                decode(text, ValueKind.UINT8)

    def test_huge_float_literal_is_finite(self):
        value = decode("340282346638528859811704183484516925440", ValueKind.FLOAT)
        assert value == pytest.approx(3.4028234663852886e38)


class TestDecodeOther:
    def test_booleans(self):
        assert decode("true", ValueKind.BOOL) is True
        assert decode("false", ValueKind.BOOL) is False

    def test_boolean_is_case_sensitive(self):
        for text in ("True", "FALSE", "1", "yes", ""):
            with pytest.raises(InvalidBooleanLiteral):
                decode(text, ValueKind.BOOL)

    def test_string_is_verbatim(self):
        assert decode("  spaced\tout\n", ValueKind.STRING) == "  spaced\tout\n"

    def test_script_block(self):
        block = decode("a = 1\nb = 2", ValueKind.SCRIPT)
        assert isinstance(block, ScriptBlock)
        assert block.source == "a = 1\nb = 2"


class TestFormatFloat:
    def test_whole_numbers_drop_fraction(self):
        assert format_float(1.0) == "1"
        assert format_float(-2.0) == "-2"
        assert format_float(0.0) == "0"

    def test_shortest_form(self):
        assert format_float(0.25) == "0.25"
        assert format_float(0.1) == "0.1"
        assert format_float(-1.25) == "-1.25"

    def test_never_exponent(self):
        assert format_float(1e20) == "100000000000000000000"
        assert format_float(1.5e-7) == "0.00000015"
        assert "e" not in format_float(3.4028234663852886e38).lower()

    def test_non_finite_rejected(self):
        with pytest.raises(EncodeError):
            format_float(float("inf"))
        with pytest.raises(EncodeError):
            format_float(float("nan"))

    def test_reparses_to_same_value(self):
        for value in (0.1, 2.5, -0.75, 1234.5678, 1e-10, 123456789.0):
            assert decode(format_float(value), ValueKind.FLOAT) == value


class TestEncode:
    def test_declared_kinds(self):
        assert encode(True, ValueKind.BOOL) == "true"
        assert encode(False, ValueKind.BOOL) == "false"
        assert encode(2.5, ValueKind.FLOAT) == "2.5"
        assert encode(3, ValueKind.FLOAT) == "3"
        assert encode(-1, ValueKind.INT8) == "-1"
        assert encode(ScriptBlock(source="x"), ValueKind.SCRIPT) == "x"

    def test_inferred_kinds(self):
        assert encode(True) == "true"
        assert encode(4.0) == "4"
        assert encode(7) == "7"
        assert encode("text") == "text"

    def test_integer_out_of_range(self):
        with pytest.raises(EncodeError):
            encode(300, ValueKind.UINT8)
        with pytest.raises(EncodeError):
            encode(-1, ValueKind.UINT16)

    def test_wrong_type(self):
        with pytest.raises(EncodeError):
            encode("1", ValueKind.UINT8)
        with pytest.raises(EncodeError):
            encode(True, ValueKind.UINT8)
        with pytest.raises(EncodeError):
            encode(1, ValueKind.BOOL)
        with pytest.raises(EncodeError):
            encode(None)
        with pytest.raises(EncodeError):
            encode("script", ValueKind.SCRIPT)


class TestEscaping:
    def test_attribute(self):
        assert escape_attribute('a < b & "c" > d') == "a &lt; b &amp; &quot;c&quot; &gt; d"

    def test_attribute_keeps_whitespace_and_apostrophe(self):
        assert escape_attribute("line\n\tnext 'q'") == "line\n\tnext 'q'"

    def test_text(self):
        assert escape_text('<"x">&') == '&lt;"x"&gt;&amp;'
