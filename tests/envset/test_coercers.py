"""Tests for envset.coercers module."""

import math

import pytest

from envset.coercers import (
    check_pattern,
    check_range,
    coerce_scalar,
    coerce_sequence,
    compile_pattern,
    narrow_float,
    narrow_integer,
    parse_bool,
    parse_float,
    parse_integer,
)
from envset.config import BindConfig
from envset.descriptors import IntWidth, ScalarType, TypeCategory
from envset.exceptions import (
    InvalidPatternError,
    InvalidValueError,
    OutOfRangeError,
    PatternMismatchError,
    UnsupportedTypeError,
)
from envset.tags import Tags


INTEGER = ScalarType(TypeCategory.INTEGER)
FLOAT = ScalarType(TypeCategory.FLOAT)
STRING = ScalarType(TypeCategory.STRING)
BOOL = ScalarType(TypeCategory.BOOL)
BOOLS = BindConfig().bool_table()


class TestParseBool:
    """Tests for parse_bool."""

    @pytest.mark.parametrize(
        "raw",
        ["1", "t", "T", "true", "TRUE", "True", "y", "Y", "yes", "YES", "on", "On"],
    )
    def test_truthy(self, raw):
        """Test built-in truthy literals."""
        assert parse_bool(raw, BOOLS) is True

    @pytest.mark.parametrize(
        "raw",
        ["0", "f", "F", "false", "FALSE", "n", "N", "no", "No", "off", "OFF"],
    )
    def test_falsy(self, raw):
        """Test built-in falsy literals."""
        assert parse_bool(raw, BOOLS) is False

    @pytest.mark.parametrize("raw", ["", "15", "xyz", " true", "yess"])
    def test_invalid(self, raw):
        """Test unknown literals."""
        with pytest.raises(InvalidValueError) as exc_info:
            parse_bool(raw, BOOLS)
        assert exc_info.value.value == raw

    def test_custom_table(self):
        """Test a table with extra literals."""
        table = BindConfig().with_custom_bools("Так", "Ні").bool_table()
        assert parse_bool("так", table) is True
        assert parse_bool("НІ", table) is False
        assert parse_bool("yes", table) is True


class TestParseNumbers:
    """Tests for parse_integer and parse_float."""

    @pytest.mark.parametrize(
        "raw,expected",
        [("0", 0), ("42", 42), ("-7", -7), ("+7", 7), ("007", 7), ("18446744073709551615", 2**64 - 1)],
    )
    def test_integers(self, raw, expected):
        """Test valid integer literals."""
        assert parse_integer(raw) == expected

    @pytest.mark.parametrize("raw", ["", " 1", "1 ", "1_000", "0x10", "1.0", "abc", "--1", "١٢"])
    def test_invalid_integers(self, raw):
        """Test rejected integer literals."""
        with pytest.raises(InvalidValueError, match="Invalid integer value"):
            parse_integer(raw)

    def test_integer_too_long(self):
        """Test a literal beyond the interpreter's digit limit."""
        with pytest.raises(InvalidValueError, match="Invalid integer value") as exc_info:
            parse_integer("9" * 5000)
        assert isinstance(exc_info.value.cause, ValueError)

    def test_integer_bound_too_long(self):
        """Test an overlong bound literal is reported as an invalid annotation."""
        with pytest.raises(InvalidValueError, match="Invalid max annotation"):
            check_range(1, "1", Tags(max="9" * 5000), parse_integer)

    @pytest.mark.parametrize(
        "raw,expected",
        [("1.5", 1.5), ("-2", -2.0), ("1e3", 1000.0), (".5", 0.5), ("+0.25", 0.25)],
    )
    def test_floats(self, raw, expected):
        """Test valid float literals."""
        assert parse_float(raw) == expected

    @pytest.mark.parametrize("raw", ["", " 1.5", "1.5 ", "1_0.5", "abc", "1.2.3"])
    def test_invalid_floats(self, raw):
        """Test rejected float literals."""
        with pytest.raises(InvalidValueError, match="Invalid float value"):
            parse_float(raw)

    @pytest.mark.parametrize("raw", ["1e400", "-1e400"])
    def test_float_overflow(self, raw):
        """Test finite literals that overflow double precision."""
        with pytest.raises(OutOfRangeError, match="does not fit in float64") as exc_info:
            parse_float(raw)
        assert exc_info.value.bound_type == "width"

    @pytest.mark.parametrize("raw", ["inf", "-Infinity", "+INF"])
    def test_float_infinity_literals(self, raw):
        """Test spelled-out infinities are accepted."""
        assert math.isinf(parse_float(raw))


class TestCheckRange:
    """Tests for check_range."""

    def test_within_bounds(self):
        """Test values on and between the bounds."""
        annotations = Tags(min="0", max="10")
        for value in (0, 5, 10):
            check_range(value, str(value), annotations, parse_integer)

    def test_below_minimum(self):
        """Test a value below the minimum."""
        with pytest.raises(OutOfRangeError, match="less than the minimal value 0") as exc_info:
            check_range(-1, "-1", Tags(min="0"), parse_integer)
        assert exc_info.value.bound_type == "min"
        assert exc_info.value.value == -1

    def test_above_maximum(self):
        """Test a value above the maximum."""
        with pytest.raises(OutOfRangeError, match="greater than the maximum value 1.5") as exc_info:
            check_range(2.0, "2.0", Tags(max="1.5"), parse_float)
        assert exc_info.value.bound_type == "max"
        assert exc_info.value.bound == 1.5

    def test_invalid_bound_annotation(self):
        """Test an unparseable bound."""
        with pytest.raises(InvalidValueError, match="Invalid min annotation") as exc_info:
            check_range(1, "1", Tags(min="zero"), parse_integer)
        assert exc_info.value.details["annotation"] == "min"

    def test_no_bounds(self):
        """Test no annotations means no checks."""
        check_range(10**30, "big", Tags(), parse_integer)


class TestNarrowing:
    """Tests for narrow_integer and narrow_float."""

    @pytest.mark.parametrize(
        "width,low,high",
        [
            (IntWidth(8, True), -128, 127),
            (IntWidth(16, True), -32768, 32767),
            (IntWidth(8, False), 0, 255),
            (IntWidth(64, False), 0, 2**64 - 1),
        ],
    )
    def test_limits(self, width, low, high):
        """Test the representable range of a width."""
        assert narrow_integer(low, width) == low
        assert narrow_integer(high, width) == high
        with pytest.raises(OutOfRangeError):
            narrow_integer(low - 1, width)
        with pytest.raises(OutOfRangeError):
            narrow_integer(high + 1, width)

    def test_unbounded(self):
        """Test no width means no narrowing."""
        assert narrow_integer(2**100, None) == 2**100

    def test_width_error_details(self):
        """Test the width is reported."""
        with pytest.raises(OutOfRangeError) as exc_info:
            narrow_integer(-1, IntWidth(32, False))
        assert exc_info.value.bound_type == "width"
        assert exc_info.value.bound == 0
        assert exc_info.value.details["width"] == "uint32"

    def test_float32_rounding(self):
        """Test single precision rounding."""
        assert narrow_float(0.1, 32) != 0.1
        assert narrow_float(0.1, 32) == pytest.approx(0.1, rel=1e-7)
        assert narrow_float(0.1, 64) == 0.1

    def test_float32_overflow(self):
        """Test values beyond single precision."""
        with pytest.raises(OutOfRangeError) as exc_info:
            narrow_float(1e39, 32)
        assert exc_info.value.details["width"] == "float32"


class TestPatterns:
    """Tests for compile_pattern and check_pattern."""

    def test_invalid_pattern(self):
        """Test a pattern that does not compile."""
        with pytest.raises(InvalidPatternError, match="Error parsing regexp") as exc_info:
            compile_pattern("[a-")
        assert exc_info.value.pattern == "[a-"

    def test_partial_match(self):
        """Test an unanchored pattern matches anywhere."""
        check_pattern("abc123", Tags(pattern=r"\d+"))

    def test_anchored_mismatch(self):
        """Test anchors require a full match."""
        with pytest.raises(PatternMismatchError) as exc_info:
            check_pattern("12a", Tags(pattern=r"^\d+$"))
        assert exc_info.value.value == "12a"
        assert exc_info.value.pattern == r"^\d+$"

    def test_no_pattern(self):
        """Test no annotation means no check."""
        check_pattern("anything", Tags())


class TestCoerceScalar:
    """Tests for coerce_scalar."""

    def test_bool(self):
        """Test boolean dispatch."""
        assert coerce_scalar("yes", Tags(), BOOL, BOOLS) is True

    def test_integer_with_bounds(self):
        """Test integer dispatch with bounds."""
        assert coerce_scalar("5", Tags(min="1", max="9"), INTEGER, BOOLS) == 5
        with pytest.raises(OutOfRangeError):
            coerce_scalar("10", Tags(min="1", max="9"), INTEGER, BOOLS)

    def test_integer_width(self):
        """Test width narrowing through dispatch."""
        int8 = ScalarType(TypeCategory.INTEGER, int_width=IntWidth(8, True))
        with pytest.raises(OutOfRangeError):
            coerce_scalar("200", Tags(), int8, BOOLS)

    def test_bounds_checked_before_width(self):
        """Test the annotated bound is reported before the width."""
        int8 = ScalarType(TypeCategory.INTEGER, int_width=IntWidth(8, True))
        with pytest.raises(OutOfRangeError) as exc_info:
            coerce_scalar("200", Tags(max="100"), int8, BOOLS)
        assert exc_info.value.bound_type == "max"

    def test_float_bounds(self):
        """Test float bounds compare in the float domain."""
        assert coerce_scalar("0.5", Tags(min="0.1"), FLOAT, BOOLS) == 0.5
        with pytest.raises(OutOfRangeError):
            coerce_scalar("0.05", Tags(min="0.1"), FLOAT, BOOLS)

    def test_string_verbatim(self):
        """Test strings are assigned verbatim."""
        assert coerce_scalar("  spaced  ", Tags(), STRING, BOOLS) == "  spaced  "

    def test_constructor(self):
        """Test a declared subclass constructs the value."""

        class Name(str):
            pass

        value = coerce_scalar("x", Tags(), ScalarType(TypeCategory.STRING, constructor=Name), BOOLS)
        assert type(value) is Name

    def test_constructor_failure(self):
        """Test a failing constructor becomes InvalidValueError."""

        def positive(value: int) -> int:
            if value <= 0:
                raise ValueError("must be positive")
            return value

        scalar = ScalarType(TypeCategory.INTEGER, constructor=positive)
        with pytest.raises(InvalidValueError, match="positive") as exc_info:
            coerce_scalar("-1", Tags(), scalar, BOOLS)
        assert isinstance(exc_info.value.cause, ValueError)

    def test_non_scalar_category(self):
        """Test a non-scalar category is unsupported."""
        with pytest.raises(UnsupportedTypeError):
            coerce_scalar("1", Tags(), ScalarType(TypeCategory.SEQUENCE), BOOLS)


class TestCoerceSequence:
    """Tests for coerce_sequence."""

    def test_integers(self):
        """Test an integer list."""
        assert coerce_sequence("1,2,3", Tags(), INTEGER, element_name="int") == [1, 2, 3]

    def test_tuple(self):
        """Test the sequence type is honored."""
        result = coerce_sequence("a,b", Tags(), STRING, element_name="str", sequence_type=tuple)
        assert result == ("a", "b")

    def test_separator(self):
        """Test a custom separator."""
        assert coerce_sequence("1;2", Tags(), INTEGER, element_name="int", separator=";") == [1, 2]

    def test_single_item(self):
        """Test a value without separators."""
        assert coerce_sequence("7", Tags(), INTEGER, element_name="int") == [7]

    def test_empty_string_items(self):
        """Test empty items are kept for strings."""
        assert coerce_sequence("a,,b", Tags(), STRING, element_name="str") == ["a", "", "b"]

    def test_whitespace_not_trimmed_by_default(self):
        """Test numbers with spaces fail unless trimming is enabled."""
        with pytest.raises(InvalidValueError):
            coerce_sequence("1, 2", Tags(), INTEGER, element_name="int")
        assert coerce_sequence("1, 2", Tags(), INTEGER, element_name="int", trim=True) == [1, 2]

    def test_element_constraints(self):
        """Test bounds and patterns apply to every element."""
        with pytest.raises(OutOfRangeError):
            coerce_sequence("1,20", Tags(max="10"), INTEGER, element_name="int")
        with pytest.raises(PatternMismatchError):
            coerce_sequence("ab,a1", Tags(pattern="^[a-z]+$"), STRING, element_name="str")

    def test_unsupported_element(self):
        """Test an unsupported element type."""
        with pytest.raises(UnsupportedTypeError, match="Unsupported sequence element type: bool"):
            coerce_sequence("1,0", Tags(), None, element_name="bool")
