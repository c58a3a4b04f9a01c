"""Value coercers.

Pure functions converting a resolved raw string into a typed value, one per
scalar family plus homogeneous sequences. Constraint annotations are applied
here: ``min`` and ``max`` for numbers, ``pattern`` for strings. Sequence
items are coerced with the same rules as a scalar of the element type.

All failures raise a BindError subclass without a field path; the binder
adds the field location before propagating.

Example:
    >>> coerce_scalar("42", Tags(min="0"), ScalarType(TypeCategory.INTEGER), {})
    42
"""

from __future__ import annotations

import math
import re
import struct
import sys
from typing import TYPE_CHECKING, Any

from envset.descriptors import ScalarType, TypeCategory
from envset.exceptions import (
    InvalidPatternError,
    InvalidValueError,
    OutOfRangeError,
    PatternMismatchError,
    UnsupportedTypeError,
)
from envset.tags import MAX_TAG, MIN_TAG, PATTERN_TAG


if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from envset.descriptors import IntWidth


_INTEGER = re.compile(r"[+-]?[0-9]+")


# =============================================================================
# Literal Parsing
# =============================================================================


def parse_bool(raw: str, table: Mapping[str, bool]) -> bool:
    """Parse a boolean literal, case-insensitively.

    Args:
        raw: Raw string value.
        table: Lower-cased literal to boolean table.

    Raises:
        InvalidValueError: If the literal is not in the table.
    """
    try:
        return table[raw.lower()]
    except KeyError:
        raise InvalidValueError(
            f"Invalid bool value {raw!r}",
            value=raw,
            expected="boolean (" + "/".join(sorted(table)) + ")",
        ) from None


def parse_integer(raw: str) -> int:
    """Parse a base-10 integer with an optional sign.

    Surrounding whitespace, underscores and other bases are rejected.

    Raises:
        InvalidValueError: If the string is not an integer literal.
    """
    if not _INTEGER.fullmatch(raw):
        raise InvalidValueError(
            f"Invalid integer value {raw!r}",
            value=raw,
            expected="integer",
        )
    try:
        return int(raw)
    except ValueError as e:
        raise InvalidValueError(
            f"Invalid integer value {raw[:32]!r}: {e}",
            value=raw,
            expected="integer",
            cause=e,
        ) from e


def parse_float(raw: str) -> float:
    """Parse a decimal floating point literal.

    Raises:
        InvalidValueError: If the string is not a float literal.
        OutOfRangeError: If a finite literal overflows double precision.
    """
    if raw != raw.strip() or "_" in raw:
        raise InvalidValueError(f"Invalid float value {raw!r}", value=raw, expected="float")
    try:
        value = float(raw)
    except ValueError as e:
        raise InvalidValueError(
            f"Invalid float value {raw!r}",
            value=raw,
            expected="float",
            cause=e,
        ) from e
    if math.isinf(value) and "inf" not in raw.lower():
        raise OutOfRangeError(
            f"Value {raw} does not fit in float64",
            value=value,
            bound=math.copysign(sys.float_info.max, value),
            bound_type="width",
            details={"width": "float64"},
        )
    return value


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a ``pattern`` annotation.

    Raises:
        InvalidPatternError: If the pattern is not a valid regular expression.
    """
    try:
        return re.compile(pattern)
    except re.error as e:
        raise InvalidPatternError(pattern, cause=e) from e


# =============================================================================
# Constraints
# =============================================================================


def _bound(annotations: Mapping[str, str], name: str, parse: Callable[[str], Any]) -> Any:
    literal = annotations.get(name)
    if literal is None:
        return None
    try:
        return parse(literal)
    except InvalidValueError as e:
        raise InvalidValueError(
            f"Invalid {name} annotation {literal!r}",
            value=literal,
            expected=e.expected,
            details={"annotation": name},
            cause=e,
        ) from e


def check_range(
    value: Any,
    raw: str,
    annotations: Mapping[str, str],
    parse: Callable[[str], Any],
) -> None:
    """Check ``value`` against the ``min``/``max`` annotations.

    Bounds are parsed with the same parser as the value.

    Raises:
        InvalidValueError: If a bound annotation cannot be parsed.
        OutOfRangeError: If the value lies outside a bound.
    """
    minimum = _bound(annotations, MIN_TAG, parse)
    if minimum is not None and value < minimum:
        raise OutOfRangeError(
            f"Value {raw} is less than the minimal value {annotations[MIN_TAG]}",
            value=value,
            bound=minimum,
            bound_type=MIN_TAG,
        )
    maximum = _bound(annotations, MAX_TAG, parse)
    if maximum is not None and value > maximum:
        raise OutOfRangeError(
            f"Value {raw} is greater than the maximum value {annotations[MAX_TAG]}",
            value=value,
            bound=maximum,
            bound_type=MAX_TAG,
        )


def narrow_integer(value: int, width: IntWidth | None) -> int:
    """Check that ``value`` fits the integer width.

    Raises:
        OutOfRangeError: If the value is not representable.
    """
    if width is None:
        return value
    if value < width.min_value:
        bound = width.min_value
    elif value > width.max_value:
        bound = width.max_value
    else:
        return value
    raise OutOfRangeError(
        f"Value {value} does not fit in {width}",
        value=value,
        bound=bound,
        bound_type="width",
        details={"width": str(width)},
    )


def narrow_float(value: float, bits: int) -> float:
    """Round ``value`` to single precision when ``bits`` is 32.

    Raises:
        OutOfRangeError: If the value overflows single precision.
    """
    if bits != 32:
        return value
    try:
        return struct.unpack("<f", struct.pack("<f", value))[0]
    except OverflowError as e:
        raise OutOfRangeError(
            f"Value {value} does not fit in float32",
            value=value,
            bound=struct.unpack("<f", b"\xff\xff\x7f\x7f")[0],
            bound_type="width",
            details={"width": "float32"},
            cause=e,
        ) from e


def check_pattern(value: str, annotations: Mapping[str, str]) -> None:
    """Require ``value`` to match the ``pattern`` annotation, if any.

    The pattern is searched for anywhere in the value; anchor it with
    ``^`` and ``$`` to require a full match.

    Raises:
        InvalidPatternError: If the pattern does not compile.
        PatternMismatchError: If the value does not match.
    """
    pattern = annotations.get(PATTERN_TAG)
    if pattern is None:
        return
    if compile_pattern(pattern).search(value) is None:
        raise PatternMismatchError(value, pattern)


# =============================================================================
# Coercers
# =============================================================================


def _construct(scalar: ScalarType, value: Any, raw: str) -> Any:
    if scalar.constructor is None:
        return value
    try:
        return scalar.constructor(value)
    except (TypeError, ValueError) as e:
        raise InvalidValueError(
            f"Invalid value {raw!r} for {scalar.constructor.__name__}",
            value=raw,
            expected=scalar.constructor.__name__,
            cause=e,
        ) from e


def coerce_integer(raw: str, annotations: Mapping[str, str], scalar: ScalarType) -> int:
    """Coerce a raw string into an integer of the scalar's width."""
    value = parse_integer(raw)
    check_range(value, raw, annotations, parse_integer)
    value = narrow_integer(value, scalar.int_width)
    return _construct(scalar, value, raw)


def coerce_float(raw: str, annotations: Mapping[str, str], scalar: ScalarType) -> float:
    """Coerce a raw string into a float of the scalar's width."""
    value = parse_float(raw)
    check_range(value, raw, annotations, parse_float)
    value = narrow_float(value, scalar.float_bits)
    return _construct(scalar, value, raw)


def coerce_string(raw: str, annotations: Mapping[str, str], scalar: ScalarType) -> str:
    """Validate a raw string against its pattern and return it verbatim."""
    check_pattern(raw, annotations)
    return _construct(scalar, raw, raw)


def coerce_scalar(
    raw: str,
    annotations: Mapping[str, str],
    scalar: ScalarType,
    bool_table: Mapping[str, bool],
) -> Any:
    """Coerce a raw string into a scalar of the given type.

    Args:
        raw: Resolved raw string.
        annotations: The field's annotation set.
        scalar: Target scalar type.
        bool_table: Lower-cased literal to boolean table.

    Returns:
        The coerced value.
    """
    if scalar.category is TypeCategory.BOOL:
        return parse_bool(raw, bool_table)
    if scalar.category is TypeCategory.INTEGER:
        return coerce_integer(raw, annotations, scalar)
    if scalar.category is TypeCategory.FLOAT:
        return coerce_float(raw, annotations, scalar)
    if scalar.category is TypeCategory.STRING:
        return coerce_string(raw, annotations, scalar)
    raise UnsupportedTypeError(scalar.category.name.lower())


def coerce_sequence(
    raw: str,
    annotations: Mapping[str, str],
    element: ScalarType | None,
    *,
    element_name: str,
    sequence_type: type = list,
    separator: str = ",",
    trim: bool = False,
) -> list[Any] | tuple[Any, ...]:
    """Split a raw string and coerce every item.

    Args:
        raw: Resolved raw string.
        annotations: The field's annotation set, applied to each item.
        element: Element scalar type, None if the element type is unsupported.
        element_name: Readable element type name for error messages.
        sequence_type: ``list`` or ``tuple``.
        separator: Item separator.
        trim: Strip whitespace around each item.

    Raises:
        UnsupportedTypeError: If the element type is not an integer, float or string.
    """
    if element is None:
        raise UnsupportedTypeError(
            element_name,
            message=f"Unsupported sequence element type: {element_name}",
        )
    parts = raw.split(separator)
    if trim:
        parts = [part.strip() for part in parts]
    values = [coerce_scalar(part, annotations, element, {}) for part in parts]
    return sequence_type(values)
