"""Field descriptors and type categories.

Every public field of a record is classified once per ``bind`` call into a
closed set of categories. The binder dispatches on the category; new kinds
of values are added through the type parser registry rather than by
extending this module.

Fixed-width numbers are declared with the markers defined here:

    >>> @dataclass
    ... class Limits:
    ...     retries: UInt8 = field(default=0, metadata=tags(env="RETRIES"))
    ...     ratio: Float32 = field(default=0.0, metadata=tags(env="RATIO"))
"""

from __future__ import annotations

import dataclasses
import types
import typing
from collections.abc import Sized
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, Annotated, Any, NewType, Union, get_args, get_origin

from envset.tags import Tags


if TYPE_CHECKING:
    from collections.abc import Mapping

    from envset.registry import TypeParserRegistry


# =============================================================================
# Width Markers
# =============================================================================

Int8 = NewType("Int8", int)
Int16 = NewType("Int16", int)
Int32 = NewType("Int32", int)
Int64 = NewType("Int64", int)
UInt = NewType("UInt", int)
UInt8 = NewType("UInt8", int)
UInt16 = NewType("UInt16", int)
UInt32 = NewType("UInt32", int)
UInt64 = NewType("UInt64", int)
Float32 = NewType("Float32", float)
Float64 = NewType("Float64", float)


@dataclass(frozen=True, slots=True)
class IntWidth:
    """Bit width and signedness of a fixed-width integer."""

    bits: int
    signed: bool

    @property
    def min_value(self) -> int:
        return -(1 << (self.bits - 1)) if self.signed else 0

    @property
    def max_value(self) -> int:
        return (1 << (self.bits - 1)) - 1 if self.signed else (1 << self.bits) - 1

    def __str__(self) -> str:
        return f"{'int' if self.signed else 'uint'}{self.bits}"


INT_WIDTHS: dict[Any, IntWidth] = {
    Int8: IntWidth(8, True),
    Int16: IntWidth(16, True),
    Int32: IntWidth(32, True),
    Int64: IntWidth(64, True),
    UInt: IntWidth(64, False),
    UInt8: IntWidth(8, False),
    UInt16: IntWidth(16, False),
    UInt32: IntWidth(32, False),
    UInt64: IntWidth(64, False),
}

FLOAT_WIDTHS: dict[Any, int] = {
    Float32: 32,
    Float64: 64,
}


# =============================================================================
# Categories
# =============================================================================


class TypeCategory(Enum):
    """Closed set of field categories the binder dispatches on."""

    BOOL = auto()
    INTEGER = auto()
    FLOAT = auto()
    STRING = auto()
    SEQUENCE = auto()
    RECORD = auto()
    OPTIONAL_RECORD = auto()
    CUSTOM = auto()
    UNSUPPORTED = auto()

    @property
    def is_scalar(self) -> bool:
        return self in (
            TypeCategory.BOOL,
            TypeCategory.INTEGER,
            TypeCategory.FLOAT,
            TypeCategory.STRING,
        )


@dataclass(frozen=True, slots=True)
class ScalarType:
    """A scalar value type: its category, constructor and width.

    Attributes:
        category: BOOL, INTEGER, FLOAT or STRING.
        constructor: Callable applied to the coerced value, e.g. a subclass
            of ``int`` declared on the field. ``None`` keeps the plain value.
        int_width: Width of a fixed-width integer, ``None`` when unbounded.
        float_bits: 32 or 64 for floating point values.
    """

    category: TypeCategory
    constructor: type | None = None
    int_width: IntWidth | None = None
    float_bits: int = 64


@dataclass(frozen=True, slots=True)
class FieldDescriptor:
    """Per-field binding information derived from a record's static type.

    Attributes:
        name: Attribute name on the record.
        hint: Declared type, with ``Annotated`` extras removed.
        category: Dispatch category.
        annotations: Merged annotation set for the field.
        optional: Whether the hint was ``Optional[...]``.
        value_type: Inner type for records, custom types and scalars.
        scalar: Scalar details for scalar categories.
        element: Element details for sequences, ``None`` if unsupported.
        sequence_type: ``list`` or ``tuple`` for sequences.
    """

    name: str
    hint: Any
    category: TypeCategory
    annotations: Tags
    optional: bool = False
    value_type: Any = None
    scalar: ScalarType | None = None
    element: ScalarType | None = None
    sequence_type: type | None = None

    @property
    def type_name(self) -> str:
        return type_name(self.hint)


# =============================================================================
# Classification
# =============================================================================


def type_name(hint: Any) -> str:
    """Return a readable name for a type hint."""
    if isinstance(hint, type):
        return hint.__qualname__
    if isinstance(hint, NewType):
        return hint.__name__
    return repr(hint).replace("typing.", "")


def is_record_type(hint: Any) -> bool:
    """Return True if ``hint`` is a dataclass type."""
    return isinstance(hint, type) and dataclasses.is_dataclass(hint)


def unwrap_annotated(hint: Any) -> tuple[Any, Tags]:
    """Strip ``Annotated`` and collect any ``Tags`` extras it carries."""
    extras = Tags()
    while get_origin(hint) is Annotated:
        args = get_args(hint)
        for extra in args[1:]:
            if isinstance(extra, Tags):
                extras = extras.merge(extra)
        hint = args[0]
    return hint, extras


def unwrap_optional(hint: Any) -> tuple[Any, bool]:
    """Return the inner type of ``Optional[T]`` and whether it was optional."""
    if get_origin(hint) in (Union, types.UnionType):
        args = [arg for arg in get_args(hint) if arg is not type(None)]
        if len(args) == 1 and len(get_args(hint)) == 2:
            return args[0], True
    return hint, False


def _lookup(table: dict[Any, Any], hint: Any) -> Any:
    try:
        return table.get(hint)
    except TypeError:
        return None


def classify_scalar(hint: Any) -> ScalarType | None:
    """Classify a scalar type, or return None if it is not a scalar.

    Subclasses of ``int``, ``float`` and ``str`` (including ``IntEnum`` and
    ``str`` based enums) use their base family and are built with the
    declared type. ``NewType`` aliases resolve to their supertype.
    """
    int_width = _lookup(INT_WIDTHS, hint)
    if int_width is not None:
        return ScalarType(TypeCategory.INTEGER, int_width=int_width)
    float_bits = _lookup(FLOAT_WIDTHS, hint)
    if float_bits is not None:
        return ScalarType(TypeCategory.FLOAT, float_bits=float_bits)
    if isinstance(hint, NewType):
        return classify_scalar(hint.__supertype__)
    if not isinstance(hint, type):
        return None
    if hint is bool:
        return ScalarType(TypeCategory.BOOL)
    constructor = None if hint in (int, float, str) else hint
    if issubclass(hint, int):
        return ScalarType(TypeCategory.INTEGER, constructor=constructor)
    if issubclass(hint, float):
        return ScalarType(TypeCategory.FLOAT, constructor=constructor)
    if issubclass(hint, str):
        return ScalarType(TypeCategory.STRING, constructor=constructor)
    return None


def _sequence_parts(hint: Any) -> tuple[type, Any] | None:
    origin = get_origin(hint)
    args = get_args(hint)
    if origin is list and len(args) == 1:
        return list, args[0]
    if origin is tuple and len(args) == 2 and args[1] is Ellipsis:
        return tuple, args[0]
    return None


def describe_field(
    field: dataclasses.Field[Any],
    hint: Any,
    registry: TypeParserRegistry,
) -> FieldDescriptor:
    """Build the descriptor for a single dataclass field.

    Args:
        field: The dataclass field.
        hint: The field's resolved type hint.
        registry: Custom type parsers for this call.

    Returns:
        Descriptor for the field.
    """
    hint, extras = unwrap_annotated(hint)
    declared = Tags({k: v for k, v in field.metadata.items() if isinstance(v, str)})
    annotations = declared.merge(extras)
    inner, optional = unwrap_optional(hint)
    base = {"name": field.name, "hint": hint, "annotations": annotations, "optional": optional}

    # Registered types win over every built-in category.
    for candidate in (hint, inner):
        if registry.has(candidate):
            return FieldDescriptor(category=TypeCategory.CUSTOM, value_type=candidate, **base)

    if is_record_type(inner):
        category = TypeCategory.OPTIONAL_RECORD if optional else TypeCategory.RECORD
        return FieldDescriptor(category=category, value_type=inner, **base)

    scalar = classify_scalar(inner)
    if scalar is not None:
        return FieldDescriptor(
            category=scalar.category, value_type=inner, scalar=scalar, **base
        )

    sequence = _sequence_parts(inner)
    if sequence is not None:
        sequence_type, element_hint = sequence
        element = classify_scalar(element_hint)
        if element is not None and element.category is TypeCategory.BOOL:
            element = None
        return FieldDescriptor(
            category=TypeCategory.SEQUENCE,
            value_type=element_hint,
            element=element,
            sequence_type=sequence_type,
            **base,
        )

    return FieldDescriptor(category=TypeCategory.UNSUPPORTED, value_type=inner, **base)


def resolve_hints(record_type: type) -> Mapping[str, Any]:
    """Resolve the type hints of a record, keeping ``Annotated`` extras.

    Falls back to the raw ``Field.type`` values when the hints cannot be
    evaluated, e.g. for forward references to function-local classes.
    """
    try:
        return typing.get_type_hints(record_type, include_extras=True)
    except (NameError, TypeError):
        return {f.name: f.type for f in dataclasses.fields(record_type)}


def describe_record(
    record_type: type,
    registry: TypeParserRegistry,
) -> list[FieldDescriptor]:
    """Describe the public fields of a record in declaration order.

    Fields whose names start with an underscore are private and omitted.
    """
    hints = resolve_hints(record_type)
    return [
        describe_field(f, hints.get(f.name, f.type), registry)
        for f in dataclasses.fields(record_type)
        if not f.name.startswith("_")
    ]


def is_default(value: Any) -> bool:
    """Return True if ``value`` is the zero value of its category.

    ``None``, ``False``, numeric zero and empty containers (strings,
    sequences, mappings, sets) are zero values. Any other value counts as
    already set.
    """
    if value is None:
        return True
    if isinstance(value, (bool, int, float)):
        return not value
    if isinstance(value, Sized):
        return len(value) == 0
    return False
