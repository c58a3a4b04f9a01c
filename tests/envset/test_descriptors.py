"""Tests for envset.descriptors module."""

from dataclasses import dataclass, field, fields
from datetime import timedelta
from enum import IntEnum
from typing import Annotated, Optional

import pytest

from envset.descriptors import (
    Float32,
    Int8,
    IntWidth,
    TypeCategory,
    UInt16,
    classify_scalar,
    describe_record,
    is_default,
    type_name,
    unwrap_annotated,
    unwrap_optional,
)
from envset.registry import TypeParserRegistry
from envset.tags import Tags, tags


@dataclass
class Child:
    value: int = 0


@dataclass
class Sample:
    flag: bool = False
    count: int = 0
    small: Int8 = 0
    ratio: Float32 = 0.0
    name: str = field(default="", metadata=tags(env="NAME"))
    maybe: Optional[int] = None
    items: list[int] = field(default_factory=list)
    pairs: tuple[str, ...] = ()
    flags: list[bool] = field(default_factory=list)
    child: Child = field(default_factory=Child)
    maybe_child: Child | None = None
    timeout: timedelta = timedelta(0)
    annotated: Annotated[str, Tags(env="ANNOTATED")] = field(
        default="", metadata=tags(env="IGNORED", default="x")
    )
    _hidden: str = ""


class Priority(IntEnum):
    LOW = 1


def _by_name(registry=None):
    return {d.name: d for d in describe_record(Sample, registry or TypeParserRegistry())}


class TestDescribeRecord:
    """Tests for describe_record."""

    def test_declaration_order_and_private_fields(self):
        """Test fields keep declaration order and private ones are skipped."""
        names = [d.name for d in describe_record(Sample, TypeParserRegistry())]
        assert names == [f.name for f in fields(Sample) if not f.name.startswith("_")]
        assert "_hidden" not in names

    def test_categories(self):
        """Test the category of every field."""
        described = _by_name()
        assert described["flag"].category is TypeCategory.BOOL
        assert described["count"].category is TypeCategory.INTEGER
        assert described["small"].category is TypeCategory.INTEGER
        assert described["ratio"].category is TypeCategory.FLOAT
        assert described["name"].category is TypeCategory.STRING
        assert described["maybe"].category is TypeCategory.INTEGER
        assert described["items"].category is TypeCategory.SEQUENCE
        assert described["pairs"].category is TypeCategory.SEQUENCE
        assert described["child"].category is TypeCategory.RECORD
        assert described["maybe_child"].category is TypeCategory.OPTIONAL_RECORD
        assert described["timeout"].category is TypeCategory.UNSUPPORTED

    def test_optional_scalar(self):
        """Test Optional scalars are flagged."""
        maybe = _by_name()["maybe"]
        assert maybe.optional
        assert maybe.value_type is int

    def test_widths(self):
        """Test width markers."""
        described = _by_name()
        assert described["small"].scalar.int_width == IntWidth(8, True)
        assert described["ratio"].scalar.float_bits == 32

    def test_sequences(self):
        """Test sequence element and container types."""
        described = _by_name()
        assert described["items"].sequence_type is list
        assert described["items"].element.category is TypeCategory.INTEGER
        assert described["pairs"].sequence_type is tuple
        assert described["flags"].element is None

    def test_registered_type(self):
        """Test registered types become custom."""
        registry = TypeParserRegistry({timedelta: str, Child: Child})
        described = _by_name(registry)
        assert described["timeout"].category is TypeCategory.CUSTOM
        assert described["child"].category is TypeCategory.CUSTOM
        assert described["maybe_child"].category is TypeCategory.CUSTOM
        assert described["maybe_child"].value_type is Child

    def test_annotations(self):
        """Test metadata and Annotated extras are merged."""
        described = _by_name()
        assert described["name"].annotations == {"env": "NAME"}
        assert described["annotated"].annotations == {"env": "ANNOTATED", "default": "x"}
        assert described["count"].annotations == {}

    def test_non_string_metadata_is_ignored(self):
        """Test unrelated metadata does not break description."""

        @dataclass
        class T:
            a: int = field(default=0, metadata={"env": "A", "weight": 3})

        (descriptor,) = describe_record(T, TypeParserRegistry())
        assert descriptor.annotations == {"env": "A"}

    def test_type_name(self):
        """Test readable type names."""
        described = _by_name()
        assert described["small"].type_name == "Int8"
        assert described["count"].type_name == "int"


class TestHelpers:
    """Tests for classification helpers."""

    def test_unwrap_annotated(self):
        """Test stripping Annotated."""
        hint, extras = unwrap_annotated(Annotated[int, Tags(env="A"), "other"])
        assert hint is int
        assert extras == {"env": "A"}

    def test_unwrap_plain(self):
        """Test a plain hint passes through."""
        assert unwrap_annotated(int) == (int, Tags())

    @pytest.mark.parametrize(
        "hint,expected",
        [
            (Optional[int], (int, True)),
            (int | None, (int, True)),
            (int, (int, False)),
            (int | str, (int | str, False)),
        ],
    )
    def test_unwrap_optional(self, hint, expected):
        """Test Optional detection."""
        assert unwrap_optional(hint) == expected

    def test_classify_subclasses(self):
        """Test subclasses keep their constructor."""
        scalar = classify_scalar(Priority)
        assert scalar.category is TypeCategory.INTEGER
        assert scalar.constructor is Priority
        assert classify_scalar(int).constructor is None

    def test_classify_bool_before_int(self):
        """Test bool is not treated as an integer."""
        assert classify_scalar(bool).category is TypeCategory.BOOL

    def test_classify_unsigned(self):
        """Test unsigned markers."""
        assert classify_scalar(UInt16).int_width == IntWidth(16, False)

    def test_classify_non_scalar(self):
        """Test non-scalar hints."""
        assert classify_scalar(list[int]) is None
        assert classify_scalar(bytes) is None

    def test_type_name(self):
        """Test type_name."""
        assert type_name(int) == "int"
        assert type_name(UInt16) == "UInt16"
        assert type_name(list[int]) == "list[int]"

    def test_int_width(self):
        """Test width limits and names."""
        width = IntWidth(16, False)
        assert (width.min_value, width.max_value) == (0, 65535)
        assert str(width) == "uint16"
        assert str(IntWidth(8, True)) == "int8"


class TestIsDefault:
    """Tests for is_default."""

    @pytest.mark.parametrize("value", [None, False, 0, 0.0, "", [], (), b"", {}, set(), frozenset()])
    def test_zero_values(self, value):
        """Test zero values count as unset."""
        assert is_default(value)

    @pytest.mark.parametrize(
        "value", [True, 1, -1, 0.5, "x", [0], (0,), {"a": "b"}, {1}, Child(), timedelta(0)]
    )
    def test_set_values(self, value):
        """Test anything else counts as set."""
        assert not is_default(value)
