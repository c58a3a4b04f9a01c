"""Field annotations for envset records.

A record field carries its binding instructions as an annotation set: a
read-only mapping of annotation name to raw string, e.g.
``{"env": "PORT", "default": "8080", "min": "1"}``. Annotations can be
attached in two ways, which may be combined (``Annotated`` extras win):

    >>> from dataclasses import dataclass, field
    >>> from typing import Annotated
    >>> @dataclass
    ... class Server:
    ...     port: int = field(default=0, metadata=tags(env="PORT", default="8080"))
    ...     host: Annotated[str, Tags(env="HOST", default="localhost")] = ""

The struct-tag string form is also accepted:

    >>> Tags.parse('env:"PORT,omitempty" default:"8080"')
    Tags({'env': 'PORT,omitempty', 'default': '8080'})
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from typing import Any


# Annotation names understood out of the box. The source key and default
# names can be changed per call through BindConfig.
ENV_TAG = "env"
DEFAULT_TAG = "default"
MIN_TAG = "min"
MAX_TAG = "max"
PATTERN_TAG = "pattern"

OPTIONAL_SUFFIX = ",omitempty"

_TAG_PAIR = re.compile(r'\s*([^\s:"]+):"((?:[^"\\]|\\.)*)"')
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r"}


class Tags(Mapping[str, str]):
    """Immutable mapping of annotation name to raw string value.

    Example:
        >>> t = Tags(env="TIMEOUT", min="0")
        >>> t["env"]
        'TIMEOUT'
        >>> "max" in t
        False
    """

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, Any] | None = None, /, **tags: Any) -> None:
        """Initialize the annotation set.

        Args:
            data: Optional mapping of annotations.
            **tags: Annotations given as keyword arguments.

        Raises:
            TypeError: If an annotation value is not a string.
        """
        merged = {**(data or {}), **tags}
        for name, value in merged.items():
            if not isinstance(value, str):
                raise TypeError(
                    f"Annotation {name!r} must be a string, got {type(value).__name__}"
                )
        self._data: dict[str, str] = merged

    def __getitem__(self, key: str) -> str:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"Tags({self._data!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Mapping):
            return dict(self._data) == dict(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(tuple(sorted(self._data.items())))

    def merge(self, other: Mapping[str, str]) -> Tags:
        """Create a new annotation set with ``other`` taking precedence."""
        return Tags({**self._data, **other})

    @classmethod
    def parse(cls, text: str) -> Tags:
        """Parse a struct-tag string such as ``env:"A" default:"1"``.

        Values are double-quoted; ``\\"`` and ``\\\\`` escapes are honoured.

        Args:
            text: Tag string to parse.

        Returns:
            Parsed annotation set.

        Raises:
            ValueError: If the string is not a sequence of ``name:"value"`` pairs.
        """
        data: dict[str, str] = {}
        pos = 0
        text = text.strip()
        while pos < len(text):
            match = _TAG_PAIR.match(text, pos)
            if match is None:
                raise ValueError(f"Malformed tag string at offset {pos}: {text!r}")
            data[match.group(1)] = _unescape(match.group(2))
            pos = match.end()
        return cls(data)


def _unescape(value: str) -> str:
    return re.sub(r"\\(.)", lambda m: _ESCAPES.get(m.group(1), m.group(1)), value)


def tags(**annotations: str) -> Tags:
    """Build an annotation set for ``dataclasses.field(metadata=...)``."""
    return Tags(annotations)


def split_source_key(raw: str) -> tuple[str, bool]:
    """Split a source-key annotation into the key and its optional flag.

    Example:
        >>> split_source_key("PORT,omitempty")
        ('PORT', True)
    """
    if raw.endswith(OPTIONAL_SUFFIX):
        return raw[: -len(OPTIONAL_SUFFIX)], True
    return raw, False
