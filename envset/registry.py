"""Registry of custom type parsers.

A type parser converts the raw string resolved for a field into a value of
a user-defined type. Parsers are keyed by type identity and are consulted
before any built-in coercion, including nested record detection.

Example:
    >>> from datetime import timedelta
    >>> registry = TypeParserRegistry()
    >>> registry.register(timedelta, parse_duration)
    >>> registry.parse(timedelta, "1m30s")
    datetime.timedelta(seconds=90)
"""

from __future__ import annotations

import re
import threading
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from envset.descriptors import type_name
from envset.exceptions import EnvsetError


if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Mapping


# =============================================================================
# Exceptions
# =============================================================================


class ParserAlreadyRegisteredError(EnvsetError):
    """Exception raised when registering a second parser for the same type.

    Attributes:
        type_name: Readable name of the type.
    """

    def __init__(self, target: Any) -> None:
        """Initialize parser already registered error.

        Args:
            target: The type that already has a parser.
        """
        name = type_name(target)
        super().__init__(
            f"A parser for type '{name}' is already registered",
            details={"type": name},
        )
        self.type_name = name


# =============================================================================
# Registry
# =============================================================================


class TypeParserRegistry:
    """Mapping of type identity to a string parsing function.

    The registry is thread-safe. A registry handed to ``bind`` is only read
    during the call, so one instance can be reused across calls.

    Example:
        >>> registry = TypeParserRegistry()
        >>> registry.register(Path, Path)
        >>> Path in registry
        True
    """

    def __init__(self, parsers: Mapping[Any, Callable[[str], Any]] | None = None) -> None:
        """Initialize the registry.

        Args:
            parsers: Optional initial mapping of type to parser.
        """
        self._parsers: dict[Any, Callable[[str], Any]] = {}
        self._lock = threading.RLock()
        for target, parser in (parsers or {}).items():
            self.register(target, parser)

    def register(
        self,
        target: Any,
        parser: Callable[[str], Any],
        *,
        allow_override: bool = False,
    ) -> None:
        """Register a parser for a type.

        Args:
            target: Type identity the parser produces values for.
            parser: Callable converting a raw string to a value.
            allow_override: Whether to replace an existing registration.

        Raises:
            ParserAlreadyRegisteredError: If a parser exists and override is not allowed.
            TypeError: If ``parser`` is not callable.
        """
        if not callable(parser):
            raise TypeError(f"Parser for {type_name(target)} must be callable")
        with self._lock:
            if target in self._parsers and not allow_override:
                raise ParserAlreadyRegisteredError(target)
            self._parsers[target] = parser

    def unregister(self, target: Any) -> Callable[[str], Any] | None:
        """Remove and return the parser for a type, if any."""
        with self._lock:
            return self._parsers.pop(target, None)

    def get(self, target: Any) -> Callable[[str], Any] | None:
        """Return the parser registered for a type, or None."""
        with self._lock:
            try:
                return self._parsers.get(target)
            except TypeError:
                return None

    def has(self, target: Any) -> bool:
        """Check if a parser is registered for a type."""
        return self.get(target) is not None

    def parse(self, target: Any, raw: str) -> Any:
        """Run the registered parser for ``target`` on ``raw``.

        Raises:
            KeyError: If no parser is registered for the type.
        """
        parser = self.get(target)
        if parser is None:
            raise KeyError(type_name(target))
        return parser(raw)

    def copy(self) -> TypeParserRegistry:
        """Return an independent copy of this registry."""
        with self._lock:
            return TypeParserRegistry(dict(self._parsers))

    def types(self) -> list[Any]:
        """List all types with a registered parser."""
        with self._lock:
            return list(self._parsers)

    def __len__(self) -> int:
        with self._lock:
            return len(self._parsers)

    def __contains__(self, target: Any) -> bool:
        return self.has(target)

    def __iter__(self) -> Iterator[Any]:
        with self._lock:
            return iter(list(self._parsers))

    def __repr__(self) -> str:
        names = ", ".join(type_name(t) for t in self.types())
        return f"TypeParserRegistry([{names}])"


# =============================================================================
# Ready-made Parsers
# =============================================================================

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(raw: str) -> timedelta:
    """Parse a duration such as ``300ms``, ``1.5h`` or ``2h45m``.

    A leading sign is allowed. A bare ``0`` is the zero duration.

    Raises:
        ValueError: If the string is not a valid duration.
    """
    text = raw.strip()
    sign = 1
    if text[:1] in ("+", "-"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    if text == "0":
        return timedelta(0)
    if not text:
        raise ValueError(f"invalid duration {raw!r}")

    seconds = 0.0
    pos = 0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if match is None:
            raise ValueError(f"invalid duration {raw!r}")
        seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    return timedelta(seconds=sign * seconds)


def parse_datetime(raw: str) -> datetime:
    """Parse an ISO-8601 timestamp; a trailing ``Z`` means UTC.

    Raises:
        ValueError: If the string is not a valid timestamp.
    """
    text = raw.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


DEFAULT_PARSERS: dict[Any, Callable[[str], Any]] = {
    timedelta: parse_duration,
    datetime: parse_datetime,
}
