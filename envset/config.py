"""Binding options for envset.

A BindConfig holds every setting that shapes a ``bind`` call: the
annotation names used for the source key and default value, the sequence
separator, an optional environment key prefix, the table of accepted
boolean literals and the custom type parsers.

Configurations are immutable (frozen dataclass). Builder methods return
modified copies, so a configuration can be cached and shared between calls
and threads.

Example:
    >>> from datetime import timedelta
    >>> config = (
    ...     BindConfig()
    ...     .with_env_tag("e")
    ...     .with_separator(";")
    ...     .with_custom_bools("так", "ні")
    ...     .with_type_parser(timedelta, parse_duration)
    ... )
    >>> bind(settings, config)
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import TYPE_CHECKING, Any

from envset.registry import DEFAULT_PARSERS, TypeParserRegistry
from envset.tags import DEFAULT_TAG, ENV_TAG


if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping


# =============================================================================
# Constants
# =============================================================================

DEFAULT_SEPARATOR = ","

# (truthy, falsy) literal pairs, matched case-insensitively.
DEFAULT_BOOL_LITERALS: tuple[tuple[str, str], ...] = (
    ("1", "0"),
    ("t", "f"),
    ("true", "false"),
    ("y", "n"),
    ("yes", "no"),
    ("on", "off"),
)


# =============================================================================
# Configuration
# =============================================================================


@dataclass(frozen=True, slots=True)
class BindConfig:
    """Immutable settings for a single ``bind`` call.

    Attributes:
        env_tag: Annotation naming the environment variable of a field.
        default_tag: Annotation holding a field's default literal.
        separator: Separator between sequence items.
        env_prefix: Prefix joined with ``_`` to every environment key.
        bool_literals: Accepted (truthy, falsy) literal pairs.
        type_parsers: Parsers for user-defined types.
        trim_sequence_items: Strip whitespace around sequence items.
    """

    env_tag: str = ENV_TAG
    default_tag: str = DEFAULT_TAG
    separator: str = DEFAULT_SEPARATOR
    env_prefix: str = ""
    bool_literals: tuple[tuple[str, str], ...] = DEFAULT_BOOL_LITERALS
    type_parsers: TypeParserRegistry = field(default_factory=TypeParserRegistry, compare=False)
    trim_sequence_items: bool = False

    def __post_init__(self) -> None:
        """Validate configuration values after initialization."""
        self._validate()

    def _validate(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If validation fails.
        """
        if not self.env_tag:
            raise ValueError("env_tag must not be empty")
        if not self.default_tag:
            raise ValueError("default_tag must not be empty")
        if self.env_tag == self.default_tag:
            raise ValueError("env_tag and default_tag must differ")
        if not self.separator:
            raise ValueError("separator must not be empty")
        for pair in self.bool_literals:
            if len(pair) != 2 or not all(isinstance(s, str) and s for s in pair):
                raise ValueError(f"Invalid boolean literal pair: {pair!r}")
            if pair[0].lower() == pair[1].lower():
                raise ValueError(f"Boolean literals must differ: {pair!r}")

    # =========================================================================
    # Builder Methods
    # =========================================================================

    def with_env_tag(self, tag: str) -> BindConfig:
        """Create config that reads environment keys from annotation ``tag``."""
        return self._copy_with(env_tag=tag)

    def with_default_tag(self, tag: str) -> BindConfig:
        """Create config that reads default literals from annotation ``tag``."""
        return self._copy_with(default_tag=tag)

    def with_separator(self, separator: str) -> BindConfig:
        """Create config with a different sequence separator."""
        return self._copy_with(separator=separator)

    def with_env_prefix(self, prefix: str) -> BindConfig:
        """Create config that prefixes every environment key with ``prefix_``."""
        return self._copy_with(env_prefix=prefix)

    def with_trim_sequence_items(self, enabled: bool = True) -> BindConfig:
        """Create config that strips whitespace around sequence items."""
        return self._copy_with(trim_sequence_items=enabled)

    def with_custom_bools(self, true_literal: str, false_literal: str) -> BindConfig:
        """Create config accepting an extra pair of boolean literals.

        The built-in literals stay valid. A later pair wins if it reuses
        a literal of an earlier one.

        Args:
            true_literal: Literal that parses to True.
            false_literal: Literal that parses to False.

        Returns:
            New configuration with the pair added.
        """
        return self._copy_with(
            bool_literals=(*self.bool_literals, (true_literal, false_literal))
        )

    def with_type_parser(
        self,
        target: Any,
        parser: Callable[[str], Any],
    ) -> BindConfig:
        """Create config with a parser for a custom type.

        A parser registered for a type that already has one replaces it.

        Args:
            target: Type identity the parser produces values for.
            parser: Callable converting a raw string to a value.

        Returns:
            New configuration with the parser registered.
        """
        registry = self.type_parsers.copy()
        registry.register(target, parser, allow_override=True)
        return self._copy_with(type_parsers=registry)

    def with_type_parsers(self, parsers: Mapping[Any, Callable[[str], Any]]) -> BindConfig:
        """Create config with several custom type parsers."""
        registry = self.type_parsers.copy()
        for target, parser in parsers.items():
            registry.register(target, parser, allow_override=True)
        return self._copy_with(type_parsers=registry)

    def with_default_parsers(self) -> BindConfig:
        """Create config with the bundled ``timedelta``/``datetime`` parsers."""
        return self.with_type_parsers(DEFAULT_PARSERS)

    def with_options(self, **options: Any) -> BindConfig:
        """Create config from keyword shortcuts.

        Recognised keywords: ``env_tag``, ``default_tag``, ``separator``,
        ``env_prefix``, ``trim_sequence_items``, ``custom_bools`` (an
        iterable of pairs) and ``type_parsers`` (a mapping).

        Raises:
            TypeError: If an unknown keyword is given.
        """
        config = self
        custom_bools: Iterable[tuple[str, str]] = options.pop("custom_bools", ())
        for true_literal, false_literal in custom_bools:
            config = config.with_custom_bools(true_literal, false_literal)
        parsers = options.pop("type_parsers", None)
        if parsers:
            config = config.with_type_parsers(parsers)

        known = {"env_tag", "default_tag", "separator", "env_prefix", "trim_sequence_items"}
        unknown = set(options) - known
        if unknown:
            raise TypeError(f"Unknown bind options: {', '.join(sorted(unknown))}")
        return config._copy_with(**options) if options else config

    def _copy_with(self, **updates: Any) -> BindConfig:
        """Create a copy with updated fields."""
        current_values = {f.name: getattr(self, f.name) for f in fields(self)}
        current_values.update(updates)
        return self.__class__(**current_values)

    # =========================================================================
    # Accessors
    # =========================================================================

    def bool_table(self) -> dict[str, bool]:
        """Return the lower-cased literal to boolean lookup table."""
        table: dict[str, bool] = {}
        for true_literal, false_literal in self.bool_literals:
            table[true_literal.lower()] = True
            table[false_literal.lower()] = False
        return table

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging and debugging."""
        return {
            "env_tag": self.env_tag,
            "default_tag": self.default_tag,
            "separator": self.separator,
            "env_prefix": self.env_prefix,
            "bool_literals": [list(pair) for pair in self.bool_literals],
            "type_parsers": [repr(t) for t in self.type_parsers.types()],
            "trim_sequence_items": self.trim_sequence_items,
        }


DEFAULT_BIND_CONFIG = BindConfig()
