"""Resolution of a field's raw value.

Given a field's annotation set, the resolver decides which raw string the
field receives:

1. No source-key annotation: the field is skipped.
2. The environment holds the key: its value is used, even when empty.
3. A default annotation exists: its literal is used.
4. Otherwise the field is skipped when its key carries ``,omitempty``,
   and resolution fails with MissingValueError when it does not.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from envset.exceptions import MissingValueError
from envset.tags import split_source_key


if TYPE_CHECKING:
    from collections.abc import Mapping

    from envset.environment import EnvReader


class ValueSource(Enum):
    """Where a resolved value came from."""

    ENVIRONMENT = "environment"
    DEFAULT = "default"


@dataclass(frozen=True, slots=True)
class ResolvedValue:
    """Outcome of resolving one field.

    Attributes:
        key: Full environment key that was consulted, None if untagged.
        value: Raw string value, None when the field is skipped.
        source: Where the value came from, None when skipped.
        optional: Whether the source key carried the optional flag.
    """

    key: str | None = None
    value: str | None = None
    source: ValueSource | None = None
    optional: bool = False

    @property
    def is_skip(self) -> bool:
        return self.value is None


SKIP = ResolvedValue()


class Resolver:
    """Resolve raw values from annotations, the environment and defaults.

    Example:
        >>> resolver = Resolver(EnvReader(environ={"PORT": "80"}))
        >>> resolver.resolve(Tags(env="PORT")).value
        '80'
        >>> resolver.resolve(Tags(env="HOST,omitempty")).is_skip
        True
    """

    def __init__(
        self,
        reader: EnvReader,
        env_tag: str = "env",
        default_tag: str = "default",
    ) -> None:
        """Initialize the resolver.

        Args:
            reader: Environment lookup.
            env_tag: Annotation naming the environment key.
            default_tag: Annotation holding the default literal.
        """
        self._reader = reader
        self._env_tag = env_tag
        self._default_tag = default_tag

    def has_source_key(self, annotations: Mapping[str, str]) -> bool:
        """Return True if the annotations name an environment key."""
        return self._env_tag in annotations

    def resolve(self, annotations: Mapping[str, str]) -> ResolvedValue:
        """Resolve the raw value for a field.

        Args:
            annotations: The field's annotation set.

        Returns:
            The resolved value, or SKIP when the field has no source key.

        Raises:
            MissingValueError: If a required key has neither a value nor a default.
        """
        tag = annotations.get(self._env_tag)
        if tag is None:
            return SKIP

        name, optional = split_source_key(tag)
        key = self._reader.make_key(name)

        value = self._reader.lookup(name)
        if value is not None:
            return ResolvedValue(key, value, ValueSource.ENVIRONMENT, optional)

        default = annotations.get(self._default_tag)
        if default is not None:
            return ResolvedValue(key, default, ValueSource.DEFAULT, optional)

        if optional:
            return ResolvedValue(key=key, optional=True)
        raise MissingValueError(key)
