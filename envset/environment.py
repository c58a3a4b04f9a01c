"""Read-only access to process environment variables.

The binder never touches ``os.environ`` directly; it goes through an
EnvReader, which makes the lookup source injectable for tests and lets a
key prefix be applied to every source key.

Example:
    >>> reader = EnvReader(prefix="APP", environ={"APP_PORT": "8080"})
    >>> reader.lookup("PORT")
    '8080'
    >>> reader.make_key("PORT")
    'APP_PORT'
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from collections.abc import Mapping


class EnvReader:
    """Key to string lookup over an environment mapping.

    Attributes:
        prefix: Prefix joined to every key with an underscore.
    """

    def __init__(
        self,
        prefix: str = "",
        environ: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize the environment reader.

        Args:
            prefix: Prefix for environment variable names.
            environ: Mapping to read from. Defaults to ``os.environ``.
        """
        self.prefix = prefix
        self._environ = os.environ if environ is None else environ

    def make_key(self, name: str) -> str:
        """Create the full environment variable key with prefix."""
        if self.prefix:
            return f"{self.prefix}_{name}"
        return name

    def lookup(self, name: str) -> str | None:
        """Return the value of a variable, or None if it is not set.

        An empty value is returned as ``""`` and is distinct from unset.

        Args:
            name: Variable name (without prefix).
        """
        return self._environ.get(self.make_key(name))

    def __repr__(self) -> str:
        return f"EnvReader(prefix={self.prefix!r})"
