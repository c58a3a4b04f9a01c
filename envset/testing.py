"""Testing utilities for envset.

Helpers for testing code that binds configuration records:
- BindTestContext: isolated environment plus captured binder logs
- assert_bind_error: bind and assert on the resulting error
- assert_bound: assert which fields a bind call populated

Example:
    >>> from envset.testing import BindTestContext
    >>> with BindTestContext(PORT="8080") as ctx:
    ...     settings = Settings()
    ...     ctx.bind(settings)
    ...     assert settings.port == 8080
    ...     assert "Field bound" in ctx.messages
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from envset.binder import BindReport, bind
from envset.exceptions import BindError
from envset.logging import BufferingHandler, LogLevel, LogRecord, get_logger


if TYPE_CHECKING:
    from collections.abc import Mapping

    from envset.config import BindConfig
    from envset.resolution import ValueSource


BINDER_LOGGER = "envset.binder"


# =============================================================================
# Test Context
# =============================================================================


class BindTestContext:
    """Context manager for binding tests.

    Provides an environment mapping that is independent of ``os.environ``
    and captures every record logged by the binder while active.

    Example:
        >>> with BindTestContext({"DB_HOST": "db"}) as ctx:
        ...     ctx.set("DB_PORT", "5432")
        ...     report = ctx.bind(settings)
        ...     assert report.from_environment == ["db.host", "db.port"]
    """

    def __init__(
        self,
        environ: Mapping[str, str] | None = None,
        **variables: str,
    ) -> None:
        """Initialize the test context.

        Args:
            environ: Initial environment variables.
            **variables: Additional variables given as keywords.
        """
        self.environ: dict[str, str] = {**(environ or {}), **variables}
        self._handler: BufferingHandler | None = None
        self._saved_level: LogLevel | None = None

    @property
    def records(self) -> list[LogRecord]:
        """Get the captured binder log records."""
        if self._handler is None:
            raise RuntimeError("Context not entered")
        return list(self._handler.records)

    @property
    def messages(self) -> list[str]:
        """Get the captured binder log messages."""
        return [record.message for record in self.records]

    def set(self, key: str, value: str) -> None:
        """Set a variable in the isolated environment."""
        self.environ[key] = value

    def unset(self, key: str) -> None:
        """Remove a variable from the isolated environment, if present."""
        self.environ.pop(key, None)

    def bind(self, target: Any, config: BindConfig | None = None, **options: Any) -> BindReport:
        """Bind ``target`` against the isolated environment."""
        return bind(target, config, environ=self.environ, **options)

    def __enter__(self) -> BindTestContext:
        """Enter the test context."""
        logger = get_logger(BINDER_LOGGER)
        self._handler = BufferingHandler()
        self._saved_level = logger.level
        logger.level = LogLevel.DEBUG
        logger.add_handler(self._handler)
        return self

    def __exit__(self, *args: Any) -> None:
        """Exit the test context."""
        logger = get_logger(BINDER_LOGGER)
        if self._handler is not None:
            logger.remove_handler(self._handler)
        if self._saved_level is not None:
            logger.level = self._saved_level
        self._saved_level = None


# =============================================================================
# Assertion Helpers
# =============================================================================


def assert_bind_error(
    target: Any,
    error_type: type[BindError] = BindError,
    *,
    environ: Mapping[str, str] | None = None,
    config: BindConfig | None = None,
    field_name: str | None = None,
    key: str | None = None,
    message_contains: str | None = None,
    **options: Any,
) -> BindError:
    """Assert that binding ``target`` fails with ``error_type``.

    Args:
        target: Record instance to bind.
        error_type: Expected BindError subclass.
        environ: Environment mapping. Defaults to an empty environment.
        config: Binding options.
        field_name: Expected dotted path of the failing field.
        key: Expected missing environment key (MissingValueError only).
        message_contains: Substring expected in the error message.
        **options: Shortcuts passed to ``bind``.

    Returns:
        The raised error, for further assertions.

    Raises:
        AssertionError: If expectations not met.

    Example:
        >>> error = assert_bind_error(Settings(), MissingValueError, key="PORT")
        >>> assert error.field_name == "port"
    """
    try:
        bind(target, config, environ=environ if environ is not None else {}, **options)
    except BindError as e:
        error = e
    else:
        raise AssertionError(f"Expected {error_type.__name__}, but binding succeeded")

    assert isinstance(error, error_type), (
        f"Expected {error_type.__name__}, got {type(error).__name__}: {error}"
    )

    if field_name is not None:
        assert error.field_name == field_name, (
            f"Expected field={field_name!r}, got {error.field_name!r}"
        )

    if key is not None:
        actual_key = getattr(error, "key", None)
        assert actual_key == key, f"Expected key={key!r}, got {actual_key!r}"

    if message_contains is not None:
        assert message_contains in error.message, (
            f"Expected {message_contains!r} in message, got {error.message!r}"
        )

    return error


def assert_bound(
    report: BindReport,
    *,
    fields: list[str] | None = None,
    source: ValueSource | None = None,
    preset: list[str] | None = None,
    omitted: list[str] | None = None,
) -> None:
    """Assert a BindReport matches expectations.

    Args:
        report: Report returned by ``bind``.
        fields: Expected bound field paths, in binding order.
        source: If given, every bound field must come from this source.
        preset: Expected paths of fields left alone.
        omitted: Expected paths of optional fields without a value.

    Raises:
        AssertionError: If expectations not met.
    """
    if fields is not None:
        assert list(report.bound) == fields, (
            f"Expected bound fields {fields}, got {list(report.bound)}"
        )

    if source is not None:
        others = [path for path in report.bound if path not in report.from_source(source)]
        assert not others, f"Expected all fields from {source.value}, but {others} were not"

    if preset is not None:
        assert report.preset == preset, f"Expected preset {preset}, got {report.preset}"

    if omitted is not None:
        assert report.omitted == omitted, f"Expected omitted {omitted}, got {report.omitted}"
