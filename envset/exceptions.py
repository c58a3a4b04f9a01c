"""Exception hierarchy for envset.

All errors raised while binding environment values into a record inherit
from EnvsetError, so callers can catch every recoverable binding failure at
a single point while still matching on a specific kind (for example, a
missing required value versus a value that failed validation).

Programmer errors, such as passing something that is not a dataclass
instance to ``bind``, are raised as ``TypeError`` outside this
hierarchy.

Exception Hierarchy:
    EnvsetError (base)
    └── BindError
        ├── MissingValueError
        ├── InvalidValueError
        │   ├── PatternMismatchError
        │   └── InvalidPatternError
        ├── OutOfRangeError
        ├── UnsupportedTypeError
        └── CustomParserError

Example:
    >>> try:
    ...     bind(settings)
    ... except MissingValueError as e:
    ...     logger.error("Missing setting", key=e.key)
    ... except EnvsetError as e:
    ...     logger.error(f"Invalid configuration: {e}")
"""

from __future__ import annotations

from typing import Any, cast


class EnvsetError(Exception):
    """Base exception for all envset errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional error context.
        cause: Optional original exception that caused this error.
    """

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            details: Optional dictionary with additional error context.
            cause: Optional original exception that caused this error.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        """Return string representation with details if present."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"cause={self.cause!r})"
        )

    def with_context(self, **kwargs: Any) -> EnvsetError:
        """Create a copy of this error with additional context details.

        The copy keeps the concrete class and every attribute of the
        original; only ``details`` is extended.

        Args:
            **kwargs: Additional context to add to details.

        Returns:
            New exception instance with merged details.

        Example:
            >>> e = EnvsetError("Error", details={"key": "PORT"})
            >>> e.with_context(field="port").details
            {'key': 'PORT', 'field': 'port'}
        """
        clone = self.__class__.__new__(self.__class__)
        clone.__dict__.update(self.__dict__)
        clone.details = {**self.details, **kwargs}
        Exception.__init__(clone, self.message)
        clone.__cause__ = self.__cause__
        return clone


# =============================================================================
# Binding Errors
# =============================================================================


class BindError(EnvsetError):
    """Exception for a failure while binding a single field.

    Attributes:
        field_name: Dotted path of the field being bound (e.g. ``db.port``).
        record: Name of the record type that declares the field.
    """

    def __init__(
        self,
        message: str,
        *,
        field_name: str | None = None,
        record: str | None = None,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize bind error.

        Args:
            message: Human-readable error description.
            field_name: Dotted path of the field being bound.
            record: Name of the record type that declares the field.
            details: Optional dictionary with additional error context.
            cause: Optional original exception that caused this error.
        """
        details = details or {}
        if field_name:
            details["field"] = field_name
        if record:
            details["record"] = record
        super().__init__(message, details=details, cause=cause)
        self.field_name = field_name
        self.record = record

    def at_field(self, field_name: str, record: str | None = None) -> BindError:
        """Return a copy of this error located at the given field path."""
        located = cast("BindError", self.with_context(field=field_name))
        located.field_name = field_name
        if record and not self.record:
            located.record = record
            located.details["record"] = record
        return located


class MissingValueError(BindError):
    """Exception for a required value with no environment entry and no default.

    Attributes:
        key: The environment variable name that was looked up.
    """

    def __init__(
        self,
        key: str,
        *,
        field_name: str | None = None,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize missing value error.

        Args:
            key: The environment variable name that was looked up.
            field_name: Dotted path of the field being bound.
            details: Optional dictionary with additional error context.
            cause: Optional original exception that caused this error.
        """
        details = details or {}
        details["key"] = key
        super().__init__(
            f"Value required for '{key}', but not set",
            field_name=field_name,
            details=details,
            cause=cause,
        )
        self.key = key


class InvalidValueError(BindError):
    """Exception for a literal that cannot be parsed into the field's type.

    Attributes:
        value: The raw string that failed to parse.
        expected: Description of what was expected.
    """

    def __init__(
        self,
        message: str,
        *,
        value: Any = None,
        expected: str | None = None,
        field_name: str | None = None,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize invalid value error.

        Args:
            message: Human-readable error description.
            value: The raw string that failed to parse.
            expected: Description of what was expected.
            field_name: Dotted path of the field being bound.
            details: Optional dictionary with additional error context.
            cause: Optional original exception that caused this error.
        """
        details = details or {}
        details["value"] = value
        if expected:
            details["expected"] = expected
        super().__init__(message, field_name=field_name, details=details, cause=cause)
        self.value = value
        self.expected = expected


class PatternMismatchError(InvalidValueError):
    """Exception for a string value that does not match its ``pattern``.

    Attributes:
        pattern: The regular expression the value had to match.
    """

    def __init__(
        self,
        value: str,
        pattern: str,
        *,
        field_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize pattern mismatch error.

        Args:
            value: The value that did not match.
            pattern: The regular expression the value had to match.
            field_name: Dotted path of the field being bound.
            details: Optional dictionary with additional error context.
        """
        details = details or {}
        details["pattern"] = pattern
        super().__init__(
            f"Invalid value {value!r}: does not match pattern {pattern!r}",
            value=value,
            expected=f"match for {pattern}",
            field_name=field_name,
            details=details,
        )
        self.pattern = pattern


class InvalidPatternError(InvalidValueError):
    """Exception for a ``pattern`` annotation that is not a valid regex.

    Attributes:
        pattern: The pattern that failed to compile.
    """

    def __init__(
        self,
        pattern: str,
        *,
        field_name: str | None = None,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize invalid pattern error.

        Args:
            pattern: The pattern that failed to compile.
            field_name: Dotted path of the field being bound.
            details: Optional dictionary with additional error context.
            cause: The ``re.error`` raised by the compiler.
        """
        details = details or {}
        details["pattern"] = pattern
        super().__init__(
            f"Error parsing regexp {pattern!r}: {cause}",
            value=pattern,
            expected="valid regular expression",
            field_name=field_name,
            details=details,
            cause=cause,
        )
        self.pattern = pattern


class OutOfRangeError(BindError):
    """Exception for a numeric value outside its allowed range.

    Attributes:
        value: The parsed value.
        bound: The bound that was violated.
        bound_type: Which bound was violated: ``min``, ``max`` or ``width``.
    """

    def __init__(
        self,
        message: str,
        *,
        value: Any,
        bound: Any,
        bound_type: str,
        field_name: str | None = None,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize out of range error.

        Args:
            message: Human-readable error description.
            value: The parsed value.
            bound: The bound that was violated.
            bound_type: Which bound was violated: ``min``, ``max`` or ``width``.
            field_name: Dotted path of the field being bound.
            details: Optional dictionary with additional error context.
            cause: Optional original exception that caused this error.
        """
        details = details or {}
        details["value"] = value
        details["bound"] = bound
        details["bound_type"] = bound_type
        super().__init__(message, field_name=field_name, details=details, cause=cause)
        self.value = value
        self.bound = bound
        self.bound_type = bound_type


class UnsupportedTypeError(BindError):
    """Exception for a field whose type has no coercer and no registered parser.

    Attributes:
        field_type: Readable name of the unsupported type.
    """

    def __init__(
        self,
        field_type: str,
        *,
        message: str | None = None,
        field_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize unsupported type error.

        Args:
            field_type: Readable name of the unsupported type.
            message: Optional custom message.
            field_name: Dotted path of the field being bound.
            details: Optional dictionary with additional error context.
        """
        details = details or {}
        details["field_type"] = field_type
        super().__init__(
            message or f"Unsupported type {field_type}",
            field_name=field_name,
            details=details,
        )
        self.field_type = field_type


class CustomParserError(BindError):
    """Exception for a failure raised by a user-registered type parser.

    Attributes:
        field_type: Readable name of the type being parsed.
    """

    def __init__(
        self,
        field_type: str,
        *,
        cause: Exception,
        field_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize custom parser error.

        Args:
            field_type: Readable name of the type being parsed.
            cause: The exception raised by the parser.
            field_name: Dotted path of the field being bound.
            details: Optional dictionary with additional error context.
        """
        details = details or {}
        details["field_type"] = field_type
        super().__init__(
            f"Parser for {field_type} failed: {cause}",
            field_name=field_name,
            details=details,
            cause=cause,
        )
        self.field_type = field_type

