"""envset: bind environment variables into typed records.

A record is a dataclass whose fields carry binding annotations: the
environment key to read, a default literal, numeric bounds and a string
pattern. ``bind`` walks a record instance depth-first and fills every
annotated field, leaving fields that already hold a value untouched.

Quick Start:
    >>> from dataclasses import dataclass, field
    >>> from envset import bind, tags
    >>> @dataclass
    ... class Settings:
    ...     host: str = field(default="", metadata=tags(env="HOST", default="localhost"))
    ...     port: int = field(default=0, metadata=tags(env="PORT", min="1", max="65535"))
    ...     debug: bool = field(default=False, metadata=tags(env="DEBUG,omitempty"))
    >>> settings = Settings()
    >>> bind(settings, environ={"PORT": "8080"})
    >>> settings.port
    8080

Configuration:
    >>> from datetime import timedelta
    >>> from envset import BindConfig, parse_duration
    >>> config = (
    ...     BindConfig()
    ...     .with_env_prefix("APP")
    ...     .with_separator(";")
    ...     .with_custom_bools("так", "ні")
    ...     .with_type_parser(timedelta, parse_duration)
    ... )
    >>> bind(settings, config)

Errors:
    >>> from envset import EnvsetError, MissingValueError
    >>> try:
    ...     bind(settings)
    ... except MissingValueError as e:
    ...     print(f"{e.field_name}: set {e.key}")

Logging:
    >>> from envset import configure_logging
    >>> configure_logging(level="DEBUG")  # one line per bound field, secrets masked

Public API:
    - Binding: bind, load, Binder, BindReport
    - Configuration: BindConfig, DEFAULT_BIND_CONFIG
    - Annotations: Tags, tags
    - Width Markers: Int8, Int16, Int32, Int64, UInt, UInt8, UInt16, UInt32, UInt64, Float32, Float64
    - Custom Types: TypeParserRegistry, parse_duration, parse_datetime
    - Exceptions: EnvsetError, BindError and subclasses
    - Logging: configure_logging, get_logger, LogContext
    - Testing: see ``envset.testing``
"""

__version__ = "0.1.0"

# =============================================================================
# Binding
# =============================================================================
from envset.binder import Binder, BindReport, bind, load

# =============================================================================
# Configuration
# =============================================================================
from envset.config import DEFAULT_BIND_CONFIG, DEFAULT_BOOL_LITERALS, BindConfig

# =============================================================================
# Descriptors
# =============================================================================
from envset.descriptors import (
    Float32,
    Float64,
    Int8,
    Int16,
    Int32,
    Int64,
    TypeCategory,
    UInt,
    UInt8,
    UInt16,
    UInt32,
    UInt64,
)

# =============================================================================
# Environment
# =============================================================================
from envset.environment import EnvReader

# =============================================================================
# Exceptions
# =============================================================================
from envset.exceptions import (
    BindError,
    CustomParserError,
    EnvsetError,
    InvalidPatternError,
    InvalidValueError,
    MissingValueError,
    OutOfRangeError,
    PatternMismatchError,
    UnsupportedTypeError,
)

# =============================================================================
# Logging
# =============================================================================
from envset.logging import LogContext, LogLevel, configure_logging, get_logger

# =============================================================================
# Custom Type Parsers
# =============================================================================
from envset.registry import (
    DEFAULT_PARSERS,
    ParserAlreadyRegisteredError,
    TypeParserRegistry,
    parse_datetime,
    parse_duration,
)

# =============================================================================
# Resolution
# =============================================================================
from envset.resolution import ResolvedValue, ValueSource

# =============================================================================
# Annotations
# =============================================================================
from envset.tags import Tags, tags


__all__ = [
    # Version
    "__version__",
    # Binding
    "BindReport",
    "Binder",
    "bind",
    "load",
    # Configuration
    "DEFAULT_BIND_CONFIG",
    "DEFAULT_BOOL_LITERALS",
    "BindConfig",
    # Width Markers
    "Float32",
    "Float64",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "UInt",
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
    "TypeCategory",
    # Environment
    "EnvReader",
    # Exceptions
    "BindError",
    "CustomParserError",
    "EnvsetError",
    "InvalidPatternError",
    "InvalidValueError",
    "MissingValueError",
    "OutOfRangeError",
    "ParserAlreadyRegisteredError",
    "PatternMismatchError",
    "UnsupportedTypeError",
    # Logging
    "LogContext",
    "LogLevel",
    "configure_logging",
    "get_logger",
    # Custom Type Parsers
    "DEFAULT_PARSERS",
    "TypeParserRegistry",
    "parse_datetime",
    "parse_duration",
    # Resolution
    "ResolvedValue",
    "ValueSource",
    # Annotations
    "Tags",
    "tags",
]
