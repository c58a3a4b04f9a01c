"""Record binder.

Walks a dataclass instance depth-first in field declaration order and fills
each public field from the environment, the field's default annotation or
a registered custom parser. The first failure aborts the call; fields bound
before it keep their new values.

Dispatch per field:
    1. Type with a registered parser: resolve and parse.
    2. Nested record: recurse in place.
    3. Optional nested record: allocate it if ``None``, then recurse.
    4. Field already holding a non-zero value: leave it alone.
    5. Otherwise resolve the raw value and coerce it to the field's type.

Example:
    >>> @dataclass
    ... class Database:
    ...     host: str = field(default="", metadata=tags(env="DB_HOST", default="localhost"))
    ...     port: int = field(default=0, metadata=tags(env="DB_PORT", min="1", max="65535"))
    >>> @dataclass
    ... class Settings:
    ...     debug: bool = field(default=False, metadata=tags(env="DEBUG,omitempty"))
    ...     db: Database = field(default_factory=Database)
    >>> settings = Settings()
    >>> report = bind(settings, environ={"DB_PORT": "5432"})
    >>> settings.db.port, settings.db.host
    (5432, 'localhost')
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TypeVar, cast

from envset.coercers import coerce_scalar, coerce_sequence
from envset.config import DEFAULT_BIND_CONFIG, BindConfig
from envset.descriptors import (
    FieldDescriptor,
    TypeCategory,
    describe_record,
    is_default,
    type_name,
)
from envset.environment import EnvReader
from envset.exceptions import BindError, CustomParserError, UnsupportedTypeError
from envset.logging import LogContext, get_logger, get_masker
from envset.resolution import Resolver, ResolvedValue, ValueSource


if TYPE_CHECKING:
    from collections.abc import Mapping

    from envset.descriptors import ScalarType


RecordT = TypeVar("RecordT")

logger = get_logger(__name__)


# =============================================================================
# Report
# =============================================================================


@dataclass(slots=True)
class BindReport:
    """Summary of a successful ``bind`` call.

    Attributes:
        record: Name of the bound record type.
        bound: Field path to the resolved value that was assigned.
        preset: Paths of fields left alone because they already had a value.
        omitted: Paths of optional fields that resolved to no value.
    """

    record: str
    bound: dict[str, ResolvedValue] = field(default_factory=dict)
    preset: list[str] = field(default_factory=list)
    omitted: list[str] = field(default_factory=list)

    def keys(self) -> dict[str, str | None]:
        """Map each bound field path to the environment key it used."""
        return {path: resolved.key for path, resolved in self.bound.items()}

    def from_source(self, source: ValueSource) -> list[str]:
        """List the bound field paths whose value came from ``source``."""
        return [path for path, resolved in self.bound.items() if resolved.source is source]

    @property
    def from_environment(self) -> list[str]:
        return self.from_source(ValueSource.ENVIRONMENT)

    @property
    def from_defaults(self) -> list[str]:
        return self.from_source(ValueSource.DEFAULT)


# =============================================================================
# Binder
# =============================================================================


def _require_record_instance(target: Any) -> None:
    if isinstance(target, type) or not dataclasses.is_dataclass(target):
        raise TypeError(
            f"bind() expects a dataclass instance, got {type_name(type(target))}"
        )


def _require_mutable(record: Any, path: str) -> None:
    params = getattr(type(record), "__dataclass_params__", None)
    if params is not None and params.frozen:
        where = f" at '{path}'" if path else ""
        raise TypeError(f"Cannot bind frozen dataclass {type_name(type(record))}{where}")


class Binder:
    """Binds environment values into dataclass instances.

    A Binder is built from one BindConfig and one environment and can bind
    any number of records. It keeps no per-call state, so concurrent calls
    on different targets are safe.

    Example:
        >>> binder = Binder(BindConfig().with_env_prefix("APP"))
        >>> report = binder.bind(settings)
    """

    def __init__(
        self,
        config: BindConfig | None = None,
        *,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize the binder.

        Args:
            config: Binding options. Defaults to DEFAULT_BIND_CONFIG.
            environ: Environment mapping. Defaults to ``os.environ``.
        """
        self.config = config or DEFAULT_BIND_CONFIG
        self._reader = EnvReader(self.config.env_prefix, environ)
        self._resolver = Resolver(self._reader, self.config.env_tag, self.config.default_tag)
        self._bool_table = self.config.bool_table()
        self._registry = self.config.type_parsers
        self._masker = get_masker()

    def bind(self, target: Any) -> BindReport:
        """Populate ``target`` in place.

        Args:
            target: A (non-frozen) dataclass instance.

        Returns:
            Report of the fields that were bound, preset or omitted.

        Raises:
            TypeError: If ``target`` is not a dataclass instance or is frozen.
            BindError: If any field fails to resolve or coerce.
        """
        _require_record_instance(target)
        report = BindReport(record=type_name(type(target)))

        with LogContext(record=report.record):
            try:
                self._bind_record(target, "", report)
            except BindError as e:
                logger.debug(
                    "Binding failed",
                    error_type=type(e).__name__,
                    error=e.message,
                    field=e.field_name,
                )
                raise
            logger.debug(
                "Record bound",
                bound=len(report.bound),
                preset=len(report.preset),
                omitted=len(report.omitted),
            )
        return report

    # =========================================================================
    # Walk
    # =========================================================================

    def _bind_record(self, record: Any, prefix: str, report: BindReport) -> None:
        _require_mutable(record, prefix.rstrip("."))
        for descriptor in describe_record(type(record), self._registry):
            path = prefix + descriptor.name
            try:
                self._bind_field(record, descriptor, path, report)
            except BindError as e:
                if e.field_name is not None:
                    raise
                raise e.at_field(path, type_name(type(record))) from e.cause

    def _bind_field(
        self,
        record: Any,
        descriptor: FieldDescriptor,
        path: str,
        report: BindReport,
    ) -> None:
        category = descriptor.category

        if category is TypeCategory.CUSTOM:
            resolved = self._resolver.resolve(descriptor.annotations)
            if self._is_omitted(resolved, path, report):
                return
            setattr(record, descriptor.name, self._parse_custom(descriptor, resolved))
            self._record_bound(path, resolved, report)
            return

        if category in (TypeCategory.RECORD, TypeCategory.OPTIONAL_RECORD):
            nested = getattr(record, descriptor.name)
            if nested is None:
                nested = self._allocate(descriptor, path)
                setattr(record, descriptor.name, nested)
            self._bind_record(nested, path + ".", report)
            return

        if not is_default(getattr(record, descriptor.name)):
            if self._resolver.has_source_key(descriptor.annotations):
                report.preset.append(path)
            return

        resolved = self._resolver.resolve(descriptor.annotations)
        if self._is_omitted(resolved, path, report):
            return
        setattr(record, descriptor.name, self._coerce(descriptor, cast(str, resolved.value)))
        self._record_bound(path, resolved, report)

    def _is_omitted(self, resolved: ResolvedValue, path: str, report: BindReport) -> bool:
        if resolved.key is None:
            return True
        if resolved.is_skip or (resolved.optional and resolved.value == ""):
            report.omitted.append(path)
            return True
        return False

    def _record_bound(self, path: str, resolved: ResolvedValue, report: BindReport) -> None:
        report.bound[path] = resolved
        logger.debug(
            "Field bound",
            field=path,
            key=resolved.key,
            source=resolved.source.value if resolved.source else None,
            value=self._masker.mask_env_value(resolved.key, resolved.value),
        )

    @staticmethod
    def _allocate(descriptor: FieldDescriptor, path: str) -> Any:
        try:
            return descriptor.value_type()
        except TypeError as e:
            raise TypeError(
                f"Cannot create {type_name(descriptor.value_type)} for field '{path}': "
                "nested records need defaults for every field"
            ) from e

    # =========================================================================
    # Conversion
    # =========================================================================

    def _parse_custom(self, descriptor: FieldDescriptor, resolved: ResolvedValue) -> Any:
        try:
            return self._registry.parse(descriptor.value_type, cast(str, resolved.value))
        except BindError:
            raise
        except Exception as e:
            raise CustomParserError(type_name(descriptor.value_type), cause=e) from e

    def _coerce(self, descriptor: FieldDescriptor, raw: str) -> Any:
        category = descriptor.category
        if category.is_scalar:
            scalar = cast("ScalarType", descriptor.scalar)
            return coerce_scalar(raw, descriptor.annotations, scalar, self._bool_table)
        if category is TypeCategory.SEQUENCE:
            return coerce_sequence(
                raw,
                descriptor.annotations,
                descriptor.element,
                element_name=type_name(descriptor.value_type),
                sequence_type=descriptor.sequence_type or list,
                separator=self.config.separator,
                trim=self.config.trim_sequence_items,
            )
        raise UnsupportedTypeError(descriptor.type_name)


# =============================================================================
# Entry Points
# =============================================================================


def bind(
    target: Any,
    config: BindConfig | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    **options: Any,
) -> BindReport:
    """Populate a dataclass instance from the environment.

    Args:
        target: A (non-frozen) dataclass instance, mutated in place.
        config: Binding options. Defaults to DEFAULT_BIND_CONFIG.
        environ: Environment mapping. Defaults to ``os.environ``.
        **options: Shortcuts applied on top of ``config``, see
            ``BindConfig.with_options``.

    Returns:
        Report of the fields that were bound, preset or omitted.

    Raises:
        TypeError: If ``target`` is not a dataclass instance or is frozen.
        BindError: If any field fails to resolve or coerce.

    Example:
        >>> settings = Settings()
        >>> bind(settings, separator=";", custom_bools=[("так", "ні")])
    """
    config = config or DEFAULT_BIND_CONFIG
    if options:
        config = config.with_options(**options)
    return Binder(config, environ=environ).bind(target)


def load(
    record_type: type[RecordT],
    config: BindConfig | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    **options: Any,
) -> RecordT:
    """Create a record with its field defaults and bind it.

    Example:
        >>> settings = load(Settings, env_prefix="APP")
    """
    if not isinstance(record_type, type) or not dataclasses.is_dataclass(record_type):
        raise TypeError(f"load() expects a dataclass type, got {record_type!r}")
    record = record_type()
    bind(record, config, environ=environ, **options)
    return record
