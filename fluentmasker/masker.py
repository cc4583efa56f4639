"""Masker: binds rules to the properties of a record type and applies them.

Examples:
    class PersonMasker(Masker):
        record_type = Person

        def configure(self) -> None:
            self.mask_for("email", EmailMaskRule())
            self.mask_for(lambda p: p.phone, lambda b: b.phone_mask(keep_last=4))
            self.mask_for("age", NumericMaskingBuilder(int).with_random_seed(7).noise_additive(3))

    result = PersonMasker().mask(person)
    result.masked_data  # '{"name": null, "email": "j***@example.com", ...}'
"""

import copy
import dataclasses
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Iterable, Optional, Union

from .builders.masking_builder import MaskingBuilder, builder_for_type
from .compilation.property_accessor import PropertyAccessor, get_property_accessor
from .converters.registry import TypeConverterRegistry, get_default_registry
from .core.config import get_masker_config
from .core.error_handling import ErrorCollector
from .core.exceptions import (
    BindingError,
    InvalidArgumentError,
    MaskingError,
    PartialMaskingError,
    create_binding_error,
    create_no_converter_error,
)
from .core.results import MaskingStats, MaskResult
from .core.types import CoverageMode
from .rules.base import MaskRule
from .serialization import dumps

logger = logging.getLogger(__name__)

Selector = Union[str, Callable[[Any], Any]]


@dataclass(frozen=True)
class RuleBinding:
    """Ordered rules bound to one property."""

    rules: tuple[MaskRule, ...]


@dataclass(frozen=True)
class CollectionBinding:
    """Nested masker applied to every item of a collection property."""

    item_masker: "Masker"


PropertyBinding = Union[RuleBinding, CollectionBinding]


def _conforms(value: Any, declared: type) -> bool:
    # datetime subclasses date, but a date property must get a date back
    if declared is date and isinstance(value, datetime):
        return False
    return isinstance(value, declared)


class _SelectorProbe:
    """Stand-in record that remembers which attributes a selector reads."""

    def __init__(self) -> None:
        self.accessed: list[str] = []

    def __getattr__(self, name: str) -> "_SelectorProbe":
        self.accessed.append(name)
        return self


class Masker:
    """Masks instances of one record type.

    Bindings are declared once, either by subclassing and overriding
    ``configure`` or by chaining ``mask_for`` on an instance. Each call to
    ``mask`` then reads every property, masks the bound ones, applies the
    coverage mode to the unbound ones and serializes the result.

    Args:
        record_type: Class of the records to mask; defaults to the class
            attribute ``record_type`` of a subclass
        coverage_mode: What happens to unbound properties; defaults to the
            configured ``FLUENTMASKER_COVERAGE_MODE`` (exclude)
        converters: Converter registry; defaults to the process-wide one
    """

    record_type: Optional[type] = None

    def __init__(
        self,
        record_type: Optional[type] = None,
        coverage_mode: Optional[Union[CoverageMode, str]] = None,
        converters: Optional[TypeConverterRegistry] = None,
    ) -> None:
        record_type = record_type if record_type is not None else type(self).record_type
        if not isinstance(record_type, type):
            raise InvalidArgumentError(
                f"{type(self).__name__} needs a record type, got {record_type!r}",
                argument_name="record_type",
            )
        self.record_type = record_type
        self._accessor: PropertyAccessor = get_property_accessor(record_type)
        self._converters = converters if converters is not None else get_default_registry()
        self._bindings: dict[str, PropertyBinding] = {}
        self._coverage_mode = CoverageMode.EXCLUDE
        self.set_coverage_mode(
            coverage_mode if coverage_mode is not None else get_masker_config().default_coverage_mode
        )
        self.configure()

    def configure(self) -> None:
        """Hook for subclasses to declare their bindings."""

    # Binding

    def mask_for(self, selector: Selector, rule: Any) -> "Masker":
        """Bind ``rule`` to the property picked by ``selector``.

        Args:
            selector: Property name or a one-attribute lambda (``lambda p: p.email``)
            rule: A ``MaskRule``, a sequence of rules, a builder, or a
                function that receives a builder matching the property's
                declared type and returns it after adding rules

        Returns:
            Self for method chaining

        Raises:
            BindingError: If the property is unknown or read-only, or no
                rule is given
        """
        name = self._bindable_property(selector)
        rules = self._rules_from(name, rule)
        if name in self._bindings:
            logger.debug(f"Replacing binding of {self.record_type.__name__}.{name}")
        self._bindings[name] = RuleBinding(rules)
        logger.debug(
            f"Bound {self.record_type.__name__}.{name} to {[r.name for r in rules]}"
        )
        return self

    def mask_for_each(self, selector: Selector, item_masker: Union["Masker", type]) -> "Masker":
        """Mask every item of a collection property with ``item_masker``.

        The masked property becomes a list of item records. ``item_masker``
        may be a ``Masker`` instance or a ``Masker`` subclass to instantiate.
        """
        name = self._bindable_property(selector)
        if isinstance(item_masker, type) and issubclass(item_masker, Masker):
            item_masker = item_masker()
        if not isinstance(item_masker, Masker):
            raise create_binding_error(
                f"mask_for_each needs a Masker for items of '{name}', got {type(item_masker).__name__}",
                property_name=name,
                record_type=self.record_type,
            )
        self._bindings[name] = CollectionBinding(item_masker)
        logger.debug(
            f"Bound {self.record_type.__name__}.{name} to items of "
            f"{item_masker.record_type.__name__}"
        )
        return self

    def set_coverage_mode(self, mode: Union[CoverageMode, str]) -> "Masker":
        try:
            self._coverage_mode = CoverageMode.parse(mode)
        except ValueError as e:
            raise InvalidArgumentError(str(e), argument_name="coverage_mode") from e
        return self

    @property
    def coverage_mode(self) -> CoverageMode:
        return self._coverage_mode

    @property
    def accessor(self) -> PropertyAccessor:
        return self._accessor

    @property
    def converters(self) -> TypeConverterRegistry:
        return self._converters

    @property
    def bound_properties(self) -> tuple[str, ...]:
        """Names of bound properties, in declaration order."""
        return tuple(name for name in self._accessor.get_property_names() if name in self._bindings)

    def get_binding(self, property_name: str) -> Optional[PropertyBinding]:
        return self._bindings.get(property_name)

    def _bindable_property(self, selector: Selector) -> str:
        name = self._resolve_selector(selector)
        record_name = self.record_type.__name__
        writable = [n for n in self._accessor.get_property_names() if self._accessor.is_writable(n)]

        if not self._accessor.has_property(name):
            raise create_binding_error(
                f"Property '{name}' not found on {record_name}",
                property_name=name,
                record_type=self.record_type,
                available=writable,
            )
        if not self._accessor.is_writable(name):
            raise create_binding_error(
                f"Property '{name}' of {record_name} is read-only and cannot be masked",
                property_name=name,
                record_type=self.record_type,
                available=writable,
            )
        return name

    def _resolve_selector(self, selector: Selector) -> str:
        if isinstance(selector, str):
            if not selector:
                raise BindingError("Property selector cannot be empty", record_type=self.record_type.__name__)
            return selector
        if not callable(selector):
            raise BindingError(
                f"Selector must be a property name or a lambda, got {type(selector).__name__}",
                record_type=self.record_type.__name__,
            )

        probe = _SelectorProbe()
        try:
            selector(probe)
        except TypeError as e:
            raise BindingError(
                "Selector must read exactly one property without calling or computing on it, "
                f"e.g. lambda p: p.email ({e})",
                record_type=self.record_type.__name__,
            ) from e
        if len(probe.accessed) != 1:
            raise BindingError(
                "Selector must read exactly one property, e.g. lambda p: p.email "
                f"(read {probe.accessed or 'nothing'})",
                record_type=self.record_type.__name__,
            )
        return probe.accessed[0]

    def _rules_from(self, name: str, rule: Any) -> tuple[MaskRule, ...]:
        if rule is None:
            raise BindingError(
                f"Rule for '{name}' cannot be None",
                property_name=name,
                record_type=self.record_type.__name__,
            )

        if isinstance(rule, MaskRule):
            rules: tuple = (rule,)
        elif isinstance(rule, MaskingBuilder):
            rules = rule.build()
        elif callable(rule):
            builder = builder_for_type(self._accessor.get_property_info(name).base_type)
            configured = rule(builder)
            if configured is None:
                configured = builder
            if not isinstance(configured, MaskingBuilder):
                raise BindingError(
                    f"Builder function for '{name}' must return a builder, got {type(configured).__name__}",
                    property_name=name,
                    record_type=self.record_type.__name__,
                )
            rules = configured.build()
        elif isinstance(rule, Iterable) and not isinstance(rule, (str, bytes)):
            rules = tuple(rule)
        else:
            raise BindingError(
                f"Cannot bind {type(rule).__name__} to '{name}'; expected a MaskRule, "
                "a sequence of rules, a builder or a builder function",
                property_name=name,
                record_type=self.record_type.__name__,
            )

        if not rules:
            raise BindingError(
                f"No rules given for '{name}'",
                property_name=name,
                record_type=self.record_type.__name__,
            )
        for item in rules:
            if not isinstance(item, MaskRule):
                raise BindingError(
                    f"Expected MaskRule for '{name}', got {type(item).__name__}",
                    property_name=name,
                    record_type=self.record_type.__name__,
                )
        return rules

    # Masking

    def mask(self, instance: Any) -> MaskResult:
        """Mask ``instance`` into a ``MaskResult``.

        Property failures do not stop the call: the property is staged as
        None and its error is listed in ``MaskResult.errors``.

        Raises:
            MaskingError: If ``instance`` is None or not a ``record_type``
        """
        collector = ErrorCollector()
        record, stats = self._stage(instance, collector)
        masked_data = dumps(record, indent=get_masker_config().json_indent, registry=self._converters)

        if collector.has_errors():
            logger.info(
                f"Masked {self.record_type.__name__} with {len(collector.errors)} "
                f"property error(s): {collector.get_error_summary()['error_types']}"
            )

        return MaskResult(
            masked_data=masked_data,
            errors=tuple(collector.messages()),
            record=record,
            stats=stats,
            error_details=tuple(error.to_dict() for error in collector.errors),
        )

    def mask_many(self, instances: Iterable[Any]) -> list[MaskResult]:
        return [self.mask(instance) for instance in instances]

    def mask_object(self, instance: Any) -> Any:
        """Return a shallow copy of ``instance`` with masked values written back.

        Read-only properties are left as they are on the copy.

        Raises:
            MaskingError: If ``instance`` is None or not a ``record_type``
            PartialMaskingError: If any property failed to mask
        """
        collector = ErrorCollector()
        masked = self._masked_copy(instance, collector)
        if collector.has_errors():
            raise PartialMaskingError(
                f"Failed to mask {len(collector.errors)} propert"
                f"{'y' if len(collector.errors) == 1 else 'ies'} of {self.record_type.__name__}",
                errors=collector.messages(),
                record_type=self.record_type.__name__,
            )
        return masked

    def _check_instance(self, instance: Any) -> None:
        if instance is None:
            raise MaskingError(
                f"Cannot mask None as {self.record_type.__name__}",
                record_type=self.record_type.__name__,
            )
        if not isinstance(instance, self.record_type):
            raise MaskingError(
                f"{type(self).__name__} masks {self.record_type.__name__} instances, "
                f"got {type(instance).__name__}",
                record_type=self.record_type.__name__,
            )

    def _stage(
        self, instance: Any, collector: ErrorCollector, as_objects: bool = False
    ) -> tuple[dict[str, Any], MaskingStats]:
        self._check_instance(instance)
        accessor = self._accessor
        include = self._coverage_mode is CoverageMode.INCLUDE

        record: dict[str, Any] = {}
        masked = passed_through = nulled = failed = 0

        for name in accessor.get_property_names():
            binding = self._bindings.get(name)
            try:
                if binding is None:
                    if include:
                        record[name] = accessor.get_value(instance, name)
                        passed_through += 1
                    else:
                        record[name] = None
                        nulled += 1
                    continue

                value = accessor.get_value(instance, name)
                if isinstance(binding, CollectionBinding):
                    record[name] = self._mask_items(name, value, binding.item_masker, collector, as_objects)
                else:
                    record[name] = self._apply_rules(name, value, binding.rules)
                collector.record_success(name)
                masked += 1
            except Exception as e:
                record[name] = None
                collector.record_error(
                    e,
                    property_path=name,
                    context={"record_type": self.record_type.__name__},
                    component=getattr(e, "component", "masking"),
                )
                failed += 1

        stats = MaskingStats(
            properties_total=len(record),
            properties_masked=masked,
            properties_passed_through=passed_through,
            properties_nulled=nulled,
            properties_failed=failed,
        )
        return record, stats

    def _apply_rules(self, name: str, value: Any, rules: tuple[MaskRule, ...]) -> Any:
        declared = self._accessor.get_property_info(name).base_type

        for rule in rules:
            if value is None:
                break

            # resolve the route into the rule's kind before calling it
            source_type = type(value)
            if not rule.accepts(source_type):
                path = self._converters.find_path(source_type, rule.input_type)
                if path is None:
                    raise create_no_converter_error(source_type, rule.input_type, property_name=name)
                value = path.forward(value)

            value = rule.apply(value)
            if value is None or declared is None or _conforms(value, declared):
                continue

            back = self._converters.find_path(declared, type(value))
            if back is None:
                raise create_no_converter_error(type(value), declared, property_name=name)
            value = back.backward(value)

        return value

    def _mask_items(
        self,
        name: str,
        items: Any,
        item_masker: "Masker",
        collector: ErrorCollector,
        as_objects: bool,
    ) -> Optional[list[Any]]:
        if items is None:
            return None
        if isinstance(items, (str, bytes)) or not isinstance(items, Iterable):
            raise MaskingError(
                f"Property '{name}' must hold a collection, got {type(items).__name__}",
                record_type=self.record_type.__name__,
            )

        masked_items: list[Any] = []
        for index, item in enumerate(items):
            if item is None:
                masked_items.append(None)
                continue
            item_collector = ErrorCollector()
            if as_objects:
                masked_items.append(item_masker._masked_copy(item, item_collector))
            else:
                masked_items.append(item_masker._stage(item, item_collector)[0])
            collector.merge(item_collector, prefix=f"{name}[{index}].")
        return masked_items

    def _masked_copy(self, instance: Any, collector: ErrorCollector) -> Any:
        record, _ = self._stage(instance, collector, as_objects=True)
        accessor = self._accessor
        writable = {name: value for name, value in record.items() if accessor.is_writable(name)}

        if dataclasses.is_dataclass(instance) and type(instance).__dataclass_params__.frozen:
            # set fields on a shallow copy so __init__ and __post_init__ never see masked values
            masked = copy.copy(instance)
            field_names = {f.name for f in dataclasses.fields(instance)}
            for name, value in record.items():
                if name in field_names:
                    object.__setattr__(masked, name, value)
            return masked
        if isinstance(getattr(type(instance), "model_fields", None), dict):
            # pydantic: model_copy does not re-run field validators
            fields = type(instance).model_fields
            return instance.model_copy(update={name: value for name, value in record.items() if name in fields})

        masked = copy.copy(instance)
        for name, value in writable.items():
            accessor.set_value(masked, name, value)
        return masked

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self.record_type.__name__}, "
            f"coverage={self._coverage_mode.value}, bound={list(self.bound_properties)})"
        )
