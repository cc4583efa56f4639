"""FluentMasker exception hierarchy.

Errors fall into three groups. Configuration errors (unknown or read-only
properties, invalid rule arguments, invalid seeds) are raised while a masker
is being defined. Per-field errors (missing converters, rules rejecting
malformed input) are recorded into ``MaskResult.errors`` and never abort a
masking call. Fatal errors (no instance to mask) are raised to the caller.
"""

from typing import Any, Dict, List, Optional, Union


# Class-name fragments mapped to the component an error is reported under,
# checked in order.
_COMPONENT_BY_NAME = (
    ("property", "accessor"),
    ("conver", "conversion"),
    ("rule", "rules"),
    ("format", "rules"),
    ("binding", "configuration"),
    ("configuration", "configuration"),
    ("argument", "configuration"),
    ("validation", "validation"),
    ("masking", "masking"),
    ("profile", "profile"),
)


class FluentMaskerError(Exception):
    """Root of every error a masker, rule, converter or profile raises.

    Besides the message, an error carries what a caller needs to report it
    or act on it without parsing text: a stable ``error_code`` derived from
    the class name, the ``component`` it came from, a ``context`` dict
    (property name, record type, offending value) and ``recovery_suggestions``
    such as the properties that could have been bound instead.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        recovery_suggestions: Optional[List[str]] = None,
        component: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self._default_error_code()
        self.context = dict(context) if context else {}
        self.recovery_suggestions = list(recovery_suggestions) if recovery_suggestions else []
        self.component = component or self._infer_component()

    def _default_error_code(self) -> str:
        # BindingError -> BINDING_ERROR, InvalidArgumentError -> INVALIDARGUMENT_ERROR
        return self.__class__.__name__.upper().replace("ERROR", "_ERROR")

    def _infer_component(self) -> str:
        name = self.__class__.__name__.lower()
        for fragment, component in _COMPONENT_BY_NAME:
            if fragment in name:
                return component
        return "core"

    def add_context(self, key: str, value: Any) -> None:
        self.context[key] = value

    def add_recovery_suggestion(self, suggestion: str) -> None:
        """Append ``suggestion`` unless the error already offers it."""
        if suggestion not in self.recovery_suggestions:
            self.recovery_suggestions.append(suggestion)

    def to_dict(self) -> Dict[str, Any]:
        """Describe the error as plain data, as stored in ``MaskResult.error_details``."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "component": self.component,
            "context": self.context,
            "recovery_suggestions": self.recovery_suggestions,
        }


class ValidationError(FluentMaskerError):
    """Raised when a value handed to the library fails a type or shape check."""

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        expected_type: Optional[str] = None,
        actual_value: Optional[Any] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        if field_name:
            self.add_context("field_name", field_name)
        if expected_type:
            self.add_context("expected_type", expected_type)
        if actual_value is not None:
            self.add_context("actual_value", str(actual_value))


class ConfigurationError(ValidationError):
    """Raised when a masker, builder or rule is configured incorrectly.

    Always raised at definition time, never deferred to ``mask``.
    """

    def __init__(
        self,
        message: str,
        config_section: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        if config_section:
            self.add_context("config_section", config_section)


class InvalidArgumentError(ConfigurationError):
    """Raised when a rule, builder or registry receives an invalid argument."""

    def __init__(
        self,
        message: str,
        argument_name: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        if argument_name:
            self.add_context("argument_name", argument_name)


class BindingError(ConfigurationError):
    """Raised when a property cannot be bound to a rule."""

    def __init__(
        self,
        message: str,
        property_name: Optional[str] = None,
        record_type: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        if property_name:
            self.add_context("property_name", property_name)
        if record_type:
            self.add_context("record_type", record_type)


class PropertyAccessError(FluentMaskerError):
    """Raised when a compiled property accessor cannot serve a request."""

    def __init__(
        self,
        message: str,
        property_name: Optional[str] = None,
        record_type: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.property_name = property_name
        if property_name:
            self.add_context("property_name", property_name)
        if record_type:
            self.add_context("record_type", record_type)


class PropertyNotFoundError(PropertyAccessError):
    """Raised when a property name is not part of the compiled map."""


class ImmutablePropertyError(PropertyAccessError):
    """Raised when writing to a property that has no setter."""


class ConversionError(FluentMaskerError):
    """Raised when a value cannot be converted between two types."""

    def __init__(
        self,
        message: str,
        source_type: Optional[Union[str, type]] = None,
        target_type: Optional[Union[str, type]] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        if source_type is not None:
            self.add_context("source_type", _type_name(source_type))
        if target_type is not None:
            self.add_context("target_type", _type_name(target_type))


class NoConverterAvailableError(ConversionError):
    """Raised when a rule and a property disagree on type and no converter bridges them."""


class RuleApplicationError(FluentMaskerError):
    """Raised when a rule cannot be applied to a value."""

    def __init__(
        self,
        message: str,
        rule_name: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        if rule_name:
            self.add_context("rule_name", rule_name)


class InvalidFormatError(RuleApplicationError):
    """Raised when a rule rejects input that does not match its expected format."""


class MaskingError(FluentMaskerError):
    """Raised when a masking call cannot produce any result."""

    def __init__(
        self,
        message: str,
        record_type: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        if record_type:
            self.add_context("record_type", record_type)


class PartialMaskingError(MaskingError):
    """Raised by ``mask_object`` when some properties failed to mask.

    A masked object cannot carry an error list, so the errors travel here.
    """

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.errors = list(errors or [])
        self.add_context("errors", self.errors)


class ProfileError(FluentMaskerError):
    """Raised when a masking profile cannot be loaded or built."""

    def __init__(
        self,
        message: str,
        profile_file: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        if profile_file:
            self.add_context("profile_file", profile_file)


def _type_name(value: Union[str, type]) -> str:
    return value.__name__ if isinstance(value, type) else str(value)


# Convenience functions for creating common exception scenarios

def create_validation_error(
    message: str,
    field_name: str,
    expected: Union[str, type],
    actual: Any,
) -> ValidationError:
    """Create a validation error with standard context."""
    expected_str = _type_name(expected)

    error = ValidationError(
        message=message,
        field_name=field_name,
        expected_type=expected_str,
        actual_value=actual,
    )

    error.add_recovery_suggestion(f"Ensure {field_name} is of type {expected_str}")
    return error


def create_binding_error(
    message: str,
    property_name: str,
    record_type: type,
    available: Optional[List[str]] = None,
) -> BindingError:
    """Create a binding error that lists the properties that can be bound."""
    error = BindingError(
        message=message,
        property_name=property_name,
        record_type=record_type.__name__,
    )

    if available is not None:
        error.add_context("available_properties", sorted(available))
        error.add_recovery_suggestion(
            f"Bind one of: {', '.join(sorted(available)) or '(no writable properties)'}"
        )
    return error


def create_no_converter_error(
    source_type: type,
    target_type: type,
    property_name: Optional[str] = None,
) -> NoConverterAvailableError:
    """Create a no-converter error with registration guidance."""
    source = _type_name(source_type)
    target = _type_name(target_type)
    message = f"No converter available between {source} and {target}"
    if property_name:
        message = f"{message} for property '{property_name}'"

    error = NoConverterAvailableError(
        message=message,
        source_type=source,
        target_type=target,
    )
    if property_name:
        error.add_context("property_name", property_name)

    error.add_recovery_suggestion(
        f"Register a converter with registry.register_functions({source}, {target}, ...)"
    )
    error.add_recovery_suggestion("Bind a rule whose value kind matches the property type")
    return error
