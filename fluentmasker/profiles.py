"""YAML masking profiles.

A profile describes a record and the rules for each of its fields, so
masking can be configured without writing a ``Masker`` subclass:

.. code-block:: yaml

    name: customers
    record: Customer
    coverage: exclude
    fields:
      - name: email
        rules:
          - email_mask: {local_keep: 2}
      - name: age
        type: int
        bucketize: age
      - name: signup
        type: date
        seed: value
        rules:
          - date_shift: {days_range: 30}
      - name: orders
        type: list
        each:
          record: Order
          fields:
            - name: card
              rules: [card_mask]

``compile_profile`` turns a profile into a dataclass record type and a bound
``Masker``; ``CompiledProfile.coerce_record`` builds records from decoded
JSON through the converter registry.
"""

import dataclasses
import keyword
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .builders.masking_builder import (
    DateTimeMaskingBuilder,
    MaskingBuilder,
    NumericMaskingBuilder,
    StringMaskingBuilder,
    builder_for_type,
)
from .converters.registry import TypeConverterRegistry, get_default_registry
from .core.exceptions import FluentMaskerError, ProfileError, create_validation_error
from .core.results import MaskResult
from .core.types import CoverageMode
from .masker import Masker
from .rules.numeric import BUCKET_PRESETS, BucketizeRule
from .rules.seeding import stable_seed

logger = logging.getLogger(__name__)

FIELD_TYPES: dict[str, Any] = {
    "str": str,
    "int": int,
    "float": float,
    "decimal": Decimal,
    "datetime": datetime,
    "date": date,
    "any": Any,
    "list": list,
}

SEED_FROM_VALUE = "value"


def available_rules(builder_class: type) -> list[str]:
    """Rule shortcut names a builder class offers."""
    return sorted(
        name
        for name, member in vars(builder_class).items()
        if not name.startswith("_") and callable(member) and not hasattr(MaskingBuilder, name)
    )


RULE_CATALOGUE: dict[str, list[str]] = {
    "string": available_rules(StringMaskingBuilder),
    "numeric": available_rules(NumericMaskingBuilder),
    "datetime": available_rules(DateTimeMaskingBuilder),
}


def _check_identifier(value: str, what: str) -> str:
    if not value.isidentifier() or keyword.iskeyword(value):
        raise ValueError(f"{what} must be a valid Python identifier, got '{value}'")
    return value


class RuleSpec(BaseModel):
    """One rule: a builder shortcut name and its keyword arguments."""

    name: str = Field(..., description="Rule shortcut name, e.g. email_mask")
    params: dict[str, Any] = Field(default_factory=dict, description="Rule arguments")


class BucketSpec(BaseModel):
    """Bucketing by preset name or explicit breaks and labels."""

    preset: Optional[str] = Field(None, description="Name of a bucket preset")
    breaks: Optional[list[Union[int, float]]] = Field(None, description="Ascending range bounds")
    labels: Optional[list[str]] = Field(None, description="One label per range")

    @model_validator(mode="after")
    def validate_source(self) -> "BucketSpec":
        """Exactly one of preset or breaks/labels must be given."""
        if self.preset is not None:
            if self.breaks is not None or self.labels is not None:
                raise ValueError("Give either a bucket preset or breaks and labels, not both")
            if self.preset not in BUCKET_PRESETS:
                raise ValueError(
                    f"Unknown bucket preset '{self.preset}'. Valid presets: {sorted(BUCKET_PRESETS)}"
                )
        elif self.breaks is None or self.labels is None:
            raise ValueError("Bucketing needs a preset or both breaks and labels")
        return self

    def to_rule(self) -> BucketizeRule:
        if self.preset is not None:
            return BUCKET_PRESETS[self.preset]()
        return BucketizeRule(self.breaks, self.labels)


class FieldSpec(BaseModel):
    """Pydantic model for one field of a profiled record."""

    name: str = Field(..., description="Field name")
    type: str = Field("str", description="Declared type")
    seed: Optional[Union[int, str]] = Field(
        None, description="Seed for randomized rules: an integer or 'value'"
    )
    rules: list[RuleSpec] = Field(default_factory=list, description="Rules in order")
    bucketize: Optional[BucketSpec] = Field(None, description="Final bucketing step")
    each: Optional["MaskingProfile"] = Field(None, description="Profile applied to each list item")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Any) -> Any:
        return _check_identifier(v, "Field name")

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: Any) -> Any:
        """Validate declared type is supported."""
        normalized = str(v).lower()
        if normalized not in FIELD_TYPES:
            raise ValueError(f"Invalid field type '{v}'. Valid types: {list(FIELD_TYPES)}")
        return normalized

    @field_validator("seed")
    @classmethod
    def validate_seed(cls, v: Any) -> Any:
        if isinstance(v, str) and v != SEED_FROM_VALUE:
            raise ValueError(f"seed must be an integer or '{SEED_FROM_VALUE}', got '{v}'")
        return v

    @field_validator("rules", mode="before")
    @classmethod
    def normalize_rules(cls, v: Any) -> Any:
        """Accept ``[name, {name: {params}}, {name: ..., params: ...}]``."""
        if v is None:
            return []
        if not isinstance(v, list):
            raise ValueError("rules must be a list")
        normalized = []
        for item in v:
            if isinstance(item, str):
                normalized.append({"name": item})
            elif isinstance(item, dict) and "name" in item:
                normalized.append(item)
            elif isinstance(item, dict) and len(item) == 1:
                name, params = next(iter(item.items()))
                normalized.append({"name": name, "params": params or {}})
            else:
                raise ValueError(f"Cannot read rule entry {item!r}")
        return normalized

    @field_validator("bucketize", mode="before")
    @classmethod
    def normalize_bucketize(cls, v: Any) -> Any:
        if isinstance(v, str):
            return {"preset": v}
        return v

    @model_validator(mode="after")
    def validate_combination(self) -> "FieldSpec":
        if self.each is not None and self.type != "list":
            raise ValueError(f"Field '{self.name}' has 'each' but type '{self.type}', expected 'list'")
        if self.each is not None and (self.rules or self.bucketize):
            raise ValueError(f"Field '{self.name}' cannot combine 'each' with rules or bucketize")
        if self.bucketize is not None and self.type not in ("int", "float", "decimal", "any"):
            raise ValueError(f"Field '{self.name}' of type '{self.type}' cannot be bucketized")
        return self

    @property
    def declared_type(self) -> Any:
        return FIELD_TYPES[self.type]

    @property
    def is_bound(self) -> bool:
        return bool(self.rules or self.bucketize or self.each)


class MaskingProfile(BaseModel):
    """Pydantic model for masking profile file validation."""

    name: Optional[str] = Field(None, description="Profile name")
    description: Optional[str] = Field(None, description="Profile description")
    record: str = Field("Record", description="Name of the generated record type")
    coverage: str = Field("exclude", description="Coverage mode for unbound fields")
    fields: list[FieldSpec] = Field(..., min_length=1, description="Record fields")

    @field_validator("record")
    @classmethod
    def validate_record(cls, v: Any) -> Any:
        return _check_identifier(v, "Record name")

    @field_validator("coverage")
    @classmethod
    def validate_coverage(cls, v: Any) -> Any:
        """Validate coverage mode is supported."""
        return CoverageMode.parse(v).value

    @field_validator("fields")
    @classmethod
    def validate_unique_fields(cls, v: Any) -> Any:
        seen: set[str] = set()
        for spec in v:
            if spec.name in seen:
                raise ValueError(f"Duplicate field '{spec.name}'")
            seen.add(spec.name)
        return v


FieldSpec.model_rebuild()


def load_profile(profile_path: Union[str, Path]) -> MaskingProfile:
    """Load and validate a masking profile from a YAML file.

    Raises:
        ProfileError: If the file is missing, is not valid YAML or fails validation
    """
    profile_path = Path(profile_path)
    if not profile_path.exists():
        raise ProfileError(f"Profile file not found: {profile_path}", profile_file=str(profile_path))

    try:
        with open(profile_path, encoding="utf-8") as f:
            profile_data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ProfileError(f"Invalid YAML in {profile_path}: {e}", profile_file=str(profile_path)) from e

    return parse_profile(profile_data, source=str(profile_path))


def parse_profile(profile_data: Any, source: Optional[str] = None) -> MaskingProfile:
    """Validate already decoded profile data."""
    if not isinstance(profile_data, dict):
        raise ProfileError(
            f"Profile must be a mapping, got {type(profile_data).__name__}", profile_file=source
        )
    try:
        return MaskingProfile(**profile_data)
    except ValidationError as e:
        raise ProfileError(f"Profile validation failed for {source or 'profile'}: {e}", profile_file=source) from e


@dataclass
class CompiledProfile:
    """A profile turned into a record type and a masker for it."""

    profile: MaskingProfile
    record_type: type
    masker: Masker
    item_profiles: dict[str, "CompiledProfile"] = field(default_factory=dict)

    @property
    def converters(self) -> TypeConverterRegistry:
        return self.masker.converters

    def coerce_record(self, data: Mapping[str, Any]) -> Any:
        """Build a record from decoded JSON, converting values to declared types.

        Keys the profile does not name are ignored.

        Raises:
            ValidationError: If ``data`` is not an object or a value cannot
                be converted
        """
        if not isinstance(data, Mapping):
            raise create_validation_error(
                f"Expected a JSON object for {self.record_type.__name__}, got {type(data).__name__}",
                field_name=self.record_type.__name__,
                expected=dict,
                actual=data,
            )
        values = {}
        for spec in self.profile.fields:
            raw = data.get(spec.name)
            if spec.each is not None:
                values[spec.name] = self._coerce_items(spec, raw)
            else:
                values[spec.name] = self._coerce_value(spec, raw)
        return self.record_type(**values)

    def mask(self, data: Mapping[str, Any]) -> MaskResult:
        return self.masker.mask(self.coerce_record(data))

    def _coerce_value(self, spec: FieldSpec, raw: Any) -> Any:
        target = spec.declared_type
        if raw is None or target is Any or (isinstance(raw, target) and not isinstance(raw, bool)):
            return raw
        if target is list:
            if not isinstance(raw, list):
                raise create_validation_error(
                    f"Field '{spec.name}' must be a list", field_name=spec.name, expected=list, actual=raw
                )
            return raw
        path = self.converters.find_path(type(raw), target)
        if path is None:
            raise create_validation_error(
                f"Cannot convert {type(raw).__name__} to {target.__name__} for field '{spec.name}'",
                field_name=spec.name,
                expected=target,
                actual=raw,
            )
        try:
            return path.forward(raw)
        except (FluentMaskerError, ValueError, TypeError, ArithmeticError) as e:
            raise create_validation_error(
                f"Invalid value for field '{spec.name}': {e}",
                field_name=spec.name,
                expected=target,
                actual=raw,
            ) from e

    def _coerce_items(self, spec: FieldSpec, raw: Any) -> Optional[list[Any]]:
        if raw is None:
            return None
        if not isinstance(raw, list):
            raise create_validation_error(
                f"Field '{spec.name}' must be a list of objects", field_name=spec.name, expected=list, actual=raw
            )
        item_profile = self.item_profiles[spec.name]
        return [None if item is None else item_profile.coerce_record(item) for item in raw]


def compile_profile(
    profile: MaskingProfile, converters: Optional[TypeConverterRegistry] = None
) -> CompiledProfile:
    """Create the record type and bound masker described by ``profile``.

    Raises:
        ProfileError: If a rule name is unknown or its arguments are invalid
    """
    converters = converters if converters is not None else get_default_registry()
    item_profiles = {
        spec.name: compile_profile(spec.each, converters) for spec in profile.fields if spec.each is not None
    }

    record_type = dataclasses.make_dataclass(
        profile.record,
        [(spec.name, _annotation_for(spec), dataclasses.field(default=None)) for spec in profile.fields],
    )
    masker = Masker(record_type, coverage_mode=profile.coverage, converters=converters)

    for spec in profile.fields:
        if spec.each is not None:
            masker.mask_for_each(spec.name, item_profiles[spec.name].masker)
        elif spec.is_bound:
            masker.mask_for(spec.name, _rules_for(spec, profile))

    logger.debug(
        f"Compiled profile {profile.name or profile.record} with "
        f"{len(masker.bound_properties)} bound field(s)"
    )
    return CompiledProfile(profile, record_type, masker, item_profiles)


def build_masker(profile: MaskingProfile, converters: Optional[TypeConverterRegistry] = None) -> Masker:
    """Bound ``Masker`` for ``profile``."""
    return compile_profile(profile, converters).masker


def _annotation_for(spec: FieldSpec) -> Any:
    # bucketized fields hold a label after masking
    if spec.bucketize is not None:
        return Any
    declared = spec.declared_type
    return declared if declared is Any else Optional[declared]


def _rules_for(spec: FieldSpec, profile: MaskingProfile) -> tuple:
    where = f"{profile.record}.{spec.name}"
    builder = builder_for_type(spec.declared_type)

    try:
        if spec.seed == SEED_FROM_VALUE:
            builder.with_random_seed(stable_seed)
        elif spec.seed is not None:
            builder.with_random_seed(spec.seed)

        for rule_spec in spec.rules:
            if rule_spec.name not in available_rules(type(builder)):
                raise ProfileError(
                    f"Unknown rule '{rule_spec.name}' for {where} (type {spec.type}). "
                    f"Available: {', '.join(available_rules(type(builder)))}"
                )
            try:
                getattr(builder, rule_spec.name)(**rule_spec.params)
            except TypeError as e:
                raise ProfileError(f"Invalid arguments for rule '{rule_spec.name}' on {where}: {e}") from e

        rules = builder.build()
        if spec.bucketize is not None:
            rules = rules + (spec.bucketize.to_rule(),)
        return rules
    except ProfileError:
        raise
    except FluentMaskerError as e:
        raise ProfileError(f"Invalid configuration for {where}: {e.message}") from e
