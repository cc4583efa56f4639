"""Fluent rule builders."""

from .masking_builder import (
    BuilderConfigurator,
    DateTimeMaskingBuilder,
    MaskingBuilder,
    NumericMaskingBuilder,
    StringMaskingBuilder,
    builder_for_type,
    with_random_seed,
)

__all__ = [
    "MaskingBuilder",
    "StringMaskingBuilder",
    "NumericMaskingBuilder",
    "DateTimeMaskingBuilder",
    "BuilderConfigurator",
    "builder_for_type",
    "with_random_seed",
]
