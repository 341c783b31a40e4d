"""Validation rules and the engine that runs them."""

from .base import ValidationRule, DataAwareRule
from .engine import ValidationEngine, Validator, RuleConfig, AttributeRules
from .equality import EqualityValidation, EqualityValidationRule, MESSAGE_KEY, identical
from .paths import flatten, leaf_segment, resolve_target_path, expand_attribute, value_at

__all__ = [
    "ValidationRule",
    "DataAwareRule",
    "ValidationEngine",
    "Validator",
    "RuleConfig",
    "AttributeRules",
    "EqualityValidation",
    "EqualityValidationRule",
    "MESSAGE_KEY",
    "identical",
    "flatten",
    "leaf_segment",
    "resolve_target_path",
    "expand_attribute",
    "value_at",
]
