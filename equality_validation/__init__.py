"""equality-validation: cross-record column equality rule for form validation.

Checks that a column on one referenced record equals a column on another
record referenced from the same payload, and ships a service provider that
registers the rule's configuration and translations with an application.
"""

from .domain.entity import EntityType
from .rules.engine import ValidationEngine, Validator
from .rules.equality import EqualityValidation, EqualityValidationRule
from .provider import EqualityValidationServiceProvider

__version__ = "1.0.0"

__all__ = [
    "__version__",
    "EntityType",
    "EqualityValidation",
    "EqualityValidationRule",
    "EqualityValidationServiceProvider",
    "ValidationEngine",
    "Validator",
]
