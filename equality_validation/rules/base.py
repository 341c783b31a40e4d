"""
Validation rule contracts.

A rule is invoked once per concrete attribute with the attribute path, its
value and a failure callback. Data-aware rules additionally receive the
flattened payload before validation starts.
"""

from abc import ABC, abstractmethod
from types import MappingProxyType
from typing import Any, Callable, Mapping

FailCallback = Callable[[str], None]


class ValidationRule(ABC):
    """Base class for rule objects used by the Validator."""

    @abstractmethod
    def validate(self, attribute: str, value: Any, fail: FailCallback) -> None:
        """
        Validate a single attribute.

        Args:
            attribute: Concrete dot path (wildcards already resolved)
            value: Value at that path
            fail: Callback receiving the failure message
        """
        raise NotImplementedError("Subclasses must implement validate()")


class DataAwareRule:
    """Mixin for rules that need the whole payload."""

    data: Mapping[str, Any] = MappingProxyType({})

    def set_data(self, data: Mapping[str, Any]) -> "DataAwareRule":
        """Receive the flattened payload; returns self for chaining."""
        self.data = MappingProxyType(dict(data))
        return self
