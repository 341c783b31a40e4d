"""
Entity type domain model.

Identifies a kind of record (a model class in the host application) and
carries the storage details needed to look one up by primary key.
"""

import re
from dataclasses import dataclass
from typing import Any, Optional


_NAMESPACE_SEPARATORS = re.compile(r"[.\\:]")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


@dataclass(frozen=True)
class EntityType:
    """
    Reference to a record type.

    Attributes:
        identifier: Fully-qualified type name, e.g. "app.models.ReferenceModel"
            or "App\\Models\\ReferenceModel"
        table_name: Explicit table name (derived from the display name if omitted)
        primary_key: Primary key attribute name
        key_type: Primary key type, "N" (numeric) or "S" (string)
    """

    identifier: str
    table_name: Optional[str] = None
    primary_key: str = "id"
    key_type: str = "N"

    def __post_init__(self):
        if not self.identifier or not isinstance(self.identifier, str):
            raise ValueError(f"Entity identifier must be a non-empty string, got {self.identifier!r}")
        if self.key_type not in ("N", "S"):
            raise ValueError(f"Entity key_type must be 'N' or 'S', got {self.key_type!r}")

    @property
    def display_name(self) -> str:
        """Type name with any namespace or module prefix stripped."""
        return _NAMESPACE_SEPARATORS.split(self.identifier)[-1]

    @property
    def table(self) -> str:
        """
        Table holding records of this type.

        Without an explicit table_name the display name is snake_cased and
        pluralised: ReferenceModel -> reference_models, Category -> categories.
        """
        if self.table_name:
            return self.table_name

        snake = _CAMEL_BOUNDARY.sub("_", self.display_name).lower()
        if snake.endswith("y") and not snake.endswith(("ay", "ey", "oy", "uy")):
            return snake[:-1] + "ies"
        if snake.endswith(("s", "x", "ch", "sh")):
            return snake + "es"
        return snake + "s"

    @classmethod
    def coerce(cls, value: Any) -> "EntityType":
        """
        Build an EntityType from an EntityType, a string identifier, or a class.

        Raises:
            TypeError: If value cannot identify an entity type
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            return cls(identifier=value)
        if isinstance(value, type):
            return cls(
                identifier=f"{value.__module__}.{value.__qualname__}",
                table_name=getattr(value, "__table__", None),
                primary_key=getattr(value, "__primary_key__", "id"),
            )
        raise TypeError(f"Cannot build an entity type from {type(value).__name__}")

    def __str__(self) -> str:
        return self.identifier
