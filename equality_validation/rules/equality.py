"""
Equality check rule.

Validates that a column on the record referenced by the attribute under
validation equals a column on a second record, whose identifier is read
from the same payload. Existence of either record is not checked here:
when a lookup finds nothing the rule passes and leaves that to an
existence rule in the same rule-set.
"""

from typing import Any, Mapping, Optional

from equality_validation.database.store import RecordStore
from equality_validation.domain.entity import EntityType
from equality_validation.translation.translator import Labeler, make_replacements
from equality_validation.utils.logger import get_logger, preview_value
from .base import DataAwareRule, FailCallback, ValidationRule
from .paths import leaf_segment, resolve_target_path

logger = get_logger(__name__)

NAMESPACE = "equality-validation"
MESSAGE_KEY = f"{NAMESPACE}::validation.custom.line_reference_columns_equality"
ATTRIBUTE_LABEL_PREFIX = "validation.attributes."

# Used only when the message key has no translation in any loaded locale.
DEFAULT_MESSAGE = (
    "The :reference_column of the selected :reference_model must match "
    "the :target_column of the selected :target_model."
)


def identical(left: Any, right: Any) -> bool:
    """Strict equality: same type and equal value (1 and "1" differ, so do 1 and True)."""
    return type(left) is type(right) and left == right


class EqualityValidationRule(DataAwareRule, ValidationRule):
    """
    Fails when reference.<reference_column> differs from target.<target_column>.

    The reference record is looked up by the validated value. The target
    record is looked up by the payload value at target_attribute: with
    same_line the sibling field of the validated attribute is used
    ("items.3.reference_id" -> "items.3.target_id"), otherwise the
    top-level field named by target_attribute's last segment.
    """

    def __init__(
        self,
        reference_model: Any,
        reference_column: str,
        target_model: Any,
        target_column: str,
        target_attribute: str,
        same_line: bool = True,
        *,
        store: RecordStore,
        labeler: Optional[Labeler] = None,
        message_key: str = MESSAGE_KEY,
    ):
        self.reference_model = EntityType.coerce(reference_model)
        self.reference_column = reference_column
        self.target_model = EntityType.coerce(target_model)
        self.target_column = target_column
        self.target_attribute = target_attribute
        self.same_line = same_line
        self.store = store
        self.labeler = labeler
        self.message_key = message_key

    def target_path_for(self, attribute: str) -> str:
        """Payload path holding the target identifier when validating attribute."""
        return resolve_target_path(
            attribute,
            leaf_segment(attribute),
            leaf_segment(self.target_attribute),
            self.same_line,
        )

    def _find(self, entity_type: EntityType, key: Any) -> Optional[Mapping[str, Any]]:
        if key is None:
            return None
        return self.store.find(entity_type, key)

    def validate(self, attribute: str, value: Any, fail: FailCallback) -> None:
        target_path = self.target_path_for(attribute)
        log_context = {
            "attribute": attribute,
            "target_path": target_path,
            "reference_model": self.reference_model.display_name,
            "target_model": self.target_model.display_name,
        }

        reference = self._find(self.reference_model, value)
        target = self._find(self.target_model, self.data.get(target_path))

        if reference is None or target is None:
            logger.debug(
                "Record not found, skipping equality check",
                operation="validate_equality",
                context={
                    **log_context,
                    "reference_found": reference is not None,
                    "target_found": target is not None,
                },
            )
            return

        reference_value = reference.get(self.reference_column)
        target_value = target.get(self.target_column)

        # Nothing to compare when either side is unset.
        if reference_value is None or target_value is None:
            logger.debug(
                "Column value missing, skipping equality check",
                operation="validate_equality",
                context=log_context,
            )
            return

        if identical(reference_value, target_value):
            return

        logger.info(
            f"Column mismatch on '{attribute}'",
            operation="validate_equality",
            context={
                **log_context,
                "reference_value": preview_value(reference_value),
                "target_value": preview_value(target_value),
            },
        )
        fail(self.message())

    def column_label(self, column: str) -> str:
        """Translated label for column, or the column name itself."""
        if self.labeler is None:
            return column
        label = self.labeler.lookup(ATTRIBUTE_LABEL_PREFIX + column)
        return column if label is None else label

    def message(self) -> str:
        """Failure message naming both models and both column labels."""
        replace = {
            "reference_model": self.reference_model.display_name,
            "reference_column": self.column_label(self.reference_column),
            "target_model": self.target_model.display_name,
            "target_column": self.column_label(self.target_column),
        }

        line = self.labeler.lookup(self.message_key, replace) if self.labeler else None
        if line is None:
            line = make_replacements(DEFAULT_MESSAGE, replace)
        return line

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self.reference_model}.{self.reference_column} == "
            f"{self.target_model}.{self.target_column} via {self.target_attribute!r}, "
            f"same_line={self.same_line})"
        )


class EqualityValidation:
    """
    Factory binding the store and labeler once for many rules.

    Example:
        >>> equality = EqualityValidation(store, translator)
        >>> rules = {
        ...     "items.*.reference_id": [
        ...         equality.rule(ReferenceModel, "code", TargetModel, "code", "items.*.target_id"),
        ...     ],
        ... }
    """

    def __init__(
        self,
        store: RecordStore,
        labeler: Optional[Labeler] = None,
        message_key: str = MESSAGE_KEY,
    ):
        self.store = store
        self.labeler = labeler
        self.message_key = message_key

    def rule(
        self,
        reference_model: Any,
        reference_column: str,
        target_model: Any,
        target_column: str,
        target_attribute: str,
        same_line: bool = True,
    ) -> EqualityValidationRule:
        """Create a new equality validation rule instance."""
        return EqualityValidationRule(
            reference_model,
            reference_column,
            target_model,
            target_column,
            target_attribute,
            same_line,
            store=self.store,
            labeler=self.labeler,
            message_key=self.message_key,
        )
