"""
Validation Engine

Runs rule objects against a nested input payload:
- Flattens the payload once into a read-only dot-path map
- Expands wildcard attribute patterns to concrete paths
- Hands the flattened payload to data-aware rules
- Collects failure messages per concrete attribute

Rule-sets can also be declared in YAML and built from a registry of rule
factories, e.g.:

    rules:
      - attribute: "items.*.reference_id"
        rules:
          - type: equality
            params:
              reference_model: app.models.ReferenceModel
              reference_column: code
              target_model: app.models.TargetModel
              target_column: code
              target_attribute: "items.*.target_id"
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

import yaml

from equality_validation.utils.logger import get_logger
from .base import DataAwareRule, ValidationRule
from .paths import expand_attribute, flatten, value_at

logger = get_logger(__name__)

RuleSet = Mapping[str, Union[ValidationRule, Iterable[ValidationRule]]]


@dataclass
class RuleConfig:
    """Configuration for a single rule."""

    type: str
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass
class AttributeRules:
    """Rules declared for one attribute pattern."""

    attribute: str
    rules: List[RuleConfig]


class Validator:
    """
    Validates one payload against one rule-set.

    Validation runs lazily on the first call to passes(), fails() or errors().
    Exceptions raised by rules (e.g. datastore failures) propagate.
    """

    def __init__(self, data: Mapping[str, Any], rules: RuleSet):
        self.data = data
        self.rules: Dict[str, List[ValidationRule]] = {
            attribute: [entries] if isinstance(entries, ValidationRule) else list(entries)
            for attribute, entries in rules.items()
        }
        self.flat: Mapping[str, Any] = MappingProxyType(flatten(data))
        self._errors: Dict[str, List[str]] = {}
        self.validated = False

    def _run(self) -> None:
        if self.validated:
            return

        for rule_list in self.rules.values():
            for rule in rule_list:
                if isinstance(rule, DataAwareRule):
                    rule.set_data(self.flat)

        for pattern, rule_list in self.rules.items():
            attributes = expand_attribute(pattern, self.flat)
            logger.debug(
                f"Validating '{pattern}'",
                operation="validate_pattern",
                context={"pattern": pattern, "attributes": attributes, "rules_count": len(rule_list)},
            )

            for attribute in attributes:
                value = self.flat[attribute] if attribute in self.flat else value_at(self.data, attribute)
                for rule in rule_list:
                    rule.validate(attribute, value, self._fail_callback(attribute))

        self.validated = True

        if self._errors:
            logger.info(
                f"Validation failed for {len(self._errors)} attribute(s)",
                operation="validate",
                context={"attributes": list(self._errors)},
            )

    def _fail_callback(self, attribute: str) -> Callable[[str], None]:
        def fail(message: str) -> None:
            self._errors.setdefault(attribute, []).append(message)

        return fail

    def passes(self) -> bool:
        self._run()
        return not self._errors

    def fails(self) -> bool:
        return not self.passes()

    def errors(self) -> Dict[str, List[str]]:
        """Failure messages keyed by concrete attribute path."""
        self._run()
        return {attribute: list(messages) for attribute, messages in self._errors.items()}


class ValidationEngine:
    """
    Builds validators from registered rule factories and YAML rule-sets.

    Features:
    - Loads rule-sets from YAML configuration
    - Pluggable rule factory registry
    - Unknown rule types are rejected when rules are built
    """

    def __init__(self, rules_config_path: Optional[str] = None):
        """
        Initialize validation engine and optionally load rule-sets.

        Args:
            rules_config_path: Path to a rules YAML file

        Raises:
            FileNotFoundError: If config file not found
            ValueError: If rule schema is invalid
        """
        self.attribute_rules: List[AttributeRules] = []
        self.rule_factories: Dict[str, Callable[..., ValidationRule]] = {}
        if rules_config_path:
            self.load_rules(rules_config_path)

    def load_rules(self, config_path: str) -> None:
        """
        Load rule-sets from YAML configuration file.

        Args:
            config_path: Path to rules YAML

        Raises:
            FileNotFoundError: If config file not found
            ValueError: If YAML or rule schema is invalid
        """
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except FileNotFoundError:
            logger.error(f"Rules configuration file not found: {config_path}")
            raise
        except yaml.YAMLError as e:
            logger.error(f"Invalid YAML in rules configuration: {e}")
            raise ValueError(f"Invalid YAML in {config_path}: {e}") from e

        if not config or "rules" not in config:
            logger.warning(f"No rules found in configuration: {config_path}")
            return

        if not isinstance(config["rules"], list):
            raise ValueError(f"'rules' must be a list in {config_path}")

        for idx, entry in enumerate(config["rules"]):
            try:
                self.attribute_rules.append(self._parse_entry(entry))
            except ValueError as e:
                logger.error(f"Failed to parse rules entry [{idx}]: {e}")
                raise

        logger.info(f"Successfully loaded {len(self.attribute_rules)} attribute rule-set(s) from {config_path}")

    def _parse_entry(self, entry: Any) -> AttributeRules:
        """
        Parse and validate one attribute entry from YAML data.

        Raises:
            ValueError: If the entry schema is invalid
        """
        if not isinstance(entry, dict):
            raise ValueError("Rules entry must be a dictionary")
        if "attribute" not in entry:
            raise ValueError("Rules entry missing required field: 'attribute'")
        if "rules" not in entry:
            raise ValueError(f"Rules entry '{entry['attribute']}' missing required field: 'rules'")

        attribute = entry["attribute"]
        if not isinstance(attribute, str) or not attribute:
            raise ValueError("'attribute' must be a non-empty string")
        if not isinstance(entry["rules"], list):
            raise ValueError(f"Attribute '{attribute}': 'rules' must be a list")

        rules = []
        for rule_idx, rule_data in enumerate(entry["rules"]):
            if not isinstance(rule_data, dict):
                raise ValueError(f"Attribute '{attribute}': rule [{rule_idx}] must be a dictionary")
            if "type" not in rule_data:
                raise ValueError(f"Attribute '{attribute}': rule [{rule_idx}] missing 'type' field")
            params = rule_data.get("params") or {}
            if not isinstance(params, dict):
                raise ValueError(f"Attribute '{attribute}': rule [{rule_idx}] 'params' must be a dictionary")
            rules.append(RuleConfig(type=rule_data["type"], params=params))

        return AttributeRules(attribute=attribute, rules=rules)

    def register_rule(self, name: str, factory: Callable[..., ValidationRule]) -> None:
        """
        Register a rule factory.

        Args:
            name: Rule type name used in YAML (e.g., "equality")
            factory: Callable taking the rule params as keyword arguments

        Raises:
            TypeError: If factory is not callable
        """
        if not callable(factory):
            raise TypeError(f"Rule factory must be callable, got {type(factory)}")

        self.rule_factories[name] = factory
        logger.debug(f"Registered rule factory: {name}")

    def build_rules(self) -> Dict[str, List[ValidationRule]]:
        """
        Instantiate fresh rule objects for every loaded attribute rule-set.

        Raises:
            ValueError: If a rule type has no registered factory
        """
        built: Dict[str, List[ValidationRule]] = {}
        for entry in self.attribute_rules:
            for rule_config in entry.rules:
                factory = self.rule_factories.get(rule_config.type)
                if factory is None:
                    raise ValueError(
                        f"Unknown rule type '{rule_config.type}' for attribute '{entry.attribute}'"
                    )
                built.setdefault(entry.attribute, []).append(factory(**rule_config.params))
        return built

    def make(self, data: Mapping[str, Any], rules: Optional[RuleSet] = None) -> Validator:
        """
        Create a Validator for data.

        Args:
            data: Nested input payload
            rules: Explicit rule-set; loaded YAML rule-sets are used when omitted
        """
        return Validator(data, self.build_rules() if rules is None else rules)
