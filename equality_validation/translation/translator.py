"""
Translation loader and lookup.

Translation lines live in YAML group files laid out as
``<lang_path>/<locale>/<group>.yaml``. Keys address a line as
``group.dot.path``; package translations are namespaced as
``namespace::group.dot.path`` and may be overridden by published copies
under ``<lang_path>/vendor/<namespace>/<locale>/<group>.yaml``.
"""

import logging
import os
from typing import Any, Dict, Mapping, Optional, Protocol, Tuple, runtime_checkable

import yaml

logger = logging.getLogger(__name__)

NAMESPACE_SEPARATOR = "::"


@runtime_checkable
class Labeler(Protocol):
    """Source of human-readable text for translation keys."""

    def lookup(self, key: str, replace: Optional[Mapping[str, Any]] = None) -> Optional[str]:
        """Return the translated line for key, or None when it does not exist."""
        ...


def make_replacements(line: str, replace: Optional[Mapping[str, Any]]) -> str:
    """
    Substitute ``:name`` placeholders in line.

    ``:Name`` and ``:NAME`` receive the capitalised and upper-cased value.
    Longer placeholder names are replaced first so that ``:model_name`` is
    never clobbered by ``:model``.
    """
    if not replace:
        return line

    for name in sorted(replace, key=len, reverse=True):
        value = "" if replace[name] is None else str(replace[name])
        line = line.replace(f":{name}", value)
        line = line.replace(f":{name[:1].upper()}{name[1:]}", value[:1].upper() + value[1:])
        line = line.replace(f":{name.upper()}", value.upper())

    return line


def _dig(lines: Mapping[str, Any], path: str) -> Optional[Any]:
    node: Any = lines
    for segment in path.split("."):
        if not isinstance(node, Mapping) or segment not in node:
            return None
        node = node[segment]
    return node


class Translator:
    """
    YAML-backed translator.

    Loaded groups are cached per (namespace, locale, group).
    """

    def __init__(
        self,
        lang_path: Optional[str] = None,
        locale: str = "en",
        fallback_locale: Optional[str] = "en",
    ):
        """
        Initialize Translator.

        Args:
            lang_path: Application language directory (may be None)
            locale: Active locale
            fallback_locale: Locale consulted when a line is missing
        """
        self.lang_path = lang_path
        self.locale = locale
        self.fallback_locale = fallback_locale
        self.namespaces: Dict[str, str] = {}
        self._loaded: Dict[Tuple[Optional[str], str, str], Dict[str, Any]] = {}

    def add_namespace(self, namespace: str, path: str) -> None:
        """Register a package translation directory under namespace."""
        self.namespaces[namespace] = path
        self._loaded = {k: v for k, v in self._loaded.items() if k[0] != namespace}
        logger.debug(f"Registered translation namespace '{namespace}' at {path}")

    def set_locale(self, locale: str) -> None:
        self.locale = locale

    @staticmethod
    def parse_key(key: str) -> Tuple[Optional[str], str, str]:
        """
        Split key into (namespace, group, item).

        Example:
            >>> Translator.parse_key("equality-validation::validation.custom.rule")
            ("equality-validation", "validation", "custom.rule")
        """
        namespace: Optional[str] = None
        if NAMESPACE_SEPARATOR in key:
            namespace, key = key.split(NAMESPACE_SEPARATOR, 1)

        group, _, item = key.partition(".")
        return namespace, group, item

    def _read_group(self, path: str) -> Dict[str, Any]:
        if not os.path.isfile(path):
            return {}

        try:
            with open(path, "r", encoding="utf-8") as f:
                content = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"Invalid YAML in translation file {path}: {e}")
            raise ValueError(f"Invalid YAML in {path}: {e}") from e

        if content is None:
            return {}
        if not isinstance(content, dict):
            raise ValueError(f"Translation file {path} must contain a mapping")
        return content

    def _merge(self, base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
        merged = dict(base)
        for key, value in override.items():
            if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
                merged[key] = self._merge(dict(merged[key]), value)
            else:
                merged[key] = value
        return merged

    def load(self, namespace: Optional[str], group: str, locale: str) -> Dict[str, Any]:
        """Load (and cache) the lines of one group for one locale."""
        cache_key = (namespace, locale, group)
        if cache_key in self._loaded:
            return self._loaded[cache_key]

        lines: Dict[str, Any] = {}
        if namespace is None:
            if self.lang_path:
                lines = self._read_group(os.path.join(self.lang_path, locale, f"{group}.yaml"))
        elif namespace in self.namespaces:
            lines = self._read_group(os.path.join(self.namespaces[namespace], locale, f"{group}.yaml"))
            if self.lang_path:
                vendor_file = os.path.join(self.lang_path, "vendor", namespace, locale, f"{group}.yaml")
                lines = self._merge(lines, self._read_group(vendor_file))

        self._loaded[cache_key] = lines
        return lines

    def lookup(
        self,
        key: str,
        replace: Optional[Mapping[str, Any]] = None,
        locale: Optional[str] = None,
    ) -> Optional[str]:
        """
        Translated line for key, or None when no locale defines it.

        Args:
            key: "group.item" or "namespace::group.item"
            replace: Placeholder values
            locale: Locale to use instead of the active one
        """
        namespace, group, item = self.parse_key(key)
        if not group or not item:
            return None

        locales = [locale or self.locale]
        if self.fallback_locale and self.fallback_locale not in locales:
            locales.append(self.fallback_locale)

        for candidate in locales:
            line = _dig(self.load(namespace, group, candidate), item)
            if isinstance(line, str):
                return make_replacements(line, replace)

        return None

    def get(
        self,
        key: str,
        replace: Optional[Mapping[str, Any]] = None,
        locale: Optional[str] = None,
    ) -> str:
        """Translated line for key; the key itself is returned when missing."""
        line = self.lookup(key, replace, locale)
        return key if line is None else line
