"""Translation lookup for validation messages and attribute labels."""

from .translator import Labeler, Translator, make_replacements

__all__ = ["Labeler", "Translator", "make_replacements"]
