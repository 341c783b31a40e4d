"""Domain models for equality validation."""

from .entity import EntityType

__all__ = ["EntityType"]
