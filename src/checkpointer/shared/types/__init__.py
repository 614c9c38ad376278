"""Shared base types for Checkpointer models."""

from .base import BaseTypeModel

__all__ = ["BaseTypeModel"]
