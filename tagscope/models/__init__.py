"""Data models for observed requests."""

from .capture import CapturedRequest

__all__ = ["CapturedRequest"]
