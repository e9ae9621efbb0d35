"""Utility functions for the file organizer."""

from .security import (
    PathSafetyValidator,
    canonicalize,
    default_safe_directories,
    has_dangling_link,
    is_nested,
)

__all__ = [
    "PathSafetyValidator",
    "canonicalize",
    "default_safe_directories",
    "has_dangling_link",
    "is_nested",
]
