"""Shared validation helpers for frozen dataclass models.

Private module. Used by the ``__post_init__`` methods of the sibling model
modules to check field types, reject null bytes and freeze mappings.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any


def validate_instance(value: Any, expected: type, name: str) -> None:
    """Raise ``TypeError`` if *value* is not an instance of *expected*."""
    if not isinstance(value, expected):
        article = "an" if expected.__name__[0] in "AEIOUaeiou" else "a"
        raise TypeError(f"{name} must be {article} {expected.__name__}, got {type(value).__name__}")


def validate_str_no_null(value: Any, name: str) -> None:
    """Raise if *value* is not a ``str`` or contains null bytes."""
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a str, got {type(value).__name__}")
    if "\x00" in value:
        raise ValueError(f"{name} contains null bytes")


def validate_str_not_empty(value: Any, name: str) -> None:
    """Raise if *value* is not a non-empty ``str`` without null bytes."""
    validate_str_no_null(value, name)
    if not value:
        raise ValueError(f"{name} must not be empty")


def validate_str_mapping(value: Any, name: str) -> None:
    """Raise if *value* is not a ``Mapping`` of ``str`` to ``str``."""
    if not isinstance(value, Mapping):
        raise TypeError(f"{name} must be a Mapping, got {type(value).__name__}")
    for key, item in value.items():
        validate_str_no_null(key, f"{name} key")
        validate_str_no_null(item, f"{name}[{key!r}]")


def freeze_mapping(value: Mapping[str, str]) -> Mapping[str, str]:
    """Copy *value* into a read-only ``MappingProxyType``."""
    return MappingProxyType(dict(value))
