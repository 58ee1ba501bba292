"""Conversion policy contracts.

A range field stores a raw unsigned value (at most 8 bits) but exposes a
semantic type. A conversion policy translates between the two. The split
between Conversion and FallibleConversion keeps the unconditional and the
fallible read modes distinct in the type of the policy itself.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional


class Conversion(ABC):
    """Unconditional conversion between raw field bits and a semantic type."""

    @property
    @abstractmethod
    def type_name(self) -> str:
        """Name of the semantic type, used in messages and emitted source."""
        ...

    @abstractmethod
    def to_raw(self, value: Any) -> int:
        """Convert a semantic value to the raw integer stored in the field."""
        ...

    @abstractmethod
    def from_raw(self, raw: int) -> Any:
        """Convert raw field bits to a semantic value.

        Only called when is_total() holds for the field width.
        """
        ...

    def is_total(self, width: int) -> bool:
        """Return True if every raw value of `width` bits has a semantic value."""
        return True

    def render_to_raw(self, expr: str, type_ref: str) -> str:
        """Return Python source converting `expr` to a raw integer.

        type_ref is the name the semantic type is bound to in the emitted module.

        Policies that cannot be emitted as source leave this unimplemented.
        """
        raise NotImplementedError(f"{type(self).__name__} cannot be rendered as source")

    def render_from_raw(self, expr: str, type_ref: str) -> str:
        """Return Python source converting raw `expr` to the semantic type."""
        raise NotImplementedError(f"{type(self).__name__} cannot be rendered as source")


class FallibleConversion(Conversion):
    """Conversion whose raw -> semantic direction may have no answer."""

    @abstractmethod
    def try_from_raw(self, raw: int) -> Optional[Any]:
        """Convert raw field bits, returning None when no semantic value exists."""
        ...

    def render_try_from_raw(self, expr: str, type_ref: str) -> str:
        """Return Python source evaluating to the semantic value or None."""
        raise NotImplementedError(f"{type(self).__name__} cannot be rendered as source")
