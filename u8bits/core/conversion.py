"""Stock conversion policies and the registry that maps types to them."""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Optional, Type

from u8bits.interfaces.conversion import Conversion, FallibleConversion


def enum_member(enum_cls: Type[Enum], raw: int, default: Optional[Enum] = None) -> Optional[Enum]:
    """Return the member of enum_cls with value raw, or default if there is none."""
    try:
        return enum_cls(raw)
    except ValueError:
        return default


class IntConversion(FallibleConversion):
    """Identity conversion for plain unsigned integer fields."""

    def __init__(self, name: str = "int"):
        self._name = name

    @property
    def type_name(self) -> str:
        return self._name

    def to_raw(self, value: Any) -> int:
        return int(value)

    def from_raw(self, raw: int) -> int:
        return raw

    def try_from_raw(self, raw: int) -> Optional[int]:
        return raw

    def render_to_raw(self, expr: str, type_ref: str) -> str:
        return f"int({expr})"

    def render_from_raw(self, expr: str, type_ref: str) -> str:
        return expr

    def render_try_from_raw(self, expr: str, type_ref: str) -> str:
        return expr


class BoolConversion(FallibleConversion):
    """Range field read as a flag: any non-zero raw value is True."""

    @property
    def type_name(self) -> str:
        return "bool"

    def to_raw(self, value: Any) -> int:
        return int(bool(value))

    def from_raw(self, raw: int) -> bool:
        return bool(raw)

    def try_from_raw(self, raw: int) -> Optional[bool]:
        return bool(raw)

    def render_to_raw(self, expr: str, type_ref: str) -> str:
        return f"int(bool({expr}))"

    def render_from_raw(self, expr: str, type_ref: str) -> str:
        return f"bool({expr})"

    def render_try_from_raw(self, expr: str, type_ref: str) -> str:
        return f"bool({expr})"


class EnumConversion(FallibleConversion):
    """Conversion between raw values and members of an integer-valued Enum.

    Without a default, raw values that match no member have no semantic value:
    such a field can only be read in fallible mode unless the enum covers every
    value of the field width. With a default, unmatched raw values map to it,
    which makes the conversion total.
    """

    def __init__(self, enum_cls: Type[Enum], default: Optional[Enum] = None):
        if not (isinstance(enum_cls, type) and issubclass(enum_cls, Enum)):
            raise TypeError(f"{enum_cls!r} is not an Enum class")
        if default is not None and not isinstance(default, enum_cls):
            raise ValueError(f"Default {default!r} is not a member of {enum_cls.__name__}")
        self.enum_cls = enum_cls
        self.default = default

    @property
    def type_name(self) -> str:
        return self.enum_cls.__name__

    def to_raw(self, value: Any) -> int:
        return int(self.enum_cls(value).value)

    def from_raw(self, raw: int) -> Enum:
        member = enum_member(self.enum_cls, raw, self.default)
        if member is None:
            raise ValueError(f"{raw} is not a valid {self.enum_cls.__name__}")
        return member

    def try_from_raw(self, raw: int) -> Optional[Enum]:
        return enum_member(self.enum_cls, raw, self.default)

    def is_total(self, width: int) -> bool:
        if self.default is not None:
            return True
        values = {member.value for member in self.enum_cls}
        return all(raw in values for raw in range(1 << width))

    def render_to_raw(self, expr: str, type_ref: str) -> str:
        return f"int({type_ref}({expr}).value)"

    def render_from_raw(self, expr: str, type_ref: str) -> str:
        if self.default is None:
            return f"{type_ref}({expr})"
        return f"enum_member({type_ref}, {expr}, {type_ref}.{self.default.name})"

    def render_try_from_raw(self, expr: str, type_ref: str) -> str:
        if self.default is None:
            return f"enum_member({type_ref}, {expr})"
        return f"enum_member({type_ref}, {expr}, {type_ref}.{self.default.name})"


class FunctionConversion(Conversion):
    """Unconditional conversion built from two plain functions."""

    def __init__(
        self,
        name: str,
        to_raw: Callable[[Any], int],
        from_raw: Callable[[int], Any],
    ):
        self._name = name
        self._to_raw = to_raw
        self._from_raw = from_raw

    @property
    def type_name(self) -> str:
        return self._name

    def to_raw(self, value: Any) -> int:
        return self._to_raw(value)

    def from_raw(self, raw: int) -> Any:
        return self._from_raw(raw)


class FallibleFunctionConversion(FallibleConversion):
    """Fallible conversion built from plain functions.

    try_from_raw must return None for raw values without a semantic value.
    """

    def __init__(
        self,
        name: str,
        to_raw: Callable[[Any], int],
        try_from_raw: Callable[[int], Optional[Any]],
    ):
        self._name = name
        self._to_raw = to_raw
        self._try_from_raw = try_from_raw

    @property
    def type_name(self) -> str:
        return self._name

    def to_raw(self, value: Any) -> int:
        return self._to_raw(value)

    def from_raw(self, raw: int) -> Any:
        value = self._try_from_raw(raw)
        if value is None:
            raise ValueError(f"{raw} has no {self._name} value")
        return value

    def try_from_raw(self, raw: int) -> Optional[Any]:
        return self._try_from_raw(raw)

    def is_total(self, width: int) -> bool:
        # Cannot be proven from an opaque function; use a fallible read.
        return False


def make_conversion(
    name: str,
    to_raw: Callable[[Any], int],
    from_raw: Optional[Callable[[int], Any]] = None,
    try_from_raw: Optional[Callable[[int], Optional[Any]]] = None,
) -> Conversion:
    """Build a conversion policy from functions.

    Pass from_raw for an unconditional policy or try_from_raw for a fallible one.
    """
    if (from_raw is None) == (try_from_raw is None):
        raise ValueError("Pass exactly one of from_raw or try_from_raw")
    if try_from_raw is not None:
        return FallibleFunctionConversion(name, to_raw, try_from_raw)
    assert from_raw is not None
    return FunctionConversion(name, to_raw, from_raw)


class ConversionRegistry:
    """Maps semantic types to conversion policies.

    int and bool are registered by default. Enum subclasses without an explicit
    registration get an EnumConversion the first time they are looked up.
    """

    def __init__(self, include_defaults: bool = True):
        self._policies: dict[type, Conversion] = {}
        if include_defaults:
            self._policies[int] = IntConversion()
            self._policies[bool] = BoolConversion()

    def register(self, type_: type, policy: Conversion, replace: bool = False) -> None:
        """Register the policy for type_.

        Raises:
            ValueError: If type_ already has a policy and replace is False
        """
        if type_ in self._policies and not replace:
            raise ValueError(f"A conversion for {type_.__name__} is already registered")
        self._policies[type_] = policy

    def find(self, type_: type) -> Optional[Conversion]:
        """Return the policy for type_, or None if it has no conversion."""
        policy = self._policies.get(type_)
        if policy is None and isinstance(type_, type) and issubclass(type_, Enum):
            if all(isinstance(member.value, int) for member in type_):
                policy = EnumConversion(type_)
                self._policies[type_] = policy
        return policy

    def copy(self) -> ConversionRegistry:
        clone = ConversionRegistry(include_defaults=False)
        clone._policies = dict(self._policies)
        return clone

    def __contains__(self, type_: type) -> bool:
        return self.find(type_) is not None
