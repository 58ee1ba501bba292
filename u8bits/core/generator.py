"""Accessor generation.

Turns a generation unit (an ordered list of FieldSpecs) into get_/set_
functions attached to a host class. The whole unit is validated before any
function is attached, so a failing unit leaves the host class untouched.

Each generated function closes over its byte index and bit coordinates only;
nothing else about the FieldSpec survives generation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from operator import attrgetter
from typing import Any, Callable, Iterable, Mapping, Optional, Union

from u8bits.core import bits
from u8bits.core.conversion import ConversionRegistry
from u8bits.core.exceptions import (
    ConversionError,
    DuplicateFieldError,
    GenerationError,
    PositionError,
)
from u8bits.core.field_spec import FieldSpec, Metadata
from u8bits.core.parser import parse_fields
from u8bits.interfaces.conversion import Conversion, FallibleConversion
from u8bits.utils.consts import DEFAULT_BUFFER_ATTR, ConstUtils

logger = logging.getLogger(__name__)

# Type names usable in declarations without passing them in `types`
BUILTIN_TYPES: dict[str, type] = {"int": int, "u8": int, "bool": bool}

TypeBinding = Union[type, Conversion]


@dataclass(frozen=True)
class ResolvedField:
    """A validated FieldSpec with its conversion policy (None for single bits)."""

    spec: FieldSpec
    policy: Optional[Conversion] = None
    semantic_type: Any = None


def check_unique(specs: Iterable[FieldSpec]) -> None:
    """Raise DuplicateFieldError if an identifier appears twice."""
    seen: set[str] = set()
    for spec in specs:
        if spec.identifier in seen:
            raise DuplicateFieldError(spec.identifier)
        seen.add(spec.identifier)


def check_position(spec: FieldSpec, size: Optional[int] = None) -> None:
    """Raise PositionError if spec's coordinates are outside the buffer or byte."""
    top = ConstUtils.MAX_BIT_POSITION
    if spec.byte_index < 0:
        raise PositionError(spec.identifier, f"byte index {spec.byte_index} is negative")
    if size is not None and spec.byte_index >= size:
        raise PositionError(
            spec.identifier,
            f"byte index {spec.byte_index} is outside a {size}-byte buffer",
            details={"size": size},
        )
    if not spec.is_range:
        if not 0 <= spec.bit_position <= top:
            raise PositionError(spec.identifier, f"bit {spec.bit_position} is not in 0..{top}")
        return
    for name, value in (("lsb", spec.lsb), ("msb", spec.msb)):
        if not 0 <= value <= top:
            raise PositionError(spec.identifier, f"{name} {value} is not in 0..{top}")
    if spec.lsb > spec.msb:
        raise PositionError(spec.identifier, f"lsb {spec.lsb} is greater than msb {spec.msb}")


def resolve_conversion(
    spec: FieldSpec,
    types: Mapping[str, TypeBinding],
    conversions: ConversionRegistry,
) -> ResolvedField:
    """Find the conversion policy for a range field and check it suits the field."""
    type_name = spec.semantic_type
    assert type_name is not None
    binding = types.get(type_name, BUILTIN_TYPES.get(type_name))
    if binding is None:
        raise ConversionError(spec.identifier, type_name, "unknown type")

    if isinstance(binding, Conversion):
        policy: Optional[Conversion] = binding
        semantic_type: Any = Any
    else:
        policy = conversions.find(binding)
        semantic_type = binding
    if policy is None:
        raise ConversionError(spec.identifier, type_name, "no conversion to or from raw bits")

    if spec.direction.fallible:
        if not isinstance(policy, FallibleConversion):
            raise ConversionError(
                spec.identifier, type_name, "fallible read needs a fallible conversion"
            )
    elif spec.direction.readable and not policy.is_total(spec.width):
        raise ConversionError(
            spec.identifier,
            type_name,
            f"not every {spec.width}-bit value converts; declare the field "
            f"'{spec.direction.value}?' or give the conversion a default",
        )
    return ResolvedField(spec, policy, semantic_type)


def plan_unit(
    specs: Iterable[FieldSpec],
    types: Optional[Mapping[str, TypeBinding]] = None,
    conversions: Optional[ConversionRegistry] = None,
    size: Optional[int] = None,
) -> list[ResolvedField]:
    """Validate a generation unit and resolve every field's conversion.

    Raises:
        DuplicateFieldError: If an identifier is declared twice
        PositionError: If byte or bit coordinates are invalid
        ConversionError: If a range field's type cannot be converted
    """
    specs = list(specs)
    types = types or {}
    conversions = conversions or ConversionRegistry()

    check_unique(specs)
    planned = []
    for spec in specs:
        check_position(spec, size)
        if spec.is_range:
            planned.append(resolve_conversion(spec, types, conversions))
        else:
            planned.append(ResolvedField(spec))
    return planned


class AccessorGenerator:
    """Attaches generated accessors to host classes.

    Args:
        conversions: Registry consulted for range field types
        buffer_attr: Name of the host attribute holding the byte buffer
    """

    def __init__(
        self,
        conversions: Optional[ConversionRegistry] = None,
        buffer_attr: str = DEFAULT_BUFFER_ATTR,
    ):
        self.conversions = conversions or ConversionRegistry()
        self.buffer_attr = buffer_attr

    def generate(
        self,
        host_cls: type,
        specs: Iterable[FieldSpec],
        types: Optional[Mapping[str, TypeBinding]] = None,
        size: Optional[int] = None,
    ) -> dict[str, Callable]:
        """Generate accessors for specs and attach them to host_cls.

        Args:
            host_cls: Class receiving the accessors
            specs: The generation unit, in declaration order
            types: Semantic type names used by range fields, mapped to a
                Python type or directly to a conversion policy
            size: Buffer length in bytes, when known

        Returns:
            The generated functions by name, in generation order

        Raises:
            GenerationError: If any field is invalid. Nothing is attached.
        """
        planned = plan_unit(specs, types, self.conversions, size)

        functions: dict[str, Callable] = {}
        for field in planned:
            for name, fn in self._build(field):
                if name in vars(host_cls):
                    raise GenerationError(
                        f"{host_cls.__name__} already defines '{name}'",
                        field=field.spec.identifier,
                    )
                functions[name] = self._finish(fn, name, host_cls, field.spec)

        for name, fn in functions.items():
            setattr(host_cls, name, fn)
            logger.debug("Generated %s.%s", host_cls.__qualname__, name)
        logger.info(
            "Generated %d accessors for %d fields on %s",
            len(functions),
            len(planned),
            host_cls.__qualname__,
        )
        return functions

    # Private helpers -------------------------------------------------------

    def _build(self, field: ResolvedField) -> list[tuple[str, Callable]]:
        spec = field.spec
        built = []
        if spec.direction.readable:
            built.append((spec.getter_name, self._getter(field)))
        if spec.direction.writable:
            built.append((spec.setter_name, self._setter(field)))
        return built

    def _getter(self, field: ResolvedField) -> Callable:
        spec = field.spec
        buffer = attrgetter(self.buffer_attr)
        byte_index, lsb, msb = spec.byte_index, spec.lsb, spec.msb

        if not spec.is_range:

            def get_flag(host) -> bool:
                return bits.get_bit(buffer(host)[byte_index], lsb)

            return get_flag

        assert field.policy is not None
        if spec.direction.fallible:
            assert isinstance(field.policy, FallibleConversion)
            try_from_raw = field.policy.try_from_raw

            def try_get_value(host):
                return try_from_raw(bits.get_bit_range(buffer(host)[byte_index], lsb, msb))

            try_get_value.__annotations__ = {"return": Optional[field.semantic_type]}
            return try_get_value

        from_raw = field.policy.from_raw

        def get_value(host):
            return from_raw(bits.get_bit_range(buffer(host)[byte_index], lsb, msb))

        get_value.__annotations__ = {"return": field.semantic_type}
        return get_value

    def _setter(self, field: ResolvedField) -> Callable:
        spec = field.spec
        buffer = attrgetter(self.buffer_attr)
        byte_index, lsb, msb = spec.byte_index, spec.lsb, spec.msb

        if not spec.is_range:

            def set_flag(host, value: bool) -> None:
                data = buffer(host)
                data[byte_index] = bits.set_bit(data[byte_index], lsb, bool(value))

            return set_flag

        assert field.policy is not None
        to_raw = field.policy.to_raw

        def set_value(host, value) -> None:
            data = buffer(host)
            data[byte_index] = bits.set_bit_range(data[byte_index], lsb, msb, to_raw(value))

        set_value.__annotations__ = {"value": field.semantic_type, "return": None}
        return set_value

    @staticmethod
    def _finish(fn: Callable, name: str, host_cls: type, spec: FieldSpec) -> Callable:
        fn.__name__ = name
        fn.__qualname__ = f"{host_cls.__qualname__}.{name}"
        fn.__module__ = host_cls.__module__
        fn.__doc__ = spec.doc
        return with_metadata(*spec.metadata)(fn)


def with_metadata(*metadata: Metadata) -> Callable[[Callable], Callable]:
    """Decorator recording field metadata on an accessor as `field_metadata`."""

    def decorate(fn: Callable) -> Callable:
        fn.field_metadata = tuple(metadata)  # type: ignore[attr-defined]
        return fn

    return decorate


def bitfields(
    declarations: Union[str, Iterable[FieldSpec]],
    types: Optional[Mapping[str, TypeBinding]] = None,
    conversions: Optional[ConversionRegistry] = None,
    buffer_attr: str = DEFAULT_BUFFER_ATTR,
    size: Optional[int] = None,
) -> Callable[[type], type]:
    """Class decorator generating accessors from field declarations.

    declarations is either declaration text in the field grammar or already
    built FieldSpecs. The buffer size is taken from size, else from the
    class's SIZE attribute, else left unchecked.

    Usage:
        @bitfields('''
            /// foo is bit 4 of byte 0
            foo: rw 0, 4;
            /// bar are bits 0..3 of byte 1
            u8, bar: rw 1, 0, 3;
        ''')
        class Bytes(ByteStruct):
            SIZE = 2
    """
    if isinstance(declarations, str):
        specs: tuple[FieldSpec, ...] = parse_fields(declarations)
    else:
        specs = tuple(declarations)

    def decorate(cls: type) -> type:
        unit_size = size if size is not None else getattr(cls, "SIZE", None)
        generator = AccessorGenerator(conversions=conversions, buffer_attr=buffer_attr)
        generator.generate(cls, specs, types=types, size=unit_size)
        return cls

    return decorate
