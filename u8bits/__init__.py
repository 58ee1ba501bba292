"""u8bits: named bit field accessors for byte buffer types.

A host type wraps a fixed-size bytearray; a declaration in the field grammar
generates typed get_/set_ functions for single bits and bit ranges of it.

Getting started:
    from u8bits import ByteStruct, bitfields

    @bitfields('''
        /// foo is bit 4 of byte 0
        foo: rw 0, 4;
        /// bar are bits 0..3 of byte 1
        u8, bar: rw 1, 0, 3;
    ''')
    class Bytes(ByteStruct):
        SIZE = 2

    b = Bytes()
    b.set_bar(5)
    b.get_bar()  # 5
"""

from u8bits.core.bits import get_bit, get_bit_range, set_bit, set_bit_range
from u8bits.core.conversion import (
    BoolConversion,
    ConversionRegistry,
    EnumConversion,
    IntConversion,
    make_conversion,
)
from u8bits.core.exceptions import (
    ConfigurationError,
    ConversionError,
    DuplicateFieldError,
    GenerationError,
    GrammarError,
    PositionError,
    U8BitsError,
)
from u8bits.core.field_spec import Direction, FieldSpec, Metadata
from u8bits.core.generator import AccessorGenerator, bitfields
from u8bits.core.host import ByteStruct
from u8bits.core.parser import parse_fields
from u8bits.interfaces.conversion import Conversion, FallibleConversion

__all__ = [
    # Primitives
    "get_bit",
    "set_bit",
    "get_bit_range",
    "set_bit_range",
    # Declarations
    "Direction",
    "FieldSpec",
    "Metadata",
    "parse_fields",
    # Generation
    "AccessorGenerator",
    "bitfields",
    "ByteStruct",
    # Conversion policies
    "Conversion",
    "FallibleConversion",
    "ConversionRegistry",
    "IntConversion",
    "BoolConversion",
    "EnumConversion",
    "make_conversion",
    # Errors
    "U8BitsError",
    "ConfigurationError",
    "GenerationError",
    "GrammarError",
    "DuplicateFieldError",
    "PositionError",
    "ConversionError",
]
