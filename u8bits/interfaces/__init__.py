"""Interface abstractions for u8bits.

- Conversion, FallibleConversion: raw <-> semantic type policies
- ByteBuffer, ByteHost: what generated accessors need from a host
"""

from u8bits.interfaces.conversion import Conversion, FallibleConversion
from u8bits.interfaces.host import ByteBuffer, ByteHost

__all__ = [
    "Conversion",
    "FallibleConversion",
    "ByteBuffer",
    "ByteHost",
]
