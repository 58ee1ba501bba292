"""Constants for byte and bit arithmetic."""


class ConstUtils:
    """Byte-level masks and limits."""

    MASK_8_BITS = 0xFF
    """8-bit mask: 0xFF. Also the all-ones byte used to shape range masks."""

    BITS_PER_BYTE = 8
    """Number of addressable bit positions in one byte."""

    MAX_BIT_POSITION = 7
    """Highest valid bit position (msb of a byte)."""


# Name of the buffer attribute generated accessors index into by default
DEFAULT_BUFFER_ATTR = "data"


def field_width(lsb: int, msb: int) -> int:
    """Number of bits covered by the inclusive range [lsb, msb]."""
    return msb - lsb + 1
