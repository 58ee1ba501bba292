"""Bit and bit-range primitives for a single byte.

Every function is pure: bytes are plain ints in 0..255 and setters return the
updated byte rather than mutating anything. Ranges are inclusive, so
``get_bit_range(b, 2, 4)`` returns THREE bits, bit 2 through bit 4.

Positions outside 0..7 (or ``lsb > msb``) are caller errors and raise
``ValueError`` instead of producing a mis-shaped mask.
"""

from u8bits.utils.consts import ConstUtils

ALL_ONES = ConstUtils.MASK_8_BITS


def _check_position(pos: int) -> None:
    if not 0 <= pos <= ConstUtils.MAX_BIT_POSITION:
        raise ValueError(f"Bit position {pos} out of range; must be 0..7")


def _check_range(lsb: int, msb: int) -> None:
    _check_position(lsb)
    _check_position(msb)
    if lsb > msb:
        raise ValueError(f"Invalid bit range: lsb {lsb} is greater than msb {msb}")


def bit_range_mask(lsb: int, msb: int) -> int:
    """Return a byte with ones in bits [lsb, msb] and zeros elsewhere.

    Shift the all-ones byte left to drop everything above msb, then right to
    drop everything below lsb, then back into place:

        msb=5, lsb=2:  11111111 -> 11111100 -> 00001111 -> 00111100
    """
    _check_range(lsb, msb)
    top = (ALL_ONES << (7 - msb)) & ALL_ONES
    return top >> (7 - msb + lsb) << lsb


def set_bit_range(byte: int, lsb: int, msb: int, value: int) -> int:
    """Return byte with bits [lsb, msb] replaced by the low bits of value.

    Bits of value that do not fit the range are discarded; bits of byte
    outside the range are kept.
    """
    mask = bit_range_mask(lsb, msb)
    byte &= ~mask & ALL_ONES
    byte |= (value << lsb) & mask
    return byte


def get_bit_range(byte: int, lsb: int, msb: int) -> int:
    """Return the value held in bits [lsb, msb] of byte, shifted down to bit 0."""
    mask = bit_range_mask(lsb, msb)
    return (byte & mask) >> lsb


def bit_mask(pos: int) -> int:
    """Return a byte with only bit pos set."""
    _check_position(pos)
    return 1 << pos


def set_bit(byte: int, pos: int, value: bool) -> int:
    """Return byte with bit pos set (value true) or cleared (value false)."""
    mask = bit_mask(pos)
    byte &= ~mask & ALL_ONES
    if value:
        byte |= mask
    return byte


def get_bit(byte: int, pos: int) -> bool:
    """Return True if bit pos of byte is set."""
    mask = bit_mask(pos)
    return (byte & mask) == mask
