import pytest

from u8bits.core.bits import (
    bit_mask,
    bit_range_mask,
    get_bit,
    get_bit_range,
    set_bit,
    set_bit_range,
)

RANGES = [(lsb, msb) for lsb in range(8) for msb in range(lsb, 8)]


def test_bit_range_mask_shapes():
    assert bit_range_mask(0, 7) == 0xFF
    assert bit_range_mask(2, 5) == 0b00111100
    assert bit_range_mask(6, 7) == 0b11000000
    assert bit_range_mask(0, 0) == 0b00000001
    assert bit_range_mask(7, 7) == 0b10000000


@pytest.mark.parametrize("lsb,msb", RANGES)
def test_range_mask_matches_width(lsb, msb):
    assert bit_range_mask(lsb, msb) == ((1 << (msb - lsb + 1)) - 1) << lsb


@pytest.mark.parametrize("lsb,msb", RANGES)
def test_set_then_get_returns_value_masked_to_width(lsb, msb):
    width_mask = (1 << (msb - lsb + 1)) - 1
    for byte in (0x00, 0xFF, 0xA5, 0x3C):
        for value in (0, 1, 0x55, 0xFF, 0x1FF):
            updated = set_bit_range(byte, lsb, msb, value)
            assert get_bit_range(updated, lsb, msb) == value & width_mask


@pytest.mark.parametrize("lsb,msb", RANGES)
def test_set_bit_range_leaves_other_bits_unchanged(lsb, msb):
    outside = ~bit_range_mask(lsb, msb) & 0xFF
    for byte in (0x00, 0xFF, 0x5A):
        updated = set_bit_range(byte, lsb, msb, 0xFF)
        assert updated & outside == byte & outside
        updated = set_bit_range(byte, lsb, msb, 0)
        assert updated & outside == byte & outside


def test_full_range_replaces_whole_byte():
    for byte in (0x00, 0x81, 0xFF):
        for value in (0x00, 0x7E, 0xFF):
            assert set_bit_range(byte, 0, 7, value) == value
            assert get_bit_range(value, 0, 7) == value


@pytest.mark.parametrize("pos", range(8))
def test_degenerate_range_behaves_as_single_bit(pos):
    for byte in (0x00, 0xFF, 0xAA, 0x55):
        for value in (True, False):
            assert set_bit_range(byte, pos, pos, int(value)) == set_bit(byte, pos, value)
        assert bool(get_bit_range(byte, pos, pos)) == get_bit(byte, pos)


@pytest.mark.parametrize("pos", range(8))
def test_single_bit_mask_isolates_one_bit(pos):
    assert bit_mask(pos) == 1 << pos
    assert set_bit(0x00, pos, True) == 1 << pos
    assert set_bit(0xFF, pos, False) == 0xFF & ~(1 << pos)


def test_set_bit_does_not_touch_neighbours():
    byte = set_bit(0x00, 4, True)
    assert byte == 0x10
    assert get_bit(byte, 4) is True
    assert get_bit(byte, 5) is False
    assert get_bit(byte, 3) is False


def test_set_bit_range_discards_bits_wider_than_range():
    assert set_bit_range(0x00, 6, 7, 0b111) == 0b11000000
    assert set_bit_range(0x00, 0, 1, 0xFF) == 0b00000011


@pytest.mark.parametrize("lsb,msb", [(0, 8), (-1, 3), (5, 4), (8, 8)])
def test_invalid_range_raises(lsb, msb):
    with pytest.raises(ValueError):
        bit_range_mask(lsb, msb)
    with pytest.raises(ValueError):
        set_bit_range(0, lsb, msb, 1)
    with pytest.raises(ValueError):
        get_bit_range(0, lsb, msb)


@pytest.mark.parametrize("pos", [-1, 8, 12])
def test_invalid_bit_position_raises(pos):
    with pytest.raises(ValueError):
        set_bit(0, pos, True)
    with pytest.raises(ValueError):
        get_bit(0, pos)
