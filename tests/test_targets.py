import pytest

from retarget_explorer.consensus.targets import (
    DIFF1_TARGET,
    InvalidBitsError,
    bits_from_hex,
    compact_to_target,
    pct_change_from_bits,
    target_to_difficulty,
)


def test_decodes_diff1_bits():
    assert compact_to_target(0x1D00FFFF) == DIFF1_TARGET
    assert target_to_difficulty(compact_to_target(0x1D00FFFF)) == 1.0


def test_small_exponent_shifts_right():
    # exponent 1: mantissa loses its two low bytes
    assert compact_to_target(0x01123456) == 0x12
    assert compact_to_target(0x02123456) == 0x1234
    assert compact_to_target(0x03123456) == 0x123456
    assert compact_to_target(0x04123456) == 0x12345600


@pytest.mark.parametrize(
    "bits",
    [0, -1, 0x1D000000, 0x1D800001, 0x04923456, 0x01000001, 0x02000001, 1.5, "1d00ffff", True, None],
)
def test_rejects_malformed_bits(bits):
    with pytest.raises(InvalidBitsError):
        compact_to_target(bits)


@pytest.mark.parametrize("bits", [0x1D00FFFF, 0x1B0404CB, 0x207FFFFF, 0x03000001])
def test_decoded_target_is_positive_and_deterministic(bits):
    assert compact_to_target(bits) > 0
    assert compact_to_target(bits) == compact_to_target(bits)


@pytest.mark.parametrize("bits", [0x1D00FFFF, 0x1B0404CB, 0x207FFFFF])
def test_same_bits_is_zero_change(bits):
    assert pct_change_from_bits(bits, bits) == 0


def test_halved_target_doubles_difficulty():
    old_bits = 0x1D00FFFF
    new_bits = 0x1C7FFF80  # target halved
    assert compact_to_target(new_bits) * 2 == compact_to_target(old_bits)
    assert pct_change_from_bits(old_bits, new_bits) == pytest.approx(100.0)
    assert pct_change_from_bits(new_bits, old_bits) == pytest.approx(-50.0)


def test_change_is_not_clamped():
    # target / 256: +25500%
    assert pct_change_from_bits(0x1D00FFFF, 0x1C00FFFF) == pytest.approx(25500.0)


def test_bits_from_hex():
    assert bits_from_hex("1d00ffff") == 0x1D00FFFF
    with pytest.raises(InvalidBitsError):
        bits_from_hex("zz")


def test_zero_target_difficulty_is_infinite():
    assert target_to_difficulty(0) == float("inf")


def test_target_shifted_to_zero_is_rejected_in_pct_change():
    with pytest.raises(InvalidBitsError):
        pct_change_from_bits(0x1D00FFFF, 0x01000001)
