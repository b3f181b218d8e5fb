# Compact "bits" helpers for the explorer's difficulty views

# Standard Bitcoin-style diff1 target for difficulty calculations
DIFF1_TARGET = int(
    "00000000ffff0000000000000000000000000000000000000000000000000000", 16
)

# Fixed-point scale used when dividing two full targets
PCT_SCALE = 1_000_000

SIGN_BIT = 0x00800000
MANTISSA_MASK = 0x007FFFFF


class InvalidBitsError(ValueError):
    """Raised when a compact target cannot be decoded."""


def compact_to_target(bits: int) -> int:
    """Convert compact bits representation to full target value."""
    if isinstance(bits, bool) or not isinstance(bits, int) or bits <= 0:
        raise InvalidBitsError(f"Invalid bits: {bits!r}")
    exp = (bits >> 24) & 0xFF
    mant = bits & MANTISSA_MASK
    if bits & SIGN_BIT or mant == 0:
        raise InvalidBitsError(f"Invalid bits: {bits:#010x}")

    if exp <= 3:
        target = mant >> (8 * (3 - exp))
    else:
        target = mant << (8 * (exp - 3))
    # A short exponent can shift the whole mantissa away
    if target == 0:
        raise InvalidBitsError(f"Invalid bits: {bits:#010x}")
    return target


def bits_from_hex(bits_hex: str) -> int:
    """Parse the hex ``bits`` field reported by the node (e.g. "1d00ffff")."""
    try:
        return int(bits_hex, 16)
    except (TypeError, ValueError) as e:
        raise InvalidBitsError(f"Invalid bits: {bits_hex!r}") from e


def pct_change_from_bits(old_bits: int, new_bits: int) -> float:
    """
    Percentage change in *difficulty* going from old_bits to new_bits.

    Positive when the target shrinks (harder). No clamping is applied, the
    valid range depends on the retarget era.
    """
    old_target = compact_to_target(old_bits)
    new_target = compact_to_target(new_bits)
    ratio_fp = (old_target * PCT_SCALE) // new_target
    ratio = ratio_fp / PCT_SCALE
    return (ratio - 1) * 100


def target_to_difficulty(target_int: int) -> float:
    """Convert a target value to difficulty (diff1-based)."""
    if target_int == 0:
        return float("inf")
    return DIFF1_TARGET / target_int
