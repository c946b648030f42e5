"""Fee engine: marketing/prize split and per-message fee escalation.

Both functions widen to a 128-bit intermediate before multiplying, then narrow
back to u64. Any checked-math failure raises ARITHMETIC_OVERFLOW.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..config import BPS_DENOMINATOR, FEE_STEP_NUMERATOR, U16_MAX, U64_MAX, U128_MAX
from ..errors import ErrorCode, SpecError


@dataclass(frozen=True)
class FeeSplit:
    marketing_fee: int
    prize_fee: int


def _require_u64(name: str, value: int) -> None:
    if value < 0 or value > U64_MAX:
        raise SpecError(ErrorCode.ARITHMETIC_OVERFLOW, f"{name} out of u64 range")


def _checked_mul_u128(a: int, b: int) -> int:
    product = a * b
    if product > U128_MAX:
        raise SpecError(ErrorCode.ARITHMETIC_OVERFLOW, "u128 multiplication overflow")
    return product


def compute_split(current_fee: int, marketing_bps: int) -> FeeSplit:
    _require_u64("current_fee", current_fee)
    if marketing_bps < 0 or marketing_bps > U16_MAX:
        raise SpecError(ErrorCode.ARITHMETIC_OVERFLOW, "marketing_bps out of u16 range")

    marketing_fee = _checked_mul_u128(current_fee, marketing_bps) // BPS_DENOMINATOR
    if marketing_fee > current_fee:
        # Only reachable with bps > 10000, which the u16 range allows.
        raise SpecError(ErrorCode.ARITHMETIC_OVERFLOW, "marketing fee exceeds current fee")
    return FeeSplit(marketing_fee=marketing_fee, prize_fee=current_fee - marketing_fee)


def escalate(current_fee: int, fee_cap: int) -> int:
    """Next fee after an accepted message: ``min(fee_cap, current_fee * 1.0078)``."""
    _require_u64("current_fee", current_fee)
    _require_u64("fee_cap", fee_cap)

    next_fee = _checked_mul_u128(current_fee, FEE_STEP_NUMERATOR) // BPS_DENOMINATOR
    # Cap in the wide domain so the narrowing below can never truncate.
    if next_fee > fee_cap:
        next_fee = fee_cap
    _require_u64("next_fee", next_fee)
    return next_fee
