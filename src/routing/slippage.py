"""Integer slippage bounds in basis points.

Both bounds stay in the base-unit integer domain so the displayed value and
the on-chain argument are the same number.
"""

from __future__ import annotations

from .config import BPS_DENOMINATOR, MAX_SLIPPAGE_BPS


def _check(theoretical: int, slippage_bps: int) -> None:
    if not isinstance(theoretical, int) or not isinstance(slippage_bps, int):
        raise TypeError("amounts must be int")
    if theoretical < 0:
        raise ValueError("theoretical amount must be non-negative")
    if not 0 <= slippage_bps <= MAX_SLIPPAGE_BPS:
        raise ValueError(f"slippage_bps must be in [0, {MAX_SLIPPAGE_BPS}]")


def maximum_sent(theoretical: int, slippage_bps: int) -> int:
    """ceil(theoretical * (10000 + s) / 10000)"""
    _check(theoretical, slippage_bps)
    numerator = theoretical * (BPS_DENOMINATOR + slippage_bps)
    return -(-numerator // BPS_DENOMINATOR)


def minimum_received(theoretical: int, slippage_bps: int) -> int:
    """floor(theoretical * (10000 - s) / 10000)"""
    _check(theoretical, slippage_bps)
    return theoretical * (BPS_DENOMINATOR - slippage_bps) // BPS_DENOMINATOR
