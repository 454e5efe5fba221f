"""
Constant-product pricing and liquidity share math.

All functions are pure and integer-only; rounding is always floor, in the
pool's favour. Guards raise `EconomicPolicyError` with a stable code so the
pool handler can reject before building any new state.

Swap:
    amount_in_after_fee = floor(amount_in * fee_numerator / fee_denominator)
    amount_out = floor(reserve_out * amount_in_after_fee / (reserve_in + amount_in_after_fee))

Liquidity:
    initial:    shares = isqrt(left * right) - minimum_liquidity (the lock stays in supply)
    subsequent: ratio-preserving used amounts, shares = min(used_l * S / R_l, used_r * S / R_r)
    burn:       out_x = floor(reserve_x * shares / S)
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from ..state.canonical import U128_MAX
from .errors import EconomicPolicyError, ErrorCode, SlippageError


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def _require_fee(fee_numerator: int, fee_denominator: int) -> None:
    _require_int("fee_numerator", fee_numerator)
    _require_int("fee_denominator", fee_denominator)
    if not (0 < fee_numerator < fee_denominator):
        raise ValueError("fee must satisfy 0 < fee_numerator < fee_denominator")


@dataclass(frozen=True)
class SwapResult:
    amount_in: int
    amount_in_after_fee: int
    amount_out: int
    new_reserve_in: int
    new_reserve_out: int
    k_before: int
    k_after: int


@dataclass(frozen=True)
class MintResult:
    shares_minted: int
    left_used: int
    right_used: int
    left_refund: int
    right_refund: int
    new_reserve_left: int
    new_reserve_right: int
    new_supply: int


@dataclass(frozen=True)
class BurnResult:
    left_out: int
    right_out: int
    new_reserve_left: int
    new_reserve_right: int
    new_supply: int


def expected_out(
    *,
    reserve_in: int,
    reserve_out: int,
    amount_in: int,
    fee_numerator: int,
    fee_denominator: int,
) -> int:
    """Pure quote; 0 for an empty pool or a zero amount."""
    for name, v in (("reserve_in", reserve_in), ("reserve_out", reserve_out), ("amount_in", amount_in)):
        _require_int(name, v)
        if v < 0:
            raise ValueError(f"{name} must be non-negative")
    _require_fee(fee_numerator, fee_denominator)
    after_fee = amount_in * fee_numerator // fee_denominator
    if reserve_in + after_fee == 0:
        return 0
    return reserve_out * after_fee // (reserve_in + after_fee)


def swap_exact_in(
    *,
    reserve_in: int,
    reserve_out: int,
    amount_in: int,
    min_amount_out: int,
    fee_numerator: int,
    fee_denominator: int,
) -> SwapResult:
    """
    Price a swap and check it against the caller's minimum.

    Nothing is committed here: the caller builds new state from the result
    only after this returns.
    """
    _require_int("min_amount_out", min_amount_out)
    if amount_in <= 0:
        raise EconomicPolicyError("amount_in must be positive", ErrorCode.ZERO_AMOUNT)
    if reserve_in <= 0 or reserve_out <= 0:
        raise EconomicPolicyError("pool has no liquidity", ErrorCode.INSUFFICIENT_RESERVES)

    amount_out = expected_out(
        reserve_in=reserve_in,
        reserve_out=reserve_out,
        amount_in=amount_in,
        fee_numerator=fee_numerator,
        fee_denominator=fee_denominator,
    )
    if amount_out < min_amount_out:
        raise SlippageError(amount_out, min_amount_out)
    if amount_out >= reserve_out:
        raise EconomicPolicyError("swap would drain the output reserve", ErrorCode.INSUFFICIENT_RESERVES)

    new_reserve_in = reserve_in + amount_in
    if new_reserve_in > U128_MAX:
        raise EconomicPolicyError("input reserve would overflow u128", ErrorCode.INSUFFICIENT_RESERVES)
    new_reserve_out = reserve_out - amount_out

    k_before = reserve_in * reserve_out
    k_after = new_reserve_in * new_reserve_out
    if k_after < k_before:
        raise AssertionError("constant product decreased")

    return SwapResult(
        amount_in=amount_in,
        amount_in_after_fee=amount_in * fee_numerator // fee_denominator,
        amount_out=amount_out,
        new_reserve_in=new_reserve_in,
        new_reserve_out=new_reserve_out,
        k_before=k_before,
        k_after=k_after,
    )


def optimal_amounts(
    *,
    reserve_left: int,
    reserve_right: int,
    left_desired: int,
    right_desired: int,
) -> tuple[int, int]:
    """
    Ratio-preserving used amounts for a deposit into a funded pool.

    The side with the smaller ratio to its reserve is used in full; the
    other side is scaled down (floor) and the rest is refunded.
    """
    right_from_left = left_desired * reserve_right // reserve_left
    if right_from_left <= right_desired:
        return left_desired, right_from_left
    return right_desired * reserve_left // reserve_right, right_desired


def mint_liquidity(
    *,
    reserve_left: int,
    reserve_right: int,
    supply: int,
    left_amount: int,
    right_amount: int,
    minimum_liquidity: int,
) -> MintResult:
    for name, v in (
        ("reserve_left", reserve_left),
        ("reserve_right", reserve_right),
        ("supply", supply),
        ("left_amount", left_amount),
        ("right_amount", right_amount),
        ("minimum_liquidity", minimum_liquidity),
    ):
        _require_int(name, v)
        if v < 0:
            raise ValueError(f"{name} must be non-negative")

    if left_amount == 0 or right_amount == 0:
        raise EconomicPolicyError("deposit amounts must be positive", ErrorCode.ZERO_AMOUNT)

    if supply == 0:
        root = math.isqrt(left_amount * right_amount)
        if root <= minimum_liquidity:
            raise EconomicPolicyError(
                f"initial liquidity {root} does not exceed the locked minimum {minimum_liquidity}",
                ErrorCode.INSUFFICIENT_LIQUIDITY,
            )
        return MintResult(
            shares_minted=root - minimum_liquidity,
            left_used=left_amount,
            right_used=right_amount,
            left_refund=0,
            right_refund=0,
            new_reserve_left=left_amount,
            new_reserve_right=right_amount,
            new_supply=root,
        )

    if reserve_left == 0 or reserve_right == 0:
        raise ValueError("funded supply with an empty reserve")

    left_used, right_used = optimal_amounts(
        reserve_left=reserve_left,
        reserve_right=reserve_right,
        left_desired=left_amount,
        right_desired=right_amount,
    )
    shares = min(left_used * supply // reserve_left, right_used * supply // reserve_right)
    if shares <= 0 or left_used <= 0 or right_used <= 0:
        raise EconomicPolicyError("deposit too small to mint any shares", ErrorCode.INSUFFICIENT_LIQUIDITY)

    new_reserve_left = reserve_left + left_used
    new_reserve_right = reserve_right + right_used
    if max(new_reserve_left, new_reserve_right, supply + shares) > U128_MAX:
        raise EconomicPolicyError("reserves would overflow u128", ErrorCode.INSUFFICIENT_RESERVES)

    return MintResult(
        shares_minted=shares,
        left_used=left_used,
        right_used=right_used,
        left_refund=left_amount - left_used,
        right_refund=right_amount - right_used,
        new_reserve_left=new_reserve_left,
        new_reserve_right=new_reserve_right,
        new_supply=supply + shares,
    )


def burn_liquidity(
    *,
    reserve_left: int,
    reserve_right: int,
    supply: int,
    shares: int,
    minimum_liquidity: int,
) -> BurnResult:
    for name, v in (
        ("reserve_left", reserve_left),
        ("reserve_right", reserve_right),
        ("supply", supply),
        ("shares", shares),
    ):
        _require_int(name, v)
        if v < 0:
            raise ValueError(f"{name} must be non-negative")
    if shares == 0:
        raise EconomicPolicyError("burn amount must be positive", ErrorCode.ZERO_AMOUNT)
    if shares > supply - minimum_liquidity:
        raise EconomicPolicyError(
            f"cannot burn {shares} of {supply} shares (locked minimum {minimum_liquidity})",
            ErrorCode.INSUFFICIENT_LIQUIDITY,
        )

    left_out = reserve_left * shares // supply
    right_out = reserve_right * shares // supply
    return BurnResult(
        left_out=left_out,
        right_out=right_out,
        new_reserve_left=reserve_left - left_out,
        new_reserve_right=reserve_right - right_out,
        new_supply=supply - shares,
    )
