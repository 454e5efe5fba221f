# [TESTER] v1

from __future__ import annotations

import importlib.util
import math

import pytest

from vaultswap.core.cpmm import burn_liquidity, expected_out, mint_liquidity, optimal_amounts, swap_exact_in
from vaultswap.core.errors import EconomicPolicyError, ErrorCode, SlippageError

FEE = {"fee_numerator": 997, "fee_denominator": 1000}


class TestSwap:
    def test_fee_is_taken_from_input_before_pricing(self) -> None:
        # 10 * 997 // 1000 = 9; 150 * 9 // (100 + 9) = 12
        assert expected_out(reserve_in=100, reserve_out=150, amount_in=10, **FEE) == 12

    def test_output_is_below_the_unfeed_ratio(self) -> None:
        out = expected_out(reserve_in=100, reserve_out=150, amount_in=10, **FEE)
        assert 0 < out < 10 * 150 / 110

    def test_swap_updates_reserves_and_never_decreases_k(self) -> None:
        result = swap_exact_in(reserve_in=100, reserve_out=150, amount_in=10, min_amount_out=0, **FEE)
        assert result.amount_out == 12
        assert (result.new_reserve_in, result.new_reserve_out) == (110, 138)
        assert result.k_after >= result.k_before

    def test_slippage_is_a_distinct_error(self) -> None:
        with pytest.raises(SlippageError) as exc_info:
            swap_exact_in(reserve_in=100, reserve_out=150, amount_in=10, min_amount_out=13, **FEE)
        assert exc_info.value.code == ErrorCode.SLIPPAGE
        assert exc_info.value.amount_out == 12
        assert "minAmountOut" in str(exc_info.value)

    def test_zero_output_is_not_special_cased(self) -> None:
        result = swap_exact_in(reserve_in=1_000_000, reserve_out=10, amount_in=1, min_amount_out=0, **FEE)
        assert result.amount_out == 0
        with pytest.raises(SlippageError):
            swap_exact_in(reserve_in=1_000_000, reserve_out=10, amount_in=1, min_amount_out=1, **FEE)

    def test_empty_pool_and_zero_amount_are_economic_errors(self) -> None:
        with pytest.raises(EconomicPolicyError) as exc_info:
            swap_exact_in(reserve_in=0, reserve_out=0, amount_in=10, min_amount_out=0, **FEE)
        assert exc_info.value.code == ErrorCode.INSUFFICIENT_RESERVES
        with pytest.raises(EconomicPolicyError) as exc_info:
            swap_exact_in(reserve_in=10, reserve_out=10, amount_in=0, min_amount_out=0, **FEE)
        assert exc_info.value.code == ErrorCode.ZERO_AMOUNT

    def test_fee_must_strictly_reduce_input(self) -> None:
        with pytest.raises(ValueError, match="fee"):
            expected_out(reserve_in=1, reserve_out=1, amount_in=1, fee_numerator=1000, fee_denominator=1000)


class TestMint:
    def test_initial_mint_locks_minimum_liquidity(self) -> None:
        result = mint_liquidity(
            reserve_left=0, reserve_right=0, supply=0, left_amount=100, right_amount=150, minimum_liquidity=10
        )
        assert math.isqrt(100 * 150) == 122
        assert result.shares_minted == 112
        assert result.new_supply == 122
        assert (result.new_reserve_left, result.new_reserve_right) == (100, 150)

    def test_initial_mint_uses_integer_isqrt(self) -> None:
        n = (1 << 70) + 12345
        result = mint_liquidity(
            reserve_left=0, reserve_right=0, supply=0, left_amount=n, right_amount=n, minimum_liquidity=10
        )
        assert result.shares_minted == n - 10

    def test_initial_mint_at_or_below_floor_is_rejected(self) -> None:
        with pytest.raises(EconomicPolicyError) as exc_info:
            mint_liquidity(
                reserve_left=0, reserve_right=0, supply=0, left_amount=10, right_amount=10, minimum_liquidity=10
            )
        assert exc_info.value.code == ErrorCode.INSUFFICIENT_LIQUIDITY

    def test_zero_amount_deposit_is_rejected(self) -> None:
        with pytest.raises(EconomicPolicyError) as exc_info:
            mint_liquidity(
                reserve_left=0, reserve_right=0, supply=0, left_amount=0, right_amount=10, minimum_liquidity=10
            )
        assert exc_info.value.code == ErrorCode.ZERO_AMOUNT

    def test_subsequent_mint_uses_limiting_ratio_and_refunds_excess(self) -> None:
        result = mint_liquidity(
            reserve_left=100, reserve_right=150, supply=122, left_amount=100, right_amount=100, minimum_liquidity=10
        )
        assert (result.left_used, result.right_used) == (66, 100)
        assert (result.left_refund, result.right_refund) == (34, 0)
        assert result.shares_minted == min(66 * 122 // 100, 100 * 122 // 150) == 80
        assert result.new_supply == 202

    def test_optimal_amounts_never_exceed_desired(self) -> None:
        assert optimal_amounts(reserve_left=100, reserve_right=150, left_desired=10, right_desired=100) == (10, 15)
        assert optimal_amounts(reserve_left=100, reserve_right=150, left_desired=100, right_desired=15) == (10, 15)


class TestBurn:
    def test_burn_is_floor_proportional(self) -> None:
        result = burn_liquidity(reserve_left=110, reserve_right=138, supply=122, shares=112, minimum_liquidity=10)
        assert (result.left_out, result.right_out) == (110 * 112 // 122, 138 * 112 // 122) == (100, 126)
        assert (result.new_reserve_left, result.new_reserve_right, result.new_supply) == (10, 12, 10)

    def test_burn_cannot_touch_locked_minimum(self) -> None:
        with pytest.raises(EconomicPolicyError) as exc_info:
            burn_liquidity(reserve_left=110, reserve_right=138, supply=122, shares=113, minimum_liquidity=10)
        assert exc_info.value.code == ErrorCode.INSUFFICIENT_LIQUIDITY


if importlib.util.find_spec("hypothesis") is not None:
    import hypothesis.strategies as st
    from hypothesis import given

    reserves = st.integers(min_value=1, max_value=10**30)

    @given(reserve_in=reserves, reserve_out=reserves, amount_in=st.integers(min_value=1, max_value=10**30))
    def test_swap_never_decreases_constant_product(reserve_in: int, reserve_out: int, amount_in: int) -> None:
        result = swap_exact_in(
            reserve_in=reserve_in, reserve_out=reserve_out, amount_in=amount_in, min_amount_out=0, **FEE
        )
        assert result.k_after >= result.k_before
        assert 0 <= result.amount_out < reserve_out

    @given(
        reserve_left=reserves,
        reserve_right=reserves,
        extra=st.integers(min_value=10, max_value=10**12),
        data=st.data(),
    )
    def test_burn_returns_floor_share_of_each_reserve(
        reserve_left: int, reserve_right: int, extra: int, data: st.DataObject
    ) -> None:
        supply = extra + 10
        shares = data.draw(st.integers(min_value=1, max_value=supply - 10))
        result = burn_liquidity(
            reserve_left=reserve_left, reserve_right=reserve_right, supply=supply, shares=shares, minimum_liquidity=10
        )
        assert result.left_out == reserve_left * shares // supply
        assert result.right_out == reserve_right * shares // supply
        assert reserve_left - result.new_reserve_left == result.left_out
        assert reserve_right - result.new_reserve_right == result.right_out
