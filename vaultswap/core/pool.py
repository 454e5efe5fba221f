"""
Pool actor: reserves, pricing, liquidity shares and payouts.

The pool is also the minter of its own liquidity-share token: shares live
in ordinary holder accounts whose minter is the pool address, and a burn in
one of them reaches the pool as a ``BurnNotification``.

Every handler computes and validates against the pre-state first and only
then builds the post-state, so a rejected message never leaves a partial
reserve update behind.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, Tuple, Type

import structlog

from ..state.addresses import Address, StateInit
from ..state.deposits import DEPOSIT_CODE, deposit_init_data
from ..state.holders import holder_address, holder_state_init
from ..state.pools import PoolState
from . import cpmm
from .errors import EconomicPolicyError, ErrorCode, ValidationError
from .messages import (
    Bounced,
    BurnNotification,
    InternalTransfer,
    LiquidityDeposit,
    Message,
    PayoutFromPool,
    SwapRequest,
)
from .types import Handler, HandlerContext, OutboundMessage, StepResult, accept, dispatch, raise_on_reject


logger = structlog.get_logger()


def _payout(vault: Address, other_vault: Address, receiver: Address, amount: int) -> OutboundMessage:
    return OutboundMessage(
        destination=vault,
        body=PayoutFromPool(amount=amount, receiver=receiver, other_vault=other_vault),
    )


def _on_swap(state: PoolState, ctx: HandlerContext, msg: SwapRequest) -> StepResult:
    if ctx.sender != msg.source_vault:
        raise ValidationError("swap request does not come from its source vault", ErrorCode.SENDER_MISMATCH)
    src, dst = msg.source_vault, msg.destination_vault
    if src == dst or not (state.has_vault(src) and state.has_vault(dst)):
        raise ValidationError("swap vaults do not match this pool", ErrorCode.UNKNOWN_DESTINATION)

    result = cpmm.swap_exact_in(
        reserve_in=state.get_reserve(src),
        reserve_out=state.get_reserve(dst),
        amount_in=msg.amount,
        min_amount_out=msg.min_amount_out,
        fee_numerator=ctx.config.fee_numerator,
        fee_denominator=ctx.config.fee_denominator,
    )
    new_state = state.with_reserves(
        vault_in=src,
        reserve_in=result.new_reserve_in,
        reserve_out=result.new_reserve_out,
    )
    return accept(
        new_state,
        _payout(dst, src, msg.receiver, result.amount_out),
        detail=f"swapped {result.amount_in} for {result.amount_out}",
    )


def _coordinator_address(msg: LiquidityDeposit) -> Address:
    data = deposit_init_data(
        msg.left_vault,
        msg.right_vault,
        msg.left_amount,
        msg.right_amount,
        msg.depositor,
        msg.contract_id,
    )
    return StateInit(code=DEPOSIT_CODE, data=data).address


def _on_liquidity_deposit(state: PoolState, ctx: HandlerContext, msg: LiquidityDeposit) -> StepResult:
    if (msg.left_vault, msg.right_vault) != (state.left_vault, state.right_vault):
        raise ValidationError("deposit vaults do not match this pool", ErrorCode.UNKNOWN_DESTINATION)
    if ctx.sender != _coordinator_address(msg):
        raise ValidationError("deposit does not come from its coordinator", ErrorCode.SENDER_MISMATCH)

    try:
        result = cpmm.mint_liquidity(
            reserve_left=state.reserve_left,
            reserve_right=state.reserve_right,
            supply=state.lp_supply,
            left_amount=msg.left_amount,
            right_amount=msg.right_amount,
            minimum_liquidity=ctx.config.minimum_liquidity,
        )
    except EconomicPolicyError as exc:
        # The coordinator is already gone, so a bounce would be lost: pay both sides back.
        refunds = [
            _payout(vault, other, msg.depositor, amount)
            for vault, other, amount in (
                (state.left_vault, state.right_vault, msg.left_amount),
                (state.right_vault, state.left_vault, msg.right_amount),
            )
            if amount > 0
        ]
        return accept(state, *refunds, detail=f"deposit refunded ({exc.code.name}): {exc.detail}")

    new_state = replace(
        state,
        reserve_left=result.new_reserve_left,
        reserve_right=result.new_reserve_right,
        lp_supply=result.new_supply,
    )
    mint = OutboundMessage(
        destination=holder_address(msg.depositor, ctx.self_address),
        body=InternalTransfer(
            amount=result.shares_minted,
            from_owner=ctx.self_address,
            response_destination=msg.depositor,
        ),
        init=holder_state_init(msg.depositor, ctx.self_address),
    )
    outbound = [mint]
    if result.left_refund:
        outbound.append(_payout(state.left_vault, state.right_vault, msg.depositor, result.left_refund))
    if result.right_refund:
        outbound.append(_payout(state.right_vault, state.left_vault, msg.depositor, result.right_refund))
    return accept(new_state, *outbound, detail=f"minted {result.shares_minted} shares")


def _on_burn(state: PoolState, ctx: HandlerContext, msg: BurnNotification) -> StepResult:
    if ctx.sender != holder_address(msg.owner, ctx.self_address):
        raise ValidationError("burn does not come from the owner's share account", ErrorCode.SENDER_MISMATCH)
    result = cpmm.burn_liquidity(
        reserve_left=state.reserve_left,
        reserve_right=state.reserve_right,
        supply=state.lp_supply,
        shares=msg.amount,
        minimum_liquidity=ctx.config.minimum_liquidity,
    )
    new_state = replace(
        state,
        reserve_left=result.new_reserve_left,
        reserve_right=result.new_reserve_right,
        lp_supply=result.new_supply,
    )
    return accept(
        new_state,
        _payout(state.left_vault, state.right_vault, msg.owner, result.left_out),
        _payout(state.right_vault, state.left_vault, msg.owner, result.right_out),
        detail=f"burned {msg.amount} shares",
    )


def _on_bounced(state: PoolState, ctx: HandlerContext, msg: Bounced) -> StepResult:
    original = msg.original
    if isinstance(original, (PayoutFromPool, InternalTransfer)):
        # Reserves and shares are already committed; nothing is rolled back here.
        logger.warning(
            "payout_bounced",
            pool=ctx.self_address.short(),
            message=type(original).__name__,
            amount=original.amount,
            destination=ctx.sender.short(),
        )
        return accept(state, detail=f"payout bounced: {type(original).__name__} of {original.amount}")
    return accept(state, detail=f"ignored bounce of {type(msg.original).__name__}")


_HANDLERS: Dict[Type[Message], Handler] = {
    SwapRequest: _on_swap,
    LiquidityDeposit: _on_liquidity_deposit,
    BurnNotification: _on_burn,
    Bounced: _on_bounced,
}


def step(state: PoolState, ctx: HandlerContext, message: Message) -> StepResult:
    """Deliver one message to a pool."""
    return dispatch(_HANDLERS, state, ctx, message)


def step_or_raise(state: PoolState, ctx: HandlerContext, message: Message) -> StepResult:
    return raise_on_reject(step(state, ctx, message))


# Getters


def get_reserves(state: PoolState, ctx: HandlerContext) -> Tuple[int, int]:
    return state.reserve_left, state.reserve_right


def get_left_reserve(state: PoolState, ctx: HandlerContext) -> int:
    return state.reserve_left


def get_right_reserve(state: PoolState, ctx: HandlerContext) -> int:
    return state.reserve_right


def get_lp_supply(state: PoolState, ctx: HandlerContext) -> int:
    return state.lp_supply


def get_vaults(state: PoolState, ctx: HandlerContext) -> Tuple[Address, Address]:
    return state.left_vault, state.right_vault


def get_expected_out(state: PoolState, ctx: HandlerContext, vault_in: Address, amount_in: int) -> int:
    """Quote for selling ``amount_in`` through ``vault_in``; no state is touched."""
    other = state.right_vault if vault_in == state.left_vault else state.left_vault
    return cpmm.expected_out(
        reserve_in=state.get_reserve(vault_in),
        reserve_out=state.get_reserve(other),
        amount_in=amount_in,
        fee_numerator=ctx.config.fee_numerator,
        fee_denominator=ctx.config.fee_denominator,
    )


def get_lp_wallet_address(state: PoolState, ctx: HandlerContext, owner: Address) -> Address:
    return holder_address(owner, ctx.self_address)


GETTERS = {
    "reserves": get_reserves,
    "left_reserve": get_left_reserve,
    "right_reserve": get_right_reserve,
    "lp_supply": get_lp_supply,
    "vaults": get_vaults,
    "expected_out": get_expected_out,
    "lp_wallet_address": get_lp_wallet_address,
}
