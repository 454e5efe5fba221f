"""
Liquidity deposit coordinator actor.

Lifecycle (``status`` bit mask):

    empty (00) -> partial_left (01) | partial_right (10) -> complete (11) -> destroyed

Each side is accepted once, from its own vault, for exactly the declared
amount, in either order. The message that completes the mask forwards one
``LiquidityDeposit`` to the pool and asks the runtime to destroy the
coordinator, so a completed coordinator never holds anything.

A coordinator that only ever receives one side stays parked in its partial
state; there is no expiry.
"""

from __future__ import annotations

from typing import Dict, Type

from ..state.addresses import Address
from ..state.deposits import DepositState
from ..state.pools import pool_state_init
from .errors import DoubleReceiptError, ErrorCode, ValidationError
from .messages import LiquidityDeposit, Message, PartHasBeenDeposited
from .types import Handler, HandlerContext, OutboundMessage, StepResult, accept, dispatch, raise_on_reject


def _on_part(state: DepositState, ctx: HandlerContext, msg: PartHasBeenDeposited) -> StepResult:
    mask = state.side_mask(ctx.sender)
    if not mask:
        raise ValidationError("deposit part does not come from either vault", ErrorCode.SENDER_MISMATCH)
    if msg.coordinator_data != state.state_init().data:
        raise ValidationError("deposit part names a different coordinator", ErrorCode.UNKNOWN_DESTINATION)
    if msg.depositor != state.depositor:
        raise ValidationError("deposit part names a different depositor", ErrorCode.DEPOSITOR_MISMATCH)
    if state.status & mask:
        raise DoubleReceiptError(f"side {mask:#04b} already received")
    declared = state.declared_amount(mask)
    if msg.amount != declared:
        raise ValidationError(f"received {msg.amount}, declared {declared}", ErrorCode.AMOUNT_MISMATCH)

    new_state = state.with_received(mask)
    if not new_state.is_complete:
        return accept(new_state)

    pool_init = pool_state_init(state.left_vault, state.right_vault)
    deposit = LiquidityDeposit(
        left_vault=state.left_vault,
        right_vault=state.right_vault,
        left_amount=state.left_amount,
        right_amount=state.right_amount,
        depositor=state.depositor,
        contract_id=state.contract_id,
    )
    return accept(new_state, OutboundMessage(destination=pool_init.address, body=deposit, init=pool_init), destroy=True)


_HANDLERS: Dict[Type[Message], Handler] = {
    PartHasBeenDeposited: _on_part,
}


def step(state: DepositState, ctx: HandlerContext, message: Message) -> StepResult:
    """Deliver one message to a coordinator."""
    return dispatch(_HANDLERS, state, ctx, message)


def step_or_raise(state: DepositState, ctx: HandlerContext, message: Message) -> StepResult:
    return raise_on_reject(step(state, ctx, message))


def get_status(state: DepositState, ctx: HandlerContext) -> int:
    return state.status


def get_lifecycle(state: DepositState, ctx: HandlerContext) -> str:
    return state.lifecycle


def get_pool(state: DepositState, ctx: HandlerContext) -> Address:
    return state.pool_address


GETTERS = {
    "status": get_status,
    "lifecycle": get_lifecycle,
    "pool": get_pool,
}
