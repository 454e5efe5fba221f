"""
Token holder accounts and minters.

This is the fungible-token standard the exchange plugs into, implemented
only as far as the runtime needs a working token: transfers with a forward
payload, mint and burn, and bounce recovery so that a rejected transfer
never destroys balance.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, Type

from ..core.errors import EconomicPolicyError, ErrorCode, ValidationError
from ..core.messages import (
    Bounced,
    BurnNotification,
    InternalTransfer,
    Message,
    TokenBurn,
    TokenMint,
    TokenTransfer,
    TransferNotification,
)
from ..core.types import Handler, HandlerContext, OutboundMessage, StepResult, accept, dispatch, raise_on_reject
from ..state.addresses import Address
from ..state.canonical import U128_MAX
from ..state.holders import HolderState, MinterState, holder_address, holder_state_init


def _debit(state: HolderState, amount: int) -> HolderState:
    if amount > state.balance:
        raise EconomicPolicyError(
            f"balance {state.balance} is below {amount}", ErrorCode.INSUFFICIENT_BALANCE
        )
    return replace(state, balance=state.balance - amount)


def _credit(state: HolderState, amount: int) -> HolderState:
    if state.balance + amount > U128_MAX:
        raise EconomicPolicyError("balance would overflow u128", ErrorCode.INSUFFICIENT_BALANCE)
    return replace(state, balance=state.balance + amount)


def _send_to_holder(state: HolderState, owner: Address, body: InternalTransfer) -> OutboundMessage:
    return OutboundMessage(
        destination=holder_address(owner, state.minter),
        body=body,
        init=holder_state_init(owner, state.minter),
    )


# Holder account


def _holder_on_transfer(state: HolderState, ctx: HandlerContext, msg: TokenTransfer) -> StepResult:
    if ctx.sender != state.owner:
        raise ValidationError("only the owner can transfer", ErrorCode.SENDER_MISMATCH)
    if msg.amount < 0:
        raise ValidationError("negative transfer amount")
    new_state = _debit(state, msg.amount)
    body = InternalTransfer(
        amount=msg.amount,
        from_owner=state.owner,
        response_destination=msg.response_destination,
        forward_value=msg.forward_value,
        forward_payload=msg.forward_payload,
    )
    return accept(new_state, _send_to_holder(state, msg.destination, body))


def _holder_on_internal_transfer(state: HolderState, ctx: HandlerContext, msg: InternalTransfer) -> StepResult:
    if ctx.sender != state.minter and ctx.sender != holder_address(msg.from_owner, state.minter):
        raise ValidationError("internal transfer from an unknown account", ErrorCode.SENDER_MISMATCH)
    new_state = _credit(state, msg.amount)
    if msg.forward_value <= 0:
        return accept(new_state)
    notification = TransferNotification(amount=msg.amount, sender=msg.from_owner, forward_payload=msg.forward_payload)
    return accept(new_state, OutboundMessage(destination=state.owner, body=notification))


def _holder_on_burn(state: HolderState, ctx: HandlerContext, msg: TokenBurn) -> StepResult:
    if ctx.sender != state.owner:
        raise ValidationError("only the owner can burn", ErrorCode.SENDER_MISMATCH)
    if msg.amount <= 0:
        raise EconomicPolicyError("burn amount must be positive", ErrorCode.ZERO_AMOUNT)
    new_state = _debit(state, msg.amount)
    notification = BurnNotification(amount=msg.amount, owner=state.owner, response_destination=msg.response_destination)
    return accept(new_state, OutboundMessage(destination=state.minter, body=notification))


def _holder_on_bounced(state: HolderState, ctx: HandlerContext, msg: Bounced) -> StepResult:
    original = msg.original
    if isinstance(original, InternalTransfer):
        # Only a transfer this account sent can come back to it.
        if original.from_owner != state.owner or ctx.sender == ctx.self_address:
            raise ValidationError("bounced transfer was not sent by this account", ErrorCode.SENDER_MISMATCH)
        return accept(_credit(state, original.amount), detail="bounced amount re-credited")
    if isinstance(original, BurnNotification):
        if ctx.sender != state.minter or original.owner != state.owner:
            raise ValidationError("bounced burn does not come from the minter", ErrorCode.SENDER_MISMATCH)
        return accept(_credit(state, original.amount), detail="bounced amount re-credited")
    if isinstance(original, TransferNotification):
        if ctx.sender != state.owner:
            raise ValidationError("bounced notification does not come from the owner", ErrorCode.SENDER_MISMATCH)
        # The owner refused the tokens: send them back where they came from.
        new_state = _debit(state, original.amount)
        body = InternalTransfer(amount=original.amount, from_owner=state.owner, response_destination=original.sender)
        return accept(new_state, _send_to_holder(state, original.sender, body), detail="notification bounced, returned")
    return accept(state, detail=f"ignored bounce of {type(original).__name__}")


_HOLDER_HANDLERS: Dict[Type[Message], Handler] = {
    TokenTransfer: _holder_on_transfer,
    InternalTransfer: _holder_on_internal_transfer,
    TokenBurn: _holder_on_burn,
    Bounced: _holder_on_bounced,
}


def holder_step(state: HolderState, ctx: HandlerContext, message: Message) -> StepResult:
    return dispatch(_HOLDER_HANDLERS, state, ctx, message)


def holder_step_or_raise(state: HolderState, ctx: HandlerContext, message: Message) -> StepResult:
    return raise_on_reject(holder_step(state, ctx, message))


HOLDER_GETTERS = {
    "balance": lambda state, ctx: state.balance,
    "owner": lambda state, ctx: state.owner,
    "minter": lambda state, ctx: state.minter,
}


# Minter


def _minter_on_mint(state: MinterState, ctx: HandlerContext, msg: TokenMint) -> StepResult:
    if ctx.sender != state.admin:
        raise ValidationError("only the admin can mint", ErrorCode.SENDER_MISMATCH)
    if msg.amount <= 0:
        raise EconomicPolicyError("mint amount must be positive", ErrorCode.ZERO_AMOUNT)
    if state.total_supply + msg.amount > U128_MAX:
        raise EconomicPolicyError("total supply would overflow u128", ErrorCode.INSUFFICIENT_BALANCE)
    new_state = replace(state, total_supply=state.total_supply + msg.amount)
    body = InternalTransfer(
        amount=msg.amount,
        from_owner=ctx.self_address,
        response_destination=msg.receiver,
        forward_value=msg.forward_value,
        forward_payload=msg.forward_payload,
    )
    out = OutboundMessage(
        destination=holder_address(msg.receiver, ctx.self_address, state.wallet_code),
        body=body,
        init=holder_state_init(msg.receiver, ctx.self_address, state.wallet_code),
    )
    return accept(new_state, out)


def _minter_on_burn(state: MinterState, ctx: HandlerContext, msg: BurnNotification) -> StepResult:
    if ctx.sender != holder_address(msg.owner, ctx.self_address, state.wallet_code):
        raise ValidationError("burn does not come from the owner's holder account", ErrorCode.SENDER_MISMATCH)
    if msg.amount > state.total_supply:
        raise EconomicPolicyError("burn exceeds total supply", ErrorCode.INSUFFICIENT_BALANCE)
    return accept(replace(state, total_supply=state.total_supply - msg.amount))


def _minter_on_bounced(state: MinterState, ctx: HandlerContext, msg: Bounced) -> StepResult:
    original = msg.original
    if isinstance(original, InternalTransfer):
        holder = holder_address(original.response_destination, ctx.self_address, state.wallet_code)
        if original.from_owner != ctx.self_address or ctx.sender != holder:
            raise ValidationError("bounced mint does not come from the receiving holder", ErrorCode.SENDER_MISMATCH)
        if original.amount > state.total_supply:
            raise EconomicPolicyError("bounced mint exceeds total supply", ErrorCode.INSUFFICIENT_BALANCE)
        return accept(replace(state, total_supply=state.total_supply - original.amount), detail="mint reverted")
    return accept(state, detail=f"ignored bounce of {type(original).__name__}")


_MINTER_HANDLERS: Dict[Type[Message], Handler] = {
    TokenMint: _minter_on_mint,
    BurnNotification: _minter_on_burn,
    Bounced: _minter_on_bounced,
}


def minter_step(state: MinterState, ctx: HandlerContext, message: Message) -> StepResult:
    return dispatch(_MINTER_HANDLERS, state, ctx, message)


def get_wallet_address(state: MinterState, ctx: HandlerContext, owner: Address) -> Address:
    return holder_address(owner, ctx.self_address, state.wallet_code)


MINTER_GETTERS = {
    "total_supply": lambda state, ctx: state.total_supply,
    "wallet_address": get_wallet_address,
    "admin": lambda state, ctx: state.admin,
}
