"""
Vault actor: one per token type.

A vault is a validation and routing layer, not a reserve. It:
- accepts transfer notifications only from its own holder account, learned
  on first use from a proof (the token minter's code and data) that must
  hash to the token the vault was created for;
- turns a notification into a deposit part for a coordinator or a swap
  request for the pool of (this vault, destination vault);
- executes pool payouts by instructing its holder account to transfer;
- refunds users whose swap or deposit part bounced.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, Type

from ..state.addresses import Address, StateInit
from ..state.canonical import CanonicalDecodeError
from ..state.deposits import DEPOSIT_CODE, DepositState
from ..state.holders import MINTER_CODE, holder_address, parse_minter_init_data
from ..state.pools import pool_address
from ..state.vaults import VaultState
from .errors import EconomicPolicyError, ErrorCode, ValidationError
from .messages import (
    Bounced,
    Message,
    PartHasBeenDeposited,
    PayoutFromPool,
    SwapRequest,
    TokenTransfer,
    TransferNotification,
)
from .payloads import DepositPayload, SwapPayload, UnknownPayload, decode_payload
from .types import Handler, HandlerContext, OutboundMessage, StepResult, accept, dispatch, raise_on_reject


def _holder_from_proof(state: VaultState, ctx: HandlerContext, proof: StateInit | None) -> Address:
    if proof is None:
        raise ValidationError("first transfer to a vault must carry a token proof", ErrorCode.VAULT_NOT_INITIALIZED)
    if proof.address != state.jetton_master:
        raise ValidationError("proof does not hash to the vault's token", ErrorCode.PROOF_MISMATCH)
    if proof.code != MINTER_CODE:
        raise ValidationError("proof is not a supported token minter", ErrorCode.PROOF_MISMATCH)
    try:
        _admin, _content, wallet_code = parse_minter_init_data(proof.data)
    except CanonicalDecodeError as exc:
        raise ValidationError(f"unreadable minter data in proof: {exc}", ErrorCode.PROOF_MISMATCH) from exc
    return holder_address(ctx.self_address, state.jetton_master, wallet_code)


def _refund(state: VaultState, receiver: Address, amount: int) -> OutboundMessage:
    if state.holder_account is None:
        raise ValidationError("vault has no holder account to pay from", ErrorCode.VAULT_NOT_INITIALIZED)
    return OutboundMessage(
        destination=state.holder_account,
        body=TokenTransfer(amount=amount, destination=receiver, response_destination=receiver),
    )


def _coordinator_init(ctx: HandlerContext, payload: DepositPayload) -> StateInit:
    if payload.coordinator_init is None:
        raise ValidationError("deposit payload must carry the coordinator init", ErrorCode.MALFORMED_PAYLOAD)
    init = StateInit(code=DEPOSIT_CODE, data=payload.coordinator_init)
    if init.address != payload.coordinator:
        raise ValidationError("coordinator init does not match its address", ErrorCode.UNKNOWN_DESTINATION)
    try:
        coordinator = DepositState.from_init(init.data)
    except ValueError as exc:
        raise ValidationError(f"unreadable coordinator init: {exc}", ErrorCode.MALFORMED_PAYLOAD) from exc
    if not coordinator.side_mask(ctx.self_address):
        raise ValidationError("coordinator does not take a side from this vault", ErrorCode.UNKNOWN_DESTINATION)
    return init


def _on_transfer_notification(state: VaultState, ctx: HandlerContext, msg: TransferNotification) -> StepResult:
    payload = decode_payload(msg.forward_payload)
    if isinstance(payload, UnknownPayload):
        raise ValidationError(f"unknown payload opcode {payload.opcode:#010x}", ErrorCode.UNKNOWN_OPCODE)

    new_state = state
    if not state.initialized:
        holder = _holder_from_proof(state, ctx, payload.proof)
        new_state = replace(state, initialized=True, holder_account=holder)
    if ctx.sender != new_state.holder_account:
        code = ErrorCode.SENDER_MISMATCH if state.initialized else ErrorCode.PROOF_MISMATCH
        raise ValidationError("notification does not come from this vault's holder account", code)
    if msg.amount <= 0:
        raise EconomicPolicyError("transfer amount must be positive", ErrorCode.ZERO_AMOUNT)

    if isinstance(payload, DepositPayload):
        init = _coordinator_init(ctx, payload)
        part = PartHasBeenDeposited(depositor=msg.sender, amount=msg.amount, coordinator_data=init.data)
        return accept(new_state, OutboundMessage(destination=init.address, body=part, init=init))

    if isinstance(payload, SwapPayload):
        if payload.destination_vault == ctx.self_address:
            raise ValidationError("cannot swap a token for itself", ErrorCode.UNKNOWN_DESTINATION)
        request = SwapRequest(
            amount=msg.amount,
            receiver=msg.sender,
            source_vault=ctx.self_address,
            destination_vault=payload.destination_vault,
            min_amount_out=payload.min_amount_out,
        )
        pool = pool_address(ctx.self_address, payload.destination_vault)
        return accept(new_state, OutboundMessage(destination=pool, body=request))

    raise ValidationError(f"unsupported payload {type(payload).__name__}", ErrorCode.UNKNOWN_OPCODE)


def _on_payout(state: VaultState, ctx: HandlerContext, msg: PayoutFromPool) -> StepResult:
    if msg.other_vault == ctx.self_address:
        raise ValidationError("payout names this vault as its counterpart", ErrorCode.SENDER_MISMATCH)
    if ctx.sender != pool_address(ctx.self_address, msg.other_vault):
        raise ValidationError("payout does not come from a pool of this vault", ErrorCode.SENDER_MISMATCH)
    return accept(state, _refund(state, msg.receiver, msg.amount))


def _on_bounced(state: VaultState, ctx: HandlerContext, msg: Bounced) -> StepResult:
    original = msg.original
    if isinstance(original, SwapRequest):
        if original.source_vault != ctx.self_address or original.destination_vault == ctx.self_address:
            raise ValidationError("bounced swap was not sent by this vault", ErrorCode.SENDER_MISMATCH)
        if ctx.sender != pool_address(ctx.self_address, original.destination_vault):
            raise ValidationError("bounced swap does not come from its pool", ErrorCode.SENDER_MISMATCH)
        return accept(state, _refund(state, original.receiver, original.amount), detail="swap refunded")
    if isinstance(original, PartHasBeenDeposited):
        if ctx.sender != StateInit(code=DEPOSIT_CODE, data=original.coordinator_data).address:
            raise ValidationError("bounced deposit part does not come from its coordinator", ErrorCode.SENDER_MISMATCH)
        return accept(state, _refund(state, original.depositor, original.amount), detail="deposit part refunded")
    return accept(state, detail=f"ignored bounce of {type(original).__name__}")


_HANDLERS: Dict[Type[Message], Handler] = {
    TransferNotification: _on_transfer_notification,
    PayoutFromPool: _on_payout,
    Bounced: _on_bounced,
}


def step(state: VaultState, ctx: HandlerContext, message: Message) -> StepResult:
    """Deliver one message to a vault."""
    return dispatch(_HANDLERS, state, ctx, message)


def step_or_raise(state: VaultState, ctx: HandlerContext, message: Message) -> StepResult:
    """Like ``step()`` but raises the ``ProtocolError`` behind a rejection."""
    return raise_on_reject(step(state, ctx, message))


# Getters


def get_inited(state: VaultState, ctx: HandlerContext) -> bool:
    return state.initialized


def get_jetton_master(state: VaultState, ctx: HandlerContext) -> Address:
    return state.jetton_master


def get_holder_account(state: VaultState, ctx: HandlerContext) -> Address | None:
    return state.holder_account


GETTERS = {
    "inited": get_inited,
    "jetton_master": get_jetton_master,
    "holder_account": get_holder_account,
}
