"""Opcode-tagged message bodies exchanged between actors.

Every body is a frozen dataclass carrying its 32-bit ``opcode`` as a class
attribute. Addresses are weak references used only for routing; no body ever
carries another actor's state.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum, unique
from typing import ClassVar

from ..state.addresses import Address


@unique
class Opcode(IntEnum):
    # Token standard
    TOKEN_TRANSFER = 0x0F8A7EA5
    INTERNAL_TRANSFER = 0x178D4519
    TRANSFER_NOTIFICATION = 0x7362D09C
    TOKEN_BURN = 0x595F07BC
    BURN_NOTIFICATION = 0x7BDD97DE
    TOKEN_MINT = 0x642B7D07

    # Forward payload tags
    VAULT_DEPOSIT = 0x64C08BFC
    SWAP_REQUEST = 0xBFA68001

    # Exchange protocol
    PART_HAS_BEEN_DEPOSITED = 0xE7A3475F
    LIQUIDITY_DEPOSIT = 0x698CBA08
    PAYOUT_FROM_POOL = 0x23F3CE4A

    BOUNCED = 0xFFFFFFFF


class Message:
    opcode: ClassVar[Opcode]


@dataclass(frozen=True)
class TokenTransfer(Message):
    """Owner -> own holder account: move ``amount`` to ``destination``'s holder account."""

    opcode: ClassVar[Opcode] = Opcode.TOKEN_TRANSFER
    amount: int
    destination: Address
    response_destination: Address
    forward_value: int = 0
    forward_payload: bytes = b""


@dataclass(frozen=True)
class InternalTransfer(Message):
    opcode: ClassVar[Opcode] = Opcode.INTERNAL_TRANSFER
    amount: int
    from_owner: Address
    response_destination: Address
    forward_value: int = 0
    forward_payload: bytes = b""


@dataclass(frozen=True)
class TransferNotification(Message):
    """Holder account -> its owner, sent only when ``forward_value > 0``."""

    opcode: ClassVar[Opcode] = Opcode.TRANSFER_NOTIFICATION
    amount: int
    sender: Address
    forward_payload: bytes = b""


@dataclass(frozen=True)
class TokenBurn(Message):
    opcode: ClassVar[Opcode] = Opcode.TOKEN_BURN
    amount: int
    response_destination: Address


@dataclass(frozen=True)
class BurnNotification(Message):
    """Holder account -> its minter (the pool, for liquidity shares)."""

    opcode: ClassVar[Opcode] = Opcode.BURN_NOTIFICATION
    amount: int
    owner: Address
    response_destination: Address


@dataclass(frozen=True)
class TokenMint(Message):
    opcode: ClassVar[Opcode] = Opcode.TOKEN_MINT
    amount: int
    receiver: Address
    forward_value: int = 0
    forward_payload: bytes = b""


@dataclass(frozen=True)
class PartHasBeenDeposited(Message):
    """Vault -> coordinator: one side of a deposit arrived; the side is the sending vault.

    `coordinator_data` is the coordinator's init data, so a vault receiving
    this message back as a bounce can recompute who bounced it.
    """

    opcode: ClassVar[Opcode] = Opcode.PART_HAS_BEEN_DEPOSITED
    depositor: Address
    amount: int
    coordinator_data: bytes


@dataclass(frozen=True)
class LiquidityDeposit(Message):
    """Coordinator -> pool: both sides are present."""

    opcode: ClassVar[Opcode] = Opcode.LIQUIDITY_DEPOSIT
    left_vault: Address
    right_vault: Address
    left_amount: int
    right_amount: int
    depositor: Address
    contract_id: int


@dataclass(frozen=True)
class SwapRequest(Message):
    """Vault -> pool."""

    opcode: ClassVar[Opcode] = Opcode.SWAP_REQUEST
    amount: int
    receiver: Address
    source_vault: Address
    destination_vault: Address
    min_amount_out: int = 0


@dataclass(frozen=True)
class PayoutFromPool(Message):
    """Pool -> vault: pay ``amount`` of the vault's token to ``receiver``."""

    opcode: ClassVar[Opcode] = Opcode.PAYOUT_FROM_POOL
    amount: int
    receiver: Address
    other_vault: Address


@dataclass(frozen=True)
class Bounced(Message):
    """Generated by the runtime when a bounceable message is rejected."""

    opcode: ClassVar[Opcode] = Opcode.BOUNCED
    original: Message
