"""
Forward-payload codec for transfers addressed to a vault.

Wire layout (all integers big-endian):

    payload  := proof_flag:u8 [proof] opcode:u32 body
    proof    := uvarint(len code) code uvarint(len data) data
    DEPOSIT  := coordinator:32 init_flag:u8 [uvarint(len init) init]
    SWAP     := destination_vault:32 min_amount_out:u128

The proof is the token minter's code and data; it is only required on the
first transfer a vault ever sees. Any other opcode decodes to
`UnknownPayload` so a handler can reject it with a stable code instead of
failing to parse.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from ..state.addresses import Address, StateInit
from ..state.canonical import (
    ByteReader,
    CanonicalDecodeError,
    encode_bytes,
    encode_flag,
    encode_u32,
    encode_u128,
)
from .errors import PayloadError
from .messages import Opcode


@dataclass(frozen=True)
class DepositPayload:
    coordinator: Address
    proof: Optional[StateInit] = None
    coordinator_init: Optional[bytes] = None


@dataclass(frozen=True)
class SwapPayload:
    destination_vault: Address
    min_amount_out: int = 0
    proof: Optional[StateInit] = None


@dataclass(frozen=True)
class UnknownPayload:
    opcode: int
    body: bytes
    proof: Optional[StateInit] = None


ForwardPayload = Union[DepositPayload, SwapPayload, UnknownPayload]


def _encode_proof(proof: Optional[StateInit]) -> bytes:
    if proof is None:
        return encode_flag(False)
    return encode_flag(True) + proof.encode()


def encode_deposit_payload(
    coordinator: Address,
    *,
    proof: Optional[StateInit] = None,
    coordinator_init: Optional[bytes] = None,
) -> bytes:
    out = _encode_proof(proof) + encode_u32(Opcode.VAULT_DEPOSIT) + coordinator.raw
    if coordinator_init is None:
        return out + encode_flag(False)
    return out + encode_flag(True) + encode_bytes(coordinator_init)


def encode_swap_payload(
    destination_vault: Address,
    min_amount_out: int = 0,
    *,
    proof: Optional[StateInit] = None,
) -> bytes:
    return (
        _encode_proof(proof)
        + encode_u32(Opcode.SWAP_REQUEST)
        + destination_vault.raw
        + encode_u128(min_amount_out)
    )


def encode_payload(payload: ForwardPayload) -> bytes:
    if isinstance(payload, DepositPayload):
        return encode_deposit_payload(
            payload.coordinator, proof=payload.proof, coordinator_init=payload.coordinator_init
        )
    if isinstance(payload, SwapPayload):
        return encode_swap_payload(payload.destination_vault, payload.min_amount_out, proof=payload.proof)
    return _encode_proof(payload.proof) + encode_u32(payload.opcode) + payload.body


def decode_payload(data: bytes) -> ForwardPayload:
    """Decode a vault forward payload; raises PayloadError on malformed input."""
    if not isinstance(data, (bytes, bytearray)):
        raise PayloadError("forward payload must be bytes")
    if not data:
        raise PayloadError("empty forward payload")
    reader = ByteReader(data)
    try:
        proof = StateInit.read(reader) if reader.read_flag() else None
        opcode = reader.read_u32()
        if opcode == Opcode.VAULT_DEPOSIT:
            coordinator = Address.read(reader)
            coordinator_init = reader.read_bytes() if reader.read_flag() else None
            reader.expect_end()
            return DepositPayload(coordinator=coordinator, proof=proof, coordinator_init=coordinator_init)
        if opcode == Opcode.SWAP_REQUEST:
            destination = Address.read(reader)
            min_amount_out = reader.read_u128()
            reader.expect_end()
            return SwapPayload(destination_vault=destination, min_amount_out=min_amount_out, proof=proof)
        return UnknownPayload(opcode=opcode, body=reader.read_exact(reader.remaining), proof=proof)
    except (CanonicalDecodeError, ValueError) as exc:
        raise PayloadError(f"malformed forward payload: {exc}") from exc
