"""
Token holder account and token minter state records.

These model the external fungible-token standard the exchange is built on.
A holder account's address is derived from the wallet code published in its
minter's data, the owner and the minter, which is what lets a vault verify
that a transfer really comes from the holder account of a given token.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple

from .addresses import Address, StateInit
from .canonical import ByteReader, encode_bytes, require_uint


HOLDER_CODE = b"vaultswap/holder/v1"
MINTER_CODE = b"vaultswap/minter/v1"


def holder_init_data(owner: Address, minter: Address) -> bytes:
    return owner.raw + minter.raw


def holder_state_init(owner: Address, minter: Address, wallet_code: bytes = HOLDER_CODE) -> StateInit:
    return StateInit(code=wallet_code, data=holder_init_data(owner, minter))


def holder_address(owner: Address, minter: Address, wallet_code: bytes = HOLDER_CODE) -> Address:
    return holder_state_init(owner, minter, wallet_code).address


def minter_init_data(admin: Address, content: bytes, wallet_code: bytes = HOLDER_CODE) -> bytes:
    return admin.raw + encode_bytes(content) + encode_bytes(wallet_code)


def parse_minter_init_data(data: bytes) -> Tuple[Address, bytes, bytes]:
    """Return (admin, content, wallet_code); raises CanonicalDecodeError."""
    reader = ByteReader(data)
    admin = Address.read(reader)
    content = reader.read_bytes()
    wallet_code = reader.read_bytes()
    reader.expect_end()
    return admin, content, wallet_code


def minter_state_init(admin: Address, content: bytes, wallet_code: bytes = HOLDER_CODE) -> StateInit:
    return StateInit(code=MINTER_CODE, data=minter_init_data(admin, content, wallet_code))


@dataclass(frozen=True)
class HolderState:
    owner: Address
    minter: Address
    balance: int = 0

    def __post_init__(self) -> None:
        require_uint(self.balance, "balance")

    @classmethod
    def from_init(cls, data: bytes) -> "HolderState":
        reader = ByteReader(data)
        owner = Address.read(reader)
        minter = Address.read(reader)
        reader.expect_end()
        return cls(owner=owner, minter=minter)

    def to_dict(self) -> Dict[str, Any]:
        return {"owner": self.owner.hex(), "minter": self.minter.hex(), "balance": self.balance}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HolderState":
        return cls(
            owner=Address.from_hex(data["owner"]),
            minter=Address.from_hex(data["minter"]),
            balance=data["balance"],
        )


@dataclass(frozen=True)
class MinterState:
    admin: Address
    content: bytes
    wallet_code: bytes = HOLDER_CODE
    total_supply: int = 0

    def __post_init__(self) -> None:
        require_uint(self.total_supply, "total_supply")
        if not self.wallet_code:
            raise ValueError("wallet_code must be non-empty")

    @classmethod
    def from_init(cls, data: bytes) -> "MinterState":
        admin, content, wallet_code = parse_minter_init_data(data)
        return cls(admin=admin, content=content, wallet_code=wallet_code)

    def state_init(self) -> StateInit:
        return minter_state_init(self.admin, self.content, self.wallet_code)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "admin": self.admin.hex(),
            "content": self.content.hex(),
            "wallet_code": self.wallet_code.hex(),
            "total_supply": self.total_supply,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MinterState":
        return cls(
            admin=Address.from_hex(data["admin"]),
            content=bytes.fromhex(data["content"]),
            wallet_code=bytes.fromhex(data["wallet_code"]),
            total_supply=data["total_supply"],
        )
