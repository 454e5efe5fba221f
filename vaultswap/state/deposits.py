"""
Liquidity deposit coordinator state records.

A coordinator is keyed by everything in its init data: the canonical vault
pair, the declared amounts, the depositor and a per-depositor sequence id.
Both vaults and the pool can therefore recompute its address from the
fields of the messages they receive.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict

from .addresses import Address, StateInit, sort_addresses
from .canonical import ByteReader, encode_u128, encode_uvarint, require_uint
from .pools import pool_address


DEPOSIT_CODE = b"vaultswap/deposit/v1"

LEFT_RECEIVED = 0b01
RIGHT_RECEIVED = 0b10
BOTH_RECEIVED = LEFT_RECEIVED | RIGHT_RECEIVED

_LIFECYCLE = {
    0: "empty",
    LEFT_RECEIVED: "partial_left",
    RIGHT_RECEIVED: "partial_right",
    BOTH_RECEIVED: "complete",
}


def deposit_init_data(
    left_vault: Address,
    right_vault: Address,
    left_amount: int,
    right_amount: int,
    depositor: Address,
    contract_id: int,
) -> bytes:
    if not left_vault < right_vault:
        raise ValueError("deposit vaults must be in canonical order (left < right)")
    return (
        left_vault.raw
        + right_vault.raw
        + encode_u128(left_amount)
        + encode_u128(right_amount)
        + depositor.raw
        + encode_uvarint(contract_id)
    )


def deposit_state_init(
    vault_a: Address,
    vault_b: Address,
    amount_a: int,
    amount_b: int,
    depositor: Address,
    contract_id: int,
) -> StateInit:
    """State init of the coordinator for a deposit named in any vault order."""
    pair = sort_addresses(vault_a, vault_b, amount_a, amount_b)
    data = deposit_init_data(
        pair.lower, pair.higher, pair.left_amount, pair.right_amount, depositor, contract_id
    )
    return StateInit(code=DEPOSIT_CODE, data=data)


@dataclass(frozen=True)
class DepositState:
    left_vault: Address
    right_vault: Address
    left_amount: int
    right_amount: int
    depositor: Address
    contract_id: int
    status: int = 0

    def __post_init__(self) -> None:
        if not self.left_vault < self.right_vault:
            raise ValueError("left_vault must sort strictly below right_vault")
        require_uint(self.left_amount, "left_amount")
        require_uint(self.right_amount, "right_amount")
        require_uint(self.contract_id, "contract_id", max_value=(1 << 64) - 1)
        if self.status not in _LIFECYCLE:
            raise ValueError(f"invalid status mask: {self.status!r}")

    @classmethod
    def from_init(cls, data: bytes) -> "DepositState":
        reader = ByteReader(data)
        left = Address.read(reader)
        right = Address.read(reader)
        left_amount = reader.read_u128()
        right_amount = reader.read_u128()
        depositor = Address.read(reader)
        contract_id = reader.read_uvarint()
        reader.expect_end()
        return cls(
            left_vault=left,
            right_vault=right,
            left_amount=left_amount,
            right_amount=right_amount,
            depositor=depositor,
            contract_id=contract_id,
        )

    @property
    def lifecycle(self) -> str:
        return _LIFECYCLE[self.status]

    @property
    def is_complete(self) -> bool:
        return self.status == BOTH_RECEIVED

    @property
    def pool_address(self) -> Address:
        return pool_address(self.left_vault, self.right_vault)

    def state_init(self) -> StateInit:
        return StateInit(
            code=DEPOSIT_CODE,
            data=deposit_init_data(
                self.left_vault,
                self.right_vault,
                self.left_amount,
                self.right_amount,
                self.depositor,
                self.contract_id,
            ),
        )

    def side_mask(self, vault: Address) -> int:
        if vault == self.left_vault:
            return LEFT_RECEIVED
        if vault == self.right_vault:
            return RIGHT_RECEIVED
        return 0

    def declared_amount(self, mask: int) -> int:
        return self.left_amount if mask == LEFT_RECEIVED else self.right_amount

    def with_received(self, mask: int) -> "DepositState":
        return replace(self, status=self.status | mask)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "left_vault": self.left_vault.hex(),
            "right_vault": self.right_vault.hex(),
            "left_amount": self.left_amount,
            "right_amount": self.right_amount,
            "depositor": self.depositor.hex(),
            "contract_id": self.contract_id,
            "status": self.status,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DepositState":
        return cls(
            left_vault=Address.from_hex(data["left_vault"]),
            right_vault=Address.from_hex(data["right_vault"]),
            left_amount=data["left_amount"],
            right_amount=data["right_amount"],
            depositor=Address.from_hex(data["depositor"]),
            contract_id=data["contract_id"],
            status=data["status"],
        )
