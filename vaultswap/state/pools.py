"""
Pool state records.

A pool is identified by its canonically ordered pair of vault addresses; the
pair is the pool's init data, so the pool address is a pure function of the
two vaults regardless of the order a caller names them in.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict

from .addresses import Address, StateInit, sort_addresses
from .canonical import ByteReader, require_uint


POOL_CODE = b"vaultswap/pool/v1"


def pool_init_data(left_vault: Address, right_vault: Address) -> bytes:
    if not left_vault < right_vault:
        raise ValueError("pool vaults must be in canonical order (left < right)")
    return left_vault.raw + right_vault.raw


def pool_state_init(vault_a: Address, vault_b: Address) -> StateInit:
    pair = sort_addresses(vault_a, vault_b)
    return StateInit(code=POOL_CODE, data=pool_init_data(pair.lower, pair.higher))


def pool_address(vault_a: Address, vault_b: Address) -> Address:
    return pool_state_init(vault_a, vault_b).address


@dataclass(frozen=True)
class PoolState:
    left_vault: Address
    right_vault: Address
    reserve_left: int = 0
    reserve_right: int = 0
    lp_supply: int = 0

    def __post_init__(self) -> None:
        if not self.left_vault < self.right_vault:
            raise ValueError("left_vault must sort strictly below right_vault")
        require_uint(self.reserve_left, "reserve_left")
        require_uint(self.reserve_right, "reserve_right")
        require_uint(self.lp_supply, "lp_supply")
        empty = (self.reserve_left == 0, self.reserve_right == 0, self.lp_supply == 0)
        if any(empty) and not all(empty):
            raise ValueError("reserves and lp_supply must be all zero or all positive")

    @classmethod
    def from_init(cls, data: bytes) -> "PoolState":
        reader = ByteReader(data)
        left = Address.read(reader)
        right = Address.read(reader)
        reader.expect_end()
        return cls(left_vault=left, right_vault=right)

    @property
    def is_bootstrapped(self) -> bool:
        return self.lp_supply > 0

    def has_vault(self, vault: Address) -> bool:
        return vault == self.left_vault or vault == self.right_vault

    def get_reserve(self, vault: Address) -> int:
        if vault == self.left_vault:
            return self.reserve_left
        if vault == self.right_vault:
            return self.reserve_right
        raise ValueError(f"vault {vault.short()} is not part of this pool")

    def get_constant_product(self) -> int:
        return self.reserve_left * self.reserve_right

    def with_reserves(self, *, vault_in: Address, reserve_in: int, reserve_out: int) -> "PoolState":
        if vault_in == self.left_vault:
            return replace(self, reserve_left=reserve_in, reserve_right=reserve_out)
        return replace(self, reserve_left=reserve_out, reserve_right=reserve_in)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "left_vault": self.left_vault.hex(),
            "right_vault": self.right_vault.hex(),
            "reserve_left": self.reserve_left,
            "reserve_right": self.reserve_right,
            "lp_supply": self.lp_supply,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PoolState":
        return cls(
            left_vault=Address.from_hex(data["left_vault"]),
            right_vault=Address.from_hex(data["right_vault"]),
            reserve_left=data["reserve_left"],
            reserve_right=data["reserve_right"],
            lp_supply=data["lp_supply"],
        )
