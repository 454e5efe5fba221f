"""
Vault state records.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .addresses import Address, StateInit
from .canonical import ByteReader


VAULT_CODE = b"vaultswap/vault/v1"


def vault_init_data(jetton_master: Address) -> bytes:
    return jetton_master.raw


def vault_state_init(jetton_master: Address) -> StateInit:
    return StateInit(code=VAULT_CODE, data=vault_init_data(jetton_master))


def vault_address(jetton_master: Address) -> Address:
    return vault_state_init(jetton_master).address


@dataclass(frozen=True)
class VaultState:
    """
    One vault per token type.

    `holder_account` is the vault's own token holder account. It is learned
    from the proof carried by the first transfer and is set exactly when the
    vault is initialized.
    """

    jetton_master: Address
    initialized: bool = False
    holder_account: Optional[Address] = None

    def __post_init__(self) -> None:
        if not isinstance(self.initialized, bool):
            raise TypeError("initialized must be a bool")
        if self.initialized != (self.holder_account is not None):
            raise ValueError("holder_account must be set exactly when initialized")

    @classmethod
    def from_init(cls, data: bytes) -> "VaultState":
        reader = ByteReader(data)
        master = Address.read(reader)
        reader.expect_end()
        return cls(jetton_master=master)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "jetton_master": self.jetton_master.hex(),
            "initialized": self.initialized,
            "holder_account": None if self.holder_account is None else self.holder_account.hex(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VaultState":
        holder = data.get("holder_account")
        return cls(
            jetton_master=Address.from_hex(data["jetton_master"]),
            initialized=bool(data["initialized"]),
            holder_account=None if holder is None else Address.from_hex(holder),
        )
