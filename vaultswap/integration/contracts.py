"""
Registry of actor kinds, keyed by code identifier.

The runtime looks up an account's code here to find how to build its state
from init data, how to deliver a message to it, which read-only getters it
exposes and how to serialize its state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping

from ..core import deposit, pool, vault
from ..core.messages import Message
from ..core.types import HandlerContext, StepResult, accept
from ..state.addresses import StateInit
from ..state.deposits import DEPOSIT_CODE, DepositState
from ..state.holders import HOLDER_CODE, MINTER_CODE, HolderState, MinterState
from ..state.pools import POOL_CODE, PoolState
from ..state.vaults import VAULT_CODE, VaultState
from . import jetton


TREASURY_CODE = b"vaultswap/treasury/v1"


@dataclass(frozen=True)
class TreasuryState:
    """Externally owned account: originates messages and accepts anything."""

    name: str

    @classmethod
    def from_init(cls, data: bytes) -> "TreasuryState":
        return cls(name=data.decode("utf-8"))

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TreasuryState":
        return cls(name=data["name"])


def treasury_state_init(name: str) -> StateInit:
    return StateInit(code=TREASURY_CODE, data=name.encode("utf-8"))


def _treasury_step(state: TreasuryState, ctx: HandlerContext, message: Message) -> StepResult:
    return accept(state)


@dataclass(frozen=True)
class Contract:
    name: str
    code: bytes
    state_type: type
    step: Callable[[Any, HandlerContext, Message], StepResult]
    getters: Mapping[str, Callable[..., Any]] = field(default_factory=dict)

    def from_init(self, data: bytes) -> Any:
        return self.state_type.from_init(data)

    def to_dict(self, state: Any) -> Dict[str, Any]:
        return state.to_dict()

    def from_dict(self, data: Dict[str, Any]) -> Any:
        return self.state_type.from_dict(data)


CONTRACTS: Dict[bytes, Contract] = {
    c.code: c
    for c in (
        Contract("vault", VAULT_CODE, VaultState, vault.step, vault.GETTERS),
        Contract("deposit", DEPOSIT_CODE, DepositState, deposit.step, deposit.GETTERS),
        Contract("pool", POOL_CODE, PoolState, pool.step, pool.GETTERS),
        Contract("holder", HOLDER_CODE, HolderState, jetton.holder_step, jetton.HOLDER_GETTERS),
        Contract("minter", MINTER_CODE, MinterState, jetton.minter_step, jetton.MINTER_GETTERS),
        Contract("treasury", TREASURY_CODE, TreasuryState, _treasury_step),
    )
}


def contract_for(code: bytes) -> Contract:
    try:
        return CONTRACTS[code]
    except KeyError:
        raise KeyError(f"unknown contract code {code!r}") from None
