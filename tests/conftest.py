"""Pytest configuration and fixtures."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

import pytest

from vaultswap.agents.client import ExchangeClient
from vaultswap.integration.config import ExchangeConfig
from vaultswap.integration.ledger import Ledger
from vaultswap.state.addresses import Address
from vaultswap.state.pools import PoolState, pool_address

FUNDING = 1_000


@dataclass
class World:
    """Two tokens, their vaults and two funded users on a fresh ledger."""

    ledger: Ledger
    client: ExchangeClient
    deployer: Address
    alice: Address
    bob: Address
    token_a: Address
    token_b: Address
    vault_a: Address
    vault_b: Address

    @property
    def pool(self) -> Address:
        return pool_address(self.vault_a, self.vault_b)

    def pool_state(self) -> PoolState:
        state = self.ledger.state_of(self.pool)
        assert isinstance(state, PoolState)
        return state

    def reserve(self, vault: Address) -> int:
        return self.pool_state().get_reserve(vault)

    def balances(self, user: Address) -> tuple[int, int]:
        return self.client.balance(user, self.token_a), self.client.balance(user, self.token_b)

    def lp(self, user: Address) -> int:
        return self.client.balance(user, self.pool)


def build_world(config: Optional[ExchangeConfig] = None, *, funding: int = FUNDING) -> World:
    ledger = Ledger(config)
    client = ExchangeClient(ledger)
    deployer = ledger.treasury("deployer")
    alice = ledger.treasury("alice")
    bob = ledger.treasury("bob")
    token_a = client.create_token(deployer, b"token-a")
    token_b = client.create_token(deployer, b"token-b")
    for user in (alice, bob):
        client.mint(deployer, token_a, user, funding)
        client.mint(deployer, token_b, user, funding)
    return World(
        ledger=ledger,
        client=client,
        deployer=deployer,
        alice=alice,
        bob=bob,
        token_a=token_a,
        token_b=token_b,
        vault_a=client.create_vault(token_a),
        vault_b=client.create_vault(token_b),
    )


@pytest.fixture
def world() -> World:
    return build_world()


@pytest.fixture
def make_world() -> Callable[..., World]:
    return build_world


@pytest.fixture
def funded_world(world: World) -> World:
    """``world`` after alice deposited 100 A / 150 B into the empty pool."""
    _coordinator, trace = world.client.provide_liquidity(world.alice, world.vault_a, 100, world.vault_b, 150)
    assert not trace.failed
    return world
