"""
Client-side helpers that assemble and submit exchange messages.

Nothing here is trusted by the actors: every message is an ordinary token
transfer or burn from a user's treasury, exactly what an off-chain script
would build.
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple

import structlog

from ..core.messages import TokenBurn, TokenMint, TokenTransfer
from ..core.payloads import encode_deposit_payload, encode_swap_payload
from ..integration.ledger import Ledger, Trace
from ..state.addresses import Address, StateInit, sort_addresses
from ..state.deposits import deposit_state_init
from ..state.holders import HolderState, MinterState, holder_address, minter_state_init
from ..state.pools import pool_address, pool_state_init
from ..state.vaults import VaultState, vault_state_init


logger = structlog.get_logger()

# Any positive forward value makes the receiving holder account notify the vault.
FORWARD_VALUE = 1


class ExchangeClient:
    def __init__(self, ledger: Ledger) -> None:
        self.ledger = ledger
        self._deposit_ids: Dict[Address, int] = {}

    # Deployment

    def create_token(self, admin: Address, content: bytes) -> Address:
        return self.ledger.deploy(minter_state_init(admin, content))

    def create_vault(self, token: Address) -> Address:
        return self.ledger.deploy(vault_state_init(token))

    def create_pool(self, vault_a: Address, vault_b: Address) -> Address:
        return self.ledger.deploy(pool_state_init(vault_a, vault_b))

    def mint(self, admin: Address, token: Address, receiver: Address, amount: int) -> Trace:
        return self.ledger.send(admin, token, TokenMint(amount=amount, receiver=receiver))

    # Queries

    def wallet_of(self, owner: Address, token: Address) -> Address:
        return holder_address(owner, token)

    def balance(self, owner: Address, token: Address) -> int:
        wallet = self.wallet_of(owner, token)
        if not self.ledger.is_deployed(wallet):
            return 0
        state = self.ledger.state_of(wallet)
        assert isinstance(state, HolderState)
        return state.balance

    def lp_balance(self, owner: Address, vault_a: Address, vault_b: Address) -> int:
        return self.balance(owner, pool_address(vault_a, vault_b))

    def token_of(self, vault: Address) -> Address:
        state = self.ledger.state_of(vault)
        assert isinstance(state, VaultState)
        return state.jetton_master

    def token_proof(self, token: Address) -> StateInit:
        """The minter's code and data, which a vault needs on its first transfer."""
        state = self.ledger.state_of(token)
        assert isinstance(state, MinterState)
        return state.state_init()

    def _proof_for(self, vault: Address) -> Optional[StateInit]:
        if self.ledger.get(vault, "inited"):
            return None
        return self.token_proof(self.token_of(vault))

    def expected_out(self, vault_in: Address, vault_out: Address, amount: int) -> int:
        return self.ledger.get(pool_address(vault_in, vault_out), "expected_out", vault_in, amount)

    # Operations

    def _transfer_to_vault(self, user: Address, vault: Address, amount: int, payload: bytes) -> None:
        token = self.token_of(vault)
        body = TokenTransfer(
            amount=amount,
            destination=vault,
            response_destination=user,
            forward_value=FORWARD_VALUE,
            forward_payload=payload,
        )
        self.ledger.enqueue(user, self.wallet_of(user, token), body)

    def swap(
        self,
        user: Address,
        vault_in: Address,
        vault_out: Address,
        amount: int,
        min_amount_out: int = 0,
    ) -> Trace:
        """
        Sell ``amount`` of ``vault_in``'s token for ``vault_out``'s token.

        A swap that fails in the pool (e.g. slippage) is refunded to ``user``
        by ``vault_in``.
        """
        payload = encode_swap_payload(vault_out, min_amount_out, proof=self._proof_for(vault_in))
        self._transfer_to_vault(user, vault_in, amount, payload)
        logger.debug("swap_submitted", user=user.short(), amount=amount, min_amount_out=min_amount_out)
        return self.ledger.run()

    def next_deposit_id(self, user: Address) -> int:
        contract_id = self._deposit_ids.get(user, 0)
        self._deposit_ids[user] = contract_id + 1
        return contract_id

    def submit_liquidity(
        self,
        user: Address,
        vault_a: Address,
        amount_a: int,
        vault_b: Address,
        amount_b: int,
        *,
        contract_id: Optional[int] = None,
    ) -> Address:
        """
        Queue both deposit transfers without running the ledger.

        Args:
            user: Depositor; receives the liquidity shares.
            vault_a, vault_b: Vaults of the two tokens, in any order.
            amount_a, amount_b: Amounts for ``vault_a`` and ``vault_b``.
            contract_id: Coordinator sequence id; allocated per user if omitted.

        Returns:
            Address of the coordinator for this deposit.
        """
        if contract_id is None:
            contract_id = self.next_deposit_id(user)
        init = deposit_state_init(vault_a, vault_b, amount_a, amount_b, user, contract_id)
        coordinator = init.address
        for vault, amount in ((vault_a, amount_a), (vault_b, amount_b)):
            payload = encode_deposit_payload(
                coordinator,
                proof=self._proof_for(vault),
                coordinator_init=init.data,
            )
            self._transfer_to_vault(user, vault, amount, payload)
        pair = sort_addresses(vault_a, vault_b, amount_a, amount_b)
        logger.debug(
            "liquidity_submitted",
            user=user.short(),
            coordinator=coordinator.short(),
            left_amount=pair.left_amount,
            right_amount=pair.right_amount,
            contract_id=contract_id,
        )
        return coordinator

    def provide_liquidity(
        self,
        user: Address,
        vault_a: Address,
        amount_a: int,
        vault_b: Address,
        amount_b: int,
        *,
        contract_id: Optional[int] = None,
    ) -> Tuple[Address, Trace]:
        coordinator = self.submit_liquidity(user, vault_a, amount_a, vault_b, amount_b, contract_id=contract_id)
        return coordinator, self.ledger.run()

    def withdraw(self, user: Address, vault_a: Address, vault_b: Address, shares: int) -> Trace:
        """Burn ``shares`` of the pool's liquidity token; the pool pays out both sides."""
        lp_wallet = holder_address(user, pool_address(vault_a, vault_b))
        return self.ledger.send(user, lp_wallet, TokenBurn(amount=shares, response_destination=user))
