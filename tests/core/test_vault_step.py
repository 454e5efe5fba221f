# [TESTER] v1

from __future__ import annotations

from dataclasses import replace

import pytest

from vaultswap.core import vault
from vaultswap.core.errors import ErrorCode, ValidationError
from vaultswap.core.messages import (
    Bounced,
    PartHasBeenDeposited,
    PayoutFromPool,
    SwapRequest,
    TokenTransfer,
    TransferNotification,
)
from vaultswap.core.payloads import encode_deposit_payload, encode_swap_payload
from vaultswap.core.types import HandlerContext
from vaultswap.state.addresses import Address
from vaultswap.state.deposits import deposit_state_init
from vaultswap.state.holders import holder_address, minter_state_init
from vaultswap.state.pools import pool_address
from vaultswap.state.vaults import VaultState, vault_address


def _addr(b: int) -> Address:
    return Address(bytes([b]) * 32)


ADMIN = _addr(1)
USER = _addr(2)
PROOF = minter_state_init(ADMIN, b"token")
MASTER = PROOF.address
SELF = vault_address(MASTER)
HOLDER = holder_address(SELF, MASTER)
OTHER_VAULT = _addr(9)


def _ctx(sender: Address) -> HandlerContext:
    return HandlerContext(self_address=SELF, sender=sender)


def _notification(payload: bytes, amount: int = 10) -> TransferNotification:
    return TransferNotification(amount=amount, sender=USER, forward_payload=payload)


@pytest.fixture
def fresh() -> VaultState:
    return VaultState(jetton_master=MASTER)


@pytest.fixture
def inited() -> VaultState:
    return VaultState(jetton_master=MASTER, initialized=True, holder_account=HOLDER)


class TestFirstUse:
    def test_valid_proof_initializes_and_routes_swap(self, fresh: VaultState) -> None:
        msg = _notification(encode_swap_payload(OTHER_VAULT, 5, proof=PROOF))
        result = vault.step(fresh, _ctx(HOLDER), msg)
        assert result.accepted
        assert result.state.initialized
        assert result.state.holder_account == HOLDER
        (out,) = result.outbound
        assert out.destination == pool_address(SELF, OTHER_VAULT)
        assert out.body == SwapRequest(
            amount=10, receiver=USER, source_vault=SELF, destination_vault=OTHER_VAULT, min_amount_out=5
        )

    def test_missing_proof_is_rejected(self, fresh: VaultState) -> None:
        result = vault.step(fresh, _ctx(HOLDER), _notification(encode_swap_payload(OTHER_VAULT)))
        assert not result.accepted
        assert result.rejection == ErrorCode.VAULT_NOT_INITIALIZED

    def test_proof_of_another_token_is_rejected(self, fresh: VaultState) -> None:
        forged = minter_state_init(ADMIN, b"other-token")
        result = vault.step(fresh, _ctx(HOLDER), _notification(encode_swap_payload(OTHER_VAULT, proof=forged)))
        assert result.rejection == ErrorCode.PROOF_MISMATCH

    def test_valid_proof_from_wrong_sender_is_rejected(self, fresh: VaultState) -> None:
        msg = _notification(encode_swap_payload(OTHER_VAULT, proof=PROOF))
        result = vault.step(fresh, _ctx(USER), msg)
        assert result.rejection == ErrorCode.PROOF_MISMATCH
        assert result.state is None

    def test_step_or_raise_surfaces_the_error(self, fresh: VaultState) -> None:
        with pytest.raises(ValidationError) as exc_info:
            vault.step_or_raise(fresh, _ctx(USER), _notification(encode_swap_payload(OTHER_VAULT, proof=PROOF)))
        assert exc_info.value.code == ErrorCode.PROOF_MISMATCH


class TestRouting:
    def test_initialized_vault_needs_no_proof(self, inited: VaultState) -> None:
        result = vault.step(inited, _ctx(HOLDER), _notification(encode_swap_payload(OTHER_VAULT)))
        assert result.accepted
        assert result.state == inited

    def test_sender_must_be_cached_holder(self, inited: VaultState) -> None:
        result = vault.step(inited, _ctx(_addr(77)), _notification(encode_swap_payload(OTHER_VAULT)))
        assert result.rejection == ErrorCode.SENDER_MISMATCH

    def test_deposit_forwards_part_with_coordinator_init(self, inited: VaultState) -> None:
        init = deposit_state_init(SELF, OTHER_VAULT, 10, 20, USER, 0)
        payload = encode_deposit_payload(init.address, coordinator_init=init.data)
        result = vault.step(inited, _ctx(HOLDER), _notification(payload))
        (out,) = result.outbound
        assert out.destination == init.address
        assert out.init == init
        assert out.body == PartHasBeenDeposited(depositor=USER, amount=10, coordinator_data=init.data)

    def test_deposit_without_coordinator_init_is_malformed(self, inited: VaultState) -> None:
        init = deposit_state_init(SELF, OTHER_VAULT, 10, 20, USER, 0)
        result = vault.step(inited, _ctx(HOLDER), _notification(encode_deposit_payload(init.address)))
        assert result.rejection == ErrorCode.MALFORMED_PAYLOAD

    def test_coordinator_must_take_a_side_from_this_vault(self, inited: VaultState) -> None:
        init = deposit_state_init(OTHER_VAULT, _addr(10), 10, 20, USER, 0)
        payload = encode_deposit_payload(init.address, coordinator_init=init.data)
        result = vault.step(inited, _ctx(HOLDER), _notification(payload))
        assert result.rejection == ErrorCode.UNKNOWN_DESTINATION

    def test_coordinator_init_must_match_address(self, inited: VaultState) -> None:
        init = deposit_state_init(SELF, OTHER_VAULT, 10, 20, USER, 0)
        payload = encode_deposit_payload(_addr(55), coordinator_init=init.data)
        result = vault.step(inited, _ctx(HOLDER), _notification(payload))
        assert result.rejection == ErrorCode.UNKNOWN_DESTINATION

    def test_swap_to_self_is_unknown_destination(self, inited: VaultState) -> None:
        result = vault.step(inited, _ctx(HOLDER), _notification(encode_swap_payload(SELF)))
        assert result.rejection == ErrorCode.UNKNOWN_DESTINATION

    def test_garbage_payload_is_malformed(self, inited: VaultState) -> None:
        result = vault.step(inited, _ctx(HOLDER), _notification(b"\x00\x01"))
        assert result.rejection == ErrorCode.MALFORMED_PAYLOAD

    def test_unknown_payload_opcode(self, inited: VaultState) -> None:
        result = vault.step(inited, _ctx(HOLDER), _notification(b"\x00" + (7).to_bytes(4, "big")))
        assert result.rejection == ErrorCode.UNKNOWN_OPCODE

    def test_zero_amount_is_economic(self, inited: VaultState) -> None:
        result = vault.step(inited, _ctx(HOLDER), _notification(encode_swap_payload(OTHER_VAULT), amount=0))
        assert result.rejection == ErrorCode.ZERO_AMOUNT

    def test_unhandled_payload_kind_is_rejected(self, inited: VaultState, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(vault, "decode_payload", lambda raw: object())
        result = vault.step(inited, _ctx(HOLDER), _notification(encode_swap_payload(OTHER_VAULT)))
        assert result.rejection == ErrorCode.UNKNOWN_OPCODE
        assert result.outbound == ()


class TestPayouts:
    def test_payout_from_own_pool_instructs_holder(self, inited: VaultState) -> None:
        msg = PayoutFromPool(amount=12, receiver=USER, other_vault=OTHER_VAULT)
        result = vault.step(inited, _ctx(pool_address(SELF, OTHER_VAULT)), msg)
        (out,) = result.outbound
        assert out.destination == HOLDER
        assert out.body == TokenTransfer(amount=12, destination=USER, response_destination=USER)

    def test_payout_from_anyone_else_is_rejected(self, inited: VaultState) -> None:
        msg = PayoutFromPool(amount=12, receiver=USER, other_vault=OTHER_VAULT)
        result = vault.step(inited, _ctx(USER), msg)
        assert result.rejection == ErrorCode.SENDER_MISMATCH


class TestBounces:
    def test_bounced_swap_is_refunded_to_receiver(self, inited: VaultState) -> None:
        original = SwapRequest(amount=10, receiver=USER, source_vault=SELF, destination_vault=OTHER_VAULT)
        result = vault.step(inited, _ctx(pool_address(SELF, OTHER_VAULT)), Bounced(original=original))
        (out,) = result.outbound
        assert out.destination == HOLDER
        assert out.body.amount == 10 and out.body.destination == USER

    def test_bounced_deposit_part_is_refunded_to_depositor(self, inited: VaultState) -> None:
        init = deposit_state_init(SELF, OTHER_VAULT, 4, 8, USER, 0)
        original = PartHasBeenDeposited(depositor=USER, amount=4, coordinator_data=init.data)
        result = vault.step(inited, _ctx(init.address), Bounced(original=original))
        (out,) = result.outbound
        assert out.body == TokenTransfer(amount=4, destination=USER, response_destination=USER)

    def test_bounced_deposit_part_from_another_account_is_rejected(self, inited: VaultState) -> None:
        init = deposit_state_init(SELF, OTHER_VAULT, 4, 8, USER, 0)
        original = PartHasBeenDeposited(depositor=USER, amount=4, coordinator_data=init.data)
        result = vault.step(inited, _ctx(USER), Bounced(original=original))
        assert result.rejection == ErrorCode.SENDER_MISMATCH
        assert result.outbound == ()

    @pytest.mark.parametrize(
        "sender, original",
        [
            # Forged by the receiver itself.
            (USER, SwapRequest(amount=100, receiver=USER, source_vault=SELF, destination_vault=OTHER_VAULT)),
            # A pool of this vault, but not the one the request went to.
            (
                pool_address(SELF, _addr(10)),
                SwapRequest(amount=100, receiver=USER, source_vault=SELF, destination_vault=OTHER_VAULT),
            ),
            # Request that another vault sent.
            (
                pool_address(SELF, OTHER_VAULT),
                SwapRequest(amount=100, receiver=USER, source_vault=OTHER_VAULT, destination_vault=SELF),
            ),
        ],
    )
    def test_bounced_swap_must_come_from_its_pool(
        self, inited: VaultState, sender: Address, original: SwapRequest
    ) -> None:
        result = vault.step(inited, _ctx(sender), Bounced(original=original))
        assert result.rejection == ErrorCode.SENDER_MISMATCH
        assert result.outbound == ()

    def test_other_bounces_are_ignored(self, inited: VaultState) -> None:
        bounced = Bounced(original=TokenTransfer(amount=1, destination=USER, response_destination=USER))
        result = vault.step(inited, _ctx(HOLDER), bounced)
        assert result.accepted
        assert result.outbound == ()


def test_getters_report_initialization(fresh: VaultState) -> None:
    ctx = _ctx(SELF)
    assert vault.get_inited(fresh, ctx) is False
    assert vault.get_inited(replace(fresh, initialized=True, holder_account=HOLDER), ctx) is True
