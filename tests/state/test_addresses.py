# [TESTER] v1

from __future__ import annotations

import importlib.util

import pytest

from vaultswap.state.addresses import Address, StateInit, sort_addresses
from vaultswap.state.canonical import ByteReader, CanonicalDecodeError, encode_uvarint
from vaultswap.state.deposits import deposit_state_init
from vaultswap.state.pools import pool_address, pool_state_init


def _addr(b: int) -> Address:
    return Address(bytes([b]) * 32)


class TestAddress:
    def test_rejects_wrong_length(self) -> None:
        with pytest.raises(ValueError, match="32 bytes"):
            Address(b"\x00" * 31)

    def test_orders_by_unsigned_integer_value(self) -> None:
        low = Address(b"\x00" * 31 + b"\xff")
        high = Address(b"\x01" + b"\x00" * 31)
        assert low < high
        assert low.as_int() == 255
        assert sorted([high, low]) == [low, high]

    def test_hex_round_trip(self) -> None:
        a = _addr(0xAB)
        assert Address.from_hex(a.hex()) == a
        assert Address.from_hex(a.hex()[2:].upper()) == a


class TestStateInit:
    def test_address_is_deterministic_and_data_sensitive(self) -> None:
        a = StateInit(code=b"c", data=b"d1")
        assert a.address == StateInit(code=b"c", data=b"d1").address
        assert a.address != StateInit(code=b"c", data=b"d2").address
        assert a.address != StateInit(code=b"c2", data=b"d1").address

    def test_code_and_data_boundary_is_unambiguous(self) -> None:
        assert StateInit(code=b"ab", data=b"c").address != StateInit(code=b"a", data=b"bc").address

    def test_rejects_empty_code(self) -> None:
        with pytest.raises(ValueError):
            StateInit(code=b"", data=b"")


class TestSortAddresses:
    def test_amounts_travel_with_their_address(self) -> None:
        pair = sort_addresses(_addr(9), _addr(2), 90, 20)
        assert (pair.lower, pair.higher) == (_addr(2), _addr(9))
        assert (pair.left_amount, pair.right_amount) == (20, 90)

    def test_identical_addresses_are_rejected(self) -> None:
        with pytest.raises(ValueError, match="distinct"):
            sort_addresses(_addr(1), _addr(1))

    def test_pool_identity_ignores_argument_order(self) -> None:
        assert pool_address(_addr(1), _addr(2)) == pool_address(_addr(2), _addr(1))
        assert pool_state_init(_addr(1), _addr(2)) == pool_state_init(_addr(2), _addr(1))

    def test_coordinator_identity_ignores_argument_order(self) -> None:
        a = deposit_state_init(_addr(1), _addr(2), 100, 150, _addr(7), 0)
        b = deposit_state_init(_addr(2), _addr(1), 150, 100, _addr(7), 0)
        assert a == b
        assert a != deposit_state_init(_addr(1), _addr(2), 100, 150, _addr(7), 1)


class TestByteReader:
    def test_truncated_input(self) -> None:
        with pytest.raises(CanonicalDecodeError, match="truncated"):
            ByteReader(b"\x05abc").read_bytes()

    def test_trailing_bytes(self) -> None:
        reader = ByteReader(b"\x00\x00\x00\x01\xff")
        assert reader.read_u32() == 1
        with pytest.raises(CanonicalDecodeError, match="trailing"):
            reader.expect_end()

    def test_non_minimal_uvarint(self) -> None:
        with pytest.raises(CanonicalDecodeError, match="non-minimal"):
            ByteReader(b"\x80\x00").read_uvarint()

    def test_uvarint_round_trip_for_boundaries(self) -> None:
        for n in (0, 127, 128, 300, 2**64 - 1):
            assert ByteReader(encode_uvarint(n)).read_uvarint() == n


if importlib.util.find_spec("hypothesis") is not None:
    import hypothesis.strategies as st
    from hypothesis import given

    addresses = st.binary(min_size=32, max_size=32).map(Address)
    amounts = st.integers(min_value=0, max_value=2**128 - 1)

    @given(a=addresses, b=addresses, amount_a=amounts, amount_b=amounts)
    def test_sort_addresses_is_symmetric(a: Address, b: Address, amount_a: int, amount_b: int) -> None:
        if a == b:
            return
        ab = sort_addresses(a, b, amount_a, amount_b)
        ba = sort_addresses(b, a, amount_b, amount_a)
        assert ab == ba
        assert ab.lower.as_int() < ab.higher.as_int()
        assert pool_address(a, b) == pool_address(b, a)
