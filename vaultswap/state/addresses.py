"""
Actor addresses, state init and canonical pair ordering.

An address is an opaque 32-byte identifier. Every actor's address is derived
from its `StateInit` (code identifier plus init data), so any actor can
recompute the address of any other actor from the parameters it was created
with.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass

from .canonical import ByteReader, domain_sep_bytes, encode_bytes, hex_to_bytes_fixed, sha256_bytes


ADDRESS_BYTES = 32


@functools.total_ordering
@dataclass(frozen=True)
class Address:
    raw: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.raw, bytes):
            raise TypeError("address must be bytes")
        if len(self.raw) != ADDRESS_BYTES:
            raise ValueError(f"address must be exactly {ADDRESS_BYTES} bytes")

    @classmethod
    def from_hex(cls, hex_str: str) -> "Address":
        return cls(hex_to_bytes_fixed(hex_str, nbytes=ADDRESS_BYTES, name="address"))

    @classmethod
    def read(cls, reader: ByteReader) -> "Address":
        return cls(reader.read_exact(ADDRESS_BYTES))

    def as_int(self) -> int:
        return int.from_bytes(self.raw, "big")

    def hex(self) -> str:
        return "0x" + self.raw.hex()

    def short(self) -> str:
        return self.raw.hex()[:8]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Address):
            return NotImplemented
        return self.as_int() < other.as_int()

    def __str__(self) -> str:
        return self.hex()


@dataclass(frozen=True)
class StateInit:
    """Code identifier and init data; hashes to the actor's address."""

    code: bytes
    data: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.code, bytes) or not self.code:
            raise ValueError("code must be non-empty bytes")
        if not isinstance(self.data, bytes):
            raise TypeError("data must be bytes")

    def encode(self) -> bytes:
        return encode_bytes(self.code) + encode_bytes(self.data)

    @classmethod
    def read(cls, reader: ByteReader) -> "StateInit":
        code = reader.read_bytes()
        data = reader.read_bytes()
        return cls(code=code, data=data)

    @property
    def address(self) -> Address:
        return Address(sha256_bytes(domain_sep_bytes("state_init") + self.encode()))


@dataclass(frozen=True)
class SortedPair:
    lower: Address
    higher: Address
    left_amount: int
    right_amount: int


def sort_addresses(a: Address, b: Address, amount_a: int = 0, amount_b: int = 0) -> SortedPair:
    """
    Order two addresses by their unsigned integer value.

    The amounts travel with their addresses: the amount named for the lower
    address becomes `left_amount`.
    """
    if a == b:
        raise ValueError("pair must contain two distinct addresses")
    if a.as_int() < b.as_int():
        return SortedPair(lower=a, higher=b, left_amount=amount_a, right_amount=amount_b)
    return SortedPair(lower=b, higher=a, left_amount=amount_b, right_amount=amount_a)
