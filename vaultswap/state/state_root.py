"""
Deterministic ledger state root hashing (v1).

Used to compare whole-ledger outcomes, e.g. that two different delivery
orders of the same messages end in the same state.
"""

from __future__ import annotations

from typing import Any, Mapping, Tuple

from .addresses import Address
from .canonical import canonical_json_bytes, domain_sep_bytes, encode_bytes, encode_uvarint, sha256_hex


STATE_ROOT_VERSION = 1

AccountEntry = Tuple[bytes, Mapping[str, Any]]


def _encode_accounts_section(accounts: Mapping[Address, AccountEntry]) -> bytes:
    out = bytearray()
    entries = sorted(accounts.items(), key=lambda kv: kv[0].raw)
    out += encode_uvarint(len(entries))
    for address, (code, state_dict) in entries:
        out += address.raw
        out += encode_bytes(code)
        out += encode_bytes(canonical_json_bytes(dict(state_dict)))
    return bytes(out)


def compute_state_root(accounts: Mapping[Address, AccountEntry]) -> str:
    """
    Compute a deterministic root over `address -> (code, state_dict)`.

    Returns a 0x-prefixed sha256 digest.
    """
    payload = (
        domain_sep_bytes("state_root", version=STATE_ROOT_VERSION)
        + b"ACC"
        + encode_bytes(_encode_accounts_section(accounts))
    )
    return sha256_hex(payload)
