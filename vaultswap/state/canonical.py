"""
Deterministic canonical encoding primitives.

Every byte string that feeds an address derivation, an actor's init data or a
forward payload is produced by these helpers, and every such byte string is
parsed back with `ByteReader`, which rejects truncated and trailing input.
"""

from __future__ import annotations

import hashlib
import json
import re
from typing import Any


U128_MAX = (1 << 128) - 1

_HEX_CHARS_RE = re.compile(r"^[0-9a-fA-F]+$")


class CanonicalDecodeError(ValueError):
    """Raised when a byte string is not a valid canonical encoding."""


def _reject_floats(value: Any) -> None:
    if isinstance(value, float):
        raise TypeError("floats are not allowed in canonical encoding")
    if isinstance(value, dict):
        for k, v in value.items():
            if not isinstance(k, str):
                raise TypeError("dict keys must be str for canonical encoding")
            _reject_floats(v)
        return
    if isinstance(value, (list, tuple)):
        for item in value:
            _reject_floats(item)


def canonical_json_bytes(value: Any) -> bytes:
    """
    Canonical JSON encoding for hashing.

    Rules:
    - UTF-8
    - sort_keys=True
    - separators=(',', ':') (no whitespace)
    - allow_nan=False
    - floats rejected (to avoid representation ambiguity)
    """
    _reject_floats(value)
    text = json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )
    return text.encode("utf-8")


def sha256_hex(data: bytes) -> str:
    return "0x" + hashlib.sha256(data).hexdigest()


def sha256_bytes(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def domain_sep_bytes(label: str, version: int = 1) -> bytes:
    """
    Create a domain separation prefix.

    The output is ASCII-only and NUL-terminated to make concatenation unambiguous.
    """
    if not isinstance(label, str) or not label:
        raise TypeError("label must be a non-empty str")
    if "\x00" in label:
        raise ValueError("label must not contain NUL")
    try:
        label_bytes = label.encode("ascii")
    except UnicodeEncodeError as exc:
        raise ValueError("label must be ASCII") from exc
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")
    return b"vaultswap:" + label_bytes + b":v" + str(version).encode("ascii") + b"\x00"


def encode_uvarint(value: int) -> bytes:
    """Unsigned LEB128."""
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ValueError(f"uvarint must be a non-negative int, got {value!r}")
    out = bytearray()
    n = value
    while True:
        byte = n & 0x7F
        n >>= 7
        if n:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            break
    return bytes(out)


def encode_bytes(value: bytes) -> bytes:
    if not isinstance(value, (bytes, bytearray)):
        raise TypeError("value must be bytes")
    value_bytes = bytes(value)
    return encode_uvarint(len(value_bytes)) + value_bytes


def _encode_fixed_uint(value: int, *, nbytes: int, name: str) -> bytes:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0 or value >= 1 << (8 * nbytes):
        raise ValueError(f"{name} out of range for {8 * nbytes}-bit unsigned")
    return value.to_bytes(nbytes, "big")


def encode_u32(value: int) -> bytes:
    return _encode_fixed_uint(value, nbytes=4, name="u32")


def encode_u128(value: int) -> bytes:
    return _encode_fixed_uint(value, nbytes=16, name="u128")


def encode_flag(value: bool) -> bytes:
    return b"\x01" if value else b"\x00"


class ByteReader:
    """Strict cursor over a canonical byte string."""

    # Guard against absurd length prefixes in untrusted input.
    MAX_VARINT_BYTES = 10

    def __init__(self, data: bytes) -> None:
        if not isinstance(data, (bytes, bytearray)):
            raise TypeError("data must be bytes")
        self._data = bytes(data)
        self._pos = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def read_exact(self, n: int) -> bytes:
        if n < 0:
            raise CanonicalDecodeError("negative read length")
        if self.remaining < n:
            raise CanonicalDecodeError(f"truncated input: need {n} bytes, have {self.remaining}")
        out = self._data[self._pos : self._pos + n]
        self._pos += n
        return out

    def read_uvarint(self) -> int:
        result = 0
        shift = 0
        for i in range(self.MAX_VARINT_BYTES):
            (byte,) = self.read_exact(1)
            result |= (byte & 0x7F) << shift
            if not byte & 0x80:
                # Reject non-minimal encodings such as 0x80 0x00.
                if i > 0 and byte == 0:
                    raise CanonicalDecodeError("non-minimal uvarint")
                return result
            shift += 7
        raise CanonicalDecodeError("uvarint too long")

    def read_bytes(self) -> bytes:
        return self.read_exact(self.read_uvarint())

    def read_u32(self) -> int:
        return int.from_bytes(self.read_exact(4), "big")

    def read_u128(self) -> int:
        return int.from_bytes(self.read_exact(16), "big")

    def read_flag(self) -> bool:
        (byte,) = self.read_exact(1)
        if byte not in (0, 1):
            raise CanonicalDecodeError(f"invalid flag byte {byte:#x}")
        return byte == 1

    def expect_end(self) -> None:
        if self.remaining:
            raise CanonicalDecodeError(f"{self.remaining} trailing bytes")


def hex_to_bytes_fixed(hex_str: str, *, nbytes: int, name: str) -> bytes:
    if not isinstance(hex_str, str):
        raise TypeError(f"{name} must be a str")
    if not isinstance(nbytes, int) or isinstance(nbytes, bool) or nbytes <= 0:
        raise ValueError("nbytes must be a positive int")
    s = hex_str.strip()
    if s.lower().startswith("0x"):
        s = s[2:]
    if len(s) != 2 * nbytes:
        raise ValueError(f"{name} must be {nbytes} bytes (hex length {2 * nbytes})")
    if not _HEX_CHARS_RE.fullmatch(s):
        raise ValueError(f"{name} must be valid hex")
    return bytes.fromhex(s)


def require_uint(value: object, name: str, *, max_value: int = U128_MAX) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0 or value > max_value:
        raise ValueError(f"{name} out of range: {value}")
    return value
