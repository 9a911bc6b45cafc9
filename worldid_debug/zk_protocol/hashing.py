"""
Field hashing used across the World ID protocol.

Inputs are hashed with keccak256 and shifted right by one byte so the result
fits in the SNARK scalar field. The same construction produces the signal
hash and the external nullifier.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Sequence, Tuple, Union

from Crypto.Hash import keccak
from eth_abi.exceptions import EncodingError, ParseError
from eth_abi.packed import encode_packed

from .config import DIGEST_HEX_LENGTH, HASH_SHIFT_BITS
from .exceptions import HashingInputError

BytesLike = Union[bytes, bytearray, memoryview, str]

_HEX_BYTES_RE = re.compile(r"^0x(?:[0-9a-fA-F]{2})*$")


@dataclass(frozen=True)
class FieldHashOutput:
    """Field element plus its canonical 32-byte hex digest."""

    hash: int
    digest: str

    @classmethod
    def from_int(cls, value: int) -> "FieldHashOutput":
        return cls(hash=value, digest=to_digest(value))


def to_digest(value: int) -> str:
    """Format a field element as ``0x`` followed by 64 zero-padded hex digits."""
    if value < 0:
        raise HashingInputError("field elements must be non-negative")
    raw = format(value, "x")
    if len(raw) > DIGEST_HEX_LENGTH:
        raise HashingInputError("value does not fit in 32 bytes")
    return "0x" + raw.rjust(DIGEST_HEX_LENGTH, "0")


def keccak256(data: bytes) -> bytes:
    k = keccak.new(digest_bits=256)
    k.update(data)
    return k.digest()


def is_bytes_like(value: Any) -> bool:
    """
    True for raw byte buffers and for even-length ``0x``-prefixed hex strings.

    ``"0x"`` counts as the empty byte string.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return True
    return isinstance(value, str) and _HEX_BYTES_RE.match(value) is not None


def to_bytes(value: BytesLike) -> bytes:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if is_bytes_like(value):
        return bytes.fromhex(value[2:])
    raise HashingInputError(f"not a bytes-like value: {value!r}")


def hash_encoded_bytes(data: BytesLike) -> FieldHashOutput:
    """
    Hash raw bytes (or a hex string of bytes) into the field.

    Example use: hashing an address that a contract will re-derive.
    """
    digest = keccak256(to_bytes(data))
    value = int.from_bytes(digest, "big") >> HASH_SHIFT_BITS
    return FieldHashOutput.from_int(value)


def hash_string(text: str) -> FieldHashOutput:
    """Hash the UTF-8 encoding of ``text``."""
    if not isinstance(text, str):
        raise HashingInputError(f"expected str, got {type(text).__name__}")
    return hash_encoded_bytes(text.encode("utf-8"))


def hash_to_field(value: BytesLike) -> FieldHashOutput:
    """
    Hash any string, hex-encoded bytes or byte buffer into the field.

    Strings that already look like hex-encoded bytes (``0x0000...``) are
    hashed as bytes; any other string is hashed as UTF-8 text. Other types
    are rejected, since a number could mean either.

    Args:
        value: bytes, bytearray, memoryview or str

    Returns:
        FieldHashOutput with the truncated hash and its 32-byte digest

    Raises:
        HashingInputError: If the input type has no defined encoding
    """
    if is_bytes_like(value):
        return hash_encoded_bytes(value)
    if isinstance(value, str):
        return hash_string(value)
    raise HashingInputError(
        f"cannot hash {type(value).__name__}; pass bytes or str, or pick an explicit encoding mode"
    )


def pack_and_encode(items: Sequence[Tuple[str, Any]]) -> FieldHashOutput:
    """
    Solidity-pack ``(type, value)`` pairs tightly and hash the packed bytes.

    ``[("uint256", 1), ("string", "vote")]`` packs to 32 bytes of the integer
    followed by the raw UTF-8 bytes of ``"vote"``.
    """
    types = [abi_type for abi_type, _ in items]
    values = [value for _, value in items]
    try:
        packed = encode_packed(types, values)
    except (EncodingError, ParseError, TypeError, ValueError) as exc:
        raise HashingInputError(f"cannot pack {types}: {exc}") from exc
    return hash_encoded_bytes(packed)


def generate_signal(signal: BytesLike | None) -> FieldHashOutput:
    return hash_to_field(signal if signal is not None else "")


def generate_external_nullifier(app_id: str, action: str | None) -> FieldHashOutput:
    """
    Derive the external nullifier for an app and action.

    An empty action is the app-wide nullifier: only the hashed app id is
    packed. Otherwise the action string follows it, unpadded.
    """
    app_hash = hash_to_field(app_id).hash
    if not action:
        return pack_and_encode([("uint256", app_hash)])
    return pack_and_encode([("uint256", app_hash), ("string", action)])
