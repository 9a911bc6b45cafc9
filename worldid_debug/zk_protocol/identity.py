"""Semaphore identity secrets and their serialized form."""

from __future__ import annotations

import hashlib
import json
import secrets
from dataclasses import dataclass, replace
from typing import Optional, Protocol

from .encoding import parse_field_element
from .exceptions import HashingInputError
from .hashing import hash_encoded_bytes, to_digest

# Semaphore draws identity secrets as 31 random bytes
_SECRET_BYTES = 31


class IdentityHasher(Protocol):
    """Computes the identity commitment (Poseidon) outside this package."""

    def commitment(self, identity: "Identity") -> int:
        ...


@dataclass(frozen=True)
class Identity:
    trapdoor: int
    nullifier: int
    commitment: Optional[int] = None

    @classmethod
    def random(cls) -> "Identity":
        return cls(
            trapdoor=secrets.randbits(_SECRET_BYTES * 8),
            nullifier=secrets.randbits(_SECRET_BYTES * 8),
        )

    @classmethod
    def from_message(cls, message: str) -> "Identity":
        """
        Derive the secrets deterministically from a message (e.g. a seed).

        Matches the identity library: the sha512 hex digest is split in
        halves; the second half seeds the trapdoor, the first the nullifier.
        """
        digest = hashlib.sha512(message.encode("utf-8")).hexdigest()
        return cls(
            trapdoor=hash_encoded_bytes(bytes.fromhex(digest[64:])).hash,
            nullifier=hash_encoded_bytes(bytes.fromhex(digest[:64])).hash,
        )

    @classmethod
    def deserialize(cls, serialized: str) -> "Identity":
        """
        Parse ``'["0x<trapdoor>","0x<nullifier>"]'``.

        An optional third element carries a known commitment.
        """
        try:
            values = json.loads(serialized)
        except (TypeError, ValueError) as exc:
            raise ValueError("serialized identity must be a JSON array") from exc
        if not isinstance(values, list) or len(values) not in (2, 3):
            raise ValueError("serialized identity must hold trapdoor and nullifier")
        try:
            numbers = [parse_field_element(v) for v in values]
        except HashingInputError as exc:
            raise ValueError(f"invalid identity secret: {exc}") from exc
        commitment = numbers[2] if len(numbers) == 3 else None
        return cls(trapdoor=numbers[0], nullifier=numbers[1], commitment=commitment)

    def serialize(self) -> str:
        return json.dumps([hex(self.trapdoor), hex(self.nullifier)], separators=(",", ":"))

    def with_commitment(self, hasher: IdentityHasher) -> "Identity":
        if self.commitment is not None:
            return self
        return replace(self, commitment=hasher.commitment(self))

    @property
    def encoded_commitment(self) -> str:
        """Commitment as the 32-byte hex string the sequencer expects."""
        if self.commitment is None:
            raise ValueError("identity commitment has not been computed")
        return to_digest(self.commitment)
