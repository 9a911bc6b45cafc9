"""Public API for the proof-shaping pipeline."""

from __future__ import annotations

from .encoding import EncodingMode, encode_public_input, parse_encoding_mode
from .exceptions import (
    ConfigurationError,
    HashingInputError,
    MalformedProofRecord,
    ProvingBackendError,
    RecordFormatError,
    TransportError,
    VerificationFailure,
    WorldIDDebugError,
)
from .hashing import (
    FieldHashOutput,
    generate_external_nullifier,
    generate_signal,
    hash_to_field,
    pack_and_encode,
)
from .identity import Identity
from .merkle import MerkleProof, adapt_inclusion_proof
from .proof_codec import SnarkProof, pack_proof, unpack_proof
from .witness import FullProofRecord, Witness, build_witness, generate_proof

__all__ = [
    "EncodingMode",
    "encode_public_input",
    "parse_encoding_mode",
    "ConfigurationError",
    "HashingInputError",
    "MalformedProofRecord",
    "ProvingBackendError",
    "RecordFormatError",
    "TransportError",
    "VerificationFailure",
    "WorldIDDebugError",
    "FieldHashOutput",
    "generate_external_nullifier",
    "generate_signal",
    "hash_to_field",
    "pack_and_encode",
    "Identity",
    "MerkleProof",
    "adapt_inclusion_proof",
    "SnarkProof",
    "pack_proof",
    "unpack_proof",
    "FullProofRecord",
    "Witness",
    "build_witness",
    "generate_proof",
]
