"""
Witness assembly and proof generation.

Flow: identity secrets + Merkle proof + external nullifier + signal hash
-> witness -> proving backend -> packed proof record. Each call builds a
fresh witness; nothing is cached between runs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Tuple, Union

from .config import PROOF_LENGTH
from .exceptions import ProvingBackendError
from .hashing import FieldHashOutput
from .identity import Identity
from .merkle import MerkleProof
from .proof_codec import PackedProof, encode_packed_proof, encode_uint256, pack_proof
from .snark.assets import CircuitArtifacts
from .snark.prover import ProvingBackend

logger = logging.getLogger(__name__)

ScalarInput = Union[int, FieldHashOutput]


@dataclass(frozen=True)
class Witness:
    identity_trapdoor: int
    identity_nullifier: int
    tree_path_indices: Tuple[int, ...]
    tree_siblings: Tuple[int, ...]
    external_nullifier: int
    signal_hash: int

    def as_circuit_input(self) -> Dict[str, Union[str, List[str]]]:
        """Circuit input signals, values as decimal strings."""
        return {
            "identityTrapdoor": str(self.identity_trapdoor),
            "identityNullifier": str(self.identity_nullifier),
            "treePathIndices": [str(v) for v in self.tree_path_indices],
            "treeSiblings": [str(v) for v in self.tree_siblings],
            "externalNullifier": str(self.external_nullifier),
            "signalHash": str(self.signal_hash),
        }


@dataclass(frozen=True)
class FullProofRecord:
    merkle_root: int
    nullifier_hash: int
    signal: int
    external_nullifier: int
    proof: PackedProof

    def __post_init__(self) -> None:
        if len(self.proof) != PROOF_LENGTH:
            raise ValueError(f"proof must have exactly {PROOF_LENGTH} elements")

    @property
    def encoded_nullifier_hash(self) -> str:
        return encode_uint256(self.nullifier_hash)

    @property
    def encoded_proof(self) -> str:
        return encode_packed_proof(self.proof)

    @property
    def encoded_merkle_root(self) -> str:
        return encode_uint256(self.merkle_root)


def build_witness(
    identity: Identity,
    merkle_proof: MerkleProof,
    external_nullifier: ScalarInput,
    signal_hash: ScalarInput,
) -> Witness:
    return Witness(
        identity_trapdoor=identity.trapdoor,
        identity_nullifier=identity.nullifier,
        tree_path_indices=tuple(merkle_proof.path_indices),
        tree_siblings=tuple(merkle_proof.siblings),
        external_nullifier=_scalar(external_nullifier),
        signal_hash=_scalar(signal_hash),
    )


def generate_proof(
    identity: Identity,
    merkle_proof: MerkleProof,
    external_nullifier: ScalarInput,
    signal_hash: ScalarInput,
    backend: ProvingBackend,
    artifacts: CircuitArtifacts,
) -> FullProofRecord:
    """
    Generate a Semaphore proof for an identity already inserted in the tree.

    The external nullifier and signal hash are used as given; they are not
    hashed again here.

    Args:
        identity: Identity secrets
        merkle_proof: Adapted inclusion proof for the identity commitment
        external_nullifier: External nullifier scalar (or hasher output)
        signal_hash: Signal hash scalar (or hasher output)
        backend: Proving backend collaborator
        artifacts: Circuit program and proving key for the tree depth

    Returns:
        FullProofRecord ready for local, on-chain and remote verification

    Raises:
        ProvingBackendError: If the backend fails, returns malformed output,
            or proves against a different root than the sequencer reported
    """
    witness = build_witness(identity, merkle_proof, external_nullifier, signal_hash)
    logger.debug("proving with depth %d witness", len(witness.tree_siblings))

    output = backend.full_prove(witness, artifacts)
    if len(output.public_signals) < 2:
        raise ProvingBackendError("prover output is missing root and nullifier hash")

    merkle_root, nullifier_hash = output.public_signals[0], output.public_signals[1]
    if merkle_proof.root is not None and merkle_root != merkle_proof.root:
        raise ProvingBackendError(
            f"prover root {encode_uint256(merkle_root)} does not match "
            f"sequencer root {encode_uint256(merkle_proof.root)}"
        )

    return FullProofRecord(
        merkle_root=merkle_root,
        nullifier_hash=nullifier_hash,
        signal=witness.signal_hash,
        external_nullifier=witness.external_nullifier,
        proof=pack_proof(output.proof),
    )


def _scalar(value: ScalarInput) -> int:
    if isinstance(value, FieldHashOutput):
        return value.hash
    return int(value)
