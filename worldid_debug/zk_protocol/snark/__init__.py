"""Proving backend, circuit artifacts and local verification."""

from .assets import CircuitArtifacts, load_verification_key, resolve_artifacts
from .prover import NodeIdentityHasher, ProverOutput, ProvingBackend, SnarkjsBackend
from .verifier import assert_verified_locally, verify_groth16, verify_proof_locally

__all__ = [
    "CircuitArtifacts",
    "load_verification_key",
    "resolve_artifacts",
    "NodeIdentityHasher",
    "ProverOutput",
    "ProvingBackend",
    "SnarkjsBackend",
    "assert_verified_locally",
    "verify_groth16",
    "verify_proof_locally",
]
