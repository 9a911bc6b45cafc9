"""
Diagnose a proof that fails on-chain.

The raw signal and external nullifier are encoded with modes the caller
chooses, then checked against the verifier once. The result says which
error came back and what it usually means.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Union

from ..zk_protocol.encoding import EncodingMode, encode_public_input, parse_field_element
from ..zk_protocol.exceptions import HashingInputError, VerificationFailure
from ..zk_protocol.proof_codec import normalize_packed_proof
from .onchain import OnChainVerifier

_HINTS = {
    "InvalidProof": (
        "invalid proof, usually an encoding issue: check how the signal and "
        "external nullifier were encoded when the proof was generated"
    ),
    "ProofInvalid": (
        "invalid proof, usually an encoding issue: check how the signal and "
        "external nullifier were encoded when the proof was generated"
    ),
    "InvalidRoot": (
        "invalid root, the root is probably outdated; insert a new identity "
        "(roots expire on staging)"
    ),
    "NonExistentRoot": "the root was never published by this verifier",
    "ExpiredRoot": "the root is older than the verifier's validity window",
    "NoSuchGroup": "the group id is not registered with this verifier",
}


@dataclass(frozen=True)
class ProofSubmission:
    """A proof as seen on a block explorer, with raw (unencoded) inputs."""

    root: Union[int, str]
    nullifier_hash: Union[int, str]
    signal: Union[int, str]
    external_nullifier: Union[int, str]
    proof: Sequence[Union[int, str]]


@dataclass(frozen=True)
class CheckResult:
    ok: bool
    signal_hash: int
    external_nullifier_hash: int
    error: Optional[str] = None
    hint: Optional[str] = None


def check_proof(
    verifier: OnChainVerifier,
    submission: ProofSubmission,
    *,
    signal_mode: EncodingMode | str,
    nullifier_mode: EncodingMode | str,
    group_id: int,
) -> CheckResult:
    """
    Check a submission on-chain with explicitly chosen encodings.

    Raises:
        HashingInputError: If a raw input cannot be read under its mode.
        TransportError: If the RPC call fails.
    """
    signal_hash = encode_public_input(submission.signal, signal_mode).hash
    external_nullifier_hash = encode_public_input(
        submission.external_nullifier, nullifier_mode
    ).hash
    try:
        proof = normalize_packed_proof(submission.proof)
    except ValueError as exc:
        raise HashingInputError(str(exc)) from exc

    try:
        verifier.verify_raw(
            group_id=group_id,
            root=parse_field_element(submission.root),
            signal_hash=signal_hash,
            nullifier_hash=parse_field_element(submission.nullifier_hash),
            external_nullifier=external_nullifier_hash,
            proof=proof,
        )
    except VerificationFailure as exc:
        return CheckResult(
            ok=False,
            signal_hash=signal_hash,
            external_nullifier_hash=external_nullifier_hash,
            error=exc.reason or str(exc),
            hint=_HINTS.get(exc.reason or ""),
        )

    return CheckResult(
        ok=True,
        signal_hash=signal_hash,
        external_nullifier_hash=external_nullifier_hash,
    )
