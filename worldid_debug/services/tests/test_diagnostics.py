"""Tests for on-chain proof diagnostics with explicit encodings."""

from __future__ import annotations

import pytest

from worldid_debug.services.diagnostics import ProofSubmission, check_proof
from worldid_debug.services.onchain import OnChainVerifier
from worldid_debug.services.tests.fakes import FakeWeb3
from worldid_debug.zk_protocol.exceptions import HashingInputError, VerificationFailure
from worldid_debug.zk_protocol.hashing import generate_external_nullifier, hash_encoded_bytes, hash_string

SUBMISSION = ProofSubmission(
    root="0x0fbf",
    nullifier_hash="5557",
    signal="0x" + "00" * 20,
    external_nullifier="0x01",
    proof=[str(v) for v in range(1, 9)],
)


class RecordingVerifier:
    def __init__(self, reason=None):
        self.reason = reason
        self.calls = []

    def verify_raw(self, **kwargs):
        self.calls.append(kwargs)
        if self.reason is not None:
            raise VerificationFailure("on-chain", "reverted", reason=self.reason)


def test_encodes_inputs_per_mode():
    verifier = RecordingVerifier()
    result = check_proof(
        verifier, SUBMISSION, signal_mode="bytes", nullifier_mode="string", group_id=1
    )

    assert result.ok is True
    assert result.error is None
    assert result.signal_hash == hash_encoded_bytes(bytes(20)).hash
    assert result.external_nullifier_hash == hash_string("0x01").hash

    call = verifier.calls[0]
    assert call["group_id"] == 1
    assert call["root"] == 0x0FBF
    assert call["nullifier_hash"] == 5557
    assert call["signal_hash"] == result.signal_hash
    assert call["external_nullifier"] == result.external_nullifier_hash
    assert call["proof"] == tuple(range(1, 9))


def test_plain_mode_passes_values_through():
    verifier = RecordingVerifier()
    result = check_proof(
        verifier, SUBMISSION, signal_mode="plain", nullifier_mode="plain", group_id=1
    )
    assert result.signal_hash == 0
    assert result.external_nullifier_hash == 1


def test_precomputed_external_nullifier_with_plain_mode():
    external = generate_external_nullifier("app_staging_1", "vote")
    submission = ProofSubmission(
        root=1, nullifier_hash=2, signal="0x00", external_nullifier=external.digest, proof=range(8)
    )
    result = check_proof(
        RecordingVerifier(), submission, signal_mode="bytes", nullifier_mode="plain", group_id=1
    )
    assert result.external_nullifier_hash == external.hash


@pytest.mark.parametrize(
    "reason,hint_fragment",
    [("InvalidProof", "encoding"), ("InvalidRoot", "outdated"), ("NoSuchGroup", "group id")],
)
def test_rejection_includes_hint(reason, hint_fragment):
    result = check_proof(
        RecordingVerifier(reason=reason),
        SUBMISSION,
        signal_mode="bytes",
        nullifier_mode="string",
        group_id=1,
    )
    assert result.ok is False
    assert result.error == reason
    assert hint_fragment in result.hint


def test_unknown_rejection_has_no_hint():
    result = check_proof(
        RecordingVerifier(reason="Mystery"),
        SUBMISSION,
        signal_mode="bytes",
        nullifier_mode="string",
        group_id=1,
    )
    assert result.error == "Mystery"
    assert result.hint is None


def test_input_that_does_not_fit_mode():
    verifier = RecordingVerifier()
    submission = ProofSubmission(
        root=1, nullifier_hash=2, signal="hello", external_nullifier="0", proof=range(8)
    )
    with pytest.raises(HashingInputError):
        check_proof(verifier, submission, signal_mode="bytes", nullifier_mode="plain", group_id=1)
    assert verifier.calls == []


def test_short_proof_rejected_before_call():
    verifier = RecordingVerifier()
    submission = ProofSubmission(
        root=1, nullifier_hash=2, signal="0x00", external_nullifier="0", proof=["1"] * 7
    )
    with pytest.raises(HashingInputError, match="exactly 8"):
        check_proof(verifier, submission, signal_mode="bytes", nullifier_mode="plain", group_id=1)
    assert verifier.calls == []


@pytest.mark.parametrize(
    "kind, leading",
    [("router", (1, 0x0FBF)), ("semaphore", (0x0FBF, 1))],
)
def test_contract_call_order_per_verifier_kind(kind, leading):
    web3 = FakeWeb3()
    verifier = OnChainVerifier(web3, "0x" + "ab" * 20, kind=kind)
    result = check_proof(
        verifier, SUBMISSION, signal_mode="bytes", nullifier_mode="string", group_id=1
    )
    assert result.ok is True
    args = web3.calls[0]
    assert args[:2] == leading
    assert args[2:5] == (result.signal_hash, 5557, result.external_nullifier_hash)
