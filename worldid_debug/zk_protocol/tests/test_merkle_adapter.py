"""Tests for adapting sequencer inclusion records to circuit Merkle proofs."""

from __future__ import annotations

import pytest

from worldid_debug.zk_protocol.exceptions import MalformedProofRecord
from worldid_debug.zk_protocol.merkle import MerkleProof, adapt_inclusion_proof


def _record(depth: int, right_at=()):
    return [
        {"Right" if idx in right_at else "Left": hex(idx + 1)}
        for idx in range(depth)
    ]


def test_length_20_with_three_rights():
    proof = adapt_inclusion_proof(_record(20, right_at=(0, 7, 19)))
    assert proof.depth == 20
    assert proof.siblings == tuple(range(1, 21))
    assert sum(proof.path_indices) == 3
    assert proof.path_indices[0] == 1
    assert proof.path_indices[7] == 1
    assert proof.path_indices[19] == 1
    assert proof.root is None


def test_order_is_preserved():
    record = [{"Left": "0x05"}, {"Right": "0x03"}] + _record(14)
    proof = adapt_inclusion_proof(record)
    assert proof.siblings[:2] == (5, 3)
    assert proof.path_indices[:2] == (0, 1)


def test_decimal_and_hex_siblings():
    record = [{"Left": "12"}, {"Left": "0x0c"}] + _record(14)
    proof = adapt_inclusion_proof(record)
    assert proof.siblings[0] == proof.siblings[1] == 12


@pytest.mark.parametrize("depth", [16, 30, 32])
def test_supported_depths(depth):
    assert adapt_inclusion_proof(_record(depth)).depth == depth


@pytest.mark.parametrize("depth", [0, 10, 15, 33])
def test_unsupported_depths(depth):
    with pytest.raises(MalformedProofRecord):
        adapt_inclusion_proof(_record(depth))


def test_expected_depth_mismatch():
    with pytest.raises(MalformedProofRecord, match="expected 30"):
        adapt_inclusion_proof(_record(20), depth=30)


def test_both_keys_rejected():
    record = _record(20)
    record[4] = {"Left": "0x01", "Right": "0x02"}
    with pytest.raises(MalformedProofRecord, match="proof\\[4\\]"):
        adapt_inclusion_proof(record)


@pytest.mark.parametrize(
    "entry",
    [{}, {"Up": "0x01"}, {"Left": "not-a-number"}, {"Left": None}, "0x01", ["Left", "0x01"]],
)
def test_malformed_entries(entry):
    record = _record(20)
    record[0] = entry
    with pytest.raises(MalformedProofRecord):
        adapt_inclusion_proof(record)


def test_non_sequence_record_rejected():
    with pytest.raises(MalformedProofRecord):
        adapt_inclusion_proof({"Left": "0x01"})


def test_root_is_parsed():
    proof = adapt_inclusion_proof(_record(16), root="0x2a")
    assert proof.root == 42


def test_unreadable_root():
    with pytest.raises(MalformedProofRecord):
        adapt_inclusion_proof(_record(16), root="zz")


def test_to_path_marks_left_siblings():
    proof = MerkleProof(siblings=(7, 8), path_indices=(0, 1))
    assert list(proof.to_path()) == [(7, False), (8, True)]
