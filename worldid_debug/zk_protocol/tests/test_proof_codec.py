"""Tests for packing snarkjs proofs into the verifier layout."""

from __future__ import annotations

import pytest
from eth_abi import decode as abi_decode
from hypothesis import given, settings
from hypothesis import strategies as st

from worldid_debug.zk_protocol import proof_codec
from worldid_debug.zk_protocol.proof_codec import SnarkProof

SNARKJS_PROOF = {
    "pi_a": ["1", "2", "1"],
    "pi_b": [["3", "4"], ["5", "6"], ["1", "0"]],
    "pi_c": ["7", "8", "1"],
    "protocol": "groth16",
    "curve": "bn128",
}

_scalars = st.integers(min_value=0, max_value=2**256 - 1)


class TestFromSnarkjs:
    def test_drops_projective_coordinates(self):
        proof = SnarkProof.from_snarkjs(SNARKJS_PROOF)
        assert proof.pi_a == (1, 2)
        assert proof.pi_b == ((3, 4), (5, 6))
        assert proof.pi_c == (7, 8)

    def test_accepts_hex(self):
        obj = dict(SNARKJS_PROOF, pi_a=["0x0a", "0x0b"])
        assert SnarkProof.from_snarkjs(obj).pi_a == (10, 11)

    @pytest.mark.parametrize(
        "obj",
        [
            {},
            dict(SNARKJS_PROOF, pi_b=[["3", "4"]]),
            dict(SNARKJS_PROOF, pi_a=["1"]),
            dict(SNARKJS_PROOF, pi_c=["x", "1"]),
            dict(SNARKJS_PROOF, pi_a=["-1", "2"]),
        ],
    )
    def test_rejects_malformed(self, obj):
        with pytest.raises(ValueError):
            SnarkProof.from_snarkjs(obj)

    def test_to_snarkjs(self):
        out = SnarkProof.from_snarkjs(SNARKJS_PROOF).to_snarkjs()
        assert out["pi_b"] == [["3", "4"], ["5", "6"]]
        assert out["protocol"] == "groth16"


class TestPack:
    def test_swaps_g2_coefficients(self):
        packed = proof_codec.pack_proof(SnarkProof.from_snarkjs(SNARKJS_PROOF))
        assert packed == (1, 2, 4, 3, 6, 5, 7, 8)

    def test_unpack_inverts_pack(self):
        proof = SnarkProof.from_snarkjs(SNARKJS_PROOF)
        assert proof_codec.unpack_proof(proof_codec.pack_proof(proof)) == proof

    @settings(max_examples=50)
    @given(st.lists(_scalars, min_size=8, max_size=8))
    def test_pack_inverts_unpack(self, values):
        assert proof_codec.pack_proof(proof_codec.unpack_proof(values)) == tuple(values)

    @pytest.mark.parametrize("flat", [[1] * 7, [1] * 9, [], "12345678"])
    def test_wrong_length(self, flat):
        with pytest.raises(ValueError, match="exactly 8"):
            proof_codec.unpack_proof(flat)

    def test_normalize_reads_strings(self):
        flat = ["1", "0x2", 3, "4", "5", "6", "7", "0x08"]
        assert proof_codec.normalize_packed_proof(flat) == (1, 2, 3, 4, 5, 6, 7, 8)

    @pytest.mark.parametrize("value", [2**256, hex(2**256)])
    def test_rejects_values_beyond_uint256(self, value):
        flat = [1, 2, 3, value, 5, 6, 7, 8]
        with pytest.raises(ValueError, match=r"proof\[3\] does not fit in uint256"):
            proof_codec.normalize_packed_proof(flat)

    def test_accepts_largest_uint256(self):
        flat = [2**256 - 1] * 8
        assert proof_codec.normalize_packed_proof(flat) == tuple(flat)


class TestEncoding:
    def test_encode_uint256(self):
        assert proof_codec.encode_uint256(1) == "0x" + "0" * 63 + "1"

    def test_encode_packed_proof_is_uint256_array(self):
        encoded = proof_codec.encode_packed_proof(range(1, 9))
        assert len(encoded) == 2 + 8 * 64
        (decoded,) = abi_decode(["uint256[8]"], bytes.fromhex(encoded[2:]))
        assert list(decoded) == list(range(1, 9))

    def test_sequencer_shape(self):
        shaped = proof_codec.shape_proof_for_sequencer(range(1, 9))
        word = proof_codec.encode_uint256
        assert shaped == [
            [word(1), word(2)],
            [[word(3), word(4)], [word(5), word(6)]],
            [word(7), word(8)],
        ]
