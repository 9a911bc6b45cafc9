"""Conversion between snarkjs Groth16 proofs and the 8-scalar verifier layout."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Sequence, Tuple, Union

from eth_abi import encode as abi_encode

from .config import PROOF_CURVE, PROOF_LENGTH, PROOF_PROTOCOL

Scalar = int
PackedProof = Tuple[int, ...]


@dataclass(frozen=True)
class SnarkProof:
    """Groth16 proof in the prover's native (affine) layout."""

    pi_a: Tuple[int, int]
    pi_b: Tuple[Tuple[int, int], Tuple[int, int]]
    pi_c: Tuple[int, int]

    @classmethod
    def from_snarkjs(cls, obj: Mapping[str, Any]) -> "SnarkProof":
        """
        Build from a snarkjs ``proof.json`` object.

        snarkjs emits projective coordinates (a trailing ``"1"`` element or
        row); only the affine part is kept.
        """
        try:
            pi_a = obj["pi_a"]
            pi_b = obj["pi_b"]
            pi_c = obj["pi_c"]
        except (KeyError, TypeError) as exc:
            raise ValueError("snarkjs proof must contain pi_a, pi_b and pi_c") from exc
        if isinstance(pi_b, (str, bytes)) or len(pi_b) < 2:
            raise ValueError("pi_b must hold at least two rows")

        return cls(
            pi_a=_pair(pi_a, "pi_a"),
            pi_b=(_pair(pi_b[0], "pi_b[0]"), _pair(pi_b[1], "pi_b[1]")),
            pi_c=_pair(pi_c, "pi_c"),
        )

    def to_snarkjs(self) -> dict:
        return {
            "pi_a": [str(v) for v in self.pi_a],
            "pi_b": [[str(v) for v in row] for row in self.pi_b],
            "pi_c": [str(v) for v in self.pi_c],
            "protocol": PROOF_PROTOCOL,
            "curve": PROOF_CURVE,
        }


def pack_proof(proof: SnarkProof) -> PackedProof:
    """
    Pack a native proof into the verifier's flat layout.

    The two coefficients inside each ``pi_b`` row are swapped: the verifier
    contract reads G2 coordinates as (imaginary, real).
    """
    return (
        proof.pi_a[0],
        proof.pi_a[1],
        proof.pi_b[0][1],
        proof.pi_b[0][0],
        proof.pi_b[1][1],
        proof.pi_b[1][0],
        proof.pi_c[0],
        proof.pi_c[1],
    )


def unpack_proof(flat: Sequence[Union[int, str]]) -> SnarkProof:
    """Inverse of :func:`pack_proof`."""
    values = normalize_packed_proof(flat)
    return SnarkProof(
        pi_a=(values[0], values[1]),
        pi_b=((values[3], values[2]), (values[5], values[4])),
        pi_c=(values[6], values[7]),
    )


def normalize_packed_proof(flat: Sequence[Union[int, str]]) -> PackedProof:
    if isinstance(flat, (str, bytes)) or len(flat) != PROOF_LENGTH:
        raise ValueError(f"packed proof must have exactly {PROOF_LENGTH} elements")
    return tuple(_scalar(value, f"proof[{idx}]") for idx, value in enumerate(flat))


def encode_uint256(value: int) -> str:
    """ABI-encode a single uint256 as a ``0x`` hex string."""
    return "0x" + abi_encode(["uint256"], [value]).hex()


def encode_packed_proof(flat: Sequence[Union[int, str]]) -> str:
    """ABI-encode the flat proof as ``uint256[8]``."""
    values = list(normalize_packed_proof(flat))
    return "0x" + abi_encode([f"uint256[{PROOF_LENGTH}]"], [values]).hex()


def shape_proof_for_sequencer(flat: Sequence[Union[int, str]]) -> List[Any]:
    """
    Nest the flat proof the way the sequencer's ``verifySemaphoreProof`` expects.

    The nesting follows the packed order (the ``pi_b`` swap is kept).
    """
    values = [encode_uint256(v) for v in normalize_packed_proof(flat)]
    return [
        [values[0], values[1]],
        [[values[2], values[3]], [values[4], values[5]]],
        [values[6], values[7]],
    ]


def _scalar(value: Union[int, str], label: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{label} must be an integer")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str):
        text = value.strip()
        try:
            number = int(text, 16) if text.lower().startswith("0x") else int(text, 10)
        except ValueError as exc:
            raise ValueError(f"{label} is not numeric: {value!r}") from exc
    else:
        raise ValueError(f"{label} must be int or str, got {type(value).__name__}")
    if number < 0:
        raise ValueError(f"{label} must be non-negative")
    if number >= 2**256:
        raise ValueError(f"{label} does not fit in uint256")
    return number


def _pair(values: Sequence[Union[int, str]], label: str) -> Tuple[int, int]:
    if isinstance(values, (str, bytes)) or len(values) < 2:
        raise ValueError(f"{label} must hold at least two coordinates")
    return _scalar(values[0], f"{label}[0]"), _scalar(values[1], f"{label}[1]")
