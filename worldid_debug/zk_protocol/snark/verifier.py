"""
Local Groth16 verification over BN254 with py_ecc.

Verification equation:
    e(A, B) == e(alpha1, beta2) * e(VK_x, gamma2) * e(C, delta2)

Verifying keys use the snarkjs JSON layout. Semaphore ships one key file for
every supported depth: ``vk_delta_2`` and ``IC`` then hold one entry per
depth starting at 16.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Mapping, Sequence, Union

from py_ecc.optimized_bn128 import (
    FQ,
    FQ2,
    add,
    b,
    b2,
    curve_order,
    is_on_curve,
    multiply,
    pairing,
)

from ..config import MAX_TREE_DEPTH, MIN_TREE_DEPTH
from ..exceptions import VerificationFailure
from ..proof_codec import SnarkProof, unpack_proof

if TYPE_CHECKING:
    from ..witness import FullProofRecord

logger = logging.getLogger(__name__)

_REQUIRED_VK_KEYS = ("vk_alpha_1", "vk_beta_2", "vk_gamma_2", "vk_delta_2", "IC")


def verify_proof_locally(
    record: "FullProofRecord",
    verification_key: Mapping[str, Any],
    depth: int,
) -> bool:
    """
    Verify a proof record against a Semaphore verification key.

    Args:
        record: Proof record with the packed proof
        verification_key: snarkjs verification key (single or per-depth)
        depth: Merkle tree depth the proof was generated for

    Returns:
        True if the pairing check holds

    Raises:
        ValueError: If depth is outside the supported range or the key is malformed
    """
    if depth < MIN_TREE_DEPTH or depth > MAX_TREE_DEPTH:
        raise ValueError(
            f"tree depth must be between {MIN_TREE_DEPTH} and {MAX_TREE_DEPTH}"
        )
    vk = select_verification_key(verification_key, depth)
    public_signals = [
        record.merkle_root,
        record.nullifier_hash,
        record.signal,
        record.external_nullifier,
    ]
    return verify_groth16(vk, public_signals, unpack_proof(record.proof))


def assert_verified_locally(
    record: "FullProofRecord",
    verification_key: Mapping[str, Any],
    depth: int,
) -> None:
    if not verify_proof_locally(record, verification_key, depth):
        raise VerificationFailure("local", "unable to verify proof locally", reason="InvalidProof")


def select_verification_key(vk: Mapping[str, Any], depth: int) -> dict:
    """
    Pick the ``vk_delta_2`` and ``IC`` entries for ``depth`` from a per-depth key.

    Raises:
        ValueError: If the key is missing entries or has no entry for ``depth``
    """
    if not isinstance(vk, Mapping):
        raise ValueError("verification key must be a JSON object")
    missing = [key for key in _REQUIRED_VK_KEYS if key not in vk]
    if missing:
        raise ValueError(f"verification key is missing {', '.join(missing)}")

    selected = dict(vk)
    delta = vk["vk_delta_2"]
    ic = vk["IC"]
    try:
        per_depth_delta = _is_per_depth(delta)
        per_depth_ic = bool(ic) and _is_per_depth(ic)
    except (IndexError, KeyError, TypeError) as exc:
        raise ValueError(f"malformed verification key: {exc!r}") from exc

    index = depth - MIN_TREE_DEPTH
    try:
        if per_depth_delta:
            selected["vk_delta_2"] = delta[index]
        if per_depth_ic:
            selected["IC"] = ic[index]
    except IndexError as exc:
        raise ValueError(f"verification key has no entry for depth {depth}") from exc
    return selected


def verify_groth16(
    vk: Mapping[str, Any],
    public_signals: Sequence[Union[int, str]],
    proof: SnarkProof,
) -> bool:
    inputs = [_to_int(v) for v in public_signals]
    if any(v < 0 or v >= curve_order for v in inputs):
        logger.debug("public signal outside the scalar field")
        return False

    try:
        ic = [_g1(point) for point in vk["IC"]]
        alpha1 = _g1(vk["vk_alpha_1"])
        beta2 = _g2(vk["vk_beta_2"])
        gamma2 = _g2(vk["vk_gamma_2"])
        delta2 = _g2(vk["vk_delta_2"])
    except (IndexError, KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"malformed verification key: {exc!r}") from exc

    if len(ic) != len(inputs) + 1:
        logger.debug("verification key expects %d inputs, got %d", len(ic) - 1, len(inputs))
        return False

    proof_a = _g1(proof.pi_a)
    proof_b = _g2(proof.pi_b)
    proof_c = _g1(proof.pi_c)

    g1_points = [alpha1, proof_a, proof_c] + ic
    g2_points = [beta2, gamma2, delta2, proof_b]
    if not all(is_on_curve(p, b) for p in g1_points):
        logger.debug("G1 point not on curve")
        return False
    if not all(is_on_curve(q, b2) for q in g2_points):
        logger.debug("G2 point not on curve")
        return False

    vk_x = ic[0]
    for point, value in zip(ic[1:], inputs):
        vk_x = add(vk_x, multiply(point, value))

    lhs = pairing(proof_b, proof_a)
    rhs = pairing(beta2, alpha1) * pairing(gamma2, vk_x) * pairing(delta2, proof_c)
    return lhs == rhs


def _is_per_depth(value: Any) -> bool:
    return isinstance(value[0][0], list)


def _to_int(value: Union[int, str]) -> int:
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if text.lower().startswith("0x"):
        return int(text, 16)
    return int(text)


def _g1(coords: Sequence[Union[int, str]]):
    x, y = _to_int(coords[0]), _to_int(coords[1])
    if x == 0 and y == 0:
        return (FQ(1), FQ(1), FQ(0))
    return (FQ(x), FQ(y), FQ(1))


def _g2(coords: Sequence[Sequence[Union[int, str]]]):
    x0, x1 = _to_int(coords[0][0]), _to_int(coords[0][1])
    y0, y1 = _to_int(coords[1][0]), _to_int(coords[1][1])
    if x0 == 0 and x1 == 0 and y0 == 0 and y1 == 0:
        return (FQ2([1, 0]), FQ2([1, 0]), FQ2([0, 0]))
    return (FQ2([x0, x1]), FQ2([y0, y1]), FQ2([1, 0]))
