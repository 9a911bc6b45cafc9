"""
Protocol parameters for the World ID / Semaphore proof pipeline.

These values are fixed by the circuit and the deployed verifier contracts.
Runtime settings (URLs, tokens, app ids) live in ``worldid_debug.settings``.
"""

# ============================================================================
# FIELD
# ============================================================================

# BN254 scalar field order (circom / snarkjs "bn128")
SNARK_SCALAR_FIELD = (
    21888242871839275222246405745257275088548364400416034343698204186575808495617
)
SNARK_SCALAR_FIELD_BITS = 254

# keccak256 output is shifted right by one byte so it always lands in the field
HASH_FUNCTION = "keccak256"
HASH_SHIFT_BITS = 8
DIGEST_HEX_LENGTH = 64

# ============================================================================
# MERKLE TREE
# ============================================================================

MIN_TREE_DEPTH = 16
MAX_TREE_DEPTH = 32
DEFAULT_TREE_DEPTH = 30

# Sequencer inclusion records name the side of each sibling
PATH_INDEX_BY_DIRECTION = {
    "Left": 0,
    "Right": 1,
}

# ============================================================================
# PROOF
# ============================================================================

PROOF_LENGTH = 8
PROOF_PROTOCOL = "groth16"
PROOF_CURVE = "bn128"

# publicSignals emitted by the Semaphore circuit, in order
PUBLIC_SIGNAL_NAMES = ("merkleTreeRoot", "nullifierHash", "signalHash", "externalNullifier")

# ============================================================================
# WORLD ID
# ============================================================================

CREDENTIAL_TYPE = "orb"
DEFAULT_GROUP_ID = 1

# ============================================================================
# VALIDATION
# ============================================================================


def validate_config() -> bool:
    """
    Validate protocol parameters.

    Returns:
        True if configuration is valid

    Raises:
        AssertionError: If configuration is invalid
    """
    assert SNARK_SCALAR_FIELD.bit_length() == SNARK_SCALAR_FIELD_BITS, "Field size mismatch"
    assert 256 - HASH_SHIFT_BITS < SNARK_SCALAR_FIELD_BITS, "Shifted hash may exceed the field"
    assert MIN_TREE_DEPTH <= DEFAULT_TREE_DEPTH <= MAX_TREE_DEPTH, "Default depth out of range"
    assert sorted(PATH_INDEX_BY_DIRECTION.values()) == [0, 1], "Path indices must be 0/1"
    assert PROOF_LENGTH == 8, "Groth16 proofs pack into 8 scalars"
    assert len(PUBLIC_SIGNAL_NAMES) == 4, "Semaphore exposes four public signals"

    return True


# Auto-validate on import
validate_config()
