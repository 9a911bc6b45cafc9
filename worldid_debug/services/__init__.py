"""Remote verification collaborators: sequencer, Developer Portal, chain."""

from .diagnostics import CheckResult, ProofSubmission, check_proof
from .onchain import OnChainVerifier, decode_revert, resolve_ens_address
from .portal import DevPortalClient
from .sequencer import InclusionProof, SequencerClient

__all__ = [
    "CheckResult",
    "ProofSubmission",
    "check_proof",
    "OnChainVerifier",
    "decode_revert",
    "resolve_ens_address",
    "DevPortalClient",
    "InclusionProof",
    "SequencerClient",
]
