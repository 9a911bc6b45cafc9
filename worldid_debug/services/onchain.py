"""On-chain proof verification through the World ID verifier contract."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional, Sequence

import requests
from web3 import Web3
from web3.exceptions import ContractCustomError, ContractLogicError, Web3Exception

from ..zk_protocol.exceptions import ConfigurationError, TransportError, VerificationFailure
from ..zk_protocol.hashing import keccak256
from ..zk_protocol.proof_codec import normalize_packed_proof
from ..zk_protocol.witness import FullProofRecord

if TYPE_CHECKING:
    from ..settings import Settings

logger = logging.getLogger(__name__)

COLLABORATOR = "on-chain"

def _verify_proof_abi(first: str, second: str) -> list:
    return [
        {
            "inputs": [
                {"internalType": "uint256", "name": first, "type": "uint256"},
                {"internalType": "uint256", "name": second, "type": "uint256"},
                {"internalType": "uint256", "name": "signalHash", "type": "uint256"},
                {"internalType": "uint256", "name": "nullifierHash", "type": "uint256"},
                {"internalType": "uint256", "name": "externalNullifierHash", "type": "uint256"},
                {"internalType": "uint256[8]", "name": "proof", "type": "uint256[8]"},
            ],
            "name": "verifyProof",
            "outputs": [],
            "stateMutability": "view",
            "type": "function",
        }
    ]


# The World ID router takes the group id first; the legacy Semaphore
# contract behind semaphore.wld.eth takes the root first.
VERIFIER_ABIS: Dict[str, list] = {
    "router": _verify_proof_abi("groupId", "root"),
    "semaphore": _verify_proof_abi("root", "groupId"),
}

# Custom errors the router and Semaphore verifiers revert with
KNOWN_ERRORS = (
    "InvalidProof()",
    "ProofInvalid()",
    "InvalidRoot()",
    "NonExistentRoot()",
    "ExpiredRoot()",
    "NoSuchGroup(uint256)",
)


def error_selector(signature: str) -> str:
    return "0x" + keccak256(signature.encode("ascii"))[:4].hex()


ERROR_SELECTORS: Dict[str, str] = {
    error_selector(sig): sig.split("(")[0] for sig in KNOWN_ERRORS
}


def decode_revert(exc: ContractLogicError) -> Optional[str]:
    """Map a contract revert to the name of a known custom error."""
    candidates = [getattr(exc, "data", None), *exc.args]
    for candidate in candidates:
        if isinstance(candidate, str) and candidate.startswith("0x"):
            name = ERROR_SELECTORS.get(candidate[:10].lower())
            if name is not None:
                return name
    return None


def resolve_ens_address(name: str, rpc_url: str, *, timeout: float = 30.0) -> str:
    """
    Resolve the verifier address from its ENS name on mainnet.

    Raises:
        ConfigurationError: If the name does not resolve.
        TransportError: If the ENS RPC endpoint cannot be reached.
    """
    web3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))
    try:
        address = web3.ens.address(name)
    except (Web3Exception, requests.RequestException) as exc:
        raise TransportError("ens", f"could not resolve {name}: {exc}") from exc
    if address is None:
        raise ConfigurationError(f"ENS name {name} does not resolve to an address")
    logger.debug("resolved %s -> %s", name, address)
    return address


class OnChainVerifier:
    def __init__(self, web3: Any, address: str, kind: str = "router") -> None:
        if kind not in VERIFIER_ABIS:
            raise ConfigurationError(
                f"unknown verifier kind {kind!r}, expected one of: {', '.join(VERIFIER_ABIS)}"
            )
        self.address = Web3.to_checksum_address(address)
        self.kind = kind
        self._contract = web3.eth.contract(address=self.address, abi=VERIFIER_ABIS[kind])

    @classmethod
    def from_settings(cls, settings: "Settings") -> "OnChainVerifier":
        """
        Build a verifier for the configured contract.

        Without ``CONTRACT_ADDRESS`` the legacy Semaphore contract is resolved
        by ENS name. ``VERIFIER_KIND`` overrides the kind implied by that choice.
        """
        if settings.contract_address:
            address = settings.contract_address
            kind = settings.verifier_kind or "router"
        else:
            address = resolve_ens_address(
                settings.verifier_ens_name,
                settings.ens_rpc_url,
                timeout=settings.http_timeout,
            )
            kind = settings.verifier_kind or "semaphore"
        web3 = Web3(
            Web3.HTTPProvider(settings.rpc_url, request_kwargs={"timeout": settings.http_timeout})
        )
        return cls(web3, address, kind)

    def verify(
        self,
        record: FullProofRecord,
        group_id: int,
        *,
        signal_hash: Optional[int] = None,
        external_nullifier: Optional[int] = None,
    ) -> None:
        """
        Verify a proof record with a read-only contract call.

        ``signal_hash`` and ``external_nullifier`` override the record's
        values, which lets callers try a different encoding of the same proof.

        Raises:
            VerificationFailure: If the contract reverts.
            TransportError: If the RPC call fails.
        """
        self.verify_raw(
            group_id=group_id,
            root=record.merkle_root,
            signal_hash=record.signal if signal_hash is None else signal_hash,
            nullifier_hash=record.nullifier_hash,
            external_nullifier=(
                record.external_nullifier if external_nullifier is None else external_nullifier
            ),
            proof=record.proof,
        )

    def verify_raw(
        self,
        *,
        group_id: int,
        root: int,
        signal_hash: int,
        nullifier_hash: int,
        external_nullifier: int,
        proof: Sequence[int],
    ) -> None:
        if self.kind == "semaphore":
            leading = (root, group_id)
        else:
            leading = (group_id, root)
        call = self._contract.functions.verifyProof(
            *leading,
            signal_hash,
            nullifier_hash,
            external_nullifier,
            list(normalize_packed_proof(proof)),
        )
        try:
            call.call()
        except ContractCustomError as exc:
            name = decode_revert(exc)
            raise VerificationFailure(
                COLLABORATOR,
                f"verifier reverted with {name or 'an unknown error'}",
                reason=name,
                payload=getattr(exc, "data", None) or str(exc),
            ) from exc
        except ContractLogicError as exc:
            raise VerificationFailure(
                COLLABORATOR,
                f"verifier reverted: {exc}",
                reason=decode_revert(exc),
                payload=getattr(exc, "data", None) or str(exc),
            ) from exc
        except (Web3Exception, requests.RequestException) as exc:
            raise TransportError("rpc", f"verifyProof call failed: {exc}") from exc
        logger.debug("proof verified by %s", self.address)
