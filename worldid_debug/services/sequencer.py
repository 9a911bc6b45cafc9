"""Client for the World ID sequencer HTTP API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional

import requests

from ..zk_protocol.exceptions import TransportError, VerificationFailure
from ..zk_protocol.hashing import to_digest
from ..zk_protocol.merkle import MerkleProof, adapt_inclusion_proof
from ..zk_protocol.proof_codec import shape_proof_for_sequencer
from ..zk_protocol.witness import FullProofRecord

logger = logging.getLogger(__name__)

COLLABORATOR = "sequencer"
DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class InclusionProof:
    root: str
    proof: List[Mapping[str, Any]]

    def to_merkle_proof(self, depth: Optional[int] = None) -> MerkleProof:
        return adapt_inclusion_proof(self.proof, root=self.root, depth=depth)


class SequencerClient:
    def __init__(
        self,
        base_url: str,
        auth_token: Optional[str] = None,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._base_url = base_url if base_url.endswith("/") else f"{base_url}/"
        self._auth_token = auth_token
        self._session = session or requests.Session()
        self._timeout = timeout

    def insert_identity(self, commitment: int, group_id: Optional[int] = None) -> None:
        """
        Insert an identity commitment into the tree.

        Raises:
            TransportError: If the sequencer refuses the insertion.
        """
        response = self._post("insertIdentity", self._commitment_body(commitment, group_id))
        if not response.ok:
            raise TransportError(
                COLLABORATOR,
                "identity commitment not inserted",
                status_code=response.status_code,
                payload=_body(response),
            )
        logger.debug("inserted commitment %s", to_digest(commitment))

    def inclusion_proof(
        self, commitment: int, group_id: Optional[int] = None
    ) -> Optional[InclusionProof]:
        """
        Fetch the Merkle inclusion proof for a commitment.

        Returns:
            InclusionProof, or None while the sequencer still answers 202
            (the commitment is not in a processed batch yet).

        Raises:
            TransportError: On any other non-200 answer or malformed body.
        """
        response = self._post("inclusionProof", self._commitment_body(commitment, group_id))
        if response.status_code == 202:
            logger.debug("inclusion proof not ready for %s", to_digest(commitment))
            return None
        if not response.ok:
            raise TransportError(
                COLLABORATOR,
                "could not fetch inclusion proof",
                status_code=response.status_code,
                payload=_body(response),
            )

        payload = _body(response)
        if (
            not isinstance(payload, Mapping)
            or not isinstance(payload.get("root"), str)
            or not isinstance(payload.get("proof"), list)
        ):
            raise TransportError(
                COLLABORATOR,
                "inclusion proof response must contain root and proof",
                status_code=response.status_code,
                payload=payload,
            )
        return InclusionProof(root=payload["root"], proof=payload["proof"])

    def verify_semaphore_proof(self, record: FullProofRecord) -> None:
        """
        Ask the sequencer to verify a proof.

        Raises:
            VerificationFailure: If the sequencer rejects the proof.
        """
        body = {
            "nullifierHash": record.encoded_nullifier_hash,
            "proof": shape_proof_for_sequencer(record.proof),
            "root": record.encoded_merkle_root,
            "signalHash": to_digest(record.signal),
            "externalNullifierHash": to_digest(record.external_nullifier),
        }
        response = self._post("verifySemaphoreProof", body, authenticated=False)
        if not response.ok:
            raise VerificationFailure(
                COLLABORATOR,
                "proof verification with the sequencer failed",
                payload=_body(response),
            )

    def _commitment_body(self, commitment: int, group_id: Optional[int]) -> list:
        encoded = to_digest(commitment)
        if group_id is None:
            return [encoded]
        return [group_id, encoded]

    def _post(self, path: str, body: Any, *, authenticated: bool = True) -> requests.Response:
        url = f"{self._base_url}{path}"
        headers = {"Content-Type": "application/json"}
        if authenticated and self._auth_token:
            headers["Authorization"] = f"Basic {self._auth_token}"
        try:
            response = self._session.post(url, json=body, headers=headers, timeout=self._timeout)
        except requests.RequestException as exc:
            raise TransportError(COLLABORATOR, f"request to {url} failed: {exc}") from exc
        logger.debug("POST %s -> %s", url, response.status_code)
        return response


def _body(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
