"""Client for the Developer Portal proof verification API."""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from ..zk_protocol.config import CREDENTIAL_TYPE
from ..zk_protocol.exceptions import TransportError, VerificationFailure
from ..zk_protocol.witness import FullProofRecord

logger = logging.getLogger(__name__)

COLLABORATOR = "developer-portal"
DEFAULT_PORTAL_URL = "https://developer.worldcoin.org"
DEFAULT_TIMEOUT = 30.0


class DevPortalClient:
    def __init__(
        self,
        base_url: str = DEFAULT_PORTAL_URL,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._timeout = timeout

    def verify(
        self,
        app_id: str,
        record: FullProofRecord,
        *,
        merkle_root: str,
        signal: str,
        action: str = "",
        credential_type: str = CREDENTIAL_TYPE,
    ) -> None:
        """
        Verify a proof through the Developer Portal.

        ``signal`` and ``action`` are the raw values; the portal hashes them
        itself and must arrive at the record's public inputs.

        Raises:
            VerificationFailure: If the portal rejects the proof.
            TransportError: If the portal cannot be reached.
        """
        url = f"{self._base_url}/api/v1/verify/{app_id}"
        body = {
            "nullifier_hash": record.encoded_nullifier_hash,
            "proof": record.encoded_proof,
            "merkle_root": merkle_root,
            "credential_type": credential_type,
            "action": action,
            "signal": signal,
        }
        try:
            response = self._session.post(
                url,
                json=body,
                headers={"Content-Type": "application/json"},
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise TransportError(COLLABORATOR, f"request to {url} failed: {exc}") from exc

        logger.debug("POST %s -> %s", url, response.status_code)
        if not response.ok:
            raise VerificationFailure(
                COLLABORATOR,
                "proof verification with the Developer Portal failed",
                reason=_error_code(response),
                payload=_body(response),
            )


def _body(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def _error_code(response: requests.Response) -> Optional[str]:
    payload = _body(response)
    if isinstance(payload, dict):
        code = payload.get("code")
        return str(code) if code is not None else None
    return None
