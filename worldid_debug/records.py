"""CBOR persistence for proof records, so proofs can be verified later."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import cbor2

from .zk_protocol.config import MAX_TREE_DEPTH, MIN_TREE_DEPTH, PROOF_LENGTH, SNARK_SCALAR_FIELD
from .zk_protocol.exceptions import RecordFormatError
from .zk_protocol.witness import FullProofRecord

RECORD_V = 1
MAX_RECORD_BYTES = 16384
MAX_TEXT_CHARS = 1024


@dataclass(frozen=True)
class StoredProof:
    """A proof record plus the inputs needed to re-verify it remotely."""

    record: FullProofRecord
    app_id: str
    action: str
    raw_signal: str
    depth: int

    def validate(self) -> None:
        record = self.record
        for label, value in (
            ("root", record.merkle_root),
            ("nullifier_hash", record.nullifier_hash),
            ("signal", record.signal),
            ("external_nullifier", record.external_nullifier),
        ):
            _require_field_element(value, label)
        if len(record.proof) != PROOF_LENGTH:
            raise RecordFormatError(f"proof must have {PROOF_LENGTH} elements")
        for idx, value in enumerate(record.proof):
            _require_uint256(value, f"proof[{idx}]")
        for label, value in (
            ("app_id", self.app_id),
            ("action", self.action),
            ("raw_signal", self.raw_signal),
        ):
            if not isinstance(value, str):
                raise RecordFormatError(f"{label} must be a string")
            if len(value) > MAX_TEXT_CHARS:
                raise RecordFormatError(f"{label} too long")
        if not isinstance(self.depth, int) or not MIN_TREE_DEPTH <= self.depth <= MAX_TREE_DEPTH:
            raise RecordFormatError("depth out of range")


def encode_stored_proof(stored: StoredProof) -> bytes:
    stored.validate()
    record = stored.record
    payload = {
        "v": RECORD_V,
        "root": record.merkle_root,
        "nullifier_hash": record.nullifier_hash,
        "signal": record.signal,
        "external_nullifier": record.external_nullifier,
        "proof": list(record.proof),
        "app_id": stored.app_id,
        "action": stored.action,
        "raw_signal": stored.raw_signal,
        "depth": stored.depth,
    }
    blob = cbor2.dumps(payload)
    if len(blob) > MAX_RECORD_BYTES:
        raise RecordFormatError("record too large")
    return blob


def decode_stored_proof(blob: bytes) -> StoredProof:
    if not isinstance(blob, (bytes, bytearray)):
        raise RecordFormatError("record blob must be bytes")
    if len(blob) > MAX_RECORD_BYTES:
        raise RecordFormatError("record too large")
    try:
        payload = cbor2.loads(bytes(blob))
    except cbor2.CBORDecodeError as exc:
        raise RecordFormatError(f"record is not valid CBOR: {exc}") from exc
    if not isinstance(payload, Mapping):
        raise RecordFormatError("record payload must be a map")
    if payload.get("v") != RECORD_V:
        raise RecordFormatError("unsupported record version")

    proof = payload.get("proof")
    if not isinstance(proof, list):
        raise RecordFormatError("proof must be a list")
    try:
        record = FullProofRecord(
            merkle_root=_get(payload, "root"),
            nullifier_hash=_get(payload, "nullifier_hash"),
            signal=_get(payload, "signal"),
            external_nullifier=_get(payload, "external_nullifier"),
            proof=tuple(proof),
        )
    except ValueError as exc:
        raise RecordFormatError(str(exc)) from exc

    stored = StoredProof(
        record=record,
        app_id=_get(payload, "app_id"),
        action=_get(payload, "action"),
        raw_signal=_get(payload, "raw_signal"),
        depth=_get(payload, "depth"),
    )
    stored.validate()
    return stored


def write_stored_proof(stored: StoredProof, path: str | Path) -> Path:
    path = Path(path)
    path.write_bytes(encode_stored_proof(stored))
    return path


def read_stored_proof(path: str | Path) -> StoredProof:
    return decode_stored_proof(Path(path).read_bytes())


def _get(payload: Mapping[str, Any], key: str) -> Any:
    if key not in payload:
        raise RecordFormatError(f"record is missing {key}")
    return payload[key]


def _require_uint256(value: Any, label: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise RecordFormatError(f"{label} must be an integer")
    if value < 0 or value >= 2**256:
        raise RecordFormatError(f"{label} out of range")


def _require_field_element(value: Any, label: str) -> None:
    _require_uint256(value, label)
    if value >= SNARK_SCALAR_FIELD:
        raise RecordFormatError(f"{label} outside the scalar field")
