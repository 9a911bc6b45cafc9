"""
Custom exceptions for the World ID proof pipeline.

Every failure carries enough context to tell which stage (or which remote
collaborator) produced it. Nothing in the pipeline retries on these.
"""

from __future__ import annotations

from typing import Any


class WorldIDDebugError(Exception):
    """Base exception for the proof pipeline and its collaborators."""

    pass


class ConfigurationError(WorldIDDebugError):
    """Configuration error."""

    pass


class MalformedProofRecord(WorldIDDebugError):
    """Sequencer inclusion record has the wrong shape or length."""

    pass


class HashingInputError(WorldIDDebugError):
    """Input cannot be mapped to a field element with the requested encoding."""

    pass


class ProvingBackendError(WorldIDDebugError):
    """Opaque failure reported by the proving backend."""

    pass


class RecordFormatError(WorldIDDebugError):
    """A persisted proof record failed schema validation."""

    pass


class VerificationFailure(WorldIDDebugError):
    """
    A verifier rejected the proof.

    Attributes:
        source: Which verifier rejected it ("local", "on-chain",
            "sequencer", "developer-portal").
        reason: Short machine-readable reason when known (e.g. a revert name).
        payload: Raw collaborator response, kept verbatim.
    """

    def __init__(
        self,
        source: str,
        message: str,
        *,
        reason: str | None = None,
        payload: Any = None,
    ) -> None:
        super().__init__(f"[{source}] {message}")
        self.source = source
        self.reason = reason
        self.payload = payload


class TransportError(WorldIDDebugError):
    """
    An HTTP or RPC call failed before a verdict could be obtained.

    Attributes:
        collaborator: Name of the remote side ("sequencer", "rpc", ...).
        status_code: HTTP status when one was received.
        payload: Raw response body when one was received.
    """

    def __init__(
        self,
        collaborator: str,
        message: str,
        *,
        status_code: int | None = None,
        payload: Any = None,
    ) -> None:
        super().__init__(f"[{collaborator}] {message}")
        self.collaborator = collaborator
        self.status_code = status_code
        self.payload = payload
