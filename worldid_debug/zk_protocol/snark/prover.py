"""Proving backend callbacks backed by the snarkjs / Semaphore JS toolchain."""

from __future__ import annotations

import json
import logging
import shutil
import subprocess
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping, Optional, Protocol, Sequence, Tuple

from ..exceptions import ProvingBackendError
from ..proof_codec import SnarkProof
from .assets import CircuitArtifacts

if TYPE_CHECKING:
    from ..identity import Identity

logger = logging.getLogger(__name__)

DEFAULT_PROVER_TIMEOUT = 120
DEFAULT_NODE_TIMEOUT = 30

_COMMITMENT_SCRIPT = (
    "const { Identity } = require('@semaphore-protocol/identity');"
    "const identity = new Identity(process.argv[1]);"
    "process.stdout.write(identity.commitment.toString());"
)


class CircuitInput(Protocol):
    def as_circuit_input(self) -> Mapping[str, Any]:
        ...


@dataclass(frozen=True)
class ProverOutput:
    proof: SnarkProof
    public_signals: Tuple[int, ...]


class ProvingBackend(Protocol):
    def full_prove(self, witness: CircuitInput, artifacts: CircuitArtifacts) -> ProverOutput:
        ...


class SnarkjsBackend:
    """Run ``snarkjs groth16 fullprove`` in a scratch directory."""

    def __init__(
        self,
        snarkjs: str = "snarkjs",
        timeout: float = DEFAULT_PROVER_TIMEOUT,
    ) -> None:
        self._snarkjs = snarkjs
        self._timeout = timeout

    def full_prove(self, witness: CircuitInput, artifacts: CircuitArtifacts) -> ProverOutput:
        binary = shutil.which(self._snarkjs)
        if binary is None:
            raise ProvingBackendError(f"missing prover binary: {self._snarkjs}")
        if not Path(artifacts.wasm_path).exists():
            raise ProvingBackendError(f"missing circuit program: {artifacts.wasm_path}")
        if not Path(artifacts.zkey_path).exists():
            raise ProvingBackendError(f"missing proving key: {artifacts.zkey_path}")

        with tempfile.TemporaryDirectory() as tmp_dir:
            input_path = Path(tmp_dir) / "input.json"
            proof_path = Path(tmp_dir) / "proof.json"
            public_path = Path(tmp_dir) / "public.json"
            input_path.write_text(json.dumps(dict(witness.as_circuit_input())), encoding="utf-8")

            _run_tool(
                [
                    binary,
                    "groth16",
                    "fullprove",
                    str(input_path),
                    str(artifacts.wasm_path),
                    str(artifacts.zkey_path),
                    str(proof_path),
                    str(public_path),
                ],
                timeout=self._timeout,
                label="prover",
            )
            try:
                proof_json = json.loads(proof_path.read_text(encoding="utf-8"))
                public_json = json.loads(public_path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as exc:
                raise ProvingBackendError(f"prover produced unreadable output: {exc}") from exc

        return parse_prover_output(proof_json, public_json)


class NodeIdentityHasher:
    """Compute identity commitments with ``@semaphore-protocol/identity`` under node."""

    def __init__(
        self,
        node: str = "node",
        cwd: Optional[Path | str] = None,
        timeout: float = DEFAULT_NODE_TIMEOUT,
    ) -> None:
        self._node = node
        self._cwd = cwd
        self._timeout = timeout

    def commitment(self, identity: "Identity") -> int:
        binary = shutil.which(self._node)
        if binary is None:
            raise ProvingBackendError(f"missing node binary: {self._node}")
        stdout = _run_tool(
            [binary, "-e", _COMMITMENT_SCRIPT, identity.serialize()],
            timeout=self._timeout,
            label="identity library",
            cwd=self._cwd,
        )
        try:
            return int(stdout.strip())
        except ValueError as exc:
            raise ProvingBackendError(
                f"identity library returned a non-numeric commitment: {stdout!r}"
            ) from exc


def parse_prover_output(proof_json: Mapping[str, Any], public_json: Sequence[Any]) -> ProverOutput:
    try:
        proof = SnarkProof.from_snarkjs(proof_json)
        public_signals = tuple(int(str(v), 0) for v in public_json)
    except (TypeError, ValueError) as exc:
        raise ProvingBackendError(f"prover output has an unexpected shape: {exc}") from exc
    if len(public_signals) < 2:
        raise ProvingBackendError("prover output is missing root and nullifier hash")
    return ProverOutput(proof=proof, public_signals=public_signals)


def _run_tool(
    command: Sequence[str],
    *,
    timeout: float,
    label: str,
    cwd: Optional[Path | str] = None,
) -> str:
    logger.debug("running %s: %s", label, " ".join(command[:3]))
    started = time.monotonic()
    try:
        result = subprocess.run(
            list(command),
            capture_output=True,
            text=True,
            check=False,
            timeout=timeout,
            cwd=cwd,
        )
    except subprocess.TimeoutExpired as exc:
        raise ProvingBackendError(f"{label} timed out after {timeout}s") from exc
    except OSError as exc:
        raise ProvingBackendError(f"{label} could not start: {exc}") from exc

    logger.debug("%s finished in %.2fs", label, time.monotonic() - started)
    if result.returncode != 0:
        stderr = result.stderr.strip() or result.stdout.strip() or f"unknown {label} error"
        raise ProvingBackendError(f"{label} failed: {stderr}")
    return result.stdout
