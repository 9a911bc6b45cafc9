"""Helpers to resolve Semaphore circuit artifacts with backward-compatible fallbacks."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Tuple

from ..config import DEFAULT_TREE_DEPTH, MAX_TREE_DEPTH, MIN_TREE_DEPTH

MAX_VK_BYTES = 4 * 1024 * 1024


@dataclass(frozen=True)
class CircuitArtifacts:
    wasm_path: Path
    zkey_path: Path
    verification_key_path: Optional[Path] = None
    depth: int = DEFAULT_TREE_DEPTH


def resolve_artifacts(
    base_dir: str | Path,
    depth: int | None = None,
) -> CircuitArtifacts:
    """
    Resolve circuit program, proving key and verification key paths.

    Layouts checked, in order:
        <base>/depth-<d>/semaphore.{wasm,zkey}
        <base>/semaphore_<d>.{wasm,zkey}
        <base>/semaphore.{wasm,zkey}
    """
    depth_value = _normalize_depth(depth)
    base_dir = Path(base_dir)

    candidates = [
        (
            base_dir / f"depth-{depth_value}" / "semaphore.wasm",
            base_dir / f"depth-{depth_value}" / "semaphore.zkey",
        ),
        (
            base_dir / f"semaphore_{depth_value}.wasm",
            base_dir / f"semaphore_{depth_value}.zkey",
        ),
        (
            base_dir / "semaphore.wasm",
            base_dir / "semaphore.zkey",
        ),
    ]
    wasm_path, zkey_path = _first_existing_pair(
        candidates, f"semaphore depth-{depth_value} artifacts"
    )

    return CircuitArtifacts(
        wasm_path=wasm_path,
        zkey_path=zkey_path,
        verification_key_path=resolve_verification_key(base_dir, depth_value),
        depth=depth_value,
    )


def resolve_verification_key(
    base_dir: str | Path,
    depth: int | None = None,
) -> Optional[Path]:
    """
    Find verification_key.json without requiring the proving artifacts.

    Layouts checked, in order:
        <base>/depth-<d>/verification_key.json
        <base>/verification_key.json
    """
    depth_value = _normalize_depth(depth)
    base_dir = Path(base_dir)
    candidates = [
        base_dir / f"depth-{depth_value}" / "verification_key.json",
        base_dir / "verification_key.json",
    ]
    return next((path for path in candidates if path.exists()), None)


def load_verification_key(path: str | Path) -> dict:
    path = Path(path)
    size = path.stat().st_size
    if size > MAX_VK_BYTES:
        raise ValueError(f"verification key exceeds {MAX_VK_BYTES} bytes: {path}")
    with path.open("r", encoding="utf-8") as fh:
        return json.load(fh)


def _normalize_depth(depth: int | None) -> int:
    if depth is None:
        return DEFAULT_TREE_DEPTH
    if depth < MIN_TREE_DEPTH or depth > MAX_TREE_DEPTH:
        raise ValueError(
            f"tree depth must be between {MIN_TREE_DEPTH} and {MAX_TREE_DEPTH}"
        )
    return depth


def _first_existing_pair(
    candidates: Iterable[Tuple[Path, Path]],
    label: str,
) -> Tuple[Path, Path]:
    candidates = list(candidates)
    for wasm_path, zkey_path in candidates:
        if wasm_path.exists() and zkey_path.exists():
            return wasm_path, zkey_path
    checked = "; ".join(f"{wasm}, {zkey}" for wasm, zkey in candidates)
    raise FileNotFoundError(f"Unable to resolve {label}. Checked: {checked}")
