"""Tests for circuit artifact resolution."""

from __future__ import annotations

import json

import pytest

from worldid_debug.zk_protocol.snark import assets


def _touch(path):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"\x00")
    return path


def test_per_depth_directory_wins(tmp_path):
    _touch(tmp_path / "depth-20" / "semaphore.wasm")
    _touch(tmp_path / "depth-20" / "semaphore.zkey")
    _touch(tmp_path / "semaphore.wasm")
    _touch(tmp_path / "semaphore.zkey")
    vk = _touch(tmp_path / "depth-20" / "verification_key.json")

    resolved = assets.resolve_artifacts(tmp_path, 20)
    assert resolved.wasm_path == tmp_path / "depth-20" / "semaphore.wasm"
    assert resolved.zkey_path == tmp_path / "depth-20" / "semaphore.zkey"
    assert resolved.verification_key_path == vk
    assert resolved.depth == 20


def test_suffixed_layout(tmp_path):
    _touch(tmp_path / "semaphore_16.wasm")
    _touch(tmp_path / "semaphore_16.zkey")
    resolved = assets.resolve_artifacts(tmp_path, 16)
    assert resolved.wasm_path.name == "semaphore_16.wasm"
    assert resolved.verification_key_path is None


def test_flat_layout_with_default_depth(tmp_path):
    _touch(tmp_path / "semaphore.wasm")
    _touch(tmp_path / "semaphore.zkey")
    vk = _touch(tmp_path / "verification_key.json")
    resolved = assets.resolve_artifacts(tmp_path)
    assert resolved.depth == 30
    assert resolved.verification_key_path == vk


def test_pair_must_be_complete(tmp_path):
    _touch(tmp_path / "semaphore.wasm")
    with pytest.raises(FileNotFoundError, match="Checked"):
        assets.resolve_artifacts(tmp_path, 30)


def test_depth_out_of_range(tmp_path):
    with pytest.raises(ValueError):
        assets.resolve_artifacts(tmp_path, 40)


def test_load_verification_key(tmp_path):
    path = tmp_path / "verification_key.json"
    path.write_text(json.dumps({"protocol": "groth16"}), encoding="utf-8")
    assert assets.load_verification_key(path) == {"protocol": "groth16"}


def test_load_verification_key_size_limit(tmp_path, monkeypatch):
    path = tmp_path / "verification_key.json"
    path.write_text("{}", encoding="utf-8")
    monkeypatch.setattr(assets, "MAX_VK_BYTES", 1)
    with pytest.raises(ValueError, match="exceeds"):
        assets.load_verification_key(path)


def test_verification_key_without_proving_artifacts(tmp_path):
    vk = _touch(tmp_path / "verification_key.json")
    assert assets.resolve_verification_key(tmp_path, 20) == vk
    with pytest.raises(FileNotFoundError):
        assets.resolve_artifacts(tmp_path, 20)


def test_verification_key_per_depth_directory_wins(tmp_path):
    _touch(tmp_path / "verification_key.json")
    vk = _touch(tmp_path / "depth-20" / "verification_key.json")
    assert assets.resolve_verification_key(tmp_path, 20) == vk


def test_verification_key_missing(tmp_path):
    assert assets.resolve_verification_key(tmp_path, 20) is None
