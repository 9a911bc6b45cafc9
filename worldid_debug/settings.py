"""
Runtime settings for the debugging tools.

Resolved in precedence order: explicit overrides, process environment,
``.env`` file, built-in defaults. Only the CLI resolves settings; pipeline
functions receive the values they need as arguments.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Final, Mapping, Optional

from dotenv import dotenv_values

from .zk_protocol.config import (
    CREDENTIAL_TYPE,
    DEFAULT_GROUP_ID,
    DEFAULT_TREE_DEPTH,
    MAX_TREE_DEPTH,
    MIN_TREE_DEPTH,
)
from .zk_protocol.exceptions import ConfigurationError

_VALID_ENVIRONMENTS: Final[tuple[str, ...]] = ("staging", "prod")
_VALID_VERIFIER_KINDS: Final[tuple[str, ...]] = ("router", "semaphore")
_DEFAULT_ENVIRONMENT: Final[str] = "staging"

_RPC_URLS: Final[dict[str, str]] = {
    "staging": "https://rpc-mumbai.maticvigil.com/",
    "prod": "https://polygon-rpc.com",
}
_VERIFIER_ENS_NAMES: Final[dict[str, str]] = {
    "staging": "staging.semaphore.wld.eth",
    "prod": "semaphore.wld.eth",
}
_DEFAULT_ENS_RPC_URL: Final[str] = "https://nodes.mewapi.io/rpc/eth"
_DEFAULT_SEQUENCER_URI: Final[str] = "https://signup-batching.stage-crypto.worldcoin.dev/"
_DEFAULT_DEV_PORTAL_URL: Final[str] = "https://developer.worldcoin.org"
_DEFAULT_ARTIFACTS_DIR: Final[str] = "./semaphore"
_DEFAULT_HTTP_TIMEOUT: Final[float] = 30.0

# Settings field -> environment variable
_ENV_KEYS: Final[dict[str, str]] = {
    "environment": "WORLDID_ENV",
    "sequencer_uri": "SEQUENCER_URI",
    "auth_token": "AUTH_TOKEN",
    "app_id": "APP_ID",
    "action": "ACTION",
    "credential_type": "CREDENTIAL_TYPE",
    "group_id": "GROUP_ID",
    "rpc_url": "RPC_URL",
    "ens_rpc_url": "ENS_RPC_URL",
    "contract_address": "CONTRACT_ADDRESS",
    "verifier_ens_name": "VERIFIER_ENS_NAME",
    "verifier_kind": "VERIFIER_KIND",
    "dev_portal_url": "DEV_PORTAL_URL",
    "artifacts_dir": "SEMAPHORE_ARTIFACTS_DIR",
    "tree_depth": "TREE_DEPTH",
    "http_timeout": "HTTP_TIMEOUT",
}


@dataclass(frozen=True)
class Settings:
    environment: str = _DEFAULT_ENVIRONMENT
    sequencer_uri: str = _DEFAULT_SEQUENCER_URI
    auth_token: Optional[str] = None
    app_id: str = ""
    action: str = ""
    credential_type: str = CREDENTIAL_TYPE
    group_id: int = DEFAULT_GROUP_ID
    rpc_url: str = _RPC_URLS[_DEFAULT_ENVIRONMENT]
    ens_rpc_url: str = _DEFAULT_ENS_RPC_URL
    contract_address: Optional[str] = None
    verifier_ens_name: str = _VERIFIER_ENS_NAMES[_DEFAULT_ENVIRONMENT]
    verifier_kind: Optional[str] = None
    dev_portal_url: str = _DEFAULT_DEV_PORTAL_URL
    artifacts_dir: Path = Path(_DEFAULT_ARTIFACTS_DIR)
    tree_depth: int = DEFAULT_TREE_DEPTH
    http_timeout: float = _DEFAULT_HTTP_TIMEOUT

    def require_auth_token(self) -> str:
        if not self.auth_token:
            raise ConfigurationError("no auth token provided (set AUTH_TOKEN)")
        return self.auth_token

    def require_app_id(self) -> str:
        if not self.app_id:
            raise ConfigurationError("no app id provided (set APP_ID or pass --app-id)")
        return self.app_id


def load_settings(
    env_file: str | Path | None = ".env",
    environ: Mapping[str, str] | None = None,
    **overrides: Any,
) -> Settings:
    """
    Build settings from overrides, environment and an optional ``.env`` file.

    Args:
        env_file: Path to a dotenv file; missing files are ignored
        environ: Environment mapping (defaults to ``os.environ``)
        **overrides: Settings field values; ``None`` means "not given"

    Returns:
        Settings instance.

    Raises:
        ConfigurationError: If a provided value is invalid.
    """
    unknown = set(overrides) - {f.name for f in fields(Settings)}
    if unknown:
        raise ConfigurationError(f"Unknown settings: {', '.join(sorted(unknown))}")

    file_values: dict[str, Optional[str]] = {}
    if env_file is not None and Path(env_file).is_file():
        file_values = dict(dotenv_values(env_file))
    env = os.environ if environ is None else environ

    raw: dict[str, Any] = {}
    for name, key in _ENV_KEYS.items():
        value = overrides.get(name)
        if value is None or value == "":
            value = env.get(key) or file_values.get(key) or None
        if value is not None:
            raw[name] = value

    environment = _normalize_environment(raw.get("environment"))
    raw["environment"] = environment
    raw.setdefault("rpc_url", _RPC_URLS[environment])
    raw.setdefault("verifier_ens_name", _VERIFIER_ENS_NAMES[environment])

    if "group_id" in raw:
        raw["group_id"] = _parse_int(raw["group_id"], "GROUP_ID")
    if "tree_depth" in raw:
        raw["tree_depth"] = _parse_depth(raw["tree_depth"])
    if "http_timeout" in raw:
        raw["http_timeout"] = _parse_timeout(raw["http_timeout"])
    if "verifier_kind" in raw:
        raw["verifier_kind"] = _parse_verifier_kind(raw["verifier_kind"])
    if "artifacts_dir" in raw:
        raw["artifacts_dir"] = Path(raw["artifacts_dir"])
    if "sequencer_uri" in raw and not str(raw["sequencer_uri"]).endswith("/"):
        raw["sequencer_uri"] = f"{raw['sequencer_uri']}/"

    return Settings(**raw)


def _format_valid_options() -> str:
    return ", ".join(_VALID_ENVIRONMENTS)


def _normalize_environment(value: Any) -> str:
    if value is None or value == "":
        return _DEFAULT_ENVIRONMENT
    if not isinstance(value, str) or value not in _VALID_ENVIRONMENTS:
        raise ConfigurationError(
            f"Invalid environment: {value!r}. Valid options: {_format_valid_options()}"
        )
    return value


def _parse_int(value: Any, label: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{label} must be an integer, got {value!r}") from exc


def _parse_verifier_kind(value: Any) -> str:
    if value not in _VALID_VERIFIER_KINDS:
        raise ConfigurationError(
            f"VERIFIER_KIND must be one of: {', '.join(_VALID_VERIFIER_KINDS)}, got {value!r}"
        )
    return value


def _parse_depth(value: Any) -> int:
    depth = _parse_int(value, "TREE_DEPTH")
    if depth < MIN_TREE_DEPTH or depth > MAX_TREE_DEPTH:
        raise ConfigurationError(
            f"TREE_DEPTH must be between {MIN_TREE_DEPTH} and {MAX_TREE_DEPTH}, got {depth}"
        )
    return depth


def _parse_timeout(value: Any) -> float:
    try:
        timeout = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"HTTP_TIMEOUT must be a number, got {value!r}") from exc
    if timeout <= 0:
        raise ConfigurationError("HTTP_TIMEOUT must be positive")
    return timeout
