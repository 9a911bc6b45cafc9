"""Tests for runtime settings resolution."""

from pathlib import Path

import pytest

from worldid_debug.settings import Settings, load_settings
from worldid_debug.zk_protocol.exceptions import ConfigurationError


@pytest.fixture
def env_file(tmp_path):
    path = tmp_path / ".env"
    path.write_text(
        "AUTH_TOKEN=from-file\nAPP_ID=app_file\nACTION=vote\nTREE_DEPTH=20\n",
        encoding="utf-8",
    )
    return path


def test_defaults_without_sources(tmp_path):
    settings = load_settings(env_file=tmp_path / "missing.env", environ={})
    assert settings == Settings()
    assert settings.environment == "staging"
    assert settings.tree_depth == 30
    assert settings.artifacts_dir == Path("./semaphore")


def test_env_file_values(env_file):
    settings = load_settings(env_file=env_file, environ={})
    assert settings.auth_token == "from-file"
    assert settings.app_id == "app_file"
    assert settings.action == "vote"
    assert settings.tree_depth == 20


def test_environment_beats_file(env_file):
    settings = load_settings(env_file=env_file, environ={"APP_ID": "app_env"})
    assert settings.app_id == "app_env"
    assert settings.auth_token == "from-file"


def test_overrides_beat_environment(env_file):
    settings = load_settings(
        env_file=env_file,
        environ={"APP_ID": "app_env"},
        app_id="app_flag",
        tree_depth=None,
    )
    assert settings.app_id == "app_flag"
    assert settings.tree_depth == 20


def test_prod_environment_defaults():
    settings = load_settings(env_file=None, environ={"WORLDID_ENV": "prod"})
    assert settings.rpc_url == "https://polygon-rpc.com"
    assert settings.verifier_ens_name == "semaphore.wld.eth"


def test_explicit_rpc_url_is_kept():
    settings = load_settings(
        env_file=None, environ={"WORLDID_ENV": "prod", "RPC_URL": "http://localhost:8545"}
    )
    assert settings.rpc_url == "http://localhost:8545"


def test_sequencer_uri_gets_trailing_slash():
    settings = load_settings(env_file=None, environ={"SEQUENCER_URI": "http://seq.test"})
    assert settings.sequencer_uri == "http://seq.test/"


def test_numeric_values_are_parsed():
    settings = load_settings(
        env_file=None, environ={"GROUP_ID": "2", "HTTP_TIMEOUT": "2.5"}
    )
    assert settings.group_id == 2
    assert settings.http_timeout == 2.5


@pytest.mark.parametrize(
    "environ",
    [
        {"WORLDID_ENV": "mainnet"},
        {"GROUP_ID": "one"},
        {"TREE_DEPTH": "12"},
        {"TREE_DEPTH": "33"},
        {"HTTP_TIMEOUT": "0"},
        {"HTTP_TIMEOUT": "soon"},
        {"VERIFIER_KIND": "proxy"},
    ],
)
def test_invalid_values(environ):
    with pytest.raises(ConfigurationError):
        load_settings(env_file=None, environ=environ)


def test_verifier_kind():
    assert load_settings(env_file=None, environ={}).verifier_kind is None
    settings = load_settings(env_file=None, environ={"VERIFIER_KIND": "semaphore"})
    assert settings.verifier_kind == "semaphore"


def test_unknown_override():
    with pytest.raises(ConfigurationError, match="Unknown settings"):
        load_settings(env_file=None, environ={}, colour="blue")


def test_require_helpers():
    settings = Settings()
    with pytest.raises(ConfigurationError, match="AUTH_TOKEN"):
        settings.require_auth_token()
    with pytest.raises(ConfigurationError, match="APP_ID"):
        settings.require_app_id()
    assert Settings(auth_token="t", app_id="a").require_app_id() == "a"
