"""Shared fixtures: an isolated project directory and config builders."""

import pytest

from src.orchestrator.config import build_config


_ENV_KEYS_TO_PROTECT = [
    "SITE_ENV",
    "DEPLOY_BASE_URL",
    "REALFAVICON_API_KEY",
]


@pytest.fixture(autouse=True)
def _clean_env_vars(monkeypatch):
    """Keep the developer's shell environment out of config loading."""
    for key in _ENV_KEYS_TO_PROTECT:
        monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture
def project(tmp_path, monkeypatch):
    """Run the test from an empty project root."""
    monkeypatch.chdir(tmp_path)
    (tmp_path / "frontend" / "images").mkdir(parents=True)
    (tmp_path / "frontend" / "images" / "master.png").write_bytes(b"\x89PNG master")
    return tmp_path


@pytest.fixture
def make_config():
    """Build a BuildConfig from YAML-shaped params and an environment dict."""

    def _make(params=None, **environ):
        base = {
            "favicon": {
                "master_picture": "frontend/images/master.png",
                "api_key": "test-key",
                "api_url": "https://rfg.test/api",
                "versioning": {"param_name": "v", "param_value": "abc123"},
            },
        }
        for key, value in (params or {}).items():
            if isinstance(value, dict) and isinstance(base.get(key), dict):
                base[key] = {**base[key], **value}
            else:
                base[key] = value
        return build_config(base, environ)

    return _make
