"""Tests for YAML and environment setting overrides."""

import pytest

from bomalign.config import load_settings
from bomalign.constants import Constants

_ATTRS = (
    "REQUEST_TIMEOUT",
    "HTTP_RETRY_MAX",
    "HTTP_RETRY_BASE_DELAY_SEC",
    "HTTP_CACHE_TTL_SEC",
    "METADATA_CACHE_TTL_SEC",
    "DEFAULT_REPOSITORY_URL",
    "PRERELEASE_VERSION_REGEX",
    "DEFAULT_TEST_RUNTIME_PRIORITY",
)


@pytest.fixture(autouse=True)
def restore_constants(monkeypatch):
    saved = {attr: getattr(Constants, attr) for attr in _ATTRS}
    for env in ("BOMALIGN_CONFIG", "BOMALIGN_REQUEST_TIMEOUT", "BOMALIGN_HTTP_RETRY_MAX",
                "BOMALIGN_HTTP_CACHE_TTL", "BOMALIGN_REPOSITORY_URL"):
        monkeypatch.delenv(env, raising=False)
    yield
    for attr, value in saved.items():
        setattr(Constants, attr, value)


def test_yaml_overrides_constants(tmp_path):
    cfg = tmp_path / "bomalign.yml"
    cfg.write_text(
        "http:\n  timeout: 5\n  retries: 1\n"
        "resolution:\n  test_runtime_priority:\n    - org.openrewrite:rewrite-java-17\n",
        encoding="utf-8",
    )
    applied = load_settings(str(cfg))
    assert Constants.REQUEST_TIMEOUT == 5
    assert Constants.HTTP_RETRY_MAX == 1
    assert Constants.DEFAULT_TEST_RUNTIME_PRIORITY == ["org.openrewrite:rewrite-java-17"]
    assert set(applied) == {"REQUEST_TIMEOUT", "HTTP_RETRY_MAX", "DEFAULT_TEST_RUNTIME_PRIORITY"}


def test_environment_beats_yaml(tmp_path, monkeypatch):
    cfg = tmp_path / "bomalign.yml"
    cfg.write_text("http:\n  timeout: 5\n", encoding="utf-8")
    monkeypatch.setenv("BOMALIGN_CONFIG", str(cfg))
    monkeypatch.setenv("BOMALIGN_REQUEST_TIMEOUT", "12")
    load_settings()
    assert Constants.REQUEST_TIMEOUT == 12


def test_invalid_values_are_ignored(tmp_path, monkeypatch):
    monkeypatch.setenv("BOMALIGN_HTTP_RETRY_MAX", "many")
    before = Constants.HTTP_RETRY_MAX
    assert load_settings(str(tmp_path / "absent.yml")) == {}
    assert Constants.HTTP_RETRY_MAX == before


def test_non_mapping_yaml_is_ignored(tmp_path):
    cfg = tmp_path / "bomalign.yml"
    cfg.write_text("- just\n- a list\n", encoding="utf-8")
    assert load_settings(str(cfg)) == {}
