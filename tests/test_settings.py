"""TOML config loading, profile overlay and validation."""

import pytest

from weatheredge.config.settings import Settings, get_settings, load_config
from weatheredge.errors import ConfigurationError


@pytest.fixture
def config_dir(tmp_path):
    (tmp_path / "default.toml").write_text(
        '[feed]\ngamma_api_base = "https://gamma.example"\ntimeout_sec = 8\n\n[ranking]\nmax_limit = 40\n'
    )
    (tmp_path / "dev.toml").write_text('[feed]\ntimeout_sec = 3\n\n[logging]\nlevel = "debug"\n')
    return tmp_path


def test_profile_overlays_default(config_dir):
    s = get_settings("dev", config_dir)
    assert s.gamma_api_base == "https://gamma.example"
    assert s.feed_timeout_sec == 3
    assert s.max_limit == 40
    assert s.logging_level == "DEBUG"


def test_missing_profile_uses_default(config_dir):
    assert load_config("prod", config_dir)["feed"]["timeout_sec"] == 8


def test_defaults_without_config(tmp_path):
    s = get_settings(config_dir=tmp_path)
    assert s.catalog_ttl_sec == 1800
    assert s.default_min_volume == 50000
    assert s.depth_target_movement == 0.05
    s.validate()


@pytest.mark.parametrize(
    "raw",
    [
        {"feed": {"gamma_api_base": ""}},
        {"feed": {"clob_api_base": "clob.polymarket.com"}},
        {"feed": {"timeout_sec": 0}},
        {"cache": {"catalog_ttl_sec": -1}},
        {"ranking": {"max_limit": 0}},
    ],
)
def test_validate_rejects_unusable_settings(raw):
    with pytest.raises(ConfigurationError):
        Settings.from_dict(raw).validate()


def test_env_selects_config_dir_and_profile(config_dir, monkeypatch):
    monkeypatch.setenv("WEATHEREDGE_CONFIG_DIR", str(config_dir))
    monkeypatch.setenv("WEATHEREDGE_PROFILE", "dev")
    assert get_settings().feed_timeout_sec == 3


def test_malformed_toml_is_configuration_error(tmp_path):
    (tmp_path / "default.toml").write_text("[feed\ntimeout_sec = ")
    with pytest.raises(ConfigurationError):
        load_config(config_dir=tmp_path)
