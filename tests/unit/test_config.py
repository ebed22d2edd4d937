"""Tests for configuration loading."""

from pathlib import Path

import pytest

from wgwatch.config import SearchConfig, SiteConfig, load_config, parse_bool_token
from wgwatch.exceptions import ConfigError


def test_load_config_reads_environment(tmp_path):
    config = load_config(config_dir=tmp_path)

    assert config.telegram.bot_token == "123456:test-token"
    assert config.telegram.chat_id == "-100200300"
    assert config.search.query == "Zürich"
    assert config.search.headless is True
    assert config.search.user_data_dir is None
    assert config.search.max_attempts == 4
    assert config.search.sent_path == Path("data/sent.json")
    assert config.site == SiteConfig()


@pytest.mark.parametrize("name", ["TG_BOT_TOKEN", "TG_CHAT_ID", "SEARCH_QUERY"])
def test_missing_required_variable_raises_config_error(monkeypatch, name):
    monkeypatch.delenv(name)

    with pytest.raises(ConfigError, match=name):
        load_config()


@pytest.mark.parametrize(
    "raw,expected",
    [("1", True), ("true", True), ("YES", True), ("y", True), ("On", True), ("0", False), ("no", False), ("banana", False)],
)
def test_headless_flag_tokens(monkeypatch, raw, expected):
    monkeypatch.setenv("HEADLESS", raw)

    assert SearchConfig().headless is expected


def test_blank_flag_uses_default():
    assert parse_bool_token("", default=True) is True
    assert parse_bool_token(None, default=False) is False


def test_user_data_dir_from_environment(monkeypatch):
    monkeypatch.setenv("USER_DATA_DIR", "/var/lib/wgwatch/profile")

    assert SearchConfig().user_data_dir == "/var/lib/wgwatch/profile"


def test_search_defaults_loaded_from_yaml(tmp_path):
    (tmp_path / "search.yml").write_text("filters:\n  price_min: 400\n  price_max: 1500\n  studio: true\n")

    config = load_config(config_dir=tmp_path)

    assert config.site.price_min == 400
    assert config.site.price_max == 1500
    assert config.site.studio is True
    assert config.site.wg_state == "all"


def test_bundled_search_defaults_match_builtin():
    assert load_config().site == SiteConfig()


def test_config_is_immutable(tmp_path):
    config = load_config(config_dir=tmp_path)

    with pytest.raises(Exception):
        config.search = None


def test_generic_environment_names_are_ignored(monkeypatch, tmp_path):
    monkeypatch.setenv("TIMEOUT", "99")
    monkeypatch.setenv("BACKOFF_SECONDS", "99")

    config = load_config(config_dir=tmp_path)

    assert config.telegram.timeout == 20
    assert config.search.backoff_seconds == 10.0


def test_timeouts_read_from_prefixed_names(monkeypatch, tmp_path):
    monkeypatch.setenv("TG_TIMEOUT", "5")
    monkeypatch.setenv("RETRY_BACKOFF_SECONDS", "2.5")

    config = load_config(config_dir=tmp_path)

    assert config.telegram.timeout == 5
    assert config.search.backoff_seconds == 2.5
