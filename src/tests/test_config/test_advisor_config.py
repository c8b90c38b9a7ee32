"""
Tests for configuration loading and validation
"""

import json
from decimal import Decimal

import pytest

from config import Config
from core.errors import ConfigurationError


@pytest.fixture
def cfg(tmp_path, monkeypatch):
    """Valid config with directories under tmp_path"""
    monkeypatch.setenv("POKERNOW_HOME", str(tmp_path))
    monkeypatch.delenv("POKERNOW_LOG_DIR", raising=False)
    c = Config(validate=False, ensure_directories=False)
    c.set("game", "hero_name", "alice")
    c.set("oracle", "provider", "manual")
    c.set("oracle", "playstyle", "neutral")
    c.set("bot", "automated", False)
    c.set("ledger", "backend", "memory")
    c.set("logging", "level", "INFO")
    return c


def write_json(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestConfigAccess:
    """Tests for section/get/set"""

    def test_defaults(self, cfg):
        assert cfg.get("bot", "retries") >= 0
        assert cfg.get("bot", "max_history_messages") == 10
        assert cfg.get("game", "variant") == "NLH"

    def test_set_overrides_default(self, cfg):
        cfg.set("bot", "retries", 5)
        assert cfg.get("bot", "retries") == 5
        assert cfg.get("bot", "retry_delay") == Config.BOT["retry_delay"]

    def test_get_missing_key(self, cfg):
        assert cfg.get("bot", "nonexistent", "fallback") == "fallback"

    def test_unknown_section_is_empty(self, cfg):
        assert cfg.section("nope") == {}

    def test_files_follow_home(self, cfg, tmp_path):
        assert cfg.FILES["config_dir"] == tmp_path
        assert cfg.FILES["log_dir"] == tmp_path / "logs"

    def test_ensure_directories(self, cfg, tmp_path):
        status = cfg.ensure_directories()
        assert status == {"config_dir": True, "log_dir": True}
        assert (tmp_path / "logs").is_dir()

    def test_to_dict_masks_api_key(self, cfg):
        cfg.set("oracle", "api_key", "sk-secret")
        exported = cfg.to_dict()
        assert exported["oracle"]["api_key"] == "***"
        assert set(exported) == {"game", "bot", "oracle", "ledger", "logging", "files"}


class TestConfigValidation:
    """Tests for validate()"""

    def test_valid(self, cfg):
        cfg.validate()

    def test_hero_required(self, cfg):
        cfg.set("game", "hero_name", "")
        with pytest.raises(ConfigurationError, match="hero_name"):
            cfg.validate()

    def test_hero_optional_when_observing(self, cfg):
        cfg.set("game", "hero_name", "")
        cfg.set("bot", "observe_only", True)
        cfg.validate()

    @pytest.mark.parametrize(
        "section,key,value",
        [
            ("game", "big_blind", Decimal("-1")),
            ("game", "max_turn_length", 0),
            ("bot", "retries", -1),
            ("bot", "settle_delay", -0.5),
            ("bot", "poll_interval", 0),
            ("bot", "max_poll_interval", 0.5),
            ("bot", "max_hands", 0),
            ("oracle", "provider", "carrier-pigeon"),
            ("oracle", "playstyle", "maniac"),
            ("oracle", "timeout", 0),
            ("ledger", "backend", "postgres"),
            ("logging", "level", "VERBOSE"),
        ],
    )
    def test_invalid_values(self, cfg, section, key, value):
        cfg.set(section, key, value)
        with pytest.raises(ConfigurationError):
            cfg.validate()

    def test_api_oracle_needs_key(self, cfg):
        cfg.set("oracle", "provider", "api")
        cfg.set("oracle", "api_key", "")
        with pytest.raises(ConfigurationError, match="api_key"):
            cfg.validate()

    def test_manual_oracle_not_automated(self, cfg):
        cfg.set("bot", "automated", True)
        with pytest.raises(ConfigurationError, match="manual"):
            cfg.validate()

    def test_all_errors_reported(self, cfg):
        cfg.set("game", "hero_name", "")
        cfg.set("ledger", "backend", "postgres")
        with pytest.raises(ConfigurationError) as exc_info:
            cfg.validate()
        assert "hero_name" in str(exc_info.value)
        assert "postgres" in str(exc_info.value)


class TestLoadFromFile:
    """Tests for the JSON overlay"""

    def test_overlay(self, cfg, tmp_path):
        path = write_json(
            tmp_path / "advisor.json",
            {"GAME": {"hero_name": "bob", "big_blind": 20}, "oracle": {"playstyle": "tag"}},
        )

        cfg.load_from_file(path)

        assert cfg.get("game", "hero_name") == "bob"
        assert cfg.get("game", "big_blind") == Decimal("20")
        assert cfg.get("oracle", "playstyle") == "tag"
        assert cfg.get("oracle", "provider") == "manual"

    def test_constructor_loads_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv("POKERNOW_HOME", str(tmp_path))
        path = write_json(tmp_path / "advisor.json", {"game": {"hero_name": "carol"}})

        c = Config(config_file=str(path), validate=False, ensure_directories=False)

        assert c.get("game", "hero_name") == "carol"

    def test_missing_file(self, cfg, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            cfg.load_from_file(tmp_path / "missing.json")

    def test_invalid_json(self, cfg, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Invalid JSON"):
            cfg.load_from_file(path)

    def test_non_object(self, cfg, tmp_path):
        with pytest.raises(ConfigurationError):
            cfg.load_from_file(write_json(tmp_path / "list.json", [1, 2]))

    def test_section_must_be_object(self, cfg, tmp_path):
        with pytest.raises(ConfigurationError, match="Section"):
            cfg.load_from_file(write_json(tmp_path / "bad.json", {"game": "alice"}))
