"""
Tests for the command line entry point and session wiring
"""

import json
import logging
from unittest.mock import AsyncMock

import pytest

import main
from bot.operator import AutoOperator, Operator, OperatorCommand
from config import Config
from core.errors import ConfigurationError
from services.ledger import InMemoryLedger, SqliteLedger


@pytest.fixture
def app_config(tmp_path, monkeypatch):
    """Fresh config (memory ledger, temp home) patched into main"""
    monkeypatch.setenv("POKERNOW_HOME", str(tmp_path))
    monkeypatch.delenv("POKERNOW_LOG_DIR", raising=False)
    cfg = Config(validate=False, ensure_directories=False)
    cfg.set("game", "hero_name", "")
    cfg.set("oracle", "provider", "manual")
    cfg.set("oracle", "playstyle", "neutral")
    cfg.set("bot", "automated", False)
    cfg.set("ledger", "backend", "memory")
    cfg.set("logging", "level", "INFO")
    monkeypatch.setattr(main, "config", cfg)
    # keep the session's test logging in place
    monkeypatch.setattr(main, "setup_logging", lambda: logging.getLogger())
    monkeypatch.setattr(main, "cleanup_logging", lambda: None)
    return cfg


@pytest.fixture
def replay_file(tmp_path, recording):
    path = tmp_path / "session.json"
    path.write_text(json.dumps(recording), encoding="utf-8")
    return str(path)


@pytest.fixture
def console(monkeypatch):
    operator = AsyncMock(spec=Operator)
    operator.next_command.return_value = OperatorCommand.CONTINUE
    monkeypatch.setattr(main, "ConsoleOperator", lambda: operator)
    return operator


@pytest.fixture
def oracle(monkeypatch, scripted_oracle):
    scripted = scripted_oracle(["call", "fold", "fold"])
    monkeypatch.setattr(main, "create_oracle", lambda provider, **kwargs: scripted)
    return scripted


class TestParser:
    """Tests for argument parsing"""

    def test_replay_and_observer_exclusive(self):
        with pytest.raises(SystemExit):
            main.build_parser().parse_args(["--replay", "a.json", "--observer", "x:Y"])

    def test_apply_args(self, app_config):
        args = main.build_parser().parse_args(
            [
                "--game-id", "pgl123",
                "--hero", "alice",
                "--oracle", "api",
                "--playstyle", "lag",
                "--auto",
                "--observe-only",
                "--log-level", "DEBUG",
                "--max-hands", "4",
            ]
        )

        main.apply_args(args, app_config)

        assert app_config.get("game", "game_id") == "pgl123"
        assert app_config.get("game", "hero_name") == "alice"
        assert app_config.get("oracle", "provider") == "api"
        assert app_config.get("oracle", "playstyle") == "lag"
        assert app_config.get("bot", "automated") is True
        assert app_config.get("bot", "observe_only") is True
        assert app_config.get("logging", "level") == "DEBUG"
        assert app_config.get("bot", "max_hands") == 4

    def test_apply_args_loads_config_file(self, app_config, tmp_path):
        path = tmp_path / "advisor.json"
        path.write_text(json.dumps({"game": {"hero_name": "carol"}}), encoding="utf-8")
        args = main.build_parser().parse_args(["--config", str(path)])

        main.apply_args(args, app_config)

        assert app_config.get("game", "hero_name") == "carol"


class TestLoadObserver:
    """Tests for module:Class observer loading"""

    def test_requires_colon(self):
        with pytest.raises(ConfigurationError):
            main.load_observer("sources.replay_observer")

    def test_missing_module(self):
        with pytest.raises(ConfigurationError, match="Cannot import"):
            main.load_observer("no_such_module_xyz:Observer")

    def test_not_an_observer(self):
        with pytest.raises(ConfigurationError, match="not an Observer"):
            main.load_observer("config:Config")


class TestApplication:
    """Tests for component wiring"""

    def test_needs_a_source(self, app_config):
        with pytest.raises(ConfigurationError):
            main.Application(app_config)

    def test_operator_choice(self, app_config):
        app = main.Application(app_config, replay="unused.json")
        app_config.set("bot", "automated", True)
        app_config.set("bot", "confirm_automated_actions", False)
        assert isinstance(app._create_operator(), AutoOperator)

    def test_ledger_choice(self, app_config, tmp_path):
        app = main.Application(app_config, replay="unused.json")
        assert isinstance(app._create_ledger(), InMemoryLedger)

        app_config.set("ledger", "backend", "sqlite")
        app_config.set("ledger", "db_path", str(tmp_path / "stats.db"))
        assert isinstance(app._create_ledger(), SqliteLedger)

        app_config.set("ledger", "enabled", False)
        assert app._create_ledger() is None

    @pytest.mark.asyncio
    async def test_missing_recording(self, app_config, tmp_path):
        app = main.Application(app_config, replay=str(tmp_path / "missing.json"))
        with pytest.raises(ConfigurationError):
            await app.run()

    @pytest.mark.asyncio
    async def test_replay_session(self, app_config, replay_file, console, oracle):
        app_config.set("game", "hero_name", "alice")
        app_config.set("bot", "settle_delay", 0)
        app = main.Application(app_config, replay=replay_file)

        hands = await app.run()

        assert hands == 2
        assert oracle.closed
        assert console.present.await_count == 3
        stats = await app.ledger.get_many(["bob"])
        assert stats["bob"].total_hands == 2


class TestCli:
    """Tests for cli() exit codes"""

    def test_invalid_config_exits_1(self, app_config, replay_file, capsys):
        assert main.cli(["--replay", replay_file]) == 1
        assert "FATAL ERROR" in capsys.readouterr().err

    def test_wrong_game_exits_1(self, app_config, replay_file, console, oracle, capsys):
        code = main.cli(["--replay", replay_file, "--hero", "alice", "--game-id", "other"])
        assert code == 1
        assert "FATAL ERROR" in capsys.readouterr().err

    def test_replay_run(self, app_config, replay_file, console, oracle, capsys):
        app_config.set("bot", "settle_delay", 0)

        code = main.cli(["--replay", replay_file, "--hero", "alice", "--max-hands", "1"])

        assert code == 0
        assert "Session complete: 1 hands" in capsys.readouterr().out
        assert len(oracle.prompts) == 2
