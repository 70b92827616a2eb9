"""
Tests for configuration and the command-line interface.

Tests:
- Environment-driven settings
- Scoring policy awards
- CLI commands against a temporary store
"""

import json

import pytest

from ..cli import main
from ..config import EngineConfig, ScoringPolicy


class TestConfig:
    """EngineConfig and ScoringPolicy."""

    def test_defaults(self, monkeypatch):
        for name in ("RNR_ENV", "RNR_STORE_DIR", "ALLOWED_ORIGINS", "RNR_AWARD_MODE", "RNR_WIN_THRESHOLD"):
            monkeypatch.delenv(name, raising=False)

        config = EngineConfig.from_env()

        assert config.env == "development"
        assert config.store_dir is None
        assert config.allowed_origins == ("*",)
        assert config.allow_inject
        assert config.scoring == ScoringPolicy()

    def test_production(self, monkeypatch):
        monkeypatch.setenv("RNR_ENV", "production")
        monkeypatch.setenv("ALLOWED_ORIGINS", "https://a.example,https://b.example")

        config = EngineConfig.from_env()

        assert config.is_production
        assert not config.allow_inject
        assert config.allowed_origins == ("https://a.example", "https://b.example")

    def test_scoring_from_env(self, monkeypatch):
        monkeypatch.setenv("RNR_AWARD_MODE", "fixed")
        monkeypatch.setenv("RNR_WIN_THRESHOLD", "30")

        policy = ScoringPolicy.from_env()

        assert policy.award_mode == "fixed"
        assert policy.win_threshold == 30

    def test_bad_award_mode(self, monkeypatch):
        monkeypatch.setenv("RNR_AWARD_MODE", "winner-takes-all")
        with pytest.raises(ValueError):
            ScoringPolicy.from_env()

    def test_award(self):
        assert ScoringPolicy().award(250, 115) == 135
        assert ScoringPolicy(award_mode="fixed", points_per_round_win=15).award(250, 115) == 15


class TestCLI:
    """rnr subcommands."""

    def test_cards(self, capsys):
        main(["cards", "--kind", "leader"])
        out = capsys.readouterr().out
        assert "s-1" in out
        assert "c-1" not in out
        assert "6 card(s)" in out

    def test_new_game_and_show(self, tmp_path, capsys, monkeypatch):
        monkeypatch.delenv("RNR_STORE_DIR", raising=False)
        main(["--store-dir", str(tmp_path), "new-game", "--game-id", "g1", "--first-player", "p2"])
        assert "Game created: g1" in capsys.readouterr().out
        assert (tmp_path / "g1.json").exists()

        main(["--store-dir", str(tmp_path), "show", "g1", "--player", "p1"])
        shown = json.loads(capsys.readouterr().out)
        assert shown["firstPlayer"] == "p2"
        assert shown["players"][1]["hand"] is None

    def test_show_unknown_game(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--store-dir", str(tmp_path), "show", "missing"])
        assert exc_info.value.code == 1
        assert "UnknownGame" in capsys.readouterr().out

    def test_validate_cards(self, tmp_path, capsys, registry):
        good = tmp_path / "good.json"
        good.write_text(json.dumps({"cards": [registry.lookup("c-1").to_dict()]}), encoding="utf-8")
        main(["validate-cards", str(good)])
        assert "VALID (1 cards, 0 combos)" in capsys.readouterr().out

        bad = tmp_path / "bad.json"
        card = registry.lookup("c-1").to_dict()
        bad.write_text(json.dumps({"cards": [card, card]}), encoding="utf-8")
        with pytest.raises(SystemExit):
            main(["validate-cards", str(bad)])
        assert "INVALID" in capsys.readouterr().out

    def test_no_command(self):
        with pytest.raises(SystemExit):
            main([])
