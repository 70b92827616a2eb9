"""
Configuration - Environment-driven settings and the scoring policy.

The engine itself never invents scoring numbers. Win threshold, round
count and the award rule are handed in as a ScoringPolicy, which
defaults to the values the game has shipped with (50 VP, 4 rounds,
winner takes the power difference).

Environment variables:
    RNR_ENV              development | production
    RNR_STORE_DIR        Directory for the JSON game store (unset = in-memory)
    ALLOWED_ORIGINS      Comma-separated CORS origins
    RNR_LOG_LEVEL        Logging level name
    RNR_JOURNAL_RETAIN   Acknowledged events kept after truncation
    RNR_WIN_THRESHOLD    Victory points needed to win
    RNR_MAX_ROUNDS       Number of leader rounds
    RNR_AWARD_MODE       difference | fixed
    RNR_HAND_SIZE        Opening hand size / end-of-round refill target
"""

from __future__ import annotations
from dataclasses import dataclass, field
import os


AWARD_DIFFERENCE = "difference"
AWARD_FIXED = "fixed"


@dataclass(frozen=True)
class ScoringPolicy:
    """How a battle turns into victory points and when the game ends."""
    win_threshold: int = 50
    max_rounds: int = 4
    award_mode: str = AWARD_DIFFERENCE
    points_per_round_win: int = 10
    hand_size: int = 7
    draw_per_turn: int = 1

    def award(self, winner_total: int, loser_total: int) -> int:
        """Victory points for the round winner."""
        if self.award_mode == AWARD_FIXED:
            return self.points_per_round_win
        return winner_total - loser_total

    @classmethod
    def from_env(cls) -> ScoringPolicy:
        award_mode = os.getenv("RNR_AWARD_MODE", AWARD_DIFFERENCE)
        if award_mode not in (AWARD_DIFFERENCE, AWARD_FIXED):
            raise ValueError(f"Unknown award mode: {award_mode}")
        return cls(
            win_threshold=int(os.getenv("RNR_WIN_THRESHOLD", "50")),
            max_rounds=int(os.getenv("RNR_MAX_ROUNDS", "4")),
            award_mode=award_mode,
            points_per_round_win=int(os.getenv("RNR_POINTS_PER_WIN", "10")),
            hand_size=int(os.getenv("RNR_HAND_SIZE", "7")),
        )


@dataclass(frozen=True)
class EngineConfig:
    """Process-wide settings."""
    env: str = "development"
    store_dir: str | None = None
    allowed_origins: tuple[str, ...] = ("*",)
    log_level: str = "INFO"
    journal_retain: int = 20
    scoring: ScoringPolicy = field(default_factory=ScoringPolicy)

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    @property
    def allow_inject(self) -> bool:
        """InjectState is a test hook; never exposed in production."""
        return not self.is_production

    @classmethod
    def from_env(cls) -> EngineConfig:
        return cls(
            env=os.getenv("RNR_ENV", "development"),
            store_dir=os.getenv("RNR_STORE_DIR") or None,
            allowed_origins=tuple(os.getenv("ALLOWED_ORIGINS", "*").split(",")),
            log_level=os.getenv("RNR_LOG_LEVEL", "INFO").upper(),
            journal_retain=int(os.getenv("RNR_JOURNAL_RETAIN", "20")),
            scoring=ScoringPolicy.from_env(),
        )
