"""Dash Runner: an endless runner simulation with a fault-tolerant leaderboard client."""

from .data_models import GamePhase, ScoreRecord
from .game_engine import EngineConfig, GameEngine
from .score_client import ClientConfig, Outcome, ScoreClient

__all__ = [
    "ClientConfig",
    "EngineConfig",
    "GameEngine",
    "GamePhase",
    "Outcome",
    "ScoreClient",
    "ScoreRecord",
]
