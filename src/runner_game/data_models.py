"""
data_models.py: Data structures for the game state and score records.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple

from .constants import PLAYER_X, PLAYER_WIDTH, PLAYER_HEIGHT

Rect = Tuple[float, float, float, float]

ORIGIN_REMOTE = "remote"
ORIGIN_LOCAL = "local"


class GamePhase(Enum):
    START = "start"
    RUNNING = "running"
    PAUSED = "paused"
    ENDED = "ended"


@dataclass
class Actor:
    """The player character. X never changes during a run."""
    x: float = PLAYER_X
    y: float = 0.0
    width: float = PLAYER_WIDTH
    height: float = PLAYER_HEIGHT
    velocity_y: float = 0.0
    jumping: bool = False

    def rect(self) -> Rect:
        return (self.x, self.y, self.width, self.height)


@dataclass
class Obstacle:
    x: float
    y: float
    width: float
    height: float
    scored: bool = False            # Has the pass-over bonus been awarded?

    def rect(self) -> Rect:
        return (self.x, self.y, self.width, self.height)

    @property
    def right(self) -> float:
        return self.x + self.width


@dataclass
class Particle:
    """Cosmetic effect unit; life runs from 1.0 down to 0."""
    x: float
    y: float
    velocity_x: float
    velocity_y: float
    color: Tuple[int, int, int]
    life: float = 1.0


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class ScoreRecord:
    """A finished run as stored locally or acknowledged by the server."""
    player_name: str
    score: int
    level: int
    timestamp: str = field(default_factory=utc_timestamp)
    origin: str = ORIGIN_LOCAL
    record_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def is_local(self) -> bool:
        return self.origin == ORIGIN_LOCAL

    def to_payload(self) -> dict:
        """The fields the leaderboard service accepts."""
        return {
            "playerName": self.player_name,
            "score": self.score,
            "level": self.level,
            "timestamp": self.timestamp,
        }

    def to_dict(self) -> dict:
        data = self.to_payload()
        data["origin"] = self.origin
        data["id"] = self.record_id
        return data

    @classmethod
    def from_dict(cls, data: dict, origin: Optional[str] = None) -> "ScoreRecord":
        return cls(
            player_name=str(data["playerName"]),
            score=int(data["score"]),
            level=int(data["level"]),
            timestamp=data.get("timestamp") or utc_timestamp(),
            origin=origin or data.get("origin", ORIGIN_LOCAL),
            record_id=str(data.get("id") or uuid.uuid4().hex),
        )
