import random

import pytest

from runner_game.errors import TransportError
from runner_game.game_engine import EngineConfig, GameEngine
from runner_game.local_store import LocalStore
from runner_game.score_client import ClientConfig, ScoreClient


class FakeTransport:
    """In-memory leaderboard service that can be told to fail."""

    def __init__(self, down: bool = False, failures: int = 0, fail_names=()):
        self.down = down
        self.failures = failures
        self.fail_names = set(fail_names)
        self.stored: list[dict] = []
        self.submit_calls = 0
        self.fetch_calls = 0
        self.health_calls = 0

    def _maybe_fail(self):
        if self.down:
            raise TransportError("connection refused")
        if self.failures > 0:
            self.failures -= 1
            raise TransportError("HTTP 503")

    def submit_score(self, payload: dict) -> dict:
        self.submit_calls += 1
        self._maybe_fail()
        if payload["playerName"] in self.fail_names:
            raise TransportError("HTTP 500")
        record = dict(payload, id=str(len(self.stored) + 1))
        self.stored.append(record)
        return record

    def fetch_scores(self, limit: int) -> list[dict]:
        self.fetch_calls += 1
        self._maybe_fail()
        return sorted(self.stored, key=lambda r: r["score"], reverse=True)[:limit]

    def health(self):
        self.health_calls += 1
        self._maybe_fail()


class RecordingSleep:
    def __init__(self):
        self.calls: list[float] = []

    def __call__(self, seconds: float):
        self.calls.append(seconds)


@pytest.fixture
def engine() -> GameEngine:
    return GameEngine(rng=random.Random(1234))


@pytest.fixture
def headless_engine() -> GameEngine:
    return GameEngine(config=EngineConfig(particles=False), rng=random.Random(1234))


@pytest.fixture
def store():
    store = LocalStore(":memory:")
    yield store
    store.close()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def client(transport, store, sleep) -> ScoreClient:
    return ScoreClient(transport, store, ClientConfig(), sleep=sleep)
