from datetime import datetime, timedelta, timezone

import pytest

from runner_game.data_models import ScoreRecord
from runner_game.local_store import LocalStore
from runner_game.score_client import (
    ClientConfig, ScoreClient, format_date, format_score, validate_score_data
)

from conftest import FakeTransport, RecordingSleep


def test_submit_goes_to_server_first_try(client, transport, sleep, store) -> None:
    outcome = client.submit("  Al  ", 150, 2)

    assert outcome.success is True
    assert outcome.source == "remote"
    assert outcome.data.player_name == "Al"
    assert outcome.data.origin == "remote"
    assert transport.submit_calls == 1
    assert sleep.calls == []
    assert store.load_records() == []


def test_submit_retries_with_fixed_delay_then_succeeds(store, sleep) -> None:
    transport = FakeTransport(failures=2)
    client = ScoreClient(transport, store, ClientConfig(retry_delay=0.25), sleep=sleep)

    outcome = client.submit("Al", 150, 2)

    assert outcome.source == "remote"
    assert transport.submit_calls == 3
    assert sleep.calls == [0.25, 0.25]


def test_submit_falls_back_to_local_store(store, sleep) -> None:
    transport = FakeTransport(down=True)
    client = ScoreClient(transport, store, ClientConfig(max_retries=2), sleep=sleep)

    outcome = client.submit("Al", 150, 2)

    assert outcome.success is True
    assert outcome.source == "local"
    assert transport.submit_calls == 3
    assert len(sleep.calls) == 2

    [record] = store.load_records()
    assert (record.player_name, record.score, record.level, record.origin) == ("Al", 150, 2, "local")


def test_default_budget_is_four_attempts(store, sleep) -> None:
    transport = FakeTransport(down=True)
    client = ScoreClient(transport, store, sleep=sleep)

    client.submit("Al", 150, 2)

    assert transport.submit_calls == 4
    assert sleep.calls == [1.0, 1.0, 1.0]


def test_empty_name_is_rejected_without_network(client, transport, store) -> None:
    outcome = client.submit("", 150, 2)

    assert outcome.success is False
    assert outcome.source == "none"
    assert any("name is required" in e for e in outcome.errors)
    assert transport.submit_calls == 0
    assert store.load_records() == []


def test_validation_reports_every_broken_rule() -> None:
    errors = validate_score_data("x" * 21 + "!", -1, 0)

    assert len(errors) == 4
    assert any("20 characters" in e for e in errors)
    assert any("letters, numbers" in e for e in errors)
    assert any("Score" in e for e in errors)
    assert any("Level" in e for e in errors)


@pytest.mark.parametrize(
    "name, score, level",
    [
        ("Al", True, 1),
        ("Al", 1.5, 1),
        ("Al", "10", 1),
        ("Al", 10, 0),
        (None, 10, 1),
        ("   ", 10, 1),
        ("a<b>", 10, 1),
    ],
)
def test_invalid_inputs(name, score, level) -> None:
    assert validate_score_data(name, score, level)


def test_valid_names_allow_spaces_hyphens_underscores() -> None:
    assert validate_score_data("Big_Al - 2", 0, 1) == []


def test_local_store_failure_is_reported(sleep) -> None:
    store = LocalStore(":memory:")
    store.close()
    client = ScoreClient(FakeTransport(down=True), store, sleep=sleep)

    outcome = client.submit("Al", 150, 2)

    assert outcome.success is False
    assert outcome.source == "none"


def test_leaderboard_falls_back_to_local_top_scores(store, sleep) -> None:
    for score in (50, 200, 75, 10):
        store.add_record(ScoreRecord("p", score, 1))
    client = ScoreClient(FakeTransport(down=True), store, sleep=sleep)

    outcome = client.get_leaderboard(3)

    assert outcome.success is True
    assert outcome.source == "local"
    assert [r.score for r in outcome.data] == [200, 75, 50]


def test_leaderboard_from_server_is_sorted_and_limited(client, transport) -> None:
    for score in (5, 40, 30, 20):
        client.submit("p", score, 1)

    outcome = client.get_leaderboard(2)

    assert outcome.source == "remote"
    assert [r.score for r in outcome.data] == [40, 30]
    assert all(r.origin == "remote" for r in outcome.data)


def test_leaderboard_uses_configured_default_limit(store, sleep) -> None:
    for score in range(8):
        store.add_record(ScoreRecord("p", score, 1))
    client = ScoreClient(FakeTransport(down=True), store,
                         ClientConfig(leaderboard_limit=5), sleep=sleep)

    assert len(client.get_leaderboard().data) == 5


def test_leaderboard_reports_failure_when_both_paths_fail(sleep) -> None:
    store = LocalStore(":memory:")
    store.close()
    client = ScoreClient(FakeTransport(down=True), store, sleep=sleep)

    outcome = client.get_leaderboard(3)

    assert outcome.success is False
    assert outcome.source == "none"


def test_sync_pushes_local_scores_and_tallies_failures(store, sleep) -> None:
    for name, score in (("Al", 10), ("Bo", 20), ("Cy", 30)):
        store.add_record(ScoreRecord(name, score, 1))
    transport = FakeTransport(fail_names={"Bo"})
    client = ScoreClient(transport, store, ClientConfig(max_retries=1), sleep=sleep)

    report = client.sync_local_scores()

    assert report.success is False
    assert report.synced == 2
    assert [(r.player_name, r.score) for r, _ in report.errors] == [("Bo", 20)]
    assert sorted(r["playerName"] for r in transport.stored) == ["Al", "Cy"]
    origins = {r.player_name: r.origin for r in store.load_records()}
    assert origins == {"Al": "remote", "Bo": "local", "Cy": "remote"}

    transport.submit_calls = 0
    client.sync_local_scores()
    assert transport.submit_calls == 2


def test_sync_with_nothing_pending(client, transport) -> None:
    report = client.sync_local_scores()

    assert report.success is True
    assert report.synced == 0
    assert transport.submit_calls == 0


def test_clear_local_scores(client, store) -> None:
    store.add_record(ScoreRecord("Al", 10, 1))

    assert client.clear_local_scores() is True
    assert store.load_records() == []


def test_server_status_uses_single_retry(store, sleep) -> None:
    transport = FakeTransport(down=True)
    client = ScoreClient(transport, store, sleep=sleep)

    status = client.check_server_status()

    assert status.available is False
    assert transport.health_calls == 2

    assert ScoreClient(FakeTransport(), store, sleep=sleep).check_server_status().available is True


def test_player_stats(client, store) -> None:
    assert client.get_player_stats().total_games == 0

    store.add_record(ScoreRecord("Al", 100, 1, timestamp="2026-01-01T00:00:00+00:00"))
    store.add_record(ScoreRecord("Al", 600, 2, timestamp="2026-01-03T00:00:00+00:00"))
    store.add_record(ScoreRecord("Al", 251, 1, timestamp="2026-01-02T00:00:00+00:00"))

    stats = client.get_player_stats()

    assert stats.total_games == 3
    assert stats.best_score == 600
    assert stats.best_level == 2
    assert stats.average_score == 317
    assert [r.score for r in stats.recent_games] == [600, 251, 100]


def test_best_score_tracking(client) -> None:
    assert client.best_score() == 0
    assert client.record_best_score(120) is True
    assert client.record_best_score(100) is False
    assert client.record_best_score(120) is False
    assert client.best_score() == 120


def test_format_helpers() -> None:
    now = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)

    assert format_score(1234567) == "1,234,567"
    assert format_date((now - timedelta(hours=2)).isoformat(), now) == "Today"
    assert format_date((now - timedelta(days=1, hours=1)).isoformat(), now) == "Yesterday"
    assert format_date((now - timedelta(days=3)).isoformat(), now) == "3 days ago"
    assert format_date("2026-01-15T08:00:00+00:00", now) == "2026-01-15"
    assert format_date("garbage", now) == ""


class GarbledTransport(FakeTransport):
    """Answers every request, but with payloads that are not score records."""

    def submit_score(self, payload: dict) -> dict:
        self.submit_calls += 1
        return {"ok": True}

    def fetch_scores(self, limit: int) -> list:
        self.fetch_calls += 1
        return [{"score": 10}, 42]


def test_unreadable_acknowledgment_falls_back_to_local(store, sleep) -> None:
    transport = GarbledTransport()
    client = ScoreClient(transport, store, sleep=sleep)

    outcome = client.submit("Al", 150, 2)

    assert outcome.success is True
    assert outcome.source == "local"
    assert transport.submit_calls == 4
    assert len(sleep.calls) == 3
    assert [(r.player_name, r.score, r.origin) for r in store.load_records()] == [("Al", 150, "local")]


def test_unreadable_leaderboard_rows_fall_back_to_local(store, sleep) -> None:
    store.add_record(ScoreRecord("Al", 30, 1))
    transport = GarbledTransport()
    client = ScoreClient(transport, store, sleep=sleep)

    outcome = client.get_leaderboard(3)

    assert outcome.success is True
    assert outcome.source == "local"
    assert [r.score for r in outcome.data] == [30]
    assert transport.fetch_calls == 4


@pytest.mark.parametrize("limit", [0, -1, True, "3"])
def test_leaderboard_rejects_bad_limit_without_network(client, transport, store, limit) -> None:
    store.add_record(ScoreRecord("Al", 30, 1))

    outcome = client.get_leaderboard(limit)

    assert outcome.success is False
    assert outcome.source == "none"
    assert outcome.errors == ["Limit must be a positive integer"]
    assert transport.fetch_calls == 0


def test_best_score_not_reported_as_record_when_save_fails(sleep) -> None:
    store = LocalStore(":memory:")
    store.close()
    client = ScoreClient(FakeTransport(), store, sleep=sleep)

    assert client.record_best_score(10) is False


def test_empty_name_reports_every_name_rule() -> None:
    errors = validate_score_data("", 10, 1)

    assert "Player name is required" in errors
    assert any("letters, numbers" in e for e in errors)
    assert len(errors) == 2
