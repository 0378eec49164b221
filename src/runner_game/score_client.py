"""
score_client.py: Submits finished runs to the leaderboard service with a
fixed-delay retry and falls back to the local store when the service is down.

None of the public methods raise; every outcome is returned as data so the
UI layer never handles socket errors itself.
"""

import logging
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional, Protocol, Tuple, TypeVar

from .constants import (
    MAX_RETRIES, RETRY_DELAY, LEADERBOARD_LIMIT, MAX_LOCAL_RECORDS,
    MAX_NAME_LENGTH, NAME_PATTERN
)
from .data_models import ScoreRecord, ORIGIN_LOCAL, ORIGIN_REMOTE
from .errors import LocalStoreError, TransportError
from .local_store import LocalStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

SOURCE_REMOTE = "remote"
SOURCE_LOCAL = "local"
SOURCE_NONE = "none"

NAME_RE = re.compile(NAME_PATTERN)


class ScoreTransport(Protocol):
    def submit_score(self, payload: dict) -> dict: ...
    def fetch_scores(self, limit: int) -> List[dict]: ...
    def health(self) -> None: ...


@dataclass
class ClientConfig:
    max_retries: int = MAX_RETRIES          # Attempts after the first one
    retry_delay: float = RETRY_DELAY        # Seconds, fixed between attempts
    leaderboard_limit: int = LEADERBOARD_LIMIT
    max_local_records: int = MAX_LOCAL_RECORDS


@dataclass
class Outcome:
    success: bool
    source: str
    data: Any = None
    message: str = ""
    errors: List[str] = field(default_factory=list)


@dataclass
class SyncReport:
    success: bool
    synced: int = 0
    errors: List[Tuple[ScoreRecord, str]] = field(default_factory=list)


@dataclass
class ServerStatus:
    available: bool
    message: str


@dataclass
class PlayerStats:
    total_games: int = 0
    best_score: int = 0
    best_level: int = 0
    average_score: int = 0
    recent_games: List[ScoreRecord] = field(default_factory=list)


def validate_score_data(player_name: Any, score: Any, level: Any) -> List[str]:
    """Returns every rule the submission breaks; an empty list means valid."""
    errors = []
    name = player_name.strip() if isinstance(player_name, str) else ""

    if not name:
        errors.append("Player name is required")
    if len(name) > MAX_NAME_LENGTH:
        errors.append(f"Player name cannot be longer than {MAX_NAME_LENGTH} characters")
    if not NAME_RE.match(name):
        errors.append("Player name may only contain letters, numbers, spaces, hyphens and underscores")

    if isinstance(score, bool) or not isinstance(score, int) or score < 0:
        errors.append("Score must be a non-negative integer")

    if isinstance(level, bool) or not isinstance(level, int) or level < 1:
        errors.append("Level must be an integer greater than 0")

    return errors


def format_score(score: int) -> str:
    return f"{score:,}"


def format_date(timestamp: str, now: Optional[datetime] = None) -> str:
    """Relative day label for recent runs, ISO date for older ones."""
    try:
        date = datetime.fromisoformat(timestamp)
    except (TypeError, ValueError):
        return ""
    if date.tzinfo is None:
        date = date.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)

    days = (now - date).days
    if days <= 0:
        return "Today"
    if days == 1:
        return "Yesterday"
    if days < 7:
        return f"{days} days ago"
    return date.date().isoformat()


class ScoreClient:
    def __init__(self, transport: ScoreTransport, store: LocalStore,
                 config: Optional[ClientConfig] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.transport = transport
        self.store = store
        self.config = config or ClientConfig()
        self.store.max_records = self.config.max_local_records
        self.sleep = sleep

    def _with_retry(self, operation: Callable[[], T], what: str,
                    retries: Optional[int] = None) -> T:
        """
        Runs operation up to retries + 1 times with a fixed delay in between.
        Re-raises the last TransportError once the budget is spent.
        """
        if retries is None:
            retries = self.config.max_retries
        attempts = retries + 1

        attempt = 1
        while True:
            try:
                return operation()
            except TransportError as e:
                logger.warning("Attempt %d/%d to %s failed: %s", attempt, attempts, what, e)
                if attempt >= attempts:
                    raise
            attempt += 1
            self.sleep(self.config.retry_delay)

    def _submit_once(self, record: ScoreRecord) -> ScoreRecord:
        try:
            stored = self.transport.submit_score(record.to_payload())
            return ScoreRecord.from_dict(stored, origin=ORIGIN_REMOTE)
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            raise TransportError(f"Malformed acknowledgment: {e}") from e

    def _send(self, record: ScoreRecord, retries: Optional[int] = None) -> ScoreRecord:
        return self._with_retry(lambda: self._submit_once(record), "submit score", retries)

    # ---------- Submission ----------

    def submit(self, player_name: str, score: int, level: int) -> Outcome:
        errors = validate_score_data(player_name, score, level)
        if errors:
            return Outcome(success=False, source=SOURCE_NONE,
                           message="Invalid score data", errors=errors)

        record = ScoreRecord(player_name=player_name.strip(), score=score, level=level)

        try:
            stored = self._send(record)
            logger.info("Score saved on server: %s %d", record.player_name, score)
            return Outcome(success=True, source=SOURCE_REMOTE, data=stored)
        except TransportError as e:
            logger.error("Could not save score on server: %s", e)

        logger.info("Saving score locally as a fallback")
        record.origin = ORIGIN_LOCAL
        try:
            self.store.add_record(record)
        except LocalStoreError as e:
            logger.error("Could not save score locally: %s", e)
            return Outcome(success=False, source=SOURCE_NONE,
                           message="Score could not be saved", errors=[str(e)])
        return Outcome(success=True, source=SOURCE_LOCAL, data=record,
                       message="Saved locally (server unavailable)")

    # ---------- Leaderboard ----------

    def _fetch_remote(self, limit: int) -> List[ScoreRecord]:
        try:
            rows = self.transport.fetch_scores(limit)
            records = [ScoreRecord.from_dict(row, origin=ORIGIN_REMOTE) for row in rows]
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            raise TransportError(f"Malformed leaderboard data: {e}") from e
        records.sort(key=lambda r: r.score, reverse=True)
        return records[:limit]

    def get_leaderboard(self, limit: Optional[int] = None) -> Outcome:
        if limit is None:
            limit = self.config.leaderboard_limit
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            return Outcome(success=False, source=SOURCE_NONE, message="Invalid limit",
                           errors=["Limit must be a positive integer"])

        try:
            records = self._with_retry(lambda: self._fetch_remote(limit), "fetch leaderboard")
            return Outcome(success=True, source=SOURCE_REMOTE, data=records)
        except TransportError as e:
            logger.error("Could not fetch leaderboard from server: %s", e)

        try:
            records = self.store.top_records(limit)
        except LocalStoreError as e:
            logger.error("Could not read local scores: %s", e)
            return Outcome(success=False, source=SOURCE_NONE,
                           message="Scores could not be loaded", errors=[str(e)])
        return Outcome(success=True, source=SOURCE_LOCAL, data=records,
                       message="Local data (server unavailable)")

    # ---------- Local maintenance ----------

    def sync_local_scores(self) -> SyncReport:
        """Pushes every local-only record; each one retries independently."""
        try:
            pending = [r for r in self.store.load_records() if r.is_local]
        except LocalStoreError as e:
            logger.error("Could not read local scores: %s", e)
            return SyncReport(success=False)

        if not pending:
            logger.info("No local scores to sync")
            return SyncReport(success=True)

        logger.info("Syncing %d local scores", len(pending))
        synced_ids = set()
        report = SyncReport(success=False)

        for record in pending:
            try:
                self._send(record)
            except TransportError as e:
                report.errors.append((record, str(e)))
                continue
            synced_ids.add(record.record_id)

        report.synced = len(synced_ids)
        report.success = not report.errors

        if synced_ids:
            def promote(records: List[ScoreRecord]):
                for r in records:
                    if r.record_id in synced_ids:
                        r.origin = ORIGIN_REMOTE
            try:
                self.store.update_records(promote)
            except LocalStoreError as e:
                logger.warning("Synced scores could not be marked as remote: %s", e)

        logger.info("Sync finished: %d succeeded, %d failed", report.synced, len(report.errors))
        return report

    def clear_local_scores(self) -> bool:
        try:
            self.store.clear_records()
        except LocalStoreError as e:
            logger.error("Could not clear local scores: %s", e)
            return False
        logger.info("Local scores cleared")
        return True

    def check_server_status(self) -> ServerStatus:
        try:
            self._with_retry(self.transport.health, "check server", retries=1)
        except TransportError as e:
            return ServerStatus(available=False, message=str(e))
        return ServerStatus(available=True, message="Server available")

    def get_player_stats(self) -> PlayerStats:
        try:
            records = self.store.load_records()
        except LocalStoreError as e:
            logger.warning("Could not read local scores: %s", e)
            return PlayerStats()
        if not records:
            return PlayerStats()

        total = sum(r.score for r in records)
        recent = sorted(records, key=lambda r: r.timestamp, reverse=True)[:5]
        return PlayerStats(
            total_games=len(records),
            best_score=max(r.score for r in records),
            best_level=max(r.level for r in records),
            average_score=round(total / len(records)),
            recent_games=recent,
        )

    # ---------- Best score ----------

    def best_score(self) -> int:
        return self.store.get_best_score()

    def record_best_score(self, score: int) -> bool:
        """True only if score beats the stored best and was saved."""
        if score <= self.store.get_best_score():
            return False
        return self.store.save_best_score(score)
