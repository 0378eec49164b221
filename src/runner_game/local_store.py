"""
local_store.py: Persistent key/value store for the offline score list and best score.
"""

import json
import logging
import sqlite3
import threading
from typing import Callable, List, Optional

from .constants import LOCAL_DB_FILE, SCORES_KEY, HIGHSCORE_KEY, MAX_LOCAL_RECORDS
from .data_models import ScoreRecord
from .errors import LocalStoreError

logger = logging.getLogger(__name__)


class LocalStore:
    """
    A small sqlite-backed key/value table. Every sqlite failure is raised as
    LocalStoreError so callers only deal with one exception type.
    """

    def __init__(self, db_file: str = LOCAL_DB_FILE, max_records: int = MAX_LOCAL_RECORDS):
        self.max_records = max_records
        # Append + sort + truncate must not interleave between threads
        self.lock = threading.Lock()
        try:
            # check_same_thread=False lets background submit threads share it
            self.conn = sqlite3.connect(db_file, check_same_thread=False)
            self.setup()
        except sqlite3.Error as e:
            raise LocalStoreError(f"Could not open local store {db_file}: {e}") from e

    def setup(self):
        """Creates the table if it doesn't exist."""
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS KeyValue (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
        """)
        self.conn.commit()

    def close(self):
        self.conn.close()

    # ---------- Raw key/value ----------

    def get(self, key: str) -> Optional[str]:
        try:
            row = self.conn.execute(
                "SELECT value FROM KeyValue WHERE key=?", (key,)).fetchone()
        except sqlite3.Error as e:
            raise LocalStoreError(f"Read of {key!r} failed: {e}") from e
        return row[0] if row else None

    def set(self, key: str, value: str):
        try:
            self.conn.execute(
                "INSERT OR REPLACE INTO KeyValue (key, value) VALUES (?, ?)", (key, value))
            self.conn.commit()
        except sqlite3.Error as e:
            raise LocalStoreError(f"Write of {key!r} failed: {e}") from e

    def delete(self, key: str):
        try:
            self.conn.execute("DELETE FROM KeyValue WHERE key=?", (key,))
            self.conn.commit()
        except sqlite3.Error as e:
            raise LocalStoreError(f"Delete of {key!r} failed: {e}") from e

    # ---------- Score list ----------

    def load_records(self) -> List[ScoreRecord]:
        """All stored records, best score first."""
        raw = self.get(SCORES_KEY)
        if not raw:
            return []
        try:
            records = [ScoreRecord.from_dict(item) for item in json.loads(raw)]
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("Discarding unreadable local score list: %s", e)
            return []
        return sorted(records, key=lambda r: r.score, reverse=True)

    def top_records(self, limit: int) -> List[ScoreRecord]:
        return self.load_records()[:max(limit, 0)]

    def _save_records(self, records: List[ScoreRecord]):
        self.set(SCORES_KEY, json.dumps([r.to_dict() for r in records]))

    def add_record(self, record: ScoreRecord):
        """Appends, re-sorts by score and keeps only the best max_records."""
        with self.lock:
            records = self.load_records()
            records.append(record)
            records.sort(key=lambda r: r.score, reverse=True)
            self._save_records(records[:self.max_records])

    def update_records(self, mutate: Callable[[List[ScoreRecord]], None]):
        """Runs mutate on the loaded list and saves it, inside the write lock."""
        with self.lock:
            records = self.load_records()
            mutate(records)
            self._save_records(records)

    def clear_records(self):
        with self.lock:
            self.delete(SCORES_KEY)

    # ---------- Best score ----------

    def get_best_score(self) -> int:
        """Degrades to 0 when the store can't be read."""
        try:
            raw = self.get(HIGHSCORE_KEY)
            return int(raw) if raw else 0
        except (LocalStoreError, ValueError) as e:
            logger.warning("Could not read best score: %s", e)
            return 0

    def save_best_score(self, score: int) -> bool:
        try:
            self.set(HIGHSCORE_KEY, str(int(score)))
            return True
        except LocalStoreError as e:
            logger.warning("Could not save best score: %s", e)
            return False
