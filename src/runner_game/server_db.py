"""
server_db.py: Database layer for the leaderboard service.
"""

import sqlite3
import threading
from typing import List

from .constants import SERVER_DB_FILE


class ScoreDatabase:
    """Handles all interaction with the leaderboard's SQLite database."""
    def __init__(self, db_file: str = SERVER_DB_FILE):
        # check_same_thread=False is essential for multi-threading access
        self.conn = sqlite3.connect(db_file, check_same_thread=False)
        self.lock = threading.Lock()
        self.setup()

    def setup(self):
        """Creates tables if they don't exist."""
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS Scores (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                player_name TEXT NOT NULL,
                score INTEGER NOT NULL,
                level INTEGER NOT NULL,
                timestamp TEXT NOT NULL
            )
        """)
        self.conn.commit()

    def add_score(self, player_name: str, score: int, level: int, timestamp: str) -> dict:
        """Stores one run and returns it as the acknowledgment payload."""
        with self.lock:
            cur = self.conn.execute(
                "INSERT INTO Scores (player_name, score, level, timestamp) VALUES (?, ?, ?, ?)",
                (player_name, score, level, timestamp))
            self.conn.commit()
            record_id = cur.lastrowid
        return {
            "id": str(record_id),
            "playerName": player_name,
            "score": score,
            "level": level,
            "timestamp": timestamp,
        }

    def get_leaderboard(self, limit: int) -> List[dict]:
        """Fetches the top scores, best first."""
        with self.lock:
            rows = self.conn.execute("""
                SELECT id, player_name, score, level, timestamp
                FROM Scores
                ORDER BY score DESC, id ASC
                LIMIT ?
            """, (limit,)).fetchall()
        return [
            {"id": str(r[0]), "playerName": r[1], "score": r[2], "level": r[3], "timestamp": r[4]}
            for r in rows
        ]

    def close(self):
        self.conn.close()
