"""
Leaderboard service: accepts score submissions and serves the top scores
over JSON datagrams, with SQLite persistence.
"""

import json
import logging
import socket
import threading
from typing import Tuple

from .constants import (
    LEADERBOARD_HOST, LEADERBOARD_PORT, BUFFER_SIZE, MAX_LOCAL_RECORDS, SERVER_DB_FILE
)
from .data_models import utc_timestamp
from .score_client import validate_score_data
from .server_db import ScoreDatabase

logger = logging.getLogger(__name__)


class LeaderboardServer:
    def __init__(self, db: ScoreDatabase, host: str = LEADERBOARD_HOST,
                 port: int = LEADERBOARD_PORT):
        self.db = db

        # Network
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.sock.bind((host, port))
        self.sock.settimeout(0.2)

        # Threading
        self.running = threading.Event()
        self.running.set()
        self.network_thread = threading.Thread(target=self._network_loop, daemon=True)

    @property
    def address(self) -> Tuple[str, int]:
        return self.sock.getsockname()

    def start(self):
        self.network_thread.start()

    def stop(self):
        logger.info("Stopping leaderboard server...")
        self.running.clear()
        if self.network_thread.is_alive():
            self.network_thread.join()
        self.sock.close()

    def _network_loop(self):
        """Listens for and answers incoming requests."""
        logger.info("Leaderboard server listening on %s:%d", *self.address)
        while self.running.is_set():
            try:
                data, addr = self.sock.recvfrom(BUFFER_SIZE)
            except socket.timeout:
                continue
            except OSError as e:
                if self.running.is_set():
                    logger.error("Network error: %s", e)
                continue

            try:
                message = json.loads(data.decode('utf-8'))
                reply = self.handle(message)
            except (ValueError, AttributeError) as e:
                reply = {"type": "error", "message": f"Malformed request: {e}"}
            except Exception as e:
                logger.exception("Request from %s failed", addr)
                reply = {"type": "error", "message": str(e)}

            try:
                self.sock.sendto(json.dumps(reply).encode('utf-8'), addr)
            except OSError as e:
                logger.error("Error replying to %s: %s", addr, e)

    def handle(self, message: dict) -> dict:
        """Builds the reply for one decoded request."""
        msg_type = message.get("type")

        if msg_type == "health":
            return {"type": "ok"}
        if msg_type == "submit_score":
            return self._handle_submit(message)
        if msg_type == "fetch_scores":
            limit = message.get("limit", 10)
            if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
                return {"type": "error", "message": "Limit must be a positive integer"}
            limit = min(limit, MAX_LOCAL_RECORDS)
            return {"type": "scores", "scores": self.db.get_leaderboard(limit)}
        return {"type": "error", "message": f"Unknown message type: {msg_type!r}"}

    def _handle_submit(self, message: dict) -> dict:
        name = message.get("playerName")
        score = message.get("score")
        level = message.get("level")

        errors = validate_score_data(name, score, level)
        if errors:
            return {"type": "error", "message": "; ".join(errors)}

        record = self.db.add_score(
            name.strip(), score, level, message.get("timestamp") or utc_timestamp())
        logger.info("Stored score %d for %s", score, record["playerName"])
        return {"type": "score_saved", "record": record}


def serve(host: str = LEADERBOARD_HOST, port: int = LEADERBOARD_PORT,
          db_file: str = SERVER_DB_FILE):
    """Runs the service in the foreground until interrupted."""
    server = LeaderboardServer(ScoreDatabase(db_file), host=host, port=port)
    print(f"Leaderboard server initialized on UDP {host}:{server.address[1]}.")
    server.start()
    try:
        while server.running.is_set():
            server.network_thread.join(0.1)
    except KeyboardInterrupt:
        pass
    finally:
        server.stop()
        server.db.close()
        print("Server stopped.")
