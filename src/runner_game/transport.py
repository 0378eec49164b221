"""
transport.py: JSON-over-UDP requests to the leaderboard service.

Every failure (socket error, timeout, error reply, unexpected reply) is raised
as TransportError so the score client can retry them all the same way.
"""

import json
import socket
import time
from typing import List, Optional, Tuple

from .constants import LEADERBOARD_HOST, LEADERBOARD_PORT, BUFFER_SIZE, REQUEST_TIMEOUT
from .errors import TransportError


class UdpScoreTransport:
    def __init__(self, host: str = LEADERBOARD_HOST, port: int = LEADERBOARD_PORT,
                 timeout: float = REQUEST_TIMEOUT):
        self.server_addr: Tuple[str, int] = (host, port)
        self.timeout = timeout

    def _request(self, message: dict, expected_type: str) -> dict:
        """Sends one datagram and waits for the matching reply."""
        data = json.dumps(message).encode('utf-8')

        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.settimeout(0.1)
            try:
                sock.sendto(data, self.server_addr)
            except OSError as e:
                raise TransportError(f"Send to {self.server_addr} failed: {e}") from e

            start_time = time.time()
            while time.time() - start_time < self.timeout:
                try:
                    raw, _ = sock.recvfrom(BUFFER_SIZE)
                except socket.timeout:
                    continue
                except OSError as e:
                    raise TransportError(f"Receive from {self.server_addr} failed: {e}") from e

                try:
                    reply = json.loads(raw.decode('utf-8'))
                except ValueError as e:
                    raise TransportError(f"Malformed reply: {e}") from e

                if not isinstance(reply, dict):
                    raise TransportError(f"Reply is not a JSON object: {reply!r}")

                reply_type = reply.get("type")
                if reply_type == expected_type:
                    return reply
                if reply_type == "error":
                    raise TransportError(reply.get("message", "Server reported an error"))
                raise TransportError(f"Unexpected reply type: {reply_type!r}")

        raise TransportError(f"No reply from {self.server_addr} within {self.timeout}s")

    def submit_score(self, payload: dict) -> dict:
        """Returns the record as stored by the server."""
        reply = self._request(dict(payload, type="submit_score"), "score_saved")
        record: Optional[dict] = reply.get("record")
        if not isinstance(record, dict):
            raise TransportError("Acknowledgment is missing the stored record")
        return record

    def fetch_scores(self, limit: int) -> List[dict]:
        reply = self._request({"type": "fetch_scores", "limit": limit}, "scores")
        scores = reply.get("scores")
        if not isinstance(scores, list):
            raise TransportError("Score list missing from reply")
        return scores

    def health(self):
        self._request({"type": "health"}, "ok")
