from __future__ import annotations

import argparse
import logging
import sys

from .constants import LEADERBOARD_HOST, LEADERBOARD_PORT, LOCAL_DB_FILE, SERVER_DB_FILE


def _build_client(args: argparse.Namespace):
    from .local_store import LocalStore
    from .score_client import ScoreClient
    from .transport import UdpScoreTransport

    return ScoreClient(
        transport=UdpScoreTransport(host=args.host, port=args.port),
        store=LocalStore(args.db),
    )


def _cmd_play(args: argparse.Namespace) -> int:
    from .game_engine import GameEngine
    from .runner_client import RunnerClient

    RunnerClient(args.name, GameEngine(), _build_client(args)).run()
    return 0


def _cmd_serve(args: argparse.Namespace) -> int:
    from .leaderboard_server import serve

    serve(host=args.host, port=args.port, db_file=args.db)
    return 0


def _cmd_sync(args: argparse.Namespace) -> int:
    report = _build_client(args).sync_local_scores()
    print(f"Synced {report.synced} local scores, {len(report.errors)} failed.")
    for record, error in report.errors:
        print(f"  {record.player_name} {record.score}: {error}")
    return 0 if report.success else 1


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="dash-runner")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    sub = parser.add_subparsers(dest="command", required=True)

    play = sub.add_parser("play", help="Play the game.")
    play.add_argument("--name", default="Player", help="Name used for leaderboard submissions.")
    play.add_argument("--db", default=LOCAL_DB_FILE, help="Local score store file.")
    play.set_defaults(func=_cmd_play)

    serve = sub.add_parser("serve", help="Run the leaderboard service.")
    serve.add_argument("--db", default=SERVER_DB_FILE, help="Server score database file.")
    serve.set_defaults(func=_cmd_serve)

    sync = sub.add_parser("sync", help="Push locally saved scores to the leaderboard.")
    sync.add_argument("--db", default=LOCAL_DB_FILE, help="Local score store file.")
    sync.set_defaults(func=_cmd_sync)

    for p in (play, serve, sync):
        p.add_argument("--host", default=LEADERBOARD_HOST)
        p.add_argument("--port", type=int, default=LEADERBOARD_PORT)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return int(args.func(args))


if __name__ == "__main__":
    sys.exit(main())
