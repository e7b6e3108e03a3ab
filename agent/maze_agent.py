"""
Maze agent entrypoint.

Starts a game on the maze authority, explores it, walks the shortest exit path
and prints the discovered map plus the session log.

    python agent/mock_maze.py &
    python agent/maze_agent.py --player alice --explorer dfs --log_dir output --log_level DEBUG
"""

import argparse
import logging
import sys

from mazenav.configs.maze import LOG_LEVELS, MazeNavCfg
from mazenav.maze import GatewayError, HttpMazeGateway, MazeSession, NavigationStatus
from mazenav.maze.grid import render_ascii
from mazenav.utils.logging_utils import attach_session_log, detach_session_log

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | AGENT | %(levelname)-8s | %(message)s",
)
logger = logging.getLogger("MazeAgent")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("--api_url", type=str, default=None, help="Maze authority base URL")
    parser.add_argument("--player", type=str, default=None, help="Player name")
    parser.add_argument("--explorer", type=str, default=None, choices=["dfs", "greedy"])
    parser.add_argument("--timeout_s", type=float, default=None, help="Per-request timeout in seconds")
    parser.add_argument("--log_dir", type=str, default=None, help="Write a per-player log file here")
    parser.add_argument("--log_level", type=str.upper, default=None, choices=LOG_LEVELS, help="Session log level")
    parser.add_argument("--show_map", action="store_true", help="Print the discovered map at the end")
    args = parser.parse_args(argv)

    cfg = MazeNavCfg.from_env(
        api_url=args.api_url,
        player_name=args.player,
        explorer=args.explorer,
        request_timeout_s=args.timeout_s,
        log_dir=args.log_dir,
        log_level=args.log_level,
    )

    gateway = HttpMazeGateway(cfg.api_url, timeout_s=cfg.request_timeout_s)
    with MazeSession(gateway, cfg) as session:
        handler = attach_session_log(session, cfg.log_dir, cfg.level) if cfg.log_dir else None
        if handler is not None:
            logger.info(f"[LOOP] Session log -> {handler.baseFilename} ({cfg.log_level})")
        logger.info(f"[LOOP] Starting game -> player='{cfg.player_name}', explorer={cfg.explorer}")
        try:
            status = session.run()
        except GatewayError as e:
            logger.error(f"Could not start the game: {e}")
            return 2
        finally:
            if handler is not None:
                detach_session_log(handler)
            gateway.close()

    snap = session.snapshot()
    if args.show_map:
        print(render_ascii(snap.map, snap.position))
    for entry in snap.log:
        print(entry)

    logger.info(
        f"[LOOP] Done -> status={status.value}, finished={snap.finished}, "
        f"win={snap.win}, dead={snap.dead}, paths={len(snap.results)}"
    )
    return 0 if status is NavigationStatus.SUCCEEDED and not snap.dead else 1


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        logger.info("Agent stopped by user")
