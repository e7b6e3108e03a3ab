"""
Per-session log file.

Records from every `mazenav.*` logger are copied into
`{log_dir}/{player}.log`, each stamped with what the session was doing at
that moment: the player, the position last confirmed by the authority, and
which operation held the explorer slot.
"""

import logging
import os

from mazenav.maze.session import MazeSession

SESSION_LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(player)s @ %(position)s, %(activity)s] %(name)s: %(message)s"
PACKAGE_LOGGER = "mazenav"


class SessionContextFilter(logging.Filter):
    """Reads the session live, so the stamp follows the agent as it moves."""

    def __init__(self, session: MazeSession):
        super().__init__()
        self.session = session

    def filter(self, record: logging.LogRecord) -> bool:
        record.player = self.session.cfg.player_name
        record.position = self.session.state.position.key
        record.activity = self.session.slot.holder or "idle"
        return True


def session_log_path(log_dir: str, player: str) -> str:
    safe = "".join(ch if ch.isalnum() or ch in "-_" else "_" for ch in player) or "player"
    return os.path.abspath(os.path.join(log_dir, f"{safe}.log"))


def attach_session_log(session: MazeSession, log_dir: str, level: int = logging.INFO) -> logging.FileHandler:
    """Start mirroring package logs for `session` into its player file; returns the handler."""
    os.makedirs(log_dir, exist_ok=True)
    handler = logging.FileHandler(session_log_path(log_dir, session.cfg.player_name), mode="a", encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(SESSION_LOG_FORMAT))
    handler.addFilter(SessionContextFilter(session))

    pkg = logging.getLogger(PACKAGE_LOGGER)
    if pkg.getEffectiveLevel() > level:
        pkg.setLevel(level)
    pkg.addHandler(handler)
    return handler


def detach_session_log(handler: logging.Handler) -> None:
    logging.getLogger(PACKAGE_LOGGER).removeHandler(handler)
    handler.close()
