"""
Maze agent configuration.

Priority: environment variables > explicit values > defaults.

    MAZE_API_URL     base URL of the maze authority
    MAZE_PLAYER      player name sent with start-game
    MAZE_TIMEOUT_S   per-request timeout in seconds
    MAZE_EXPLORER    "dfs" (exhaustive search) or "greedy" (stepper)
    MAZE_LOG_DIR     directory for the per-player session log
    MAZE_LOG_LEVEL   DEBUG, INFO, WARNING or ERROR
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

DEFAULT_MAZE_API_URL = "http://localhost:5803"
DEFAULT_PLAYER_NAME = "player"
DEFAULT_TIMEOUT_S = 3.0
EXPLORER_KINDS = ("dfs", "greedy")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

_ENV_KEYS = {
    "api_url": "MAZE_API_URL",
    "player_name": "MAZE_PLAYER",
    "request_timeout_s": "MAZE_TIMEOUT_S",
    "explorer": "MAZE_EXPLORER",
    "log_dir": "MAZE_LOG_DIR",
    "log_level": "MAZE_LOG_LEVEL",
}


@dataclass
class MazeNavCfg:
    api_url: str = DEFAULT_MAZE_API_URL
    player_name: str = DEFAULT_PLAYER_NAME
    request_timeout_s: float = DEFAULT_TIMEOUT_S
    explorer: str = "dfs"
    log_dir: Optional[str] = None
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        self.explorer = str(self.explorer).strip().lower()
        if self.explorer not in EXPLORER_KINDS:
            raise ValueError(f"explorer must be one of {EXPLORER_KINDS}, got {self.explorer!r}")
        self.request_timeout_s = float(self.request_timeout_s)
        if self.request_timeout_s <= 0:
            raise ValueError("request_timeout_s must be positive")
        if not self.player_name or not str(self.player_name).strip():
            raise ValueError("player_name must not be empty")
        self.log_level = str(self.log_level).strip().upper()
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {LOG_LEVELS}, got {self.log_level!r}")

    @property
    def level(self) -> int:
        return getattr(logging, self.log_level)

    @classmethod
    def from_env(cls, env: Optional[Dict[str, str]] = None, **overrides: Any) -> "MazeNavCfg":
        env = os.environ if env is None else env
        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {k: v for k, v in overrides.items() if k in known and v is not None}
        for name, key in _ENV_KEYS.items():
            raw = env.get(key)
            if raw is not None and raw.strip():
                values[name] = raw.strip()
        return cls(**values)
