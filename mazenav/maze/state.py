from __future__ import annotations

"""
Maze Session State Store (non-network, per session).

This is the "memory" of the maze agent. It tracks:
- the agent position last confirmed by the authority
- the discovered map (grows monotonically within a session)
- cells entered since the game started (visited set)
- capability endpoints returned with the latest start/move response
- lifecycle flags, the append-only session log and the published exit paths

Every method here is a pure state transition; network calls live in the
explorers and the navigator, which write their outcomes back into this store.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from .schemas import Cell, Coordinate, GatewayResponse, PathCandidate

logger = logging.getLogger(__name__)

StateListener = Callable[[str], None]


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view handed to rendering code."""

    position: Coordinate
    map: Dict[str, Cell]
    log: Tuple[str, ...]
    results: Tuple[PathCandidate, ...]
    exploring: bool
    finished: bool
    dead: bool
    win: bool


@dataclass
class MazeSessionState:
    position: Coordinate = field(default_factory=Coordinate.origin)
    map: Dict[str, Cell] = field(default_factory=dict)
    visited: Set[str] = field(default_factory=set)

    dead: bool = False
    win: bool = False
    finished: bool = False
    exploring: bool = False

    move_endpoint: str = ""
    discover_endpoint: str = ""

    log: List[str] = field(default_factory=list)
    results: List[PathCandidate] = field(default_factory=list)

    _listeners: List[StateListener] = field(default_factory=list, repr=False, compare=False)

    def subscribe(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def _notify(self, event: str) -> None:
        for listener in list(self._listeners):
            listener(event)

    def reset(self) -> None:
        self.position = Coordinate.origin()
        self.map = {}
        self.visited = set()
        self.dead = False
        self.win = False
        self.finished = False
        self.exploring = False
        self.move_endpoint = ""
        self.discover_endpoint = ""
        self.log = []
        self.results = []
        self._notify("reset")

    def apply_start(self, resp: GatewayResponse) -> None:
        self.reset()
        self.exploring = True
        self._install(resp)
        self.visited = {resp.position.key}
        logger.debug("[Maze] State: started at %s", resp.position)
        self._notify("start")

    def apply_move(self, resp: GatewayResponse) -> None:
        self._install(resp)
        self.visited.add(resp.position.key)
        self._notify("move")

    def _install(self, resp: GatewayResponse) -> None:
        self.position = resp.position
        self.dead = resp.dead
        self.win = resp.win
        self.move_endpoint = resp.move_endpoint
        self.discover_endpoint = resp.discover_endpoint

    def record_discovery(self, cells: Iterable[Cell]) -> int:
        """Merge cells into the map; returns how many coordinates were new."""
        before = len(self.map)
        for cell in cells:
            self.map[cell.key] = cell
        added = len(self.map) - before
        if added:
            logger.debug("[Maze] State: map grew by %d to %d cells", added, len(self.map))
        return added

    def append_log(self, entry: str) -> None:
        self.log.append(entry)
        logger.info("[Maze] %s", entry)

    def publish_results(self, paths: Iterable[PathCandidate]) -> None:
        # sorted() is stable: equal lengths keep discovery order.
        self.results = sorted(paths, key=lambda p: p.length)
        self._notify("results")

    def arm(self) -> None:
        self.exploring = True
        self._notify("arm")

    def disarm(self, message: Optional[str] = None) -> None:
        self.exploring = False
        if message:
            self.append_log(message)
        self._notify("disarm")

    def mark_finished(self) -> None:
        self.finished = True
        self._notify("finished")

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            position=self.position,
            map=dict(self.map),
            log=tuple(self.log),
            results=tuple(self.results),
            exploring=self.exploring,
            finished=self.finished,
            dead=self.dead,
            win=self.win,
        )
