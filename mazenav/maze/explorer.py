from __future__ import annotations

"""
Maze explorers.

Both variants physically drive the one remote agent, so a session picks exactly
one of them and every operation that moves the agent runs under the session's
`ExplorerSlot`:

- `ExhaustiveDFSExplorer`: backtracking depth-first search that enumerates every
  safe route from the entry to an exit. "Looking around" needs the agent to stand
  on a cell, so each descent is a real move and each return is a real backtrack move.
- `GreedyExplorer`: one tick at a time, step onto the first safe unvisited
  neighbour. No backtracking; disarms itself when stuck or on any failure.

Failures never leave the explorer: they are written to the session log and only
the current branch (or tick) is abandoned.
"""

import logging
import threading
from abc import ABC
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, Set, Tuple

from mazenav.configs.maze import EXPLORER_KINDS

from .gateway import MazeGateway
from .schemas import Cell, Coordinate, GatewayError, PathCandidate
from .state import MazeSessionState

logger = logging.getLogger(__name__)


class ExplorerSlot:
    """
    Session-wide "active operation" slot.

    Exploration runs, greedy ticks and navigation all claim it; a busy slot makes the
    caller skip instead of wait.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.holder: Optional[str] = None

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @contextmanager
    def claim(self, name: str) -> Iterator[bool]:
        acquired = self._lock.acquire(blocking=False)
        if acquired:
            self.holder = name
        else:
            logger.debug("[Maze] slot busy (%s), %s skipped", self.holder, name)
        try:
            yield acquired
        finally:
            if acquired:
                self.holder = None
                self._lock.release()


class Explorer(ABC):
    kind: str = ""

    def __init__(self, state: MazeSessionState, gateway: MazeGateway):
        self.state = state
        self.gateway = gateway

    def _move_to(self, coord: Coordinate) -> None:
        # Position only changes from the authority's answer, never optimistically.
        resp = self.gateway.move(self.state.move_endpoint, coord.x, coord.y)
        self.state.apply_move(resp)

    def _discover(self) -> List[Cell]:
        try:
            cells = self.gateway.discover(self.state.discover_endpoint)
        except GatewayError as e:
            self.state.append_log(f"Discovery failed: {e}")
            raise
        self.state.record_discovery(cells)
        return cells


@dataclass
class ExplorationRun:
    """Context shared by every frame of one exploration run."""

    visited: Set[str] = field(default_factory=set)
    paths: List[PathCandidate] = field(default_factory=list)
    backtracks: int = 0


@dataclass
class _Frame:
    path: Tuple[Coordinate, ...]
    neighbors: Iterator[Cell]

    @property
    def current(self) -> Coordinate:
        return self.path[-1]


class ExhaustiveDFSExplorer(Explorer):
    kind = "dfs"

    def run(self, start: Optional[Coordinate] = None) -> List[PathCandidate]:
        """
        Explore from `start` (default: current position) and return every exit path
        in discovery order.

        Recursion is unrolled into an explicit stack of frames. A frame is pushed once
        the agent stands on its cell and has looked around; when its neighbours are
        exhausted it is popped and the agent backtracks to the parent frame's cell.
        """
        run = ExplorationRun()
        origin = start or self.state.position

        root = self._enter((origin,), run)
        if root is None:
            return run.paths

        stack: List[_Frame] = [root]
        while stack:
            top = stack[-1]
            cell = next(top.neighbors, None)

            if cell is None:
                stack.pop()
                if stack:
                    self._backtrack(stack[-1].current, run)
                continue

            if not self._can_explore(cell, run):
                continue

            next_path = top.path + (cell.coord,)
            if cell.is_exit:
                self._record_exit(next_path, run)
                continue

            child = self._enter(next_path, run)
            if child is None:
                # Branch abandoned before it started; make sure we stand on `top` again.
                self._backtrack(top.current, run)
            else:
                stack.append(child)

        logger.debug("[Maze] DFS done: %d cells visited, %d exit paths, %d backtracks",
                     len(run.visited), len(run.paths), run.backtracks)
        return run.paths

    def _enter(self, path: Tuple[Coordinate, ...], run: ExplorationRun) -> Optional[_Frame]:
        current = path[-1]
        if current.key in run.visited:
            return None
        run.visited.add(current.key)

        try:
            self._move_to(current)
        except GatewayError as e:
            self.state.append_log(f"Move to {current} failed: {e}")
            return None

        self.state.append_log(f"Exploring ({len(path)}): {current}")

        try:
            neighbors = self._discover()
        except GatewayError:
            return None
        return _Frame(path=path, neighbors=iter(neighbors))

    @staticmethod
    def _can_explore(cell: Cell, run: ExplorationRun) -> bool:
        return cell.key not in run.visited and cell.reachable and not cell.is_trap

    def _record_exit(self, path: Tuple[Coordinate, ...], run: ExplorationRun) -> None:
        run.paths.append(PathCandidate(path))
        self.state.append_log(f"Exit found in {len(path)} steps.")

    def _backtrack(self, coord: Coordinate, run: ExplorationRun) -> None:
        run.backtracks += 1
        try:
            self._move_to(coord)
        except GatewayError as e:
            self.state.append_log(f"Backtrack to {coord} failed: {e}")
            return
        self.state.append_log(f"Back to {coord} after dead end.")


class GreedyExplorer(Explorer):
    kind = "greedy"

    def can_step(self) -> bool:
        s = self.state
        return s.exploring and bool(s.discover_endpoint) and not s.dead and not s.win

    def choose_next_move(self, cells: Sequence[Cell]) -> Optional[Cell]:
        for cell in cells:
            if cell.reachable and not cell.is_trap and cell.key not in self.state.visited:
                return cell
        return None

    def step(self) -> bool:
        """One tick: discover, pick, move. Returns True if the agent moved."""
        if not self.can_step():
            if self.state.exploring and (self.state.dead or self.state.win):
                self.state.disarm("Exploration stopped: game over.")
            return False

        try:
            cells = self._discover()
            nxt = self.choose_next_move(cells)
            if nxt is None:
                self.state.disarm("Exploration finished: no safe cell found.")
                return False
            self._move_to(nxt.coord)
        except GatewayError as e:
            self.state.disarm(f"Error during exploration: {e}")
            return False

        self.state.append_log(f"Moved to {nxt.coord}")
        return True


def build_explorer(kind: str, state: MazeSessionState, gateway: MazeGateway) -> Explorer:
    if kind == ExhaustiveDFSExplorer.kind:
        return ExhaustiveDFSExplorer(state, gateway)
    if kind == GreedyExplorer.kind:
        return GreedyExplorer(state, gateway)
    raise ValueError(f"unknown explorer {kind!r}; expected one of {EXPLORER_KINDS}")
