from __future__ import annotations

"""
Maze session (orchestrator).

Wires the maze pipeline together:
  MazeSessionState (memory)
    -> Explorer (DFS search or greedy stepper, one per session)
    -> PathNavigator (replay the shortest exit path)

External interface is intentionally small: `start()` / `update_from_start()`,
`explore()`, `follow_shortest_path()`, `reset()` and `snapshot()` for rendering.
"""

import logging
from typing import List, Optional

from mazenav.configs.maze import MazeNavCfg

from .explorer import ExhaustiveDFSExplorer, ExplorerSlot, GreedyExplorer, build_explorer
from .gateway import MazeGateway
from .navigator import NavigationStatus, PathNavigator
from .scheduler import StepScheduler
from .schemas import GatewayError, GatewayResponse, PathCandidate
from .state import MazeSessionState, SessionSnapshot

logger = logging.getLogger(__name__)

_STEP_EVENTS = ("start", "move", "arm")


class MazeSession:
    def __init__(self, gateway: MazeGateway, cfg: Optional[MazeNavCfg] = None):
        self.cfg = cfg or MazeNavCfg()
        self.gateway = gateway
        self.state = MazeSessionState()
        self.slot = ExplorerSlot()
        self.explorer = build_explorer(self.cfg.explorer, self.state, self.gateway)
        self.navigator = PathNavigator(state=self.state, gateway=self.gateway)
        self.scheduler = StepScheduler(self._greedy_tick, name="greedy")
        self.state.subscribe(self._on_state_change)
        logger.info("[INIT] MazeSession -> explorer=%s", self.explorer.kind)

    @property
    def greedy(self) -> bool:
        return isinstance(self.explorer, GreedyExplorer)

    def __enter__(self) -> "MazeSession":
        if self.greedy:
            self.scheduler.start()
        return self

    def __exit__(self, *exc) -> None:
        self.scheduler.stop(timeout=5.0)

    def _on_state_change(self, event: str) -> None:
        if self.greedy and event in _STEP_EVENTS and self.state.exploring:
            self.scheduler.request_step()

    def _greedy_tick(self) -> bool:
        with self.slot.claim("greedy") as acquired:
            if not acquired:
                return False
            return self.explorer.step()

    def reset(self) -> None:
        self.state.reset()
        self.navigator.reset()

    def start(self, player_name: Optional[str] = None) -> GatewayResponse:
        name = player_name or self.cfg.player_name
        try:
            resp = self.gateway.start(name)
        except GatewayError as e:
            logger.error("[Maze] failed to start a game for %s: %s", name, e)
            raise
        self.update_from_start(resp)
        return resp

    def update_from_start(self, resp: GatewayResponse) -> None:
        self.navigator.reset()
        self.state.apply_start(resp)

    def explore(self) -> List[PathCandidate]:
        if not self.state.discover_endpoint:
            self.state.append_log("No game in progress.")
            return []

        if self.greedy:
            if self.state.exploring:
                self.scheduler.request_step()
            elif not (self.state.dead or self.state.win):
                # The "arm" event queues the first tick.
                self.state.arm()
            if self.scheduler.running:
                self.scheduler.wait_idle()
            else:
                self.scheduler.run_until_idle()
            return list(self.state.results)

        with self.slot.claim("explore") as acquired:
            if not acquired:
                self.state.append_log(f"Exploration skipped: {self.slot.holder} in progress.")
                return list(self.state.results)

            assert isinstance(self.explorer, ExhaustiveDFSExplorer)
            paths = self.explorer.run(self.state.position)
            self.state.publish_results(paths)
            self._log_paths()
            self.state.disarm()
        return list(self.state.results)

    def _log_paths(self) -> None:
        results = self.state.results
        if not results:
            self.state.append_log("No path to the exit found.")
            return
        self.state.append_log("Paths to the exit:")
        for i, res in enumerate(results, start=1):
            self.state.append_log(f"Path {i}: {res.length} cells.")
        self.state.append_log(f"Shortest path: {results[0].length} cells.")

    def follow_shortest_path(self) -> NavigationStatus:
        with self.slot.claim("navigate") as acquired:
            if not acquired:
                self.state.append_log(f"Navigation skipped: {self.slot.holder} in progress.")
                return self.navigator.status
            return self.navigator.follow()

    def run(self, player_name: Optional[str] = None) -> NavigationStatus:
        """Start a game, explore it, then walk the shortest exit path."""
        self.start(player_name)
        self.explore()
        return self.follow_shortest_path()

    def snapshot(self) -> SessionSnapshot:
        return self.state.snapshot()
