from __future__ import annotations

"""
Path selector and navigator.

Replays the shortest discovered exit path against the authority, one move at a
time. States: IDLE -> WALKING -> SUCCEEDED | ABORTED (or IDLE -> SUCCEEDED when
there is nothing to walk).

An aborted walk leaves `finished` unset; only arrival and "no path" mark the
session finished.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from .gateway import MazeGateway
from .schemas import GatewayError, PathCandidate
from .state import MazeSessionState

logger = logging.getLogger(__name__)


class NavigationStatus(str, Enum):
    IDLE = "IDLE"
    WALKING = "WALKING"
    SUCCEEDED = "SUCCEEDED"
    ABORTED = "ABORTED"


def select_shortest_path(results: Sequence[PathCandidate]) -> Optional[PathCandidate]:
    # Results are kept sorted by length; ties stay in discovery order.
    if not results:
        return None
    return results[0]


@dataclass
class PathNavigator:
    state: MazeSessionState
    gateway: MazeGateway
    status: NavigationStatus = NavigationStatus.IDLE
    steps_taken: int = 0

    def reset(self) -> None:
        self.status = NavigationStatus.IDLE
        self.steps_taken = 0

    def follow(self, candidate: Optional[PathCandidate] = None) -> NavigationStatus:
        self.reset()
        route = candidate or select_shortest_path(self.state.results)

        if route is None:
            self.state.append_log("No path available to the exit.")
            self.state.mark_finished()
            self.status = NavigationStatus.SUCCEEDED
            return self.status

        self.status = NavigationStatus.WALKING
        self.state.append_log(f"Heading to the exit ({route.length} steps).")

        # path[0] is where the agent already stands.
        for step in route.path[1:]:
            try:
                resp = self.gateway.move(self.state.move_endpoint, step.x, step.y)
            except GatewayError as e:
                self.state.append_log(f"Move to {step} failed: {e}")
                self.status = NavigationStatus.ABORTED
                logger.warning("[Maze] navigation aborted after %d/%d steps", self.steps_taken, route.length - 1)
                return self.status

            self.state.apply_move(resp)
            self.steps_taken += 1
            self.state.append_log(f"Moved to {step}")

        self.state.disarm("The player reached the exit!")
        self.state.mark_finished()
        self.status = NavigationStatus.SUCCEEDED
        return self.status
