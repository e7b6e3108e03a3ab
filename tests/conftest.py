import sys
from pathlib import Path
from typing import Iterable, Optional

import pytest


# Ensure the repo root is on PYTHONPATH so `import mazenav` / `import agent` work in tests
_ROOT = Path(__file__).resolve().parents[1]
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from mazenav.configs.maze import MazeNavCfg  # noqa: E402
from mazenav.maze import Coordinate, IllegalMoveError, LocalMazeGateway, MazeSession, NetworkOrTimeoutError, SimulatedMaze  # noqa: E402


class FlakyMazeGateway(LocalMazeGateway):
    """Local gateway that fails chosen calls.

    fail_discover_at: discovery times out while the agent stands on one of these cells
    fail_move_calls:  zero-based indexes (over all move calls) that are refused
    """

    def __init__(
        self,
        maze: SimulatedMaze,
        fail_discover_at: Iterable[Coordinate] = (),
        fail_move_calls: Iterable[int] = (),
    ):
        super().__init__(maze)
        self.fail_discover_at = set(fail_discover_at)
        self.fail_move_calls = set(fail_move_calls)
        self.position: Optional[Coordinate] = None
        self._move_idx = 0

    def start(self, player_name):
        resp = super().start(player_name)
        self.position = resp.position
        return resp

    def discover(self, discover_endpoint):
        if self.position in self.fail_discover_at:
            self.calls.append(("discover", discover_endpoint))
            raise NetworkOrTimeoutError(f"timeout discovering around {self.position}")
        return super().discover(discover_endpoint)

    def move(self, move_endpoint, x, y):
        idx = self._move_idx
        self._move_idx += 1
        if idx in self.fail_move_calls:
            self.calls.append(("move", x, y))
            raise IllegalMoveError(f"injected failure on move #{idx}")
        resp = super().move(move_endpoint, x, y)
        self.position = resp.position
        return resp


@pytest.fixture
def make_session():
    def _make(layout=None, explorer="dfs", maze=None, **flaky):
        maze = maze or SimulatedMaze(layout)
        gateway = FlakyMazeGateway(maze, **flaky) if flaky else LocalMazeGateway(maze)
        session = MazeSession(gateway, MazeNavCfg(explorer=explorer, player_name="tester"))
        session.start()
        return session, gateway

    return _make


@pytest.fixture
def flaky_gateway():
    def _make(layout, **kwargs):
        return FlakyMazeGateway(SimulatedMaze(layout), **kwargs)

    return _make
