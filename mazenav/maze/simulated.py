"""
In-process maze authority.

`SimulatedMaze` plays the remote authority's role from an ASCII layout:

    S . . #
    # T . E

`S` entry, `.` path, `#` wall, `T` trap, `E` exit. Coordinates are shifted so the
entry is always (0, 0). Each game hands out numbered capability endpoints and
refuses stale ones, so callers that reuse an old endpoint fail loudly.

`LocalMazeGateway` exposes a maze through the `MazeGateway` contract and records
every call; tests, the benchmark and the Flask mock server all sit on top of it.
"""

from __future__ import annotations

import itertools
import logging
from collections import deque
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from .gateway import MazeGateway
from .schemas import (
    Cell,
    CellKind,
    Coordinate,
    GatewayResponse,
    IllegalMoveError,
    NetworkOrTimeoutError,
)

logger = logging.getLogger(__name__)

GLYPHS: Dict[str, CellKind] = {
    "S": CellKind.PATH,
    ".": CellKind.PATH,
    "#": CellKind.WALL,
    "T": CellKind.TRAP,
    "E": CellKind.STOP,
}

# up, right, down, left
NEIGHBOR_OFFSETS: Tuple[Tuple[int, int], ...] = ((0, -1), (1, 0), (0, 1), (-1, 0))

DEFAULT_BASE_URL = "mem://maze"


@dataclass
class SimulatedGame:
    game_id: str
    player: str
    base_url: str
    position: Coordinate
    token: int = 0
    dead: bool = False
    win: bool = False

    @property
    def move_endpoint(self) -> str:
        return f"{self.base_url}/{self.game_id}/move/{self.token}"

    @property
    def discover_endpoint(self) -> str:
        return f"{self.base_url}/{self.game_id}/discover/{self.token}"

    def response(self) -> GatewayResponse:
        return GatewayResponse(
            position=self.position,
            dead=self.dead,
            win=self.win,
            move_endpoint=self.move_endpoint,
            discover_endpoint=self.discover_endpoint,
        )


def parse_endpoint(endpoint: str) -> Tuple[str, str, int]:
    """Split `<base>/<game_id>/<kind>/<token>` into its last three parts."""
    parts = endpoint.rstrip("/").rsplit("/", 3)
    if len(parts) != 4:
        raise NetworkOrTimeoutError(f"malformed endpoint: {endpoint}")
    _, game_id, kind, raw_token = parts
    try:
        token = int(raw_token)
    except ValueError as e:
        raise NetworkOrTimeoutError(f"malformed endpoint: {endpoint}") from e
    return game_id, kind, token


class SimulatedMaze:
    def __init__(self, layout: Union[str, Sequence[str]], base_url: str = DEFAULT_BASE_URL):
        rows = layout.strip("\n").splitlines() if isinstance(layout, str) else list(layout)
        rows = [row.replace(" ", "") for row in rows if row.strip()]
        if not rows:
            raise ValueError("empty maze layout")

        self.base_url = base_url.rstrip("/")
        self._cells: Dict[Coordinate, CellKind] = {}
        entry: Optional[Tuple[int, int]] = None
        for r, row in enumerate(rows):
            for c, glyph in enumerate(row):
                if glyph not in GLYPHS:
                    raise ValueError(f"unknown glyph {glyph!r} at row {r}, col {c}")
                if glyph == "S":
                    if entry is not None:
                        raise ValueError("layout has more than one entry")
                    entry = (c, r)
        if entry is None:
            raise ValueError("layout has no entry 'S'")

        ex, ey = entry
        for r, row in enumerate(rows):
            for c, glyph in enumerate(row):
                self._cells[Coordinate(c - ex, r - ey)] = GLYPHS[glyph]

        self._games: Dict[str, SimulatedGame] = {}
        self._ids = itertools.count(1)

    @classmethod
    def random(
        cls,
        width: int,
        height: int,
        seed: Optional[int] = None,
        wall_prob: float = 0.25,
        trap_prob: float = 0.05,
        base_url: str = DEFAULT_BASE_URL,
    ) -> "SimulatedMaze":
        if width * height < 2:
            raise ValueError("maze needs room for an entry and an exit")
        rng = np.random.default_rng(seed)
        roll = rng.random((height, width))
        glyphs = np.full((height, width), ".", dtype="<U1")
        glyphs[roll < wall_prob + trap_prob] = "T"
        glyphs[roll < wall_prob] = "#"

        flat = rng.choice(width * height, size=2, replace=False)
        (sr, sc), (er, ec) = (divmod(int(i), width) for i in flat)
        glyphs[sr, sc] = "S"
        glyphs[er, ec] = "E"
        return cls(["".join(row) for row in glyphs], base_url=base_url)

    def kind_at(self, coord: Coordinate) -> Optional[CellKind]:
        return self._cells.get(coord)

    def cell_at(self, coord: Coordinate) -> Optional[Cell]:
        kind = self._cells.get(coord)
        if kind is None:
            return None
        return Cell(x=coord.x, y=coord.y, reachable=kind is not CellKind.WALL, kind=kind)

    def neighbors(self, coord: Coordinate) -> List[Cell]:
        out = []
        for dx, dy in NEIGHBOR_OFFSETS:
            cell = self.cell_at(Coordinate(coord.x + dx, coord.y + dy))
            if cell is not None:
                out.append(cell)
        return out

    def shortest_path_length(self) -> Optional[int]:
        """BFS from the entry to the nearest exit; counts cells inclusive. None if unreachable."""
        start = Coordinate.origin()
        if self._cells.get(start) is CellKind.STOP:
            return 1
        seen = {start}
        queue = deque([(start, 1)])
        while queue:
            coord, length = queue.popleft()
            for cell in self.neighbors(coord):
                nxt = cell.coord
                if nxt in seen or not cell.reachable or cell.is_trap:
                    continue
                if cell.is_exit:
                    return length + 1
                seen.add(nxt)
                queue.append((nxt, length + 1))
        return None

    # -- authority protocol -------------------------------------------------

    def start(self, player: str, base_url: Optional[str] = None) -> GatewayResponse:
        if not player or not player.strip():
            raise NetworkOrTimeoutError("player name is required")
        game_id = str(next(self._ids))
        game = SimulatedGame(
            game_id=game_id,
            player=player,
            base_url=(base_url or self.base_url).rstrip("/"),
            position=Coordinate.origin(),
        )
        self._games[game_id] = game
        logger.debug("[SimMaze] game %s started for %s", game_id, player)
        return game.response()

    def discover(self, endpoint: str) -> List[Cell]:
        game_id, kind, token = parse_endpoint(endpoint)
        if kind != "discover":
            raise NetworkOrTimeoutError(f"not a discover endpoint: {endpoint}")
        return self.discover_token(game_id, token)

    def move(self, endpoint: str, x: int, y: int) -> GatewayResponse:
        game_id, kind, token = parse_endpoint(endpoint)
        if kind != "move":
            raise IllegalMoveError(f"not a move endpoint: {endpoint}")
        return self.move_token(game_id, token, x, y)

    def discover_token(self, game_id: str, token: int) -> List[Cell]:
        game = self._game(game_id)
        if token != game.token:
            raise NetworkOrTimeoutError(f"stale discover endpoint {token} (current {game.token})")
        return self.neighbors(game.position)

    def move_token(self, game_id: str, token: int, x: int, y: int) -> GatewayResponse:
        game = self._game(game_id)
        if token != game.token:
            raise IllegalMoveError(f"stale move endpoint {token} (current {game.token})")
        if game.dead:
            raise IllegalMoveError("agent is dead")

        target = Coordinate(x, y)
        if abs(target.x - game.position.x) + abs(target.y - game.position.y) > 1:
            raise IllegalMoveError(f"{target} is not adjacent to {game.position}")
        kind = self._cells.get(target)
        if kind is None or kind is CellKind.WALL:
            raise IllegalMoveError(f"{target} is not walkable")

        game.position = target
        game.dead = kind is CellKind.TRAP
        game.win = game.win or kind is CellKind.STOP
        game.token += 1
        return game.response()

    def _game(self, game_id: str) -> SimulatedGame:
        game = self._games.get(game_id)
        if game is None:
            raise NetworkOrTimeoutError(f"unknown game {game_id}")
        return game


class LocalMazeGateway(MazeGateway):
    """`MazeGateway` over a `SimulatedMaze`; keeps a call journal."""

    def __init__(self, maze: SimulatedMaze):
        self.maze = maze
        self.calls: List[Tuple] = []

    def start(self, player_name: str) -> GatewayResponse:
        self.calls.append(("start", player_name))
        return self.maze.start(player_name)

    def discover(self, discover_endpoint: str) -> List[Cell]:
        self.calls.append(("discover", discover_endpoint))
        return self.maze.discover(discover_endpoint)

    def move(self, move_endpoint: str, x: int, y: int) -> GatewayResponse:
        self.calls.append(("move", x, y))
        return self.maze.move(move_endpoint, x, y)

    @property
    def moves(self) -> List[Coordinate]:
        return [Coordinate(c[1], c[2]) for c in self.calls if c[0] == "move"]

    def count(self, kind: str) -> int:
        return sum(1 for c in self.calls if c[0] == kind)
