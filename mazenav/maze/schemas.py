from __future__ import annotations

"""
Shared schemas for the maze agent.

`GatewayResponse` is the stable contract returned by every start/move call of the
remote maze authority; `Cell` is what a discovery call reports.
Both carry `from_json` helpers that normalise the authority's wire format.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple


class GatewayError(Exception):
    """Any failed call to the maze authority."""


class NetworkOrTimeoutError(GatewayError):
    """Transport failure, timeout, or a rejected request."""


class IllegalMoveError(GatewayError):
    """The authority refused a move (wall, non-adjacent target, stale endpoint, dead agent)."""


class GatewayProtocolError(NetworkOrTimeoutError):
    """The authority returned a payload we cannot interpret."""


class CellKind(str, Enum):
    PATH = "path"
    WALL = "wall"
    TRAP = "trap"
    STOP = "stop"

    @classmethod
    def parse(cls, raw: Any) -> "CellKind":
        value = str(raw or "").strip().lower()
        for kind in cls:
            if kind.value == value:
                return kind
        # Anything the authority invents is drawn as plain path.
        return cls.PATH


@dataclass(frozen=True)
class Coordinate:
    x: int
    y: int

    @classmethod
    def origin(cls) -> "Coordinate":
        return cls(0, 0)

    @property
    def key(self) -> str:
        return f"{self.x},{self.y}"

    def __str__(self) -> str:
        return f"({self.x}, {self.y})"


@dataclass(frozen=True)
class Cell:
    x: int
    y: int
    reachable: bool
    kind: CellKind = CellKind.PATH

    @property
    def coord(self) -> Coordinate:
        return Coordinate(self.x, self.y)

    @property
    def key(self) -> str:
        return self.coord.key

    @property
    def is_trap(self) -> bool:
        return self.kind is CellKind.TRAP

    @property
    def is_exit(self) -> bool:
        return self.kind is CellKind.STOP

    @classmethod
    def from_json(cls, raw: Dict[str, Any]) -> "Cell":
        try:
            x = int(raw["x"])
            y = int(raw["y"])
        except (KeyError, TypeError, ValueError) as e:
            raise GatewayProtocolError(f"cell without valid coordinates: {raw!r}") from e
        return cls(x=x, y=y, reachable=bool(raw.get("move", False)), kind=CellKind.parse(raw.get("value")))

    def to_json(self) -> Dict[str, Any]:
        return {"x": self.x, "y": self.y, "move": self.reachable, "value": self.kind.value}


@dataclass(frozen=True)
class PathCandidate:
    path: Tuple[Coordinate, ...]

    @property
    def length(self) -> int:
        return len(self.path)

    @property
    def start(self) -> Coordinate:
        return self.path[0]

    @property
    def end(self) -> Coordinate:
        return self.path[-1]


@dataclass(frozen=True)
class GatewayResponse:
    position: Coordinate
    dead: bool
    win: bool
    move_endpoint: str
    discover_endpoint: str

    @classmethod
    def from_json(cls, raw: Dict[str, Any]) -> "GatewayResponse":
        if not isinstance(raw, dict):
            raise GatewayProtocolError(f"expected a JSON object, got {type(raw).__name__}")
        try:
            position = Coordinate(int(raw["position_x"]), int(raw["position_y"]))
            move_endpoint = str(raw["url_move"])
            discover_endpoint = str(raw["url_discover"])
        except (KeyError, TypeError, ValueError) as e:
            raise GatewayProtocolError(f"incomplete game state: {raw!r}") from e

        return cls(
            position=position,
            dead=bool(raw.get("dead", False)),
            win=bool(raw.get("win", False)),
            move_endpoint=move_endpoint,
            discover_endpoint=discover_endpoint,
        )

    def to_json(self) -> Dict[str, Any]:
        return {
            "position_x": self.position.x,
            "position_y": self.position.y,
            "dead": self.dead,
            "win": self.win,
            "url_move": self.move_endpoint,
            "url_discover": self.discover_endpoint,
        }
