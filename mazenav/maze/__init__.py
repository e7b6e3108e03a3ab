"""
Maze exploration and pathfinding.

Modules:
- `schemas`: coordinates, cells, exit paths, authority responses and errors
- `state`: per-session memory (position, discovered map, log, results)
- `gateway`: the authority contract and its HTTP transport
- `simulated`: in-process authority used by tests, benchmark and mock server
- `explorer`: exhaustive DFS search and greedy stepper behind one slot
- `scheduler`: single-consumer "maybe step" loop for the greedy stepper
- `navigator`: shortest-path selection and replay
- `session`: orchestration of the above pieces
- `grid`: ASCII / PNG views of the discovered map
"""

from .explorer import ExhaustiveDFSExplorer, Explorer, ExplorerSlot, GreedyExplorer
from .gateway import HttpMazeGateway, MazeGateway
from .navigator import NavigationStatus, PathNavigator, select_shortest_path
from .schemas import (
    Cell,
    CellKind,
    Coordinate,
    GatewayError,
    GatewayProtocolError,
    GatewayResponse,
    IllegalMoveError,
    NetworkOrTimeoutError,
    PathCandidate,
)
from .session import MazeSession
from .simulated import LocalMazeGateway, SimulatedMaze
from .state import MazeSessionState, SessionSnapshot

__all__ = [
    "Cell",
    "CellKind",
    "Coordinate",
    "PathCandidate",
    "GatewayResponse",
    "GatewayError",
    "GatewayProtocolError",
    "IllegalMoveError",
    "NetworkOrTimeoutError",
    "MazeGateway",
    "HttpMazeGateway",
    "LocalMazeGateway",
    "SimulatedMaze",
    "MazeSessionState",
    "SessionSnapshot",
    "Explorer",
    "ExplorerSlot",
    "ExhaustiveDFSExplorer",
    "GreedyExplorer",
    "NavigationStatus",
    "PathNavigator",
    "select_shortest_path",
    "MazeSession",
]
