import base64
import logging
from io import BytesIO

import pytest
from PIL import Image

from mazenav.configs.maze import DEFAULT_MAZE_API_URL, MazeNavCfg
from mazenav.maze import Cell, CellKind, Coordinate, LocalMazeGateway, MazeSession, SimulatedMaze
from mazenav.maze.grid import build_grid, grid_to_array, render_ascii, render_png_base64
from mazenav.utils.logging_utils import attach_session_log, detach_session_log, session_log_path


def test_build_grid_offsets_to_bounding_box():
    a = Cell(-1, 0, True)
    b = Cell(1, 1, False, CellKind.WALL)
    grid = build_grid([a, b])
    assert len(grid) == 2 and len(grid[0]) == 3
    assert grid[0][0] is a
    assert grid[1][2] is b
    assert grid[0][1] is None
    assert build_grid([]) == []


def test_render_ascii_after_exploration(make_session):
    session, _ = make_session("S.E")
    session.explore()
    assert render_ascii(session.state.map, session.state.position) == "@.E"


def test_agent_drawn_before_any_discovery():
    arr = grid_to_array({}, Coordinate(0, 0))
    assert arr.shape == (1, 1) and arr[0, 0] == "@"
    assert render_ascii({}) == ""


def test_render_png_dimensions(make_session):
    session, _ = make_session("S.E")
    session.explore()
    raw = base64.b64decode(render_png_base64(session.state.map, session.state.position, cell_px=8))
    img = Image.open(BytesIO(raw))
    assert img.format == "PNG"
    assert img.size == (24, 8)


def test_cfg_env_beats_overrides():
    env = {"MAZE_EXPLORER": "GREEDY", "MAZE_TIMEOUT_S": "1.5", "MAZE_PLAYER": ""}
    cfg = MazeNavCfg.from_env(env=env, explorer="dfs", player_name="alice", api_url=None)
    assert cfg.explorer == "greedy"
    assert cfg.request_timeout_s == 1.5
    assert cfg.player_name == "alice"
    assert cfg.api_url == DEFAULT_MAZE_API_URL


@pytest.mark.parametrize(
    "kwargs",
    [{"explorer": "astar"}, {"request_timeout_s": 0}, {"player_name": "  "}, {"log_level": "chatty"}],
)
def test_cfg_rejects_invalid_values(kwargs):
    with pytest.raises(ValueError):
        MazeNavCfg(**kwargs)


def test_cfg_log_level_from_env_and_value():
    cfg = MazeNavCfg.from_env(env={"MAZE_LOG_LEVEL": "debug", "MAZE_LOG_DIR": "/tmp/maze-logs"})
    assert cfg.log_level == "DEBUG"
    assert cfg.level == logging.DEBUG
    assert cfg.log_dir == "/tmp/maze-logs"
    assert MazeNavCfg(log_level="warning").level == logging.WARNING
    assert MazeNavCfg().level == logging.INFO


@pytest.fixture
def package_logger():
    pkg = logging.getLogger("mazenav")
    old_level, old_handlers = pkg.level, list(pkg.handlers)
    yield pkg
    for h in pkg.handlers[:]:
        if h not in old_handlers:
            pkg.removeHandler(h)
            h.close()
    pkg.setLevel(old_level)


def test_session_log_stamps_live_position_and_activity(make_session, tmp_path, package_logger):
    session, _ = make_session("S.E")
    handler = attach_session_log(session, str(tmp_path), logging.DEBUG)
    assert handler.baseFilename == str(tmp_path / "tester.log")

    session.explore()
    logging.getLogger("mazenav.maze").info("between operations")
    detach_session_log(handler)
    assert handler not in package_logger.handlers

    lines = (tmp_path / "tester.log").read_text().splitlines()
    assert any("[tester @ 0,0, explore] mazenav.maze.state: [Maze] Exploring (1): (0, 0)" in line for line in lines)
    assert any("[tester @ 1,0, explore]" in line and "Exploring (2): (1, 0)" in line for line in lines)
    # DEBUG records reach the file too
    assert any("DEBUG" in line and "map grew" in line for line in lines)
    assert any("[tester @ 0,0, idle]" in line and "between operations" in line for line in lines)


def test_session_log_respects_level(tmp_path, package_logger):
    session = MazeSession(LocalMazeGateway(SimulatedMaze("S.E")), MazeNavCfg(player_name="alice/bob"))
    handler = attach_session_log(session, str(tmp_path), logging.WARNING)
    session.run()
    detach_session_log(handler)

    path = session_log_path(str(tmp_path), "alice/bob")
    assert path == str(tmp_path / "alice_bob.log")
    text = open(path).read()
    assert "Exploring" not in text
