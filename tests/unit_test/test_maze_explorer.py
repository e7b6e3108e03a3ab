import os

import pytest

from mazenav.maze import CellKind, Coordinate, ExhaustiveDFSExplorer, GreedyExplorer, SimulatedMaze
from mazenav.maze.explorer import ExplorerSlot, build_explorer


def _dbg(title: str, obj) -> None:
    # MAZE_TEST_DEBUG=1 pytest -s tests/unit_test/test_maze_explorer.py
    if os.environ.get("MAZE_TEST_DEBUG", "").strip().lower() in {"1", "true", "yes", "y"}:
        print(f"\n[{title}]")
        print(obj)


def _coords(*pairs):
    return tuple(Coordinate(x, y) for x, y in pairs)


def test_straight_corridor_yields_single_path(make_session):
    session, gateway = make_session("S.E")
    results = session.explore()
    _dbg("log", "\n".join(session.state.log))
    assert len(results) == 1
    assert results[0].path == _coords((0, 0), (1, 0), (2, 0))
    assert results[0].length == 3
    # DFS leaves the agent back on the entry cell
    assert session.state.position == Coordinate(0, 0)
    assert session.state.exploring is False


def test_two_routes_to_same_exit_shortest_first(make_session):
    session, _ = make_session(
        """
        S.E
        ...
        """
    )
    results = session.explore()
    assert [r.length for r in results] == [3, 5]
    assert results[0].path == _coords((0, 0), (1, 0), (2, 0))
    assert results[1].path[-1] == Coordinate(2, 0)


def test_results_sorted_when_longer_exit_found_first(make_session):
    session, _ = make_session(
        """
        S...E
        .####
        E####
        """
    )
    results = session.explore()
    # the right-hand exit is enumerated first, but the lower one is shorter
    assert [r.length for r in results] == [3, 5]
    assert results[0].end == Coordinate(0, 2)
    assert session.state.log.count("Exit found in 5 steps.") == 1


def test_dead_end_branch_backtracks_before_next_sibling(make_session):
    session, gateway = make_session(
        """
        .##
        S.E
        """
    )
    results = session.explore()
    assert gateway.moves == list(_coords((0, 0), (0, -1), (0, 0), (1, 0), (0, 0)))
    assert "Back to (0, 0) after dead end." in session.state.log
    assert [r.path for r in results] == [_coords((0, 0), (1, 0), (2, 0))]


def test_discovery_timeout_only_aborts_its_branch(make_session):
    session, gateway = make_session(
        """
        E##
        S.#
        .##
        E##
        """,
        fail_discover_at=[Coordinate(1, 0)],
    )
    results = session.explore()
    _dbg("log", "\n".join(session.state.log))
    assert [r.path for r in results] == [
        _coords((0, 0), (0, -1)),
        _coords((0, 0), (0, 1), (0, 2)),
    ]
    assert any(e.startswith("Discovery failed:") for e in session.state.log)
    # the failing branch was still undone physically
    assert gateway.moves[:3] == list(_coords((0, 0), (1, 0), (0, 0)))


def test_failed_forward_move_abandons_branch(make_session):
    # move #0 enters the root, move #1 is the step into (1, 0)
    session, gateway = make_session(
        """
        S.E
        ...
        """,
        fail_move_calls=[1],
    )
    results = session.explore()
    assert any(e.startswith("Move to (1, 0) failed:") for e in session.state.log)
    assert [r.length for r in results] == [5]
    assert all(Coordinate(1, 0) not in r.path for r in results)


def test_failed_backtrack_does_not_stop_siblings(make_session):
    # moves: #0 root (0,0), #1 (0,-1), #2 backtrack to (0,0) -> refused
    session, gateway = make_session(
        """
        .##
        S.E
        """,
        fail_move_calls=[2],
    )
    session.explore()
    log = session.state.log
    assert "Backtrack to (0, 0) failed: injected failure on move #2" in log
    # the sibling is still attempted; from (0,-1) it is not adjacent, so the authority refuses it
    assert any(e.startswith("Move to (1, 0) failed:") for e in log)
    assert session.state.position == Coordinate(0, 0)


def test_dfs_root_move_failure_yields_nothing(make_session):
    session, gateway = make_session("S.E", fail_move_calls=[0])
    assert session.explore() == []
    assert gateway.count("discover") == 0
    assert "No path to the exit found." in session.state.log


def test_traps_are_never_entered(make_session):
    session, gateway = make_session("STE")
    assert session.explore() == []
    assert Coordinate(1, 0) not in gateway.moves
    assert session.state.dead is False
    assert session.state.map["1,0"].kind is CellKind.TRAP


@pytest.mark.parametrize("seed", range(25))
def test_random_mazes_respect_path_invariants(seed, make_session):
    maze = SimulatedMaze.random(6, 6, seed=seed, wall_prob=0.25, trap_prob=0.1)
    session, _ = make_session(maze=maze)

    sizes = []
    session.state.subscribe(lambda event: sizes.append(len(session.state.map)))
    results = session.explore()

    assert sizes == sorted(sizes)
    assert [r.length for r in results] == sorted(r.length for r in results)
    for r in results:
        assert len(set(r.path)) == len(r.path)
        assert r.start == Coordinate(0, 0)
        assert maze.kind_at(r.end) is CellKind.STOP
        for a, b in zip(r.path, r.path[1:]):
            assert abs(a.x - b.x) + abs(a.y - b.y) == 1
        for c in r.path[:-1]:
            assert maze.kind_at(c) is CellKind.PATH

    entered = [e for e in session.state.log if e.startswith("Exploring (")]
    assert len(entered) == len(set(e.split(": ", 1)[1] for e in entered))
    # an exit is found iff one is reachable
    assert bool(results) == (maze.shortest_path_length() is not None)


def test_greedy_walks_corridor_until_game_over(make_session):
    session, gateway = make_session("S..E", explorer="greedy")
    session.explore()
    assert gateway.moves == list(_coords((1, 0), (2, 0), (3, 0)))
    assert session.state.win is True
    assert session.state.exploring is False
    assert session.state.log[-1] == "Exploration stopped: game over."


def test_greedy_disarms_at_dead_end(make_session):
    session, _ = make_session("S.#", explorer="greedy")
    session.explore()
    assert session.state.position == Coordinate(1, 0)
    assert session.state.exploring is False
    assert session.state.log[-1] == "Exploration finished: no safe cell found."


def test_greedy_skips_traps(make_session):
    session, gateway = make_session("ST.E", explorer="greedy")
    session.explore()
    assert gateway.count("move") == 0
    assert session.state.dead is False
    assert session.state.exploring is False


def test_greedy_disarms_on_discovery_failure(make_session):
    session, _ = make_session("S..E", explorer="greedy", fail_discover_at=[Coordinate(1, 0)])
    session.explore()
    assert session.state.position == Coordinate(1, 0)
    assert session.state.exploring is False
    assert session.state.log[-1].startswith("Error during exploration:")


def test_greedy_disarms_on_move_failure(make_session):
    session, gateway = make_session("S..E", explorer="greedy", fail_move_calls=[0])
    session.explore()
    assert session.state.position == Coordinate(0, 0)
    assert session.state.exploring is False
    assert session.state.log[-1].startswith("Error during exploration:")


def test_greedy_step_is_noop_when_disarmed(make_session):
    session, gateway = make_session("S..E", explorer="greedy")
    session.state.disarm()
    assert session.explorer.step() is False
    assert gateway.count("discover") == 0


def test_explorer_slot_is_exclusive():
    slot = ExplorerSlot()
    with slot.claim("explore") as first:
        assert first is True
        assert slot.holder == "explore"
        with slot.claim("navigate") as second:
            assert second is False
        assert slot.busy
    assert not slot.busy
    assert slot.holder is None


def test_build_explorer_by_kind(make_session):
    session, gateway = make_session("S.E")
    assert isinstance(build_explorer("dfs", session.state, gateway), ExhaustiveDFSExplorer)
    assert isinstance(build_explorer("greedy", session.state, gateway), GreedyExplorer)
    with pytest.raises(ValueError):
        build_explorer("astar", session.state, gateway)
