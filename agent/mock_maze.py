from flask import Flask, jsonify, request
import argparse
import logging

from mazenav.maze.schemas import IllegalMoveError, NetworkOrTimeoutError
from mazenav.maze.simulated import SimulatedMaze

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("MockMaze")

DEFAULT_LAYOUT = """
S..#....
.#.#.##.
.#...T..
.####.#.
......#E
"""


def create_app(layout: str = DEFAULT_LAYOUT) -> Flask:
    """Simulates the remote maze authority over HTTP"""
    app = Flask(__name__)
    maze = SimulatedMaze(layout)
    app.config["MAZE"] = maze

    def _error(status: int, message: str):
        return jsonify({"error": message}), status

    @app.route("/start-game/", methods=["POST"])
    def start_game():
        player = (request.form.get("player") or "").strip()
        if not player:
            return _error(400, "player is required")
        base_url = request.host_url.rstrip("/") + "/maze"
        resp = maze.start(player, base_url=base_url)
        logger.info(f"New game for {player}: {resp.move_endpoint}")
        return jsonify(resp.to_json())

    @app.route("/maze/<game_id>/discover/<int:token>", methods=["GET"])
    def discover(game_id, token):
        try:
            cells = maze.discover_token(game_id, token)
        except NetworkOrTimeoutError as e:
            return _error(404, str(e))
        return jsonify([cell.to_json() for cell in cells])

    @app.route("/maze/<game_id>/move/<int:token>", methods=["POST"])
    def move(game_id, token):
        try:
            x = int(request.form["position_x"])
            y = int(request.form["position_y"])
        except (KeyError, ValueError):
            return _error(400, "position_x and position_y must be integers")
        try:
            resp = maze.move_token(game_id, token, x, y)
        except IllegalMoveError as e:
            logger.info(f"Refused move to ({x}, {y}): {e}")
            return _error(400, str(e))
        except NetworkOrTimeoutError as e:
            return _error(404, str(e))
        return jsonify(resp.to_json())

    return app


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--port", type=int, default=5803)
    parser.add_argument("--layout", type=str, default=None, help="Path to an ASCII maze layout file")
    args = parser.parse_args()

    layout = DEFAULT_LAYOUT
    if args.layout:
        with open(args.layout) as f:
            layout = f.read()

    print(f"Starting Mock Maze Server on port {args.port}...")
    create_app(layout).run(host="0.0.0.0", port=args.port)
