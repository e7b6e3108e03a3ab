"""
Random-maze benchmark.
Runs the maze agent against seeded random mazes on the in-process authority,
compares the walked route with the BFS optimum and reports
success rate, optimality ratio and gateway call counts.
"""

from __future__ import annotations

import argparse
import datetime
import json
import os

import numpy as np

from mazenav.configs.maze import MazeNavCfg
from mazenav.maze import LocalMazeGateway, MazeSession, NavigationStatus, SimulatedMaze


class BenchmarkLogger:
    def __init__(self, output_dir):
        self.run_ts = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
        self.output_path = os.path.join(output_dir, f"benchmark_{self.run_ts}")

        os.makedirs(self.output_path, exist_ok=True)
        self.log_file = os.path.join(self.output_path, "log.txt")
        self.metrics_file = os.path.join(self.output_path, "metrics.json")

        print(f"[benchmark] Logging to {self.output_path}")

    def log(self, message):
        print(message)
        with open(self.log_file, "a") as f:
            f.write(message + "\n")

    def log_metrics(self, metrics):
        with open(self.metrics_file, "w") as f:
            json.dump(metrics, f, indent=4)
        self.log(f"[benchmark] Metrics saved to {self.metrics_file}")


def run_episode(maze: SimulatedMaze, explorer: str) -> dict:
    gateway = LocalMazeGateway(maze)
    session = MazeSession(gateway, MazeNavCfg(explorer=explorer, player_name="bench"))
    status = session.run()
    snap = session.snapshot()

    walked = None
    if snap.results and status is NavigationStatus.SUCCEEDED:
        walked = snap.results[0].length

    return {
        "optimal": maze.shortest_path_length(),
        "walked": walked,
        "win": snap.win,
        "dead": snap.dead,
        "paths_found": len(snap.results),
        "discover_calls": gateway.count("discover"),
        "move_calls": gateway.count("move"),
        "cells_discovered": len(snap.map),
    }


def summarize(episodes) -> dict:
    solvable = [e for e in episodes if e["optimal"] is not None]
    wins = [e for e in solvable if e["win"]]
    ratios = [e["walked"] / e["optimal"] for e in wins if e["walked"]]
    return {
        "episodes": len(episodes),
        "solvable": len(solvable),
        "success_rate": (len(wins) / len(solvable)) if solvable else 0.0,
        "mean_optimality_ratio": float(np.mean(ratios)) if ratios else None,
        "mean_move_calls": float(np.mean([e["move_calls"] for e in episodes])) if episodes else 0.0,
        "mean_discover_calls": float(np.mean([e["discover_calls"] for e in episodes])) if episodes else 0.0,
        "deaths": sum(1 for e in episodes if e["dead"]),
    }


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--episodes", type=int, default=20)
    parser.add_argument("--width", type=int, default=8)
    parser.add_argument("--height", type=int, default=8)
    parser.add_argument("--wall_prob", type=float, default=0.25)
    parser.add_argument("--trap_prob", type=float, default=0.05)
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--explorer", default="dfs", choices=["dfs", "greedy"])
    parser.add_argument("--output_dir", default="output", help="Directory to save logs and results")
    args = parser.parse_args()

    logger = BenchmarkLogger(args.output_dir)
    episodes = []
    for i in range(args.episodes):
        maze = SimulatedMaze.random(
            args.width, args.height, seed=args.seed + i, wall_prob=args.wall_prob, trap_prob=args.trap_prob
        )
        result = run_episode(maze, args.explorer)
        episodes.append(result)
        logger.log(
            f"[benchmark] episode {i}: optimal={result['optimal']} walked={result['walked']} "
            f"win={result['win']} moves={result['move_calls']}"
        )

    metrics = summarize(episodes)
    metrics["config"] = vars(args)
    logger.log(f"[benchmark] success_rate={metrics['success_rate']:.2f} ratio={metrics['mean_optimality_ratio']}")
    logger.log_metrics(metrics)


if __name__ == "__main__":
    main()
