import argparse
import random

import matplotlib.pyplot as plt
import numpy as np
import torch

from mc2048.game import GameEngine
from mc2048.search import SearchConfig, SearchEngine
from mc2048.vec_game import VectorizedSearchEngine


def build_search(args, seed: int) -> SearchEngine:
    config = SearchConfig(
        rollouts_per_direction=args.rollouts,
        max_rollout_moves=args.max_moves,
        verbose=args.verbose,
    )
    if args.backend == "torch":
        return VectorizedSearchEngine(config, device=torch.device(args.device), seed=seed)
    return SearchEngine(config, rng=random.Random(seed))


def play_game(engine: GameEngine) -> tuple[int, int, int]:
    moves = 0
    while not engine.died:
        outcome = engine.step_advised_move()
        if outcome is None:
            break
        moves += 1
    return engine.score, engine.grid.max_value(), moves


def plot_results(scores: np.ndarray, max_tiles: np.ndarray, path: str):
    fig, axes = plt.subplots(1, 2, figsize=(10, 4))
    axes[0].plot(np.arange(1, len(scores) + 1), scores, marker="o")
    axes[0].set_title("Final score")
    axes[0].set_xlabel("Game")

    values, counts = np.unique(max_tiles, return_counts=True)
    axes[1].bar([str(v) for v in values], counts)
    axes[1].set_title("Highest tile")
    plt.tight_layout()
    fig.savefig(path)
    plt.close(fig)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Play 2048 with the Monte-Carlo advisor")
    parser.add_argument("--games", type=int, default=5)
    parser.add_argument("--rollouts", type=int, default=100)
    parser.add_argument("--backend", choices=["python", "torch"], default="python")
    parser.add_argument("--device", type=str, default="cpu", help="torch device for --backend torch")
    parser.add_argument("--max-moves", type=int, default=None,
                        help="cap on moves per rollout (default: play rollouts to the end)")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--plot", type=str, default=None, help="save a results figure here")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    seeds = random.Random(args.seed)
    print(f"Using backend: {args.backend}" + (f" on {args.device}" if args.backend == "torch" else ""))

    scores, max_tiles = [], []
    for i in range(args.games):
        seed = seeds.getrandbits(32)
        engine = GameEngine(search=build_search(args, seed), rng=random.Random(seed))
        score, max_tile, moves = play_game(engine)
        scores.append(score)
        max_tiles.append(max_tile)
        print(f"Game {i + 1}: score {score}, highest tile {max_tile}, {moves} moves")

    scores = np.array(scores)
    max_tiles = np.array(max_tiles)
    print(f"Average score: {scores.mean():.1f}, best score: {scores.max()}")
    print(f"Reached 2048 in {(max_tiles >= 2048).sum()} of {len(max_tiles)} games")

    if args.plot:
        plot_results(scores, max_tiles, args.plot)
