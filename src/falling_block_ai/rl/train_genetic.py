from __future__ import annotations

import argparse
import logging
import sys

import numpy as np

from falling_block_ai.ai.heuristic import FEATURE_NAMES
from falling_block_ai.rl.genetic import FITNESS_METRICS, GenerationReport, TrainerConfig, train


def _print_progress(report: GenerationReport, total: int) -> None:
    width = 30
    filled = int(width * (report.generation + 1) / max(1, total))
    bar = "=" * filled + "." * (width - filled)
    msg = (f"\r[{bar}] {report.generation + 1}/{total}  "
           f"best={report.best_fitness:.0f}  mean={report.mean_fitness:.1f}")
    print(msg, end="", file=sys.stdout, flush=True)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Tune heuristic weights with a genetic algorithm")
    p.add_argument("--generations", type=int, default=20)
    p.add_argument("--population", type=int, default=30)
    p.add_argument("--pieces", type=int, default=300, help="placements per fitness game")
    p.add_argument("--mutation-rate", type=float, default=0.15)
    p.add_argument("--mutation-step", type=float, default=0.1)
    p.add_argument("--fitness", choices=FITNESS_METRICS, default="lines")
    p.add_argument("--workers", type=int, default=1)
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--no-progress", action="store_true")
    p.add_argument("-v", "--verbose", action="store_true")
    return p


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    config = TrainerConfig(
        population_size=args.population,
        generations=args.generations,
        num_pieces=args.pieces,
        mutation_rate=args.mutation_rate,
        mutation_step=args.mutation_step,
        fitness=args.fitness,
        seed=args.seed,
        n_workers=args.workers,
    )
    progress = not args.no_progress
    result = train(config, on_generation=(lambda r: _print_progress(r, config.generations)) if progress else None)
    if progress:
        print()

    print(f"Best fitness ({config.fitness}): {result.best.fitness:.0f}")
    for name, value in zip(FEATURE_NAMES, result.best.weights):
        print(f"  {name:<18} {value: .6f}")
    print("weights =", np.array2string(result.best.weights, separator=", ", precision=8))


if __name__ == "__main__":  # pragma: no cover
    main()
