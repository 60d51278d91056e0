"""Genetic algorithm that tunes the heuristic weight vector.

Each generation:
  1. evaluate every individual with a headless greedy game,
  2. keep the top half by fitness,
  3. refill the population with uniform-crossover children of random
     survivor pairs, mutating each gene with a small probability.
"""

from __future__ import annotations

import logging
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

import numpy as np

from falling_block_ai.ai.engine import choose_greedy
from falling_block_ai.ai.heuristic import NUM_FEATURES, as_weights
from falling_block_ai.game.core import GameConfig, GameSession
from falling_block_ai.game.randomizers import UniformRandomizer


logger = logging.getLogger(__name__)

FITNESS_METRICS = ("lines", "score")


@dataclass
class TrainerConfig:
    population_size: int = 30
    generations: int = 20
    num_pieces: int = 300
    mutation_rate: float = 0.15
    mutation_step: float = 0.1
    fitness: str = "lines"
    seed: Optional[int] = None
    n_workers: int = 1
    width: int = 10
    height: int = 20

    def __post_init__(self) -> None:
        if self.population_size < 2:
            raise ValueError(f"population_size must be >= 2, got {self.population_size}")
        if self.generations < 0:
            raise ValueError(f"generations must be >= 0, got {self.generations}")
        if self.num_pieces < 1:
            raise ValueError(f"num_pieces must be >= 1, got {self.num_pieces}")
        if not 0.0 <= self.mutation_rate <= 1.0:
            raise ValueError(f"mutation_rate must be in [0, 1], got {self.mutation_rate}")
        if self.fitness not in FITNESS_METRICS:
            raise ValueError(f"unknown fitness {self.fitness!r} (expected one of {FITNESS_METRICS})")
        if self.n_workers < 1:
            raise ValueError(f"n_workers must be >= 1, got {self.n_workers}")


@dataclass
class Individual:
    weights: np.ndarray
    fitness: float = 0.0


@dataclass
class GenerationReport:
    generation: int
    best_fitness: float
    mean_fitness: float
    best_weights: np.ndarray


@dataclass
class TrainingResult:
    best: Individual
    history: List[GenerationReport] = field(default_factory=list)


def random_weights(rng: np.random.Generator) -> np.ndarray:
    return rng.uniform(-1.0, 1.0, size=NUM_FEATURES)


def random_population(size: int, rng: np.random.Generator) -> List[Individual]:
    return [Individual(random_weights(rng)) for _ in range(size)]


def simulate_game(weights: Sequence[float] | np.ndarray, num_pieces: int = 300, seed: Optional[int] = None,
                  fitness: str = "lines", width: int = 10, height: int = 20) -> float:
    """Play `num_pieces` greedy placements on an empty board and return the fitness.

    Pieces come from an independent uniform source rather than the live bag.
    """
    w = as_weights(weights)
    if fitness not in FITNESS_METRICS:
        raise ValueError(f"unknown fitness {fitness!r} (expected one of {FITNESS_METRICS})")
    session = GameSession(GameConfig(width=width, height=height, random_seed=seed),
                          randomizer=UniformRandomizer(seed))
    for _ in range(num_pieces):
        piece = session.current_piece
        if piece is None:
            break
        move = choose_greedy(piece.kind, session.grid, w)
        if session.apply(move).game_over:
            break
    if fitness == "score":
        return float(session.score)
    return float(session.lines_cleared_total)


def _simulate_job(args: tuple) -> float:
    return simulate_game(*args)


def evaluate_population(population: List[Individual], config: TrainerConfig,
                        rng: np.random.Generator) -> None:
    """Fill in fitness for every individual in place."""
    seeds = [int(s) for s in rng.integers(0, 2**31 - 1, size=len(population))]
    jobs = [(ind.weights, config.num_pieces, seed, config.fitness, config.width, config.height)
            for ind, seed in zip(population, seeds)]
    if config.n_workers > 1:
        with ProcessPoolExecutor(max_workers=config.n_workers) as pool:
            results = list(pool.map(_simulate_job, jobs))
    else:
        results = [_simulate_job(job) for job in jobs]
    for ind, fit in zip(population, results):
        ind.fitness = fit


def select_survivors(population: List[Individual]) -> List[Individual]:
    ranked = sorted(population, key=lambda ind: ind.fitness, reverse=True)
    return ranked[: len(ranked) // 2]


def crossover(parent_a: np.ndarray, parent_b: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    take_a = rng.random(parent_a.shape[0]) < 0.5
    return np.where(take_a, parent_a, parent_b)


def mutate(weights: np.ndarray, rng: np.random.Generator, rate: float = 0.15, step: float = 0.1) -> np.ndarray:
    mask = rng.random(weights.shape[0]) < rate
    noise = rng.uniform(-step, step, size=weights.shape[0])
    return weights + np.where(mask, noise, 0.0)


def reproduce(survivors: List[Individual], size: int, rng: np.random.Generator,
              mutation_rate: float = 0.15, mutation_step: float = 0.1) -> List[Individual]:
    if not survivors:
        raise ValueError("cannot reproduce from an empty survivor pool")
    children: List[Individual] = []
    while len(children) < size:
        a = survivors[int(rng.integers(len(survivors)))]
        b = survivors[int(rng.integers(len(survivors)))]
        child = crossover(a.weights, b.weights, rng)
        child = mutate(child, rng, mutation_rate, mutation_step)
        children.append(Individual(child))
    return children


def train(config: Optional[TrainerConfig] = None,
          on_generation: Optional[Callable[[GenerationReport], None]] = None) -> TrainingResult:
    config = config or TrainerConfig()
    rng = np.random.default_rng(config.seed)
    population = random_population(config.population_size, rng)
    best: Optional[Individual] = None
    history: List[GenerationReport] = []

    for gen in range(config.generations):
        evaluate_population(population, config, rng)
        population.sort(key=lambda ind: ind.fitness, reverse=True)
        leader = population[0]
        report = GenerationReport(
            generation=gen,
            best_fitness=leader.fitness,
            mean_fitness=float(np.mean([ind.fitness for ind in population])),
            best_weights=leader.weights.copy(),
        )
        logger.info("generation %d: best=%.1f mean=%.2f weights=%s", gen, report.best_fitness,
                    report.mean_fitness, np.array2string(report.best_weights, precision=4))
        history.append(report)
        if best is None or leader.fitness > best.fitness:
            best = Individual(leader.weights.copy(), leader.fitness)
        if on_generation is not None:
            on_generation(report)

        survivors = select_survivors(population)
        population = reproduce(survivors, config.population_size, rng,
                               config.mutation_rate, config.mutation_step)

    if best is None:
        # zero generations: nothing was evaluated
        best = Individual(population[0].weights.copy(), 0.0)
    logger.info("training complete: best fitness %.1f", best.fitness)
    return TrainingResult(best=best, history=history)
