"""
Genetic search over an algorithm's numeric parameters.

A genome maps parameter names to values inside their declared bounds. Its
fitness is the mean number of ticks needed to board a fixed set of seeded
scenarios (lower is better). Every scenario run builds its own passengers,
aircraft and simulator, so genomes can be scored in parallel processes.

Usage:
    optimizer = GeneticOptimizer(get_algorithm('weighted_heuristic'))
    for report in optimizer.iterate():      # yields after every generation
        print(report.percent, report.best_fitness)

    result = optimizer.optimize(on_progress=callback)   # callback may return False to stop
"""

import logging
import math
import random
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from boardingsim.aircraft import AircraftLayout
from boardingsim.config import LayoutConfig, OptimizerConfig, round_half_up
from boardingsim.contract import BoardingAlgorithm, ParameterSpec, prepare_boarding_order, validate_on_flight
from boardingsim.errors import ContractViolation, OptimizerPrecondition
from boardingsim.presets import resolve_algorithm
from boardingsim.scenario import build_passengers
from boardingsim.simulation import simulate_boarding

logger = logging.getLogger(__name__)

Genome = Dict[str, float]

# ==============[DATA STRUCTURE]====================


@dataclass
class Individual:
    genome: Genome
    fitness: float


@dataclass(frozen=True)
class GenerationReport:
    """Progress emitted after each generation."""
    generation: int                  # 1-based
    total_generations: int
    percent: int
    best_genome: Genome              # Best seen over the whole run so far
    best_fitness: float
    generation_best: float
    generation_mean: float


@dataclass
class OptimizationResult:
    algorithm: str
    best_genome: Genome
    best_fitness: float
    history: List[GenerationReport] = field(default_factory=list)
    cancelled: bool = False

    @property
    def generations_completed(self) -> int:
        return len(self.history)

# ==============[FITNESS]====================


def evaluate_genome(
    algorithm: BoardingAlgorithm,
    genome: Genome,
    seeds: Sequence[int],
    passenger_count: int,
    layout: LayoutConfig,
    max_ticks: int,
) -> float:
    """
    Mean boarding ticks over the seeded scenarios.

    Truncated runs count their tick limit. A genome whose priority function
    raises while ordering a scenario scores the tick limit for it too.
    """
    total = 0
    for seed in seeds:
        passengers, rng = build_passengers(seed, passenger_count, layout)
        try:
            order = prepare_boarding_order(algorithm, passengers, layout, genome, rng, validate=False)
        except Exception as exc:
            logger.debug("Genome %s failed on scenario %d: %s: %s", genome, seed, type(exc).__name__, exc)
            total += max_ticks
            continue
        result = simulate_boarding(passengers, order, AircraftLayout(layout),
                                   max_ticks=max_ticks, algorithm=algorithm.name)
        total += result.total_ticks
    return total / len(seeds)


def _score_task(task: Tuple) -> float:
    """Process-pool entry point; every argument is plain immutable data."""
    key, code, genome, seeds, passenger_count, layout, max_ticks = task
    algorithm = resolve_algorithm(key, code)
    return evaluate_genome(algorithm, genome, seeds, passenger_count, layout, max_ticks)

# ==============[GENETIC OPTIMIZER]====================


class GeneticOptimizer:
    """
    Elitist genetic algorithm with tournament selection, uniform crossover
    and single-gene mutation.

    Raises:
        OptimizerPrecondition: the algorithm declares no numeric parameters
    """

    def __init__(self, algorithm: BoardingAlgorithm, config: Optional[OptimizerConfig] = None):
        if not algorithm.parameters:
            raise OptimizerPrecondition(
                f"No optimizable numeric parameters found for {algorithm.name!r}"
            )
        self.algorithm = algorithm
        self.config = config or OptimizerConfig()
        self.param_config: Dict[str, ParameterSpec] = dict(algorithm.parameters)
        self.random = random.Random(self.config.seed)
        self._fitness_cache: Dict[Tuple, float] = {}

    # -- Public ---------------------------------------------------------------

    def iterate(self) -> Iterator[GenerationReport]:
        """
        Run the search, yielding a report after every generation.

        Stopping iteration cancels the search before the next generation.
        """
        cfg = self.config
        self._check_contract()

        population = self._initialize_population()
        best: Optional[Individual] = None

        executor = ProcessPoolExecutor(max_workers=cfg.workers) if cfg.workers > 1 else None
        try:
            for gen in range(cfg.generations):
                fitnesses = self._evaluate_population(population, executor)
                evaluated = sorted(
                    (Individual(genome, fit) for genome, fit in zip(population, fitnesses)),
                    key=lambda ind: ind.fitness,
                )

                if best is None or evaluated[0].fitness < best.fitness:
                    best = Individual(dict(evaluated[0].genome), evaluated[0].fitness)

                mean = sum(fitnesses) / len(fitnesses)
                logger.info(
                    "Gen %d/%d: best=%.2f, generation best=%.2f, mean=%.2f",
                    gen + 1, cfg.generations, best.fitness, evaluated[0].fitness, mean,
                )
                yield GenerationReport(
                    generation=gen + 1,
                    total_generations=cfg.generations,
                    percent=round_half_up((gen + 1) / cfg.generations * 100),
                    best_genome=dict(best.genome),
                    best_fitness=best.fitness,
                    generation_best=evaluated[0].fitness,
                    generation_mean=mean,
                )

                if gen + 1 < cfg.generations:
                    population = self._evolve_next_generation(evaluated)
        finally:
            if executor is not None:
                executor.shutdown(cancel_futures=True)

    def optimize(
        self,
        on_progress: Optional[Callable[[GenerationReport], Optional[bool]]] = None,
    ) -> OptimizationResult:
        """
        Run every generation and return the best genome found.

        Args:
            on_progress: Called after each generation; returning False
                cancels the search before the next generation starts

        Returns:
            OptimizationResult with the best genome and per-generation history
        """
        history: List[GenerationReport] = []
        cancelled = False
        generations = self.iterate()
        for report in generations:
            history.append(report)
            if on_progress is not None and on_progress(report) is False:
                cancelled = True
                generations.close()
                logger.info("Optimization cancelled after generation %d", report.generation)
                break

        last = history[-1]
        return OptimizationResult(
            algorithm=self.algorithm.name,
            best_genome=last.best_genome,
            best_fitness=last.best_fitness,
            history=history,
            cancelled=cancelled,
        )

    def evaluate(self, genome: Genome) -> float:
        """Fitness of one genome (cached; scoring is deterministic)."""
        key = self._cache_key(genome)
        if key not in self._fitness_cache:
            cfg = self.config
            self._fitness_cache[key] = evaluate_genome(
                self.algorithm, genome, cfg.scenario_seeds, cfg.passenger_count, cfg.layout, cfg.max_ticks,
            )
        return self._fitness_cache[key]

    # -- Internals ------------------------------------------------------------

    def _check_contract(self):
        """Validate default parameters on the first scenario before any search."""
        cfg = self.config
        passengers, rng = build_passengers(cfg.scenario_seeds[0], cfg.passenger_count, cfg.layout)
        priority_fn = self.algorithm.create_priority_fn(None, rng)
        result = validate_on_flight(priority_fn, passengers, cfg.layout)
        if not result.is_valid:
            raise ContractViolation(result)

    def _cache_key(self, genome: Genome) -> Tuple:
        return tuple(sorted(genome.items()))

    def _evaluate_population(self, population: List[Genome], executor) -> List[float]:
        if executor is None:
            return [self.evaluate(genome) for genome in population]

        cfg = self.config
        code = self.algorithm.code if self.algorithm.custom else None
        pending = {}
        for genome in population:
            key = self._cache_key(genome)
            if key not in self._fitness_cache and key not in pending:
                pending[key] = (self.algorithm.key, code, dict(genome), cfg.scenario_seeds,
                                cfg.passenger_count, cfg.layout, cfg.max_ticks)
        for key, fitness in zip(pending, executor.map(_score_task, pending.values())):
            self._fitness_cache[key] = fitness
        return [self._fitness_cache[self._cache_key(genome)] for genome in population]

    def _initialize_population(self) -> List[Genome]:
        return [
            {name: self._random_value(spec) for name, spec in self.param_config.items()}
            for _ in range(self.config.population_size)
        ]

    def _random_value(self, spec: ParameterSpec) -> float:
        value = math.floor(self.random.random() * (spec.max - spec.min + 1)) + spec.min
        return spec.clamp(value)

    def _evolve_next_generation(self, evaluated: List[Individual]) -> List[Genome]:
        cfg = self.config
        next_gen = [dict(ind.genome) for ind in evaluated[:cfg.elitism_count]]

        while len(next_gen) < cfg.population_size:
            parent_a = self._tournament_select(evaluated)
            parent_b = self._tournament_select(evaluated)
            child = self._crossover(parent_a.genome, parent_b.genome)
            if self.random.random() < cfg.mutation_rate:
                child = self._mutate(child)
            next_gen.append(child)

        return next_gen

    def _tournament_select(self, evaluated: List[Individual]) -> Individual:
        best = None
        for _ in range(self.config.tournament_size):
            candidate = evaluated[self.random.randrange(len(evaluated))]
            if best is None or candidate.fitness < best.fitness:
                best = candidate
        return best

    def _crossover(self, parent_a: Genome, parent_b: Genome) -> Genome:
        return {
            name: parent_a[name] if self.random.random() < 0.5 else parent_b[name]
            for name in self.param_config
        }

    def _mutate(self, genome: Genome) -> Genome:
        gene = self.random.choice(list(self.param_config))
        spec = self.param_config[gene]
        span = (spec.max - spec.min) * self.config.mutation_span
        delta = self.random.random() * 2 * span - span
        genome[gene] = spec.clamp(round_half_up(genome[gene] + delta))
        return genome
