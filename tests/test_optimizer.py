"""Tests for the genetic parameter search."""

import pytest

from boardingsim.config import LayoutConfig, OptimizerConfig
from boardingsim.contract import compile_algorithm
from boardingsim.errors import ConfigurationError, ContractViolation, OptimizerPrecondition
from boardingsim.optimizer import GeneticOptimizer, evaluate_genome
from boardingsim.presets import PRESETS


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def quick_config():
    """Tiny search: 6 genomes, 3 generations, two 30-passenger scenarios."""
    return OptimizerConfig(
        population_size=6,
        generations=3,
        elitism_count=2,
        scenario_count=2,
        passenger_count=30,
        layout=LayoutConfig(rows=10),
        max_ticks=2000,
        seed=7,
    )


class TestPreconditions:

    @pytest.mark.parametrize('key', ['random', 'back_to_front', 'window_middle_aisle', 'steffen'])
    def test_presets_without_parameters(self, key, quick_config):
        with pytest.raises(OptimizerPrecondition):
            GeneticOptimizer(PRESETS[key], quick_config)

    def test_invalid_default_contract(self, quick_config):
        algorithm = compile_algorithm("w = 1\nreturn w * float('nan')")
        with pytest.raises(ContractViolation):
            GeneticOptimizer(algorithm, quick_config).optimize()

    def test_passengers_must_fit(self):
        with pytest.raises(ConfigurationError):
            OptimizerConfig(passenger_count=61, layout=LayoutConfig(rows=10))


class TestSearch:

    def test_history_and_monotonic_best(self, quick_config):
        result = GeneticOptimizer(PRESETS['weighted_heuristic'], quick_config).optimize()
        assert not result.cancelled
        assert result.generations_completed == 3
        assert [r.generation for r in result.history] == [1, 2, 3]
        assert result.history[-1].percent == 100
        best = [r.best_fitness for r in result.history]
        assert best == sorted(best, reverse=True)
        assert result.best_fitness == best[-1]
        assert all(r.generation_best >= r.best_fitness for r in result.history)

    def test_genes_within_bounds(self, quick_config):
        algorithm = PRESETS['weighted_heuristic']
        result = GeneticOptimizer(algorithm, quick_config).optimize()
        assert set(result.best_genome) == set(algorithm.parameters)
        for name, value in result.best_genome.items():
            spec = algorithm.parameters[name]
            assert spec.min <= value <= spec.max

    def test_best_fitness_matches_reevaluation(self, quick_config):
        algorithm = PRESETS['zone_based']
        result = GeneticOptimizer(algorithm, quick_config).optimize()
        fitness = evaluate_genome(algorithm, result.best_genome, quick_config.scenario_seeds,
                                  quick_config.passenger_count, quick_config.layout,
                                  quick_config.max_ticks)
        assert fitness == result.best_fitness

    def test_seeded_search_is_reproducible(self, quick_config):
        a = GeneticOptimizer(PRESETS['weighted_heuristic'], quick_config).optimize()
        b = GeneticOptimizer(PRESETS['weighted_heuristic'], quick_config).optimize()
        assert a.best_genome == b.best_genome
        assert [r.best_fitness for r in a.history] == [r.best_fitness for r in b.history]

    def test_custom_code_is_optimizable(self, quick_config):
        algorithm = compile_algorithm("row_weight = 1\nreturn passenger.row * row_weight")
        result = GeneticOptimizer(algorithm, quick_config).optimize()
        assert set(result.best_genome) == {'row_weight'}

    def test_process_pool_matches_serial(self, quick_config):
        serial = GeneticOptimizer(PRESETS['weighted_heuristic'], quick_config).optimize()
        quick_config.workers = 2
        parallel = GeneticOptimizer(PRESETS['weighted_heuristic'], quick_config).optimize()
        assert parallel.best_genome == serial.best_genome
        assert parallel.best_fitness == serial.best_fitness


class TestProgress:

    def test_callback_sees_every_generation(self, quick_config):
        seen = []
        GeneticOptimizer(PRESETS['zone_based'], quick_config).optimize(seen.append)
        assert [r.percent for r in seen] == [33, 67, 100]

    def test_cancel_after_first_generation(self, quick_config):
        result = GeneticOptimizer(PRESETS['zone_based'], quick_config).optimize(lambda report: False)
        assert result.cancelled
        assert result.generations_completed == 1
        assert result.best_genome

    def test_iterate_can_stop_early(self, quick_config):
        optimizer = GeneticOptimizer(PRESETS['zone_based'], quick_config)
        reports = []
        for report in optimizer.iterate():
            reports.append(report)
            if report.generation == 2:
                break
        assert len(reports) == 2

    def test_fitness_cached(self, quick_config):
        optimizer = GeneticOptimizer(PRESETS['zone_based'], quick_config)
        first = optimizer.evaluate({'num_zones': 3})
        assert optimizer.evaluate({'num_zones': 3}) == first
        assert len(optimizer._fitness_cache) == 1


class TestFailingGenomes:

    def test_runtime_error_scores_tick_limit(self, quick_config):
        algorithm = compile_algorithm("k = 5\nreturn passenger.row / k")
        optimizer = GeneticOptimizer(algorithm, quick_config)
        assert optimizer.evaluate({'k': 0}) == quick_config.max_ticks
        assert optimizer.evaluate({'k': 5}) < quick_config.max_ticks

    def test_search_survives_failing_genomes(self, quick_config):
        quick_config.population_size = 30
        quick_config.elitism_count = 5
        algorithm = compile_algorithm("k = 5\nreturn passenger.row / k")
        result = GeneticOptimizer(algorithm, quick_config).optimize()
        assert result.generations_completed == 3
        assert result.best_genome['k'] != 0
        assert result.best_fitness < quick_config.max_ticks
