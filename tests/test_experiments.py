"""Tests for the Monte Carlo comparison, statistics, charts and report."""

import pytest

from boardingsim.config import LayoutConfig
from boardingsim.experiments import (
    compute_statistics,
    create_visualizations,
    generate_report,
    plot_optimization_history,
    print_summary,
    run_experiments,
)
from boardingsim.optimizer import GenerationReport
from boardingsim.presets import PRESETS


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def tiny_layout():
    return LayoutConfig(rows=5)


@pytest.fixture
def results(tiny_layout):
    algorithms = {key: PRESETS[key] for key in ('back_to_front', 'steffen', 'random')}
    return run_experiments(algorithms, n_replicates=3, seed=100, passenger_count=20,
                           layout=tiny_layout, verbose=False)


class TestRunExperiments:

    def test_one_result_per_replicate(self, results):
        assert set(results) == {'back_to_front', 'steffen', 'random'}
        assert all(len(runs) == 3 for runs in results.values())
        assert all(r.completed for runs in results.values() for r in runs)

    def test_reproducible(self, results, tiny_layout):
        again = run_experiments({'random': PRESETS['random']}, n_replicates=3, seed=100,
                                passenger_count=20, layout=tiny_layout, verbose=False)
        assert [r.total_ticks for r in again['random']] == [r.total_ticks for r in results['random']]


class TestStatistics:

    def test_summary_values(self, results):
        stats = compute_statistics(results)
        s = stats['steffen']
        times = [r.total_ticks for r in results['steffen']]
        assert s.times == times
        assert s.mean == pytest.approx(sum(times) / 3)
        assert s.min == min(times) and s.max == max(times)
        assert s.ci_95 == pytest.approx(1.96 * s.std / 3 ** 0.5)

    def test_single_replicate_has_zero_spread(self, tiny_layout):
        single = run_experiments({'steffen': PRESETS['steffen']}, n_replicates=1,
                                 passenger_count=20, layout=tiny_layout, verbose=False)
        s = compute_statistics(single)['steffen']
        assert s.std == 0.0
        assert s.ci_95 == 0.0


class TestOutput:

    def test_print_summary(self, results, capsys):
        print_summary(compute_statistics(results))
        out = capsys.readouterr().out
        assert 'Steffen Method' in out
        assert 'Speedup vs Back-to-Front baseline' in out

    def test_charts_written(self, results, tmp_path):
        paths = create_visualizations(compute_statistics(results), results, tmp_path, suffix='_test')
        assert [p.name for p in paths] == ['boarding_comparison_test.png', 'boarding_timeseries_test.png']
        assert all(p.exists() and p.stat().st_size > 0 for p in paths)

    def test_optimization_history_chart(self, tmp_path):
        history = [
            GenerationReport(generation=g, total_generations=2, percent=g * 50,
                             best_genome={'w': 1}, best_fitness=100 - g,
                             generation_best=100 - g, generation_mean=110 - g)
            for g in (1, 2)
        ]
        path = plot_optimization_history(history, tmp_path / 'plots' / 'history.png')
        assert path.exists()

    def test_report(self, results, tiny_layout, tmp_path):
        path = tmp_path / 'report.txt'
        text = generate_report(compute_statistics(results), tiny_layout, 3, 20, path=path)
        assert path.read_text(encoding='utf-8') == text
        assert 'AIRPLANE BOARDING SIMULATION REPORT' in text
        assert 'Best algorithm:' in text
        assert 'Replicates per algorithm: 3' in text
