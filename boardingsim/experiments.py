"""
Monte Carlo comparison of boarding algorithms.

Each replicate generates one flight from its seed, and every algorithm
boards that same flight, so differences come from the boarding order alone.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np

from boardingsim.aircraft import AircraftLayout
from boardingsim.config import CONFIG, LayoutConfig
from boardingsim.contract import BoardingAlgorithm, prepare_boarding_order
from boardingsim.presets import PRESETS
from boardingsim.scenario import build_passengers
from boardingsim.simulation import SimulationResult, simulate_boarding

logger = logging.getLogger(__name__)

COLORS = ['#e74c3c', '#3498db', '#2ecc71', '#9b59b6', '#f39c12', '#1abc9c', '#34495e']


@dataclass(frozen=True)
class AlgorithmStats:
    mean: float
    std: float
    ci_95: float
    min: float
    max: float
    median: float
    times: List[int]

# ==============[EXPERIMENTS]====================


def run_experiments(
    algorithms: Optional[Mapping[str, BoardingAlgorithm]] = None,
    n_replicates: int = CONFIG['N_REPLICATES'],
    seed: int = CONFIG['RANDOM_SEED'],
    passenger_count: int = CONFIG['PASSENGER_COUNT'],
    layout: Optional[LayoutConfig] = None,
    max_ticks: int = CONFIG['MAX_TICKS'],
    verbose: bool = True,
) -> Dict[str, List[SimulationResult]]:
    """
    Board the same seeded flights with every algorithm.

    Args:
        algorithms: key -> algorithm; all presets if None
        n_replicates: Number of flights (replicate i uses seed + i)
        seed: Base seed
        passenger_count: Passengers per flight
        layout: Cabin configuration
        max_ticks: Non-termination guard per run
        verbose: Print progress lines

    Returns:
        Dictionary mapping algorithm key to one result per replicate
    """
    algorithms = algorithms or PRESETS
    layout = layout or LayoutConfig()
    results = {key: [] for key in algorithms}

    if verbose:
        print(f"\nRunning {n_replicates} replicates per algorithm...")
        print(f"Aircraft: {layout.rows} rows x {len(layout.columns)} seats, {passenger_count} passengers")
        print("-" * 60)

    for rep in range(n_replicates):
        if verbose and ((rep + 1) % 10 == 0 or rep == 0):
            print(f"  Replicate {rep + 1}/{n_replicates}...")

        for key, algorithm in algorithms.items():
            # Fresh generator per algorithm so randomised orders replay identically
            passengers, rng = build_passengers(seed + rep, passenger_count, layout)
            order = prepare_boarding_order(algorithm, passengers, layout, rng=rng)
            result = simulate_boarding(passengers, order, AircraftLayout(layout),
                                       max_ticks=max_ticks, algorithm=algorithm.name)
            if result.truncated:
                logger.warning("%s replicate %d stopped at the tick limit", algorithm.name, rep)
            results[key].append(result)

    return results


def compute_statistics(results: Dict[str, List[SimulationResult]]) -> Dict[str, AlgorithmStats]:
    """
    Compute summary statistics of boarding ticks for each algorithm.
    """
    stats = {}

    for key, runs in results.items():
        times = [r.total_ticks for r in runs]
        n = len(times)
        std = float(np.std(times, ddof=1)) if n > 1 else 0.0

        stats[key] = AlgorithmStats(
            mean=float(np.mean(times)),
            std=std,
            ci_95=1.96 * std / np.sqrt(n),
            min=float(np.min(times)),
            max=float(np.max(times)),
            median=float(np.median(times)),
            times=times,
        )

    return stats


def print_summary(
    stats: Dict[str, AlgorithmStats],
    title: str = "Boarding Simulation Results",
    baseline: Optional[str] = CONFIG['BASELINE_ALGORITHM'],
    names: Optional[Mapping[str, str]] = None,
):
    """
    Print formatted summary table.
    """
    names = names or {key: PRESETS[key].name if key in PRESETS else key for key in stats}

    print("\n" + "=" * 70)
    print(f" {title}")
    print("=" * 70)
    print(f"{'Algorithm':<25} {'Mean (ticks)':<14} {'Std Dev':<10} {'95% CI':<12} {'Min-Max':<12}")
    print("-" * 70)

    # Sort by mean time
    ordered = sorted(stats, key=lambda k: stats[k].mean)

    for key in ordered:
        s = stats[key]
        ci_str = f"+/-{s.ci_95:.1f}"
        range_str = f"{s.min:.0f}-{s.max:.0f}"
        print(f"{names[key]:<25} {s.mean:<14.1f} {s.std:<10.2f} {ci_str:<12} {range_str:<12}")

    print("-" * 70)

    if baseline in stats:
        base_mean = stats[baseline].mean
        print(f"\nSpeedup vs {names[baseline]} baseline:")
        for key in ordered:
            speedup = (base_mean - stats[key].mean) / base_mean * 100
            faster = "faster" if speedup > 0 else "slower"
            print(f"  {names[key]}: {abs(speedup):.1f}% {faster}")

    print("=" * 70)

# ==============[VISUALIZATION]====================


def create_visualizations(
    stats: Dict[str, AlgorithmStats],
    results: Dict[str, List[SimulationResult]],
    output_dir: Path = Path('.'),
    suffix: str = "",
) -> List[Path]:
    """
    Save a box plot / bar chart comparison and a seated-over-time chart.

    Returns:
        Paths of the written PNG files
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    keys = list(stats)
    labels = [results[k][0].algorithm if results[k] else k for k in keys]
    colors = {k: COLORS[i % len(COLORS)] for i, k in enumerate(keys)}
    written = []

    fig, axes = plt.subplots(1, 2, figsize=(14, 5))

    # Plot 1: Box plot of boarding times
    ax1 = axes[0]
    bp = ax1.boxplot([stats[k].times for k in keys], patch_artist=True)
    ax1.set_xticks(range(1, len(keys) + 1))
    ax1.set_xticklabels(labels, rotation=20, ha='right')
    for patch, key in zip(bp['boxes'], keys):
        patch.set_facecolor(colors[key])
        patch.set_alpha(0.7)
    ax1.set_ylabel('Boarding Time (ticks)', fontsize=12)
    ax1.set_title('Distribution of Boarding Times', fontsize=14)
    ax1.grid(axis='y', alpha=0.3)

    # Plot 2: Bar chart with error bars
    ax2 = axes[1]
    ordered = sorted(keys, key=lambda k: stats[k].mean)
    means = [stats[k].mean for k in ordered]
    errors = [stats[k].ci_95 for k in ordered]
    bars = ax2.bar(range(len(ordered)), means, yerr=errors, capsize=5,
                   color=[colors[k] for k in ordered], alpha=0.7)
    ax2.set_xticks(range(len(ordered)))
    ax2.set_xticklabels([labels[keys.index(k)] for k in ordered], rotation=20, ha='right')
    ax2.set_ylabel('Mean Boarding Time (ticks)', fontsize=12)
    ax2.set_title('Mean Boarding Time with 95% CI', fontsize=14)
    ax2.grid(axis='y', alpha=0.3)

    for bar, mean, err in zip(bars, means, errors):
        ax2.text(bar.get_x() + bar.get_width() / 2, bar.get_height() + err + 5,
                 f'{mean:.0f}', ha='center', va='bottom', fontsize=10)

    plt.tight_layout()
    path = output_dir / f'boarding_comparison{suffix}.png'
    plt.savefig(path, dpi=150, bbox_inches='tight')
    plt.close(fig)
    written.append(path)

    # Seated passengers over time, first replicate of each algorithm
    fig, ax = plt.subplots(figsize=(12, 6))
    for key, label in zip(keys, labels):
        if not results[key]:
            continue
        ticks, seated = zip(*results[key][0].seated_time_series())
        ax.step(ticks, seated, where='post', label=label, color=colors[key], linewidth=2)

    ax.set_xlabel('Tick', fontsize=12)
    ax.set_ylabel('Passengers Seated', fontsize=12)
    ax.set_title('Boarding Progress Over Time (Single Run)', fontsize=14)
    ax.legend(loc='lower right', fontsize=11)
    ax.grid(alpha=0.3)
    ax.set_xlim(0, None)

    plt.tight_layout()
    path = output_dir / f'boarding_timeseries{suffix}.png'
    plt.savefig(path, dpi=150, bbox_inches='tight')
    plt.close(fig)
    written.append(path)

    for path in written:
        print(f"Saved plot: {path}")
    return written


def plot_optimization_history(history: Sequence, path: Path) -> Path:
    """Best-so-far and generation mean fitness per generation."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    generations = [r.generation for r in history]

    fig, ax = plt.subplots(figsize=(10, 5))
    ax.plot(generations, [r.best_fitness for r in history], marker='o', label='Best so far', color=COLORS[2])
    ax.plot(generations, [r.generation_mean for r in history], linestyle='--', label='Generation mean',
            color=COLORS[1])
    ax.set_xlabel('Generation', fontsize=12)
    ax.set_ylabel('Mean Boarding Time (ticks)', fontsize=12)
    ax.set_title('Parameter Search Progress', fontsize=14)
    ax.legend(fontsize=11)
    ax.grid(alpha=0.3)

    plt.tight_layout()
    plt.savefig(path, dpi=150, bbox_inches='tight')
    plt.close(fig)
    print(f"Saved plot: {path}")
    return path

# ==============[REPORT]====================


def generate_report(
    stats: Dict[str, AlgorithmStats],
    layout: LayoutConfig,
    n_replicates: int,
    passenger_count: int,
    path: Optional[Path] = None,
    baseline: str = CONFIG['BASELINE_ALGORITHM'],
) -> str:
    """Build a plain-text report; also written to `path` when given."""
    report = []
    report.append("=" * 70)
    report.append("AIRPLANE BOARDING SIMULATION REPORT")
    report.append("=" * 70)
    report.append("")
    report.append("SIMULATION PARAMETERS:")
    report.append(f"  Aircraft: {layout.rows} rows x {len(layout.columns)} seats "
                  f"({''.join(layout.columns)}, aisle after column {layout.aisle_index})")
    report.append(f"  Passengers per flight: {passenger_count}")
    report.append(f"  Replicates per algorithm: {n_replicates}")
    report.append(f"  Overhead bin capacity: {layout.bin_capacity_per_row} units per row")
    report.append(f"  Stow ticks: {CONFIG['STOW_TICKS']}")
    report.append(f"  Shuffle ticks per blocking passenger: {CONFIG['SHUFFLE_TICKS_PER_SEAT']}")
    report.append("")
    report.append("-" * 70)
    report.append(f"{'Algorithm':<25} {'Mean':<10} {'Std Dev':<10} {'95% CI':<12}")
    report.append("-" * 70)

    ordered = sorted(stats, key=lambda k: stats[k].mean)
    for key in ordered:
        s = stats[key]
        name = PRESETS[key].name if key in PRESETS else key
        report.append(f"{name:<25} {s.mean:<10.1f} {s.std:<10.2f} +/-{s.ci_95:.1f}")

    if baseline in stats:
        base_mean = stats[baseline].mean
        report.append("")
        report.append(f"Speedup vs {PRESETS[baseline].name if baseline in PRESETS else baseline}:")
        for key in ordered:
            speedup = (base_mean - stats[key].mean) / base_mean * 100
            report.append(f"  {PRESETS[key].name if key in PRESETS else key}: {speedup:+.1f}%")

    if ordered:
        best = ordered[0]
        report.append("")
        report.append(f"Best algorithm: {PRESETS[best].name if best in PRESETS else best} "
                      f"({stats[best].mean:.1f} ticks on average)")

    report.append("")
    report.append("=" * 70)
    report.append("END OF REPORT")
    report.append("=" * 70)

    report_text = "\n".join(report)

    if path is not None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(report_text)
        print(f"\nSaved report: {path}")

    return report_text
