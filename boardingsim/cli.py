"""
Command line entry point.

    boardingsim list
    boardingsim run --algorithm steffen --seed 7
    boardingsim run --code-file my_priority.py --param row_weight=25
    boardingsim compare --replicates 50 --output-dir results
    boardingsim optimize --algorithm weighted_heuristic --generations 10 --seed 1
    boardingsim validate --code-file my_priority.py
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from boardingsim import __version__
from boardingsim.config import CONFIG, LayoutConfig, OptimizerConfig, parse_param_overrides
from boardingsim.contract import compile_algorithm, validate_algorithm
from boardingsim.errors import BoardingSimError, ContractViolation
from boardingsim.experiments import (
    compute_statistics,
    create_visualizations,
    generate_report,
    plot_optimization_history,
    print_summary,
    run_experiments,
)
from boardingsim.metrics import analyze_delay_causes
from boardingsim.optimizer import GeneticOptimizer
from boardingsim.presets import PRESETS, get_algorithm, list_algorithms
from boardingsim.scenario import build_passengers, run_scenario


def _load_algorithm(args):
    """Preset from --algorithm, or custom source from --code-file."""
    if getattr(args, 'code_file', None):
        code = Path(args.code_file).read_text(encoding='utf-8')
        base = PRESETS.get(args.algorithm) if args.algorithm else None
        return compile_algorithm(code, base=base)
    return get_algorithm(args.algorithm or CONFIG['BASELINE_ALGORITHM'])


def _layout(args) -> LayoutConfig:
    return LayoutConfig.from_config(rows=args.rows)


def _add_flight_arguments(parser):
    parser.add_argument('--seed', type=int, default=CONFIG['RANDOM_SEED'], help='Scenario seed')
    parser.add_argument('--passengers', type=int, default=CONFIG['PASSENGER_COUNT'],
                        help='Passengers on the flight')
    parser.add_argument('--rows', type=int, default=CONFIG['N_ROWS'], help='Seat rows in the cabin')
    parser.add_argument('--max-ticks', type=int, default=CONFIG['MAX_TICKS'],
                        help='Stop a simulation after this many ticks')


def _add_algorithm_arguments(parser):
    parser.add_argument('--algorithm', '-a', choices=sorted(PRESETS), help='Preset algorithm key')
    parser.add_argument('--code-file', help='Python priority body to use instead of (or edited from) a preset')
    parser.add_argument('--param', action='append', default=[], metavar='NAME=VALUE',
                        help='Override a numeric parameter (repeatable)')

# ==============[COMMANDS]====================


def cmd_list(args):
    print("\nAvailable boarding algorithms:")
    print("-" * 70)
    for algorithm in list_algorithms():
        print(f"{algorithm.key:<22} {algorithm.name:<22} {algorithm.description}")
        for name, spec in algorithm.parameters.items():
            print(f"{'':<22}   {name} = {spec.default:g}  ({spec.label}, {spec.min:g}..{spec.max:g})")
    return 0


def cmd_run(args):
    algorithm = _load_algorithm(args)
    params = parse_param_overrides(args.param)
    layout = _layout(args)

    result = run_scenario(
        algorithm,
        params,
        seed=args.seed,
        passenger_count=args.passengers,
        layout=layout,
        max_ticks=args.max_ticks,
    )

    if args.json:
        print(json.dumps({
            'algorithm': result.algorithm,
            'metrics': result.metrics.to_dict(),
            'events': [e.to_dict() for e in result.events] if args.events else None,
        }, indent=2))
        return 0 if result.completed else 2

    m = result.metrics
    print("\n" + "=" * 60)
    print(f" {result.algorithm}  (seed {args.seed}, {m.total_passengers} passengers)")
    print("=" * 60)
    print(f"  Total ticks:          {m.total_ticks}")
    print(f"  Average wait (ticks): {m.avg_wait_ticks}")
    print(f"  Max wait (ticks):     {m.max_wait_ticks}")
    print(f"  Aisle blocked:        {m.aisle_blocked_percent}%")
    print(f"  Seated:               {m.seated_count}/{m.total_passengers}")
    if result.truncated:
        print(f"  Stopped at the {args.max_ticks}-tick limit before everyone was seated")

    findings = analyze_delay_causes(result.events, m)
    if findings:
        print("\n  Main delay causes:")
        for f in findings:
            rows = f" rows {', '.join(map(str, f.rows))}" if f.rows else ""
            print(f"    [{f.severity}] {f.cause.value}: count {f.count}, {f.percentage}%{rows}")

    if args.events:
        print("\n  Events:")
        for e in result.events:
            print(f"    {e.step:>5} {e.kind.value:<14} #{e.passenger_id:<4} {e.row}{e.column}")

    print("=" * 60)
    return 0 if result.completed else 2


def cmd_compare(args):
    layout = _layout(args)
    results = run_experiments(
        n_replicates=args.replicates,
        seed=args.seed,
        passenger_count=args.passengers,
        layout=layout,
        max_ticks=args.max_ticks,
    )
    stats = compute_statistics(results)
    print_summary(stats, title=f"Boarding Simulation Results ({args.passengers} passengers)")

    output_dir = Path(args.output_dir)
    if not args.no_plots:
        create_visualizations(stats, results, output_dir)
    generate_report(stats, layout, args.replicates, args.passengers,
                    path=output_dir / 'boarding_report.txt')
    return 0


def cmd_optimize(args):
    algorithm = _load_algorithm(args)
    layout = _layout(args)
    config = OptimizerConfig(
        population_size=args.population,
        generations=args.generations,
        elitism_count=min(CONFIG['GA_ELITISM'], args.population),
        passenger_count=args.passengers,
        layout=layout,
        seed=args.search_seed,
        workers=args.workers,
    )

    print(f"\nOptimizing {algorithm.name}: {', '.join(algorithm.parameters)}")
    print(f"Population {config.population_size}, {config.generations} generations, "
          f"scenarios {list(config.scenario_seeds)}")
    print("-" * 60)

    def on_progress(report):
        genome = ', '.join(f"{k}={v:g}" for k, v in report.best_genome.items())
        print(f"  [{report.percent:>3}%] gen {report.generation}/{report.total_generations}: "
              f"best {report.best_fitness:.1f} ticks ({genome})")

    result = GeneticOptimizer(algorithm, config).optimize(on_progress)

    print("-" * 60)
    print(f"Best mean boarding time: {result.best_fitness:.1f} ticks")
    for name, value in result.best_genome.items():
        print(f"  {name} = {value:g}")

    if args.plot:
        plot_optimization_history(result.history, Path(args.plot))
    return 0


def cmd_validate(args):
    algorithm = _load_algorithm(args)
    params = parse_param_overrides(args.param)
    layout = _layout(args)
    passengers, rng = build_passengers(args.seed, args.passengers, layout)

    result = validate_algorithm(algorithm, passengers, layout, params, rng)
    status = "VALID" if result.is_valid else "INVALID"
    print(f"\n{algorithm.name}: {status}")
    for error in result.errors:
        print(f"  error:   {error}")
    for warning in result.warnings:
        print(f"  warning: {warning}")
    if algorithm.parameters:
        print("  parameters: " + ', '.join(f"{k}={v.default:g}" for k, v in algorithm.parameters.items()))
    return 0 if result.is_valid else 1

# ==============[MAIN]====================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='boardingsim', description="Airplane boarding simulator")
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('--verbose', '-v', action='store_true', help='Log progress and warnings')
    sub = parser.add_subparsers(dest='command', required=True)

    p = sub.add_parser('list', help='List preset algorithms')
    p.set_defaults(func=cmd_list)

    p = sub.add_parser('run', help='Board one flight with one algorithm')
    _add_algorithm_arguments(p)
    _add_flight_arguments(p)
    p.add_argument('--events', action='store_true', help='Print the event log')
    p.add_argument('--json', action='store_true', help='Print metrics as JSON')
    p.set_defaults(func=cmd_run)

    p = sub.add_parser('compare', help='Monte Carlo comparison of every preset')
    _add_flight_arguments(p)
    p.add_argument('--replicates', type=int, default=CONFIG['N_REPLICATES'])
    p.add_argument('--output-dir', default='.', help='Where plots and the report are written')
    p.add_argument('--no-plots', action='store_true')
    p.set_defaults(func=cmd_compare)

    p = sub.add_parser('optimize', help='Genetic search over an algorithm\'s parameters')
    _add_algorithm_arguments(p)
    p.add_argument('--passengers', type=int, default=CONFIG['GA_PASSENGER_COUNT'])
    p.add_argument('--rows', type=int, default=CONFIG['N_ROWS'])
    p.add_argument('--population', type=int, default=CONFIG['GA_POPULATION_SIZE'])
    p.add_argument('--generations', type=int, default=CONFIG['GA_GENERATIONS'])
    p.add_argument('--seed', dest='search_seed', type=int, default=None, help='Seed the search itself')
    p.add_argument('--workers', type=int, default=1, help='Processes used to score genomes')
    p.add_argument('--plot', help='Save a fitness-history chart to this PNG path')
    p.set_defaults(func=cmd_optimize)

    p = sub.add_parser('validate', help='Check a priority function against a generated flight')
    _add_algorithm_arguments(p)
    _add_flight_arguments(p)
    p.set_defaults(func=cmd_validate)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    try:
        return args.func(args)
    except ContractViolation as exc:
        print(f"Algorithm rejected: {exc}", file=sys.stderr)
        for warning in exc.result.warnings:
            print(f"  warning: {warning}", file=sys.stderr)
        return 1
    except (BoardingSimError, KeyError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
