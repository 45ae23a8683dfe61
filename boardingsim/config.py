"""
Central configuration for the boarding simulator.

Every tunable lives in the CONFIG dict below; the dataclasses at the bottom
turn the relevant slices of it into validated, immutable objects.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence, Tuple

from boardingsim.errors import ConfigurationError

# ==============[CONFIGURATION PARAMETERS (easily tunable)]====================

CONFIG = {
    # Aircraft configuration
    'N_ROWS': 30,                    # Number of seat rows
    'SEAT_LETTERS': ['A', 'B', 'C', 'D', 'E', 'F'],
    'AISLE_INDEX': 3,                # Aisle sits between C and D
    'BIN_CAPACITY_PER_ROW': 6,       # Overhead bin units per row
    'BOARDING_DOOR': 'front',        # Single front door only

    # Passenger behaviour (all durations in ticks)
    'STOW_TICKS': {'none': 0, 'small': 3, 'large': 8},
    'BIN_UNITS': {'none': 0, 'small': 1, 'large': 2},
    'SHUFFLE_TICKS_PER_SEAT': 3,     # Per seated passenger standing up
    'SPEED_MULTIPLIERS': {'slow': 0.7, 'normal': 1.0, 'fast': 1.3},

    # Run defaults
    'PASSENGER_COUNT': 150,
    'RANDOM_SEED': 12345,
    'MAX_TICKS': 10000,              # Non-termination guard

    # Priority function validation
    'VALIDATION_BUDGET_MS': 100,     # Wall-clock budget for the sample set
    'DETERMINISM_SAMPLE': 5,         # Passengers re-evaluated for determinism
    'CUSTOM_PARAM_MIN': -100,
    'CUSTOM_PARAM_MAX': 100,

    # Genetic optimizer
    'GA_POPULATION_SIZE': 50,
    'GA_GENERATIONS': 20,
    'GA_ELITISM': 5,
    'GA_MUTATION_RATE': 0.1,
    'GA_TOURNAMENT_SIZE': 3,
    'GA_MUTATION_SPAN': 0.1,         # +/- fraction of a gene's range
    'GA_SCENARIO_COUNT': 3,
    'GA_SCENARIO_SEED': 12345,       # Scenario i uses seed + i
    'GA_PASSENGER_COUNT': 114,
    'GA_MAX_TICKS': 5000,

    # Monte Carlo comparison
    'N_REPLICATES': 20,
    'BASELINE_ALGORITHM': 'back_to_front',
}

# ==============[LAYOUT CONFIGURATION]====================


@dataclass(frozen=True)
class LayoutConfig:
    """
    Static description of a single-aisle cabin.

    Attributes:
        rows:                 Number of seat rows (1-indexed in the cabin).
        columns:              Ordered seat labels, left window to right window.
        aisle_index:          Columns with a smaller index sit left of the aisle.
        bin_capacity_per_row: Overhead bin units available per row.
        boarding_door:        Only 'front' is supported.
    """
    rows: int = CONFIG['N_ROWS']
    columns: Tuple[str, ...] = tuple(CONFIG['SEAT_LETTERS'])
    aisle_index: int = CONFIG['AISLE_INDEX']
    bin_capacity_per_row: int = CONFIG['BIN_CAPACITY_PER_ROW']
    boarding_door: str = CONFIG['BOARDING_DOOR']

    def __post_init__(self):
        # Accept any sequence of labels but store a tuple
        object.__setattr__(self, 'columns', tuple(self.columns))

        if self.rows < 1:
            raise ConfigurationError(f"rows must be >= 1, got {self.rows}")
        if not self.columns:
            raise ConfigurationError("at least one seat column is required")
        if len(set(self.columns)) != len(self.columns):
            raise ConfigurationError(f"duplicate column labels: {self.columns}")
        if not 0 <= self.aisle_index <= len(self.columns):
            raise ConfigurationError(
                f"aisle_index {self.aisle_index} outside 0..{len(self.columns)}"
            )
        if self.bin_capacity_per_row < 0:
            raise ConfigurationError("bin_capacity_per_row must not be negative")
        if self.boarding_door != 'front':
            raise ConfigurationError(
                f"unsupported boarding door {self.boarding_door!r}; only 'front' is modelled"
            )

    @classmethod
    def from_config(cls, config: Optional[dict] = None, **overrides) -> "LayoutConfig":
        """Build a layout from a CONFIG-style dict, with keyword overrides."""
        config = config or CONFIG
        values = {
            'rows': config.get('N_ROWS', CONFIG['N_ROWS']),
            'columns': tuple(config.get('SEAT_LETTERS', CONFIG['SEAT_LETTERS'])),
            'aisle_index': config.get('AISLE_INDEX', CONFIG['AISLE_INDEX']),
            'bin_capacity_per_row': config.get('BIN_CAPACITY_PER_ROW', CONFIG['BIN_CAPACITY_PER_ROW']),
            'boarding_door': config.get('BOARDING_DOOR', CONFIG['BOARDING_DOOR']),
        }
        values.update(overrides)
        return cls(**values)

    @property
    def total_seats(self) -> int:
        return self.rows * len(self.columns)

    def to_dict(self) -> dict:
        return {
            'rows': self.rows,
            'columns': list(self.columns),
            'aisle_index': self.aisle_index,
            'bin_capacity_per_row': self.bin_capacity_per_row,
            'boarding_door': self.boarding_door,
        }

# ==============[OPTIMIZER CONFIGURATION]====================


@dataclass
class OptimizerConfig:
    """
    Settings for the genetic parameter search.

    Defaults: 50 genomes, 20 generations,
    top 5 carried over, 10% mutation chance per offspring, scored on three
    seeded 114-passenger scenarios.
    """
    population_size: int = CONFIG['GA_POPULATION_SIZE']
    generations: int = CONFIG['GA_GENERATIONS']
    elitism_count: int = CONFIG['GA_ELITISM']
    mutation_rate: float = CONFIG['GA_MUTATION_RATE']
    tournament_size: int = CONFIG['GA_TOURNAMENT_SIZE']
    mutation_span: float = CONFIG['GA_MUTATION_SPAN']
    scenario_count: int = CONFIG['GA_SCENARIO_COUNT']
    scenario_seed: int = CONFIG['GA_SCENARIO_SEED']
    passenger_count: int = CONFIG['GA_PASSENGER_COUNT']
    max_ticks: int = CONFIG['GA_MAX_TICKS']
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    seed: Optional[int] = None       # Seeds the search itself (None = OS entropy)
    workers: int = 1                 # >1 scores genomes in a process pool

    def __post_init__(self):
        if self.population_size < 1:
            raise ConfigurationError("population_size must be >= 1")
        if self.generations < 1:
            raise ConfigurationError("generations must be >= 1")
        if not 0 <= self.elitism_count <= self.population_size:
            raise ConfigurationError("elitism_count must be within 0..population_size")
        if self.tournament_size < 1:
            raise ConfigurationError("tournament_size must be >= 1")
        if self.scenario_count < 1:
            raise ConfigurationError("scenario_count must be >= 1")
        if not 0 < self.passenger_count <= self.layout.total_seats:
            raise ConfigurationError(
                f"passenger_count {self.passenger_count} does not fit "
                f"{self.layout.total_seats} seats"
            )

    @property
    def scenario_seeds(self) -> Tuple[int, ...]:
        return tuple(self.scenario_seed + i for i in range(self.scenario_count))


def stow_ticks(carry_on_size: str) -> int:
    return CONFIG['STOW_TICKS'][carry_on_size]


def bin_units(carry_on_size: str) -> int:
    return CONFIG['BIN_UNITS'][carry_on_size]


def speed_multiplier(walk_speed: str) -> float:
    return CONFIG['SPEED_MULTIPLIERS'][walk_speed]


def round_half_up(value: float, digits: int = 0):
    """Round with halves going up (0.25 -> 0.3), unlike the built-in round."""
    if digits == 0:
        return math.floor(value + 0.5)
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def parse_param_overrides(pairs: Sequence[str]) -> Dict[str, float]:
    """Parse CLI-style 'name=value' pairs into a parameter mapping."""
    params = {}
    for pair in pairs:
        name, sep, value = pair.partition('=')
        if not sep or not name.strip():
            raise ConfigurationError(f"expected name=value, got {pair!r}")
        try:
            params[name.strip()] = float(value)
        except ValueError:
            raise ConfigurationError(f"parameter {name!r} is not numeric: {value!r}") from None
    return params
