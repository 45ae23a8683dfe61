"""
Built-in boarding algorithms.

Each preset pairs a hand-written priority factory with the equivalent Python
source shown to users, so a preset can be opened, edited and recompiled as
a custom algorithm.
"""

import math
from typing import Dict, List, Optional

from boardingsim.config import CONFIG
from boardingsim.contract import BoardingAlgorithm, ParameterSpec, compile_algorithm
from boardingsim.rng import DeterministicSequence

# ==============[BOARDING ORDER ALGORITHMS]====================


def _random_factory(params, rng: Optional[DeterministicSequence] = None):
    """
    Random boarding order.

    One draw per passenger, taken the first time that passenger is scored
    and remembered afterwards, keeps the function deterministic.
    """
    rng = rng or DeterministicSequence(CONFIG['RANDOM_SEED'])
    priorities: Dict[int, float] = {}

    def priority(passenger, context):
        if passenger.id not in priorities:
            priorities[passenger.id] = rng.next()
        return priorities[passenger.id]

    return priority


RANDOM_CODE = """\
# Random priority - no pattern. The seeded stream `rng` only exists for the
# built-in preset; custom code has no source of randomness.
return rng.next()
"""


def _back_to_front_factory(params, rng=None):
    def priority(passenger, context):
        return passenger.row

    return priority


BACK_TO_FRONT_CODE = """\
# Higher row number = higher priority
return passenger.row
"""


WINDOW_MIDDLE_AISLE_SCORES = {'window': 300, 'middle': 200, 'aisle': 100}


def _window_middle_aisle_factory(params, rng=None):
    def priority(passenger, context):
        # Primary: seat class, secondary: row (back first)
        return WINDOW_MIDDLE_AISLE_SCORES[passenger.seat_class] + passenger.row

    return priority


WINDOW_MIDDLE_AISLE_CODE = """\
# Seat class priority: window first, then middle, then aisle
seat_priority = {'window': 300, 'middle': 200, 'aisle': 100}

# Primary: seat class, secondary: row (back first)
return seat_priority[passenger.seat_class] + passenger.row
"""


def _zone_based_factory(params, rng=None):
    num_zones = params.get('num_zones') or 5

    def priority(passenger, context):
        rows_per_zone = math.ceil(context.total_rows / num_zones)
        zone = (passenger.row - 1) // rows_per_zone
        # Higher zone number = higher priority (back zones first)
        return zone * 1000 + passenger.row

    return priority


ZONE_BASED_CODE = """\
# Divide the cabin into zones (default 5)
num_zones = 5
rows_per_zone = math.ceil(context.total_rows / num_zones)
zone = (passenger.row - 1) // rows_per_zone

# Higher zone number = higher priority (back zones first)
return zone * 1000 + passenger.row
"""


WEIGHTED_SEAT_SCORES = {'window': 3, 'middle': 2, 'aisle': 1}
WEIGHTED_LUGGAGE_SCORES = {'none': 0, 'small': 1, 'large': 2}


def _weighted_heuristic_factory(params, rng=None):
    row_weight = params.get('row_weight', 10)
    seat_weight = params.get('seat_weight', 50)
    luggage_weight = params.get('luggage_weight', -20)

    def priority(passenger, context):
        return (passenger.row * row_weight
                + WEIGHTED_SEAT_SCORES[passenger.seat_class] * seat_weight
                + WEIGHTED_LUGGAGE_SCORES[passenger.carry_on_size] * luggage_weight)

    return priority


WEIGHTED_HEURISTIC_CODE = """\
# Weights for different factors
row_weight = 10        # Higher = prioritize back rows
seat_weight = 50       # Higher = prioritize window seats
luggage_weight = -20   # Negative = prioritize less luggage

seat_score = {'window': 3, 'middle': 2, 'aisle': 1}
luggage_score = {'none': 0, 'small': 1, 'large': 2}

return (passenger.row * row_weight
        + seat_score[passenger.seat_class] * seat_weight
        + luggage_score[passenger.carry_on_size] * luggage_weight)
"""


STEFFEN_SEAT_SCORES = {'window': 3000, 'middle': 2000, 'aisle': 1000}


def _steffen_factory(params, rng=None):
    def priority(passenger, context):
        # Even rows board before odd rows within each seat class
        parity_score = 500 if passenger.row % 2 == 0 else 0
        return STEFFEN_SEAT_SCORES[passenger.seat_class] + parity_score + passenger.row

    return priority


STEFFEN_CODE = """\
# Steffen method stages
seat_scores = {'window': 3000, 'middle': 2000, 'aisle': 1000}

# Even rows (30, 28, ...) board before odd rows (29, 27, ...) within each class
parity_score = 500 if passenger.row % 2 == 0 else 0

# High priority for back rows
return seat_scores[passenger.seat_class] + parity_score + passenger.row
"""

# ==============[REGISTRY]====================

PRESETS: Dict[str, BoardingAlgorithm] = {
    'random': BoardingAlgorithm(
        key='random',
        name='Random',
        description='Random boarding order - control baseline for comparison',
        code=RANDOM_CODE,
        factory=_random_factory,
    ),
    'back_to_front': BoardingAlgorithm(
        key='back_to_front',
        name='Back-to-Front',
        description='Passengers in back rows board first - demonstrates bin congestion',
        code=BACK_TO_FRONT_CODE,
        factory=_back_to_front_factory,
    ),
    'window_middle_aisle': BoardingAlgorithm(
        key='window_middle_aisle',
        name='Window-Middle-Aisle',
        description='Window seats first, then middle, then aisle - reduces seat shuffling',
        code=WINDOW_MIDDLE_AISLE_CODE,
        factory=_window_middle_aisle_factory,
    ),
    'zone_based': BoardingAlgorithm(
        key='zone_based',
        name='Zone-Based',
        description='Zones board from back to front - mirrors real airline practice',
        code=ZONE_BASED_CODE,
        factory=_zone_based_factory,
        parameters={
            'num_zones': ParameterSpec(label='Number of Zones', default=5, min=2, max=10),
        },
    ),
    'weighted_heuristic': BoardingAlgorithm(
        key='weighted_heuristic',
        name='Weighted Heuristic',
        description='Customizable weights for row, seat class and luggage - best starting point for edits',
        code=WEIGHTED_HEURISTIC_CODE,
        factory=_weighted_heuristic_factory,
        parameters={
            'row_weight': ParameterSpec(label='Row Weight', default=10, min=-100, max=100),
            'seat_weight': ParameterSpec(label='Seat Class Weight', default=50, min=-100, max=100),
            'luggage_weight': ParameterSpec(label='Luggage Weight', default=-20, min=-100, max=100),
        },
    ),
    'steffen': BoardingAlgorithm(
        key='steffen',
        name='Steffen Method',
        description='Interleaves rows and columns to minimize both aisle and seat interference',
        code=STEFFEN_CODE,
        factory=_steffen_factory,
    ),
}


def list_algorithms() -> List[BoardingAlgorithm]:
    return list(PRESETS.values())


def get_algorithm(key: str) -> BoardingAlgorithm:
    try:
        return PRESETS[key]
    except KeyError:
        raise KeyError(
            f"unknown algorithm {key!r}; choose from {', '.join(PRESETS)}"
        ) from None


def resolve_algorithm(key: str, code: Optional[str] = None) -> BoardingAlgorithm:
    """Rebuild an algorithm from its key, or from source for custom ones."""
    if key in PRESETS and code is None:
        return PRESETS[key]
    if code is None:
        raise KeyError(f"custom algorithm {key!r} needs its source code")
    return compile_algorithm(code)
