"""
End-to-end pipeline: seed -> passengers -> boarding order -> simulation.

Every call builds its own DeterministicSequence, AircraftLayout and
BoardingSimulator, so runs never share mutable state.
"""

from typing import List, Mapping, Optional, Tuple

from boardingsim.aircraft import AircraftLayout
from boardingsim.config import CONFIG, LayoutConfig
from boardingsim.contract import BoardingAlgorithm, prepare_boarding_order
from boardingsim.passenger import Passenger, generate_passengers
from boardingsim.rng import DeterministicSequence
from boardingsim.simulation import SimulationResult, simulate_boarding


def build_passengers(
    seed: int,
    passenger_count: int,
    layout: LayoutConfig,
) -> Tuple[List[Passenger], DeterministicSequence]:
    """
    Generate a flight from a seed.

    The returned stream has already been advanced by generation; randomised
    algorithms keep drawing from it, exactly as a full run would.
    """
    rng = DeterministicSequence(seed)
    return generate_passengers(passenger_count, layout, rng), rng


def run_scenario(
    algorithm: BoardingAlgorithm,
    params: Optional[Mapping[str, float]] = None,
    seed: int = CONFIG['RANDOM_SEED'],
    passenger_count: int = CONFIG['PASSENGER_COUNT'],
    layout: Optional[LayoutConfig] = None,
    max_ticks: int = CONFIG['MAX_TICKS'],
    record_snapshots: bool = False,
    validate: bool = True,
) -> SimulationResult:
    """
    Generate passengers, order them with `algorithm`, and board the plane.

    Raises:
        ContractViolation: the algorithm failed validation (when `validate`);
            no simulation is run in that case
    """
    layout = layout or LayoutConfig()
    passengers, rng = build_passengers(seed, passenger_count, layout)
    order = prepare_boarding_order(algorithm, passengers, layout, params, rng, validate=validate)
    return simulate_boarding(
        passengers,
        order,
        AircraftLayout(layout),
        max_ticks=max_ticks,
        record_snapshots=record_snapshots,
        algorithm=algorithm.name,
    )
