"""Airplane boarding simulator: priority-based boarding orders, a tick-based
cabin model, Monte Carlo comparison and genetic parameter search."""

__version__ = '1.0.0'

from boardingsim.aircraft import AircraftLayout
from boardingsim.config import CONFIG, LayoutConfig, OptimizerConfig
from boardingsim.contract import (
    AlgorithmContext,
    BoardingAlgorithm,
    ParameterSpec,
    ValidationResult,
    compile_algorithm,
    compute_boarding_order,
    prepare_boarding_order,
    validate_algorithm,
    validate_priority_fn,
)
from boardingsim.errors import (
    BoardingSimError,
    ConfigurationError,
    ContractViolation,
    NonTermination,
    OptimizerPrecondition,
)
from boardingsim.optimizer import GeneticOptimizer, OptimizationResult
from boardingsim.passenger import Passenger, PassengerView, generate_passengers
from boardingsim.presets import PRESETS, get_algorithm, list_algorithms
from boardingsim.rng import DeterministicSequence
from boardingsim.scenario import run_scenario
from boardingsim.simulation import BoardingSimulator, SimulationResult, simulate_boarding
