"""Shared fixtures for the boarding simulator tests."""

import pytest

from boardingsim.aircraft import AircraftLayout
from boardingsim.config import LayoutConfig
from boardingsim.passenger import CarryOnSize, Passenger
from boardingsim.rng import DeterministicSequence
from boardingsim.scenario import build_passengers


# ---------------------------------------------------------------------------
# Layouts
# ---------------------------------------------------------------------------

@pytest.fixture
def default_layout():
    """30 rows, ABC | DEF."""
    return LayoutConfig()


@pytest.fixture
def one_row_layout():
    return LayoutConfig(rows=1)


@pytest.fixture
def small_layout():
    return LayoutConfig(rows=10)


@pytest.fixture
def aircraft(default_layout):
    return AircraftLayout(default_layout)


# ---------------------------------------------------------------------------
# Passengers
# ---------------------------------------------------------------------------

@pytest.fixture
def window_and_aisle_pair():
    """Row 1: window seat A and aisle seat C, neither carrying a bag."""
    return [
        Passenger(id=1, row=1, column='A', carry_on_size=CarryOnSize.NONE),
        Passenger(id=2, row=1, column='C', carry_on_size=CarryOnSize.NONE),
    ]


@pytest.fixture
def small_flight(small_layout):
    """30 seeded passengers on a 10-row cabin, plus the advanced stream."""
    return build_passengers(42, 30, small_layout)


@pytest.fixture
def rng():
    return DeterministicSequence(12345)
