"""
Passenger records and scenario generation.

A Passenger never changes once generated; everything that moves during a
run lives in the simulator's PassengerRunState instead.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from boardingsim.config import LayoutConfig, speed_multiplier, stow_ticks
from boardingsim.errors import ConfigurationError
from boardingsim.rng import DeterministicSequence

# ==============[PASSENGER ATTRIBUTES]====================


class WalkSpeed(str, Enum):
    SLOW = 'slow'
    NORMAL = 'normal'
    FAST = 'fast'


class CarryOnSize(str, Enum):
    NONE = 'none'
    SMALL = 'small'
    LARGE = 'large'


class Compliance(str, Enum):
    STRICT = 'strict'                # Always follows rules
    NORMAL = 'normal'                # Usually follows rules
    OPPORTUNISTIC = 'opportunistic'  # May deviate if advantageous


class SeatClass(str, Enum):
    WINDOW = 'window'
    MIDDLE = 'middle'
    AISLE = 'aisle'


# Weighted draws: repeating a value biases `pick` towards it
WALK_SPEED_POOL = [WalkSpeed.SLOW, WalkSpeed.NORMAL, WalkSpeed.NORMAL, WalkSpeed.NORMAL, WalkSpeed.FAST]
CARRY_ON_POOL = [CarryOnSize.NONE, CarryOnSize.SMALL, CarryOnSize.SMALL, CarryOnSize.SMALL, CarryOnSize.LARGE]
COMPLIANCE_POOL = [Compliance.STRICT, Compliance.NORMAL, Compliance.NORMAL, Compliance.NORMAL,
                   Compliance.OPPORTUNISTIC]

# ==============[DATA STRUCTURE]====================


def seats_to_pass(column_index: int, aisle_index: int) -> int:
    """Seats between the aisle and this column (0 for an aisle seat)."""
    if column_index < aisle_index:
        return aisle_index - 1 - column_index
    return column_index - aisle_index


def seat_class(column_index: int, n_columns: int, aisle_index: int) -> SeatClass:
    """Return window, middle or aisle from the column's position."""
    if column_index in (0, n_columns - 1):
        return SeatClass.WINDOW
    if seats_to_pass(column_index, aisle_index) == 0:
        return SeatClass.AISLE
    return SeatClass.MIDDLE


@dataclass(frozen=True)
class PassengerView:
    """Read-only projection of a passenger handed to priority functions."""
    id: int
    row: int
    column: str
    seat_class: SeatClass
    walk_speed: WalkSpeed
    carry_on_size: CarryOnSize
    compliance: Compliance
    group_id: Optional[int]
    seats_to_pass: int


@dataclass(frozen=True)
class Passenger:
    id: int
    row: int                         # 1-indexed row number
    column: str                      # Seat letter
    walk_speed: WalkSpeed = WalkSpeed.NORMAL
    carry_on_size: CarryOnSize = CarryOnSize.SMALL
    compliance: Compliance = Compliance.NORMAL
    group_id: Optional[int] = None

    @property
    def has_carry_on(self) -> bool:
        return self.carry_on_size != CarryOnSize.NONE

    @property
    def stow_ticks(self) -> int:
        return stow_ticks(self.carry_on_size)

    @property
    def speed_multiplier(self) -> float:
        return speed_multiplier(self.walk_speed)

    def column_index(self, layout: LayoutConfig) -> int:
        return layout.columns.index(self.column)

    def seat_class(self, layout: LayoutConfig) -> SeatClass:
        return seat_class(self.column_index(layout), len(layout.columns), layout.aisle_index)

    def seats_to_pass(self, layout: LayoutConfig) -> int:
        return seats_to_pass(self.column_index(layout), layout.aisle_index)

    def to_view(self, layout: LayoutConfig) -> PassengerView:
        return PassengerView(
            id=self.id,
            row=self.row,
            column=self.column,
            seat_class=self.seat_class(layout),
            walk_speed=self.walk_speed,
            carry_on_size=self.carry_on_size,
            compliance=self.compliance,
            group_id=self.group_id,
            seats_to_pass=self.seats_to_pass(layout),
        )

# ==============[PASSENGER GENERATION]====================


def generate_passengers(
    count: int,
    layout: LayoutConfig,
    rng: DeterministicSequence,
) -> List[Passenger]:
    """
    Generate a cabin of passengers with random seats and attributes.

    Every (row, column) pair is listed, shuffled with `rng`, and the first
    `count` become seat assignments, so no seat is handed out twice. Each
    passenger then draws walk speed, carry-on size and compliance, in that
    order, from the weighted pools above.

    Args:
        count: Number of passengers (at most the number of seats)
        layout: Cabin rows and column labels
        rng: Deterministic stream; consumed in a fixed call order

    Returns:
        List of Passenger objects with ids 1..count in assignment order
    """
    if not 0 <= count <= layout.total_seats:
        raise ConfigurationError(
            f"cannot seat {count} passengers in {layout.total_seats} seats"
        )

    all_seats = [(row, column) for row in range(1, layout.rows + 1) for column in layout.columns]
    rng.shuffle(all_seats)

    passengers = []
    for index, (row, column) in enumerate(all_seats[:count]):
        walk_speed = rng.pick(WALK_SPEED_POOL)
        carry_on_size = rng.pick(CARRY_ON_POOL)
        compliance = rng.pick(COMPLIANCE_POOL)
        passengers.append(Passenger(
            id=index + 1,
            row=row,
            column=column,
            walk_speed=walk_speed,
            carry_on_size=carry_on_size,
            compliance=compliance,
        ))

    return passengers
