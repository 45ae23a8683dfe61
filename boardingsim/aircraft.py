"""
Aircraft layout - the spatial resources passengers compete for.

All occupancy is stored as passenger ids (or EMPTY) in plain lists owned by
the layout, never as passenger objects. A fresh AircraftLayout per run is
enough to keep concurrent simulations fully independent.

Aisle cells: index 0 is the door, index r (1..rows) is beside row r.
"""

from typing import List, Optional, Tuple

from boardingsim.config import LayoutConfig, bin_units
from boardingsim.passenger import CarryOnSize

EMPTY = None


class AircraftLayout:
    """
    Seats, aisle cells and overhead-bin capacity for one single-aisle cabin.

    Seat and aisle slots each hold at most one passenger id. Bin capacity
    only ever goes down between resets, and never below zero.
    """

    def __init__(self, config: Optional[LayoutConfig] = None):
        self.config = config or LayoutConfig()
        self.rows = self.config.rows
        self.columns = self.config.columns
        self.aisle_index = self.config.aisle_index
        self._column_lookup = {label: i for i, label in enumerate(self.columns)}
        self.reset()

    def reset(self):
        """Empty every seat and aisle cell and refill the bins."""
        # Row 0 is unused for seats and bins so rows index directly
        self._seats: List[List[Optional[int]]] = [
            [EMPTY] * len(self.columns) for _ in range(self.rows + 1)
        ]
        self._aisle: List[Optional[int]] = [EMPTY] * (self.rows + 1)
        self._bins: List[int] = [self.config.bin_capacity_per_row] * (self.rows + 1)

    @property
    def total_seats(self) -> int:
        return self.config.total_seats

    def column_index(self, column: str) -> int:
        try:
            return self._column_lookup[column]
        except KeyError:
            raise ValueError(f"unknown seat column {column!r}") from None

    def _check_row(self, row: int):
        if not 1 <= row <= self.rows:
            raise ValueError(f"row {row} outside 1..{self.rows}")

    # ==============[SEATS]====================

    def is_seat_occupied(self, row: int, column: str) -> bool:
        return self.get_passenger_in_seat(row, column) is not EMPTY

    def get_passenger_in_seat(self, row: int, column: str) -> Optional[int]:
        self._check_row(row)
        return self._seats[row][self.column_index(column)]

    def seat_passenger(self, passenger_id: int, row: int, column: str):
        self._check_row(row)
        index = self.column_index(column)
        occupant = self._seats[row][index]
        if occupant is not EMPTY and occupant != passenger_id:
            raise RuntimeError(f"seat {row}{column} already taken by passenger {occupant}")
        self._seats[row][index] = passenger_id

    def get_seated_count(self) -> int:
        return sum(1 for row in self._seats for occupant in row if occupant is not EMPTY)

    # ==============[AISLE]====================

    def is_aisle_occupied(self, cell: int) -> bool:
        return self.get_passenger_in_aisle(cell) is not EMPTY

    def get_passenger_in_aisle(self, cell: int) -> Optional[int]:
        if not 0 <= cell <= self.rows:
            raise ValueError(f"aisle cell {cell} outside 0..{self.rows}")
        return self._aisle[cell]

    def place_in_aisle(self, passenger_id: int, cell: int):
        occupant = self.get_passenger_in_aisle(cell)
        if occupant is not EMPTY and occupant != passenger_id:
            raise RuntimeError(f"aisle cell {cell} already holds passenger {occupant}")
        self._aisle[cell] = passenger_id

    def remove_from_aisle(self, cell: int):
        self.get_passenger_in_aisle(cell)
        self._aisle[cell] = EMPTY

    def get_aisle_passengers(self) -> List[Tuple[int, int]]:
        """(cell, passenger_id) for every occupied aisle cell, door first."""
        return [(cell, pid) for cell, pid in enumerate(self._aisle) if pid is not EMPTY]

    # ==============[OVERHEAD BINS]====================

    def bin_capacity(self, row: int) -> int:
        self._check_row(row)
        return self._bins[row]

    def bin_capacities(self) -> List[int]:
        """Remaining capacity for rows 1..rows."""
        return self._bins[1:]

    def has_bin_capacity(self, row: int, carry_on_size: CarryOnSize) -> bool:
        if carry_on_size == CarryOnSize.NONE:
            return True
        return self.bin_capacity(row) >= bin_units(carry_on_size)

    def use_bin_capacity(self, row: int, carry_on_size: CarryOnSize) -> bool:
        """
        Consume bin space for one carry-on.

        Returns False, leaving capacity untouched, when the row is too full.
        """
        if carry_on_size == CarryOnSize.NONE:
            return True
        if not self.has_bin_capacity(row, carry_on_size):
            return False
        self._bins[row] -= bin_units(carry_on_size)
        return True

    def find_nearest_bin_capacity(self, start_row: int, carry_on_size: CarryOnSize) -> Optional[int]:
        """
        Closest row with room for this carry-on, or None if the cabin is full.

        Rows are searched at growing distance from `start_row`, checking the
        row in front (start - offset) before the row behind (start + offset).
        """
        for offset in range(self.rows + 1):
            row_ahead = start_row - offset
            row_behind = start_row + offset
            if 1 <= row_ahead <= self.rows and self.has_bin_capacity(row_ahead, carry_on_size):
                return row_ahead
            if 1 <= row_behind <= self.rows and self.has_bin_capacity(row_behind, carry_on_size):
                return row_behind
        return None

    # ==============[SEAT INTERFERENCE]====================

    def get_blocking_seats(self, row: int, target_column: str) -> List[str]:
        """
        Occupied seats between the aisle and `target_column` in `row`.

        Columns are listed from the aisle outwards; the target seat itself is
        never included.
        """
        self._check_row(row)
        target = self.column_index(target_column)
        seats = self._seats[row]
        if target < self.aisle_index:
            between = range(self.aisle_index - 1, target, -1)
        else:
            between = range(self.aisle_index, target)
        return [self.columns[i] for i in between if seats[i] is not EMPTY]

    def __repr__(self) -> str:
        return (
            f"AircraftLayout(rows={self.rows}, columns={''.join(self.columns)}, "
            f"aisle_index={self.aisle_index}, seated={self.get_seated_count()})"
        )
