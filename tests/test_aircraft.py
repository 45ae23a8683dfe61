"""Tests for seats, aisle cells and overhead bins."""

import pytest

from boardingsim.aircraft import AircraftLayout
from boardingsim.config import LayoutConfig
from boardingsim.errors import ConfigurationError
from boardingsim.passenger import CarryOnSize


class TestLayoutConfig:

    def test_defaults(self, default_layout):
        assert default_layout.rows == 30
        assert default_layout.columns == ('A', 'B', 'C', 'D', 'E', 'F')
        assert default_layout.aisle_index == 3
        assert default_layout.total_seats == 180

    @pytest.mark.parametrize('overrides', [
        {'rows': 0},
        {'columns': ()},
        {'columns': ('A', 'A')},
        {'aisle_index': 7},
        {'bin_capacity_per_row': -1},
        {'boarding_door': 'rear'},
    ])
    def test_malformed_config_rejected(self, overrides):
        with pytest.raises(ConfigurationError):
            LayoutConfig(**overrides)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            LayoutConfig(rows=-3)

    def test_from_config_with_override(self):
        layout = LayoutConfig.from_config(rows=12)
        assert layout.rows == 12
        assert layout.columns == ('A', 'B', 'C', 'D', 'E', 'F')


class TestSeats:

    def test_seat_and_lookup(self, aircraft):
        aircraft.seat_passenger(7, 4, 'B')
        assert aircraft.is_seat_occupied(4, 'B')
        assert aircraft.get_passenger_in_seat(4, 'B') == 7
        assert aircraft.get_seated_count() == 1

    def test_seat_conflict_raises(self, aircraft):
        aircraft.seat_passenger(1, 2, 'A')
        with pytest.raises(RuntimeError):
            aircraft.seat_passenger(2, 2, 'A')

    def test_unknown_column_and_row(self, aircraft):
        with pytest.raises(ValueError):
            aircraft.is_seat_occupied(1, 'Z')
        with pytest.raises(ValueError):
            aircraft.is_seat_occupied(31, 'A')

    @pytest.mark.parametrize('occupied, target, expected', [
        ([], 'A', []),
        (['C'], 'A', ['C']),
        (['B', 'C'], 'A', ['C', 'B']),
        (['A'], 'C', []),
        (['D', 'E'], 'F', ['D', 'E']),
        (['F'], 'D', []),
        (['B'], 'C', []),
    ])
    def test_blocking_seats(self, aircraft, occupied, target, expected):
        for pid, column in enumerate(occupied, start=1):
            aircraft.seat_passenger(pid, 5, column)
        assert aircraft.get_blocking_seats(5, target) == expected


class TestAisle:

    def test_place_move_remove(self, aircraft):
        aircraft.place_in_aisle(3, 0)
        assert aircraft.is_aisle_occupied(0)
        aircraft.remove_from_aisle(0)
        aircraft.place_in_aisle(3, 1)
        assert not aircraft.is_aisle_occupied(0)
        assert aircraft.get_aisle_passengers() == [(1, 3)]

    def test_cell_holds_one_passenger(self, aircraft):
        aircraft.place_in_aisle(1, 5)
        with pytest.raises(RuntimeError):
            aircraft.place_in_aisle(2, 5)

    def test_cell_range(self, aircraft):
        with pytest.raises(ValueError):
            aircraft.is_aisle_occupied(31)


class TestBins:

    def test_consumption_by_size(self, aircraft):
        assert aircraft.use_bin_capacity(3, CarryOnSize.LARGE)
        assert aircraft.use_bin_capacity(3, CarryOnSize.SMALL)
        assert aircraft.bin_capacity(3) == 3

    def test_no_bag_needs_no_space(self, aircraft):
        assert aircraft.use_bin_capacity(3, CarryOnSize.NONE)
        assert aircraft.bin_capacity(3) == 6

    def test_full_row_leaves_capacity_untouched(self, aircraft):
        for _ in range(3):
            assert aircraft.use_bin_capacity(1, CarryOnSize.LARGE)
        assert not aircraft.use_bin_capacity(1, CarryOnSize.SMALL)
        assert aircraft.bin_capacity(1) == 0

    def test_odd_remainder_rejects_large(self):
        aircraft = AircraftLayout(LayoutConfig(bin_capacity_per_row=1))
        assert not aircraft.has_bin_capacity(1, CarryOnSize.LARGE)
        assert aircraft.has_bin_capacity(1, CarryOnSize.SMALL)

    def test_nearest_prefers_row_ahead(self, aircraft):
        for _ in range(3):
            aircraft.use_bin_capacity(10, CarryOnSize.LARGE)
        assert aircraft.find_nearest_bin_capacity(10, CarryOnSize.SMALL) == 9

    def test_nearest_falls_back_behind(self, aircraft):
        for row in (1, 2):
            for _ in range(3):
                aircraft.use_bin_capacity(row, CarryOnSize.LARGE)
        assert aircraft.find_nearest_bin_capacity(1, CarryOnSize.LARGE) == 3

    def test_nearest_none_when_full(self):
        aircraft = AircraftLayout(LayoutConfig(rows=2, bin_capacity_per_row=0))
        assert aircraft.find_nearest_bin_capacity(1, CarryOnSize.SMALL) is None

    def test_reset_restores_everything(self, aircraft):
        aircraft.seat_passenger(1, 1, 'A')
        aircraft.place_in_aisle(2, 0)
        aircraft.use_bin_capacity(1, CarryOnSize.LARGE)
        aircraft.reset()
        assert aircraft.get_seated_count() == 0
        assert aircraft.get_aisle_passengers() == []
        assert aircraft.bin_capacities() == [6] * 30
