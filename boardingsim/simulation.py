"""
Discrete-time boarding simulation.

One tick resolves completely before the next begins:
  1. Passengers already in the aisle act, deepest cell first, so anyone
     moving forward frees a cell for the passenger behind within the tick.
  2. At most one waiting passenger enters at the door (aisle cell 0), and
     only if that cell is free.
  3. The run is complete once every passenger is SEATED.

Passenger progress:
  WAITING -> WALKING -> [STOWING] -> [SHUFFLING] -> SEATING -> SEATED

Usage:
    sim = BoardingSimulator(passengers, AircraftLayout())
    sim.set_boarding_order(order)
    result = sim.run_to_completion()
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from boardingsim.aircraft import AircraftLayout
from boardingsim.config import CONFIG, round_half_up
from boardingsim.errors import NonTermination
from boardingsim.passenger import CarryOnSize, Passenger

logger = logging.getLogger(__name__)

# ==============[DATA STRUCTURE]====================


class PassengerState(Enum):
    WAITING = 'waiting'      # In queue, not yet entered plane
    WALKING = 'walking'      # Walking down aisle
    STOWING = 'stowing'      # Stowing luggage (blocking aisle)
    SHUFFLING = 'shuffling'  # Waiting for seated passengers to let them in
    SEATING = 'seating'      # Stepping into the seat
    SEATED = 'seated'        # In seat


class EventType(str, Enum):
    ENTER = 'enter'
    MOVE = 'move'
    AISLE_BLOCKED = 'aisle_blocked'
    STOW_START = 'stow_start'
    STOW_END = 'stow_end'
    BIN_FULL = 'bin_full'
    SHUFFLE_START = 'shuffle_start'
    SHUFFLE_END = 'shuffle_end'
    SEAT = 'seat'


@dataclass(frozen=True)
class Event:
    """
    One entry in the simulation's audit trail.

    `cell` is where the passenger stood when the event happened; MOVE and
    AISLE_BLOCKED also carry `target_cell`, SHUFFLE_START carries the
    columns of the seated passengers who had to stand up.
    """
    step: int
    kind: EventType
    passenger_id: int
    row: int
    column: str
    cell: Optional[int] = None
    target_cell: Optional[int] = None
    blocking: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        d = {
            'step': self.step,
            'type': self.kind.value,
            'passenger_id': self.passenger_id,
            'row': self.row,
            'column': self.column,
        }
        if self.cell is not None:
            d['cell'] = self.cell
        if self.target_cell is not None:
            d['target_cell'] = self.target_cell
        if self.blocking:
            d['blocking'] = list(self.blocking)
        return d


@dataclass
class PassengerRunState:
    """Mutable per-run progress of one passenger, discarded on reset."""
    passenger: Passenger
    state: PassengerState = PassengerState.WAITING
    aisle_cell: int = -1             # -1 until the passenger enters
    stow_remaining: int = 0
    shuffle_remaining: int = 0
    wait_ticks: int = 0
    entered_at: int = -1
    seated_at: int = -1


@dataclass(frozen=True)
class PassengerSnapshot:
    id: int
    row: int
    column: str
    state: PassengerState
    aisle_cell: int
    wait_ticks: int


@dataclass(frozen=True)
class Snapshot:
    """Point-in-time view of every passenger, rebuilt from run state."""
    step: int
    is_complete: bool
    in_aisle: Tuple[PassengerSnapshot, ...]
    seated: Tuple[PassengerSnapshot, ...]
    waiting: Tuple[PassengerSnapshot, ...]
    queue_length: int

    @property
    def seated_count(self) -> int:
        return len(self.seated)

    @property
    def total_passengers(self) -> int:
        return len(self.in_aisle) + len(self.seated) + len(self.waiting)


@dataclass(frozen=True)
class SimulationMetrics:
    total_ticks: int
    avg_wait_ticks: float            # Rounded to 0.1
    max_wait_ticks: int
    aisle_blocked_percent: float     # Blocked (tick x passenger) slots, rounded to 0.1
    total_passengers: int
    seated_count: int
    completed: bool

    def to_dict(self) -> dict:
        return {
            'total_ticks': self.total_ticks,
            'avg_wait_ticks': self.avg_wait_ticks,
            'max_wait_ticks': self.max_wait_ticks,
            'aisle_blocked_percent': self.aisle_blocked_percent,
            'total_passengers': self.total_passengers,
            'seated_count': self.seated_count,
            'completed': self.completed,
        }


@dataclass
class SimulationResult:
    algorithm: str
    metrics: SimulationMetrics
    events: List[Event]
    snapshots: List[Snapshot] = field(default_factory=list)
    truncated: bool = False          # Hit the tick limit before completion

    @property
    def total_ticks(self) -> int:
        return self.metrics.total_ticks

    @property
    def completed(self) -> bool:
        return self.metrics.completed

    @property
    def final_snapshot(self) -> Optional[Snapshot]:
        return self.snapshots[-1] if self.snapshots else None

    def seated_time_series(self) -> List[Tuple[int, int]]:
        """(tick, passengers seated) at every tick where the count changed."""
        series = [(0, 0)]
        seated = 0
        for event in self.events:
            if event.kind == EventType.SEAT:
                seated += 1
                if series[-1][0] == event.step:
                    series[-1] = (event.step, seated)
                else:
                    series.append((event.step, seated))
        return series

    def raise_for_truncation(self):
        if self.truncated:
            raise NonTermination(self.metrics.total_ticks, self.metrics.seated_count,
                                 self.metrics.total_passengers)

# ==============[BOARDING SIMULATION]====================


class BoardingSimulator:
    """
    State machine advancing passengers from the door to their seats.

    The simulator owns one PassengerRunState per passenger (keyed by id) and
    drives the AircraftLayout it is given; it resets that layout on reset().
    """

    def __init__(
        self,
        passengers: Sequence[Passenger],
        layout: Optional[AircraftLayout] = None,
        record_snapshots: bool = True,
        shuffle_ticks_per_seat: int = CONFIG['SHUFFLE_TICKS_PER_SEAT'],
    ):
        self.layout = layout or AircraftLayout()
        self.passengers: Dict[int, Passenger] = {}
        for p in passengers:
            if p.id in self.passengers:
                raise ValueError(f"duplicate passenger id {p.id}")
            if not 1 <= p.row <= self.layout.rows:
                raise ValueError(f"passenger {p.id} row {p.row} outside 1..{self.layout.rows}")
            self.layout.column_index(p.column)
            self.passengers[p.id] = p
        self.record_snapshots = record_snapshots
        self.shuffle_ticks_per_seat = shuffle_ticks_per_seat
        self.reset()

    def reset(self):
        """Discard all run state and empty the aircraft."""
        self.layout.reset()
        self.current_step = 0
        self.is_complete = not self.passengers
        self.events: List[Event] = []
        self.snapshots: List[Snapshot] = []
        self.run_states: Dict[int, PassengerRunState] = {
            pid: PassengerRunState(passenger=p) for pid, p in self.passengers.items()
        }
        self._queue: List[int] = []
        self._queue_head = 0
        self._in_aisle: List[int] = []
        self._seated = 0
        self._record_snapshot()

    def set_boarding_order(self, ordered_ids: Sequence[int]):
        """
        Admission queue for the door, highest priority first.

        Must list every passenger id exactly once.
        """
        ordered_ids = list(ordered_ids)
        if len(ordered_ids) != len(self.passengers) or set(ordered_ids) != set(self.passengers):
            unknown = sorted(set(ordered_ids) - set(self.passengers))
            missing = sorted(set(self.passengers) - set(ordered_ids))
            raise ValueError(
                f"boarding order must list each passenger once "
                f"(unknown={unknown}, missing={missing}, "
                f"duplicates={len(ordered_ids) - len(set(ordered_ids))})"
            )
        self._queue = ordered_ids
        self._queue_head = 0
        # The step-0 snapshot was taken before the queue existed
        if self.current_step == 0 and self.snapshots:
            self.snapshots[0] = self.get_snapshot()

    @property
    def queue_length(self) -> int:
        return len(self._queue) - self._queue_head

    # -- Tick ---------------------------------------------------------------

    def step(self) -> bool:
        """
        Advance one tick.

        Returns:
            True while the simulation is still running
        """
        if self.is_complete:
            return False

        self.current_step += 1

        # Deepest aisle cell first so forward moves free space behind
        active = sorted(self._in_aisle, key=lambda pid: -self.run_states[pid].aisle_cell)
        for pid in active:
            ps = self.run_states[pid]
            if ps.state == PassengerState.WALKING:
                self._process_walking(ps)
            elif ps.state == PassengerState.STOWING:
                self._process_stowing(ps)
            elif ps.state == PassengerState.SHUFFLING:
                self._process_shuffling(ps)
            elif ps.state == PassengerState.SEATING:
                self._process_seating(ps)

        self._try_admit_from_queue()

        self.is_complete = self._seated == len(self.run_states)
        self._record_snapshot()
        return not self.is_complete

    def _process_walking(self, ps: PassengerRunState):
        passenger = ps.passenger
        cell = ps.aisle_cell

        if cell == passenger.row:
            if passenger.carry_on_size != CarryOnSize.NONE:
                ps.state = PassengerState.STOWING
                ps.stow_remaining = passenger.stow_ticks
                self._record_event(EventType.STOW_START, passenger, cell=cell)
            else:
                self._start_seating(ps)
            return

        next_cell = cell + 1
        if next_cell <= self.layout.rows and not self.layout.is_aisle_occupied(next_cell):
            self.layout.remove_from_aisle(cell)
            self.layout.place_in_aisle(passenger.id, next_cell)
            ps.aisle_cell = next_cell
            self._record_event(EventType.MOVE, passenger, cell=cell, target_cell=next_cell)
        else:
            ps.wait_ticks += 1
            self._record_event(EventType.AISLE_BLOCKED, passenger, cell=cell, target_cell=next_cell)

    def _process_stowing(self, ps: PassengerRunState):
        ps.stow_remaining -= 1
        if ps.stow_remaining > 0:
            ps.wait_ticks += 1
            return

        passenger = ps.passenger
        # Lenient bins: an overfull row is reported but the bag still counts as stowed
        if not self.layout.use_bin_capacity(ps.aisle_cell, passenger.carry_on_size):
            self._record_event(EventType.BIN_FULL, passenger, cell=ps.aisle_cell)
        self._record_event(EventType.STOW_END, passenger, cell=ps.aisle_cell)
        self._start_seating(ps)

    def _start_seating(self, ps: PassengerRunState):
        passenger = ps.passenger
        blocking = self.layout.get_blocking_seats(passenger.row, passenger.column)
        if blocking:
            ps.state = PassengerState.SHUFFLING
            ps.shuffle_remaining = len(blocking) * self.shuffle_ticks_per_seat
            self._record_event(EventType.SHUFFLE_START, passenger, cell=ps.aisle_cell,
                               blocking=tuple(blocking))
        else:
            ps.state = PassengerState.SEATING

    def _process_shuffling(self, ps: PassengerRunState):
        ps.shuffle_remaining -= 1
        ps.wait_ticks += 1
        if ps.shuffle_remaining <= 0:
            self._record_event(EventType.SHUFFLE_END, ps.passenger, cell=ps.aisle_cell)
            ps.state = PassengerState.SEATING

    def _process_seating(self, ps: PassengerRunState):
        passenger = ps.passenger
        self.layout.remove_from_aisle(ps.aisle_cell)
        self.layout.seat_passenger(passenger.id, passenger.row, passenger.column)
        ps.state = PassengerState.SEATED
        ps.seated_at = self.current_step
        self._in_aisle.remove(passenger.id)
        self._seated += 1
        self._record_event(EventType.SEAT, passenger)

    def _try_admit_from_queue(self):
        # Single door: at most one new passenger per tick
        if self._queue_head >= len(self._queue) or self.layout.is_aisle_occupied(0):
            return
        pid = self._queue[self._queue_head]
        self._queue_head += 1
        ps = self.run_states[pid]
        ps.state = PassengerState.WALKING
        ps.aisle_cell = 0
        ps.entered_at = self.current_step
        self.layout.place_in_aisle(pid, 0)
        self._in_aisle.append(pid)
        self._record_event(EventType.ENTER, ps.passenger, cell=0)

    def _record_event(self, kind: EventType, passenger: Passenger, **details):
        self.events.append(Event(
            step=self.current_step,
            kind=kind,
            passenger_id=passenger.id,
            row=passenger.row,
            column=passenger.column,
            **details,
        ))

    # -- Driver ---------------------------------------------------------------

    def run_to_completion(self, max_ticks: int = CONFIG['MAX_TICKS'], algorithm: str = "") -> SimulationResult:
        """
        Step until every passenger is seated or `max_ticks` is reached.

        Hitting the limit ends the run; the partial result is returned with
        `truncated=True` and is never retried.
        """
        while not self.is_complete and self.current_step < max_ticks:
            self.step()

        truncated = not self.is_complete
        if truncated:
            logger.warning(
                "Simulation timeout at tick %d: %d/%d passengers seated",
                self.current_step, self._seated, len(self.run_states),
            )
        return SimulationResult(
            algorithm=algorithm,
            metrics=self.get_metrics(),
            events=list(self.events),
            snapshots=list(self.snapshots),
            truncated=truncated,
        )

    # -- Observation ------------------------------------------------------------

    def get_snapshot(self) -> Snapshot:
        in_aisle, seated, waiting = [], [], []
        for ps in self.run_states.values():
            entry = PassengerSnapshot(
                id=ps.passenger.id,
                row=ps.passenger.row,
                column=ps.passenger.column,
                state=ps.state,
                aisle_cell=ps.aisle_cell,
                wait_ticks=ps.wait_ticks,
            )
            if ps.state == PassengerState.SEATED:
                seated.append(entry)
            elif ps.state == PassengerState.WAITING:
                waiting.append(entry)
            else:
                in_aisle.append(entry)
        return Snapshot(
            step=self.current_step,
            is_complete=self.is_complete,
            in_aisle=tuple(in_aisle),
            seated=tuple(seated),
            waiting=tuple(waiting),
            queue_length=self.queue_length,
        )

    def _record_snapshot(self):
        if self.record_snapshots:
            self.snapshots.append(self.get_snapshot())

    def get_metrics(self) -> SimulationMetrics:
        n = len(self.run_states)
        waits = [ps.wait_ticks for ps in self.run_states.values()]
        blocked = sum(1 for e in self.events if e.kind == EventType.AISLE_BLOCKED)
        slots = self.current_step * n
        return SimulationMetrics(
            total_ticks=self.current_step,
            avg_wait_ticks=round_half_up(sum(waits) / n, 1) if n else 0.0,
            max_wait_ticks=max(waits, default=0),
            aisle_blocked_percent=round_half_up(blocked / slots * 100, 1) if slots else 0.0,
            total_passengers=n,
            seated_count=self._seated,
            completed=self.is_complete,
        )


def simulate_boarding(
    passengers: Sequence[Passenger],
    boarding_order: Sequence[int],
    layout: Optional[AircraftLayout] = None,
    max_ticks: int = CONFIG['MAX_TICKS'],
    record_snapshots: bool = False,
    algorithm: str = "",
) -> SimulationResult:
    """
    Run one boarding from a fresh simulator.

    Args:
        passengers: Everyone on the flight
        boarding_order: Passenger ids, first to board first
        layout: Aircraft to fill (reset before use); a default cabin if None
        max_ticks: Non-termination guard
        record_snapshots: Keep a Snapshot for every tick (for playback)

    Returns:
        SimulationResult with metrics, events and optional snapshots
    """
    sim = BoardingSimulator(passengers, layout, record_snapshots=record_snapshots)
    sim.set_boarding_order(boarding_order)
    return sim.run_to_completion(max_ticks=max_ticks, algorithm=algorithm)
