"""
Delay analysis over a simulation's event log.

Produces structured findings only (cause, severity, counts, affected rows);
turning them into prose is left to the presentation layer.
"""

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Sequence

from boardingsim.config import round_half_up
from boardingsim.simulation import Event, EventType, SimulationMetrics


class DelayCause(str, Enum):
    AISLE_CONGESTION = 'aisle_congestion'
    BIN_OVERFLOW = 'bin_overflow'
    SEAT_SHUFFLE = 'seat_shuffle'
    SLOW_STOWING = 'slow_stowing'


SEVERITY_ORDER = {'high': 3, 'medium': 2, 'low': 1}


@dataclass(frozen=True)
class DelayFinding:
    cause: DelayCause
    severity: str                    # 'high' | 'medium' | 'low'
    percentage: float = 0.0
    count: int = 0
    rows: List[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'cause': self.cause.value,
            'severity': self.severity,
            'percentage': self.percentage,
            'count': self.count,
            'rows': list(self.rows),
        }


def count_events(events: Sequence[Event]) -> Dict[EventType, int]:
    return dict(Counter(e.kind for e in events))


def analyze_delay_causes(
    events: Sequence[Event],
    metrics: SimulationMetrics,
    top_n: int = 2,
) -> List[DelayFinding]:
    """
    Rank the main sources of delay in one run.

    Args:
        events: Full event log of the run
        metrics: Summary metrics of the same run
        top_n: Number of findings to keep, most severe first

    Returns:
        Up to `top_n` DelayFinding records
    """
    findings = []

    # Aisle congestion: where passengers queued behind someone
    blocked = [e for e in events if e.kind == EventType.AISLE_BLOCKED]
    if blocked:
        by_cell = Counter(e.cell for e in blocked)
        top_rows = [cell for cell, _ in sorted(by_cell.items(), key=lambda kv: (-kv[1], kv[0]))[:3]]
        findings.append(DelayFinding(
            cause=DelayCause.AISLE_CONGESTION,
            severity='high' if len(blocked) > 100 else 'medium',
            percentage=round_half_up(len(blocked) / len(events) * 100, 1),
            count=len(blocked),
            rows=top_rows,
        ))

    bin_full = [e for e in events if e.kind == EventType.BIN_FULL]
    if bin_full:
        findings.append(DelayFinding(
            cause=DelayCause.BIN_OVERFLOW,
            severity='high' if len(bin_full) > 10 else 'low',
            count=len(bin_full),
            rows=sorted({e.row for e in bin_full}),
        ))

    shuffles = [e for e in events if e.kind == EventType.SHUFFLE_START]
    if shuffles and metrics.total_passengers:
        findings.append(DelayFinding(
            cause=DelayCause.SEAT_SHUFFLE,
            severity='high' if len(shuffles) > metrics.total_passengers * 0.3 else 'medium',
            percentage=round_half_up(len(shuffles) / metrics.total_passengers * 100, 1),
            count=len(shuffles),
        ))

    # Stowing: ticks between each passenger's stow start and stow end
    stow_started = {}
    stow_ticks = 0
    for e in events:
        if e.kind == EventType.STOW_START:
            stow_started[e.passenger_id] = e.step
        elif e.kind == EventType.STOW_END and e.passenger_id in stow_started:
            stow_ticks += e.step - stow_started.pop(e.passenger_id)
    if metrics.total_ticks and stow_ticks > metrics.total_ticks * 0.3:
        findings.append(DelayFinding(
            cause=DelayCause.SLOW_STOWING,
            severity='medium',
            percentage=round_half_up(stow_ticks / metrics.total_ticks * 100, 1),
            count=stow_ticks,
        ))

    # Stable sort keeps discovery order within a severity level
    findings.sort(key=lambda f: -SEVERITY_ORDER[f.severity])
    return findings[:top_n]
