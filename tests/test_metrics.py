"""Tests for delay-cause analysis."""

from boardingsim.aircraft import AircraftLayout
from boardingsim.metrics import DelayCause, analyze_delay_causes, count_events
from boardingsim.simulation import EventType, simulate_boarding


class TestAnalyzeDelayCauses:

    def test_shuffle_ranked_above_congestion(self, window_and_aisle_pair, one_row_layout):
        result = simulate_boarding(window_and_aisle_pair, [2, 1], AircraftLayout(one_row_layout))
        findings = analyze_delay_causes(result.events, result.metrics)

        assert [f.cause for f in findings] == [DelayCause.SEAT_SHUFFLE, DelayCause.AISLE_CONGESTION]
        shuffle, congestion = findings
        assert shuffle.severity == 'high'
        assert shuffle.count == 1
        assert shuffle.percentage == 50.0
        assert congestion.severity == 'medium'
        assert congestion.rows == [0]
        assert congestion.percentage == 11.1

    def test_no_delays(self, window_and_aisle_pair, one_row_layout):
        result = simulate_boarding(window_and_aisle_pair[:1], [1], AircraftLayout(one_row_layout))
        assert analyze_delay_causes(result.events, result.metrics) == []

    def test_findings_serialise(self, window_and_aisle_pair, one_row_layout):
        result = simulate_boarding(window_and_aisle_pair, [2, 1], AircraftLayout(one_row_layout))
        data = analyze_delay_causes(result.events, result.metrics, top_n=1)[0].to_dict()
        assert data == {'cause': 'seat_shuffle', 'severity': 'high', 'percentage': 50.0,
                        'count': 1, 'rows': []}

    def test_count_events(self, window_and_aisle_pair, one_row_layout):
        result = simulate_boarding(window_and_aisle_pair, [2, 1], AircraftLayout(one_row_layout))
        counts = count_events(result.events)
        assert counts[EventType.ENTER] == 2
        assert counts[EventType.SEAT] == 2
        assert EventType.BIN_FULL not in counts
