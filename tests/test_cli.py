"""Tests for the command line entry point."""

import json

import pytest

from boardingsim.cli import main


@pytest.fixture
def nan_code(tmp_path):
    path = tmp_path / 'nan_priority.py'
    path.write_text("w = 1\nreturn w * float('nan')\n", encoding='utf-8')
    return path


class TestCommands:

    def test_list(self, capsys):
        assert main(['list']) == 0
        out = capsys.readouterr().out
        for key in ('random', 'back_to_front', 'window_middle_aisle', 'zone_based',
                    'weighted_heuristic', 'steffen'):
            assert key in out

    def test_run(self, capsys):
        assert main(['run', '-a', 'steffen', '--passengers', '30', '--rows', '10']) == 0
        out = capsys.readouterr().out
        assert 'Steffen Method' in out
        assert 'Total ticks' in out

    def test_run_json(self, capsys):
        assert main(['run', '-a', 'zone_based', '--param', 'num_zones=3',
                     '--passengers', '30', '--rows', '10', '--json']) == 0
        data = json.loads(capsys.readouterr().out)
        assert data['metrics']['completed'] is True
        assert data['metrics']['seated_count'] == 30

    def test_run_stops_at_tick_limit(self):
        assert main(['run', '-a', 'steffen', '--passengers', '30', '--rows', '10',
                     '--max-ticks', '5']) == 2

    def test_validate_rejects_nan(self, nan_code, capsys):
        assert main(['validate', '--code-file', str(nan_code), '--passengers', '20']) == 1
        assert 'NaN' in capsys.readouterr().out

    def test_run_refuses_invalid_contract(self, nan_code, capsys):
        assert main(['run', '--code-file', str(nan_code), '--passengers', '20']) == 1
        assert 'Algorithm rejected' in capsys.readouterr().err

    def test_prefilter_error_reported(self, tmp_path, capsys):
        path = tmp_path / 'bad.py'
        path.write_text("import os\nreturn 1\n", encoding='utf-8')
        assert main(['validate', '--code-file', str(path)]) == 1
        assert 'imports' in capsys.readouterr().err

    def test_compare(self, tmp_path):
        assert main(['compare', '--replicates', '1', '--passengers', '20', '--rows', '5',
                     '--output-dir', str(tmp_path), '--no-plots']) == 0
        assert (tmp_path / 'boarding_report.txt').exists()

    def test_optimize(self, capsys):
        assert main(['optimize', '-a', 'zone_based', '--passengers', '20', '--rows', '5',
                     '--population', '4', '--generations', '2', '--seed', '3']) == 0
        assert 'num_zones' in capsys.readouterr().out

    def test_optimize_needs_parameters(self, capsys):
        assert main(['optimize', '-a', 'steffen', '--passengers', '20', '--rows', '5',
                     '--population', '4', '--generations', '1']) == 1
        assert 'No optimizable' in capsys.readouterr().err
