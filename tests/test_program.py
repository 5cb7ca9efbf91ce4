import os
import sys
import json
import pytest
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../src')))
import Program
from Program import load_plan, main, plan_path


FIXTURE_CONFIG = os.path.join(os.path.dirname(__file__), 'mcp_server_tests', 'fixtures', 'testplan', 'config.json')


def test_plan_path():
    assert plan_path('example', '/plans') == os.path.join('/plans', 'example', 'config.json')


def test_cash_flow_is_default_mode(capsys):
    main(['example'])
    out = capsys.readouterr().out
    assert 'CASH FLOW: EXAMPLE HOUSEHOLD' in out
    assert 'INCOME' in out
    assert 'EXPENSES' in out


def test_projection_mode_with_ages(capsys):
    main(['myplan', '--config', FIXTURE_CONFIG, '--mode', 'Projection', '--ages', '40-42', '--start-year', '2025'])
    out = capsys.readouterr().out
    assert 'LIFETIME PROJECTION: TEST PLAN' in out
    rows = [line for line in out.splitlines() if line.strip()[:2].isdigit()]
    assert [int(r.split()[0].rstrip('*')) for r in rows] == [40, 41, 42]
    assert '2030' in rows[0]
    assert 'FIRE Number:' in out


def test_readiness_mode(capsys):
    main(['myplan', '--config', FIXTURE_CONFIG, '-m', 'Readiness'])
    out = capsys.readouterr().out
    assert 'FIRE READINESS' in out
    assert '[x] Emergency fund (3 months)' in out
    assert '[ ] Emergency fund (6 months)' in out
    assert '[ ] No interest-bearing debt' in out


def test_summary_mode(capsys):
    main(['myplan', '--config', FIXTURE_CONFIG, '-m', 'Summary'])
    out = capsys.readouterr().out
    assert 'SUMMARY: TEST PLAN' in out
    assert '1,500,000.00' in out
    assert 'Over-allocated' not in out


def test_compare(capsys):
    main(['example', '--compare', 'early-retiree', 'example'])
    out = capsys.readouterr().out
    assert 'SCENARIO COMPARISON' in out
    assert 'early-retiree' in out
    assert "Note: 'example' and 'example' have identical inputs" in out


def test_missing_plan_exits(capsys, tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        load_plan('nope', base_dir=str(tmp_path))
    assert excinfo.value.code == 1
    assert 'Plan file not found' in capsys.readouterr().out


def test_invalid_plan_exits(capsys, tmp_path):
    bad = tmp_path / 'config.json'
    bad.write_text(json.dumps({'income': {}}))
    with pytest.raises(SystemExit) as excinfo:
        main(['whatever', '--config', str(bad)])
    assert excinfo.value.code == 1
    assert 'Missing required sections' in capsys.readouterr().out


def test_unknown_mode_is_rejected():
    with pytest.raises(SystemExit):
        main(['example', '--mode', 'Paycheck'])


def test_example_plans_load():
    for name in ('example', 'early-retiree'):
        path = plan_path(name, Program.INPUT_PARAMETERS_DIR)
        assert os.path.exists(path)
        assert load_plan(name).plan_name
