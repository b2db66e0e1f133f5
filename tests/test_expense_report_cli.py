"""Smoke tests for scripts/expense_report.py."""

from __future__ import annotations

import importlib.util
from pathlib import Path

import pytest

SCRIPT = Path(__file__).resolve().parents[1] / 'scripts' / 'expense_report.py'


@pytest.fixture
def cli(monkeypatch):
    monkeypatch.setenv('EXPENSE_INSIGHTS_AI_ENABLED', 'false')
    spec = importlib.util.spec_from_file_location('expense_report', SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _run(cli, db, *args):
    return cli.main(['--owner', 'alice', '--db', str(db), '--log-level', 'WARNING', *args])


def test_add_expense_and_trend(cli, tmp_path, capsys) -> None:
    db = tmp_path / 'cli.db'

    assert _run(cli, db, 'add-expense', 'Uber ride', '250', '--date', '2025-06-02') == 0
    assert _run(cli, db, 'trend', '--months', '3') == 0

    out = capsys.readouterr().out
    assert '[Transport]' in out
    assert '2025-06' in out


def test_duplicate_budget_exit_code(cli, tmp_path, capsys) -> None:
    db = tmp_path / 'cli.db'

    assert _run(cli, db, 'set-budget', '2025', '6', '1000', '--limit', 'Food=300') == 0
    assert _run(cli, db, 'set-budget', '2025', '6', '2000') == 1

    captured = capsys.readouterr()
    assert 'Budget already exists for 2025-06' in captured.err


def test_invalid_amount_exit_code(cli, tmp_path, capsys) -> None:
    assert _run(cli, tmp_path / 'cli.db', 'add-expense', 'Lunch', '-3') == 1
    assert 'Error:' in capsys.readouterr().err


def test_predict_json(cli, tmp_path, capsys) -> None:
    db = tmp_path / 'cli.db'
    _run(cli, db, 'set-budget', '2025', '6', '200')
    _run(cli, db, 'add-expense', 'Groceries', '180', '--date', '2025-06-05', '--category', 'Food')
    capsys.readouterr()

    assert _run(cli, db, 'predict', '--as-of', '2025-06-10', '--json') == 0

    out = capsys.readouterr().out
    assert '"predicted_total": 540.0' in out
    assert '"status": "overbudget"' in out


def test_trend_and_summary_write_html_charts(cli, tmp_path, capsys) -> None:
    db = tmp_path / 'cli.db'
    _run(cli, db, 'add-expense', 'Swiggy dinner', '450')
    trend_html = tmp_path / 'charts' / 'trend.html'
    summary_html = tmp_path / 'charts' / 'summary.html'

    assert _run(cli, db, 'trend', '--html', str(trend_html)) == 0
    assert _run(cli, db, 'summary', '--html', str(summary_html)) == 0

    assert 'Monthly spending' in trend_html.read_text(encoding='utf-8')
    assert 'Category breakdown' in summary_html.read_text(encoding='utf-8')
    assert f'Chart written to {summary_html}' in capsys.readouterr().out


def test_set_budget_writes_progress_chart(cli, tmp_path) -> None:
    db = tmp_path / 'cli.db'
    chart = tmp_path / 'budget.html'

    assert _run(cli, db, 'set-budget', '2025', '6', '1000', '--limit', 'Food=300', '--html', str(chart)) == 0

    assert 'Budget usage by category' in chart.read_text(encoding='utf-8')
