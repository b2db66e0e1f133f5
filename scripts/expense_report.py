#!/usr/bin/env python3
"""Command line access to expenses, budgets, summaries and forecasts."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from expense_insights.config import configure_logging
from expense_insights.db import RecordStore
from expense_insights.errors import BudgetConflictError, RecordNotFoundError, ValidationError
from expense_insights.formatting import format_currency
from expense_insights.service import ExpenseTracker
from expense_insights.visualization import (
    create_budget_progress_chart,
    create_category_pie_chart,
    create_monthly_trend_chart,
)


def _parse_limit(raw: str) -> dict:
    category, sep, amount = raw.partition('=')
    if not sep:
        raise argparse.ArgumentTypeError(f"expected CATEGORY=AMOUNT, got {raw!r}")
    return {'category': category, 'limit': amount}


def _write_chart(fig, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.write_html(str(path), include_plotlyjs='cdn')
    print(f"Chart written to {path}")


def _add_html_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        '--html', type=Path, default=None, metavar='PATH',
        help='Also write an interactive Plotly chart to this HTML file',
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Track expenses and get spending insights.')
    parser.add_argument('--owner', required=True, help='User the records belong to')
    parser.add_argument('--db', type=Path, default=None, help='SQLite database file')
    parser.add_argument('--log-level', default=None, help='Logging level (default from env)')
    sub = parser.add_subparsers(dest='command', required=True)

    add = sub.add_parser('add-expense', help='Record an expense')
    add.add_argument('description')
    add.add_argument('amount')
    add.add_argument('--date', default=None, help='YYYY-MM-DD (default today)')
    add.add_argument('--category', default=None, help='Leave empty to auto-categorize')
    add.add_argument('--payment-method', default=None)

    budget = sub.add_parser('set-budget', help='Create the budget for a month')
    budget.add_argument('year', type=int)
    budget.add_argument('month', type=int)
    budget.add_argument('total_limit')
    budget.add_argument(
        '--limit', dest='category_limits', action='append', type=_parse_limit, default=[],
        metavar='CATEGORY=AMOUNT', help='Per-category limit (repeatable)',
    )
    _add_html_option(budget)

    summary = sub.add_parser('summary', help="Summarize this month's spending")
    summary.add_argument('--save', action='store_true', help='Store the summary as an insight')
    _add_html_option(summary)

    forecast = sub.add_parser('predict', help='Project month-end spending')
    forecast.add_argument('--as-of', default=None, help='YYYY-MM-DD (default today)')
    forecast.add_argument('--save', action='store_true', help='Store the prediction as an insight')
    forecast.add_argument('--json', action='store_true', help='Print the full result as JSON')

    ask = sub.add_parser('ask', help='Ask a question about your spending')
    ask.add_argument('question')

    trend = sub.add_parser('trend', help='Show monthly totals')
    trend.add_argument('--months', type=int, default=6)
    _add_html_option(trend)
    return parser


def run(args: argparse.Namespace, tracker: ExpenseTracker) -> None:
    owner = args.owner
    if args.command == 'add-expense':
        expense = tracker.add_expense(
            owner, args.description, args.amount, args.date, args.category, args.payment_method,
        )
        note = f" ({expense.ai_notes})" if expense.ai_notes else ''
        print(f"Added expense #{expense.id}: {expense.description} "
              f"{format_currency(expense.amount)} [{expense.category}]{note}")
    elif args.command == 'set-budget':
        budget = tracker.create_budget(
            owner, args.month, args.year, args.total_limit, args.category_limits,
        )
        print(f"Budget for {budget.period}: {format_currency(budget.total_limit)}")
        status = tracker.category_status(owner, budget.year, budget.month)
        if not status.empty:
            print(status.to_string(index=False))
        if args.html:
            _write_chart(create_budget_progress_chart(status), args.html)
    elif args.command == 'summary':
        insight = tracker.generate_insight(owner, save=args.save)
        print(insight.ai_text)
        if args.html:
            _write_chart(create_category_pie_chart(tracker.month_summary(owner)), args.html)
    elif args.command == 'predict':
        prediction = tracker.forecast(owner, as_of=args.as_of, save=args.save)
        if args.json:
            print(json.dumps(prediction.as_dict(), indent=2, ensure_ascii=False))
        else:
            print(prediction.message)
    elif args.command == 'ask':
        print(tracker.ask(owner, args.question))
    elif args.command == 'trend':
        series = tracker.monthly_trend(owner, args.months)
        if not series:
            print("No expenses recorded yet.")
        for item in series:
            print(f"{item.period}  {format_currency(item.amount)}")
        if args.html:
            _write_chart(create_monthly_trend_chart(series), args.html)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        tracker = ExpenseTracker.from_environment(store=RecordStore(args.db))
        run(args, tracker)
    except (ValidationError, BudgetConflictError, RecordNotFoundError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
