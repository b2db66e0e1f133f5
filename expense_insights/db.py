"""SQLite record store for expenses, budgets and insights.

Every query is scoped by ``owner``.  The budget table carries a unique
index on ``(owner, month, year)`` so that two competing creations for the
same period cannot both succeed; the loser gets ``BudgetConflictError``.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Iterator, List, Optional

from .config import DB_PATH
from .errors import BudgetConflictError, RecordNotFoundError, ValidationError
from .models import Budget, Expense, Insight, to_date

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA synchronous=NORMAL;

CREATE TABLE IF NOT EXISTS expenses (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    owner TEXT NOT NULL,
    description TEXT NOT NULL,
    amount REAL NOT NULL,
    category TEXT NOT NULL,
    payment_method TEXT NOT NULL,
    expense_date TEXT NOT NULL,
    ai_categorized INTEGER NOT NULL DEFAULT 0,
    ai_notes TEXT,
    created_at TEXT
);

CREATE INDEX IF NOT EXISTS ix_expense_owner_date ON expenses (owner, expense_date);

CREATE TABLE IF NOT EXISTS budgets (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    owner TEXT NOT NULL,
    month INTEGER NOT NULL,
    year INTEGER NOT NULL,
    total_limit REAL NOT NULL,
    category_limits TEXT NOT NULL DEFAULT '[]',
    created_at TEXT
);

CREATE UNIQUE INDEX IF NOT EXISTS ux_budget_period ON budgets (owner, month, year);

CREATE TABLE IF NOT EXISTS insights (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    owner TEXT NOT NULL,
    period TEXT NOT NULL,
    type TEXT NOT NULL,
    data TEXT,
    ai_text TEXT,
    created_at TEXT
);

CREATE INDEX IF NOT EXISTS ix_insight_owner ON insights (owner, created_at);
"""

_IMMUTABLE_FIELDS = {'id', 'owner'}


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_to_expense(row: sqlite3.Row) -> Expense:
    return Expense(
        id=row['id'],
        owner=row['owner'],
        description=row['description'],
        amount=row['amount'],
        category=row['category'],
        payment_method=row['payment_method'],
        date=row['expense_date'],
        ai_categorized=bool(row['ai_categorized']),
        ai_notes=row['ai_notes'],
    )


def _row_to_budget(row: sqlite3.Row) -> Budget:
    return Budget(
        id=row['id'],
        owner=row['owner'],
        month=row['month'],
        year=row['year'],
        total_limit=row['total_limit'],
        category_limits=json.loads(row['category_limits'] or '[]'),
    )


def _row_to_insight(row: sqlite3.Row) -> Insight:
    return Insight(
        id=row['id'],
        owner=row['owner'],
        period=row['period'],
        type=row['type'],
        data=json.loads(row['data'] or '{}'),
        ai_text=row['ai_text'] or '',
        created_at=row['created_at'],
    )


def _check_changes(changes: dict) -> None:
    blocked = _IMMUTABLE_FIELDS.intersection(changes)
    if blocked:
        raise ValidationError(f"Cannot change {', '.join(sorted(blocked))}")


class RecordStore:
    """Handles persistence of expense, budget and insight records."""

    def __init__(self, db_path: Optional[Path] = None):
        """Open (and create if needed) the store.

        Args:
            db_path: Optional custom database file. Defaults to DB_PATH from config.
        """
        self.db_path = Path(db_path or DB_PATH)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.init_db()

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def init_db(self) -> None:
        with self.connect() as conn:
            conn.executescript(SCHEMA_SQL)
            conn.commit()

    # Expenses -----------------------------------------------------------

    def add_expense(self, expense: Expense) -> Expense:
        """Insert an expense and return it with its new id."""
        with self.connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO expenses (owner, description, amount, category, payment_method,
                                      expense_date, ai_categorized, ai_notes, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    expense.owner, expense.description, expense.amount, expense.category,
                    expense.payment_method, expense.date.isoformat(), int(expense.ai_categorized),
                    expense.ai_notes, _utcnow(),
                ),
            )
            conn.commit()
            expense_id = cursor.lastrowid
        logger.debug("Added expense %s for %s", expense_id, expense.owner)
        return replace(expense, id=expense_id)

    def get_expense(self, owner: str, expense_id: int) -> Expense:
        with self.connect() as conn:
            row = conn.execute(
                "SELECT * FROM expenses WHERE id = ? AND owner = ?", (expense_id, owner)
            ).fetchone()
        if row is None:
            raise RecordNotFoundError(f"Expense {expense_id} not found")
        return _row_to_expense(row)

    def update_expense(self, owner: str, expense_id: int, /, **changes: Any) -> Expense:
        """Apply field changes to an expense; the result is re-validated."""
        _check_changes(changes)
        updated = replace(self.get_expense(owner, expense_id), **changes)
        with self.connect() as conn:
            conn.execute(
                """
                UPDATE expenses
                SET description = ?, amount = ?, category = ?, payment_method = ?,
                    expense_date = ?, ai_categorized = ?, ai_notes = ?
                WHERE id = ? AND owner = ?
                """,
                (
                    updated.description, updated.amount, updated.category, updated.payment_method,
                    updated.date.isoformat(), int(updated.ai_categorized), updated.ai_notes,
                    expense_id, owner,
                ),
            )
            conn.commit()
        return updated

    def delete_expense(self, owner: str, expense_id: int) -> None:
        with self.connect() as conn:
            cursor = conn.execute(
                "DELETE FROM expenses WHERE id = ? AND owner = ?", (expense_id, owner)
            )
            conn.commit()
            if cursor.rowcount == 0:
                raise RecordNotFoundError(f"Expense {expense_id} not found")

    def find_expenses(
        self,
        owner: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> List[Expense]:
        """Fetch an owner's expenses, newest first.

        Args:
            owner: Owning user
            start: Optional inclusive lower date bound
            end: Optional exclusive upper date bound
            limit: Optional maximum number of rows

        Returns:
            List of ``Expense`` ordered by date then id, descending
        """
        sql = "SELECT * FROM expenses WHERE owner = ?"
        params: List[Any] = [owner]
        if start is not None:
            sql += " AND expense_date >= ?"
            params.append(to_date(start, 'start').isoformat())
        if end is not None:
            sql += " AND expense_date < ?"
            params.append(to_date(end, 'end').isoformat())
        sql += " ORDER BY expense_date DESC, id DESC"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(int(limit))

        with self.connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [_row_to_expense(row) for row in rows]

    # Budgets ------------------------------------------------------------

    def create_budget(self, budget: Budget) -> Budget:
        """Insert a budget; a second budget for the same period is rejected.

        Raises:
            BudgetConflictError: If the owner already has a budget for that month
        """
        limits_json = json.dumps([c.as_dict() for c in budget.category_limits])
        with self.connect() as conn:
            existing = conn.execute(
                "SELECT id FROM budgets WHERE owner = ? AND month = ? AND year = ?",
                (budget.owner, budget.month, budget.year),
            ).fetchone()
            if existing is not None:
                raise BudgetConflictError(budget.owner, budget.month, budget.year)
            try:
                cursor = conn.execute(
                    """
                    INSERT INTO budgets (owner, month, year, total_limit, category_limits, created_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (budget.owner, budget.month, budget.year, budget.total_limit, limits_json, _utcnow()),
                )
            except sqlite3.IntegrityError as exc:
                # Lost a race with a concurrent insert for the same period.
                raise BudgetConflictError(budget.owner, budget.month, budget.year) from exc
            conn.commit()
            budget_id = cursor.lastrowid
        logger.debug("Created budget %s for %s (%s)", budget_id, budget.owner, budget.period)
        return replace(budget, id=budget_id)

    def get_budget(self, owner: str, budget_id: int) -> Budget:
        with self.connect() as conn:
            row = conn.execute(
                "SELECT * FROM budgets WHERE id = ? AND owner = ?", (budget_id, owner)
            ).fetchone()
        if row is None:
            raise RecordNotFoundError(f"Budget {budget_id} not found")
        return _row_to_budget(row)

    def find_budget(self, owner: str, month: int, year: int) -> Optional[Budget]:
        with self.connect() as conn:
            row = conn.execute(
                "SELECT * FROM budgets WHERE owner = ? AND month = ? AND year = ?",
                (owner, month, year),
            ).fetchone()
        return _row_to_budget(row) if row is not None else None

    def find_budgets(self, owner: str) -> List[Budget]:
        with self.connect() as conn:
            rows = conn.execute(
                "SELECT * FROM budgets WHERE owner = ? ORDER BY year DESC, month DESC",
                (owner,),
            ).fetchall()
        return [_row_to_budget(row) for row in rows]

    def update_budget(self, owner: str, budget_id: int, /, **changes: Any) -> Budget:
        """Apply field changes to a budget.

        Raises:
            BudgetConflictError: If the change moves it onto an occupied period
        """
        _check_changes(changes)
        updated = replace(self.get_budget(owner, budget_id), **changes)
        limits_json = json.dumps([c.as_dict() for c in updated.category_limits])
        with self.connect() as conn:
            try:
                conn.execute(
                    """
                    UPDATE budgets SET month = ?, year = ?, total_limit = ?, category_limits = ?
                    WHERE id = ? AND owner = ?
                    """,
                    (updated.month, updated.year, updated.total_limit, limits_json, budget_id, owner),
                )
            except sqlite3.IntegrityError as exc:
                raise BudgetConflictError(owner, updated.month, updated.year) from exc
            conn.commit()
        return updated

    def delete_budget(self, owner: str, budget_id: int) -> None:
        with self.connect() as conn:
            cursor = conn.execute(
                "DELETE FROM budgets WHERE id = ? AND owner = ?", (budget_id, owner)
            )
            conn.commit()
            if cursor.rowcount == 0:
                raise RecordNotFoundError(f"Budget {budget_id} not found")

    # Insights -----------------------------------------------------------

    def add_insight(self, insight: Insight) -> Insight:
        created_at = insight.created_at or _utcnow()
        with self.connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO insights (owner, period, type, data, ai_text, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    insight.owner, insight.period, insight.type,
                    json.dumps(insight.data), insight.ai_text, created_at,
                ),
            )
            conn.commit()
            insight_id = cursor.lastrowid
        return replace(insight, id=insight_id, created_at=created_at)

    def find_insights(self, owner: str, limit: Optional[int] = None) -> List[Insight]:
        sql = "SELECT * FROM insights WHERE owner = ? ORDER BY created_at DESC, id DESC"
        params: List[Any] = [owner]
        if limit is not None:
            sql += " LIMIT ?"
            params.append(int(limit))
        with self.connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [_row_to_insight(row) for row in rows]
