"""Derive engine inputs from goal records and transaction history.

The probability engine only consumes numbers. This module is the collaborator
that turns a stored goal and a list of transactions into a
:class:`~fintrack.engine.goals.probability.GoalScenario`: it aggregates recent
income and spending into monthly averages and converts a deadline into a
month horizon.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

import pandas as pd

from fintrack.engine.goals.probability import GoalScenario

__all__ = [
    "DAYS_PER_MONTH",
    "CASHFLOW_WINDOW_MONTHS",
    "CASHFLOW_TRANSACTION_LIMIT",
    "GoalRecord",
    "MonthlyCashflow",
    "parse_date",
    "months_until",
    "monthly_target",
    "monthly_cashflow",
    "build_scenario",
]

DAYS_PER_MONTH = 30
CASHFLOW_WINDOW_MONTHS = 3
CASHFLOW_TRANSACTION_LIMIT = 90


def parse_date(value: object) -> date:
    """Coerce strings, timestamps and dates into a :class:`datetime.date`.

    Raises:
      ValueError: If ``value`` cannot be interpreted as a date.
    """

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        stamp = pd.Timestamp(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"invalid date: {value!r}") from exc
    if pd.isna(stamp):
        raise ValueError(f"invalid date: {value!r}")
    return stamp.date()


@dataclass(frozen=True)
class GoalRecord:
    """Savings goal as stored by the application.

    Attributes:
      name: Display name.
      target_amount: Amount to reach.
      current_amount: Amount already saved.
      start_date: Date the goal was created or started.
      end_date: Deadline.
      notes: Optional free text.
      account_id: Optional account funding the goal.
    """

    name: str
    target_amount: float
    current_amount: float
    start_date: date
    end_date: date
    notes: str | None = None
    account_id: str | None = None

    @classmethod
    def from_mapping(cls, payload: Mapping[str, object]) -> GoalRecord:
        """Create a :class:`GoalRecord` from a YAML/JSON mapping.

        Args:
          payload: Mapping with ``name``, ``target_amount``, ``end_date`` and
            optional ``current_amount``, ``start_date``, ``notes``,
            ``account_id`` keys.

        Returns:
          A populated :class:`GoalRecord`.
        """

        end_date = parse_date(payload["end_date"])
        raw_start = payload.get("start_date")
        start_date = parse_date(raw_start) if raw_start is not None else end_date
        notes = payload.get("notes")
        account_id = payload.get("account_id")
        return cls(
            name=str(payload["name"]),
            target_amount=float(payload["target_amount"]),  # type: ignore[arg-type]
            current_amount=float(payload.get("current_amount") or 0.0),  # type: ignore[arg-type]
            start_date=start_date,
            end_date=end_date,
            notes=None if notes is None else str(notes),
            account_id=None if account_id is None else str(account_id),
        )

    @property
    def remaining(self) -> float:
        return self.target_amount - self.current_amount

    def progress(self) -> float:
        """Percentage of the target already saved (0 when the target is 0)."""

        if self.target_amount == 0:
            return 0.0
        return self.current_amount / self.target_amount * 100.0


@dataclass(frozen=True)
class MonthlyCashflow:
    """Average monthly income and spending."""

    income: float
    spending: float

    @property
    def savings(self) -> float:
        return self.income - self.spending


def months_until(end_date: object, today: date) -> int:
    """Whole 30-day months left until ``end_date``; 0 once the deadline passed."""

    days = (parse_date(end_date) - today).days
    return max(0, math.ceil(days / DAYS_PER_MONTH))


def monthly_target(goal: GoalRecord, today: date) -> float:
    """Amount to save each month to reach ``goal`` on time.

    When no months remain the whole remaining amount is due at once.
    """

    months = months_until(goal.end_date, today)
    if months > 0:
        return goal.remaining / months
    return goal.remaining


def _as_frame(transactions: pd.DataFrame | Iterable[Mapping[str, Any]]) -> pd.DataFrame:
    if isinstance(transactions, pd.DataFrame):
        return transactions.copy()
    return pd.DataFrame(list(transactions))


def monthly_cashflow(
    transactions: pd.DataFrame | Iterable[Mapping[str, Any]],
    *,
    window_months: int = CASHFLOW_WINDOW_MONTHS,
    limit: int = CASHFLOW_TRANSACTION_LIMIT,
) -> MonthlyCashflow:
    """Average monthly income and spending from recent transactions.

    The ``limit`` most recent transactions are summed by type and divided by
    ``window_months``.

    Args:
      transactions: Frame or iterable of mappings with ``amount``, ``type`` and
        ``date`` fields. ``type`` is ``"income"`` or ``"expense"``.
      window_months: Number of months the recent transactions are spread over.
      limit: Maximum number of transactions considered, newest first.

    Returns:
      A :class:`MonthlyCashflow` with the averaged amounts.

    Raises:
      ValueError: If ``window_months`` is not positive or required columns are
        missing from a non-empty history.
    """

    if window_months <= 0:
        raise ValueError("window_months must be > 0")
    frame = _as_frame(transactions)
    if frame.empty:
        return MonthlyCashflow(income=0.0, spending=0.0)

    required = {"amount", "type", "date"}
    missing = required - set(frame.columns)
    if missing:
        raise ValueError(f"transactions missing columns: {sorted(missing)}")

    frame["date"] = pd.to_datetime(frame["date"])
    frame["amount"] = pd.to_numeric(frame["amount"])
    recent = frame.sort_values("date", ascending=False, kind="stable").head(max(0, int(limit)))
    totals = recent.groupby("type")["amount"].sum()
    income = float(totals.get("income", 0.0)) / window_months
    spending = float(totals.get("expense", 0.0)) / window_months
    return MonthlyCashflow(income=income, spending=spending)


def build_scenario(goal: GoalRecord, cashflow: MonthlyCashflow, *, today: date) -> GoalScenario:
    """Assemble the engine input for ``goal``.

    An elapsed deadline yields ``months_to_goal == 0``; the engine evaluates it
    as a one-month horizon, so callers that treat expired goals differently
    must check :func:`months_until` first.
    """

    return GoalScenario(
        monthly_income=cashflow.income,
        monthly_spending=cashflow.spending,
        current_savings=goal.current_amount,
        goal_amount=goal.target_amount,
        months_to_goal=months_until(goal.end_date, today),
    )
