"""Unit tests for the scenario builders feeding the probability engine."""

from __future__ import annotations

from datetime import date, datetime, timedelta

import pandas as pd
import pytest

from fintrack.engine.goals import (
    GoalRecord,
    MonthlyCashflow,
    build_scenario,
    evaluate,
    monthly_cashflow,
    monthly_target,
    months_until,
    parse_date,
)

TODAY = date(2026, 10, 19)


def _goal(**overrides: object) -> GoalRecord:
    payload: dict[str, object] = {
        "name": "emergency_fund",
        "target_amount": 12_000,
        "current_amount": 3_000,
        "start_date": "2026-01-01",
        "end_date": "2027-10-14",
    }
    payload.update(overrides)
    return GoalRecord.from_mapping(payload)


def test_parse_date_accepts_common_inputs() -> None:
    assert parse_date("2027-01-31") == date(2027, 1, 31)
    assert parse_date(date(2027, 1, 31)) == date(2027, 1, 31)
    assert parse_date(datetime(2027, 1, 31, 15, 30)) == date(2027, 1, 31)
    assert parse_date(pd.Timestamp("2027-01-31T08:00")) == date(2027, 1, 31)


@pytest.mark.parametrize("value", ["not a date", None, ""])
def test_parse_date_rejects_garbage(value: object) -> None:
    with pytest.raises(ValueError):
        parse_date(value)


def test_goal_record_from_mapping_defaults() -> None:
    goal = GoalRecord.from_mapping(
        {"name": "car", "target_amount": "5000", "end_date": "2027-03-01"}
    )

    assert goal.current_amount == 0.0
    assert goal.start_date == goal.end_date
    assert goal.notes is None
    assert goal.remaining == 5000.0
    assert goal.progress() == 0.0


def test_goal_record_progress() -> None:
    assert _goal().progress() == pytest.approx(25.0)
    assert _goal(target_amount=0).progress() == 0.0


def test_months_until_rounds_partial_months_up() -> None:
    # 104 days -> 3.47 months
    assert months_until("2027-01-31", TODAY) == 4
    assert months_until(TODAY + timedelta(days=30), TODAY) == 1
    assert months_until(TODAY + timedelta(days=31), TODAY) == 2


def test_months_until_is_zero_for_elapsed_deadlines() -> None:
    assert months_until(TODAY, TODAY) == 0
    assert months_until("2025-01-01", TODAY) == 0


def test_monthly_target_spreads_remaining_amount() -> None:
    goal = _goal(end_date=TODAY + timedelta(days=90))

    assert monthly_target(goal, TODAY) == pytest.approx(3_000.0)


def test_monthly_target_for_expired_goal_is_whole_remaining() -> None:
    goal = _goal(end_date="2026-01-31")

    assert monthly_target(goal, TODAY) == pytest.approx(9_000.0)


def test_monthly_cashflow_averages_over_window() -> None:
    transactions = [
        {"amount": 3_000, "type": "income", "date": "2026-08-01"},
        {"amount": 3_000, "type": "income", "date": "2026-09-01"},
        {"amount": 3_000, "type": "income", "date": "2026-10-01"},
        {"amount": 1_200, "type": "expense", "date": "2026-08-15"},
        {"amount": 1_500, "type": "expense", "date": "2026-09-15"},
        {"amount": 1_800, "type": "expense", "date": "2026-10-15"},
    ]

    cashflow = monthly_cashflow(transactions)

    assert cashflow == MonthlyCashflow(income=3_000.0, spending=1_500.0)
    assert cashflow.savings == pytest.approx(1_500.0)


def test_monthly_cashflow_keeps_only_most_recent_transactions() -> None:
    recent = [
        {"amount": 10.0, "type": "expense", "date": TODAY - timedelta(days=offset)}
        for offset in range(90)
    ]
    stale = {"amount": 9_000.0, "type": "income", "date": date(2020, 1, 1)}
    frame = pd.DataFrame([stale, *recent])

    cashflow = monthly_cashflow(frame)

    assert cashflow.income == 0.0
    assert cashflow.spending == pytest.approx(300.0)


def test_monthly_cashflow_handles_empty_history() -> None:
    assert monthly_cashflow([]) == MonthlyCashflow(income=0.0, spending=0.0)


def test_monthly_cashflow_rejects_bad_inputs() -> None:
    with pytest.raises(ValueError, match="window_months"):
        monthly_cashflow([], window_months=0)
    with pytest.raises(ValueError, match="missing columns"):
        monthly_cashflow([{"amount": 10.0, "date": "2026-01-01"}])


def test_build_scenario_combines_goal_and_cashflow() -> None:
    goal = _goal(end_date=TODAY + timedelta(days=360))
    cashflow = MonthlyCashflow(income=5_000.0, spending=4_000.0)

    scenario = build_scenario(goal, cashflow, today=TODAY)

    assert scenario.monthly_income == 5_000.0
    assert scenario.monthly_spending == 4_000.0
    assert scenario.current_savings == 3_000.0
    assert scenario.goal_amount == 12_000.0
    assert scenario.months_to_goal == 12
    assert scenario.monthly_savings == 1_000.0


def test_build_scenario_for_expired_goal_still_evaluates() -> None:
    goal = _goal(end_date="2026-06-30")
    scenario = build_scenario(goal, MonthlyCashflow(2_000.0, 1_000.0), today=TODAY)

    assert scenario.months_to_goal == 0
    result = evaluate(scenario, rng=0)
    assert result.projected_amount == 4_000.0
    assert result.probability == 0.0
