"""Validation utilities for goal, transaction and scenario payloads.

The probability engine accepts any numbers and never raises. Callers that need
stricter guarantees (positive targets, non-negative savings, well-formed
dates) run payloads through this module first. Whenever an entry is missing
or invalid, the validator records human readable diagnostics while returning
the subset of payloads that passed validation.
"""

from __future__ import annotations

# ruff: noqa: ANN401
import math
import uuid
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

from fintrack.engine.goals.inputs import parse_date
from fintrack.engine.goals.probability import GoalScenario
from fintrack.engine.utils.io import read_yaml

__all__ = [
    "MAX_AMOUNT",
    "MAX_NAME_LENGTH",
    "MAX_NOTES_LENGTH",
    "TRANSACTION_TYPES",
    "ValidationSummary",
    "validate_goal",
    "validate_transaction",
    "validate_scenario",
    "require_valid_scenario",
    "validate_configs",
]

MAX_AMOUNT = 999_999_999.0
MAX_NAME_LENGTH = 100
MAX_NOTES_LENGTH = 500
TRANSACTION_TYPES = frozenset({"income", "expense"})
SCENARIO_FIELDS = (
    "monthly_income",
    "monthly_spending",
    "current_savings",
    "goal_amount",
    "months_to_goal",
)


@dataclass(slots=True)
class ValidationSummary:
    """Aggregate structure returning validation diagnostics and parsed payloads.

    Attributes:
      errors: Collection of error messages detected during validation.
      warnings: Soft diagnostics that highlight potential issues.
      configs: Mapping between payload label and its normalised form.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    configs: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


def _is_number(value: Any) -> bool:
    """Return ``True`` if ``value`` is a finite real number (excluding booleans)."""

    return (
        isinstance(value, int | float)
        and not isinstance(value, bool)
        and math.isfinite(float(value))
    )


def _as_float(
    value: Any,
    *,
    path: str,
    errors: list[str],
    minimum: float | None = None,
    maximum: float | None = None,
    positive: bool = False,
) -> float | None:
    """Validate ``value`` as float returning the coerced number when valid."""

    if not _is_number(value):
        errors.append(f"{path} must be a number")
        return None
    number = float(value)
    if positive and number <= 0.0:
        errors.append(f"{path} must be > 0")
        return None
    if minimum is not None and number < minimum:
        errors.append(f"{path} must be >= {minimum}")
        return None
    if maximum is not None and number > maximum:
        errors.append(f"{path} must be <= {maximum}")
        return None
    return number


def _as_string(
    value: Any,
    *,
    path: str,
    errors: list[str],
    maximum_length: int | None = None,
) -> str | None:
    """Validate ``value`` as a non-empty string returning the stripped text."""

    if not isinstance(value, str) or value.strip() == "":
        errors.append(f"{path} must be a non-empty string")
        return None
    text = value.strip()
    if maximum_length is not None and len(text) > maximum_length:
        errors.append(f"{path} must contain at most {maximum_length} characters")
        return None
    return text


def _as_notes(value: Any, *, path: str, errors: list[str]) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        errors.append(f"{path} must be a string")
        return None
    if len(value) > MAX_NOTES_LENGTH:
        errors.append(f"{path} must contain at most {MAX_NOTES_LENGTH} characters")
        return None
    return value


def _as_date(value: Any, *, path: str, errors: list[str]) -> date | None:
    if value is None:
        errors.append(f"{path} is required")
        return None
    try:
        return parse_date(value)
    except ValueError:
        errors.append(f"{path} must be a valid date")
        return None


def _validate_goal(value: Any, *, path: str, errors: list[str]) -> dict[str, Any] | None:
    """Validate a single goal mapping."""

    if not isinstance(value, dict):
        errors.append(f"{path} must be a mapping")
        return None
    error_count = len(errors)
    name = _as_string(
        value.get("name"),
        path=f"{path}.name",
        errors=errors,
        maximum_length=MAX_NAME_LENGTH,
    )
    target = _as_float(
        value.get("target_amount"),
        path=f"{path}.target_amount",
        errors=errors,
        positive=True,
        maximum=MAX_AMOUNT,
    )
    current = _as_float(
        value.get("current_amount", 0.0),
        path=f"{path}.current_amount",
        errors=errors,
        minimum=0.0,
        maximum=MAX_AMOUNT,
    )
    start = _as_date(value.get("start_date"), path=f"{path}.start_date", errors=errors)
    end = _as_date(value.get("end_date"), path=f"{path}.end_date", errors=errors)
    notes = _as_notes(value.get("notes"), path=f"{path}.notes", errors=errors)
    account_id = value.get("account_id")

    if len(errors) > error_count:
        return None
    if end <= start:  # type: ignore[operator]
        errors.append(f"{path}.end_date must be after start_date")
        return None
    return {
        "name": name,
        "target_amount": target,
        "current_amount": current,
        "start_date": start,
        "end_date": end,
        "notes": notes,
        "account_id": None if account_id is None else str(account_id),
    }


def _validate_transaction(value: Any, *, path: str, errors: list[str]) -> dict[str, Any] | None:
    """Validate a single transaction mapping."""

    if not isinstance(value, dict):
        errors.append(f"{path} must be a mapping")
        return None
    error_count = len(errors)
    amount = _as_float(
        value.get("amount"),
        path=f"{path}.amount",
        errors=errors,
        positive=True,
        maximum=MAX_AMOUNT,
    )
    kind = value.get("type")
    if not isinstance(kind, str) or kind not in TRANSACTION_TYPES:
        errors.append(f"{path}.type must be 'income' or 'expense'")
        kind = None
    category = _as_string(
        value.get("category"),
        path=f"{path}.category",
        errors=errors,
        maximum_length=MAX_NAME_LENGTH,
    )
    when = _as_date(value.get("date"), path=f"{path}.date", errors=errors)
    notes = _as_notes(value.get("notes"), path=f"{path}.notes", errors=errors)
    account_id = value.get("account_id")
    if account_id is not None:
        try:
            account_id = str(uuid.UUID(str(account_id)))
        except ValueError:
            errors.append(f"{path}.account_id must be a valid account identifier")

    if len(errors) > error_count:
        return None
    return {
        "amount": amount,
        "type": kind,
        "category": category,
        "date": when,
        "notes": notes,
        "account_id": account_id,
    }


def validate_goal(payload: Any) -> ValidationSummary:
    """Validate a goal form payload; the normalised goal lands in ``configs['goal']``."""

    summary = ValidationSummary()
    goal = _validate_goal(payload, path="goal", errors=summary.errors)
    if goal is not None:
        summary.configs["goal"] = goal
    return summary


def validate_transaction(payload: Any) -> ValidationSummary:
    """Validate a transaction payload; the result lands in ``configs['transaction']``."""

    summary = ValidationSummary()
    transaction = _validate_transaction(payload, path="transaction", errors=summary.errors)
    if transaction is not None:
        summary.configs["transaction"] = transaction
    return summary


def validate_scenario(payload: Any) -> ValidationSummary:
    """Check engine inputs before evaluation.

    Rejects non-finite numbers, negative income, spending or savings and
    non-positive goal amounts. Horizons of zero or less are accepted with a
    warning because the engine evaluates them as one month.
    """

    summary = ValidationSummary()
    errors = summary.errors
    if not isinstance(payload, dict):
        errors.append("scenario must be a mapping")
        return summary

    income = _as_float(
        payload.get("monthly_income"), path="scenario.monthly_income", errors=errors, minimum=0.0
    )
    spending = _as_float(
        payload.get("monthly_spending"),
        path="scenario.monthly_spending",
        errors=errors,
        minimum=0.0,
    )
    savings = _as_float(
        payload.get("current_savings"),
        path="scenario.current_savings",
        errors=errors,
        minimum=0.0,
    )
    goal = _as_float(
        payload.get("goal_amount"),
        path="scenario.goal_amount",
        errors=errors,
        positive=True,
        maximum=MAX_AMOUNT,
    )
    months = _as_float(payload.get("months_to_goal"), path="scenario.months_to_goal", errors=errors)

    if None in {income, spending, savings, goal, months}:
        return summary
    if months < 1:  # type: ignore[operator]
        summary.warnings.append("scenario.months_to_goal is below 1; evaluated as a 1-month horizon")
    if savings >= goal:  # type: ignore[operator]
        summary.warnings.append("scenario.current_savings already reaches goal_amount")
    summary.configs["scenario"] = {
        "monthly_income": income,
        "monthly_spending": spending,
        "current_savings": savings,
        "goal_amount": goal,
        "months_to_goal": months,
    }
    return summary


def require_valid_scenario(payload: Any) -> GoalScenario:
    """Return a :class:`GoalScenario` or raise ``ValueError`` listing every problem."""

    summary = validate_scenario(payload)
    if summary.errors:
        raise ValueError("; ".join(summary.errors))
    values = summary.configs["scenario"]
    return GoalScenario(**{name: values[name] for name in SCENARIO_FIELDS})


def _validate_goals_config(payload: Any, *, summary: ValidationSummary) -> dict[str, Any] | None:
    """Validate goals YAML payload."""

    errors = summary.errors
    if not isinstance(payload, dict):
        errors.append("goals must be a mapping")
        return None
    entries = payload.get("goals")
    if not isinstance(entries, list):
        errors.append("goals.goals must be a list")
        return None
    if not entries:
        errors.append("goals.goals must contain at least one entry")
        return None
    goals: list[dict[str, Any]] = []
    names: set[str] = set()
    for idx, entry in enumerate(entries):
        goal = _validate_goal(entry, path=f"goals.goals[{idx}]", errors=errors)
        if goal is None:
            continue
        if goal["name"] in names:
            summary.warnings.append(f"goals.goals[{idx}].name '{goal['name']}' is duplicated")
        names.add(goal["name"])
        if goal["current_amount"] >= goal["target_amount"]:
            summary.warnings.append(f"goals.goals[{idx}] is already funded")
        goals.append(goal)
    return {"goals": goals}


def _validate_household(value: Any, *, summary: ValidationSummary) -> dict[str, Any] | None:
    """Validate the household cash-flow block."""

    errors = summary.errors
    if not isinstance(value, dict):
        errors.append("household must be a mapping")
        return None
    name = _as_string(
        value.get("name", "household"),
        path="household.name",
        errors=errors,
        maximum_length=64,
    )
    transactions_raw = value.get("transactions")
    if transactions_raw is not None:
        if not isinstance(transactions_raw, list):
            errors.append("household.transactions must be a list")
            return None
        transactions = [
            _validate_transaction(entry, path=f"household.transactions[{idx}]", errors=errors)
            for idx, entry in enumerate(transactions_raw)
        ]
        window = value.get("window_months", 3)
        if not isinstance(window, int) or isinstance(window, bool) or not 1 <= window <= 24:
            errors.append("household.window_months must be an integer between 1 and 24")
            return None
        if name is None or any(item is None for item in transactions):
            return None
        return {"name": name, "window_months": window, "transactions": transactions}

    income = _as_float(
        value.get("monthly_income"),
        path="household.monthly_income",
        errors=errors,
        minimum=0.0,
    )
    spending = _as_float(
        value.get("monthly_spending"),
        path="household.monthly_spending",
        errors=errors,
        minimum=0.0,
    )
    if None in {name, income, spending}:
        return None
    if spending > income:  # type: ignore[operator]
        summary.warnings.append(
            "household.monthly_spending exceeds monthly_income; goals rely on current savings"
        )
    return {"name": name, "monthly_income": income, "monthly_spending": spending}


def _validate_params_config(payload: Any, *, summary: ValidationSummary) -> dict[str, Any] | None:
    if not isinstance(payload, dict):
        summary.errors.append("params must be a mapping")
        return None
    household = _validate_household(payload.get("household"), summary=summary)
    if household is None:
        return None
    return {"household": household}


def _load_payload(
    label: str,
    path: Path,
    *,
    summary: ValidationSummary,
) -> dict[str, Any] | None:
    """Load YAML payload handling missing files and empty documents."""

    if not path.exists():
        summary.errors.append(f"{label}: missing file at {path}")
        return None
    payload = read_yaml(path)
    if payload is None:
        summary.errors.append(f"{label}: file at {path} is empty")
        return None
    if not isinstance(payload, dict):
        summary.errors.append(f"{label}: expected a mapping at {path}")
        return None
    return payload


def validate_configs(
    *,
    goals_path: Path | str = Path("configs") / "goals.yml",
    params_path: Path | str = Path("configs") / "params.yml",
) -> ValidationSummary:
    """Validate the goals and household YAML files and return diagnostics."""

    summary = ValidationSummary()

    goals_payload = _load_payload("goals", Path(goals_path), summary=summary)
    if goals_payload is not None:
        error_count = len(summary.errors)
        goals = _validate_goals_config(goals_payload, summary=summary)
        if goals is not None and len(summary.errors) == error_count:
            summary.configs["goals"] = goals

    params_payload = _load_payload("params", Path(params_path), summary=summary)
    if params_payload is not None:
        error_count = len(summary.errors)
        params = _validate_params_config(params_payload, summary=summary)
        if params is not None and len(summary.errors) == error_count:
            summary.configs["params"] = params

    return summary
