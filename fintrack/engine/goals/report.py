"""Batch goal evaluation and report artefacts.

Loads goal records and household cash-flow settings from YAML, evaluates every
goal with the probability engine and writes a CSV summary plus a PDF chart
for the CLI.
"""

from __future__ import annotations

import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date
from pathlib import Path

import numpy as np
import pandas as pd

from fintrack.engine.goals.inputs import (
    CASHFLOW_WINDOW_MONTHS,
    GoalRecord,
    MonthlyCashflow,
    build_scenario,
    monthly_cashflow,
    monthly_target,
    months_until,
)
from fintrack.engine.goals.probability import (
    SIMULATION_ITERATIONS,
    TARGET_CONFIDENCE,
    evaluate,
    probability_band,
)
from fintrack.engine.logging import setup_logger
from fintrack.engine.utils.io import ensure_dir, read_yaml, safe_path_segment

__all__ = [
    "RESULT_COLUMNS",
    "HouseholdParameters",
    "GoalEvaluationSummary",
    "GoalArtifacts",
    "load_goal_records",
    "load_goal_records_from_yaml",
    "load_household_parameters",
    "evaluate_goals",
    "write_goal_artifacts",
    "run_goal_evaluation",
]

LOG = setup_logger(__name__)

RESULT_COLUMNS = [
    "goal",
    "target_amount",
    "current_amount",
    "months_to_goal",
    "expired",
    "monthly_target",
    "probability",
    "band",
    "monthly_shortfall",
    "recommended_increase",
    "projected_amount",
]

_BAND_COLOURS = {"destructive": "#D7263D", "warning": "#F4B400", "success": "#2E8B57"}


@dataclass(frozen=True)
class HouseholdParameters:
    """Household cash-flow settings used for every goal.

    Attributes:
      name: Identifier used in reports and filenames.
      cashflow: Average monthly income and spending.
    """

    name: str
    cashflow: MonthlyCashflow

    @classmethod
    def from_mapping(cls, payload: Mapping[str, object]) -> HouseholdParameters:
        """Build parameters from a ``household`` mapping.

        A ``transactions`` list takes precedence over the explicit
        ``monthly_income``/``monthly_spending`` figures and is averaged with
        :func:`~fintrack.engine.goals.inputs.monthly_cashflow`.
        """

        name = str(payload.get("name", "household"))
        transactions = payload.get("transactions")
        if isinstance(transactions, Sequence) and transactions:
            window = int(payload.get("window_months", CASHFLOW_WINDOW_MONTHS))  # type: ignore[arg-type]
            cashflow = monthly_cashflow(
                [item for item in transactions if isinstance(item, Mapping)],
                window_months=window,
            )
        else:
            cashflow = MonthlyCashflow(
                income=float(payload.get("monthly_income", 0.0)),  # type: ignore[arg-type]
                spending=float(payload.get("monthly_spending", 0.0)),  # type: ignore[arg-type]
            )
        return cls(name=name, cashflow=cashflow)


@dataclass(frozen=True)
class GoalEvaluationSummary:
    """Evaluation results for a set of goals.

    Attributes:
      results: One row per goal with the columns in :data:`RESULT_COLUMNS`.
      household: Household label.
      seed: Seed used to spawn the per-goal generators.
      evaluated_on: Reference date used to compute horizons.
    """

    results: pd.DataFrame
    household: str
    seed: int
    evaluated_on: date

    @property
    def on_track(self) -> int:
        if self.results.empty:
            return 0
        return int((self.results["probability"] >= TARGET_CONFIDENCE).sum())


@dataclass(frozen=True)
class GoalArtifacts:
    """Paths to the generated artefacts."""

    summary_csv: Path
    report_pdf: Path


def load_goal_records(payload: Sequence[Mapping[str, object]] | None) -> list[GoalRecord]:
    if not payload:
        return []
    return [GoalRecord.from_mapping(item) for item in payload if isinstance(item, Mapping)]


def load_goal_records_from_yaml(path: Path | str) -> list[GoalRecord]:
    """Load goal records from a YAML file.

    The document may be a list of goals or a mapping with a ``goals`` key.
    """

    data = read_yaml(path)
    payload: Sequence[Mapping[str, object]] | None
    if isinstance(data, Mapping) and "goals" in data:
        payload = data["goals"]  # type: ignore[assignment]
    elif isinstance(data, Sequence) and not isinstance(data, str):
        payload = data  # type: ignore[assignment]
    else:
        payload = None
    return load_goal_records(payload)


def load_household_parameters(path: Path | str) -> HouseholdParameters:
    """Load household parameters, falling back to zero cash flow."""

    data = read_yaml(path)
    if not isinstance(data, Mapping):
        return HouseholdParameters.from_mapping({})
    household = data.get("household", {})
    if not isinstance(household, Mapping):
        return HouseholdParameters.from_mapping({})
    return HouseholdParameters.from_mapping(household)


def evaluate_goals(
    goals: Sequence[GoalRecord],
    *,
    parameters: HouseholdParameters,
    today: date,
    seed: int,
) -> GoalEvaluationSummary:
    """Evaluate every goal returning a summary frame.

    Each goal draws from its own generator spawned from ``seed`` so results do
    not depend on the order or number of goals evaluated before it.
    """

    if not goals:
        return GoalEvaluationSummary(
            results=pd.DataFrame(columns=RESULT_COLUMNS),
            household=parameters.name,
            seed=seed,
            evaluated_on=today,
        )

    children = np.random.SeedSequence(seed).spawn(len(goals))
    rows: list[dict[str, object]] = []
    for goal, child in zip(goals, children, strict=True):
        started = time.perf_counter()
        scenario = build_scenario(goal, parameters.cashflow, today=today)
        result = evaluate(scenario, rng=np.random.default_rng(child))
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        months = months_until(goal.end_date, today)
        LOG.info(
            "goal=%s probability=%.1f months=%d",
            goal.name,
            result.probability,
            months,
            extra={
                "process_time_ms": elapsed_ms,
                "iterations": SIMULATION_ITERATIONS,
                "probability": result.probability,
            },
        )
        rows.append(
            {
                "goal": goal.name,
                "target_amount": goal.target_amount,
                "current_amount": goal.current_amount,
                "months_to_goal": months,
                "expired": months == 0,
                "monthly_target": monthly_target(goal, today),
                "probability": result.probability,
                "band": probability_band(result.probability),
                "monthly_shortfall": result.monthly_shortfall,
                "recommended_increase": result.recommended_increase,
                "projected_amount": result.projected_amount,
            }
        )

    return GoalEvaluationSummary(
        results=pd.DataFrame(rows, columns=RESULT_COLUMNS),
        household=parameters.name,
        seed=seed,
        evaluated_on=today,
    )


def _render_goal_pdf(summary: GoalEvaluationSummary, path: Path) -> Path:
    """Render goal probabilities as a horizontal bar chart."""

    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    results = summary.results
    height = max(2.5, 0.6 * len(results) + 1.5)
    fig, ax = plt.subplots(figsize=(8, height))
    try:
        if results.empty:
            ax.text(0.5, 0.5, "No goals configured", ha="center", va="center")
            ax.set_axis_off()
        else:
            colours = [_BAND_COLOURS.get(band, "#2E86AB") for band in results["band"]]
            positions = np.arange(len(results))
            ax.barh(positions, results["probability"], color=colours)
            ax.set_yticks(positions, labels=list(results["goal"]))
            ax.invert_yaxis()
            ax.axvline(TARGET_CONFIDENCE, color="#333333", linestyle="--", linewidth=1.0)
            ax.set_xlim(0.0, 100.0)
            ax.set_xlabel("Probability of reaching goal (%)")
            for pos, row in zip(positions, results.itertuples(index=False), strict=True):
                note = f"{row.probability:.0f}%"
                if row.recommended_increase > 0:
                    note += f"  +{row.recommended_increase:,.0f}/mo"
                ax.text(min(row.probability + 1.0, 80.0), pos, note, va="center", fontsize=9)
        evaluated_on = summary.evaluated_on.isoformat()
        ax.set_title(f"Savings goals for {summary.household} ({evaluated_on})")
        fig.tight_layout()
        fig.savefig(path, format="pdf")
    finally:
        plt.close(fig)
    return path


def write_goal_artifacts(
    summary: GoalEvaluationSummary,
    *,
    output_dir: Path | None = None,
) -> GoalArtifacts:
    """Write the CSV summary and PDF chart under ``<output_dir>/goals``."""

    root = Path(output_dir) if output_dir is not None else Path("reports")
    root = ensure_dir(root / "goals")
    label = safe_path_segment(summary.household or "household")

    summary_csv = root / f"goals_{label}_summary.csv"
    report_pdf = root / f"goals_{label}.pdf"
    summary.results.to_csv(summary_csv, index=False)
    _render_goal_pdf(summary, report_pdf)
    return GoalArtifacts(summary_csv=summary_csv, report_pdf=report_pdf)


def run_goal_evaluation(
    goals: Sequence[GoalRecord],
    *,
    parameters: HouseholdParameters,
    today: date,
    seed: int,
    output_dir: Path | None = None,
) -> tuple[GoalEvaluationSummary, GoalArtifacts]:
    """Evaluate goals and write artefacts to disk."""

    summary = evaluate_goals(goals, parameters=parameters, today=today, seed=seed)
    artifacts = write_goal_artifacts(summary, output_dir=output_dir)
    return summary, artifacts
