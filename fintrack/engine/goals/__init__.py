"""Goal probability engine and its batch/report helpers."""

from __future__ import annotations

from .inputs import (
    GoalRecord,
    MonthlyCashflow,
    build_scenario,
    monthly_cashflow,
    monthly_target,
    months_until,
    parse_date,
)
from .probability import (
    SAFETY_BUFFER,
    SIMULATION_ITERATIONS,
    TARGET_CONFIDENCE,
    VARIANCE_RATIO,
    GoalScenario,
    ProbabilityResult,
    clamp_horizon,
    evaluate,
    probability_band,
    recommend_increase,
    round_half_up,
    simulate_success_probability,
)
from .report import (
    GoalArtifacts,
    GoalEvaluationSummary,
    HouseholdParameters,
    evaluate_goals,
    load_goal_records,
    load_goal_records_from_yaml,
    load_household_parameters,
    run_goal_evaluation,
    write_goal_artifacts,
)

__all__ = [
    "SAFETY_BUFFER",
    "SIMULATION_ITERATIONS",
    "TARGET_CONFIDENCE",
    "VARIANCE_RATIO",
    "GoalScenario",
    "ProbabilityResult",
    "clamp_horizon",
    "evaluate",
    "probability_band",
    "recommend_increase",
    "round_half_up",
    "simulate_success_probability",
    "GoalRecord",
    "MonthlyCashflow",
    "build_scenario",
    "monthly_cashflow",
    "monthly_target",
    "months_until",
    "parse_date",
    "GoalArtifacts",
    "GoalEvaluationSummary",
    "HouseholdParameters",
    "evaluate_goals",
    "load_goal_records",
    "load_goal_records_from_yaml",
    "load_household_parameters",
    "run_goal_evaluation",
    "write_goal_artifacts",
]
