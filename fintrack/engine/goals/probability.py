"""Goal-achievement probability engine.

Estimates how likely a savings goal is to be reached by its deadline. The
engine runs a fixed number of Monte Carlo trajectories in which monthly income
and spending are perturbed uniformly by +/-10% around their means, counts the
trajectories that end at or above the target and, when the resulting
probability is under the 75% confidence target, derives the extra monthly
saving that would close the gap using a closed-form heuristic.

The engine is total over numeric inputs: degenerate scenarios (zero income,
elapsed horizons, goals already exceeded, negative amounts) produce
well-defined numbers instead of exceptions. Memory use is bounded by the
sampling chunk size for any horizon; run time grows linearly with it. Input
validation belongs to :mod:`fintrack.engine.validate`.
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass
from typing import Final

import numpy as np

from fintrack.engine.utils.rand import RandomSource, resolve_generator

__all__ = [
    "SIMULATION_ITERATIONS",
    "VARIANCE_RATIO",
    "TARGET_CONFIDENCE",
    "SAFETY_BUFFER",
    "GoalScenario",
    "ProbabilityResult",
    "clamp_horizon",
    "round_half_up",
    "simulate_success_probability",
    "recommend_increase",
    "evaluate",
    "probability_band",
]

LOG = logging.getLogger(__name__)

SIMULATION_ITERATIONS: Final[int] = 1000
VARIANCE_RATIO: Final[float] = 0.10
TARGET_CONFIDENCE: Final[float] = 75.0
SAFETY_BUFFER: Final[float] = 1.15

# Upper bound on the number of monthly draws held in memory per sampling chunk.
DEFAULT_CHUNK_SIZE: Final[int] = 1_000_000


@dataclass(frozen=True)
class GoalScenario:
    """Numeric inputs describing a savings goal.

    Attributes:
      monthly_income: Average monthly income.
      monthly_spending: Average monthly spending.
      current_savings: Amount already saved toward the goal. Negative values are
        accepted and simply shift every trajectory down.
      goal_amount: Target amount to reach by the deadline.
      months_to_goal: Months until the deadline; clamped with
        :func:`clamp_horizon` before use.
    """

    monthly_income: float
    monthly_spending: float
    current_savings: float
    goal_amount: float
    months_to_goal: float

    @property
    def monthly_savings(self) -> float:
        """Deterministic monthly surplus (negative when spending exceeds income)."""

        return float(self.monthly_income) - float(self.monthly_spending)


@dataclass(frozen=True)
class ProbabilityResult:
    """Outcome of a single goal evaluation.

    Attributes:
      probability: Share of simulated trajectories reaching the goal, in percent.
      monthly_shortfall: Extra monthly amount needed under the linear projection.
      recommended_increase: Extra monthly saving suggested to reach the
        confidence target, rounded to whole units.
      projected_amount: Linear projection of final savings, rounded to whole units.
    """

    probability: float
    monthly_shortfall: float
    recommended_increase: float
    projected_amount: float

    def to_dict(self) -> dict[str, float]:
        return asdict(self)


def round_half_up(value: float) -> float:
    """Round to the nearest whole unit with ties going toward +infinity.

    Non-finite values are returned unchanged so the caller never sees an
    exception from rounding.
    """

    number = float(value)
    if not math.isfinite(number):
        return number
    return float(math.floor(number + 0.5))


def clamp_horizon(months_to_goal: float) -> int:
    """Return the whole-month horizon used by the engine (at least one month)."""

    months = float(months_to_goal)
    if not math.isfinite(months):
        return 1
    return max(1, int(math.floor(months + 0.5)))


def _final_savings(
    scenario: GoalScenario,
    months: int,
    paths: int,
    rng: np.random.Generator,
    month_block: int,
) -> np.ndarray:
    """Simulate ``paths`` trajectories and return their final savings.

    Months are drawn ``month_block`` at a time, income block first, so a
    horizon that fits in one block consumes the generator exactly like a
    single ``(paths, months)`` draw per series.
    """

    income = float(scenario.monthly_income)
    spending = float(scenario.monthly_spending)
    income_spread = 2.0 * income * VARIANCE_RATIO
    spending_spread = 2.0 * spending * VARIANCE_RATIO

    net = np.zeros(paths)
    drawn = 0
    while drawn < months:
        width = min(month_block, months - drawn)
        income_draws = income + (rng.random((paths, width)) - 0.5) * income_spread
        spending_draws = spending + (rng.random((paths, width)) - 0.5) * spending_spread
        net += (income_draws - spending_draws).sum(axis=1)
        drawn += width
    return float(scenario.current_savings) + net


def simulate_success_probability(
    scenario: GoalScenario,
    *,
    iterations: int = SIMULATION_ITERATIONS,
    rng: RandomSource = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> float:
    """Estimate the probability (in percent) that ``scenario`` reaches its goal.

    Trajectories are sampled in chunks so that at most ``chunk_size`` monthly
    draws per series are materialised at once. Paths are split first; when a
    single path is longer than ``chunk_size`` its months are split as well, so
    memory stays bounded for any horizon while run time grows with it.

    Args:
      scenario: Goal inputs to simulate.
      iterations: Number of independent trajectories.
      rng: Generator, integer seed or ``None`` for a fresh entropy-seeded stream.
      chunk_size: Maximum number of monthly draws per series held per chunk.

    Returns:
      Percentage of trajectories whose final savings reach ``goal_amount``.
    """

    total = max(1, int(iterations))
    generator = resolve_generator(rng)
    months = clamp_horizon(scenario.months_to_goal)
    goal = float(scenario.goal_amount)
    budget = max(1, int(chunk_size))
    month_block = min(months, budget)
    rows_per_chunk = max(1, budget // months)

    successes = 0
    remaining = total
    while remaining > 0:
        paths = min(rows_per_chunk, remaining)
        final = _final_savings(scenario, months, paths, generator, month_block)
        successes += int(np.count_nonzero(final >= goal))
        remaining -= paths
    return (successes / total) * 100.0


def recommend_increase(scenario: GoalScenario, probability: float) -> float:
    """Return the extra monthly saving suggested for a given probability.

    Below :data:`TARGET_CONFIDENCE` the amount still needed is spread evenly
    over the horizon, inflated by :data:`SAFETY_BUFFER`, and compared with the
    current surplus. At or above the target no increase is suggested.
    """

    if probability >= TARGET_CONFIDENCE:
        return 0.0
    months = clamp_horizon(scenario.months_to_goal)
    monthly_needed = (float(scenario.goal_amount) - float(scenario.current_savings)) / months
    safe_monthly_needed = monthly_needed * SAFETY_BUFFER
    return round_half_up(max(0.0, safe_monthly_needed - scenario.monthly_savings))


def evaluate(scenario: GoalScenario, *, rng: RandomSource = None) -> ProbabilityResult:
    """Evaluate a savings goal.

    Args:
      scenario: Goal inputs.
      rng: Generator, integer seed or ``None``. Passing a seed or a seeded
        generator makes the probability reproducible.

    Returns:
      A :class:`ProbabilityResult`. ``projected_amount`` and
      ``monthly_shortfall`` depend only on the inputs; ``probability`` and
      therefore ``recommended_increase`` depend on the random draws.
    """

    months = clamp_horizon(scenario.months_to_goal)
    projected = float(scenario.current_savings) + scenario.monthly_savings * months
    monthly_shortfall = max(0.0, (float(scenario.goal_amount) - projected) / months)

    probability = simulate_success_probability(
        scenario,
        iterations=SIMULATION_ITERATIONS,
        rng=rng,
    )
    recommended = recommend_increase(scenario, probability)

    LOG.debug(
        "goal evaluated months=%d probability=%.1f shortfall=%.2f recommended=%.0f",
        months,
        probability,
        monthly_shortfall,
        recommended,
        extra={"iterations": SIMULATION_ITERATIONS, "probability": probability},
    )
    return ProbabilityResult(
        probability=probability,
        monthly_shortfall=monthly_shortfall,
        recommended_increase=recommended,
        projected_amount=round_half_up(projected),
    )


def probability_band(probability: float) -> str:
    """Map a probability to the severity band used when displaying it."""

    if probability < 50:
        return "destructive"
    if probability < 70:
        return "warning"
    return "success"
