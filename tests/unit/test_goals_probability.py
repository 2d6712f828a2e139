"""Unit tests for the goal probability engine."""

from __future__ import annotations

import math

import numpy as np
import pytest

from fintrack.engine.goals import (
    SIMULATION_ITERATIONS,
    TARGET_CONFIDENCE,
    GoalScenario,
    ProbabilityResult,
    clamp_horizon,
    evaluate,
    probability_band,
    recommend_increase,
    round_half_up,
    simulate_success_probability,
)
from fintrack.engine.goals.probability import _final_savings

BASELINE = GoalScenario(
    monthly_income=5000.0,
    monthly_spending=4000.0,
    current_savings=2000.0,
    goal_amount=15000.0,
    months_to_goal=12,
)


def test_evaluate_baseline_deterministic_fields() -> None:
    result = evaluate(BASELINE, rng=11)

    assert isinstance(result, ProbabilityResult)
    assert result.projected_amount == 14000.0
    assert result.monthly_shortfall == pytest.approx(1000.0 / 12.0)
    # (15000 - 2000) / 12 * 1.15 - 1000 = 245.83
    assert result.recommended_increase == 246.0


def test_evaluate_baseline_probability_matches_reference() -> None:
    reference = simulate_success_probability(BASELINE, iterations=100_000, rng=2024)
    result = evaluate(BASELINE, rng=99)

    assert 15.0 < reference < 30.0
    assert abs(result.probability - reference) < 5.0
    assert result.probability < TARGET_CONFIDENCE


def test_evaluate_is_reproducible_with_seed() -> None:
    first = evaluate(BASELINE, rng=123)
    second = evaluate(BASELINE, rng=123)

    assert first == second


def test_evaluate_accepts_generator() -> None:
    first = evaluate(BASELINE, rng=np.random.default_rng(5))
    second = evaluate(BASELINE, rng=np.random.default_rng(5))

    assert first.probability == second.probability


def test_evaluate_consumes_two_draws_per_simulated_month() -> None:
    months = 7
    scenario = GoalScenario(3000.0, 2500.0, 0.0, 4000.0, months)
    used = np.random.default_rng(31)
    expected = np.random.default_rng(31)

    evaluate(scenario, rng=used)
    expected.random((SIMULATION_ITERATIONS, months))
    expected.random((SIMULATION_ITERATIONS, months))

    assert used.random() == expected.random()


def test_zero_variance_goal_already_met_is_certain() -> None:
    scenario = GoalScenario(0.0, 0.0, 1000.0, 500.0, 6)

    result = evaluate(scenario, rng=1)

    assert result.probability == 100.0
    assert result.recommended_increase == 0.0
    assert result.monthly_shortfall == 0.0
    assert result.projected_amount == 1000.0


def test_zero_variance_goal_out_of_reach_is_impossible() -> None:
    scenario = GoalScenario(0.0, 0.0, 400.0, 500.0, 6)

    result = evaluate(scenario, rng=1)

    assert result.probability == 0.0
    # 100 / 6 * 1.15 = 19.17
    assert result.recommended_increase == 19.0
    assert result.monthly_shortfall == pytest.approx(100.0 / 6.0)


def test_large_surplus_needs_no_increase() -> None:
    scenario = GoalScenario(10_000.0, 1_000.0, 0.0, 1_000.0, 12)

    result = evaluate(scenario, rng=3)

    assert result.probability == 100.0
    assert result.recommended_increase == 0.0
    assert result.monthly_shortfall == 0.0


def test_deficit_scenario_recommends_increase() -> None:
    scenario = GoalScenario(1000.0, 2000.0, 0.0, 50_000.0, 12)

    result = evaluate(scenario, rng=3)

    assert result.probability == 0.0
    # 50000 / 12 * 1.15 + 1000 = 5791.67
    assert result.recommended_increase == 5792.0
    assert result.projected_amount == -12_000.0


@pytest.mark.parametrize("months", [0, -4, 0.3, float("nan"), float("inf")])
def test_degenerate_horizons_are_treated_as_one_month(months: float) -> None:
    scenario = GoalScenario(5000.0, 4000.0, 100.0, 2000.0, months)

    result = evaluate(scenario, rng=8)

    assert math.isfinite(result.probability)
    assert result.projected_amount == 1100.0
    assert result.monthly_shortfall == pytest.approx(900.0)
    # 1900 * 1.15 - 1000
    assert result.recommended_increase == 1185.0


def test_negative_inputs_are_accepted() -> None:
    scenario = GoalScenario(2000.0, 1500.0, -3000.0, -5000.0, 4)

    result = evaluate(scenario, rng=4)

    assert result.probability == 100.0
    assert result.projected_amount == -1000.0
    assert result.monthly_shortfall == 0.0
    assert result.recommended_increase == 0.0


def test_nan_amounts_do_not_raise() -> None:
    scenario = GoalScenario(float("nan"), 1000.0, 0.0, 500.0, 3)

    result = evaluate(scenario, rng=4)

    assert result.probability == 0.0
    assert result.monthly_shortfall == 0.0
    assert math.isnan(result.projected_amount)


def test_probability_converges_across_repeated_runs() -> None:
    scenario = GoalScenario(4200.0, 3600.0, 1500.0, 8200.0, 11)
    reference = simulate_success_probability(scenario, iterations=100_000, rng=77)
    seeds = np.random.SeedSequence(2024).spawn(200)

    samples = [evaluate(scenario, rng=np.random.default_rng(seed)).probability for seed in seeds]

    assert 0.0 < reference < 100.0
    assert abs(float(np.mean(samples)) - reference) <= 5.0


def test_chunked_sampling_matches_single_chunk_statistically() -> None:
    scenario = GoalScenario(5000.0, 4000.0, 2000.0, 26_000.0, 24)

    chunked = simulate_success_probability(scenario, iterations=20_000, rng=1, chunk_size=100)
    single = simulate_success_probability(scenario, iterations=20_000, rng=2)

    assert abs(chunked - single) < 3.0


def test_long_horizon_is_split_into_month_blocks() -> None:
    months = 50
    scenario = GoalScenario(5000.0, 4000.0, 0.0, 50_000.0, months)
    used = np.random.default_rng(17)
    expected = np.random.default_rng(17)

    simulate_success_probability(scenario, iterations=300, rng=used, chunk_size=20)
    expected.random(2 * 300 * months)

    assert used.random() == expected.random()


def test_month_blocks_never_exceed_chunk_size() -> None:
    shapes: list[tuple[int, int]] = []
    source = np.random.default_rng(3)

    class _RecordingRng:
        def random(self, size: tuple[int, int]) -> np.ndarray:
            shapes.append(size)
            return source.random(size)

    scenario = GoalScenario(5000.0, 4000.0, 0.0, 50_000.0, 50)
    final = _final_savings(scenario, 50, 1, _RecordingRng(), 20)  # type: ignore[arg-type]

    assert shapes == [(1, 20), (1, 20), (1, 20), (1, 20), (1, 10), (1, 10)]
    assert final.shape == (1,)


def test_month_blocks_match_single_chunk_statistically() -> None:
    scenario = GoalScenario(5000.0, 4000.0, 0.0, 50_000.0, 50)

    blocked = simulate_success_probability(scenario, iterations=4_000, rng=5, chunk_size=20)
    single = simulate_success_probability(scenario, iterations=4_000, rng=6)

    assert 30.0 < single < 70.0
    assert abs(blocked - single) < 5.0


def test_recommend_increase_respects_threshold() -> None:
    assert recommend_increase(BASELINE, TARGET_CONFIDENCE) == 0.0
    assert recommend_increase(BASELINE, 100.0) == 0.0
    assert recommend_increase(BASELINE, 74.9) == 246.0


def test_round_half_up_rounds_ties_upward() -> None:
    assert round_half_up(2.5) == 3.0
    assert round_half_up(-2.5) == -2.0
    assert round_half_up(245.83) == 246.0
    assert math.isinf(round_half_up(float("inf")))


def test_clamp_horizon() -> None:
    assert clamp_horizon(12) == 12
    assert clamp_horizon(11.5) == 12
    assert clamp_horizon(0) == 1
    assert clamp_horizon(-10) == 1
    assert clamp_horizon(float("nan")) == 1


@pytest.mark.parametrize(
    ("probability", "band"),
    [
        (0.0, "destructive"),
        (49.9, "destructive"),
        (50.0, "warning"),
        (69.9, "warning"),
        (70.0, "success"),
        (100.0, "success"),
    ],
)
def test_probability_band(probability: float, band: str) -> None:
    assert probability_band(probability) == band


def test_result_to_dict_round_trip_keys() -> None:
    payload = evaluate(BASELINE, rng=0).to_dict()

    assert set(payload) == {
        "probability",
        "monthly_shortfall",
        "recommended_increase",
        "projected_amount",
    }
