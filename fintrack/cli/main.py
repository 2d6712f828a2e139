"""Command-line interface for the fintrack goal probability engine."""

from __future__ import annotations

import argparse
import time
from datetime import date, datetime
from pathlib import Path

import yaml

from fintrack.engine.goals import (
    GoalScenario,
    evaluate,
    load_goal_records_from_yaml,
    load_household_parameters,
    probability_band,
    run_goal_evaluation,
)
from fintrack.engine.logging import configure_cli_logging, record_metrics
from fintrack.engine.utils.rand import generator_from_seed, seed_for_stream
from fintrack.engine.validate import require_valid_scenario, validate_configs

DESCRIPTION = "fintrack savings goal engine"
SEED_STREAM = "goals"


def _parse_date(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as exc:  # pragma: no cover - argparse validation
        raise argparse.ArgumentTypeError("Expected YYYY-MM-DD date format") from exc


def _add_evaluate_subparser(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> None:
    evaluate_cmd = subparsers.add_parser(
        "evaluate", help="Estimate the probability of reaching a single savings goal"
    )
    evaluate_cmd.add_argument("--income", type=float, required=True, help="Monthly income")
    evaluate_cmd.add_argument("--spending", type=float, required=True, help="Monthly spending")
    evaluate_cmd.add_argument(
        "--savings", type=float, default=0.0, help="Savings already put toward the goal"
    )
    evaluate_cmd.add_argument("--goal", type=float, required=True, help="Target amount")
    evaluate_cmd.add_argument(
        "--months", type=float, required=True, help="Months remaining until the deadline"
    )
    evaluate_cmd.add_argument(
        "--seed",
        type=int,
        help="Random seed (defaults to the 'goals' stream in audit/seeds.yml)",
    )
    evaluate_cmd.add_argument(
        "--strict",
        action="store_true",
        help="Reject negative amounts and non-positive goals before evaluating",
    )


def _add_goals_subparser(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> None:
    goals = subparsers.add_parser("goals", help="Evaluate every configured savings goal")
    goals.add_argument(
        "--goals-config",
        type=Path,
        default=Path("configs/goals.yml"),
        help="Path to goals configuration YAML",
    )
    goals.add_argument(
        "--params",
        type=Path,
        default=Path("configs/params.yml"),
        help="Path to household cash-flow YAML",
    )
    goals.add_argument("--seed", type=int, help="Random seed for the simulation")
    goals.add_argument(
        "--today",
        type=_parse_date,
        help="Reference date for goal horizons (YYYY-MM-DD, default: today)",
    )
    goals.add_argument(
        "--output-dir",
        type=Path,
        help="Optional directory for goal artefacts",
    )


def _add_validate_subparser(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> None:
    """Attach the validate command used for configuration schema checks."""

    validate = subparsers.add_parser("validate", help="Validate YAML configuration files")
    validate.add_argument(
        "--goals",
        type=Path,
        default=Path("configs") / "goals.yml",
        help="Path to goals.yml configuration",
    )
    validate.add_argument(
        "--params",
        type=Path,
        default=Path("configs") / "params.yml",
        help="Path to params.yml configuration",
    )
    validate.add_argument(
        "--verbose",
        action="store_true",
        help="Print the parsed configuration payloads on success",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fintrack", description=DESCRIPTION)
    parser.add_argument(
        "--json-logs",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Mirror logs to artifacts/logs/fintrack.log in JSON format",
    )
    sub = parser.add_subparsers(dest="cmd", required=True)
    _add_validate_subparser(sub)
    _add_evaluate_subparser(sub)
    _add_goals_subparser(sub)
    return parser


def _handle_evaluate(args: argparse.Namespace) -> None:
    payload = {
        "monthly_income": args.income,
        "monthly_spending": args.spending,
        "current_savings": args.savings,
        "goal_amount": args.goal,
        "months_to_goal": args.months,
    }
    if args.strict:
        try:
            scenario = require_valid_scenario(payload)
        except ValueError as exc:
            print(f"[fintrack] evaluate error: {exc}")
            raise SystemExit(1) from exc
    else:
        scenario = GoalScenario(**payload)
    rng = generator_from_seed(args.seed, stream=SEED_STREAM)
    result = evaluate(scenario, rng=rng)
    print(
        f"[fintrack] evaluate probability={result.probability:.1f} "
        f"band={probability_band(result.probability)} "
        f"shortfall={result.monthly_shortfall:.2f} "
        f"recommended={result.recommended_increase:.0f} "
        f"projected={result.projected_amount:.0f}"
    )


def _handle_goals(args: argparse.Namespace) -> None:
    goals = load_goal_records_from_yaml(args.goals_config)
    if not goals:
        raise SystemExit("No goals configured")
    parameters = load_household_parameters(args.params)
    seed = args.seed if args.seed is not None else seed_for_stream(SEED_STREAM)
    today = args.today or date.today()
    started = time.perf_counter()
    summary, artifacts = run_goal_evaluation(
        goals,
        parameters=parameters,
        today=today,
        seed=int(seed),
        output_dir=args.output_dir,
    )
    record_metrics(
        "goals_evaluation_ms",
        (time.perf_counter() - started) * 1000.0,
        {"household": parameters.name, "goals": str(len(goals))},
    )
    fragments = [
        f"{row.goal}={row.probability:.1f}" for row in summary.results.itertuples(index=False)
    ]
    result_str = ",".join(fragments) if fragments else "none"
    print(
        f"[fintrack] goals household={parameters.name} seed={summary.seed} "
        f"on_track={summary.on_track}/{len(goals)} results={result_str} "
        f"csv={artifacts.summary_csv} pdf={artifacts.report_pdf}"
    )


def _handle_validate(args: argparse.Namespace) -> None:
    """Validate configuration files and report diagnostics to stdout."""

    summary = validate_configs(goals_path=args.goals, params_path=args.params)
    if args.verbose and summary.configs:
        for label, payload in summary.configs.items():
            rendered = yaml.safe_dump(payload, sort_keys=True)
            print(f"[fintrack] validate {label}\n{rendered}", end="")
    for warning in summary.warnings:
        print(f"[fintrack] validate warning: {warning}")
    if summary.errors:
        for error in summary.errors:
            print(f"[fintrack] validate error: {error}")
        raise SystemExit(1)
    print("[fintrack] validate status=ok")


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_cli_logging(json_logs=bool(args.json_logs))
    if args.cmd == "evaluate":
        _handle_evaluate(args)
    elif args.cmd == "goals":
        _handle_goals(args)
    elif args.cmd == "validate":
        _handle_validate(args)


if __name__ == "__main__":
    main()
