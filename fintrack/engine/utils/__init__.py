"""Utility helpers for fintrack."""

from fintrack.engine.logging import configure_cli_logging, record_metrics, setup_logger

from .io import (
    ensure_dir,
    read_yaml,
    safe_path_segment,
)
from .rand import (
    DEFAULT_SEED,
    DEFAULT_SEED_PATH,
    DEFAULT_STREAM,
    RandomSource,
    generator_from_seed,
    load_seeds,
    resolve_generator,
    seed_for_stream,
)

__all__ = [
    "ensure_dir",
    "safe_path_segment",
    "read_yaml",
    "configure_cli_logging",
    "record_metrics",
    "setup_logger",
    "DEFAULT_SEED",
    "DEFAULT_SEED_PATH",
    "DEFAULT_STREAM",
    "RandomSource",
    "generator_from_seed",
    "load_seeds",
    "resolve_generator",
    "seed_for_stream",
]
