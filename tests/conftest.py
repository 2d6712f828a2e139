"""Configurazione Pytest condivisa per fintrack."""

from __future__ import annotations

import os
import sys
from collections.abc import Iterable
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]


def _insert_repo_root() -> None:
    """Assicura che la root del repository sia sul ``sys.path`` per gli import."""

    if str(REPO_ROOT) not in sys.path:
        sys.path.insert(0, str(REPO_ROOT))


_insert_repo_root()


def pytest_report_header(config: pytest.Config) -> Iterable[str]:  # pragma: no cover - pytest hook
    """Mostra contesto diagnostico per le esecuzioni di test."""

    log_level = os.environ.get("FINTRACK_LOG_LEVEL", "INFO")
    return [f"fintrack repo: {REPO_ROOT}", f"FINTRACK_LOG_LEVEL={log_level}"]


@pytest.fixture(autouse=True)
def _set_verbose_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    """Imposta il livello di log predefinito a INFO per test più leggibili."""

    monkeypatch.setenv("FINTRACK_LOG_LEVEL", "INFO")


@pytest.fixture
def configs_dir() -> Path:
    """Cartella ``configs`` versionata con gli esempi di goal e household."""

    return REPO_ROOT / "configs"
