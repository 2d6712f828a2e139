"""Utility di I/O condivise da CLI, report e validatore.

Il modulo fornisce helper per creare directory di artefatti, sanitizzare nomi
di file e leggere configurazioni YAML.
"""

from __future__ import annotations

import re
from pathlib import Path

import yaml

__all__ = [
    "ensure_dir",
    "safe_path_segment",
    "read_yaml",
]


# Caratteri vietati nei nomi di file.
INVALID_FS_CHARS = r'[<>:"/\\|?*\x00-\x1F]'


def ensure_dir(path: Path | str) -> Path:
    """Garantisce l'esistenza del percorso e lo restituisce come :class:`Path`."""

    path_obj = Path(path)
    path_obj.mkdir(parents=True, exist_ok=True)
    return path_obj


def safe_path_segment(name: str) -> str:
    """Restituisce ``name`` ripulito dai caratteri non ammessi dal filesystem."""

    safe = re.sub(INVALID_FS_CHARS, "-", str(name))
    return safe.rstrip(" .")


def read_yaml(path: Path | str) -> object:
    """Legge un file YAML e restituisce l'oggetto Python corrispondente."""

    with Path(path).open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle)

