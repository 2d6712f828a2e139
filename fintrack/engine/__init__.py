"""Namespace principale del motore fintrack."""

from __future__ import annotations

from . import goals

__all__ = ["goals"]
