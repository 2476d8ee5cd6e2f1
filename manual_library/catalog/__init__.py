"""Manual catalog package."""
from __future__ import annotations

from pathlib import Path

from . import (
    fileops,
    learning,
    library,
    locator,
    normalize,
    pdfmeta,
    reconcile,
    renderer,
    scanner,
    sidecar,
    similarity,
    suggest,
)

__all__ = [
    "fileops",
    "learning",
    "library",
    "locator",
    "normalize",
    "pdfmeta",
    "reconcile",
    "renderer",
    "scanner",
    "sidecar",
    "similarity",
    "suggest",
    "load_learning_store",
]


def load_learning_store(base_path: Path) -> learning.LearningStore:
    """Convenience wrapper to open the learning store kept under ``base_path``."""
    from .learning import JsonFileBackend, LearningStore

    return LearningStore(JsonFileBackend(base_path / "learning.json"))
