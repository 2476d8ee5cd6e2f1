"""Shared test fixtures."""
from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest
from pypdf import PdfWriter

from manual_library.catalog.learning import LearningStore, MemoryBackend


def write_pdf(path: Path, title: str = "", keywords: str = "") -> Path:
    writer = PdfWriter()
    writer.add_blank_page(width=200, height=200)
    metadata = {}
    if title:
        metadata["/Title"] = title
    if keywords:
        metadata["/Keywords"] = keywords
    if metadata:
        writer.add_metadata(metadata)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as fh:
        writer.write(fh)
    return path


@pytest.fixture()
def make_pdf() -> Callable[..., Path]:
    """Create a one-page PDF at the given path."""
    return write_pdf


@pytest.fixture()
def store() -> LearningStore:
    return LearningStore(MemoryBackend())
