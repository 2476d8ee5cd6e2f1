"""Re-locating manuals whose PDF was renamed since it was indexed."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .scanner import list_directory_pdfs
from .sidecar import read_sidecar, sidecar_path
from .similarity import similarity

logger = logging.getLogger(__name__)

SIMILARITY_THRESHOLD = 0.7


@dataclass
class LocateResult:
    found: bool
    found_path: Path | None = None
    was_renamed: bool = False
    original_name: str | None = None
    new_name: str | None = None
    similarity: float | None = None
    match_reason: str | None = None
    error: str | None = None


def _sidecar_title(candidate: Path) -> str | None:
    """Title from the candidate's sidecar, ``""`` when it has none, ``None`` when unreadable."""
    result = read_sidecar(sidecar_path(candidate))
    if not result.ok:
        if result.status != "not_found":
            logger.debug("Ignoring sidecar of %s: %s", candidate.name, result.error)
        return None
    assert result.data is not None
    title = result.data.get("title")
    return str(title) if title else ""


def titles_related(original: str, candidate: str, title: str) -> bool:
    original_l, candidate_l = original.lower(), candidate.lower()
    if original_l in candidate_l or candidate_l in original_l:
        return True
    if not title:
        return False
    title_l = title.lower()
    return title_l in original_l or original_l in title_l


def locate(original_path: str | Path) -> LocateResult:
    path = Path(original_path)
    if path.exists():
        return LocateResult(True, path, was_renamed=False, match_reason="exists")

    original_stem = path.stem
    try:
        candidates = list_directory_pdfs(path.parent)
    except OSError as exc:
        logger.debug("Cannot list %s: %s", path.parent, exc)
        candidates = []

    for candidate in candidates:
        title = _sidecar_title(candidate)
        if title is not None and titles_related(original_stem, candidate.stem, title):
            logger.info("Relocated %s to %s via sidecar title", path.name, candidate.name)
            return LocateResult(
                True,
                candidate,
                was_renamed=True,
                original_name=path.name,
                new_name=candidate.name,
                match_reason="sidecar",
            )

    for candidate in candidates:
        score = similarity(original_stem.lower(), candidate.stem.lower())
        if score > SIMILARITY_THRESHOLD:
            logger.info(
                "Relocated %s to %s by name similarity %.2f", path.name, candidate.name, score
            )
            return LocateResult(
                True,
                candidate,
                was_renamed=True,
                original_name=path.name,
                new_name=candidate.name,
                similarity=score,
                match_reason="similarity",
            )

    return LocateResult(False, original_name=path.name, error=f"File not found: {path}")
