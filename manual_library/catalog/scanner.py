"""Directory scanning for PDF manuals."""
from __future__ import annotations

import logging
import os
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

KNOWN_MANUAL_TYPES = ["service", "user manual", "diagram", "electrical", "parts catalog"]

YEAR_PART_RE = re.compile(r"^\d{4}$")


@dataclass
class ManualRecord:
    """A PDF discovered by a scan."""

    path: Path
    size: int
    last_modified: datetime
    metadata: dict[str, Any] | None = None
    filename: str = field(init=False)

    def __post_init__(self) -> None:
        self.path = Path(self.path)
        self.filename = self.path.name

    def move_to(self, path: str | Path) -> None:
        self.path = Path(path)
        self.filename = self.path.name

    def to_dict(self) -> dict[str, object]:
        return {
            "path": str(self.path),
            "filename": self.filename,
            "size": self.size,
            "lastModified": self.last_modified.isoformat(),
        }


def is_pdf(path: Path) -> bool:
    return path.suffix.lower() == ".pdf"


def iter_pdf_files(root: Path) -> Iterator[Path]:
    try:
        entries = list(os.scandir(root))
    except OSError as exc:
        logger.warning("Skipping unreadable directory %s: %s", root, exc)
        return
    for entry in entries:
        try:
            if entry.is_dir(follow_symlinks=False):
                yield from iter_pdf_files(Path(entry.path))
            elif entry.is_file() and is_pdf(Path(entry.name)):
                yield Path(entry.path)
        except OSError as exc:
            logger.warning("Skipping unreadable entry %s: %s", entry.path, exc)


def scan_directory(root: str | Path) -> list[ManualRecord]:
    root_path = Path(root)
    if not root_path.is_dir():
        logger.info("Directory %s does not exist, nothing to scan", root_path)
        return []
    manuals: list[ManualRecord] = []
    for pdf_path in sorted(iter_pdf_files(root_path)):
        try:
            stat = pdf_path.stat()
        except OSError as exc:
            logger.warning("Skipping %s: %s", pdf_path, exc)
            continue
        manuals.append(
            ManualRecord(
                path=pdf_path,
                size=stat.st_size,
                last_modified=datetime.fromtimestamp(stat.st_mtime, UTC),
            )
        )
    logger.debug("Found %d PDFs under %s", len(manuals), root_path)
    return manuals


def list_directory_pdfs(directory: str | Path) -> list[Path]:
    """PDFs directly inside ``directory`` in listing order."""
    base = Path(directory)
    return [
        base / name
        for name in os.listdir(base)
        if is_pdf(Path(name)) and (base / name).is_file()
    ]


def extract_metadata_from_filename(filename: str) -> dict[str, Any]:
    """Guess metadata from a ``Brand_Model_Year_Type.pdf`` style name."""
    metadata: dict[str, Any] = {
        "title": "",
        "brand": "",
        "model": "",
        "year": None,
        "manualType": "",
        "tags": [],
    }
    stem = Path(filename).stem if is_pdf(Path(filename)) else filename
    parts = stem.split("_")
    if parts and parts[0]:
        metadata["brand"] = parts[0]
        metadata["title"] = stem
    if len(parts) >= 2:
        metadata["model"] = parts[1]
    if len(parts) >= 3 and YEAR_PART_RE.match(parts[2]):
        metadata["year"] = int(parts[2])
    if len(parts) >= 4:
        lower_type = parts[3].lower()
        for manual_type in KNOWN_MANUAL_TYPES:
            if manual_type in lower_type:
                metadata["manualType"] = manual_type
                break
    return metadata
