"""Manual library session: remembered directories, scanning, opening and saving manuals."""
from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, cast

from .learning import LearningStore
from .locator import LocateResult, locate
from .reconcile import FormInput, MetadataSaver, SaveReport
from .scanner import ManualRecord, extract_metadata_from_filename, scan_directory
from .sidecar import read_sidecar, sidecar_path
from .suggest import Suggestions, suggest

logger = logging.getLogger(__name__)


class LibrarySettings:
    """Remembered manual directories, stored as ``{"manualDirectories": [...]}``."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.data = self._load()

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {"manualDirectories": []}
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.warning("Ignoring unreadable settings %s: %s", self.path, exc)
            return {"manualDirectories": []}
        if not isinstance(data, dict) or not isinstance(
            data.get("manualDirectories", []), list
        ):
            logger.warning("Ignoring settings %s: unexpected layout", self.path)
            return {"manualDirectories": []}
        data.setdefault("manualDirectories", [])
        return data

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as fh:
            json.dump(self.data, fh, indent=2, sort_keys=True)

    @property
    def directories(self) -> list[str]:
        return list(self.data.get("manualDirectories", []))

    def add_directory(self, directory: str | Path) -> bool:
        resolved = str(Path(directory).expanduser().resolve())
        directories = cast(list[str], self.data.setdefault("manualDirectories", []))
        if resolved in directories:
            return False
        directories.append(resolved)
        self.save()
        return True


@dataclass
class OpenedManual:
    record: ManualRecord
    metadata: dict[str, Any]
    source: str
    suggestions: Suggestions
    located: LocateResult


class ManualLibrary:
    def __init__(self, store: LearningStore, saver: MetadataSaver | None = None) -> None:
        self.store = store
        self.saver = saver or MetadataSaver(store)
        self.manuals: list[ManualRecord] = []

    def scan(self, directory: str | Path) -> list[ManualRecord]:
        self.manuals = scan_directory(directory)
        for manual in self.manuals:
            manual.metadata = extract_metadata_from_filename(manual.filename)
        logger.info("Loaded %d manuals from %s", len(self.manuals), directory)
        return self.manuals

    def open_manual(self, record: ManualRecord) -> OpenedManual | None:
        located = locate(record.path)
        if not located.found:
            logger.error("Could not locate PDF file. Original path: %s", record.path)
            return None
        assert located.found_path is not None
        if located.was_renamed:
            logger.info("File was renamed: %s -> %s", located.original_name, located.new_name)
            record.move_to(located.found_path)

        source = "sidecar"
        json_path = sidecar_path(record.path)
        loaded = read_sidecar(json_path)
        if loaded.ok:
            assert loaded.data is not None
            metadata = dict(loaded.data)
            record.metadata = dict(metadata)
        else:
            if loaded.status != "not_found":
                logger.warning("Failed to read JSON metadata from %s: %s", json_path, loaded.error)
            source = "filename"
            metadata = dict(record.metadata or extract_metadata_from_filename(record.filename))

        return OpenedManual(
            record=record,
            metadata=metadata,
            source=source,
            suggestions=suggest(self.store, record.filename),
            located=located,
        )

    def save(
        self,
        record: ManualRecord,
        form: FormInput,
        loaded: Mapping[str, Any] | None = None,
    ) -> SaveReport:
        """Save ``form`` for ``record``; ``loaded`` defaults to the record's metadata."""
        base = loaded if loaded is not None else (record.metadata or {})
        report = self.saver.save(record.path, base, form)
        if report.pdf_path != record.path:
            record.move_to(report.pdf_path)
        if report.succeeded and report.metadata is not None:
            record.metadata = dict(report.metadata)
        return report

    def index_of(self, record: ManualRecord) -> int:
        return self.manuals.index(record)

    def next_index(self, index: int) -> int | None:
        if 0 <= index < len(self.manuals) - 1:
            return index + 1
        return None

    def previous_index(self, index: int) -> int | None:
        if 0 < index < len(self.manuals):
            return index - 1
        return None
