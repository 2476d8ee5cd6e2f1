"""Save workflow: merge form input, rename the PDF after its title, persist, sign, learn.

A save runs as an ordered list of stages. Each stage returns a
:class:`StageResult`; the first ``fatal`` result stops the run, ``recoverable``
results are collected into the report. Completed stages are never rolled back,
so a failed sidecar write after a successful rename leaves the PDF renamed
without a sidecar; :func:`locator.locate` recovers such files on next load.
"""
from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from . import pdfmeta
from .fileops import move_file
from .learning import LearningStore
from .normalize import (
    MetadataRecord,
    YearRange,
    covered_years,
    ensure_list,
    generate_manual_id,
    parse_year,
    parse_year_range,
    sanitize_filename,
    split_tags,
)
from .sidecar import sidecar_path, write_sidecar

logger = logging.getLogger(__name__)

Signer = Callable[[Path], object]

YEAR_RANGE_MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "format": 'Invalid year range "{value}". Use the format YYYY-YYYY, for example 1998-2005.',
        "order": 'Invalid year range "{value}": the start year must not be after the end year.',
        "bounds": 'Invalid year range "{value}": years must be between 1900 and 2100.',
    },
    "nl": {
        "format": 'Ongeldige jaarreeks "{value}". Gebruik het formaat JJJJ-JJJJ, bijvoorbeeld 1998-2005.',
        "order": 'Ongeldige jaarreeks "{value}": het beginjaar mag niet na het eindjaar liggen.',
        "bounds": 'Ongeldige jaarreeks "{value}": jaren moeten tussen 1900 en 2100 liggen.',
    },
}

MESSAGE_SAVED = "Metadata saved successfully!"
MESSAGE_SIGNATURE_FAILED = (
    "Metadata saved to JSON. However, failed to add the signature to the PDF file itself."
)
MESSAGE_SIGNATURE_FLAG_FAILED = (
    "Metadata saved and PDF signed. However, failed to update the JSON file "
    "with the signature status."
)


class StageStatus(str, Enum):
    OK = "ok"
    RECOVERABLE = "recoverable"
    FATAL = "fatal"


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    COLLISION = "collision"
    IO = "io"
    PARSE = "parse"
    PARTIAL = "partial"


@dataclass
class StageResult:
    status: StageStatus = StageStatus.OK
    kind: ErrorKind | None = None
    message: str | None = None

    @classmethod
    def ok(cls) -> StageResult:
        return cls()

    @classmethod
    def fatal(cls, kind: ErrorKind, message: str) -> StageResult:
        return cls(StageStatus.FATAL, kind, message)

    @classmethod
    def recoverable(cls, kind: ErrorKind, message: str) -> StageResult:
        return cls(StageStatus.RECOVERABLE, kind, message)


@dataclass
class FormInput:
    """Raw values collected from the metadata form."""

    title: str = ""
    brand: str = ""
    model: str = ""
    year: str | int | None = None
    year_range: str | None = None
    manual_type: str = ""
    bike_type: Iterable[str] = ()
    language: str = ""
    tags: str | Iterable[str] = ""
    description: str = ""


@dataclass
class SaveReport:
    status: str
    message: str
    severity: str
    pdf_path: Path
    renamed: bool = False
    error_kind: ErrorKind | None = None
    metadata: dict[str, Any] | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status in {"saved", "partial"}


@dataclass
class SaveContext:
    pdf_path: Path
    loaded: dict[str, Any]
    form: FormInput
    manual_id: str = ""
    title: str = ""
    year_range: YearRange | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    target_path: Path | None = None
    renamed: bool = False
    persisted: bool = False
    message: str = MESSAGE_SAVED


def resolve_locale(value: str | None = None) -> str:
    locale = value or os.environ.get("MANUALS_LOCALE") or "en"
    locale = locale.split("_", 1)[0].split("-", 1)[0].lower()
    return locale if locale in YEAR_RANGE_MESSAGES else "en"


class MetadataSaver:
    """Runs the save workflow for one manual at a time."""

    def __init__(
        self,
        store: LearningStore,
        *,
        signer: Signer | None = None,
        signature: str | None = None,
        locale: str | None = None,
    ) -> None:
        self.store = store
        self.signature = pdfmeta.resolve_signature(signature)
        self.signer: Signer = signer or (lambda path: pdfmeta.set_producer(path, self.signature))
        self.locale = resolve_locale(locale)
        self.stages: list[Callable[[SaveContext], StageResult]] = [
            self.assign_identity,
            self.validate,
            self.parse_years,
            self.merge,
            self.derive_filename,
            self.rename_pdf,
            self.persist,
            self.sign,
            self.learn,
        ]

    def save(
        self,
        pdf_path: str | Path,
        loaded: Mapping[str, Any] | None,
        form: FormInput,
    ) -> SaveReport:
        ctx = SaveContext(pdf_path=Path(pdf_path), loaded=dict(loaded or {}), form=form)
        warnings: list[str] = []
        for stage in self.stages:
            result = stage(ctx)
            if result.status is StageStatus.FATAL:
                logger.error(
                    "Saving %s stopped at %s: %s",
                    ctx.pdf_path.name,
                    stage.__name__,
                    result.message,
                )
                return SaveReport(
                    status="failed",
                    message=result.message or "Saving metadata failed.",
                    severity="warning" if result.kind is ErrorKind.VALIDATION else "error",
                    pdf_path=ctx.pdf_path,
                    renamed=ctx.renamed,
                    error_kind=result.kind,
                    metadata=dict(ctx.metadata) if ctx.persisted else None,
                    warnings=warnings,
                )
            if result.status is StageStatus.RECOVERABLE and result.message:
                warnings.append(result.message)
        partial = bool(warnings)
        return SaveReport(
            status="partial" if partial else "saved",
            message=ctx.message,
            severity="warning" if partial else "success",
            pdf_path=ctx.pdf_path,
            renamed=ctx.renamed,
            error_kind=ErrorKind.PARTIAL if partial else None,
            metadata=dict(ctx.metadata),
            warnings=warnings,
        )

    def assign_identity(self, ctx: SaveContext) -> StageResult:
        existing = ctx.loaded.get("id")
        ctx.manual_id = str(existing) if existing else generate_manual_id()
        if not existing:
            logger.debug("Generated new id %s for %s", ctx.manual_id, ctx.pdf_path.name)
        return StageResult.ok()

    def validate(self, ctx: SaveContext) -> StageResult:
        ctx.title = (ctx.form.title or "").strip()
        if not ctx.title:
            return StageResult.fatal(ErrorKind.VALIDATION, "Title is a required field.")
        return StageResult.ok()

    def parse_years(self, ctx: SaveContext) -> StageResult:
        raw = (ctx.form.year_range or "").strip()
        if not raw:
            return StageResult.ok()
        parsed = parse_year_range(raw)
        if not parsed.is_valid:
            template = YEAR_RANGE_MESSAGES[self.locale][parsed.error or "format"]
            return StageResult.fatal(ErrorKind.VALIDATION, template.format(value=raw))
        ctx.year_range = parsed
        return StageResult.ok()

    def merge(self, ctx: SaveContext) -> StageResult:
        form = ctx.form
        record = MetadataRecord.from_dict(ctx.loaded)
        record.id = ctx.manual_id
        record.title = ctx.title
        record.brand = (form.brand or "").strip()
        record.model = (form.model or "").strip()
        record.year = parse_year(form.year)
        record.year_range = ctx.year_range.original_range if ctx.year_range else None
        record.year_range_data = ctx.year_range.to_data() if ctx.year_range else None
        record.all_covered_years = covered_years(record.year, ctx.year_range)
        record.manual_type = (form.manual_type or "").strip()
        record.bike_type = ensure_list(form.bike_type or ())
        record.language = (form.language or "").strip()
        record.tags = split_tags(form.tags)
        record.description = (form.description or "").strip()
        ctx.metadata = record.to_dict()
        return StageResult.ok()

    def derive_filename(self, ctx: SaveContext) -> StageResult:
        filename = sanitize_filename(ctx.title) + ".pdf"
        ctx.target_path = ctx.pdf_path.parent / filename
        return StageResult.ok()

    def rename_pdf(self, ctx: SaveContext) -> StageResult:
        assert ctx.target_path is not None
        current, target = ctx.pdf_path, ctx.target_path
        if str(target).lower() == str(current).lower():
            return StageResult.ok()
        if target.exists():
            return StageResult.fatal(
                ErrorKind.COLLISION,
                f'Error: A file named "{target.name}" already exists in this directory. '
                "Please choose a different title or rename the existing file.",
            )
        try:
            move_file(current, target)
        except OSError as exc:
            return StageResult.fatal(
                ErrorKind.IO, f"Error renaming PDF: {exc}. Metadata not saved."
            )
        logger.info("Renamed %s to %s", current.name, target.name)
        ctx.pdf_path = target
        ctx.renamed = True
        old_json, new_json = sidecar_path(current), sidecar_path(target)
        if old_json.exists():
            try:
                move_file(old_json, new_json)
            except OSError as exc:
                logger.warning("Could not rename old sidecar %s: %s", old_json.name, exc)
        return StageResult.ok()

    def persist(self, ctx: SaveContext) -> StageResult:
        written = write_sidecar(sidecar_path(ctx.pdf_path), ctx.metadata)
        if not written.ok:
            return StageResult.fatal(
                ErrorKind.IO, f"Error saving metadata to JSON file: {written.error}"
            )
        ctx.persisted = True
        return StageResult.ok()

    def sign(self, ctx: SaveContext) -> StageResult:
        if ctx.metadata.get("pdfSignatureAdded"):
            return StageResult.ok()
        try:
            self.signer(ctx.pdf_path)
        except (pdfmeta.PdfMetadataError, OSError) as exc:
            logger.warning("Failed to add PDF signature to %s: %s", ctx.pdf_path.name, exc)
            ctx.message = MESSAGE_SIGNATURE_FAILED
            return StageResult.recoverable(ErrorKind.PARTIAL, MESSAGE_SIGNATURE_FAILED)
        ctx.metadata["pdfSignatureAdded"] = True
        rewritten = write_sidecar(sidecar_path(ctx.pdf_path), ctx.metadata)
        if not rewritten.ok:
            logger.warning("Failed to re-save sidecar with signature flag: %s", rewritten.error)
            ctx.message = MESSAGE_SIGNATURE_FLAG_FAILED
            return StageResult.recoverable(ErrorKind.PARTIAL, MESSAGE_SIGNATURE_FLAG_FAILED)
        return StageResult.ok()

    def learn(self, ctx: SaveContext) -> StageResult:
        try:
            self.store.record(ctx.pdf_path.name, ctx.metadata)
        except OSError as exc:
            logger.warning("Could not update suggestions: %s", exc)
            message = f"Metadata saved, but suggestions could not be updated: {exc}"
            if ctx.message == MESSAGE_SAVED:
                ctx.message = message
            return StageResult.recoverable(ErrorKind.IO, message)
        return StageResult.ok()
