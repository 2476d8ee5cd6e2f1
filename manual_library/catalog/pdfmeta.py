"""Reading and writing the PDF document information dictionary."""
from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

SIGNATURE = "Processed by Moto-Manual.com"

DEFAULT_READ_BACKENDS = ["pypdf", "pdfminer", "pikepdf"]
DEFAULT_WRITE_BACKENDS = ["pypdf", "pikepdf"]

INFO_KEYS = {
    "title": "/Title",
    "author": "/Author",
    "subject": "/Subject",
    "producer": "/Producer",
    "creator": "/Creator",
    "keywords": "/Keywords",
}


class PdfMetadataError(RuntimeError):
    """Raised when every configured backend failed."""

    def __init__(self, message: str, errors: Mapping[str, str] | None = None) -> None:
        super().__init__(message)
        self.errors = dict(errors or {})


@dataclass
class PdfInfo:
    title: str = ""
    author: str = ""
    subject: str = ""
    producer: str = ""
    creator: str = ""
    keywords: list[str] = field(default_factory=list)
    backend: str = "none"

    def to_dict(self) -> dict[str, object]:
        return {
            "title": self.title,
            "author": self.author,
            "subject": self.subject,
            "producer": self.producer,
            "creator": self.creator,
            "keywords": list(self.keywords),
        }


def resolve_backend_order(
    prefer_backends: Iterable[str] | None, defaults: list[str]
) -> list[str]:
    if prefer_backends:
        order = [backend.strip() for backend in prefer_backends if backend and backend.strip()]
    else:
        env_value = os.environ.get("MANUALS_PDF_BACKENDS")
        if env_value:
            order = [backend.strip() for backend in env_value.split(",") if backend.strip()]
        else:
            order = list(defaults)
    unique_order = [backend for backend in dict.fromkeys(order) if backend in defaults]
    return unique_order or list(defaults)


def split_keywords(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if str(item).strip()]
    return [part.strip() for part in str(value).split(",") if part.strip()]


def _info_from_mapping(info: Mapping[str, Any], backend: str) -> PdfInfo:
    def text(key: str) -> str:
        value = info.get(INFO_KEYS[key])
        return str(value) if value is not None else ""

    return PdfInfo(
        title=text("title"),
        author=text("author"),
        subject=text("subject"),
        producer=text("producer"),
        creator=text("creator"),
        keywords=split_keywords(info.get("/Keywords")),
        backend=backend,
    )


def _info_update(fields: Mapping[str, Any]) -> dict[str, str]:
    update: dict[str, str] = {}
    for name, value in fields.items():
        key = INFO_KEYS.get(name)
        if key is None:
            raise ValueError(f"unknown PDF info field: {name}")
        if name == "keywords":
            update[key] = ", ".join(split_keywords(value))
        else:
            update[key] = "" if value is None else str(value)
    return update


def _read_with_pypdf(path: Path) -> PdfInfo:
    try:
        from pypdf import PdfReader
    except ImportError as exc:  # pragma: no cover - optional dependency
        raise RuntimeError("pypdf is not installed") from exc
    try:
        reader = PdfReader(str(path))
        metadata = reader.metadata or {}
        info = {str(key): metadata[key] for key in metadata}
    except Exception as exc:  # pragma: no cover - upstream errors vary
        raise RuntimeError(str(exc)) from exc
    return _info_from_mapping(info, "pypdf")


def _read_with_pdfminer(path: Path) -> PdfInfo:
    try:
        from pdfminer.pdfdocument import PDFDocument
        from pdfminer.pdfparser import PDFParser
        from pdfminer.pdftypes import resolve1
        from pdfminer.utils import decode_text
    except ImportError as exc:  # pragma: no cover - optional dependency
        raise RuntimeError("pdfminer.six is not installed") from exc
    try:
        with path.open("rb") as fh:
            document = PDFDocument(PDFParser(fh))
            raw_info = document.info[0] if document.info else {}
            info: dict[str, Any] = {}
            for key, value in raw_info.items():
                value = resolve1(value)
                if isinstance(value, bytes):
                    value = decode_text(value)
                info[f"/{key}"] = value
    except Exception as exc:  # pragma: no cover - upstream errors vary
        raise RuntimeError(str(exc)) from exc
    return _info_from_mapping(info, "pdfminer")


def _read_with_pikepdf(path: Path) -> PdfInfo:
    try:
        from pikepdf import Pdf  # type: ignore[attr-defined]
    except ImportError as exc:  # pragma: no cover - optional dependency
        raise RuntimeError("pikepdf is not installed") from exc
    try:
        with Pdf.open(str(path)) as pdf:
            info = {str(key): str(value) for key, value in pdf.docinfo.items()}
    except Exception as exc:  # pragma: no cover - upstream errors vary
        raise RuntimeError(str(exc)) from exc
    return _info_from_mapping(info, "pikepdf")


def _replace_atomically(path: Path, write: Callable[[Path], None]) -> None:
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.stem}.", suffix=".pdf", dir=path.parent)
    os.close(fd)
    tmp_path = Path(tmp_name)
    try:
        write(tmp_path)
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()


def _write_with_pypdf(path: Path, update: Mapping[str, str]) -> None:
    try:
        from pypdf import PdfReader, PdfWriter
    except ImportError as exc:  # pragma: no cover - optional dependency
        raise RuntimeError("pypdf is not installed") from exc

    def write(target: Path) -> None:
        writer = PdfWriter(clone_from=PdfReader(str(path)))
        writer.add_metadata(dict(update))
        with target.open("wb") as fh:
            writer.write(fh)

    try:
        _replace_atomically(path, write)
    except Exception as exc:  # pragma: no cover - upstream errors vary
        raise RuntimeError(str(exc)) from exc


def _write_with_pikepdf(path: Path, update: Mapping[str, str]) -> None:
    try:
        from pikepdf import Pdf  # type: ignore[attr-defined]
    except ImportError as exc:  # pragma: no cover - optional dependency
        raise RuntimeError("pikepdf is not installed") from exc

    def write(target: Path) -> None:
        with Pdf.open(str(path)) as pdf:
            for key, value in update.items():
                pdf.docinfo[key] = value
            pdf.save(str(target))

    try:
        _replace_atomically(path, write)
    except Exception as exc:  # pragma: no cover - upstream errors vary
        raise RuntimeError(str(exc)) from exc


_READERS: dict[str, Callable[[Path], PdfInfo]] = {
    "pypdf": _read_with_pypdf,
    "pdfminer": _read_with_pdfminer,
    "pikepdf": _read_with_pikepdf,
}

_WRITERS: dict[str, Callable[[Path, Mapping[str, str]], None]] = {
    "pypdf": _write_with_pypdf,
    "pikepdf": _write_with_pikepdf,
}


def read_metadata(
    path: str | Path, *, prefer_backends: Iterable[str] | None = None
) -> PdfInfo:
    pdf_path = Path(path)
    errors: dict[str, str] = {}
    for backend in resolve_backend_order(prefer_backends, DEFAULT_READ_BACKENDS):
        try:
            return _READERS[backend](pdf_path)
        except RuntimeError as exc:
            logger.debug("PDF backend %s could not read %s: %s", backend, pdf_path, exc)
            errors[backend] = str(exc)
    raise PdfMetadataError(f"could not read metadata from {pdf_path.name}", errors)


def write_metadata(
    path: str | Path,
    fields: Mapping[str, Any],
    *,
    prefer_backends: Iterable[str] | None = None,
) -> str:
    """Write ``fields`` (title, author, subject, producer, creator, keywords).

    Returns the name of the backend that succeeded.
    """
    pdf_path = Path(path)
    update = _info_update(fields)
    errors: dict[str, str] = {}
    for backend in resolve_backend_order(prefer_backends, DEFAULT_WRITE_BACKENDS):
        try:
            _WRITERS[backend](pdf_path, update)
        except RuntimeError as exc:
            logger.debug("PDF backend %s could not write %s: %s", backend, pdf_path, exc)
            errors[backend] = str(exc)
            continue
        return backend
    raise PdfMetadataError(f"could not write metadata to {pdf_path.name}", errors)


def set_producer(
    path: str | Path,
    value: str = SIGNATURE,
    *,
    prefer_backends: Iterable[str] | None = None,
) -> str:
    return write_metadata(path, {"producer": value}, prefer_backends=prefer_backends)


def resolve_signature(value: str | None = None) -> str:
    if value:
        return value
    return os.environ.get("MANUALS_SIGNATURE") or SIGNATURE
