"""Normalization helpers."""
from __future__ import annotations

import re
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

FILENAME_KEY_LENGTH = 50
MIN_TOKEN_LENGTH = 3
FALLBACK_FILENAME = "Untitled_Manual"
MIN_YEAR = 1900
MAX_YEAR = 2100

TOKEN_SPLIT_RE = re.compile(r"[^a-z0-9]+")
UNSAFE_FILENAME_RE = re.compile(r'[\\/:*?"<>|\s]+')
YEAR_RANGE_RE = re.compile(r"^\s*([0-9]{4})\s*[-–—]\s*([0-9]{4})\s*$")
LEADING_NUMBER_RE = re.compile(r"^\s*([0-9]+)")

RECORD_FIELDS = (
    "id",
    "title",
    "brand",
    "model",
    "year",
    "yearRange",
    "yearRangeData",
    "allCoveredYears",
    "manualType",
    "bikeType",
    "language",
    "tags",
    "description",
    "pdfSignatureAdded",
)


def now_iso() -> str:
    return datetime.now(UTC).replace(microsecond=0).isoformat()


def tokenize_filename(filename: str) -> list[str]:
    """Split ``filename`` into lower-case alphanumeric tokens longer than two characters."""
    parts = TOKEN_SPLIT_RE.split(filename.lower())
    return [part for part in parts if len(part) >= MIN_TOKEN_LENGTH]


def filename_key(filename: str) -> str:
    return filename.lower()[:FILENAME_KEY_LENGTH]


def sanitize_filename(title: str) -> str:
    cleaned = UNSAFE_FILENAME_RE.sub("_", title.strip())
    cleaned = cleaned.strip("_.")
    return cleaned or FALLBACK_FILENAME


def generate_manual_id() -> str:
    return uuid.uuid4().hex


def parse_year(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    match = LEADING_NUMBER_RE.match(str(value))
    if not match:
        return None
    return int(match.group(1))


def split_tags(value: str | Iterable[str] | None) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        parts: list[Any] = value.split(",")
    elif isinstance(value, Iterable) and not isinstance(value, Mapping):
        parts = list(value)
    else:
        return []
    return [str(part).strip() for part in parts if str(part).strip()]


def ensure_list(values: Iterable[str]) -> list[str]:
    seen = set()
    result: list[str] = []
    for value in values:
        cleaned = value.strip()
        if not cleaned:
            continue
        if cleaned not in seen:
            seen.add(cleaned)
            result.append(cleaned)
    return result


@dataclass
class YearRange:
    """Outcome of parsing a ``YYYY-YYYY`` year range."""

    is_valid: bool
    original_range: str
    start_year: int | None = None
    end_year: int | None = None
    years: list[int] = field(default_factory=list)
    error: str | None = None

    def to_data(self) -> dict[str, Any]:
        return {
            "startYear": self.start_year,
            "endYear": self.end_year,
            "originalRange": self.original_range,
        }


def parse_year_range(value: str) -> YearRange:
    match = YEAR_RANGE_RE.match(value or "")
    if not match:
        return YearRange(is_valid=False, original_range=value, error="format")
    start_year, end_year = int(match.group(1)), int(match.group(2))
    if not (MIN_YEAR <= start_year <= MAX_YEAR and MIN_YEAR <= end_year <= MAX_YEAR):
        return YearRange(
            is_valid=False,
            original_range=value,
            start_year=start_year,
            end_year=end_year,
            error="bounds",
        )
    if start_year > end_year:
        return YearRange(
            is_valid=False,
            original_range=value,
            start_year=start_year,
            end_year=end_year,
            error="order",
        )
    return YearRange(
        is_valid=True,
        original_range=value.strip(),
        start_year=start_year,
        end_year=end_year,
        years=list(range(start_year, end_year + 1)),
    )


def covered_years(year: int | None, year_range: YearRange | None) -> list[int]:
    years = list(year_range.years) if year_range and year_range.is_valid else []
    if year is not None and year not in years:
        years.append(year)
    return sorted(years)


def covered_list(value: Any) -> list[int]:
    if not isinstance(value, (list, tuple)):
        return []
    years = (parse_year(item) for item in value)
    return sorted({year for year in years if year is not None})


@dataclass
class MetadataRecord:
    """Typed view of a sidecar JSON document.

    Keys this class does not know about are kept in ``extra`` so a load/save
    cycle never drops fields written by older versions.
    """

    title: str
    id: str | None = None
    brand: str = ""
    model: str = ""
    year: int | None = None
    year_range: str | None = None
    year_range_data: dict[str, Any] | None = None
    all_covered_years: list[int] = field(default_factory=list)
    manual_type: str = ""
    bike_type: list[str] = field(default_factory=list)
    language: str = ""
    tags: list[str] = field(default_factory=list)
    description: str = ""
    pdf_signature_added: bool = False
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> MetadataRecord:
        extra = {key: value for key, value in data.items() if key not in RECORD_FIELDS}
        return cls(
            title=str(data.get("title") or ""),
            id=data.get("id") or None,
            brand=str(data.get("brand") or ""),
            model=str(data.get("model") or ""),
            year=parse_year(data.get("year")),
            year_range=data.get("yearRange") or None,
            year_range_data=data.get("yearRangeData") or None,
            all_covered_years=covered_list(data.get("allCoveredYears")),
            manual_type=str(data.get("manualType") or ""),
            bike_type=ensure_list(split_tags(data.get("bikeType"))),
            language=str(data.get("language") or ""),
            tags=split_tags(data.get("tags")),
            description=str(data.get("description") or ""),
            pdf_signature_added=bool(data.get("pdfSignatureAdded", False)),
            extra=extra,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = dict(self.extra)
        data.update(
            {
                "id": self.id,
                "title": self.title,
                "brand": self.brand,
                "model": self.model,
                "year": self.year,
                "yearRange": self.year_range,
                "yearRangeData": self.year_range_data,
                "allCoveredYears": list(self.all_covered_years),
                "manualType": self.manual_type,
                "bikeType": list(self.bike_type),
                "language": self.language,
                "tags": list(self.tags),
                "description": self.description,
                "pdfSignatureAdded": self.pdf_signature_added,
            }
        )
        return data
