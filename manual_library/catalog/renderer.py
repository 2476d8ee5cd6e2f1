"""Rendering utilities for the catalog summary."""
from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from .scanner import ManualRecord


def render_catalog(
    manuals: Iterable[ManualRecord],
    output_path: Path,
    stats: Mapping[str, Any] | None = None,
) -> str:
    records = list(manuals)
    type_counts: Counter[str] = Counter()
    brand_counts: Counter[str] = Counter()
    for record in records:
        metadata = record.metadata or {}
        type_counts[str(metadata.get("manualType") or "unknown")] += 1
        if metadata.get("brand"):
            brand_counts[str(metadata["brand"])] += 1
    now = datetime.now(UTC).replace(microsecond=0).isoformat()
    lines = ["# Manual Library", "", f"_Last build: {now}_", ""]
    lines.append(f"**Total manuals:** {len(records)}")
    lines.append("")
    if type_counts:
        type_summary = ", ".join(
            f"{typ} ({count})" for typ, count in sorted(type_counts.items())
        )
        lines.append(f"**By type:** {type_summary}")
        lines.append("")
    if brand_counts:
        brand_text = ", ".join(f"{brand} ({count})" for brand, count in brand_counts.most_common(20))
        lines.append("**Top brands:** " + brand_text)
        lines.append("")
    lines.append("## Manuals")
    lines.append("")
    lines.append("| Title | Brand | Model | Years | Type | Tags | File |")
    lines.append("| --- | --- | --- | --- | --- | --- | --- |")
    for record in sorted(records, key=lambda item: display_title(item).lower()):
        lines.append(format_manual_row(record))
    lines.append("")
    if stats:
        lines.append("## Suggestions")
        lines.append("")
        lines.append(
            f"- Patterns: {stats.get('brandPatterns', 0)} brands, "
            f"{stats.get('modelPatterns', 0)} models, {stats.get('typePatterns', 0)} types"
        )
        lines.append(f"- Remembered filenames: {stats.get('filenameAssociations', 0)}")
        lines.append(
            f"- Saved manuals: {stats.get('totalSaved', 0)} "
            f"(last: {stats.get('lastSaved') or 'never'})"
        )
        lines.append("")
    output_path.parent.mkdir(parents=True, exist_ok=True)
    content = "\n".join(lines)
    output_path.write_text(content, encoding="utf-8")
    return content


def display_title(record: ManualRecord) -> str:
    metadata = record.metadata or {}
    return str(metadata.get("title") or record.path.stem)


def format_years(metadata: Mapping[str, Any]) -> str:
    if metadata.get("yearRange"):
        return str(metadata["yearRange"])
    if metadata.get("year"):
        return str(metadata["year"])
    return ""


def format_manual_row(record: ManualRecord) -> str:
    metadata = record.metadata or {}
    tags = format_list(metadata.get("tags", []) or [], separator=", ")
    return (
        "| "
        f"{escape_cell(display_title(record))} | {escape_cell(str(metadata.get('brand') or ''))} | "
        f"{escape_cell(str(metadata.get('model') or ''))} | {escape_cell(format_years(metadata))} | "
        f"{escape_cell(str(metadata.get('manualType') or ''))} | {tags} | "
        f"{escape_cell(record.filename)} |"
    )


def escape_cell(value: str) -> str:
    return value.replace("|", "\\|")


def format_list(values: Iterable[Any], limit: int | None = None, separator: str = "<br>") -> str:
    results = []
    for index, value in enumerate(values):
        if limit is not None and index >= limit:
            break
        if not value:
            continue
        results.append(escape_cell(str(value)))
    return separator.join(results)
