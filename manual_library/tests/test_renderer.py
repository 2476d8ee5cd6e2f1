from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from manual_library.catalog.renderer import format_years, render_catalog
from manual_library.catalog.scanner import ManualRecord


def make_record(path: Path, metadata: dict | None) -> ManualRecord:
    return ManualRecord(
        path=path, size=1, last_modified=datetime(2024, 1, 1, tzinfo=UTC), metadata=metadata
    )


def test_render_catalog(tmp_path: Path) -> None:
    manuals = [
        make_record(
            tmp_path / "Honda_CBR.pdf",
            {
                "title": "Honda CBR | Service",
                "brand": "Honda",
                "model": "CBR600",
                "yearRange": "1998-2000",
                "manualType": "service",
                "tags": ["engine", "wiring"],
            },
        ),
        make_record(tmp_path / "scan001.pdf", None),
    ]
    output = tmp_path / "out" / "CATALOG.md"

    content = render_catalog(
        manuals,
        output,
        stats={"brandPatterns": 1, "totalSaved": 3, "lastSaved": None},
    )

    assert output.read_text(encoding="utf-8") == content
    assert "**Total manuals:** 2" in content
    assert "**By type:** service (1), unknown (1)" in content
    assert "**Top brands:** Honda (1)" in content
    assert (
        "| Honda CBR \\| Service | Honda | CBR600 | 1998-2000 | service | engine, wiring"
        " | Honda_CBR.pdf |" in content
    )
    assert "| scan001 |  |  |  |  |  | scan001.pdf |" in content
    assert "- Saved manuals: 3 (last: never)" in content


def test_render_without_stats_omits_section(tmp_path: Path) -> None:
    content = render_catalog([], tmp_path / "CATALOG.md")
    assert "## Suggestions" not in content
    assert "**Total manuals:** 0" in content


def test_format_years() -> None:
    assert format_years({"yearRange": "1998-2000", "year": 1999}) == "1998-2000"
    assert format_years({"year": 2005}) == "2005"
    assert format_years({}) == ""
