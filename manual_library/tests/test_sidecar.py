from __future__ import annotations

import json
from pathlib import Path

from manual_library.catalog.sidecar import read_sidecar, sidecar_path, write_sidecar


def test_sidecar_path_replaces_pdf_extension() -> None:
    assert sidecar_path(Path("/m/Honda_CBR.pdf")) == Path("/m/Honda_CBR.json")
    assert sidecar_path(Path("/m/Honda_CBR.PDF")) == Path("/m/Honda_CBR.json")


def test_missing_and_corrupt_sidecars_are_distinguished(tmp_path: Path) -> None:
    missing = read_sidecar(tmp_path / "absent.json")
    assert missing.status == "not_found"
    assert not missing.ok

    corrupt = tmp_path / "corrupt.json"
    corrupt.write_text("{not json", encoding="utf-8")
    assert read_sidecar(corrupt).status == "parse_error"

    listing = tmp_path / "listing.json"
    listing.write_text("[1, 2]", encoding="utf-8")
    assert read_sidecar(listing).status == "parse_error"


def test_write_then_read_sidecar(tmp_path: Path) -> None:
    target = tmp_path / "Honda_CBR.json"
    written = write_sidecar(target, {"title": "Honda CBR", "brand": "Hönda"})
    assert written.ok
    result = read_sidecar(target)
    assert result.ok
    assert result.data == {"title": "Honda CBR", "brand": "Hönda"}
    assert "Hönda" in target.read_text(encoding="utf-8")
    assert list(tmp_path.iterdir()) == [target]


def test_write_sidecar_reports_failure(tmp_path: Path) -> None:
    written = write_sidecar(tmp_path / "missing_dir" / "x.json", {"title": "x"})
    assert not written.ok
    assert written.error


def test_write_sidecar_indents(tmp_path: Path) -> None:
    target = tmp_path / "x.json"
    write_sidecar(target, {"title": "x"})
    assert target.read_text(encoding="utf-8") == json.dumps({"title": "x"}, indent=2)
