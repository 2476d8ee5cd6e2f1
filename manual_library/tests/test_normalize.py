from __future__ import annotations

from manual_library.catalog import normalize
from manual_library.catalog.normalize import MetadataRecord


def test_parse_year_range_expands_years() -> None:
    parsed = normalize.parse_year_range("1998-2005")
    assert parsed.is_valid
    assert parsed.start_year == 1998
    assert parsed.end_year == 2005
    assert parsed.years == list(range(1998, 2006))
    assert len(parsed.years) == 8
    assert parsed.to_data() == {
        "startYear": 1998,
        "endYear": 2005,
        "originalRange": "1998-2005",
    }


def test_parse_year_range_rejects_bad_input() -> None:
    assert not normalize.parse_year_range("2005-1998").is_valid
    assert normalize.parse_year_range("2005-1998").error == "order"
    assert not normalize.parse_year_range("abcd-efgh").is_valid
    assert normalize.parse_year_range("abcd-efgh").error == "format"
    assert normalize.parse_year_range("1850-1900").error == "bounds"
    assert not normalize.parse_year_range("1998").is_valid


def test_parse_year_range_accepts_dashes() -> None:
    assert normalize.parse_year_range("1998–2000").years == [1998, 1999, 2000]
    assert normalize.parse_year_range("1998 — 1999").years == [1998, 1999]


def test_covered_years_union_is_sorted() -> None:
    parsed = normalize.parse_year_range("1998-2000")
    assert normalize.covered_years(2010, parsed) == [1998, 1999, 2000, 2010]
    assert normalize.covered_years(1999, parsed) == [1998, 1999, 2000]
    assert normalize.covered_years(1995, parsed) == [1995, 1998, 1999, 2000]
    assert normalize.covered_years(2001, None) == [2001]
    assert normalize.covered_years(None, None) == []


def test_tokenize_filename_drops_short_tokens() -> None:
    assert normalize.tokenize_filename("Honda_CBR600_2005_Service.pdf") == [
        "honda",
        "cbr600",
        "2005",
        "service",
        "pdf",
    ]
    assert normalize.tokenize_filename("Yamaha R1 -- FZ.pdf") == ["yamaha", "pdf"]


def test_filename_key_truncates() -> None:
    name = "A" * 60 + ".pdf"
    assert normalize.filename_key(name) == "a" * 50


def test_sanitize_filename() -> None:
    assert normalize.sanitize_filename("Honda CBR: 600/RR") == "Honda_CBR_600_RR"
    assert normalize.sanitize_filename('a*b?c"d<e>f|g\\h') == "a_b_c_d_e_f_g_h"
    assert normalize.sanitize_filename("???") == "Untitled_Manual"


def test_parse_year_and_tags() -> None:
    assert normalize.parse_year("2005") == 2005
    assert normalize.parse_year("") is None
    assert normalize.parse_year("n/a") is None
    assert normalize.split_tags(" engine, , wiring ,carb ") == ["engine", "wiring", "carb"]
    assert normalize.split_tags(["a", " b "]) == ["a", "b"]


def test_metadata_record_keeps_unknown_fields() -> None:
    data = {
        "id": "abc",
        "title": "Honda CBR",
        "year": "2005",
        "tags": "one, two",
        "revision": "B",
        "pdfSignatureAdded": True,
    }
    record = MetadataRecord.from_dict(data)
    assert record.year == 2005
    assert record.tags == ["one", "two"]
    assert record.extra == {"revision": "B"}
    dumped = record.to_dict()
    assert dumped["revision"] == "B"
    assert dumped["pdfSignatureAdded"] is True
    assert dumped["id"] == "abc"


def test_year_parsing_accepts_ascii_digits_only() -> None:
    parsed = normalize.parse_year_range("١٩٩٨-٢٠٠٥")
    assert not parsed.is_valid
    assert parsed.error == "format"
    assert normalize.parse_year("٢٠٠٥") is None
    assert normalize.parse_year(" 2005 ") == 2005


def test_metadata_record_tolerates_malformed_values() -> None:
    record = MetadataRecord.from_dict(
        {"title": "x", "bikeType": "Sport", "allCoveredYears": ["n/a", 2001, "1999"], "tags": 7}
    )
    assert record.bike_type == ["Sport"]
    assert record.all_covered_years == [1999, 2001]
    assert record.tags == []
    assert record.to_dict()["pdfSignatureAdded"] is False
