from __future__ import annotations

import pytest

from manual_library.catalog.learning import LearningStore
from manual_library.catalog.suggest import rank_field, score_pattern, suggest

HONDA = {"brand": "Honda", "model": "CBR600", "manualType": "Service", "year": 2005}


def test_learned_suggestion_for_similar_filename(store: LearningStore) -> None:
    store.record("Honda_CBR600_2005_Service.pdf", HONDA)

    result = suggest(store, "Honda_CBR600_2007_Service.pdf")

    assert not result.exact_match
    assert [candidate.value for candidate in result.brand] == ["Honda"]
    top = result.brand[0]
    assert top.confidence == pytest.approx(0.8)
    assert top.reason == "learned from 1 files"
    assert result.model[0].value == "CBR600"
    assert result.manual_type[0].value == "Service"
    assert result.confidence == 0.7


def test_exact_filename_match(store: LearningStore) -> None:
    store.record("Honda_CBR600_2005_Service.pdf", HONDA)

    result = suggest(store, "honda_cbr600_2005_service.pdf")

    assert result.exact_match
    assert result.confidence == 0.9
    assert [candidate.to_dict() for candidate in result.brand] == [
        {"value": "Honda", "confidence": 0.9, "reason": "exact filename match"}
    ]
    assert result.model[0].value == "CBR600"


def test_exact_match_omits_empty_fields(store: LearningStore) -> None:
    store.record("Honda_Unknown.pdf", {"brand": "Honda"})
    result = suggest(store, "Honda_Unknown.pdf")
    assert result.exact_match
    assert result.model == []
    assert result.manual_type == []


def test_forgotten_brand_is_not_suggested(store: LearningStore) -> None:
    store.record("Honda_CBR600_2005_Service.pdf", HONDA)
    store.forget("brand", "Honda")

    result = suggest(store, "Honda_CBR600_2007_Service.pdf")

    assert result.brand == []
    assert result.model[0].value == "CBR600"


def test_coverage_ranks_candidates(store: LearningStore) -> None:
    store.record("Yamaha_R1_Service.pdf", {"brand": "Yamaha"})
    store.record("Ducati_Monster_Owners.pdf", {"brand": "Ducati"})

    result = suggest(store, "Yamaha_FZ6_Workshop.pdf")

    assert [candidate.value for candidate in result.brand] == ["Yamaha", "Ducati"]
    assert result.brand[0].confidence == pytest.approx(0.8)
    assert result.brand[1].confidence == pytest.approx(0.25)


def test_weak_matches_keep_low_confidence(store: LearningStore) -> None:
    store.record("Honda_CBR600_2005_Service.pdf", HONDA)

    result = suggest(store, "Kawasaki_Z900_Parts_List.pdf")

    assert result.brand[0].confidence == pytest.approx(0.2)
    assert result.confidence == 0.3


def test_empty_store_suggests_nothing(store: LearningStore) -> None:
    result = suggest(store, "Honda_CBR600.pdf")
    assert result.to_dict() == {"brand": [], "model": [], "manualType": [], "confidence": 0.3}


def test_rank_field_keeps_top_three() -> None:
    tokens = ["alpha", "beta", "gamma"]
    patterns = {
        name: {"count": 1, "originalValue": name.title(), "associatedWords": words}
        for name, words in {
            "one": {"alpha": 1},
            "two": {"alpha": 1, "beta": 1},
            "three": {"alpha": 1, "beta": 1, "gamma": 1},
            "four": {"gamma": 1},
        }.items()
    }
    ranked = rank_field(tokens, patterns)
    assert [candidate.value for candidate in ranked][0] == "Three"
    assert len(ranked) == 3


def test_score_pattern_without_tokens() -> None:
    assert score_pattern([], {"count": 1, "associatedWords": {"a": 1}}) == 0.0
    assert score_pattern(["abc"], {"count": 0, "associatedWords": {"abc": 1}}) == 0.0
