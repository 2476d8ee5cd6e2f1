"""Ranking brand, model and type completions for a filename."""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .learning import LearningStore, SuggestionField
from .normalize import tokenize_filename

EXACT_MATCH_CONFIDENCE = 0.9
LEARNED_CONFIDENCE_CAP = 0.8
MAX_CANDIDATES = 3
STRONG_CANDIDATE = 0.5
HIGH_CONFIDENCE = 0.7
LOW_CONFIDENCE = 0.3


@dataclass
class Candidate:
    value: str
    confidence: float
    reason: str

    def to_dict(self) -> dict[str, object]:
        return {"value": self.value, "confidence": self.confidence, "reason": self.reason}


@dataclass
class Suggestions:
    brand: list[Candidate] = field(default_factory=list)
    model: list[Candidate] = field(default_factory=list)
    manual_type: list[Candidate] = field(default_factory=list)
    confidence: float = LOW_CONFIDENCE
    exact_match: bool = False

    def to_dict(self) -> dict[str, object]:
        return {
            "brand": [candidate.to_dict() for candidate in self.brand],
            "model": [candidate.to_dict() for candidate in self.model],
            "manualType": [candidate.to_dict() for candidate in self.manual_type],
            "confidence": self.confidence,
        }


def score_pattern(tokens: list[str], pattern: Mapping[str, Any]) -> float:
    count = int(pattern.get("count", 0))
    words = pattern.get("associatedWords", {}) or {}
    if count <= 0 or not tokens:
        return 0.0
    matched = [token for token in tokens if token in words]
    if not matched:
        return 0.0
    score = sum(words[token] / count for token in matched)
    return score * (len(matched) / len(tokens))


def rank_field(
    tokens: list[str], patterns: Mapping[str, Mapping[str, Any]]
) -> list[Candidate]:
    scored: list[tuple[float, Mapping[str, Any]]] = []
    for key, pattern in list(patterns.items()):
        score = score_pattern(tokens, pattern)
        if score > 0:
            scored.append((score, {"value": pattern.get("originalValue") or key, **pattern}))
    scored.sort(key=lambda item: item[0], reverse=True)
    return [
        Candidate(
            value=str(pattern["value"]),
            confidence=min(score, LEARNED_CONFIDENCE_CAP),
            reason=f"learned from {int(pattern.get('count', 0))} files",
        )
        for score, pattern in scored[:MAX_CANDIDATES]
    ]


def exact_suggestions(association: Mapping[str, Any]) -> Suggestions:
    def single(value: Any) -> list[Candidate]:
        if not value:
            return []
        return [Candidate(str(value), EXACT_MATCH_CONFIDENCE, "exact filename match")]

    return Suggestions(
        brand=single(association.get("brand")),
        model=single(association.get("model")),
        manual_type=single(association.get("manualType")),
        confidence=EXACT_MATCH_CONFIDENCE,
        exact_match=True,
    )


def suggest(store: LearningStore, filename: str) -> Suggestions:
    association = store.association_for(filename)
    if association:
        return exact_suggestions(association)
    tokens = tokenize_filename(filename)
    result = Suggestions(
        brand=rank_field(tokens, store.patterns(SuggestionField.BRAND)),
        model=rank_field(tokens, store.patterns(SuggestionField.MODEL)),
        manual_type=rank_field(tokens, store.patterns(SuggestionField.MANUAL_TYPE)),
    )
    strongest = [
        candidate.confidence
        for candidate in (*result.brand, *result.model, *result.manual_type)
    ]
    result.confidence = (
        HIGH_CONFIDENCE if any(value > STRONG_CANDIDATE for value in strongest) else LOW_CONFIDENCE
    )
    return result
