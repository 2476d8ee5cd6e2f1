"""Persistent store of brand/model/type patterns learned from saved manuals."""
from __future__ import annotations

import copy
import json
import logging
import os
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any, Protocol, cast

from .normalize import filename_key, now_iso, tokenize_filename

logger = logging.getLogger(__name__)


class InvalidSuggestionType(ValueError):
    def __init__(self, field: object) -> None:
        super().__init__(f"invalid suggestion type: {field!r}")
        self.field = field


class SuggestionField(str, Enum):
    BRAND = "brand"
    MODEL = "model"
    MANUAL_TYPE = "manualType"

    @classmethod
    def coerce(cls, value: SuggestionField | str) -> SuggestionField:
        try:
            return cls(value)
        except ValueError:
            raise InvalidSuggestionType(value) from None


PATTERN_KEYS: dict[SuggestionField, str] = {
    SuggestionField.BRAND: "brandPatterns",
    SuggestionField.MODEL: "modelPatterns",
    SuggestionField.MANUAL_TYPE: "typePatterns",
}


def ensure_store() -> dict[str, Any]:
    return {
        "brandPatterns": {},
        "modelPatterns": {},
        "typePatterns": {},
        "filenameAssociations": {},
        "completionStats": {"totalSaved": 0, "lastSaved": None},
    }


class StoreBackend(Protocol):
    def load(self) -> dict[str, Any]: ...

    def save(self, data: Mapping[str, Any]) -> None: ...


class JsonFileBackend:
    """Keeps the whole store in one JSON document."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> dict[str, Any]:
        if not self.path.exists():
            return ensure_store()
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.warning("Ignoring unreadable learning store %s: %s", self.path, exc)
            return ensure_store()
        if not isinstance(data, dict):
            logger.warning("Ignoring learning store %s: not a JSON object", self.path)
            return ensure_store()
        return data

    def save(self, data: Mapping[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2, sort_keys=True, ensure_ascii=False)
        os.replace(tmp_path, self.path)


class MemoryBackend:
    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self.data: dict[str, Any] = copy.deepcopy(dict(data)) if data else ensure_store()
        self.saves = 0

    def load(self) -> dict[str, Any]:
        return copy.deepcopy(self.data)

    def save(self, data: Mapping[str, Any]) -> None:
        self.data = copy.deepcopy(dict(data))
        self.saves += 1


class LearningStore:
    """Learns which filename tokens go with which brand, model and manual type.

    Every mutation is written through to the backend. ``max_associated_words``
    bounds the per-pattern word table; ``None`` leaves it unbounded.
    """

    def __init__(
        self,
        backend: StoreBackend | None = None,
        *,
        max_associated_words: int | None = None,
    ) -> None:
        self.backend: StoreBackend = backend or MemoryBackend()
        self.max_associated_words = max_associated_words
        self.data = self.backend.load()
        for key, value in ensure_store().items():
            self.data.setdefault(key, value)

    def _persist(self) -> None:
        self.backend.save(self.data)

    def _pattern_map(self, field: SuggestionField) -> dict[str, dict[str, Any]]:
        return cast(dict[str, dict[str, Any]], self.data.setdefault(PATTERN_KEYS[field], {}))

    def _learn(
        self, field: SuggestionField, value: str, tokens: list[str]
    ) -> dict[str, Any]:
        patterns = self._pattern_map(field)
        entry = patterns.setdefault(
            value.lower(), {"count": 0, "originalValue": value, "associatedWords": {}}
        )
        entry["count"] = int(entry.get("count", 0)) + 1
        entry["originalValue"] = value
        words = cast(dict[str, int], entry.setdefault("associatedWords", {}))
        for token in tokens:
            words[token] = words.get(token, 0) + 1
        if self.max_associated_words is not None and len(words) > self.max_associated_words:
            kept = sorted(words.items(), key=lambda item: item[1], reverse=True)
            entry["associatedWords"] = dict(kept[: self.max_associated_words])
        return entry

    def record(self, filename: str, metadata: Mapping[str, Any]) -> None:
        tokens = tokenize_filename(filename)
        brand = str(metadata.get("brand") or "").strip()
        model = str(metadata.get("model") or "").strip()
        manual_type = str(metadata.get("manualType") or "").strip()
        if brand:
            self._learn(SuggestionField.BRAND, brand, tokens)
        if model:
            entry = self._learn(SuggestionField.MODEL, model, tokens)
            if brand:
                brands = cast(dict[str, int], entry.setdefault("brands", {}))
                brands[brand.lower()] = brands.get(brand.lower(), 0) + 1
        if manual_type:
            self._learn(SuggestionField.MANUAL_TYPE, manual_type, tokens)
        timestamp = now_iso()
        associations = cast(dict[str, Any], self.data.setdefault("filenameAssociations", {}))
        associations[filename_key(filename)] = {
            "brand": brand,
            "model": model,
            "manualType": manual_type,
            "year": metadata.get("year"),
            "lastUsed": timestamp,
        }
        stats = cast(dict[str, Any], self.data.setdefault("completionStats", {}))
        stats["totalSaved"] = int(stats.get("totalSaved", 0)) + 1
        stats["lastSaved"] = timestamp
        self._persist()
        logger.debug("Learned from %s (%d tokens)", filename, len(tokens))

    def forget(self, field: SuggestionField | str, value: str) -> bool:
        target = SuggestionField.coerce(field)
        removed = self._pattern_map(target).pop(value.lower(), None) is not None
        if removed:
            self._persist()
            logger.info("Forgot %s pattern %r", target.value, value)
        return removed

    def reset_all(self, *, confirm: bool = False) -> None:
        """Erase every learned pattern, association and counter.

        Irreversible: callers must pass ``confirm=True``.
        """
        if not confirm:
            raise ValueError("reset_all erases all learned data; pass confirm=True")
        self.data = ensure_store()
        self._persist()
        logger.warning("Learning store reset")

    def patterns(self, field: SuggestionField | str) -> dict[str, dict[str, Any]]:
        return copy.deepcopy(self._pattern_map(SuggestionField.coerce(field)))

    def association_for(self, filename: str) -> dict[str, Any] | None:
        associations = cast(dict[str, Any], self.data.get("filenameAssociations", {}))
        entry = associations.get(filename_key(filename))
        return dict(entry) if entry else None

    def stats(self) -> dict[str, Any]:
        completion = cast(dict[str, Any], self.data.get("completionStats", {}))
        return {
            "brandPatterns": len(self.data.get("brandPatterns", {})),
            "modelPatterns": len(self.data.get("modelPatterns", {})),
            "typePatterns": len(self.data.get("typePatterns", {})),
            "filenameAssociations": len(self.data.get("filenameAssociations", {})),
            "totalSaved": int(completion.get("totalSaved", 0)),
            "lastSaved": completion.get("lastSaved"),
        }


def resolve_home(path: str | Path | None = None) -> Path:
    if path:
        return Path(path).expanduser().resolve()
    env_value = os.environ.get("MANUALS_HOME")
    if env_value:
        return Path(env_value).expanduser().resolve()
    return Path.home() / ".manual_library"
