"""Sidecar JSON persistence for manual metadata."""
from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class SidecarRead:
    """Result of reading a sidecar file."""

    status: str
    data: dict[str, Any] | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"


@dataclass
class SidecarWrite:
    ok: bool
    error: str | None = None


def sidecar_path(pdf_path: str | Path) -> Path:
    path = Path(pdf_path)
    if path.suffix.lower() == ".pdf":
        return path.with_suffix(".json")
    return path.with_name(path.name + ".json")


def read_sidecar(path: str | Path) -> SidecarRead:
    json_path = Path(path)
    try:
        with json_path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
    except FileNotFoundError:
        return SidecarRead("not_found", error=f"{json_path} does not exist")
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        return SidecarRead("parse_error", error=str(exc))
    except OSError as exc:
        return SidecarRead("io_error", error=str(exc))
    if not isinstance(data, dict):
        return SidecarRead("parse_error", error="sidecar is not a JSON object")
    return SidecarRead("ok", data=data)


def write_sidecar(path: str | Path, data: Mapping[str, Any]) -> SidecarWrite:
    json_path = Path(path)
    tmp_name: str | None = None
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=json_path.parent,
            prefix=f".{json_path.stem}.",
            suffix=".tmp",
            delete=False,
        ) as fh:
            tmp_name = fh.name
            json.dump(dict(data), fh, indent=2, ensure_ascii=False)
        os.replace(tmp_name, json_path)
    except (OSError, TypeError, ValueError) as exc:
        logger.debug("Writing %s failed: %s", json_path, exc)
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        return SidecarWrite(False, str(exc))
    return SidecarWrite(True)
