"""File moves and renames that survive cross-device targets."""
from __future__ import annotations

import errno
import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

MAX_SUFFIX_ATTEMPTS = 100


@dataclass
class RenameResult:
    ok: bool
    final_path: Path | None = None
    error: str | None = None


def move_file(src: str | Path, dst: str | Path) -> None:
    """Move ``src`` to ``dst``, copying then deleting when the rename crosses devices."""
    source, target = Path(src), Path(dst)
    try:
        os.replace(source, target)
        return
    except OSError as exc:
        if exc.errno != errno.EXDEV:
            raise
    logger.debug("Cross-device move %s -> %s, copying instead", source, target)
    shutil.copy2(source, target)
    if not target.exists():
        raise OSError(errno.EIO, f"copy of {source} did not produce {target}")
    source.unlink()


def available_path(path: str | Path) -> Path | None:
    """Return ``path`` or the first free ``name_N.ext`` sibling, ``None`` when all are taken."""
    candidate = Path(path)
    if not candidate.exists():
        return candidate
    for attempt in range(1, MAX_SUFFIX_ATTEMPTS + 1):
        alternative = candidate.with_name(f"{candidate.stem}_{attempt}{candidate.suffix}")
        if not alternative.exists():
            return alternative
    return None


def rename_file(old_path: str | Path, new_path: str | Path) -> RenameResult:
    source, target = Path(old_path), Path(new_path)
    if source == target:
        return RenameResult(True, source)
    final_path = available_path(target)
    if final_path is None:
        return RenameResult(
            False,
            error=f"no free name for {target.name} after {MAX_SUFFIX_ATTEMPTS} attempts",
        )
    if final_path != target:
        logger.info("%s already exists, using %s", target.name, final_path.name)
    try:
        move_file(source, final_path)
    except OSError as exc:
        logger.warning("Renaming %s to %s failed: %s", source, final_path, exc)
        return RenameResult(False, error=str(exc))
    return RenameResult(True, final_path)
