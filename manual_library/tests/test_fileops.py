from __future__ import annotations

import errno
import os
from pathlib import Path

import pytest

from manual_library.catalog import fileops


def test_rename_file_moves(tmp_path: Path) -> None:
    source = tmp_path / "old.pdf"
    source.write_bytes(b"%PDF")
    result = fileops.rename_file(source, tmp_path / "new.pdf")
    assert result.ok
    assert result.final_path == tmp_path / "new.pdf"
    assert not source.exists()
    assert (tmp_path / "new.pdf").read_bytes() == b"%PDF"


def test_rename_file_suffixes_on_collision(tmp_path: Path) -> None:
    (tmp_path / "name.pdf").write_bytes(b"taken")
    (tmp_path / "name_1.pdf").write_bytes(b"taken")
    source = tmp_path / "old.pdf"
    source.write_bytes(b"mine")
    result = fileops.rename_file(source, tmp_path / "name.pdf")
    assert result.ok
    assert result.final_path == tmp_path / "name_2.pdf"
    assert (tmp_path / "name.pdf").read_bytes() == b"taken"
    assert (tmp_path / "name_2.pdf").read_bytes() == b"mine"


def test_rename_file_gives_up_after_attempts(tmp_path: Path) -> None:
    (tmp_path / "name.pdf").write_bytes(b"")
    for attempt in range(1, fileops.MAX_SUFFIX_ATTEMPTS + 1):
        (tmp_path / f"name_{attempt}.pdf").write_bytes(b"")
    source = tmp_path / "old.pdf"
    source.write_bytes(b"mine")
    result = fileops.rename_file(source, tmp_path / "name.pdf")
    assert not result.ok
    assert result.error
    assert source.exists()


def test_rename_to_same_path_is_noop(tmp_path: Path) -> None:
    source = tmp_path / "same.pdf"
    source.write_bytes(b"x")
    result = fileops.rename_file(source, source)
    assert result.ok
    assert result.final_path == source
    assert source.exists()


def test_move_file_copies_across_devices(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    def cross_device(src: object, dst: object) -> None:
        raise OSError(errno.EXDEV, "Invalid cross-device link")

    monkeypatch.setattr(fileops.os, "replace", cross_device)
    source = tmp_path / "a.pdf"
    source.write_bytes(b"payload")
    fileops.move_file(source, tmp_path / "b.pdf")
    assert not source.exists()
    assert (tmp_path / "b.pdf").read_bytes() == b"payload"


def test_move_file_propagates_other_errors(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    def denied(src: object, dst: object) -> None:
        raise PermissionError(errno.EACCES, os.strerror(errno.EACCES))

    monkeypatch.setattr(fileops.os, "replace", denied)
    source = tmp_path / "a.pdf"
    source.write_bytes(b"payload")
    with pytest.raises(PermissionError):
        fileops.move_file(source, tmp_path / "b.pdf")
    assert source.exists()
