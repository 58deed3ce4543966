"""Unit tests for path canonicalization and reference resolution."""

from __future__ import annotations

import os
from pathlib import Path

from cad_doctree.core.paths import (
    canonical,
    is_within,
    iter_files,
    kind_for_path,
    make_reference,
    path_key,
    resolve_reference,
)
from cad_doctree.models import DocumentKind


def test_kind_for_path_ignores_extension_case() -> None:
    assert kind_for_path("Frame.IAM") == DocumentKind.ASSEMBLY
    assert kind_for_path("bracket.ipt") == DocumentKind.PART
    assert kind_for_path("sheet.dwg") == DocumentKind.DRAWING
    assert kind_for_path("notes.txt") is None


def test_resolve_relative_reference(tmp_path: Path) -> None:
    assert resolve_reference(tmp_path / "asm", "../parts/P1.ipt") == canonical(tmp_path / "parts" / "P1.ipt")


def test_resolve_backslash_reference(tmp_path: Path) -> None:
    assert resolve_reference(tmp_path, "sub\\P1.ipt") == canonical(tmp_path / "sub" / "P1.ipt")


def test_make_reference_keeps_relative_style(tmp_path: Path) -> None:
    ref = make_reference(tmp_path / "A.iam", tmp_path / "sub" / "NEW-P1.ipt", like="P1.ipt")
    assert ref == os.path.join("sub", "NEW-P1.ipt")


def test_make_reference_keeps_absolute_style(tmp_path: Path) -> None:
    old = str(tmp_path / "P1.ipt")
    ref = make_reference(tmp_path / "A.iam", tmp_path / "NEW-P1.ipt", like=old)
    assert ref == str(canonical(tmp_path / "NEW-P1.ipt"))


def test_path_key_folds_case_only_when_insensitive(tmp_path: Path) -> None:
    assert path_key(tmp_path / "X.ipt", False) == path_key(tmp_path / "x.ipt", False)
    assert path_key(tmp_path / "X.ipt", True) != path_key(tmp_path / "x.ipt", True)


def test_is_within_requires_separator_boundary(tmp_path: Path) -> None:
    assert is_within(tmp_path / "models" / "A.iam", tmp_path / "models", True)
    assert not is_within(tmp_path / "models2" / "A.iam", tmp_path / "models", True)


def test_iter_files_skips_excluded_folders(tmp_path: Path) -> None:
    (tmp_path / "OldVersions").mkdir()
    (tmp_path / "OldVersions" / "A.iam").write_text("{}")
    (tmp_path / "B.iam").write_text("{}")
    (tmp_path / "B.txt").write_text("")

    found = list(iter_files(tmp_path, {".iam"}, excluded_dirs=["oldversions"]))

    assert found == [canonical(tmp_path / "B.iam")]
