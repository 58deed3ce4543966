from __future__ import annotations

from pathlib import Path

from cad_doctree.core.cleanup import delete_files
from cad_doctree.errors import ReasonCode


def test_deletes_exactly_the_listed_files(tmp_path: Path) -> None:
    keep = tmp_path / "keep.ipt"
    keep.write_text("k")
    paths = []
    for name in ("a.ipt", "b.iam"):
        (tmp_path / name).write_text("x")
        paths.append(tmp_path / name)
    paths.append(tmp_path / "missing.ipt")

    report = delete_files(paths)

    assert report.paths("deleted") == [str(tmp_path / "a.ipt"), str(tmp_path / "b.iam")]
    assert [(e.path, e.reason) for e in report.failed_deletes] == [
        (str(tmp_path / "missing.ipt"), ReasonCode.NOT_FOUND)
    ]
    assert keep.exists()
    assert not report.success


def test_directories_are_refused(tmp_path: Path) -> None:
    report = delete_files([tmp_path])

    assert [e.reason for e in report.failed_deletes] == [ReasonCode.VALIDATION]
    assert tmp_path.exists()


def test_glob_patterns_are_not_expanded(tmp_path: Path) -> None:
    (tmp_path / "a.ipt").write_text("x")

    report = delete_files([tmp_path / "*.ipt"])

    assert (tmp_path / "a.ipt").exists()
    assert report.deleted == []
