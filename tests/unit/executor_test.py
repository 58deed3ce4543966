"""Unit tests for bottom-up plan execution and reference rewriting."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path

import pytest

from cad_doctree.core.executor import TransferMode, execute_plan, transfer_file
from cad_doctree.core.graph import build_graph
from cad_doctree.core.planner import MappingRule, PrefixRule, plan_rename
from cad_doctree.core.rewriter import rewrite_references
from cad_doctree.core.session import CadSession
from cad_doctree.errors import CollisionError, NotFoundError, ReasonCode
from cad_doctree.host import FileSystemCadHost, read_document


async def _plan(session: CadSession, root: Path, rule=None):
    graph = await build_graph(session, [root])
    plan = await plan_rename(graph, rule or PrefixRule("NEW-"))
    return graph, plan


@pytest.mark.asyncio
async def test_rename_tree_rewrites_parent_references(session: CadSession, model_tree: dict[str, Path]) -> None:
    root = model_tree["root"]
    graph, plan = await _plan(session, model_tree["A"])

    report = await execute_plan(session, graph, plan)

    assert sorted(p.name for p in root.iterdir()) == ["NEW-A.iam", "NEW-P1.ipt", "NEW-P2.ipt"]
    assert read_document(root / "NEW-A.iam").references == ["NEW-P1.ipt", "NEW-P2.ipt"]
    assert [(e.path, e.count) for e in report.updated_references] == [(str(root / "NEW-A.iam"), 2)]
    assert len(report.renamed) == 3
    assert report.failed == []


@pytest.mark.asyncio
async def test_failed_move_leaves_parent_stale(session: CadSession, model_tree: dict[str, Path], make_doc) -> None:
    root = model_tree["root"]
    graph, plan = await _plan(session, model_tree["A"])
    # Appears after planning, so the move itself collides.
    make_doc(root / "NEW-P1.ipt")

    report = await execute_plan(session, graph, plan)

    assert [(e.path, e.reason) for e in report.failed_renames] == [(str(model_tree["P1"]), ReasonCode.COLLISION)]
    assert [(e.path, e.reason) for e in report.failed] == [(str(root / "NEW-A.iam"), ReasonCode.STALE_REFERENCE)]
    assert report.updated_references == []
    assert read_document(root / "NEW-A.iam").references == ["P1.ipt", "NEW-P2.ipt"]


@pytest.mark.asyncio
async def test_rewrite_failure_is_reported_after_rename(session: CadSession, model_tree: dict[str, Path]) -> None:
    root = model_tree["root"]
    model_tree["A"].chmod(0o444)
    graph, plan = await _plan(session, model_tree["A"])

    try:
        report = await execute_plan(session, graph, plan)
    finally:
        (root / "NEW-A.iam").chmod(0o644)

    assert str(model_tree["A"]) in report.paths("renamed")
    assert [(e.path, e.reason) for e in report.failed] == [(str(root / "NEW-A.iam"), ReasonCode.ACCESS_DENIED)]
    assert report.updated_references == []


@pytest.mark.asyncio
async def test_copy_mode_keeps_originals_for_cleanup(session: CadSession, model_tree: dict[str, Path]) -> None:
    root = model_tree["root"]
    graph, plan = await _plan(session, model_tree["A"])

    report = await execute_plan(session, graph, plan, mode=TransferMode.COPY)

    assert sorted(report.files_to_delete) == sorted(str(model_tree[k]) for k in ("A", "P1", "P2"))
    assert model_tree["A"].exists()
    assert read_document(model_tree["A"]).references == ["P1.ipt", "P2.ipt"]
    assert read_document(root / "NEW-A.iam").references == ["NEW-P1.ipt", "NEW-P2.ipt"]


@pytest.mark.asyncio
async def test_cancelled_run_stops_before_next_node(session: CadSession, model_tree: dict[str, Path]) -> None:
    graph, plan = await _plan(session, model_tree["A"])
    cancel = asyncio.Event()
    cancel.set()

    report = await execute_plan(session, graph, plan, cancel=cancel)

    assert report.cancelled
    assert report.renamed == []
    assert model_tree["P1"].exists()


@pytest.mark.asyncio
async def test_moved_document_rebases_relative_references(session: CadSession, model_tree: dict[str, Path]) -> None:
    root = model_tree["root"]
    rule = MappingRule({"A.iam": "sub/A.iam"})
    graph, plan = await _plan(session, model_tree["A"], rule)

    report = await execute_plan(session, graph, plan)

    moved = root / "sub" / "A.iam"
    assert read_document(moved).references == [os.path.join("..", "P1.ipt"), os.path.join("..", "P2.ipt")]
    assert [(e.path, e.count) for e in report.updated_references] == [(str(moved), 0)]


@pytest.mark.asyncio
async def test_absolute_references_stay_absolute(host: FileSystemCadHost, tmp_path: Path, make_doc) -> None:
    old = str(tmp_path / "P1.ipt")
    doc = make_doc(tmp_path / "A.iam", references=[old, old])
    handle = await host.open(doc, writable=True)

    count = await rewrite_references(host, handle, tmp_path, {old: tmp_path / "NEW-P1.ipt"}, case_sensitive=True)

    assert count == 1
    assert handle.state.references == [str(tmp_path / "NEW-P1.ipt")] * 2


class TestTransferFile:
    def test_missing_source(self, tmp_path: Path) -> None:
        with pytest.raises(NotFoundError):
            transfer_file(tmp_path / "a.ipt", tmp_path / "b.ipt", TransferMode.MOVE)

    def test_existing_target(self, tmp_path: Path) -> None:
        (tmp_path / "a.ipt").write_text("a")
        (tmp_path / "b.ipt").write_text("b")
        with pytest.raises(CollisionError):
            transfer_file(tmp_path / "a.ipt", tmp_path / "b.ipt", TransferMode.COPY)

    def test_creates_target_folder(self, tmp_path: Path) -> None:
        (tmp_path / "a.ipt").write_text("a")
        transfer_file(tmp_path / "a.ipt", tmp_path / "sub" / "a.ipt", TransferMode.MOVE)
        assert (tmp_path / "sub" / "a.ipt").read_text() == "a"
        assert not (tmp_path / "a.ipt").exists()
