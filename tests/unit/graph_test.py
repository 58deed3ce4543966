"""Unit tests for reference-graph resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from cad_doctree.core.graph import build_graph
from cad_doctree.core.session import CadSession
from cad_doctree.errors import ReasonCode
from cad_doctree.models import DocumentKind


@pytest.mark.asyncio
async def test_children_follow_reference_order(session: CadSession, model_tree: dict[str, Path]) -> None:
    graph = await build_graph(session, [model_tree["A"]])

    root = graph.nodes[graph.roots[0]]
    assert root.kind == DocumentKind.ASSEMBLY
    assert [c.path.name for c in graph.children(root)] == ["P1.ipt", "P2.ipt"]
    assert [n.path.name for n in graph.post_order()] == ["P1.ipt", "P2.ipt", "A.iam"]


@pytest.mark.asyncio
async def test_shared_child_is_one_node(session: CadSession, tmp_path: Path, make_doc) -> None:
    make_doc(tmp_path / "Bolt.ipt")
    make_doc(tmp_path / "Sub1.iam", references=["Bolt.ipt"])
    make_doc(tmp_path / "Sub2.iam", references=["Bolt.ipt"])
    top = make_doc(tmp_path / "Top.iam", references=["Sub1.iam", "Sub2.iam"])

    graph = await build_graph(session, [top])

    assert len(graph) == 4
    bolt = graph.find(tmp_path / "Bolt.ipt")
    assert bolt is not None
    assert sorted(p.path.name for p in graph.parents(bolt)) == ["Sub1.iam", "Sub2.iam"]


@pytest.mark.asyncio
async def test_cycle_edge_is_dropped_with_warning(session: CadSession, tmp_path: Path, make_doc) -> None:
    a = make_doc(tmp_path / "A.iam", references=["B.iam"])
    make_doc(tmp_path / "B.iam", references=["A.iam"])

    graph = await build_graph(session, [a])

    assert len(graph) == 2
    b = graph.find(tmp_path / "B.iam")
    assert b is not None and b.children == []
    assert [w.reason for w in graph.warnings] == [ReasonCode.CYCLE]
    assert [n.path.name for n in graph.post_order()] == ["B.iam", "A.iam"]


@pytest.mark.asyncio
async def test_missing_child_is_unresolved(session: CadSession, tmp_path: Path, make_doc) -> None:
    a = make_doc(tmp_path / "A.iam", references=["Gone.ipt"])

    graph = await build_graph(session, [a])

    gone = graph.find(tmp_path / "Gone.ipt")
    assert gone is not None
    assert not gone.resolved
    assert gone.reason == ReasonCode.NOT_FOUND
    assert gone.kind == DocumentKind.PART


@pytest.mark.asyncio
async def test_duplicate_roots_are_collapsed(session: CadSession, model_tree: dict[str, Path]) -> None:
    graph = await build_graph(session, [model_tree["A"], model_tree["A"]])

    assert len(graph.roots) == 1
    assert len(graph) == 3
