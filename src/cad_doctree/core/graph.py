"""Resolve a document's reference tree into an index-based graph.

Nodes live in an arena (``DocumentGraph.nodes``) keyed by canonical path, so a
document referenced from two parents is a single node and cycle detection is
a visited-set check.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

from cad_doctree.core.paths import canonical, kind_for_path, path_key, resolve_reference
from cad_doctree.core.session import CadSession
from cad_doctree.errors import DocTreeError, ReasonCode, SessionBusyError
from cad_doctree.models import DocumentKind

logger = logging.getLogger(__name__)


@dataclass
class ComponentNode:
    index: int
    path: Path
    kind: DocumentKind | None
    children: list[int] = field(default_factory=list)
    raw_references: list[str] = field(default_factory=list)
    resolved: bool = True
    reason: ReasonCode | None = None
    detail: str | None = None


@dataclass(frozen=True)
class GraphWarning:
    path: Path
    reference: str
    reason: ReasonCode
    detail: str


@dataclass
class DocumentGraph:
    case_sensitive: bool
    nodes: list[ComponentNode] = field(default_factory=list)
    roots: list[int] = field(default_factory=list)
    warnings: list[GraphWarning] = field(default_factory=list)
    _index: dict[str, int] = field(default_factory=dict, repr=False)

    def key(self, path: str | Path) -> str:
        return path_key(path, self.case_sensitive)

    def find(self, path: str | Path) -> ComponentNode | None:
        idx = self._index.get(self.key(path))
        return self.nodes[idx] if idx is not None else None

    def add(self, path: Path) -> ComponentNode:
        node = ComponentNode(index=len(self.nodes), path=path, kind=kind_for_path(path))
        self.nodes.append(node)
        self._index[self.key(path)] = node.index
        return node

    def children(self, node: ComponentNode) -> list[ComponentNode]:
        return [self.nodes[i] for i in node.children]

    def parents(self, node: ComponentNode) -> list[ComponentNode]:
        return [n for n in self.nodes if node.index in n.children]

    def post_order(self) -> Iterator[ComponentNode]:
        """Children before parents, each node once, siblings in BOM order."""
        seen: set[int] = set()

        def visit(idx: int) -> Iterator[ComponentNode]:
            if idx in seen:
                return
            seen.add(idx)
            for child in self.nodes[idx].children:
                yield from visit(child)
            yield self.nodes[idx]

        for root in self.roots:
            yield from visit(root)

    def __len__(self) -> int:
        return len(self.nodes)


async def build_graph(
    session: CadSession,
    roots: Iterable[str | Path],
    case_sensitive: bool = True,
) -> DocumentGraph:
    """Depth-first traversal from each root, children in bill-of-materials order.

    A reference back onto the current traversal path is dropped and recorded
    as a warning. Missing or unreadable documents become unresolved leaves.
    """
    graph = DocumentGraph(case_sensitive=case_sensitive)
    on_path: set[int] = set()

    async def visit(path: Path) -> int:
        node = graph.add(path)
        on_path.add(node.index)
        try:
            await _load(node)
            for raw in node.raw_references:
                child_path = resolve_reference(path.parent, raw)
                existing = graph.find(child_path)
                if existing is not None and existing.index in on_path:
                    detail = f"Reference {raw!r} in {path} leads back to {existing.path}; edge dropped"
                    logger.warning("%s", detail)
                    graph.warnings.append(GraphWarning(path, raw, ReasonCode.CYCLE, detail))
                    continue
                child_idx = existing.index if existing is not None else await visit(child_path)
                if child_idx not in node.children:
                    node.children.append(child_idx)
        finally:
            on_path.discard(node.index)
        return node.index

    async def _load(node: ComponentNode) -> None:
        try:
            async with session.document(node.path) as handle:
                node.kind = handle.kind
                node.raw_references = await session.host.list_references(handle)
        except SessionBusyError:
            raise
        except DocTreeError as exc:
            node.resolved = False
            node.reason = ReasonCode.NOT_FOUND if exc.reason == ReasonCode.NOT_FOUND else ReasonCode.UNRESOLVED
            node.detail = exc.message
            logger.warning("Unresolved document %s: %s", node.path, exc.message)

    for root in roots:
        root_path = canonical(root)
        existing = graph.find(root_path)
        idx = existing.index if existing is not None else await visit(root_path)
        if idx not in graph.roots:
            graph.roots.append(idx)

    logger.info("Resolved %d document(s) from %d root(s)", len(graph), len(graph.roots))
    return graph
