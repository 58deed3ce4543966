"""Derive a validated old-path -> new-path mapping from a naming rule."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from cad_doctree.core.graph import ComponentNode, DocumentGraph
from cad_doctree.core.paths import canonical, path_key
from cad_doctree.core.session import CadSession
from cad_doctree.errors import DocTreeError, ReasonCode, SessionBusyError

logger = logging.getLogger(__name__)

PART_NUMBER = "Part Number"


class NamingRule(Protocol):
    async def target(self, node: ComponentNode, session: CadSession | None) -> Path: ...


def _with_stem(path: Path, stem: str) -> Path:
    return path.with_name(stem + path.suffix)


@dataclass(frozen=True)
class PrefixRule:
    """Prepend ``prefix``, or swap a leading ``old_prefix`` for it."""

    prefix: str
    old_prefix: str | None = None

    def new_stem(self, stem: str) -> str:
        if self.old_prefix is not None:
            if stem.casefold().startswith(self.old_prefix.casefold()):
                return self.prefix + stem[len(self.old_prefix) :]
            return stem
        if stem.startswith(self.prefix):
            return stem
        return self.prefix + stem

    async def target(self, node: ComponentNode, session: CadSession | None) -> Path:
        return _with_stem(node.path, self.new_stem(node.path.stem))


@dataclass
class MappingRule:
    """Explicit rename table.

    Keys match a node by canonical path, or by file name when the key has no
    directory part. Values without a directory stay next to the source, and
    values without an extension keep the source extension.
    """

    table: Mapping[str, str]
    case_sensitive: bool = True
    _by_path: dict[str, str] = field(init=False, repr=False)
    _by_name: dict[str, str] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._by_path = {}
        self._by_name = {}
        for old, new in self.table.items():
            if Path(old).name == old:
                self._by_name[self._fold(old)] = new
            else:
                self._by_path[path_key(old, self.case_sensitive)] = new

    def _fold(self, name: str) -> str:
        return name if self.case_sensitive else name.casefold()

    def _lookup(self, path: Path) -> str | None:
        hit = self._by_path.get(path_key(path, self.case_sensitive))
        if hit is None:
            hit = self._by_name.get(self._fold(path.name))
        if hit is None:
            hit = self._by_name.get(self._fold(path.stem))
        return hit

    async def target(self, node: ComponentNode, session: CadSession | None) -> Path:
        new = self._lookup(node.path)
        if new is None:
            return node.path
        new_path = Path(new)
        if not new_path.suffix:
            new_path = new_path.with_name(new_path.name + node.path.suffix)
        if not new_path.is_absolute():
            new_path = node.path.parent / new_path
        return canonical(new_path)


@dataclass(frozen=True)
class PartNumberRule:
    """Rename documents after their Part Number when it starts with ``prefix``."""

    prefix: str

    def new_stem(self, part_number: str) -> str | None:
        if not part_number.casefold().startswith(self.prefix.casefold()):
            return None
        rest = part_number[len(self.prefix) :].lstrip("_")
        return f"{self.prefix}_{rest}"

    async def target(self, node: ComponentNode, session: CadSession | None) -> Path:
        if session is None:
            raise ValueError("PartNumberRule needs a CAD session to read iProperties")
        async with session.document(node.path) as handle:
            value = await session.host.get_iproperty(handle, PART_NUMBER)
        stem = self.new_stem(str(value)) if value else None
        return _with_stem(node.path, stem) if stem else node.path


@dataclass(frozen=True)
class PlanEntry:
    index: int
    source: Path
    target: Path

    @property
    def is_noop(self) -> bool:
        return self.source == self.target


@dataclass(frozen=True)
class PlanFailure:
    path: Path
    reason: ReasonCode
    detail: str
    target: Path | None = None


@dataclass
class RenamePlan:
    """Validated mapping. Injective over its entries, one entry per planned node."""

    case_sensitive: bool
    entries: dict[str, PlanEntry] = field(default_factory=dict)
    failures: list[PlanFailure] = field(default_factory=list)

    def key(self, path: str | Path) -> str:
        return path_key(path, self.case_sensitive)

    def entry_for(self, path: str | Path) -> PlanEntry | None:
        return self.entries.get(self.key(path))

    def target_for(self, path: str | Path) -> Path | None:
        entry = self.entry_for(path)
        return entry.target if entry is not None else None

    @property
    def changes(self) -> list[PlanEntry]:
        return [e for e in self.entries.values() if not e.is_noop]

    @property
    def is_noop(self) -> bool:
        return not self.changes

    def mapping(self) -> dict[str, str]:
        return {str(e.source): str(e.target) for e in self.changes}


async def plan_rename(
    graph: DocumentGraph,
    rule: NamingRule,
    session: CadSession | None = None,
    case_sensitive: bool | None = None,
) -> RenamePlan:
    """Plan a rename of every node in *graph*.

    Nodes that are unresolved, collide with another target, or would overwrite
    an existing file are excluded and listed in ``failures``; the remaining
    entries stay usable.
    """
    if case_sensitive is None:
        case_sensitive = graph.case_sensitive
    plan = RenamePlan(case_sensitive=case_sensitive)
    candidates: list[PlanEntry] = []

    for node in graph.nodes:
        if not node.resolved:
            plan.failures.append(
                PlanFailure(node.path, node.reason or ReasonCode.UNRESOLVED, node.detail or "Document unresolved")
            )
            continue
        try:
            target = canonical(await rule.target(node, session))
        except SessionBusyError:
            raise
        except DocTreeError as exc:
            plan.failures.append(PlanFailure(node.path, exc.reason, exc.message))
            continue
        candidates.append(PlanEntry(node.index, node.path, target))

    by_target: dict[str, list[PlanEntry]] = defaultdict(list)
    for entry in candidates:
        by_target[plan.key(entry.target)].append(entry)

    for entry in candidates:
        group = by_target[plan.key(entry.target)]
        if len(group) > 1:
            others = ", ".join(str(e.source) for e in group if e is not entry)
            detail = f"Target {entry.target} also claimed by {others}"
            plan.failures.append(PlanFailure(entry.source, ReasonCode.COLLISION, detail, entry.target))
            continue
        if plan.key(entry.source) != plan.key(entry.target) and entry.target.exists():
            plan.failures.append(
                PlanFailure(entry.source, ReasonCode.COLLISION, f"Target already exists: {entry.target}", entry.target)
            )
            continue
        plan.entries[plan.key(entry.source)] = entry

    for failure in plan.failures:
        logger.warning("Excluded from plan: %s (%s) %s", failure.path, failure.reason, failure.detail)
    changes = len(plan.changes)
    logger.info(
        "Planned %d rename(s), %d no-op(s), %d failure(s)", changes, len(plan.entries) - changes, len(plan.failures)
    )
    return plan
