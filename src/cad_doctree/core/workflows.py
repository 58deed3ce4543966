"""End-to-end rename pipelines: graph -> plan -> execute -> drawings -> cleanup -> report."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path

from cad_doctree.core.cleanup import delete_files
from cad_doctree.core.drawings import DrawingReferenceUpdater
from cad_doctree.core.executor import TransferMode, execute_plan
from cad_doctree.core.graph import DocumentGraph, build_graph
from cad_doctree.core.paths import canonical, iter_files, path_key, probe_case_sensitive, resolve_reference
from cad_doctree.core.planner import MappingRule, NamingRule, PartNumberRule, PrefixRule, RenamePlan, plan_rename
from cad_doctree.core.report import aggregate
from cad_doctree.core.session import CadSession
from cad_doctree.errors import DocTreeError, NotFoundError, ReasonCode, SessionBusyError
from cad_doctree.models import BatchReport

logger = logging.getLogger(__name__)


@dataclass
class RenameOutcome:
    graph: DocumentGraph
    plan: RenamePlan
    report: BatchReport


def detect_case_sensitive(directory: str | Path, configured: bool | None = None) -> bool:
    if configured is not None:
        return configured
    try:
        return probe_case_sensitive(directory)
    except OSError:
        logger.warning("Case sensitivity probe failed in %s, assuming case-sensitive", directory)
        return True


def require_directory(path: str | Path) -> Path:
    directory = canonical(path)
    if not directory.is_dir():
        raise NotFoundError(f"Directory not found: {directory}", [directory])
    return directory


async def discover_roots(
    session: CadSession,
    directory: str | Path,
    excluded_dirs: Iterable[str] = (),
    case_sensitive: bool = True,
) -> list[Path]:
    """Assemblies in *directory* that no other assembly there references."""
    assemblies = list(iter_files(directory, {".iam"}, excluded_dirs))
    referenced: set[str] = set()
    for assembly in assemblies:
        try:
            async with session.document(assembly) as handle:
                raws = await session.host.list_references(handle)
        except SessionBusyError:
            raise
        except DocTreeError as exc:
            logger.warning("Skipping unreadable assembly %s during discovery: %s", assembly, exc.message)
            continue
        referenced.update(path_key(resolve_reference(assembly.parent, raw), case_sensitive) for raw in raws)
    roots = [a for a in assemblies if path_key(a, case_sensitive) not in referenced]
    return roots or assemblies


def planning_report(graph: DocumentGraph, plan: RenamePlan) -> BatchReport:
    report = BatchReport()
    for warning in graph.warnings:
        report.add("warnings", warning.path, reason=warning.reason, detail=warning.detail)
    for failure in plan.failures:
        report.add(
            "planning_failures", failure.path, target=failure.target, reason=failure.reason, detail=failure.detail
        )
    return report


async def analyze(
    session: CadSession,
    roots: Iterable[str | Path],
    rule: NamingRule,
    case_sensitive: bool = True,
) -> RenameOutcome:
    """Dry run: build the graph and plan without touching the filesystem."""
    graph = await build_graph(session, roots, case_sensitive)
    plan = await plan_rename(graph, rule, session)
    return RenameOutcome(graph, plan, aggregate(planning_report(graph, plan)))


def _cleanup_candidates(graph: DocumentGraph, report: BatchReport) -> tuple[list[str], list[str]]:
    """Split leftovers into safe-to-delete and still-referenced by a parent that kept old references."""
    broken = {path_key(p, graph.case_sensitive) for p in report.paths("failed") + report.paths("failed_renames")}
    safe: list[str] = []
    kept: list[str] = []
    for old in report.files_to_delete:
        node = graph.find(old)
        parents = graph.parents(node) if node is not None else []
        if any(graph.key(p.path) in broken or _final_key(graph, report, p.path) in broken for p in parents):
            kept.append(old)
        else:
            safe.append(old)
    return safe, kept


def _final_key(graph: DocumentGraph, report: BatchReport, path: Path) -> str:
    for entry in report.renamed:
        if graph.key(entry.path) == graph.key(path) and entry.target is not None:
            return graph.key(entry.target)
    return graph.key(path)


def cleanup_leftovers(graph: DocumentGraph, report: BatchReport) -> BatchReport:
    safe, kept = _cleanup_candidates(graph, report)
    cleanup = delete_files(safe)
    for old in kept:
        cleanup.add(
            "warnings",
            old,
            reason=ReasonCode.STALE_REFERENCE,
            detail="Kept: a parent still references this file",
        )
    return cleanup


async def rename_tree(
    session: CadSession,
    roots: Iterable[str | Path],
    rule: NamingRule,
    mode: TransferMode = TransferMode.MOVE,
    case_sensitive: bool = True,
    strict: bool = False,
    cancel: asyncio.Event | None = None,
) -> RenameOutcome:
    outcome = await analyze(session, roots, rule, case_sensitive)
    report = planning_report(outcome.graph, outcome.plan)
    if strict and outcome.plan.failures:
        logger.warning("Strict mode: %d planning failure(s), nothing renamed", len(outcome.plan.failures))
    else:
        await execute_plan(session, outcome.graph, outcome.plan, report, mode, cancel)
    outcome.report = aggregate(report)
    return outcome


async def design_assist_rename(
    session: CadSession,
    directory: str | Path,
    part_prefix: str,
    assembly_list: Iterable[str] | None = None,
    excluded_dirs: Iterable[str] = (),
    case_sensitive: bool | None = None,
    dry_run: bool = False,
) -> RenameOutcome:
    """Rename documents in the listed (or discovered) assemblies after their Part Number."""
    root_dir = require_directory(directory)
    sensitive = detect_case_sensitive(root_dir, case_sensitive)
    names = list(assembly_list or [])
    if names:
        roots = [canonical(root_dir / name) for name in names]
    else:
        roots = await discover_roots(session, root_dir, excluded_dirs, sensitive)
    rule = PartNumberRule(part_prefix)
    if dry_run:
        return await analyze(session, roots, rule, sensitive)
    return await rename_tree(session, roots, rule, TransferMode.MOVE, sensitive)


async def recursive_rename(
    session: CadSession,
    assembly_names: Iterable[str],
    file_names: Mapping[str, str],
    base_dir: str | Path,
    case_sensitive: bool | None = None,
    strict: bool = False,
) -> RenameOutcome:
    """Explicit-table rename with save-as semantics; originals are returned for deletion."""
    base = canonical(base_dir)
    sensitive = detect_case_sensitive(base, case_sensitive) if base.is_dir() else True
    roots = [canonical(base / name) for name in assembly_names]
    rule = MappingRule(file_names, sensitive)
    return await rename_tree(session, roots, rule, TransferMode.COPY, sensitive, strict)


async def recursive_rename_with_prefix(
    session: CadSession,
    model_path: str | Path,
    prefix: str,
    excluded_dirs: Iterable[str] = (),
    case_sensitive: bool | None = None,
    strict: bool = False,
) -> RenameOutcome:
    """Prefix every document under the model's root assemblies, then delete the originals."""
    model_dir = require_directory(model_path)
    sensitive = detect_case_sensitive(model_dir, case_sensitive)
    roots = await discover_roots(session, model_dir, excluded_dirs, sensitive)
    outcome = await rename_tree(session, roots, PrefixRule(prefix), TransferMode.COPY, sensitive, strict)
    cleanup = cleanup_leftovers(outcome.graph, outcome.report)
    outcome.report = aggregate(outcome.report, cleanup)
    return outcome


async def recursive_rename_with_prefix_and_drawings(
    session: CadSession,
    model_path: str | Path,
    drawings_path: str | Path,
    old_prefix: str,
    new_prefix: str,
    project_path: str | Path | None = None,
    excluded_dirs: Iterable[str] = (),
    case_sensitive: bool | None = None,
    strict: bool = False,
    cancel: asyncio.Event | None = None,
) -> RenameOutcome:
    """Swap ``old_prefix`` for ``new_prefix`` across the model tree, its drawings and project files."""
    model_dir = require_directory(model_path)
    drawings_dir = require_directory(drawings_path)
    sensitive = detect_case_sensitive(model_dir, case_sensitive)
    roots = await discover_roots(session, model_dir, excluded_dirs, sensitive)
    outcome = await rename_tree(
        session, roots, PrefixRule(new_prefix, old_prefix), TransferMode.COPY, sensitive, strict, cancel
    )
    if strict and outcome.plan.failures:
        return outcome
    updater = DrawingReferenceUpdater(
        session,
        model_dir,
        old_prefix,
        new_prefix,
        model_plan=outcome.plan,
        model_report=outcome.report,
        case_sensitive=sensitive,
        excluded_dirs=excluded_dirs,
    )
    drawings = await updater.run(drawings_dir, project_path, cancel=cancel)
    cleanup = cleanup_leftovers(outcome.graph, outcome.report)
    outcome.report = aggregate(outcome.report, drawings, cleanup)
    return outcome


async def update_drawing_references(
    session: CadSession,
    drawings_path: str | Path,
    model_path: str | Path,
    old_prefix: str,
    new_prefix: str,
    project_path: str | Path | None = None,
    excluded_dirs: Iterable[str] = (),
    case_sensitive: bool | None = None,
    cancel: asyncio.Event | None = None,
) -> BatchReport:
    drawings_dir = require_directory(drawings_path)
    model_dir = require_directory(model_path)
    sensitive = detect_case_sensitive(model_dir, case_sensitive)
    updater = DrawingReferenceUpdater(
        session, model_dir, old_prefix, new_prefix, case_sensitive=sensitive, excluded_dirs=excluded_dirs
    )
    return aggregate(await updater.run(drawings_dir, project_path, cancel=cancel))
