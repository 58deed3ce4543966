"""Locate drawings and project files that point into a renamed model tree and repair them."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from cad_doctree.core.executor import TransferMode, transfer_file
from cad_doctree.core.paths import (
    DRAWING_SUFFIXES,
    PROJECT_SUFFIXES,
    canonical,
    is_within,
    iter_files,
    path_key,
    resolve_reference,
)
from cad_doctree.core.planner import PrefixRule, RenamePlan
from cad_doctree.core.rewriter import rewrite_references
from cad_doctree.core.session import CadSession
from cad_doctree.errors import DocTreeError, ReasonCode, SessionBusyError
from cad_doctree.models import BatchReport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReferenceMatch:
    raw: str
    source: Path
    target: Path | None
    reason: ReasonCode | None = None


class DrawingReferenceUpdater:
    """Update drawings (and optionally project files) after a prefix rename of a model tree.

    The model plan, when given, is ground truth for where a model went: models
    outside the plan or excluded from it did not move, and a planned model only
    counts as moved once it reached its target (per ``model_report`` when given,
    else on disk). Without a plan a reference is only retargeted when its name
    starts with the old prefix and the prefixed counterpart exists on disk.
    """

    def __init__(
        self,
        session: CadSession,
        model_dir: str | Path,
        old_prefix: str,
        new_prefix: str,
        model_plan: RenamePlan | None = None,
        model_report: BatchReport | None = None,
        case_sensitive: bool = True,
        rename_files: bool = True,
        excluded_dirs: Iterable[str] = (),
    ) -> None:
        self.session = session
        self.model_dir = canonical(model_dir)
        self.rule = PrefixRule(new_prefix, old_prefix)
        self.old_prefix = old_prefix
        self.model_plan = model_plan
        self._moved = (
            {path_key(e.path, case_sensitive) for e in model_report.renamed} if model_report is not None else None
        )
        self.case_sensitive = case_sensitive
        self.rename_files = rename_files
        self.excluded_dirs = tuple(excluded_dirs)

    def match(self, origin_dir: Path, raw: str) -> ReferenceMatch | None:
        """Classify one reference. ``None`` means it is unrelated to the rename."""
        source = resolve_reference(origin_dir, raw)
        if not is_within(source, self.model_dir, self.case_sensitive):
            return None
        if self.old_prefix.casefold() not in source.stem.casefold():
            return None
        if self.model_plan is not None:
            entry = self.model_plan.entry_for(source)
            if entry is None or entry.is_noop:
                return ReferenceMatch(raw, source, None)
            if self._reached(entry.source, entry.target):
                return ReferenceMatch(raw, source, entry.target)
            return ReferenceMatch(raw, source, None, ReasonCode.STALE_REFERENCE)
        new_stem = self.rule.new_stem(source.stem)
        if new_stem == source.stem:
            # Prefix occurs mid-name; not a rename candidate.
            return ReferenceMatch(raw, source, None)
        target = source.with_name(new_stem + source.suffix)
        if target.exists():
            return ReferenceMatch(raw, source, target)
        if source.exists():
            return ReferenceMatch(raw, source, None)
        return ReferenceMatch(raw, source, None, ReasonCode.AMBIGUOUS_REFERENCE)

    def _reached(self, source: Path, target: Path) -> bool:
        if self._moved is not None:
            return path_key(source, self.case_sensitive) in self._moved
        return target.exists()

    async def update_document(self, path: Path, report: BatchReport, project: bool = False) -> None:
        """Rewrite one drawing or project file; unrelated documents are left out of the report."""
        try:
            async with self.session.document(path, writable=True) as handle:
                raws = await self.session.host.list_references(handle)
                matches = [m for m in (self.match(path.parent, raw) for raw in raws) if m is not None]
                if not matches:
                    return
                ambiguous = [m for m in matches if m.reason is ReasonCode.AMBIGUOUS_REFERENCE]
                if ambiguous:
                    names = ", ".join(m.raw for m in ambiguous)
                    report.add(
                        "failed",
                        path,
                        reason=ReasonCode.AMBIGUOUS_REFERENCE,
                        detail=f"Cannot determine renamed target for: {names}",
                    )
                    return
                stale = [m for m in matches if m.reason is ReasonCode.STALE_REFERENCE]
                renames = {path_key(m.source, self.case_sensitive): m.target for m in matches if m.target is not None}
                if not renames and not stale:
                    # None of its models moved.
                    return
                count = await rewrite_references(self.session.host, handle, path.parent, renames, self.case_sensitive)
                if handle.dirty:
                    try:
                        await self.session.host.save(handle)
                    except DocTreeError as exc:
                        report.add("failed", path, reason=ReasonCode.WRITE_FAILURE, detail=exc.message)
                        return
        except SessionBusyError:
            raise
        except DocTreeError as exc:
            logger.warning("Could not open %s: %s", path, exc.message)
            report.add("failed", path, reason=ReasonCode.OPEN_FAILURE, detail=exc.message)
            return

        report.add("processed", path, count=count)
        if stale:
            names = ", ".join(m.raw for m in stale)
            report.add(
                "failed",
                path,
                reason=ReasonCode.STALE_REFERENCE,
                detail=f"Referenced models were not renamed: {names}",
                count=count,
            )
            return
        if count:
            report.add("updated_references", path, count=count)
            logger.info("Updated %d reference(s) in %s", count, path)
            if self.rename_files:
                self._rename(path, report, project)

    def _rename(self, path: Path, report: BatchReport, project: bool) -> None:
        new_stem = self.rule.new_stem(path.stem)
        if new_stem == path.stem:
            return
        target = path.with_name(new_stem + path.suffix)
        ok, failed = ("renamed_projects", "failed_project_renames") if project else ("renamed", "failed_renames")
        try:
            transfer_file(path, target, TransferMode.MOVE, self.case_sensitive)
        except DocTreeError as exc:
            report.add(failed, path, target=target, reason=exc.reason, detail=exc.message)
            return
        report.add(ok, path, target=target)

    async def run(
        self,
        drawings_dir: str | Path,
        project_path: str | Path | None = None,
        report: BatchReport | None = None,
        cancel: asyncio.Event | None = None,
    ) -> BatchReport:
        report = report if report is not None else BatchReport()
        documents: list[tuple[Path, bool]] = [
            (p, False) for p in iter_files(drawings_dir, DRAWING_SUFFIXES, self.excluded_dirs)
        ]
        if project_path is not None:
            project = canonical(project_path)
            projects = [project] if project.is_file() else iter_files(project, PROJECT_SUFFIXES, self.excluded_dirs)
            documents.extend((p, True) for p in projects)

        for path, is_project in documents:
            if cancel is not None and cancel.is_set():
                report.cancelled = True
                break
            await self.update_document(path, report, project=is_project)
        return report
