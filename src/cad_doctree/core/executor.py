"""Execute a rename plan bottom-up and record itemized outcomes."""

from __future__ import annotations

import asyncio
import logging
import shutil
from enum import StrEnum
from pathlib import Path

from cad_doctree.core.graph import DocumentGraph
from cad_doctree.core.planner import RenamePlan
from cad_doctree.core.rewriter import rewrite_document
from cad_doctree.core.session import CadSession
from cad_doctree.errors import (
    CollisionError,
    DocTreeError,
    NotFoundError,
    ReasonCode,
    SessionBusyError,
    translate_os_error,
)
from cad_doctree.models import BatchReport

logger = logging.getLogger(__name__)


class TransferMode(StrEnum):
    MOVE = "move"
    # Save-as: the original stays behind and is queued for cleanup.
    COPY = "copy"


def transfer_file(source: Path, target: Path, mode: TransferMode, case_sensitive: bool = True) -> None:
    if not source.is_file():
        raise NotFoundError(f"Source file not found: {source}", [source])
    same_file = (str(source) if case_sensitive else str(source).casefold()) == (
        str(target) if case_sensitive else str(target).casefold()
    )
    if target.exists() and not same_file:
        raise CollisionError(f"Target already exists: {target}", [source, target])
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        if mode is TransferMode.COPY:
            shutil.copy2(source, target)
        else:
            source.rename(target)
    except OSError as exc:
        raise translate_os_error(exc, source, "Rename") from exc


async def execute_plan(
    session: CadSession,
    graph: DocumentGraph,
    plan: RenamePlan,
    report: BatchReport | None = None,
    mode: TransferMode = TransferMode.MOVE,
    cancel: asyncio.Event | None = None,
) -> BatchReport:
    """Rename children before parents, then rewrite each parent's references.

    A failed move lands in ``failed_renames`` and the node is not rewritten.
    A successful move followed by a failed rewrite lands in ``renamed`` and
    ``failed``, never in ``updated_references``. No step is rolled back.
    """
    report = report if report is not None else BatchReport()
    renames: dict[str, Path] = {}
    failed_moves: set[int] = set()

    for node in graph.post_order():
        if cancel is not None and cancel.is_set():
            logger.info("Rename cancelled before %s", node.path)
            report.cancelled = True
            break

        current = node.path
        children = graph.children(node)
        moved_children = [c for c in children if plan.key(c.path) in renames]
        stale_children = [c for c in children if c.index in failed_moves]

        entry = plan.entry_for(node.path)
        if entry is not None and not entry.is_noop:
            try:
                transfer_file(entry.source, entry.target, mode, plan.case_sensitive)
            except DocTreeError as exc:
                logger.warning("Rename failed %s -> %s: %s", entry.source, entry.target, exc.message)
                failed_moves.add(node.index)
                report.add("failed_renames", entry.source, target=entry.target, reason=exc.reason, detail=exc.message)
                if moved_children:
                    names = ", ".join(c.path.name for c in moved_children)
                    report.add(
                        "failed",
                        entry.source,
                        reason=ReasonCode.STALE_REFERENCE,
                        detail=f"References not rewritten after rename failure; moved children: {names}",
                    )
                continue
            renames[plan.key(entry.source)] = entry.target
            current = entry.target
            report.add("renamed", entry.source, target=entry.target)
            if mode is TransferMode.COPY:
                report.files_to_delete.append(str(entry.source))
            logger.info("Renamed %s -> %s", entry.source, entry.target)

        if not node.resolved:
            continue
        report.add("processed", current)
        if not moved_children and current.parent == node.path.parent and not stale_children:
            continue

        try:
            count = await rewrite_document(session, current, node.path.parent, renames, plan.case_sensitive)
        except SessionBusyError:
            raise
        except DocTreeError as exc:
            logger.warning("Reference update failed for %s: %s", current, exc.message)
            report.add("failed", current, reason=exc.reason, detail=exc.message)
            continue

        if stale_children:
            names = ", ".join(c.path.name for c in stale_children)
            report.add(
                "failed",
                current,
                reason=ReasonCode.STALE_REFERENCE,
                detail=f"Still references un-renamed children: {names}",
                count=count,
            )
        else:
            report.add("updated_references", current, count=count)

    return report
