"""Toggle component suppression inside the open assembly."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from cad_doctree.core.paths import canonical
from cad_doctree.core.report import aggregate
from cad_doctree.core.session import CadSession
from cad_doctree.errors import DocTreeError, SessionBusyError
from cad_doctree.models import BatchReport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SuppressAction:
    assembly: str
    components: list[str] = field(default_factory=list)
    suppress: bool = True


def resolve_assembly(session: CadSession, assembly: str | Path) -> Path:
    """Relative paths are taken from the directory of the open assembly."""
    active = session.require_open()
    path = Path(assembly)
    if not path.suffix:
        path = path.with_name(path.name + ".iam")
    if not path.is_absolute():
        path = active.path.parent / path
    return canonical(path)


async def suppress_component(session: CadSession, assembly: str | Path, component: str, suppress: bool) -> Path:
    target = resolve_assembly(session, assembly)
    async with session.document(target, writable=True) as handle:
        await session.host.set_suppression(handle, component, suppress)
        await session.host.save(handle)
    logger.info("%s %s in %s", "Suppressed" if suppress else "Unsuppressed", component, target)
    return target


async def suppress_components(session: CadSession, actions: Iterable[SuppressAction]) -> BatchReport:
    """Apply actions in submitted order, continuing past individual failures."""
    session.require_open()
    report = BatchReport()
    for action in actions:
        for component in action.components:
            try:
                target = await suppress_component(session, action.assembly, component, action.suppress)
            except SessionBusyError:
                raise
            except DocTreeError as exc:
                logger.warning("Suppression of %s in %s failed: %s", component, action.assembly, exc.message)
                report.add("failed", action.assembly, reason=exc.reason, detail=exc.message)
                continue
            report.add("processed", target, detail=component)
    return aggregate(report)
