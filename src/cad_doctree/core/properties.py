"""Walk model files applying iProperty, iPart/iAssembly member or model-state updates.

All three update kinds share ``apply_to_files``: each file is opened under the
session gate, updated, and saved only if every change to it succeeded, so a
file is either fully updated or left untouched. One file's failure never
stops the walk.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path

from cad_doctree.core.paths import MODEL_SUFFIXES, canonical, iter_files
from cad_doctree.core.planner import PART_NUMBER
from cad_doctree.core.ports.cad_host import DocumentHandle
from cad_doctree.core.report import aggregate
from cad_doctree.core.session import CadSession
from cad_doctree.errors import DocTreeError, NotFoundError, SessionBusyError
from cad_doctree.models import BatchReport, PropertyValue

logger = logging.getLogger(__name__)

ORIGINAL_PREFIX_KEY = "originalPrefix"
PART_PREFIX_KEY = "partPrefix"

Apply = Callable[[DocumentHandle], Awaitable[None]]


@dataclass(frozen=True)
class MemberUpdate:
    assembly: Path
    members: Mapping[str, str]


@dataclass(frozen=True)
class ModelStateUpdate:
    assembly: Path
    model_state: str | None = None
    representation: str | None = None


def resolve_model_path(base_dir: str | Path, name: str, default_suffix: str = ".iam") -> Path:
    path = Path(name)
    if not path.suffix:
        path = path.with_name(path.name + default_suffix)
    if not path.is_absolute():
        path = Path(base_dir) / path
    return canonical(path)


def model_files(directory: str | Path, excluded_dirs: Iterable[str] = (), original_prefix: str = "") -> list[Path]:
    """Parts first, then assemblies, each group by name descending."""
    files = [
        p
        for p in iter_files(directory, MODEL_SUFFIXES, excluded_dirs)
        if p.stem.casefold().startswith(original_prefix.casefold())
    ]
    return sorted(files, key=lambda p: (p.suffix.lower() == ".ipt", p.name), reverse=True)


def prefixed_part_number(part_prefix: str, part_number: str) -> str:
    if "_" in part_number:
        return f"{part_prefix}_{part_number.split('_', 1)[1]}"
    return f"{part_prefix}_{part_number}"


async def apply_to_files(
    session: CadSession,
    jobs: Iterable[tuple[Path, Apply]],
    cancel: asyncio.Event | None = None,
) -> BatchReport:
    """Run each job's update on its file; the same file may appear in several jobs."""
    report = BatchReport()
    for path, apply in jobs:
        if cancel is not None and cancel.is_set():
            report.cancelled = True
            break
        try:
            async with session.document(path, writable=True) as handle:
                await apply(handle)
                if handle.dirty:
                    await session.host.save(handle)
        except SessionBusyError:
            raise
        except DocTreeError as exc:
            logger.warning("Update failed for %s: %s", path, exc.message)
            report.add("failed", path, reason=exc.reason, detail=exc.message)
            continue
        report.add("processed", path)
        logger.info("Updated %s", path)
    return aggregate(report)


async def update_all_properties(
    session: CadSession,
    directory: str | Path,
    properties: Mapping[str, PropertyValue],
    excluded_dirs: Iterable[str] = (),
    cancel: asyncio.Event | None = None,
) -> BatchReport:
    """Set *properties* on every part and assembly below *directory*.

    ``originalPrefix`` limits the walk to files whose name starts with it;
    ``partPrefix`` re-prefixes each file's Part Number.
    """
    root = canonical(directory)
    if not root.is_dir():
        raise NotFoundError(f"Directory not found: {root}", [root])

    original_prefix = str(properties.get(ORIGINAL_PREFIX_KEY, ""))
    part_prefix = str(properties.get(PART_PREFIX_KEY, ""))
    values = {k: v for k, v in properties.items() if k not in (ORIGINAL_PREFIX_KEY, PART_PREFIX_KEY)}

    files = model_files(root, excluded_dirs, original_prefix)
    if not files:
        logger.warning("No part or assembly files found in %s", root)

    async def apply(handle: DocumentHandle) -> None:
        for name, value in values.items():
            await session.host.set_iproperty(handle, name, value)
        if part_prefix:
            current = await session.host.get_iproperty(handle, PART_NUMBER)
            await session.host.set_iproperty(handle, PART_NUMBER, prefixed_part_number(part_prefix, str(current or "")))

    logger.info("Updating %d iProperty value(s) on %d file(s) in %s", len(values), len(files), root)
    return await apply_to_files(session, [(p, apply) for p in files], cancel)


async def update_members(
    session: CadSession,
    updates: Iterable[MemberUpdate],
    cancel: asyncio.Event | None = None,
) -> BatchReport:
    """Switch iPart/iAssembly components to the named member rows."""

    def job(update: MemberUpdate) -> tuple[Path, Apply]:
        async def apply(handle: DocumentHandle) -> None:
            for component, member in update.members.items():
                await session.host.set_member(handle, component, member)

        return update.assembly, apply

    return await apply_to_files(session, [job(u) for u in updates], cancel)


async def update_model_states(
    session: CadSession,
    updates: Iterable[ModelStateUpdate],
    cancel: asyncio.Event | None = None,
) -> BatchReport:
    """Activate model states and representations on each assembly."""

    def job(update: ModelStateUpdate) -> tuple[Path, Apply]:
        async def apply(handle: DocumentHandle) -> None:
            if update.model_state:
                await session.host.activate_model_state(handle, update.model_state)
            if update.representation:
                category = await session.host.activate_representation(handle, update.representation)
                logger.info("Activated %s representation %s in %s", category, update.representation, handle.path)

        return update.assembly, apply

    return await apply_to_files(session, [job(u) for u in updates], cancel)
