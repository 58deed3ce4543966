"""Rewrite the stored reference list of a document after its children moved."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

from cad_doctree.core.paths import canonical, is_absolute_reference, make_reference, path_key, resolve_reference
from cad_doctree.core.ports.cad_host import CadHost, DocumentHandle
from cad_doctree.core.session import CadSession

logger = logging.getLogger(__name__)


async def rewrite_references(
    host: CadHost,
    handle: DocumentHandle,
    origin_dir: str | Path,
    renames: Mapping[str, Path],
    case_sensitive: bool,
) -> int:
    """Point every reference whose resolved target is in *renames* at its new path.

    *renames* maps ``path_key(old)`` to the new canonical path. References are
    resolved against *origin_dir*, the directory they were written relative
    to. When the document itself now lives elsewhere, relative references to
    unchanged targets are re-based so they still resolve to the same file.
    Marks the handle dirty; saving is left to the caller.
    """
    moved = canonical(origin_dir) != handle.path.parent
    count = 0
    for raw in dict.fromkeys(await host.list_references(handle)):
        resolved = resolve_reference(origin_dir, raw)
        target = renames.get(path_key(resolved, case_sensitive))
        if target is None:
            if not moved or is_absolute_reference(raw):
                continue
            target = resolved
        new_raw = make_reference(handle.path, target, like=raw)
        if new_raw == raw:
            continue
        await host.rewrite_reference(handle, raw, new_raw)
        logger.debug("%s: %r -> %r", handle.path, raw, new_raw)
        if target != resolved:
            count += 1
    return count


async def rewrite_document(
    session: CadSession,
    path: str | Path,
    origin_dir: str | Path,
    renames: Mapping[str, Path],
    case_sensitive: bool,
) -> int:
    """Open *path* for writing, rewrite its references and save when anything changed."""
    async with session.document(path, writable=True) as handle:
        count = await rewrite_references(session.host, handle, origin_dir, renames, case_sensitive)
        if handle.dirty:
            await session.host.save(handle)
    return count
