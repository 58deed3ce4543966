"""Path canonicalization and reference resolution helpers."""

from __future__ import annotations

import os
import tempfile
from collections.abc import Iterable, Iterator
from pathlib import Path, PureWindowsPath

from cad_doctree.models import DocumentKind

_KIND_BY_SUFFIX: dict[str, DocumentKind] = {
    ".ipt": DocumentKind.PART,
    ".iam": DocumentKind.ASSEMBLY,
    ".idw": DocumentKind.DRAWING,
    ".dwg": DocumentKind.DRAWING,
    ".ipj": DocumentKind.PROJECT,
}

MODEL_SUFFIXES: frozenset[str] = frozenset({".ipt", ".iam"})
DRAWING_SUFFIXES: frozenset[str] = frozenset({".idw", ".dwg"})
PROJECT_SUFFIXES: frozenset[str] = frozenset({".ipj"})


def kind_for_path(path: str | Path) -> DocumentKind | None:
    return _KIND_BY_SUFFIX.get(Path(path).suffix.lower())


def canonical(path: str | Path) -> Path:
    """Absolute, normalized path. Does not require the file to exist."""
    return Path(os.path.abspath(os.path.expanduser(str(path))))


def path_key(path: str | Path, case_sensitive: bool) -> str:
    """Identity of a path under the filesystem's case rules."""
    text = str(canonical(path))
    return text if case_sensitive else text.casefold()


def _normalize_separators(raw: str) -> str:
    if os.sep == "/" and "\\" in raw:
        return PureWindowsPath(raw).as_posix()
    return raw


def is_absolute_reference(raw: str) -> bool:
    return Path(_normalize_separators(raw)).is_absolute()


def resolve_reference(origin_dir: str | Path, raw: str) -> Path:
    """Resolve a stored reference string relative to the directory it was authored in."""
    ref = Path(_normalize_separators(raw))
    if ref.is_absolute():
        return canonical(ref)
    return canonical(Path(origin_dir) / ref)


def make_reference(document_path: str | Path, target: str | Path, like: str) -> str:
    """Build a reference from *document_path* to *target* in the style of *like*."""
    if is_absolute_reference(like):
        return str(canonical(target))
    return os.path.relpath(canonical(target), canonical(document_path).parent)


def is_within(path: str | Path, directory: str | Path, case_sensitive: bool) -> bool:
    child = path_key(path, case_sensitive)
    parent = path_key(directory, case_sensitive).rstrip(os.sep) + os.sep
    return child.startswith(parent)


def probe_case_sensitive(directory: str | Path) -> bool:
    """Create a temporary mixed-case file in *directory* and look it up in lower case."""
    with tempfile.NamedTemporaryFile(prefix="CaseProbe", dir=str(directory)) as handle:
        name = Path(handle.name).name
        return not (Path(directory) / name.lower()).exists()


def iter_files(
    directory: str | Path,
    suffixes: Iterable[str],
    excluded_dirs: Iterable[str] = (),
) -> Iterator[Path]:
    """Yield files below *directory* whose suffix is in *suffixes*, sorted per folder."""
    wanted = {s.lower() for s in suffixes}
    excluded = {d.casefold() for d in excluded_dirs}
    for root, dirs, files in os.walk(directory):
        dirs[:] = sorted(d for d in dirs if d.casefold() not in excluded)
        for name in sorted(files):
            path = Path(root) / name
            if path.suffix.lower() in wanted:
                yield canonical(path)
