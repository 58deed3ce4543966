"""CAD host backed by JSON document files on the local filesystem.

Each ``.ipt``/``.iam``/``.idw``/``.ipj`` file holds a serialized ``CadDocument``.
The host implements the ``CadHost`` protocol, so the engine can run against
real directory trees without an authoring application.
"""

from __future__ import annotations

import logging
import os
import stat
import tempfile
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from cad_doctree.core.paths import canonical
from cad_doctree.core.ports.cad_host import DocumentHandle
from cad_doctree.errors import (
    AccessDeniedError,
    HostFailureError,
    InvalidRequestError,
    NotFoundError,
    ReasonCode,
    translate_os_error,
)
from cad_doctree.models import DocumentKind, PropertyValue

logger = logging.getLogger(__name__)


class Component(BaseModel):
    name: str
    suppressed: bool = False
    member: str | None = None
    members: list[str] = Field(default_factory=list)


class Representations(BaseModel):
    design_view: list[str] = Field(default_factory=list)
    positional: list[str] = Field(default_factory=list)
    level_of_detail: list[str] = Field(default_factory=list)


class CadDocument(BaseModel):
    kind: DocumentKind
    references: list[str] = Field(default_factory=list)
    iproperties: dict[str, PropertyValue] = Field(default_factory=dict)
    parameters: dict[str, str] = Field(default_factory=dict)
    components: list[Component] = Field(default_factory=list)
    model_states: list[str] = Field(default_factory=list)
    active_model_state: str | None = None
    representations: Representations = Field(default_factory=Representations)
    active_representation: str | None = None


# Search order used when activating a representation by name.
_REPRESENTATION_CATEGORIES = ("design_view", "positional", "level_of_detail")


def _find_name(names: list[str], wanted: str) -> str | None:
    wanted = wanted.strip().casefold()
    for name in names:
        if name.casefold() == wanted:
            return name
    return None


def write_document(path: str | Path, document: CadDocument) -> None:
    """Atomically replace *path* with the serialized *document*."""
    target = Path(path)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=str(target.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(document.model_dump_json(indent=2))
        os.replace(tmp_name, target)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def read_document(path: str | Path) -> CadDocument:
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise translate_os_error(exc, path, "Open") from exc
    try:
        return CadDocument.model_validate_json(raw)
    except ValidationError as exc:
        raise HostFailureError(
            f"Document could not be opened, unreadable content: {path}", [path], ReasonCode.OPEN_FAILURE
        ) from exc


def _is_read_only(path: Path) -> bool:
    return not path.stat().st_mode & stat.S_IWUSR


class FileSystemCadHost:
    def __init__(self) -> None:
        self._open: dict[int, DocumentHandle] = {}

    @property
    def open_documents(self) -> list[DocumentHandle]:
        return list(self._open.values())

    async def open(self, path: str | Path, writable: bool = False) -> DocumentHandle:
        doc_path = canonical(path)
        if not doc_path.is_file():
            raise NotFoundError(f"Document not found: {doc_path}", [doc_path])
        if writable and _is_read_only(doc_path):
            raise AccessDeniedError(f"Document is read-only: {doc_path}", [doc_path])
        document = read_document(doc_path)
        handle = DocumentHandle(path=doc_path, kind=document.kind, writable=writable, state=document)
        self._open[id(handle)] = handle
        logger.debug("Opened %s (writable=%s)", doc_path, writable)
        return handle

    async def close(self, handle: DocumentHandle) -> None:
        self._open.pop(id(handle), None)
        logger.debug("Closed %s", handle.path)

    async def save(self, handle: DocumentHandle) -> None:
        if not handle.writable:
            raise AccessDeniedError(f"Document was opened read-only: {handle.path}", [handle.path])
        try:
            write_document(handle.path, handle.state)
        except OSError as exc:
            error = translate_os_error(exc, handle.path, "Save")
            if error.reason == ReasonCode.HOST_FAILURE:
                error.reason = ReasonCode.WRITE_FAILURE
            raise error from exc
        handle.dirty = False

    async def list_references(self, handle: DocumentHandle) -> list[str]:
        return list(self._doc(handle).references)

    async def rewrite_reference(self, handle: DocumentHandle, old: str, new: str) -> None:
        document = self._doc(handle)
        if old not in document.references:
            raise NotFoundError(f"Reference {old!r} not stored in {handle.path}", [handle.path])
        document.references = [new if ref == old else ref for ref in document.references]
        handle.dirty = True

    async def get_iproperty(self, handle: DocumentHandle, name: str) -> PropertyValue | None:
        return self._doc(handle).iproperties.get(name)

    async def set_iproperty(self, handle: DocumentHandle, name: str, value: PropertyValue) -> None:
        self._doc(handle).iproperties[name] = value
        handle.dirty = True

    async def get_parameter(self, handle: DocumentHandle, name: str) -> str:
        parameters = self._doc(handle).parameters
        if name not in parameters:
            raise NotFoundError(f"Parameter '{name}' not found in {handle.path}", [handle.path])
        return parameters[name]

    async def set_parameter(self, handle: DocumentHandle, name: str, expression: str) -> None:
        parameters = self._doc(handle).parameters
        if name not in parameters:
            raise NotFoundError(f"Parameter '{name}' not found in {handle.path}", [handle.path])
        parameters[name] = expression
        handle.dirty = True

    async def set_suppression(self, handle: DocumentHandle, component: str, suppressed: bool) -> None:
        self._component(handle, component).suppressed = suppressed
        handle.dirty = True

    async def set_member(self, handle: DocumentHandle, component: str, member: str) -> None:
        occurrence = self._component(handle, component)
        row = _find_name(occurrence.members, member)
        if row is None:
            raise NotFoundError(f"Member '{member}' not found for component '{component}'", [handle.path])
        occurrence.member = row
        handle.dirty = True

    async def activate_model_state(self, handle: DocumentHandle, name: str) -> None:
        document = self._assembly(handle)
        state = _find_name(document.model_states, name)
        if state is None:
            raise NotFoundError(f"Model state '{name}' not found in {handle.path}", [handle.path])
        document.active_model_state = state
        handle.dirty = True

    async def activate_representation(self, handle: DocumentHandle, name: str) -> str:
        document = self._assembly(handle)
        for category in _REPRESENTATION_CATEGORIES:
            found = _find_name(getattr(document.representations, category), name)
            if found is not None:
                document.active_representation = found
                handle.dirty = True
                return category
        raise NotFoundError(f"Representation '{name}' not found in {handle.path}", [handle.path])

    async def ping(self) -> bool:
        return True

    async def dispose(self) -> None:
        self._open.clear()

    def _doc(self, handle: DocumentHandle) -> CadDocument:
        if id(handle) not in self._open:
            raise HostFailureError(f"Document is not open: {handle.path}", [handle.path])
        return handle.state

    def _component(self, handle: DocumentHandle, name: str) -> Component:
        wanted = name.strip().casefold()
        for component in self._doc(handle).components:
            if component.name.casefold() == wanted:
                return component
        raise NotFoundError(f"Component '{name}' not found in {handle.path}", [handle.path])

    def _assembly(self, handle: DocumentHandle) -> CadDocument:
        document = self._doc(handle)
        if document.kind != DocumentKind.ASSEMBLY:
            raise InvalidRequestError(f"Document is not an assembly: {handle.path}", paths=[handle.path])
        return document
