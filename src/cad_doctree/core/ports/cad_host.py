from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from cad_doctree.models import DocumentKind, PropertyValue


@dataclass
class DocumentHandle:
    """An open document. ``state`` is owned by the host implementation."""

    path: Path
    kind: DocumentKind
    writable: bool = False
    dirty: bool = False
    state: Any = field(default=None, repr=False)


class CadHost(Protocol):
    async def open(self, path: str | Path, writable: bool = False) -> DocumentHandle: ...

    async def close(self, handle: DocumentHandle) -> None: ...

    async def save(self, handle: DocumentHandle) -> None: ...

    async def list_references(self, handle: DocumentHandle) -> list[str]: ...

    async def rewrite_reference(self, handle: DocumentHandle, old: str, new: str) -> None: ...

    async def get_iproperty(self, handle: DocumentHandle, name: str) -> PropertyValue | None: ...

    async def set_iproperty(self, handle: DocumentHandle, name: str, value: PropertyValue) -> None: ...

    async def get_parameter(self, handle: DocumentHandle, name: str) -> str: ...

    async def set_parameter(self, handle: DocumentHandle, name: str, expression: str) -> None: ...

    async def set_suppression(self, handle: DocumentHandle, component: str, suppressed: bool) -> None: ...

    async def set_member(self, handle: DocumentHandle, component: str, member: str) -> None: ...

    async def activate_model_state(self, handle: DocumentHandle, name: str) -> None: ...

    async def activate_representation(self, handle: DocumentHandle, name: str) -> str: ...

    async def ping(self) -> bool: ...

    async def dispose(self) -> None: ...
