from cad_doctree.host.filesystem import (
    CadDocument,
    Component,
    FileSystemCadHost,
    Representations,
    read_document,
    write_document,
)

__all__ = [
    "CadDocument",
    "Component",
    "FileSystemCadHost",
    "Representations",
    "read_document",
    "write_document",
]
