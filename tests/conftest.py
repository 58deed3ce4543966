"""Shared fixtures and helpers for tests."""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from cad_doctree.core.paths import kind_for_path
from cad_doctree.core.session import CadSession, SessionGate
from cad_doctree.host.filesystem import CadDocument, FileSystemCadHost, write_document

_REPO_ROOT = Path(__file__).parent.parent

MakeDoc = Callable[..., Path]


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Document helpers
# ---------------------------------------------------------------------------


def write_doc(path: Path, **fields: Any) -> Path:
    """Write a JSON-backed CAD document; the kind follows the file extension."""
    fields.setdefault("kind", kind_for_path(path))
    path.parent.mkdir(parents=True, exist_ok=True)
    write_document(path, CadDocument(**fields))
    return path


# ---------------------------------------------------------------------------
# Shared unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def make_doc() -> MakeDoc:
    return write_doc


@pytest.fixture
def host() -> FileSystemCadHost:
    return FileSystemCadHost()


@pytest.fixture
def session(host: FileSystemCadHost) -> CadSession:
    return CadSession(host, SessionGate(timeout=0.5))


@pytest.fixture
def model_tree(tmp_path: Path) -> dict[str, Path]:
    """``A.iam`` referencing ``P1.ipt`` and ``P2.ipt`` by relative path."""
    root = tmp_path / "models"
    p1 = write_doc(root / "P1.ipt", iproperties={"Part Number": "NEW_001"}, parameters={"Length": "10 mm"})
    p2 = write_doc(root / "P2.ipt", iproperties={"Part Number": "NEW_002"})
    a = write_doc(
        root / "A.iam",
        references=["P1.ipt", "P2.ipt"],
        iproperties={"Part Number": "NEW_100"},
        components=[{"name": "P1:1"}, {"name": "P2:1"}],
    )
    return {"root": root, "A": a, "P1": p1, "P2": p2}
