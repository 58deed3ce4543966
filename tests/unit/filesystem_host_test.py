"""Unit tests for the JSON-backed filesystem CAD host."""

from __future__ import annotations

from pathlib import Path

import pytest

from cad_doctree.errors import AccessDeniedError, HostFailureError, InvalidRequestError, NotFoundError, ReasonCode
from cad_doctree.host import FileSystemCadHost, read_document
from cad_doctree.models import DocumentKind


@pytest.mark.asyncio
async def test_open_missing_document_raises_not_found(tmp_path: Path, host: FileSystemCadHost) -> None:
    with pytest.raises(NotFoundError):
        await host.open(tmp_path / "missing.ipt")


@pytest.mark.asyncio
async def test_writable_open_of_read_only_file_is_denied(model_tree: dict[str, Path], host: FileSystemCadHost) -> None:
    model_tree["P1"].chmod(0o444)
    try:
        with pytest.raises(AccessDeniedError):
            await host.open(model_tree["P1"], writable=True)
        handle = await host.open(model_tree["P1"])
        assert handle.kind == DocumentKind.PART
    finally:
        model_tree["P1"].chmod(0o644)


@pytest.mark.asyncio
async def test_unreadable_content_is_an_open_failure(tmp_path: Path, host: FileSystemCadHost) -> None:
    broken = tmp_path / "broken.ipt"
    broken.write_text("not json", encoding="utf-8")

    with pytest.raises(HostFailureError) as exc_info:
        await host.open(broken)

    assert exc_info.value.reason == ReasonCode.OPEN_FAILURE


@pytest.mark.asyncio
async def test_rewrite_reference_and_save_persists(model_tree: dict[str, Path], host: FileSystemCadHost) -> None:
    handle = await host.open(model_tree["A"], writable=True)
    await host.rewrite_reference(handle, "P1.ipt", "NEW-P1.ipt")
    assert handle.dirty
    await host.save(handle)
    await host.close(handle)

    assert read_document(model_tree["A"]).references == ["NEW-P1.ipt", "P2.ipt"]
    assert host.open_documents == []


@pytest.mark.asyncio
async def test_save_of_read_only_handle_is_denied(model_tree: dict[str, Path], host: FileSystemCadHost) -> None:
    handle = await host.open(model_tree["A"])
    with pytest.raises(AccessDeniedError):
        await host.save(handle)


@pytest.mark.asyncio
async def test_closed_handle_cannot_be_used(model_tree: dict[str, Path], host: FileSystemCadHost) -> None:
    handle = await host.open(model_tree["A"])
    await host.close(handle)
    with pytest.raises(HostFailureError):
        await host.list_references(handle)


@pytest.mark.asyncio
async def test_representation_lookup_reports_category(tmp_path: Path, host: FileSystemCadHost, make_doc) -> None:
    path = make_doc(
        tmp_path / "Frame.iam",
        model_states=["Master", "Light"],
        representations={"design_view": ["Default"], "positional": ["Open"]},
    )
    handle = await host.open(path, writable=True)

    await host.activate_model_state(handle, "light")
    category = await host.activate_representation(handle, "OPEN")

    assert category == "positional"
    assert handle.state.active_model_state == "Light"
    assert handle.state.active_representation == "Open"
    with pytest.raises(NotFoundError):
        await host.activate_representation(handle, "Exploded")


@pytest.mark.asyncio
async def test_model_state_on_part_is_rejected(model_tree: dict[str, Path], host: FileSystemCadHost) -> None:
    handle = await host.open(model_tree["P1"], writable=True)
    with pytest.raises(InvalidRequestError):
        await host.activate_model_state(handle, "Master")


@pytest.mark.asyncio
async def test_set_member_requires_known_row(tmp_path: Path, host: FileSystemCadHost, make_doc) -> None:
    path = make_doc(tmp_path / "Rack.iam", components=[{"name": "Bolt:1", "members": ["M6", "M8"]}])
    handle = await host.open(path, writable=True)

    await host.set_member(handle, "bolt:1", "m8")
    assert handle.state.components[0].member == "M8"
    with pytest.raises(NotFoundError):
        await host.set_member(handle, "Bolt:1", "M10")
