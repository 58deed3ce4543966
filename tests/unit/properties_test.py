"""Unit tests for the batch property updater."""

from __future__ import annotations

from pathlib import Path

import pytest

from cad_doctree.core.properties import (
    MemberUpdate,
    ModelStateUpdate,
    model_files,
    prefixed_part_number,
    update_all_properties,
    update_members,
    update_model_states,
)
from cad_doctree.core.session import CadSession
from cad_doctree.errors import NotFoundError, ReasonCode
from cad_doctree.host import read_document


def test_model_files_lists_parts_before_assemblies(model_tree: dict[str, Path]) -> None:
    names = [p.name for p in model_files(model_tree["root"])]
    assert names == ["P2.ipt", "P1.ipt", "A.iam"]


def test_model_files_filters_on_original_prefix(model_tree: dict[str, Path]) -> None:
    assert [p.name for p in model_files(model_tree["root"], original_prefix="p")] == ["P2.ipt", "P1.ipt"]


@pytest.mark.parametrize(
    ("part_number", "expected"),
    [("OLD_001", "NEW_001"), ("001", "NEW_001"), ("", "NEW_")],
)
def test_prefixed_part_number(part_number: str, expected: str) -> None:
    assert prefixed_part_number("NEW", part_number) == expected


@pytest.mark.asyncio
async def test_update_all_properties_sets_values(session: CadSession, model_tree: dict[str, Path]) -> None:
    report = await update_all_properties(
        session, model_tree["root"], {"Designer": "Dana", "Revision Number": 3, "partPrefix": "ACME"}
    )

    assert report.success
    assert len(report.processed) == 3
    p1 = read_document(model_tree["P1"]).iproperties
    assert p1["Designer"] == "Dana"
    assert p1["Revision Number"] == 3
    assert p1["Part Number"] == "ACME_001"
    assert "partPrefix" not in p1


@pytest.mark.asyncio
async def test_update_all_properties_continues_past_bad_file(
    session: CadSession, model_tree: dict[str, Path]
) -> None:
    (model_tree["root"] / "Broken.ipt").write_text("nope", encoding="utf-8")

    report = await update_all_properties(session, model_tree["root"], {"Designer": "Dana"})

    assert not report.success
    assert [(Path(e.path).name, e.reason) for e in report.failed] == [("Broken.ipt", ReasonCode.OPEN_FAILURE)]
    assert len(report.processed) == 3
    assert read_document(model_tree["A"]).iproperties["Designer"] == "Dana"


@pytest.mark.asyncio
async def test_update_all_properties_on_empty_folder_is_vacuous(session: CadSession, tmp_path: Path) -> None:
    report = await update_all_properties(session, tmp_path, {"Designer": "Dana"})

    assert report.success
    assert report.processed == []


@pytest.mark.asyncio
async def test_update_all_properties_requires_directory(session: CadSession, tmp_path: Path) -> None:
    with pytest.raises(NotFoundError):
        await update_all_properties(session, tmp_path / "missing", {"Designer": "Dana"})


@pytest.mark.asyncio
async def test_update_members_switches_rows(session: CadSession, tmp_path: Path, make_doc) -> None:
    rack = make_doc(tmp_path / "Rack.iam", components=[{"name": "Bolt:1", "members": ["M6", "M8"]}])
    shelf = make_doc(tmp_path / "Shelf.iam", components=[{"name": "Bolt:1", "members": ["M6"]}])

    report = await update_members(
        session, [MemberUpdate(rack, {"Bolt:1": "M8"}), MemberUpdate(shelf, {"Bolt:1": "M12"})]
    )

    assert report.paths("processed") == [str(rack)]
    assert [(e.path, e.reason) for e in report.failed] == [(str(shelf), ReasonCode.NOT_FOUND)]
    assert read_document(rack).components[0].member == "M8"
    assert read_document(shelf).components[0].member is None


@pytest.mark.asyncio
async def test_update_model_states_activates_both(session: CadSession, tmp_path: Path, make_doc) -> None:
    frame = make_doc(
        tmp_path / "Frame.iam",
        model_states=["Master", "Light"],
        representations={"level_of_detail": ["Simplified"]},
    )

    report = await update_model_states(session, [ModelStateUpdate(frame, "Light", "Simplified")])

    assert report.success
    saved = read_document(frame)
    assert saved.active_model_state == "Light"
    assert saved.active_representation == "Simplified"


@pytest.mark.asyncio
async def test_partial_update_is_not_saved(session: CadSession, tmp_path: Path, make_doc) -> None:
    frame = make_doc(tmp_path / "Frame.iam", model_states=["Master", "Light"])

    report = await update_model_states(session, [ModelStateUpdate(frame, "Light", "Exploded")])

    assert not report.success
    assert read_document(frame).active_model_state is None


@pytest.mark.asyncio
async def test_update_members_applies_each_item_for_the_same_assembly(
    session: CadSession, tmp_path: Path, make_doc
) -> None:
    rack = make_doc(
        tmp_path / "Rack.iam",
        components=[{"name": "C1", "members": ["m1", "m2"]}, {"name": "C2", "members": ["x1", "x2"]}],
    )

    report = await update_members(session, [MemberUpdate(rack, {"C1": "m2"}), MemberUpdate(rack, {"C2": "x2"})])

    assert report.success
    assert report.paths("processed") == [str(rack), str(rack)]
    assert [c.member for c in read_document(rack).components] == ["m2", "x2"]


@pytest.mark.asyncio
async def test_update_model_states_applies_each_item_for_the_same_assembly(
    session: CadSession, tmp_path: Path, make_doc
) -> None:
    frame = make_doc(
        tmp_path / "Frame.iam",
        model_states=["Master", "Light"],
        representations={"design_view": ["Wire"]},
    )

    report = await update_model_states(
        session, [ModelStateUpdate(frame, model_state="Light"), ModelStateUpdate(frame, representation="Wire")]
    )

    assert report.success
    saved = read_document(frame)
    assert saved.active_model_state == "Light"
    assert saved.active_representation == "Wire"
