"""Single-resource operations on the open assembly session."""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, Depends

from cad_doctree.api.dependencies import get_session
from cad_doctree.api.routes.root import API_PREFIX
from cad_doctree.api.schemas import (
    AssemblyResponse,
    AssemblyStatusResponse,
    ChangeParametersRequest,
    OpenAssemblyRequest,
    ParametersResponse,
    ReportResponse,
    SuppressComponentRequest,
    SuppressMultipleRequest,
    SuppressResponse,
)
from cad_doctree.core.parameters import ParameterChange, change_parameters
from cad_doctree.core.session import CadSession
from cad_doctree.core.suppression import SuppressAction, suppress_component, suppress_components

router = APIRouter(prefix=API_PREFIX, tags=["assembly"])


@router.post("/open-assembly", response_model=AssemblyResponse)
async def open_assembly(
    body: OpenAssemblyRequest,
    session: CadSession = Depends(get_session),
) -> AssemblyResponse:
    path = await session.open_assembly(body.assembly_path)
    return AssemblyResponse(message="Assembly opened successfully.", assembly_path=str(path))


@router.post("/close-assembly", response_model=AssemblyResponse)
async def close_assembly(session: CadSession = Depends(get_session)) -> AssemblyResponse:
    path = await session.close_assembly()
    if path is None:
        return AssemblyResponse(message="No assembly was open.")
    return AssemblyResponse(message="Assembly closed successfully.", assembly_path=str(path))


@router.get("/assembly-status", response_model=AssemblyStatusResponse)
async def assembly_status(session: CadSession = Depends(get_session)) -> AssemblyStatusResponse:
    active = session.active_assembly
    return AssemblyStatusResponse(
        is_assembly_open=session.is_open,
        assembly_path=str(active) if active is not None else None,
        session_busy=session.gate.busy,
    )


@router.post("/change-parameters", response_model=ParametersResponse)
async def change_part_parameters(
    body: ChangeParametersRequest,
    session: CadSession = Depends(get_session),
) -> ParametersResponse:
    changes = [ParameterChange(p.parameter_name, p.new_value) for p in body.parameters]
    updated = await change_parameters(session, body.part_file_path, changes)
    return ParametersResponse(
        message="Parameters updated successfully.", part_file_path=body.part_file_path, updated=updated
    )


@router.post("/suppress-component", response_model=SuppressResponse)
async def suppress_one(
    body: SuppressComponentRequest,
    session: CadSession = Depends(get_session),
) -> SuppressResponse:
    target = await suppress_component(session, body.assembly_file_path, body.component_name, body.suppress)
    verb = "suppressed" if body.suppress else "unsuppressed"
    return SuppressResponse(
        message=f"Component {body.component_name} {verb} successfully.",
        assembly_file_path=str(target),
        component_name=body.component_name,
        suppress=body.suppress,
    )


@router.post("/suppress-multiple-components", response_model=ReportResponse)
async def suppress_many(
    body: SuppressMultipleRequest,
    session: CadSession = Depends(get_session),
) -> ReportResponse:
    actions = [SuppressAction(a.assembly_file_path, list(a.components), a.suppress) for a in body.suppress_actions]
    report = await suppress_components(session, actions)
    message = (
        "Multiple components updated successfully."
        if report.success
        else "Multiple components updated with failures."
    )
    return ReportResponse(message=message, success=bool(report.success), timestamp=datetime.now(UTC), report=report)
