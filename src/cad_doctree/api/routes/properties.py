from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, Depends

from cad_doctree.api.dependencies import get_session
from cad_doctree.api.routes.root import API_PREFIX
from cad_doctree.api.schemas import (
    ReportResponse,
    UpdateAllPropertiesRequest,
    UpdateMembersRequest,
    UpdateModelStatesRequest,
)
from cad_doctree.config import Settings, get_settings
from cad_doctree.core.properties import (
    MemberUpdate,
    ModelStateUpdate,
    resolve_model_path,
    update_all_properties,
    update_members,
    update_model_states,
)
from cad_doctree.core.session import CadSession
from cad_doctree.models import BatchReport

router = APIRouter(prefix=API_PREFIX, tags=["properties"])


def _respond(report: BatchReport, ok: str, partial: str) -> ReportResponse:
    success = bool(report.success)
    return ReportResponse(
        message=ok if success else partial,
        success=success,
        timestamp=datetime.now(UTC),
        report=report,
    )


@router.post("/update-all-properties", response_model=ReportResponse)
async def update_all(
    body: UpdateAllPropertiesRequest,
    session: CadSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> ReportResponse:
    report = await update_all_properties(session, body.directory_path, body.i_properties, settings.excluded_dirs)
    return _respond(
        report,
        "iProperties updated successfully for all assemblies and parts.",
        "iProperties update finished with failures. See report for details.",
    )


@router.post("/update-multiple-iparts-iassemblies", response_model=ReportResponse)
async def update_iparts(
    body: UpdateMembersRequest,
    session: CadSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> ReportResponse:
    updates = [
        MemberUpdate(resolve_model_path(settings.model_root, u.assembly_file_path), u.iparts_iassemblies)
        for u in body.assembly_updates
    ]
    report = await update_members(session, updates)
    return _respond(
        report,
        "iParts and iAssemblies updated successfully.",
        "iParts and iAssemblies update finished with failures.",
    )


@router.post("/update-model-state-and-representations", response_model=ReportResponse)
async def update_states(
    body: UpdateModelStatesRequest,
    session: CadSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> ReportResponse:
    updates = [
        ModelStateUpdate(
            resolve_model_path(settings.model_root, u.assembly_file_path), u.model_state, u.representations
        )
        for u in body.assembly_updates
    ]
    report = await update_model_states(session, updates)
    return _respond(
        report,
        "Model states and representations updated successfully.",
        "Model states and representations update finished with failures.",
    )
