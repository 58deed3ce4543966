"""Rename endpoints: design-assist rename/analyze and the recursive rename family."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends

from cad_doctree.api.dependencies import get_session
from cad_doctree.api.routes.root import API_PREFIX
from cad_doctree.api.schemas import (
    AnalysisResponse,
    DesignAssistRequest,
    DesignAssistResponse,
    RecursiveRenameRequest,
    RecursiveRenameWithPrefixRequest,
    RenameAnalysis,
    RenameResponse,
    RenameWithDrawingsRequest,
)
from cad_doctree.config import Settings, get_settings
from cad_doctree.core.session import CadSession
from cad_doctree.core.workflows import (
    RenameOutcome,
    design_assist_rename,
    recursive_rename,
    recursive_rename_with_prefix,
    recursive_rename_with_prefix_and_drawings,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix=API_PREFIX, tags=["rename"])


def _rename_response(outcome: RenameOutcome, message: str) -> RenameResponse:
    report = outcome.report
    return RenameResponse(
        message=message,
        success=bool(report.success),
        timestamp=datetime.now(UTC),
        report=report,
        mapping=outcome.plan.mapping(),
        files_to_delete=report.files_to_delete,
    )


@router.post("/design-assist-rename", response_model=DesignAssistResponse)
async def design_assist(
    body: DesignAssistRequest,
    session: CadSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> DesignAssistResponse:
    logger.info("Design assistant rename in %s with prefix %s", body.drawings_path, body.part_prefix)
    outcome = await design_assist_rename(
        session,
        body.drawings_path,
        body.part_prefix,
        body.assembly_list,
        excluded_dirs=settings.excluded_dirs,
        case_sensitive=settings.case_sensitive,
    )
    success = bool(outcome.report.success)
    return DesignAssistResponse(
        message=(
            "Design Assistant renaming completed successfully."
            if success
            else "Design Assistant renaming completed with failures. See report for details."
        ),
        success=success,
        timestamp=datetime.now(UTC),
        report=outcome.report,
        processed_path=body.drawings_path,
        prefix=body.part_prefix,
        auto_discovered=not body.assembly_list,
        status="success" if success else "partial",
    )


@router.post("/design-assist-analyze", response_model=AnalysisResponse)
async def design_assist_analyze(
    body: DesignAssistRequest,
    session: CadSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> AnalysisResponse:
    """Report what ``design-assist-rename`` would do, without changing anything."""
    outcome = await design_assist_rename(
        session,
        body.drawings_path,
        body.part_prefix,
        body.assembly_list,
        excluded_dirs=settings.excluded_dirs,
        case_sensitive=settings.case_sensitive,
        dry_run=True,
    )
    plan = outcome.plan
    return AnalysisResponse(
        message="Analysis completed successfully.",
        processed_path=body.drawings_path,
        prefix=body.part_prefix,
        auto_discovered=not body.assembly_list,
        timestamp=datetime.now(UTC),
        analysis=RenameAnalysis(
            documents=[str(n.path) for n in outcome.graph.nodes],
            mapping=plan.mapping(),
            no_op_count=len(plan.entries) - len(plan.changes),
            report=outcome.report,
        ),
    )


@router.post("/design-assist-recursive-rename", response_model=RenameResponse)
async def rename_with_table(
    body: RecursiveRenameRequest,
    session: CadSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> RenameResponse:
    outcome = await recursive_rename(
        session,
        body.assembly_document_names,
        body.file_names,
        settings.model_root,
        case_sensitive=settings.case_sensitive,
        strict=body.strict,
    )
    return _rename_response(outcome, "Recursive rename completed.")


@router.post("/design-assist-recursive-rename-with-prefix", response_model=RenameResponse)
async def rename_with_prefix(
    body: RecursiveRenameWithPrefixRequest,
    session: CadSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> RenameResponse:
    outcome = await recursive_rename_with_prefix(
        session,
        body.model_path,
        body.prefix,
        excluded_dirs=settings.excluded_dirs,
        case_sensitive=settings.case_sensitive,
        strict=body.strict,
    )
    cleaned = len(outcome.report.deleted)
    message = (
        "Recursive rename with prefix completed and old files cleaned up."
        if cleaned
        else "Recursive rename with prefix completed. No files to delete."
    )
    return _rename_response(outcome, message)


@router.post("/design-assist-recursive-rename-with-prefix-and-drawings", response_model=RenameResponse)
async def rename_with_prefix_and_drawings(
    body: RenameWithDrawingsRequest,
    session: CadSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> RenameResponse:
    outcome = await recursive_rename_with_prefix_and_drawings(
        session,
        body.model_path,
        body.drawings_path,
        body.old_prefix,
        body.new_prefix,
        project_path=body.project_path,
        excluded_dirs=settings.excluded_dirs,
        case_sensitive=settings.case_sensitive,
        strict=body.strict,
    )
    return _rename_response(outcome, "Recursive rename of models, drawings and projects completed.")
