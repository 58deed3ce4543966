from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, Depends

from cad_doctree.api.dependencies import get_session
from cad_doctree.api.routes.root import API_PREFIX
from cad_doctree.api.schemas import PrefixSwapRequest, ReportResponse
from cad_doctree.config import Settings, get_settings
from cad_doctree.core.session import CadSession
from cad_doctree.core.workflows import update_drawing_references

router = APIRouter(prefix=API_PREFIX, tags=["drawings"])


@router.post("/update-drawing-references", response_model=ReportResponse)
@router.post("/design-assist-update-drawing-references", response_model=ReportResponse)
async def update_references(
    body: PrefixSwapRequest,
    session: CadSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> ReportResponse:
    """Retarget drawings (and project files) from ``oldPrefix`` models to their ``newPrefix`` counterparts."""
    report = await update_drawing_references(
        session,
        body.drawings_path,
        body.model_path,
        body.old_prefix,
        body.new_prefix,
        project_path=body.project_path,
        excluded_dirs=settings.excluded_dirs,
        case_sensitive=settings.case_sensitive,
    )
    return ReportResponse(
        message="Drawing and project references update completed.",
        success=bool(report.success),
        timestamp=datetime.now(UTC),
        report=report,
    )
