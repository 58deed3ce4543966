from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter

from cad_doctree.api.routes.root import API_PREFIX
from cad_doctree.api.schemas import DeleteFilesRequest, ReportResponse
from cad_doctree.core.cleanup import delete_files

router = APIRouter(prefix=API_PREFIX, tags=["files"])


@router.post("/delete-files", response_model=ReportResponse)
async def delete(body: DeleteFilesRequest) -> ReportResponse:
    """Delete exactly the listed files and report each one."""
    report = delete_files(body.file_paths)
    return ReportResponse(
        message="File deletion completed.",
        success=bool(report.success),
        timestamp=datetime.now(UTC),
        report=report,
    )
