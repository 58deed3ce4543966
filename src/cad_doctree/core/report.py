"""Merge per-stage outcomes into one report with summary counts."""

from __future__ import annotations

from cad_doctree.models import BatchReport, BatchSummary

_LIST_CATEGORIES = (
    "processed",
    "updated_references",
    "failed",
    "renamed",
    "failed_renames",
    "renamed_projects",
    "failed_project_renames",
    "planning_failures",
    "deleted",
    "failed_deletes",
    "warnings",
)

FAILURE_CATEGORIES = ("failed", "failed_renames", "failed_project_renames", "planning_failures", "failed_deletes")


def summarize(report: BatchReport) -> BatchSummary:
    failed_count = sum(len(getattr(report, c)) for c in FAILURE_CATEGORIES)
    attempted = len(report.processed) + len(report.renamed) + len(report.renamed_projects)
    errors = len(report.failed) + len(report.failed_renames) + len(report.failed_project_renames)
    total = attempted + errors
    return BatchSummary(
        processed=len(report.processed),
        updated=len(report.updated_references),
        failed=len(report.failed),
        renamed=len(report.renamed),
        failed_renames=len(report.failed_renames),
        renamed_projects=len(report.renamed_projects),
        failed_project_renames=len(report.failed_project_renames),
        planning_failures=len(report.planning_failures),
        deleted=len(report.deleted),
        failed_deletes=len(report.failed_deletes),
        failed_count=failed_count,
        success_rate=round(attempted / total * 100, 1) if total else 100.0,
    )


def aggregate(*reports: BatchReport) -> BatchReport:
    """Pure merge: inputs are not modified."""
    merged = BatchReport()
    for report in reports:
        for category in _LIST_CATEGORIES:
            getattr(merged, category).extend(e.model_copy() for e in getattr(report, category))
        for path in report.files_to_delete:
            if path not in merged.files_to_delete:
                merged.files_to_delete.append(path)
        merged.cancelled = merged.cancelled or report.cancelled
    merged.summary = summarize(merged)
    merged.success = merged.summary.failed_count == 0
    return merged
