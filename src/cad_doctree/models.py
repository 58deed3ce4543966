from __future__ import annotations

from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from cad_doctree.errors import ReasonCode

# Values accepted in property bags and parameter lists.
PropertyValue = str | int | float | bool


class DocumentKind(StrEnum):
    PART = "part"
    ASSEMBLY = "assembly"
    DRAWING = "drawing"
    PROJECT = "project"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReportEntry(CamelModel):
    path: str
    target: str | None = None
    reason: ReasonCode | None = None
    detail: str | None = None
    count: int | None = None


class BatchSummary(CamelModel):
    processed: int = 0
    updated: int = 0
    failed: int = 0
    renamed: int = 0
    failed_renames: int = 0
    renamed_projects: int = 0
    failed_project_renames: int = 0
    planning_failures: int = 0
    deleted: int = 0
    failed_deletes: int = 0
    failed_count: int = 0
    success_rate: float = 0.0


class BatchReport(CamelModel):
    """Itemized outcome of a multi-item operation."""

    processed: list[ReportEntry] = Field(default_factory=list)
    updated_references: list[ReportEntry] = Field(default_factory=list)
    failed: list[ReportEntry] = Field(default_factory=list)
    renamed: list[ReportEntry] = Field(default_factory=list)
    failed_renames: list[ReportEntry] = Field(default_factory=list)
    renamed_projects: list[ReportEntry] = Field(default_factory=list)
    failed_project_renames: list[ReportEntry] = Field(default_factory=list)
    planning_failures: list[ReportEntry] = Field(default_factory=list)
    deleted: list[ReportEntry] = Field(default_factory=list)
    failed_deletes: list[ReportEntry] = Field(default_factory=list)
    warnings: list[ReportEntry] = Field(default_factory=list)
    files_to_delete: list[str] = Field(default_factory=list)
    cancelled: bool = False
    summary: BatchSummary | None = None
    success: bool | None = None

    def add(
        self,
        category: str,
        path: str | Path,
        *,
        target: str | Path | None = None,
        reason: ReasonCode | None = None,
        detail: str | None = None,
        count: int | None = None,
    ) -> ReportEntry:
        entry = ReportEntry(
            path=str(path),
            target=str(target) if target is not None else None,
            reason=reason,
            detail=detail,
            count=count,
        )
        getattr(self, category).append(entry)
        return entry

    def paths(self, category: str) -> list[str]:
        return [e.path for e in getattr(self, category)]
