from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Annotated

from pydantic import AfterValidator, AliasChoices, Field, StringConstraints

from cad_doctree.models import BatchReport, CamelModel, PropertyValue

PREFIX_PATTERN = r"^[A-Za-z0-9_-]+$"

RequiredStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=500)]
Prefix = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50, pattern=PREFIX_PATTERN)]


def _existing_directory(value: str) -> str:
    path = Path(value).expanduser()
    if not path.is_absolute():
        raise ValueError(f"Directory path must be absolute: {value}")
    path = path.resolve()
    if not path.is_dir():
        raise ValueError(f"Directory not found: {path}")
    return str(path)


def _optional_directory(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return _existing_directory(value.strip())


DirectoryPath = Annotated[RequiredStr, AfterValidator(_existing_directory)]
OptionalDirectoryPath = Annotated[str | None, AfterValidator(_optional_directory)]


# --- Requests ---


class OpenAssemblyRequest(CamelModel):
    assembly_path: RequiredStr


class ParameterItem(CamelModel):
    parameter_name: RequiredStr
    new_value: PropertyValue


class ChangeParametersRequest(CamelModel):
    part_file_path: RequiredStr
    parameters: list[ParameterItem] = Field(min_length=1)


class SuppressComponentRequest(CamelModel):
    assembly_file_path: RequiredStr
    component_name: RequiredStr
    suppress: bool = True


class SuppressActionItem(CamelModel):
    assembly_file_path: RequiredStr
    components: list[RequiredStr] = Field(min_length=1)
    suppress: bool = True


class SuppressMultipleRequest(CamelModel):
    suppress_actions: list[SuppressActionItem] = Field(min_length=1)


class UpdateAllPropertiesRequest(CamelModel):
    directory_path: DirectoryPath = Field(validation_alias=AliasChoices("directoryPath", "drawingspath"))
    i_properties: dict[str, PropertyValue] = Field(
        min_length=1, validation_alias=AliasChoices("iProperties", "ipropertiesdetails")
    )


class MemberUpdateItem(CamelModel):
    assembly_file_path: RequiredStr
    iparts_iassemblies: dict[str, str] = Field(
        min_length=1, validation_alias=AliasChoices("ipartsIassemblies", "iparts-iassemblies")
    )


class UpdateMembersRequest(CamelModel):
    assembly_updates: list[MemberUpdateItem] = Field(min_length=1)


class ModelStateItem(CamelModel):
    assembly_file_path: RequiredStr
    model_state: str | None = Field(default=None, validation_alias=AliasChoices("modelState", "model-state"))
    representations: str | None = None


class UpdateModelStatesRequest(CamelModel):
    assembly_updates: list[ModelStateItem] = Field(min_length=1)


class DesignAssistRequest(CamelModel):
    drawings_path: DirectoryPath = Field(validation_alias=AliasChoices("drawingsPath", "drawingspath"))
    part_prefix: Prefix
    assembly_list: list[RequiredStr] | None = None


class RecursiveRenameRequest(CamelModel):
    assembly_document_names: list[RequiredStr] = Field(min_length=1)
    file_names: dict[str, RequiredStr] = Field(min_length=1)
    strict: bool = False


class RecursiveRenameWithPrefixRequest(CamelModel):
    model_path: DirectoryPath
    prefix: Prefix
    strict: bool = False


class PrefixSwapRequest(CamelModel):
    drawings_path: DirectoryPath
    model_path: DirectoryPath
    project_path: OptionalDirectoryPath = None
    old_prefix: Prefix
    new_prefix: Prefix


class RenameWithDrawingsRequest(PrefixSwapRequest):
    strict: bool = False


class DeleteFilesRequest(CamelModel):
    file_paths: list[RequiredStr] = Field(min_length=1)


# --- Responses ---


class MessageResponse(CamelModel):
    message: str


class HealthResponse(CamelModel):
    status: str = "ok"


class ReadinessResponse(CamelModel):
    status: str = "ok"
    host: str = "up"


class AssemblyStatusResponse(CamelModel):
    is_assembly_open: bool
    assembly_path: str | None = None
    session_busy: bool = False


class AssemblyResponse(MessageResponse):
    assembly_path: str | None = None


class ParametersResponse(MessageResponse):
    part_file_path: str
    updated: int


class SuppressResponse(MessageResponse):
    assembly_file_path: str
    component_name: str
    suppress: bool


class ReportResponse(MessageResponse):
    success: bool
    timestamp: datetime
    report: BatchReport


class DesignAssistResponse(ReportResponse):
    processed_path: str
    prefix: str
    auto_discovered: bool
    status: str


class RenameAnalysis(CamelModel):
    documents: list[str]
    mapping: dict[str, str]
    no_op_count: int
    report: BatchReport


class AnalysisResponse(MessageResponse):
    processed_path: str
    prefix: str
    auto_discovered: bool
    timestamp: datetime
    status: str = "analysis_complete"
    analysis: RenameAnalysis


class RenameResponse(ReportResponse):
    mapping: dict[str, str]
    files_to_delete: list[str]
