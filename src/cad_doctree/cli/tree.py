"""Document-tree commands: analyze, rename, swap-prefix, update-drawings."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Annotated, TypeVar

import typer

from cad_doctree.cli.render import console, render_mapping, render_report, render_table
from cad_doctree.config import get_settings
from cad_doctree.core.session import CadSession, SessionGate
from cad_doctree.core.workflows import (
    design_assist_rename,
    recursive_rename_with_prefix,
    recursive_rename_with_prefix_and_drawings,
    update_drawing_references,
)
from cad_doctree.errors import DocTreeError
from cad_doctree.host.filesystem import FileSystemCadHost

tree_app = typer.Typer(help="Analyze and rename CAD document trees.")

T = TypeVar("T")


def _run(job: Callable[[CadSession], Awaitable[T]]) -> T:
    settings = get_settings()
    session = CadSession(FileSystemCadHost(), SessionGate(settings.session_timeout))

    async def _go() -> T:
        try:
            return await job(session)
        finally:
            await session.shutdown()

    try:
        return asyncio.run(_go())
    except DocTreeError as exc:
        console.print(f"[red]{exc.reason}: {exc.message}[/red]")
        raise typer.Exit(1) from exc


@tree_app.command("analyze")
def analyze(
    directory: Annotated[str, typer.Argument(help="Folder holding the assemblies and parts.")],
    prefix: Annotated[str, typer.Option(help="Part Number prefix to rename after.")],
    assembly: Annotated[list[str] | None, typer.Option(help="Root assembly name; repeat for several.")] = None,
) -> None:
    """Show the planned Part Number rename without touching any file."""
    settings = get_settings()
    outcome = _run(
        lambda s: design_assist_rename(
            s,
            directory,
            prefix,
            assembly,
            excluded_dirs=settings.excluded_dirs,
            case_sensitive=settings.case_sensitive,
            dry_run=True,
        )
    )
    render_table(["path", "kind", "resolved"], [(n.path, n.kind, n.resolved) for n in outcome.graph.nodes])
    render_mapping(outcome.plan.mapping())
    render_report(outcome.report)


@tree_app.command("rename")
def rename(
    directory: Annotated[str, typer.Argument(help="Folder holding the assemblies and parts.")],
    prefix: Annotated[str, typer.Option(help="Part Number prefix to rename after.")],
    assembly: Annotated[list[str] | None, typer.Option(help="Root assembly name; repeat for several.")] = None,
) -> None:
    """Rename documents after their Part Number and repair every reference."""
    settings = get_settings()
    outcome = _run(
        lambda s: design_assist_rename(
            s,
            directory,
            prefix,
            assembly,
            excluded_dirs=settings.excluded_dirs,
            case_sensitive=settings.case_sensitive,
        )
    )
    render_report(outcome.report)
    if not outcome.report.success:
        raise typer.Exit(1)


@tree_app.command("add-prefix")
def add_prefix(
    model_path: Annotated[str, typer.Argument(help="Folder holding the model tree.")],
    prefix: Annotated[str, typer.Option(help="Prefix to prepend to every document name.")],
    strict: Annotated[bool, typer.Option(help="Rename nothing if any document fails planning.")] = False,
) -> None:
    """Prefix every document of the model tree and delete the originals."""
    settings = get_settings()
    outcome = _run(
        lambda s: recursive_rename_with_prefix(
            s,
            model_path,
            prefix,
            excluded_dirs=settings.excluded_dirs,
            case_sensitive=settings.case_sensitive,
            strict=strict,
        )
    )
    render_mapping(outcome.plan.mapping())
    render_report(outcome.report)
    if not outcome.report.success:
        raise typer.Exit(1)


@tree_app.command("swap-prefix")
def swap_prefix(
    model_path: Annotated[str, typer.Argument(help="Folder holding the model tree.")],
    drawings_path: Annotated[str, typer.Argument(help="Folder holding the drawings.")],
    old_prefix: Annotated[str, typer.Option(help="Prefix to replace.")],
    new_prefix: Annotated[str, typer.Option(help="Replacement prefix.")],
    project_path: Annotated[str | None, typer.Option(help="Project file or folder of project files.")] = None,
    strict: Annotated[bool, typer.Option(help="Rename nothing if any document fails planning.")] = False,
) -> None:
    """Swap prefixes across models, drawings and project files."""
    settings = get_settings()
    outcome = _run(
        lambda s: recursive_rename_with_prefix_and_drawings(
            s,
            model_path,
            drawings_path,
            old_prefix,
            new_prefix,
            project_path=project_path,
            excluded_dirs=settings.excluded_dirs,
            case_sensitive=settings.case_sensitive,
            strict=strict,
        )
    )
    render_mapping(outcome.plan.mapping())
    render_report(outcome.report)
    if not outcome.report.success:
        raise typer.Exit(1)


@tree_app.command("update-drawings")
def update_drawings(
    drawings_path: Annotated[str, typer.Argument(help="Folder holding the drawings.")],
    model_path: Annotated[str, typer.Argument(help="Folder holding the renamed models.")],
    old_prefix: Annotated[str, typer.Option(help="Prefix the drawings still reference.")],
    new_prefix: Annotated[str, typer.Option(help="Prefix of the renamed models.")],
    project_path: Annotated[str | None, typer.Option(help="Project file or folder of project files.")] = None,
) -> None:
    """Retarget drawings from old-prefix models to their renamed counterparts."""
    settings = get_settings()
    report = _run(
        lambda s: update_drawing_references(
            s,
            drawings_path,
            model_path,
            old_prefix,
            new_prefix,
            project_path=project_path,
            excluded_dirs=settings.excluded_dirs,
            case_sensitive=settings.case_sensitive,
        )
    )
    render_report(report)
    if not report.success:
        raise typer.Exit(1)
