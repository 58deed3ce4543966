from typing import Annotated

import typer

from cad_doctree.cli.render import console, render_report
from cad_doctree.core.cleanup import delete_files

files_app = typer.Typer(help="File maintenance.")


@files_app.command("delete")
def delete(
    paths: Annotated[list[str], typer.Argument(help="Exact file paths to delete.")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip the confirmation prompt.")] = False,
) -> None:
    """Delete exactly the listed files and report each outcome."""
    if not yes:
        typer.confirm(f"Delete {len(paths)} file(s)?", abort=True)
    report = delete_files(paths)
    render_report(report)
    if not report.success:
        console.print("[red]Some files could not be deleted.[/red]")
        raise typer.Exit(1)
