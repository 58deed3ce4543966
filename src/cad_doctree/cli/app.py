import logging
from typing import Annotated

import typer

from cad_doctree.cli.files import files_app
from cad_doctree.cli.serve import serve
from cad_doctree.cli.tree import tree_app

app = typer.Typer(
    name="cad-doctree",
    help="CAD document tree CLI: analyze, rename and repair assembly references.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def configure(
    log_level: Annotated[str, typer.Option("--log-level", help="Logging level (DEBUG, INFO, WARNING, ...).")] = "INFO",
) -> None:
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


app.command("serve")(serve)
app.add_typer(tree_app, name="tree")
app.add_typer(files_app, name="files")


def main() -> None:
    app()
