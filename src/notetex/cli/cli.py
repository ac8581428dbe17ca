"""CLI entrypoint: Typer app definition and command registration"""

import logging
from typing import Annotated

import typer

from notetex.cli.commands import compile_cmd, convert_cmd, history_cmd, init_cmd, list_cmd
from notetex.config import configure_logging, load_config


app = typer.Typer(name="notetex", no_args_is_help=True, help="Convert markdown notes to LaTeX papers")


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log debug diagnostics")] = False,
    ):
    """Configure logging before any command runs."""
    if verbose:
        configure_logging(logging.DEBUG)
        return
    try:
        configure_logging(load_config().log_level)
    except ValueError:
        configure_logging(logging.WARNING)


app.command(name="convert")(convert_cmd)
app.command(name="list")(list_cmd)
app.command(name="compile")(compile_cmd)
app.command(name="history")(history_cmd)
app.command(name="init")(init_cmd)
