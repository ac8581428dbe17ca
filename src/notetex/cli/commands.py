"""CLI command implementations"""

from pathlib import Path
from typing import Annotated, Optional

import typer
from sqlmodel import Session

from notetex.config import Settings, load_config
from notetex.core.compile import compile_latex
from notetex.core.pipeline import convert_document
from notetex.core.utils.paths import BLOCK_PREFIXES
from notetex.crud.conversions import list_conversions, record_conversion
from notetex.crud.database import init_db, make_engine, reset_db
from notetex.crud.vault_store import VaultStore
from notetex.errors import NotetexError


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        return load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))


def _collections(settings: Settings) -> list[str]:
    return [settings.writing_path, settings.equation_blocks_path,
            settings.table_blocks_path, settings.figure_blocks_path]


def convert_cmd(
    name: Annotated[str, typer.Argument(help="Vault-relative path of the note to convert")],
    vault: Annotated[Optional[str], typer.Option("--vault", help="Vault root directory")] = None,
    compile_: Annotated[Optional[bool], typer.Option("--compile/--no-compile", help="Compile the .tex after writing")] = None,
    table_package: Annotated[Optional[str], typer.Option("--table-package", help="tabularx, longtable or tabular")] = None,
    toc: Annotated[Optional[bool], typer.Option("--toc/--no-toc", help="Add a table of contents")] = None,
    ):
    """Convert a note to <writing_path>/<name>.tex and record it in the history."""
    settings = _settings(overrides={
        "vault_dir": vault, "auto_compile": compile_,
        "table_package": table_package, "add_table_of_contents": toc,
    })
    store = VaultStore(settings.vault_dir)

    def _compile(out_path: str):
        return compile_latex(store.full_path(out_path), settings.latex_compiler)

    try:
        result = convert_document(name, store, settings, compile_fn=_compile)
    except NotetexError as e:
        _fail(f"Conversion of {name} failed", e)

    engine = make_engine(settings.db_url)
    init_db(engine)
    with Session(engine) as session:
        _, status = record_conversion(session, result)
        session.commit()

    typer.echo(f"  {status.value}: {result.source_path} -> {result.output_path}")
    if result.compile is not None:
        if not result.compile.success:
            _fail("Compilation failed", result.compile.error)
        typer.echo("Compilation succeeded.")


def list_cmd(
    vault: Annotated[Optional[str], typer.Option("--vault", help="Vault root directory")] = None,
    ):
    """List the notes in the vault that can be converted (block collections excluded)."""
    settings = _settings(overrides={"vault_dir": vault})
    notes = [
        p for p in VaultStore(settings.vault_dir).list()
        if p.endswith(".md") and not Path(p).name.startswith(BLOCK_PREFIXES)
    ]
    if not notes:
        typer.echo("No notes found in vault.")
        raise typer.Exit(1)
    for p in notes:
        typer.echo(p)


def compile_cmd(
    tex: Annotated[Optional[str], typer.Argument(help="Vault-relative .tex path; defaults to the most recent")] = None,
    vault: Annotated[Optional[str], typer.Option("--vault", help="Vault root directory")] = None,
    ):
    """Compile a generated .tex file with the configured LaTeX engine."""
    settings = _settings(overrides={"vault_dir": vault})
    store = VaultStore(settings.vault_dir)

    if tex is None:
        candidates = [store.full_path(p) for p in store.list(settings.writing_path) if p.endswith(".tex")]
        if not candidates:
            _fail(f"No .tex files found under {settings.writing_path}")
        target = max(candidates, key=lambda p: p.stat().st_mtime)
    else:
        target = store.full_path(tex)

    result = compile_latex(target, settings.latex_compiler)
    if not result.success:
        _fail(f"Compilation of {target} failed", result.error)
    typer.echo(f"Compiled {target}")


def history_cmd(
    limit: Annotated[Optional[int], typer.Option("--limit", help="Show at most this many entries")] = None,
    ):
    """Show recorded conversions, most recent first."""
    settings = _settings()
    engine = make_engine(settings.db_url)
    init_db(engine)
    with Session(engine) as session:
        rows = list_conversions(session, limit)
        lines = [
            f"{r.converted_at:%Y-%m-%d %H:%M:%S}  {r.status.value:<9}  {r.source_path} -> {r.output_path}"
            for r in rows
        ]
    if not lines:
        typer.echo("No conversions recorded.")
        raise typer.Exit(1)
    for line in lines:
        typer.echo(line)


def init_cmd(
    vault: Annotated[Optional[str], typer.Option("--vault", help="Vault root directory")] = None,
    reset: Annotated[bool, typer.Option("--reset", help="Drop and recreate the history tables")] = False,
    ):
    """Create the history database and the writing/block collection folders."""
    settings = _settings(overrides={"vault_dir": vault})
    engine = make_engine(settings.db_url)
    if reset:
        reset_db(engine)
        typer.echo("Existing history cleared.")
    else:
        init_db(engine)
    typer.echo(f"Database initialized at: {settings.db_url}")

    store = VaultStore(settings.vault_dir)
    try:
        for path in _collections(settings):
            store.ensure_directory(path)
            typer.echo(f"  {path}/")
    except NotetexError as e:
        _fail("Cannot create vault folders", e)
