"""Conversion orchestration: stages, embed resolution, assembly and output"""

import hashlib
import logging
from typing import Callable, Optional

from notetex.config import Settings
from notetex.core.assemble import assemble
from notetex.core.embeds import resolve_embeds
from notetex.core.models import CompileResult, ConversionResult
from notetex.core.stages import equations, markdown, references, tables
from notetex.core.utils.frontmatter import strip_frontmatter
from notetex.core.utils.paths import parent_dir, tex_output_path
from notetex.crud.store import DocumentStore
from notetex.errors import ConversionError, DocumentNotFound


logger = logging.getLogger(__name__)

CompileFn = Callable[[str], CompileResult]


def content_hash(text: str) -> str:
    """Hex SHA-256 of text as stored in the history hash columns."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def run_stages(
    lines: list[str],
    settings: Settings,
    store: Optional[DocumentStore] = None,
    base_dir: str = '',
    ) -> list[str]:
    """markdown -> equations -> tables -> references -> embed resolution."""
    lines = markdown.process(lines)
    lines = equations.process(lines)
    lines = tables.process(lines, settings)
    lines = references.process(lines, settings, store, base_dir)
    if store is None:
        return lines
    return resolve_embeds('\n'.join(lines), store, settings, base_dir).split('\n')


def convert_text(text: str, settings: Settings, store: Optional[DocumentStore] = None, base_dir: str = '') -> str:
    """Full LaTeX document for markdown text. Frontmatter title/author override settings."""
    try:
        fm, body = strip_frontmatter(text)
    except ValueError as e:
        logger.warning("%s; converting without it", e)
        fm, body = {}, text
    overrides = {k: str(fm[k]) for k in ('title', 'author') if fm.get(k)}
    if overrides:
        settings = settings.model_copy(update=overrides)
    return assemble(run_stages(body.split('\n'), settings, store, base_dir), settings)


def source_path(name: str) -> str:
    return name if name.endswith('.md') else f'{name}.md'


def convert_document(
    name: str,
    store: Optional[DocumentStore],
    settings: Optional[Settings],
    compile_fn: Optional[CompileFn] = None,
    ) -> ConversionResult:
    """Convert the note at store path name and write <writing_path>/<stem>.tex.

    Raises ConversionError without a store or settings, DocumentNotFound for an
    absent note, and WriteFailure if the output cannot be persisted. compile_fn
    runs only after a successful write and only when auto_compile is set.
    """
    if store is None or settings is None:
        raise ConversionError("A document store and settings are required")

    path = source_path(name)
    text = store.read(path)
    if text is None:
        raise DocumentNotFound(f"Note not found: {path}")

    latex = convert_text(text, settings, store, parent_dir(path))
    out_path = tex_output_path(path, settings)
    store.ensure_directory(parent_dir(out_path))
    store.write(out_path, latex)
    logger.info("Converted %s -> %s", path, out_path)

    result = ConversionResult(
        source_path=path,
        output_path=out_path,
        source_hash=content_hash(text),
        output_hash=content_hash(latex),
    )
    if settings.auto_compile and compile_fn is not None:
        result.compile = compile_fn(out_path)
        if not result.compile.success:
            logger.warning("Compilation of %s failed: %s", out_path, result.compile.error)
    return result
