"""Store path resolution for notes, block collections, and LaTeX output"""

from pathlib import PurePosixPath

from notetex.config import Settings
from notetex.core.utils.labels import normalize_label


EQUATION_PREFIX = 'eq__block_'
TABLE_PREFIX = 'table__block_'
FIGURE_PREFIX = 'figure__block_'
BLOCK_PREFIXES = (EQUATION_PREFIX, TABLE_PREFIX, FIGURE_PREFIX)


def resolve_path(name: str, settings: Settings, base_dir: str = '') -> str:
    """Map a link target to its store path.

    Block prefixes resolve under their collection; any other name resolves
    beside the referring document (base_dir).
    """
    filename = name if name.endswith('.md') else f'{name}.md'
    if name.startswith(EQUATION_PREFIX):
        return str(PurePosixPath(settings.equation_blocks_path, filename))
    if name.startswith(TABLE_PREFIX):
        return str(PurePosixPath(settings.table_blocks_path, filename))
    if name.startswith(FIGURE_PREFIX):
        return str(PurePosixPath(settings.figure_blocks_path, filename))
    return str(PurePosixPath(base_dir, filename))


def block_label(name: str, prefix: str) -> str:
    """Label suffix for a block document: the name after its prefix, else the normalized name."""
    if name.startswith(prefix) and len(name) > len(prefix):
        return name[len(prefix):]
    return normalize_label(name)


def parent_dir(path: str) -> str:
    """Directory part of a store path ('' for root-level documents)."""
    parent = str(PurePosixPath(path).parent)
    return '' if parent == '.' else parent


def tex_output_path(source_path: str, settings: Settings) -> str:
    """<writing_path>/<basename>.tex for a source note."""
    return str(PurePosixPath(settings.writing_path, f'{PurePosixPath(source_path).stem}.tex'))
