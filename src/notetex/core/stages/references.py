"""Reference stage: dynamic inclusions, internal links, citations, figure/table references"""

import logging
import re
from typing import Optional

from markdown_it import MarkdownIt

from notetex.config import Settings
from notetex.core.stages import equations, markdown, tables
from notetex.core.utils.frontmatter import split_frontmatter
from notetex.core.utils.labels import is_citation, normalize_label
from notetex.core.utils.paths import (
    EQUATION_PREFIX,
    FIGURE_PREFIX,
    TABLE_PREFIX,
    block_label,
    resolve_path,
)
from notetex.core.utils.patterns import DISPLAY_DELIM_RE, DYNAMIC_RE, INLINE_MATH_RE
from notetex.crud.store import DocumentStore
from notetex.errors import ReadFailure


logger = logging.getLogger(__name__)

_md = MarkdownIt("gfm-like", options_update={"linkify": False})

_NOT_BLOCK = r'(?!(?:eq|figure|table)__block_)'

_INTERNAL_LINK_RE = re.compile(r'(?<!!)\[\[' + _NOT_BLOCK + r'([^\]#|]*)(?:#([^\]|]+))?\]\]')
_ALIASED_CITATION_RE = re.compile(r'(?<!!)\[\[((?:p|ref)[0-9]+)(?:#[^\]|]*)?\|[^\]]*\]\]')
_CITE_RUN_RE = re.compile(r'\\cite\{[^}]+\}(?:[ \t]*,?[ \t]*\\cite\{[^}]+\})+')
_CITE_KEYS_RE = re.compile(r'\\cite\{([^}]+)\}')
_ALIASED_LINK_RE = re.compile(r'(?<!!)\[\[' + _NOT_BLOCK + r'[^\]|]*\|([^\]]+)\]\]')
_ALIASED_TARGET_RE = re.compile(r'(?<!!)\[\[' + _NOT_BLOCK + r'([^\]#|]*)(?:#([^\]|]+))?\|[^\]]*\]\]')

_FIGURE_LINK_RE = re.compile(r'(?<!!)\[\[figure__block_([^\]#|]+)(?:#[^\]|]*)?(?:\|[^\]]*)?\]\]')
_FIGURE_REF_RE = re.compile(r'\\ref\{figure__block_([^}]+)\}')
_TABLE_LINK_RE = re.compile(r'(?<!!)\[\[table__block_([^\]#|]+)(?:#[^\]|]*)?(?:\|[^\]]*)?\]\]')
_TABLE_REF_RE = re.compile(r'\\ref\{table__block_([^}]+)\}')

_IMAGE_EMBED_RE = re.compile(
    r'!\[\[([^\]|#]+\.(?:png|jpe?g|gif|svg|pdf|webp|bmp|tiff?))(?:\|([^\]]*))?\]\]', re.IGNORECASE)
_MD_IMAGE_RE = re.compile(r'!\[[^\]]*\]\([^)]*\)')
_FIGURE_WORD_RE = re.compile(r'\bfigure\b', re.IGNORECASE)


# ---------- link rewriting ----------

def _link_command(m: re.Match) -> str:
    name, section = m.group(1).strip(), m.group(2)
    if section:
        section_label = normalize_label(section)
        if not name:
            return f'\\ref{{{section_label}}}'
        return f'\\ref{{{normalize_label(name)}:{section_label}}}'
    if is_citation(name):
        return f'\\cite{{{name}}}'
    return f'\\ref{{{normalize_label(name)}}}'


def convert_internal_links(line: str) -> str:
    """[[name]] -> \\cite or \\ref; [[name#section]] -> \\ref{name:section}"""
    return _INTERNAL_LINK_RE.sub(_link_command, line)


def convert_aliased_links(line: str) -> str:
    """[[name|display]] -> \\cite or \\ref on the target, used when links are not flattened."""
    return _ALIASED_TARGET_RE.sub(_link_command, line)


def convert_citations(line: str) -> str:
    """Aliased citation links become \\cite; adjacent \\cite commands merge into one."""
    line = _ALIASED_CITATION_RE.sub(lambda m: f'\\cite{{{m.group(1)}}}', line)
    return _CITE_RUN_RE.sub(lambda m: '\\cite{' + ','.join(_CITE_KEYS_RE.findall(m.group(0))) + '}', line)


def flatten_links(line: str) -> str:
    """[[target|display]] -> display"""
    return _ALIASED_LINK_RE.sub(lambda m: markdown.escape_text(m.group(1).strip()), line)


def convert_figure_references(line: str) -> str:
    line = _FIGURE_LINK_RE.sub(lambda m: f'\\ref{{fig:{m.group(1)}}}', line)
    return _FIGURE_REF_RE.sub(lambda m: f'\\ref{{fig:{m.group(1)}}}', line)


def convert_table_references(line: str) -> str:
    line = _TABLE_LINK_RE.sub(lambda m: f'\\ref{{tab:{m.group(1)}}}', line)
    return _TABLE_REF_RE.sub(lambda m: f'\\ref{{tab:{m.group(1)}}}', line)


# ---------- dynamic inclusion ----------

def _image_tokens(text: str):
    for token in _md.parse(text):
        for child in token.children or []:
            if child.type == 'image':
                yield child


def sniff_content(text: str) -> str:
    """Classify fetched content as table, figure, equation or text."""
    if any(t.type == 'table_open' for t in _md.parse(text)):
        return 'table'
    has_image = _IMAGE_EMBED_RE.search(text) or next(_image_tokens(text), None) is not None
    if has_image or _FIGURE_WORD_RE.search(text):
        return 'figure'
    if DISPLAY_DELIM_RE.search(text) or INLINE_MATH_RE.search(text):
        return 'equation'
    return 'text'


def _find_image(text: str) -> tuple[Optional[str], str]:
    """(source, alt text) of the first image, wiki embed or markdown."""
    if m := _IMAGE_EMBED_RE.search(text):
        return m.group(1).strip(), (m.group(2) or '').strip()
    if (image := next(_image_tokens(text), None)) is not None:
        return image.attrs.get('src'), image.content
    return None, ''


def render_text(text: str, settings: Settings, name: str) -> list[str]:
    return markdown.process_inline(text.split('\n'))


def render_table(text: str, settings: Settings, name: str) -> list[str]:
    return tables.process(text.split('\n'), settings, base_label=block_label(name, TABLE_PREFIX))


def render_equation(text: str, settings: Settings, name: str) -> list[str]:
    return equations.process(text.split('\n'), default_label=block_label(name, EQUATION_PREFIX))


def render_figure(text: str, settings: Settings, name: str) -> list[str]:
    """A figure environment around the first image; LaTeX figures pass through untouched."""
    if '\\begin{figure' in text:
        return text.split('\n')
    src, alt = _find_image(text)
    if not src:
        return render_text(text, settings, name)

    prose = [
        line for line in text.split('\n')
        if line.strip() and not _IMAGE_EMBED_RE.search(line) and not _MD_IMAGE_RE.search(line)
    ]
    if alt:
        caption = markdown.escape_text(alt)
    else:
        caption = ' '.join(markdown.process_inline(prose)).strip()
    label = block_label(name, FIGURE_PREFIX)

    out = ['\\begin{figure}[h]', '\\centering', f'\\includegraphics[width=\\linewidth]{{{src}}}']
    if caption:
        out.append(f'\\caption{{{caption}}}')
    out += [f'\\label{{fig:{label}}}', '\\end{figure}']
    return out


RENDERERS = {
    'table': render_table,
    'figure': render_figure,
    'equation': render_equation,
    'text': render_text,
}


def _fetch(name: str, store: DocumentStore, settings: Settings, base_dir: str) -> Optional[str]:
    path = resolve_path(name, settings, base_dir)
    try:
        text = store.read(path)
    except ReadFailure as e:
        logger.warning("Cannot read included document %s: %s", path, e)
        return None
    if text is None:
        logger.warning("Included document not found: %s", path)
        return None
    return split_frontmatter(text)[1].strip('\n')


def _unresolved(name: str, max_depth: int) -> str:
    return f'% unresolved inclusion (max depth {max_depth}): {name}'


def expand_dynamic_inclusions(
    lines: list[str],
    store: DocumentStore,
    settings: Settings,
    base_dir: str = '',
    max_depth: int = 1,
    depth: int = 0,
    ) -> list[str]:
    """Replace !ref{name} markers with the fetched document, re-rendered by content type.

    Markers inside included content are expanded while depth < max_depth; beyond
    that they become an 'unresolved inclusion' comment. Missing or unreadable
    targets leave the marker in place.
    """
    def _include(m: re.Match, whole_line: bool) -> str:
        name = m.group(1).strip()
        if depth >= max_depth:
            logger.warning("Inclusion of %s exceeds max depth %d; left unresolved", name, max_depth)
            comment = _unresolved(name, max_depth)
            return comment if whole_line else f'\n{comment}\n'

        text = _fetch(name, store, settings, base_dir)
        if text is None:
            return m.group(0)
        kind = sniff_content(text)
        logger.debug("Including %s as %s", name, kind)
        rendered = expand_dynamic_inclusions(
            RENDERERS[kind](text, settings, name), store, settings, base_dir, max_depth, depth + 1)
        rendered = '\n'.join(rendered)
        return rendered if whole_line else f'\n{rendered}\n'

    out: list[str] = []
    for line in lines:
        whole = DYNAMIC_RE.fullmatch(line.strip())
        if whole:
            out.extend(_include(whole, True).split('\n'))
        elif DYNAMIC_RE.search(line):
            out.extend(DYNAMIC_RE.sub(lambda m: _include(m, False), line).split('\n'))
        else:
            out.append(line)
    return out


def process(
    lines: list[str],
    settings: Settings,
    store: Optional[DocumentStore] = None,
    base_dir: str = '',
    ) -> list[str]:
    """Dynamic inclusions (if enabled), internal links, citations, aliased links
    (flattened to display text if enabled, else cross-referenced), figure references,
    table references."""
    if settings.resolve_dynamic_inclusions and store is not None:
        lines = expand_dynamic_inclusions(lines, store, settings, base_dir)

    rules = [convert_internal_links, convert_citations]
    if settings.convert_non_embedded_references:
        rules.append(flatten_links)
    else:
        rules.append(convert_aliased_links)
    rules += [convert_figure_references, convert_table_references]

    for rule in rules:
        lines = [rule(line) for line in lines]
    return lines
