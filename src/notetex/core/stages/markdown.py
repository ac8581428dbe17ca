"""Markdown stage: headings, lists, inline formatting, links, comments, escaping"""

import logging
import re
from dataclasses import dataclass, field, replace

from notetex.core.models import RegionKind
from notetex.core.regions import (
    LIST_MARKER_RE,
    find_equation_regions,
    find_list_regions,
    find_table_regions,
    region_mask,
)
from notetex.core.utils.patterns import PROTECTED_RE


logger = logging.getLogger(__name__)

# Markup generated here is written with private-use stand-ins for the LaTeX
# special characters, so the escaping rule only ever sees user text.
_SPECIAL = '\\{}%#$^~&'
_SHIELD = str.maketrans({c: chr(0xE000 + i) for i, c in enumerate(_SPECIAL)})
_UNSHIELD = str.maketrans({chr(0xE000 + i): c for i, c in enumerate(_SPECIAL)})

# protected spans are stashed as single code points from plane 15
_STASH_BASE = 0xF0000
_STASHED_RE = re.compile('[\U000F0000-\U000FFFFD]')

_HEADING_RE = re.compile(r'^(#{1,8}) (.*)$')
_SECTIONING = {1: 'section', 2: 'subsection', 3: 'subsubsection'}
_LIST_ENVIRONMENTS = {RegionKind.bullet: 'itemize', RegionKind.numbered: 'enumerate'}

_INLINE_RE = re.compile(
    r'\*\*(?P<bold>.+?)\*\*'
    r'|\*(?P<italic>.+?)\*'
    r'|==(?P<highlight>.+?)=='
    r'|~~(?P<strike>.+?)~~'
    r'|`(?P<code>[^`]+?)`'
    r'|(?<!\S)#(?P<tag>[^\s#]\S*)'
)
_INLINE_COMMANDS = {
    'bold': 'textbf',
    'italic': 'textit',
    'highlight': 'hl',
    'strike': 'st',
    'code': 'texttt',
    'tag': 'texttt',
}
_NESTED_KINDS = {'bold', 'italic', 'highlight', 'strike'}

_LINK_RE = re.compile(
    r'(?<!!)\[(?P<text>[^\]]+)\]\((?P<url>[^)\s]+)\)'
    r'|(?P<bare>https?://[^\s<>)]*[^\s<>).,;:!?])'
)

_ESCAPE_RE = re.compile(r'(?<!\\)[%#$^~&{}]')
_ESCAPES = {
    '%': r'\%',
    '#': r'\#',
    '$': r'\$',
    '{': r'\{',
    '}': r'\}',
    '^': r'\^{}',
    '~': r'\~{}',
    '&': r'\&',
}


@dataclass
class _Row:
    text:   str
    opaque: bool = False                        # owned by a later stage; passed through verbatim
    spans:  list[str] = field(default_factory=list)


def shield(text: str) -> str:
    return text.translate(_SHIELD)


def _command(name: str, *args: str) -> str:
    """\\name{arg}...; the command syntax is shielded, the arguments are left as given."""
    return shield('\\' + name) + ''.join(shield('{') + arg + shield('}') for arg in args)


def _stash(line: str) -> tuple[str, list[str]]:
    spans: list[str] = []

    def _hold(m: re.Match) -> str:
        spans.append(m.group(0))
        return chr(_STASH_BASE + len(spans) - 1)

    return PROTECTED_RE.sub(_hold, line), spans


def _restore(text: str, spans: list[str]) -> str:
    if not spans:
        return text
    return _STASHED_RE.sub(lambda m: spans[ord(m.group(0)) - _STASH_BASE], text)


def escape_text(text: str) -> str:
    """Escape LaTeX special characters in user prose; already-escaped characters are kept."""
    return _ESCAPE_RE.sub(lambda m: _ESCAPES[m.group(0)], text).translate(_UNSHIELD)


def escape_specials(line: str) -> str:
    """Escape a line unless it begins with a backslash (taken to be LaTeX already)."""
    if line.strip().startswith('\\'):
        return line.translate(_UNSHIELD)
    return escape_text(line)


def convert_heading(line: str) -> str:
    m = _HEADING_RE.match(line)
    if not m:
        return line
    level, title = len(m.group(1)), m.group(2).strip()
    if level == 1 and title == 'Appendix':
        return shield('\\appendix')
    if level in _SECTIONING:
        return _command(_SECTIONING[level], title)
    return _command('paragraph', title) + shield(' \\hspace{0pt} \\\\')


def format_inline(text: str) -> str:
    """Bold, italic, highlight, strikethrough, inline code and hashtags in one pass."""
    def _replace(m: re.Match) -> str:
        kind = m.lastgroup
        inner = m.group(kind)
        if kind in _NESTED_KINDS:
            inner = format_inline(inner)
        return _command(_INLINE_COMMANDS[kind], inner)

    return _INLINE_RE.sub(_replace, text)


def convert_links(text: str) -> str:
    def _replace(m: re.Match) -> str:
        if m.group('bare'):
            return _command('url', shield(m.group('bare')))
        return _command('href', shield(m.group('url')), m.group('text'))

    return _LINK_RE.sub(_replace, text)


def is_comment(line: str) -> bool:
    return line.strip().startswith('%%')


def _wrap_lists(rows: list[_Row]) -> list[_Row]:
    skip = frozenset(i for i, row in enumerate(rows) if row.opaque)
    regions = find_list_regions([row.text for row in rows], skip)
    out: list[_Row] = []
    idx = 0

    for region in regions:
        env = _LIST_ENVIRONMENTS[region.kind]
        out.extend(rows[idx:region.start])
        out.append(_Row(shield(f'\\begin{{{env}}}')))
        for row in rows[region.start:region.end]:
            item = LIST_MARKER_RE.sub('', row.text, count=1)
            out.append(replace(row, text=shield('\\item ') + item))
        out.append(_Row(shield(f'\\end{{{env}}}')))
        if not region.closed:
            logger.debug("List starting at line %d still open at end of document; closing it", region.start + 1)
        idx = region.end

    out.extend(rows[idx:])
    return out


def _opaque_mask(lines: list[str]) -> list[bool]:
    """Lines owned by the equation and table stages."""
    equations = region_mask(len(lines), find_equation_regions(lines))
    tables = region_mask(len(lines), find_table_regions(lines), {RegionKind.table})
    return [a or b for a, b in zip(equations, tables)]


def _rows(lines: list[str], opaque: list[bool]) -> list[_Row]:
    rows = []
    for line, held in zip(lines, opaque):
        if held:
            rows.append(_Row(line, opaque=True))
        else:
            text, spans = _stash(line)
            rows.append(_Row(text, spans=spans))
    return rows


def _map(rows: list[_Row], fn) -> list[_Row]:
    return [row if row.opaque else replace(row, text=fn(row.text)) for row in rows]


def _finish(rows: list[_Row]) -> list[str]:
    return [row.text if row.opaque else _restore(escape_specials(row.text), row.spans) for row in rows]


def process(lines: list[str]) -> list[str]:
    """Run the markdown rules in order: headers, lists, inline, links, comments, escaping."""
    rows = _rows(lines, _opaque_mask(lines))
    rows = _map(rows, convert_heading)
    rows = _wrap_lists(rows)
    rows = _map(rows, format_inline)
    rows = _map(rows, convert_links)
    rows = [row for row in rows if row.opaque or not is_comment(row.text)]
    return _finish(rows)


def process_inline(lines: list[str]) -> list[str]:
    """Reduced rule set for included prose: comments, inline formatting, links, escaping."""
    rows = _rows(lines, [False] * len(lines))
    rows = [row for row in rows if not is_comment(row.text)]
    rows = _map(rows, format_inline)
    rows = _map(rows, convert_links)
    return _finish(rows)
