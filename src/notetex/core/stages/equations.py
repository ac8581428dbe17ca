"""Equation stage: display blocks, aligned bodies, inline math, equation references"""

import logging
import re
from typing import Optional

from notetex.core.regions import find_equation_regions
from notetex.core.utils.patterns import DISPLAY_DELIM_RE, INLINE_MATH_RE


logger = logging.getLogger(__name__)

_LABEL_RE = re.compile(r'\\label\{eq__block_([^}]+)\}')
_ALIGNED_RE = re.compile(r'\\begin\{(aligned|align\*?)\}(?P<body>.*?)\\end\{\1\}', re.DOTALL)
_ROW_SEPARATOR_RE = re.compile(r'\\\\')

_EQ_LINK_RE = re.compile(r'(?<!!)\[\[eq__block_([^\]#|]+)(?:#[^\]|]*)?(?:\|[^\]]*)?\]\]')
_EQ_REF_RE = re.compile(r'\\ref\{eq__block_([^}]+)\}')


def parse_display(region: list[str]) -> tuple[str, str, Optional[str], str]:
    """Split a display region into (text before, body, label, text after).

    The eq__block label may sit on the opening line, the closing line or inside the body.
    """
    text = '\n'.join(region)
    label = None
    if m := _LABEL_RE.search(text):
        label = m.group(1)
        text = text[:m.start()] + text[m.end():]

    parts = DISPLAY_DELIM_RE.split(text, maxsplit=2)
    lead = parts[0].strip()
    body = parts[1].strip() if len(parts) > 1 else ''
    tail = parts[2].strip() if len(parts) > 2 else ''
    return lead, body, label, tail


def _split_rows(body: str) -> list[str]:
    return [row.strip() for row in _ROW_SEPARATOR_RE.split(body) if row.strip()]


def render_display(body: str, label: Optional[str] = None) -> list[str]:
    """An equation environment; aligned/align bodies become a split inside it."""
    opening = '\\begin{equation}' + (f' \\label{{eq:{label}}}' if label else '')

    if m := _ALIGNED_RE.search(body):
        rows = _split_rows(m.group('body'))
        inner = ' \\\\\n'.join(f'\t\t{row}' for row in rows)
        return [opening, '\t\\begin{split}', *inner.split('\n'), '\t\\end{split}', '\\end{equation}']

    return [opening, *(f'\t{line.strip()}' for line in body.split('\n') if line.strip()), '\\end{equation}']


def convert_inline_math(line: str) -> str:
    return INLINE_MATH_RE.sub(lambda m: f'\\({m.group(1)}\\)', line)


def convert_references(line: str) -> str:
    """[[eq__block_X]] -> \\eqref{eq:X}; \\ref{eq__block_X} -> \\ref{eq:X}"""
    line = _EQ_LINK_RE.sub(lambda m: f'\\eqref{{eq:{m.group(1)}}}', line)
    return _EQ_REF_RE.sub(lambda m: f'\\ref{{eq:{m.group(1)}}}', line)


def process(lines: list[str], default_label: Optional[str] = None) -> list[str]:
    """Render display regions, then inline math and equation references on the remaining lines.

    default_label applies to display blocks that carry no label of their own
    (used for included equation blocks).
    """
    out: list[str] = []
    idx = 0

    for region in find_equation_regions(lines):
        out.extend(convert_inline_math(line) for line in lines[idx:region.start])
        if not region.closed:
            logger.warning("Display equation opened at line %d is never closed; closing at end of document",
                           region.start + 1)
        lead, body, label, tail = parse_display(lines[region.start:region.end])
        if lead:
            out.append(convert_inline_math(lead))
        out.extend(render_display(body, label or default_label))
        if tail:
            out.append(convert_inline_math(tail))
        idx = region.end

    out.extend(convert_inline_math(line) for line in lines[idx:])
    return [convert_references(line) for line in out]
