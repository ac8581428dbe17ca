"""Table stage: parse markdown table runs and render tabularx/longtable/tabular environments"""

import logging
import re
from typing import Optional

from notetex.config import Settings
from notetex.core.models import Alignment, RegionKind, TableRegion
from notetex.core.regions import find_table_regions, split_cells


logger = logging.getLogger(__name__)

CAPTION = "Table caption"

_CELL_ESCAPE_RE = re.compile(r'[\\{}$^~&%#_]')
_CELL_ESCAPES = {
    '\\': r'\textbackslash{}',
    '^': r'\^{}',
    '~': r'\~{}',
}

_FLOAT_ALIGNMENT = {
    'left': '\\raggedright',
    'center': '\\centering',
    'right': '\\raggedleft',
}
_LONGTABLE_POSITION = {'left': 'l', 'center': 'c', 'right': 'r'}


def parse_alignment(cell: str) -> Alignment:
    cell = cell.strip()
    if cell.startswith(':') and cell.endswith(':') and len(cell) > 1:
        return Alignment.center
    if cell.endswith(':'):
        return Alignment.right
    return Alignment.left


def _fit(cells: list[str], width: int) -> list[str]:
    """Truncate or pad a row to the column count."""
    return (cells + [''] * width)[:width]


def parse_table(lines: list[str]) -> TableRegion:
    """Header, alignment row, data rows. Blank rows inside the run are skipped."""
    table = TableRegion(
        header_cells=split_cells(lines[0]),
        alignments=[parse_alignment(c) for c in split_cells(lines[1])],
    )
    table.header_cells = _fit(table.header_cells, table.width)
    table.data_rows = [_fit(split_cells(line), table.width) for line in lines[2:] if line.strip()]
    return table


def escape_cell(text: str) -> str:
    return _CELL_ESCAPE_RE.sub(lambda m: _CELL_ESCAPES.get(m.group(0), '\\' + m.group(0)), text)


def _row(cells: list[str]) -> str:
    return ' & '.join(escape_cell(c) for c in cells) + ' \\\\'


def _body(table: TableRegion) -> list[str]:
    return [_row(row) for row in table.data_rows]


def render_tabularx(table: TableRegion, settings: Settings, label: str) -> list[str]:
    rel = settings.table_rel_width
    width = f'{rel:g}\\linewidth' if rel > 0 else '\\linewidth'
    columns = ''.join(a.letter for a in table.alignments)
    return [
        '\\begin{table}[h]',
        _FLOAT_ALIGNMENT[settings.table_alignment],
        f'\\begin{{tabularx}}{{{width}}}{{{columns}}}',
        '\\hline',
        _row(table.header_cells),
        '\\hline',
        *_body(table),
        '\\hline',
        '\\end{tabularx}',
        f'\\caption{{{CAPTION}}}',
        f'\\label{{{label}}}',
        '\\end{table}',
    ]


def render_longtable(table: TableRegion, settings: Settings, label: str) -> list[str]:
    columns = ''.join(a.letter for a in table.alignments)
    header = _row(table.header_cells)
    return [
        f'\\begin{{longtable}}[{_LONGTABLE_POSITION[settings.table_alignment]}]{{{columns}}}',
        f'\\caption{{{CAPTION}}}\\label{{{label}}} \\\\',
        '\\hline',
        header,
        '\\hline',
        '\\endfirsthead',
        '\\hline',
        header,
        '\\hline',
        '\\endhead',
        '\\hline',
        '\\endfoot',
        *_body(table),
        '\\end{longtable}',
    ]


def render_tabular(table: TableRegion, settings: Settings, label: str) -> list[str]:
    columns = ''.join(a.letter for a in table.alignments)
    return [
        '\\begin{table}[h]',
        _FLOAT_ALIGNMENT[settings.table_alignment],
        f'\\begin{{tabular}}{{{columns}}}',
        '\\hline',
        _row(table.header_cells),
        '\\hline',
        *_body(table),
        '\\hline',
        '\\end{tabular}',
        f'\\caption{{{CAPTION}}}',
        f'\\label{{{label}}}',
        '\\end{table}',
    ]


RENDERERS = {
    'tabularx': render_tabularx,
    'longtable': render_longtable,
    'tabular': render_tabular,
}


def table_label(index: int, base_label: Optional[str] = None) -> str:
    """tab:table-N placeholders; an included table block takes tab:<block> instead."""
    if base_label:
        return f'tab:{base_label}' if index == 1 else f'tab:{base_label}-{index}'
    return f'tab:table-{index}'


def process(lines: list[str], settings: Settings, base_label: Optional[str] = None) -> list[str]:
    """Replace each well-formed table run with the configured environment; other runs pass through."""
    render = RENDERERS[settings.table_package]
    out: list[str] = []
    idx = 0
    count = 0

    for region in find_table_regions(lines):
        out.extend(lines[idx:region.start])
        run = lines[region.start:region.end]
        if region.kind is RegionKind.table:
            count += 1
            out.extend(render(parse_table(run), settings, table_label(count, base_label)))
        else:
            logger.debug("Lines %d-%d look like a table but have no alignment row; left as text",
                         region.start + 1, region.end)
            out.extend(run)
        idx = region.end

    out.extend(lines[idx:])
    return out
