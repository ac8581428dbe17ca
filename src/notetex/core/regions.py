"""Finite-state run detectors for list, table, and display-equation regions.

Each detector makes a single forward scan and returns Region descriptors;
rendering a region is left to the stage that owns it.
"""

import re

from notetex.core.models import Region, RegionKind
from notetex.core.utils.patterns import DISPLAY_DELIM_RE


BULLET_RE = re.compile(r'^\s*[-*+]\s')
NUMBERED_RE = re.compile(r'^\s*\d+\.\s')
LIST_MARKER_RE = re.compile(r'^\s*(?:[-*+]|\d+\.)\s+')
ALIGNMENT_CELL_RE = re.compile(r'^:?-+:?$')
PIPE_RE = re.compile(r'(?<!\\)\|')


def list_kind(line: str) -> RegionKind | None:
    """bullet / numbered for a list item line, else None."""
    if BULLET_RE.match(line):
        return RegionKind.bullet
    if NUMBERED_RE.match(line):
        return RegionKind.numbered
    return None


def find_list_regions(lines: list[str], skip: frozenset[int] = frozenset()) -> list[Region]:
    """Runs of list items. The first item fixes the run's kind; blank or other lines end it."""
    regions: list[Region] = []
    kind, start = None, 0

    for i, line in enumerate(lines):
        item = None if i in skip else list_kind(line)
        if item is None:
            if kind is not None:
                regions.append(Region(kind, start, i))
                kind = None
            continue
        if kind is None:
            kind, start = item, i

    if kind is not None:
        regions.append(Region(kind, start, len(lines), closed=False))
    return regions


def is_table_line(line: str) -> bool:
    return '|' in line and bool(line.strip())


def split_cells(line: str) -> list[str]:
    """Split a table row on unescaped pipes, dropping the empty edges left by outer pipes."""
    row = line.strip()
    if row.startswith('|'):
        row = row[1:]
    if row.endswith('|') and not row.endswith('\\|'):
        row = row[:-1]
    return [cell.strip().replace('\\|', '|') for cell in PIPE_RE.split(row)]


def is_alignment_row(line: str) -> bool:
    cells = split_cells(line)
    return bool(cells) and all(ALIGNMENT_CELL_RE.match(c) for c in cells)


def find_table_regions(lines: list[str]) -> list[Region]:
    """Runs of table-like lines; a run is a table only if its second line is an alignment row."""
    regions: list[Region] = []
    start = None

    def _close(end: int) -> None:
        well_formed = end - start >= 2 and is_alignment_row(lines[start + 1])
        regions.append(Region(RegionKind.table if well_formed else RegionKind.text, start, end))

    for i, line in enumerate(lines):
        if is_table_line(line):
            if start is None:
                start = i
        elif start is not None:
            _close(i)
            start = None

    if start is not None:
        _close(len(lines))
    return regions


def find_equation_regions(lines: list[str]) -> list[Region]:
    """Runs bounded by $$ delimiters. A line carrying both delimiters is a region by itself;
    an opening delimiter never closed runs to the end of the document."""
    regions: list[Region] = []
    start = None

    for i, line in enumerate(lines):
        delimiters = len(DISPLAY_DELIM_RE.findall(line))
        if start is None:
            if delimiters >= 2:
                regions.append(Region(RegionKind.equation, i, i + 1))
            elif delimiters == 1:
                start = i
        elif delimiters:
            regions.append(Region(RegionKind.equation, start, i + 1))
            start = None

    if start is not None:
        regions.append(Region(RegionKind.equation, start, len(lines), closed=False))
    return regions


def region_mask(length: int, regions: list[Region], kinds: set[RegionKind] | None = None) -> list[bool]:
    """Per-line membership flags for the given regions (optionally filtered by kind)."""
    mask = [False] * length
    for region in regions:
        if kinds is None or region.kind in kinds:
            for i in range(region.start, region.end):
                mask[i] = True
    return mask
