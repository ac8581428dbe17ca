"""Intermediate data models for the conversion pipeline"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class RegionKind(str, Enum):
    """Classification of a contiguous run of lines"""
    bullet = "bullet"
    numbered = "numbered"
    table = "table"
    text = "text"           # table-like run without an alignment row
    equation = "equation"


@dataclass(frozen=True)
class Region:
    """A [start, end) span of lines sharing one classification."""
    kind:   RegionKind
    start:  int
    end:    int
    closed: bool = True     # False when the run was still open at end of document


class Alignment(str, Enum):
    left = "left"
    center = "center"
    right = "right"

    @property
    def letter(self) -> str:
        return self.value[0]


@dataclass
class TableRegion:
    """A parsed markdown table; the alignment row fixes the column count."""
    header_cells: list[str]
    alignments:   list[Alignment]
    data_rows:    list[list[str]] = field(default_factory=list)

    @property
    def width(self) -> int:
        return len(self.alignments)


@dataclass(frozen=True)
class EmbeddedReference:
    """One ![[...]] marker found during a resolution pass; not persisted."""
    full_marker:   str
    target_name:   str
    section:       str      # '' means the whole document
    resolved_path: str


@dataclass(frozen=True)
class CompileResult:
    success: bool
    error:   Optional[str] = None


@dataclass
class ConversionResult:
    """Outcome of converting one note to a .tex file."""
    source_path: str
    output_path: str
    source_hash: str
    output_hash: str
    compile:     Optional[CompileResult] = None   # None when compilation was not attempted
