"""Unit tests for core/stages/references.py"""

import logging

import pytest

from notetex.config import Settings
from notetex.core.stages.references import (
    convert_aliased_links,
    convert_citations,
    convert_figure_references,
    convert_internal_links,
    convert_table_references,
    expand_dynamic_inclusions,
    flatten_links,
    process,
    sniff_content,
)
from notetex.crud.memory_store import MemoryStore
from notetex.errors import ReadFailure


class BrokenStore(MemoryStore):
    def read(self, path):
        raise ReadFailure(f"disk error reading {path}")


# --- internal links ---

@pytest.mark.parametrize("line,expected", [
    ("see [[p3]]", "see \\cite{p3}"),
    ("see [[ref12]]", "see \\cite{ref12}"),
    ("see [[project1]]", "see \\ref{project1}"),
    ("see [[My Note]]", "see \\ref{my-note}"),
    ("see [[My Note#Some Section]]", "see \\ref{my-note:some-section}"),
    ("see [[#Local Heading]]", "see \\ref{local-heading}"),
])
def test_internal_links(line, expected):
    """Plain links become cite or ref, sections form composite labels."""
    assert convert_internal_links(line) == expected


@pytest.mark.parametrize("line", [
    "![[My Note]]",
    "[[eq__block_x]]",
    "[[figure__block_x]]",
    "[[Note|alias]]",
])
def test_internal_links_leave_embeds_blocks_and_aliases(line):
    """Embeds, block links and aliased links are left for other rules."""
    assert convert_internal_links(line) == line


# --- citations ---

def test_aliased_citation():
    """An aliased citation link still becomes a citation."""
    assert convert_citations("as shown [[p3|Smith 2020]]") == "as shown \\cite{p3}"


def test_adjacent_citations_merge():
    """Neighbouring citations merge into one cite."""
    assert convert_citations("\\cite{p1}, \\cite{p2} \\cite{ref3}") == "\\cite{p1,p2,ref3}"


def test_separated_citations_stay_apart():
    """Citations separated by prose are not merged."""
    line = "\\cite{p1} and \\cite{p2}"
    assert convert_citations(line) == line


# --- flattening ---

def test_flatten_aliased_link():
    """An aliased link flattens to its display text."""
    assert flatten_links("read [[Other Note|the other note]] first") == "read the other note first"


def test_flatten_escapes_display_text():
    """Flattened display text is escaped."""
    assert flatten_links("[[Deals|50% off]]") == "50\\% off"


def test_flatten_skips_block_links():
    """Block links keep their alias for the figure and table rules."""
    line = "[[figure__block_plot|the plot]]"
    assert flatten_links(line) == line


@pytest.mark.parametrize("line,expected", [
    ("[[Other Note|the note]]", "\\ref{other-note}"),
    ("[[Other#Setup|setup]]", "\\ref{other:setup}"),
    ("[[ref12|Jones]]", "\\cite{ref12}"),
    ("![[Other|embedded]]", "![[Other|embedded]]"),
    ("[[table__block_results|the table]]", "[[table__block_results|the table]]"),
])
def test_convert_aliased_links(line, expected):
    """Aliased links resolve on their target; embeds and block links are left to later rules."""
    assert convert_aliased_links(line) == expected


# --- figure / table references ---

@pytest.mark.parametrize("line,expected", [
    ("[[figure__block_plot]]", "\\ref{fig:plot}"),
    ("[[figure__block_plot|the plot]]", "\\ref{fig:plot}"),
    ("\\ref{figure__block_plot}", "\\ref{fig:plot}"),
])
def test_figure_references(line, expected):
    """Figure block links and ref commands become fig labels."""
    assert convert_figure_references(line) == expected


@pytest.mark.parametrize("line,expected", [
    ("[[table__block_results]]", "\\ref{tab:results}"),
    ("\\ref{table__block_results}", "\\ref{tab:results}"),
])
def test_table_references(line, expected):
    """Table block links and ref commands become tab labels."""
    assert convert_table_references(line) == expected


# --- stage ordering and toggles ---

def test_process_runs_all_rules(settings):
    """Links, citations, flattening and block references in one pass."""
    line = "[[p1]], [[p2|Doe]] and [[Intro#Goal]] vs [[Other|that]] in [[figure__block_a]] and [[table__block_b]]"
    assert process([line], settings) == [
        "\\cite{p1,p2} and \\ref{intro:goal} vs that in \\ref{fig:a} and \\ref{tab:b}"
    ]


def test_process_without_flattening():
    """Aliased links become references on their target instead of display text."""
    settings = Settings(convert_non_embedded_references=False)
    assert process(["[[Other|that]]"], settings) == ["\\ref{other}"]


def test_process_without_store_leaves_inclusions(settings):
    """Without a store inclusion markers are kept."""
    assert process(["!ref{table__block_results}"], settings) == ["!ref{table__block_results}"]


def test_process_with_inclusions_disabled(store):
    """Inclusions are skipped when the setting is off."""
    settings = Settings(resolve_dynamic_inclusions=False)
    assert process(["!ref{table__block_results}"], settings, store) == ["!ref{table__block_results}"]


# --- content sniffing ---

@pytest.mark.parametrize("text,kind", [
    ("| a | b |\n|---|---|\n| 1 | 2 |", "table"),
    ("![[plot.png]]", "figure"),
    ("![a chart](chart.svg)", "figure"),
    ("As the figure shows", "figure"),
    ("$$x = 1$$", "equation"),
    ("where $x$ is small", "equation"),
    ("plain words", "text"),
])
def test_sniff_content(text, kind):
    """Fetched content is classified as table, figure, equation or text."""
    assert sniff_content(text) == kind


# --- dynamic inclusion ---

def test_include_table_block(store, settings):
    """An included table block renders with its block label."""
    out = expand_dynamic_inclusions(["!ref{table__block_results}"], store, settings)
    assert out[0] == "\\begin{table}[h]"
    assert "base & 0.71 \\\\" in out
    assert "\\label{tab:results}" in out


def test_include_equation_block(settings):
    """An included equation block takes its name as label."""
    store = MemoryStore()
    store.write("✍Writing/equation blocks/eq__block_pyth.md", "$$a^2+b^2=c^2$$")
    out = expand_dynamic_inclusions(["!ref{eq__block_pyth}"], store, settings)
    assert out == ["\\begin{equation} \\label{eq:pyth}", "\ta^2+b^2=c^2", "\\end{equation}"]


def test_include_figure_block(store, settings):
    """An included figure block renders a figure environment."""
    out = expand_dynamic_inclusions(["!ref{figure__block_plot}"], store, settings)
    assert out == [
        "\\begin{figure}[h]",
        "\\centering",
        "\\includegraphics[width=\\linewidth]{plot.png}",
        "\\caption{Loss per \\textit{epoch}}",
        "\\label{fig:plot}",
        "\\end{figure}",
    ]


def test_include_markdown_image_uses_alt_text(settings):
    """A markdown image uses its alt text as caption."""
    store = MemoryStore()
    store.write("✍Writing/figure blocks/figure__block_arch.md", "![System overview](arch.pdf)")
    out = expand_dynamic_inclusions(["!ref{figure__block_arch}"], store, settings)
    assert "\\includegraphics[width=\\linewidth]{arch.pdf}" in out
    assert "\\caption{System overview}" in out


def test_latex_figure_passes_through(settings):
    """An existing figure environment is included as written."""
    body = "\\begin{figure}\n\\includegraphics{a.png}\n\\end{figure}"
    store = MemoryStore()
    store.write("✍Writing/figure blocks/figure__block_raw.md", body)
    assert expand_dynamic_inclusions(["!ref{figure__block_raw}"], store, settings) == body.split("\n")


def test_include_text_inline_marker(settings):
    """A marker inside prose is spliced onto its own lines."""
    store = MemoryStore()
    store.write("Notes/intro.md", "---\ntitle: x\n---\nSome **bold** words")
    out = expand_dynamic_inclusions(["See: !ref{intro} end"], store, settings, base_dir="Notes")
    assert out == ["See: ", "Some \\textbf{bold} words", " end"]


def test_missing_inclusion_keeps_marker(settings, caplog):
    """An absent inclusion keeps the marker and logs a warning."""
    with caplog.at_level(logging.WARNING):
        out = expand_dynamic_inclusions(["x !ref{nothing} y"], MemoryStore(), settings)
    assert out == ["x !ref{nothing} y"]
    assert "not found" in caplog.text


def test_unreadable_inclusion_keeps_marker(settings, caplog):
    """A read failure keeps the marker and logs a warning."""
    with caplog.at_level(logging.WARNING):
        out = expand_dynamic_inclusions(["!ref{intro}"], BrokenStore(), settings)
    assert out == ["!ref{intro}"]
    assert "disk error" in caplog.text


def test_nested_inclusion_beyond_max_depth_is_flagged(settings, caplog):
    """Inclusions past max depth become an unresolved comment."""
    store = MemoryStore()
    store.write("outer.md", "Outer text\n!ref{inner}")
    store.write("inner.md", "Inner")
    with caplog.at_level(logging.WARNING):
        out = expand_dynamic_inclusions(["!ref{outer}"], store, settings)
    assert out == ["Outer text", "% unresolved inclusion (max depth 1): inner"]
    assert "exceeds max depth" in caplog.text


def test_nested_inclusion_within_max_depth(settings):
    """A deeper max depth resolves nested inclusions."""
    store = MemoryStore()
    store.write("outer.md", "Outer text\n!ref{inner}")
    store.write("inner.md", "Inner")
    out = expand_dynamic_inclusions(["!ref{outer}"], store, settings, max_depth=2)
    assert out == ["Outer text", "Inner"]
