"""Unit tests for core/assemble.py"""

from notetex.config import Settings
from notetex.core.assemble import assemble, document_end, document_start, main_body, preamble


def test_preamble_document_class_and_font_size():
    """documentclass carries the font size option when set."""
    assert preamble(Settings()).startswith("\\documentclass{extarticle}\n")
    assert preamble(Settings(font_size="11pt")).startswith("\\documentclass[11pt]{extarticle}\n")


def test_preamble_loads_geometry_once():
    """geometry is loaded exactly once, with the margin option."""
    text = preamble(Settings())
    assert text.count("{geometry}") == 1
    assert "\\usepackage[margin=0.9in]{geometry}" in text
    assert "\\usepackage{geometry}" in preamble(Settings(margin=""))


def test_preamble_loads_packages_for_generated_commands():
    """Packages behind the generated commands are all loaded."""
    text = preamble(Settings())
    for package in ("amsmath", "graphicx", "soul", "totcount", "tabularx", "longtable", "hyperref", "cleveref"):
        assert f"{{{package}}}" in text
    assert text.index("{hyperref}") < text.index("{cleveref}")


def test_preamble_paragraph_indent():
    """parindent follows the paragraph_indent setting."""
    assert "\\setlength{\\parindent}{12pt}" in preamble(Settings(paragraph_indent=12))


def test_preamble_ifacconf_counters():
    """The ifacconf class gets its part counter setup."""
    assert "\\counterwithin*{section}{part}" in preamble(Settings(document_class="ifacconf"))
    assert "\\counterwithin" not in preamble(Settings())


def test_document_start_title_and_author():
    """Author, title and maketitle follow begin document."""
    text = document_start(Settings(title="On Notes", author="A. Writer"))
    assert text.split("\n") == [
        "\\begin{document}",
        "\\allowdisplaybreaks",
        "\\author{A. Writer}",
        "\\title{On Notes}",
        "\\maketitle",
    ]


def test_document_start_minimal():
    """Without title, author or display breaks only begin document remains."""
    assert document_start(Settings(allow_display_breaks=False)) == "\\begin{document}"


def test_main_body_keeps_pre_section_prose():
    """Prose before the first section stays ahead of the body."""
    settings = Settings(add_table_of_contents=False)
    lines = ["Abstract prose.", "", "\\section{Intro}", "body"]
    assert main_body(lines, settings) == "Abstract prose.\n\\section{Intro}\nbody"


def test_main_body_table_of_contents():
    """The table of contents block is prefixed when enabled."""
    body = main_body(["\\section{Intro}"], Settings())
    assert body == "\\tableofcontents\n\\newpage\n\n\\section{Intro}"


def test_document_end_default():
    """Page break, bibliography style, bibliography, end document."""
    assert document_end(Settings()) == (
        "\\newpage\n\n"
        "\\bibliographystyle{apacite}\n"
        "\\bibliography{BIBTEX}\n"
        "\\end{document}"
    )


def test_document_end_without_page_break():
    """No newpage before the bibliography when disabled."""
    settings = Settings(add_new_page_before_bibliography=False, bibliography_style="plain")
    assert document_end(settings).startswith("\\bibliographystyle{plain}")


def test_assemble_order():
    """Preamble, start, body and end are joined by blank lines."""
    text = assemble(["\\section{A}", "text"], Settings())
    assert text.index("\\documentclass") < text.index("\\begin{document}") \
        < text.index("\\section{A}") < text.index("\\bibliography{") < text.index("\\end{document}")
    assert text.endswith("\\end{document}\n")
