"""Document assembly: preamble, document start, main body, bibliography and end"""

import re

from notetex.config import Settings


SECTION_RE = re.compile(r'^\\(?:sub)*section\*?\{')

PACKAGES = [
    '\\usepackage[table]{xcolor}',
    '\\usepackage{tabularx}',
    '\\usepackage{longtable}',
    '\\usepackage{tabularray}',
    '\\usepackage{amsmath}',
    '\\usepackage{graphicx}',
    '\\usepackage{soul}',
    '\\usepackage{totcount}',
    '\\usepackage{enumitem,amssymb}',
    '\\usepackage{hyperref}',
]

HYPERSETUP = [
    '\\hypersetup{',
    '\tcolorlinks = true,',
    '\turlcolor = blue,',
    '\tlinkcolor = blue,',
    '\tcitecolor = blue',
    '}',
]


def preamble(settings: Settings) -> str:
    font = f'[{settings.font_size}]' if settings.font_size else ''
    geometry = f'\\usepackage[margin={settings.margin}]{{geometry}}' if settings.margin else '\\usepackage{geometry}'
    lines = [
        f'\\documentclass{font}{{{settings.document_class}}}',
        *PACKAGES,
        geometry,
        '\\usepackage{cleveref}',
        '\\newlist{todolist}{itemize}{2}',
        '\\setlist[todolist]{label=$\\square$}',
        '\\newtotcounter{citnum}',
        '\\def\\oldbibitem{} \\let\\oldbibitem=\\bibitem',
        '\\def\\bibitem{\\stepcounter{citnum}\\oldbibitem}',
        f'\\setlength{{\\parindent}}{{{settings.paragraph_indent}pt}}',
        *HYPERSETUP,
        '\\sethlcolor{yellow}',
        '\\setcounter{secnumdepth}{4}',
        '\\setlength{\\parskip}{7pt}',
        '\\let\\oldmarginpar\\marginpar',
        '\\renewcommand\\marginpar[1]{\\oldmarginpar{\\tiny #1}}',
        '\\newcommand{\\ignore}[1]{}',
    ]
    if settings.document_class == 'ifacconf':
        lines += ['\\newcounter{part}', '\\counterwithin*{section}{part}']
    return '\n'.join(lines)


def document_start(settings: Settings) -> str:
    lines = ['\\begin{document}']
    if settings.allow_display_breaks:
        lines.append('\\allowdisplaybreaks')
    if settings.author:
        lines.append(f'\\author{{{settings.author}}}')
    if settings.title:
        lines += [f'\\title{{{settings.title}}}', '\\maketitle']
    return '\n'.join(lines)


def split_pre_section(lines: list[str]) -> tuple[list[str], list[str]]:
    """(prose before the first sectioning command, the rest)."""
    for i, line in enumerate(lines):
        if SECTION_RE.match(line):
            return lines[:i], lines[i:]
    return lines, []


def main_body(lines: list[str], settings: Settings) -> str:
    pre, rest = split_pre_section(lines)
    body = '\n'.join(rest)
    if '\n'.join(pre).strip():
        body = '\n'.join(pre).strip('\n') + '\n' + body
    if settings.add_table_of_contents:
        body = '\\tableofcontents\n\\newpage\n\n' + body
    return body


def document_end(settings: Settings) -> str:
    lines = []
    if settings.add_new_page_before_bibliography:
        lines.append('\\newpage\n')
    lines += [
        f'\\bibliographystyle{{{settings.bibliography_style}}}',
        f'\\bibliography{{{settings.bibliography_file}}}',
        '\\end{document}',
    ]
    return '\n'.join(lines)


def assemble(lines: list[str], settings: Settings) -> str:
    """Complete LaTeX source for the transformed body lines."""
    parts = [preamble(settings), document_start(settings), main_body(lines, settings), document_end(settings)]
    return '\n\n'.join(parts) + '\n'
