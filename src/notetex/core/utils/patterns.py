"""Shared regex patterns for note markup"""

import re


# $...$ with no space just inside the delimiters and no digit right after the closer
INLINE_MATH_RE = re.compile(r'(?<![\\$])\$(?![\s$])([^$\n]*?[^\s\\$])\$(?![$0-9])')

# display-math delimiter, ignoring an escaped \$$
DISPLAY_DELIM_RE = re.compile(r'(?<!\\)\$\$')

# [[target]], [[target#section]], [[target|alias]] and the embedded ![[...]] form
WIKILINK_RE = re.compile(r'!?\[\[[^\]\n]+\]\]')
EMBED_RE = re.compile(r'!\[\[([^\]\n]+)\]\]')

# !ref{name}
DYNAMIC_RE = re.compile(r'!ref\{([^}\n]+)\}')

# \ref{eq__block_X} and its figure/table forms, rewritten by the equation and reference stages
BLOCK_REF_RE = re.compile(r'\\ref\{(?:eq|figure|table)__block_[^}\n]+\}')

# spans the markdown stage must pass through untouched
PROTECTED_RE = re.compile('|'.join(p.pattern for p in (INLINE_MATH_RE, WIKILINK_RE, DYNAMIC_RE, BLOCK_REF_RE)))
