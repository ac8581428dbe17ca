"""Label normalization and citation classification for link targets"""

import re


_NON_LABEL_RE = re.compile(r'[^a-z0-9]+')
_CITATION_RE = re.compile(r'(?:p|ref)[0-9]+')


def normalize_label(raw: str) -> str:
    """Convert a note or section name to a lowercase, hyphen-separated LaTeX label."""
    return _NON_LABEL_RE.sub('-', raw.lower()).strip('-')


def is_citation(name: str) -> bool:
    """True for bibliography keys of the form p<digits> or ref<digits> (case-sensitive)."""
    return _CITATION_RE.fullmatch(name) is not None
