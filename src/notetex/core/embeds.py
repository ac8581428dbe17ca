"""Embedded-reference resolution: splice ![[name#section]] content into the host text"""

import logging
import re

from notetex.config import Settings
from notetex.core.models import EmbeddedReference
from notetex.core.utils.frontmatter import split_frontmatter
from notetex.core.utils.paths import resolve_path
from notetex.core.utils.patterns import EMBED_RE
from notetex.crud.store import DocumentStore
from notetex.errors import ReadFailure


logger = logging.getLogger(__name__)

_TARGET_RE = re.compile(r'^([^#\\|]+)')
_HASH_SECTION_RE = re.compile(r'#([^\\|\]]+)')
_COMMAND_SECTION_RE = re.compile(r'\\[A-Za-z]+\{([^}]+)\}')


def extract_references(text: str, settings: Settings, base_dir: str = '') -> list[EmbeddedReference]:
    """Every embed marker in document order; duplicates are listed once per occurrence."""
    refs: list[EmbeddedReference] = []
    for m in EMBED_RE.finditer(text):
        inner = m.group(1)
        target = _TARGET_RE.match(inner)
        if not target:
            continue
        name = target.group(1).strip()
        section = _HASH_SECTION_RE.search(inner) or _COMMAND_SECTION_RE.search(inner)
        refs.append(EmbeddedReference(
            full_marker=m.group(0),
            target_name=name,
            section=section.group(1).strip() if section else '',
            resolved_path=resolve_path(name, settings, base_dir),
        ))
    return refs


def _section_patterns(section: str) -> list[re.Pattern]:
    s = re.escape(section)
    flags = re.IGNORECASE | re.DOTALL
    return [
        # heading: "# section"
        re.compile(rf'^[ \t]*#+[ \t]*{s}[ \t]*\n(?P<body>.*?)(?=\n#|\Z)', flags | re.MULTILINE),
        # percent fence: "%% section %%"
        re.compile(rf'%%[ \t]*{s}[ \t]*%%[ \t]*\n(?P<body>.*?)(?=\n%%|\Z)', flags),
        # command: "\texttt{section}"
        re.compile(rf'\\(?P<cmd>[A-Za-z]+)\{{{s}\}}[ \t]*\n(?P<body>.*?)(?=\n\\(?P=cmd)\{{|\Z)', flags),
    ]


def extract_section(content: str, section: str) -> str:
    """The named section's body under the first delimiter convention that matches, else everything."""
    if not section:
        return content
    for pattern in _section_patterns(section):
        if m := pattern.search(content):
            return m.group('body').strip()
    logger.debug("Section %r not found; using the whole document", section)
    return content


def frame(ref: EmbeddedReference, content: str) -> str:
    return (
        f'\n% Start embedded ref:\n'
        f'%{ref.target_name}\\texttt{{{ref.section}}}\n'
        f'{content}\n'
        f'% End embedded ref\n'
    )


def _fetch(ref: EmbeddedReference, store: DocumentStore) -> str | None:
    try:
        text = store.read(ref.resolved_path)
    except ReadFailure as e:
        logger.warning("Cannot read embedded document %s: %s", ref.resolved_path, e)
        return None
    if text is None:
        logger.warning("Embedded document not found: %s", ref.resolved_path)
    return text


def resolve_embeds(text: str, store: DocumentStore, settings: Settings, base_dir: str = '') -> str:
    """Replace each embed marker with its framed section content.

    Targets are fetched one at a time in document order. Each listed marker
    replaces the first remaining textual occurrence of itself; absent targets,
    unreadable targets and empty sections leave the marker in place.
    """
    for ref in extract_references(text, settings, base_dir):
        fetched = _fetch(ref, store)
        if fetched is None:
            continue
        content = extract_section(split_frontmatter(fetched)[1], ref.section).strip()
        if not content:
            logger.debug("Embedded %s is empty; marker kept", ref.full_marker)
            continue
        if EMBED_RE.search(content):
            logger.warning("Embedded %s contains further embeds; they are not resolved", ref.target_name)
        text = text.replace(ref.full_marker, frame(ref, content), 1)
    return text
