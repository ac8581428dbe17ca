"""YAML frontmatter extraction for notes"""

import logging
import re
from typing import Any

import yaml


logger = logging.getLogger(__name__)

FRONTMATTER_RE = re.compile(r'^---[ \t]*\n(.*?)\n---[ \t]*(?:\n|\Z)', re.DOTALL)


def strip_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Return (frontmatter_dict, body) with the YAML header removed."""
    m = FRONTMATTER_RE.match(text)
    if m:
        try:
            fm = yaml.safe_load(m.group(1)) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML frontmatter: {e}") from e
        if not isinstance(fm, dict):
            raise ValueError(f"Invalid YAML frontmatter: expected a mapping, got {type(fm).__name__}")
        return fm, text[m.end():]
    return {}, text


def split_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """strip_frontmatter for included documents: a broken header is kept as body text."""
    try:
        return strip_frontmatter(text)
    except ValueError as e:
        logger.warning("%s; keeping the header as text", e)
        return {}, text
