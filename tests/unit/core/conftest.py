"""Shared fixtures for core unit tests"""

import pytest

from notetex.config import Settings
from notetex.crud.memory_store import MemoryStore


EINSTEIN_BLOCK = """\
---
tags: [physics]
---
# expr
E=mc^{2}
# notes
Mass-energy equivalence.
"""

RESULTS_TABLE = """\
| Model | Score |
|:------|------:|
| base  | 0.71  |
| ours  | 0.84  |
"""


@pytest.fixture(name="settings")
def settings_fixture():
    return Settings()


@pytest.fixture(name="store")
def store_fixture():
    """In-memory store holding one block of each kind."""
    s = MemoryStore()
    s.write("✍Writing/equation blocks/eq__block_einstein.md", EINSTEIN_BLOCK)
    s.write("✍Writing/table blocks/table__block_results.md", RESULTS_TABLE)
    s.write("✍Writing/figure blocks/figure__block_plot.md", "![[plot.png]]\nLoss per *epoch*\n")
    return s
