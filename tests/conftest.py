"""Session cleanup for history databases a test run may leave in the project root"""

from pathlib import Path

import pytest


_PROJECT_ROOT = Path(__file__).parent.parent

_HISTORY_DBS = ["notetex.db", "test.db"]


@pytest.fixture(scope="session", autouse=True)
def cleanup_history_dbs():
    """Drop history databases created when a command ran against the default URL."""
    yield
    for name in _HISTORY_DBS:
        (_PROJECT_ROOT / name).unlink(missing_ok=True)
