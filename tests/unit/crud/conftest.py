"""Shared fixtures for crud unit tests"""

import pytest
from sqlalchemy import create_engine
from sqlmodel import SQLModel, Session

import notetex.crud.models  # noqa: F401
from notetex.core.models import ConversionResult


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine with all tables created."""
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False})
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    """Fresh session per test; changes are not committed."""
    with Session(engine) as s:
        yield s


@pytest.fixture(name="result")
def result_fixture():
    """A conversion outcome for Papers/Draft.md."""
    return ConversionResult(
        source_path="Papers/Draft.md",
        output_path="✍Writing/Draft.tex",
        source_hash="a" * 64,
        output_hash="b" * 64,
    )
