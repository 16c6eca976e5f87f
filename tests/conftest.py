"""
Placement Office Test Configuration

Shared fixtures for all tests.
"""
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from modules.placements.models import Base
from modules.placements.repository import SqlAlchemyRepository


# =============================================================================
# FIXTURES: Database
# =============================================================================

@pytest.fixture
def engine():
    eng = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as s:
        yield s


@pytest.fixture
def repo(session):
    return SqlAlchemyRepository(session)


# =============================================================================
# FIXTURES: Environment
# =============================================================================

@pytest.fixture
def clean_env(monkeypatch):
    """Drop PLACEMENT_* variables so config defaults apply."""
    import os
    for key in list(os.environ):
        if key.startswith("PLACEMENT"):
            monkeypatch.delenv(key, raising=False)
    yield monkeypatch
