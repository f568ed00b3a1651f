import pytest
from sqlalchemy import select
from sqlalchemy.pool import StaticPool

from db import get_session, init_db
from tests.factories import ALL_FACTORIES


@pytest.fixture
def engine():
    """Fresh in-memory database per test, shared by every session."""
    eng = init_db(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine):
    """Session used by the factories for seeding."""
    s = get_session()
    for f in ALL_FACTORIES:
        f._meta.sqlalchemy_session = s
    yield s
    s.close()


@pytest.fixture
def fetch_all(engine):
    """Read a table back through a new session, bypassing any stale identity map."""
    def _fetch(model):
        s = get_session()
        try:
            return list(s.execute(select(model)).scalars())
        finally:
            s.close()
    return _fetch
