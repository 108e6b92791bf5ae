import os
import sys

import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from proposal_tool.config.settings import Settings
from proposal_tool.db.database import build_engine, init_db, get_session
from proposal_tool.engine.models import Upgrade


def make_upgrade(id, category="Kitchen", location="Island", parent="Faucet", title=None,
                 price=1000.0, cost=700.0, template=None):
    return Upgrade(
        id=id,
        category=category,
        location=location,
        parent_selection=parent,
        choice_title=title or f"Option {id}",
        builder_cost=cost,
        client_price=price,
        margin=round((price - cost) / price * 100, 2) if price else 0.0,
        template=template,
    )


@pytest.fixture
def settings(tmp_path):
    return Settings(
        project_root=tmp_path,
        database_url="sqlite://",
        selections_dir=tmp_path / "selections",
        seed_on_startup=False,
    )


@pytest.fixture
def db_engine():
    engine = build_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(db_engine):
    from sqlalchemy.orm import sessionmaker

    factory = sessionmaker(bind=db_engine, autoflush=False, expire_on_commit=False)
    session = factory()
    yield session
    session.close()


@pytest.fixture
def client(db_engine):
    """TestClient bound to a fresh in-memory database."""
    from fastapi.testclient import TestClient
    from sqlalchemy.orm import sessionmaker

    from proposal_tool.api.main import app

    factory = sessionmaker(bind=db_engine, autoflush=False, expire_on_commit=False)

    def override_session():
        session = factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_session] = override_session
    # No lifespan: the test database is created by the db_engine fixture
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()
