# flake8: noqa
import os
import sys
import tempfile
from pathlib import Path

# Ensure project root is on sys.path so `recipe_manager` can be imported when tests are run
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))  # noqa: E402

# Settings are read once at import time; keep the app away from real files
os.environ.setdefault("RECIPE_MANAGER_DATABASE_URL", "sqlite://")
os.environ.setdefault(
    "RECIPE_MANAGER_UPLOADS_DIR",
    str(Path(tempfile.gettempdir()) / "recipe_manager_test_uploads"),
)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from recipe_manager import app as app_module
from recipe_manager import models
from recipe_manager.db import get_db


@pytest.fixture
def engine():
    # Use StaticPool so the same in-memory database is shared across connections
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    models.Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app_module.app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app_module.app)
    app_module.app.dependency_overrides.clear()
