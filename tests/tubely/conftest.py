"""Shared fixtures for Tubely tests."""

import os
import tempfile
import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Override settings before importing app
os.environ["TUBELY_DB_PATH"] = ":memory:"
os.environ["TUBELY_JWT_SECRET"] = "test-secret"
os.environ["TUBELY_ASSETS_ROOT"] = tempfile.mkdtemp()
os.environ["TUBELY_TEMP_DIR"] = tempfile.mkdtemp()
os.environ["TUBELY_BASE_URL"] = "http://testserver"
os.environ["TUBELY_S3_BUCKET"] = "test-bucket"
os.environ["TUBELY_S3_REGION"] = "us-east-2"
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

from tubely.api.deps import get_object_store, get_thumbnail_store
from tubely.db import crud
from tubely.db.database import Base, get_db
from tubely.files.assets import build_object_url
from tubely.main import app
from tubely.storage.object_store import ObjectStore
from tubely.storage.thumbnails import MemoryThumbnailStore
from tubely.utils.exceptions import StorageError
from tubely.utils.security import make_jwt


class FakeObjectStore(ObjectStore):
    """Records uploads instead of talking to S3."""

    def __init__(self, fail: bool = False):
        self.uploads: list[dict] = []
        self.fail = fail

    def upload(self, key: str, local_path: str, content_type: str) -> None:
        with open(local_path, "rb") as f:
            data = f.read()
        self.uploads.append({
            "key": key,
            "local_path": local_path,
            "content_type": content_type,
            "data": data,
        })
        if self.fail:
            raise StorageError("simulated S3 outage")

    def object_url(self, key: str) -> str:
        return build_object_url("test-bucket", "us-east-2", key)


@pytest.fixture
def db_engine():
    """Fresh in-memory SQLite database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    Session = sessionmaker(bind=db_engine)
    session = Session()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def thumbnail_store():
    return MemoryThumbnailStore("http://testserver")


@pytest.fixture
def object_store():
    return FakeObjectStore()


@pytest.fixture
def client(db_session, thumbnail_store, object_store):
    """FastAPI test client with test database and in-process stores."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_thumbnail_store] = lambda: thumbnail_store
    app.dependency_overrides[get_object_store] = lambda: object_store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def owner_id():
    return str(uuid.uuid4())


@pytest.fixture
def auth_headers(owner_id):
    return {"Authorization": f"Bearer {make_jwt(owner_id, 'test-secret')}"}


@pytest.fixture
def other_user_headers():
    return {"Authorization": f"Bearer {make_jwt(str(uuid.uuid4()), 'test-secret')}"}


@pytest.fixture
def video(db_session, owner_id):
    return crud.create_video(db_session, user_id=owner_id, title="Desk setup tour")


@pytest.fixture
def temp_dir(tmp_path, monkeypatch):
    """Point uploads at an empty staging directory."""
    from tubely.config.settings import settings

    staging = tmp_path / "staging"
    staging.mkdir()
    monkeypatch.setattr(settings, "TEMP_DIR", str(staging))
    return staging
