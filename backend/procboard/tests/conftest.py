import os
import tempfile
from datetime import datetime, timezone

_TMP_DIR = tempfile.mkdtemp(prefix="procboard-tests-")
os.environ["TESTING"] = "1"
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_TMP_DIR}/metadata.db")
os.environ.setdefault("NAMESPACE_DATABASE_URL", f"sqlite:///{_TMP_DIR}/namespaces.db")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[2]))

from procboard import schemas
from procboard.main import app
from procboard.database import Base, build_engine
from procboard.dependencies import get_coordinator
from procboard.services.lifecycle import NamespaceLifecycleCoordinator
from procboard.services.registry import MetadataRegistry


@pytest.fixture
def engines(tmp_path):
    metadata_engine = build_engine(f"sqlite:///{tmp_path / 'metadata.db'}")
    namespace_engine = build_engine(f"sqlite:///{tmp_path / 'namespaces.db'}")
    Base.metadata.create_all(bind=metadata_engine)
    yield metadata_engine, namespace_engine
    metadata_engine.dispose()
    namespace_engine.dispose()


@pytest.fixture
def registry(engines):
    metadata_engine, _ = engines
    session_factory = sessionmaker(
        autocommit=False, autoflush=False, expire_on_commit=False, bind=metadata_engine
    )
    return MetadataRegistry(session_factory)


@pytest.fixture
def coordinator(registry, engines):
    _, namespace_engine = engines
    return NamespaceLifecycleCoordinator(registry, namespace_engine)


@pytest.fixture
def client(coordinator):
    app.dependency_overrides[get_coordinator] = lambda: coordinator
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.pop(get_coordinator, None)


def make_process(client, name="Q1-Audit", **overrides):
    """
    procboard: purpose: register a process through the API for tests that need one
    procboard: outputs: decoded ProcessCreated body
    """

    payload = {
        "name": name,
        "start_at": "2024-01-01T00:00:00Z",
        "end_at": "2024-03-31T00:00:00Z",
    }
    payload.update(overrides)
    resp = client.post("/api/processes", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()


def register_process(coordinator, name="Q1-Audit"):
    return coordinator.create_process(
        schemas.ProcessCreate(
            name=name,
            start_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            end_at=datetime(2024, 3, 31, tzinfo=timezone.utc),
        )
    )
