"""
Shared fixtures: in-memory database, API client and CSV builders.
"""

import csv
import io
import os

# Point the application at SQLite before any backend module is imported
os.environ["DB_DSN"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from backend.app import config
from backend.app.db.base import Base
from backend.app.db.session import get_db
from backend.app.main import app
import backend.app.models  # noqa: F401


@pytest.fixture
def engine():
    """Fresh in-memory database with every program table."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    """Redirect temporary uploads into the test's tmp directory."""
    path = tmp_path / "uploads"
    monkeypatch.setattr(config, "UPLOAD_DIR", str(path))
    return path


@pytest.fixture
def client(session_factory, upload_dir):
    """API client bound to the in-memory database."""
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_csv():
    """Build CSV text from a header list and row lists."""
    def _make_csv(header, rows):
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(header)
        writer.writerows(rows)
        return buffer.getvalue()
    return _make_csv


@pytest.fixture
def upload(client):
    """POST a CSV body to a program's upload endpoint."""
    def _upload(program, content, replace_all=True, filename="grants.csv", content_type="text/csv"):
        if isinstance(content, str):
            content = content.encode("utf-8")
        return client.post(
            f"/api/{program}/upload-csv",
            files={"file": (filename, content, content_type)},
            data={"replaceAll": "true" if replace_all else "false"},
        )
    return _upload


GIA_HEADER = [
    "Count", "Grant", "Year Awarded", "UII", "HEI Name", "Region", "Project Title",
    "AMOUNT", "Priority Area", "ALLOCATED", "OBLIGATED", "DISBURSED",
]


@pytest.fixture
def gia_csv(make_csv):
    """GIA export with three projects across two priority areas."""
    rows = [
        ["1", "GIA", "2023", "U-001", "Bicol State University", "Region V", "Clinic", "₱1,000.00", "Health", "1,000", "0", "0"],
        ["2", "GIA", "2023", "U-002", "Manila Polytechnic College", "NCR", "Vaccines", "₱800.00", "Health", "800", "600", "500"],
        ["3", "GIA", "2024", "U-003", "Private College of Cebu", "Region VII", "Robotics", "₱2,000.00", "Tech", "2,000", "1,500", "1,000"],
    ]
    return make_csv(GIA_HEADER, rows)


@pytest.fixture
def gia_header():
    return list(GIA_HEADER)
