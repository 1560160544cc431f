"""Shared fixtures – an in-memory SQLite database per test."""

import os

os.environ["DATABASE_URL"] = "sqlite://"
for var in ("PHENOML_USERNAME", "PHENOML_PASSWORD", "PHENOML_BASE_URL", "PHENOML_FHIR_PROVIDER_ID"):
    os.environ.pop(var, None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from case_manager.main import app  # noqa: E402
from case_manager.models.database import Base, SessionLocal, engine  # noqa: E402


@pytest.fixture()
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(db):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def phenoml_env(monkeypatch):
    monkeypatch.setenv("PHENOML_USERNAME", "user")
    monkeypatch.setenv("PHENOML_PASSWORD", "secret")
    monkeypatch.setenv("PHENOML_BASE_URL", "https://phenoml.test")
    monkeypatch.setenv("PHENOML_FHIR_PROVIDER_ID", "medplum-provider")
