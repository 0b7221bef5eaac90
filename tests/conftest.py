from __future__ import annotations

import os
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

os.environ["APP_ENV"] = "test"
os.environ["TIMELINE_POLICY"] = "FORWARD"
os.environ["TRAVEL_ORACLE"] = "HAVERSINE"
os.environ["GOOGLE_MAPS_API_KEY"] = ""
os.environ["DEFAULT_ORIGIN_LAT"] = "30.6280"
os.environ["DEFAULT_ORIGIN_LNG"] = "-96.3344"

from app.main import create_app  # noqa: E402
from app.repositories.tasks import get_task_repository  # noqa: E402


@pytest.fixture()
def repository_scope() -> Generator:
    repository = get_task_repository()
    repository.clear()
    try:
        yield repository
    finally:
        repository.clear()


@pytest.fixture()
def client() -> Generator[TestClient, None, None]:
    app = create_app()
    with TestClient(app) as test_client:
        yield test_client
