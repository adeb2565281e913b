"""Tests for health endpoints"""
from fastapi.testclient import TestClient

from roleboard.api.deps import get_storage
from roleboard.main import app


def test_health(client: TestClient):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["storage_mode"] == "persistent"


def test_live(client: TestClient):
    response = client.get("/health/live")
    assert response.status_code == 200
    assert response.json()["status"] == "alive"


def test_ready_with_database(client: TestClient):
    response = client.get("/health/ready")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ready"
    assert body["checks"]["database"] is True


def test_ready_in_memory_mode(client: TestClient, memory_storage):
    app.dependency_overrides[get_storage] = lambda: memory_storage
    response = client.get("/health/ready")
    assert response.status_code == 200
    assert response.json()["status"] == "degraded"
    assert response.json()["checks"]["storage_mode"] == "memory"


def test_root(client: TestClient):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["service"] == "Roleboard"
