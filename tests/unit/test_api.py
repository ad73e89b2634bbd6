import pytest

pytest.importorskip("httpx", reason="httpx is required for the FastAPI test client")

from fastapi.testclient import TestClient

from app.models.schemas import Service
from domains.service_registry.store import ServiceRegistry


@pytest.fixture
def registry(tmp_path):
    reg = ServiceRegistry(tmp_path)
    reg.init()
    reg.add_service(Service(id="oniontree", name="OnionTree", urls=["http://onions53ehmf4q75.onion"]))
    reg.tag_service("oniontree", ["link-list"])
    return reg


@pytest.fixture
def client(registry, monkeypatch):
    from app import main
    from app.api import health, services

    monkeypatch.setattr(health, "get_registry", lambda: registry)
    monkeypatch.setattr(services, "get_registry", lambda: registry)
    monkeypatch.setattr(main, "get_registry", lambda: registry)

    with TestClient(main.app) as test_client:
        yield test_client


def test_health_reports_initialized_registry(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["registry_initialized"] is True


def test_list_services(client):
    response = client.get("/services")

    assert response.json() == {"services": ["oniontree"], "total": 1}


def test_get_service_includes_tags(client):
    response = client.get("/services/oniontree")

    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "OnionTree"
    assert body["urls"] == ["http://onions53ehmf4q75.onion"]
    assert body["tags"] == ["link-list"]


def test_get_missing_service_is_404(client):
    assert client.get("/services/missing").status_code == 404


def test_tags(client):
    assert client.get("/tags").json() == {"tags": ["link-list"], "total": 1}
    assert client.get("/tags/link-list/services").json() == {"services": ["oniontree"], "total": 1}
    assert client.get("/tags/missing/services").status_code == 404
