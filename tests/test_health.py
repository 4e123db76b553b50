from fastapi.testclient import TestClient


def test_health_endpoint(test_client: TestClient):
    response = test_client.get("/api/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert "timestamp" in body


def test_status_reports_connection_and_operations(test_client: TestClient, fake_twenty):
    response = test_client.get("/api/status")
    assert response.status_code == 200
    body = response.json()
    assert body["ready"] is True
    assert body["twentyDomain"] == "https://crm.example.com"
    assert "person:sync" in body["operations"]


def test_status_when_twenty_unreachable(test_client: TestClient, fake_twenty):
    fake_twenty.healthy = False
    response = test_client.get("/api/status")
    assert response.status_code == 200
    assert response.json()["ready"] is False


def test_root_endpoint(test_client: TestClient):
    response = test_client.get("/")
    assert response.status_code == 200
    assert response.json()["api_prefix"] == "/api"
