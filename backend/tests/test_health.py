from fastapi.testclient import TestClient

from hrms.main import app


def test_root():
    with TestClient(app) as client:
        response = client.get("/")

    assert response.status_code == 200
    assert response.json()["message"] == "HRMS API running"


def test_liveness_and_readiness(client):
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/health/ready").json() == {"status": "ok", "database": "ok"}


def test_unknown_route_is_404(client):
    assert client.get("/nope").status_code == 404
