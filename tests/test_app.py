"""Smoke tests for the application shell."""


def test_root(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["status"] == "running"
    assert response.json()["endpoints"]["tickets"] == "/api/tickets"


def test_health(client):
    for path in ("/health", "/api/health"):
        response = client.get(path)
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


def test_unknown_route_is_404(client):
    assert client.get("/api/nothing-here").status_code == 404
