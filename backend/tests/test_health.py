from factories import API


def test_health(client):
    response = client.get(f"{API}/health/")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_ready_reports_database_and_feed(client):
    response = client.get(f"{API}/health/ready")
    assert response.status_code == 200
    assert response.json() == {"status": "ready", "database": "connected", "feed": "local"}
