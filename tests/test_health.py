def test_health_endpoint_returns_ok(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["service"] == "Bulletin Review API"
    assert "version" in body
    assert "environment" in body


def test_health_needs_no_principal(client):
    assert client.get("/health", headers={"X-User-Role": "wizard"}).status_code == 200


def test_store_on_app_state(client):
    store = client.app.state.store
    assert store.engine.url.get_backend_name() == "sqlite"
