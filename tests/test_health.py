from conftest import auth


def test_health_reports_database(client):
    res = client.get("/health")
    assert res.status_code == 200
    body = res.get_json()
    assert body["status"] == "ok"
    assert body["database"] == "reachable"
    assert "timestamp" in body
    assert res.headers["X-Request-Id"]


def test_unknown_route_uses_error_envelope(client):
    res = client.get("/api/v1/nowhere")
    assert res.status_code == 404
    body = res.get_json()
    assert body["success"] is False
    assert body["error"]["code"] == "NOT_FOUND"
    assert body["request_id"] == res.headers["X-Request-Id"]


def test_wrong_method(client, customer):
    res = client.delete("/api/v1/profiles/me", headers=auth(customer))
    assert res.status_code == 405
    assert res.get_json()["error"]["code"] == "METHOD_NOT_ALLOWED"


def test_non_json_body_is_rejected(client, customer):
    res = client.patch("/api/v1/profiles/me", data="phone=0612345678", headers=auth(customer))
    assert res.status_code == 400
    assert res.get_json()["error"]["code"] == "VALIDATION_ERROR"
