def test_health_endpoints(client):
    live = client.get("/api/health/live")
    assert live.status_code == 200
    assert live.json()["status"] == "ok"

    ready = client.get("/api/health/ready")
    assert ready.status_code == 200
    payload = ready.json()
    assert payload["database"]["ok"] is True
    assert payload["database"]["missing_tables"] == []
    assert payload["scheduling"] == {
        "max_weekly_minutes": 1080,
        "min_travel_minutes": 15,
        "hod_min_minutes_per_week": 120,
    }


def test_oversized_body_is_rejected(client):
    response = client.post(
        "/api/conflicts/check",
        content=b"x" * 1_000_001,
        headers={"content-type": "application/json"},
    )
    assert response.status_code == 413
    assert response.json()["details"]["max_bytes"] == 1_000_000
