def test_metrics_endpoint_exposes_domain_counters(client) -> None:
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "classdesk_schedule_conflicts_total" in response.text


def test_health(client) -> None:
    assert client.get("/health").json()["status"] == "healthy"
