from fastapi.testclient import TestClient

from conftest import milan_payload


def test_budget_report(client: TestClient) -> None:
    response = client.post("/api/v1/reports/budget", json={"snapshot": milan_payload()})

    assert response.status_code == 200
    (row,) = response.json()["rows"]
    assert row["project_id"] == "p1"
    assert row["estimated_cost"] == "100.00"
    assert row["variance"] == "900.00"
    assert row["budget_usage_percent"] == "10.00"


def test_fte_report_skips_undated_projects(client: TestClient) -> None:
    response = client.post("/api/v1/reports/fte", json={"snapshot": milan_payload()})

    assert response.status_code == 200
    assert response.json()["rows"] == []


def test_utilization_report(client: TestClient) -> None:
    response = client.post(
        "/api/v1/reports/utilization",
        json={"snapshot": milan_payload(), "month": "2024-05", "underutilized_only": True},
    )

    assert response.status_code == 200
    (row,) = response.json()["rows"]
    assert row["resource_id"] == "r1"
    assert row["working_days"] == 23
    assert row["person_days"] == "1.00"


def test_utilization_report_rejects_bad_month(client: TestClient) -> None:
    response = client.post(
        "/api/v1/reports/utilization",
        json={"snapshot": milan_payload(), "month": "May 2024"},
    )

    assert response.status_code == 422


def test_daily_load_report(client: TestClient) -> None:
    response = client.post(
        "/api/v1/reports/daily-load",
        json={"snapshot": milan_payload(), "resource_id": "r1", "window": {"start": "2024-06-03", "end": "2024-06-04"}},
    )

    assert response.status_code == 200
    body = response.json()
    # 3 June is a Milan holiday, so only 4 June is listed
    assert [row["day"] for row in body["days"]] == ["2024-06-04"]
    assert body["over_allocated_days"] == 0


def test_daily_load_for_unknown_resource_is_not_found(client: TestClient) -> None:
    response = client.post(
        "/api/v1/reports/daily-load",
        json={"snapshot": milan_payload(), "resource_id": "ghost", "window": {"start": "2024-06-03", "end": "2024-06-04"}},
    )

    assert response.status_code == 404
