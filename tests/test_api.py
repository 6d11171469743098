from datetime import date

from fastapi.testclient import TestClient

from heatmap_tracker.core.security import CurrentUser
from heatmap_tracker.db import Database
from heatmap_tracker.models import ActivityEntry


FIXED_TODAY = date(2026, 2, 20)


def create_task(client: TestClient, **payload) -> dict:
    response = client.post("/api/tasks", json={"name": "Push-ups", **payload})
    assert response.status_code == 201
    return response.json()["task"]


def test_health_live_returns_ok(client: TestClient) -> None:
    response = client.get("/health/live")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert response.headers["X-Request-ID"]


def test_health_db_returns_ok(client: TestClient) -> None:
    response = client.get("/health/db")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_api_requires_authentication(client: TestClient) -> None:
    for path in (
        "/api/user/me",
        "/api/tasks",
        "/api/activity/overview",
        "/api/activity/streaks",
    ):
        response = client.get(path)

        assert response.status_code == 401
        assert response.json() == {"detail": "Authentication required"}


def test_read_current_user(auth_client: TestClient) -> None:
    response = auth_client.get("/api/user/me")

    assert response.status_code == 200
    assert response.json()["user"]["name"] == "Ada"
    assert response.json()["user"]["email"] == "ada@example.com"


def test_create_task_uses_default_levels(auth_client: TestClient) -> None:
    task = create_task(auth_client, description="Daily set")

    assert task["name"] == "Push-ups"
    assert task["description"] == "Daily set"
    assert [level["min_count"] for level in task["intensity_levels"]] == [1, 3, 5]


def test_create_task_rejects_blank_name(auth_client: TestClient) -> None:
    response = auth_client.post("/api/tasks", json={"name": "   "})

    assert response.status_code == 400
    assert response.json() == {"detail": "Task name is required"}


def test_create_task_validates_levels(auth_client: TestClient) -> None:
    response = auth_client.post(
        "/api/tasks",
        json={
            "name": "Read",
            "intensity_levels": [{"label": "x", "min_count": 0, "color": "#000"}],
        },
    )

    assert response.status_code == 422


def test_list_tasks_without_and_with_heatmap(auth_client: TestClient) -> None:
    task = create_task(auth_client)

    plain = auth_client.get("/api/tasks")
    with_heatmap = auth_client.get("/api/tasks?include_heatmap=true")

    assert plain.status_code == 200
    assert [item["id"] for item in plain.json()["tasks"]] == [task["id"]]
    assert with_heatmap.status_code == 200
    item = with_heatmap.json()["tasks"][0]
    assert item["task"]["id"] == task["id"]
    assert len(item["heatmap"]) == 365
    assert item["heatmap"][-1]["date"] == FIXED_TODAY.isoformat()


def test_replace_intensity_levels(auth_client: TestClient) -> None:
    task = create_task(auth_client)

    response = auth_client.put(
        f"/api/tasks/{task['id']}/intensity",
        json={
            "intensity_levels": [
                {"label": "goal", "min_count": 20, "color": "#0a0"},
                {"label": "started", "min_count": 1, "color": "#afa"},
            ]
        },
    )

    assert response.status_code == 200
    assert [level["label"] for level in response.json()["task"]["intensity_levels"]] == [
        "goal",
        "started",
    ]


def test_replace_intensity_levels_requires_levels(auth_client: TestClient) -> None:
    task = create_task(auth_client)

    response = auth_client.put(
        f"/api/tasks/{task['id']}/intensity", json={"intensity_levels": []}
    )

    assert response.status_code == 400
    assert response.json() == {"detail": "Intensity levels must be provided"}


def test_replace_intensity_levels_unknown_task(auth_client: TestClient) -> None:
    response = auth_client.put(
        "/api/tasks/missing/intensity",
        json={"intensity_levels": [{"label": "a", "min_count": 1, "color": "#000"}]},
    )

    assert response.status_code == 404
    assert response.json() == {"detail": "Task not found"}


def test_record_activity_accumulates(auth_client: TestClient) -> None:
    task = create_task(auth_client)

    first = auth_client.post(
        "/api/activity", json={"task_id": task["id"], "date": "2026-02-19", "count": 2}
    )
    second = auth_client.post(
        "/api/activity",
        json={
            "task_id": task["id"],
            "date": "2026-02-19",
            "count": 3,
            "metadata": {"source": "watch"},
        },
    )

    assert first.status_code == 201
    assert second.status_code == 201
    activity = second.json()["activity"]
    assert activity["date"] == "2026-02-19"
    assert activity["count"] == 5
    assert activity["metadata"] == {"source": "watch"}
    assert activity["id"] == first.json()["activity"]["id"]


def test_record_activity_unknown_task(auth_client: TestClient) -> None:
    response = auth_client.post(
        "/api/activity", json={"task_id": "missing", "date": "2026-02-19", "count": 1}
    )

    assert response.status_code == 404


def test_record_activity_validates_payload(auth_client: TestClient) -> None:
    task = create_task(auth_client)

    response = auth_client.post(
        "/api/activity", json={"task_id": task["id"], "date": "yesterday", "count": 1}
    )

    assert response.status_code == 422


def test_task_heatmap_returns_dense_window(auth_client: TestClient) -> None:
    task = create_task(auth_client)
    for day, count in (("2026-02-17", 1), ("2026-02-19", 4), ("2026-02-20", 6)):
        auth_client.post(
            "/api/activity", json={"task_id": task["id"], "date": day, "count": count}
        )

    response = auth_client.get(f"/api/activity/task/{task['id']}?days=5")

    assert response.status_code == 200
    body = response.json()
    assert body["task"]["id"] == task["id"]
    assert body["total"] == 11
    assert body["streak"] == {"current": 2, "best": 2}
    assert [(day["date"], day["count"]) for day in body["heatmap"]] == [
        ("2026-02-16", 0),
        ("2026-02-17", 1),
        ("2026-02-18", 0),
        ("2026-02-19", 4),
        ("2026-02-20", 6),
    ]
    assert [day["level"]["label"] if day["level"] else None for day in body["heatmap"]] == [
        None,
        "light",
        None,
        "medium",
        "heavy",
    ]


def test_task_heatmap_defaults_to_configured_window(auth_client: TestClient) -> None:
    task = create_task(auth_client)

    response = auth_client.get(f"/api/activity/task/{task['id']}")

    assert response.status_code == 200
    assert len(response.json()["heatmap"]) == 365


def test_task_heatmap_rejects_out_of_range_window(auth_client: TestClient) -> None:
    task = create_task(auth_client)

    response = auth_client.get(f"/api/activity/task/{task['id']}?days=0")

    assert response.status_code == 422


def test_task_heatmap_unknown_task(auth_client: TestClient) -> None:
    response = auth_client.get("/api/activity/task/missing")

    assert response.status_code == 404
    assert response.json() == {"detail": "Task not found"}


def test_record_activity_allows_decrement_down_to_zero(auth_client: TestClient) -> None:
    task = create_task(auth_client)
    auth_client.post(
        "/api/activity", json={"task_id": task["id"], "date": "2026-02-20", "count": 3}
    )

    response = auth_client.post(
        "/api/activity", json={"task_id": task["id"], "date": "2026-02-20", "count": -3}
    )

    assert response.status_code == 201
    assert response.json()["activity"]["count"] == 0


def test_record_activity_rejects_negative_daily_total(auth_client: TestClient) -> None:
    read = create_task(auth_client, name="Read")
    run = create_task(auth_client, name="Run")
    auth_client.post(
        "/api/activity", json={"task_id": read["id"], "date": "2026-02-19", "count": 2}
    )
    auth_client.post(
        "/api/activity", json={"task_id": run["id"], "date": "2026-02-18", "count": 1}
    )

    fresh_day = auth_client.post(
        "/api/activity", json={"task_id": run["id"], "date": "2026-02-19", "count": -1}
    )
    existing_day = auth_client.post(
        "/api/activity", json={"task_id": run["id"], "date": "2026-02-18", "count": -2}
    )
    overview = auth_client.get("/api/activity/overview")
    tasks = auth_client.get("/api/tasks?include_heatmap=true")

    assert fresh_day.status_code == 400
    assert fresh_day.json() == {"detail": "Daily activity total cannot be negative"}
    assert existing_day.status_code == 400
    assert overview.status_code == 200
    assert tasks.status_code == 200
    totals = {item["task"]["name"]: item["total"] for item in overview.json()["overview"]}
    assert totals == {"Read": 2, "Run": 1}


def test_task_heatmap_negative_stored_total_is_conflict(
    auth_client: TestClient, database: Database, current_user: CurrentUser
) -> None:
    task = create_task(auth_client)
    session = database.session()
    try:
        session.add(
            ActivityEntry(
                task_id=task["id"],
                owner_id=current_user.id,
                day=FIXED_TODAY,
                count=-3,
            )
        )
        session.commit()
    finally:
        session.close()

    response = auth_client.get(f"/api/activity/task/{task['id']}?days=3")

    assert response.status_code == 409


def test_overview_lists_every_task(auth_client: TestClient) -> None:
    read = create_task(auth_client, name="Read")
    run = create_task(auth_client, name="Run")
    auth_client.post(
        "/api/activity", json={"task_id": run["id"], "date": "2026-02-20", "count": 1}
    )

    response = auth_client.get("/api/activity/overview")

    assert response.status_code == 200
    by_id = {item["task"]["id"]: item for item in response.json()["overview"]}
    assert set(by_id) == {read["id"], run["id"]}
    assert by_id[run["id"]]["total"] == 1
    assert by_id[read["id"]]["total"] == 0


def test_streaks_cover_all_tasks(auth_client: TestClient) -> None:
    read = create_task(auth_client, name="Read")
    run = create_task(auth_client, name="Run")
    idle = create_task(auth_client, name="Idle")
    for day in ("2026-02-10", "2026-02-11", "2026-02-12"):
        auth_client.post(
            "/api/activity", json={"task_id": read["id"], "date": day, "count": 1}
        )
    for day in ("2026-02-18", "2026-02-19", "2026-02-20"):
        auth_client.post(
            "/api/activity", json={"task_id": run["id"], "date": day, "count": 2}
        )

    response = auth_client.get("/api/activity/streaks")

    assert response.status_code == 200
    assert response.json()["streaks"] == {
        read["id"]: {"current": 0, "best": 3},
        run["id"]: {"current": 3, "best": 3},
        idle["id"]: {"current": 0, "best": 0},
    }


def test_streaks_match_task_heatmap(auth_client: TestClient) -> None:
    task = create_task(auth_client)
    for day, count in (
        ("2026-02-01", 1),
        ("2026-02-02", 1),
        ("2026-02-03", 0),
        ("2026-02-15", 3),
        ("2026-02-19", 1),
        ("2026-02-20", 1),
    ):
        auth_client.post(
            "/api/activity", json={"task_id": task["id"], "date": day, "count": count}
        )

    streaks = auth_client.get("/api/activity/streaks").json()["streaks"]
    heatmap = auth_client.get(f"/api/activity/task/{task['id']}").json()

    assert streaks[task["id"]] == heatmap["streak"] == {"current": 2, "best": 2}
