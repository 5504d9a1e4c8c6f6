from __future__ import annotations

import pytest
import pytest_asyncio
from httpx import AsyncClient

from conftest import SignUp, bearer


@pytest_asyncio.fixture
async def headers(sign_up: SignUp) -> dict[str, str]:
    return bearer(await sign_up())


async def create(client: AsyncClient, headers: dict[str, str], **fields) -> dict:
    response = await client.post("/api/tasks", json=fields, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def board_titles(board: dict) -> dict[str, list[tuple[str, int]]]:
    return {
        column["status"]: [(task["title"], task["order"]) for task in column["tasks"]]
        for column in board["columns"]
    }


@pytest.mark.parametrize(
    ("method", "path"),
    [
        ("GET", "/api/tasks"),
        ("GET", "/api/tasks/view"),
        ("POST", "/api/tasks"),
        ("GET", "/api/profiles"),
        ("GET", "/api/board"),
        ("POST", "/api/board/moves"),
    ],
)
async def test_task_routes_require_authentication(
    client: AsyncClient,
    method: str,
    path: str,
) -> None:
    response = await client.request(method, path)

    assert response.status_code == 401
    assert response.json()["code"] == "unauthorized"


async def test_create_and_fetch_task(client: AsyncClient, headers: dict[str, str]) -> None:
    created = await create(client, headers, title="Write docs", type="Feature")

    fetched = await client.get(f"/api/tasks/{created['id']}", headers=headers)

    assert fetched.status_code == 200
    body = fetched.json()
    assert body["title"] == "Write docs"
    assert body["type"] == "Feature"
    assert body["status"] == "To Do"
    assert body["order"] == 0
    assert body["created_at"].endswith("Z") or body["created_at"].endswith("+00:00")


async def test_create_rejects_unknown_status(client: AsyncClient, headers: dict[str, str]) -> None:
    response = await client.post(
        "/api/tasks",
        json={"title": "Bad", "status": "Blocked"},
        headers=headers,
    )

    assert response.status_code == 422
    assert response.json()["code"] == "validation_error"


async def test_unknown_task_returns_not_found(client: AsyncClient, headers: dict[str, str]) -> None:
    response = await client.get("/api/tasks/does-not-exist", headers=headers)

    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


async def test_patch_moves_task_to_end_of_new_column(
    client: AsyncClient,
    headers: dict[str, str],
) -> None:
    first = await create(client, headers, title="first")
    await create(client, headers, title="second")
    await create(client, headers, title="done", status="Done")

    response = await client.patch(
        f"/api/tasks/{first['id']}",
        json={"status": "Done", "assignee": "someone"},
        headers=headers,
    )
    board = await client.get("/api/board", headers=headers)

    assert response.status_code == 200, response.text
    assert response.json()["order"] == 1
    assert board_titles(board.json())["Done"] == [("done", 0), ("first", 1)]
    assert board_titles(board.json())["To Do"] == [("second", 0)]


async def test_patch_with_empty_body_is_rejected(client: AsyncClient, headers: dict[str, str]) -> None:
    created = await create(client, headers, title="first")

    response = await client.patch(f"/api/tasks/{created['id']}", json={}, headers=headers)

    assert response.status_code == 422


async def test_patch_cannot_null_a_required_column(client: AsyncClient, headers: dict[str, str]) -> None:
    created = await create(client, headers, title="first")

    response = await client.patch(
        f"/api/tasks/{created['id']}",
        json={"status": None},
        headers=headers,
    )
    fetched = await client.get(f"/api/tasks/{created['id']}", headers=headers)

    assert response.status_code == 422
    assert response.json()["code"] == "validation_error"
    assert fetched.json()["status"] == "To Do"


async def test_upsert_cannot_null_a_required_column(client: AsyncClient, headers: dict[str, str]) -> None:
    created = await create(client, headers, title="first")

    response = await client.post(
        "/api/tasks/upsert",
        json=[{"id": created["id"], "order": None}],
        headers=headers,
    )
    fetched = await client.get(f"/api/tasks/{created['id']}", headers=headers)

    assert response.status_code == 422
    assert response.json()["code"] == "validation_error"
    assert fetched.json()["order"] == 0


async def test_list_tasks_supports_ordering(client: AsyncClient, headers: dict[str, str]) -> None:
    await create(client, headers, title="a")
    await create(client, headers, title="b")

    ascending = await client.get("/api/tasks", headers=headers)
    descending = await client.get(
        "/api/tasks",
        params={"order_by": "order", "ascending": "false"},
        headers=headers,
    )

    assert [task["title"] for task in ascending.json()] == ["a", "b"]
    assert [task["title"] for task in descending.json()] == ["b", "a"]


async def test_upsert_endpoint_inserts_and_updates(client: AsyncClient, headers: dict[str, str]) -> None:
    existing = await create(client, headers, title="existing")

    response = await client.post(
        "/api/tasks/upsert",
        json=[
            {"id": existing["id"], "status": "Done", "order": 0},
            {"id": "imported-1", "title": "imported", "status": "Done", "order": 1},
        ],
        headers=headers,
    )

    assert response.status_code == 200, response.text
    assert [(task["id"], task["status"]) for task in response.json()] == [
        (existing["id"], "Done"),
        ("imported-1", "Done"),
    ]


async def test_upsert_endpoint_requires_title_for_new_rows(
    client: AsyncClient,
    headers: dict[str, str],
) -> None:
    response = await client.post(
        "/api/tasks/upsert",
        json=[{"id": "no-title", "order": 0}],
        headers=headers,
    )
    listing = await client.get("/api/tasks", headers=headers)

    assert response.status_code == 422
    assert response.json()["details"]["task_ids"] == ["no-title"]
    assert listing.json() == []


async def test_upsert_endpoint_rejects_empty_batch(client: AsyncClient, headers: dict[str, str]) -> None:
    response = await client.post("/api/tasks/upsert", json=[], headers=headers)

    assert response.status_code == 422


async def test_list_view_filters_and_sorts(client: AsyncClient, headers: dict[str, str], sign_up: SignUp) -> None:
    grace = await sign_up(email="grace@example.com", full_name="Grace Hopper")
    grace_id = grace["user"]["id"]
    await create(client, headers, title="alpha", status="Done", assignee=grace_id)
    await create(client, headers, title="beta", status="Done")
    await create(client, headers, title="gamma")

    response = await client.get(
        "/api/tasks/view",
        params={"status": "Done", "sort": "assignee", "direction": "desc"},
        headers=headers,
    )

    assert response.status_code == 200, response.text
    body = response.json()
    assert [row["title"] for row in body["rows"]] == ["alpha", "beta"]
    assert [row["assignee_name"] for row in body["rows"]] == ["Grace Hopper", "Unassigned"]
    assert body["total"] == 3
    assert body["query"] == {
        "status": "Done",
        "assignee": "all",
        "sort_key": "assignee",
        "direction": "desc",
    }
    assert {"id": grace_id, "name": "Grace Hopper"} in body["assignees"]


async def test_profiles_are_listed_by_name(client: AsyncClient, headers: dict[str, str], sign_up: SignUp) -> None:
    await sign_up(email="zed@example.com", full_name="Zed")
    await sign_up(email="bea@example.com", full_name="Bea")

    response = await client.get("/api/profiles", headers=headers)
    missing = await client.get("/api/profiles/unknown", headers=headers)

    assert [profile["full_name"] for profile in response.json()] == ["Ada Lovelace", "Bea", "Zed"]
    assert missing.status_code == 404


async def test_board_groups_every_status(client: AsyncClient, headers: dict[str, str]) -> None:
    await create(client, headers, title="only")

    response = await client.get("/api/board", headers=headers)

    body = response.json()
    assert [column["status"] for column in body["columns"]] == ["To Do", "In Progress", "Done"]
    assert board_titles(body)["To Do"] == [("only", 0)]
    assert body["error"] is None
    assert [profile["full_name"] for profile in body["profiles"]] == ["Ada Lovelace"]


async def test_board_move_across_columns(client: AsyncClient, headers: dict[str, str]) -> None:
    a = await create(client, headers, title="A")
    await create(client, headers, title="B")
    await create(client, headers, title="C", status="In Progress")
    await create(client, headers, title="D", status="In Progress")

    response = await client.post(
        "/api/board/moves",
        json={
            "task_id": a["id"],
            "source_status": "To Do",
            "source_index": 0,
            "destination_status": "In Progress",
            "destination_index": 1,
        },
        headers=headers,
    )

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["applied"] is True
    assert body["changed"][0]["id"] == a["id"]
    assert {task["title"] for task in body["changed"]} == {"A", "B", "D"}
    assert board_titles(body["board"]) == {
        "To Do": [("B", 0)],
        "In Progress": [("C", 0), ("A", 1), ("D", 2)],
        "Done": [],
    }


async def test_board_move_to_same_slot_is_not_applied(
    client: AsyncClient,
    headers: dict[str, str],
) -> None:
    a = await create(client, headers, title="A")

    response = await client.post(
        "/api/board/moves",
        json={
            "task_id": a["id"],
            "source_status": "To Do",
            "source_index": 0,
            "destination_status": "To Do",
            "destination_index": 0,
        },
        headers=headers,
    )

    assert response.json()["applied"] is False
    assert response.json()["changed"] == []


async def test_board_move_of_unknown_task_is_rejected(
    client: AsyncClient,
    headers: dict[str, str],
) -> None:
    response = await client.post(
        "/api/board/moves",
        json={
            "task_id": "ghost",
            "source_status": "To Do",
            "source_index": 0,
            "destination_status": "Done",
            "destination_index": 0,
        },
        headers=headers,
    )

    assert response.status_code == 422
    assert response.json()["code"] == "invalid_move"
