"""Task and task-category API tests.

Learn: Tests cover:
1. CRUD for the caller's own tasks
2. Ownership: another user's task is 404 for read, update and delete
3. Client-supplied user_id is ignored
4. Repeating an update leaves the same state
5. Filters, ordering and stats
6. Categories must belong to the caller
"""

from datetime import datetime, timedelta, timezone

import pytest


def _iso(dt: datetime) -> str:
    return dt.isoformat()


# ═══════════════════════════════════════════════════════════
# Scenario
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_task_is_invisible_to_other_users(client, make_user):
    alice = await make_user("alice")
    r = await client.post("/api/tasks", json={"title": "Buy milk"}, headers=alice["headers"])
    assert r.status_code == 201
    task = r.json()
    assert task["user_id"] == alice["id"]
    assert task["priority"] == "medium"
    assert task["status"] == "pending"

    bob = await make_user("bob")
    r = await client.get(f"/api/tasks/{task['id']}", headers=bob["headers"])
    assert r.status_code == 404


# ═══════════════════════════════════════════════════════════
# CRUD
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_create_get_update_delete(client, alice):
    h = alice["headers"]
    r = await client.post(
        "/api/tasks",
        json={"title": "Essay", "description": "History", "priority": "high"},
        headers=h,
    )
    task_id = r.json()["id"]

    r = await client.get(f"/api/tasks/{task_id}", headers=h)
    assert r.status_code == 200
    assert r.json()["description"] == "History"

    r = await client.put(f"/api/tasks/{task_id}", json={"status": "completed"}, headers=h)
    assert r.status_code == 200
    assert r.json()["status"] == "completed"
    assert r.json()["title"] == "Essay"

    r = await client.delete(f"/api/tasks/{task_id}", headers=h)
    assert r.status_code == 200

    r = await client.get(f"/api/tasks/{task_id}", headers=h)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_create_requires_title(client, alice):
    r = await client.post("/api/tasks", json={"description": "no title"}, headers=alice["headers"])
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_invalid_priority_is_400(client, alice):
    r = await client.post(
        "/api/tasks", json={"title": "x", "priority": "urgent"}, headers=alice["headers"]
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_null_title_on_update_is_ignored(client, alice):
    h = alice["headers"]
    task_id = (await client.post("/api/tasks", json={"title": "Keep"}, headers=h)).json()["id"]
    r = await client.put(f"/api/tasks/{task_id}", json={"title": None}, headers=h)
    assert r.status_code == 200
    assert r.json()["title"] == "Keep"


# ═══════════════════════════════════════════════════════════
# Ownership
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_other_user_cannot_update_or_delete(client, alice, bob):
    task_id = (
        await client.post("/api/tasks", json={"title": "Mine"}, headers=alice["headers"])
    ).json()["id"]

    r = await client.put(f"/api/tasks/{task_id}", json={"title": "Hacked"}, headers=bob["headers"])
    assert r.status_code == 404
    r = await client.delete(f"/api/tasks/{task_id}", headers=bob["headers"])
    assert r.status_code == 404

    r = await client.get(f"/api/tasks/{task_id}", headers=alice["headers"])
    assert r.json()["title"] == "Mine"


@pytest.mark.asyncio
async def test_list_only_returns_own_tasks(client, alice, bob):
    await client.post("/api/tasks", json={"title": "A1"}, headers=alice["headers"])
    await client.post("/api/tasks", json={"title": "B1"}, headers=bob["headers"])

    r = await client.get("/api/tasks", headers=bob["headers"])
    assert [t["title"] for t in r.json()] == ["B1"]


@pytest.mark.asyncio
async def test_client_supplied_owner_is_ignored(client, alice, bob):
    r = await client.post(
        "/api/tasks",
        json={"title": "Spoof", "user_id": bob["id"]},
        headers=alice["headers"],
    )
    assert r.status_code == 201
    task = r.json()
    assert task["user_id"] == alice["id"]

    r = await client.put(
        f"/api/tasks/{task['id']}", json={"user_id": bob["id"]}, headers=alice["headers"]
    )
    assert r.json()["user_id"] == alice["id"]


@pytest.mark.asyncio
async def test_admin_can_read_any_task_but_lists_only_own(client, alice, admin):
    task_id = (
        await client.post("/api/tasks", json={"title": "Private"}, headers=alice["headers"])
    ).json()["id"]

    r = await client.get(f"/api/tasks/{task_id}", headers=admin["headers"])
    assert r.status_code == 200

    r = await client.get("/api/tasks", headers=admin["headers"])
    assert r.json() == []


# ═══════════════════════════════════════════════════════════
# Idempotence
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_same_update_twice_yields_same_state(client, alice):
    h = alice["headers"]
    task_id = (await client.post("/api/tasks", json={"title": "T"}, headers=h)).json()["id"]
    payload = {"title": "T2", "priority": "low", "status": "in_progress"}

    first = (await client.put(f"/api/tasks/{task_id}", json=payload, headers=h)).json()
    second = (await client.put(f"/api/tasks/{task_id}", json=payload, headers=h)).json()

    for field in ("title", "priority", "status", "description", "due_date", "category_id"):
        assert first[field] == second[field]


# ═══════════════════════════════════════════════════════════
# Filters and stats
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_list_ordered_by_due_date_undated_last(client, alice):
    h = alice["headers"]
    now = datetime.now(timezone.utc)
    await client.post("/api/tasks", json={"title": "none"}, headers=h)
    await client.post(
        "/api/tasks", json={"title": "later", "due_date": _iso(now + timedelta(days=3))}, headers=h
    )
    await client.post(
        "/api/tasks", json={"title": "sooner", "due_date": _iso(now + timedelta(days=1))}, headers=h
    )

    r = await client.get("/api/tasks", headers=h)
    assert [t["title"] for t in r.json()] == ["sooner", "later", "none"]


@pytest.mark.asyncio
async def test_list_filters(client, alice):
    h = alice["headers"]
    await client.post("/api/tasks", json={"title": "Read book", "priority": "high"}, headers=h)
    await client.post(
        "/api/tasks", json={"title": "Gym", "description": "leg day", "status": "completed"},
        headers=h,
    )

    r = await client.get("/api/tasks", params={"priority": "high"}, headers=h)
    assert [t["title"] for t in r.json()] == ["Read book"]

    r = await client.get("/api/tasks", params={"status": "completed"}, headers=h)
    assert [t["title"] for t in r.json()] == ["Gym"]

    r = await client.get("/api/tasks", params={"search": "leg"}, headers=h)
    assert [t["title"] for t in r.json()] == ["Gym"]

    r = await client.get("/api/tasks", params={"status": "bogus"}, headers=h)
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_stats(client, alice):
    h = alice["headers"]
    now = datetime.now(timezone.utc)
    await client.post(
        "/api/tasks", json={"title": "overdue", "due_date": _iso(now - timedelta(days=1))}, headers=h
    )
    await client.post(
        "/api/tasks",
        json={"title": "upcoming", "due_date": _iso(now + timedelta(days=2)), "priority": "high"},
        headers=h,
    )
    await client.post(
        "/api/tasks",
        json={"title": "done", "due_date": _iso(now - timedelta(days=2)), "status": "completed"},
        headers=h,
    )

    r = await client.get("/api/tasks/stats", headers=h)
    assert r.status_code == 200
    stats = r.json()
    assert stats["by_status"] == {"pending": 2, "completed": 1}
    assert stats["by_priority"] == {"medium": 2, "high": 1}
    assert stats["upcoming"] == 1
    assert stats["overdue"] == 1


# ═══════════════════════════════════════════════════════════
# Categories
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_category_crud_and_task_link(client, alice):
    h = alice["headers"]
    r = await client.post("/api/tasks/categories", json={"name": "School"}, headers=h)
    assert r.status_code == 201
    category = r.json()
    assert category["color"] == "#4CAF50"
    assert category["icon"] == "list"

    r = await client.post(
        "/api/tasks", json={"title": "Homework", "category_id": category["id"]}, headers=h
    )
    assert r.status_code == 201
    task_id = r.json()["id"]

    r = await client.get("/api/tasks", params={"category_id": category["id"]}, headers=h)
    assert [t["id"] for t in r.json()] == [task_id]

    r = await client.put(
        f"/api/tasks/categories/{category['id']}", json={"color": "#000000"}, headers=h
    )
    assert r.json()["color"] == "#000000"

    r = await client.delete(f"/api/tasks/categories/{category['id']}", headers=h)
    assert r.status_code == 200

    r = await client.get(f"/api/tasks/{task_id}", headers=h)
    assert r.json()["category_id"] is None


@pytest.mark.asyncio
async def test_cannot_use_another_users_category(client, alice, bob):
    category_id = (
        await client.post("/api/tasks/categories", json={"name": "Bob's"}, headers=bob["headers"])
    ).json()["id"]

    r = await client.post(
        "/api/tasks", json={"title": "x", "category_id": category_id}, headers=alice["headers"]
    )
    assert r.status_code == 404

    r = await client.get("/api/tasks/categories", headers=alice["headers"])
    assert r.json() == []
