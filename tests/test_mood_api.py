"""Mood log API tests."""

import pytest


@pytest.mark.asyncio
async def test_mood_crud(client, alice):
    h = alice["headers"]
    r = await client.post(
        "/api/mood",
        json={"mood_score": 7, "notes": "ok day", "factors": ["sleep", "friends"]},
        headers=h,
    )
    assert r.status_code == 201
    log = r.json()
    assert log["factors"] == ["sleep", "friends"]
    assert log["user_id"] == alice["id"]

    r = await client.put(f"/api/mood/{log['id']}", json={"mood_score": 9}, headers=h)
    assert r.json()["mood_score"] == 9
    assert r.json()["notes"] == "ok day"

    r = await client.delete(f"/api/mood/{log['id']}", headers=h)
    assert r.status_code == 200
    assert (await client.get(f"/api/mood/{log['id']}", headers=h)).status_code == 404


@pytest.mark.asyncio
@pytest.mark.parametrize("score", [0, 11])
async def test_score_out_of_range_is_400(client, alice, score):
    r = await client.post("/api/mood", json={"mood_score": score}, headers=alice["headers"])
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_list_newest_first_with_range(client, alice):
    h = alice["headers"]
    for day, score in [("2026-01-01", 3), ("2026-01-03", 8), ("2026-01-02", 5)]:
        await client.post(
            "/api/mood", json={"mood_score": score, "date_time": f"{day}T12:00:00Z"}, headers=h
        )

    r = await client.get("/api/mood", headers=h)
    assert [log["mood_score"] for log in r.json()] == [8, 5, 3]

    r = await client.get(
        "/api/mood",
        params={"start_date": "2026-01-02T00:00:00Z", "end_date": "2026-01-02T23:59:59Z"},
        headers=h,
    )
    assert [log["mood_score"] for log in r.json()] == [5]


@pytest.mark.asyncio
async def test_mood_is_owner_scoped(client, alice, bob):
    log_id = (
        await client.post("/api/mood", json={"mood_score": 5}, headers=alice["headers"])
    ).json()["id"]
    assert (await client.get(f"/api/mood/{log_id}", headers=bob["headers"])).status_code == 404
    assert (await client.put(f"/api/mood/{log_id}", json={"mood_score": 1}, headers=bob["headers"])).status_code == 404
