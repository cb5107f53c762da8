"""Calendar event and category API tests."""

import pytest


def _event(title="Dentist", start="2026-03-10T09:00:00Z", end="2026-03-10T10:00:00Z", **extra):
    return {"title": title, "start_time": start, "end_time": end, **extra}


@pytest.mark.asyncio
async def test_create_and_get_event(client, alice):
    h = alice["headers"]
    r = await client.post(
        "/api/calendar/events", json=_event(location="Clinic", reminder=15), headers=h
    )
    assert r.status_code == 201
    event = r.json()
    assert event["user_id"] == alice["id"]
    assert event["location"] == "Clinic"
    assert event["reminder"] == 15
    assert event["all_day"] is False

    r = await client.get(f"/api/calendar/events/{event['id']}", headers=h)
    assert r.status_code == 200
    assert r.json()["title"] == "Dentist"


@pytest.mark.asyncio
async def test_end_before_start_is_400(client, alice):
    r = await client.post(
        "/api/calendar/events",
        json=_event(start="2026-03-10T10:00:00Z", end="2026-03-10T09:00:00Z"),
        headers=alice["headers"],
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_update_checks_merged_order(client, alice):
    h = alice["headers"]
    event_id = (await client.post("/api/calendar/events", json=_event(), headers=h)).json()["id"]

    r = await client.put(
        f"/api/calendar/events/{event_id}",
        json={"end_time": "2026-03-09T00:00:00Z"},
        headers=h,
    )
    assert r.status_code == 400

    r = await client.put(
        f"/api/calendar/events/{event_id}",
        json={"end_time": "2026-03-10T11:30:00Z", "title": "Dentist (long)"},
        headers=h,
    )
    assert r.status_code == 200
    assert r.json()["title"] == "Dentist (long)"


@pytest.mark.asyncio
async def test_events_are_owner_scoped(client, alice, bob):
    event_id = (
        await client.post("/api/calendar/events", json=_event(), headers=alice["headers"])
    ).json()["id"]

    assert (await client.get(f"/api/calendar/events/{event_id}", headers=bob["headers"])).status_code == 404
    assert (await client.delete(f"/api/calendar/events/{event_id}", headers=bob["headers"])).status_code == 404
    assert (await client.get("/api/calendar/events", headers=bob["headers"])).json() == []

    r = await client.delete(f"/api/calendar/events/{event_id}", headers=alice["headers"])
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_month_view(client, alice):
    h = alice["headers"]
    await client.post("/api/calendar/events", json=_event("feb", "2026-02-10T09:00:00Z", "2026-02-10T10:00:00Z"), headers=h)
    await client.post("/api/calendar/events", json=_event("march", "2026-03-05T09:00:00Z", "2026-03-05T10:00:00Z"), headers=h)
    await client.post("/api/calendar/events", json=_event("straddle", "2026-02-28T22:00:00Z", "2026-03-01T02:00:00Z"), headers=h)

    r = await client.get("/api/calendar/events/month/2026/3", headers=h)
    assert r.status_code == 200
    assert [e["title"] for e in r.json()] == ["straddle", "march"]

    r = await client.get("/api/calendar/events/month/2026/13", headers=h)
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_category_rules(client, alice, bob):
    h = alice["headers"]
    r = await client.post("/api/calendar/categories", json={"name": "Health"}, headers=h)
    assert r.status_code == 201
    category = r.json()
    assert category["color"] == "#2196F3"

    r = await client.post(
        "/api/calendar/events", json=_event(category_id=category["id"]), headers=bob["headers"]
    )
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid calendar category"

    r = await client.post("/api/calendar/events", json=_event(category_id=category["id"]), headers=h)
    assert r.status_code == 201
    event_id = r.json()["id"]

    r = await client.delete(f"/api/calendar/categories/{category['id']}", headers=h)
    assert r.status_code == 400

    await client.delete(f"/api/calendar/events/{event_id}", headers=h)
    r = await client.delete(f"/api/calendar/categories/{category['id']}", headers=h)
    assert r.status_code == 200
    assert (await client.get("/api/calendar/categories", headers=h)).json() == []
