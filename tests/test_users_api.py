"""User API tests — profile, preferences, admin management, avatars."""

import io

import pytest
from fastapi import UploadFile
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from starlette.datastructures import Headers

from companion.config import settings
from companion.db.models import Task, User
from companion.services.user_service import UserService, avatar_dir


# ─── /users/me ──────────────────────────────────────────


@pytest.mark.asyncio
async def test_me_returns_profile_with_empty_extras(client, alice):
    r = await client.get("/api/users/me", headers=alice["headers"])
    assert r.status_code == 200
    me = r.json()
    assert me["username"] == "alice"
    assert me["role"] == "user"
    assert me["status"] == "active"
    assert me["phone"] == ""
    assert me["bio"] == ""
    assert "password_hash" not in me


@pytest.mark.asyncio
async def test_update_me_merges_profile_fields(client, alice):
    h = alice["headers"]
    r = await client.put(
        "/api/users/me",
        json={"full_name": "Alice A.", "school": "Hill High", "grade": "10"},
        headers=h,
    )
    assert r.status_code == 200
    assert r.json()["full_name"] == "Alice A."
    assert r.json()["school"] == "Hill High"

    r = await client.put("/api/users/me", json={"bio": "hi"}, headers=h)
    me = r.json()
    assert me["bio"] == "hi"
    assert me["school"] == "Hill High"  # untouched fields survive


@pytest.mark.asyncio
async def test_user_cannot_promote_themself(client, alice):
    r = await client.put(
        "/api/users/me", json={"role": "admin", "status": "suspended"}, headers=alice["headers"]
    )
    assert r.status_code == 200
    assert r.json()["role"] == "user"
    assert r.json()["status"] == "active"


# ─── Preferences ────────────────────────────────────────


@pytest.mark.asyncio
async def test_notification_defaults_and_update(client, alice):
    h = alice["headers"]
    r = await client.get("/api/users/me/notifications", headers=h)
    assert r.json() == {
        "email_reminders": True,
        "task_notifications": True,
        "health_reminders": True,
        "emotional_support_messages": True,
    }

    r = await client.put("/api/users/me/notifications", json={"email_reminders": False}, headers=h)
    assert r.json()["email_reminders"] is False
    assert r.json()["task_notifications"] is True

    r = await client.get("/api/users/me/notifications", headers=h)
    assert r.json()["email_reminders"] is False


@pytest.mark.asyncio
async def test_privacy_defaults_and_update(client, alice):
    h = alice["headers"]
    r = await client.get("/api/users/me/privacy", headers=h)
    assert all(value is False for value in r.json().values())

    r = await client.put("/api/users/me/privacy", json={"allow_parent_access": True}, headers=h)
    assert r.json()["allow_parent_access"] is True
    assert r.json()["share_health_data"] is False


@pytest.mark.asyncio
async def test_appearance_defaults_and_update(client, alice):
    h = alice["headers"]
    r = await client.get("/api/users/me/appearance", headers=h)
    assert r.json() == {"dark_mode": False, "color_theme": "blue"}

    r = await client.put("/api/users/me/appearance", json={"dark_mode": True}, headers=h)
    assert r.json() == {"dark_mode": True, "color_theme": "blue"}

    r = await client.put("/api/users/me/appearance", json={"color_theme": "green"}, headers=h)
    assert r.json() == {"dark_mode": True, "color_theme": "green"}

    # other switches share the row and are untouched
    r = await client.get("/api/users/me/notifications", headers=h)
    assert r.json()["email_reminders"] is True


# ─── Admin / same-user ──────────────────────────────────


@pytest.mark.asyncio
async def test_list_users_is_admin_only(client, alice, admin):
    r = await client.get("/api/users", headers=alice["headers"])
    assert r.status_code == 403

    r = await client.get("/api/users", headers=admin["headers"])
    assert r.status_code == 200
    assert {u["username"] for u in r.json()} == {"alice", "root"}


@pytest.mark.asyncio
async def test_user_can_read_self_but_not_others(client, alice, bob):
    r = await client.get(f"/api/users/{alice['id']}", headers=alice["headers"])
    assert r.status_code == 200
    assert r.json()["username"] == "alice"

    r = await client.get(f"/api/users/{alice['id']}", headers=bob["headers"])
    assert r.status_code == 403

    r = await client.put(f"/api/users/{alice['id']}", json={"bio": "x"}, headers=bob["headers"])
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_admin_can_change_status(client, alice, admin):
    r = await client.put(
        f"/api/users/{alice['id']}", json={"status": "suspended"}, headers=admin["headers"]
    )
    assert r.status_code == 200
    assert r.json()["status"] == "suspended"

    # suspended users are turned away from owner-scoped routes
    r = await client.get("/api/tasks", headers=alice["headers"])
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_admin_get_unknown_user(client, admin):
    r = await client.get("/api/users/9999", headers=admin["headers"])
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_delete_user_removes_owned_rows(client, alice, bob, db_session):
    await client.post("/api/tasks", json={"title": "mine"}, headers=alice["headers"])
    await client.post("/api/tasks", json={"title": "theirs"}, headers=bob["headers"])

    r = await client.delete(f"/api/users/{alice['id']}", headers=bob["headers"])
    assert r.status_code == 403

    r = await client.delete(f"/api/users/{alice['id']}", headers=alice["headers"])
    assert r.status_code == 200

    users = (await db_session.execute(select(User.username))).scalars().all()
    assert users == ["bob"]
    titles = (await db_session.execute(select(Task.title))).scalars().all()
    assert titles == ["theirs"]


# ─── Avatar ─────────────────────────────────────────────


@pytest.mark.asyncio
async def test_avatar_upload_and_serve(client, alice):
    h = alice["headers"]
    r = await client.post(
        f"/api/users/{alice['id']}/avatar",
        files={"avatar": ("me pic.png", b"\x89PNG fake image", "image/png")},
        headers=h,
    )
    assert r.status_code == 200
    filename = r.json()["avatar"]
    assert filename.endswith("-me_pic.png")

    r = await client.get("/api/users/me", headers=h)
    assert r.json()["avatar"] == filename

    r = await client.get(f"/static/images/avatar/{filename}")
    assert r.status_code == 200
    assert r.content == b"\x89PNG fake image"


@pytest.mark.asyncio
async def test_avatar_rejects_non_images(client, alice):
    r = await client.post(
        f"/api/users/{alice['id']}/avatar",
        files={"avatar": ("notes.txt", b"hello", "text/plain")},
        headers=alice["headers"],
    )
    assert r.status_code == 400
    assert r.json()["message"] == "Only image files are allowed!"


@pytest.mark.asyncio
async def test_avatar_rejects_oversize(client, alice, monkeypatch):
    monkeypatch.setattr(settings, "avatar_max_bytes", 10)
    r = await client.post(
        f"/api/users/{alice['id']}/avatar",
        files={"avatar": ("big.png", b"x" * 11, "image/png")},
        headers=alice["headers"],
    )
    assert r.status_code == 400
    assert r.json()["message"].startswith("File too large!")


@pytest.mark.asyncio
async def test_avatar_for_other_user_forbidden(client, alice, bob):
    r = await client.post(
        f"/api/users/{alice['id']}/avatar",
        files={"avatar": ("a.png", b"img", "image/png")},
        headers=bob["headers"],
    )
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_new_avatar_replaces_old_file(client, alice):
    h = alice["headers"]
    url = f"/api/users/{alice['id']}/avatar"
    first = (
        await client.post(url, files={"avatar": ("one.png", b"first", "image/png")}, headers=h)
    ).json()["avatar"]
    second = (
        await client.post(url, files={"avatar": ("two.png", b"second", "image/png")}, headers=h)
    ).json()["avatar"]

    assert not (avatar_dir() / first).exists()
    assert (avatar_dir() / second).read_bytes() == b"second"
    assert (await client.get(f"/static/images/avatar/{first}")).status_code == 404


@pytest.mark.asyncio
async def test_avatar_outside_upload_dir_is_never_removed(client, alice):
    h = alice["headers"]
    keep = avatar_dir().parent / "keep.txt"
    keep.write_bytes(b"not an avatar")
    await client.put("/api/users/me", json={"avatar": "../keep.txt"}, headers=h)
    r = await client.post(
        f"/api/users/{alice['id']}/avatar",
        files={"avatar": ("a.png", b"img", "image/png")},
        headers=h,
    )
    assert r.status_code == 200
    assert keep.exists()
    keep.unlink()


@pytest.mark.asyncio
async def test_failed_avatar_commit_removes_new_file(client, alice, db_session, monkeypatch):
    user = await db_session.get(User, alice["id"])

    async def broken_commit():
        raise OperationalError("UPDATE users", {}, Exception("database is down"))

    monkeypatch.setattr(db_session, "commit", broken_commit)
    avatar_dir().mkdir(parents=True, exist_ok=True)
    before = set(avatar_dir().iterdir())

    upload = UploadFile(
        file=io.BytesIO(b"img"),
        filename="lost.png",
        headers=Headers({"content-type": "image/png"}),
    )
    with pytest.raises(OperationalError):
        await UserService(db_session).save_avatar(user, upload)

    assert set(avatar_dir().iterdir()) == before
