import httpx
import pytest
from fastapi.testclient import TestClient

from renotefy import main
from renotefy.ai import get_note_assistant
from renotefy.config import get_settings
from renotefy.sessions import get_session_registry


@pytest.fixture
def client(tmp_path, monkeypatch, assistant):
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    get_settings.cache_clear()
    monkeypatch.setattr(main, "get_note_assistant", lambda: assistant)
    main.app.dependency_overrides[get_note_assistant] = lambda: assistant

    with TestClient(main.app) as test_client:
        yield test_client

    main.app.dependency_overrides.clear()
    get_settings.cache_clear()


def register(client, email: str, name: str) -> dict:
    resp = client.post("/api/auth/register", json={"email": email, "name": name, "password": "secret123"})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


@pytest.fixture
def alice(client):
    return register(client, "alice@example.com", "Alice")


@pytest.fixture
def bob(client):
    return register(client, "bob@example.com", "Bob")


def create(client, headers, title="Recipe", content="flour") -> dict:
    resp = client.post("/api/notes", json={"title": title, "content": content}, headers=headers)
    assert resp.status_code == 200, resp.text
    return resp.json()


# ============================================================
# Health & auth
# ============================================================
def test_health(client):
    assert client.get("/api/health").json()["status"] == "healthy"
    assert client.get("/api/health/ready").json()["checks"]["database"] == "ok"


def test_register_login_and_me(client, alice):
    duplicate = client.post(
        "/api/auth/register",
        json={"email": "ALICE@example.com", "name": "Again", "password": "secret123"},
    )
    assert duplicate.status_code == 400

    bad = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "wrong-pass1"})
    assert bad.status_code == 401

    good = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "secret123"})
    assert good.status_code == 200
    headers = {"Authorization": f"Bearer {good.json()['access_token']}"}

    me = client.get("/api/auth/me", headers=headers)
    assert me.json()["email"] == "alice@example.com"
    assert me.json()["name"] == "Alice"


def test_weak_password_is_rejected(client):
    resp = client.post(
        "/api/auth/register",
        json={"email": "weak@example.com", "name": "Weak", "password": "onlyletters"},
    )
    assert resp.status_code == 400


def test_invalid_token_is_unauthorized(client):
    resp = client.get("/api/notes", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


def test_logout_drops_the_session(client, alice):
    client.get("/api/notes", headers=alice)
    registry = get_session_registry()
    active = len(registry)

    assert client.post("/api/auth/logout", headers=alice).status_code == 200
    assert len(registry) == active - 1


# ============================================================
# Notes
# ============================================================
def test_create_and_list_owned(client, alice):
    note = create(client, alice)

    assert note["title"] == "Recipe"
    assert note["emoji"] == "🙂"
    assert note["owner_display_name"] == "Alice"

    owned = client.get("/api/notes", headers=alice).json()
    assert [n["id"] for n in owned] == [note["id"]]


def test_share_flow_viewer_then_editor(client, alice, bob):
    note = create(client, alice)

    resp = client.post(f"/api/notes/{note['id']}/share", json={"email": "bob@example.com"}, headers=alice)
    assert resp.json()["shared_with_permissions"] == {"bob@example.com": "viewer"}

    denied = client.put(f"/api/notes/{note['id']}", json={"content": "sugar"}, headers=bob)
    assert denied.status_code == 403
    assert "permission" in denied.json()["detail"]

    client.post(
        f"/api/notes/{note['id']}/share",
        json={"email": "bob@example.com", "permission": "editor"},
        headers=alice,
    )
    edited = client.put(f"/api/notes/{note['id']}", json={"content": "sugar"}, headers=bob)
    assert edited.status_code == 200
    assert edited.json()["content"] == "sugar"

    shared = client.get("/api/notes/shared", headers=bob).json()
    assert [n["content"] for n in shared] == ["sugar"]

    removed = client.delete(f"/api/notes/{note['id']}/share/bob@example.com", headers=alice)
    assert removed.json()["shared_with"] == []
    assert client.get(f"/api/notes/{note['id']}", headers=bob).status_code == 403


def test_share_with_invalid_email_is_422(client, alice):
    note = create(client, alice)

    resp = client.post(f"/api/notes/{note['id']}/share", json={"email": "nope"}, headers=alice)

    assert resp.status_code == 422
    assert "Invalid email" in resp.json()["detail"]


def test_unknown_update_field_is_422(client, alice):
    note = create(client, alice)

    resp = client.put(f"/api/notes/{note['id']}", json={"is_public": True}, headers=alice)

    assert resp.status_code == 422


def test_public_notes_are_readable_anonymously(client, alice):
    note = create(client, alice, title="Public Doc")
    assert client.get(f"/api/notes/{note['id']}").status_code == 403

    client.put(f"/api/notes/{note['id']}/visibility", json={"is_public": True}, headers=alice)

    fetched = client.get(f"/api/notes/{note['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["title"] == "Public Doc"
    assert [n["id"] for n in client.get("/api/notes/public").json()] == [note["id"]]
    assert client.put(f"/api/notes/{note['id']}", json={"title": "x"}).status_code in (401, 403)


def test_copy_requires_allow_copy(client, alice, bob):
    note = create(client, alice, title="Template Note")

    assert client.post(f"/api/notes/{note['id']}/copy", headers=bob).status_code == 403

    client.put(f"/api/notes/{note['id']}/allow-copy", json={"allow_copy": True}, headers=alice)
    copy = client.post(f"/api/notes/{note['id']}/copy", headers=bob)

    assert copy.status_code == 200
    assert copy.json()["copied_from"] == note["id"]
    assert copy.json()["owner_email"] == "bob@example.com"
    assert copy.json()["shared_with"] == []


def test_delete_and_missing_notes(client, alice, bob):
    note = create(client, alice)

    assert client.delete(f"/api/notes/{note['id']}", headers=bob).status_code == 403
    assert client.delete(f"/api/notes/{note['id']}", headers=alice).status_code == 200
    assert client.get(f"/api/notes/{note['id']}", headers=alice).status_code == 404
    assert client.put(f"/api/notes/{note['id']}", json={"title": "x"}, headers=alice).status_code == 404
    assert client.get("/api/notes", headers=alice).json() == []


def test_image_upload_is_served_back(client, alice):
    note = create(client, alice)

    resp = client.post(
        f"/api/notes/{note['id']}/images",
        files={"file": ("cake.png", b"\x89PNG-bytes", "image/png")},
        headers=alice,
    )
    assert resp.status_code == 200, resp.text
    url = resp.json()["url"]
    assert url.startswith(f"/api/uploads/notes/{note['id']}/images/")

    served = client.get(url)
    assert served.status_code == 200
    assert served.content == b"\x89PNG-bytes"


def test_non_image_upload_is_rejected(client, alice):
    note = create(client, alice)

    resp = client.post(
        f"/api/notes/{note['id']}/images",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=alice,
    )

    assert resp.status_code == 400


# ============================================================
# AI helpers
# ============================================================
def test_summarize(client, alice, provider):
    provider.replies = ["**Flour** is needed."]

    resp = client.post("/api/ai/summarize", json={"text": "A recipe", "length": "short"}, headers=alice)

    assert resp.status_code == 200
    assert resp.json() == {"summary": "**Flour** is needed."}


def test_ai_upstream_failure_is_502(client, alice, provider):
    provider.error = httpx.ConnectError("offline")

    resp = client.post("/api/ai/translate", json={"text": "hola", "target_language": "English"}, headers=alice)

    assert resp.status_code == 502
    assert resp.json()["detail"] == "Failed to generate translation"


def test_ai_requires_authentication(client):
    resp = client.post("/api/ai/summarize", json={"text": "A recipe"})
    assert resp.status_code in (401, 403)
