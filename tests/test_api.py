"""
HTTP-level tests against the FastAPI app on a temporary SQLite database.
"""

from forum.core.config import settings

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\0" * 64


def _login_admin(c):
    res = c.post(
        "/api/login",
        json={"username": settings.DEFAULT_ADMIN_USERNAME, "password": settings.DEFAULT_ADMIN_PASSWORD},
    )
    assert res.status_code == 200
    assert res.json()["isAdmin"] is True
    return res


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_end_to_end_thread_and_post(client, register):
    res = register(client, "alice")
    assert res.status_code == 200
    assert res.json()["username"] == "alice"
    assert settings.SESSION_COOKIE_NAME in res.cookies

    res = client.post("/api/threads", json={"categoryId": 1, "title": "Hi"})
    assert res.status_code == 200
    assert res.json()["threadId"] == 1

    res = client.post("/api/posts", data={"threadId": "1", "content": "hello"})
    assert res.status_code == 200
    assert res.json()["postId"] == 1
    assert res.json()["imageUrl"] is None

    posts = client.get("/api/posts/1").json()
    assert len(posts) == 1
    assert posts[0]["content"] == "hello"
    assert posts[0]["author_name"] == "alice"
    assert posts[0]["image_url"] is None

    threads = client.get("/api/threads/1").json()
    assert threads[0]["title"] == "Hi"
    assert threads[0]["author_name"] == "alice"
    assert threads[0]["post_count"] == 1


def test_categories_are_public_and_sorted(client):
    res = client.get("/api/categories")
    assert res.status_code == 200
    names = [c["name"] for c in res.json()]
    assert len(names) == 5
    assert names == sorted(names)


def test_register_duplicate_username(client, register):
    assert register(client, "alice").status_code == 200
    res = register(client, "alice", email="different@example.com")
    assert res.status_code == 400
    assert res.json() == {"error": "Username or email already exists"}


def test_register_missing_field_returns_400(client):
    res = client.post("/api/register", json={"username": "alice", "password": "pw"})
    assert res.status_code == 400
    assert "email" in res.json()["error"]


def test_login_failures_look_the_same(client, register):
    register(client, "alice")
    client.post("/api/logout")

    wrong_password = client.post("/api/login", json={"username": "alice", "password": "nope"})
    unknown_user = client.post("/api/login", json={"username": "ghost", "password": "secret123"})

    assert wrong_password.status_code == 401
    assert unknown_user.status_code == 401
    assert wrong_password.json() == unknown_user.json() == {"error": "Invalid credentials"}


def test_login_me_logout(client, register):
    register(client, "alice")
    client.post("/api/logout")
    assert client.get("/api/me").status_code == 401

    res = client.post("/api/login", json={"username": "alice", "password": "secret123"})
    assert res.status_code == 200
    assert res.json()["isAdmin"] is False

    me = client.get("/api/me")
    assert me.status_code == 200
    assert me.json() == {"userId": res.json()["userId"], "username": "alice", "isAdmin": False}

    assert client.post("/api/logout").json() == {"success": True}
    res = client.get("/api/me")
    assert res.status_code == 401
    assert res.json() == {"error": "Not authenticated"}


def test_logged_out_session_token_is_dead(client, register):
    res = register(client, "alice")
    token = res.cookies[settings.SESSION_COOKIE_NAME]
    client.post("/api/logout")

    client.cookies.set(settings.SESSION_COOKIE_NAME, token)
    assert client.get("/api/me").status_code == 401


def test_protected_endpoints_require_session(client):
    assert client.post("/api/threads", json={"categoryId": 1, "title": "x"}).status_code == 401
    assert client.post("/api/posts", data={"threadId": "1", "content": "x"}).status_code == 401
    assert client.get("/api/messages").status_code == 401
    assert client.get("/api/users").status_code == 401
    res = client.get("/api/admin/users")
    assert res.status_code == 401
    assert res.json() == {"error": "Authentication required"}


def test_create_thread_errors(client, register):
    register(client, "alice")
    assert client.post("/api/threads", json={"categoryId": 1, "title": ""}).status_code == 400
    assert client.post("/api/threads", json={"title": "No category"}).status_code == 400
    res = client.post("/api/threads", json={"categoryId": 42, "title": "Nowhere"})
    assert res.status_code == 404


def test_create_post_errors(client, register):
    register(client, "alice")
    client.post("/api/threads", json={"categoryId": 1, "title": "Hi"})

    res = client.post("/api/posts", data={"threadId": "1", "content": ""})
    assert res.status_code == 400
    assert res.json() == {"error": "Thread ID and content required"}
    assert client.post("/api/posts", data={"content": "orphan"}).status_code == 400
    assert client.post("/api/posts", data={"threadId": "99", "content": "x"}).status_code == 404


def test_post_with_image_is_served(client, register):
    register(client, "alice")
    client.post("/api/threads", json={"categoryId": 1, "title": "Pics"})

    res = client.post(
        "/api/posts",
        data={"threadId": "1", "content": "look"},
        files={"image": ("cat.png", PNG_BYTES, "image/png")},
    )
    assert res.status_code == 200
    image_url = res.json()["imageUrl"]
    assert image_url.startswith("/uploads/") and image_url.endswith(".png")

    served = client.get(image_url)
    assert served.status_code == 200
    assert served.content == PNG_BYTES

    assert client.get("/api/posts/1").json()[0]["image_url"] == image_url


def test_post_with_non_image_rejected(client, register):
    register(client, "alice")
    client.post("/api/threads", json={"categoryId": 1, "title": "Pics"})

    res = client.post(
        "/api/posts",
        data={"threadId": "1", "content": "look"},
        files={"image": ("cat.png", b"just text", "text/plain")},
    )
    assert res.status_code == 415
    assert res.json() == {"error": "Only image files are allowed!"}
    assert client.get("/api/posts/1").json() == []


def test_post_with_oversized_image_rejected(client, register):
    register(client, "alice")
    client.post("/api/threads", json={"categoryId": 1, "title": "Pics"})

    res = client.post(
        "/api/posts",
        data={"threadId": "1", "content": "huge"},
        files={"image": ("big.png", b"\0" * (11 * 1024 * 1024), "image/png")},
    )
    assert res.status_code == 413
    assert res.json() == {"error": "File too large (max 10 MB)"}
    assert client.get("/api/posts/1").json() == []


def test_thread_listing_follows_latest_activity(client, register):
    register(client, "alice")
    client.post("/api/threads", json={"categoryId": 1, "title": "First"})
    client.post("/api/threads", json={"categoryId": 1, "title": "Second"})
    assert [t["title"] for t in client.get("/api/threads/1").json()] == ["Second", "First"]

    client.post("/api/posts", data={"threadId": "1", "content": "bump"})
    threads = client.get("/api/threads/1").json()
    assert [t["title"] for t in threads] == ["First", "Second"]
    assert threads[0]["last_activity"] == client.get("/api/posts/1").json()[0]["created_at"]


def test_messages_and_conversation(client, make_client, register):
    alice_id = register(client, "alice").json()["userId"]
    bob = make_client()
    bob_id = register(bob, "bob").json()["userId"]

    res = client.post("/api/messages", data={"recipientId": str(bob_id), "content": "hi bob"})
    assert res.status_code == 200
    assert res.json()["imageUrl"] is None
    bob.post(
        "/api/messages",
        data={"recipientId": str(alice_id), "content": "hi alice"},
        files={"image": ("wave.gif", b"GIF89a", "image/gif")},
    )

    inbox = client.get("/api/messages").json()
    assert [m["content"] for m in inbox] == ["hi alice", "hi bob"]
    assert inbox[0]["sender_name"] == "bob"
    assert inbox[0]["recipient_name"] == "alice"
    assert inbox[0]["image_url"].endswith(".gif")

    previews = client.get("/api/messages/conversations").json()
    assert len(previews) == 1
    assert previews[0]["user_id"] == bob_id
    assert previews[0]["unread"] is True

    conversation = client.get(f"/api/messages/conversation/{bob_id}").json()
    assert [m["content"] for m in conversation] == ["hi bob", "hi alice"]
    assert conversation[0]["sender_name"] == "alice"

    assert client.get("/api/messages/conversations").json()[0]["unread"] is False
    # alice's outbound message is still unread from bob's side
    assert bob.get("/api/messages/conversations").json()[0]["unread"] is True


def test_send_message_errors(client, register):
    alice_id = register(client, "alice").json()["userId"]
    res = client.post("/api/messages", data={"recipientId": "1", "content": ""})
    assert res.status_code == 400
    assert res.json() == {"error": "Recipient and content required"}
    assert client.post("/api/messages", data={"recipientId": "999", "content": "hello"}).status_code == 404

    res = client.post("/api/messages", data={"recipientId": str(alice_id), "content": "note to self"})
    assert res.status_code == 400
    assert res.json() == {"error": "You cannot message yourself"}
    assert client.get("/api/messages").json() == []


def test_users_listing_omits_admin_flag(client, register):
    register(client, "bob")
    register(client, "alice")

    users = client.get("/api/users").json()
    assert [u["username"] for u in users] == ["admin", "alice", "bob"]
    assert set(users[0]) == {"id", "username", "email", "created_at"}
    assert users[1]["email"] == "alice@example.com"


def test_non_admin_gets_403_without_side_effects(client, make_client, register):
    admin = make_client()
    _login_admin(admin)
    admin.post("/api/threads", json={"categoryId": 1, "title": "Keep me"})
    admin.post("/api/posts", data={"threadId": "1", "content": "keep me too"})

    me = register(client, "mallory").json()

    for method, path in [
        ("get", "/api/admin/users"),
        ("post", f"/api/admin/users/{me['userId']}/toggle-admin"),
        ("delete", "/api/admin/posts/1"),
        ("delete", "/api/admin/threads/1"),
    ]:
        res = getattr(client, method)(path)
        assert res.status_code == 403, path
        assert res.json() == {"error": "Admin access required"}

    assert len(client.get("/api/posts/1").json()) == 1
    assert len(client.get("/api/threads/1").json()) == 1
    client.post("/api/logout")
    res = client.post("/api/login", json={"username": "mallory", "password": "secret123"})
    assert res.json()["isAdmin"] is False


def test_admin_endpoints(client, make_client, register):
    bob_id = register(client, "bob").json()["userId"]
    client.post("/api/threads", json={"categoryId": 1, "title": "Thread"})
    client.post("/api/posts", data={"threadId": "1", "content": "one"})
    client.post("/api/posts", data={"threadId": "1", "content": "two"})

    admin = make_client()
    _login_admin(admin)

    users = admin.get("/api/admin/users").json()
    assert [u["username"] for u in users] == ["bob", "admin"]
    assert users[0]["email"] == "bob@example.com"
    assert users[0]["is_admin"] is False

    assert admin.post(f"/api/admin/users/{bob_id}/toggle-admin").json() == {"success": True}
    assert admin.get("/api/admin/users").json()[0]["is_admin"] is True
    assert admin.post("/api/admin/users/999/toggle-admin").status_code == 404

    assert admin.delete("/api/admin/posts/1").json() == {"success": True}
    assert [p["content"] for p in admin.get("/api/posts/1").json()] == ["two"]
    assert admin.delete("/api/admin/posts/1").status_code == 404

    assert admin.delete("/api/admin/threads/1").json() == {"success": True}
    assert admin.get("/api/threads/1").json() == []
    # no cascade: the remaining post is still stored under the old thread id
    assert [p["content"] for p in admin.get("/api/posts/1").json()] == ["two"]


def test_admin_cannot_demote_self(client):
    res = _login_admin(client)
    admin_id = res.json()["userId"]
    res = client.post(f"/api/admin/users/{admin_id}/toggle-admin")
    assert res.status_code == 400
    assert res.json() == {"error": "You cannot remove your own admin role"}
