from mcp_console.services.auth_service import hash_password


def test_create_reveals_token_once(client, auth_headers):
    r = client.post("/api/tokens", json={"name": "ci"}, headers=auth_headers)
    assert r.status_code == 201
    created = r.json()
    assert len(created["token"]) == 32
    assert created["permissions"] == "read,execute"
    assert created["expiresAt"] is None
    assert created["revoked"] is False

    (listed,) = client.get("/api/tokens", headers=auth_headers).json()
    assert listed["id"] == created["id"]
    assert listed["token"] != created["token"]
    assert listed["token"].startswith(created["token"][:8])
    assert listed["token"].endswith(created["token"][-4:])


def test_create_with_expiry_and_permissions(client, auth_headers):
    r = client.post(
        "/api/tokens",
        json={"name": "short", "expiry": 7, "permissions": "read"},
        headers=auth_headers,
    )
    assert r.status_code == 201
    assert r.json()["permissions"] == "read"
    assert r.json()["expiresAt"] is not None


def test_create_requires_name(client, auth_headers):
    r = client.post("/api/tokens", json={}, headers=auth_headers)
    assert r.status_code == 400
    assert r.json() == {"message": "Token name is required"}


def test_requires_login(client):
    assert client.get("/api/tokens").status_code == 401


def test_revoke(client, auth_headers, store):
    token_id = client.post("/api/tokens", json={"name": "ci"}, headers=auth_headers).json()["id"]

    r = client.post(f"/api/tokens/{token_id}/revoke", headers=auth_headers)

    assert r.status_code == 200
    assert r.json() == {"message": "Token revoked successfully"}
    assert store.get_token_by_id(token_id).revoked is True
    assert client.get("/api/tokens", headers=auth_headers).json()[0]["revoked"] is True


def test_revoke_unknown_token(client, auth_headers):
    r = client.post("/api/tokens/999/revoke", headers=auth_headers)
    assert r.status_code == 404
    assert r.json() == {"message": "Token not found"}


def test_cannot_revoke_someone_elses_token(client, auth_headers, store):
    other = store.create_user("bob", hash_password("pw"))
    theirs = store.create_token(other.id, "bob's", "bob-token", "read")

    r = client.post(f"/api/tokens/{theirs.id}/revoke", headers=auth_headers)

    assert r.status_code == 403
    assert store.get_token_by_id(theirs.id).revoked is False
    assert client.get("/api/tokens", headers=auth_headers).json() == []
