"""HTTP-level tests: auth guard, status mapping and response shapes."""

from datetime import timedelta

from core.crypto import CipherEngine
from core.security import create_access_token
from sessions.connection import ConnectionTestResult


def _create_session(client, headers, **overrides):
    payload = {"name": "web", "hostname": "web.example.com", "username": "deploy", "password": "pw"}
    payload.update(overrides)
    response = client.post("/sessions", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


# ---------------------------------------------------------------------------
# auth
# ---------------------------------------------------------------------------


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "cipher_ready": True}


def test_missing_token_is_401(client):
    assert client.get("/sessions").status_code == 401


def test_expired_token_is_401(client, user):
    token = create_access_token({"user_id": user.id}, timedelta(minutes=-1))

    response = client.get("/sessions", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_token_without_user_id_is_401(client):
    token = create_access_token({"sub": "alice"})

    assert client.get("/sessions", headers={"Authorization": f"Bearer {token}"}).status_code == 401


# ---------------------------------------------------------------------------
# sessions
# ---------------------------------------------------------------------------


def test_create_never_returns_secrets(client, auth_headers):
    body = _create_session(client, auth_headers, private_key="-----KEY-----")

    assert body["has_password"] is True
    assert body["has_private_key"] is True
    assert "password" not in body
    assert "private_key" not in body
    assert "iv" not in body


def test_validation_error_maps_to_400(client, auth_headers):
    response = client.post("/sessions", json={"name": "", "hostname": "h", "port": 70000}, headers=auth_headers)

    assert response.status_code == 400
    body = response.json()
    assert body["kind"] == "validation"
    assert "Port must be a valid number between 1 and 65535" in body["errors"]
    assert "Session name is required" in body["errors"]


def test_malformed_types_are_reported_with_missing_fields(client, auth_headers):
    response = client.post("/sessions", json={"port": "abc", "tags": "prod"}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["errors"] == [
        "Session name is required",
        "Hostname is required",
        "Username is required",
        "Port must be a valid number between 1 and 65535",
        "Tags must be provided as an array",
    ]


def test_malformed_port_on_update_is_400(client, auth_headers):
    created = _create_session(client, auth_headers)

    response = client.put(f"/sessions/{created['id']}", json={"port": "abc", "hostname": None}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["errors"] == [
        "Hostname is required",
        "Port must be a valid number between 1 and 65535",
    ]


def test_malformed_tag_list_is_400(client, auth_headers):
    created = _create_session(client, auth_headers)

    response = client.put(f"/sessions/{created['id']}/tags", json={"tags": ["a"]}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["detail"] == "Tags must be valid numeric identifiers"


def test_partial_update_and_explicit_null(client, auth_headers):
    created = _create_session(client, auth_headers, port=2222, console_snapshot="$")

    response = client.put(
        f"/sessions/{created['id']}",
        json={"name": "renamed", "port": None},
        headers=auth_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "renamed"
    assert body["port"] == 22
    assert body["console_snapshot"] == "$"
    assert body["has_password"] is True


def test_other_users_session_is_404(client, auth_headers, other_auth_headers):
    created = _create_session(client, auth_headers)

    response = client.get(f"/sessions/{created['id']}", headers=other_auth_headers)

    assert response.status_code == 404
    assert response.json() == {"detail": "Session not found", "kind": "not_found"}


def test_duplicate_and_delete(client, auth_headers):
    created = _create_session(client, auth_headers)

    copy = client.post(f"/sessions/{created['id']}/duplicate", headers=auth_headers)
    assert copy.status_code == 201
    assert copy.json()["name"] == "web (Copy)"

    named = client.post(f"/sessions/{created['id']}/duplicate", json={"name": "staging"}, headers=auth_headers)
    assert named.json()["name"] == "staging"

    assert client.delete(f"/sessions/{created['id']}", headers=auth_headers).status_code == 204
    names = [s["name"] for s in client.get("/sessions", headers=auth_headers).json()["sessions"]]
    assert sorted(names) == ["staging", "web (Copy)"]


def test_snapshot(client, auth_headers):
    created = _create_session(client, auth_headers)

    ok = client.post(f"/sessions/{created['id']}/snapshot", json={"snapshot": "~$ uptime"}, headers=auth_headers)
    empty = client.post(f"/sessions/{created['id']}/snapshot", json={"snapshot": ""}, headers=auth_headers)

    assert ok.status_code == 200
    assert empty.status_code == 400
    assert client.get(f"/sessions/{created['id']}", headers=auth_headers).json()["console_snapshot"] == "~$ uptime"


def test_connection_test_uses_resolved_credentials(client, auth_headers, fake_tester):
    created = _create_session(client, auth_headers, port=2200)

    response = client.post(f"/sessions/{created['id']}/test", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {
        "hostname": "web.example.com",
        "port": 2200,
        "username": "deploy",
        "success": True,
        "message": "Connection successful",
    }
    assert fake_tester.profiles[0].password == "pw"


def test_connection_failure_is_a_result(client, auth_headers, fake_tester):
    fake_tester.result = ConnectionTestResult(False, "Authentication failed")
    created = _create_session(client, auth_headers)

    response = client.post(f"/sessions/{created['id']}/test", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["success"] is False


def test_rotated_key_maps_to_422_on_connect(client, auth_headers, rotated_cipher):
    created = _create_session(client, auth_headers)
    client.app.state.cipher = rotated_cipher

    listed = client.get("/sessions", headers=auth_headers).json()["sessions"]
    response = client.post(f"/sessions/{created['id']}/test", headers=auth_headers)

    assert listed[0]["has_password"] is False
    assert response.status_code == 422
    assert response.json()["kind"] == "decryption"


def test_engine_not_ready_maps_to_503(client, auth_headers):
    client.app.state.cipher = CipherEngine()

    response = client.post("/sessions", json={"name": "web", "hostname": "h", "username": "u"}, headers=auth_headers)

    assert response.status_code == 503
    assert response.json()["kind"] == "engine_not_ready"


# ---------------------------------------------------------------------------
# tags
# ---------------------------------------------------------------------------


def test_tag_flow(client, auth_headers):
    created = _create_session(client, auth_headers)
    prod = client.post("/tags", json={"name": "prod"}, headers=auth_headers)
    assert prod.status_code == 201
    tag_id = prod.json()["id"]

    assert client.post("/tags", json={"name": "PROD"}, headers=auth_headers).status_code == 409

    assigned = client.put(f"/sessions/{created['id']}/tags", json={"tags": [tag_id]}, headers=auth_headers)
    assert assigned.status_code == 200
    assert [t["name"] for t in assigned.json()] == ["prod"]

    listed = client.get("/tags", headers=auth_headers).json()["tags"]
    assert [(t["name"], t["session_count"]) for t in listed] == [("prod", 1)]

    filtered = client.get(f"/sessions?tag_id={tag_id}", headers=auth_headers).json()["sessions"]
    assert [s["id"] for s in filtered] == [created["id"]]

    assert client.delete(f"/tags/{tag_id}", headers=auth_headers).status_code == 204
    assert client.get(f"/sessions/{created['id']}", headers=auth_headers).json()["tags"] == []
    assert client.get(f"/tags/{tag_id}", headers=auth_headers).status_code == 404


def test_foreign_tag_assignment_is_400(client, auth_headers, other_auth_headers):
    created = _create_session(client, auth_headers)
    theirs = client.post("/tags", json={"name": "theirs"}, headers=other_auth_headers).json()

    response = client.put(f"/sessions/{created['id']}/tags", json={"tags": [theirs["id"]]}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["detail"] == "One or more tags were not found"


# ---------------------------------------------------------------------------
# credentials
# ---------------------------------------------------------------------------


def test_credential_reference_flow(client, auth_headers):
    credential = client.post(
        "/credentials",
        json={"name": "ops", "type": "password", "username": "root", "password": "cred-pw"},
        headers=auth_headers,
    )
    assert credential.status_code == 201
    assert "password" not in credential.json()
    credential_id = credential.json()["id"]

    created = _create_session(client, auth_headers, username=None, password=None, credential_id=credential_id)
    assert created["username"] == "root"
    assert created["credential_id"] == credential_id

    assert client.delete(f"/credentials/{credential_id}", headers=auth_headers).status_code == 204
    # The dangling reference keeps working through the cached copy.
    tested = client.post(f"/sessions/{created['id']}/test", headers=auth_headers)
    assert tested.status_code == 200
    assert tested.json()["username"] == "root"

    assert client.get("/credentials", headers=auth_headers).json() == {"credentials": []}
