import pytest

from urbanpos.model import AccessKey

from .conftest import login


class TestLogin:
    def test_bootstrap_master_key(self, client):
        resp = client.post("/api/auth/login", json={"key": "726268"})
        body = resp.get_json()
        assert resp.status_code == 200
        assert body["status"] is True
        assert body["data"]["session"]["is_master"] is True
        assert "settings" in body["data"]["session"]["permissions"]

    def test_unknown_key(self, client):
        resp = client.post("/api/auth/login", json={"key": "nope-nope"})
        assert resp.status_code == 401
        assert resp.get_json()["message"] == "The provided access key is not valid."

    def test_missing_key(self, client):
        assert client.post("/api/auth/login", json={}).status_code == 400

    def test_me(self, client, master_headers):
        body = client.get("/api/auth/me", headers=master_headers).get_json()
        assert body["data"]["cashier_id"] == "master"
        assert body["data"]["tag_name"] == "Master"


class TestKeys:
    def test_create_and_login_with_limited_key(self, client, master_headers):
        resp = client.post("/api/auth/keys", headers=master_headers, json={
            "tag_name": "Front till",
            "key": "till-01",
            "permissions": ["pos", "sales"],
        })
        assert resp.status_code == 201
        assert resp.get_json()["data"]["key"]["permissions"] == ["pos", "sales"]

        headers = login(client, "till-01")
        me = client.get("/api/auth/me", headers=headers).get_json()["data"]
        assert me["tag_name"] == "Front till"
        assert me["permissions"] == ["pos", "sales"]

        # no inventory permission
        assert client.get("/api/products", headers=headers).status_code == 403
        # not a master key
        assert client.get("/api/auth/keys", headers=headers).status_code == 403

    def test_generated_key(self, client, master_headers):
        resp = client.post("/api/auth/keys", headers=master_headers, json={
            "tag_name": "Backup", "is_master_key": True,
        })
        key = resp.get_json()["data"]["key"]
        assert resp.status_code == 201
        assert len(key["key"]) >= 6
        assert key["is_master_key"] is True

    @pytest.mark.parametrize("payload,message", [
        ({"key": "abcdef", "permissions": ["pos"]}, "Tag Name is required."),
        ({"tag_name": "x", "key": "abc", "permissions": ["pos"]}, "Key must be at least 6 characters."),
        ({"tag_name": "x", "key": "abcdef", "permissions": []},
         "You must select at least one permission if it's not a master key."),
        ({"tag_name": "x", "key": "abcdef", "permissions": ["root"]}, "Unknown permissions: root"),
    ])
    def test_validation(self, client, master_headers, payload, message):
        resp = client.post("/api/auth/keys", headers=master_headers, json=payload)
        assert resp.status_code == 400
        assert resp.get_json()["message"] == message

    def test_duplicate_key(self, client, master_headers):
        payload = {"tag_name": "A", "key": "same-key", "permissions": ["pos"]}
        assert client.post("/api/auth/keys", headers=master_headers, json=payload).status_code == 201
        assert client.post("/api/auth/keys", headers=master_headers, json=payload).status_code == 409

    def test_delete(self, client, master_headers):
        resp = client.post("/api/auth/keys", headers=master_headers, json={
            "tag_name": "Temp", "key": "temp-key", "permissions": ["pos"],
        })
        key_id = resp.get_json()["data"]["key"]["id"]
        assert client.delete(f"/api/auth/keys/{key_id}", headers=master_headers).status_code == 200
        assert AccessKey.query.count() == 0
        assert client.delete(f"/api/auth/keys/{key_id}", headers=master_headers).status_code == 404


def test_protected_routes_need_a_token(client):
    assert client.get("/api/products").status_code == 401
    assert client.post("/api/pos/quote", json={"items": []}).status_code == 401
