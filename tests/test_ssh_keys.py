"""
SSH key store tests.
Exercised through the REST routes, with a few direct KeyStore checks.
"""
import pytest

from git_ssh_manager.api_models import SshKeyCreate, SshKeyUpdate
from git_ssh_manager.errors import ValidationFailure
from git_ssh_manager.key_store import KeyNotFoundError, KeyStore, validate_public_key
from git_ssh_manager.model_converter import convert_key_to_detail
from git_ssh_manager.models import KeyProvider, SshKey

from conftest import PRIVATE_KEY, PUBLIC_KEY


# ---------------------------------------------------------------------------
# Public key format
# ---------------------------------------------------------------------------
@pytest.mark.parametrize(
    "key",
    [
        PUBLIC_KEY,
        "ssh-rsa AAAAB3NzaC1yc2EAAAADAQABAAABAQC7== bob@laptop",
        "ecdsa-sha2-nistp256 AAAAE2VjZHNhLXNoYTItbmlzdHAyNTY= ci@runner-01",
        "  " + PUBLIC_KEY + "\n",
    ],
)
def test_validate_public_key_accepts_known_formats(key):
    assert validate_public_key(key)


@pytest.mark.parametrize(
    "key",
    [
        "not a key",
        "ssh-dss AAAAB3NzaC1kc3M= bob@laptop",
        "ssh-ed25519 AAAAC3NzaC1lZDI1NTE5",
        "ssh-ed25519 AAAA!!invalid bob@laptop",
        "ssh-ed25519 AAAAC3NzaC1lZDI1NTE5 no-comment-host",
    ],
)
def test_validate_public_key_rejects_malformed(key):
    assert not validate_public_key(key)


# ---------------------------------------------------------------------------
# Create / get
# ---------------------------------------------------------------------------
def test_create_with_malformed_key_is_rejected(client):
    resp = client.post("/api/ssh-keys", json={"name": "bad", "publicKey": "ssh-rsa nope"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid SSH key format"}
    assert client.get("/api/ssh-keys").json()["data"] == []


def test_create_requires_name_and_public_key(client):
    resp = client.post("/api/ssh-keys", json={"publicKey": PUBLIC_KEY})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Name and public key are required"


def test_create_then_get(client):
    resp = client.post(
        "/api/ssh-keys",
        json={"name": "deploy", "publicKey": PUBLIC_KEY, "description": "main repo"},
        headers={"user-id": "alice"},
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "SSH key created successfully"
    created = body["data"]
    assert created["name"] == "deploy"
    assert created["provider"] == "github"
    assert created["description"] == "main repo"
    assert created["createdAt"].endswith("Z")

    detail = client.get(f"/api/ssh-keys/{created['id']}", headers={"user-id": "alice"})
    assert detail.status_code == 200
    data = detail.json()["data"]
    assert data["publicKey"] == PUBLIC_KEY
    assert data["isActive"] is True
    assert "privateKey" not in data


def test_private_key_only_returned_on_request(client, create_key):
    key_id = create_key(user_id="alice")

    plain = client.get(f"/api/ssh-keys/{key_id}", headers={"user-id": "alice"}).json()["data"]
    assert "privateKey" not in plain

    secret = client.get(
        f"/api/ssh-keys/{key_id}",
        params={"includePrivateKey": "true"},
        headers={"user-id": "alice"},
    ).json()["data"]
    assert secret["privateKey"] == PRIVATE_KEY


def test_list_is_newest_first_and_hides_key_material(client, create_key):
    first = create_key(name="first")
    second = create_key(name="second")

    resp = client.get("/api/ssh-keys")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert [item["id"] for item in data] == [second, first]
    for item in data:
        assert "publicKey" not in item
        assert "privateKey" not in item
        assert item["isActive"] is True


def test_missing_user_header_uses_default_identity(client, create_key):
    key_id = create_key(user_id="default-user")
    resp = client.get(f"/api/ssh-keys/{key_id}")
    assert resp.status_code == 200


# ---------------------------------------------------------------------------
# Ownership
# ---------------------------------------------------------------------------
def test_keys_are_scoped_to_their_owner(client, create_key):
    key_id = create_key(user_id="alice")

    assert client.get("/api/ssh-keys", headers={"user-id": "bob"}).json()["data"] == []
    resp = client.get(f"/api/ssh-keys/{key_id}", headers={"user-id": "bob"})
    assert resp.status_code == 404
    assert resp.json() == {"error": "SSH key not found"}

    assert client.put(
        f"/api/ssh-keys/{key_id}", json={"name": "stolen"}, headers={"user-id": "bob"}
    ).status_code == 404
    assert client.delete(f"/api/ssh-keys/{key_id}", headers={"user-id": "bob"}).status_code == 404

    # Still intact for the owner
    data = client.get(f"/api/ssh-keys/{key_id}", headers={"user-id": "alice"}).json()["data"]
    assert data["name"] == "deploy"


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------
def test_update_merges_only_supplied_fields(client, create_key):
    key_id = create_key()
    resp = client.put(f"/api/ssh-keys/{key_id}", json={"description": "rotated"})
    assert resp.status_code == 200
    assert resp.json()["data"]["description"] == "rotated"

    data = client.get(f"/api/ssh-keys/{key_id}", params={"includePrivateKey": "true"}).json()["data"]
    assert data["name"] == "deploy"
    assert data["publicKey"] == PUBLIC_KEY
    assert data["privateKey"] == PRIVATE_KEY
    assert data["description"] == "rotated"


def test_update_with_malformed_key_is_rejected(client, create_key):
    key_id = create_key()
    resp = client.put(f"/api/ssh-keys/{key_id}", json={"publicKey": "garbage"})
    assert resp.status_code == 400
    data = client.get(f"/api/ssh-keys/{key_id}").json()["data"]
    assert data["publicKey"] == PUBLIC_KEY


def test_update_unknown_key_is_404(client):
    resp = client.put("/api/ssh-keys/999", json={"name": "x"})
    assert resp.status_code == 404


@pytest.mark.parametrize("body", [{"publicKey": ""}, {"name": ""}, {"name": "   "}, {"publicKey": "", "name": ""}])
def test_update_with_blank_values_is_rejected(client, create_key, body):
    key_id = create_key()
    resp = client.put(f"/api/ssh-keys/{key_id}", json=body)
    assert resp.status_code == 400
    data = client.get(f"/api/ssh-keys/{key_id}").json()["data"]
    assert data["name"] == "deploy"
    assert data["publicKey"] == PUBLIC_KEY


def test_timestamps_are_reported_in_utc(client, create_key):
    key_id = create_key()
    updated = client.put(f"/api/ssh-keys/{key_id}", json={"description": "rotated"}).json()["data"]
    assert updated["updatedAt"].endswith("Z")

    listed = client.get("/api/ssh-keys").json()["data"][0]
    detail = client.get(f"/api/ssh-keys/{key_id}").json()["data"]
    for data in (listed, detail):
        assert data["createdAt"].endswith("Z")
        assert data["updatedAt"].endswith("Z")
        assert data["updatedAt"] >= data["createdAt"]


# ---------------------------------------------------------------------------
# Soft delete
# ---------------------------------------------------------------------------
def test_delete_is_soft(client, create_key, db_session):
    key_id = create_key()

    resp = client.delete(f"/api/ssh-keys/{key_id}")
    assert resp.status_code == 200
    assert resp.json() == {"message": "SSH key deleted successfully"}

    assert client.get("/api/ssh-keys").json()["data"] == []
    assert client.get(f"/api/ssh-keys/{key_id}").status_code == 404
    assert client.delete(f"/api/ssh-keys/{key_id}").status_code == 404

    row = db_session.get(SshKey, key_id)
    assert row is not None
    assert row.is_active is False


# ---------------------------------------------------------------------------
# KeyStore directly
# ---------------------------------------------------------------------------
def test_key_store_defaults_provider_and_strips_key(db_session):
    store = KeyStore(db_session)
    key = store.create("carol", SshKeyCreate(name="k", public_key=PUBLIC_KEY + "  \n"))
    assert key.provider == KeyProvider.github
    assert key.public_key == PUBLIC_KEY

    updated = store.update(key.id, "carol", SshKeyUpdate(provider=KeyProvider.bitbucket))
    assert updated.provider == KeyProvider.bitbucket
    assert updated.updated_at >= updated.created_at


def test_key_store_errors(db_session):
    store = KeyStore(db_session)
    with pytest.raises(ValidationFailure):
        store.create("carol", SshKeyCreate(name="k", public_key="nope"))
    with pytest.raises(KeyNotFoundError):
        store.get(42, "carol")


def test_key_store_round_trips_timestamps(db_session):
    store = KeyStore(db_session)
    key = store.create("dave", SshKeyCreate(name="k", public_key=PUBLIC_KEY))
    store.delete(key.id, "dave")
    db_session.expire_all()

    row = db_session.get(SshKey, key.id)
    assert row.created_at is not None
    assert row.updated_at >= row.created_at
    detail = convert_key_to_detail(row)
    assert detail["createdAt"].endswith("Z")
    assert detail["updatedAt"].endswith("Z")
