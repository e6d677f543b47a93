from uuid import uuid4

from factories import API, add_member, auth_headers, make_class, make_profile


def test_requires_bearer_token(client):
    response = client.get(f"{API}/profiles/me")
    assert response.status_code == 401
    assert response.json()["detail"] == "Not authenticated"


def test_rejects_token_for_unknown_profile(client):
    from classboard.core.security import create_access_token

    response = client.get(
        f"{API}/profiles/me",
        headers={"Authorization": f"Bearer {create_access_token(uuid4())}"},
    )
    assert response.status_code == 401


def test_read_own_profile(client):
    profile = make_profile(role=None, full_name="Siti Aminah")
    response = client.get(f"{API}/profiles/me", headers=auth_headers(profile))
    assert response.status_code == 200
    body = response.json()
    assert body["id"] == str(profile.id)
    assert body["full_name"] == "Siti Aminah"
    assert body["role"] is None


def test_role_is_chosen_once(client):
    profile = make_profile(role=None)
    headers = auth_headers(profile)

    response = client.patch(f"{API}/profiles/{profile.id}", json={"role": "creator"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["role"] == "creator"

    response = client.patch(f"{API}/profiles/{profile.id}", json={"role": "member"}, headers=headers)
    assert response.status_code == 409
    assert response.json()["code"] == "ROLE_LOCKED"


def test_update_strips_full_name(client):
    profile = make_profile()
    response = client.patch(
        f"{API}/profiles/{profile.id}",
        json={"full_name": "  Budi Santoso  "},
        headers=auth_headers(profile),
    )
    assert response.status_code == 200
    assert response.json()["full_name"] == "Budi Santoso"


def test_cannot_update_someone_else(client):
    profile = make_profile()
    other = make_profile()
    response = client.patch(
        f"{API}/profiles/{other.id}",
        json={"full_name": "Nama Lain"},
        headers=auth_headers(profile),
    )
    assert response.status_code == 403
    assert response.json()["detail"].startswith("permission denied")


def test_list_own_classes_returns_approved_only(client):
    creator = make_profile(role="creator", full_name="Dosen A")
    member = make_profile()
    joined = make_class(creator, name="R.1.H")
    waiting = make_class(creator, name="R.2.H")
    add_member(joined, member, "approved")
    add_member(waiting, member, "pending")

    response = client.get(f"{API}/profiles/{member.id}/classes", headers=auth_headers(member))
    assert response.status_code == 200
    body = response.json()
    assert [row["classroom"]["name"] for row in body] == ["R.1.H"]
    assert body[0]["classroom"]["creator_name"] == "Dosen A"
    assert body[0]["classroom"]["approved_members"] == 2
