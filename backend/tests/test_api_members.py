from factories import API, add_member, auth_headers, make_class, make_profile


def test_creator_approves_pending_member(client):
    creator = make_profile(role="creator")
    student = make_profile()
    classroom = make_class(creator, name="R.1.H")
    membership = add_member(classroom, student, "pending")

    response = client.patch(
        f"{API}/members/{membership.id}",
        json={"status": "approved"},
        headers=auth_headers(creator),
    )
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "approved"
    assert body["joined_at"] is not None

    stats = client.get(f"{API}/classes/{classroom.id}", headers=auth_headers(creator)).json()
    assert stats["approved_members"] == 2
    assert stats["pending_members"] == 0

    notifications = client.get(f"{API}/notifications/", headers=auth_headers(student)).json()
    assert notifications[0]["type"] == "member_approved"
    assert "R.1.H" in notifications[0]["message"]


def test_rejection_is_terminal(client):
    creator = make_profile(role="creator")
    classroom = make_class(creator)
    membership = add_member(classroom, make_profile(), "pending")
    headers = auth_headers(creator)

    response = client.patch(f"{API}/members/{membership.id}", json={"status": "rejected"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["joined_at"] is None

    response = client.patch(f"{API}/members/{membership.id}", json={"status": "approved"}, headers=headers)
    assert response.status_code == 409
    assert response.json()["code"] == "INVALID_TRANSITION"


def test_pending_is_not_a_target_status(client):
    creator = make_profile(role="creator")
    classroom = make_class(creator)
    membership = add_member(classroom, make_profile(), "pending")
    response = client.patch(
        f"{API}/members/{membership.id}", json={"status": "pending"}, headers=auth_headers(creator)
    )
    assert response.status_code == 422


def test_only_creator_changes_status(client):
    creator = make_profile(role="creator")
    member = make_profile(role="creator")
    classroom = make_class(creator)
    add_member(classroom, member, "approved")
    membership = add_member(classroom, make_profile(), "pending")

    response = client.patch(
        f"{API}/members/{membership.id}", json={"status": "approved"}, headers=auth_headers(member)
    )
    assert response.status_code == 403


def test_approve_into_full_class_fails(client):
    creator = make_profile(role="creator")
    classroom = make_class(creator, member_limit=5)
    waiting = add_member(classroom, make_profile(), "pending")
    for _ in range(4):
        add_member(classroom, make_profile(), "approved")

    response = client.patch(
        f"{API}/members/{waiting.id}", json={"status": "approved"}, headers=auth_headers(creator)
    )
    assert response.status_code == 409
    assert response.json()["code"] == "CLASS_FULL"

    row = client.get(
        f"{API}/classes/{classroom.id}/members/by-user/{waiting.user_id}", headers=auth_headers(creator)
    ).json()
    assert row["status"] == "pending"


def test_unknown_membership(client):
    creator = make_profile(role="creator")
    response = client.patch(
        f"{API}/members/00000000-0000-0000-0000-000000000000",
        json={"status": "approved"},
        headers=auth_headers(creator),
    )
    assert response.status_code == 404
