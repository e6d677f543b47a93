from sqlmodel import Session

from classboard.db import engine
from classboard.services.notifications import create_notification

from factories import API, auth_headers, make_profile


def _notify(profile, n):
    with Session(engine) as session:
        for i in range(n):
            create_notification(session, profile.id, "info", f"Info {i}", f"Pesan {i}")
            session.commit()


def test_list_is_private_and_limited(client):
    owner = make_profile()
    other = make_profile()
    _notify(owner, 3)

    response = client.get(f"{API}/notifications/", params={"limit": 2}, headers=auth_headers(owner))
    assert response.status_code == 200
    assert len(response.json()) == 2
    assert client.get(f"{API}/notifications/", headers=auth_headers(other)).json() == []


def test_limit_upper_bound(client):
    owner = make_profile()
    response = client.get(f"{API}/notifications/", params={"limit": 101}, headers=auth_headers(owner))
    assert response.status_code == 422


def test_mark_one_read(client):
    owner = make_profile()
    _notify(owner, 1)
    headers = auth_headers(owner)
    notification = client.get(f"{API}/notifications/", headers=headers).json()[0]
    assert notification["is_read"] is False

    response = client.patch(f"{API}/notifications/{notification['id']}", json={"is_read": True}, headers=headers)
    assert response.status_code == 200
    assert response.json()["is_read"] is True
    assert response.json()["read_at"] is not None

    other = make_profile()
    response = client.patch(
        f"{API}/notifications/{notification['id']}", json={"is_read": False}, headers=auth_headers(other)
    )
    assert response.status_code == 403


def test_mark_all_read(client):
    owner = make_profile()
    _notify(owner, 3)
    headers = auth_headers(owner)

    response = client.patch(f"{API}/notifications/mark-all-read", headers=headers)
    assert response.json() == {"marked": 3}
    assert all(row["is_read"] for row in client.get(f"{API}/notifications/", headers=headers).json())
    assert client.patch(f"{API}/notifications/mark-all-read", headers=headers).json() == {"marked": 0}
