"""Tests for GET /api/v1/notifications."""

from httpx import AsyncClient

from conftest import auth_headers_for
from venuebook.models.notification import Notification


async def _notify(db_session, user, message: str, *, is_read: bool = False) -> None:
    db_session.add(Notification(recipient_id=user.id, event="booking.confirmed", message=message, is_read=is_read))
    await db_session.commit()


async def test_lists_own_notifications(client: AsyncClient, db_session, customer, owner):
    await _notify(db_session, customer, "Your booking is confirmed.")
    await _notify(db_session, owner, "A new booking was paid.")

    response = await client.get("/api/v1/notifications", headers=auth_headers_for(customer))

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["items"][0]["message"] == "Your booking is confirmed."
    assert data["items"][0]["is_read"] is False


async def test_unread_only(client: AsyncClient, db_session, customer):
    await _notify(db_session, customer, "Old news", is_read=True)
    await _notify(db_session, customer, "Fresh news")

    response = await client.get(
        "/api/v1/notifications", params={"unread_only": True}, headers=auth_headers_for(customer)
    )

    assert [item["message"] for item in response.json()["items"]] == ["Fresh news"]


async def test_pagination(client: AsyncClient, db_session, customer):
    for i in range(3):
        await _notify(db_session, customer, f"Notice {i}")

    response = await client.get(
        "/api/v1/notifications", params={"skip": 1, "limit": 1}, headers=auth_headers_for(customer)
    )

    data = response.json()
    assert data["total"] == 3
    assert len(data["items"]) == 1


async def test_requires_auth(client: AsyncClient):
    response = await client.get("/api/v1/notifications")
    assert response.status_code in (401, 403)
