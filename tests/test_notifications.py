"""Notification inbox and push subscription tests."""
import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.notification import PushSubscription

pytestmark = pytest.mark.asyncio


@pytest.fixture
async def followed_twice(client: AsyncClient, test_user: dict, other_user: dict, register_user) -> dict:
    """test_user gains two new-follower notifications."""
    third = await register_user("third@example.com")
    for follower in (other_user, third):
        response = await client.post(f"/stories/users/{test_user['id']}/follow", headers=follower["headers"])
        assert response.status_code == 201
    return test_user


class TestInbox:
    """GET /notifications and read markers."""

    async def test_list_newest_first(self, client: AsyncClient, followed_twice: dict):
        response = await client.get("/notifications", headers=followed_twice["headers"])
        assert response.status_code == 200
        bodies = [n["body"] for n in response.json()["notifications"]]
        assert bodies == ["third started following you", "other started following you"]

    async def test_mark_one_read(self, client: AsyncClient, followed_twice: dict):
        headers = followed_twice["headers"]
        notifications = (await client.get("/notifications", headers=headers)).json()["notifications"]
        assert (await client.get("/notifications/unread-count", headers=headers)).json() == {"count": 2}

        response = await client.post(f"/notifications/{notifications[0]['id']}/read", headers=headers)
        assert response.json() == {"success": True}
        assert (await client.get("/notifications/unread-count", headers=headers)).json() == {"count": 1}

        unread = (await client.get("/notifications?unread_only=true", headers=headers)).json()
        assert [n["id"] for n in unread["notifications"]] == [notifications[1]["id"]]

    async def test_cannot_mark_someone_elses_notification(
        self, client: AsyncClient, followed_twice: dict, other_user: dict
    ):
        notification = (await client.get("/notifications", headers=followed_twice["headers"])).json()[
            "notifications"
        ][0]

        response = await client.post(f"/notifications/{notification['id']}/read", headers=other_user["headers"])
        assert response.status_code == 404
        assert response.json()["message"] == "Notification not found"

        response = await client.get("/notifications/unread-count", headers=followed_twice["headers"])
        assert response.json() == {"count": 2}

    async def test_read_all(self, client: AsyncClient, followed_twice: dict):
        headers = followed_twice["headers"]
        assert (await client.post("/notifications/read-all", headers=headers)).json() == {"updated": 2}
        assert (await client.get("/notifications/unread-count", headers=headers)).json() == {"count": 0}
        assert (await client.post("/notifications/read-all", headers=headers)).json() == {"updated": 0}

    async def test_pagination(self, client: AsyncClient, followed_twice: dict):
        response = await client.get("/notifications?limit=1&offset=1", headers=followed_twice["headers"])
        assert [n["body"] for n in response.json()["notifications"]] == ["other started following you"]


class TestSubscriptions:
    """POST/DELETE /notifications/subscriptions."""

    async def test_register_and_remove(self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict):
        payload = {"endpoint": "https://push.example.com/abc", "keys": {"auth": "a1", "p256dh": "p1"}}
        response = await client.post("/notifications/subscriptions", json=payload, headers=auth_headers)
        assert response.status_code == 201

        payload["keys"] = {"auth": "a2", "p256dh": "p2"}
        await client.post("/notifications/subscriptions", json=payload, headers=auth_headers)

        rows = (
            await db_session.execute(select(PushSubscription).execution_options(populate_existing=True))
        ).scalars().all()
        assert len(rows) == 1
        assert rows[0].auth_key == "a2"

        response = await client.request(
            "DELETE", "/notifications/subscriptions", json={"endpoint": payload["endpoint"]}, headers=auth_headers
        )
        assert response.json() == {"success": True}

        response = await client.request(
            "DELETE", "/notifications/subscriptions", json={"endpoint": payload["endpoint"]}, headers=auth_headers
        )
        assert response.status_code == 404

    async def test_endpoint_moves_to_new_owner(
        self, client: AsyncClient, db_session: AsyncSession, test_user: dict, other_user: dict
    ):
        payload = {"endpoint": "https://push.example.com/shared", "keys": {"auth": "a", "p256dh": "p"}}
        await client.post("/notifications/subscriptions", json=payload, headers=test_user["headers"])
        await client.post("/notifications/subscriptions", json=payload, headers=other_user["headers"])

        row = (
            await db_session.execute(select(PushSubscription).execution_options(populate_existing=True))
        ).scalar_one()
        assert str(row.user_id) == other_user["id"]

    async def test_missing_keys_is_rejected(self, client: AsyncClient, auth_headers: dict):
        response = await client.post(
            "/notifications/subscriptions", json={"endpoint": "https://push.example.com/x"}, headers=auth_headers
        )
        assert response.status_code == 422
