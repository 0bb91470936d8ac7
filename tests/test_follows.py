"""Follow graph tests."""
import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


class TestFollows:
    """/stories/users/{id}/follow and related reads."""

    async def test_follow_and_unfollow(self, client: AsyncClient, test_user: dict, other_user: dict):
        url = f"/stories/users/{other_user['id']}/follow"

        response = await client.post(url, headers=test_user["headers"])
        assert response.status_code == 201
        follow = response.json()["follow"]
        assert follow["follower_id"] == test_user["id"]
        assert follow["following_id"] == other_user["id"]

        response = await client.post(url, headers=test_user["headers"])
        assert response.status_code == 400
        assert response.json()["message"] == "Already following this user"

        response = await client.delete(url, headers=test_user["headers"])
        assert response.status_code == 200

        response = await client.delete(url, headers=test_user["headers"])
        assert response.status_code == 404
        assert response.json()["message"] == "Not following this user"

    async def test_cannot_follow_self(self, client: AsyncClient, test_user: dict):
        response = await client.post(f"/stories/users/{test_user['id']}/follow", headers=test_user["headers"])
        assert response.status_code == 400
        assert response.json()["message"] == "Cannot follow yourself"

    async def test_follow_unknown_user(self, client: AsyncClient, test_user: dict):
        response = await client.post(
            "/stories/users/00000000-0000-0000-0000-000000000000/follow", headers=test_user["headers"]
        )
        assert response.status_code == 404

    async def test_status_lists_and_stats(
        self, client: AsyncClient, test_user: dict, other_user: dict, register_user
    ):
        third = await register_user("third@example.com")
        await client.post(f"/stories/users/{other_user['id']}/follow", headers=test_user["headers"])
        await client.post(f"/stories/users/{other_user['id']}/follow", headers=third["headers"])

        response = await client.get(
            f"/stories/users/{other_user['id']}/follow-status", headers=test_user["headers"]
        )
        assert response.json() == {"isFollowing": True}

        response = await client.get(
            f"/stories/users/{test_user['id']}/follow-status", headers=other_user["headers"]
        )
        assert response.json() == {"isFollowing": False}

        response = await client.get(f"/stories/users/{other_user['id']}/stats", headers=test_user["headers"])
        assert response.json() == {"following_count": 0, "followers_count": 2}

        response = await client.get(
            f"/stories/users/{other_user['id']}/followers", headers=test_user["headers"]
        )
        followers = response.json()["followers"]
        assert {f["follower_id"] for f in followers} == {test_user["id"], third["id"]}

        response = await client.get(
            f"/stories/users/{other_user['id']}/followers?limit=1&offset=1", headers=test_user["headers"]
        )
        assert len(response.json()["followers"]) == 1

        response = await client.get(f"/stories/users/{test_user['id']}/following", headers=test_user["headers"])
        assert [f["following_id"] for f in response.json()["following"]] == [other_user["id"]]

    async def test_list_limit_is_capped(self, client: AsyncClient, test_user: dict):
        response = await client.get(
            f"/stories/users/{test_user['id']}/followers?limit=500", headers=test_user["headers"]
        )
        assert response.status_code == 422

    async def test_follow_notifies_followed_user(self, client: AsyncClient, test_user: dict, other_user: dict):
        await client.post(f"/stories/users/{other_user['id']}/follow", headers=test_user["headers"])

        response = await client.get("/notifications", headers=other_user["headers"])
        notifications = response.json()["notifications"]
        assert len(notifications) == 1
        assert notifications[0]["body"] == "test started following you"
        assert notifications[0]["data"]["type"] == "new_follower"
