"""Story favorites tests."""
import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


@pytest.fixture
async def story(auth_headers: dict, generate) -> dict:
    return (await generate(auth_headers)).json()["story"]


class TestFavorites:
    """POST/DELETE /stories/{id}/favorite and friends."""

    async def test_favorite_lifecycle(self, client: AsyncClient, auth_headers: dict, story: dict):
        url = f"/stories/{story['id']}/favorite"

        response = await client.post(url, headers=auth_headers)
        assert response.status_code == 201
        assert response.json() == {"success": True}

        response = await client.post(url, headers=auth_headers)
        assert response.status_code == 400
        assert "already favorited" in response.json()["message"]

        response = await client.delete(url, headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {"success": True}

        response = await client.delete(url, headers=auth_headers)
        assert response.status_code == 404
        assert "not favorited" in response.json()["message"]

    async def test_favorite_status(self, client: AsyncClient, auth_headers: dict, story: dict):
        status_url = f"/stories/{story['id']}/favorite/status"
        assert (await client.get(status_url, headers=auth_headers)).json() == {"isFavorite": False}

        await client.post(f"/stories/{story['id']}/favorite", headers=auth_headers)
        assert (await client.get(status_url, headers=auth_headers)).json() == {"isFavorite": True}

    async def test_favorites_list_newest_first(
        self, client: AsyncClient, auth_headers: dict, story: dict, generate
    ):
        second = (await generate(auth_headers, prompt="another")).json()["story"]
        await client.post(f"/stories/{story['id']}/favorite", headers=auth_headers)
        await client.post(f"/stories/{second['id']}/favorite", headers=auth_headers)

        response = await client.get("/stories/favorites/list", headers=auth_headers)
        assert response.status_code == 200
        assert [s["id"] for s in response.json()["stories"]] == [second["id"], story["id"]]

    async def test_favorites_are_per_user(
        self, client: AsyncClient, auth_headers: dict, other_user: dict, story: dict
    ):
        await client.post(f"/stories/{story['id']}/favorite", headers=auth_headers)

        response = await client.get("/stories/favorites/list", headers=other_user["headers"])
        assert response.json()["stories"] == []

        response = await client.post(f"/stories/{story['id']}/favorite", headers=other_user["headers"])
        assert response.status_code == 201

    async def test_favorite_unknown_story(self, client: AsyncClient, auth_headers: dict):
        response = await client.post(
            "/stories/00000000-0000-0000-0000-000000000000/favorite", headers=auth_headers
        )
        assert response.status_code == 404
