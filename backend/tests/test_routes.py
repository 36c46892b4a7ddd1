import random

import pytest
from fastapi.testclient import TestClient

import lym.db.init as db_init
from lym.api.routes_recipes import get_user_profile
from lym.core.cache import MemoryCache
from lym.core.deps import COOKIE, get_engine, get_rating_service
from lym.db.models.schemas import UserProfileForSuggestions
from lym.db.store import RecipeStore, StoreError
from lym.main import app
from lym.services.ratings import RatingService
from lym.services.suggestions import SuggestionEngine

from conftest import BrokenRecipeStore, FakeRatingStore, FakeRecipeStore


@pytest.fixture
def client(store):
    cache = MemoryCache()
    ratings = FakeRatingStore()
    app.dependency_overrides[get_engine] = lambda: SuggestionEngine(store, cache=cache, rng=random.Random(0))
    app.dependency_overrides[get_rating_service] = lambda: RatingService(store, ratings, cache=cache)
    app.dependency_overrides[get_user_profile] = lambda: UserProfileForSuggestions(
        id="anon1", dietType="vegan", allergies=["gluten"],
    )
    # startup(DB 연결)은 with 블록에서만 돈다 → 여기선 건너뜀
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_root(client):
    assert client.get("/").json() == {"status": "ok"}


def test_suggestions(client):
    res = client.get("/recipes/suggestions", params={"limit": 4})
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert len(body["recipes"]) == 4
    assert {"id", "name", "imageUrl", "matchScore", "source", "averageRating"} <= set(body["recipes"][0])


def test_suggestions_limit_validation(client):
    assert client.get("/recipes/suggestions", params={"limit": 0}).status_code == 422
    assert client.get("/recipes/suggestions", params={"limit": 99}).status_code == 422


def test_suggestions_store_down_is_uniform_failure(client):
    app.dependency_overrides[get_engine] = lambda: SuggestionEngine(BrokenRecipeStore())
    body = client.get("/recipes/suggestions").json()
    assert body == {"success": False, "recipes": [], "error": "connection refused"}


def test_community_page(client):
    body = client.get("/recipes/community", params={"page": 1, "limit": 5}).json()
    assert body["success"] is True
    assert body["total"] == 8
    assert len(body["recipes"]) == 5
    assert body["hasMore"] is True
    assert client.get("/recipes/community", params={"page": 0}).status_code == 422


def test_rate_and_list(client):
    res = client.post("/recipes/c2/ratings", json={"score": 5, "comment": "top"})
    assert res.status_code == 200
    body = res.json()
    assert body["ratingsCount"] == 1
    assert body["averageRating"] == 5.0
    assert body["rating"]["recipeId"] == "c2"
    assert COOKIE in res.cookies

    listed = client.get("/recipes/c2/ratings").json()
    assert listed["count"] == 1
    assert listed["ratings"][0]["comment"] == "top"


def test_rate_validation_and_missing_recipe(client):
    assert client.post("/recipes/c2/ratings", json={"score": 6}).status_code == 422
    assert client.post("/recipes/zzz/ratings", json={"score": 3}).status_code == 404


def test_rate_store_down(client):
    app.dependency_overrides[get_rating_service] = lambda: RatingService(BrokenRecipeStore(), FakeRatingStore())
    assert client.post("/recipes/c2/ratings", json={"score": 3}).status_code == 503


def test_personalized_from_my_ratings(client):
    assert client.get("/recipes/personalized").json() == {
        "success": True, "preferredTags": [], "topRatedRecipes": [], "error": None,
    }
    client.post("/recipes/c2/ratings", json={"score": 5})
    client.post("/recipes/c4/ratings", json={"score": 3})

    body = client.get("/recipes/personalized").json()
    assert body["success"] is True
    assert body["preferredTags"] == ["rapide", "maison"]
    assert [r["id"] for r in body["topRatedRecipes"]] == ["c2"]


def test_personalized_store_down(client):
    class BrokenRatings(FakeRatingStore):
        async def list_for_user(self, user_id, min_score=1, limit=20):
            raise StoreError("connection refused")

    app.dependency_overrides[get_rating_service] = lambda: RatingService(FakeRecipeStore(), BrokenRatings())
    body = client.get("/recipes/personalized").json()
    assert body == {"success": False, "preferredTags": [], "topRatedRecipes": [], "error": "connection refused"}


@pytest.fixture
def no_db(monkeypatch):
    monkeypatch.setattr(db_init, "_db", None)


async def test_store_without_db_raises_store_error(no_db):
    with pytest.raises(StoreError):
        await RecipeStore().find({}, [], 5)


def test_routes_without_db_fail_uniformly(client, no_db):
    # 실제 의존성(미연결 DB)으로
    del app.dependency_overrides[get_engine]
    del app.dependency_overrides[get_rating_service]

    body = client.get("/recipes/suggestions").json()
    assert body == {"success": False, "recipes": [], "error": "MongoDB is not initialized yet."}

    page = client.get("/recipes/community").json()
    assert page["success"] is False
    assert page["hasMore"] is False

    assert client.post("/recipes/c2/ratings", json={"score": 3}).status_code == 503
    assert client.get("/recipes/personalized").json()["success"] is False
