# 테스트 공용 픽스처: 메모리 저장소(가짜 motor 래퍼), 메모리 캐시
from __future__ import annotations

import itertools
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import pytest

from lym.core.cache import MemoryCache
from lym.db.store import StoreError

BASE_TIME = datetime(2024, 1, 1)


def _matches(doc: Dict[str, Any], filter: Dict[str, Any]) -> bool:
    for key, cond in filter.items():
        value = doc.get(key)
        if isinstance(cond, dict) and "$in" in cond:
            if value not in cond["$in"]:
                return False
        elif value != cond:
            return False
    return True


class FakeRecipeStore:
    """RecipeStore 와 같은 계약 (filter 는 동등/$in 만 지원)."""

    def __init__(self, docs: Optional[List[Dict[str, Any]]] = None) -> None:
        self.docs = list(docs or [])
        self.find_calls: List[Dict[str, Any]] = []

    async def find(self, filter, sort, limit, skip=0):
        self.find_calls.append({"filter": filter, "sort": list(sort), "limit": limit, "skip": skip})
        if limit <= 0:
            return []
        rows = [d for d in self.docs if _matches(d, filter)]
        for key, direction in reversed(list(sort)):
            rows.sort(key=lambda d: d.get(key), reverse=direction < 0)
        return [dict(d) for d in rows[skip:skip + limit]]

    async def count(self, filter):
        return sum(1 for d in self.docs if _matches(d, filter))

    async def get(self, recipe_id):
        for d in self.docs:
            if str(d["_id"]) == recipe_id:
                return dict(d)
        return None

    async def set_rating_stats(self, recipe_id, average, count):
        for d in self.docs:
            if str(d["_id"]) == recipe_id:
                d["average_rating"] = average
                d["ratings_count"] = count


class BrokenRecipeStore(FakeRecipeStore):
    async def find(self, filter, sort, limit, skip=0):
        raise StoreError("connection refused")

    async def count(self, filter):
        raise StoreError("connection refused")

    async def get(self, recipe_id):
        raise StoreError("connection refused")


class FakeRatingStore:
    def __init__(self) -> None:
        self.docs: List[Dict[str, Any]] = []
        self._ids = itertools.count(1)
        self._tick = itertools.count()

    async def add(self, recipe_id, score, comment=None, user_id=None):
        doc = {
            "_id": f"r{next(self._ids)}",
            "recipe_id": recipe_id,
            "score": score,
            "comment": comment,
            "user_id": user_id,
            "created_at": BASE_TIME + timedelta(minutes=next(self._tick)),
        }
        self.docs.append(doc)
        return dict(doc)

    async def list_for_recipe(self, recipe_id):
        rows = [dict(d) for d in self.docs if d["recipe_id"] == recipe_id]
        rows.sort(key=lambda d: d["created_at"], reverse=True)
        return rows

    async def list_for_user(self, user_id, min_score=1, limit=20):
        rows = [dict(d) for d in self.docs if d["user_id"] == user_id and d["score"] >= min_score]
        rows.sort(key=lambda d: (d["score"], d["created_at"]), reverse=True)
        return rows[:limit]


class BrokenCache(MemoryCache):
    async def get(self, key):
        raise ConnectionError("redis down")

    async def set(self, key, value, ttl_seconds):
        raise ConnectionError("redis down")

    async def delete_pattern(self, pattern):
        raise ConnectionError("redis down")


def make_recipe(rid: str, **overrides: Any) -> Dict[str, Any]:
    doc = {
        "_id": rid,
        "title": f"Recette {rid}",
        "image_url": f"https://img.example/{rid}.jpg",
        "prep_time": 15,
        "servings": 2,
        "calories": 500.0,
        "ingredients": "riz, légumes",
        "tags": '["rapide", "maison"]',
        "source": "community",
        "target_profile": None,
        "status": "approved",
        "average_rating": 4.0,
        "ratings_count": 3,
        "author": None,
        "created_at": BASE_TIME,
    }
    doc.update(overrides)
    return doc


@pytest.fixture
def cache() -> MemoryCache:
    return MemoryCache()


@pytest.fixture
def recipes() -> List[Dict[str, Any]]:
    return [
        make_recipe("p1", source="ai_preset", target_profile="vegetarian", average_rating=4.8,
                    ingredients="riz, légumes, tofu", calories=600, prep_time=10),
        make_recipe("p2", source="ai_preset", target_profile="vegetarian", average_rating=4.5,
                    ingredients="pâtes, tomates", calories=450, prep_time=25),
        make_recipe("p3", source="ai_preset", target_profile="vegetarian", average_rating=4.1,
                    ingredients="pois chiches, épinards", calories=520, prep_time=20, image_url=None),
        make_recipe("p4", source="ai_preset", target_profile="weight_loss", average_rating=5.0,
                    ingredients="poulet, brocoli"),
        make_recipe("p5", source="ai_preset", target_profile="vegetarian", status="pending",
                    average_rating=5.0),
        make_recipe("c1", source="youtube", average_rating=4.9, ratings_count=40,
                    ingredients="farine de blé, gluten, levure", author={"name": "Chef Léa"}),
        make_recipe("c2", source="community", average_rating=4.7, ratings_count=12,
                    ingredients="lentilles, carottes", author={"name": "Marc"}),
        make_recipe("c3", source="community", average_rating=4.7, ratings_count=5,
                    ingredients="quinoa, avocat"),
        make_recipe("c4", source="community", average_rating=3.2, ratings_count=2,
                    ingredients="oeufs, fromage"),
        make_recipe("c5", source="community", status="rejected", average_rating=5.0),
    ]


@pytest.fixture
def store(recipes) -> FakeRecipeStore:
    return FakeRecipeStore(recipes)
