# lym/services/ratings.py
# 레시피 평점: 저장 후 평균/개수 재계산, 추천 캐시 무효화
# 개인화: 사용자가 4점 이상 준 레시피의 태그를 점수로 가중해 선호 태그 순위

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

from lym.core.cache import Cache, invalidate, suggestions_pattern
from lym.db.store import RatingStore, RecipeStore
from lym.services.profile import parse_list_field

log = logging.getLogger(__name__)

LIKED_MIN_SCORE = 4
LIKED_LIMIT = 20


class RecipeNotFound(LookupError):
    pass


def summarize(ratings: List[Dict[str, Any]]) -> Tuple[float, int]:
    # (평균, 개수): 평점 없으면 (0.0, 0)
    if not ratings:
        return 0.0, 0
    total = sum(int(r.get("score") or 0) for r in ratings)
    return round(total / len(ratings), 2), len(ratings)


def rank_preferred_tags(liked: List[Tuple[Dict[str, Any], int]]) -> List[str]:
    # 태그 가중치 = 그 태그가 달린 레시피에 준 점수 합. 동점은 먼저 나온 순서
    weights: Dict[str, int] = {}
    for recipe, score in liked:
        # 태그 파싱 실패한 레시피는 건너뜀 (parse_list_field → [])
        for tag in parse_list_field(recipe.get("tags")):
            weights[tag] = weights.get(tag, 0) + score
    return sorted(weights, key=lambda t: weights[t], reverse=True)


class RatingService:
    def __init__(self, recipes: RecipeStore, ratings: RatingStore, cache: Optional[Cache] = None) -> None:
        self.recipes = recipes
        self.ratings = ratings
        self.cache = cache

    async def rate_recipe(
        self,
        recipe_id: str,
        score: int,
        comment: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> Tuple[Dict[str, Any], float, int]:
        recipe = await self.recipes.get(recipe_id)
        if recipe is None:
            raise RecipeNotFound(recipe_id)

        rating = await self.ratings.add(recipe_id, score, comment=comment, user_id=user_id)
        average, count = summarize(await self.ratings.list_for_recipe(recipe_id))
        await self.recipes.set_rating_stats(recipe_id, average, count)

        # 평균 평점이 후보 정렬에 쓰이므로 전체 추천 캐시를 비운다
        dropped = await invalidate(self.cache, suggestions_pattern())
        log.info("rated recipe %s: avg=%.2f count=%d (cache dropped=%d)", recipe_id, average, count, dropped)
        return rating, average, count

    async def get_recipe_ratings(self, recipe_id: str) -> Tuple[List[Dict[str, Any]], float, int]:
        ratings = await self.ratings.list_for_recipe(recipe_id)
        average, count = summarize(ratings)
        return ratings, average, count

    async def get_personalized_recommendations(
        self, user_id: str
    ) -> Tuple[List[str], List[Dict[str, Any]]]:
        """(선호 태그 순위, 높게 평가한 레시피). 삭제된 레시피는 빠진다."""
        liked = await self.ratings.list_for_user(user_id, min_score=LIKED_MIN_SCORE, limit=LIKED_LIMIT)
        docs = await asyncio.gather(*(self.recipes.get(str(r["recipe_id"])) for r in liked))
        pairs = [(doc, int(r["score"])) for r, doc in zip(liked, docs) if doc is not None]

        # 같은 레시피를 여러 번 평가했으면 가중치는 모두 반영, 목록엔 한 번
        top: List[Dict[str, Any]] = []
        seen = set()
        for doc, _ in pairs:
            rid = str(doc["_id"])
            if rid not in seen:
                seen.add(rid)
                top.append(doc)
        return rank_preferred_tags(pairs), top
