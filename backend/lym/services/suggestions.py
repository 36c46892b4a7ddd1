# lym/services/suggestions.py
# 홈 추천 레시피: 프리셋(AI) + 커뮤니티 혼합
#  1) 프로필 분류(archetype)
#  2) 프리셋 ceil(n/2) / 커뮤니티 floor(n/2) 동시 조회
#  3) 카드 변환 + 점수
#  4) 셔플(출처 순서 편향 제거) → 점수 내림차순 안정 정렬 → n개
#  5) 사용자별 캐시

from __future__ import annotations

import asyncio
import logging
import math
import random
from typing import Any, Dict, List, Optional

from lym.core.cache import Cache, suggestions_key, with_cache
from lym.core.config import settings
from lym.db.models.schemas import (
    CommunityRecipesPage,
    SuggestedRecipe,
    SuggestionsResult,
    UserProfileForSuggestions,
)
from lym.db.store import RecipeStore
from lym.services.profile import SuggestionProfile, classify, normalize_profile, parse_list_field
from lym.services.reco import is_safe, score_recipe

log = logging.getLogger(__name__)

APPROVED = "approved"
COMMUNITY_SOURCES = ["youtube", "community"]
ALL_SOURCES = ["youtube", "community", "ai_preset"]
ANONYMOUS = "anonymous"

PRESET_SORT = [("average_rating", -1), ("created_at", -1)]
COMMUNITY_SORT = [("average_rating", -1), ("ratings_count", -1), ("created_at", -1)]


async def fetch_presets(store: RecipeStore, archetype: str, limit: int) -> List[Dict[str, Any]]:
    return await store.find(
        {"source": "ai_preset", "status": APPROVED, "target_profile": archetype},
        PRESET_SORT,
        limit,
    )


async def fetch_community(store: RecipeStore, profile: SuggestionProfile, limit: int) -> List[Dict[str, Any]]:
    # 알레르기 필터로 빠질 몫까지 2배 조회 후 로컬 필터
    rows = await store.find(
        {"source": {"$in": COMMUNITY_SOURCES}, "status": APPROVED},
        COMMUNITY_SORT,
        limit * 2,
    )
    exclude = profile.exclude_terms
    return [r for r in rows if is_safe(r, exclude)][:limit]


def _source_label(raw: Any) -> str:
    if raw == "ai_preset":
        return "ai_preset"
    if raw == "youtube":
        return "youtube"
    return "community"


def round_half_up(value: float) -> int:
    # .5 는 올림 (600.5 → 601)
    return math.floor(value + 0.5)


def to_suggested(
    doc: Dict[str, Any],
    profile: SuggestionProfile,
    placeholder: str = settings.PLACEHOLDER_IMAGE_URL,
) -> SuggestedRecipe:
    author = doc.get("author") or {}
    return SuggestedRecipe(
        id=str(doc.get("_id") or doc.get("id") or ""),
        name=doc.get("title") or "",
        imageUrl=doc.get("image_url") or placeholder,
        prepTime=int(doc.get("prep_time") or 0),
        servings=int(doc.get("servings") or 1),
        calories=round_half_up(float(doc.get("calories") or 0)),
        tags=parse_list_field(doc.get("tags")),
        matchScore=score_recipe(doc, profile),
        source=_source_label(doc.get("source")),
        authorName=author.get("name") or None,
        averageRating=float(doc.get("average_rating") or 0.0),
        ratingsCount=int(doc.get("ratings_count") or 0),
    )


def _dedupe(cards: List[SuggestedRecipe]) -> List[SuggestedRecipe]:
    seen = set()
    out: List[SuggestedRecipe] = []
    for c in cards:
        if c.id in seen:
            continue
        seen.add(c.id)
        out.append(c)
    return out


class SuggestionEngine:
    """
    추천 조립기. store/cache/rng 는 외부에서 주입한다 (테스트에서 가짜 저장소,
    메모리 캐시, 시드 고정 Random 사용).
    """

    def __init__(
        self,
        store: RecipeStore,
        cache: Optional[Cache] = None,
        rng: Optional[random.Random] = None,
        ttl_seconds: int = settings.SUGGESTIONS_CACHE_TTL,
        placeholder_image: str = settings.PLACEHOLDER_IMAGE_URL,
    ) -> None:
        self.store = store
        self.cache = cache
        self.rng = rng or random.Random()
        self.ttl_seconds = ttl_seconds
        self.placeholder_image = placeholder_image

    async def _assemble(self, profile: SuggestionProfile, limit: int) -> List[SuggestedRecipe]:
        archetype = classify(profile)
        preset_count = math.ceil(limit / 2)
        community_count = limit // 2

        presets, community = await asyncio.gather(
            fetch_presets(self.store, archetype, preset_count),
            fetch_community(self.store, profile, community_count),
        )
        log.debug(
            "suggestion pools: archetype=%s presets=%d community=%d",
            archetype, len(presets), len(community),
        )

        cards = [to_suggested(d, profile, self.placeholder_image) for d in [*presets, *community]]
        cards = _dedupe(cards)

        # Fisher-Yates 셔플 후 안정 정렬 → 동점 순서는 무작위
        self.rng.shuffle(cards)
        cards.sort(key=lambda c: c.matchScore, reverse=True)
        return cards[:limit]

    async def get_suggestions(
        self,
        raw_profile: Optional[UserProfileForSuggestions],
        limit: int = settings.SUGGESTIONS_LIMIT,
    ) -> SuggestionsResult:
        try:
            profile = normalize_profile(raw_profile)
            key = suggestions_key(profile.user_id or ANONYMOUS, limit)

            async def compute() -> List[Dict[str, Any]]:
                cards = await self._assemble(profile, limit)
                return [c.model_dump() for c in cards]

            rows = await with_cache(self.cache, key, self.ttl_seconds, compute)
            return SuggestionsResult(
                success=True,
                recipes=[SuggestedRecipe.model_validate(r) for r in rows],
            )
        except Exception as e:
            log.exception("[get_suggestions] failed")
            return SuggestionsResult(success=False, recipes=[], error=str(e) or "suggestions unavailable")

    async def get_all_community_recipes(
        self,
        raw_profile: Optional[UserProfileForSuggestions],
        page: int = 1,
        limit: int = settings.COMMUNITY_PAGE_SIZE,
    ) -> CommunityRecipesPage:
        # 전체 탐색 탭: archetype/알레르기 필터 없음 (점수만 표시)
        try:
            profile = normalize_profile(raw_profile)
            page = max(page, 1)
            skip = (page - 1) * limit
            where = {"source": {"$in": ALL_SOURCES}, "status": APPROVED}

            total, rows = await asyncio.gather(
                self.store.count(where),
                self.store.find(where, PRESET_SORT, limit, skip=skip),
            )
            return CommunityRecipesPage(
                success=True,
                recipes=[to_suggested(d, profile, self.placeholder_image) for d in rows],
                total=total,
                # 빈 페이지(limit 0, 범위 밖)는 다음 없음
                hasMore=bool(rows) and skip + len(rows) < total,
            )
        except Exception as e:
            log.exception("[get_all_community_recipes] failed")
            return CommunityRecipesPage(success=False, error=str(e) or "community recipes unavailable")
