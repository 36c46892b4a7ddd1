# lym/api/routes_recipes.py
# 홈 추천 / 전체 레시피 탐색 / 평점

from __future__ import annotations
from typing import Any, Dict
import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from lym.core.deps import get_engine, get_or_set_anon_id, get_rating_service
from lym.db.init import get_db
from lym.db.models.schemas import (
    CommunityRecipesPage,
    PersonalizedRecommendations,
    RatingIn,
    RatingOut,
    RatingResult,
    RecipeRatingsOut,
    SuggestionsResult,
    UserProfileForSuggestions,
)
from lym.db.store import StoreError
from lym.api.routes_prefs import build_suggestion_profile
from lym.services.profile import normalize_profile
from lym.services.ratings import RatingService, RecipeNotFound
from lym.services.suggestions import SuggestionEngine, to_suggested

log = logging.getLogger(__name__)

router = APIRouter(prefix="/recipes", tags=["recipes"])

async def get_user_profile(anon_id: str = Depends(get_or_set_anon_id)) -> UserProfileForSuggestions:
    # 저장된 선호가 없거나 조회 실패면 빈 프로필 (추천은 계속)
    prefs = None
    try:
        prefs = await get_db()["user_preferences"].find_one({"anon_id": anon_id})
    except Exception as e:
        log.warning("preferences lookup failed for %s: %s", anon_id, e)
    return build_suggestion_profile(anon_id, prefs)

def _rating_out(doc: Dict[str, Any]) -> RatingOut:
    return RatingOut(
        id=str(doc.get("_id") or ""),
        recipeId=str(doc.get("recipe_id") or ""),
        score=int(doc.get("score") or 0),
        comment=doc.get("comment"),
        createdAt=doc["created_at"],
    )

@router.get("/suggestions", response_model=SuggestionsResult)
async def suggestions(
    limit: int = Query(6, ge=1, le=24),
    profile: UserProfileForSuggestions = Depends(get_user_profile),
    engine: SuggestionEngine = Depends(get_engine),
):
    """홈 화면 추천 (프리셋 + 커뮤니티 혼합)"""
    return await engine.get_suggestions(profile, limit=limit)

@router.get("/community", response_model=CommunityRecipesPage)
async def community(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    profile: UserProfileForSuggestions = Depends(get_user_profile),
    engine: SuggestionEngine = Depends(get_engine),
):
    """전체 레시피 탭 (페이지네이션)"""
    return await engine.get_all_community_recipes(profile, page=page, limit=limit)

@router.get("/personalized", response_model=PersonalizedRecommendations)
async def personalized(
    anon_id: str = Depends(get_or_set_anon_id),
    profile: UserProfileForSuggestions = Depends(get_user_profile),
    service: RatingService = Depends(get_rating_service),
):
    """내가 4점 이상 준 레시피 기반 선호 태그"""
    try:
        tags, docs = await service.get_personalized_recommendations(anon_id)
    except StoreError as e:
        log.warning("personalized recommendations failed for %s: %s", anon_id, e)
        return PersonalizedRecommendations(success=False, error=str(e))
    suggestion_profile = normalize_profile(profile)
    return PersonalizedRecommendations(
        success=True,
        preferredTags=tags,
        topRatedRecipes=[to_suggested(d, suggestion_profile) for d in docs],
    )

@router.post("/{recipe_id}/ratings", response_model=RatingResult)
async def rate(
    recipe_id: str,
    payload: RatingIn,
    anon_id: str = Depends(get_or_set_anon_id),
    service: RatingService = Depends(get_rating_service),
):
    try:
        rating, average, count = await service.rate_recipe(
            recipe_id, payload.score, comment=payload.comment, user_id=anon_id
        )
    except RecipeNotFound:
        raise HTTPException(status_code=404, detail="레시피를 찾을 수 없습니다.")
    except StoreError as e:
        raise HTTPException(status_code=503, detail=f"DB 저장 오류: {e}")
    return RatingResult(ok=True, rating=_rating_out(rating), averageRating=average, ratingsCount=count)

@router.get("/{recipe_id}/ratings", response_model=RecipeRatingsOut)
async def ratings(
    recipe_id: str,
    service: RatingService = Depends(get_rating_service),
):
    try:
        docs, average, count = await service.get_recipe_ratings(recipe_id)
    except StoreError as e:
        raise HTTPException(status_code=503, detail=f"DB 조회 오류: {e}")
    return RecipeRatingsOut(ok=True, ratings=[_rating_out(d) for d in docs], averageRating=average, count=count)
