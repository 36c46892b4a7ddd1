# 공용 의존성/헬퍼 (익명 사용자 쿠키 발급, 추천 엔진/캐시 핸들)
import uuid
from typing import Optional

from fastapi import Request, Response

from lym.core.cache import Cache
from lym.db.store import RatingStore, RecipeStore
from lym.services.ratings import RatingService
from lym.services.suggestions import SuggestionEngine

COOKIE = "anon_id"
MAX_AGE = 60 * 60 * 24 * 365 * 2  # 2년

_cache: Optional[Cache] = None

def get_or_set_anon_id(request: Request, response: Response) -> str:
    # 쿠키 없으면 발급, 있으면 그대로 사용
    v = request.cookies.get(COOKIE)
    if not v:
        v = uuid.uuid4().hex
        response.set_cookie(COOKIE, v, max_age=MAX_AGE, httponly=True, samesite="lax")
    return v

def set_cache(cache: Optional[Cache]) -> None:
    # 앱 시작 시 1회 주입 (main.on_startup)
    global _cache
    _cache = cache

def get_cache() -> Optional[Cache]:
    return _cache

def get_engine() -> SuggestionEngine:
    # DB 핸들은 조회 시점에 (미연결이어도 실패 결과로 응답)
    return SuggestionEngine(RecipeStore(), cache=_cache)

def get_rating_service() -> RatingService:
    return RatingService(RecipeStore(), RatingStore(), cache=_cache)
