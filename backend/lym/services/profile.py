# lym/services/profile.py
# 추천용 프로필 정규화/분류
# - allergies/intolerances/dislikedFoods: JSON 문자열 또는 배열 → 문자열 목록 (경계에서 1회)
# - 대소문자 변환은 비교 시점에 (exclude_terms/disliked_terms)
# - 목표/식단/조리시간 → 프리셋 타깃 프로필(archetype) 1개

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from lym.db.models.schemas import UserProfileForSuggestions

log = logging.getLogger(__name__)

EXPRESS_MAX_MINUTES = 20

def parse_list_field(value: Any) -> List[str]:
    """
    JSON 배열 문자열 또는 배열을 문자열 목록으로.

    실패하지 않는다: None/빈 문자열/JSON 오류/배열 아님 → [] (경고 로그만).
    항목은 그대로 복사한다 (공백 제거/중복 제거 없음, 비교는 원문 부분일치).
    """
    if value is None:
        return []

    items: Any = value
    if isinstance(value, str):
        if not value.strip():
            return []
        try:
            items = json.loads(value)
        except ValueError:
            log.warning("list field is not valid JSON, ignored: %r", value[:80])
            return []

    if not isinstance(items, (list, tuple)):
        log.warning("list field is not an array, ignored: %r", type(items).__name__)
        return []

    # None 만 건너뛰고 나머지는 문자열로
    return [x if isinstance(x, str) else str(x) for x in items if x is not None]


@dataclass(frozen=True)
class SuggestionProfile:
    """정규화된 프로필. 엔진 내부에서는 이것만 쓴다."""

    user_id: Optional[str] = None
    goal: Optional[str] = None
    diet_type: Optional[str] = None
    allergies: Tuple[str, ...] = ()
    intolerances: Tuple[str, ...] = ()
    disliked_foods: Tuple[str, ...] = ()
    cooking_time_weekday: Optional[int] = None
    daily_calories_target: Optional[int] = None

    @property
    def exclude_terms(self) -> List[str]:
        # 알레르기 + 불내증 합집합 (소문자)
        return [t.lower() for t in (*self.allergies, *self.intolerances)]

    @property
    def disliked_terms(self) -> List[str]:
        return [t.lower() for t in self.disliked_foods]


def normalize_profile(raw: Optional[UserProfileForSuggestions]) -> SuggestionProfile:
    if raw is None:
        return SuggestionProfile()
    return SuggestionProfile(
        user_id=raw.id,
        goal=raw.goal,
        diet_type=raw.dietType,
        allergies=tuple(parse_list_field(raw.allergies)),
        intolerances=tuple(parse_list_field(raw.intolerances)),
        disliked_foods=tuple(parse_list_field(raw.dislikedFoods)),
        cooking_time_weekday=raw.cookingTimeWeekday,
        daily_calories_target=raw.dailyCaloriesTarget,
    )


def classify(profile: SuggestionProfile) -> str:
    """
    우선순위: 식단 > 목표 > 평일 조리시간 > 기본(maintenance).
    'family' 는 데이터 태깅으로만 존재하고 여기서는 나오지 않는다.
    """
    diet = (profile.diet_type or "").lower()
    if "vegetar" in diet or "vegan" in diet:
        return "vegetarian"

    goal = (profile.goal or "").lower()
    if any(k in goal for k in ("weight_loss", "perte", "perdre")):
        return "weight_loss"
    if any(k in goal for k in ("muscle", "gain", "prise")):
        return "muscle_gain"

    # 0/None 은 "입력 없음"
    if profile.cooking_time_weekday and profile.cooking_time_weekday <= EXPRESS_MAX_MINUTES:
        return "express"

    return "maintenance"
