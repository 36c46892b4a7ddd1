# 추천 점수/칼로리 타깃 계산
from typing import Any, Dict, Iterable

from lym.services.profile import SuggestionProfile

BASE_SCORE = 70
MEALS_PER_DAY = 3

def calc_target_kcal(weight_kg: float, target_weight_kg: float, days: int, activity: float = 1.35) -> int:
    # 매우 단순한 일일 타깃 계산 (MVP)
    maint = 22 * weight_kg * activity
    deficit = ((weight_kg - target_weight_kg) * 7700) / max(days, 1)  # 1kg ≈ 7700 kcal
    deficit = max(300, min(deficit, 1000))  # 안전 범위 클램프
    return int(max(900, maint - deficit))

def determine_diet_goal(weight_kg: float, target_weight_kg: float) -> str:
    if target_weight_kg < weight_kg:
        return "loss"
    if target_weight_kg > weight_kg:
        return "gain"
    return "maintain"

def _contains_any(text: str, terms: Iterable[str]) -> bool:
    # 부분문자열 매칭 ("noix" 는 "noix de coco" 에도 걸림: 의도된 근사)
    return any(t in text for t in terms)

def score_recipe(recipe: Dict[str, Any], profile: SuggestionProfile) -> int:
    """
    가산식 휴리스틱, 기본 70 → [0, 100] 클램프.
      칼로리(끼니당 = 일일/3): 오차 ≤20% +15, ≤40% +5 / 타깃 없음 +10
      조리시간: 평일 허용시간 이내 +5, 초과 -10
      알레르기/불내증: 재료에 포함 -30, 안전 +10
      싫어하는 음식 포함 -20
    """
    score = BASE_SCORE
    calories = float(recipe.get("calories") or 0)
    prep_time = int(recipe.get("prep_time") or 0)
    ingredients = str(recipe.get("ingredients") or "").lower()

    if profile.daily_calories_target:
        per_meal = profile.daily_calories_target / MEALS_PER_DAY
        variance = abs(calories - per_meal) / per_meal
        if variance <= 0.2:
            score += 15
        elif variance <= 0.4:
            score += 5
    else:
        score += 10

    if profile.cooking_time_weekday:
        if prep_time <= profile.cooking_time_weekday:
            score += 5
        else:
            score -= 10

    exclude = profile.exclude_terms
    if exclude:
        if _contains_any(ingredients, exclude):
            score -= 30
        else:
            score += 10

    disliked = profile.disliked_terms
    if disliked and _contains_any(ingredients, disliked):
        score -= 20

    return min(100, max(0, int(score)))

def is_safe(recipe: Dict[str, Any], exclude_terms: Iterable[str]) -> bool:
    terms = list(exclude_terms)
    if not terms:
        return True
    return not _contains_any(str(recipe.get("ingredients") or "").lower(), terms)
