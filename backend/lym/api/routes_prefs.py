# lym/api/routes_prefs.py
# 사용자 선호/개인정보 관리: 추천 프로필 원본

from __future__ import annotations
from typing import Dict, Any, Optional
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from lym.core.cache import Cache, invalidate, suggestions_pattern
from lym.core.deps import get_cache, get_or_set_anon_id
from lym.db.init import get_db
from lym.db.models.schemas import PreferencesIn, UserProfileForSuggestions
from lym.services.profile import parse_list_field
from lym.services.reco import calc_target_kcal, determine_diet_goal

router = APIRouter(prefix="/preferences", tags=["preferences"])

class PreferencesResponse(BaseModel):
    ok: bool
    anonId: str
    prefs: Optional[Dict[str, Any]] = None
    kcal_target: Optional[int] = None
    diet_goal: Optional[str] = None
    saved: Optional[Dict[str, Any]] = None
    mode: Optional[str] = None

# 저장된 diet_goal → 추천 goal
_GOAL_FROM_DIET_GOAL = {
    "loss": "weight_loss",
    "gain": "muscle_gain",
    "maintain": "maintenance",
}

def normalize_sex_label(sex: str) -> str:
    """성별 라벨 정규화"""
    sex_map = {
        "남성": "male",
        "여성": "female",
        "homme": "male",
        "femme": "female",
        "male": "male",
        "female": "female"
    }
    return sex_map.get(sex.strip().lower(), "male")

def build_prefs_doc(anon_id: str, payload: PreferencesIn) -> Dict[str, Any]:
    """입력 → 저장 문서 (None 필드는 건드리지 않음)"""
    prefs_data: Dict[str, Any] = {
        "anon_id": anon_id,
        "updated_at": datetime.utcnow()
    }

    # 기본 필드들
    simple = {
        "weight_kg": payload.weightKg,
        "target_weight_kg": payload.targetWeightKg,
        "period_days": payload.periodDays,
        "age": payload.age,
        "height_cm": payload.heightCm,
        "activity_level": payload.activityLevel,
        "goal": payload.goal,
        "diet_type": payload.dietType,
        "cooking_time_weekday": payload.cookingTimeWeekday,
        "calorie_target": payload.calorie_target,
    }
    prefs_data.update({k: v for k, v in simple.items() if v is not None})

    if payload.sex:
        prefs_data["sex"] = normalize_sex_label(payload.sex)

    # 배열 필드들: 문자열(JSON)로 와도 배열로 저장
    for key, value in (
        ("allergies", payload.allergies),
        ("intolerances", payload.intolerances),
        ("disliked_foods", payload.dislikedFoods),
    ):
        if value is not None:
            prefs_data[key] = parse_list_field(value)

    # 자동 계산 필드들
    if payload.weightKg and payload.targetWeightKg and payload.periodDays:
        prefs_data["kcal_target"] = calc_target_kcal(
            payload.weightKg,
            payload.targetWeightKg,
            payload.periodDays
        )
        prefs_data["diet_goal"] = determine_diet_goal(payload.weightKg, payload.targetWeightKg)

    return prefs_data

def build_suggestion_profile(anon_id: str, prefs: Optional[Dict[str, Any]]) -> UserProfileForSuggestions:
    """저장된 선호 문서 → 추천 입력 프로필"""
    prefs = prefs or {}
    goal = prefs.get("goal") or _GOAL_FROM_DIET_GOAL.get(prefs.get("diet_goal") or "")
    return UserProfileForSuggestions(
        id=anon_id,
        goal=goal,
        dietType=prefs.get("diet_type"),
        allergies=prefs.get("allergies"),
        intolerances=prefs.get("intolerances"),
        dislikedFoods=prefs.get("disliked_foods"),
        cookingTimeWeekday=prefs.get("cooking_time_weekday"),
        # 사용자가 직접 넣은 값 우선
        dailyCaloriesTarget=prefs.get("calorie_target") or prefs.get("kcal_target"),
    )

@router.get("", response_model=PreferencesResponse)
async def get_preferences(anon_id: str = Depends(get_or_set_anon_id)):
    """사용자 선호/개인정보 조회"""
    try:
        db = get_db()
        prefs = await db["user_preferences"].find_one({"anon_id": anon_id})

        if not prefs:
            return PreferencesResponse(
                ok=True,
                anonId=anon_id,
                prefs={}
            )

        # ObjectId를 문자열로 변환
        prefs["_id"] = str(prefs["_id"])

        return PreferencesResponse(
            ok=True,
            anonId=anon_id,
            prefs=prefs
        )

    except Exception as e:
        raise HTTPException(status_code=503, detail=f"DB 조회 오류: {str(e)}")

@router.post("", response_model=PreferencesResponse)
async def save_preferences(
    payload: PreferencesIn,
    anon_id: str = Depends(get_or_set_anon_id),
    cache: Optional[Cache] = Depends(get_cache),
):
    """사용자 선호/개인정보 저장 (Upsert)"""
    try:
        db = get_db()
        prefs_data = build_prefs_doc(anon_id, payload)

        # Upsert 실행
        result = await db["user_preferences"].update_one(
            {"anon_id": anon_id},
            {
                "$set": prefs_data,
                "$setOnInsert": {"created_at": datetime.utcnow()}
            },
            upsert=True
        )

        # 저장된 데이터 조회
        saved_prefs = await db["user_preferences"].find_one({"anon_id": anon_id})
        saved_prefs["_id"] = str(saved_prefs["_id"])

    except Exception as e:
        raise HTTPException(status_code=503, detail=f"DB 저장 오류: {str(e)}")

    # 프로필이 바뀌었으니 이 사용자 추천 캐시 제거
    await invalidate(cache, suggestions_pattern(anon_id))

    return PreferencesResponse(
        ok=True,
        anonId=anon_id,
        kcal_target=saved_prefs.get("kcal_target"),
        diet_goal=saved_prefs.get("diet_goal"),
        saved=saved_prefs,
        mode="inserted" if result.upserted_id else "upserted"
    )
