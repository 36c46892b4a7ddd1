# lym/db/models/schemas.py
# Pydantic 모델 정의
# PreferencesIn: 개인정보/목표 입력 (유연 필드, 대부분 optional)
# UserProfileForSuggestions: 추천 엔진 입력 (목록 필드는 JSON 문자열/배열 모두 허용)
# SuggestedRecipe: 프론트 카드 스키마
from __future__ import annotations
from typing import List, Optional, Union
from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime

from lym.db.models.recipe import RecipeSource

ListField = Union[str, List[str], None]

# # 추천 입력 프로필: 요청마다 새로 만들고 점수 계산 후 버린다
class UserProfileForSuggestions(BaseModel):
    id: Optional[str] = None               # 캐시 키 용도로만 사용
    goal: Optional[str] = None
    dietType: Optional[str] = None
    allergies: ListField = None
    intolerances: ListField = None
    dislikedFoods: ListField = None
    cookingTimeWeekday: Optional[int] = None
    dailyCaloriesTarget: Optional[int] = None

# # 프론트 카드 타입 (배열로 반환)
class SuggestedRecipe(BaseModel):
    # 프론트 필드명/타입과 완전 일치
    id: str
    name: str
    imageUrl: str
    prepTime: int = 0
    servings: int = 1
    calories: int = 0
    tags: List[str] = Field(default_factory=list)
    matchScore: int = 0
    source: RecipeSource
    authorName: Optional[str] = None
    averageRating: float = 0.0
    ratingsCount: int = 0

class SuggestionsResult(BaseModel):
    success: bool
    recipes: List[SuggestedRecipe] = Field(default_factory=list)
    error: Optional[str] = None

class CommunityRecipesPage(BaseModel):
    success: bool
    recipes: List[SuggestedRecipe] = Field(default_factory=list)
    total: int = 0
    hasMore: bool = False
    error: Optional[str] = None

# # 평점 입력/출력
class RatingIn(BaseModel):
    score: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=1000)

class RatingOut(BaseModel):
    id: str
    recipeId: str
    score: int
    comment: Optional[str] = None
    createdAt: datetime

class RatingResult(BaseModel):
    ok: bool
    rating: RatingOut
    averageRating: float
    ratingsCount: int

class RecipeRatingsOut(BaseModel):
    ok: bool
    ratings: List[RatingOut] = Field(default_factory=list)
    averageRating: float = 0.0
    count: int = 0

# # 내 평점 기반 개인화 (선호 태그 + 높게 평가한 레시피)
class PersonalizedRecommendations(BaseModel):
    success: bool
    preferredTags: List[str] = Field(default_factory=list)
    topRatedRecipes: List[SuggestedRecipe] = Field(default_factory=list)
    error: Optional[str] = None

# # 개인정보/목표 입력: 프론트 폼 대응 (optional로 두어 폼 확장 여지)
class PreferencesIn(BaseModel):
    # ▼ 프론트는 camelCase로 보내므로 alias 허용 (특히 calorieTarget)
    model_config = ConfigDict(populate_by_name=True)

    # 신체/목표
    weightKg: Optional[float] = None
    targetWeightKg: Optional[float] = None
    periodDays: Optional[int] = None

    # 추천용 프로필
    goal: Optional[str] = None                 # "weight_loss" | "muscle_gain" | "maintenance" ...
    dietType: Optional[str] = None             # "omnivore" | "vegetarian" | "vegan" ...
    allergies: ListField = None
    intolerances: ListField = None
    dislikedFoods: ListField = None
    cookingTimeWeekday: Optional[int] = Field(default=None, ge=0)

    # 추가 정보
    age: Optional[int] = None
    heightCm: Optional[float] = None
    sex: Optional[str] = None                  # "male" | "female" 등
    activityLevel: Optional[str] = None        # "low" | "mid" | "high"

    # 프론트 calorieTarget(camel)로 보내면 calorie_target에 매핑
    calorie_target: Optional[int] = Field(default=None, alias="calorieTarget")
