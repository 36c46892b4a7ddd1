# 레시피 저장 스키마 (recipes 컬렉션)
from pydantic import BaseModel, Field
from typing import List, Literal, Optional, Union
from datetime import datetime

TargetProfile = Literal["weight_loss", "muscle_gain", "vegetarian", "express", "family", "maintenance"]
RecipeSource = Literal["ai_preset", "youtube", "community"]
RecipeStatus = Literal["pending", "approved", "rejected"]

TARGET_PROFILES = ("weight_loss", "muscle_gain", "vegetarian", "express", "family", "maintenance")

class Author(BaseModel):
    name: Optional[str] = None

class RecipeDoc(BaseModel):
    title: str
    image_url: Optional[str] = None
    prep_time: int = 0
    servings: int = 1
    calories: float = 0
    ingredients: str = ""                  # 자유 텍스트 (알레르기 부분문자열 매칭용)
    tags: Union[str, List[str]] = "[]"     # JSON 배열 문자열로 저장
    source: RecipeSource = "community"
    target_profile: Optional[TargetProfile] = None   # ai_preset 만 의미 있음
    status: RecipeStatus = "pending"
    average_rating: float = 0.0
    ratings_count: int = 0
    author: Optional[Author] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
