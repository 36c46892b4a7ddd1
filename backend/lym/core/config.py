# 환경변수 로딩 (.env)
from typing import List, Optional

from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    MONGO_URI: str = "mongodb://localhost:27017"  # 필요 시 prod/staging로 분리
    MONGO_DB: str = "lym"

    # 없으면 프로세스 메모리 캐시로 동작
    REDIS_URL: Optional[str] = None

    # 추천 결과 캐시 (초)
    SUGGESTIONS_CACHE_TTL: int = 60 * 60
    SUGGESTIONS_LIMIT: int = 6
    COMMUNITY_PAGE_SIZE: int = 20
    PLACEHOLDER_IMAGE_URL: str = "/placeholder-recipe.jpg"

    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    class Config:
        env_file = ".env"

settings = Settings()
