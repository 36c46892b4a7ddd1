# lym/db/store.py
# 레시피/평점 저장소: motor 컬렉션 위 얇은 래퍼
# 추천 엔진은 find/count(필터, 정렬, limit/skip) 계약에만 의존한다.

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from lym.db.init import get_db

RECIPES = "recipes"
RATINGS = "recipe_ratings"

Sort = Sequence[Tuple[str, int]]


class StoreError(RuntimeError):
    """DB 조회/저장 실패 (연결 끊김, 쿼리 오류 등)."""


class _Collection:
    # db 를 안 넘기면 호출 시점에 전역 핸들을 찾는다 (미초기화 → StoreError)
    name = ""

    def __init__(self, db: Optional[AsyncIOMotorDatabase] = None) -> None:
        self._db = db

    @property
    def col(self) -> AsyncIOMotorCollection:
        db = self._db
        if db is None:
            try:
                db = get_db()
            except RuntimeError as e:
                raise StoreError(str(e)) from e
        return db[self.name]


def _oid(value: str) -> Any:
    # ObjectId 형식이 아니면 문자열 id 그대로 사용
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return value


class RecipeStore(_Collection):
    name = RECIPES

    async def find(
        self,
        filter: Dict[str, Any],
        sort: Sort,
        limit: int,
        skip: int = 0,
    ) -> List[Dict[str, Any]]:
        if limit <= 0:
            return []
        try:
            cursor = self.col.find(filter).sort(list(sort)).skip(skip).limit(limit)
            return await cursor.to_list(length=limit)
        except PyMongoError as e:
            raise StoreError(f"recipe query failed: {e}") from e

    async def count(self, filter: Dict[str, Any]) -> int:
        try:
            return await self.col.count_documents(filter)
        except PyMongoError as e:
            raise StoreError(f"recipe count failed: {e}") from e

    async def get(self, recipe_id: str) -> Optional[Dict[str, Any]]:
        try:
            return await self.col.find_one({"_id": _oid(recipe_id)})
        except PyMongoError as e:
            raise StoreError(f"recipe lookup failed: {e}") from e

    async def set_rating_stats(self, recipe_id: str, average: float, count: int) -> None:
        try:
            await self.col.update_one(
                {"_id": _oid(recipe_id)},
                {"$set": {
                    "average_rating": average,
                    "ratings_count": count,
                    "updated_at": datetime.utcnow(),
                }},
            )
        except PyMongoError as e:
            raise StoreError(f"recipe update failed: {e}") from e


class RatingStore(_Collection):
    name = RATINGS

    async def add(
        self,
        recipe_id: str,
        score: int,
        comment: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        doc = {
            "recipe_id": recipe_id,
            "score": score,
            "comment": comment,
            "user_id": user_id,
            "created_at": datetime.utcnow(),
        }
        try:
            res = await self.col.insert_one(doc)
        except PyMongoError as e:
            raise StoreError(f"rating insert failed: {e}") from e
        doc["_id"] = res.inserted_id
        return doc

    async def list_for_recipe(self, recipe_id: str) -> List[Dict[str, Any]]:
        try:
            cursor = self.col.find({"recipe_id": recipe_id}).sort([("created_at", -1)])
            return await cursor.to_list(length=None)
        except PyMongoError as e:
            raise StoreError(f"rating query failed: {e}") from e

    async def list_for_user(self, user_id: str, min_score: int = 1, limit: int = 20) -> List[Dict[str, Any]]:
        # 높은 점수 우선, 같은 점수면 최신순
        try:
            cursor = (
                self.col.find({"user_id": user_id, "score": {"$gte": min_score}})
                .sort([("score", -1), ("created_at", -1)])
                .limit(limit)
            )
            return await cursor.to_list(length=limit)
        except PyMongoError as e:
            raise StoreError(f"rating query failed: {e}") from e
