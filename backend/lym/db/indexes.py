# 컬렉션 인덱스 생성
# 앱 스타트업에서 한 번 ensure_indexes()를 await로 호출한다.

from lym.db.init import get_db
from lym.db.store import RATINGS, RECIPES

# 추천 후보 조회(프리셋/커뮤니티) 정렬 순서와 맞춘 복합 인덱스
async def ensure_recipe_indexes(db):
    col = db[RECIPES]
    await col.create_index(
        [("source", 1), ("status", 1), ("target_profile", 1),
         ("average_rating", -1), ("created_at", -1)],
        name="preset_pool",
    )
    await col.create_index(
        [("source", 1), ("status", 1),
         ("average_rating", -1), ("ratings_count", -1), ("created_at", -1)],
        name="community_pool",
    )
    await col.create_index([("title", 1), ("target_profile", 1)])

async def ensure_indexes():
    db = get_db()

    # 사용자 선호 저장 컬렉션
    await db["user_preferences"].create_index("anon_id", unique=True)

    await ensure_recipe_indexes(db)

    # 평점: 레시피별 최신순
    await db[RATINGS].create_index([("recipe_id", 1), ("created_at", -1)])
    # 사용자별 고평점 (개인화 추천)
    await db[RATINGS].create_index([("user_id", 1), ("score", -1), ("created_at", -1)])
