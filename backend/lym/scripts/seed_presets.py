# scripts/seed_presets.py
# 프리셋(ai_preset) 레시피 JSON → recipes 컬렉션 벌크 upsert
# 사용: python -m lym.scripts.seed_presets presets.json
import asyncio
import json
import sys
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import UpdateOne

from lym.core.config import settings
from lym.db.indexes import ensure_recipe_indexes
from lym.db.models.recipe import TARGET_PROFILES
from lym.db.store import RECIPES
from lym.services.profile import parse_list_field

def make_doc(item: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    # 타깃 프로필이 없거나 모르는 값이면 None (스킵)
    target = (item.get("target_profile") or item.get("targetProfile") or "").strip()
    title = (item.get("title") or "").strip()
    if target not in TARGET_PROFILES or not title:
        return None

    ingredients = item.get("ingredients") or ""
    if isinstance(ingredients, list):
        ingredients = ", ".join(str(x) for x in ingredients if x)

    return {
        "title": title,
        "image_url": item.get("image_url") or item.get("imageUrl"),
        "prep_time": int(item.get("prep_time") or item.get("prepTime") or 0),
        "servings": int(item.get("servings") or 1),
        "calories": float(item.get("calories") or 0),
        "ingredients": ingredients,
        # 태그는 JSON 배열 문자열로 저장
        "tags": json.dumps(parse_list_field(item.get("tags")), ensure_ascii=False),
        "source": "ai_preset",
        "target_profile": target,
        "status": "approved",
        "updated_at": datetime.utcnow(),
    }

def build_ops(items: List[Dict[str, Any]]) -> Tuple[List[UpdateOne], List[str]]:
    ops: List[UpdateOne] = []
    skipped: List[str] = []
    for it in items:
        d = make_doc(it)
        if d is None:
            skipped.append(str(it.get("title") or "<untitled>"))
            continue
        ops.append(
            UpdateOne(
                {"title": d["title"], "target_profile": d["target_profile"]},
                {
                    "$set": d,
                    # 최초 생성 시에만 평점/생성일 초기화
                    "$setOnInsert": {
                        "average_rating": 0.0,
                        "ratings_count": 0,
                        "created_at": datetime.utcnow(),
                    },
                },
                upsert=True,
            )
        )
    return ops, skipped

async def main(path: str) -> None:
    with open(path, encoding="utf-8") as f:
        items = json.load(f)

    ops, skipped = build_ops(items)
    for title in skipped:
        print(f"[seed] skip (no/unknown target_profile): {title}")

    cli = AsyncIOMotorClient(settings.MONGO_URI)
    db = cli[settings.MONGO_DB]
    try:
        await ensure_recipe_indexes(db)
        if not ops:
            print("[seed] nothing to write")
            return
        res = await db[RECIPES].bulk_write(ops, ordered=False)
        print(f"[seed] done. matched={res.matched_count} upserted={len(res.upserted_ids or {})} skipped={len(skipped)}")
    finally:
        cli.close()

if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("usage: python -m lym.scripts.seed_presets <presets.json>")
        sys.exit(2)
    asyncio.run(main(sys.argv[1]))
