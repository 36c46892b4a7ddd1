# lym/main.py
# FastAPI 앱 초기화 및 라우터 설정
# 라우터는 각 기능별로 분리하여 관리

from __future__ import annotations

from asyncio import sleep
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lym.api.routes_prefs import router as prefs_router       # 사용자 입력/저장/조회
from lym.api.routes_recipes import router as recipes_router   # 추천/탐색/평점
from lym.core.cache import build_cache
from lym.core.config import settings
from lym.core.deps import get_cache, set_cache

# DB 초기화/인덱스
# init_db/close_db: 앱 시작/종료 시 커넥션 생성/정리
# get_db: 런타임에 DB 핸들 얻기
from lym.db.init import get_db, init_db, close_db
from lym.db.indexes import ensure_indexes

app = FastAPI(title="LYM Recipes - API", version="0.1.0")

# CORS: 프론트 localhost:3000 허용 + 쿠키 전달
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 앱 시작/종료 이벤트 핸들러
@app.on_event("startup")
async def on_startup() -> None:
    # 0) 캐시 (redis 없으면 메모리)
    set_cache(build_cache(settings.REDIS_URL))
    print(f"[startup] cache ready ({'redis' if settings.REDIS_URL else 'memory'})")

    # 1) DB 먼저 붙는다 (최대 20회, 1초 간격)
    db = None
    for i in range(20):
        try:
            db = await init_db()
            print("[startup] db ready")
            break
        except Exception as e:
            print(f"[startup] db init retry {i+1}: {e}")
            await sleep(1.0)
    if db is None:
        print("[startup] db init failed after retries")
        return

    # 2) 인덱스 보장
    try:
        await ensure_indexes()
        print("[startup] indexes ensured")
    except Exception as e:
        print(f"[startup] ensure_indexes failed: {e}")

@app.on_event("shutdown")
async def on_shutdown() -> None:
    # 몽고db/캐시 커넥션 정리
    await close_db()
    cache = get_cache()
    if cache is not None:
        try:
            await cache.close()
        except Exception as e:
            print(f"[shutdown] cache close failed: {e}")
    set_cache(None)

@app.get("/")
async def root():
    return {"status": "ok"}

@app.get("/health")
async def health():
    # 간단한 헬스체크 + MongoDB ping
    ok = {"status": "ok", "db": "skip"}
    try:
        db = get_db()
        await db.command("ping")
        ok["db"] = "ok"
    except Exception as e:
        ok["db"] = f"error: {e}"
    return ok

# 라우터 prefix는 각 파일 내에서 정의함 , 중복 prefix 금지
app.include_router(prefs_router)
app.include_router(recipes_router)
