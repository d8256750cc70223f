"""
Pulse Widget Platform - Main Application
FastAPI 메인 앱
"""

# 환경변수 로드 (가장 먼저 실행)
from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
import time

from pulse.core.config import settings

# 로깅 설정
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# 보안 모듈 임포트
from pulse.core.security import (
    SecurityHeadersMiddleware,
    RateLimitMiddleware
)
from pulse.data_pipeline.sources import PostSourceError


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    애플리케이션 생명주기 관리

    Startup:
    - 티커 디렉토리 로드
    - 포스트 소스 / 캐시 초기화

    Shutdown:
    - 리소스 정리
    """
    # ============ STARTUP ============
    logger.info(f"🚀 Starting {settings.APP_NAME}...")

    # 티커 디렉토리 (없으면 시작 불가)
    from pulse.services.market.tickers import get_ticker_directory
    directory = get_ticker_directory()
    logger.info(
        f"✅ Ticker directory loaded: {directory.ticker_count} tickers, "
        f"{len(directory.list_categories())} categories"
    )

    from pulse.data_pipeline.sources import get_post_source
    source = get_post_source()
    logger.info(f"✅ Post source: {source.name}")

    from pulse.services.shared.cache import get_cache_client
    cache = get_cache_client()
    if cache.available:
        logger.info("✅ Redis cache available")
    else:
        logger.warning("⚠️ Redis cache unavailable (using in-memory cache)")

    logger.info(f"🎉 {settings.APP_NAME} started successfully!")

    yield

    # ============ SHUTDOWN ============
    logger.info(f"🛑 Shutting down {settings.APP_NAME}...")
    cache.close()
    logger.info(f"👋 {settings.APP_NAME} stopped")


# FastAPI 앱 생성
app = FastAPI(
    title=settings.APP_NAME,
    description="소셜 멘션 속도 기반 금융 위젯 플랫폼",
    version=settings.APP_VERSION,
    lifespan=lifespan
)


# ============================================
# CORS 설정 - 가장 먼저!
# ============================================

ALLOWED_ORIGINS = settings.cors_origins
logger.info(f"🌐 CORS Origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=600,
)

# Rate Limiting 미들웨어
app.add_middleware(
    RateLimitMiddleware,
    max_requests=settings.RATE_LIMIT_REQUESTS,
    window_seconds=settings.RATE_LIMIT_WINDOW,
    enabled=settings.RATE_LIMIT_ENABLED,
)

# 보안 헤더 미들웨어
app.add_middleware(SecurityHeadersMiddleware)


# 요청 로깅 미들웨어
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """요청/응답 로깅"""
    start_time = time.time()

    logger.info(f"📥 {request.method} {request.url.path}")

    try:
        response = await call_next(request)

        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)

        logger.info(
            f"📤 {request.method} {request.url.path} | "
            f"Status: {response.status_code} | "
            f"Time: {process_time:.3f}s"
        )

        return response

    except Exception as e:
        logger.error(f"❌ Request error: {e}", exc_info=True)
        raise


# 에러 핸들러
@app.exception_handler(PostSourceError)
async def post_source_exception_handler(request: Request, exc: PostSourceError):
    """포스트 소스 실패 -> 502"""
    logger.error(f"Post source error: {exc}")

    return JSONResponse(
        status_code=502,
        content={
            "success": False,
            "error": f"Failed to fetch posts: {exc.message}",
            "path": request.url.path
        }
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """전역 에러 핸들러"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal Server Error",
            "message": str(exc),
            "path": request.url.path
        }
    )


# ============================================
# API 라우터 등록
# ============================================
from pulse.api.v1 import widgets, velocity, tickers

app.include_router(
    widgets.router,
    prefix="/api/v1",
    tags=["Widgets"]
)

app.include_router(
    velocity.router,
    prefix="/api/v1",
    tags=["Velocity"]
)

app.include_router(
    tickers.router,
    prefix="/api/v1",
    tags=["Tickers"]
)


# 루트 엔드포인트
@app.get("/", tags=["System"])
async def root():
    """
    루트 엔드포인트

    Returns:
        시스템 정보
    """
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "docs": "/docs",
        "health": "/health"
    }


@app.get("/health", tags=["System"])
async def health():
    """
    헬스체크

    Returns:
        서비스별 상태
    """
    from pulse.services.shared.cache import get_cache_client
    from pulse.data_pipeline.sources import get_post_source
    from pulse.services.market.tickers import get_ticker_directory

    cache_health = get_cache_client().health_check()

    return {
        "status": "healthy" if cache_health["status"] == "healthy" else "degraded",
        "services": {
            "cache": cache_health,
            "post_source": {"status": "healthy", "name": get_post_source().name},
            "tickers": {"status": "healthy", "count": get_ticker_directory().ticker_count},
        }
    }


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Starting server on {settings.APP_HOST}:{settings.APP_PORT}")

    uvicorn.run(
        "pulse.main:app",
        host=settings.APP_HOST,
        port=settings.APP_PORT,
        reload=settings.APP_RELOAD,
        log_level="info"
    )
