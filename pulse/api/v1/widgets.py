"""
Widgets API
위젯 카탈로그 및 위젯 데이터 엔드포인트

응답 형식:
    {"success": true, "data": {...}, "cached": bool, "generated_at": iso}
    X-Cache: HIT | MISS
"""

from datetime import datetime, timezone
from typing import List, Optional
import logging

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from pulse.core.config import settings
from pulse.data_pipeline.sources import PostSourceError
from pulse.features.registry import WidgetRegistry
from pulse.models.widget import WidgetInfo, WidgetParamError
from pulse.services.shared.cache import get_cache_client, widget_cache_key

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/widgets")

CACHE_PREFIX = "widget"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": message,
            "generated_at": datetime.now(timezone.utc).isoformat(),
        },
    )


@router.get("", response_model=List[WidgetInfo])
async def list_widgets(category: Optional[str] = Query(None, description="위젯 카테고리")):
    """
    위젯 카탈로그

    Returns:
        위젯 정보 리스트 (id, name, description, inputs)
    """
    return WidgetRegistry.list_widgets(category)


@router.get("/{category}/{widget}")
async def get_widget_data(category: str, widget: str, request: Request):
    """
    위젯 데이터 조회

    Args:
        category: 위젯 카테고리 (finance)
        widget: 위젯 ID (velocity-tracker 등)

    Returns:
        위젯 데이터 (5분 캐시)
    """
    handler = WidgetRegistry.get_handler(category, widget)
    if handler is None:
        return _error(404, f"Widget not found: {category}/{widget}")

    params = dict(request.query_params)
    cache = get_cache_client()
    cache_key = widget_cache_key(widget, params)

    cached = cache.get(cache_key, prefix=CACHE_PREFIX)
    if cached is not None:
        logger.debug(f"[Widgets] Cache hit: {category}/{widget}")
        return JSONResponse(
            content={
                "success": True,
                "data": cached,
                "cached": True,
                "generated_at": datetime.now(timezone.utc).isoformat(),
            },
            headers={"X-Cache": "HIT"},
        )

    try:
        data = await handler.run(params)
    except WidgetParamError as e:
        return _error(400, e.message)
    except PostSourceError as e:
        logger.error(f"[Widgets] Post source failed for {category}/{widget}: {e}")
        return _error(502, f"Failed to fetch posts: {e.message}")

    cache.set(cache_key, data, prefix=CACHE_PREFIX, ttl=settings.WIDGET_CACHE_TTL)

    return JSONResponse(
        content={
            "success": True,
            "data": data,
            "cached": False,
            "generated_at": datetime.now(timezone.utc).isoformat(),
        },
        headers={"X-Cache": "MISS"},
    )
