"""
Velocity API - Production Grade v1.0
베이스라인 속도 엔진 직접 호출 엔드포인트

Features:
- 원시 포스트 -> 시간대별 베이스라인 / 오늘 프로파일
- 특정 시간대 VelocityResult
- 두 속도 공식 비교

Author: Pulse Widget Team
"""

from fastapi import APIRouter
from pydantic import BaseModel, Field
from typing import List, Dict, Any, Optional, Union
import logging

from pulse.services.analysis.velocity import (
    calculate_velocity,
    calculate_velocity_metrics,
    describe_velocity,
    get_velocity_engine,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/velocity")


# ============================================================
# Request Models
# ============================================================

class BaselineRequest(BaseModel):
    """베이스라인 계산 요청"""
    posts: List[Dict[str, Any]] = Field(default_factory=list, description="원시 포스트 (timestamp/createdAt 등 포함)")
    total_count: Optional[int] = Field(None, ge=0, description="폴백 분자 (기본값: 포스트 수)")
    hour: Optional[int] = Field(None, ge=0, le=23, description="VelocityResult 시간대 (기본값: 현재 UTC 시)")

    class Config:
        json_schema_extra = {
            "example": {
                "posts": [
                    {"id": "1", "createdAt": "2026-10-06T14:05:00Z"},
                    {"id": "2", "createdAt": "2026-10-13T14:30:00Z"},
                ],
                "hour": 14,
            }
        }


class ScoreRequest(BaseModel):
    """속도 점수 요청"""
    actual: Union[int, float] = Field(..., ge=0, description="실제 카운트")
    baseline: Union[int, float] = Field(..., ge=0, description="기대 카운트")
    historical: Optional[List[Union[int, float]]] = Field(None, description="트렌드용 시간순 카운트")


# ============================================================
# Endpoints
# ============================================================

@router.post("/baselines")
async def compute_baselines(request: BaselineRequest):
    """
    시간대별 베이스라인 계산

    Returns:
        today / baseline 프로파일, 관측 평일 수, 제외된 레코드 수, VelocityResult
    """
    engine = get_velocity_engine()
    baselines = engine.compute_hourly_baselines(request.posts, request.total_count)
    result = engine.velocity_at_hour(baselines, request.hour)

    logger.info(
        f"[VelocityAPI] {len(request.posts)} posts -> "
        f"{baselines.weekdays_observed} weekdays, dropped={baselines.dropped_count}"
    )

    return {
        **baselines.to_dict(),
        "velocity": result.to_dict(),
    }


@router.post("/score")
async def score_velocity(request: ScoreRequest):
    """
    두 속도 공식 비교

    - velocity: clamp(2.5 + ratio x 2.5)
    - metrics: clamp(ratio x 5) + signal / trend
    """
    velocity = calculate_velocity(request.actual, request.baseline)
    metrics = calculate_velocity_metrics(request.actual, request.baseline, request.historical)

    return {
        "velocity": round(velocity, 3),
        "description": describe_velocity(velocity),
        "metrics": metrics.to_dict(),
    }
