"""
Pytest Configuration and Fixtures
pulse 테스트 공통 설정

Features:
- 테스트 환경 변수 설정
- 고정 시각 / 포스트 생성 fixture
- 정적 포스트 소스, 속도 서비스 fixture
- 싱글톤 초기화
"""

import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional

import pytest

ROOT = Path(__file__).resolve().parent.parent

# pulse.core.config 로드 전에 설정
os.environ.setdefault("TICKER_CONFIG_PATH", str(ROOT / "configs" / "tickers.yaml"))
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["POST_SOURCE"] = "synthetic"
os.environ.pop("REDIS_URL", None)


# 2026-10-13은 화요일
FIXED_NOW = datetime(2026, 10, 13, 15, 20, tzinfo=timezone.utc)


def make_posts(day: datetime, hour: int, count: int, prefix: str = "p") -> List[Dict]:
    """day의 hour시에 count개의 원시 포스트 생성"""
    start = datetime(day.year, day.month, day.day, hour, tzinfo=timezone.utc)
    return [
        {
            "id": f"{prefix}-{start:%Y%m%d%H}-{i}",
            "createdAt": (start + timedelta(minutes=i % 60)).isoformat().replace("+00:00", "Z"),
        }
        for i in range(count)
    ]


class StaticPostSource:
    """티커 -> 포스트 고정 매핑 소스 (테스트용)"""

    name = "static"

    def __init__(self, posts_by_ticker: Optional[Dict[str, list]] = None, default: Optional[list] = None):
        self.posts_by_ticker = posts_by_ticker or {}
        self.default = default or []
        self.calls: List[str] = []

    async def run(self, ticker: str):
        from pulse.data_pipeline.domain.models import PostRecord

        self.calls.append(ticker)
        raw = self.posts_by_ticker.get(ticker, self.default)
        return [PostRecord.from_raw(r) for r in raw]


# ============================================================
# Time Fixtures
# ============================================================

@pytest.fixture
def fixed_now() -> datetime:
    """고정 기준 시각 (화요일 15:20 UTC)"""
    return FIXED_NOW


@pytest.fixture
def post_factory():
    """원시 포스트 생성 함수"""
    return make_posts


@pytest.fixture
def three_tuesday_posts() -> List[Dict]:
    """
    직전 화요일 3번 14시에 각 10건, 오늘 14시에 25건

    기대값: baseline[14]=10, today[14]=25, velocity 8.75, VERY_HIGH
    """
    posts = []
    for weeks_ago in (1, 2, 3):
        posts += make_posts(FIXED_NOW - timedelta(weeks=weeks_ago), 14, 10, prefix=f"w{weeks_ago}")
    posts += make_posts(FIXED_NOW, 14, 25, prefix="today")
    return posts


# ============================================================
# Service Fixtures
# ============================================================

@pytest.fixture
def ticker_directory():
    """설정 파일 기반 티커 디렉토리"""
    from pulse.services.market.tickers import TickerDirectory
    return TickerDirectory.from_yaml(str(ROOT / "configs" / "tickers.yaml"))


@pytest.fixture
def static_source(three_tuesday_posts) -> StaticPostSource:
    """모든 티커에 3-화요일 데이터를 반환하는 소스"""
    return StaticPostSource(default=three_tuesday_posts)


@pytest.fixture
def velocity_service(static_source, ticker_directory):
    """고정 시각 / 정적 소스 속도 서비스"""
    from pulse.features.finance.service import TickerVelocityService
    from pulse.services.analysis.velocity import BaselineVelocityEngine

    return TickerVelocityService(
        source=static_source,
        directory=ticker_directory,
        engine=BaselineVelocityEngine(),
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def service_factory(ticker_directory):
    """포스트 매핑으로 속도 서비스 생성"""
    from pulse.features.finance.service import TickerVelocityService

    def factory(posts_by_ticker=None, default=None, source=None):
        return TickerVelocityService(
            source=source or StaticPostSource(posts_by_ticker, default),
            directory=ticker_directory,
            clock=lambda: FIXED_NOW,
        )

    return factory


@pytest.fixture(autouse=True)
def reset_singletons():
    """테스트 간 싱글톤 초기화"""
    from pulse.data_pipeline.sources import set_post_source
    from pulse.features.finance.service import set_velocity_service
    from pulse.services.shared.cache import CacheClient

    CacheClient.reset()
    set_post_source(None)
    set_velocity_service(None)
    yield
    CacheClient.reset()
    set_post_source(None)
    set_velocity_service(None)
