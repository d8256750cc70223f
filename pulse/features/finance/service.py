"""
Ticker Velocity Service
티커별 포스트 조회 -> 베이스라인 계산 -> 현재 속도 스냅샷

모든 finance 위젯이 공유하는 계산 경로.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Any

from pulse.data_pipeline.sources import PostSource, get_post_source
from pulse.services.analysis.velocity import (
    BaselineVelocityEngine,
    HourlyBaselines,
    HourlyPoint,
    VelocityResult,
    get_velocity_engine,
)
from pulse.models.widget import WidgetParamError
from pulse.services.market.tickers import (
    TickerDirectory,
    get_ticker_directory,
    is_valid_ticker,
    normalize_ticker,
)

logger = logging.getLogger(__name__)


@dataclass
class TickerSnapshot:
    """티커 속도 스냅샷"""
    ticker: str
    baselines: HourlyBaselines
    series: List[HourlyPoint]
    current: VelocityResult
    baseline_ratio: float
    generated_at: datetime

    @property
    def mentions(self) -> int:
        """오늘 현재 시각까지의 멘션 수"""
        return sum(point.actual for point in self.series)

    @property
    def hourly_velocity(self) -> List[float]:
        return [round(point.velocity, 2) for point in self.series]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ticker": self.ticker,
            "current": self.current.to_dict(),
            "baseline_ratio": round(self.baseline_ratio, 2),
            "mentions": self.mentions,
            "hourly_data": [point.to_dict() for point in self.series],
            "weekdays_observed": self.baselines.weekdays_observed,
            "generated_at": self.generated_at.isoformat(),
        }


class TickerVelocityService:
    """티커 속도 서비스"""

    def __init__(
        self,
        source: Optional[PostSource] = None,
        directory: Optional[TickerDirectory] = None,
        engine: Optional[BaselineVelocityEngine] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.source = source or get_post_source()
        self.directory = directory or get_ticker_directory()
        self.engine = engine or get_velocity_engine()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def now(self) -> datetime:
        return self._clock()

    async def snapshot(self, ticker: str) -> TickerSnapshot:
        """
        티커 스냅샷 생성

        Args:
            ticker: 티커 심볼 ($, # 허용)

        Returns:
            TickerSnapshot (0시 ~ 현재 UTC 시의 시계열 포함)

        Raises:
            WidgetParamError: 잘못된 티커 형식
            PostSourceError: 포스트 소스 실패
        """
        symbol = normalize_ticker(ticker)
        if not is_valid_ticker(symbol):
            raise WidgetParamError("ticker", f"Invalid ticker: {ticker}")
        now = self.now()

        posts = await self.source.run(symbol)
        baselines = self.engine.compute_hourly_baselines(posts, len(posts), now=now)
        current = self.engine.velocity_at_hour(baselines, now=now)
        series = self.engine.hourly_series(baselines, current.hour)

        return TickerSnapshot(
            ticker=symbol,
            baselines=baselines,
            series=series,
            current=current,
            baseline_ratio=current.actual / max(current.baseline, 1),
            generated_at=now,
        )

    async def snapshots(self, tickers: List[str]) -> List[TickerSnapshot]:
        """여러 티커 스냅샷 (동시 조회, 입력 순서 유지)"""
        return list(await asyncio.gather(*(self.snapshot(t) for t in tickers)))


_service: Optional[TickerVelocityService] = None


def get_velocity_service() -> TickerVelocityService:
    """싱글톤 속도 서비스"""
    global _service
    if _service is None:
        _service = TickerVelocityService()
    return _service


def set_velocity_service(service: Optional[TickerVelocityService]):
    """서비스 교체 (테스트용, None이면 초기화)"""
    global _service
    _service = service
