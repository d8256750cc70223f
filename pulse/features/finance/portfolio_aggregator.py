"""
Portfolio Aggregator Widget
보유 티커 목록의 속도/시그널 집계
"""

from typing import Dict, Any, List, Optional
import logging

from pulse.features.finance.service import TickerVelocityService, get_velocity_service
from pulse.models.widget import WidgetHandler, WidgetInput, InputType, WidgetParamError
from pulse.services.analysis.velocity import Signal
from pulse.services.market.tickers import normalize_ticker

logger = logging.getLogger(__name__)

MAX_TICKERS = 20


def parse_tickers(raw: Any) -> List[str]:
    """쉼표 구분 티커 목록 (정규화, 중복 제거, 순서 유지)"""
    if isinstance(raw, (list, tuple)):
        items = raw
    else:
        items = str(raw or "").split(",")

    tickers: List[str] = []
    for item in items:
        ticker = normalize_ticker(str(item))
        if ticker and ticker not in tickers:
            tickers.append(ticker)
    return tickers


class PortfolioAggregatorHandler(WidgetHandler):
    """Portfolio Aggregator"""

    widget_id = "portfolio-aggregator"
    name = "Portfolio Aggregator"
    description = "Analyze social velocity across multiple holdings"
    inputs = [WidgetInput(name="tickers", type=InputType.TICKERS, required=True, placeholder="TSLA,NVDA,AAPL")]

    def __init__(self, service: Optional[TickerVelocityService] = None):
        self.service = service or get_velocity_service()

    async def build(self, params: Dict[str, Any]) -> Dict[str, Any]:
        tickers = parse_tickers(params.get("tickers"))
        if not tickers:
            raise WidgetParamError("tickers", "Missing required parameter: tickers")
        if len(tickers) > MAX_TICKERS:
            raise WidgetParamError("tickers", f"At most {MAX_TICKERS} tickers are allowed")

        snapshots = await self.service.snapshots(tickers)
        holdings = [
            {
                "ticker": s.ticker,
                "velocity": round(s.current.velocity, 2),
                "mentions": s.mentions,
                "signal": s.current.signal.value,
                "trend": s.current.trend.value,
            }
            for s in snapshots
        ]

        avg_velocity = sum(s.current.velocity for s in snapshots) / len(snapshots)

        return {
            "tickers": holdings,
            "summary": {
                "count": len(holdings),
                "avg_velocity": round(avg_velocity, 2),
                "total_mentions": sum(s.mentions for s in snapshots),
                "hot": sum(1 for s in snapshots if s.current.signal.is_hot),
                "cold": sum(1 for s in snapshots if s.current.signal == Signal.LOW),
            },
            "generated_at": self.service.now().isoformat(),
        }
