"""
Correlation Radar Widget
티커와 카테고리 피어 간 시간대별 속도 상관관계
"""

import math
from typing import Dict, Any, Optional, Sequence
import logging

from pulse.features.finance.service import TickerVelocityService, get_velocity_service
from pulse.models.widget import WidgetHandler, WidgetInput, InputType

logger = logging.getLogger(__name__)

STRONG_CORRELATION = 0.7
MODERATE_CORRELATION = 0.4


def pearson(xs: Sequence[float], ys: Sequence[float]) -> float:
    """
    피어슨 상관계수

    길이가 다르면 뒤쪽(최근) 기준으로 맞춤.
    2개 미만이거나 분산이 0인 시계열은 0.0
    """
    n = min(len(xs), len(ys))
    if n < 2:
        return 0.0

    xs, ys = list(xs)[-n:], list(ys)[-n:]
    mean_x = sum(xs) / n
    mean_y = sum(ys) / n

    cov = sum((x - mean_x) * (y - mean_y) for x, y in zip(xs, ys))
    var_x = sum((x - mean_x) ** 2 for x in xs)
    var_y = sum((y - mean_y) ** 2 for y in ys)

    if var_x == 0 or var_y == 0:
        return 0.0

    return cov / math.sqrt(var_x * var_y)


def correlation_strength(value: float) -> str:
    magnitude = abs(value)
    if magnitude >= STRONG_CORRELATION:
        return "strong"
    if magnitude >= MODERATE_CORRELATION:
        return "moderate"
    return "weak"


class CorrelationRadarHandler(WidgetHandler):
    """Correlation Radar"""

    widget_id = "correlation-radar"
    name = "Correlation Radar"
    description = "Find assets whose social velocity moves together"
    inputs = [WidgetInput(name="ticker", type=InputType.TICKER, required=True, placeholder="BTC")]

    def __init__(self, service: Optional[TickerVelocityService] = None):
        self.service = service or get_velocity_service()

    async def build(self, params: Dict[str, Any]) -> Dict[str, Any]:
        snapshot = await self.service.snapshot(params["ticker"])
        peers = self.service.directory.get_peers(snapshot.ticker)
        peer_snapshots = await self.service.snapshots(peers)

        base_series = [p.velocity for p in snapshot.series]
        correlations = []

        for peer in peer_snapshots:
            value = pearson(base_series, [p.velocity for p in peer.series])
            correlations.append({
                "ticker": peer.ticker,
                "correlation": round(value, 3),
                "strength": correlation_strength(value),
                "velocity": round(peer.current.velocity, 2),
            })

        correlations.sort(key=lambda c: c["correlation"], reverse=True)

        return {
            "ticker": snapshot.ticker,
            "category": self.service.directory.get_category(snapshot.ticker) or "Unknown",
            "correlations": correlations,
            "generated_at": snapshot.generated_at.isoformat(),
        }
