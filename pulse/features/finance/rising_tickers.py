"""
Rising Tickers Widget
직전 3시간 평균 대비 속도가 상승 중인 티커
"""

from typing import Dict, Any, List, Optional
import logging

from pulse.features.finance.service import TickerSnapshot, TickerVelocityService, get_velocity_service
from pulse.models.widget import WidgetHandler, WidgetInput, InputType, WidgetParamError

logger = logging.getLogger(__name__)

COMPARISON_HOURS = 3
TOP_N = 10


def velocity_change(snapshot: TickerSnapshot) -> Optional[float]:
    """
    현재 속도의 직전 3시간 평균 대비 변화율 (%)

    Returns:
        변화율, 비교할 이전 시간이 없거나 평균이 0이면 None
    """
    series = snapshot.series
    previous = series[-1 - COMPARISON_HOURS:-1]
    if not previous:
        return None

    avg_previous = sum(p.velocity for p in previous) / len(previous)
    if avg_previous <= 0:
        return None

    return (series[-1].velocity - avg_previous) / avg_previous * 100


class RisingTickersHandler(WidgetHandler):
    """Rising Tickers"""

    widget_id = "rising-tickers"
    name = "Rising Tickers"
    description = "Discover emerging assets gaining attention"
    inputs = [WidgetInput(name="category", type=InputType.CATEGORY, required=False, placeholder="Meme Stocks")]

    def __init__(self, service: Optional[TickerVelocityService] = None):
        self.service = service or get_velocity_service()

    async def build(self, params: Dict[str, Any]) -> Dict[str, Any]:
        directory = self.service.directory
        category = (params.get("category") or "").strip() or None

        if category:
            tickers = directory.tickers_in(category)
            if not tickers:
                raise WidgetParamError("category", f"Unknown category: {category}")
        else:
            tickers = directory.all_tickers()

        rising: List[Dict[str, Any]] = []
        for snapshot in await self.service.snapshots(tickers):
            change = velocity_change(snapshot)
            if change is None or change <= 0:
                continue

            rising.append({
                "ticker": snapshot.ticker,
                "category": directory.get_category(snapshot.ticker),
                "velocity": round(snapshot.current.velocity, 2),
                "velocity_change": round(change, 1),
                "mentions": snapshot.mentions,
                "signal": snapshot.current.signal.value,
            })

        rising.sort(key=lambda r: r["velocity_change"], reverse=True)

        return {
            "category": category,
            "tickers": rising[:TOP_N],
            "scanned": len(tickers),
            "generated_at": self.service.now().isoformat(),
        }
