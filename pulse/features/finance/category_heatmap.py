"""
Category Heatmap Widget
카테고리별 티커 속도 히트맵
"""

from typing import Dict, Any, Optional
import logging

from pulse.features.finance.service import TickerVelocityService, get_velocity_service
from pulse.models.widget import WidgetHandler

logger = logging.getLogger(__name__)


class CategoryHeatmapHandler(WidgetHandler):
    """Category Heatmap"""

    widget_id = "category-heatmap"
    name = "Category Heatmap"
    description = "Visual heatmap of social velocity across sectors"
    inputs = []

    def __init__(self, service: Optional[TickerVelocityService] = None):
        self.service = service or get_velocity_service()

    async def build(self, params: Dict[str, Any]) -> Dict[str, Any]:
        directory = self.service.directory
        categories = []

        for name in directory.list_categories():
            snapshots = await self.service.snapshots(directory.tickers_in(name))
            tickers = [
                {
                    "ticker": s.ticker,
                    "velocity": round(s.current.velocity, 2),
                    "mentions": s.mentions,
                    "trend": s.current.trend.value,
                }
                for s in snapshots
            ]
            avg_velocity = sum(t["velocity"] for t in tickers) / len(tickers) if tickers else 0.0

            categories.append({
                "name": name,
                "avg_velocity": round(avg_velocity, 2),
                "tickers": tickers,
            })

        categories.sort(key=lambda c: c["avg_velocity"], reverse=True)
        logger.debug(f"[CategoryHeatmap] Built {len(categories)} categories")

        return {
            "categories": categories,
            "generated_at": self.service.now().isoformat(),
        }
