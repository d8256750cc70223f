"""
Velocity Tracker Widget
티커의 시간대별 멘션 속도와 카테고리 피어 비교
"""

from typing import Dict, Any, Optional
import logging

from pulse.features.finance.service import TickerSnapshot, TickerVelocityService, get_velocity_service
from pulse.models.widget import WidgetHandler, WidgetInput, InputType
from pulse.services.analysis.velocity import describe_velocity

logger = logging.getLogger(__name__)

# 비교 대상 피어 최대 수
MAX_PEERS = 3


def peer_entry(snapshot: TickerSnapshot) -> Dict[str, Any]:
    """피어 비교 항목"""
    return {
        "ticker": snapshot.ticker,
        "velocity": round(snapshot.current.velocity, 2),
        "trend": snapshot.current.trend.value,
        "mentions": snapshot.mentions,
        "hourly_velocity": snapshot.hourly_velocity,
    }


class VelocityTrackerHandler(WidgetHandler):
    """Velocity Tracker"""

    widget_id = "velocity-tracker"
    name = "Velocity Tracker"
    description = "Track real-time social mention velocity for any ticker"
    inputs = [WidgetInput(name="ticker", type=InputType.TICKER, required=False, placeholder="TSLA")]

    def __init__(self, service: Optional[TickerVelocityService] = None):
        self.service = service or get_velocity_service()

    async def build(self, params: Dict[str, Any]) -> Dict[str, Any]:
        directory = self.service.directory
        ticker = params.get("ticker") or "TSLA"

        snapshot = await self.service.snapshot(ticker)
        peers = directory.get_peers(snapshot.ticker)[:MAX_PEERS]
        peer_snapshots = await self.service.snapshots(peers)

        current = snapshot.current
        logger.info(
            f"[VelocityTracker] {snapshot.ticker}: velocity={current.velocity:.2f} "
            f"signal={current.signal.value} trend={current.trend.value}"
        )

        return {
            "ticker": snapshot.ticker,
            "category": directory.get_category(snapshot.ticker) or "Unknown",
            "current_velocity": round(current.velocity, 2),
            "current_actual": current.actual,
            "current_baseline": current.baseline,
            "baseline_ratio": round(snapshot.baseline_ratio, 2),
            "trend": current.trend.value,
            "signal": current.signal.value,
            "description": describe_velocity(current.velocity),
            "hourly_data": [point.to_dict() for point in snapshot.series],
            "weekdays_observed": snapshot.baselines.weekdays_observed,
            "category_peers": [peer_entry(s) for s in [snapshot, *peer_snapshots]],
            "generated_at": snapshot.generated_at.isoformat(),
        }
