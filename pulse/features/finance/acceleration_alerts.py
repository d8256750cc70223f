"""
Acceleration Alerts Widget
연속된 시간대 간 속도 변화(가속도)가 임계값을 넘으면 알림
"""

from typing import Dict, Any, List, Optional
import logging

from pulse.features.finance.service import TickerVelocityService, get_velocity_service
from pulse.models.widget import WidgetHandler, WidgetInput, InputType, WidgetParamError
from pulse.services.analysis.velocity import HourlyPoint

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 1.0

# 최근 N시간만 검사
LOOKBACK_HOURS = 8

# 이 값보다 큰 상승은 surge
SURGE_MAGNITUDE = 3.0


def classify_alert(delta: float) -> str:
    """속도 변화 유형"""
    if delta < 0:
        return "drop"
    if delta > SURGE_MAGNITUDE:
        return "surge"
    return "spike"


def detect_alerts(series: List[HourlyPoint], threshold: float = DEFAULT_THRESHOLD) -> List[Dict[str, Any]]:
    """
    시계열에서 가속 알림 추출

    Args:
        series: 시간순 HourlyPoint
        threshold: |delta| 최소값

    Returns:
        알림 리스트 (시간순)
    """
    window = series[-LOOKBACK_HOURS:]
    alerts = []

    for previous, current in zip(window, window[1:]):
        delta = current.velocity - previous.velocity
        if abs(delta) < threshold:
            continue

        alerts.append({
            "time": current.time,
            "magnitude": round(delta, 2),
            "type": classify_alert(delta),
            "previous_velocity": round(previous.velocity, 2),
            "current_velocity": round(current.velocity, 2),
        })

    return alerts


class AccelerationAlertsHandler(WidgetHandler):
    """Acceleration Alerts"""

    widget_id = "acceleration-alerts"
    name = "Acceleration Alerts"
    description = "Detect sudden spikes in social mentions"
    inputs = [
        WidgetInput(name="ticker", type=InputType.TICKER, required=False, placeholder="NVDA"),
        WidgetInput(name="threshold", type=InputType.NUMBER, required=False, placeholder="1.0"),
    ]

    def __init__(self, service: Optional[TickerVelocityService] = None):
        self.service = service or get_velocity_service()

    @staticmethod
    def _threshold(params: Dict[str, Any]) -> float:
        raw = params.get("threshold")
        if raw in (None, ""):
            return DEFAULT_THRESHOLD
        try:
            threshold = float(raw)
        except (TypeError, ValueError):
            raise WidgetParamError("threshold", f"Invalid threshold: {raw}")
        if threshold < 0:
            raise WidgetParamError("threshold", "threshold must be >= 0")
        return threshold

    async def build(self, params: Dict[str, Any]) -> Dict[str, Any]:
        threshold = self._threshold(params)
        snapshot = await self.service.snapshot(params.get("ticker") or "NVDA")

        series = snapshot.series
        alerts = detect_alerts(series, threshold)

        if len(series) >= 2:
            current_acceleration = series[-1].velocity - series[-2].velocity
        else:
            current_acceleration = 0.0

        if alerts:
            logger.info(f"[AccelerationAlerts] {snapshot.ticker}: {len(alerts)} alerts (threshold={threshold})")

        return {
            "ticker": snapshot.ticker,
            "alerts": alerts,
            "current_acceleration": round(current_acceleration, 2),
            "trend": snapshot.current.trend.value,
            "threshold": threshold,
            "generated_at": snapshot.generated_at.isoformat(),
        }
