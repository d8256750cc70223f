"""
Finance Widgets
소셜 멘션 속도 기반 금융 위젯
"""

from pulse.features.finance.service import (
    TickerSnapshot,
    TickerVelocityService,
    get_velocity_service,
    set_velocity_service,
)
from pulse.features.finance.velocity_tracker import VelocityTrackerHandler
from pulse.features.finance.acceleration_alerts import AccelerationAlertsHandler
from pulse.features.finance.category_heatmap import CategoryHeatmapHandler
from pulse.features.finance.rising_tickers import RisingTickersHandler
from pulse.features.finance.portfolio_aggregator import PortfolioAggregatorHandler
from pulse.features.finance.correlation_radar import CorrelationRadarHandler

FINANCE_HANDLERS = [
    VelocityTrackerHandler,
    AccelerationAlertsHandler,
    CategoryHeatmapHandler,
    RisingTickersHandler,
    PortfolioAggregatorHandler,
    CorrelationRadarHandler,
]

__all__ = [
    "TickerSnapshot",
    "TickerVelocityService",
    "get_velocity_service",
    "set_velocity_service",
    "FINANCE_HANDLERS",
    "VelocityTrackerHandler",
    "AccelerationAlertsHandler",
    "CategoryHeatmapHandler",
    "RisingTickersHandler",
    "PortfolioAggregatorHandler",
    "CorrelationRadarHandler",
]
