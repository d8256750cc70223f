"""
Analysis Services
"""

from pulse.services.analysis.velocity import (
    BaselineVelocityEngine,
    EngineConfig,
    HourlyBaselines,
    HourlyPoint,
    Signal,
    Trend,
    VelocityMetrics,
    VelocityResult,
    calculate_velocity,
    calculate_velocity_metrics,
    classify_signal,
    classify_trend,
    compute_hourly_baselines,
    describe_velocity,
    get_velocity_engine,
)

__all__ = [
    "BaselineVelocityEngine",
    "EngineConfig",
    "HourlyBaselines",
    "HourlyPoint",
    "Signal",
    "Trend",
    "VelocityMetrics",
    "VelocityResult",
    "calculate_velocity",
    "calculate_velocity_metrics",
    "classify_signal",
    "classify_trend",
    "compute_hourly_baselines",
    "describe_velocity",
    "get_velocity_engine",
]
