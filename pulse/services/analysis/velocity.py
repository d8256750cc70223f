"""
Baseline Velocity Engine - Production Grade v1.0
시간대별 베이스라인 기반 소셜 멘션 속도 계산

Features:
- UTC 시간대(0-23)별 포스트 버킷팅
- 주말/오늘 제외 과거 평일 평균으로 베이스라인 산출
- 오늘 실제 카운트 대비 0-10 속도 점수
- 시그널(LOW ~ VERY_HIGH) / 트렌드(accelerating/decelerating/stable) 분류
- 잘못된 입력에 대해 예외 대신 중립값 반환

Author: Pulse Widget Team
"""

from dataclasses import dataclass
from datetime import datetime, date, timezone
from enum import Enum
from typing import List, Dict, Any, Optional, Iterable, Mapping, Sequence, Tuple, Union
import math
import os
import logging

from pulse.data_pipeline.domain.models import PostRecord, to_utc

logger = logging.getLogger(__name__)


HOURS_PER_DAY = 24

# 3일 x 24시간 정규화
DEFAULT_FALLBACK_DIVISOR = 72

# 계산 불가 시 반환하는 중립 속도
NEUTRAL_VELOCITY = 5.0

MIN_VELOCITY = 0.0
MAX_VELOCITY = 10.0

# 트렌드 판단 윈도우 크기
TREND_WINDOW = 3


# ============================================================
# Enums and Data Classes
# ============================================================

class Signal(str, Enum):
    """활동 시그널 (baseline 대비 비율 기준)"""
    VERY_HIGH = "VERY_HIGH"          # > 2.0x
    HIGH_ACTIVITY = "HIGH_ACTIVITY"  # > 1.5x
    ELEVATED = "ELEVATED"            # > 1.2x
    NORMAL = "NORMAL"
    LOW = "LOW"                      # < 0.8x

    @property
    def is_hot(self) -> bool:
        """ELEVATED 이상 여부"""
        return self in (Signal.ELEVATED, Signal.HIGH_ACTIVITY, Signal.VERY_HIGH)


class Trend(str, Enum):
    """활동 트렌드"""
    ACCELERATING = "accelerating"
    DECELERATING = "decelerating"
    STABLE = "stable"


@dataclass
class EngineConfig:
    """엔진 설정"""
    fallback_divisor: int = DEFAULT_FALLBACK_DIVISOR

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """환경변수에서 로드"""
        return cls(
            fallback_divisor=int(os.getenv("BASELINE_FALLBACK_DIVISOR", str(DEFAULT_FALLBACK_DIVISOR))),
        )


@dataclass
class HourlyBaselines:
    """
    시간대별 베이스라인 계산 결과

    today_profile[h]: 오늘(UTC) h시 실제 카운트
    baseline_profile[h]: h시 기대 카운트 (항상 >= 1)
    """
    today_profile: List[int]
    baseline_profile: List[int]
    weekdays_observed: int
    total_count: int = 0
    dropped_count: int = 0
    reference_date: Optional[date] = None

    def as_tuple(self) -> Tuple[List[int], List[int], int]:
        """(TodayProfile, BaselineProfile, 관측 평일 수)"""
        return self.today_profile, self.baseline_profile, self.weekdays_observed

    def to_dict(self) -> Dict[str, Any]:
        """딕셔너리로 변환"""
        return {
            "today": {hour: count for hour, count in enumerate(self.today_profile)},
            "baseline": {hour: count for hour, count in enumerate(self.baseline_profile)},
            "weekdays_observed": self.weekdays_observed,
            "total_count": self.total_count,
            "dropped_count": self.dropped_count,
            "reference_date": self.reference_date.isoformat() if self.reference_date else None,
        }


@dataclass
class VelocityMetrics:
    """속도 메트릭 (ratio x 5 스케일)"""
    velocity: float = NEUTRAL_VELOCITY
    trend: Trend = Trend.STABLE
    signal: Signal = Signal.NORMAL
    baseline_ratio: float = 1.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "velocity": round(self.velocity, 3),
            "trend": self.trend.value,
            "signal": self.signal.value,
            "baseline_ratio": round(self.baseline_ratio, 3),
        }


@dataclass
class VelocityResult:
    """특정 시간대의 속도 결과"""
    hour: int
    actual: int
    baseline: int
    velocity: float
    signal: Signal
    trend: Trend

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hour": self.hour,
            "actual": self.actual,
            "baseline": self.baseline,
            "velocity": round(self.velocity, 3),
            "signal": self.signal.value,
            "trend": self.trend.value,
        }


@dataclass
class HourlyPoint:
    """차트용 시간대 데이터 포인트"""
    hour: int
    actual: int
    baseline: int
    velocity: float
    time: str = ""

    def __post_init__(self):
        if not self.time:
            self.time = f"{self.hour:02d}:00"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "time": self.time,
            "hour": self.hour,
            "actual": self.actual,
            "baseline": self.baseline,
            "velocity": round(self.velocity, 3),
        }


# ============================================================
# Pure Functions
# ============================================================

def round_half_up(value: float) -> int:
    """0.5는 올림 (2.5 -> 3)"""
    return int(math.floor(value + 0.5))


def clamp(value: float, low: float = MIN_VELOCITY, high: float = MAX_VELOCITY) -> float:
    return min(high, max(low, value))


def _as_number(value: Any) -> float:
    """숫자 변환 (NaN은 ValueError)"""
    if isinstance(value, bool):
        raise TypeError("bool is not a count")
    number = float(value)
    if math.isnan(number):
        raise ValueError("NaN count")
    return number


def calculate_velocity(actual: Union[int, float], baseline: Union[int, float]) -> float:
    """
    baseline 대비 속도 점수 (0-10)

    velocity = clamp(2.5 + ratio * 2.5, 0, 10)
    - ratio 0   -> 2.5 (조용하지만 존재하는 노이즈)
    - ratio 1   -> 5.0 (기준선)
    - ratio >=3 -> 10.0 (포화)

    Args:
        actual: 실제 카운트
        baseline: 기대 카운트 (0이면 1로 취급)

    Returns:
        속도 점수, 입력이 잘못된 경우 5.0
    """
    try:
        ratio = _as_number(actual) / max(_as_number(baseline), 1.0)
    except (TypeError, ValueError) as e:
        logger.warning(f"[VelocityEngine] Invalid velocity input ({actual!r}, {baseline!r}): {e}")
        return NEUTRAL_VELOCITY

    return clamp(2.5 + ratio * 2.5)


def classify_signal(baseline_ratio: float) -> Signal:
    """비율 기준 시그널 분류 (먼저 매칭되는 규칙 우선)"""
    if baseline_ratio > 2.0:
        return Signal.VERY_HIGH
    if baseline_ratio > 1.5:
        return Signal.HIGH_ACTIVITY
    if baseline_ratio > 1.2:
        return Signal.ELEVATED
    if baseline_ratio < 0.8:
        return Signal.LOW
    return Signal.NORMAL


def classify_trend(
    historical_counts: Optional[Sequence[Union[int, float]]],
    window: int = TREND_WINDOW,
    accelerating_factor: float = 1.1,
    decelerating_factor: float = 0.9,
) -> Trend:
    """
    최근 윈도우와 직전 윈도우 평균 비교

    Args:
        historical_counts: 시간순 카운트 (마지막이 최신)
        window: 윈도우 크기

    Returns:
        Trend (데이터가 window 미만이면 STABLE)
    """
    try:
        values = [_as_number(v) for v in historical_counts or []]
    except (TypeError, ValueError) as e:
        logger.warning(f"[VelocityEngine] Invalid historical counts: {e}")
        return Trend.STABLE

    if len(values) < window:
        return Trend.STABLE

    recent = values[-window:]
    avg_recent = sum(recent) / window

    earlier = values[-2 * window:-window]
    if len(earlier) < window:
        avg_earlier = avg_recent
    else:
        avg_earlier = sum(earlier) / window

    if avg_recent > avg_earlier * accelerating_factor:
        return Trend.ACCELERATING
    if avg_recent < avg_earlier * decelerating_factor:
        return Trend.DECELERATING
    return Trend.STABLE


def calculate_velocity_metrics(
    current_count: Union[int, float],
    baseline_count: Union[int, float],
    historical_counts: Optional[Sequence[Union[int, float]]] = None,
) -> VelocityMetrics:
    """
    속도 메트릭 계산

    calculate_velocity와는 다른 스케일(ratio x 5)을 사용함.
    두 공식은 서로 다른 호출 경로에서 쓰이므로 통합하지 않음.

    Args:
        current_count: 현재 카운트
        baseline_count: 기대 카운트 (0이면 1로 취급)
        historical_counts: 트렌드 판단용 시간순 카운트

    Returns:
        VelocityMetrics, 입력이 잘못된 경우 중립값
    """
    try:
        baseline_ratio = _as_number(current_count) / max(_as_number(baseline_count), 1.0)
    except (TypeError, ValueError) as e:
        logger.warning(
            f"[VelocityEngine] Invalid metrics input ({current_count!r}, {baseline_count!r}): {e}"
        )
        return VelocityMetrics()

    return VelocityMetrics(
        velocity=clamp(baseline_ratio * 5),
        trend=classify_trend(historical_counts),
        signal=classify_signal(baseline_ratio),
        baseline_ratio=baseline_ratio,
    )


def describe_velocity(velocity: float) -> str:
    """속도 점수 설명"""
    if velocity >= 8.5:
        return "2.5x+ baseline (Very Hot)"
    if velocity >= 7.5:
        return "2x+ baseline (Hot)"
    if velocity >= 6.5:
        return "1.5x+ baseline (Elevated)"
    if velocity >= 5.5:
        return "1.2x baseline (Above Normal)"
    if velocity >= 4.5:
        return "~1x baseline (Normal)"
    if velocity >= 3.5:
        return "Below baseline"
    return "<0.6x baseline (Cold)"


# ============================================================
# Baseline Velocity Engine
# ============================================================

class BaselineVelocityEngine:
    """
    베이스라인 속도 엔진

    상태가 없는 순수 계산기. 매 호출마다 입력 전체로부터
    버킷/프로파일을 새로 계산하며 아무것도 캐싱하지 않음.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()

    # ============================================================
    # Public Methods
    # ============================================================

    def compute_hourly_baselines(
        self,
        posts: Iterable[Union[PostRecord, Mapping[str, Any]]],
        total_count: Optional[int] = None,
        *,
        now: Optional[datetime] = None,
    ) -> HourlyBaselines:
        """
        시간대별 베이스라인 계산

        Args:
            posts: 포스트 레코드 (순서 무관, 여러 날짜 가능)
            total_count: 폴백 분자 (기본값: 포스트 수)
            now: 기준 시각 (기본값: 현재 UTC)

        Returns:
            HourlyBaselines
        """
        records = [self._coerce(p) for p in posts]
        if total_count is None:
            total_count = len(records)

        today = self._utc_now(now).date()

        # 날짜별 시간대 히스토그램
        histograms: Dict[date, List[int]] = {}
        dropped = 0

        for record in records:
            timestamp = record.timestamp if record is not None else None
            ts = to_utc(timestamp) if timestamp is not None else None
            if ts is None:
                dropped += 1
                continue

            bucket = histograms.setdefault(ts.date(), [0] * HOURS_PER_DAY)
            bucket[ts.hour] += 1

        if dropped:
            logger.debug(f"[VelocityEngine] Dropped {dropped} records without a usable timestamp")

        today_profile = [0] * HOURS_PER_DAY
        samples: List[List[int]] = [[] for _ in range(HOURS_PER_DAY)]
        weekdays_observed = 0

        for day, histogram in histograms.items():
            if day == today:
                today_profile = histogram
                continue

            # 토(5), 일(6)은 베이스라인에서 제외
            if day.weekday() >= 5:
                continue

            weekdays_observed += 1
            for hour, count in enumerate(histogram):
                if count > 0:
                    samples[hour].append(count)

        fallback = max(1, round_half_up(total_count / self.config.fallback_divisor))
        baseline_profile = [
            round_half_up(sum(hour_samples) / len(hour_samples)) if hour_samples else fallback
            for hour_samples in samples
        ]

        return HourlyBaselines(
            today_profile=today_profile,
            baseline_profile=baseline_profile,
            weekdays_observed=weekdays_observed,
            total_count=total_count,
            dropped_count=dropped,
            reference_date=today,
        )

    def hourly_series(self, baselines: HourlyBaselines, through_hour: int) -> List[HourlyPoint]:
        """
        0시부터 through_hour까지의 시간대별 포인트

        Args:
            baselines: 베이스라인 계산 결과
            through_hour: 마지막 시간대 (포함)
        """
        last = self._clamp_hour(through_hour)
        return [
            HourlyPoint(
                hour=hour,
                actual=baselines.today_profile[hour],
                baseline=baselines.baseline_profile[hour],
                velocity=calculate_velocity(
                    baselines.today_profile[hour],
                    baselines.baseline_profile[hour],
                ),
            )
            for hour in range(last + 1)
        ]

    def velocity_at_hour(
        self,
        baselines: HourlyBaselines,
        hour: Optional[int] = None,
        *,
        now: Optional[datetime] = None,
    ) -> VelocityResult:
        """
        특정 시간대의 VelocityResult

        Args:
            baselines: 베이스라인 계산 결과
            hour: 시간대 (기본값: 현재 UTC 시)
            now: 기준 시각 (hour 미지정 시 사용)
        """
        if hour is None:
            hour = self._utc_now(now).hour
        hour = self._clamp_hour(hour)

        actual = baselines.today_profile[hour]
        baseline = baselines.baseline_profile[hour]
        metrics = calculate_velocity_metrics(
            actual,
            baseline,
            baselines.today_profile[:hour + 1],
        )

        return VelocityResult(
            hour=hour,
            actual=actual,
            baseline=baseline,
            velocity=calculate_velocity(actual, baseline),
            signal=metrics.signal,
            trend=metrics.trend,
        )

    # ============================================================
    # Private Methods
    # ============================================================

    @staticmethod
    def _coerce(post: Union[PostRecord, Mapping[str, Any], None]) -> Optional[PostRecord]:
        if isinstance(post, PostRecord):
            return post
        if isinstance(post, Mapping):
            return PostRecord.from_raw(dict(post))
        return None

    @staticmethod
    def _utc_now(now: Optional[datetime]) -> datetime:
        if now is None:
            return datetime.now(timezone.utc)
        if now.tzinfo is None:
            return now.replace(tzinfo=timezone.utc)
        return now.astimezone(timezone.utc)

    @staticmethod
    def _clamp_hour(hour: int) -> int:
        return min(HOURS_PER_DAY - 1, max(0, int(hour)))


# ============================================================
# Module-level API
# ============================================================

_default_engine = BaselineVelocityEngine()


def compute_hourly_baselines(
    posts: Iterable[Union[PostRecord, Mapping[str, Any]]],
    total_count: Optional[int] = None,
    *,
    now: Optional[datetime] = None,
) -> HourlyBaselines:
    """기본 엔진으로 시간대별 베이스라인 계산"""
    return _default_engine.compute_hourly_baselines(posts, total_count, now=now)


def get_velocity_engine() -> BaselineVelocityEngine:
    """환경변수 설정을 반영한 엔진"""
    return BaselineVelocityEngine(EngineConfig.from_env())
