"""
Unit Tests for Baseline Velocity Engine
시간대별 베이스라인 / 속도 계산 테스트

Run: pytest tests/unit/test_velocity.py -v
"""

import math
import time
import pytest
from datetime import datetime, timedelta, timezone


class TestCalculateVelocity:
    """calculate_velocity (2.5 + ratio x 2.5) 테스트"""

    def test_ratio_anchors(self):
        """비율 0 / 1 / 3 기준점"""
        from pulse.services.analysis.velocity import calculate_velocity

        assert calculate_velocity(0, 10) == 2.5
        assert calculate_velocity(10, 10) == 5.0
        assert calculate_velocity(30, 10) == 10.0

    def test_saturates_at_ten(self):
        """비율 3 이상은 10으로 포화"""
        from pulse.services.analysis.velocity import calculate_velocity

        assert calculate_velocity(1000, 1) == 10.0

    def test_zero_baseline_treated_as_one(self):
        """baseline 0은 1로 취급"""
        from pulse.services.analysis.velocity import calculate_velocity

        assert calculate_velocity(0, 0) == 2.5
        assert calculate_velocity(1, 0) == 5.0
        assert calculate_velocity(5, 0) == 10.0

    def test_three_tuesday_score(self):
        """실제 25 / 기준 10 -> 8.75"""
        from pulse.services.analysis.velocity import calculate_velocity

        assert calculate_velocity(25, 10) == pytest.approx(8.75)

    def test_monotone_in_actual(self):
        """actual 증가에 대해 단조 비감소, 항상 [0, 10]"""
        from pulse.services.analysis.velocity import calculate_velocity

        for baseline in (0, 1, 3, 10, 57):
            previous = -1.0
            for actual in range(0, 200):
                value = calculate_velocity(actual, baseline)
                assert 0.0 <= value <= 10.0
                assert value >= previous
                previous = value

    @pytest.mark.parametrize("actual,baseline", [
        ("abc", 10),
        (None, 10),
        (10, None),
        (float("nan"), 10),
        (True, 10),
    ])
    def test_invalid_input_returns_neutral(self, actual, baseline):
        """잘못된 입력은 예외 없이 5.0"""
        from pulse.services.analysis.velocity import calculate_velocity

        assert calculate_velocity(actual, baseline) == 5.0


class TestClassifySignal:
    """시그널 분류 테스트"""

    @pytest.mark.parametrize("ratio,expected", [
        (2.5, "VERY_HIGH"),
        (2.01, "VERY_HIGH"),
        (2.0, "HIGH_ACTIVITY"),
        (1.6, "HIGH_ACTIVITY"),
        (1.5, "ELEVATED"),
        (1.3, "ELEVATED"),
        (1.2, "NORMAL"),
        (1.0, "NORMAL"),
        (0.8, "NORMAL"),
        (0.79, "LOW"),
        (0.0, "LOW"),
    ])
    def test_boundaries(self, ratio, expected):
        """경계값은 엄격 부등호"""
        from pulse.services.analysis.velocity import classify_signal

        assert classify_signal(ratio).value == expected

    def test_hot_signals(self):
        """ELEVATED 이상만 hot"""
        from pulse.services.analysis.velocity import Signal

        assert Signal.VERY_HIGH.is_hot
        assert Signal.ELEVATED.is_hot
        assert not Signal.NORMAL.is_hot
        assert not Signal.LOW.is_hot


class TestClassifyTrend:
    """트렌드 분류 테스트"""

    @pytest.mark.parametrize("values", [None, [], [1], [1, 2]])
    def test_short_history_is_stable(self, values):
        """3개 미만은 stable"""
        from pulse.services.analysis.velocity import classify_trend, Trend

        assert classify_trend(values) == Trend.STABLE

    def test_without_earlier_window_is_stable(self):
        """직전 윈도우가 3개 미만이면 최근 평균과 비교 -> stable"""
        from pulse.services.analysis.velocity import classify_trend, Trend

        assert classify_trend([1, 1, 50, 50, 50]) == Trend.STABLE
        assert classify_trend([0, 0, 100]) == Trend.STABLE

    def test_accelerating(self):
        from pulse.services.analysis.velocity import classify_trend, Trend

        assert classify_trend([1, 1, 1, 5, 5, 5]) == Trend.ACCELERATING

    def test_decelerating(self):
        from pulse.services.analysis.velocity import classify_trend, Trend

        assert classify_trend([5, 5, 5, 1, 1, 1]) == Trend.DECELERATING

    def test_within_ten_percent_is_stable(self):
        """+-10% 이내는 stable"""
        from pulse.services.analysis.velocity import classify_trend, Trend

        assert classify_trend([10, 10, 10, 10.5, 10.5, 10.5]) == Trend.STABLE
        assert classify_trend([10, 10, 10, 9.5, 9.5, 9.5]) == Trend.STABLE

    def test_uses_only_last_six_values(self):
        """최근 6개만 사용"""
        from pulse.services.analysis.velocity import classify_trend, Trend

        assert classify_trend([100, 100, 100, 1, 1, 1, 5, 5, 5]) == Trend.ACCELERATING

    def test_invalid_values_are_stable(self):
        from pulse.services.analysis.velocity import classify_trend, Trend

        assert classify_trend(["x", 1, 2, 3]) == Trend.STABLE


class TestCalculateVelocityMetrics:
    """calculate_velocity_metrics (ratio x 5) 테스트"""

    def test_ratio_times_five(self):
        from pulse.services.analysis.velocity import calculate_velocity_metrics

        assert calculate_velocity_metrics(10, 10).velocity == 5.0
        assert calculate_velocity_metrics(15, 10).velocity == 7.5
        assert calculate_velocity_metrics(0, 10).velocity == 0.0
        assert calculate_velocity_metrics(50, 10).velocity == 10.0

    def test_differs_from_calculate_velocity(self):
        """두 공식은 ratio 1 이외에서 다른 값"""
        from pulse.services.analysis.velocity import calculate_velocity, calculate_velocity_metrics

        assert calculate_velocity(0, 10) == 2.5
        assert calculate_velocity_metrics(0, 10).velocity == 0.0

    def test_signal_and_ratio(self):
        from pulse.services.analysis.velocity import calculate_velocity_metrics, Signal

        metrics = calculate_velocity_metrics(25, 10)

        assert metrics.baseline_ratio == pytest.approx(2.5)
        assert metrics.signal == Signal.VERY_HIGH

    def test_trend_from_history(self):
        from pulse.services.analysis.velocity import calculate_velocity_metrics, Trend

        metrics = calculate_velocity_metrics(5, 5, [1, 1, 1, 5, 5, 5])
        assert metrics.trend == Trend.ACCELERATING

    def test_zero_baseline(self):
        from pulse.services.analysis.velocity import calculate_velocity_metrics

        metrics = calculate_velocity_metrics(3, 0)
        assert metrics.baseline_ratio == 3.0
        assert metrics.velocity == 10.0

    def test_invalid_input_is_neutral(self):
        from pulse.services.analysis.velocity import calculate_velocity_metrics

        metrics = calculate_velocity_metrics("lots", 10)

        assert metrics.velocity == 5.0
        assert metrics.signal.value == "NORMAL"
        assert metrics.trend.value == "stable"
        assert metrics.baseline_ratio == 1.0


class TestRoundHalfUp:
    """반올림 테스트"""

    @pytest.mark.parametrize("value,expected", [
        (0.49, 0), (0.5, 1), (1.5, 2), (2.5, 3), (2.4999, 2), (10.0, 10),
    ])
    def test_round_half_up(self, value, expected):
        from pulse.services.analysis.velocity import round_half_up

        assert round_half_up(value) == expected


class TestComputeHourlyBaselines:
    """compute_hourly_baselines 테스트"""

    @pytest.fixture
    def engine(self):
        from pulse.services.analysis.velocity import BaselineVelocityEngine
        return BaselineVelocityEngine()

    def test_three_tuesday_example(self, engine, three_tuesday_posts, fixed_now):
        """직전 화요일 3번 10건 + 오늘 25건"""
        baselines = engine.compute_hourly_baselines(three_tuesday_posts, now=fixed_now)

        assert baselines.weekdays_observed == 3
        assert baselines.baseline_profile[14] == 10
        assert baselines.today_profile[14] == 25
        assert sum(baselines.today_profile) == 25

        # 데이터가 없는 시간대는 폴백: max(1, round(55 / 72)) = 1
        assert baselines.baseline_profile[3] == 1

        result = engine.velocity_at_hour(baselines, 14)
        assert result.velocity == pytest.approx(8.75)
        assert result.signal.value == "VERY_HIGH"

    def test_empty_input(self, engine, fixed_now):
        """빈 입력도 예외 없이 24칸"""
        baselines = engine.compute_hourly_baselines([], now=fixed_now)

        assert baselines.today_profile == [0] * 24
        assert baselines.baseline_profile == [1] * 24
        assert baselines.weekdays_observed == 0

    def test_all_today_uses_fallback(self, engine, post_factory, fixed_now):
        """오늘 데이터만 있으면 전 시간대 폴백"""
        posts = post_factory(fixed_now, 10, 144)
        baselines = engine.compute_hourly_baselines(posts, now=fixed_now)

        assert baselines.weekdays_observed == 0
        assert baselines.baseline_profile == [2] * 24
        assert baselines.today_profile[10] == 144

    def test_weekend_only_uses_fallback(self, engine, post_factory, fixed_now):
        """토/일 데이터는 베이스라인에서 제외"""
        saturday = fixed_now - timedelta(days=3)
        sunday = fixed_now - timedelta(days=2)
        assert saturday.weekday() == 5 and sunday.weekday() == 6

        posts = post_factory(saturday, 9, 50) + post_factory(sunday, 9, 50)
        baselines = engine.compute_hourly_baselines(posts, now=fixed_now)

        assert baselines.weekdays_observed == 0
        assert baselines.baseline_profile == [1] * 24  # round(100 / 72) = 1
        assert baselines.today_profile == [0] * 24

    def test_fallback_rounds_half_up(self, engine, fixed_now):
        """108 / 72 = 1.5 -> 2"""
        baselines = engine.compute_hourly_baselines([], total_count=108, now=fixed_now)

        assert baselines.baseline_profile == [2] * 24

    def test_explicit_total_count(self, engine, post_factory, fixed_now):
        posts = post_factory(fixed_now, 1, 3)
        baselines = engine.compute_hourly_baselines(posts, total_count=360, now=fixed_now)

        assert baselines.baseline_profile[5] == 5
        assert baselines.total_count == 360

    def test_mean_rounds_half_up(self, engine, post_factory, fixed_now):
        """(2 + 3) / 2 = 2.5 -> 3"""
        monday = fixed_now - timedelta(days=1)
        friday = fixed_now - timedelta(days=4)
        posts = post_factory(monday, 9, 2) + post_factory(friday, 9, 3)

        baselines = engine.compute_hourly_baselines(posts, now=fixed_now)

        assert baselines.weekdays_observed == 2
        assert baselines.baseline_profile[9] == 3

    def test_hours_without_data_are_not_sampled(self, engine, post_factory, fixed_now):
        """해당 시간대에 데이터가 있는 평일만 평균"""
        monday = fixed_now - timedelta(days=1)
        friday = fixed_now - timedelta(days=4)
        posts = post_factory(monday, 9, 4) + post_factory(friday, 10, 2)

        baselines = engine.compute_hourly_baselines(posts, now=fixed_now)

        assert baselines.baseline_profile[9] == 4
        assert baselines.baseline_profile[10] == 2

    def test_baseline_always_at_least_one(self, engine, post_factory, fixed_now):
        """모든 시간대 baseline >= 1"""
        posts = []
        for days_ago in range(1, 15):
            day = fixed_now - timedelta(days=days_ago)
            posts += post_factory(day, days_ago % 24, days_ago)

        baselines = engine.compute_hourly_baselines(posts, total_count=0, now=fixed_now)

        assert len(baselines.baseline_profile) == 24
        assert all(b >= 1 for b in baselines.baseline_profile)

    def test_unparseable_records_are_dropped(self, engine, fixed_now):
        """파싱 불가 타임스탬프는 제외"""
        posts = [
            {"id": "1", "createdAt": "not a date"},
            {"id": "2"},
            {"id": "3", "createdAt": "2026-10-13T14:00:00Z"},
            None,
        ]

        baselines = engine.compute_hourly_baselines(posts, now=fixed_now)

        assert baselines.dropped_count == 3
        assert baselines.today_profile[14] == 1
        assert baselines.total_count == 4

    def test_timestamp_formats_bucket_in_utc(self, engine, fixed_now):
        """ISO 오프셋 / Twitter 형식 / epoch ms 모두 UTC 버킷"""
        epoch_ms = int(datetime(2026, 10, 13, 7, 15, tzinfo=timezone.utc).timestamp() * 1000)
        posts = [
            {"id": "1", "createdAt": "2026-10-12T23:30:00-02:00"},     # 10-13 01:30 UTC
            {"id": "2", "createdAt": "Tue Oct 13 05:10:00 +0000 2026"},
            {"id": "3", "timestamp": epoch_ms},
        ]

        baselines = engine.compute_hourly_baselines(posts, now=fixed_now)

        assert baselines.today_profile[1] == 1
        assert baselines.today_profile[5] == 1
        assert baselines.today_profile[7] == 1

    def test_out_of_range_timestamps_are_dropped(self, engine, fixed_now):
        """범위를 벗어난 epoch / ISO 값은 예외 없이 제외"""
        posts = [
            {"id": "1", "timestamp": 10 ** 400},
            {"id": "2", "createdAt": "0001-01-01T00:00:00+01:00"},
            {"id": "3", "createdAt": "9999-12-31T23:59:59-01:00"},
            {"id": "4", "createdAt": "2026-10-13T14:00:00Z"},
        ]

        baselines = engine.compute_hourly_baselines(posts, now=fixed_now)

        assert baselines.dropped_count == 3
        assert baselines.today_profile[14] == 1

    def test_future_weekday_counts_as_baseline(self, engine, post_factory, fixed_now):
        """미래 날짜도 같은 평일/주말 규칙 적용"""
        wednesday = fixed_now + timedelta(days=1)
        assert wednesday.weekday() == 2

        baselines = engine.compute_hourly_baselines(post_factory(wednesday, 9, 6), now=fixed_now)

        assert baselines.weekdays_observed == 1
        assert baselines.baseline_profile[9] == 6
        assert baselines.today_profile == [0] * 24

    def test_future_weekend_is_excluded(self, engine, post_factory, fixed_now):
        saturday = fixed_now + timedelta(days=4)
        assert saturday.weekday() == 5

        baselines = engine.compute_hourly_baselines(post_factory(saturday, 9, 6), now=fixed_now)

        assert baselines.weekdays_observed == 0
        assert baselines.baseline_profile == [1] * 24

    def test_accepts_post_records(self, engine, fixed_now):
        from pulse.data_pipeline.domain.models import PostRecord

        posts = [PostRecord.create("a", "2026-10-13T03:00:00Z")]
        baselines = engine.compute_hourly_baselines(posts, now=fixed_now)

        assert baselines.today_profile[3] == 1

    def test_naive_now_is_utc(self, engine, post_factory):
        posts = post_factory(datetime(2026, 10, 13), 2, 4)
        baselines = engine.compute_hourly_baselines(posts, now=datetime(2026, 10, 13, 12))

        assert baselines.today_profile[2] == 4
        assert baselines.reference_date.isoformat() == "2026-10-13"

    def test_module_level_function(self, three_tuesday_posts, fixed_now):
        from pulse.services.analysis.velocity import compute_hourly_baselines

        today, baseline, weekdays = compute_hourly_baselines(three_tuesday_posts, now=fixed_now).as_tuple()

        assert (today[14], baseline[14], weekdays) == (25, 10, 3)

    def test_custom_fallback_divisor(self, fixed_now):
        from pulse.services.analysis.velocity import BaselineVelocityEngine, EngineConfig

        engine = BaselineVelocityEngine(EngineConfig(fallback_divisor=10))
        baselines = engine.compute_hourly_baselines([], total_count=45, now=fixed_now)

        assert baselines.baseline_profile == [5] * 24


class TestVelocityAtHour:
    """velocity_at_hour / hourly_series 테스트"""

    @pytest.fixture
    def baselines(self, three_tuesday_posts, fixed_now):
        from pulse.services.analysis.velocity import compute_hourly_baselines
        return compute_hourly_baselines(three_tuesday_posts, now=fixed_now)

    def test_defaults_to_current_hour(self, baselines, fixed_now):
        from pulse.services.analysis.velocity import BaselineVelocityEngine

        result = BaselineVelocityEngine().velocity_at_hour(baselines, now=fixed_now)

        assert result.hour == 15
        assert result.actual == 0
        assert result.velocity == 2.5
        assert result.signal.value == "LOW"

    def test_trend_uses_today_through_hour(self, baselines):
        """0 -> 0 -> 25 (직전 3시간 0) -> accelerating"""
        from pulse.services.analysis.velocity import BaselineVelocityEngine

        result = BaselineVelocityEngine().velocity_at_hour(baselines, 14)

        assert result.trend.value == "accelerating"

    def test_hour_is_clamped(self, baselines):
        from pulse.services.analysis.velocity import BaselineVelocityEngine

        engine = BaselineVelocityEngine()

        assert engine.velocity_at_hour(baselines, 99).hour == 23
        assert engine.velocity_at_hour(baselines, -5).hour == 0

    def test_hourly_series(self, baselines):
        from pulse.services.analysis.velocity import BaselineVelocityEngine

        series = BaselineVelocityEngine().hourly_series(baselines, 14)

        assert len(series) == 15
        assert series[0].time == "00:00"
        assert series[14].to_dict() == {
            "time": "14:00",
            "hour": 14,
            "actual": 25,
            "baseline": 10,
            "velocity": 8.75,
        }

    def test_result_to_dict(self, baselines):
        from pulse.services.analysis.velocity import BaselineVelocityEngine

        data = BaselineVelocityEngine().velocity_at_hour(baselines, 14).to_dict()

        assert data["signal"] == "VERY_HIGH"
        assert data["velocity"] == 8.75
        assert data["baseline"] == 10


class TestDescribeVelocity:
    """속도 설명 테스트"""

    @pytest.mark.parametrize("velocity,fragment", [
        (9.0, "Very Hot"),
        (8.0, "Hot"),
        (7.0, "Elevated"),
        (6.0, "Above Normal"),
        (5.0, "Normal"),
        (4.0, "Below baseline"),
        (1.0, "Cold"),
    ])
    def test_bands(self, velocity, fragment):
        from pulse.services.analysis.velocity import describe_velocity

        assert fragment in describe_velocity(velocity)

    def test_score_never_nan(self):
        from pulse.services.analysis.velocity import calculate_velocity

        assert not math.isnan(calculate_velocity(float("inf"), 1))


@pytest.mark.skipif(not hasattr(time, "tzset"), reason="TZ 변경은 POSIX 전용")
class TestNaiveTimestampsUnderLocalTimezone:
    """호스트 타임존과 무관하게 naive datetime은 UTC로 버킷팅"""

    @pytest.fixture
    def new_york(self, monkeypatch):
        monkeypatch.setenv("TZ", "America/New_York")
        time.tzset()
        yield
        monkeypatch.undo()
        time.tzset()

    def test_naive_post_record_is_utc(self, new_york, fixed_now):
        from pulse.data_pipeline.domain.models import PostRecord
        from pulse.services.analysis.velocity import BaselineVelocityEngine

        record = PostRecord(id="a", timestamp=datetime(2026, 10, 13, 14, 0))
        baselines = BaselineVelocityEngine().compute_hourly_baselines([record], now=fixed_now)

        assert baselines.today_profile[14] == 1
        assert sum(baselines.today_profile) == 1

    def test_naive_and_parsed_paths_agree(self, new_york, fixed_now):
        from pulse.data_pipeline.domain.models import PostRecord
        from pulse.services.analysis.velocity import BaselineVelocityEngine

        posts = [
            PostRecord(id="a", timestamp=datetime(2026, 10, 12, 9, 30)),
            {"id": "b", "createdAt": "2026-10-12T09:45:00"},
        ]
        baselines = BaselineVelocityEngine().compute_hourly_baselines(posts, now=fixed_now)

        assert baselines.weekdays_observed == 1
        assert baselines.baseline_profile[9] == 2
