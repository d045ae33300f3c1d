"""price_trend.py 테스트"""

import sys
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from sedori_engine.analyzers.price_trend import PriceTrendAnalyzer, analyze
from sedori_engine.core.exceptions import AppError, ErrorKind
from sedori_engine.domain.models import (
    AnomalyType,
    Money,
    PriceDataPoint,
    RecommendationAction,
    RiskLevel,
    TrendDirection,
)

START = datetime(2024, 1, 1, tzinfo=timezone.utc)

# 100 → 145, 10포인트
RISING_PRICES = list(range(100, 150, 5))


def make_series(prices, step_days=1):
    return [
        PriceDataPoint(START + timedelta(days=i * step_days), Money.of(p), "keepa")
        for i, p in enumerate(prices)
    ]


class TestPreconditions:
    """전제 조건"""

    def test_single_point_fails(self):
        """포인트 1개 → INSUFFICIENT_DATA"""
        with pytest.raises(AppError) as exc_info:
            analyze(make_series([100]))
        assert exc_info.value.kind == ErrorKind.INSUFFICIENT_DATA

    def test_empty_fails(self):
        with pytest.raises(AppError) as exc_info:
            analyze([])
        assert exc_info.value.kind == ErrorKind.INSUFFICIENT_DATA

    def test_two_points_succeed(self):
        """포인트 2개는 성공"""
        result = analyze(make_series([100, 101]))
        assert result.data_points == 2

    def test_unsorted_fails(self):
        series = make_series([100, 110, 120])
        series[0], series[2] = series[2], series[0]
        with pytest.raises(AppError) as exc_info:
            analyze(series)
        assert exc_info.value.kind == ErrorKind.INSUFFICIENT_DATA
        assert exc_info.value.context["reason"] == "not_sorted"

    def test_equal_timestamps_allowed(self):
        series = [
            PriceDataPoint(START, Money.of(100)),
            PriceDataPoint(START, Money.of(101)),
        ]
        assert analyze(series).trend == TrendDirection.STABLE

    @pytest.mark.parametrize("prices, which", [
        ([0, 0, 0], "mean"),
        ([100, 100, 0], "current"),
        ([0, 100, 100], "first"),
    ])
    def test_zero_prices_are_degenerate(self, prices, which):
        """평균/현재가/첫 가격 0 → DEGENERATE_SERIES"""
        with pytest.raises(AppError) as exc_info:
            analyze(make_series(prices))
        assert exc_info.value.kind == ErrorKind.DEGENERATE_SERIES
        assert exc_info.value.context["which"] == which

    def test_zero_outside_window_allowed(self):
        """윈도우 밖 0 원은 허용"""
        prices = [0] + [100] * 10
        result = analyze(make_series(prices))
        assert result.trend in (TrendDirection.STABLE, TrendDirection.VOLATILE)


class TestClassification:
    """추세 분류"""

    def test_rising(self):
        """100 → 145 (10포인트) → RISING, 현재가 > 평균*1.1 → SELL"""
        result = analyze(make_series(RISING_PRICES))
        assert result.trend == TrendDirection.RISING
        assert result.mean_price == Decimal("122.5")
        assert result.slope == pytest.approx(0.45)
        assert result.trend_strength == pytest.approx(0.45)
        assert result.volatility_pct < 15
        assert result.recommendations[0].action == RecommendationAction.SELL

    def test_rising_deterministic(self):
        series = make_series(RISING_PRICES)
        assert analyze(series).to_dict() == analyze(series).to_dict()

    def test_falling(self):
        result = analyze(make_series(list(range(150, 130, -2))))
        assert result.trend == TrendDirection.FALLING
        assert result.slope < -0.05

    def test_stable(self):
        result = analyze(make_series([100, 101, 100, 99, 100, 101]))
        assert result.trend == TrendDirection.STABLE
        assert result.primary_recommendation.action == RecommendationAction.HOLD

    def test_volatile_overrides_slope(self):
        """변동성 > 15% 면 기울기와 무관하게 VOLATILE"""
        result = analyze(make_series([100, 160, 80, 150, 70, 100]))
        assert result.volatility_pct > 15
        assert result.trend == TrendDirection.VOLATILE

    def test_volatile_adds_watch(self):
        result = analyze(make_series([100, 160, 80, 150, 70, 100]))
        actions = [r.action for r in result.recommendations]
        assert len(actions) == 2
        assert actions[1] == RecommendationAction.WATCH
        assert result.recommendations[1].risk_level == RiskLevel.HIGH

    def test_window_is_last_ten_points(self):
        """기울기는 최근 10개 포인트 기준"""
        prices = [50] * 5 + [100] * 10
        result = analyze(make_series(prices))
        assert result.slope == 0

    def test_trend_strength_capped(self):
        result = analyze(make_series([10, 40]))
        assert result.trend_strength == 1.0


class TestPrediction:
    """예측"""

    def test_prediction_values(self):
        series = make_series(RISING_PRICES)
        result = analyze(series)
        prediction = result.predictions[0]
        # 145 * (1 + 0.45 * 0.5)
        assert prediction.predicted_price.amount == Decimal("177.625")
        assert prediction.target_timestamp == series[-1].timestamp + timedelta(days=30)
        assert prediction.probability == 0.75

    def test_interval_contains_prediction(self):
        """예측값이 ±10% 밖이면 구간 확장"""
        prediction = analyze(make_series(RISING_PRICES)).predictions[0]
        assert prediction.lower.amount == Decimal("130.5")
        assert prediction.upper.amount == prediction.predicted_price.amount
        assert prediction.lower.amount <= prediction.predicted_price.amount <= prediction.upper.amount

    def test_interval_default_band(self):
        prediction = analyze(make_series([100, 100, 100])).predictions[0]
        assert prediction.confidence_interval == (prediction.lower, prediction.upper)
        assert prediction.lower.amount == Decimal("90.0")
        assert prediction.upper.amount == Decimal("110.0")


class TestRecommendation:
    """추천"""

    def test_buy_when_below_average(self):
        result = analyze(make_series([120, 121, 119, 120, 95]))
        primary = result.primary_recommendation
        assert primary.action == RecommendationAction.BUY
        assert primary.risk_level == RiskLevel.LOW
        assert primary.confidence == 0.8
        assert primary.reason == "price below average by >10%"

    def test_hold_near_average(self):
        primary = analyze(make_series([100, 102, 101])).primary_recommendation
        assert primary.action == RecommendationAction.HOLD
        assert primary.confidence == 0.6


class TestAnomaliesAndConfidence:
    """이상치 / 신뢰도"""

    def test_spike_detected(self):
        prices = [100] * 20 + [300] + [100] * 9
        result = analyze(make_series(prices))
        assert len(result.anomalies) == 1
        anomaly = result.anomalies[0]
        assert anomaly.type == AnomalyType.SPIKE
        assert anomaly.severity == "high"
        assert anomaly.price == Decimal(300)

    def test_no_anomalies_below_min_points(self):
        result = analyze(make_series([100] * 8 + [300]))
        assert result.anomalies == []

    @pytest.mark.parametrize("n, expected", [(5, 0.3), (10, 0.6), (29, 0.6), (30, 0.9)])
    def test_confidence_score(self, n, expected):
        assert analyze(make_series([100] * n)).confidence_score == expected


class TestInputs:
    """입력 형식"""

    def test_dict_series(self):
        series = [
            {"timestamp": "2024-01-01T00:00:00Z", "price": 100},
            {"timestamp": "2024-01-02T00:00:00Z", "price": "110"},
        ]
        result = PriceTrendAnalyzer().analyze(series)
        assert result.current_price == Decimal(110)

    def test_insights_present(self):
        result = analyze(make_series(RISING_PRICES))
        assert len(result.insights) >= 3
        assert all(isinstance(i, str) for i in result.insights)
