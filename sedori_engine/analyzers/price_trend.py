"""
price_trend.py - 가격 추세 분석

기능:
1. 변동성 (모집단 표준편차 / 평균 * 100)
2. 최근 N개 포인트 기울기로 추세 분류 (변동성이 기울기보다 우선)
3. 30일 후 가격 예측 + 신뢰 구간
4. 현재가 vs 평균가 기반 기본 추천 (BUY / SELL / HOLD)
5. z-score 이상치 탐지, 표본 크기 기반 신뢰도

실패:
- 포인트 2개 미만 / 시간순 정렬 아님 → INSUFFICIENT_DATA
- 평균가, 현재가, 윈도우 첫 가격이 0 → DEGENERATE_SERIES
"""

import logging
import statistics
from datetime import timedelta
from decimal import Decimal
from typing import Any, List, Mapping, Optional, Sequence, Union

from ..core.config import EngineConfig, DEFAULT_CONFIG
from ..core.exceptions import ErrorKind, profit_error
from ..core.logging import PerformanceLogger
from ..domain.models import (
    AnomalyType,
    Money,
    PriceAnomaly,
    PriceDataPoint,
    PricePrediction,
    Recommendation,
    RecommendationAction,
    RiskLevel,
    TrendAnalysis,
    TrendDirection,
)

logger = logging.getLogger(__name__)
perf = PerformanceLogger(logger)

HUNDRED = Decimal(100)

SeriesItem = Union[PriceDataPoint, Mapping[str, Any]]


class PriceTrendAnalyzer:
    """가격 시계열 → TrendAnalysis"""

    def __init__(self, config: Optional[EngineConfig] = None):
        """
        Args:
            config: 엔진 설정. None이면 기본값 사용.
        """
        self.config = config or DEFAULT_CONFIG

    def analyze(self, series: Sequence[SeriesItem]) -> TrendAnalysis:
        """
        가격 추세 분석

        Args:
            series: 시간 오름차순 가격 포인트 (PriceDataPoint 또는 dict)

        Returns:
            TrendAnalysis

        Raises:
            AppError: INSUFFICIENT_DATA, DEGENERATE_SERIES
        """
        points = [
            p if isinstance(p, PriceDataPoint)
            else PriceDataPoint.from_dict(p, self.config.default_currency)
            for p in series
        ]
        with perf.track("price trend analysis", points=len(points)):
            return self._analyze(points)

    def _analyze(self, points: List[PriceDataPoint]) -> TrendAnalysis:
        cfg = self.config
        self._check_series(points)

        prices = [p.price.amount for p in points]
        currency = points[-1].price.currency

        # 1. 평균 / 변동성
        mean = statistics.mean(prices)
        current = prices[-1]
        window = prices[-min(cfg.trend_window, len(prices)):]
        first = window[0]
        self._check_degenerate(mean=mean, current=current, first=first)

        stdev = statistics.pstdev(prices, mu=mean)
        volatility_pct = float(stdev / mean * HUNDRED)

        # 2. 추세 분류
        slope = (window[-1] - first) / first
        trend = self._classify(volatility_pct, float(slope))

        # 3. 예측
        prediction = self._predict(points[-1], current, slope, currency)

        # 4. 추천
        recommendations = self._recommend(current, mean, trend, volatility_pct)

        anomalies = self._detect_anomalies(points, mean, stdev)

        analysis = TrendAnalysis(
            trend=trend,
            trend_strength=min(abs(float(slope)), 1.0),
            volatility_pct=volatility_pct,
            mean_price=mean,
            current_price=current,
            slope=float(slope),
            predictions=[prediction],
            recommendations=recommendations,
            anomalies=anomalies,
            data_points=len(points),
            confidence_score=self._confidence_score(len(points)),
        )
        analysis.insights = self._insights(analysis, len(window))

        logger.debug(
            f"trend={trend.value} volatility={volatility_pct:.2f}% slope={float(slope):+.3f}",
            extra={"context": {"points": len(points), "anomalies": len(anomalies)}},
        )
        return analysis

    # ------------------------------------------------------------
    # 전제 조건
    # ------------------------------------------------------------

    def _check_series(self, points: List[PriceDataPoint]):
        if len(points) < 2:
            raise profit_error(
                ErrorKind.INSUFFICIENT_DATA,
                {"reason": "too few points", "points": len(points), "required": 2},
            )
        for index in range(1, len(points)):
            try:
                out_of_order = points[index].timestamp < points[index - 1].timestamp
            except TypeError:
                # naive / aware 시각 혼합
                raise profit_error(
                    ErrorKind.INSUFFICIENT_DATA,
                    {"reason": "incomparable timestamps", "index": index},
                ) from None
            if out_of_order:
                raise profit_error(
                    ErrorKind.INSUFFICIENT_DATA,
                    {"reason": "not_sorted", "index": index},
                )

    def _check_degenerate(self, **values: Decimal):
        for name, value in values.items():
            if value == 0:
                raise profit_error(
                    ErrorKind.DEGENERATE_SERIES,
                    {"reason": f"{name} price is zero", "which": name},
                )

    # ------------------------------------------------------------
    # 분류 / 예측 / 추천
    # ------------------------------------------------------------

    def _classify(self, volatility_pct: float, slope: float) -> TrendDirection:
        """변동성이 기울기보다 우선"""
        cfg = self.config
        if volatility_pct > cfg.volatile_threshold_pct:
            return TrendDirection.VOLATILE
        if slope > cfg.trend_slope_threshold:
            return TrendDirection.RISING
        if slope < -cfg.trend_slope_threshold:
            return TrendDirection.FALLING
        return TrendDirection.STABLE

    def _predict(
        self, last: PriceDataPoint, current: Decimal, slope: Decimal, currency: str
    ) -> PricePrediction:
        """현재가 * (1 + 기울기 * 0.5), 구간 [현재가*0.9, 현재가*1.1] (예측값 포함하도록 확장)"""
        cfg = self.config
        predicted = current * (1 + slope * Decimal(str(cfg.prediction_slope_damping)))
        band = Decimal(str(cfg.prediction_band))
        lower = min(current * (1 - band), predicted)
        upper = max(current * (1 + band), predicted)
        return PricePrediction(
            target_timestamp=last.timestamp + timedelta(days=cfg.prediction_horizon_days),
            predicted_price=Money(predicted, currency),
            lower=Money(lower, currency),
            upper=Money(upper, currency),
            probability=cfg.prediction_probability,
        )

    def _recommend(
        self, current: Decimal, mean: Decimal, trend: TrendDirection, volatility_pct: float
    ) -> List[Recommendation]:
        """첫 번째가 기본 추천. 변동성 추세면 WATCH 추가."""
        cfg = self.config

        if current < mean * Decimal(str(cfg.buy_ratio)):
            primary = Recommendation(
                action=RecommendationAction.BUY,
                reason="price below average by >10%",
                risk_level=RiskLevel.LOW,
                timeframe="within 7 days",
                confidence=0.8,
            )
        elif current > mean * Decimal(str(cfg.sell_ratio)):
            primary = Recommendation(
                action=RecommendationAction.SELL,
                reason="price above average by >10%",
                risk_level=RiskLevel.MEDIUM,
                timeframe="within 7 days",
                confidence=0.7,
            )
        else:
            primary = Recommendation(
                action=RecommendationAction.HOLD,
                reason="price near average",
                risk_level=RiskLevel.LOW,
                timeframe="continue monitoring",
                confidence=0.6,
            )

        recommendations = [primary]
        if trend == TrendDirection.VOLATILE:
            recommendations.append(Recommendation(
                action=RecommendationAction.WATCH,
                reason=f"price is volatile ({volatility_pct:.1f}%); wait for it to stabilize",
                risk_level=RiskLevel.HIGH,
                timeframe="until price stabilizes",
                confidence=0.5,
            ))
        return recommendations

    # ------------------------------------------------------------
    # 이상치 / 신뢰도 / 인사이트
    # ------------------------------------------------------------

    def _detect_anomalies(
        self, points: List[PriceDataPoint], mean: Decimal, stdev: Decimal
    ) -> List[PriceAnomaly]:
        """|z| > 2.5 인 포인트 (포인트 10개 이상일 때만)"""
        cfg = self.config
        if len(points) < cfg.anomaly_min_points or stdev == 0:
            return []

        anomalies = []
        for point in points:
            price = point.price.amount
            z_score = float(abs(price - mean) / stdev)
            if z_score <= cfg.anomaly_z_score:
                continue
            if z_score > 3:
                severity = "high"
            elif z_score > 2.8:
                severity = "medium"
            else:
                severity = "low"
            anomalies.append(PriceAnomaly(
                timestamp=point.timestamp,
                price=price,
                type=AnomalyType.SPIKE if price > mean else AnomalyType.DROP,
                severity=severity,
                z_score=z_score,
            ))
        return anomalies

    @staticmethod
    def _confidence_score(points: int) -> float:
        """표본이 많을수록 높음"""
        if points < 10:
            return 0.3
        if points < 30:
            return 0.6
        return 0.9

    def _insights(self, analysis: TrendAnalysis, window_size: int) -> List[str]:
        """표시용 문장 (구조화 필드 이상의 정보 없음)"""
        cfg = self.config
        insights = []

        ratio = analysis.current_price / analysis.mean_price
        if ratio < Decimal(str(cfg.buy_ratio)):
            insights.append("current price is more than 10% below average; possible buying opportunity")
        elif ratio > Decimal(str(cfg.sell_ratio)):
            insights.append("current price is more than 10% above average; possible selling opportunity")
        else:
            insights.append("current price is within 10% of average")

        if analysis.volatility_pct > cfg.high_volatility_insight_pct:
            insights.append("large price swings; timing matters")
        elif analysis.volatility_pct < cfg.low_volatility_insight_pct:
            insights.append("price is stable and predictable")
        else:
            insights.append(f"moderate volatility ({analysis.volatility_pct:.1f}%)")

        insights.append(
            f"trend: {analysis.trend.value} ({analysis.slope * 100:+.1f}% over last {window_size} points)"
        )
        if analysis.anomalies:
            insights.append(f"{len(analysis.anomalies)} unusual price point(s) detected")
        return insights


def analyze(series: Sequence[SeriesItem], config: Optional[EngineConfig] = None) -> TrendAnalysis:
    """가격 추세 분석 (PriceTrendAnalyzer 단축 함수)"""
    return PriceTrendAnalyzer(config).analyze(series)
