"""도메인 모듈 - 순수 비즈니스 로직"""
from .models import (
    Money,
    ProfitReport,
    PriceDataPoint,
    PricePrediction,
    Recommendation,
    PriceAnomaly,
    TrendAnalysis,
    TrendDirection,
    RecommendationAction,
    RiskLevel,
    AnomalyType,
    SalesRankTrend,
    Candidate,
    SearchOptions,
    ScoredCandidate,
)
from .logic import (
    ProfitCalculator,
    compute_profit,
    check_profitable,
    assert_profitable,
    price_for_margin,
)
from .forms import (
    FormKind,
    FormValidator,
    BatchOutcome,
    validate_form,
    validate_batch,
)

__all__ = [
    # 모델
    "Money",
    "ProfitReport",
    "PriceDataPoint",
    "PricePrediction",
    "Recommendation",
    "PriceAnomaly",
    "TrendAnalysis",
    "TrendDirection",
    "RecommendationAction",
    "RiskLevel",
    "AnomalyType",
    "SalesRankTrend",
    "Candidate",
    "SearchOptions",
    "ScoredCandidate",
    # 수익성
    "ProfitCalculator",
    "compute_profit",
    "check_profitable",
    "assert_profitable",
    "price_for_margin",
    # 폼
    "FormKind",
    "FormValidator",
    "BatchOutcome",
    "validate_form",
    "validate_batch",
]
