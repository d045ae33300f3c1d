"""
models.py - 도메인 모델

순수 파이썬 데이터 클래스. 계산마다 새로 만들고 호출자에게 넘긴 뒤 버린다.
모든 모델은 to_dict() 로 직렬화 가능한 평범한 값이다.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..core.exceptions import ErrorKind, validation_error
from ..utils.helpers import format_currency, format_percent, round_half_up
from ..utils.validators import MAX_ABS_NUMBER, sanitize_integer, sanitize_number


class TrendDirection(Enum):
    """가격 추세"""
    RISING = "rising"
    FALLING = "falling"
    STABLE = "stable"
    VOLATILE = "volatile"


class RecommendationAction(Enum):
    """추천 행동"""
    BUY = "buy"
    SELL = "sell"
    HOLD = "hold"
    WATCH = "watch"


class RiskLevel(Enum):
    """위험도 레벨"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AnomalyType(Enum):
    """가격 이상치 유형"""
    SPIKE = "spike"     # 급등
    DROP = "drop"       # 급락


class SalesRankTrend(Enum):
    """판매 순위 추세 (수요 지표)"""
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


# ============================================================
# 금액 / 이익
# ============================================================

@dataclass(frozen=True)
class Money:
    """0 이상의 유한한 금액"""
    amount: Decimal
    currency: str = "JPY"

    def __post_init__(self):
        if not isinstance(self.amount, Decimal) or not self.amount.is_finite():
            raise validation_error(ErrorKind.INVALID_NUMBER, {"field": "amount", "value": self.amount})
        if self.amount.copy_abs() > MAX_ABS_NUMBER:
            raise validation_error(
                ErrorKind.INVALID_NUMBER,
                {"field": "amount", "value": str(self.amount), "reason": "out of range"},
            )
        if self.amount < 0:
            raise validation_error(
                ErrorKind.NEGATIVE_VALUE, {"field": "amount", "value": float(self.amount)}
            )

    @classmethod
    def of(cls, value: Any, currency: str = "JPY") -> "Money":
        """숫자/문자열에서 생성 (무효 → INVALID_NUMBER, 음수 → NEGATIVE_VALUE)"""
        if isinstance(value, Money):
            return value
        if value is None or isinstance(value, bool):
            raise validation_error(ErrorKind.INVALID_NUMBER, {"field": "amount", "value": repr(value)})
        try:
            amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise validation_error(ErrorKind.INVALID_NUMBER, {"field": "amount", "value": str(value)}) from None
        return cls(amount, currency)

    def __str__(self) -> str:
        return format_currency(self.amount, self.currency)


@dataclass(frozen=True)
class ProfitReport:
    """(원가, 판매가) 한 쌍의 수익 지표

    저장 값은 반올림하지 않는다. 반올림은 format() 에서만.
    """
    cost: Decimal
    price: Decimal
    profit: Decimal             # 음수 가능
    margin_pct: Decimal         # price == 0 이면 0
    roi_pct: Decimal            # cost == 0 이면 0
    is_profitable: bool
    currency: str = "JPY"

    def format(self) -> Dict[str, str]:
        """표시용 문자열 (이익 소수 2자리, 마진/ROI 소수 1자리)"""
        return {
            "profit": format_currency(round_half_up(self.profit, 2), self.currency, decimals=2),
            "margin_pct": format_percent(round_half_up(self.margin_pct, 1)),
            "roi_pct": format_percent(round_half_up(self.roi_pct, 1)),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cost": float(self.cost),
            "price": float(self.price),
            "profit": float(self.profit),
            "margin_pct": float(self.margin_pct),
            "roi_pct": float(self.roi_pct),
            "is_profitable": self.is_profitable,
            "currency": self.currency,
        }


# ============================================================
# 가격 추세
# ============================================================

def _parse_timestamp(raw: Any) -> datetime:
    if isinstance(raw, datetime):
        moment = raw
    elif isinstance(raw, (int, float)) and not isinstance(raw, bool):
        moment = datetime.fromtimestamp(raw, tz=timezone.utc)
    elif isinstance(raw, str):
        try:
            moment = datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))
        except ValueError:
            raise validation_error(ErrorKind.INVALID_NUMBER, {"field": "timestamp", "value": raw}) from None
    else:
        raise validation_error(ErrorKind.REQUIRED_FIELD, {"field": "timestamp"})
    # naive 시각은 UTC 로 간주
    return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class PriceDataPoint:
    """가격 관측값 하나"""
    timestamp: datetime
    price: Money
    source: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], currency: str = "JPY") -> "PriceDataPoint":
        """{"timestamp": ISO 문자열 | epoch 초, "price": 숫자, "source": 문자열}"""
        return cls(
            timestamp=_parse_timestamp(data.get("timestamp")),
            price=Money.of(data.get("price"), currency),
            source=str(data.get("source") or ""),
        )


@dataclass(frozen=True)
class PricePrediction:
    """미래 가격 추정치 하나 (lower ≤ predicted ≤ upper)"""
    target_timestamp: datetime
    predicted_price: Money
    lower: Money
    upper: Money
    probability: float

    def __post_init__(self):
        if not self.lower.amount <= self.predicted_price.amount <= self.upper.amount:
            raise ValueError(
                f"prediction outside interval: {self.lower.amount} <= "
                f"{self.predicted_price.amount} <= {self.upper.amount}"
            )

    @property
    def confidence_interval(self) -> Tuple[Money, Money]:
        return (self.lower, self.upper)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target_timestamp": self.target_timestamp.isoformat(),
            "predicted_price": float(self.predicted_price.amount),
            "confidence_interval": [float(self.lower.amount), float(self.upper.amount)],
            "probability": self.probability,
        }


@dataclass(frozen=True)
class Recommendation:
    """행동 제안"""
    action: RecommendationAction
    reason: str
    risk_level: RiskLevel
    timeframe: str
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action.value,
            "reason": self.reason,
            "risk_level": self.risk_level.value,
            "timeframe": self.timeframe,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class PriceAnomaly:
    """z-score 기반 가격 이상치"""
    timestamp: datetime
    price: Decimal
    type: AnomalyType
    severity: str               # "low" | "medium" | "high"
    z_score: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "price": float(self.price),
            "type": self.type.value,
            "severity": self.severity,
            "z_score": round(self.z_score, 3),
        }


@dataclass
class TrendAnalysis:
    """가격 추세 분석 결과"""
    trend: TrendDirection
    trend_strength: float               # 0..1
    volatility_pct: float
    mean_price: Decimal
    current_price: Decimal
    slope: float
    predictions: List[PricePrediction] = field(default_factory=list)
    insights: List[str] = field(default_factory=list)
    recommendations: List[Recommendation] = field(default_factory=list)
    anomalies: List[PriceAnomaly] = field(default_factory=list)
    data_points: int = 0
    confidence_score: float = 0.0

    @property
    def primary_recommendation(self) -> Recommendation:
        """첫 번째 추천이 기본 추천"""
        return self.recommendations[0]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trend": self.trend.value,
            "trend_strength": self.trend_strength,
            "volatility_pct": self.volatility_pct,
            "mean_price": float(self.mean_price),
            "current_price": float(self.current_price),
            "slope": self.slope,
            "predictions": [p.to_dict() for p in self.predictions],
            "insights": list(self.insights),
            "recommendations": [r.to_dict() for r in self.recommendations],
            "anomalies": [a.to_dict() for a in self.anomalies],
            "data_points": self.data_points,
            "confidence_score": self.confidence_score,
        }


# ============================================================
# 랭킹
# ============================================================

def _pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """snake_case / camelCase 키 중 먼저 있는 값"""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _mapping(raw: Any, field_name: str) -> Mapping[str, Any]:
    """None 은 빈 매핑, 매핑이 아니면 INVALID_NUMBER"""
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise validation_error(
            ErrorKind.INVALID_NUMBER,
            {"field": field_name, "value": type(raw).__name__, "reason": "expected an object"},
        )
    return raw


def _bound(raw: Any) -> Optional[Decimal]:
    return sanitize_number(raw) if raw is not None else None


def _price_range(raw: Any) -> Optional[Tuple[Optional[Decimal], Optional[Decimal]]]:
    """{"min", "max"} 또는 (min, max). 없는 쪽은 제한 없음 (None)"""
    if raw is None:
        return None
    if isinstance(raw, Mapping):
        return (_bound(raw.get("min")), _bound(raw.get("max")))
    if isinstance(raw, (list, tuple)) and len(raw) == 2:
        return (_bound(raw[0]), _bound(raw[1]))
    raise validation_error(
        ErrorKind.INVALID_NUMBER,
        {"field": "price_range", "value": repr(raw), "reason": "invalid price range"},
    )


def in_price_range(price: Decimal, price_range: Tuple[Optional[Decimal], Optional[Decimal]]) -> bool:
    """양 끝 포함, None 인 쪽은 제한 없음"""
    low, high = price_range
    if low is not None and price < low:
        return False
    if high is not None and price > high:
        return False
    return True


def _sales_rank_trend(raw: Any) -> SalesRankTrend:
    """알 수 없는 값은 STABLE"""
    if isinstance(raw, SalesRankTrend):
        return raw
    try:
        return SalesRankTrend(str(raw).strip().lower())
    except ValueError:
        return SalesRankTrend.STABLE


def _risk_level(raw: Any) -> RiskLevel:
    if isinstance(raw, RiskLevel):
        return raw
    try:
        return RiskLevel(str(raw).strip().lower())
    except ValueError:
        raise validation_error(
            ErrorKind.INVALID_NUMBER, {"field": "max_risk_level", "value": raw, "reason": "unknown risk level"}
        ) from None


@dataclass(frozen=True)
class Candidate:
    """검색 랭킹 후보 상품"""
    product_id: str
    title: str
    current_price: Decimal
    profitability_score: float      # 0..100
    risk_score: float               # 0..100 (높을수록 위험)
    competitiveness: float          # 0..100 (외부 입력)
    sales_rank_trend: SalesRankTrend = SalesRankTrend.STABLE
    category: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Candidate":
        data = _mapping(data, "candidate")
        insights = _mapping(_pick(data, "aiInsights", "ai_insights"), "aiInsights")
        demand = _mapping(_pick(insights, "demandIndicators", "demand_indicators"), "demandIndicators")

        def signal(*keys: str) -> float:
            return float(sanitize_number(_pick(data, *keys, default=_pick(insights, *keys, default=0))))

        trend = _pick(data, "sales_rank_trend", "salesRankTrend",
                      default=_pick(demand, "sales_rank_trend", "salesRankTrend", default="stable"))
        category = _pick(data, "category")
        return cls(
            product_id=str(_pick(data, "product_id", "productId", "id", "asin", default="")),
            title=str(_pick(data, "title", default="")),
            current_price=sanitize_number(_pick(data, "current_price", "currentPrice", default=0)),
            profitability_score=signal("profitability_score", "profitabilityScore"),
            risk_score=signal("risk_score", "riskScore"),
            competitiveness=signal("competitiveness"),
            sales_rank_trend=_sales_rank_trend(trend),
            category=str(category) if category is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "product_id": self.product_id,
            "title": self.title,
            "current_price": float(self.current_price),
            "profitability_score": self.profitability_score,
            "risk_score": self.risk_score,
            "competitiveness": self.competitiveness,
            "sales_rank_trend": self.sales_rank_trend.value,
            "category": self.category,
        }


@dataclass(frozen=True)
class SearchOptions:
    """검색 옵션 (모두 선택, limit 이 None 이면 EngineConfig.default_limit)"""
    min_profitability_score: Optional[float] = None
    max_risk_level: Optional[RiskLevel] = None
    category: Optional[str] = None
    price_range: Optional[Tuple[Optional[Decimal], Optional[Decimal]]] = None
    limit: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "SearchOptions":
        """API 요청 본문의 camelCase / snake_case 키 모두 허용"""
        data = _mapping(data, "options")
        min_score = _pick(data, "min_profitability_score", "minProfitabilityScore")
        risk = _pick(data, "max_risk_level", "maxRiskLevel")
        category = _pick(data, "category")
        price_range = _price_range(_pick(data, "price_range", "priceRange"))
        limit = _pick(data, "limit")
        return cls(
            min_profitability_score=float(sanitize_number(min_score)) if min_score is not None else None,
            max_risk_level=_risk_level(risk) if risk is not None else None,
            category=str(category) if category is not None else None,
            price_range=price_range,
            limit=sanitize_integer(limit) if limit is not None else None,
        )


@dataclass
class ScoredCandidate:
    """랭킹 결과 한 건"""
    candidate: Candidate
    base_score: float
    final_score: int                # 0..100
    reasons: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.candidate.to_dict(),
            "base_score": round(self.base_score, 2),
            "final_score": self.final_score,
            "reasons": list(self.reasons),
        }
