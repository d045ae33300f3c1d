"""
Sedori Engine - せどり 판매 의사결정 계산 엔진

- 입력 검증 (필드 / 폼)
- 수익성 계산 (이익, 마진, ROI)
- 가격 추세 분석 (추세, 예측, 추천)
- 검색 랭킹 (가중 점수 + 검색 의도 부스트)
"""

__version__ = "1.0.0"

from .core.exceptions import AppError, ErrorKind, ErrorCategory, parse_external_failure
from .domain.forms import FormKind, validate_form, validate_batch
from .domain.logic import compute_profit, check_profitable, assert_profitable, price_for_margin
from .domain.models import Money, Candidate, PriceDataPoint, SearchOptions
from .analyzers.price_trend import analyze
from .analyzers.product_ranker import rank

__all__ = [
    "__version__",
    "AppError",
    "ErrorKind",
    "ErrorCategory",
    "parse_external_failure",
    "FormKind",
    "validate_form",
    "validate_batch",
    "compute_profit",
    "check_profitable",
    "assert_profitable",
    "price_for_margin",
    "Money",
    "Candidate",
    "PriceDataPoint",
    "SearchOptions",
    "analyze",
    "rank",
]
