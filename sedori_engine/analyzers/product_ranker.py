"""
product_ranker.py - 검색 결과 랭킹

점수 = 수익성*0.4 + (100-리스크)*0.3 + 경쟁력*0.3
     + 검색 의도 부스트 (+15 / +10 / +12)
     + 키워드 일치 부스트 (일치 단어 비율 * 20)
→ [0, 100] 제한 후 정수 반올림 → 안정 정렬(내림차순) → limit 개 (기본 EngineConfig.default_limit)

필터(수익성 하한, 최대 리스크 레벨, 카테고리, 가격대)는 점수 계산 전에 적용한다.
"""

import logging
import math
from typing import Any, Iterable, List, Mapping, Optional, Union

from ..core.config import EngineConfig, DEFAULT_CONFIG
from ..domain.models import (
    Candidate,
    SalesRankTrend,
    ScoredCandidate,
    SearchOptions,
    in_price_range,
)
from ..utils.helpers import clamp

logger = logging.getLogger(__name__)

# 검색 의도 키워드 (부분 문자열 일치, 소문자 기준)
TREND_TERMS = ("人気", "トレンド", "trend", "popular")
SAFETY_TERMS = ("安全", "リスク低", "safe", "low-risk", "low risk")
PROFIT_TERMS = ("利益", "儲かる", "profit")

MAX_REASONS = 3

CandidateLike = Union[Candidate, Mapping[str, Any]]


def _mentions(query: str, terms: Iterable[str]) -> bool:
    return any(term in query for term in terms)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class ProductRanker:
    """후보 상품 랭킹 엔진"""

    def __init__(self, config: Optional[EngineConfig] = None):
        """
        Args:
            config: 엔진 설정. None이면 기본값 사용.
        """
        self.config = config or DEFAULT_CONFIG

    def rank(
        self,
        candidates: Iterable[CandidateLike],
        query: str = "",
        options: Optional[Union[SearchOptions, Mapping[str, Any]]] = None,
    ) -> List[ScoredCandidate]:
        """
        후보 랭킹

        Args:
            candidates: Candidate 또는 dict (camelCase 키 허용)
            query: 자유 검색어
            options: SearchOptions 또는 dict

        Returns:
            최종 점수 내림차순 (동점은 입력 순서 유지), 최대 limit 개
        """
        if not isinstance(options, SearchOptions):
            options = SearchOptions.from_dict(options)
        items = [c if isinstance(c, Candidate) else Candidate.from_dict(c) for c in candidates]

        filtered = [c for c in items if self._passes(c, options)]
        query_lower = (query or "").lower()
        scored = [self.score(c, query_lower, options) for c in filtered]

        # sorted 는 안정 정렬
        ranked = sorted(scored, key=lambda s: -s.final_score)
        limit = options.limit if options.limit is not None else self.config.default_limit
        limit = max(limit, 0)

        logger.debug(
            f"ranked {len(ranked)}/{len(items)} candidates",
            extra={"context": {"query": query, "limit": limit}},
        )
        return ranked[:limit]

    def _passes(self, candidate: Candidate, options: SearchOptions) -> bool:
        """검색 옵션 필터"""
        if (options.min_profitability_score is not None
                and candidate.profitability_score < options.min_profitability_score):
            return False

        if options.max_risk_level is not None:
            threshold = self.config.risk_thresholds[options.max_risk_level.value]
            if candidate.risk_score > threshold:
                return False

        if options.category is not None and candidate.category != options.category:
            return False

        if options.price_range is not None and not in_price_range(candidate.current_price, options.price_range):
            return False

        return True

    def base_score(self, candidate: Candidate) -> float:
        """가중 기본 점수"""
        cfg = self.config
        return (
            candidate.profitability_score * cfg.weight_profitability
            + (100 - candidate.risk_score) * cfg.weight_safety
            + candidate.competitiveness * cfg.weight_competitiveness
        )

    def score(self, candidate: Candidate, query: str, options: SearchOptions) -> ScoredCandidate:
        """후보 하나의 점수 (다른 후보와 무관)"""
        cfg = self.config
        query = query.lower()
        base = self.base_score(candidate)
        total = base

        # 검색 의도 부스트 (독립적으로 모두 적용)
        if _mentions(query, TREND_TERMS) and candidate.sales_rank_trend == SalesRankTrend.IMPROVING:
            total += cfg.trend_boost
        if _mentions(query, SAFETY_TERMS) and candidate.risk_score < cfg.safety_boost_max_risk:
            total += cfg.safety_boost
        if (_mentions(query, PROFIT_TERMS)
                and candidate.profitability_score > cfg.profit_boost_min_profitability):
            total += cfg.profit_boost

        # 키워드 일치 부스트
        terms = query.split()
        matched = 0
        if terms:
            title = candidate.title.lower()
            matched = sum(1 for term in terms if term in title)
            total += matched / len(terms) * cfg.keyword_boost

        final_score = _round_half_up(clamp(total, 0, 100))
        return ScoredCandidate(
            candidate=candidate,
            base_score=base,
            final_score=final_score,
            reasons=self._reasons(candidate, options, matched),
        )

    def _reasons(self, candidate: Candidate, options: SearchOptions, matched_terms: int) -> List[str]:
        """사람이 읽는 추천 이유 (최대 3개)"""
        reasons = []
        if candidate.profitability_score > 70:
            reasons.append("high profit potential")
        if candidate.risk_score < 30:
            reasons.append("low risk, stable product")
        if candidate.competitiveness > 70:
            reasons.append("few competitors, easy market entry")
        if options.price_range is not None and in_price_range(candidate.current_price, options.price_range):
            reasons.append("matches requested price range")
        if matched_terms:
            reasons.append("title matches search keywords")
        return reasons[:MAX_REASONS]


def rank(
    candidates: Iterable[CandidateLike],
    query: str = "",
    options: Optional[Union[SearchOptions, Mapping[str, Any]]] = None,
    config: Optional[EngineConfig] = None,
) -> List[ScoredCandidate]:
    """후보 랭킹 (ProductRanker 단축 함수)"""
    return ProductRanker(config).rank(candidates, query, options)
