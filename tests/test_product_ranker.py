"""product_ranker.py 테스트"""

import sys
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from sedori_engine.analyzers.product_ranker import ProductRanker, rank
from sedori_engine.core.config import EngineConfig
from sedori_engine.core.exceptions import AppError, ErrorKind
from sedori_engine.domain.models import Candidate, RiskLevel, SalesRankTrend, SearchOptions


def make_candidate(product_id="P1", title="ワイヤレスイヤホン", price=1500,
                   profitability=80.0, risk=20.0, competitiveness=50.0,
                   trend=SalesRankTrend.STABLE, category=None):
    return Candidate(
        product_id=product_id,
        title=title,
        current_price=Decimal(price),
        profitability_score=profitability,
        risk_score=risk,
        competitiveness=competitiveness,
        sales_rank_trend=trend,
        category=category,
    )


class TestScoring:
    """점수 계산"""

    def setup_method(self):
        self.ranker = ProductRanker()

    def test_base_score(self):
        """80*0.4 + (100-20)*0.3 + 50*0.3 = 71"""
        assert self.ranker.base_score(make_candidate()) == pytest.approx(71.0)

    def test_no_query_no_boost(self):
        """빈 검색어는 부스트 없음"""
        result = rank([make_candidate()])
        assert result[0].final_score == 71

    def test_trend_boost(self):
        candidate = make_candidate(trend=SalesRankTrend.IMPROVING, title="item")
        result = rank([candidate], query="人気")
        assert result[0].final_score == 86

    def test_trend_boost_requires_improving(self):
        result = rank([make_candidate(title="item")], query="trend")
        assert result[0].final_score == 71

    def test_safety_boost(self):
        result = rank([make_candidate(title="item")], query="安全")
        assert result[0].final_score == 81

    def test_safety_boost_requires_low_risk(self):
        """리스크 30 은 부스트 대상 아님 (미만만)"""
        candidate = make_candidate(title="item", risk=30.0)
        base = ProductRanker().base_score(candidate)
        result = rank([candidate], query="safe")
        assert result[0].final_score == round(base)

    def test_profit_boost(self):
        candidate = make_candidate(title="item", profitability=90.0)
        # 36 + 24 + 15 = 75, +12
        assert rank([candidate], query="利益")[0].final_score == 87

    def test_boosts_accumulate(self):
        candidate = make_candidate(
            title="item", profitability=90.0, trend=SalesRankTrend.IMPROVING
        )
        # 75 + 15 + 10 + 12 = 112 → 100
        result = rank([candidate], query="人気 安全 利益")
        assert result[0].final_score == 100

    def test_keyword_overlap(self):
        """일치 단어 비율 * 20"""
        candidate = make_candidate(title="Wireless Earphones Black")
        result = rank([candidate], query="wireless white")
        # 71 + 1/2 * 20
        assert result[0].final_score == 81
        assert "title matches search keywords" in result[0].reasons

    def test_score_clamped(self):
        candidate = make_candidate(profitability=100.0, risk=0.0, competitiveness=100.0,
                                   title="safe item")
        result = rank([candidate], query="safe item")
        assert result[0].final_score == 100

    def test_score_bounds(self):
        candidate = make_candidate(profitability=0.0, risk=100.0, competitiveness=0.0)
        assert rank([candidate])[0].final_score == 0

    def test_round_half_up(self):
        """.5 는 올림"""
        candidate = make_candidate(profitability=80.0, risk=20.0, competitiveness=55.0)
        # 32 + 24 + 16.5 = 72.5
        assert rank([candidate])[0].final_score == 73

    def test_reasons_at_most_three(self):
        candidate = make_candidate(profitability=90.0, risk=10.0, competitiveness=90.0,
                                   title="wireless")
        result = rank([candidate], query="wireless",
                      options={"priceRange": {"min": 1000, "max": 2000}})
        assert result[0].reasons == [
            "high profit potential",
            "low risk, stable product",
            "few competitors, easy market entry",
        ]


class TestFiltering:
    """필터"""

    def setup_method(self):
        self.candidates = [
            make_candidate("A", price=500, profitability=90.0, risk=10.0, category="Toys"),
            make_candidate("B", price=1500, profitability=60.0, risk=50.0, category="Electronics"),
            make_candidate("C", price=3000, profitability=40.0, risk=80.0, category="Electronics"),
        ]

    def ids(self, results):
        return [r.candidate.product_id for r in results]

    def test_min_profitability(self):
        result = rank(self.candidates, options=SearchOptions(min_profitability_score=60.0))
        assert self.ids(result) == ["A", "B"]

    @pytest.mark.parametrize("level, expected", [
        (RiskLevel.LOW, ["A"]),
        (RiskLevel.MEDIUM, ["A", "B"]),
        (RiskLevel.HIGH, ["A", "B", "C"]),
    ])
    def test_max_risk_level(self, level, expected):
        result = rank(self.candidates, options=SearchOptions(max_risk_level=level))
        assert sorted(self.ids(result)) == expected

    def test_category(self):
        result = rank(self.candidates, options={"category": "Electronics"})
        assert sorted(self.ids(result)) == ["B", "C"]

    def test_price_range_inclusive(self):
        options = SearchOptions(price_range=(Decimal(500), Decimal(1500)))
        assert sorted(self.ids(rank(self.candidates, options=options))) == ["A", "B"]

    def test_unknown_risk_level(self):
        with pytest.raises(AppError) as exc_info:
            rank(self.candidates, options={"maxRiskLevel": "extreme"})
        assert exc_info.value.kind == ErrorKind.INVALID_NUMBER

    @pytest.mark.parametrize("price_range, expected", [
        ({"min": 1000}, ["B", "C"]),
        ({"max": 1500}, ["A", "B"]),
        ([None, 600], ["A"]),
        ({}, ["A", "B", "C"]),
    ])
    def test_one_sided_price_range(self, price_range, expected):
        """없는 쪽 경계는 제한 없음"""
        result = rank(self.candidates, options={"price_range": price_range})
        assert sorted(self.ids(result)) == expected

    @pytest.mark.parametrize("price_range", [[1, 2, 3], 1500, "1000-2000"])
    def test_malformed_price_range(self, price_range):
        """잘못된 형태는 AppError"""
        with pytest.raises(AppError) as exc_info:
            rank(self.candidates, options={"priceRange": price_range})
        assert exc_info.value.kind == ErrorKind.INVALID_NUMBER
        assert exc_info.value.context["reason"] == "invalid price range"

    def test_options_must_be_mapping(self):
        with pytest.raises(AppError):
            rank(self.candidates, options=["limit", 5])


class TestOrdering:
    """정렬 / limit"""

    def test_descending(self):
        candidates = [
            make_candidate("low", profitability=10.0),
            make_candidate("high", profitability=90.0),
        ]
        result = rank(candidates)
        assert [r.candidate.product_id for r in result] == ["high", "low"]

    def test_ties_keep_input_order(self):
        """동점은 입력 순서 유지"""
        candidates = [make_candidate(f"P{i}") for i in range(5)]
        result = rank(candidates)
        assert [r.candidate.product_id for r in result] == ["P0", "P1", "P2", "P3", "P4"]

    def test_default_limit(self):
        candidates = [make_candidate(f"P{i}") for i in range(25)]
        assert len(rank(candidates)) == 20

    def test_default_limit_from_config(self):
        """limit 미지정 시 EngineConfig.default_limit"""
        candidates = [make_candidate(f"P{i}") for i in range(10)]
        assert len(rank(candidates, config=EngineConfig(default_limit=3))) == 3
        assert len(rank(candidates, options={"limit": 5}, config=EngineConfig(default_limit=3))) == 5

    def test_limit(self):
        candidates = [make_candidate(f"P{i}") for i in range(5)]
        assert len(rank(candidates, options={"limit": 2})) == 2
        assert rank(candidates, options={"limit": 0}) == []

    def test_rerank_is_stable(self):
        """결과를 다시 랭킹해도 순서 동일"""
        candidates = [
            make_candidate(f"P{i}", profitability=float(p))
            for i, p in enumerate([50, 90, 70, 90, 10])
        ]
        first = rank(candidates)
        second = rank([r.candidate for r in first])
        assert [r.candidate.product_id for r in second] == [r.candidate.product_id for r in first]
        assert [r.final_score for r in second] == [r.final_score for r in first]

    def test_empty_input(self):
        assert rank([]) == []


class TestDictInput:
    """API 형식 dict 입력"""

    def test_camel_case(self):
        data = {
            "productId": "B0XYZ",
            "title": "人気 ワイヤレスイヤホン",
            "currentPrice": "1,980",
            "aiInsights": {
                "profitabilityScore": 80,
                "riskScore": 20,
                "competitiveness": 50,
                "demandIndicators": {"salesRankTrend": "improving"},
            },
        }
        result = rank([data], query="人気")
        scored = result[0]
        assert scored.candidate.product_id == "B0XYZ"
        assert scored.candidate.current_price == Decimal(1980)
        assert scored.candidate.sales_rank_trend == SalesRankTrend.IMPROVING
        # 71 + 15 (trend) + 20 (keyword)
        assert scored.final_score == 100

    @pytest.mark.parametrize("insights", ["high", [1, 2], 42])
    def test_non_object_insights(self, insights):
        """aiInsights 가 객체가 아니면 AppError"""
        with pytest.raises(AppError) as exc_info:
            rank([{"title": "x", "aiInsights": insights}])
        assert exc_info.value.kind == ErrorKind.INVALID_NUMBER
        assert exc_info.value.field == "aiInsights"

    def test_non_object_demand_indicators(self):
        with pytest.raises(AppError):
            Candidate.from_dict({"aiInsights": {"demandIndicators": "up"}})

    def test_custom_risk_thresholds(self):
        config = EngineConfig(risk_thresholds={"low": 50.0, "medium": 60.0, "high": 100.0})
        candidates = [make_candidate("A", risk=40.0), make_candidate("B", risk=55.0)]
        result = rank(candidates, options={"maxRiskLevel": "low"}, config=config)
        assert [r.candidate.product_id for r in result] == ["A"]

    def test_options_limit_unset(self):
        """limit 미지정은 None (랭커가 설정 기본값 사용)"""
        assert SearchOptions.from_dict({}).limit is None
        assert SearchOptions.from_dict({"limit": "7"}).limit == 7

    def test_unknown_sales_trend_is_stable(self):
        candidate = Candidate.from_dict({"title": "x", "salesRankTrend": "sideways"})
        assert candidate.sales_rank_trend == SalesRankTrend.STABLE

    def test_to_dict(self):
        data = rank([make_candidate()])[0].to_dict()
        assert data["final_score"] == 71
        assert data["product_id"] == "P1"
