"""분석 모듈 - 가격 추세, 검색 랭킹"""
from .price_trend import PriceTrendAnalyzer, analyze
from .product_ranker import ProductRanker, rank

__all__ = [
    "PriceTrendAnalyzer",
    "analyze",
    "ProductRanker",
    "rank",
]
