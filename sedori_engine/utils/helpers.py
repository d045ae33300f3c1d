"""
helpers.py - 헬퍼 유틸리티
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Number = Union[int, float, Decimal]

CURRENCY_SYMBOLS = {
    "JPY": "¥",
    "USD": "$",
    "KRW": "₩",
}


def format_currency(amount: Number, currency: str = "JPY", decimals: int = 0) -> str:
    """통화 포맷 (¥1,500)"""
    symbol = CURRENCY_SYMBOLS.get(currency, f"{currency} ")
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.{decimals}f}"


def format_percent(value: Number, decimals: int = 1) -> str:
    """퍼센트 포맷"""
    return f"{value:.{decimals}f}%"


def round_half_up(value: Decimal, places: int) -> Decimal:
    """사사오입 (표시용)"""
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def clamp(value: float, min_val: float, max_val: float) -> float:
    """값을 범위 내로 제한"""
    return max(min_val, min(value, max_val))


def truncate_text(text: str, max_length: int = 100, suffix: str = "...") -> str:
    """텍스트 자르기"""
    if len(text) <= max_length:
        return text
    return text[:max_length - len(suffix)] + suffix
