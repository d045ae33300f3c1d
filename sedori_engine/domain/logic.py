"""
logic.py - 수익성 계산 (ProfitCalculator)

DDD 원칙: 외부 의존성 없는 순수 파이썬 코드
- 같은 입력이면 항상 같은 결과
- compute_profit 은 실패하지 않는다 (음수 이익도 그대로 보고)
- 수익성 게이트(check_profitable / assert_profitable)만 실패할 수 있다

라이브 입력 UI 는 compute_profit 으로 음수 이익을 바로 보여주고,
제출 시점에만 게이트로 막는다.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union

from .models import Money, ProfitReport
from ..core.config import EngineConfig, DEFAULT_CONFIG
from ..core.exceptions import AppError, ErrorKind, profit_error

logger = logging.getLogger(__name__)

HUNDRED = Decimal(100)

MoneyLike = Union[Money, int, float, str, Decimal]


class ProfitCalculator:
    """(원가, 판매가) → 이익 / 마진 / ROI"""

    def __init__(self, config: Optional[EngineConfig] = None):
        """
        Args:
            config: 엔진 설정. None이면 기본값 사용.
        """
        self.config = config or DEFAULT_CONFIG

    def _money(self, value: MoneyLike) -> Money:
        return Money.of(value, self.config.default_currency)

    def _pair(self, cost: MoneyLike, price: MoneyLike):
        cost, price = self._money(cost), self._money(price)
        if cost.currency != price.currency:
            raise profit_error(
                ErrorKind.INVALID_PROFIT_CALCULATION,
                {"reason": "currency mismatch", "cost_currency": cost.currency,
                 "price_currency": price.currency},
            )
        return cost, price

    def compute(self, cost: MoneyLike, price: MoneyLike) -> ProfitReport:
        """
        수익 지표 계산

        profit = price - cost
        margin_pct = profit / price * 100  (price == 0 → 0)
        roi_pct = profit / cost * 100      (cost == 0 → 0)

        Returns:
            ProfitReport (반올림 없음)
        """
        cost, price = self._pair(cost, price)

        profit = price.amount - cost.amount
        margin_pct = profit / price.amount * HUNDRED if price.amount > 0 else Decimal(0)
        roi_pct = profit / cost.amount * HUNDRED if cost.amount > 0 else Decimal(0)

        report = ProfitReport(
            cost=cost.amount,
            price=price.amount,
            profit=profit,
            margin_pct=margin_pct,
            roi_pct=roi_pct,
            is_profitable=profit > 0,
            currency=price.currency,
        )
        logger.debug(
            "profit computed",
            extra={"context": {"cost": float(cost.amount), "price": float(price.amount),
                               "margin_pct": float(margin_pct)}},
        )
        return report

    def check_profitable(self, cost: MoneyLike, price: MoneyLike) -> Optional[AppError]:
        """수익성 게이트 (실패 시 AppError 반환, 통과 시 None)

        원가 >= 판매가 이고 둘 다 0보다 클 때만 실패.
        둘 다 0 인 빈 폼 상태는 통과.
        """
        cost, price = self._pair(cost, price)
        if cost.amount > 0 and price.amount > 0 and cost.amount >= price.amount:
            return profit_error(
                ErrorKind.COST_GREATER_THAN_PRICE,
                {"field": "price", "cost": float(cost.amount), "price": float(price.amount)},
            )
        return None

    def assert_profitable(self, cost: MoneyLike, price: MoneyLike):
        """수익성 게이트 (실패 시 AppError 발생)"""
        error = self.check_profitable(cost, price)
        if error is not None:
            raise error

    def price_for_margin(self, cost: MoneyLike, target_margin_pct: Any = 0) -> Money:
        """
        목표 마진 달성 판매가

        price = cost / (1 - target_margin_pct / 100)
        손익분기 판매가(원가 + 제반 비용)가 아니라 목표 마진을 만족하는 판매가.

        Args:
            cost: 원가
            target_margin_pct: 목표 마진율 (%), 0 이상 100 미만

        Returns:
            판매가 (반올림 없음)
        """
        cost = self._money(cost)
        try:
            margin = Decimal(str(target_margin_pct))
        except (InvalidOperation, ValueError):
            margin = Decimal("NaN")
        if not margin.is_finite() or margin < 0 or margin >= HUNDRED:
            raise profit_error(
                ErrorKind.INVALID_PROFIT_CALCULATION,
                {"field": "target_margin_pct", "value": str(target_margin_pct)},
            )
        return Money(cost.amount / (1 - margin / HUNDRED), cost.currency)


# 기본 계산기 (설정 없음, 상태 없음)
_default_calculator = ProfitCalculator()


def compute_profit(cost: MoneyLike, price: MoneyLike) -> ProfitReport:
    """기본 설정으로 수익 지표 계산"""
    return _default_calculator.compute(cost, price)


def check_profitable(cost: MoneyLike, price: MoneyLike) -> Optional[AppError]:
    return _default_calculator.check_profitable(cost, price)


def assert_profitable(cost: MoneyLike, price: MoneyLike):
    _default_calculator.assert_profitable(cost, price)


def price_for_margin(cost: MoneyLike, target_margin_pct: Any = 0) -> Money:
    return _default_calculator.price_for_margin(cost, target_margin_pct)


if __name__ == "__main__":
    # 간단한 동작 확인
    report = compute_profit(1000, 1500)
    print(f"이익: {report.format()['profit']}")
    print(f"마진: {report.format()['margin_pct']}")
    print(f"ROI: {report.format()['roi_pct']}")
    print(f"마진 30% 판매가: {price_for_margin(1000, 30)}")
