"""
config.py - 계산 엔진 설정

모든 임계값/가중치를 중앙 관리. 엔진 함수는 config 를 인자로 받고
None 이면 DEFAULT_CONFIG 를 사용한다.
"""

import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Tuple

from dotenv import load_dotenv


@dataclass(frozen=True)
class EngineConfig:
    """계산 엔진 설정"""

    # 통화
    default_currency: str = "JPY"

    # 폼 검증
    password_min_length: int = 6
    low_margin_pct: float = 10.0            # 이하 = "low margin" 경고
    high_margin_pct: float = 80.0           # 초과 = "verify competitiveness" 경고
    long_description_chars: int = 1000
    max_cart_quantity_without_warning: int = 99
    name_length: Tuple[int, int] = (2, 50)
    title_length: Tuple[int, int] = (3, 200)

    # 가격 추세 분석
    trend_window: int = 10                  # 최근 N개 포인트
    volatile_threshold_pct: float = 15.0
    trend_slope_threshold: float = 0.05
    prediction_horizon_days: int = 30
    prediction_slope_damping: float = 0.5
    prediction_band: float = 0.10           # 현재가 ±10%
    prediction_probability: float = 0.75
    buy_ratio: float = 0.9                  # 현재가 < 평균*0.9 → BUY
    sell_ratio: float = 1.1                 # 현재가 > 평균*1.1 → SELL
    high_volatility_insight_pct: float = 20.0
    low_volatility_insight_pct: float = 5.0
    anomaly_min_points: int = 10
    anomaly_z_score: float = 2.5

    # 랭킹
    weight_profitability: float = 0.4
    weight_safety: float = 0.3              # (100 - risk_score)
    weight_competitiveness: float = 0.3
    trend_boost: float = 15.0
    safety_boost: float = 10.0
    profit_boost: float = 12.0
    safety_boost_max_risk: float = 30.0
    profit_boost_min_profitability: float = 80.0
    keyword_boost: float = 20.0
    default_limit: int = 20                 # SearchOptions.limit 미지정 시
    # 최대 리스크 레벨 → 허용 risk_score 상한 (읽기 전용)
    risk_thresholds: Mapping[str, float] = field(
        default_factory=lambda: MappingProxyType({"low": 30.0, "medium": 60.0, "high": 100.0})
    )

    def __post_init__(self):
        # 호출자가 넘긴 dict 도 복사 후 읽기 전용으로
        object.__setattr__(self, "risk_thresholds", MappingProxyType(dict(self.risk_thresholds)))


# 기본 설정 인스턴스
DEFAULT_CONFIG = EngineConfig()


@dataclass
class Settings:
    """실행 환경 설정 (.env / 환경변수)"""
    log_level: str = "INFO"
    log_json: bool = False
    currency: str = "JPY"

    @classmethod
    def from_env(cls) -> "Settings":
        """환경변수에서 설정 로드"""
        load_dotenv()
        return cls(
            log_level=os.getenv("SEDORI_LOG_LEVEL", "INFO").upper(),
            log_json=os.getenv("SEDORI_LOG_JSON", "false").lower() == "true",
            currency=os.getenv("SEDORI_CURRENCY", "JPY"),
        )

    def engine_config(self) -> EngineConfig:
        """통화만 반영한 엔진 설정"""
        if self.currency == DEFAULT_CONFIG.default_currency:
            return DEFAULT_CONFIG
        return EngineConfig(default_currency=self.currency)
