"""
validators.py - 필드 검증 유틸리티

입력값 하나를 규칙 하나로 검증한다.
- sanitize_*: 검증 전에 실행되는 명시적 정규화 (예외 없음)
- validate_field: 규칙 하나 → 정확히 하나의 AppError 또는 수용된 값
- validate_chain: 한 필드에 규칙 여러 개 (첫 실패에서 중단)
"""

import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_FLOOR
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from ..core.exceptions import AppError, ErrorKind, validation_error

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
IMAGE_URL_PATTERN = re.compile(r"^https?://.+\.(jpg|jpeg|png|gif|webp)(\?.*)?$", re.IGNORECASE)

PASSWORD_MIN_LENGTH = 6

# 이 범위를 넘는 값은 파싱 불가와 같이 0 으로 취급
MAX_ABS_NUMBER = Decimal("1e15")


# ============================================================
# 정규화
# ============================================================

def _in_range(value: Decimal) -> bool:
    return value.is_finite() and value.copy_abs() <= MAX_ABS_NUMBER


def sanitize_number(raw: Any) -> Decimal:
    """숫자 정규화 (파싱 불가 / 무한대 / NaN / ±1e15 초과 → 0)"""
    if raw is None or isinstance(raw, bool):
        return Decimal(0)
    if isinstance(raw, Decimal):
        return raw if _in_range(raw) else Decimal(0)
    text = str(raw).strip().replace(",", "")
    if not text:
        return Decimal(0)
    try:
        value = Decimal(text)
    except (InvalidOperation, ValueError):
        return Decimal(0)
    return value if _in_range(value) else Decimal(0)


def sanitize_integer(raw: Any) -> int:
    """정수 정규화 (소수점 이하 버림)"""
    return int(sanitize_number(raw).to_integral_value(rounding=ROUND_FLOOR))


def sanitize_string(raw: Any) -> str:
    """문자열 정규화 (< > 제거, 앞뒤 공백 제거)"""
    if raw is None:
        return ""
    return re.sub(r"[<>]", "", str(raw)).strip()


# ============================================================
# 검증 결과
# ============================================================

@dataclass
class ValidationOutcome:
    """검증 결과

    is_valid 는 errors 에서 파생된다. 경고는 수용을 막지 않는다.
    """
    errors: List[AppError] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    value: Optional[Any] = None
    profit_report: Optional[Any] = None

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def add_error(self, error: AppError):
        """에러 추가"""
        self.errors.append(error)

    def add_warning(self, message: str):
        """경고 추가"""
        self.warnings.append(message)

    def merge(self, other: "ValidationOutcome"):
        """다른 결과 병합 (값은 병합하지 않음)"""
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)

    def errors_by_field(self) -> Dict[str, List[AppError]]:
        """필드명 기준 에러 묶음"""
        grouped: Dict[str, List[AppError]] = {}
        for error in self.errors:
            grouped.setdefault(error.field or "_form", []).append(error)
        return grouped

    def error_codes(self) -> List[str]:
        return [error.code for error in self.errors]

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "is_valid": self.is_valid,
            "errors": [
                {**error.to_dict(), "field": error.field} for error in self.errors
            ],
            "warnings": list(self.warnings),
        }
        if self.profit_report is not None:
            data["profit"] = self.profit_report.to_dict()
        return data


# ============================================================
# 규칙
# ============================================================

class RuleKind(Enum):
    """필드 규칙 종류 (닫힌 집합)"""
    REQUIRED = "required"
    EMAIL = "email"
    PASSWORD = "password"
    NON_NEGATIVE_NUMBER = "non_negative_number"
    INTEGER = "integer"
    IMAGE_URL = "image_url"
    LENGTH_RANGE = "length_range"


@dataclass(frozen=True)
class FieldRule:
    """필드 규칙"""
    kind: RuleKind
    min_length: int = 0
    max_length: Optional[int] = None


REQUIRED = FieldRule(RuleKind.REQUIRED)
EMAIL = FieldRule(RuleKind.EMAIL)
PASSWORD = FieldRule(RuleKind.PASSWORD, min_length=PASSWORD_MIN_LENGTH)
NON_NEGATIVE_NUMBER = FieldRule(RuleKind.NON_NEGATIVE_NUMBER)
INTEGER = FieldRule(RuleKind.INTEGER)
IMAGE_URL = FieldRule(RuleKind.IMAGE_URL)


def length_range(min_length: int, max_length: int) -> FieldRule:
    """문자 수 범위 규칙"""
    if min_length < 0 or max_length < min_length:
        raise ValueError(f"invalid length range: {min_length}..{max_length}")
    return FieldRule(RuleKind.LENGTH_RANGE, min_length=min_length, max_length=max_length)


def _text(raw: Any) -> str:
    return "" if raw is None else str(raw).strip()


def _fail(kind: ErrorKind, name: str, **context) -> ValidationOutcome:
    return ValidationOutcome(errors=[validation_error(kind, {"field": name, **context})])


def _accept(value: Any) -> ValidationOutcome:
    return ValidationOutcome(value=value)


def validate_field(name: str, raw_value: Any, rule: FieldRule) -> ValidationOutcome:
    """
    필드 하나를 규칙 하나로 검증

    Args:
        name: 필드명 (에러 context["field"])
        raw_value: 입력값
        rule: 적용할 규칙

    Returns:
        에러 하나 또는 수용된 값을 담은 ValidationOutcome
    """
    kind = rule.kind

    if kind == RuleKind.REQUIRED:
        if raw_value is None or (isinstance(raw_value, str) and not raw_value.strip()):
            return _fail(ErrorKind.REQUIRED_FIELD, name)
        return _accept(raw_value)

    if kind == RuleKind.EMAIL:
        text = _text(raw_value)
        if not EMAIL_PATTERN.match(text):
            return _fail(ErrorKind.INVALID_EMAIL, name, value=text)
        return _accept(text)

    if kind == RuleKind.PASSWORD:
        # 비밀번호 값은 context 에 넣지 않는다
        text = "" if raw_value is None else str(raw_value)
        if len(text) < rule.min_length:
            return _fail(ErrorKind.INVALID_PASSWORD, name, length=len(text), min=rule.min_length)
        return _accept(text)

    if kind == RuleKind.NON_NEGATIVE_NUMBER:
        number = sanitize_number(raw_value)
        if number < 0:
            return _fail(ErrorKind.NEGATIVE_VALUE, name, value=float(number))
        return _accept(number)

    if kind == RuleKind.INTEGER:
        number = sanitize_number(raw_value)
        if number < 0:
            return _fail(ErrorKind.NEGATIVE_VALUE, name, value=float(number))
        if number != number.to_integral_value():
            return _fail(ErrorKind.INVALID_NUMBER, name, value=float(number), reason="not a whole number")
        return _accept(int(number))

    if kind == RuleKind.IMAGE_URL:
        text = _text(raw_value)
        if not text:
            return _accept(None)
        if not IMAGE_URL_PATTERN.match(text):
            return _fail(ErrorKind.INVALID_IMAGE_URL, name, value=text)
        return _accept(text)

    if kind == RuleKind.LENGTH_RANGE:
        text = _text(raw_value)
        upper = rule.max_length if rule.max_length is not None else len(text)
        if not rule.min_length <= len(text) <= upper:
            return _fail(
                ErrorKind.INVALID_LENGTH, name,
                length=len(text), min=rule.min_length, max=rule.max_length,
            )
        return _accept(text)

    raise ValueError(f"unsupported rule: {kind}")


def validate_chain(name: str, raw_value: Any, rules: Sequence[FieldRule]) -> ValidationOutcome:
    """규칙을 순서대로 적용, 첫 실패에서 중단 (필드당 에러 하나)"""
    outcome = _accept(raw_value)
    for rule in rules:
        outcome = validate_field(name, raw_value, rule)
        if not outcome.is_valid:
            return outcome
        raw_value = outcome.value
    return outcome
