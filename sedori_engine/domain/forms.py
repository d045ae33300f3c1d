"""
forms.py - 폼 검증 파이프라인

필드 검증기를 입력 레코드 전체에 적용한다.
- 모든 필드를 독립적으로 검증 (한 필드가 실패해도 나머지 계속)
- 에러는 context["field"] 로 필드를 가리킨다
- 필드 검증 후 폼 종류별 교차 규칙 적용
- 경고는 수용을 막지 않으며 선언 순서를 유지한다

partial=True 는 실시간 입력 모드: 레코드에 없는 키는 건너뛴다.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .logic import ProfitCalculator
from ..core.config import EngineConfig, DEFAULT_CONFIG
from ..core.exceptions import ErrorKind, validation_error
from ..utils.validators import (
    EMAIL,
    IMAGE_URL,
    INTEGER,
    NON_NEGATIVE_NUMBER,
    REQUIRED,
    FieldRule,
    RuleKind,
    ValidationOutcome,
    length_range,
    sanitize_string,
    validate_chain,
)

logger = logging.getLogger(__name__)


class FormKind(Enum):
    """폼 종류"""
    LOGIN = "login"
    REGISTER = "register"
    PRODUCT = "product"
    CART_ITEM = "cart_item"


@dataclass(frozen=True)
class FieldSpec:
    """폼 필드 정의"""
    name: str
    rules: Tuple[FieldRule, ...]
    required: bool = True           # 키가 없으면 REQUIRED_FIELD (partial 제외)
    text: bool = False              # 검증 전 sanitize_string 적용
    aliases: Tuple[str, ...] = ()   # camelCase 등 다른 키 이름


def _form_fields(kind: FormKind, config: EngineConfig) -> Tuple[FieldSpec, ...]:
    """폼 종류별 필드 목록 (선언 순서 = 검증/경고 순서)"""
    password = FieldRule(RuleKind.PASSWORD, min_length=config.password_min_length)

    if kind == FormKind.LOGIN:
        return (
            FieldSpec("email", (REQUIRED, EMAIL)),
            FieldSpec("password", (REQUIRED, password)),
        )

    if kind == FormKind.REGISTER:
        return (
            FieldSpec("name", (REQUIRED, length_range(*config.name_length)), text=True),
            FieldSpec("email", (REQUIRED, EMAIL)),
            FieldSpec("password", (REQUIRED, password)),
            FieldSpec("confirm_password", (), required=False, aliases=("confirmPassword",)),
        )

    if kind == FormKind.PRODUCT:
        return (
            FieldSpec("title", (REQUIRED, length_range(*config.title_length)), text=True),
            FieldSpec("description", (REQUIRED,), text=True),
            FieldSpec("category", (REQUIRED,), text=True),
            FieldSpec("stock", (REQUIRED, INTEGER)),
            FieldSpec("cost", (REQUIRED, NON_NEGATIVE_NUMBER)),
            FieldSpec("price", (REQUIRED, NON_NEGATIVE_NUMBER)),
            FieldSpec("image_url", (IMAGE_URL,), required=False, aliases=("imageUrl",)),
        )

    if kind == FormKind.CART_ITEM:
        return (
            FieldSpec("product_id", (REQUIRED,), text=True, aliases=("productId",)),
            FieldSpec("quantity", (REQUIRED, INTEGER)),
            FieldSpec("price", (REQUIRED, NON_NEGATIVE_NUMBER)),
        )

    raise ValueError(f"unsupported form kind: {kind}")


def _lookup(record: Mapping[str, Any], spec: FieldSpec) -> Tuple[bool, Any]:
    for key in (spec.name,) + spec.aliases:
        if key in record:
            return True, record[key]
    return False, None


class FormValidator:
    """폼 검증기"""

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or DEFAULT_CONFIG
        self.calculator = ProfitCalculator(self.config)

    def validate(
        self,
        record: Mapping[str, Any],
        form_kind: Union[FormKind, str],
        partial: bool = False,
    ) -> ValidationOutcome:
        """
        레코드 전체 검증

        Args:
            record: 입력 레코드 (snake_case 또는 camelCase 키)
            form_kind: 폼 종류
            partial: True 면 없는 키는 건너뜀

        Returns:
            ValidationOutcome (유효하면 value 에 정규화된 레코드)
        """
        kind = FormKind(form_kind)
        outcome = ValidationOutcome()
        accepted: Dict[str, Any] = {}

        for spec in _form_fields(kind, self.config):
            present, raw = _lookup(record, spec)
            if not present and (partial or not spec.required):
                continue
            if spec.text and raw is not None:
                raw = sanitize_string(raw)

            result = validate_chain(spec.name, raw, spec.rules)
            if not result.is_valid:
                outcome.merge(result)
                continue
            accepted[spec.name] = result.value
            self._field_checks(kind, spec.name, result.value, outcome)

        self._cross_field_checks(kind, record, accepted, outcome)

        if outcome.is_valid:
            outcome.value = accepted

        logger.debug(
            f"{kind.value} form validated",
            extra={"context": {"errors": len(outcome.errors), "warnings": len(outcome.warnings),
                               "partial": partial}},
        )
        return outcome

    def _field_checks(self, kind: FormKind, name: str, value: Any, outcome: ValidationOutcome):
        """단일 필드의 폼별 추가 규칙"""
        cfg = self.config

        if kind == FormKind.PRODUCT and name == "description":
            if len(value) > cfg.long_description_chars:
                outcome.add_warning(
                    "very long description: consider making it more concise"
                )

        elif kind == FormKind.CART_ITEM and name == "quantity":
            if value < 1:
                outcome.add_error(validation_error(
                    ErrorKind.INVALID_NUMBER,
                    {"field": "quantity", "value": value, "reason": "must be at least 1"},
                ))
            elif value > cfg.max_cart_quantity_without_warning:
                outcome.add_warning(
                    f"large quantity: please confirm the order quantity ({value})"
                )

    def _cross_field_checks(
        self,
        kind: FormKind,
        record: Mapping[str, Any],
        accepted: Dict[str, Any],
        outcome: ValidationOutcome,
    ):
        if kind == FormKind.REGISTER:
            confirm_keys = [key for key in ("confirm_password", "confirmPassword") if key in record]
            if confirm_keys and "password" in record and record[confirm_keys[0]] != record["password"]:
                outcome.add_error(validation_error(
                    ErrorKind.INVALID_PASSWORD,
                    {"field": "confirm_password", "reason": "do not match"},
                ))

        elif kind == FormKind.PRODUCT:
            if "cost" not in accepted or "price" not in accepted:
                return
            cost, price = accepted["cost"], accepted["price"]
            report = self.calculator.compute(cost, price)
            outcome.profit_report = report

            gate_error = self.calculator.check_profitable(cost, price)
            if gate_error is not None:
                outcome.add_error(gate_error)
                return

            if report.price > 0:
                margin = report.margin_pct
                if margin <= self.config.low_margin_pct:
                    outcome.add_warning(
                        f"low margin: consider adjusting pricing for better profitability ({margin:.1f}%)"
                    )
                elif margin > self.config.high_margin_pct:
                    outcome.add_warning(
                        f"verify competitiveness: very high profit margin ({margin:.1f}%)"
                    )


@dataclass
class BatchOutcome:
    """배치 검증 결과"""
    outcomes: List[ValidationOutcome] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return all(o.is_valid for o in self.outcomes)

    def get_invalid_indices(self) -> List[int]:
        """무효한 항목 인덱스 반환"""
        return [i for i, o in enumerate(self.outcomes) if not o.is_valid]

    def get_valid_values(self) -> List[Dict[str, Any]]:
        """유효한 항목의 정규화된 레코드"""
        return [o.value for o in self.outcomes if o.is_valid]

    @property
    def error_count(self) -> int:
        return sum(len(o.errors) for o in self.outcomes)


def validate_form(
    record: Mapping[str, Any],
    form_kind: Union[FormKind, str],
    partial: bool = False,
    config: Optional[EngineConfig] = None,
) -> ValidationOutcome:
    """폼 검증 (FormValidator 단축 함수)"""
    return FormValidator(config).validate(record, form_kind, partial=partial)


def validate_batch(
    records: Sequence[Mapping[str, Any]],
    form_kind: Union[FormKind, str],
    config: Optional[EngineConfig] = None,
) -> BatchOutcome:
    """여러 레코드를 같은 폼 규칙으로 검증"""
    validator = FormValidator(config)
    return BatchOutcome([validator.validate(record, form_kind) for record in records])
