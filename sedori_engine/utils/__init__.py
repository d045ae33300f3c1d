"""유틸리티 모듈"""
from .validators import (
    ValidationOutcome,
    RuleKind,
    FieldRule,
    REQUIRED,
    EMAIL,
    PASSWORD,
    NON_NEGATIVE_NUMBER,
    INTEGER,
    IMAGE_URL,
    length_range,
    validate_field,
    validate_chain,
    sanitize_number,
    sanitize_integer,
    sanitize_string,
)
from .helpers import (
    format_currency,
    format_percent,
    round_half_up,
    clamp,
    truncate_text,
)

__all__ = [
    "ValidationOutcome",
    "RuleKind",
    "FieldRule",
    "REQUIRED",
    "EMAIL",
    "PASSWORD",
    "NON_NEGATIVE_NUMBER",
    "INTEGER",
    "IMAGE_URL",
    "length_range",
    "validate_field",
    "validate_chain",
    "sanitize_number",
    "sanitize_integer",
    "sanitize_string",
    "format_currency",
    "format_percent",
    "round_half_up",
    "clamp",
    "truncate_text",
]
