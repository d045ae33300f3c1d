"""코어 모듈 (에러 분류, 설정, 로깅)"""
from .exceptions import (
    AppError,
    ErrorCategory,
    ErrorKind,
    UserMessage,
    ERROR_MESSAGES,
    make_error,
    validation_error,
    network_error,
    api_error,
    auth_error,
    profit_error,
    cart_error,
    parse_external_failure,
)
from .error_handler import ErrorHandler, ErrorRecord, error_boundary
from .config import EngineConfig, DEFAULT_CONFIG, Settings
from .logging import setup_logger, PerformanceLogger

__all__ = [
    # 에러
    "AppError",
    "ErrorCategory",
    "ErrorKind",
    "UserMessage",
    "ERROR_MESSAGES",
    "make_error",
    "validation_error",
    "network_error",
    "api_error",
    "auth_error",
    "profit_error",
    "cart_error",
    "parse_external_failure",
    "ErrorHandler",
    "ErrorRecord",
    "error_boundary",
    # 설정
    "EngineConfig",
    "DEFAULT_CONFIG",
    "Settings",
    # 로깅
    "setup_logger",
    "PerformanceLogger",
]
