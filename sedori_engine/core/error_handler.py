"""
에러 핸들러

엔진 경계의 중앙 집중식 에러 처리.
AppError 이외의 예외는 parse_external_failure 로 정규화하여
호출자에게는 항상 AppError 만 전달된다.
"""

import functools
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .exceptions import AppError, ErrorCategory, parse_external_failure


@dataclass
class ErrorRecord:
    """에러 기록"""
    code: str
    category: str
    message: str
    http_status: int
    timestamp: str
    context: Dict[str, Any] = field(default_factory=dict)


class ErrorHandler:
    """에러 핸들러"""

    def __init__(self, logger: logging.Logger = None, max_history: int = 100):
        self.logger = logger or logging.getLogger(__name__)
        self.max_history = max_history
        self.error_history: List[ErrorRecord] = []

    def handle(
        self,
        error: BaseException,
        context: Dict[str, Any] = None
    ) -> AppError:
        """
        에러 처리

        Args:
            error: 발생한 예외
            context: 호출 측 컨텍스트 (로그/기록에만 사용)

        Returns:
            정규화된 AppError
        """
        context = context or {}
        app_error = parse_external_failure(error)

        self._record(app_error, context)
        self._log_error(app_error, error, context)

        return app_error

    def _record(self, error: AppError, context: Dict[str, Any]):
        self.error_history.append(ErrorRecord(
            code=error.code,
            category=error.category.value,
            message=error.message,
            http_status=error.http_status,
            timestamp=error.occurred_at.isoformat(),
            context={**error.context, **context},
        ))
        if len(self.error_history) > self.max_history:
            del self.error_history[0]

    def _log_error(self, error: AppError, original: BaseException, context: Dict[str, Any]):
        """에러 로깅 (검증 오류는 warning, 그 외 error)"""
        extra = {"context": {**error.context, **context}}
        if error.category == ErrorCategory.VALIDATION:
            self.logger.warning(f"[{error.code}] {error.message}", extra=extra)
        elif original is error:
            self.logger.error(f"[{error.code}] {error.message}", extra=extra)
        else:
            self.logger.error(
                f"[{error.code}] {error.message} (from {type(original).__name__})",
                extra=extra,
                exc_info=original,
            )

    def get_error_summary(self) -> Dict[str, Any]:
        """에러 요약 반환"""
        if not self.error_history:
            return {"total_errors": 0, "by_code": {}}

        by_code: Dict[str, int] = {}
        for record in self.error_history:
            by_code[record.code] = by_code.get(record.code, 0) + 1

        return {
            "total_errors": len(self.error_history),
            "by_code": by_code,
            "recent_errors": [
                {"code": r.code, "message": r.message, "time": r.timestamp}
                for r in self.error_history[-5:]
            ]
        }

    def clear_history(self):
        """에러 히스토리 초기화"""
        self.error_history.clear()


def error_boundary(
    fallback_value: Any = None,
    reraise: bool = True,
    handler: Optional[ErrorHandler] = None,
):
    """
    엔진 경계 데코레이터

    사용법:
        @error_boundary()
        def run_command(args):
            ...

    AppError 는 그대로, 그 외 예외는 AppError 로 변환하여 다시 발생시킨다.
    reraise=False 이면 로그만 남기고 fallback_value 를 반환한다.

    Args:
        fallback_value: reraise=False 일 때 반환할 기본값
        reraise: 에러를 다시 발생시킬지 여부
        handler: 기록용 ErrorHandler (없으면 함수 모듈 로거로 새로 생성)
    """
    def decorator(func: Callable):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                active = handler or ErrorHandler(logging.getLogger(func.__module__))
                app_error = active.handle(e, {"function": func.__name__})
                if not reraise:
                    return fallback_value
                if app_error is e:
                    raise
                raise app_error from e

        return wrapper
    return decorator
