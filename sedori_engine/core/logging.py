"""
logging.py - 로깅 설정

- Rich 콘솔 로그 (기본)
- JSON 구조화 로그 (json_format=True)
- 실행 시간 추적 (PerformanceLogger)

라이브러리 모듈은 logging.getLogger(__name__) 만 사용하고
핸들러 설정은 CLI 등 진입점에서 setup_logger 로 한다.
"""

import functools
import json
import logging
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Callable

from rich.console import Console
from rich.logging import RichHandler


class JSONFormatter(logging.Formatter):
    """JSON 형식 로그 포맷터"""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        # 추가 컨텍스트
        if hasattr(record, "context"):
            log_data["context"] = record.context

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


def setup_logger(
    name: str = "sedori_engine",
    level: str = "INFO",
    json_format: bool = False,
) -> logging.Logger:
    """Rich(또는 JSON) 포맷 로거 설정"""
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # 기존 핸들러 제거
    logger.handlers.clear()

    if json_format:
        handler = logging.StreamHandler()
        handler.setFormatter(JSONFormatter())
    else:
        # stdout 은 명령 결과 전용
        handler = RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))

    logger.addHandler(handler)
    return logger


class PerformanceLogger:
    """성능 추적 로거"""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    @contextmanager
    def track(self, operation: str, **context):
        """
        작업 실행 시간 추적

        사용법:
            with perf_logger.track("trend analysis", points=90):
                analyzer.analyze(series)
        """
        start_time = time.perf_counter()
        try:
            yield
        except Exception as e:
            elapsed = time.perf_counter() - start_time
            self.logger.warning(
                f"failed: {operation} ({elapsed:.3f}s) - {e}",
                extra={"context": {**context, "duration_ms": elapsed * 1000}},
            )
            raise
        else:
            elapsed = time.perf_counter() - start_time
            self.logger.debug(
                f"done: {operation} ({elapsed:.3f}s)",
                extra={"context": {**context, "duration_ms": elapsed * 1000}},
            )

    def timed(self, operation: str = None):
        """함수 실행 시간 측정 데코레이터"""
        def decorator(func: Callable):
            op_name = operation or func.__name__

            @functools.wraps(func)
            def wrapper(*args, **kwargs):
                with self.track(op_name):
                    return func(*args, **kwargs)

            return wrapper
        return decorator
