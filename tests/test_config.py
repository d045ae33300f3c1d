"""config.py / logging.py 테스트"""

import json
import logging
import sys
from dataclasses import FrozenInstanceError
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from rich.logging import RichHandler

from sedori_engine.core.config import DEFAULT_CONFIG, EngineConfig, Settings
from sedori_engine.core.logging import JSONFormatter, PerformanceLogger, setup_logger


class TestSettings:
    """환경변수 설정"""

    def test_defaults(self, monkeypatch):
        for key in ("SEDORI_LOG_LEVEL", "SEDORI_LOG_JSON", "SEDORI_CURRENCY"):
            monkeypatch.delenv(key, raising=False)
        settings = Settings.from_env()
        assert settings.log_level == "INFO"
        assert settings.log_json is False
        assert settings.engine_config() is DEFAULT_CONFIG

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("SEDORI_LOG_LEVEL", "debug")
        monkeypatch.setenv("SEDORI_LOG_JSON", "true")
        monkeypatch.setenv("SEDORI_CURRENCY", "USD")
        settings = Settings.from_env()
        assert settings.log_level == "DEBUG"
        assert settings.log_json is True
        assert settings.engine_config().default_currency == "USD"

    def test_engine_config_is_frozen(self):
        with pytest.raises(FrozenInstanceError):
            DEFAULT_CONFIG.low_margin_pct = 5.0

    def test_risk_thresholds_read_only(self):
        """리스크 상한 표도 변경 불가"""
        with pytest.raises(TypeError):
            DEFAULT_CONFIG.risk_thresholds["low"] = 90.0
        assert DEFAULT_CONFIG.risk_thresholds["low"] == 30.0

    def test_custom_risk_thresholds_copied(self):
        thresholds = {"low": 10.0, "medium": 50.0, "high": 100.0}
        config = EngineConfig(risk_thresholds=thresholds)
        thresholds["low"] = 99.0
        assert config.risk_thresholds["low"] == 10.0
        with pytest.raises(TypeError):
            config.risk_thresholds["medium"] = 0.0

    def test_default_limit(self):
        assert DEFAULT_CONFIG.default_limit == 20
        assert EngineConfig(default_limit=5).default_limit == 5

    def test_custom_config(self):
        config = EngineConfig(volatile_threshold_pct=20.0)
        assert config.volatile_threshold_pct == 20.0
        assert config.trend_window == 10


class TestLogging:
    """로거 설정"""

    def test_rich_handler(self):
        logger = setup_logger("test.sedori.rich", level="debug")
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], RichHandler)

    def test_handlers_not_duplicated(self):
        setup_logger("test.sedori.dup")
        logger = setup_logger("test.sedori.dup")
        assert len(logger.handlers) == 1

    def test_json_formatter(self):
        record = logging.LogRecord("sedori", logging.INFO, __file__, 10, "hello %s", ("world",), None)
        record.context = {"points": 3}
        data = json.loads(JSONFormatter().format(record))
        assert data["message"] == "hello world"
        assert data["level"] == "INFO"
        assert data["context"] == {"points": 3}


class TestPerformanceLogger:
    """실행 시간 추적"""

    def setup_method(self):
        self.logger = logging.getLogger("test.sedori.perf")
        self.perf = PerformanceLogger(self.logger)

    def test_track_success(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="test.sedori.perf"):
            with self.perf.track("analysis", points=5):
                pass
        assert caplog.records[-1].levelno == logging.DEBUG
        assert caplog.records[-1].context["points"] == 5

    def test_track_failure_reraises(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="test.sedori.perf"):
            with pytest.raises(ValueError):
                with self.perf.track("analysis"):
                    raise ValueError("boom")
        assert caplog.records[-1].levelno == logging.WARNING

    def test_timed(self):
        @self.perf.timed()
        def add(a, b):
            return a + b

        assert add(1, 2) == 3
