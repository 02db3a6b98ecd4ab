"""
공통 유틸리티 모듈

에러 처리, 로깅 등 전체 애플리케이션에서 사용하는 공통 기능을 제공합니다.
"""

from fps_monitor.common.errors import (
    MonitorError,
    StreamError,
    SourceError,
    ConfigError,
    ErrorCode,
)
from fps_monitor.common.logging import get_logger, configure_logging

__all__ = [
    # 에러
    "MonitorError",
    "StreamError",
    "SourceError",
    "ConfigError",
    "ErrorCode",
    # 로깅
    "get_logger",
    "configure_logging",
]
