"""
fps-monitor - 다중 미디어 스트림 FPS 감시 및 자동 복구 엔진

RTSP 등 장시간 실행되는 스트림 여러 개의 프레임 수신율을 주기적으로 측정하고,
프레임이 멈춘 스트림을 자동으로 재연결합니다.
"""

__version__ = "0.1.0"
__author__ = "fps-monitor Team"

from fps_monitor.common.errors import (
    MonitorError,
    StreamError,
    SourceError,
    ConfigError,
    ErrorCode,
)
from fps_monitor.common.logging import get_logger

__all__ = [
    "__version__",
    "MonitorError",
    "StreamError",
    "SourceError",
    "ConfigError",
    "ErrorCode",
    "get_logger",
]
