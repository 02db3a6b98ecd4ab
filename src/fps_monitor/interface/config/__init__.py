"""
설정 모듈

config.json 스키마와 로더를 제공합니다.
"""

from fps_monitor.interface.config.loader import ConfigLoader
from fps_monitor.interface.config.schema import MonitorConfig, SourceConfig, StreamEntry

__all__ = ["ConfigLoader", "MonitorConfig", "SourceConfig", "StreamEntry"]
