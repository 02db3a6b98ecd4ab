"""
스트림 감시 모듈

스트림별 FPS 측정, 정지 감지 및 재연결, 상태 집계와 출력을 담당합니다.
"""

from fps_monitor.application.stream.counter import FrameCounter
from fps_monitor.application.stream.orchestrator import Orchestrator
from fps_monitor.application.stream.registry import StatusRegistry
from fps_monitor.application.stream.reporter import Reporter
from fps_monitor.application.stream.supervisor import (
    StreamSupervisor,
    calculate_downtime_threshold,
)

__all__ = [
    "FrameCounter",
    "Orchestrator",
    "StatusRegistry",
    "Reporter",
    "StreamSupervisor",
    "calculate_downtime_threshold",
]
