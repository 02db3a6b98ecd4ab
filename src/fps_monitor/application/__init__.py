"""
Application Layer

스트림 감시와 집계 로직을 구현합니다.
Domain Layer만 참조하며, Infrastructure와 Interface Layer에 의존하지 않습니다.

구성 요소:
- stream: 프레임 카운터, 스트림 감시자, 상태 레지스트리, 리포터, 오케스트레이터
"""

from fps_monitor.application.stream.counter import FrameCounter
from fps_monitor.application.stream.orchestrator import Orchestrator
from fps_monitor.application.stream.registry import StatusRegistry
from fps_monitor.application.stream.reporter import Reporter
from fps_monitor.application.stream.supervisor import StreamSupervisor

__all__ = [
    "FrameCounter",
    "Orchestrator",
    "StatusRegistry",
    "Reporter",
    "StreamSupervisor",
]
