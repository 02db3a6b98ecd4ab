"""
Domain Layer

순수 규칙과 엔티티를 정의합니다.
외부 라이브러리에 의존하지 않으며, 표준 라이브러리만 사용합니다.

구성 요소:
- interfaces: 디코딩 협력자 인터페이스 (Protocol)
- models: 데이터 모델 (Stream)
"""

from fps_monitor.domain.interfaces.source import FrameCallback, FrameSource
from fps_monitor.domain.models.stream import (
    StreamConfig,
    StreamState,
    StreamStatus,
)

__all__ = [
    # 인터페이스
    "FrameCallback",
    "FrameSource",
    # 스트림 모델
    "StreamConfig",
    "StreamState",
    "StreamStatus",
]
