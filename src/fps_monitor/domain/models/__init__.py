"""
데이터 모델 모듈

스트림 설정과 상태 데이터 구조를 정의합니다.
"""

from fps_monitor.domain.models.stream import (
    StreamConfig,
    StreamState,
    StreamStatus,
    mask_url,
)

__all__ = [
    "StreamConfig",
    "StreamState",
    "StreamStatus",
    "mask_url",
]
