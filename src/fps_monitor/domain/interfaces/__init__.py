"""
인터페이스 모듈

디코딩 협력자가 구현해야 하는 Protocol을 정의합니다.
"""

from fps_monitor.domain.interfaces.source import FrameCallback, FrameSource

__all__ = ["FrameCallback", "FrameSource"]
