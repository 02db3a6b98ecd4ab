# -*- coding: utf-8 -*-
"""
Infrastructure Layer 패키지.

외부 시스템과의 통신을 담당합니다:
- video: OpenCV 기반 RTSP 프레임 소스 (디코딩 협력자)
"""

from fps_monitor.infrastructure.video.rtsp_source import (
    RTSPFrameSource,
    SourceOptions,
    create_frame_source,
)

__all__ = [
    "RTSPFrameSource",
    "SourceOptions",
    "create_frame_source",
]
